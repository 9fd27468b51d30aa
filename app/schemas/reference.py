from app.schemas.base import BaseSchema


class MediaTypeOut(BaseSchema):
    name: str
    display_name: str


class RatingOut(BaseSchema):
    value: int
    label: str
    description: str | None = None


class GenreOut(BaseSchema):
    id: int
    name: str
