from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.base import RecordSchema
from app.schemas.enums import MediaType, MIN_RATING, MAX_RATING


# ---------- requests ----------
class MediaItemCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    media_type: MediaType
    note: Optional[str] = None
    reason: Optional[str] = None
    watched: bool = False
    rating: Optional[int] = Field(None, ge=MIN_RATING, le=MAX_RATING)
    genres: Optional[List[str]] = None


class MediaItemUpdateRequest(BaseModel):
    """Partial update. Unknown keys are dropped by pydantic."""

    title: Optional[str] = Field(None, min_length=1)
    media_type: Optional[MediaType] = None
    note: Optional[str] = None
    reason: Optional[str] = None
    watched: Optional[bool] = None
    rating: Optional[int] = Field(None, ge=MIN_RATING, le=MAX_RATING)
    genres: Optional[List[str]] = None


class MarkWatchedRequest(BaseModel):
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)


# ---------- responses ----------
class MediaItemOut(RecordSchema):
    user_id: str
    title: str
    media_type: str
    note: str | None = None
    reason: str | None = None
    rating: int | None = None
    watched: bool
    watch_date: datetime | None = None
    genres: List[str] = Field(default_factory=list, validation_alias="genre_names")


class CategoryCounts(BaseModel):
    loved: int = 0
    liked: int = 0
    disliked: int = 0
    watchlist: int = 0
    unrated: int = 0
    total: int = 0


class MediaTypeGroup(BaseModel):
    loved: List[MediaItemOut] = Field(default_factory=list)
    liked: List[MediaItemOut] = Field(default_factory=list)
    disliked: List[MediaItemOut] = Field(default_factory=list)
    watchlist: List[MediaItemOut] = Field(default_factory=list)
    unrated: List[MediaItemOut] = Field(default_factory=list)
    counts: CategoryCounts = Field(default_factory=CategoryCounts)


class MediaStats(BaseModel):
    total: int = 0
    watched_count: int = 0
    watchlist_count: int = 0
    loved_count: int = 0
    liked_count: int = 0
    disliked_count: int = 0
    unrated_watched_count: int = 0
