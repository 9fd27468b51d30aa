from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.base import RecordSchema


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    avatar_url: Optional[str] = None


class UserOut(RecordSchema):
    username: str
    email: str
    avatar_url: str | None = None
