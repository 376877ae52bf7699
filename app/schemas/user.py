from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.micropost import Micropost
from app.schemas.pagination import PaginatedResponse


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    admin: bool
    activated: bool
    created_at: datetime


class PublicUser(BaseModel):
    """What any visitor may see about a user."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class UserCreate(BaseModel):
    # Format, length and uniqueness are checked by the user service so that
    # every failure comes back as a field-level message.
    name: str = ""
    email: str = ""
    password: str = ""
    password_confirmation: str | None = None


class UserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None  # Blank means "keep the current password"
    password_confirmation: str | None = None


class UserStats(BaseModel):
    microposts: int
    following: int
    followers: int


class UserProfile(BaseModel):
    user: PublicUser
    is_self: bool = Field(..., description="True when the viewer is looking at their own profile")
    is_following: bool | None = Field(
        None, description="Whether the viewer follows this user; None for anonymous viewers"
    )
    stats: UserStats
    microposts: PaginatedResponse[Micropost]


class PasswordResetRequest(BaseModel):
    email: str


class PasswordReset(BaseModel):
    email: str
    password: str = ""
    password_confirmation: str | None = None
