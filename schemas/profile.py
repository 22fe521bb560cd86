from typing import Optional, List
from datetime import date, datetime

from pydantic import BaseModel, Field


class ProfileRead(BaseModel):
    id: int
    user_id: int
    name: str
    bio: str
    profile_picture: str = Field("", description="URL фотографии профиля")
    gender: str
    interests: List[str] = Field(default_factory=list)
    date_of_birth: date
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileCard(ProfileRead):
    """Профиль вместе с данными аккаунта: для ленты и списков лайков."""
    username: str
    email: Optional[str] = None
