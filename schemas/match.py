from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from schemas.message import MessageRead
from schemas.profile import ProfileRead


class MatchRead(BaseModel):
    id: int
    users: List[int] = Field(..., description="Канонически упорядоченная пара участников")
    created_at: datetime

    class Config:
        from_attributes = True


class MatchUser(BaseModel):
    id: int
    username: str
    email: str
    profile: Optional[ProfileRead] = None


class MatchSummary(BaseModel):
    match_id: int
    other_user: MatchUser
    last_message: Optional[MessageRead] = None
    unread_count: int = 0
    created_at: datetime
    updated_at: datetime
