from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.like import InteractionStatus
from schemas.match import MatchRead


class InteractionRequest(BaseModel):
    liked_user_id: int = Field(..., description="ID пользователя, о котором принимается решение")
    action: InteractionStatus = Field(..., description="'liked' или 'disliked'")


class InteractionRead(BaseModel):
    id: int
    liker_id: int
    liked_id: int
    status: InteractionStatus
    created_at: datetime

    class Config:
        from_attributes = True


class InteractionResponse(BaseModel):
    message: str
    like: InteractionRead
    match: Optional[MatchRead] = None
