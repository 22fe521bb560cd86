from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    content: str = Field(..., max_length=4000, description="Текст сообщения")
    client_token: str = Field(
        ..., min_length=1, max_length=64,
        description="Токен клиента для сопоставления оптимистичной отправки",
    )


class MessageSender(BaseModel):
    id: int
    username: str


class MessageRead(BaseModel):
    id: int
    match_id: int
    sender: MessageSender
    content: str
    read: bool
    created_at: datetime
    client_token: Optional[str] = None
