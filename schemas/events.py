# schemas/events.py
"""Имена и полезная нагрузка событий, которые уходят в живые соединения."""
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

NEW_MATCH = "newMatch"
NEW_MESSAGE = "newMessage"
ONLINE_USERS = "getOnlineUsers"


class _Event(BaseModel):
    # фронтенд ждёт camelCase
    class Config:
        alias_generator = to_camel
        validate_by_name = True


class MatchedUser(_Event):
    id: int
    display_name: str
    picture_ref: Optional[str] = None


class NewMatchEvent(_Event):
    match_id: int
    other_user: MatchedUser
    message: str
