from .base import Base
from .user import User
from .profile import Profile
from .like import Like, InteractionStatus
from .match import Match
from .message import Message

__all__ = ["Base", "User", "Profile", "Like", "InteractionStatus", "Match", "Message"]
