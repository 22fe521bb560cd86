# models/like.py
import enum

from sqlalchemy import (
    Column, BigInteger, DateTime, Enum, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func

from .base import Base


class InteractionStatus(str, enum.Enum):
    liked = "liked"
    disliked = "disliked"


class Like(Base):
    """Решение liker о liked. Одна запись на упорядоченную пару, без изменений."""

    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("liker_id", "liked_id"),
        CheckConstraint("liker_id <> liked_id", name="not_self"),
    )

    id = Column(BigInteger, primary_key=True, index=True, autoincrement=False)
    liker_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    liked_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    status = Column(
        Enum(InteractionStatus, name="interaction_status", native_enum=False, length=16),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Like {self.liker_id}→{self.liked_id} {self.status.value if self.status else None}>"
