# models/match.py
from sqlalchemy import (
    Column, BigInteger, DateTime, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func

from .base import Base


class Match(Base):
    """
    Взаимная симпатия двух пользователей.
    Пара хранится канонически: user1_id < user2_id.
    """

    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id"),
        CheckConstraint("user1_id < user2_id", name="canonical_pair"),
    )

    id = Column(BigInteger, primary_key=True, index=True, autoincrement=False)
    user1_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    user2_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def user_ids(self) -> tuple:
        return self.user1_id, self.user2_id

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_participant(self, user_id: int) -> int:
        return self.user2_id if self.user1_id == user_id else self.user1_id

    def __repr__(self):
        return f"<Match {self.user1_id}↔{self.user2_id}>"
