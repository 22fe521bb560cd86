# models/message.py
from datetime import datetime, timezone

from sqlalchemy import Column, BigInteger, Boolean, DateTime, ForeignKey, Text, Index

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_match_created", "match_id", "created_at"),
    )

    id = Column(BigInteger, primary_key=True, index=True, autoincrement=False)
    match_id = Column(BigInteger, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    # микросекундная точность из Python, порядок сообщений строгий
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Message id={self.id} match={self.match_id} from={self.sender_id}>"
