# models/profile.py
from sqlalchemy import Column, BigInteger, String, Date, Text, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .base import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(BigInteger, primary_key=True, index=True, autoincrement=False)
    user_id = Column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    bio = Column(Text, nullable=False, default="")
    profile_picture = Column(String(512), nullable=False, default="")
    gender = Column(String(32), nullable=False, default="")
    interests = Column(JSON, nullable=False, default=list)
    date_of_birth = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user = relationship("User", back_populates="profile", uselist=False)

    def __repr__(self):
        return f"<Profile user_id={self.user_id} name={self.name}>"
