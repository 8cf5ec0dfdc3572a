"""Transcript model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base


class Transcript(Base):
    """Raw and rewritten text for exactly one audio file."""

    __tablename__ = "transcript"

    id = Column(Integer, primary_key=True, autoincrement=True)
    audio_id = Column(Integer, ForeignKey("audio_file.id"), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    rephrased_text = Column(Text, nullable=True)
    language = Column(String(32), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    audio_file = relationship("AudioFile", back_populates="transcript")
