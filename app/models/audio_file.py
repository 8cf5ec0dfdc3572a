"""Audio file model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class AudioFile(Base):
    """Metadata row for a recording stored in object storage. Never mutated."""

    __tablename__ = "audio_file"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    storage_path = Column(String(512), nullable=False, unique=True)
    mime_type = Column(String(128), nullable=True)
    duration_ms = Column(Integer, nullable=True)
    file_size_bytes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    transcript = relationship("Transcript", back_populates="audio_file", uselist=False)
