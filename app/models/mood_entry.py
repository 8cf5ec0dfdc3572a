"""Daily mood check-in model."""

from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint

from app.database import Base

DAY_QUALITIES = ("good", "bad", "so-so")
EMOTIONS = ("Happy", "Anxious", "Anger", "Sadness", "Despair")


class DailyMoodEntry(Base):
    """One check-in per user per calendar day."""

    __tablename__ = "daily_mood_entry"
    __table_args__ = (UniqueConstraint("user_id", "entry_date", name="uq_daily_mood_entry_user_day"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    day_quality = Column(String(16), nullable=False)
    emotions = Column(JSON, nullable=False, default=list)
    entry_date = Column(Date, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
