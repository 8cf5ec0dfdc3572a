"""Daily mood check-ins and their display strings."""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import BadRequest, Conflict
from app.models.mood_entry import DAY_QUALITIES, EMOTIONS, DailyMoodEntry
from app.timeutils import local_today

logger = logging.getLogger("voice_journal")

DAY_QUALITY_LABELS = {
    "good": "Good day",
    "bad": "Bad day",
    "so-so": "Just so so",
}


def format_day_quality(day_quality: str) -> str:
    return DAY_QUALITY_LABELS.get(day_quality, day_quality)


def format_emotions(emotions: list[str] | None) -> str:
    """``A``, ``A & B``, or ``A, B +N`` for longer lists."""
    if not emotions:
        return ""
    if len(emotions) == 1:
        return emotions[0]
    if len(emotions) == 2:
        return " & ".join(emotions)
    return f"{', '.join(emotions[:2])} +{len(emotions) - 2}"


@dataclass
class MoodDisplay:
    primary_text: str
    secondary_text: str
    has_data: bool


def get_mood_display(entry: DailyMoodEntry | None) -> MoodDisplay:
    if entry is None:
        return MoodDisplay(primary_text="-", secondary_text="Complete daily check-in", has_data=False)
    return MoodDisplay(
        primary_text=format_day_quality(entry.day_quality),
        secondary_text=format_emotions(entry.emotions or []) or "No emotions selected",
        has_data=True,
    )


def normalize_emotions(emotions: list[str]) -> list[str]:
    """Validate against the fixed vocabulary and drop duplicates, keeping first-seen order."""
    unknown = [e for e in emotions if e not in EMOTIONS]
    if unknown:
        raise BadRequest(f"Unknown emotions: {', '.join(unknown)}. Allowed: {', '.join(EMOTIONS)}")
    return list(dict.fromkeys(emotions))


class MoodService:
    """Reads and writes a user's daily check-in."""

    def get_today_entry(self, db: Session, user_id: int, today: date | None = None) -> DailyMoodEntry | None:
        day = today or local_today()
        return (
            db.query(DailyMoodEntry)
            .filter(DailyMoodEntry.user_id == user_id, DailyMoodEntry.entry_date == day)
            .first()
        )

    def should_prompt_check_in(self, db: Session, user_id: int, today: date | None = None) -> bool:
        return self.get_today_entry(db, user_id, today) is None

    def create_entry(
        self, db: Session, user_id: int, day_quality: str, emotions: list[str], today: date | None = None
    ) -> DailyMoodEntry:
        """Record today's check-in. A second check-in on the same day raises ``Conflict``."""
        if day_quality not in DAY_QUALITIES:
            raise BadRequest(f"Invalid day_quality '{day_quality}'. Allowed: {', '.join(DAY_QUALITIES)}")

        entry = DailyMoodEntry(
            user_id=user_id,
            day_quality=day_quality,
            emotions=normalize_emotions(emotions),
            entry_date=today or local_today(),
        )
        db.add(entry)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.info("Duplicate mood check-in rejected user=%s day=%s", user_id, entry.entry_date)
            raise Conflict("Mood check-in already recorded for today") from e
        db.refresh(entry)
        return entry


_mood_service: MoodService | None = None


def get_mood_service() -> MoodService:
    """Get singleton mood service instance."""
    global _mood_service
    if _mood_service is None:
        _mood_service = MoodService()
    return _mood_service
