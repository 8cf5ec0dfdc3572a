"""Journal entries: pipeline writes, edits, deletes and the read model."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.config import get_settings
from app.errors import BadRequest, NotFound
from app.models.audio_file import AudioFile
from app.models.mood_entry import DailyMoodEntry
from app.models.transcript import Transcript
from app.services.mood import format_day_quality
from app.services.storage import ObjectStorage, StorageError, get_object_storage
from app.timeutils import day_bounds_utc, local_today, to_local_date, week_start

logger = logging.getLogger("voice_journal")


@dataclass
class JournalStats:
    total_entries: int = 0
    this_week_entries: int = 0
    current_streak: int = 0


@dataclass
class DailySummary:
    """Read-time grouping of one calendar day's journals and mood check-in."""

    date: date
    journals: list[AudioFile] = field(default_factory=list)
    mood: DailyMoodEntry | None = None

    @property
    def entry_count(self) -> int:
        return len(self.journals)

    @property
    def summary(self) -> str:
        parts = []
        for journal in sorted(self.journals, key=lambda j: j.created_at):
            transcript = journal.transcript
            if transcript is None:
                continue
            text = transcript.rephrased_text or transcript.text
            if text:
                parts.append(text.strip())
        return " ".join(parts)

    @property
    def mood_quality(self) -> str | None:
        return format_day_quality(self.mood.day_quality) if self.mood else None

    @property
    def dominant_emotions(self) -> list[str]:
        return list(self.mood.emotions or []) if self.mood else []


def compute_streak(days: Iterable[date], today: date) -> int:
    """Consecutive days ending today that appear in ``days``.

    A missing entry today yields 0 even if yesterday has one.
    """
    present = set(days)
    streak = 0
    current = today
    while current in present:
        streak += 1
        current -= timedelta(days=1)
    return streak


class JournalService:
    """Owns AudioFile and Transcript rows for a user."""

    # --- writes ---

    def create_audio_file(
        self,
        db: Session,
        user_id: int,
        storage_path: str,
        mime_type: str | None,
        file_size_bytes: int,
        duration_ms: int | None = None,
    ) -> AudioFile:
        audio_file = AudioFile(
            user_id=user_id,
            storage_path=storage_path,
            mime_type=mime_type,
            file_size_bytes=file_size_bytes,
            duration_ms=duration_ms,
        )
        db.add(audio_file)
        db.commit()
        db.refresh(audio_file)
        return audio_file

    def create_transcript(
        self,
        db: Session,
        user_id: int,
        audio_id: int,
        text: str,
        rephrased_text: str,
        language: str | None,
    ) -> Transcript:
        transcript = Transcript(
            user_id=user_id,
            audio_id=audio_id,
            text=text,
            rephrased_text=rephrased_text,
            language=language,
        )
        db.add(transcript)
        db.commit()
        db.refresh(transcript)
        return transcript

    def update_rephrased_text(self, db: Session, user_id: int, audio_id: int, rephrased_text: str) -> Transcript:
        """Replace the rewritten text of an entry. The raw transcript is left untouched."""
        cleaned = (rephrased_text or "").strip()
        if not cleaned:
            raise BadRequest("rephrased_text must not be empty")

        journal = self.get_journal(db, user_id, audio_id)
        if journal is None or journal.transcript is None:
            raise NotFound("Journal entry not found")

        journal.transcript.rephrased_text = cleaned
        db.commit()
        db.refresh(journal.transcript)
        return journal.transcript

    def delete_journal(self, db: Session, user_id: int, audio_id: int, storage: ObjectStorage | None = None) -> None:
        """Delete an entry's transcript, metadata row and blob."""
        journal = self.get_journal(db, user_id, audio_id)
        if journal is None:
            raise NotFound("Journal entry not found")

        storage_path = journal.storage_path
        if journal.transcript is not None:
            db.delete(journal.transcript)
        db.delete(journal)
        db.commit()

        storage = storage or get_object_storage()
        try:
            storage.delete(storage_path)
        except StorageError as e:
            logger.warning("Orphaned blob after delete user=%s path=%s: %s", user_id, storage_path, e)

    # --- reads ---

    def _journals(self, db: Session, user_id: int):
        return (
            db.query(AudioFile)
            .options(joinedload(AudioFile.transcript))
            .filter(AudioFile.user_id == user_id)
        )

    def get_journal(self, db: Session, user_id: int, audio_id: int) -> AudioFile | None:
        return self._journals(db, user_id).filter(AudioFile.id == audio_id).first()

    def get_today_journals(self, db: Session, user_id: int, today: date | None = None) -> list[AudioFile]:
        start, end = day_bounds_utc(today or local_today())
        return (
            self._journals(db, user_id)
            .filter(AudioFile.created_at >= start, AudioFile.created_at < end)
            .order_by(AudioFile.created_at.desc(), AudioFile.id.desc())
            .all()
        )

    def get_recent_journals(self, db: Session, user_id: int, limit: int = 10) -> list[AudioFile]:
        return (
            self._journals(db, user_id)
            .order_by(AudioFile.created_at.desc(), AudioFile.id.desc())
            .limit(limit)
            .all()
        )

    def get_stats(self, db: Session, user_id: int, today: date | None = None) -> JournalStats:
        today = today or local_today()
        settings = get_settings()

        total = db.query(func.count(AudioFile.id)).filter(AudioFile.user_id == user_id).scalar() or 0

        week_from, _ = day_bounds_utc(week_start(today))
        _, week_to = day_bounds_utc(today)
        this_week = (
            db.query(func.count(AudioFile.id))
            .filter(
                AudioFile.user_id == user_id,
                AudioFile.created_at >= week_from,
                AudioFile.created_at < week_to,
            )
            .scalar()
            or 0
        )

        recent = (
            db.query(AudioFile.created_at)
            .filter(AudioFile.user_id == user_id)
            .order_by(AudioFile.created_at.desc())
            .limit(settings.STREAK_LOOKBACK_ENTRIES)
            .all()
        )
        streak = compute_streak((to_local_date(created_at) for (created_at,) in recent), today)

        return JournalStats(total_entries=total, this_week_entries=this_week, current_streak=streak)

    def get_daily_records(self, db: Session, user_id: int, days: int = 30, today: date | None = None) -> list[DailySummary]:
        """Journals and mood check-ins grouped by local day, newest day first. Empty days are skipped."""
        today = today or local_today()
        first_day = today - timedelta(days=max(days, 1) - 1)
        start, _ = day_bounds_utc(first_day)
        _, end = day_bounds_utc(today)

        journals = (
            self._journals(db, user_id)
            .filter(AudioFile.created_at >= start, AudioFile.created_at < end)
            .order_by(AudioFile.created_at.desc(), AudioFile.id.desc())
            .all()
        )
        moods = (
            db.query(DailyMoodEntry)
            .filter(
                DailyMoodEntry.user_id == user_id,
                DailyMoodEntry.entry_date >= first_day,
                DailyMoodEntry.entry_date <= today,
            )
            .all()
        )

        records: dict[date, DailySummary] = {}
        for journal in journals:
            day = to_local_date(journal.created_at)
            records.setdefault(day, DailySummary(date=day)).journals.append(journal)
        for mood in moods:
            records.setdefault(mood.entry_date, DailySummary(date=mood.entry_date)).mood = mood

        return [records[day] for day in sorted(records, reverse=True)]

    # --- maintenance ---

    def find_orphaned_blobs(self, db: Session, cutoff: datetime, storage: ObjectStorage | None = None) -> list[str]:
        """Blobs written before ``cutoff`` (naive UTC) that have no AudioFile row.

        Newer blobs may belong to an upload that has not inserted its row yet.
        """
        storage = storage or get_object_storage()
        known = {path for (path,) in db.query(AudioFile.storage_path).all()}
        return [
            path for path in storage.list_paths() if path not in known and storage.modified_at(path) < cutoff
        ]

    def find_orphaned_audio_files(self, db: Session, cutoff: datetime) -> list[AudioFile]:
        """AudioFile rows created before ``cutoff`` whose transcript was never written."""
        return (
            db.query(AudioFile)
            .outerjoin(Transcript, Transcript.audio_id == AudioFile.id)
            .filter(Transcript.id.is_(None), AudioFile.created_at < cutoff)
            .order_by(AudioFile.id)
            .all()
        )


_journal_service: JournalService | None = None


def get_journal_service() -> JournalService:
    """Get singleton journal service instance."""
    global _journal_service
    if _journal_service is None:
        _journal_service = JournalService()
    return _journal_service
