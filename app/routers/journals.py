"""Journal read model, edit and delete endpoints."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.errors import NotFound
from app.schemas.journal import (
    DailyMoodSummary,
    DailyRecordResponse,
    JournalEntryResponse,
    JournalListResponse,
    JournalStatsResponse,
    JournalUpdateRequest,
    TranscriptResponse,
)
from app.services.journal import DailySummary, get_journal_service
from app.services.storage import StorageError, get_object_storage

router = APIRouter(prefix="/api/v1/journals", tags=["Journals"])


def _list_response(items: list) -> JournalListResponse:
    return JournalListResponse(items=[JournalEntryResponse.model_validate(i) for i in items], total=len(items))


def _daily_record(record: DailySummary) -> DailyRecordResponse:
    return DailyRecordResponse(
        date=record.date,
        entry_count=record.entry_count,
        summary=record.summary,
        mood_quality=record.mood_quality,
        dominant_emotions=record.dominant_emotions,
        daily_mood=DailyMoodSummary.model_validate(record.mood) if record.mood else None,
        journals=[JournalEntryResponse.model_validate(j) for j in record.journals],
    )


@router.get("/today", response_model=JournalListResponse)
def list_today(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> JournalListResponse:
    """Today's entries, newest first."""
    return _list_response(get_journal_service().get_today_journals(db, user.user_id))


@router.get("/recent", response_model=JournalListResponse)
def list_recent(
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JournalListResponse:
    return _list_response(get_journal_service().get_recent_journals(db, user.user_id, limit=limit))


@router.get("/stats", response_model=JournalStatsResponse)
def get_stats(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> JournalStatsResponse:
    """Total, this-week and streak counts."""
    stats = get_journal_service().get_stats(db, user.user_id)
    return JournalStatsResponse.model_validate(stats)


@router.get("/daily", response_model=list[DailyRecordResponse])
def list_daily_records(
    days: int = Query(30, ge=1, le=366),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[DailyRecordResponse]:
    """Entries and mood check-ins grouped by day."""
    records = get_journal_service().get_daily_records(db, user.user_id, days=days)
    return [_daily_record(r) for r in records]


@router.get("/{journal_id}", response_model=JournalEntryResponse)
def get_journal(
    journal_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> JournalEntryResponse:
    journal = get_journal_service().get_journal(db, user.user_id, journal_id)
    if not journal:
        raise NotFound("Journal entry not found")
    return JournalEntryResponse.model_validate(journal)


@router.put("/{journal_id}", response_model=TranscriptResponse)
def update_journal(
    journal_id: int,
    body: JournalUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TranscriptResponse:
    """Replace the rewritten text of an entry."""
    transcript = get_journal_service().update_rephrased_text(db, user.user_id, journal_id, body.rephrased_text)
    return TranscriptResponse.model_validate(transcript)


@router.delete("/{journal_id}")
def delete_journal(
    journal_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    get_journal_service().delete_journal(db, user.user_id, journal_id)
    return {"detail": "Journal entry deleted"}


@router.get("/{journal_id}/audio")
def get_journal_audio(
    journal_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FileResponse:
    """Stream the stored recording."""
    journal = get_journal_service().get_journal(db, user.user_id, journal_id)
    if not journal:
        raise NotFound("Journal entry not found")
    try:
        path = get_object_storage().local_path(journal.storage_path)
    except StorageError as e:
        raise NotFound("Audio file not found") from e
    return FileResponse(path, media_type=journal.mime_type or "application/octet-stream")
