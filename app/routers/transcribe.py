"""Upload pipeline endpoint."""

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.rate_limit import limiter
from app.schemas.journal import TranscribeResponse
from app.services.pipeline import TranscriptionPipeline, read_upload

router = APIRouter(prefix="/api/v1", tags=["Transcription"])


@router.post("/transcribe", response_model=TranscribeResponse)
@limiter.limit("10/minute")
async def transcribe(
    request: Request,
    audio: UploadFile | None = File(None),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TranscribeResponse:
    """Transcribe, rewrite and store one recorded journal entry."""
    upload = await read_upload(audio, get_settings().max_upload_bytes)
    result = await TranscriptionPipeline().run(db, user.user_id, upload)
    return TranscribeResponse(
        transcription=result.transcription,
        rephrased_text=result.rephrased_text,
        audio_file_id=result.audio_file_id,
        transcript_id=result.transcript_id,
        language=result.language,
    )
