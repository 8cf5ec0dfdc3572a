"""Upload pipeline: speech-to-text, rewrite, blob upload, metadata and transcript rows.

Steps run strictly in order and stop at the first failure. Nothing is
rolled back: a failure after the blob upload leaves the blob (and possibly the
AudioFile row) orphaned, and the log line carries the user id, step and
storage path so ``scripts/cleanup_orphans.py`` or an operator can reclaim it.
No step is idempotent; resubmitting the same audio creates a new entry.
"""

import logging
from dataclasses import dataclass

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.errors import BadRequest, InternalError
from app.services.journal import JournalService, get_journal_service
from app.services.rewrite import RewriteService, get_rewrite_service
from app.services.speech import SpeechToTextService, get_speech_service
from app.services.storage import ObjectStorage, StorageError, build_audio_path, get_object_storage

logger = logging.getLogger("voice_journal")

READ_CHUNK_SIZE = 1024 * 64


@dataclass
class AudioUpload:
    data: bytes
    filename: str
    content_type: str | None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class PipelineResult:
    transcription: str
    rephrased_text: str
    audio_file_id: int
    transcript_id: int
    language: str | None = None


async def read_upload(upload: UploadFile | None, max_bytes: int) -> AudioUpload | None:
    """Read a multipart file, refusing to buffer more than ``max_bytes``."""
    if upload is None:
        return None

    chunks = []
    size = 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise BadRequest("File too large")
        chunks.append(chunk)

    return AudioUpload(
        data=b"".join(chunks),
        filename=upload.filename or "recording.webm",
        content_type=upload.content_type,
    )


class TranscriptionPipeline:
    """Turns one uploaded recording into an AudioFile + Transcript pair."""

    def __init__(
        self,
        speech: SpeechToTextService | None = None,
        rewriter: RewriteService | None = None,
        storage: ObjectStorage | None = None,
        journals: JournalService | None = None,
    ) -> None:
        self.speech = speech or get_speech_service()
        self.rewriter = rewriter or get_rewrite_service()
        self.storage = storage or get_object_storage()
        self.journals = journals or get_journal_service()

    def validate(self, upload: AudioUpload | None) -> AudioUpload:
        if upload is None or upload.size == 0:
            raise BadRequest("No audio file provided")
        if upload.size > get_settings().max_upload_bytes:
            raise BadRequest("File too large")
        return upload

    async def run(self, db: Session, user_id: int, upload: AudioUpload | None) -> PipelineResult:
        upload = self.validate(upload)
        logger.info("pipeline user=%s step=validate size=%d type=%s", user_id, upload.size, upload.content_type)

        speech = await self.speech.transcribe(upload.data, upload.filename, upload.content_type)
        if speech.is_empty:
            logger.info("pipeline user=%s step=transcribe result=empty", user_id)
            raise BadRequest("No speech detected in audio")
        logger.info("pipeline user=%s step=transcribe chars=%d", user_id, len(speech.text))

        rephrased_text = await self.rewriter.rewrite(speech.text)
        if not rephrased_text:
            logger.warning("pipeline user=%s step=rewrite result=empty (continuing without rewrite)", user_id)
        else:
            logger.info("pipeline user=%s step=rewrite chars=%d", user_id, len(rephrased_text))

        path = build_audio_path(user_id, upload.content_type, upload.filename)
        try:
            stored_path = await run_in_threadpool(self.storage.upload, path, upload.data, upload.content_type)
        except StorageError as e:
            logger.error("pipeline user=%s step=store_audio path=%s failed: %s", user_id, path, e)
            raise InternalError("Failed to store audio file") from e
        logger.info("pipeline user=%s step=store_audio path=%s", user_id, stored_path)

        duration_ms = int(speech.duration_seconds * 1000) if speech.duration_seconds else None
        try:
            audio_file = self.journals.create_audio_file(
                db,
                user_id=user_id,
                storage_path=stored_path,
                mime_type=upload.content_type,
                file_size_bytes=upload.size,
                duration_ms=duration_ms,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                "pipeline user=%s step=save_audio_metadata failed, orphaned blob path=%s: %s", user_id, stored_path, e
            )
            raise InternalError("Failed to save audio metadata") from e

        audio_file_id = audio_file.id

        try:
            transcript = self.journals.create_transcript(
                db,
                user_id=user_id,
                audio_id=audio_file_id,
                text=speech.text,
                rephrased_text=rephrased_text,
                language=speech.language,
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(
                "pipeline user=%s step=save_transcript failed, orphaned audio_file=%s path=%s: %s",
                user_id,
                audio_file_id,
                stored_path,
                e,
            )
            raise InternalError("Failed to save transcript") from e

        logger.info("pipeline user=%s step=done audio_file=%s transcript=%s", user_id, audio_file_id, transcript.id)
        return PipelineResult(
            transcription=speech.text,
            rephrased_text=rephrased_text,
            audio_file_id=audio_file_id,
            transcript_id=transcript.id,
            language=speech.language,
        )
