"""Speech-to-text service (OpenAI Whisper API or local faster-whisper)."""

import io
import logging
import time
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from app.config import get_settings
from app.errors import InternalError
from app.services.upstream import call_with_retry, get_openai_client, translate_upstream_error

logger = logging.getLogger("voice_journal")


@dataclass
class SpeechResult:
    """Plain-text transcript. An empty ``text`` means no speech was detected."""

    text: str
    language: str | None = None
    duration_seconds: float | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


class SpeechToTextService:
    """Transcribes raw audio. Service failures raise; silence returns an empty result."""

    def __init__(self) -> None:
        self._model = None

    def _get_model(self):
        """Lazy-load the local whisper model."""
        if self._model is None:
            from faster_whisper import WhisperModel

            settings = get_settings()
            self._model = WhisperModel(settings.WHISPER_MODEL_SIZE, device="cpu", compute_type="int8")
        return self._model

    async def transcribe(self, audio: bytes, filename: str, content_type: str | None) -> SpeechResult:
        settings = get_settings()
        start = time.time()
        if settings.SPEECH_PROVIDER == "local":
            result = await run_in_threadpool(self._transcribe_local, audio)
        else:
            result = await self._transcribe_openai(audio, filename, content_type)
        logger.info("Speech-to-text finished in %.2fs (%d chars)", time.time() - start, len(result.text))
        return result

    async def _transcribe_openai(self, audio: bytes, filename: str, content_type: str | None) -> SpeechResult:
        settings = get_settings()
        try:
            client = get_openai_client()
            text = await call_with_retry(
                client.audio.transcriptions.create,
                file=(filename, audio, content_type or "application/octet-stream"),
                model=settings.OPENAI_TRANSCRIBE_MODEL,
                response_format="text",
            )
        except Exception as e:
            logger.error("Speech-to-text request failed: %s", e)
            raise translate_upstream_error(e) from e

        if not isinstance(text, str):
            text = getattr(text, "text", "") or ""
        return SpeechResult(text=text.strip(), language=settings.DEFAULT_LANGUAGE)

    def _transcribe_local(self, audio: bytes) -> SpeechResult:
        try:
            model = self._get_model()
            segments_iter, info = model.transcribe(io.BytesIO(audio), beam_size=5)
            text = " ".join(seg.text.strip() for seg in segments_iter)
        except Exception as e:
            logger.error("Local transcription failed: %s", e)
            raise InternalError("Speech-to-text service failed") from e

        return SpeechResult(
            text=text.strip(),
            language=getattr(info, "language", None),
            duration_seconds=getattr(info, "duration", None),
        )


_speech_service: SpeechToTextService | None = None


def get_speech_service() -> SpeechToTextService:
    """Get singleton speech-to-text service instance."""
    global _speech_service
    if _speech_service is None:
        _speech_service = SpeechToTextService()
    return _speech_service
