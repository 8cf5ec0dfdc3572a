"""Recording session: the recorder plus the processing sub-state.

The whole upload pipeline is one call from the client's point of view, so
processing only moves ``idle -> transcribing -> complete | error``.
"""

import logging
from enum import Enum

from app.client.api import APIError, JournalApiClient
from app.client.recorder import Recorder, RecordingState
from app.events import JOURNAL_MODAL_OPEN, JOURNAL_UPDATED, EventBus

logger = logging.getLogger("voice_journal")

PROCESSING_ERROR_MESSAGE = "Failed to process audio. Please try again."


class ProcessingState(str, Enum):
    IDLE = "idle"
    TRANSCRIBING = "transcribing"
    COMPLETE = "complete"
    ERROR = "error"


PROCESSING_MESSAGES = {
    ProcessingState.IDLE: "",
    ProcessingState.TRANSCRIBING: "Converting speech to text...",
    ProcessingState.COMPLETE: "Journal saved successfully!",
    ProcessingState.ERROR: "Processing failed",
}


class JournalRecorderSession:
    def __init__(self, recorder: Recorder, api: JournalApiClient, events: EventBus) -> None:
        self.recorder = recorder
        self.api = api
        self.events = events
        self.processing_state = ProcessingState.IDLE
        self.transcription = ""
        self.rephrased_text = ""
        self.error: str | None = None
        self.is_open = False
        self._unsubscribe = events.subscribe(JOURNAL_MODAL_OPEN, self._on_open_requested)

    def _on_open_requested(self, _payload=None) -> None:
        self.is_open = True

    @property
    def message(self) -> str:
        return PROCESSING_MESSAGES[self.processing_state]

    @property
    def is_processing(self) -> bool:
        return self.processing_state is ProcessingState.TRANSCRIBING

    @property
    def can_process(self) -> bool:
        return (
            self.recorder.state is RecordingState.STOPPED
            and self.recorder.recording is not None
            and self.processing_state is ProcessingState.IDLE
        )

    async def process(self) -> bool:
        """Upload the stopped recording. Returns True on success."""
        if not self.can_process:
            return False

        recording = self.recorder.recording
        self.error = None
        self.processing_state = ProcessingState.TRANSCRIBING
        try:
            result = await self.api.transcribe(recording.data, recording.filename, recording.mime_type)
        except APIError as e:
            logger.error("Processing recording failed (%s): %s", e.status_code, e.message)
            self.error = PROCESSING_ERROR_MESSAGE
            self.processing_state = ProcessingState.ERROR
            return False

        self.transcription = result.get("transcription", "")
        self.rephrased_text = result.get("rephrasedText", "")
        self.processing_state = ProcessingState.COMPLETE
        self.events.publish(JOURNAL_UPDATED, result)
        return True

    async def reset(self) -> None:
        await self.recorder.reset()
        self.processing_state = ProcessingState.IDLE
        self.transcription = ""
        self.rephrased_text = ""
        self.error = None

    async def close(self) -> None:
        await self.reset()
        self.is_open = False

    def dispose(self) -> None:
        self._unsubscribe()
