"""Client-side recorder state machine.

``idle --start--> recording --stop/timeout--> stopped --reset--> idle``

Microphone access and chunk finalization are awaited; a 1 Hz ticker task
advances the elapsed time and stops the recording once the ceiling is
reached. A recording is stopped at most once, whether the stop comes from the
user, from the ticker, or from both in the same tick.
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("voice_journal")

MAX_RECORDING_SECONDS = 10 * 60
TICK_SECONDS = 1.0
CHUNK_INTERVAL_SECONDS = 1.0
MICROPHONE_ERROR_MESSAGE = "Unable to access microphone. Please check permissions."


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


class MicrophoneError(Exception):
    """Raised when the input device cannot be opened (missing or denied)."""


@dataclass
class AudioRecording:
    data: bytes
    mime_type: str
    duration_seconds: int

    @property
    def filename(self) -> str:
        extension = {"audio/ogg": ".ogg", "audio/webm": ".webm", "audio/wav": ".wav"}.get(
            self.mime_type.split(";", 1)[0], ".bin"
        )
        return f"recording{extension}"


class Microphone(ABC):
    """Input device producing compressed chunks."""

    mime_type = "audio/ogg"

    @abstractmethod
    async def open(self) -> None:
        """Acquire the device. Raises ``MicrophoneError``."""

    @abstractmethod
    def start(self, on_chunk: Callable[[bytes], None], interval: float) -> None:
        """Begin capture, delivering a chunk roughly every ``interval`` seconds. Raises ``MicrophoneError``."""

    @abstractmethod
    async def finalize(self) -> bytes:
        """Stop capture and return any data not yet delivered as a chunk."""

    @abstractmethod
    def release(self) -> None:
        """Free the device. Safe to call more than once."""


class SoundDeviceMicrophone(Microphone):
    """Default input device: PortAudio capture encoded to OGG/Opus on finalize."""

    mime_type = "audio/ogg"

    def __init__(self, sample_rate: int = 44100, channels: int = 1) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._stream = None
        self._frames: list = []

    async def open(self) -> None:
        try:
            import sounddevice as sd

            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                callback=self._on_audio,
            )
        except Exception as e:
            raise MicrophoneError(str(e)) from e

    def _on_audio(self, indata, frames, time_info, status) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        self._frames.append(indata.copy())

    def start(self, on_chunk: Callable[[bytes], None], interval: float) -> None:
        # Frames are encoded as one container on finalize; a partial OGG page is not useful on its own,
        # so no chunks are delivered.
        self._frames = []
        try:
            self._stream.start()
        except Exception as e:
            raise MicrophoneError(str(e)) from e

    async def finalize(self) -> bytes:
        if self._stream is not None:
            self._stream.stop()
        return await asyncio.to_thread(self._encode)

    def _encode(self) -> bytes:
        import numpy as np
        import soundfile as sf

        if not self._frames:
            return b""
        samples = np.concatenate(self._frames, axis=0)
        buffer = io.BytesIO()
        sf.write(buffer, samples, self.sample_rate, format="OGG", subtype="OPUS")
        return buffer.getvalue()

    def release(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None


class Recorder:
    """Records one entry at a time; exposes state, elapsed time and the finished recording."""

    def __init__(
        self,
        microphone: Microphone | None = None,
        max_seconds: int = MAX_RECORDING_SECONDS,
        tick_seconds: float = TICK_SECONDS,
        chunk_interval: float = CHUNK_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.microphone = microphone or SoundDeviceMicrophone()
        self.max_seconds = max_seconds
        self.tick_seconds = tick_seconds
        self.chunk_interval = chunk_interval
        self._sleep = sleep

        self.state = RecordingState.IDLE
        self.elapsed_seconds = 0
        self.recording: AudioRecording | None = None
        self.error: str | None = None
        self.stop_reason: str | None = None
        self._chunks: list[bytes] = []
        self._ticker: asyncio.Task | None = None
        self._stopping = False
        self._stopped = asyncio.Event()

    @property
    def progress_percent(self) -> float:
        return min(self.elapsed_seconds / self.max_seconds * 100, 100.0)

    @staticmethod
    def format_elapsed(seconds: int) -> str:
        return f"{seconds // 60}:{seconds % 60:02d}"

    def _on_chunk(self, chunk: bytes) -> None:
        if chunk and self.state is RecordingState.RECORDING:
            self._chunks.append(chunk)

    async def start(self) -> bool:
        """Open the microphone and begin recording. Returns False if the device is unavailable."""
        if self.state is not RecordingState.IDLE:
            return False

        self.error = None
        self._chunks = []
        self.elapsed_seconds = 0
        self.stop_reason = None
        self._stopping = False
        self._stopped.clear()
        try:
            await self.microphone.open()
            self.microphone.start(self._on_chunk, self.chunk_interval)
        except MicrophoneError as e:
            logger.warning("Microphone unavailable: %s", e)
            self.error = MICROPHONE_ERROR_MESSAGE
            self.microphone.release()
            return False

        self.state = RecordingState.RECORDING
        self._ticker = asyncio.create_task(self._run_ticker())
        return True

    async def _run_ticker(self) -> None:
        while self.state is RecordingState.RECORDING and not self._stopping:
            await self._sleep(self.tick_seconds)
            await self.tick()

    async def tick(self) -> None:
        """Advance elapsed time by one tick; auto-stop at the ceiling."""
        if self.state is not RecordingState.RECORDING or self._stopping:
            return
        self.elapsed_seconds = min(self.elapsed_seconds + 1, self.max_seconds)
        if self.elapsed_seconds >= self.max_seconds:
            await self.stop(reason="timeout")

    async def stop(self, reason: str = "manual") -> bool:
        """Finalize the recording. Returns False if there was nothing to stop or a stop is already underway."""
        if self.state is not RecordingState.RECORDING or self._stopping:
            return False
        self._stopping = True
        self.stop_reason = reason

        ticker = self._ticker
        self._ticker = None
        if ticker is not None and ticker is not asyncio.current_task():
            ticker.cancel()

        try:
            tail = await self.microphone.finalize()
        finally:
            self.microphone.release()
        if tail:
            self._chunks.append(tail)

        self.recording = AudioRecording(
            data=b"".join(self._chunks),
            mime_type=self.microphone.mime_type,
            duration_seconds=self.elapsed_seconds,
        )
        self._chunks = []
        self.state = RecordingState.STOPPED
        self._stopped.set()
        logger.info("Recording stopped (%s) after %ss", reason, self.elapsed_seconds)
        return True

    async def wait_stopped(self) -> AudioRecording | None:
        await self._stopped.wait()
        return self.recording

    async def reset(self) -> None:
        """Discard the recording and return to idle."""
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self.state is RecordingState.RECORDING:
            self.microphone.release()
        self.state = RecordingState.IDLE
        self.elapsed_seconds = 0
        self.recording = None
        self.error = None
        self.stop_reason = None
        self._chunks = []
        self._stopping = False
        self._stopped.clear()
