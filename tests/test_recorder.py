"""Tests for the client recorder state machine."""

import asyncio

import pytest

from app.client.recorder import (
    MAX_RECORDING_SECONDS,
    MICROPHONE_ERROR_MESSAGE,
    Microphone,
    MicrophoneError,
    Recorder,
    RecordingState,
    SoundDeviceMicrophone,
)


class FakeMicrophone(Microphone):
    mime_type = "audio/webm"

    def __init__(self, fail: bool = False, tail: bytes = b"", fail_start: bool = False) -> None:
        self.fail = fail
        self.fail_start = fail_start
        self.tail = tail
        self.on_chunk = None
        self.opened = 0
        self.finalized = 0
        self.released = 0

    async def open(self) -> None:
        self.opened += 1
        if self.fail:
            raise MicrophoneError("Permission denied")

    def start(self, on_chunk, interval: float) -> None:
        if self.fail_start:
            raise MicrophoneError("Stream could not start")
        self.on_chunk = on_chunk

    async def finalize(self) -> bytes:
        self.finalized += 1
        await asyncio.sleep(0)
        return self.tail

    def release(self) -> None:
        self.released += 1


async def _never(_seconds: float) -> None:
    await asyncio.Event().wait()


async def _instant(_seconds: float) -> None:
    await asyncio.sleep(0)


def _recorder(mic: FakeMicrophone, **kwargs) -> Recorder:
    kwargs.setdefault("sleep", _never)
    return Recorder(microphone=mic, **kwargs)


class TestStartStop:
    @pytest.mark.asyncio
    async def test_chunks_and_tail_form_recording(self):
        mic = FakeMicrophone(tail=b"-tail")
        recorder = _recorder(mic)

        assert await recorder.start() is True
        assert recorder.state is RecordingState.RECORDING
        mic.on_chunk(b"one")
        mic.on_chunk(b"")
        mic.on_chunk(b"two")
        await recorder.tick()
        await recorder.tick()

        assert await recorder.stop() is True
        assert recorder.state is RecordingState.STOPPED
        assert recorder.stop_reason == "manual"
        assert recorder.recording.data == b"onetwo-tail"
        assert recorder.recording.mime_type == "audio/webm"
        assert recorder.recording.duration_seconds == 2
        assert recorder.recording.filename == "recording.webm"
        assert mic.released == 1

    @pytest.mark.asyncio
    async def test_microphone_error_returns_to_idle(self):
        mic = FakeMicrophone(fail=True)
        recorder = _recorder(mic)

        assert await recorder.start() is False
        assert recorder.state is RecordingState.IDLE
        assert recorder.error == MICROPHONE_ERROR_MESSAGE
        assert mic.released == 1

    @pytest.mark.asyncio
    async def test_stream_start_failure_returns_to_idle(self):
        mic = FakeMicrophone(fail_start=True)
        recorder = _recorder(mic)

        assert await recorder.start() is False
        assert recorder.state is RecordingState.IDLE
        assert recorder.error == MICROPHONE_ERROR_MESSAGE
        assert mic.released == 1

    def test_sounddevice_start_failure_is_microphone_error(self):
        class BrokenStream:
            def start(self):
                raise RuntimeError("PortAudio error")

        mic = SoundDeviceMicrophone()
        mic._stream = BrokenStream()
        with pytest.raises(MicrophoneError):
            mic.start(lambda chunk: None, 1.0)

    @pytest.mark.asyncio
    async def test_stop_when_idle_is_noop(self):
        recorder = _recorder(FakeMicrophone())
        assert await recorder.stop() is False
        assert recorder.state is RecordingState.IDLE

    @pytest.mark.asyncio
    async def test_start_requires_reset_after_stop(self):
        mic = FakeMicrophone()
        recorder = _recorder(mic)
        await recorder.start()
        await recorder.stop()

        assert await recorder.start() is False
        await recorder.reset()
        assert recorder.state is RecordingState.IDLE
        assert recorder.recording is None
        assert recorder.elapsed_seconds == 0
        assert await recorder.start() is True
        await recorder.stop()


class TestCeiling:
    @pytest.mark.asyncio
    async def test_auto_stop_once_at_ceiling(self):
        mic = FakeMicrophone()
        recorder = _recorder(mic)
        await recorder.start()

        for _ in range(MAX_RECORDING_SECONDS):
            await recorder.tick()

        assert recorder.state is RecordingState.STOPPED
        assert recorder.stop_reason == "timeout"
        assert recorder.elapsed_seconds == MAX_RECORDING_SECONDS
        assert recorder.progress_percent == 100.0

        await recorder.tick()
        assert await recorder.stop() is False
        assert recorder.elapsed_seconds == MAX_RECORDING_SECONDS
        assert mic.finalized == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("manual_first", [True, False])
    async def test_manual_stop_and_timeout_in_same_tick(self, manual_first: bool):
        mic = FakeMicrophone()
        recorder = _recorder(mic, max_seconds=5)
        await recorder.start()
        for _ in range(4):
            await recorder.tick()

        calls = [recorder.stop(), recorder.tick()] if manual_first else [recorder.tick(), recorder.stop()]
        await asyncio.gather(*calls)

        assert recorder.state is RecordingState.STOPPED
        assert mic.finalized == 1
        assert mic.released == 1
        assert recorder.stop_reason == ("manual" if manual_first else "timeout")

    @pytest.mark.asyncio
    async def test_ticker_drives_auto_stop(self):
        mic = FakeMicrophone()
        recorder = _recorder(mic, max_seconds=3, sleep=_instant)
        await recorder.start()

        recording = await asyncio.wait_for(recorder.wait_stopped(), timeout=1)

        assert recording.duration_seconds == 3
        assert recorder.stop_reason == "timeout"
        assert mic.finalized == 1


def test_format_elapsed():
    assert Recorder.format_elapsed(0) == "0:00"
    assert Recorder.format_elapsed(65) == "1:05"
    assert Recorder.format_elapsed(600) == "10:00"
