"""Tests for the HTTP client, recording session, feeds and event bus."""

import json

import httpx
import pytest

from app.client.api import APIError, JournalApiClient
from app.client.feed import JournalFeed, MoodFeed
from app.client.recorder import Recorder, RecordingState
from app.client.session import PROCESSING_ERROR_MESSAGE, JournalRecorderSession, ProcessingState
from app.events import JOURNAL_MODAL_OPEN, JOURNAL_UPDATED, MOOD_UPDATED, EventBus
from tests.test_recorder import FakeMicrophone, _never


class FakeApi:
    def __init__(self) -> None:
        self.transcribe_result = {"success": True, "transcription": "raw", "rephrasedText": "Clean."}
        self.transcribe_error: APIError | None = None
        self.uploads: list[tuple] = []
        self.today: list[dict] = [{"id": 1}]
        self.fail_stats = False
        self.mood: dict | None = None

    async def transcribe(self, audio, filename, mime_type):
        self.uploads.append((audio, filename, mime_type))
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcribe_result

    async def today_journals(self):
        return self.today

    async def recent_journals(self, limit=10):
        return self.today[:limit]

    async def stats(self):
        if self.fail_stats:
            raise APIError("Service unavailable", status_code=503)
        return {"totalEntries": len(self.today), "thisWeekEntries": len(self.today), "currentStreak": 1}

    async def today_mood(self):
        return self.mood

    async def should_prompt_check_in(self):
        return self.mood is None

    async def submit_mood(self, day_quality, emotions):
        self.mood = {"dayQuality": day_quality, "emotions": emotions}
        return self.mood


async def _stopped_session(api: FakeApi, bus: EventBus) -> JournalRecorderSession:
    mic = FakeMicrophone(tail=b"audio")
    recorder = Recorder(microphone=mic, sleep=_never)
    session = JournalRecorderSession(recorder, api, bus)
    await recorder.start()
    await recorder.stop()
    return session


class TestEventBus:
    def test_publish_reaches_subscribers(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(JOURNAL_UPDATED, seen.append)
        bus.publish(JOURNAL_UPDATED, {"id": 1})
        unsubscribe()
        bus.publish(JOURNAL_UPDATED, {"id": 2})
        assert seen == [{"id": 1}]
        assert bus.listener_count(JOURNAL_UPDATED) == 0

    def test_failing_listener_does_not_block_others(self):
        bus = EventBus()
        seen = []

        def broken(_payload):
            raise RuntimeError("listener bug")

        bus.subscribe(MOOD_UPDATED, broken)
        bus.subscribe(MOOD_UPDATED, seen.append)
        bus.publish(MOOD_UPDATED, "x")
        assert seen == ["x"]

    @pytest.mark.asyncio
    async def test_async_listeners_are_scheduled(self):
        bus = EventBus()
        seen = []

        async def listener(payload):
            seen.append(payload)

        bus.subscribe(JOURNAL_UPDATED, listener)
        bus.publish(JOURNAL_UPDATED, 7)
        await bus.drain()
        assert seen == [7]


class TestRecorderSession:
    @pytest.mark.asyncio
    async def test_process_success_publishes_update(self):
        api, bus = FakeApi(), EventBus()
        published = []
        bus.subscribe(JOURNAL_UPDATED, published.append)
        session = await _stopped_session(api, bus)

        assert await session.process() is True
        assert session.processing_state is ProcessingState.COMPLETE
        assert session.message == "Journal saved successfully!"
        assert session.transcription == "raw"
        assert session.rephrased_text == "Clean."
        assert api.uploads == [(b"audio", "recording.webm", "audio/webm")]
        assert len(published) == 1

    @pytest.mark.asyncio
    async def test_process_failure_sets_error(self):
        api, bus = FakeApi(), EventBus()
        api.transcribe_error = APIError("API quota exceeded", status_code=429)
        published = []
        bus.subscribe(JOURNAL_UPDATED, published.append)
        session = await _stopped_session(api, bus)

        assert await session.process() is False
        assert session.processing_state is ProcessingState.ERROR
        assert session.error == PROCESSING_ERROR_MESSAGE
        assert session.message == "Processing failed"
        assert published == []

    @pytest.mark.asyncio
    async def test_process_requires_stopped_recording(self):
        api, bus = FakeApi(), EventBus()
        recorder = Recorder(microphone=FakeMicrophone(), sleep=_never)
        session = JournalRecorderSession(recorder, api, bus)
        assert await session.process() is False
        await recorder.start()
        assert await session.process() is False
        await recorder.stop()
        assert api.uploads == []

    @pytest.mark.asyncio
    async def test_reset_and_modal_events(self):
        api, bus = FakeApi(), EventBus()
        session = await _stopped_session(api, bus)
        bus.publish(JOURNAL_MODAL_OPEN)
        assert session.is_open is True

        await session.process()
        await session.close()
        assert session.is_open is False
        assert session.processing_state is ProcessingState.IDLE
        assert session.recorder.state is RecordingState.IDLE
        assert session.transcription == ""

        session.dispose()
        assert bus.listener_count(JOURNAL_MODAL_OPEN) == 0


class TestFeeds:
    @pytest.mark.asyncio
    async def test_journal_feed_refetches_on_update(self):
        api, bus = FakeApi(), EventBus()
        feed = JournalFeed(api, bus)
        await feed.refetch_all()
        assert feed.today == [{"id": 1}]

        api.today = [{"id": 2}, {"id": 1}]
        bus.publish(JOURNAL_UPDATED, {"id": 2})
        await bus.drain()

        assert feed.today == [{"id": 2}, {"id": 1}]
        assert feed.stats["totalEntries"] == 2
        assert feed.loading == {"today": False, "recent": False, "stats": False}

    @pytest.mark.asyncio
    async def test_journal_feed_errors_are_per_section(self):
        api, bus = FakeApi(), EventBus()
        api.fail_stats = True
        feed = JournalFeed(api, bus)
        await feed.refetch_all()

        assert feed.errors["stats"] == "Service unavailable"
        assert feed.errors["today"] is None
        assert feed.stats == {"totalEntries": 0, "thisWeekEntries": 0, "currentStreak": 0}

    @pytest.mark.asyncio
    async def test_mood_feed_submit(self):
        api, bus = FakeApi(), EventBus()
        feed = MoodFeed(api, bus)
        assert await feed.should_prompt() is True

        assert await feed.submit("good", ["Happy"]) is True
        await bus.drain()
        assert feed.entry == {"dayQuality": "good", "emotions": ["Happy"]}
        assert await feed.should_prompt() is False


class TestJournalApiClient:
    @pytest.mark.asyncio
    async def test_transcribe_sends_multipart_with_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            seen["content_type"] = request.headers.get("content-type")
            seen["body"] = request.read()
            return httpx.Response(200, json={"success": True, "rephrasedText": "Clean."})

        async with JournalApiClient(token="abc", transport=httpx.MockTransport(handler)) as api:
            result = await api.transcribe(b"audio-bytes", "recording.webm", "audio/webm")

        assert result["rephrasedText"] == "Clean."
        assert seen["auth"] == "Bearer abc"
        assert seen["content_type"].startswith("multipart/form-data")
        assert b'name="audio"' in seen["body"]
        assert b"audio-bytes" in seen["body"]

    @pytest.mark.asyncio
    async def test_error_body_becomes_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, content=json.dumps({"detail": "API quota exceeded", "code": "UPSTREAM_QUOTA_EXCEEDED"}))

        async with JournalApiClient(transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(APIError) as exc_info:
                await api.stats()

        assert exc_info.value.status_code == 429
        assert exc_info.value.message == "API quota exceeded"
        assert exc_info.value.code == "UPSTREAM_QUOTA_EXCEEDED"

    @pytest.mark.asyncio
    async def test_validation_error_list_becomes_text(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                422,
                json={"detail": [{"loc": ["body", "rephrased_text"], "msg": "Field required", "type": "missing"}]},
            )

        async with JournalApiClient(transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(APIError) as exc_info:
                await api.update_journal(1, "text")

        assert exc_info.value.status_code == 422
        assert exc_info.value.message == "Field required"
        assert exc_info.value.code is None

    @pytest.mark.asyncio
    async def test_non_object_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, json=["bad", "gateway"])

        async with JournalApiClient(transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(APIError) as exc_info:
                await api.today_journals()

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "HTTP 502"
