"""Client read models that refresh themselves when the event bus says data changed."""

import asyncio
import logging

from app.client.api import APIError, JournalApiClient
from app.events import JOURNAL_UPDATED, MOOD_UPDATED, EventBus

logger = logging.getLogger("voice_journal")

EMPTY_STATS = {"totalEntries": 0, "thisWeekEntries": 0, "currentStreak": 0}


class JournalFeed:
    """Today's entries, recent entries and stats, each with its own loading and error flag."""

    def __init__(self, api: JournalApiClient, events: EventBus, recent_limit: int = 10) -> None:
        self.api = api
        self.recent_limit = recent_limit
        self.today: list[dict] = []
        self.recent: list[dict] = []
        self.stats: dict = dict(EMPTY_STATS)
        self.loading = {"today": False, "recent": False, "stats": False}
        self.errors: dict[str, str | None] = {"today": None, "recent": None, "stats": None}
        self._unsubscribe = events.subscribe(JOURNAL_UPDATED, self._on_updated)

    def _on_updated(self, _payload=None):
        return self.refetch_all()

    async def _load(self, section: str, fetch, fallback_message: str):
        self.loading[section] = True
        self.errors[section] = None
        try:
            return await fetch()
        except APIError as e:
            logger.error("%s: %s", fallback_message, e.message)
            self.errors[section] = e.message or fallback_message
            return None
        finally:
            self.loading[section] = False

    async def refetch_today(self) -> None:
        entries = await self._load("today", self.api.today_journals, "Failed to fetch today audio entries")
        if entries is not None:
            self.today = entries

    async def refetch_recent(self) -> None:
        entries = await self._load(
            "recent", lambda: self.api.recent_journals(self.recent_limit), "Failed to fetch recent audio entries"
        )
        if entries is not None:
            self.recent = entries

    async def refetch_stats(self) -> None:
        stats = await self._load("stats", self.api.stats, "Failed to fetch audio journal stats")
        if stats is not None:
            self.stats = stats

    async def refetch_all(self) -> None:
        await asyncio.gather(self.refetch_today(), self.refetch_recent(), self.refetch_stats())

    def dispose(self) -> None:
        self._unsubscribe()


class MoodFeed:
    """Today's mood check-in; also decides whether to show the check-in prompt."""

    def __init__(self, api: JournalApiClient, events: EventBus) -> None:
        self.api = api
        self.events = events
        self.entry: dict | None = None
        self.loading = False
        self.error: str | None = None
        self._unsubscribe = events.subscribe(MOOD_UPDATED, self._on_updated)

    def _on_updated(self, _payload=None):
        return self.refetch()

    async def refetch(self) -> None:
        self.loading = True
        self.error = None
        try:
            self.entry = await self.api.today_mood()
        except APIError as e:
            logger.error("Failed to fetch mood entry: %s", e.message)
            self.error = e.message or "Failed to fetch mood entry"
        finally:
            self.loading = False

    async def should_prompt(self) -> bool:
        """True only while no check-in exists for today."""
        try:
            return await self.api.should_prompt_check_in()
        except APIError as e:
            logger.error("Check-in lookup failed: %s", e.message)
            return False

    async def submit(self, day_quality: str, emotions: list[str]) -> bool:
        try:
            self.entry = await self.api.submit_mood(day_quality, emotions)
        except APIError as e:
            logger.error("Mood submission failed: %s", e.message)
            self.error = e.message
            return False
        self.events.publish(MOOD_UPDATED, self.entry)
        return True

    def dispose(self) -> None:
        self._unsubscribe()
