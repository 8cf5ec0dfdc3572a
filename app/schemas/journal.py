"""Pydantic schemas for the transcription and journal endpoints.

Responses use camelCase keys; the transcribe response is contract version 1
with a single ``rephrasedText`` field for the rewrite.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TRANSCRIBE_CONTRACT_VERSION = 1


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class TranscribeResponse(CamelModel):
    success: bool = True
    version: int = TRANSCRIBE_CONTRACT_VERSION
    transcription: str
    rephrased_text: str
    audio_file_id: int
    transcript_id: int
    language: str | None = None


class TranscriptResponse(CamelModel):
    id: int
    text: str
    rephrased_text: str | None
    language: str | None
    created_at: datetime


class JournalEntryResponse(CamelModel):
    id: int
    storage_path: str
    mime_type: str | None
    duration_ms: int | None
    created_at: datetime
    transcript: TranscriptResponse | None = None


class JournalListResponse(CamelModel):
    items: list[JournalEntryResponse]
    total: int


class JournalStatsResponse(CamelModel):
    total_entries: int
    this_week_entries: int
    current_streak: int


class JournalUpdateRequest(BaseModel):
    rephrased_text: str = Field(max_length=20000)


class DailyMoodSummary(CamelModel):
    id: int
    day_quality: str
    emotions: list[str]
    created_at: datetime


class DailyRecordResponse(CamelModel):
    date: date
    entry_count: int
    summary: str
    mood_quality: str | None
    dominant_emotions: list[str]
    daily_mood: DailyMoodSummary | None = None
    journals: list[JournalEntryResponse]
