"""Pydantic schemas for mood check-in endpoints."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel

from app.schemas.journal import CamelModel


class MoodEntryCreate(BaseModel):
    day_quality: Literal["good", "bad", "so-so"]
    emotions: list[str] = []


class MoodEntryResponse(CamelModel):
    id: int
    day_quality: str
    emotions: list[str]
    entry_date: date
    created_at: datetime


class MoodDisplayResponse(CamelModel):
    primary_text: str
    secondary_text: str
    has_data: bool


class CheckInPromptResponse(CamelModel):
    should_prompt: bool
