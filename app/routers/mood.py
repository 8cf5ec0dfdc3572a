"""Daily mood check-in endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import CurrentUser, get_current_user
from app.schemas.mood import CheckInPromptResponse, MoodDisplayResponse, MoodEntryCreate, MoodEntryResponse
from app.services.mood import get_mood_display, get_mood_service

router = APIRouter(prefix="/api/v1/mood", tags=["Mood"])


@router.get("/today", response_model=MoodEntryResponse | None)
def get_today(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> MoodEntryResponse | None:
    """Today's check-in, or null."""
    entry = get_mood_service().get_today_entry(db, user.user_id)
    return MoodEntryResponse.model_validate(entry) if entry else None


@router.get("/today/display", response_model=MoodDisplayResponse)
def get_today_display(
    user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)
) -> MoodDisplayResponse:
    entry = get_mood_service().get_today_entry(db, user.user_id)
    return MoodDisplayResponse.model_validate(get_mood_display(entry))


@router.get("/check-in", response_model=CheckInPromptResponse)
def get_check_in_prompt(
    user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)
) -> CheckInPromptResponse:
    """Whether the client should open the daily check-in prompt."""
    return CheckInPromptResponse(should_prompt=get_mood_service().should_prompt_check_in(db, user.user_id))


@router.post("/", response_model=MoodEntryResponse, status_code=201)
def create_mood_entry(
    body: MoodEntryCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MoodEntryResponse:
    """Record today's check-in. A second check-in the same day is rejected with 409."""
    entry = get_mood_service().create_entry(db, user.user_id, body.day_quality, body.emotions)
    return MoodEntryResponse.model_validate(entry)
