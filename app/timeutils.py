"""Calendar-day helpers. Timestamps are stored as naive UTC."""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.config import get_settings


def app_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().APP_TIMEZONE)


def local_today() -> date:
    return datetime.now(app_zone()).date()


def to_local_date(value: datetime) -> date:
    """Calendar day of a stored UTC timestamp in the app timezone."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(app_zone()).date()


def day_bounds_utc(day: date) -> tuple[datetime, datetime]:
    """Naive UTC [start, end) covering one local calendar day."""
    zone = app_zone()
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())
