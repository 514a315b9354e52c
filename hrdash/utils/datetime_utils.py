"""
Timezone-aware datetime helpers.
- Compute in UTC; every "now" comes from an injected Clock.
- Date-only values from the HR API are anchored to the start of that day
  in the business timezone.
"""
import re
from datetime import date, datetime, time, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

UTC = timezone.utc

DateLike = Union[date, datetime]

# .NET serializers send 1-7 fractional digits; fromisoformat before 3.11 wants 3 or 6
_FRACTION = re.compile(r"\.(\d+)")


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


class SystemClock:
    """Wall clock. Anything that reads "now" takes a clock so tests can pin time."""

    def now(self) -> datetime:
        return now_utc()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def to_zone(dt: Optional[datetime], tz: ZoneInfo) -> Optional[datetime]:
    """Convert to tz. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(tz)


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    """Midnight of `day` in tz, as an aware UTC datetime."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def as_instant(value: DateLike, tz: ZoneInfo) -> datetime:
    """
    Resolve a leave boundary to an instant.

    Datetimes are normalized to UTC (naive = UTC); plain dates become the
    start of that day in tz.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    return start_of_day(value, tz)


def local_date(dt: datetime, tz: ZoneInfo) -> date:
    """Calendar date of dt in tz (work date of a punch)."""
    return to_zone(dt, tz).date()


def parse_api_date_or_datetime(value) -> Optional[DateLike]:
    """
    Parse a date or datetime coming from the HR API.

    "2025-03-10" stays a date; "2025-03-10T09:00:00Z" becomes an aware
    datetime. Objects that are already dates/datetimes pass through.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    text = _FRACTION.sub(lambda m: "." + m.group(1).ljust(6, "0")[:6], text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def hours_between(start: datetime, end: datetime) -> float:
    """Signed number of hours from start to end."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600.0


def format_time_12h(dt: Optional[datetime], tz: ZoneInfo) -> str:
    """Clock time in tz as 'hh:mm AM'; '--:-- --' when missing."""
    if dt is None:
        return "--:-- --"
    return to_zone(dt, tz).strftime("%I:%M %p")


def format_time_difference(start: Optional[datetime], end: Optional[datetime]) -> str:
    """'7h 5m' between two instants; '42m' under an hour; '0m' when either is missing or end < start."""
    if start is None or end is None:
        return "0m"
    total = max(0, int((ensure_utc(end) - ensure_utc(start)).total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
