"""
Shift policy: lateness on check-in and early leave on check-out.

Used only to fill fields the HR API did not report itself.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from hrdash.utils.datetime_utils import to_zone


@dataclass(frozen=True)
class ShiftPolicy:
    shift_start: time
    required_hours: float = 8.0
    grace_minutes: int = 0
    tz: ZoneInfo = field(default_factory=lambda: ZoneInfo("Asia/Kolkata"))

    @classmethod
    def from_settings(cls, settings) -> "ShiftPolicy":
        return cls(
            shift_start=settings.shift_start_time,
            required_hours=settings.SHIFT_REQUIRED_HOURS,
            grace_minutes=settings.LATE_GRACE_MINUTES,
            tz=settings.zone,
        )

    def lateness(self, check_in: datetime) -> Tuple[bool, int]:
        """(is_late, late_minutes). Minutes count from shift start, not from the end of grace."""
        local = to_zone(check_in, self.tz)
        start = datetime.combine(local.date(), self.shift_start, tzinfo=self.tz)
        if local <= start + timedelta(minutes=self.grace_minutes):
            return False, 0
        return True, int((local - start).total_seconds() // 60)

    def early_leave(self, working_hours: float, required_hours: Optional[float] = None) -> Tuple[bool, int]:
        """(is_early_leave, early_leave_minutes) against the day's required hours."""
        required = required_hours if required_hours is not None else self.required_hours
        if working_hours >= required:
            return False, 0
        return True, int(math.ceil((required - working_hours) * 60))
