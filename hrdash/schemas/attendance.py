"""
Attendance schemas: the per-employee, per-date AttendanceDay snapshot and
the request/response bodies of the attendance endpoints.
"""
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from hrdash.core.enums import AttendanceState, AttendanceStatus, GeoErrorCode
from hrdash.schemas.location import LocationValidationOut
from hrdash.utils.datetime_utils import ensure_utc, parse_api_date_or_datetime

_STATUS_BY_KEY = {status.value.lower(): status for status in AttendanceStatus}

_WORK_DATE_KEYS = ("work_date", "workDate", "AttendanceDate", "attendanceDate", "date")


class AttendanceDay(BaseModel):
    """
    Server-owned attendance record for (employee_id, work_date).

    Only `working_hours` reported by the server (or computed from both
    timestamps after check-out) is authoritative; live estimates never land here.
    """
    employee_id: int = Field(..., validation_alias=AliasChoices("employee_id", "employeeId", "EmployeeID"))
    work_date: date = Field(..., validation_alias=AliasChoices(*_WORK_DATE_KEYS))
    check_in_time: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("check_in_time", "checkInTime", "CheckInTime")
    )
    check_out_time: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("check_out_time", "checkOutTime", "CheckOutTime")
    )
    is_late: bool = Field(False, validation_alias=AliasChoices("is_late", "isLate", "IsLate"))
    late_minutes: int = Field(0, ge=0, validation_alias=AliasChoices("late_minutes", "lateMinutes", "LateMinutes"))
    is_early_leave: bool = Field(
        False, validation_alias=AliasChoices("is_early_leave", "isEarlyLeave", "IsEarlyLeave")
    )
    early_leave_minutes: int = Field(
        0, ge=0, validation_alias=AliasChoices("early_leave_minutes", "earlyLeaveMinutes", "EarlyLeaveMinutes")
    )
    working_hours: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("working_hours", "workingHours", "WorkingHours")
    )
    required_hours: Optional[float] = Field(
        None, gt=0, validation_alias=AliasChoices("required_hours", "requiredHours", "RequiredHours")
    )
    attendance_status: Optional[AttendanceStatus] = Field(
        None, validation_alias=AliasChoices("attendance_status", "attendanceStatus", "AttendanceStatus", "Status")
    )

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("work_date", mode="before")
    @classmethod
    def _date_only(cls, v: Any) -> Any:
        parsed = parse_api_date_or_datetime(v)
        if isinstance(parsed, datetime):
            return parsed.date()
        return parsed

    @field_validator("check_in_time", "check_out_time", mode="before")
    @classmethod
    def _parse_timestamp(cls, v: Any) -> Any:
        return parse_api_date_or_datetime(v)

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @field_validator("late_minutes", "early_leave_minutes", mode="before")
    @classmethod
    def _none_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("attendance_status", mode="before")
    @classmethod
    def _status_case(cls, v: Any) -> Any:
        """'halfday', 'Half Day' and 'ON_LEAVE' all map onto the enum values."""
        if isinstance(v, str):
            key = re.sub(r"[\s_-]", "", v).lower()
            if not key:
                return None
            return _STATUS_BY_KEY.get(key, v)
        return v

    @model_validator(mode="after")
    def _check_out_requires_check_in(self) -> "AttendanceDay":
        if self.check_out_time is not None and self.check_in_time is None:
            raise ValueError("check_out_time is set but check_in_time is missing")
        return self

    @classmethod
    def from_api(
        cls, payload: Dict[str, Any], *, employee_id: int, work_date: Optional[date] = None
    ) -> "AttendanceDay":
        """
        Build from an HR API payload, filling the natural key the API may omit.
        Without `work_date` the payload must carry its own date.
        """
        data = dict(payload)
        if not any(k in data for k in ("employee_id", "employeeId", "EmployeeID")):
            data["employee_id"] = employee_id
        if work_date is not None and not any(k in data for k in _WORK_DATE_KEYS):
            data["work_date"] = work_date
        return cls.model_validate(data)

    @property
    def state(self) -> AttendanceState:
        if self.check_out_time is not None:
            return AttendanceState.CHECKED_OUT
        if self.check_in_time is not None:
            return AttendanceState.CHECKED_IN
        return AttendanceState.NOT_MARKED


class CheckRequest(BaseModel):
    """Body sent to the HR API for check-in and check-out."""
    employee_id: int = Field(..., serialization_alias="employeeId")
    location_id: int = Field(..., serialization_alias="locationId")
    latitude: float
    longitude: float
    remarks: Optional[str] = None


# --- Dashboard-facing request/response bodies ---


class PositionPayload(BaseModel):
    """Position as captured by the browser's Geolocation API."""
    latitude: float = Field(..., ge=-90, le=90, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(..., ge=-180, le=180, validation_alias=AliasChoices("longitude", "lng"))
    accuracy: Optional[float] = Field(None, gt=0, description="Accuracy in meters")
    captured_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True)


class AttendanceMarkRequest(BaseModel):
    """
    Check-in / check-out body. Exactly one of `position` or `geo_error`
    describes the outcome of the device location request.
    """
    position: Optional[PositionPayload] = None
    geo_error: Optional[GeoErrorCode] = Field(None, validation_alias=AliasChoices("geo_error", "geoError"))
    geo_error_message: Optional[str] = None
    remarks: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _one_outcome(self) -> "AttendanceMarkRequest":
        if self.position is not None and self.geo_error is not None:
            raise ValueError("Send either position or geo_error, not both")
        return self


class AttendanceDayOut(BaseModel):
    employee_id: int
    work_date: date
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    is_late: bool
    late_minutes: int
    is_early_leave: bool
    early_leave_minutes: int
    working_hours: Optional[float]
    required_hours: Optional[float]
    attendance_status: Optional[AttendanceStatus]

    model_config = ConfigDict(from_attributes=True)


class LiveEstimateOut(BaseModel):
    """Presentation-only elapsed time while checked in."""
    working_hours: float
    display: str
    as_of: datetime
    refresh_seconds: int


class TodayStatusResponse(BaseModel):
    employee_id: int
    work_date: date
    state: AttendanceState
    in_progress: bool
    can_check_in: bool
    can_check_out: bool
    day: Optional[AttendanceDayOut] = None
    check_in_display: str
    check_out_display: str
    live_estimate: Optional[LiveEstimateOut] = None
    location_check: Optional[LocationValidationOut] = None


class AttendanceRecordsResponse(BaseModel):
    employee_id: int
    from_date: date
    to_date: date
    items: List[AttendanceDayOut]
    total: int
