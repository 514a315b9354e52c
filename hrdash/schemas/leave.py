"""
Leave schemas
"""
from datetime import date, datetime
from typing import Any, Dict, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from hrdash.core.enums import ApplicationStatus, ErrorKind, LeaveAction, LeaveDisplayStatus
from hrdash.utils.datetime_utils import ensure_utc, parse_api_date_or_datetime


class LeaveApplication(BaseModel):
    """
    Leave application as reported by the HR API.

    from_date / to_date keep whatever precision the API sent: a plain date
    or a full timestamp.
    """
    leave_application_id: int = Field(
        ..., validation_alias=AliasChoices("leave_application_id", "leaveApplicationId", "LeaveApplicationID")
    )
    employee_id: int = Field(..., validation_alias=AliasChoices("employee_id", "employeeId", "EmployeeID"))
    employee_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("employee_name", "employeeName", "EmployeeName")
    )
    leave_type: Optional[str] = Field(
        None, validation_alias=AliasChoices("leave_type", "leaveType", "LeaveTypeName", "LeaveType")
    )
    from_date: Union[datetime, date] = Field(..., validation_alias=AliasChoices("from_date", "fromDate", "FromDate"))
    to_date: Union[datetime, date] = Field(..., validation_alias=AliasChoices("to_date", "toDate", "ToDate"))
    total_days: Optional[float] = Field(
        None, ge=0, validation_alias=AliasChoices("total_days", "totalDays", "TotalDays")
    )
    application_status: ApplicationStatus = Field(
        ..., validation_alias=AliasChoices("application_status", "applicationStatus", "ApplicationStatus")
    )
    is_revoked: bool = Field(False, validation_alias=AliasChoices("is_revoked", "isRevoked", "IsRevoked"))
    modified_date: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("modified_date", "modifiedDate", "ModifiedDate")
    )
    approved_date: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("approved_date", "approvedDate", "ApprovedDate")
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def _parse_boundary(cls, v: Any) -> Any:
        parsed = parse_api_date_or_datetime(v)
        if parsed is None:
            raise ValueError("leave boundary date is required")
        return parsed

    @field_validator("from_date", "to_date")
    @classmethod
    def _boundary_utc(cls, v: Union[datetime, date]) -> Union[datetime, date]:
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v

    @field_validator("modified_date", "approved_date", mode="before")
    @classmethod
    def _parse_timestamp(cls, v: Any) -> Any:
        parsed = parse_api_date_or_datetime(v)
        if parsed is not None and not isinstance(parsed, datetime):
            parsed = datetime(parsed.year, parsed.month, parsed.day)
        return parsed

    @field_validator("modified_date", "approved_date")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @field_validator("application_status", mode="before")
    @classmethod
    def _status_case(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().capitalize()
        return v

    @model_validator(mode="after")
    def _ordered(self) -> "LeaveApplication":
        start = self.from_date.date() if isinstance(self.from_date, datetime) else self.from_date
        end = self.to_date.date() if isinstance(self.to_date, datetime) else self.to_date
        if end < start:
            raise ValueError("to_date cannot be before from_date")
        return self


class PermissionDecisionOut(BaseModel):
    action: LeaveAction
    allowed: bool
    message: str
    reason: Optional[ErrorKind] = None
    hours_remaining: Optional[float] = None


class LeavePermissionsResponse(BaseModel):
    leave: LeaveApplication
    display_status: LeaveDisplayStatus
    permissions: Dict[LeaveAction, PermissionDecisionOut]


class LeaveDecisionRequest(BaseModel):
    """Body for approve / reject."""
    remarks: Optional[str] = Field(None, max_length=500)


class ModifyLeaveRequest(BaseModel):
    from_date: date = Field(..., validation_alias=AliasChoices("from_date", "fromDate"))
    to_date: date = Field(..., validation_alias=AliasChoices("to_date", "toDate"))
    reason: str = Field(..., max_length=500)

    model_config = ConfigDict(populate_by_name=True)


class RevokeLeaveRequest(BaseModel):
    reason: str = Field(..., max_length=500)


class LeaveActionResponse(BaseModel):
    action: LeaveAction
    leave: LeaveApplication
    display_status: LeaveDisplayStatus
