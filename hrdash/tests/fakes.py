"""
In-memory stand-ins for the HR API, the clock and the device position
"""
import asyncio
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from hrdash.core.enums import ApplicationStatus
from hrdash.core.exceptions import ApiFailureError
from hrdash.schemas.attendance import AttendanceDay, CheckRequest
from hrdash.schemas.leave import LeaveApplication
from hrdash.schemas.location import AssignedLocation, DevicePosition
from hrdash.utils.datetime_utils import UTC

IST = ZoneInfo("Asia/Kolkata")

# 2025-03-10 09:00 IST
START = datetime(2025, 3, 10, 3, 30, tzinfo=UTC)

OFFICE_LAT = 28.6139
OFFICE_LNG = 77.2090


class FakeClock:
    def __init__(self, now: datetime):
        self._now = now if now.tzinfo else now.replace(tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now if now.tzinfo else now.replace(tzinfo=UTC)

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


class FixedPositionProvider:
    """Returns a position (or raises an error) after an optional gate."""

    def __init__(self, position: Optional[DevicePosition] = None, error: Optional[Exception] = None):
        self.position = position
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.calls = 0

    async def get_current_position(self, options) -> DevicePosition:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.position


class NeverRespondingProvider:
    async def get_current_position(self, options) -> DevicePosition:
        await asyncio.sleep(3600)


class FakeHrApi:
    """
    Records every call. `failures[name]` raises instead of answering;
    `gates[name]` (an asyncio.Event) holds the call until set.
    Check-in / check-out acknowledgments carry the clock's time unless
    `ack_overrides` says otherwise.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.today: Optional[AttendanceDay] = None
        self.location: Optional[AssignedLocation] = None
        self.leaves: Dict[int, LeaveApplication] = {}
        self.records: List[AttendanceDay] = []
        self.employees: List[Dict[str, Any]] = []
        self.failures: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.ack_overrides: Dict[str, Any] = {}
        self.calls: List[tuple] = []

    async def _enter(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)

    # --- attendance ---

    async def get_today_status(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        await self._enter("get_today_status", employee_id, work_date)
        return self.today

    async def get_assigned_location(self, employee_id: int) -> Optional[AssignedLocation]:
        await self._enter("get_assigned_location", employee_id)
        return self.location

    async def check_in(self, request: CheckRequest, work_date: date) -> AttendanceDay:
        await self._enter("check_in", request, work_date)
        payload = {"CheckInTime": self.clock.now().isoformat(), **self.ack_overrides}
        self.today = AttendanceDay.from_api(payload, employee_id=request.employee_id, work_date=work_date)
        return self.today

    async def check_out(self, request: CheckRequest, work_date: date) -> AttendanceDay:
        await self._enter("check_out", request, work_date)
        check_in = self.today.check_in_time.isoformat() if self.today and self.today.check_in_time else None
        payload = {"CheckInTime": check_in, "CheckOutTime": self.clock.now().isoformat(), **self.ack_overrides}
        self.today = AttendanceDay.from_api(payload, employee_id=request.employee_id, work_date=work_date)
        return self.today

    async def get_records(self, employee_id: int, from_date: date, to_date: date) -> List[AttendanceDay]:
        await self._enter("get_records", employee_id, from_date, to_date)
        return [r for r in self.records if r.employee_id == employee_id and from_date <= r.work_date <= to_date]

    async def get_employees(self, company_id: int) -> List[Dict[str, Any]]:
        await self._enter("get_employees", company_id)
        return list(self.employees)

    # --- leaves ---

    async def get_leave(self, leave_id: int) -> Optional[LeaveApplication]:
        await self._enter("get_leave", leave_id)
        return self.leaves.get(leave_id)

    def _require(self, leave_id: int) -> LeaveApplication:
        if leave_id not in self.leaves:
            raise ApiFailureError("Leave not found", status_code=404)
        return self.leaves[leave_id]

    async def approve_leave(self, leave_id: int, remarks: Optional[str] = None) -> LeaveApplication:
        await self._enter("approve_leave", leave_id, remarks)
        leave = self._require(leave_id).model_copy(update={"application_status": ApplicationStatus.APPROVED})
        self.leaves[leave_id] = leave
        return leave

    async def reject_leave(self, leave_id: int, remarks: Optional[str] = None) -> LeaveApplication:
        await self._enter("reject_leave", leave_id, remarks)
        leave = self._require(leave_id).model_copy(update={"application_status": ApplicationStatus.REJECTED})
        self.leaves[leave_id] = leave
        return leave

    async def modify_leave(self, leave_id: int, from_date: date, to_date: date, reason: str) -> LeaveApplication:
        await self._enter("modify_leave", leave_id, from_date, to_date, reason)
        leave = self._require(leave_id).model_copy(update={"from_date": from_date, "to_date": to_date})
        self.leaves[leave_id] = leave
        return leave

    async def revoke_leave(self, leave_id: int, reason: str) -> LeaveApplication:
        await self._enter("revoke_leave", leave_id, reason)
        leave = self._require(leave_id).model_copy(update={"is_revoked": True})
        self.leaves[leave_id] = leave
        return leave


def make_leave(**overrides) -> LeaveApplication:
    """Approved leave 2025-03-10 09:00Z .. 2025-03-11 18:00Z, in HR API field names"""
    data = {
        "LeaveApplicationID": 31,
        "EmployeeID": 7,
        "EmployeeName": "Asha Rao",
        "LeaveTypeName": "Casual Leave",
        "FromDate": "2025-03-10T09:00:00Z",
        "ToDate": "2025-03-11T18:00:00Z",
        "TotalDays": 2,
        "ApplicationStatus": "Approved",
        "IsRevoked": False,
    }
    data.update(overrides)
    return LeaveApplication.model_validate(data)
