"""
Attendance endpoints for the dashboard: today's status with live timer,
geofenced check-in / check-out and the records list.
Check-in and check-out always act on the caller's own attendance.
"""
import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from hrdash.clients.geolocation import ReportedPositionProvider
from hrdash.core.deps import (
    get_attendance_registry,
    get_current_user,
    get_employee_cache,
    get_hr_api,
    get_live_timer,
)
from hrdash.core.enums import AttendanceState
from hrdash.core.security import ActingUser
from hrdash.schemas.attendance import (
    AttendanceDayOut,
    AttendanceMarkRequest,
    AttendanceRecordsResponse,
    LiveEstimateOut,
    TodayStatusResponse,
)
from hrdash.services.attendance_registry import AttendanceRegistry
from hrdash.services.attendance_state_machine import AttendanceStateMachine
from hrdash.services.employee_cache import EmployeeIdCache
from hrdash.services.live_timer import LiveTimer
from hrdash.utils.datetime_utils import format_time_12h

router = APIRouter()
logger = logging.getLogger(__name__)


def _today_response(
    machine: AttendanceStateMachine,
    registry: AttendanceRegistry,
    timer: LiveTimer,
) -> TodayStatusResponse:
    day = machine.day
    live = None
    if machine.state is AttendanceState.CHECKED_IN and day is not None:
        current = timer.current(day.check_in_time)
        live = LiveEstimateOut(
            working_hours=current.working_hours,
            display=current.display,
            as_of=current.as_of,
            refresh_seconds=int(timer.interval_seconds),
        )
    validation = machine.last_validation
    return TodayStatusResponse(
        employee_id=machine.employee_id,
        work_date=machine.work_date,
        state=machine.state,
        in_progress=machine.in_flight,
        can_check_in=machine.can_check_in(),
        can_check_out=machine.can_check_out(),
        day=AttendanceDayOut.model_validate(day) if day is not None else None,
        check_in_display=format_time_12h(day.check_in_time if day else None, registry.tz),
        check_out_display=format_time_12h(day.check_out_time if day else None, registry.tz),
        live_estimate=live,
        location_check=validation.to_schema() if validation is not None else None,
    )


@router.get("/today", response_model=TodayStatusResponse)
async def get_today(
    current_user: ActingUser = Depends(get_current_user),
    api=Depends(get_hr_api),
    registry: AttendanceRegistry = Depends(get_attendance_registry),
    timer: LiveTimer = Depends(get_live_timer),
):
    """
    Today's attendance for the caller.

    While checked in, `live_estimate` carries the elapsed time; the
    dashboard polls again after `refresh_seconds`.
    """
    machine = registry.machine_for(current_user.employee_id)
    await machine.refresh(api)
    return _today_response(machine, registry, timer)


@router.post("/check-in", response_model=TodayStatusResponse)
async def check_in(
    body: AttendanceMarkRequest,
    current_user: ActingUser = Depends(get_current_user),
    api=Depends(get_hr_api),
    registry: AttendanceRegistry = Depends(get_attendance_registry),
    timer: LiveTimer = Depends(get_live_timer),
):
    machine = registry.machine_for(current_user.employee_id)
    provider = ReportedPositionProvider.from_request(body, registry.clock)
    await machine.check_in(api, provider, remarks=body.remarks)
    logger.info("Check-in recorded: employee_id=%s work_date=%s", machine.employee_id, machine.work_date)
    return _today_response(machine, registry, timer)


@router.post("/check-out", response_model=TodayStatusResponse)
async def check_out(
    body: AttendanceMarkRequest,
    current_user: ActingUser = Depends(get_current_user),
    api=Depends(get_hr_api),
    registry: AttendanceRegistry = Depends(get_attendance_registry),
    timer: LiveTimer = Depends(get_live_timer),
):
    machine = registry.machine_for(current_user.employee_id)
    provider = ReportedPositionProvider.from_request(body, registry.clock)
    await machine.check_out(api, provider, remarks=body.remarks)
    logger.info("Check-out recorded: employee_id=%s work_date=%s", machine.employee_id, machine.work_date)
    return _today_response(machine, registry, timer)


@router.post("/cancel", response_model=TodayStatusResponse)
async def cancel_attempt(
    current_user: ActingUser = Depends(get_current_user),
    registry: AttendanceRegistry = Depends(get_attendance_registry),
    timer: LiveTimer = Depends(get_live_timer),
):
    """
    Abandon the caller's outstanding check-in / check-out.

    A late answer for the abandoned attempt is ignored; the next
    `/today` shows whatever the HR API actually recorded.
    """
    machine = registry.machine_for(current_user.employee_id)
    if machine.in_flight:
        machine.supersede()
        logger.info("Attempt abandoned: employee_id=%s work_date=%s", machine.employee_id, machine.work_date)
    return _today_response(machine, registry, timer)


@router.get("/records", response_model=AttendanceRecordsResponse)
async def list_records(
    employee_id: Optional[int] = Query(None, description="Defaults to the caller"),
    from_date: Optional[date] = Query(None, description="Defaults to the first day of the current month"),
    to_date: Optional[date] = Query(None, description="Defaults to today"),
    current_user: ActingUser = Depends(get_current_user),
    api=Depends(get_hr_api),
    registry: AttendanceRegistry = Depends(get_attendance_registry),
    employee_cache: EmployeeIdCache = Depends(get_employee_cache),
):
    """
    Attendance records for an employee and date range.
    Admins and managers may list other employees of their company.
    """
    today = registry.work_date()
    from_date = from_date or today.replace(day=1)
    to_date = to_date or today
    if to_date < from_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="to_date cannot be before from_date"
        )
    if (to_date - from_date) > timedelta(days=366):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Date range cannot exceed one year"
        )

    target = employee_id if employee_id is not None else current_user.employee_id
    if target != current_user.employee_id:
        if not current_user.is_approver:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only view your own attendance"
            )
        if current_user.company_id is not None:
            if employee_cache.get_employee_ids(current_user.company_id) is None:
                employees = await api.get_employees(current_user.company_id)
                employee_cache.set_employee_ids(employees, current_user.company_id)
            if not employee_cache.is_valid_employee_id(target, current_user.company_id):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Employee with id {target} not found"
                )

    records = await api.get_records(target, from_date, to_date)
    items = [AttendanceDayOut.model_validate(r) for r in records]
    return AttendanceRecordsResponse(
        employee_id=target,
        from_date=from_date,
        to_date=to_date,
        items=items,
        total=len(items),
    )
