"""
Dependencies and guards for FastAPI endpoints
"""
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from hrdash.clients.geolocation import GeolocationOptions
from hrdash.clients.hr_api import HrApiClient
from hrdash.core.config import settings
from hrdash.core.enums import Role
from hrdash.core.security import ActingUser, acting_user_from_token
from hrdash.services.attendance_registry import AttendanceRegistry
from hrdash.services.cache import InMemoryTTLCache
from hrdash.services.employee_cache import EmployeeIdCache
from hrdash.services.leave_permission_gate import LeavePermissionGate
from hrdash.services.leave_service import LeaveApprovalService
from hrdash.services.live_timer import LiveTimer
from hrdash.services.shift_policy import ShiftPolicy
from hrdash.utils.datetime_utils import SystemClock


security = HTTPBearer()

# Process-wide collaborators; tests replace them through app.dependency_overrides
_clock = SystemClock()
_registry = AttendanceRegistry(
    _clock,
    settings.zone,
    shift_policy=ShiftPolicy.from_settings(settings),
    geo_options=GeolocationOptions.from_settings(settings),
)
_leave_service = LeaveApprovalService(
    LeavePermissionGate(_clock, settings.zone, cutoff_hours=settings.LEAVE_CUTOFF_HOURS),
    _clock,
    settings.zone,
)
_employee_cache = EmployeeIdCache(
    InMemoryTTLCache(
        _clock,
        default_ttl_seconds=settings.EMPLOYEE_CACHE_TTL_SECONDS,
        max_entries=settings.EMPLOYEE_CACHE_MAX_ENTRIES,
    )
)
_live_timer = LiveTimer(_clock, interval_seconds=settings.LIVE_TIMER_INTERVAL_SECONDS)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> ActingUser:
    """
    Get current authenticated user from JWT token
    """
    try:
        return acting_user_from_token(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_roles(*allowed_roles: Role):
    """
    Dependency factory for role-based access control

    Usage:
        @router.post("/{leave_id}/approve")
        async def approve(user: ActingUser = Depends(require_roles(Role.MANAGER))):
            ...
    """
    def role_checker(current_user: ActingUser = Depends(get_current_user)) -> ActingUser:
        # Allow ADMIN superuser access regardless of required roles
        if current_user.role == Role.ADMIN:
            return current_user

        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user
    return role_checker


async def get_hr_api(current_user: ActingUser = Depends(get_current_user)) -> AsyncGenerator:
    """HR API client acting with the caller's token; closed after the request"""
    client = HrApiClient(
        settings.HR_API_BASE_URL,
        token=current_user.token,
        timeout=settings.HR_API_TIMEOUT_SECONDS,
    )
    try:
        yield client
    finally:
        await client.aclose()


def get_attendance_registry() -> AttendanceRegistry:
    return _registry


def get_leave_service() -> LeaveApprovalService:
    return _leave_service


def get_employee_cache() -> EmployeeIdCache:
    return _employee_cache


def get_live_timer() -> LiveTimer:
    return _live_timer
