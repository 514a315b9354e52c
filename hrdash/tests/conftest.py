"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time
os.environ.setdefault("HR_API_BASE_URL", "https://hr.test/api")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-hrdash-tests-000000")
os.environ.setdefault("APP_ENV", "local")

from datetime import time  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from hrdash.clients.geolocation import GeolocationOptions  # noqa: E402
from hrdash.core.deps import (  # noqa: E402
    get_attendance_registry,
    get_employee_cache,
    get_hr_api,
    get_leave_service,
    get_live_timer,
)
from hrdash.core.security import create_access_token  # noqa: E402
from hrdash.main import app  # noqa: E402
from hrdash.schemas.location import AssignedLocation  # noqa: E402
from hrdash.services.attendance_registry import AttendanceRegistry  # noqa: E402
from hrdash.services.cache import InMemoryTTLCache  # noqa: E402
from hrdash.services.employee_cache import EmployeeIdCache  # noqa: E402
from hrdash.services.leave_permission_gate import LeavePermissionGate  # noqa: E402
from hrdash.services.leave_service import LeaveApprovalService  # noqa: E402
from hrdash.services.live_timer import LiveTimer  # noqa: E402
from hrdash.services.shift_policy import ShiftPolicy  # noqa: E402
from hrdash.tests.fakes import IST, OFFICE_LAT, OFFICE_LNG, START, FakeClock, FakeHrApi  # noqa: E402


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def office():
    return AssignedLocation(
        location_id=1,
        name="Head Office",
        latitude=OFFICE_LAT,
        longitude=OFFICE_LNG,
        allowed_radius_meters=100,
    )


@pytest.fixture
def fake_api(clock, office):
    api = FakeHrApi(clock)
    api.location = office
    return api


@pytest.fixture
def shift_policy():
    return ShiftPolicy(shift_start=time(9, 30), required_hours=8.0, grace_minutes=0, tz=IST)


@pytest.fixture
def registry(clock, shift_policy):
    return AttendanceRegistry(clock, IST, shift_policy=shift_policy, geo_options=GeolocationOptions())


@pytest.fixture
def gate(clock):
    return LeavePermissionGate(clock, IST, cutoff_hours=12.0)


@pytest.fixture
def leave_service(gate, clock):
    return LeaveApprovalService(gate, clock, IST)


@pytest.fixture
def employee_cache(clock):
    return EmployeeIdCache(InMemoryTTLCache(clock, default_ttl_seconds=300, max_entries=16))


@pytest.fixture
def live_timer(clock):
    return LiveTimer(clock, interval_seconds=60)


@pytest.fixture
def client(fake_api, registry, leave_service, employee_cache, live_timer):
    """Test client fixture with the HR API and process-wide services replaced"""
    app.dependency_overrides[get_hr_api] = lambda: fake_api
    app.dependency_overrides[get_attendance_registry] = lambda: registry
    app.dependency_overrides[get_leave_service] = lambda: leave_service
    app.dependency_overrides[get_employee_cache] = lambda: employee_cache
    app.dependency_overrides[get_live_timer] = lambda: live_timer
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_auth_headers(employee_id: int = 7, role: str = "employee", company_id: int = 1) -> dict:
    token = create_access_token({"sub": str(employee_id), "role": role, "companyId": company_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def employee_headers():
    return make_auth_headers(7, "employee")


@pytest.fixture
def manager_headers():
    return make_auth_headers(2, "Manager")


@pytest.fixture
def admin_headers():
    return make_auth_headers(1, "ADMIN")


@pytest.fixture
def auth_headers():
    """Factory: auth_headers(employee_id, role, company_id) -> headers dict"""
    return make_auth_headers
