"""
Tests for the attendance state machine: geofenced transitions, no optimistic
mutation, the single in-flight attempt and superseded responses.
"""
import asyncio
from datetime import date, timedelta

import pytest

from hrdash.clients.geolocation import GeolocationOptions
from hrdash.core.enums import AttendanceState, AttendanceStatus
from hrdash.core.exceptions import (
    ApiFailureError,
    AttemptSupersededError,
    DuplicateAttemptError,
    GeoPermissionDeniedError,
    GeoTimeoutError,
    InvalidTransitionError,
    LocationSetupRequiredError,
    NoLocationAssignedError,
    OutOfGeofenceError,
)
from hrdash.schemas.attendance import AttendanceDay
from hrdash.schemas.location import AssignedLocation, DevicePosition
from hrdash.services.attendance_state_machine import AttendanceStateMachine
from hrdash.tests.fakes import START, FixedPositionProvider, NeverRespondingProvider
from hrdash.utils.geo import offset_north

KOLKATA = (22.5726, 88.3639)
WORK_DATE = date(2025, 3, 10)


@pytest.fixture
def kolkata_office():
    return AssignedLocation(
        location_id=5, name="Kolkata Office", latitude=KOLKATA[0], longitude=KOLKATA[1],
        allowed_radius_meters=100,
    )


@pytest.fixture
def api(fake_api, kolkata_office):
    fake_api.location = kolkata_office
    return fake_api


@pytest.fixture
def machine(clock, shift_policy):
    return AttendanceStateMachine(7, WORK_DATE, clock, shift_policy=shift_policy)


def at(meters: float) -> FixedPositionProvider:
    lat, lng = offset_north(*KOLKATA, meters)
    return FixedPositionProvider(DevicePosition(latitude=lat, longitude=lng, captured_at=START))


def test_check_in_inside_geofence(machine, api, clock):
    """80m from a 100m-radius location: check-in succeeds"""
    day = asyncio.run(machine.check_in(api, at(80), remarks="on time"))

    assert machine.state is AttendanceState.CHECKED_IN
    assert day.check_in_time == clock.now()
    assert machine.last_validation.rounded_distance == 80
    assert api.called("check_in") == 1
    request = api.calls[-1][1]
    assert request.employee_id == 7
    assert request.location_id == 5
    assert request.remarks == "on time"


def test_check_in_outside_geofence(machine, api):
    """150m from a 100m-radius location: OutOfGeofence with distance 150, nothing sent"""
    with pytest.raises(OutOfGeofenceError) as exc_info:
        asyncio.run(machine.check_in(api, at(150)))

    assert exc_info.value.details["distance_meters"] == 150
    assert exc_info.value.allowed_radius_meters == 100
    assert machine.state is AttendanceState.NOT_MARKED
    assert machine.day is None
    assert api.called("check_in") == 0
    assert not machine.in_flight


def test_api_failure_leaves_snapshot_untouched(machine, api):
    api.today = AttendanceDay(employee_id=7, work_date=WORK_DATE, attendance_status=AttendanceStatus.ABSENT)
    asyncio.run(machine.refresh(api))
    before = machine.day
    api.failures["check_in"] = ApiFailureError("Attendance service unavailable")

    with pytest.raises(ApiFailureError) as exc_info:
        asyncio.run(machine.check_in(api, at(10)))

    assert exc_info.value.message == "Attendance service unavailable"
    assert machine.day is before
    assert machine.state is AttendanceState.NOT_MARKED
    assert machine.can_check_in()


def test_api_duplicate_rejection(machine, api):
    api.failures["check_in"] = DuplicateAttemptError("Attendance already marked for today")

    with pytest.raises(DuplicateAttemptError):
        asyncio.run(machine.check_in(api, at(10)))

    assert machine.state is AttendanceState.NOT_MARKED


def test_no_transition_after_check_out(machine, api, clock):
    """Once checked out, both actions are refused and the day is not touched"""
    asyncio.run(machine.check_in(api, at(10)))
    clock.advance(hours=8)
    asyncio.run(machine.check_out(api, at(10)))
    final = machine.day

    with pytest.raises(InvalidTransitionError):
        asyncio.run(machine.check_in(api, at(10)))
    with pytest.raises(InvalidTransitionError) as exc_info:
        asyncio.run(machine.check_out(api, at(10)))

    assert exc_info.value.details["state"] == "CheckedOut"
    assert machine.state is AttendanceState.CHECKED_OUT
    assert machine.day is final
    assert api.called("check_in") == 1
    assert api.called("check_out") == 1


def test_check_out_requires_check_in(machine, api):
    with pytest.raises(InvalidTransitionError) as exc_info:
        asyncio.run(machine.check_out(api, at(10)))
    assert exc_info.value.message == "You have not checked in today"
    assert api.called("get_assigned_location") == 0


def test_server_snapshot_decides_state_on_first_attempt(machine, api, clock):
    """A check-in done elsewhere is picked up before the transition is attempted"""
    api.today = AttendanceDay(employee_id=7, work_date=WORK_DATE, check_in_time=clock.now())

    with pytest.raises(InvalidTransitionError) as exc_info:
        asyncio.run(machine.check_in(api, at(10)))

    assert exc_info.value.message == "Already checked in today"
    assert machine.state is AttendanceState.CHECKED_IN


def test_check_out_outside_geofence_is_blocked(machine, api, clock):
    asyncio.run(machine.check_in(api, at(10)))
    clock.advance(hours=9)

    with pytest.raises(OutOfGeofenceError):
        asyncio.run(machine.check_out(api, at(150)))

    assert machine.state is AttendanceState.CHECKED_IN
    assert api.called("check_out") == 0


def test_no_location_assigned(machine, api):
    api.location = None
    with pytest.raises(NoLocationAssignedError):
        asyncio.run(machine.check_in(api, at(10)))
    assert machine.state is AttendanceState.NOT_MARKED


def test_location_needs_setup(machine, api):
    api.location = AssignedLocation(location_id=5, name="New Site", allowed_radius_meters=100)
    provider = at(10)

    with pytest.raises(LocationSetupRequiredError) as exc_info:
        asyncio.run(machine.check_in(api, provider))

    assert exc_info.value.details["location_name"] == "New Site"
    assert provider.calls == 0


def test_geo_errors_stay_distinct(machine, api):
    denied = FixedPositionProvider(error=GeoPermissionDeniedError())
    with pytest.raises(GeoPermissionDeniedError):
        asyncio.run(machine.check_in(api, denied))
    assert machine.state is AttendanceState.NOT_MARKED
    assert not machine.in_flight


def test_geolocation_timeout(clock, shift_policy, api):
    machine = AttendanceStateMachine(
        7, WORK_DATE, clock, shift_policy=shift_policy, geo_options=GeolocationOptions(timeout_ms=10)
    )
    with pytest.raises(GeoTimeoutError):
        asyncio.run(machine.check_in(api, NeverRespondingProvider()))
    assert machine.can_check_in()


def test_second_attempt_while_in_flight_is_rejected(machine, api):
    async def scenario():
        provider = at(10)
        provider.gate = asyncio.Event()
        first = asyncio.create_task(machine.check_in(api, provider))
        while provider.calls == 0:
            await asyncio.sleep(0)

        assert machine.in_flight
        assert not machine.can_check_in()
        with pytest.raises(DuplicateAttemptError):
            await machine.check_in(api, at(10))

        provider.gate.set()
        return await first

    day = asyncio.run(scenario())

    assert day.check_in_time is not None
    assert api.called("check_in") == 1
    assert not machine.in_flight


def test_superseded_response_is_discarded(machine, api):
    async def scenario():
        api.gates["check_in"] = asyncio.Event()
        attempt = asyncio.create_task(machine.check_in(api, at(10)))
        while api.called("check_in") == 0:
            await asyncio.sleep(0)

        machine.supersede()
        assert not machine.in_flight

        api.gates["check_in"].set()
        with pytest.raises(AttemptSupersededError):
            await attempt

        assert machine.state is AttendanceState.NOT_MARKED
        # the server did record it; a refresh shows the truth
        await machine.refresh(api)

    asyncio.run(scenario())
    assert machine.state is AttendanceState.CHECKED_IN


def test_refresh_during_attempt_is_dropped(machine, api, clock):
    async def scenario():
        provider = at(10)
        provider.gate = asyncio.Event()
        attempt = asyncio.create_task(machine.check_in(api, provider))
        while provider.calls == 0:
            await asyncio.sleep(0)

        api.today = AttendanceDay(
            employee_id=7, work_date=WORK_DATE,
            check_in_time=clock.now() - timedelta(hours=1),
            check_out_time=clock.now(),
        )
        await machine.refresh(api)
        assert machine.state is AttendanceState.NOT_MARKED

        provider.gate.set()
        await attempt

    asyncio.run(scenario())
    assert machine.state is AttendanceState.CHECKED_IN


def test_refresh_never_moves_backwards(machine, api):
    asyncio.run(machine.check_in(api, at(10)))
    api.today = None

    asyncio.run(machine.refresh(api))

    assert machine.state is AttendanceState.CHECKED_IN


def test_lateness_filled_from_shift_policy(machine, api, clock):
    clock.advance(hours=1)  # 10:00 IST, shift starts 09:30
    day = asyncio.run(machine.check_in(api, at(10)))
    assert day.is_late is True
    assert day.late_minutes == 30


def test_server_lateness_wins(machine, api, clock):
    clock.advance(hours=1)
    api.ack_overrides = {"IsLate": False, "LateMinutes": 0}
    day = asyncio.run(machine.check_in(api, at(10)))
    assert day.is_late is False
    assert day.late_minutes == 0


def test_check_out_completes_the_day(machine, api, clock):
    clock.advance(hours=1)
    asyncio.run(machine.check_in(api, at(10)))
    clock.advance(hours=7, minutes=30)

    day = asyncio.run(machine.check_out(api, at(10)))

    assert machine.state is AttendanceState.CHECKED_OUT
    assert day.working_hours == 7.5
    assert day.is_early_leave is True
    assert day.early_leave_minutes == 30
    # lateness recorded at check-in survives an acknowledgment that omits it
    assert day.is_late is True
    assert day.late_minutes == 30


def test_server_working_hours_win(machine, api, clock):
    asyncio.run(machine.check_in(api, at(10)))
    clock.advance(hours=9)
    api.ack_overrides = {"WorkingHours": 8.75, "IsEarlyLeave": False}

    day = asyncio.run(machine.check_out(api, at(10)))

    assert day.working_hours == 8.75
    assert day.is_early_leave is False
