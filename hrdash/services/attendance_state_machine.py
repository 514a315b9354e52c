"""
Attendance state machine for one employee-day: NotMarked -> CheckedIn -> CheckedOut.

The machine only advances on an explicit success acknowledgment from the
HR API; a failed attempt leaves the previous snapshot untouched. At most
one attempt runs at a time, and a response arriving for a superseded
attempt is discarded.
"""
from datetime import date, datetime
from typing import Optional

from hrdash.clients.geolocation import GeolocationOptions, GeolocationProvider, acquire_position
from hrdash.core.enums import AttendanceAction, AttendanceState
from hrdash.core.exceptions import (
    AttemptSupersededError,
    DuplicateAttemptError,
    InvalidTransitionError,
    LocationSetupRequiredError,
    NoLocationAssignedError,
    OutOfGeofenceError,
)
from hrdash.schemas.attendance import AttendanceDay, CheckRequest
from hrdash.services.live_timer import estimate_working_hours
from hrdash.services.location_validator import LocationValidation, validate_location
from hrdash.services.shift_policy import ShiftPolicy

_REQUIRED_STATE = {
    AttendanceAction.CHECK_IN: AttendanceState.NOT_MARKED,
    AttendanceAction.CHECK_OUT: AttendanceState.CHECKED_IN,
}

_STATE_RANK = {
    AttendanceState.NOT_MARKED: 0,
    AttendanceState.CHECKED_IN: 1,
    AttendanceState.CHECKED_OUT: 2,
}

_TRANSITION_ERRORS = {
    (AttendanceAction.CHECK_IN, AttendanceState.CHECKED_IN): "Already checked in today",
    (AttendanceAction.CHECK_IN, AttendanceState.CHECKED_OUT): "Already checked out today",
    (AttendanceAction.CHECK_OUT, AttendanceState.NOT_MARKED): "You have not checked in today",
    (AttendanceAction.CHECK_OUT, AttendanceState.CHECKED_OUT): "Already checked out today",
}


class AttendanceStateMachine:
    """
    Collaborators that carry per-request credentials (the HR API client and
    the geolocation provider) are passed to each call; the clock, shift
    policy and geolocation options are fixed for the machine's lifetime.
    """

    def __init__(
        self,
        employee_id: int,
        work_date: date,
        clock,
        shift_policy: Optional[ShiftPolicy] = None,
        geo_options: Optional[GeolocationOptions] = None,
    ):
        self.employee_id = employee_id
        self.work_date = work_date
        self._clock = clock
        self._shift_policy = shift_policy
        self._geo_options = geo_options or GeolocationOptions()

        self._day: Optional[AttendanceDay] = None
        self._loaded = False
        self._version = 0
        self._attempt_seq = 0
        self._in_flight: Optional[int] = None
        self._last_validation: Optional[LocationValidation] = None

    # --- read side ---

    @property
    def day(self) -> Optional[AttendanceDay]:
        return self._day

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def state(self) -> AttendanceState:
        if self._day is None:
            return AttendanceState.NOT_MARKED
        return self._day.state

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    @property
    def last_validation(self) -> Optional[LocationValidation]:
        return self._last_validation

    def can_check_in(self) -> bool:
        return not self.in_flight and self.state is AttendanceState.NOT_MARKED

    def can_check_out(self) -> bool:
        return not self.in_flight and self.state is AttendanceState.CHECKED_IN

    async def refresh(self, api) -> Optional[AttendanceDay]:
        """
        Reload today's snapshot. A result that arrives after an attempt has
        started or a newer snapshot was applied is dropped, and so is one that
        would move the day backwards (e.g. CheckedIn -> NotMarked).
        """
        version = self._version
        day = await api.get_today_status(self.employee_id, self.work_date)
        if self._in_flight is not None or version != self._version:
            return self._day
        new_state = day.state if day is not None else AttendanceState.NOT_MARKED
        if self._loaded and _STATE_RANK[new_state] < _STATE_RANK[self.state]:
            return self._day
        self._apply(day)
        return self._day

    # --- transitions ---

    async def check_in(self, api, geolocation: GeolocationProvider, remarks: Optional[str] = None) -> AttendanceDay:
        return await self._transition(AttendanceAction.CHECK_IN, api, geolocation, remarks)

    async def check_out(self, api, geolocation: GeolocationProvider, remarks: Optional[str] = None) -> AttendanceDay:
        return await self._transition(AttendanceAction.CHECK_OUT, api, geolocation, remarks)

    def supersede(self) -> None:
        """Abandon the outstanding attempt; its late response will be ignored."""
        self._in_flight = None

    async def _transition(self, action: AttendanceAction, api, geolocation, remarks) -> AttendanceDay:
        if self._in_flight is not None:
            raise DuplicateAttemptError()
        if self._loaded:
            self._require_state(action)

        self._attempt_seq += 1
        attempt = self._attempt_seq
        self._in_flight = attempt
        try:
            if not self._loaded:
                snapshot = await api.get_today_status(self.employee_id, self.work_date)
                self._ensure_current(attempt)
                self._apply(snapshot)
                self._require_state(action)

            location = await api.get_assigned_location(self.employee_id)
            self._ensure_current(attempt)
            if location is None:
                raise NoLocationAssignedError()
            if not location.has_coordinates:
                raise LocationSetupRequiredError(location.name)

            position = await acquire_position(geolocation, self._geo_options)
            self._ensure_current(attempt)

            validation = validate_location(location, position)
            self._last_validation = validation
            if not validation.within_radius:
                raise OutOfGeofenceError(
                    validation.distance_meters,
                    validation.allowed_radius_meters,
                    validation.location_name,
                )

            request = CheckRequest(
                employee_id=self.employee_id,
                location_id=location.location_id,
                latitude=position.latitude,
                longitude=position.longitude,
                remarks=remarks,
            )
            previous = self._day
            if action is AttendanceAction.CHECK_IN:
                acknowledged = await api.check_in(request, self.work_date)
            else:
                acknowledged = await api.check_out(request, self.work_date)
            self._ensure_current(attempt)

            return self._apply(self._complete(action, acknowledged, previous, self._clock.now()))
        finally:
            if self._in_flight == attempt:
                self._in_flight = None

    def _require_state(self, action: AttendanceAction) -> None:
        state = self.state
        if state is not _REQUIRED_STATE[action]:
            raise InvalidTransitionError(_TRANSITION_ERRORS[(action, state)], state=state.value)

    def _ensure_current(self, attempt: int) -> None:
        if self._in_flight != attempt:
            raise AttemptSupersededError()

    def _apply(self, day: Optional[AttendanceDay]) -> Optional[AttendanceDay]:
        self._day = day
        self._loaded = True
        self._version += 1
        return day

    def _complete(
        self,
        action: AttendanceAction,
        day: AttendanceDay,
        previous: Optional[AttendanceDay],
        now: datetime,
    ) -> AttendanceDay:
        """Fill what the acknowledgment left out; server-sent fields always win."""
        sent = day.model_fields_set
        update = {}

        check_in = day.check_in_time
        if check_in is None:
            check_in = previous.check_in_time if previous and previous.check_in_time else now
            update["check_in_time"] = check_in

        if action is AttendanceAction.CHECK_IN:
            if self._shift_policy and "is_late" not in sent:
                update["is_late"], update["late_minutes"] = self._shift_policy.lateness(check_in)
            return day.model_copy(update=update)

        check_out = day.check_out_time or now
        if day.check_out_time is None:
            update["check_out_time"] = check_out
        working_hours = day.working_hours
        if working_hours is None:
            working_hours = estimate_working_hours(check_in, check_out)
            update["working_hours"] = working_hours
        if previous is not None:
            for name in ("is_late", "late_minutes", "required_hours", "attendance_status"):
                if name not in sent:
                    update[name] = getattr(previous, name)
        if self._shift_policy and "is_early_leave" not in sent:
            required = update.get("required_hours", day.required_hours)
            update["is_early_leave"], update["early_leave_minutes"] = self._shift_policy.early_leave(
                working_hours, required
            )
        return day.model_copy(update=update)
