"""
In-process registry of attendance state machines, one per employee-day.

Keeps the at-most-one-attempt guard alive across requests from the same
dashboard. It is advisory only: separate processes or devices racing on
the same employee-day are left to the HR API.
"""
import logging
from datetime import date
from typing import Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from hrdash.clients.geolocation import GeolocationOptions
from hrdash.services.attendance_state_machine import AttendanceStateMachine
from hrdash.services.shift_policy import ShiftPolicy
from hrdash.utils.datetime_utils import local_date

logger = logging.getLogger(__name__)


class AttendanceRegistry:
    def __init__(
        self,
        clock,
        tz: ZoneInfo,
        shift_policy: Optional[ShiftPolicy] = None,
        geo_options: Optional[GeolocationOptions] = None,
    ):
        self._clock = clock
        self._tz = tz
        self._shift_policy = shift_policy
        self._geo_options = geo_options or GeolocationOptions()
        self._machines: Dict[Tuple[int, date], AttendanceStateMachine] = {}

    @property
    def clock(self):
        return self._clock

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def work_date(self) -> date:
        """Today in the business timezone."""
        return local_date(self._clock.now(), self._tz)

    def machine_for(self, employee_id: int) -> AttendanceStateMachine:
        today = self.work_date()
        self._prune(today)
        key = (employee_id, today)
        machine = self._machines.get(key)
        if machine is None:
            machine = AttendanceStateMachine(
                employee_id,
                today,
                self._clock,
                shift_policy=self._shift_policy,
                geo_options=self._geo_options,
            )
            self._machines[key] = machine
            logger.debug("attendance machine created: employee_id=%s work_date=%s", employee_id, today)
        return machine

    def _prune(self, today: date) -> None:
        stale = [
            key for key, machine in self._machines.items()
            if key[1] != today and not machine.in_flight
        ]
        for key in stale:
            del self._machines[key]
        if stale:
            logger.debug("attendance machines pruned: %d", len(stale))

    def __len__(self) -> int:
        return len(self._machines)
