"""
Leave approval service: approve, reject, modify and revoke leave
applications on behalf of an approver.

Every action is checked against the permission gate before the HR API is
called, using the application as the HR API reports it at that moment.
"""
import logging
from datetime import datetime
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from hrdash.core.enums import LeaveAction, LeaveDisplayStatus, Role
from hrdash.core.exceptions import ApiFailureError, InvalidRequestError
from hrdash.schemas.leave import LeaveApplication, ModifyLeaveRequest
from hrdash.services.leave_permission_gate import (
    LeavePermissionGate,
    PermissionDecision,
    derive_display_status,
)
from hrdash.utils.datetime_utils import local_date

logger = logging.getLogger(__name__)


class LeaveApprovalService:
    def __init__(self, gate: LeavePermissionGate, clock, tz: ZoneInfo):
        self._gate = gate
        self._clock = clock
        self._tz = tz

    @property
    def gate(self) -> LeavePermissionGate:
        return self._gate

    def display_status(self, leave: LeaveApplication, now: Optional[datetime] = None) -> LeaveDisplayStatus:
        return derive_display_status(leave, now or self._clock.now(), self._tz)

    async def get_leave(self, api, leave_id: int) -> LeaveApplication:
        leave = await api.get_leave(leave_id)
        if leave is None:
            raise ApiFailureError(f"Leave application with id {leave_id} not found", status_code=404)
        return leave

    async def permissions(self, api, leave_id: int, role: Role) -> Tuple[LeaveApplication, dict]:
        """Current application plus the gate decision for every action."""
        leave = await self.get_leave(api, leave_id)
        return leave, self._gate.evaluate_all(leave, role)

    async def approve(self, api, leave_id: int, role: Role, remarks: Optional[str] = None) -> LeaveApplication:
        await self._authorize(api, leave_id, role, LeaveAction.APPROVE)
        updated = await api.approve_leave(leave_id, remarks)
        logger.info("Leave %s approved by %s", leave_id, role.value)
        return updated

    async def reject(self, api, leave_id: int, role: Role, remarks: Optional[str] = None) -> LeaveApplication:
        await self._authorize(api, leave_id, role, LeaveAction.REJECT)
        updated = await api.reject_leave(leave_id, remarks)
        logger.info("Leave %s rejected by %s", leave_id, role.value)
        return updated

    async def modify(self, api, leave_id: int, role: Role, body: ModifyLeaveRequest) -> LeaveApplication:
        """
        Change the dates of an approved leave.

        Raises:
            InvalidRequestError: reason missing, from_date in the past or
                to_date before from_date
            LeavePermissionDeniedError / WithinCutoffWindowError: gate denial
        """
        reason = (body.reason or "").strip()
        if not reason:
            raise InvalidRequestError("Please provide a reason for the modification")
        today = local_date(self._clock.now(), self._tz)
        if body.from_date < today:
            raise InvalidRequestError("From date cannot be in the past")
        if body.to_date < body.from_date:
            raise InvalidRequestError("To date cannot be before from date")

        await self._authorize(api, leave_id, role, LeaveAction.MODIFY)
        updated = await api.modify_leave(leave_id, body.from_date, body.to_date, reason)
        logger.info(
            "Leave %s modified by %s: %s -> %s", leave_id, role.value, body.from_date, body.to_date
        )
        return updated

    async def revoke(self, api, leave_id: int, role: Role, reason: str) -> LeaveApplication:
        reason = (reason or "").strip()
        if not reason:
            raise InvalidRequestError("Please provide a reason for revocation")
        await self._authorize(api, leave_id, role, LeaveAction.REVOKE)
        updated = await api.revoke_leave(leave_id, reason)
        logger.info("Leave %s revoked by %s", leave_id, role.value)
        return updated

    async def _authorize(self, api, leave_id: int, role: Role, action: LeaveAction) -> PermissionDecision:
        leave = await self.get_leave(api, leave_id)
        decision = self._gate.evaluate(leave, role, action)
        if not decision.allowed:
            logger.info("Leave %s %s denied for %s: %s", leave_id, action.value, role.value, decision.message)
        decision.raise_for_denial()
        return decision
