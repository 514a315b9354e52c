"""
Permission rules for approver actions on leave applications.

- Approve / Reject: admin or manager, application still Pending.
- Modify: admin or manager; Revoke: admin only. Both need an Approved,
  non-revoked application starting at least `cutoff_hours` from now.

Date-only leave starts are taken as the start of that day in the business
timezone; hours are measured exactly (no truncation), so 12.0 hours is
allowed and 11.999 is not.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional
from zoneinfo import ZoneInfo

from hrdash.core.constants import DEFAULT_LEAVE_CUTOFF_HOURS
from hrdash.core.enums import ApplicationStatus, ErrorKind, LeaveAction, LeaveDisplayStatus, Role
from hrdash.core.exceptions import LeavePermissionDeniedError, WithinCutoffWindowError
from hrdash.schemas.leave import LeaveApplication, PermissionDecisionOut
from hrdash.utils.datetime_utils import as_instant, ensure_utc, hours_between, start_of_day

ALLOWED_ROLES = {
    LeaveAction.APPROVE: frozenset({Role.ADMIN, Role.MANAGER}),
    LeaveAction.REJECT: frozenset({Role.ADMIN, Role.MANAGER}),
    LeaveAction.MODIFY: frozenset({Role.ADMIN, Role.MANAGER}),
    LeaveAction.REVOKE: frozenset({Role.ADMIN}),
}

_ROLE_MESSAGES = {
    LeaveAction.APPROVE: "Only admins or managers can approve leaves",
    LeaveAction.REJECT: "Only admins or managers can reject leaves",
    LeaveAction.MODIFY: "Only admins or managers can modify approved leaves",
    LeaveAction.REVOKE: "Only admins can revoke approved leaves",
}


@dataclass(frozen=True)
class PermissionDecision:
    action: LeaveAction
    allowed: bool
    message: str
    reason: Optional[ErrorKind] = None
    hours_remaining: Optional[float] = None

    def raise_for_denial(self) -> None:
        if self.allowed:
            return
        if self.reason is ErrorKind.WITHIN_CUTOFF_WINDOW:
            raise WithinCutoffWindowError(self.message, self.hours_remaining)
        raise LeavePermissionDeniedError(self.message, self.hours_remaining)

    def to_schema(self) -> PermissionDecisionOut:
        return PermissionDecisionOut(
            action=self.action,
            allowed=self.allowed,
            message=self.message,
            reason=self.reason,
            hours_remaining=round(self.hours_remaining, 2) if self.hours_remaining is not None else None,
        )


class LeavePermissionGate:
    def __init__(self, clock, tz: ZoneInfo, cutoff_hours: float = DEFAULT_LEAVE_CUTOFF_HOURS):
        self._clock = clock
        self._tz = tz
        self._cutoff_hours = cutoff_hours

    @property
    def cutoff_hours(self) -> float:
        return self._cutoff_hours

    def hours_until_start(self, leave: LeaveApplication) -> float:
        return hours_between(self._clock.now(), as_instant(leave.from_date, self._tz))

    def evaluate(self, leave: LeaveApplication, role: Role, action: LeaveAction) -> PermissionDecision:
        if action in (LeaveAction.APPROVE, LeaveAction.REJECT):
            return self._evaluate_decision(leave, role, action)
        return self._evaluate_change(leave, role, action)

    def evaluate_all(self, leave: LeaveApplication, role: Role) -> Dict[LeaveAction, PermissionDecision]:
        return {action: self.evaluate(leave, role, action) for action in LeaveAction}

    def require(self, leave: LeaveApplication, role: Role, action: LeaveAction) -> PermissionDecision:
        decision = self.evaluate(leave, role, action)
        decision.raise_for_denial()
        return decision

    def _evaluate_decision(self, leave: LeaveApplication, role: Role, action: LeaveAction) -> PermissionDecision:
        if role not in ALLOWED_ROLES[action]:
            return _deny(action, _ROLE_MESSAGES[action])
        if leave.is_revoked:
            return _deny(action, "Leave has been revoked")
        if leave.application_status is not ApplicationStatus.PENDING:
            return _deny(action, "Only pending leaves can be approved or rejected")
        return PermissionDecision(action=action, allowed=True, message=f"Leave can be {_past(action)}")

    def _evaluate_change(self, leave: LeaveApplication, role: Role, action: LeaveAction) -> PermissionDecision:
        hours = self.hours_until_start(leave)
        if role not in ALLOWED_ROLES[action]:
            return _deny(action, _ROLE_MESSAGES[action], hours)
        if leave.is_revoked:
            return _deny(action, "Leave has already been revoked", hours)
        if leave.application_status is not ApplicationStatus.APPROVED:
            return _deny(action, "Only approved leaves can be modified or revoked", hours)
        if hours < self._cutoff_hours:
            return PermissionDecision(
                action=action,
                allowed=False,
                message=f"Cannot modify/revoke (less than {self._cutoff_hours:g} hours remaining)",
                reason=ErrorKind.WITHIN_CUTOFF_WINDOW,
                hours_remaining=hours,
            )
        return PermissionDecision(
            action=action,
            allowed=True,
            message=f"{math.floor(hours)} hours remaining to modify/revoke",
            hours_remaining=hours,
        )


def _deny(action: LeaveAction, message: str, hours: Optional[float] = None) -> PermissionDecision:
    return PermissionDecision(
        action=action,
        allowed=False,
        message=message,
        reason=ErrorKind.PERMISSION_DENIED,
        hours_remaining=hours,
    )


def _past(action: LeaveAction) -> str:
    return {LeaveAction.APPROVE: "approved", LeaveAction.REJECT: "rejected"}[action]


def derive_display_status(leave: LeaveApplication, now: datetime, tz: ZoneInfo) -> LeaveDisplayStatus:
    """
    Status shown on the approval screens. A date-only to_date covers that
    whole day, so the leave is Completed only once the next day begins.
    """
    if leave.is_revoked:
        return LeaveDisplayStatus.REVOKED
    if leave.application_status is ApplicationStatus.PENDING:
        return LeaveDisplayStatus.PENDING
    if leave.application_status is ApplicationStatus.REJECTED:
        return LeaveDisplayStatus.REJECTED

    now = ensure_utc(now)
    start = as_instant(leave.from_date, tz)
    if isinstance(leave.to_date, datetime):
        end = ensure_utc(leave.to_date)
    else:
        end = start_of_day(leave.to_date + timedelta(days=1), tz)

    if end <= now:
        return LeaveDisplayStatus.COMPLETED
    if start > now:
        return LeaveDisplayStatus.UPCOMING
    return LeaveDisplayStatus.ONGOING
