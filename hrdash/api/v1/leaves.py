"""
Leave approval endpoints: permission preview and the approver actions.
Approve / reject / modify require ADMIN or MANAGER; revoke requires ADMIN.
The permission gate re-checks status and the cutoff window on every action.
"""
from fastapi import APIRouter, Depends

from hrdash.core.deps import get_current_user, get_hr_api, get_leave_service, require_roles
from hrdash.core.enums import LeaveAction, Role
from hrdash.core.security import ActingUser
from hrdash.schemas.leave import (
    LeaveActionResponse,
    LeaveDecisionRequest,
    LeavePermissionsResponse,
    ModifyLeaveRequest,
    RevokeLeaveRequest,
)
from hrdash.services.leave_service import LeaveApprovalService

router = APIRouter()


def _action_response(service: LeaveApprovalService, action: LeaveAction, leave) -> LeaveActionResponse:
    return LeaveActionResponse(action=action, leave=leave, display_status=service.display_status(leave))


@router.get("/{leave_id}/permissions", response_model=LeavePermissionsResponse)
async def get_leave_permissions(
    leave_id: int,
    current_user: ActingUser = Depends(get_current_user),
    api=Depends(get_hr_api),
    service: LeaveApprovalService = Depends(get_leave_service),
):
    """
    What the caller may do with this leave right now.

    Each decision carries a message; modify/revoke decisions also carry
    the hours remaining before the leave starts.
    """
    leave, decisions = await service.permissions(api, leave_id, current_user.role)
    return LeavePermissionsResponse(
        leave=leave,
        display_status=service.display_status(leave),
        permissions={action: decision.to_schema() for action, decision in decisions.items()},
    )


@router.post("/{leave_id}/approve", response_model=LeaveActionResponse)
async def approve_leave(
    leave_id: int,
    body: LeaveDecisionRequest,
    current_user: ActingUser = Depends(require_roles(Role.MANAGER)),
    api=Depends(get_hr_api),
    service: LeaveApprovalService = Depends(get_leave_service),
):
    leave = await service.approve(api, leave_id, current_user.role, body.remarks)
    return _action_response(service, LeaveAction.APPROVE, leave)


@router.post("/{leave_id}/reject", response_model=LeaveActionResponse)
async def reject_leave(
    leave_id: int,
    body: LeaveDecisionRequest,
    current_user: ActingUser = Depends(require_roles(Role.MANAGER)),
    api=Depends(get_hr_api),
    service: LeaveApprovalService = Depends(get_leave_service),
):
    leave = await service.reject(api, leave_id, current_user.role, body.remarks)
    return _action_response(service, LeaveAction.REJECT, leave)


@router.post("/{leave_id}/modify", response_model=LeaveActionResponse)
async def modify_leave(
    leave_id: int,
    body: ModifyLeaveRequest,
    current_user: ActingUser = Depends(require_roles(Role.MANAGER)),
    api=Depends(get_hr_api),
    service: LeaveApprovalService = Depends(get_leave_service),
):
    leave = await service.modify(api, leave_id, current_user.role, body)
    return _action_response(service, LeaveAction.MODIFY, leave)


@router.post("/{leave_id}/revoke", response_model=LeaveActionResponse)
async def revoke_leave(
    leave_id: int,
    body: RevokeLeaveRequest,
    current_user: ActingUser = Depends(require_roles(Role.ADMIN)),
    api=Depends(get_hr_api),
    service: LeaveApprovalService = Depends(get_leave_service),
):
    leave = await service.revoke(api, leave_id, current_user.role, body.reason)
    return _action_response(service, LeaveAction.REVOKE, leave)
