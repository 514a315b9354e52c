"""
Async client for the external HR REST API.

Responses use the envelope {"success": bool, "data": ..., "message": str}.
Failures become ApiFailureError with the server's message passed through
verbatim; duplicate-request rejections become DuplicateAttemptError.
"""
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from hrdash.core.exceptions import ApiFailureError, DuplicateAttemptError
from hrdash.schemas.attendance import AttendanceDay, CheckRequest
from hrdash.schemas.leave import LeaveApplication
from hrdash.schemas.location import AssignedLocation

logger = logging.getLogger(__name__)

_DUPLICATE_PATTERN = re.compile(r"duplicate|already (checked|marked|in progress|processing)", re.IGNORECASE)

_UNEXPECTED_PAYLOAD = "HR service returned an unexpected payload"

ModelT = TypeVar("ModelT", bound=BaseModel)


class HrApiClient:
    """
    One instance per caller token; `transport` lets tests plug in httpx.MockTransport.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HrApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # --- transport ---

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("HR API %s %s timed out: %s", method, path, exc)
            raise ApiFailureError("HR service did not respond in time. Please try again.", status_code=504)
        except httpx.HTTPError as exc:
            logger.warning("HR API %s %s failed: %s", method, path, exc)
            raise ApiFailureError("Network error. Please check your connection.")

        body = self._json_body(response)
        message = body.get("message") if isinstance(body, dict) else None

        if response.status_code == 404:
            return None
        if response.status_code >= 400 or (isinstance(body, dict) and body.get("success") is False):
            text = message or f"HR service error ({response.status_code})"
            logger.info("HR API %s %s rejected: status=%s message=%s", method, path, response.status_code, text)
            if response.status_code == 409 or _DUPLICATE_PATTERN.search(text):
                raise DuplicateAttemptError(text)
            status_code = response.status_code if response.status_code >= 400 else None
            raise ApiFailureError(text, status_code=status_code)

        if isinstance(body, dict) and "success" in body:
            return body.get("data")
        return body

    @staticmethod
    def _json_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"message": response.text[:500]}

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, **key: Any) -> ModelT:
        """Validate a payload; anything the schema rejects is an ApiFailure, never a crash."""
        if not isinstance(data, dict):
            logger.warning("HR API returned %s where a %s object was expected", type(data).__name__, model.__name__)
            raise ApiFailureError(_UNEXPECTED_PAYLOAD)
        try:
            if key:
                return model.from_api(data, **key)
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("HR API %s payload rejected: %s", model.__name__, exc)
            raise ApiFailureError(_UNEXPECTED_PAYLOAD)

    # --- attendance ---

    async def get_today_status(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        data = await self._request("GET", f"/attendance/today/{employee_id}")
        if not data:
            return None
        return self._parse(AttendanceDay, data, employee_id=employee_id, work_date=work_date)

    async def check_in(self, request: CheckRequest, work_date: date) -> AttendanceDay:
        data = await self._request("POST", "/attendance/checkin", json=request.model_dump(by_alias=True))
        return self._acknowledged(data, request, work_date)

    async def check_out(self, request: CheckRequest, work_date: date) -> AttendanceDay:
        data = await self._request("POST", "/attendance/checkout", json=request.model_dump(by_alias=True))
        return self._acknowledged(data, request, work_date)

    def _acknowledged(self, data: Any, request: CheckRequest, work_date: date) -> AttendanceDay:
        if not isinstance(data, dict):
            raise ApiFailureError("HR service returned no attendance record")
        return self._parse(AttendanceDay, data, employee_id=request.employee_id, work_date=work_date)

    async def get_records(self, employee_id: int, from_date: date, to_date: date) -> List[AttendanceDay]:
        """Each record must carry its own date; a dateless record fails the whole listing."""
        data = await self._request(
            "GET",
            "/attendance/records",
            params={"employeeId": employee_id, "fromDate": from_date.isoformat(), "toDate": to_date.isoformat()},
        )
        if data is not None and not isinstance(data, list):
            raise ApiFailureError(_UNEXPECTED_PAYLOAD)
        return [self._parse(AttendanceDay, item, employee_id=employee_id) for item in (data or [])]

    async def get_assigned_location(self, employee_id: int) -> Optional[AssignedLocation]:
        data = await self._request("GET", f"/locations/assigned/{employee_id}")
        if not data:
            return None
        return self._parse(AssignedLocation, data)

    async def get_employees(self, company_id: int) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/employees", params={"companyId": company_id})
        if isinstance(data, dict):
            data = data.get("employees") or data.get("items") or []
        return list(data or [])

    # --- leaves ---

    async def get_leave(self, leave_id: int) -> Optional[LeaveApplication]:
        data = await self._request("GET", f"/leaves/{leave_id}")
        if not data:
            return None
        return self._parse(LeaveApplication, data)

    async def approve_leave(self, leave_id: int, remarks: Optional[str] = None) -> LeaveApplication:
        return await self._update_status(leave_id, "Approved", remarks)

    async def reject_leave(self, leave_id: int, remarks: Optional[str] = None) -> LeaveApplication:
        return await self._update_status(leave_id, "Rejected", remarks)

    async def _update_status(self, leave_id: int, status: str, remarks: Optional[str]) -> LeaveApplication:
        data = await self._request("PUT", f"/leaves/{leave_id}/status", json={"status": status, "remarks": remarks})
        return self._leave(data)

    async def modify_leave(self, leave_id: int, from_date: date, to_date: date, reason: str) -> LeaveApplication:
        data = await self._request(
            "PUT",
            f"/leaves/{leave_id}/modify",
            json={"fromDate": from_date.isoformat(), "toDate": to_date.isoformat(), "reason": reason},
        )
        return self._leave(data)

    async def revoke_leave(self, leave_id: int, reason: str) -> LeaveApplication:
        data = await self._request("PUT", f"/leaves/{leave_id}/revoke", json={"reason": reason})
        return self._leave(data)

    def _leave(self, data: Any) -> LeaveApplication:
        if not isinstance(data, dict):
            raise ApiFailureError("HR service returned no leave application")
        return self._parse(LeaveApplication, data)
