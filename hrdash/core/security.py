"""
Bearer token handling.

Tokens are issued by the HR platform and signed with the shared
JWT_SECRET_KEY; this service only verifies them and forwards them to the
HR API on the caller's behalf.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from hrdash.core.config import settings
from hrdash.core.enums import Role
from hrdash.utils.datetime_utils import UTC

logger = logging.getLogger(__name__)


class ActingUser(BaseModel):
    """Identity of the caller, taken from the verified token claims."""
    employee_id: int = Field(..., validation_alias=AliasChoices("employee_id", "sub", "employeeId", "EmployeeID"))
    role: Role = Field(Role.EMPLOYEE, validation_alias=AliasChoices("role", "Role"))
    company_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("company_id", "companyId", "CompanyID")
    )
    token: str = ""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @field_validator("role", mode="before")
    @classmethod
    def _role_case(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def is_approver(self) -> bool:
        return self.role in (Role.ADMIN, Role.MANAGER)


def create_access_token(data: Dict, expires_minutes: Optional[int] = None) -> str:
    """Create a JWT access token (used by tests and local tooling)"""
    to_encode = data.copy()

    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRE_MINUTES

    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )
    return encoded_jwt


def decode_token(token: str) -> Dict:
    """Decode and verify a JWT token"""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        raise ValueError("Invalid token")


def acting_user_from_token(token: str) -> ActingUser:
    """
    Verify the token and build the acting user.

    Raises:
        ValueError: token is invalid or lacks a usable subject / role
    """
    payload = decode_token(token)
    if payload.get("sub") is None:
        raise ValueError("Token has no subject")
    try:
        return ActingUser.model_validate({**payload, "token": token})
    except ValueError as exc:
        logger.debug("Rejected token claims: %s", exc)
        raise ValueError("Invalid token claims")
