"""
Domain errors for attendance and leave operations.

Every error carries an ErrorKind, a human-readable message and optional
details (distance, remaining hours, ...). The HTTP layer renders them in
app-wide JSON error format; nothing here performs presentation.
"""
from typing import Any, Dict, Optional

from hrdash.core.enums import ErrorKind, GeoErrorCode


class HrdashError(Exception):
    """Base class for all typed failures of a single attempt."""

    kind: ErrorKind = ErrorKind.API_FAILURE
    status_code: int = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = {k: v for k, v in details.items() if v is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "detail": self.message, **self.details}


# --- Configuration errors (need administrator action) ---


class NoLocationAssignedError(HrdashError):
    kind = ErrorKind.NO_LOCATION_ASSIGNED
    status_code = 409

    def __init__(self, message: str = "No location assigned to your account"):
        super().__init__(message)


class NoCoordinatesConfiguredError(HrdashError):
    kind = ErrorKind.NO_COORDINATES_CONFIGURED
    status_code = 409

    def __init__(self, location_name: Optional[str] = None):
        super().__init__(
            "Assigned location has no coordinates configured",
            location_name=location_name,
        )


class LocationSetupRequiredError(HrdashError):
    kind = ErrorKind.LOCATION_SETUP_REQUIRED
    status_code = 409

    def __init__(self, location_name: Optional[str] = None):
        super().__init__(
            "Your assigned location needs coordinate setup",
            location_name=location_name,
        )


# --- Geofence ---


class OutOfGeofenceError(HrdashError):
    kind = ErrorKind.OUT_OF_GEOFENCE
    status_code = 403

    def __init__(self, distance_meters: float, allowed_radius_meters: float, location_name: str):
        self.distance_meters = distance_meters
        self.allowed_radius_meters = allowed_radius_meters
        self.location_name = location_name
        shown = int(round(distance_meters))
        super().__init__(
            f"You are {shown}m from {location_name}; allowed radius is {allowed_radius_meters:g}m",
            distance_meters=shown,
            allowed_radius_meters=allowed_radius_meters,
            location_name=location_name,
        )


# --- Device geolocation ---


class GeolocationError(HrdashError):
    status_code = 422
    code: GeoErrorCode = GeoErrorCode.POSITION_UNAVAILABLE
    default_message = "Failed to get location"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class GeoPermissionDeniedError(GeolocationError):
    kind = ErrorKind.GEO_PERMISSION_DENIED
    code = GeoErrorCode.PERMISSION_DENIED
    default_message = "Location permission denied. Please enable location access."


class GeoPositionUnavailableError(GeolocationError):
    kind = ErrorKind.GEO_POSITION_UNAVAILABLE
    code = GeoErrorCode.POSITION_UNAVAILABLE
    default_message = "Location information is unavailable."


class GeoTimeoutError(GeolocationError):
    kind = ErrorKind.GEO_TIMEOUT
    code = GeoErrorCode.TIMEOUT
    default_message = "Location request timed out."


GEO_ERRORS = {
    GeoErrorCode.PERMISSION_DENIED: GeoPermissionDeniedError,
    GeoErrorCode.POSITION_UNAVAILABLE: GeoPositionUnavailableError,
    GeoErrorCode.TIMEOUT: GeoTimeoutError,
}


# --- Attempt guards ---


class DuplicateAttemptError(HrdashError):
    kind = ErrorKind.DUPLICATE_ATTEMPT
    status_code = 409

    def __init__(self, message: str = "A check-in or check-out is already in progress"):
        super().__init__(message)


class AttemptSupersededError(HrdashError):
    kind = ErrorKind.ATTEMPT_SUPERSEDED
    status_code = 409

    def __init__(self, message: str = "Attempt was superseded by a newer one"):
        super().__init__(message)


class InvalidTransitionError(HrdashError):
    kind = ErrorKind.INVALID_TRANSITION
    status_code = 409

    def __init__(self, message: str, state: Optional[str] = None):
        super().__init__(message, state=state)


# --- HR API collaborator ---


class ApiFailureError(HrdashError):
    """Network or server failure; the message is passed through verbatim."""

    kind = ErrorKind.API_FAILURE
    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, upstream_status=status_code)
        self.upstream_status = status_code
        if status_code is not None and 400 <= status_code < 500:
            self.status_code = status_code


# --- Leave policy ---


class LeavePermissionDeniedError(HrdashError):
    kind = ErrorKind.PERMISSION_DENIED
    status_code = 403

    def __init__(self, message: str, hours_remaining: Optional[float] = None):
        super().__init__(message, hours_remaining=hours_remaining)


class WithinCutoffWindowError(HrdashError):
    kind = ErrorKind.WITHIN_CUTOFF_WINDOW
    status_code = 403

    def __init__(self, message: str, hours_remaining: float):
        super().__init__(message, hours_remaining=hours_remaining)
        self.hours_remaining = hours_remaining


class InvalidRequestError(HrdashError):
    kind = ErrorKind.INVALID_REQUEST
    status_code = 422
