"""
Enumerations shared by the attendance and leave modules
"""
import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class AttendanceState(str, enum.Enum):
    """Today-state of an employee, derived from the server snapshot."""
    NOT_MARKED = "NotMarked"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    ON_LEAVE = "OnLeave"
    HALF_DAY = "HalfDay"


class AttendanceAction(str, enum.Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class ApplicationStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveDisplayStatus(str, enum.Enum):
    """Computed from the current time; never stored."""
    PENDING = "Pending"
    REJECTED = "Rejected"
    REVOKED = "Revoked"
    COMPLETED = "Completed"
    UPCOMING = "Upcoming"
    ONGOING = "Ongoing"


class LeaveAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    MODIFY = "modify"
    REVOKE = "revoke"


class GeoErrorCode(str, enum.Enum):
    """Failure codes of the browser Geolocation API."""
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


class ErrorKind(str, enum.Enum):
    NO_LOCATION_ASSIGNED = "NoLocationAssigned"
    NO_COORDINATES_CONFIGURED = "NoCoordinatesConfigured"
    LOCATION_SETUP_REQUIRED = "LocationSetupRequired"
    OUT_OF_GEOFENCE = "OutOfGeofence"
    GEO_PERMISSION_DENIED = "GeoPermissionDenied"
    GEO_POSITION_UNAVAILABLE = "GeoPositionUnavailable"
    GEO_TIMEOUT = "GeoTimeout"
    DUPLICATE_ATTEMPT = "DuplicateAttempt"
    ATTEMPT_SUPERSEDED = "AttemptSuperseded"
    INVALID_TRANSITION = "InvalidTransition"
    API_FAILURE = "ApiFailure"
    PERMISSION_DENIED = "PermissionDenied"
    WITHIN_CUTOFF_WINDOW = "WithinCutoffWindow"
    INVALID_REQUEST = "InvalidRequest"

