"""
Service-wide constants
"""

SERVICE_NAME = "hrdash"

# Mean Earth radius used for great-circle distances (meters)
EARTH_RADIUS_METERS = 6371000.0

# Minimum lead time before a leave starts for it to be modified or revoked
DEFAULT_LEAVE_CUTOFF_HOURS = 12.0

DEFAULT_LIVE_TIMER_INTERVAL_SECONDS = 60

# Geolocation defaults the dashboard requests from the browser
DEFAULT_GEO_TIMEOUT_MS = 15000
DEFAULT_GEO_MAXIMUM_AGE_MS = 0

DEFAULT_EMPLOYEE_CACHE_TTL_SECONDS = 5 * 60
