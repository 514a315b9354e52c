"""
Device geolocation capability.

The position is captured on the device (browser Geolocation API). The
dashboard forwards either the fix or the error code it got; this module
turns that into a DevicePosition or one of the distinct geo errors, and
bounds every acquisition with a timeout.
"""
import asyncio
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Protocol

from hrdash.core.constants import DEFAULT_GEO_MAXIMUM_AGE_MS, DEFAULT_GEO_TIMEOUT_MS
from hrdash.core.enums import GeoErrorCode
from hrdash.core.exceptions import GEO_ERRORS, GeoPositionUnavailableError, GeoTimeoutError
from hrdash.schemas.attendance import AttendanceMarkRequest
from hrdash.schemas.location import DevicePosition


@dataclass(frozen=True)
class GeolocationOptions:
    enable_high_accuracy: bool = True
    timeout_ms: int = DEFAULT_GEO_TIMEOUT_MS
    maximum_age_ms: int = DEFAULT_GEO_MAXIMUM_AGE_MS

    @classmethod
    def from_settings(cls, settings) -> "GeolocationOptions":
        return cls(
            enable_high_accuracy=settings.GEO_ENABLE_HIGH_ACCURACY,
            timeout_ms=settings.GEO_TIMEOUT_MS,
            maximum_age_ms=settings.GEO_MAXIMUM_AGE_MS,
        )


class GeolocationProvider(Protocol):
    async def get_current_position(self, options: GeolocationOptions) -> DevicePosition:
        ...


class ReportedPositionProvider:
    """Replays what the device reported for this attempt."""

    def __init__(
        self,
        clock,
        position: Optional[DevicePosition] = None,
        error: Optional[GeoErrorCode] = None,
        error_message: Optional[str] = None,
    ):
        self._clock = clock
        self._position = position
        self._error = error
        self._error_message = error_message

    @classmethod
    def from_request(cls, body: AttendanceMarkRequest, clock) -> "ReportedPositionProvider":
        position = None
        if body.position is not None:
            position = DevicePosition(
                latitude=body.position.latitude,
                longitude=body.position.longitude,
                accuracy_meters=body.position.accuracy,
                captured_at=body.position.captured_at or clock.now(),
            )
        return cls(clock, position=position, error=body.geo_error, error_message=body.geo_error_message)

    async def get_current_position(self, options: GeolocationOptions) -> DevicePosition:
        if self._error is not None:
            raise GEO_ERRORS[self._error](self._error_message)
        if self._position is None:
            raise GeoPositionUnavailableError()
        if options.maximum_age_ms > 0:
            age = self._clock.now() - self._position.captured_at
            if age > timedelta(milliseconds=options.maximum_age_ms):
                raise GeoPositionUnavailableError("Location fix is too old. Please retry.")
        return self._position


async def acquire_position(provider: GeolocationProvider, options: GeolocationOptions) -> DevicePosition:
    """Ask the provider for a fix; never waits longer than options.timeout_ms."""
    try:
        return await asyncio.wait_for(
            provider.get_current_position(options),
            timeout=options.timeout_ms / 1000.0,
        )
    except asyncio.TimeoutError:
        raise GeoTimeoutError()
