"""
Geofence check: is a captured device position close enough to the assigned location?

Pure functions only; acquiring the position is the caller's job.
"""
from dataclasses import dataclass
from typing import Optional

from hrdash.core.exceptions import NoCoordinatesConfiguredError, NoLocationAssignedError
from hrdash.schemas.location import AssignedLocation, DevicePosition, LocationValidationOut
from hrdash.utils.geo import haversine_distance


@dataclass(frozen=True)
class LocationValidation:
    within_radius: bool
    distance_meters: float
    location_name: str
    allowed_radius_meters: float

    @property
    def rounded_distance(self) -> int:
        return int(round(self.distance_meters))

    def to_schema(self) -> LocationValidationOut:
        return LocationValidationOut(
            within_radius=self.within_radius,
            distance_meters=self.rounded_distance,
            location_name=self.location_name,
            allowed_radius_meters=self.allowed_radius_meters,
        )


def validate_location(assigned: Optional[AssignedLocation], position: DevicePosition) -> LocationValidation:
    """
    Compare a position against the assigned location's circle.

    The boundary is inclusive: a position exactly `allowed_radius_meters`
    away is inside. Comparison uses the unrounded distance.

    Raises:
        NoLocationAssignedError: no location at all
        NoCoordinatesConfiguredError: location exists but has no coordinates
    """
    if assigned is None:
        raise NoLocationAssignedError()
    if not assigned.has_coordinates:
        raise NoCoordinatesConfiguredError(assigned.name)

    distance = haversine_distance(
        assigned.latitude, assigned.longitude, position.latitude, position.longitude
    )
    return LocationValidation(
        within_radius=distance <= assigned.allowed_radius_meters,
        distance_meters=distance,
        location_name=assigned.name,
        allowed_radius_meters=assigned.allowed_radius_meters,
    )
