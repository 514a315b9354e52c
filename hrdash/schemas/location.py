"""
Location schemas: the company-owned assigned location and a captured device position.
"""
from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from hrdash.utils.datetime_utils import ensure_utc


class AssignedLocation(BaseModel):
    """
    Work location assigned to an employee. Read-only for the attendance flow.

    Accepts the HR API's field names (LocationID, Latitude, AllowedRadius, ...)
    as well as snake_case.
    """
    location_id: int = Field(..., validation_alias=AliasChoices("location_id", "locationId", "LocationID"))
    name: str = Field(..., validation_alias=AliasChoices("name", "locationName", "LocationName", "Name"))
    latitude: Optional[float] = Field(
        None, ge=-90, le=90, validation_alias=AliasChoices("latitude", "Latitude", "lat")
    )
    longitude: Optional[float] = Field(
        None, ge=-180, le=180, validation_alias=AliasChoices("longitude", "Longitude", "lng")
    )
    allowed_radius_meters: float = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("allowed_radius_meters", "allowedRadius", "AllowedRadius", "allowedRadiusMeters"),
    )
    coordinates_flag: Optional[bool] = Field(
        None, validation_alias=AliasChoices("coordinates_flag", "hasCoordinates", "HasCoordinates")
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @property
    def has_coordinates(self) -> bool:
        """True when both coordinates are present and the API has not flagged them as unset."""
        if self.coordinates_flag is False:
            return False
        return self.latitude is not None and self.longitude is not None


class DevicePosition(BaseModel):
    """A single position fix from the device. Ephemeral; never persisted here."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy_meters: Optional[float] = Field(None, gt=0)
    captured_at: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("captured_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class LocationValidationOut(BaseModel):
    within_radius: bool
    distance_meters: int
    location_name: str
    allowed_radius_meters: float
