"""
Great-circle distance between two GPS coordinates.
"""
import math

from hrdash.core.constants import EARTH_RADIUS_METERS


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in meters between two latitude/longitude pairs (haversine formula)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def offset_north(lat: float, lng: float, meters: float) -> tuple:
    """Point `meters` due north of (lat, lng); handy for building geofence fixtures."""
    return lat + math.degrees(meters / EARTH_RADIUS_METERS), lng
