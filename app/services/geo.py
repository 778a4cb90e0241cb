"""Proximity search over hospital coordinates.

Candidates are narrowed in SQL with a bounding box over the
``(longitude, latitude)`` index, then filtered and ordered by exact
great-circle distance.
"""
import math
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..models.hospital import Hospital

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two (lat, lon) points."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bounding_box(latitude: float, longitude: float, radius_km: float):
    """Return (min_lat, max_lat, min_lon, max_lon); longitude bounds are None
    when the box touches a pole or wraps the antimeridian."""
    d_lat = math.degrees(radius_km / EARTH_RADIUS_KM)
    min_lat, max_lat = latitude - d_lat, latitude + d_lat

    if min_lat <= -90 or max_lat >= 90:
        return max(min_lat, -90.0), min(max_lat, 90.0), None, None

    d_lon = math.degrees(radius_km / (EARTH_RADIUS_KM * math.cos(math.radians(latitude))))
    min_lon, max_lon = longitude - d_lon, longitude + d_lon
    if min_lon < -180 or max_lon > 180:
        return min_lat, max_lat, None, None

    return min_lat, max_lat, min_lon, max_lon


def find_nearby_hospitals(
    db: Session,
    latitude: float,
    longitude: float,
    radius_km: float = 50.0,
    limit: Optional[int] = None,
    emergency_only: bool = False,
) -> List[Tuple[Hospital, float]]:
    """Active hospitals within ``radius_km``, nearest first, with distances."""
    min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, radius_km)

    query = db.query(Hospital).filter(
        Hospital.is_active.is_(True),
        Hospital.latitude >= min_lat,
        Hospital.latitude <= max_lat,
    )
    if min_lon is not None:
        query = query.filter(Hospital.longitude >= min_lon, Hospital.longitude <= max_lon)
    if emergency_only:
        query = query.filter(Hospital.emergency_services.is_(True))

    matches = []
    for hospital in query.all():
        distance = haversine_km(latitude, longitude, hospital.latitude, hospital.longitude)
        if distance <= radius_km:
            matches.append((hospital, distance))

    matches.sort(key=lambda match: match[1])
    if limit is not None:
        matches = matches[:limit]
    return matches
