"""
Nearest-Match Query
===================
Great-circle (haversine) distance from a point to every on-duty pharmacy
that has coordinates; the closest one wins.
"""
import math

from .errors import MalformedQuery
from .models import NearestMatch

EARTH_RADIUS_KM = 6371


def haversine_km(lat1, lon1, lat2, lon2):
    """Distance in kilometers between two (lat, lon) points."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def find_nearest(latitude, longitude, records):
    """
    Closest on-duty record to (latitude, longitude).

    Records that are closed or lack a coordinate are skipped. On equal
    distances the record seen first is kept.

    Returns:
        NearestMatch with the distance rounded to 3 decimals, or None.
    """
    nearest = None
    min_distance = math.inf

    for record in records:
        if not record.is_open or not record.has_location:
            continue
        distance = haversine_km(latitude, longitude, record.latitude, record.longitude)
        if distance < min_distance:
            min_distance = distance
            nearest = record

    if nearest is None:
        return None
    return NearestMatch(record=nearest, distance_km=round(min_distance, 3))


def query_nearest(store, latitude, longitude):
    return find_nearest(latitude, longitude, store.get_open())


def _coerce(value, label):
    if value is None or value == '':
        raise MalformedQuery(f"{label} is required")
    if isinstance(value, bool):
        raise MalformedQuery(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedQuery(f"{label} must be a number")
    if not math.isfinite(number):
        raise MalformedQuery(f"{label} must be a finite number")
    return number


def parse_query_point(latitude, longitude):
    """
    Validate a query point coming from the transport layer.
    Raises MalformedQuery; returns (lat, lon) floats.
    """
    lat = _coerce(latitude, 'latitude')
    lon = _coerce(longitude, 'longitude')

    if not -90 <= lat <= 90:
        raise MalformedQuery("latitude must be between -90 and 90")
    if not -180 <= lon <= 180:
        raise MalformedQuery("longitude must be between -180 and 180")
    return lat, lon
