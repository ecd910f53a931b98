"""Cumulative great-circle mileage along a polyline."""

import logging
import math
from typing import Sequence

from .errors import DegenerateTrailError
from .models import DistanceProfile, Point

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(a: Point, b: Point) -> float:
    """Great-circle distance between two points in miles."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.lon - a.lon)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def cumulative_miles(points: Sequence[Point]) -> list[float]:
    """Running haversine total, starting at 0 for the first point."""
    miles: list[float] = []
    total = 0.0
    for i, p in enumerate(points):
        if i:
            total += haversine_miles(points[i - 1], p)
        miles.append(total)
    return miles


def scale_to_total(raw: Sequence[float], total: float) -> tuple[list[float], float]:
    """Rescale cumulative miles so the last value equals ``total``.

    Returns (scaled, scale). A zero-length trail cannot be rescaled and
    raises DegenerateTrailError.
    """
    if not raw or raw[-1] <= 0:
        raise DegenerateTrailError("Trail has zero length; cannot scale mileage")

    scale = total / raw[-1]
    scaled = [min(m * scale, total) for m in raw]
    scaled[-1] = total
    return scaled, scale


def accumulate_distance(points: Sequence[Point], total: float) -> DistanceProfile:
    """Cumulative miles along ``points`` matched to an authoritative total."""
    raw = cumulative_miles(points)
    scaled, scale = scale_to_total(raw, total)
    logger.info(f"Raw haversine total {raw[-1]:.1f} mi, scale factor {scale:.6f}")
    return DistanceProfile(miles=scaled, raw_total=raw[-1], scale=scale)
