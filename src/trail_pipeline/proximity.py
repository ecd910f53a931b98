"""Distance from arbitrary positions to the trail, and snapping onto it."""

from __future__ import annotations

import math
from typing import Sequence

from .models import Point, TrailSample, TrailSnap

MILES_PER_DEG_LAT = 69.0
DEFAULT_OFF_TRAIL_THRESHOLD_MILES = 0.25


def project_to_segment(lat: float, lon: float, a: Point, b: Point) -> tuple[float, float]:
    """Project a position onto segment a-b.

    Uses a local equirectangular approximation, fine for segments a few
    miles long. Returns (distance_miles, t) with t in [0, 1] along a-b.
    """
    miles_per_deg_lon = MILES_PER_DEG_LAT * math.cos(math.radians(lat))

    px = (lon - a.lon) * miles_per_deg_lon
    py = (lat - a.lat) * MILES_PER_DEG_LAT
    bx = (b.lon - a.lon) * miles_per_deg_lon
    by = (b.lat - a.lat) * MILES_PER_DEG_LAT

    seg_len_sq = bx * bx + by * by
    if seg_len_sq == 0:
        t = 0.0
    else:
        t = max(0.0, min(1.0, (px * bx + py * by) / seg_len_sq))

    return math.hypot(px - t * bx, py - t * by), t


def distance_to_trail(lat: float, lon: float, trail: Sequence[Point]) -> float:
    """Minimum distance in miles from a position to the trail polyline."""
    best = math.inf
    for i in range(len(trail) - 1):
        dist, _ = project_to_segment(lat, lon, trail[i], trail[i + 1])
        best = min(best, dist)
    return best


def snap_to_trail(
    lat: float,
    lon: float,
    samples: Sequence[TrailSample],
    threshold_miles: float = DEFAULT_OFF_TRAIL_THRESHOLD_MILES,
) -> TrailSnap:
    """Locate the nearest trail position and interpolate its mile and elevation."""
    if len(samples) < 2:
        raise ValueError("Need at least two trail samples to snap to")

    best_dist = math.inf
    best_t = 0.0
    best_idx = 0
    for i in range(len(samples) - 1):
        a, b = samples[i], samples[i + 1]
        dist, t = project_to_segment(lat, lon, Point(lon=a.lon, lat=a.lat), Point(lon=b.lon, lat=b.lat))
        if dist < best_dist:
            best_dist, best_t, best_idx = dist, t, i

    start, end = samples[best_idx], samples[best_idx + 1]
    elevation = None
    if start.elevation_ft is not None and end.elevation_ft is not None:
        elevation = round(start.elevation_ft + best_t * (end.elevation_ft - start.elevation_ft))

    return TrailSnap(
        distance_miles=best_dist,
        trail_mile=round(start.miles + best_t * (end.miles - start.miles), 2),
        trail_elevation_ft=elevation,
        on_trail=best_dist <= threshold_miles,
    )
