"""Douglas-Peucker simplification driven towards a target vertex count.

All geometry is done directly on lon/lat degrees. At trail scale the
tolerances involved are tiny compared to Earth curvature, so no projection
is applied.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from .models import Point, Polyline

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_BOUNDS = (0.0, 0.1)
DEFAULT_MAX_ITERATIONS = 30
DEFAULT_TOLERANCE_RATIO = 0.05


def perpendicular_distance(point: Point, start: Point, end: Point) -> float:
    """Distance from ``point`` to the chord ``start -> end``, in degrees.

    The projection is clamped to the chord, so points beyond either end are
    measured to the nearer endpoint.
    """
    dx = end.lon - start.lon
    dy = end.lat - start.lat
    len_sq = dx * dx + dy * dy

    if len_sq == 0:
        return math.hypot(point.lon - start.lon, point.lat - start.lat)

    t = ((point.lon - start.lon) * dx + (point.lat - start.lat) * dy) / len_sq
    t = max(0.0, min(1.0, t))

    proj_x = start.lon + t * dx
    proj_y = start.lat + t * dy
    return math.hypot(point.lon - proj_x, point.lat - proj_y)


def douglas_peucker(points: Sequence[Point], epsilon: float) -> Polyline:
    """Reduce ``points`` keeping every vertex further than ``epsilon`` from its chord.

    Index ranges are processed from an explicit stack rather than by
    recursion, so very long trails do not exhaust the call stack.
    """
    n = len(points)
    if n <= 2:
        return list(points)

    keep = bytearray(n)
    keep[0] = keep[n - 1] = 1
    stack: list[tuple[int, int]] = [(0, n - 1)]

    while stack:
        start, end = stack.pop()
        if end - start <= 1:
            continue

        max_dist = 0.0
        max_idx = start
        a, b = points[start], points[end]
        for i in range(start + 1, end):
            d = perpendicular_distance(points[i], a, b)
            if d > max_dist:
                max_dist = d
                max_idx = i

        if max_dist > epsilon:
            keep[max_idx] = 1
            stack.append((start, max_idx))
            stack.append((max_idx, end))

    return [p for p, k in zip(points, keep) if k]


def simplify_to_target(
    points: Sequence[Point],
    target: int,
    bounds: tuple[float, float] = DEFAULT_TOLERANCE_BOUNDS,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    tolerance_ratio: float = DEFAULT_TOLERANCE_RATIO,
) -> Polyline:
    """Binary-search the Douglas-Peucker tolerance for roughly ``target`` points.

    Returns the first result within ``tolerance_ratio * target`` of the
    target, otherwise the last result that did not exceed it. If no tolerance
    in ``bounds`` gets at or below the target, the input is returned as is.
    """
    if target < 2:
        raise ValueError(f"target must be at least 2, got {target}")
    if len(points) <= target:
        return list(points)

    lo, hi = bounds
    best: Polyline = list(points)

    for iteration in range(max_iterations):
        mid = (lo + hi) / 2
        result = douglas_peucker(points, mid)

        if len(result) > target:
            lo = mid
        else:
            hi = mid
            best = result

        if abs(len(result) - target) <= target * tolerance_ratio:
            best = result
            logger.debug(f"Converged after {iteration + 1} iterations at epsilon={mid:.8f}")
            break
    else:
        logger.debug(f"Tolerance search exhausted {max_iterations} iterations")

    logger.info(f"Simplified {len(points)} points -> {len(best)} (target {target})")
    return best
