"""Stitch deduplicated segments into one continuous south-to-north polyline."""

from __future__ import annotations

import logging
from typing import NamedTuple, Protocol, Sequence

from .models import ChainResult, Point, Polyline, Segment

logger = logging.getLogger(__name__)


class Selection(NamedTuple):
    """Index of the next segment to append and whether to reverse it first."""

    index: int
    reverse: bool


class NextSegmentSelector(Protocol):
    """Strategy choosing which unused segment continues the trail."""

    def select(self, tail: Point, candidates: Sequence[Segment], used: set[int]) -> Selection | None: ...


def _dist_sq(a: Point, b: Point) -> float:
    # Planar degree space, not geodesic.
    dx = a.lon - b.lon
    dy = a.lat - b.lat
    return dx * dx + dy * dy


class NearestEndpointSelector:
    """Greedy choice of the unused segment endpoint closest to the tail.

    Every call rescans all unused candidates. Ties go to the earliest
    candidate, and to its first point over its last.
    """

    def select(self, tail: Point, candidates: Sequence[Segment], used: set[int]) -> Selection | None:
        best: Selection | None = None
        best_dist = float("inf")

        for i, seg in enumerate(candidates):
            if i in used:
                continue
            to_first = _dist_sq(tail, seg[0])
            to_last = _dist_sq(tail, seg[-1])
            if to_first < best_dist:
                best_dist = to_first
                best = Selection(i, False)
            if to_last < best_dist:
                best_dist = to_last
                best = Selection(i, True)

        return best


def orient_south_to_north(segment: Segment) -> Segment:
    """Return the segment running from its southern end to its northern end."""
    if segment[0].lat <= segment[-1].lat:
        return list(segment)
    return segment[::-1]


def chain_segments(
    segments: list[Segment],
    selector: NextSegmentSelector | None = None,
) -> ChainResult:
    """Order segments into a single trail starting from the southernmost one.

    The result may still contain consecutive duplicate points where segments
    meet; see ``remove_consecutive_duplicates``.
    """
    if not segments:
        return ChainResult(points=[])
    if len(segments) == 1:
        return ChainResult(points=list(segments[0]))

    selector = selector or NearestEndpointSelector()

    oriented = [orient_south_to_north(seg) for seg in segments]
    oriented.sort(key=lambda seg: seg[0].lat)

    ordered: Polyline = list(oriented[0])
    used = {0}

    while len(used) < len(oriented):
        choice = selector.select(ordered[-1], oriented, used)
        if choice is None:
            break
        if choice.index in used or not 0 <= choice.index < len(oriented):
            logger.warning(f"Selector chose unavailable segment {choice.index}; stopping")
            break
        nxt = oriented[choice.index]
        ordered.extend(nxt[::-1] if choice.reverse else nxt)
        used.add(choice.index)

    unused = len(oriented) - len(used)
    if unused:
        logger.warning(f"Chaining stopped early: {unused} of {len(oriented)} segments left unplaced")
    return ChainResult(points=ordered, unused_segments=unused)


def remove_consecutive_duplicates(points: Sequence[Point]) -> Polyline:
    """Drop points identical to their predecessor."""
    result: Polyline = []
    for p in points:
        if not result or p != result[-1]:
            result.append(p)
    return result
