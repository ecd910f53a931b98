"""Collapse duplicate trail segments that share the same endpoints."""

import logging

from .models import Point, Segment

logger = logging.getLogger(__name__)

KEY_PRECISION = 3  # ~111 m


def _endpoint_label(point: Point) -> str:
    return f"{point.lat:.{KEY_PRECISION}f},{point.lon:.{KEY_PRECISION}f}"


def endpoint_key(segment: Segment) -> str:
    """Order-independent key built from a segment's rounded endpoints."""
    a = _endpoint_label(segment[0])
    b = _endpoint_label(segment[-1])
    return f"{a}|{b}" if a < b else f"{b}|{a}"


def deduplicate_segments(segments: list[Segment]) -> list[Segment]:
    """Keep the longest segment for each unique endpoint pair.

    Source files often contain the same stretch of trail several times, in
    either direction and at different resolutions.
    """
    by_key: dict[str, Segment] = {}
    for seg in segments:
        key = endpoint_key(seg)
        existing = by_key.get(key)
        if existing is None or len(seg) > len(existing):
            by_key[key] = seg

    unique = list(by_key.values())
    logger.info(f"Deduplicated {len(segments)} segments -> {len(unique)} unique")
    return unique
