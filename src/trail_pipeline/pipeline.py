"""End-to-end trail build: raw segments in, simplified annotated trail out."""

from __future__ import annotations

import asyncio
import logging
from typing import NamedTuple, Sequence

from .chaining import NextSegmentSelector, chain_segments, remove_consecutive_duplicates
from .config import PipelineSettings
from .dedup import deduplicate_segments
from .distance import accumulate_distance
from .elevation import ElevationClient, ElevationEnricher, Sleep
from .errors import EmptyTrailError
from .models import (
    DistanceProfile,
    Point,
    Polyline,
    Segment,
    TrailBuildResult,
    TrailMetadata,
    TrailSample,
)
from .simplify import simplify_to_target

logger = logging.getLogger(__name__)


class FullTrail(NamedTuple):
    points: Polyline
    unique_segments: int
    unused_segments: int


def build_full_trail(segments: list[Segment], selector: NextSegmentSelector | None = None) -> FullTrail:
    """Deduplicate, chain and clean segments into the full-resolution trail."""
    if not segments:
        raise EmptyTrailError("No trail segments to assemble")

    unique = deduplicate_segments(segments)
    chained = chain_segments(unique, selector)
    points = remove_consecutive_duplicates(chained.points)
    if len(points) < 2:
        raise EmptyTrailError(f"Assembled trail has {len(points)} distinct point(s), need at least 2")

    logger.info(f"Ordered trail: {len(chained.points)} points, {len(points)} after removing duplicates")
    return FullTrail(points, len(unique), chained.unused_segments)


def build_samples(
    points: Sequence[Point],
    distance: DistanceProfile,
    elevations: Sequence[int | None],
) -> list[TrailSample]:
    """Zip vertices, mileage (2 decimal places) and elevations into samples."""
    if not (len(points) == len(distance.miles) == len(elevations)):
        raise ValueError("points, miles and elevations must have the same length")
    return [
        TrailSample(lon=p.lon, lat=p.lat, miles=round(m, 2), elevation_ft=e)
        for p, m, e in zip(points, distance.miles, elevations)
    ]


async def build_trail(
    segments: list[Segment],
    settings: PipelineSettings | None = None,
    elevation_client: ElevationClient | None = None,
    sleep: Sleep = asyncio.sleep,
    selector: NextSegmentSelector | None = None,
) -> TrailBuildResult:
    """Run every stage in order.

    Structural problems (no usable trail, zero length) raise. Degraded
    results such as partial chaining or unknown elevations are reported in
    ``warnings`` instead.
    """
    settings = settings or PipelineSettings()
    warnings: list[str] = []

    full = build_full_trail(segments, selector)
    if full.unused_segments:
        warnings.append(f"Chaining stopped early with {full.unused_segments} segment(s) unplaced")

    simplified = simplify_to_target(
        full.points,
        settings.simplification_target_count,
        bounds=settings.simplification_tolerance_bounds,
        max_iterations=settings.simplification_max_iterations,
        tolerance_ratio=settings.simplification_tolerance_ratio,
    )

    distance = accumulate_distance(simplified, settings.authoritative_total_miles)

    if elevation_client is None:
        elevations: list[int | None] = [None] * len(simplified)
        warnings.append("Elevation lookup skipped; all elevations unknown")
    else:
        enricher = ElevationEnricher.from_settings(elevation_client, settings, sleep=sleep)
        elevations = await enricher.enrich(simplified)
        unknown = sum(1 for e in elevations if e is None)
        if unknown:
            warnings.append(f"{unknown} of {len(elevations)} points have unknown elevation")

    samples = build_samples(simplified, distance, elevations)
    metadata = TrailMetadata(
        raw_segments=len(segments),
        unique_segments=full.unique_segments,
        full_points=len(full.points),
        simplified_points=len(simplified),
        raw_total_miles=distance.raw_total,
        total_miles=settings.authoritative_total_miles,
        scale=distance.scale,
        unknown_elevations=sum(1 for e in elevations if e is None),
    )
    return TrailBuildResult(
        metadata=metadata,
        full=full.points,
        simplified=simplified,
        samples=samples,
        warnings=warnings,
    )
