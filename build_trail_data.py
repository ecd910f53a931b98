"""Build the trail data files from the source KML: ordered full trail, simplified trail, and
mileage/elevation samples, plus an elevation profile plot.

This script uses the trail_pipeline library for every processing stage and only adds
file locations, the plot and console output on top. Constants such as the authoritative
total or the simplification target come from ``TRAIL_*`` environment variables.
"""

import asyncio
import logging
from pathlib import Path

import matplotlib.pyplot as plt

from trail_pipeline import OpenMeteoElevationClient, PipelineSettings, build_trail, read_segments
from trail_pipeline.models import TrailBuildResult, TrailSample
from trail_pipeline.output import (
    polyline_to_geojson,
    round_coordinates,
    samples_to_rows,
    write_json,
    write_samples_csv,
)

DATA_DIR = Path(__file__).parent / "data"
TRAIL_KML = DATA_DIR / "trail.kml"
OUTPUT_GEOJSON = DATA_DIR / "trail.geojson"
OUTPUT_SIMPLIFIED = DATA_DIR / "trail-simplified.json"
OUTPUT_SAMPLES = DATA_DIR / "trail-with-miles.json"
OUTPUT_CSV = DATA_DIR / "trail-with-miles.csv"
OUTPUT_PLOT = DATA_DIR / "trail_profile.png"


def plot_profile(samples: list[TrailSample], path: Path, title: str = "Trail Elevation Profile") -> None:
    """Plot elevation against trail mile, leaving gaps where elevation is unknown."""
    miles = [s.miles for s in samples]
    elevations = [s.elevation_ft if s.elevation_ft is not None else float("nan") for s in samples]

    fig, ax = plt.subplots(figsize=(14, 5))
    ax.fill_between(miles, elevations, alpha=0.3, color="forestgreen")
    ax.plot(miles, elevations, color="forestgreen", linewidth=0.6)

    ax.set_xlabel("Trail mile")
    ax.set_ylabel("Elevation (ft)")
    ax.set_title(title)
    ax.set_xlim(0, miles[-1])
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    print(f"Plot saved: {path}")


def write_outputs(result: TrailBuildResult) -> None:
    write_json(OUTPUT_GEOJSON, polyline_to_geojson(result.full))
    print(f"GeoJSON written: {OUTPUT_GEOJSON} ({len(result.full):,} points)")

    write_json(OUTPUT_SIMPLIFIED, round_coordinates(result.simplified))
    print(f"Simplified trail written: {OUTPUT_SIMPLIFIED} ({len(result.simplified):,} points)")

    write_json(OUTPUT_SAMPLES, samples_to_rows(result.samples))
    write_samples_csv(OUTPUT_CSV, result.samples)
    print(f"Samples written: {OUTPUT_SAMPLES}, {OUTPUT_CSV}")


async def run(settings: PipelineSettings) -> TrailBuildResult:
    segments = read_segments(TRAIL_KML)
    async with OpenMeteoElevationClient(settings.elevation_api_url, settings.elevation_timeout_s) as client:
        return await build_trail(segments, settings, elevation_client=client)


def main():
    settings = PipelineSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    print(f"Reading KML: {TRAIL_KML}\n")
    result = asyncio.run(run(settings))
    meta = result.metadata

    print(f"Segments:      {meta.raw_segments:,} raw, {meta.unique_segments:,} unique")
    print(f"Full trail:    {meta.full_points:,} points")
    print(f"Simplified:    {meta.simplified_points:,} points")
    print(f"Raw length:    {meta.raw_total_miles:,.1f} mi  (scale {meta.scale:.6f} to {meta.total_miles} mi)")
    first, last = result.samples[0], result.samples[-1]
    print(f"Start:         lat={first.lat:.4f}, lon={first.lon:.4f}, mile {first.miles}")
    print(f"End:           lat={last.lat:.4f}, lon={last.lon:.4f}, mile {last.miles}")
    for warning in result.warnings:
        print(f"WARNING: {warning}")
    print()

    write_outputs(result)
    plot_profile(result.samples, OUTPUT_PLOT)


if __name__ == "__main__":
    main()
