"""Serialization of pipeline outputs."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Sequence

from .models import Point, TrailSample

SAMPLE_FIELDS = ["lon", "lat", "miles", "elevation_ft"]


def round_coordinates(points: Sequence[Point], places: int = 4) -> list[list[float]]:
    """[lon, lat] pairs rounded for compact output (4 places is ~11 m)."""
    return [[round(p.lon, places), round(p.lat, places)] for p in points]


def polyline_to_geojson(points: Sequence[Point], name: str = "Trail") -> dict[str, Any]:
    """FeatureCollection with a single LineString feature."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": name},
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[p.lon, p.lat] for p in points],
                },
            }
        ],
    }


def samples_to_rows(samples: Sequence[TrailSample]) -> list[list[Any]]:
    """[lon, lat, miles, elevation_ft] rows in GeoJSON coordinate order."""
    return [[s.lon, s.lat, s.miles, s.elevation_ft] for s in samples]


def write_json(path: Path, obj: Any) -> None:
    """Write compact JSON to disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fp:
        json.dump(obj, fp, separators=(",", ":"))


def write_samples_csv(path: Path, samples: Sequence[TrailSample]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fp:
        writer = csv.DictWriter(fp, fieldnames=SAMPLE_FIELDS)
        writer.writeheader()
        writer.writerows(s.model_dump() for s in samples)
