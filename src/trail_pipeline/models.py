"""Pydantic data models for the trail pipeline."""

from pydantic import BaseModel, ConfigDict


class Point(BaseModel):
    """A lon/lat vertex in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lon: float
    lat: float


Segment = list[Point]
Polyline = list[Point]


class TrailSample(BaseModel):
    """A simplified trail vertex annotated with mileage and elevation."""

    lon: float
    lat: float
    miles: float
    elevation_ft: int | None = None


class ChainResult(BaseModel):
    """Output of segment chaining."""

    points: list[Point]
    unused_segments: int = 0

    @property
    def complete(self) -> bool:
        return self.unused_segments == 0


class DistanceProfile(BaseModel):
    """Cumulative miles along a polyline, rescaled to the authoritative total."""

    miles: list[float]
    raw_total: float
    scale: float


class TrailMetadata(BaseModel):
    """Counts collected while building a trail."""

    raw_segments: int
    unique_segments: int
    full_points: int
    simplified_points: int
    raw_total_miles: float
    total_miles: float
    scale: float
    unknown_elevations: int


class TrailBuildResult(BaseModel):
    """Complete result of building a trail from raw segments."""

    metadata: TrailMetadata
    full: list[Point]
    simplified: list[Point]
    samples: list[TrailSample]
    warnings: list[str] = []


class TrailSnap(BaseModel):
    """Position of an arbitrary point relative to the trail."""

    distance_miles: float
    trail_mile: float
    trail_elevation_ft: int | None = None
    on_trail: bool
