"""Trail line processing: stitch, simplify, measure and elevate a long-distance trail."""

from .chaining import NearestEndpointSelector, chain_segments, remove_consecutive_duplicates
from .config import PipelineSettings
from .dedup import deduplicate_segments
from .distance import accumulate_distance, haversine_miles
from .elevation import ElevationEnricher, OpenMeteoElevationClient
from .errors import DegenerateTrailError, EmptyTrailError, TrailPipelineError
from .kml_reader import read_segments
from .models import Point, TrailBuildResult, TrailSample
from .pipeline import build_full_trail, build_trail
from .proximity import distance_to_trail, snap_to_trail
from .simplify import douglas_peucker, simplify_to_target

__all__ = [
    "DegenerateTrailError",
    "ElevationEnricher",
    "EmptyTrailError",
    "NearestEndpointSelector",
    "OpenMeteoElevationClient",
    "PipelineSettings",
    "Point",
    "TrailBuildResult",
    "TrailPipelineError",
    "TrailSample",
    "accumulate_distance",
    "build_full_trail",
    "build_trail",
    "chain_segments",
    "deduplicate_segments",
    "distance_to_trail",
    "douglas_peucker",
    "haversine_miles",
    "read_segments",
    "remove_consecutive_duplicates",
    "simplify_to_target",
    "snap_to_trail",
]
