"""Fatal pipeline errors. Elevation service errors live in ``elevation``."""


class TrailPipelineError(Exception):
    """Base error for an aborted trail build."""


class EmptyTrailError(TrailPipelineError, ValueError):
    """No usable polyline could be assembled from the input segments."""


class DegenerateTrailError(TrailPipelineError, ValueError):
    """The trail has zero length, so mileage cannot be scaled."""
