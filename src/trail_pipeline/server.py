"""FastAPI server for trail processing."""

from __future__ import annotations

import csv
import io
import zipfile
from typing import AsyncIterator

from fastapi import Depends, FastAPI, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse

from .config import PipelineSettings
from .elevation import ElevationClient, OpenMeteoElevationClient
from .kml_reader import read_segments
from .models import TrailBuildResult, TrailSample
from .output import SAMPLE_FIELDS
from .pipeline import build_trail

app = FastAPI(title="Trail Pipeline", version="0.1.0")

ACCEPTED_EXTS = (".kml", ".kmz")


def get_settings() -> PipelineSettings:
    return PipelineSettings()


async def get_elevation_client(
    elevation: bool = Query(False),
    settings: PipelineSettings = Depends(get_settings),
) -> AsyncIterator[ElevationClient | None]:
    """Open an elevation client only for requests that ask for elevation."""
    if not elevation:
        yield None
        return
    async with OpenMeteoElevationClient(settings.elevation_api_url, settings.elevation_timeout_s) as client:
        yield client


@app.post("/process")
async def process_trail(
    file: UploadFile,
    format: str = Query("csv", pattern="^(csv|json)$"),
    target: int | None = Query(None, ge=2),
    elevation: bool = Query(False),
    settings: PipelineSettings = Depends(get_settings),
    client: ElevationClient | None = Depends(get_elevation_client),
):
    """Build a trail from an uploaded KML/KMZ file.

    Query options:
    - ``target``: simplified vertex count (defaults to the configured target)
    - ``elevation``: look up DEM elevations for the simplified vertices
    """
    filename = (file.filename or "").lower()
    if not filename.endswith(ACCEPTED_EXTS):
        raise HTTPException(status_code=400, detail="Upload a .kml or .kmz file")

    if target is not None:
        settings = settings.model_copy(update={"simplification_target_count": target})

    content = await file.read()
    try:
        segments = read_segments(content)
        result = await build_trail(segments, settings, elevation_client=client if elevation else None)
    except (ValueError, zipfile.BadZipFile) as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if format == "json":
        return result

    return _samples_to_csv_response(result)


def _samples_to_csv_response(result: TrailBuildResult) -> StreamingResponse:
    """Convert trail samples to a streaming CSV response."""
    samples: list[TrailSample] = result.samples

    def generate():
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=SAMPLE_FIELDS)
        writer.writeheader()
        yield buf.getvalue()
        buf.seek(0)
        buf.truncate(0)

        for sample in samples:
            writer.writerow(sample.model_dump())
            yield buf.getvalue()
            buf.seek(0)
            buf.truncate(0)

    return StreamingResponse(
        generate(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=trail_samples.csv"},
    )
