"""KMZ/KML reader: extracts trail line segments from LineString elements.

KMZ is a ZIP archive containing KML. KML coordinates are always WGS84 (EPSG:4326)
in ``longitude,latitude,altitude`` format; altitude is ignored here since
elevation comes from the DEM service.
"""

from __future__ import annotations

import io
import logging
import math
import zipfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import BinaryIO

from .models import Point, Segment

logger = logging.getLogger(__name__)


def read_segments(file: str | Path | bytes | BinaryIO) -> list[Segment]:
    """Read a KMZ (or plain KML) file and return one Segment per LineString.

    Args:
        file: Path to a .kmz/.kml file, raw bytes, or a file-like object containing KMZ/KML bytes.
    """
    data = _read_bytes(file)

    # KMZ is a ZIP; plain KML is XML text
    if _is_zip(data):
        kml_text = _extract_kml_from_kmz(data)
    else:
        kml_text = data.decode("utf-8", errors="replace")

    try:
        root = ET.fromstring(kml_text)
    except ET.ParseError as exc:
        raise ValueError(f"Invalid KML document: {exc}") from exc

    segments = _extract_segments(root)
    logger.info(f"Found {len(segments)} LineString segments ({sum(len(s) for s in segments)} points)")
    return segments


def _read_bytes(file: str | Path | bytes | BinaryIO) -> bytes:
    if isinstance(file, bytes):
        return file
    if isinstance(file, (str, Path)):
        with open(file, "rb") as f:
            return f.read()
    return file.read()


def _is_zip(data: bytes) -> bool:
    return data[:4] == b"PK\x03\x04"


def _extract_kml_from_kmz(data: bytes) -> str:
    """Extract the first .kml file from a KMZ (ZIP) archive."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        # Prefer doc.kml, fall back to any .kml
        names = zf.namelist()
        kml_name = next((n for n in names if n.lower() == "doc.kml"), None)
        if kml_name is None:
            kml_name = next((n for n in names if n.lower().endswith(".kml")), None)
        if kml_name is None:
            raise ValueError("No .kml file found in KMZ archive")
        return zf.read(kml_name).decode("utf-8", errors="replace")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _extract_segments(root: ET.Element) -> list[Segment]:
    """Walk the KML tree and collect the coordinates of every LineString."""
    segments: list[Segment] = []

    for elem in root.iter():
        if _local_name(elem.tag) != "LineString":
            continue
        for child in elem:
            if _local_name(child.tag) == "coordinates" and child.text:
                points = _parse_coordinates_text(child.text)
                if len(points) > 1:
                    segments.append(points)

    return segments


def _parse_coordinates_text(text: str) -> Segment:
    """Parse a KML ``<coordinates>`` text block, dropping malformed tuples.

    Format: ``lon,lat[,alt] lon,lat[,alt] ...`` (whitespace-separated tuples).
    """
    points: Segment = []
    for token in text.strip().split():
        parts = token.split(",")
        if len(parts) < 2:
            continue
        try:
            lon = float(parts[0])
            lat = float(parts[1])
        except ValueError:
            continue
        if math.isnan(lon) or math.isnan(lat):
            continue
        points.append(Point(lon=lon, lat=lat))
    return points
