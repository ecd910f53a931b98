"""Tests for output serialization."""

import csv
import json

from conftest import pts

from trail_pipeline.models import TrailSample
from trail_pipeline.output import (
    polyline_to_geojson,
    round_coordinates,
    samples_to_rows,
    write_json,
    write_samples_csv,
)


class TestOutput:
    def test_geojson_linestring(self):
        obj = polyline_to_geojson(pts((-84.19, 34.63), (-84.18, 34.70)), name="Appalachian Trail")
        feature = obj["features"][0]
        assert obj["type"] == "FeatureCollection"
        assert feature["properties"] == {"name": "Appalachian Trail"}
        assert feature["geometry"]["coordinates"] == [[-84.19, 34.63], [-84.18, 34.70]]

    def test_round_coordinates(self):
        assert round_coordinates(pts((-84.193712, 34.626601))) == [[-84.1937, 34.6266]]

    def test_rows_keep_unknown_elevation(self):
        samples = [TrailSample(lon=1.0, lat=2.0, miles=0.0, elevation_ft=None)]
        assert samples_to_rows(samples) == [[1.0, 2.0, 0.0, None]]

    def test_write_json_compact(self, tmp_path):
        path = tmp_path / "out" / "trail.json"
        write_json(path, [[1.0, 2.0]])
        assert path.read_text() == "[[1.0,2.0]]"
        assert json.loads(path.read_text()) == [[1.0, 2.0]]

    def test_write_samples_csv(self, tmp_path):
        path = tmp_path / "samples.csv"
        write_samples_csv(path, [TrailSample(lon=1.0, lat=2.0, miles=3.5, elevation_ft=400)])
        with path.open(newline="") as fp:
            rows = list(csv.DictReader(fp))
        assert rows == [{"lon": "1.0", "lat": "2.0", "miles": "3.5", "elevation_ft": "400"}]
