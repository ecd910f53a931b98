"""Tests for distance-to-trail and snapping."""

import math

import pytest
from conftest import pts

from trail_pipeline import distance_to_trail, snap_to_trail
from trail_pipeline.models import Point, TrailSample
from trail_pipeline.proximity import project_to_segment


@pytest.fixture
def samples():
    return [
        TrailSample(lon=0, lat=0, miles=0.0, elevation_ft=100),
        TrailSample(lon=1, lat=0, miles=69.0, elevation_ft=200),
        TrailSample(lon=1, lat=1, miles=138.0, elevation_ft=None),
    ]


class TestProjectToSegment:
    def test_midpoint_offset(self):
        dist, t = project_to_segment(0.01, 0.5, Point(lon=0, lat=0), Point(lon=1, lat=0))
        assert t == pytest.approx(0.5)
        assert dist == pytest.approx(0.69, rel=1e-3)

    def test_clamped_before_start(self):
        dist, t = project_to_segment(0.0, -1.0, Point(lon=0, lat=0), Point(lon=1, lat=0))
        assert t == 0.0
        assert dist == pytest.approx(69.0)

    def test_degenerate_segment(self):
        p = Point(lon=0, lat=0)
        dist, t = project_to_segment(1.0, 0.0, p, p)
        assert t == 0.0
        assert dist == pytest.approx(69.0)


class TestDistanceToTrail:
    def test_nearest_segment_wins(self):
        trail = pts((0, 0), (1, 0), (1, 1))
        assert distance_to_trail(0.5, 1.0, trail) == pytest.approx(0.0)
        assert distance_to_trail(0.0, 0.5, trail) == pytest.approx(0.0)

    def test_too_short_trail(self):
        assert distance_to_trail(0.0, 0.0, pts((0, 0))) == math.inf


class TestSnapToTrail:
    def test_interpolates_mile_and_elevation(self, samples):
        snap = snap_to_trail(0.0, 0.25, samples)
        assert snap.trail_mile == 17.25
        assert snap.trail_elevation_ft == 125
        assert snap.distance_miles == pytest.approx(0.0)
        assert snap.on_trail

    def test_unknown_elevation(self, samples):
        snap = snap_to_trail(0.5, 1.0, samples)
        assert snap.trail_mile == 103.5
        assert snap.trail_elevation_ft is None

    def test_off_trail(self, samples):
        snap = snap_to_trail(-1.0, 0.5, samples)
        assert not snap.on_trail
        assert snap.distance_miles == pytest.approx(69.0, rel=1e-3)

    def test_threshold(self, samples):
        assert snap_to_trail(0.003, 0.5, samples).on_trail
        assert not snap_to_trail(0.003, 0.5, samples, threshold_miles=0.1).on_trail

    def test_needs_two_samples(self, samples):
        with pytest.raises(ValueError):
            snap_to_trail(0.0, 0.0, samples[:1])
