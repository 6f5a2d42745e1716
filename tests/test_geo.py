"""Tests for great-circle distance."""

import math
import random

import pytest

from utils.geo import EARTH_RADIUS_METERS, distance_meters, proximity_bucket

NEW_YORK = (-74.006, 40.7128)
LOS_ANGELES = (-118.2437, 34.0522)


def random_point(rng):
    return (rng.uniform(-180, 180), rng.uniform(-90, 90))


class TestDistanceMeters:
    def test_known_distance(self):
        # New York to Los Angeles is roughly 3936 km
        assert distance_meters(NEW_YORK, LOS_ANGELES) == pytest.approx(3_936_000, rel=0.01)

    def test_short_distance(self):
        # 0.0001 degrees of latitude is about 11 m
        assert distance_meters((-74.006, 40.7128), (-74.006, 40.7129)) == pytest.approx(11.1, abs=0.2)

    def test_symmetric_and_reflexive(self):
        rng = random.Random(7)
        for _ in range(500):
            a, b = random_point(rng), random_point(rng)
            assert abs(distance_meters(a, b) - distance_meters(b, a)) < 1e-3
            assert distance_meters(a, a) < 1e-3
            assert distance_meters(a, b) >= 0

    def test_antipodal(self):
        distance = distance_meters((0, 0), (180, 0))
        assert distance == pytest.approx(math.pi * EARTH_RADIUS_METERS)
        assert distance_meters((-45.0, 30.0), (135.0, -30.0)) >= 0

    def test_nan_propagates(self):
        assert math.isnan(distance_meters((float('nan'), 0), (0, 0)))


class TestProximityBucket:
    def test_same_bucket_points_are_within_radius(self):
        rng = random.Random(11)
        radius = 50
        for _ in range(200):
            base = (rng.uniform(-179, 179), rng.uniform(-80, 80))
            nearby = (base[0] + rng.uniform(-0.0005, 0.0005), base[1] + rng.uniform(-0.0005, 0.0005))
            if proximity_bucket(base, radius) == proximity_bucket(nearby, radius):
                assert distance_meters(base, nearby) <= radius

    def test_far_points_differ(self):
        assert proximity_bucket(NEW_YORK, 50) != proximity_bucket(LOS_ANGELES, 50)
