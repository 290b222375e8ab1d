"""
Unit tests for the haversine distance functions.

Tests:
1. Identity and symmetry
2. Known distances (one degree of latitude, Sacramento scenario)
3. Vectorised version agrees with the scalar version

Run with: python -m pytest Hydrant_Coverage/_tests/test_distance.py -v
"""

import math
import random

import numpy as np
import pytest

from Hydrant_Coverage.spatial.distance import (
    EARTH_RADIUS_FT,
    haversine_distance_ft,
    haversine_distances_ft,
)


class TestHaversineScalar:
    """Scalar haversine distance properties."""

    def test_identical_points_are_zero(self):
        assert haversine_distance_ft(38.58, -121.49, 38.58, -121.49) == 0.0

    def test_symmetric(self):
        rng = random.Random(7)
        for _ in range(50):
            a = (rng.uniform(-80, 80), rng.uniform(-180, 180))
            b = (rng.uniform(-80, 80), rng.uniform(-180, 180))
            d_ab = haversine_distance_ft(a[0], a[1], b[0], b[1])
            d_ba = haversine_distance_ft(b[0], b[1], a[0], a[1])
            assert d_ab == pytest.approx(d_ba, rel=1e-12)

    def test_distinct_points_are_positive(self):
        assert haversine_distance_ft(38.58, -121.49, 38.58, -121.4899) > 0

    def test_one_degree_of_latitude(self):
        expected = EARTH_RADIUS_FT * math.pi / 180.0
        assert haversine_distance_ft(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected)

    def test_sacramento_address_to_hydrant(self):
        d = haversine_distance_ft(38.581, -121.491, 38.58, -121.49)
        assert d == pytest.approx(463.0, abs=2.0)

    def test_sacramento_address_to_station(self):
        d = haversine_distance_ft(38.581, -121.491, 38.60, -121.50)
        assert d == pytest.approx(7391.0, abs=10.0)
        assert d > 5280.0


class TestHaversineVectorised:
    """Numpy version used by the grid's exact phase."""

    def test_matches_scalar(self):
        rng = random.Random(11)
        lats = [rng.uniform(38.5, 38.7) for _ in range(25)]
        lons = [rng.uniform(-121.6, -121.4) for _ in range(25)]
        result = haversine_distances_ft(38.58, -121.49, lats, lons)

        assert isinstance(result, np.ndarray)
        assert result.shape == (25,)
        for i in range(25):
            assert result[i] == pytest.approx(
                haversine_distance_ft(38.58, -121.49, lats[i], lons[i]), rel=1e-9
            )

    def test_empty_candidates(self):
        assert haversine_distances_ft(38.58, -121.49, [], []).shape == (0,)
