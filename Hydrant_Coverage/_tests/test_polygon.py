"""
Unit tests for polygon containment and area.

Tests:
1. Ray casting on simple and multi-part polygons
2. Accepted input forms (Feature, geometry dict, Shapely)
3. Degenerate input never raises
4. Area sanity against the 69-mile-per-degree approximation
5. Containment agrees with Shapely away from the boundary

Run with: python -m pytest Hydrant_Coverage/_tests/test_polygon.py -v
"""

import random

import pytest
from shapely.geometry import MultiPolygon, Point, Polygon

from Hydrant_Coverage.spatial.polygon import (
    PreparedZone,
    extract_outer_rings,
    point_in_polygon,
    point_in_ring,
    polygon_area_sq_miles,
    ring_area_sq_miles,
    ring_centroid,
)


def _square(lon0, lat0, size, closed=True):
    ring = [
        [lon0, lat0],
        [lon0 + size, lat0],
        [lon0 + size, lat0 + size],
        [lon0, lat0 + size],
    ]
    if closed:
        ring.append([lon0, lat0])
    return ring


@pytest.fixture
def unit_square():
    return {"type": "Polygon", "coordinates": [_square(0.0, 0.0, 1.0)]}


@pytest.fixture
def two_squares():
    return {
        "type": "MultiPolygon",
        "coordinates": [[_square(0.0, 0.0, 1.0)], [_square(5.0, 5.0, 1.0)]],
    }


class TestPointInRing:
    """Even-odd ray casting on a single ring."""

    def test_inside_and_outside(self):
        ring = _square(0.0, 0.0, 1.0)
        assert point_in_ring(0.5, 0.5, ring)
        assert not point_in_ring(0.5, 1.5, ring)
        assert not point_in_ring(-0.5, 0.5, ring)

    def test_unclosed_ring_behaves_like_closed(self):
        closed = _square(0.0, 0.0, 1.0, closed=True)
        unclosed = _square(0.0, 0.0, 1.0, closed=False)
        for lat, lon in [(0.5, 0.5), (0.2, 0.9), (1.2, 0.5), (0.5, -0.1)]:
            assert point_in_ring(lat, lon, closed) == point_in_ring(lat, lon, unclosed)

    def test_concave_ring(self):
        # U shape opening north
        ring = [(0, 0), (3, 0), (3, 3), (2, 3), (2, 1), (1, 1), (1, 3), (0, 3)]
        assert point_in_ring(2.0, 0.5, ring)  # left arm
        assert point_in_ring(2.0, 2.5, ring)  # right arm
        assert not point_in_ring(2.0, 1.5, ring)  # the notch

    def test_fewer_than_three_vertices(self):
        assert not point_in_ring(0.0, 0.0, [])
        assert not point_in_ring(0.5, 0.5, [(0, 0), (1, 1)])


class TestPointInPolygon:
    """Multi-part handling and accepted input forms."""

    def test_geometry_dict(self, unit_square):
        assert point_in_polygon(0.5, 0.5, unit_square)
        assert not point_in_polygon(2.0, 2.0, unit_square)

    def test_feature_wrapper(self, unit_square):
        feature = {"type": "Feature", "properties": {"ZIP5": "95814"}, "geometry": unit_square}
        assert point_in_polygon(0.5, 0.5, feature)

    def test_multipolygon_any_part(self, two_squares):
        assert point_in_polygon(0.5, 0.5, two_squares)
        assert point_in_polygon(5.5, 5.5, two_squares)
        assert not point_in_polygon(3.0, 3.0, two_squares)

    def test_shapely_input(self):
        poly = MultiPolygon([Polygon(_square(0.0, 0.0, 1.0)), Polygon(_square(5.0, 5.0, 1.0))])
        assert point_in_polygon(5.5, 5.5, poly)
        assert not point_in_polygon(3.0, 3.0, poly)

    def test_holes_are_ignored(self):
        shell = _square(0.0, 0.0, 4.0)
        hole = _square(1.0, 1.0, 2.0)
        poly = {"type": "Polygon", "coordinates": [shell, hole]}
        assert point_in_polygon(2.0, 2.0, poly)

    @pytest.mark.parametrize(
        "polygon",
        [
            None,
            {},
            {"type": "Point", "coordinates": [0.0, 0.0]},
            {"type": "Polygon", "coordinates": []},
            {"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]},
            {"type": "Polygon", "coordinates": [[["a", "b"], [1, 1], [2, 2]]]},
            {"type": "Feature", "geometry": None},
            {"type": "Feature", "geometry": "Polygon"},
            {"type": "Polygon", "coordinates": 5},
            {"type": "Polygon", "coordinates": [5]},
            {"type": "MultiPolygon", "coordinates": [5]},
            {"type": "MultiPolygon", "coordinates": 5},
            {"type": "MultiPolygon", "coordinates": ["ring"]},
        ],
    )
    def test_degenerate_input_is_outside(self, polygon):
        assert point_in_polygon(0.5, 0.5, polygon) is False
        assert polygon_area_sq_miles(polygon) == 0.0

    def test_agrees_with_shapely(self):
        ring = [
            (-121.50, 38.55), (-121.45, 38.56), (-121.46, 38.59),
            (-121.48, 38.575), (-121.49, 38.61), (-121.52, 38.58),
        ]
        shapely_poly = Polygon(ring)
        geojson = {"type": "Polygon", "coordinates": [[list(v) for v in ring]]}
        rng = random.Random(23)
        checked = 0
        for _ in range(500):
            lon = rng.uniform(-121.53, -121.44)
            lat = rng.uniform(38.54, 38.62)
            pt = Point(lon, lat)
            if shapely_poly.boundary.distance(pt) < 1e-7:
                continue
            assert point_in_polygon(lat, lon, geojson) == shapely_poly.contains(pt)
            checked += 1
        assert checked > 400


class TestArea:
    """Shoelace area in square miles."""

    def test_one_degree_square_near_equator(self):
        area = ring_area_sq_miles(_square(0.0, 0.0, 1.0))
        assert area == pytest.approx(69.0 * 69.0, rel=0.05)

    def test_closed_and_unclosed_equal(self):
        assert ring_area_sq_miles(_square(0.0, 0.0, 1.0, closed=True)) == pytest.approx(
            ring_area_sq_miles(_square(0.0, 0.0, 1.0, closed=False))
        )

    def test_grows_with_scale(self):
        small = ring_area_sq_miles(_square(0.0, 0.0, 1.0))
        large = ring_area_sq_miles(_square(0.0, 0.0, 2.0))
        assert large > small
        assert large == pytest.approx(4 * small, rel=0.01)

    def test_shrinks_with_latitude(self):
        equator = ring_area_sq_miles(_square(0.0, 0.0, 1.0))
        north = ring_area_sq_miles(_square(0.0, 59.5, 1.0))
        assert north == pytest.approx(equator * 0.5, rel=0.02)

    def test_orientation_independent(self):
        ring = _square(0.0, 0.0, 1.0)
        assert ring_area_sq_miles(ring) == pytest.approx(ring_area_sq_miles(ring[::-1]))

    def test_multipolygon_sums_parts(self, two_squares):
        expected = ring_area_sq_miles(_square(0.0, 0.0, 1.0)) + ring_area_sq_miles(
            _square(5.0, 5.0, 1.0)
        )
        assert polygon_area_sq_miles(two_squares) == pytest.approx(expected)

    def test_collinear_ring_has_zero_area(self):
        assert ring_area_sq_miles([(0, 0), (1, 0), (2, 0)]) == 0.0


class TestHelpers:
    """Ring extraction, centroid and PreparedZone."""

    def test_extract_outer_rings_only(self):
        poly = {"type": "Polygon", "coordinates": [_square(0, 0, 4), _square(1, 1, 2)]}
        rings = extract_outer_rings(poly)
        assert len(rings) == 1
        assert rings[0][0] == (0.0, 0.0)

    def test_ring_centroid_returns_lat_lon(self):
        lat, lon = ring_centroid(_square(-121.5, 38.5, 0.1, closed=False))
        assert lat == pytest.approx(38.55)
        assert lon == pytest.approx(-121.45)

    def test_ring_centroid_empty_raises(self):
        with pytest.raises(ValueError):
            ring_centroid([])

    def test_prepared_zone_matches_point_in_polygon(self, two_squares):
        zone = PreparedZone(two_squares)
        rng = random.Random(29)
        for _ in range(200):
            lat, lon = rng.uniform(-1, 7), rng.uniform(-1, 7)
            assert zone.contains(lat, lon) == point_in_polygon(lat, lon, two_squares)
        assert zone.area_sq_miles() == pytest.approx(polygon_area_sq_miles(two_squares))

    def test_prepared_zone_degenerate(self):
        zone = PreparedZone({"type": "LineString", "coordinates": [[0, 0], [1, 1]]})
        assert zone.is_empty
        assert not zone.contains(0.5, 0.5)
        assert zone.area_sq_miles() == 0.0
