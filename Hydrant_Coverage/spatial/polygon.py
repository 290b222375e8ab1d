"""
Polygon containment and area for zone boundaries.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Point-in-polygon (even-odd ray casting) and approximate
polygon area in square miles for single and multi-part zone polygons.

Accepted polygon inputs:
- GeoJSON Feature dict            {"type": "Feature", "geometry": {...}}
- GeoJSON geometry dict           {"type": "Polygon" | "MultiPolygon", ...}
- Shapely Polygon / MultiPolygon  (converted with shapely.geometry.mapping)

Only the outer ring of each part is used; holes are not modelled, so a point
in a hole still counts as inside and hole area is not subtracted.

Degenerate input (unsupported geometry type, malformed coordinates, rings
with fewer than 3 vertices) never raises: containment is False, area is 0.

Area approximation:
    Local equirectangular projection per ring. Longitude degrees are scaled
    by 69 * cos(mean ring latitude) miles, latitude degrees by 69 miles.
    Good for county-sized zones; degrades for zones spanning large latitude
    ranges or crossing the antimeridian.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from typing import Any, List, Mapping, Sequence, Tuple

from shapely.geometry import mapping
from shapely.geometry.base import BaseGeometry

logger = logging.getLogger("HydrantCoverage.Spatial.Polygon")

Ring = List[Tuple[float, float]]  # (lon, lat) vertices

MILES_PER_DEGREE_LAT = 69.0


# ═══════════════════════════════════════════════════════════════════════════════
# 🔷 RING EXTRACTION
# ═══════════════════════════════════════════════════════════════════════════════


def _to_geometry_mapping(polygon: Any) -> Mapping[str, Any]:
    """Unwrap Features and Shapely geometries to a GeoJSON geometry mapping."""
    if isinstance(polygon, BaseGeometry):
        return mapping(polygon)
    if isinstance(polygon, Mapping):
        if polygon.get("type") == "Feature":
            geometry = polygon.get("geometry")
            return geometry if isinstance(geometry, Mapping) else {}
        return polygon
    return {}


def _as_ring(coords: Any) -> Ring:
    """Coerce a coordinate sequence to [(lon, lat), ...]; [] if malformed."""
    try:
        return [(float(c[0]), float(c[1])) for c in coords]
    except (TypeError, ValueError, IndexError):
        return []


def extract_outer_rings(polygon: Any) -> List[Ring]:
    """
    Outer boundary ring of each part of a polygon.

    Args:
        polygon: GeoJSON Feature/geometry mapping or Shapely geometry

    Returns:
        List of rings (one per part); [] for unsupported or malformed input
    """
    geometry = _to_geometry_mapping(polygon)
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if not coordinates:
        return []

    if geom_type == "Polygon":
        parts = [coordinates]
    elif geom_type == "MultiPolygon":
        parts = coordinates if isinstance(coordinates, (list, tuple)) else []
    else:
        logger.debug(f"Unsupported geometry type for zone polygon: {geom_type}")
        return []

    rings = []
    for part in parts:
        if not part or not isinstance(part, (list, tuple)):
            continue
        ring = _as_ring(part[0])
        if ring:
            rings.append(ring)
    return rings


def ring_centroid(ring: Sequence[Tuple[float, float]]) -> Tuple[float, float]:
    """
    Vertex-average centroid of a ring, as (lat, lon).

    Used to place polygon-shaped point features (e.g., station footprints).
    """
    if not ring:
        raise ValueError("Cannot take the centroid of an empty ring")
    lat = sum(v[1] for v in ring) / len(ring)
    lon = sum(v[0] for v in ring) / len(ring)
    return lat, lon


# ═══════════════════════════════════════════════════════════════════════════════
# 📍 POINT IN POLYGON
# ═══════════════════════════════════════════════════════════════════════════════


def point_in_ring(lat: float, lon: float, ring: Sequence[Tuple[float, float]]) -> bool:
    """
    Even-odd ray casting against one ring.

    A horizontal ray from the query toggles ``inside`` at every edge it
    crosses. The half-open test (yi > lat) != (yj > lat) counts a shared
    vertex once. Edges run (j, i) with j = i - 1 wrapping to the last vertex,
    so closed and unclosed rings behave the same.

    Args:
        lat, lon: Query coordinate
        ring: (lon, lat) vertices

    Returns:
        True if inside; False for rings with fewer than 3 vertices
    """
    n = len(ring)
    if n < 3:
        return False

    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lon < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_polygon(lat: float, lon: float, polygon: Any) -> bool:
    """
    True if (lat, lon) lies inside ANY part of the polygon.

    Args:
        lat, lon: Query coordinate
        polygon: GeoJSON Feature/geometry mapping or Shapely geometry

    Returns:
        Containment flag; False for degenerate or unsupported polygons
    """
    return any(point_in_ring(lat, lon, ring) for ring in extract_outer_rings(polygon))


# ═══════════════════════════════════════════════════════════════════════════════
# 📐 AREA
# ═══════════════════════════════════════════════════════════════════════════════


def ring_area_sq_miles(ring: Sequence[Tuple[float, float]]) -> float:
    """
    Shoelace area of one ring in square miles (local linear approximation).

    Args:
        ring: (lon, lat) vertices, closed or unclosed

    Returns:
        Area in square miles (>= 0); 0.0 for fewer than 3 vertices
    """
    n = len(ring)
    if n < 3:
        return 0.0

    avg_lat = sum(v[1] for v in ring) / n
    lon_to_miles = MILES_PER_DEGREE_LAT * math.cos(math.radians(avg_lat))
    lat_to_miles = MILES_PER_DEGREE_LAT

    twice_area = 0.0
    j = n - 1
    for i in range(n):
        x1 = ring[j][0] * lon_to_miles
        y1 = ring[j][1] * lat_to_miles
        x2 = ring[i][0] * lon_to_miles
        y2 = ring[i][1] * lat_to_miles
        twice_area += x1 * y2 - x2 * y1
        j = i
    return abs(twice_area / 2.0)


def polygon_area_sq_miles(polygon: Any) -> float:
    """
    Approximate polygon area in square miles.

    Multi-part polygons sum their parts independently; holes are not
    subtracted.

    Args:
        polygon: GeoJSON Feature/geometry mapping or Shapely geometry

    Returns:
        Area in square miles; 0.0 for degenerate or unsupported polygons
    """
    return sum(ring_area_sq_miles(ring) for ring in extract_outer_rings(polygon))


# ═══════════════════════════════════════════════════════════════════════════════
# ⚡ PREPARED ZONE
# ═══════════════════════════════════════════════════════════════════════════════


class PreparedZone:
    """
    Zone polygon with rings extracted once, for scanning many points.

    A bounding-box check runs before ray casting. Points outside the box
    cross every ring an even number of times, so the answer is the same
    as point_in_polygon().

    Args:
        polygon: GeoJSON Feature/geometry mapping or Shapely geometry
    """

    def __init__(self, polygon: Any):
        self.rings: List[Ring] = [r for r in extract_outer_rings(polygon) if len(r) >= 3]
        if self.rings:
            lons = [v[0] for ring in self.rings for v in ring]
            lats = [v[1] for ring in self.rings for v in ring]
            self.bounds = (min(lons), min(lats), max(lons), max(lats))
        else:
            self.bounds = None

    @property
    def is_empty(self) -> bool:
        return not self.rings

    def contains(self, lat: float, lon: float) -> bool:
        if self.bounds is None:
            return False
        min_lon, min_lat, max_lon, max_lat = self.bounds
        if not (min_lat <= lat <= max_lat and min_lon <= lon <= max_lon):
            return False
        return any(point_in_ring(lat, lon, ring) for ring in self.rings)

    def area_sq_miles(self) -> float:
        return sum(ring_area_sq_miles(ring) for ring in self.rings)
