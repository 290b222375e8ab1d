"""
Spatial primitives: haversine distance, grid index, polygon utilities.

Module Structure:
- distance.py: Great-circle distance in feet (scalar + numpy vectorised)
- grid_index.py: SpatialGrid nearest-point index with ring expansion
- polygon.py: Ray-casting containment and approximate area in square miles
"""

from Hydrant_Coverage.spatial.distance import (
    EARTH_RADIUS_FT,
    FEET_PER_MILE,
    haversine_distance_ft,
    haversine_distances_ft,
)
from Hydrant_Coverage.spatial.grid_index import (
    GridPoint,
    NearestResult,
    NO_NEAREST,
    SpatialGrid,
)
from Hydrant_Coverage.spatial.polygon import (
    PreparedZone,
    extract_outer_rings,
    point_in_polygon,
    point_in_ring,
    polygon_area_sq_miles,
    ring_area_sq_miles,
    ring_centroid,
)

__all__ = [
    # Distance
    "EARTH_RADIUS_FT",
    "FEET_PER_MILE",
    "haversine_distance_ft",
    "haversine_distances_ft",
    # Grid index
    "GridPoint",
    "NearestResult",
    "NO_NEAREST",
    "SpatialGrid",
    # Polygon
    "PreparedZone",
    "extract_outer_rings",
    "point_in_polygon",
    "point_in_ring",
    "polygon_area_sq_miles",
    "ring_area_sq_miles",
    "ring_centroid",
]
