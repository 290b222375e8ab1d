"""
Great-circle distance in feet.

Architectural Overview:
    Responsibility: Haversine distance on a spherical Earth, scalar and
        numpy-vectorised. No ellipsoidal model; the spherical error is well
        under 1% at the distances this engine cares about (tens of feet to
        a few miles).
    Key Interactions:
        - spatial.grid_index.SpatialGrid.find_nearest() (exact phase)
        - analysis tests (brute-force cross-checks)
    Navigation Guide:
        Two functions, no sections needed.
"""

import math
from typing import Union

import numpy as np

# Earth's mean radius in feet
EARTH_RADIUS_FT = 20902231.0
FEET_PER_MILE = 5280.0

ArrayLike = Union[np.ndarray, list, tuple]


def haversine_distance_ft(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two lat/lon points in feet.

    Symmetric, and exactly zero only for identical coordinates.

    Args:
        lat1, lon1: First point in degrees
        lat2, lon2: Second point in degrees

    Returns:
        Distance in feet (>= 0)

    Example:
        >>> round(haversine_distance_ft(38.58, -121.49, 38.581, -121.491))
        463
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_FT * c


def haversine_distances_ft(
    lat: float, lon: float, lats: ArrayLike, lons: ArrayLike
) -> np.ndarray:
    """
    Vectorised haversine from one query point to many candidates.

    Args:
        lat, lon: Query point in degrees
        lats, lons: Candidate coordinates in degrees (same length)

    Returns:
        1-D float array of distances in feet, one per candidate
    """
    lats = np.asarray(lats, dtype=float)
    lons = np.asarray(lons, dtype=float)

    d_lat = np.radians(lats - lat)
    d_lon = np.radians(lons - lon)
    a = (
        np.sin(d_lat / 2) ** 2
        + np.cos(np.radians(lat)) * np.cos(np.radians(lats)) * np.sin(d_lon / 2) ** 2
    )
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_FT * c
