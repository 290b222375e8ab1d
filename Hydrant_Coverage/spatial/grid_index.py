"""
Grid-based spatial index for nearest-point queries.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Bucket lat/lon points into fixed-size square cells and answer
nearest-point queries with a two-phase coarse-then-exact search.

Search Algorithm (find_nearest):
1. Start at radius 1 (cells) around the query's cell.
2. Gather every point in the (2r+1)² block of cells.
3. If the block is empty, grow r by 1 (up to max_search_rings).
4. Otherwise compute exact haversine distance to every gathered candidate
   and return the minimum.

The first non-empty block wins. A slightly closer point in the next ring can
be missed when the query sits near its block edge; the cost of each query is
bounded in exchange. Within the block that is searched, the true nearest
candidate is always returned.

Key Interactions:
- analysis.address_precompute: one lookup per address per grid
- parallel.coverage_engine: owns one hydrant grid and one station grid

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from Hydrant_Coverage.spatial.distance import haversine_distances_ft

logger = logging.getLogger("HydrantCoverage.Spatial.Grid")

CellKey = Tuple[int, int]


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 DATA CONTAINERS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GridPoint:
    """A point held by a SpatialGrid.

    Attributes:
        lat: Latitude in degrees
        lon: Longitude in degrees
        payload: Opaque caller data, returned unchanged by lookups
    """

    lat: float
    lon: float
    payload: Any = None


class NearestResult(NamedTuple):
    """Result of a nearest-point query.

    The empty sentinel (nothing within the ring cap, or an empty index) is
    ``NearestResult(None, math.inf)``; callers treat it as "no coverage".
    """

    point: Optional[GridPoint]
    distance_ft: float

    @property
    def found(self) -> bool:
        return self.point is not None


NO_NEAREST = NearestResult(None, math.inf)


# ═══════════════════════════════════════════════════════════════════════════════
# 🧭 SPATIAL GRID
# ═══════════════════════════════════════════════════════════════════════════════


class SpatialGrid:
    """
    Fixed cell-size bucket index over lat/lon points.

    The cell size is fixed at construction. Rebuilding means clear() and
    re-inserting; a point indexed with cell size s always lands in exactly
    one bucket, (floor(lon / s), floor(lat / s)).

    Args:
        cell_size_deg: Cell edge length in degrees (> 0)
        max_search_rings: Ring expansion cap for find_nearest (>= 1)

    Example:
        >>> grid = SpatialGrid(cell_size_deg=0.005)
        >>> _ = grid.insert(38.58, -121.49, payload={"id": 1})
        >>> grid.find_nearest(38.581, -121.491).point.payload
        {'id': 1}
    """

    def __init__(self, cell_size_deg: float = 0.005, max_search_rings: int = 20):
        if cell_size_deg <= 0:
            raise ValueError(f"cell_size_deg must be positive, got {cell_size_deg}")
        if max_search_rings < 1:
            raise ValueError(f"max_search_rings must be >= 1, got {max_search_rings}")
        self._cell_size = float(cell_size_deg)
        self._max_search_rings = int(max_search_rings)
        self._cells: Dict[CellKey, List[GridPoint]] = {}
        self._points: List[GridPoint] = []

    @classmethod
    def from_points(
        cls,
        records: Iterable[Mapping[str, Any]],
        cell_size_deg: float = 0.005,
        max_search_rings: int = 20,
        with_payload: bool = False,
    ) -> "SpatialGrid":
        """
        Build a grid from {"lat", "lon", ...} records.

        Args:
            records: Iterable of mappings with float "lat"/"lon"
            cell_size_deg: Cell edge length in degrees
            max_search_rings: Ring expansion cap
            with_payload: Attach each record as the point payload

        Returns:
            Populated SpatialGrid
        """
        grid = cls(cell_size_deg, max_search_rings)
        for record in records:
            grid.insert(record["lat"], record["lon"], record if with_payload else None)
        return grid

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def cell_size_deg(self) -> float:
        return self._cell_size

    @property
    def max_search_rings(self) -> int:
        return self._max_search_rings

    @property
    def points(self) -> Sequence[GridPoint]:
        """All inserted points, in insertion order (read-only view)."""
        return tuple(self._points)

    @property
    def cell_count(self) -> int:
        return len(self._cells)

    @property
    def is_empty(self) -> bool:
        return not self._points

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return (
            f"SpatialGrid(cell_size_deg={self._cell_size}, "
            f"points={len(self._points)}, cells={len(self._cells)})"
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation
    # ─────────────────────────────────────────────────────────────────────────

    def clear(self) -> None:
        """Drop every bucket and point. Safe on an already-empty grid."""
        self._cells = {}
        self._points = []

    def cell_key(self, lat: float, lon: float) -> CellKey:
        """Bucket key for a coordinate: (floor(lon / s), floor(lat / s))."""
        return (
            math.floor(lon / self._cell_size),
            math.floor(lat / self._cell_size),
        )

    def insert(self, lat: float, lon: float, payload: Any = None) -> GridPoint:
        """
        Add a point to its cell bucket and to the flat point list.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees
            payload: Opaque caller data

        Returns:
            The stored GridPoint
        """
        point = GridPoint(float(lat), float(lon), payload)
        self._points.append(point)
        self._cells.setdefault(self.cell_key(lat, lon), []).append(point)
        return point

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def nearby_points(self, lat: float, lon: float, radius_cells: int) -> List[GridPoint]:
        """
        Gather every point in the (2r+1)² block of cells around the query.

        Cells are scanned with dx outermost, then dy, each from -r to +r.

        Args:
            lat, lon: Query coordinate
            radius_cells: Block half-width in cells (0 = the query cell only)

        Returns:
            List of candidate points (possibly empty)
        """
        cx, cy = self.cell_key(lat, lon)
        nearby: List[GridPoint] = []
        for dx in range(-radius_cells, radius_cells + 1):
            for dy in range(-radius_cells, radius_cells + 1):
                bucket = self._cells.get((cx + dx, cy + dy))
                if bucket:
                    nearby.extend(bucket)
        return nearby

    def _ring_points(self, cx: int, cy: int, radius: int) -> List[GridPoint]:
        """Points on the square ring at Chebyshev distance ``radius`` only."""
        ring: List[GridPoint] = []
        for dx in range(-radius, radius + 1):
            edge_column = abs(dx) == radius
            for dy in range(-radius, radius + 1):
                if not edge_column and abs(dy) != radius:
                    continue
                bucket = self._cells.get((cx + dx, cy + dy))
                if bucket:
                    ring.extend(bucket)
        return ring

    def find_nearest(self, lat: float, lon: float) -> NearestResult:
        """
        Closest inserted point to (lat, lon), searching outward ring by ring.

        Inner blocks that came back empty stay empty, so each step only looks
        up the new outer ring of cells; the candidate set at the first
        non-empty radius equals the full (2r+1)² block. Radius 0 (the query's
        own cell) is covered by the radius-1 block.

        Args:
            lat, lon: Query coordinate in degrees

        Returns:
            NearestResult(point, distance_ft), or NO_NEAREST when no point
            lies within max_search_rings cells of the query.
        """
        if not self._points:
            return NO_NEAREST

        cx, cy = self.cell_key(lat, lon)
        for radius in range(1, self._max_search_rings + 1):
            if radius == 1:
                candidates = self.nearby_points(lat, lon, 1)
            else:
                candidates = self._ring_points(cx, cy, radius)
            if not candidates:
                continue

            distances = haversine_distances_ft(
                lat,
                lon,
                [p.lat for p in candidates],
                [p.lon for p in candidates],
            )
            # argmin keeps the first of equal minima (scan order)
            best = int(np.argmin(distances))
            return NearestResult(candidates[best], float(distances[best]))

        return NO_NEAREST
