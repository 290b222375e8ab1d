"""
Zone coverage analyzer.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Aggregate hydrant, station and precomputed address coverage
for ONE zone polygon (e.g., a ZIP code) into ZoneStatistics.

Steps:
1. Count hydrants and stations inside the zone (linear scan).
2. One pass over the precomputed address records inside the zone:
   counts, distance sums, min/max hydrant distance, flag counts.
   Per-address distances are reused, never recomputed.
3. Derive percentages, averages, and densities per square mile.
4. Classify by address density: Rural / Suburban / Urban
   (Unknown when the zone area is zero).

Zero-address zones produce 0.0 percentages/averages and None min/max.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from Hydrant_Coverage.config_types import DensityClassConfig
from Hydrant_Coverage.models.coverage_models import (
    AddressDistanceRecord,
    AreaType,
    ZoneStatistics,
    percent_of,
)
from Hydrant_Coverage.spatial.polygon import PreparedZone

logger = logging.getLogger("HydrantCoverage.Analysis.Zone")


# ═══════════════════════════════════════════════════════════════════════════════
# 🏘️ DENSITY CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════


def classify_area_type(
    address_density: float,
    area_sq_miles: float,
    density: Optional[DensityClassConfig] = None,
) -> Tuple[AreaType, Optional[str]]:
    """
    Classify a zone by addresses per square mile.

    Args:
        address_density: Addresses per square mile
        area_sq_miles: Zone area; 0 means density is undefined
        density: Class boundaries (defaults: 100 / 1000)

    Returns:
        (AreaType, rural advisory note or None)

    Example:
        >>> classify_area_type(50.0, 10.0)[0]
        <AreaType.RURAL: 'Rural'>
    """
    d = density or DensityClassConfig()
    if area_sq_miles <= 0:
        return AreaType.UNKNOWN, None
    if address_density < d.rural_max:
        return AreaType.RURAL, d.rural_note
    if address_density < d.suburban_max:
        return AreaType.SUBURBAN, None
    return AreaType.URBAN, None


# ═══════════════════════════════════════════════════════════════════════════════
# 🔢 COUNTING
# ═══════════════════════════════════════════════════════════════════════════════


def count_points_in_zone(zone: PreparedZone, points: Iterable[Mapping[str, Any]]) -> int:
    """Number of {"lat", "lon"} points inside a prepared zone."""
    return sum(1 for p in points if zone.contains(p["lat"], p["lon"]))


def _mean(total: float, n: int) -> float:
    return total / n if n > 0 else 0.0


# ═══════════════════════════════════════════════════════════════════════════════
# 🗺️ ZONE ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════════


def analyze_zone(
    polygon: Any,
    hydrants: Sequence[Mapping[str, Any]],
    stations: Sequence[Mapping[str, Any]],
    address_records: Sequence[AddressDistanceRecord],
    density: Optional[DensityClassConfig] = None,
) -> ZoneStatistics:
    """
    Compute ZoneStatistics for one zone polygon.

    Args:
        polygon: GeoJSON Feature/geometry mapping or Shapely geometry
        hydrants: Hydrant records with "lat"/"lon"
        stations: Station records with "lat"/"lon"
        address_records: Precomputed AddressDistanceRecords
        density: Density class boundaries

    Returns:
        ZoneStatistics; an all-zero UNKNOWN result for degenerate polygons
    """
    zone = PreparedZone(polygon)
    if zone.is_empty:
        logger.debug("Degenerate or unsupported zone polygon; returning empty stats")
        return ZoneStatistics()

    area_sq_miles = zone.area_sq_miles()
    hydrant_count = count_points_in_zone(zone, hydrants)
    station_count = count_points_in_zone(zone, stations)

    # === SINGLE PASS OVER PRECOMPUTED ADDRESSES ===
    address_count = 0
    within_500 = within_1000 = underserved = station_mile = 0
    hydrant_total = station_total = 0.0
    hydrant_finite = station_finite = 0
    min_distance: Optional[float] = None
    max_distance: Optional[float] = None

    for record in address_records:
        if not zone.contains(record.lat, record.lon):
            continue
        address_count += 1

        hydrant_ft = record.nearest_hydrant_distance_ft
        if math.isfinite(hydrant_ft):
            hydrant_total += hydrant_ft
            hydrant_finite += 1
            if min_distance is None or hydrant_ft < min_distance:
                min_distance = hydrant_ft
            if max_distance is None or hydrant_ft > max_distance:
                max_distance = hydrant_ft

        station_ft = record.nearest_station_distance_ft
        if math.isfinite(station_ft):
            station_total += station_ft
            station_finite += 1

        within_500 += record.within_500ft
        within_1000 += record.within_1000ft
        underserved += record.underserved
        station_mile += record.within_station_mile

    # === DERIVED METRICS ===
    if area_sq_miles > 0:
        address_density = address_count / area_sq_miles
        hydrant_density = hydrant_count / area_sq_miles
    else:
        address_density = hydrant_density = 0.0
    area_type, rural_note = classify_area_type(address_density, area_sq_miles, density)

    hydrants_per_1000 = (
        round(hydrant_count / address_count * 1000.0, 1) if address_count else 0.0
    )
    ratio = round(hydrant_count / station_count) if station_count else None

    return ZoneStatistics(
        hydrant_count=hydrant_count,
        station_count=station_count,
        address_count=address_count,
        addresses_within_500ft=within_500,
        addresses_within_1000ft=within_1000,
        addresses_underserved=underserved,
        addresses_within_station_mile=station_mile,
        avg_distance_to_hydrant_ft=_mean(hydrant_total, hydrant_finite),
        avg_distance_to_station_ft=_mean(station_total, station_finite),
        min_distance_ft=min_distance,
        max_distance_ft=max_distance,
        coverage_pct_500=percent_of(within_500, address_count),
        coverage_pct_1000=percent_of(within_1000, address_count),
        station_coverage_pct=percent_of(station_mile, address_count),
        hydrants_per_1000_addresses=hydrants_per_1000,
        hydrant_station_ratio=ratio,
        area_sq_miles=area_sq_miles,
        address_density=address_density,
        hydrant_density_per_sq_mile=hydrant_density,
        area_type=area_type,
        rural_note=rural_note,
    )
