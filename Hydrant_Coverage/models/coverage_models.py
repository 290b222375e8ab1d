"""
Typed result models for address coverage and zone statistics.

Architectural Overview:
=======================
This module contains immutable dataclasses for everything the engine derives:
per-address distance records, the global address summary, per-zone
statistics, and precompute progress ticks.

Key Interactions:
-----------------
- Input: analysis.address_precompute builds AddressDistanceRecord/GlobalSummary
- Input: analysis.zone_analyzer builds ZoneStatistics
- Output: as_dict() methods give plain dicts for the worker message boundary
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Data Flow:
----------
1. Address records come in as plain dicts (copied, never mutated)
2. The precompute pass wraps each one in an AddressDistanceRecord
3. Zone analysis filters those records; nothing is recomputed per zone

MODIFICATION POINT: Add new AreaType values here for finer density classes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


# ═══════════════════════════════════════════════════════════════════════════
# 🧮 SHARED HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def percent_of(part: int, whole: int) -> float:
    """Percentage rounded to one decimal; 0.0 when ``whole`` is zero."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100.0, 1)


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class AreaType(Enum):
    """Zone classification by address density.

    UNKNOWN is used when the zone area is zero (degenerate polygon), where
    density is undefined.
    """

    RURAL = "Rural"
    SUBURBAN = "Suburban"
    URBAN = "Urban"
    UNKNOWN = "Unknown"


# ═══════════════════════════════════════════════════════════════════════════
# 🏠 ADDRESS DISTANCE RECORD
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AddressDistanceRecord:
    """Read-only distance record for one address.

    Attributes:
        lat, lon: Address coordinate
        fields: Copy of the original address fields (lat/lon included)
        nearest_hydrant_distance_ft: inf when no hydrant within the ring cap
        nearest_station_distance_ft: inf when no stations are indexed
        nearest_station: Payload of the nearest station (back-reference), or None
        within_500ft: hydrant distance <= optimal threshold
        within_1000ft: hydrant distance <= marginal threshold
        underserved: hydrant distance > marginal threshold
        within_station_mile: station distance <= station threshold
    """

    lat: float
    lon: float
    nearest_hydrant_distance_ft: float
    nearest_station_distance_ft: float
    within_500ft: bool
    within_1000ft: bool
    underserved: bool
    within_station_mile: bool
    nearest_station: Optional[Dict[str, Any]] = field(default=None, compare=False)
    fields: Dict[str, Any] = field(default_factory=dict, compare=False)

    def as_dict(self) -> Dict[str, Any]:
        """Flatten to the original fields plus the derived distance columns."""
        result = dict(self.fields)
        result.update(
            {
                "lat": self.lat,
                "lon": self.lon,
                "nearest_hydrant_distance_ft": self.nearest_hydrant_distance_ft,
                "nearest_station_distance_ft": self.nearest_station_distance_ft,
                "nearest_station": self.nearest_station,
                "within_500ft": self.within_500ft,
                "within_1000ft": self.within_1000ft,
                "underserved": self.underserved,
                "within_station_mile": self.within_station_mile,
            }
        )
        return result


# ═══════════════════════════════════════════════════════════════════════════
# 📊 GLOBAL SUMMARY
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GlobalSummary:
    """Coverage summary over every precomputed address.

    Percentages are rounded to one decimal and are 0.0 for an empty address
    collection. Averages run over addresses whose distance is finite and are
    0.0 when there are none (e.g., no stations indexed).
    """

    count: int = 0
    within_500ft: int = 0
    within_1000ft: int = 0
    underserved: int = 0
    within_station_mile: int = 0
    avg_hydrant_distance_ft: float = 0.0
    avg_station_distance_ft: float = 0.0
    pct_within_500ft: float = 0.0
    pct_within_1000ft: float = 0.0
    pct_underserved: float = 0.0
    pct_within_station_mile: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "within_500ft": self.within_500ft,
            "within_1000ft": self.within_1000ft,
            "underserved": self.underserved,
            "within_station_mile": self.within_station_mile,
            "avg_hydrant_distance_ft": self.avg_hydrant_distance_ft,
            "avg_station_distance_ft": self.avg_station_distance_ft,
            "pct_within_500ft": self.pct_within_500ft,
            "pct_within_1000ft": self.pct_within_1000ft,
            "pct_underserved": self.pct_underserved,
            "pct_within_station_mile": self.pct_within_station_mile,
        }


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ ZONE STATISTICS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ZoneStatistics:
    """Aggregate coverage statistics for one zone polygon.

    Recomputed in full on every request. With zero addresses, percentages
    and averages are 0.0 and min/max distances are None ("no data").
    """

    hydrant_count: int = 0
    station_count: int = 0
    address_count: int = 0
    addresses_within_500ft: int = 0
    addresses_within_1000ft: int = 0
    addresses_underserved: int = 0
    addresses_within_station_mile: int = 0
    avg_distance_to_hydrant_ft: float = 0.0
    avg_distance_to_station_ft: float = 0.0
    min_distance_ft: Optional[float] = None
    max_distance_ft: Optional[float] = None
    coverage_pct_500: float = 0.0
    coverage_pct_1000: float = 0.0
    station_coverage_pct: float = 0.0
    hydrants_per_1000_addresses: float = 0.0
    hydrant_station_ratio: Optional[int] = None
    area_sq_miles: float = 0.0
    address_density: float = 0.0
    hydrant_density_per_sq_mile: float = 0.0
    area_type: AreaType = AreaType.UNKNOWN
    rural_note: Optional[str] = None

    @property
    def is_rural(self) -> bool:
        return self.area_type is AreaType.RURAL

    def as_dict(self) -> Dict[str, Any]:
        """Plain dict with area_type as its string value."""
        return {
            "hydrant_count": self.hydrant_count,
            "station_count": self.station_count,
            "address_count": self.address_count,
            "addresses_within_500ft": self.addresses_within_500ft,
            "addresses_within_1000ft": self.addresses_within_1000ft,
            "addresses_underserved": self.addresses_underserved,
            "addresses_within_station_mile": self.addresses_within_station_mile,
            "avg_distance_to_hydrant_ft": self.avg_distance_to_hydrant_ft,
            "avg_distance_to_station_ft": self.avg_distance_to_station_ft,
            "min_distance_ft": self.min_distance_ft,
            "max_distance_ft": self.max_distance_ft,
            "coverage_pct_500": self.coverage_pct_500,
            "coverage_pct_1000": self.coverage_pct_1000,
            "station_coverage_pct": self.station_coverage_pct,
            "hydrants_per_1000_addresses": self.hydrants_per_1000_addresses,
            "hydrant_station_ratio": self.hydrant_station_ratio,
            "area_sq_miles": self.area_sq_miles,
            "address_density": self.address_density,
            "hydrant_density_per_sq_mile": self.hydrant_density_per_sq_mile,
            "area_type": self.area_type.value,
            "is_rural": self.is_rural,
            "rural_note": self.rural_note,
        }


# ═══════════════════════════════════════════════════════════════════════════
# ⏱️ PROGRESS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PrecomputeProgress:
    """Chunk-boundary progress tick from the address precompute pass."""

    current: int
    total: int
