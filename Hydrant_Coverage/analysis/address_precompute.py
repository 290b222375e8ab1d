"""
Address distance precomputation.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: One O(N) pass over every address that resolves the nearest
hydrant and nearest station distance through the two grid indexes, tags each
address with coverage flags, and summarises the whole set.

Chunking:
    iter_precompute_address_distances() is a generator. It yields a
    PrecomputeProgress tick after every ``chunk_size`` records; those yields
    are the cooperative chunk boundaries where the worker loop flushes
    progress messages. The final (records, summary) tuple is the generator's
    return value.

Coverage Flags (thresholds from CoverageThresholdsConfig):
    within_500ft        = hydrant_ft <= optimal_ft
    within_1000ft       = hydrant_ft <= marginal_ft
    underserved         = hydrant_ft >  marginal_ft
    within_station_mile = station_ft <= station_coverage_ft

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
import time
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional, Sequence, Tuple

from Hydrant_Coverage.config_types import CoverageThresholdsConfig
from Hydrant_Coverage.models.coverage_models import (
    AddressDistanceRecord,
    GlobalSummary,
    PrecomputeProgress,
    percent_of,
)
from Hydrant_Coverage.spatial.grid_index import NO_NEAREST, SpatialGrid

logger = logging.getLogger("HydrantCoverage.Analysis.Precompute")

PrecomputeResult = Tuple[List[AddressDistanceRecord], GlobalSummary]
ProgressCallback = Callable[[int, int], None]


# ═══════════════════════════════════════════════════════════════════════════════
# 🚩 COVERAGE FLAGS
# ═══════════════════════════════════════════════════════════════════════════════


def coverage_flags(
    hydrant_distance_ft: float,
    station_distance_ft: float,
    thresholds: Optional[CoverageThresholdsConfig] = None,
) -> Dict[str, bool]:
    """
    Threshold flags for one address. All boundaries are inclusive (<=).

    Args:
        hydrant_distance_ft: Nearest hydrant distance (inf if none)
        station_distance_ft: Nearest station distance (inf if none)
        thresholds: Threshold config (defaults: 500 / 1000 / 5280 ft)

    Returns:
        Dict with within_500ft, within_1000ft, underserved, within_station_mile

    Example:
        >>> coverage_flags(500.0, math.inf)["within_500ft"]
        True
    """
    t = thresholds or CoverageThresholdsConfig()
    return {
        "within_500ft": hydrant_distance_ft <= t.optimal_ft,
        "within_1000ft": hydrant_distance_ft <= t.marginal_ft,
        "underserved": hydrant_distance_ft > t.marginal_ft,
        "within_station_mile": station_distance_ft <= t.station_coverage_ft,
    }


def build_address_record(
    address: Mapping[str, Any],
    hydrant_grid: SpatialGrid,
    station_grid: Optional[SpatialGrid],
    thresholds: Optional[CoverageThresholdsConfig] = None,
) -> AddressDistanceRecord:
    """
    Resolve distances and flags for a single address.

    The station lookup is skipped when the station grid is absent or empty.

    Args:
        address: Mapping with float "lat"/"lon" plus any other fields
        hydrant_grid: Hydrant index (must already be built)
        station_grid: Station index, optional
        thresholds: Threshold config

    Returns:
        AddressDistanceRecord holding a copy of the address fields
    """
    lat = address["lat"]
    lon = address["lon"]

    nearest_hydrant = hydrant_grid.find_nearest(lat, lon)
    nearest_station = NO_NEAREST
    if station_grid is not None and not station_grid.is_empty:
        nearest_station = station_grid.find_nearest(lat, lon)

    flags = coverage_flags(
        nearest_hydrant.distance_ft, nearest_station.distance_ft, thresholds
    )
    return AddressDistanceRecord(
        lat=lat,
        lon=lon,
        nearest_hydrant_distance_ft=nearest_hydrant.distance_ft,
        nearest_station_distance_ft=nearest_station.distance_ft,
        nearest_station=(
            nearest_station.point.payload if nearest_station.point is not None else None
        ),
        fields=dict(address),
        **flags,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 📊 GLOBAL SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════


def _finite_mean(values: Sequence[float]) -> float:
    finite = [v for v in values if math.isfinite(v)]
    if not finite:
        return 0.0
    return sum(finite) / len(finite)


def summarize_address_distances(
    records: Sequence[AddressDistanceRecord],
    has_stations: bool = True,
) -> GlobalSummary:
    """
    Counts, percentages and mean distances over all address records.

    Args:
        records: Precomputed address records
        has_stations: False when no stations were indexed; station mean and
            percentage are then reported as 0.0

    Returns:
        GlobalSummary (all-zero for an empty record list)
    """
    count = len(records)
    if count == 0:
        return GlobalSummary()

    within_500 = sum(1 for r in records if r.within_500ft)
    within_1000 = sum(1 for r in records if r.within_1000ft)
    underserved = sum(1 for r in records if r.underserved)
    station_mile = sum(1 for r in records if r.within_station_mile)

    return GlobalSummary(
        count=count,
        within_500ft=within_500,
        within_1000ft=within_1000,
        underserved=underserved,
        within_station_mile=station_mile,
        avg_hydrant_distance_ft=_finite_mean(
            [r.nearest_hydrant_distance_ft for r in records]
        ),
        avg_station_distance_ft=(
            _finite_mean([r.nearest_station_distance_ft for r in records])
            if has_stations
            else 0.0
        ),
        pct_within_500ft=percent_of(within_500, count),
        pct_within_1000ft=percent_of(within_1000, count),
        pct_underserved=percent_of(underserved, count),
        pct_within_station_mile=(
            percent_of(station_mile, count) if has_stations else 0.0
        ),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 🔁 CHUNKED PASS
# ═══════════════════════════════════════════════════════════════════════════════


def iter_precompute_address_distances(
    addresses: Sequence[Mapping[str, Any]],
    hydrant_grid: SpatialGrid,
    station_grid: Optional[SpatialGrid] = None,
    chunk_size: int = 5000,
    thresholds: Optional[CoverageThresholdsConfig] = None,
) -> Generator[PrecomputeProgress, None, PrecomputeResult]:
    """
    Chunked address pass; yields progress, returns (records, summary).

    Records come out in input order. A progress tick is yielded after every
    ``chunk_size`` records (not after a final partial chunk).

    Args:
        addresses: Normalised address records with float "lat"/"lon"
        hydrant_grid: Hydrant index
        station_grid: Station index, optional
        chunk_size: Records per progress tick (>= 1)
        thresholds: Threshold config

    Yields:
        PrecomputeProgress(current, total)

    Returns:
        (records, summary) via StopIteration.value
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    total = len(addresses)
    has_stations = station_grid is not None and not station_grid.is_empty
    if hydrant_grid.is_empty:
        logger.warning("⚠️ Hydrant index is empty; every address will be underserved")

    records: List[AddressDistanceRecord] = []
    for i, address in enumerate(addresses):
        records.append(
            build_address_record(address, hydrant_grid, station_grid, thresholds)
        )
        if (i + 1) % chunk_size == 0:
            yield PrecomputeProgress(current=i + 1, total=total)

    return records, summarize_address_distances(records, has_stations)


def precompute_address_distances(
    addresses: Sequence[Mapping[str, Any]],
    hydrant_grid: SpatialGrid,
    station_grid: Optional[SpatialGrid] = None,
    chunk_size: int = 5000,
    thresholds: Optional[CoverageThresholdsConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> PrecomputeResult:
    """
    Run the full address pass in-process.

    Args:
        addresses: Normalised address records
        hydrant_grid: Hydrant index
        station_grid: Station index, optional
        chunk_size: Records per progress tick
        thresholds: Threshold config
        progress_callback: Called as (current, total) at each chunk boundary

    Returns:
        (records, summary)
    """
    start_time = time.time()
    gen = iter_precompute_address_distances(
        addresses, hydrant_grid, station_grid, chunk_size, thresholds
    )
    while True:
        try:
            progress = next(gen)
        except StopIteration as stop:
            records, summary = stop.value
            break
        if progress_callback is not None:
            progress_callback(progress.current, progress.total)

    elapsed = time.time() - start_time
    logger.info(
        f"📍 Precomputed {len(records)} address distances in {elapsed:.2f}s "
        f"({summary.pct_within_500ft}% optimal, {summary.pct_underserved}% underserved)"
    )
    return records, summary
