"""
Batch zone analysis over a zone GeoDataFrame.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Run analyze_zone() for every zone (e.g., every ZIP code)
in a GeoDataFrame and collect the results into one pandas DataFrame.

Follows the parallel orchestrator pattern:
- Serialize inputs ONCE before dispatch (zone geometry -> GeoJSON mapping)
- joblib Parallel with delayed for process-based parallelism
- n_jobs=1 for sequential execution through the same code path
- Inline sequential fallback if dispatch fails
- Worker results are dicts with success/error status

Key Functions:
- analyze_zones(): Main entry point
- worker_analyze_zone(): Thin worker wrapping analyze_zone()
- resolve_zone_label(): Zone id/name from property aliases

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import geopandas as gpd
import pandas as pd
from joblib import Parallel, delayed
from shapely.geometry import mapping

from Hydrant_Coverage.analysis.zone_analyzer import analyze_zone
from Hydrant_Coverage.config_types import DensityClassConfig, ZoneBatchConfig
from Hydrant_Coverage.models.coverage_models import AddressDistanceRecord
from Hydrant_Coverage.models.point_records import _ensure_wgs84

logger = logging.getLogger("HydrantCoverage.Analysis.ZoneBatch")


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ZONE LABELS
# ═══════════════════════════════════════════════════════════════════════════


def resolve_zone_label(
    properties: Mapping[str, Any],
    id_fields: Sequence[str] = ("ZIP5", "zip", "ZIPCODE"),
    name_fields: Sequence[str] = ("PO_NAME", "po_name", "city"),
) -> Tuple[str, str]:
    """
    Zone id and display name from the first non-empty alias.

    Args:
        properties: Zone attribute mapping (GeoJSON properties or row dict)
        id_fields: Candidate id keys in priority order
        name_fields: Candidate name keys in priority order

    Returns:
        (zone_id, zone_name); "Unknown" / "" when no alias matches
    """

    def _first(keys: Sequence[str]) -> Optional[str]:
        for key in keys:
            value = properties.get(key)
            if value is not None and not pd.isna(value) and str(value).strip():
                return str(value)
        return None

    return _first(id_fields) or "Unknown", _first(name_fields) or ""


# ═══════════════════════════════════════════════════════════════════════════
# 🏭 WORKER
# ═══════════════════════════════════════════════════════════════════════════


def worker_analyze_zone(
    zone_index: int,
    zone_id: str,
    zone_name: str,
    zone_geometry: Optional[Dict[str, Any]],
    hydrants: List[Dict[str, Any]],
    stations: List[Dict[str, Any]],
    address_records: List[AddressDistanceRecord],
    density: DensityClassConfig,
) -> Dict[str, Any]:
    """
    Analyze one zone; never raises.

    Accepts only picklable parameters (GeoJSON mapping, plain records).

    Returns:
        Dict with zone_index, zone_id, zone_name, success, error,
        elapsed_ms and stats (ZoneStatistics.as_dict() or {})
    """
    start_time = time.perf_counter()
    result: Dict[str, Any] = {
        "zone_index": zone_index,
        "zone_id": zone_id,
        "zone_name": zone_name,
        "success": False,
        "error": None,
        "elapsed_ms": 0.0,
        "stats": {},
    }
    try:
        stats = analyze_zone(
            zone_geometry or {}, hydrants, stations, address_records, density
        )
        result["stats"] = stats.as_dict()
        result["success"] = True
    except Exception as e:
        result["error"] = f"{type(e).__name__}: {e}"
    result["elapsed_ms"] = (time.perf_counter() - start_time) * 1000.0
    return result


# ═══════════════════════════════════════════════════════════════════════════
# 📦 SERIALIZATION
# ═══════════════════════════════════════════════════════════════════════════


def serialize_zones(
    zones_gdf: gpd.GeoDataFrame,
    batch: ZoneBatchConfig,
) -> List[Tuple[int, str, str, Optional[Dict[str, Any]]]]:
    """
    Zone rows -> (index, id, name, GeoJSON geometry mapping) tuples.

    Reprojects to WGS84 first; empty geometries serialize as None.
    """
    if zones_gdf is None or zones_gdf.empty:
        return []

    zones_wgs84 = _ensure_wgs84(zones_gdf)
    geom_col = zones_wgs84.geometry.name

    serialized = []
    for i, (_, row) in enumerate(zones_wgs84.iterrows()):
        geom = row[geom_col]
        geometry = None if geom is None or geom.is_empty else mapping(geom)
        props = {k: v for k, v in row.items() if k != geom_col}
        zone_id, zone_name = resolve_zone_label(
            props, batch.zone_id_fields, batch.zone_name_fields
        )
        serialized.append((i, zone_id, zone_name, geometry))
    return serialized


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 MAIN ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════


def analyze_zones(
    zones_gdf: gpd.GeoDataFrame,
    hydrants: Sequence[Mapping[str, Any]],
    stations: Sequence[Mapping[str, Any]],
    address_records: Sequence[AddressDistanceRecord],
    density: Optional[DensityClassConfig] = None,
    batch: Optional[ZoneBatchConfig] = None,
) -> pd.DataFrame:
    """
    Analyze every zone in a GeoDataFrame.

    Args:
        zones_gdf: Zone polygons (any CRS; reprojected to WGS84)
        hydrants: Hydrant records with "lat"/"lon"
        stations: Station records with "lat"/"lon"
        address_records: Precomputed AddressDistanceRecords
        density: Density class boundaries
        batch: Parallel settings (n_jobs, backend, zone id aliases)

    Returns:
        DataFrame with one row per zone: zone_index, zone_id, zone_name,
        success, error, elapsed_ms, plus one column per ZoneStatistics field
    """
    start_time = time.time()
    density = density or DensityClassConfig()
    batch = batch or ZoneBatchConfig()

    zones = serialize_zones(zones_gdf, batch)
    if not zones:
        logger.info("🗺️ No zones to analyze")
        return pd.DataFrame()

    hydrant_list = [dict(h) for h in hydrants]
    station_list = [dict(s) for s in stations]
    record_list = list(address_records)

    n_jobs = max(1, min(batch.n_jobs, len(zones)))
    logger.info(f"🚀 Analyzing {len(zones)} zones with {n_jobs} worker(s)...")
    logger.info(
        f"   Hydrants: {len(hydrant_list)}, Stations: {len(station_list)}, "
        f"Addresses: {len(record_list)}"
    )

    def _jobs():
        return (
            delayed(worker_analyze_zone)(
                zone_index=i,
                zone_id=zone_id,
                zone_name=zone_name,
                zone_geometry=geometry,
                hydrants=hydrant_list,
                stations=station_list,
                address_records=record_list,
                density=density,
            )
            for i, zone_id, zone_name, geometry in zones
        )

    try:
        results = list(
            Parallel(n_jobs=n_jobs, backend=batch.backend, verbose=batch.verbose)(
                _jobs()
            )
        )
    except (ImportError, RuntimeError, OSError) as e:
        logger.warning(f"⚠️ Parallel dispatch failed: {e}")
        if not batch.fallback_on_error:
            raise
        logger.info("📋 Falling back to inline sequential processing...")
        results = [
            worker_analyze_zone(
                i, zone_id, zone_name, geometry,
                hydrant_list, station_list, record_list, density,
            )
            for i, zone_id, zone_name, geometry in zones
        ]

    df = _collect_results(results)
    logger.info(f"✅ Zone analysis complete in {time.time() - start_time:.2f}s")
    return df


def _collect_results(results: List[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten worker result dicts into a DataFrame, logging failures."""
    rows = []
    error_count = 0
    for result in results:
        if not result["success"]:
            error_count += 1
            logger.warning(f"⚠️ Zone {result['zone_id']}: {result['error']}")
        row = {k: v for k, v in result.items() if k != "stats"}
        row.update(result["stats"])
        rows.append(row)

    logger.info(f"📦 Collected {len(rows) - error_count} successes, {error_count} errors")
    return pd.DataFrame(rows).sort_values("zone_index").reset_index(drop=True)
