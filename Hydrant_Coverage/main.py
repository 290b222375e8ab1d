#!/usr/bin/env python3
"""
Hydrant Coverage Engine - Pipeline Entry Point

Runs the whole coverage workflow in-process on data already in memory:
index hydrants and stations, precompute every address's distances, then
analyze every zone of a zone GeoDataFrame.

Usage:
    from Hydrant_Coverage.main import run_coverage_analysis

    result = run_coverage_analysis(hydrants, stations, addresses, zones_gdf)
    result["summary"]          # GlobalSummary
    result["zone_stats"]       # pandas DataFrame, one row per zone

Interactive callers that must not block should use
parallel.worker_client.CoverageWorkerClient instead.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Union

import geopandas as gpd
import pandas as pd

from Hydrant_Coverage.analysis.zone_batch import analyze_zones
from Hydrant_Coverage.config import CONFIG
from Hydrant_Coverage.config_types import AppConfig
from Hydrant_Coverage.logging_setup import setup_logging
from Hydrant_Coverage.models.point_records import point_records_from_geodataframe
from Hydrant_Coverage.parallel.coverage_engine import CoverageEngine

# ═══════════════════════════════════════════════════════════════════════════
# 🎯 MODULE-LEVEL CONFIG (Single Source of Truth)
# ═══════════════════════════════════════════════════════════════════════════
APP_CONFIG = AppConfig.from_dict(CONFIG)

PointInput = Union[List[Dict[str, Any]], gpd.GeoDataFrame]


def _as_records(points: Optional[PointInput]) -> List[Dict[str, Any]]:
    """Accept record lists or point GeoDataFrames."""
    if points is None:
        return []
    if isinstance(points, gpd.GeoDataFrame):
        return point_records_from_geodataframe(points)
    return list(points)


# ═══════════════════════════════════════════════════════════════════════════
# 🚀 PIPELINE
# ═══════════════════════════════════════════════════════════════════════════


def run_coverage_analysis(
    hydrants: PointInput,
    stations: Optional[PointInput],
    addresses: PointInput,
    zones_gdf: Optional[gpd.GeoDataFrame] = None,
    app_config: Optional[AppConfig] = None,
    configure_logging: bool = False,
) -> Dict[str, Any]:
    """
    Run the coverage workflow with phase-based organization.

    Args:
        hydrants: Hydrant records or point GeoDataFrame
        stations: Station records or GeoDataFrame (None for no stations)
        addresses: Address records or point GeoDataFrame
        zones_gdf: Zone polygons; zone analysis is skipped when None
        app_config: Typed config (defaults to APP_CONFIG)
        configure_logging: Attach console/file handlers from app_config.logging

    Returns:
        Dict with engine, summary (GlobalSummary), address_records,
        zone_stats (DataFrame, empty without zones) and timings (seconds)

    Raises:
        InputShapeError: If a dataset has no coordinate fields
    """
    app_config = app_config or APP_CONFIG
    if configure_logging:
        setup_logging(app_config.logging.level, app_config.logging.log_file)
    logger = logging.getLogger("HydrantCoverage.Main")

    logger.info("=" * 60)
    logger.info("🚒 Hydrant Coverage Analysis")
    logger.info("=" * 60)

    timings: Dict[str, float] = {}
    total_start = time.perf_counter()
    engine = CoverageEngine(app_config)

    # Phase 1: Index hydrants and stations
    phase_start = time.perf_counter()
    engine.build_hydrant_index(_as_records(hydrants))
    engine.set_stations(_as_records(stations))
    timings["indexing"] = time.perf_counter() - phase_start

    # Phase 2: Precompute address distances
    phase_start = time.perf_counter()
    engine.precompute(_as_records(addresses))
    timings["precompute"] = time.perf_counter() - phase_start

    # Phase 3: Zone statistics
    phase_start = time.perf_counter()
    if zones_gdf is not None:
        zone_stats = analyze_zones(
            zones_gdf,
            engine.hydrants,
            engine.stations,
            engine.address_records,
            app_config.density_classes,
            app_config.zone_batch,
        )
    else:
        zone_stats = pd.DataFrame()
    timings["zones"] = time.perf_counter() - phase_start
    timings["total"] = time.perf_counter() - total_start

    summary = engine.global_summary
    logger.info(
        f"✅ Done in {timings['total']:.2f}s: {summary.count} addresses, "
        f"{summary.pct_within_500ft}% within 500ft, "
        f"{summary.pct_underserved}% underserved, {len(zone_stats)} zones"
    )

    return {
        "engine": engine,
        "summary": summary,
        "address_records": engine.address_records,
        "zone_stats": zone_stats,
        "timings": timings,
    }
