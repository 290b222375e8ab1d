#!/usr/bin/env python3
"""
Hydrant Coverage Engine - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the hydrant/station coverage
engine. Single source of truth for grid cell sizes, coverage thresholds,
density classification, precompute chunking, worker and logging settings.

Configuration Sections (ordered by importance for tuning):
1. grid_index: Cell sizes for the hydrant and station grids
2. coverage_thresholds: Distance thresholds for address flags
3. density_classes: Rural/suburban/urban address density boundaries
4. precompute: Chunk size for the address distance pass
5. worker: Dedicated worker process settings
6. zone_batch: Batch zone analysis (joblib) settings
7. logging: Log level and optional log file

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "HC_MAX_SEARCH_RINGS")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("HC_HYDRANT_CELL_SIZE_DEG", 0.005, float)
        0.005  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# HC_HYDRANT_CELL_SIZE_DEG  - float, hydrant grid cell size (default: 0.005)
# HC_STATION_CELL_SIZE_DEG  - float, station grid cell size (default: 0.01)
# HC_MAX_SEARCH_RINGS       - int, ring expansion cap (default: 20)
# HC_PRECOMPUTE_CHUNK_SIZE  - int, records per progress chunk (default: 5000)
# HC_ZONE_BATCH_N_JOBS      - int, joblib workers for batch zones (default: 1)
# HC_LOG_LEVEL              - "DEBUG", "INFO", ... (default: "INFO")
# HC_WORKER_RESOURCE_LOG    - "true"/"false", log worker RSS/CPU (default: false)
#
# Example usage:
#   export HC_HYDRANT_CELL_SIZE_DEG=0.0025
#   export HC_LOG_LEVEL=DEBUG
# ═══════════════════════════════════════════════════════════════════════════

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🧭 GRID INDEX
    # ═══════════════════════════════════════════════════════════════════════
    # Cell sizes are in degrees. Hydrants are dense, so they get fine cells
    # (~0.005° ≈ 1,800 ft N-S); stations are sparse and get coarse cells.
    # The ring cap bounds search cost: 20 rings of 0.005° ≈ 0.1° ≈ 7 miles.
    "grid_index": {
        "hydrant_cell_size_deg": _env_or_default(
            "HC_HYDRANT_CELL_SIZE_DEG", 0.005, float
        ),
        "station_cell_size_deg": _env_or_default(
            "HC_STATION_CELL_SIZE_DEG", 0.01, float
        ),
        "max_search_rings": _env_or_default("HC_MAX_SEARCH_RINGS", 20, int),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🚒 COVERAGE THRESHOLDS (feet)
    # ═══════════════════════════════════════════════════════════════════════
    # within_500ft   -> distance <= optimal_ft
    # within_1000ft  -> distance <= marginal_ft
    # underserved    -> distance >  marginal_ft
    # station mile   -> station distance <= station_coverage_ft
    "coverage_thresholds": {
        "optimal_ft": 500.0,
        "marginal_ft": 1000.0,
        "station_coverage_ft": 5280.0,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🏘️ DENSITY CLASSIFICATION (addresses per square mile)
    # ═══════════════════════════════════════════════════════════════════════
    # Rural: < rural_max, Suburban: < suburban_max, Urban: >= suburban_max
    "density_classes": {
        "rural_max": 100.0,
        "suburban_max": 1000.0,
        "rural_note": (
            "Low population density area. Fire departments may use tanker "
            "trucks or draft water from natural sources."
        ),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📦 ADDRESS PRECOMPUTE
    # ═══════════════════════════════════════════════════════════════════════
    # A progress message is emitted after every chunk; this is also where the
    # worker gets to flush its outbox during long passes.
    "precompute": {
        "chunk_size": _env_or_default("HC_PRECOMPUTE_CHUNK_SIZE", 5000, int),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🏭 WORKER PROCESS
    # ═══════════════════════════════════════════════════════════════════════
    "worker": {
        # multiprocessing start method ("spawn" is safe on every platform)
        "start_method": "spawn",
        # Seconds the client listener blocks on the outbox before re-checking
        "poll_interval_s": 0.1,
        # Seconds to wait for the process to exit on stop()
        "join_timeout_s": 5.0,
        "log_resource_usage": _env_bool("HC_WORKER_RESOURCE_LOG", False),
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ ZONE BATCH ANALYSIS
    # ═══════════════════════════════════════════════════════════════════════
    "zone_batch": {
        "n_jobs": _env_or_default("HC_ZONE_BATCH_N_JOBS", 1, int),
        "backend": "loky",
        "verbose": 0,
        "fallback_on_error": True,
        "zone_id_fields": ["ZIP5", "zip", "ZIPCODE"],
        "zone_name_fields": ["PO_NAME", "po_name", "city"],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📋 LOGGING
    # ═══════════════════════════════════════════════════════════════════════
    "logging": {
        "level": _env_or_default("HC_LOG_LEVEL", "INFO"),
        "log_file": None,
    },
}
