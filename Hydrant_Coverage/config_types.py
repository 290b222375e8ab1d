"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Define all configuration dataclasses for the hydrant coverage
engine. Wraps the CONFIG dictionary with typed, validated config objects.

Usage:
    from Hydrant_Coverage.config import CONFIG
    from Hydrant_Coverage.config_types import AppConfig

    # Create once at session startup
    app_config = AppConfig.from_dict(CONFIG)

    # Use throughout the engine
    grid = SpatialGrid(app_config.grid_index.hydrant_cell_size_deg)

For Navigation: Use VS Code outline (Ctrl+Shift+O)

NAVIGATION GUIDE
----------------
# ═════ 1. GRID INDEX CONFIGURATION
# ═════ 2. COVERAGE THRESHOLDS CONFIGURATION
# ═════ 3. DENSITY CLASS CONFIGURATION
# ═════ 4. PRECOMPUTE CONFIGURATION
# ═════ 5. WORKER CONFIGURATION
# ═════ 6. ZONE BATCH CONFIGURATION
# ═════ 7. LOGGING CONFIGURATION
# ═════ 8. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple


# ═══════════════════════════════════════════════════════════════════════════════
# 🧭 1. GRID INDEX CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GridIndexConfig:
    """
    Cell sizes for the two spatial grids.

    Attributes:
        hydrant_cell_size_deg: Cell edge for the (dense) hydrant grid, degrees.
        station_cell_size_deg: Cell edge for the (sparse) station grid, degrees.
        max_search_rings: Ring expansion cap for nearest-point queries.
    """

    hydrant_cell_size_deg: float = 0.005
    station_cell_size_deg: float = 0.01
    max_search_rings: int = 20

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GridIndexConfig":
        """Create GridIndexConfig from CONFIG['grid_index'] dictionary."""
        return cls(
            hydrant_cell_size_deg=float(d.get("hydrant_cell_size_deg", 0.005)),
            station_cell_size_deg=float(d.get("station_cell_size_deg", 0.01)),
            max_search_rings=int(d.get("max_search_rings", 20)),
        )

    def __post_init__(self) -> None:
        if self.hydrant_cell_size_deg <= 0 or self.station_cell_size_deg <= 0:
            raise ValueError("Grid cell sizes must be positive")
        if self.max_search_rings < 1:
            raise ValueError(
                f"max_search_rings must be >= 1, got {self.max_search_rings}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# 🚒 2. COVERAGE THRESHOLDS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CoverageThresholdsConfig:
    """
    Distance thresholds (feet) used to flag each address.

    Attributes:
        optimal_ft: Inclusive upper bound for within_500ft.
        marginal_ft: Inclusive upper bound for within_1000ft; beyond it the
            address is underserved.
        station_coverage_ft: Inclusive upper bound for within_station_mile.
    """

    optimal_ft: float = 500.0
    marginal_ft: float = 1000.0
    station_coverage_ft: float = 5280.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CoverageThresholdsConfig":
        """Create CoverageThresholdsConfig from CONFIG['coverage_thresholds']."""
        return cls(
            optimal_ft=float(d.get("optimal_ft", 500.0)),
            marginal_ft=float(d.get("marginal_ft", 1000.0)),
            station_coverage_ft=float(d.get("station_coverage_ft", 5280.0)),
        )

    def __post_init__(self) -> None:
        # within_500ft => within_1000ft relies on this ordering
        if not 0 < self.optimal_ft <= self.marginal_ft:
            raise ValueError(
                f"Expected 0 < optimal_ft <= marginal_ft, got "
                f"{self.optimal_ft} / {self.marginal_ft}"
            )
        if self.station_coverage_ft <= 0:
            raise ValueError("station_coverage_ft must be positive")


# ═══════════════════════════════════════════════════════════════════════════════
# 🏘️ 3. DENSITY CLASS CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DensityClassConfig:
    """
    Address density boundaries (addresses per square mile).

    Attributes:
        rural_max: Densities below this are Rural.
        suburban_max: Densities below this (and >= rural_max) are Suburban.
        rural_note: Advisory note attached to Rural zones.
    """

    rural_max: float = 100.0
    suburban_max: float = 1000.0
    rural_note: str = (
        "Low population density area. Fire departments may use tanker "
        "trucks or draft water from natural sources."
    )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DensityClassConfig":
        """Create DensityClassConfig from CONFIG['density_classes']."""
        default = cls()
        return cls(
            rural_max=float(d.get("rural_max", default.rural_max)),
            suburban_max=float(d.get("suburban_max", default.suburban_max)),
            rural_note=d.get("rural_note", default.rural_note),
        )

    def __post_init__(self) -> None:
        if not 0 <= self.rural_max <= self.suburban_max:
            raise ValueError(
                f"Expected 0 <= rural_max <= suburban_max, got "
                f"{self.rural_max} / {self.suburban_max}"
            )


# ═══════════════════════════════════════════════════════════════════════════════
# 📦 4. PRECOMPUTE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PrecomputeConfig:
    """Chunking for the address distance pass."""

    chunk_size: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PrecomputeConfig":
        """Create PrecomputeConfig from CONFIG['precompute']."""
        return cls(chunk_size=int(d.get("chunk_size", 5000)))

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")


# ═══════════════════════════════════════════════════════════════════════════════
# 🏭 5. WORKER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class WorkerConfig:
    """
    Dedicated worker process settings.

    Attributes:
        start_method: multiprocessing start method ("spawn", "fork", ...).
        poll_interval_s: Listener blocking timeout on the outbox queue.
        join_timeout_s: How long stop() waits for the process to exit.
        log_resource_usage: Log RSS/CPU after each handled message (debug).
    """

    start_method: str = "spawn"
    poll_interval_s: float = 0.1
    join_timeout_s: float = 5.0
    log_resource_usage: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WorkerConfig":
        """Create WorkerConfig from CONFIG['worker']."""
        return cls(
            start_method=d.get("start_method", "spawn"),
            poll_interval_s=float(d.get("poll_interval_s", 0.1)),
            join_timeout_s=float(d.get("join_timeout_s", 5.0)),
            log_resource_usage=bool(d.get("log_resource_usage", False)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🗺️ 6. ZONE BATCH CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ZoneBatchConfig:
    """
    Settings for analysing every zone of a GeoDataFrame.

    Attributes:
        n_jobs: joblib worker count (1 = sequential, same code path).
        backend: joblib backend name.
        verbose: joblib verbosity.
        fallback_on_error: Re-run inline if parallel dispatch fails.
        zone_id_fields: Property names tried, in order, for the zone id.
        zone_name_fields: Property names tried, in order, for the zone name.
    """

    n_jobs: int = 1
    backend: str = "loky"
    verbose: int = 0
    fallback_on_error: bool = True
    zone_id_fields: Tuple[str, ...] = ("ZIP5", "zip", "ZIPCODE")
    zone_name_fields: Tuple[str, ...] = ("PO_NAME", "po_name", "city")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ZoneBatchConfig":
        """Create ZoneBatchConfig from CONFIG['zone_batch']."""
        return cls(
            n_jobs=int(d.get("n_jobs", 1)),
            backend=d.get("backend", "loky"),
            verbose=int(d.get("verbose", 0)),
            fallback_on_error=bool(d.get("fallback_on_error", True)),
            zone_id_fields=tuple(d.get("zone_id_fields", ("ZIP5", "zip", "ZIPCODE"))),
            zone_name_fields=tuple(
                d.get("zone_name_fields", ("PO_NAME", "po_name", "city"))
            ),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 📋 7. LOGGING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class LoggingConfig:
    """Log level name and optional log file path."""

    level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoggingConfig":
        """Create LoggingConfig from CONFIG['logging']."""
        return cls(
            level=str(d.get("level", "INFO")).upper(),
            log_file=d.get("log_file"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🎛️ 8. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration object for the hydrant coverage engine.

    Create it once per session using AppConfig.from_dict(CONFIG) and pass it
    to the engine, worker and batch functions. Being frozen and built from
    plain values, it pickles cleanly across the worker process boundary.

    Attributes:
        grid_index: Grid cell sizes and ring cap.
        coverage_thresholds: Address flag thresholds.
        density_classes: Zone classification boundaries.
        precompute: Address pass chunking.
        worker: Worker process settings.
        zone_batch: Batch zone analysis settings.
        logging: Log level and file.

    Example:
        from Hydrant_Coverage.config import CONFIG
        from Hydrant_Coverage.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG)
    """

    grid_index: GridIndexConfig = field(default_factory=GridIndexConfig)
    coverage_thresholds: CoverageThresholdsConfig = field(
        default_factory=CoverageThresholdsConfig
    )
    density_classes: DensityClassConfig = field(default_factory=DensityClassConfig)
    precompute: PrecomputeConfig = field(default_factory=PrecomputeConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    zone_batch: ZoneBatchConfig = field(default_factory=ZoneBatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """
        Create AppConfig from the CONFIG dictionary.

        Missing sections fall back to dataclass defaults.

        Args:
            config_dict: The CONFIG dictionary from config.py.

        Returns:
            AppConfig instance with all settings populated.
        """
        return cls(
            grid_index=GridIndexConfig.from_dict(config_dict.get("grid_index", {})),
            coverage_thresholds=CoverageThresholdsConfig.from_dict(
                config_dict.get("coverage_thresholds", {})
            ),
            density_classes=DensityClassConfig.from_dict(
                config_dict.get("density_classes", {})
            ),
            precompute=PrecomputeConfig.from_dict(config_dict.get("precompute", {})),
            worker=WorkerConfig.from_dict(config_dict.get("worker", {})),
            zone_batch=ZoneBatchConfig.from_dict(config_dict.get("zone_batch", {})),
            logging=LoggingConfig.from_dict(config_dict.get("logging", {})),
        )


def load_app_config(overrides: Optional[Dict[str, Any]] = None) -> AppConfig:
    """
    Build an AppConfig from CONFIG, shallow-merging per-section overrides.

    Args:
        overrides: Optional {section: {key: value}} dict, e.g.
            {"precompute": {"chunk_size": 100}}.

    Returns:
        AppConfig instance.
    """
    from Hydrant_Coverage.config import CONFIG

    merged = {section: dict(values) for section, values in CONFIG.items()}
    for section, values in (overrides or {}).items():
        merged.setdefault(section, {}).update(values)
    return AppConfig.from_dict(merged)
