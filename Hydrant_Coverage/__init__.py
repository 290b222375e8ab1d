"""
Hydrant Coverage Engine

Fire-hydrant and fire-station coverage analysis over address points:
grid-indexed nearest-neighbour search, per-address distance precompute,
and per-zone (e.g. ZIP code) coverage statistics, served by a dedicated
worker process.
"""

from Hydrant_Coverage.config import CONFIG
from Hydrant_Coverage.config_types import AppConfig, load_app_config
from Hydrant_Coverage.parallel.coverage_engine import CoverageEngine
from Hydrant_Coverage.parallel.worker_client import CoverageWorkerClient

__all__ = [
    "CONFIG",
    "AppConfig",
    "load_app_config",
    "CoverageEngine",
    "CoverageWorkerClient",
]
