"""Data models package for coverage results and point record normalisation."""

from .coverage_models import (
    AddressDistanceRecord,
    AreaType,
    GlobalSummary,
    PrecomputeProgress,
    ZoneStatistics,
    # Shared helpers
    percent_of,
)

from .point_records import (
    InputShapeError,
    LAT_KEYS,
    LON_KEYS,
    normalize_point_records,
    point_records_from_geodataframe,
    resolve_coordinate_keys,
    station_records_from_features,
)

__all__ = [
    # Coverage models
    "AddressDistanceRecord",
    "AreaType",
    "GlobalSummary",
    "PrecomputeProgress",
    "ZoneStatistics",
    "percent_of",
    # Point records
    "InputShapeError",
    "LAT_KEYS",
    "LON_KEYS",
    "normalize_point_records",
    "point_records_from_geodataframe",
    "resolve_coordinate_keys",
    "station_records_from_features",
]
