"""
Coverage analysis: address distance precompute and zone aggregation.

Module Structure:
- address_precompute.py: Chunked nearest-hydrant/station pass + global summary
- zone_analyzer.py: Per-zone statistics and density classification
- zone_batch.py: Every zone of a GeoDataFrame via joblib
"""

from Hydrant_Coverage.analysis.address_precompute import (
    build_address_record,
    coverage_flags,
    iter_precompute_address_distances,
    precompute_address_distances,
    summarize_address_distances,
)
from Hydrant_Coverage.analysis.zone_analyzer import (
    analyze_zone,
    classify_area_type,
    count_points_in_zone,
)
from Hydrant_Coverage.analysis.zone_batch import (
    analyze_zones,
    resolve_zone_label,
    worker_analyze_zone,
)

__all__ = [
    # Address precompute
    "build_address_record",
    "coverage_flags",
    "iter_precompute_address_distances",
    "precompute_address_distances",
    "summarize_address_distances",
    # Zone analysis
    "analyze_zone",
    "classify_area_type",
    "count_points_in_zone",
    # Batch
    "analyze_zones",
    "resolve_zone_label",
    "worker_analyze_zone",
]
