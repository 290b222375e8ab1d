"""
Coverage engine session object.

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Own all engine state for one caller session and map
protocol messages onto the spatial/analysis functions.

State (process-local, mutated only by handled messages, in arrival order):
- hydrant_grid / station_grid: SpatialGrid instances (fine / coarse cells)
- hydrants / stations: normalised point records (for zone containment)
- addresses: last address set supplied for precompute
- address_records / global_summary: the precomputed distance table

Lifecycle rules:
- Every dataset is indexed wholesale when (re)supplied.
- Rebuilding the hydrant index or replacing stations drops the distance
  table; a precompute request with no "addresses" re-runs the pass over
  the stored address set.
- Input shape is validated BEFORE any state is touched, so a rejected
  dataset leaves the previous index intact.

handle() never raises: failures become "error" messages.

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import time
from typing import Any, Dict, Generator, Iterator, List, Optional, Sequence

from Hydrant_Coverage.analysis.address_precompute import (
    iter_precompute_address_distances,
)
from Hydrant_Coverage.analysis.zone_analyzer import analyze_zone
from Hydrant_Coverage.config_types import AppConfig
from Hydrant_Coverage.models.coverage_models import (
    AddressDistanceRecord,
    GlobalSummary,
    ZoneStatistics,
)
from Hydrant_Coverage.models.point_records import (
    InputShapeError,
    normalize_point_records,
)
from Hydrant_Coverage.parallel import messages
from Hydrant_Coverage.spatial.grid_index import SpatialGrid

logger = logging.getLogger("HydrantCoverage.Engine")


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class CoverageEngine:
    """
    Explicit engine session: two grid indexes plus the address table.

    Args:
        config: AppConfig (defaults to dataclass defaults)

    Example:
        >>> engine = CoverageEngine()
        >>> engine.build_hydrant_index([{"lat": 38.58, "lon": -121.49}])["count"]
        1
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()
        grid_cfg = self.config.grid_index
        self.hydrant_grid = SpatialGrid(
            grid_cfg.hydrant_cell_size_deg, grid_cfg.max_search_rings
        )
        self.station_grid = SpatialGrid(
            grid_cfg.station_cell_size_deg, grid_cfg.max_search_rings
        )
        self.hydrants: List[Dict[str, Any]] = []
        self.stations: List[Dict[str, Any]] = []
        self.addresses: List[Dict[str, Any]] = []
        self.address_records: List[AddressDistanceRecord] = []
        self.global_summary: Optional[GlobalSummary] = None

    # ═══════════════════════════════════════════════════════════════════════
    # 🧭 INDEX BUILDING
    # ═══════════════════════════════════════════════════════════════════════

    def _invalidate_address_table(self) -> None:
        if self.address_records:
            logger.info("♻️ Dataset changed; precomputed address distances dropped")
        self.address_records = []
        self.global_summary = None

    def build_hydrant_index(self, hydrants: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        (Re)build the hydrant grid from {"lat", "lon"} records.

        Returns:
            {"count": int, "elapsed_ms": float}

        Raises:
            InputShapeError: If the records carry no coordinate fields
        """
        start = time.perf_counter()
        records = normalize_point_records(hydrants, name="hydrants")

        self.hydrant_grid.clear()
        self.hydrants = records
        for h in records:
            self.hydrant_grid.insert(h["lat"], h["lon"])
        self._invalidate_address_table()

        elapsed = _elapsed_ms(start)
        logger.info(
            f"🚰 Hydrant index built: {len(records)} hydrants in "
            f"{self.hydrant_grid.cell_count} cells ({elapsed:.1f}ms)"
        )
        return {"count": len(records), "elapsed_ms": elapsed}

    def set_stations(self, stations: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Replace the station set; each station record is its point payload.

        Returns:
            {"count": int, "elapsed_ms": float}
        """
        start = time.perf_counter()
        records = normalize_point_records(stations, name="stations")

        self.station_grid.clear()
        self.stations = records
        for s in records:
            self.station_grid.insert(s["lat"], s["lon"], s)
        self._invalidate_address_table()

        elapsed = _elapsed_ms(start)
        logger.info(f"🚒 Station index built: {len(records)} stations ({elapsed:.1f}ms)")
        return {"count": len(records), "elapsed_ms": elapsed}

    # ═══════════════════════════════════════════════════════════════════════
    # 📍 ADDRESS PRECOMPUTE
    # ═══════════════════════════════════════════════════════════════════════

    def iter_precompute(
        self, addresses: Optional[Sequence[Dict[str, Any]]] = None
    ) -> Generator[Dict[str, Any], None, Dict[str, Any]]:
        """
        Chunked precompute; yields progress data, returns the ready data.

        Args:
            addresses: New address records, or None to reuse the stored set

        Yields:
            {"task", "current", "total"} at each chunk boundary

        Returns:
            {"count", "elapsed_ms", "summary"} via StopIteration.value
        """
        start = time.perf_counter()
        if addresses is not None:
            self.addresses = normalize_point_records(addresses, name="addresses")
            self._invalidate_address_table()
        if self.hydrant_grid.is_empty:
            logger.warning("⚠️ Precompute requested before any hydrants were indexed")

        gen = iter_precompute_address_distances(
            self.addresses,
            self.hydrant_grid,
            self.station_grid,
            chunk_size=self.config.precompute.chunk_size,
            thresholds=self.config.coverage_thresholds,
        )
        while True:
            try:
                progress = next(gen)
            except StopIteration as stop:
                records, summary = stop.value
                break
            yield {
                "task": messages.PRECOMPUTE_ADDRESS_DISTANCES,
                "current": progress.current,
                "total": progress.total,
            }

        self.address_records = records
        self.global_summary = summary
        elapsed = _elapsed_ms(start)
        logger.info(
            f"📍 Address distances ready: {summary.count} addresses, "
            f"{summary.pct_within_500ft}% within 500ft ({elapsed:.1f}ms)"
        )
        return {"count": len(records), "elapsed_ms": elapsed, "summary": summary.as_dict()}

    def precompute(
        self, addresses: Optional[Sequence[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Run iter_precompute() to completion, discarding progress."""
        gen = self.iter_precompute(addresses)
        while True:
            try:
                next(gen)
            except StopIteration as stop:
                return stop.value

    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ ZONE ANALYSIS
    # ═══════════════════════════════════════════════════════════════════════

    def analyze_zone_stats(self, zone: Any) -> ZoneStatistics:
        """ZoneStatistics for one polygon against the current state."""
        return analyze_zone(
            zone,
            self.hydrants,
            self.stations,
            self.address_records,
            self.config.density_classes,
        )

    def analyze_zone(self, zone: Any) -> Dict[str, Any]:
        """
        Analyze a zone polygon.

        Returns:
            {"stats": dict, "elapsed_ms": float}
        """
        start = time.perf_counter()
        stats = self.analyze_zone_stats(zone)
        elapsed = _elapsed_ms(start)
        logger.info(
            f"🗺️ Zone analyzed: {stats.address_count} addresses, "
            f"{stats.hydrant_count} hydrants, {stats.area_type.value} ({elapsed:.1f}ms)"
        )
        return {"stats": stats.as_dict(), "elapsed_ms": elapsed}

    # ═══════════════════════════════════════════════════════════════════════
    # 📨 MESSAGE DISPATCH
    # ═══════════════════════════════════════════════════════════════════════

    def handle(self, message: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        """
        Handle one request message.

        Yields zero or more progress messages, then exactly one terminal
        response (the ready message or an error). Every yielded message
        carries the request's request_id.

        Args:
            message: {"type", "request_id", "data"} dict

        Yields:
            Response message dicts
        """
        msg_type = message.get("type") if isinstance(message, dict) else None
        request_id = message.get("request_id") if isinstance(message, dict) else None
        data = (message.get("data") if isinstance(message, dict) else None) or {}
        reply = messages.RESPONSE_FOR_REQUEST.get(msg_type)

        if reply is None:
            logger.warning(f"⚠️ Unknown message type: {msg_type!r}")
            yield messages.make_error(
                f"Unknown message type: {msg_type!r}", request_id, msg_type
            )
            return

        try:
            if msg_type == messages.BUILD_HYDRANT_INDEX:
                result = self.build_hydrant_index(data.get("hydrants") or [])
            elif msg_type == messages.SET_STATIONS:
                result = self.set_stations(data.get("stations") or [])
            elif msg_type == messages.PRECOMPUTE_ADDRESS_DISTANCES:
                gen = self.iter_precompute(data.get("addresses"))
                while True:
                    try:
                        progress = next(gen)
                    except StopIteration as stop:
                        result = stop.value
                        break
                    yield messages.make_message(messages.PROGRESS, request_id, progress)
            elif msg_type == messages.ANALYZE_ZONE:
                result = self.analyze_zone(data.get("zone"))
            else:
                result = {}
        except InputShapeError as e:
            logger.warning(f"⚠️ {msg_type} rejected: {e}")
            yield messages.make_error(str(e), request_id, msg_type)
            return
        except Exception as e:
            logger.exception(f"❌ {msg_type} failed")
            yield messages.make_error(f"{type(e).__name__}: {e}", request_id, msg_type)
            return

        yield messages.make_message(reply, request_id, result)
