"""
Unit tests for the CoverageEngine session object (in-process, no worker).

Tests:
1. Direct operations: index building, precompute, zone analysis
2. Lifecycle: rebuilding an index drops the address table
3. handle(): progress then one terminal response, request_id echoed
4. Errors become messages and leave state intact

Run with: python -m pytest Hydrant_Coverage/_tests/test_coverage_engine.py -v
"""

import pytest

from Hydrant_Coverage.config_types import load_app_config
from Hydrant_Coverage.parallel import messages
from Hydrant_Coverage.parallel.coverage_engine import CoverageEngine

HYDRANTS = [{"lat": 38.58, "lon": -121.49, "HydrantID": "H1"}]
STATIONS = [{"lat": 38.60, "lon": -121.50, "name": "Station 1"}]
ADDRESSES = [{"Latitude_Y": 38.581, "Longitude_X": -121.491, "FullAddress": "A"}]
ZONE = {
    "type": "Polygon",
    "coordinates": [
        [[-121.50, 38.57], [-121.48, 38.57], [-121.48, 38.59], [-121.50, 38.59], [-121.50, 38.57]]
    ],
}


@pytest.fixture
def engine():
    return CoverageEngine()


@pytest.fixture
def ready_engine(engine):
    engine.build_hydrant_index(HYDRANTS)
    engine.set_stations(STATIONS)
    engine.precompute(ADDRESSES)
    return engine


def _run(engine, msg_type, data=None, request_id=1):
    return list(engine.handle(messages.make_message(msg_type, request_id, data)))


class TestDirectOperations:
    """Engine methods called directly."""

    def test_build_hydrant_index(self, engine):
        result = engine.build_hydrant_index(HYDRANTS)
        assert result["count"] == 1
        assert result["elapsed_ms"] >= 0
        assert len(engine.hydrant_grid) == 1

    def test_grids_use_configured_cell_sizes(self, engine):
        assert engine.hydrant_grid.cell_size_deg == 0.005
        assert engine.station_grid.cell_size_deg == 0.01

    def test_set_stations_payload_is_record(self, engine):
        engine.set_stations(STATIONS)
        assert engine.station_grid.points[0].payload["name"] == "Station 1"

    def test_precompute_summary(self, ready_engine):
        summary = ready_engine.global_summary
        assert summary.count == 1
        assert summary.pct_within_500ft == 100.0
        assert summary.pct_within_station_mile == 0.0
        assert ready_engine.address_records[0].nearest_hydrant_distance_ft == pytest.approx(
            463.0, abs=2.0
        )

    def test_analyze_zone(self, ready_engine):
        result = ready_engine.analyze_zone(ZONE)
        stats = result["stats"]
        assert stats["hydrant_count"] == 1
        assert stats["station_count"] == 0
        assert stats["address_count"] == 1
        assert stats["coverage_pct_500"] == 100.0
        assert stats["hydrant_station_ratio"] is None

    def test_analyze_zone_before_precompute(self, engine):
        engine.build_hydrant_index(HYDRANTS)
        stats = engine.analyze_zone(ZONE)["stats"]
        assert stats["hydrant_count"] == 1
        assert stats["address_count"] == 0


class TestLifecycle:
    """Index changes invalidate the address table."""

    def test_rebuild_hydrants_drops_table(self, ready_engine):
        ready_engine.build_hydrant_index(HYDRANTS)
        assert ready_engine.address_records == []
        assert ready_engine.global_summary is None

    def test_replace_stations_drops_table(self, ready_engine):
        ready_engine.set_stations([])
        assert ready_engine.address_records == []

    def test_precompute_reuses_stored_addresses(self, ready_engine):
        ready_engine.set_stations([{"lat": 38.5815, "lon": -121.4915}])
        result = ready_engine.precompute()
        assert result["count"] == 1
        assert result["summary"]["pct_within_station_mile"] == 100.0

    def test_rebuild_replaces_not_appends(self, engine):
        engine.build_hydrant_index(HYDRANTS)
        engine.build_hydrant_index(HYDRANTS + [{"lat": 38.59, "lon": -121.48}])
        assert len(engine.hydrant_grid) == 2


class TestHandle:
    """Message dispatch."""

    def test_build_hydrant_index_message(self, engine):
        responses = _run(engine, messages.BUILD_HYDRANT_INDEX, {"hydrants": HYDRANTS}, 7)
        assert len(responses) == 1
        assert responses[0]["type"] == messages.HYDRANT_INDEX_READY
        assert responses[0]["request_id"] == 7
        assert responses[0]["data"]["count"] == 1

    def test_precompute_emits_progress_then_ready(self):
        engine = CoverageEngine(load_app_config({"precompute": {"chunk_size": 2}}))
        _run(engine, messages.BUILD_HYDRANT_INDEX, {"hydrants": HYDRANTS})
        addresses = [{"lat": 38.581, "lon": -121.491}] * 5
        responses = _run(
            engine, messages.PRECOMPUTE_ADDRESS_DISTANCES, {"addresses": addresses}, 3
        )

        types = [r["type"] for r in responses]
        assert types == [
            messages.PROGRESS,
            messages.PROGRESS,
            messages.ADDRESS_DISTANCES_READY,
        ]
        assert responses[0]["data"] == {
            "task": messages.PRECOMPUTE_ADDRESS_DISTANCES,
            "current": 2,
            "total": 5,
        }
        assert all(r["request_id"] == 3 for r in responses)
        assert responses[-1]["data"]["summary"]["count"] == 5

    def test_analyze_zone_message(self, ready_engine):
        responses = _run(ready_engine, messages.ANALYZE_ZONE, {"zone": ZONE}, 11)
        assert responses[-1]["type"] == messages.ZONE_ANALYSIS_READY
        assert responses[-1]["request_id"] == 11
        assert responses[-1]["data"]["stats"]["area_type"] == "Rural"

    def test_malformed_zone_is_empty_not_error(self, ready_engine):
        bad_zone = {"type": "MultiPolygon", "coordinates": [5]}
        responses = _run(ready_engine, messages.ANALYZE_ZONE, {"zone": bad_zone}, 12)
        assert responses[-1]["type"] == messages.ZONE_ANALYSIS_READY
        stats = responses[-1]["data"]["stats"]
        assert stats["address_count"] == 0
        assert stats["hydrant_count"] == 0
        assert stats["area_type"] == "Unknown"

    def test_shutdown_ack(self, engine):
        responses = _run(engine, messages.SHUTDOWN, {}, 99)
        assert responses == [messages.make_message(messages.SHUTDOWN_ACK, 99, {})]

    def test_unknown_type(self, engine):
        responses = _run(engine, "rebuild_everything", {}, 5)
        assert len(responses) == 1
        assert responses[0]["type"] == messages.ERROR
        assert responses[0]["request_id"] == 5
        assert "rebuild_everything" in responses[0]["data"]["message"]

    def test_every_request_ends_terminal(self, ready_engine):
        for msg_type, data in [
            (messages.BUILD_HYDRANT_INDEX, {"hydrants": HYDRANTS}),
            (messages.SET_STATIONS, {"stations": STATIONS}),
            (messages.PRECOMPUTE_ADDRESS_DISTANCES, {"addresses": ADDRESSES}),
            (messages.ANALYZE_ZONE, {"zone": ZONE}),
            ("bogus", {}),
        ]:
            responses = _run(ready_engine, msg_type, data)
            assert messages.is_terminal(responses[-1])
            assert not any(messages.is_terminal(r) for r in responses[:-1])


class TestErrors:
    """Failures become error messages."""

    def test_missing_coordinates_keeps_previous_index(self, ready_engine):
        responses = _run(
            ready_engine, messages.BUILD_HYDRANT_INDEX, {"hydrants": [{"id": "H9"}]}, 4
        )
        assert responses[0]["type"] == messages.ERROR
        assert responses[0]["data"]["request_type"] == messages.BUILD_HYDRANT_INDEX
        assert len(ready_engine.hydrant_grid) == 1
        assert ready_engine.global_summary is not None

    def test_bad_station_records(self, engine):
        responses = _run(engine, messages.SET_STATIONS, {"stations": ["not a mapping"]})
        assert responses[0]["type"] == messages.ERROR

    def test_unexpected_exception_is_reported(self, engine, monkeypatch):
        def boom(zone):
            raise RuntimeError("zone exploded")

        monkeypatch.setattr(engine, "analyze_zone", boom)
        responses = _run(engine, messages.ANALYZE_ZONE, {"zone": ZONE}, 8)
        assert responses[0]["type"] == messages.ERROR
        assert "zone exploded" in responses[0]["data"]["message"]

    def test_failed_precompute_drops_stale_table(self, ready_engine, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("precompute exploded")

        monkeypatch.setattr(
            "Hydrant_Coverage.parallel.coverage_engine.iter_precompute_address_distances",
            boom,
        )
        new_addresses = ADDRESSES * 2
        with pytest.raises(RuntimeError):
            ready_engine.precompute(new_addresses)

        assert len(ready_engine.addresses) == 2
        assert ready_engine.address_records == []
        assert ready_engine.global_summary is None

    def test_non_dict_message(self, engine):
        responses = list(engine.handle("build_hydrant_index"))
        assert responses[0]["type"] == messages.ERROR
