"""
Unit tests for batch zone analysis over a GeoDataFrame.

Tests:
1. Zone id/name resolution from property aliases
2. worker_analyze_zone() result dict, success and failure
3. analyze_zones() end to end (n_jobs=1 keeps it in-process)

Run with: python -m pytest Hydrant_Coverage/_tests/test_zone_batch.py -v
"""

import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from Hydrant_Coverage.analysis.address_precompute import precompute_address_distances
from Hydrant_Coverage.analysis.zone_batch import (
    analyze_zones,
    resolve_zone_label,
    worker_analyze_zone,
)
from Hydrant_Coverage.config_types import DensityClassConfig, ZoneBatchConfig
from Hydrant_Coverage.spatial.grid_index import SpatialGrid


@pytest.fixture
def dataset():
    hydrants = [{"lat": 38.58, "lon": -121.49}, {"lat": 38.70, "lon": -121.40}]
    stations = [{"lat": 38.60, "lon": -121.50}]
    addresses = [{"lat": 38.581, "lon": -121.491}, {"lat": 38.582, "lon": -121.488}]
    records, _ = precompute_address_distances(
        addresses,
        SpatialGrid.from_points(hydrants, 0.005),
        SpatialGrid.from_points(stations, 0.01),
    )
    return hydrants, stations, records


@pytest.fixture
def zones_gdf():
    return gpd.GeoDataFrame(
        {"ZIP5": ["95814", None], "zip": [None, "95833"], "PO_NAME": ["Sacramento", None]},
        geometry=[
            box(-121.50, 38.57, -121.48, 38.59),
            box(-121.45, 38.65, -121.35, 38.75),
        ],
        crs="EPSG:4326",
    )


class TestResolveZoneLabel:
    """Property alias fallbacks."""

    def test_first_alias_wins(self):
        assert resolve_zone_label({"ZIP5": "95814", "zip": "00000"}) == ("95814", "")

    def test_fallback_alias_and_name(self):
        assert resolve_zone_label({"ZIPCODE": 95833, "city": "Natomas"}) == (
            "95833",
            "Natomas",
        )

    def test_unknown(self):
        assert resolve_zone_label({}) == ("Unknown", "")

    def test_blank_and_nan_skipped(self):
        assert resolve_zone_label({"ZIP5": "  ", "zip": float("nan"), "ZIPCODE": "95811"})[0] == "95811"


class TestWorkerAnalyzeZone:
    """Picklable worker wrapper."""

    def test_success(self, dataset):
        hydrants, stations, records = dataset
        geometry = {
            "type": "Polygon",
            "coordinates": [
                [[-121.50, 38.57], [-121.48, 38.57], [-121.48, 38.59], [-121.50, 38.59]]
            ],
        }
        result = worker_analyze_zone(
            0, "95814", "Sacramento", geometry, hydrants, stations, records,
            DensityClassConfig(),
        )
        assert result["success"] is True
        assert result["error"] is None
        assert result["stats"]["address_count"] == 2
        assert result["elapsed_ms"] >= 0

    def test_failure_is_captured(self, dataset):
        hydrants, stations, _ = dataset
        result = worker_analyze_zone(
            1, "bad", "", {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1]]]},
            hydrants, stations, ["not a record"], DensityClassConfig(),
        )
        assert result["success"] is False
        assert result["error"].startswith("AttributeError")
        assert result["stats"] == {}


class TestAnalyzeZones:
    """GeoDataFrame in, DataFrame out."""

    def test_one_row_per_zone(self, zones_gdf, dataset):
        hydrants, stations, records = dataset
        df = analyze_zones(
            zones_gdf, hydrants, stations, records, batch=ZoneBatchConfig(n_jobs=1)
        )

        assert isinstance(df, pd.DataFrame)
        assert list(df["zone_index"]) == [0, 1]
        assert list(df["zone_id"]) == ["95814", "95833"]
        assert df.loc[0, "zone_name"] == "Sacramento"
        assert df["success"].all()
        assert df.loc[0, "address_count"] == 2
        assert df.loc[0, "hydrant_count"] == 1
        assert df.loc[1, "address_count"] == 0
        assert df.loc[1, "hydrant_count"] == 1
        assert df.loc[1, "coverage_pct_500"] == 0.0

    def test_projected_zones_are_reprojected(self, zones_gdf, dataset):
        hydrants, stations, records = dataset
        df = analyze_zones(
            zones_gdf.to_crs("EPSG:3857"), hydrants, stations, records,
            batch=ZoneBatchConfig(n_jobs=1),
        )
        assert df.loc[0, "address_count"] == 2

    def test_empty_input(self, dataset):
        hydrants, stations, records = dataset
        assert analyze_zones(gpd.GeoDataFrame(), hydrants, stations, records).empty
