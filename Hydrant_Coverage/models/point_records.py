"""
Point record normalisation at the ingestion boundary.

Architectural Overview:
=======================
Responsibility: Turn caller-supplied point collections (dict records,
GeoJSON features, GeoDataFrames) into plain {"lat", "lon", ...} records
the engine can index. This is where missing coordinate columns are caught:
a collection with no recognisable latitude/longitude keys raises
InputShapeError before any index is touched.

Per-record problems (blank or unparseable coordinates) are not fatal: the
record is dropped and the drop count is logged.

Key Interactions:
-----------------
- parallel.coverage_engine: normalises every dataset before indexing
- analysis.zone_batch: reads zone ids with the same alias approach

Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import geopandas as gpd

from Hydrant_Coverage.spatial.polygon import extract_outer_rings, ring_centroid

logger = logging.getLogger("HydrantCoverage.Models.PointRecords")

# Column aliases seen in hydrant/station/address exports
LAT_KEYS: Tuple[str, ...] = ("lat", "latitude", "Latitude_Y", "y")
LON_KEYS: Tuple[str, ...] = ("lon", "lng", "longitude", "Longitude_X", "x")


class InputShapeError(ValueError):
    """Required coordinate fields are missing from an input collection."""


# ═══════════════════════════════════════════════════════════════════════════
# 🔑 KEY RESOLUTION
# ═══════════════════════════════════════════════════════════════════════════


def resolve_coordinate_keys(keys: Iterable[str]) -> Tuple[str, str]:
    """
    Pick the latitude and longitude keys from a record's keys.

    Args:
        keys: Field names of a representative record

    Returns:
        (lat_key, lon_key)

    Raises:
        InputShapeError: If either coordinate has no matching alias
    """
    available = set(keys)
    lat_key = next((k for k in LAT_KEYS if k in available), None)
    lon_key = next((k for k in LON_KEYS if k in available), None)
    if lat_key is None or lon_key is None:
        raise InputShapeError(
            "Records must have latitude/longitude fields "
            f"(one of {LAT_KEYS} and one of {LON_KEYS}); got {sorted(available)}"
        )
    return lat_key, lon_key


def _parse_coordinate(value: Any) -> Optional[float]:
    """Float coordinate, or None for blank/unparseable/non-finite values."""
    if value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    return f


# ═══════════════════════════════════════════════════════════════════════════
# 📋 RECORD NORMALISATION
# ═══════════════════════════════════════════════════════════════════════════


def normalize_point_records(
    records: Sequence[Mapping[str, Any]],
    name: str = "points",
) -> List[Dict[str, Any]]:
    """
    Copy records and set float "lat"/"lon" on each.

    Coordinate keys are resolved once from the first record. Records whose
    coordinates are missing or unparseable are dropped.

    Args:
        records: Sequence of mappings (dicts, pandas row dicts, ...)
        name: Dataset name for log messages

    Returns:
        New list of new dicts; the caller's records are not mutated

    Raises:
        InputShapeError: If the first record has no coordinate fields, or
            ``records`` is not a sequence of mappings
    """
    if not records:
        return []
    first = records[0]
    if not isinstance(first, Mapping):
        raise InputShapeError(
            f"{name}: expected a sequence of mappings, got {type(first).__name__}"
        )

    lat_key, lon_key = resolve_coordinate_keys(first.keys())

    normalized: List[Dict[str, Any]] = []
    dropped = 0
    for record in records:
        lat = _parse_coordinate(record.get(lat_key))
        lon = _parse_coordinate(record.get(lon_key))
        if lat is None or lon is None:
            dropped += 1
            continue
        out = dict(record)
        out["lat"] = lat
        out["lon"] = lon
        normalized.append(out)

    if dropped:
        logger.warning(
            f"⚠️ {name}: dropped {dropped} of {len(records)} records "
            f"with missing or invalid coordinates"
        )
    return normalized


# ═══════════════════════════════════════════════════════════════════════════
# 🚒 STATION FEATURES
# ═══════════════════════════════════════════════════════════════════════════


def _first_property(props: Mapping[str, Any], keys: Sequence[str]) -> Optional[Any]:
    for key in keys:
        value = props.get(key)
        if value:
            return value
    return None


def station_records_from_features(
    features: Iterable[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Build station records from GeoJSON features.

    Point features use their coordinate; Polygon/MultiPolygon footprints are
    placed at the vertex-average centroid of their first outer ring. Other
    geometry types are skipped.

    Args:
        features: GeoJSON Feature mappings

    Returns:
        List of {"id", "lat", "lon", "name", "agency", "properties"} dicts
    """
    stations: List[Dict[str, Any]] = []
    skipped = 0
    for i, feature in enumerate(features):
        geometry = feature.get("geometry") or {}
        props = dict(feature.get("properties") or {})

        lat = lon = None
        if geometry.get("type") == "Point":
            coords = geometry.get("coordinates") or []
            if len(coords) >= 2:
                lat = _parse_coordinate(coords[1])
                lon = _parse_coordinate(coords[0])
        else:
            rings = extract_outer_rings(geometry)
            if rings:
                lat, lon = ring_centroid(rings[0])

        if lat is None or lon is None:
            skipped += 1
            continue

        stations.append(
            {
                "id": i,
                "lat": lat,
                "lon": lon,
                "name": _first_property(props, ("STATION", "station", "NAME"))
                or f"Station {i + 1}",
                "agency": _first_property(props, ("AGENCY", "agency")) or "Unknown",
                "properties": props,
            }
        )

    if skipped:
        logger.warning(f"⚠️ stations: skipped {skipped} features without a location")
    return stations


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ GEODATAFRAME CONVERSION
# ═══════════════════════════════════════════════════════════════════════════


def _ensure_wgs84(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Reproject to EPSG:4326 if needed; a missing CRS is assumed WGS84."""
    if gdf.crs is None:
        logger.warning("⚠️ GeoDataFrame has no CRS, assuming EPSG:4326 (WGS84)")
        return gdf.set_crs("EPSG:4326")
    if gdf.crs.to_epsg() != 4326:
        logger.info(f"🔄 Reprojecting from {gdf.crs} to WGS84 (EPSG:4326)")
        return gdf.to_crs("EPSG:4326")
    return gdf


def point_records_from_geodataframe(gdf: gpd.GeoDataFrame) -> List[Dict[str, Any]]:
    """
    Convert a point GeoDataFrame to {"lat", "lon", ...attributes} records.

    Non-point geometries are represented by their centroid. Rows with empty
    geometry are skipped.

    Args:
        gdf: GeoDataFrame in any CRS

    Returns:
        List of record dicts (geometry column removed)
    """
    if gdf is None or gdf.empty:
        return []

    gdf = _ensure_wgs84(gdf)
    geom_col = gdf.geometry.name
    records: List[Dict[str, Any]] = []
    for _, row in gdf.iterrows():
        geom = row[geom_col]
        if geom is None or geom.is_empty:
            continue
        if geom.geom_type != "Point":
            geom = geom.centroid
        record = {k: v for k, v in row.items() if k != geom_col}
        record["lat"] = float(geom.y)
        record["lon"] = float(geom.x)
        records.append(record)
    return records
