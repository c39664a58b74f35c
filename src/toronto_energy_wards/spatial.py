"""
Ward boundaries and the point-in-polygon join that labels each record.
"""

import logging
from pathlib import Path

import geopandas as gpd
import pandas as pd
from pyproj import CRS

from .errors import CrsMismatchError

logger = logging.getLogger(__name__)

POINT_CRS = "EPSG:4326"
WARD_NAME_FIELD = "AREA_NAME"


def load_wards(path: Path) -> gpd.GeoDataFrame:
    """Read the ward shapefile. Polygon order is kept as published."""
    wards = gpd.read_file(path)
    logger.info("Loaded %d ward polygons from %s (crs=%s)", len(wards), path.name, wards.crs)
    return wards


def ward_table(wards: gpd.GeoDataFrame) -> pd.DataFrame:
    """Ward attributes with the geometry dropped."""
    return pd.DataFrame(wards.drop(columns=wards.geometry.name))


def check_crs(wards: gpd.GeoDataFrame, expected: str = POINT_CRS) -> None:
    """
    Geocoded points are WGS84 lon/lat; the wards must be in exactly that CRS.

    Checked once per run. A mismatch would silently mislabel every record,
    so it is fatal rather than reprojected.
    """
    if wards.crs is None:
        raise CrsMismatchError("Ward polygons have no CRS")
    if not wards.crs.equals(CRS.from_user_input(expected), ignore_axis_order=True):
        raise CrsMismatchError(f"Ward CRS {wards.crs} does not match point CRS {expected}")


def assign_wards(
    records: pd.DataFrame,
    wards: gpd.GeoDataFrame,
    name_field: str = WARD_NAME_FIELD,
) -> pd.DataFrame:
    """
    Label every record with the ward whose polygon contains its point.

    Points touching more than one polygon (shared edges and vertices) take
    the first ward in the shapefile's order. Records with no coordinates or
    outside every ward get a missing ward. Row order and count are preserved.
    """
    check_crs(wards)

    out = records.reset_index(drop=True)
    out["ward"] = pd.Series(pd.NA, index=out.index, dtype=object)

    has_coords = out["latitude"].notna() & out["longitude"].notna()
    located = out[has_coords]
    if located.empty:
        logger.warning("No records have coordinates; every ward is missing")
        return out

    points = gpd.GeoDataFrame(
        {"record": located.index},
        index=located.index,
        geometry=gpd.points_from_xy(located["longitude"], located["latitude"]),
        crs=wards.crs,
    )
    polygons = wards[[name_field, wards.geometry.name]].reset_index(drop=True)
    polygons["ward_order"] = range(len(polygons))

    joined = gpd.sjoin(points, polygons, how="inner", predicate="intersects")
    # Several hits only happen on shared boundaries; keep the first ward.
    joined = joined.sort_values("ward_order", kind="stable")
    first = joined[~joined.index.duplicated(keep="first")]

    out.loc[first.index, "ward"] = first[name_field]

    ties = int(joined.index.duplicated().sum())
    if ties:
        logger.info("%d points sit on a ward boundary; using first ward", ties)
    logger.info(
        "Ward assigned to %d of %d records (%d outside all wards)",
        len(first), len(out), int(has_coords.sum()) - len(first),
    )
    return out
