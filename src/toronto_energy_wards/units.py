"""
Unit reconciliation: one canonical unit per measured quantity.

Canonical units are square feet, megalitres, watt-hours, cubic metres and
kilograms. Every conversion is row-local.

Two quirks of the published data are reproduced as-is:

* ``electricity_wh`` is 0 (not missing) whenever the electricity unit is
  anything other than ``"kWh"``.
* ``gas_cm`` is read from the floor-area value/unit pair: the sheets overlay
  the gas volume on those columns when the unit is ``"Cubic Meter"``.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SQM_TO_SQFT = 10.7639
KWH_TO_WH = 1000


def _number_text(value):
    if pd.isna(value):
        return None
    return str(value).strip().replace(",", "")


def to_number(values: pd.Series) -> pd.Series:
    """Parse a column to float; anything unparsable becomes NaN."""
    return pd.to_numeric(values.map(_number_text), errors="coerce").astype(float)


def reconcile_units(df: pd.DataFrame) -> pd.DataFrame:
    """Add canonical-unit columns to a copy of ``df``."""
    out = df.copy()
    unit = out["unit"]
    floor_area = to_number(out["total_floor_area"])

    out["floor_area_sf"] = np.select(
        [unit == "Square meters", unit == "Square feet"],
        [floor_area * SQM_TO_SQFT, floor_area],
        default=np.nan,
    )
    out["flow_ml"] = to_number(out["annual_flow_mega_litres"])
    out["electricity_wh"] = np.where(
        out["electricity_unit"] == "kWh",
        to_number(out["electricity_quantity"]) * KWH_TO_WH,
        0.0,
    )
    out["gas_cm"] = np.where(unit == "Cubic Meter", floor_area, 0.0)
    out["ghg_emissions_kg"] = to_number(out["ghg_emissions_kg"])
    out["avg_hrs_wk"] = to_number(out["avg_hrs_wk"])

    missing_area = int(out["floor_area_sf"].isna().sum())
    if missing_area:
        logger.warning("%d rows have no usable floor area (unit not sq ft / sq m)", missing_area)
    return out
