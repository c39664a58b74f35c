"""
Final filter: keep only complete records with the fields reporting needs.

Nothing is repaired or imputed. A record missing any field is dropped.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

CLEAN_COLUMNS = [
    "operation_name",
    "ward",
    "avg_hrs_wk",
    "floor_area_sf",
    "flow_ml",
    "electricity_wh",
    "gas_cm",
    "ghg_emissions_kg",
    "latitude",
    "longitude",
    "year",
]


def drop_incomplete(df: pd.DataFrame, columns: list[str] | None = None) -> tuple[pd.DataFrame, int]:
    """
    Select ``columns`` and drop rows with any missing or blank value.

    Returns the cleaned frame and the number of rows dropped.
    """
    columns = columns or CLEAN_COLUMNS
    selected = df[columns].copy()
    selected = selected.replace(r"^\s*$", np.nan, regex=True)
    cleaned = selected.dropna().reset_index(drop=True)
    dropped = len(selected) - len(cleaned)
    logger.info("Kept %d of %d records (%d incomplete dropped)", len(cleaned), len(selected), dropped)
    return cleaned, dropped
