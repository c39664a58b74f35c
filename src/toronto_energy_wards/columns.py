"""
Column normalization for the yearly energy consumption spreadsheets.

The published sheets carry a free-text preamble above the header and the
header text changes between years, so columns are selected by position
using a fixed descriptor per known sheet format.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from .errors import SchemaError

logger = logging.getLogger(__name__)

# Canonical names for the selected source columns, in source order.
CANONICAL_FIELDS = (
    "operation_name",
    "operation_type",
    "address",
    "city",
    "postal_code",
    "total_floor_area",
    "unit",
    "avg_hrs_wk",
    "annual_flow_mega_litres",
    "electricity_quantity",
    "electricity_unit",
    "natural_gas_quantity",
    "natural_gas_unit",
    "ghg_emissions_kg",
)

RAW_COLUMNS = list(CANONICAL_FIELDS) + ["year"]

# Source positions 0-12, then GHG emissions far to the right.
_SOURCE_POSITIONS = tuple(range(13)) + (31,)


@dataclass(frozen=True)
class SourceFormat:
    """Layout of one family of published sheets."""

    format_id: str
    preamble_rows: int
    columns: tuple[tuple[int, str], ...]

    @property
    def min_width(self) -> int:
        return max(idx for idx, _ in self.columns) + 1


_DEFAULT_COLUMNS = tuple(zip(_SOURCE_POSITIONS, CANONICAL_FIELDS))

# The 2011-2014 workbook has one extra header row above the data.
FORMATS = {
    "2011-2014": SourceFormat("2011-2014", preamble_rows=9, columns=_DEFAULT_COLUMNS),
    "2015-2018": SourceFormat("2015-2018", preamble_rows=8, columns=_DEFAULT_COLUMNS),
}


def get_format(format_id: str) -> SourceFormat:
    try:
        return FORMATS[format_id]
    except KeyError:
        raise SchemaError(f"Unknown sheet format {format_id!r}; known: {sorted(FORMATS)}") from None


def normalize_columns(raw: pd.DataFrame, year: int, fmt: SourceFormat) -> pd.DataFrame:
    """
    Map one raw sheet onto the canonical RawRecord columns.

    ``raw`` is the sheet as read with no header row. The first
    ``fmt.preamble_rows`` rows are discarded, the descriptor's columns are
    picked by position and renamed, and ``year`` is attached to every row.
    """
    if raw.shape[1] < fmt.min_width:
        raise SchemaError(
            f"Sheet for {year} has {raw.shape[1]} columns; format {fmt.format_id} "
            f"needs at least {fmt.min_width}"
        )

    positions = [idx for idx, _ in fmt.columns]
    names = [name for _, name in fmt.columns]

    out = raw.iloc[fmt.preamble_rows:, positions].copy()
    out.columns = names
    out = out.reset_index(drop=True)
    out["year"] = int(year)

    logger.info("Normalized %d rows for %d (format %s)", len(out), year, fmt.format_id)
    return out[RAW_COLUMNS]


def combine_years(frames: list[pd.DataFrame]) -> pd.DataFrame:
    """Stack normalized yearly frames into one table, keeping every row."""
    if not frames:
        return pd.DataFrame(columns=RAW_COLUMNS)
    combined = pd.concat(frames, ignore_index=True)
    logger.info("Combined %d yearly tables into %d rows", len(frames), len(combined))
    return combined
