#!/usr/bin/env python3
"""
Download the yearly energy consumption spreadsheets and normalize them.

Each configured resource is fetched from the Toronto open data portal, every
sheet is mapped onto the canonical columns for its format, and the years are
stacked into a single table.
"""

import logging
import sys
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent))
from scripts_helpers import setup_logging, get_config

logger = logging.getLogger(__name__)


def load_resource_years(path: Path, format_id: str, years: list[int]) -> list[pd.DataFrame]:
    """Normalize each sheet of one downloaded workbook, one sheet per year."""
    from toronto_energy_wards.columns import get_format, normalize_columns
    from toronto_energy_wards.errors import SchemaError
    from toronto_energy_wards.io import read_workbook

    fmt = get_format(format_id)
    sheets = read_workbook(path)
    if len(sheets) < len(years):
        raise SchemaError(
            f"{path.name} has {len(sheets)} sheet(s) but {len(years)} year(s) are configured"
        )
    return [normalize_columns(sheet, year, fmt) for sheet, year in zip(sheets, years)]


def main():
    config = get_config()
    setup_logging()

    logger.info("=== Step 2: Get energy consumption data ===")

    from toronto_energy_wards.columns import combine_years
    from toronto_energy_wards.io import save_csv
    from toronto_energy_wards.opendata import TorontoOpenData, find_resource

    client = TorontoOpenData(base_url=config.TORONTO_CKAN_BASE)
    resources = client.package_resources(config.ENERGY_PACKAGE_ID)

    frames = []
    for name, format_id, years in config.ENERGY_RESOURCES:
        resource = find_resource(resources, name)
        path = client.download_resource(resource, config.RAW_ENERGY)
        frames.extend(load_resource_years(path, format_id, years))

    records = combine_years(frames)
    save_csv(records, config.ENERGY_RECORDS_PATH)
    logger.info("Energy records ready: %d rows", len(records))


if __name__ == "__main__":
    main()
