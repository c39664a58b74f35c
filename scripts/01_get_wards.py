#!/usr/bin/env python3
"""
Download the Toronto 25-ward boundary shapefile.

Unzips it into data/raw/wards/ and saves the flattened ward attribute
table (geometry dropped) for the report.
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from scripts_helpers import setup_logging, get_config

logger = logging.getLogger(__name__)


def main():
    config = get_config()
    setup_logging()

    logger.info("=== Step 1: Get ward boundaries ===")

    from toronto_energy_wards.io import download_file, save_csv, unzip_archive
    from toronto_energy_wards.spatial import load_wards, ward_table

    zip_path = download_file(config.WARDS_SHP_URL, config.RAW_WARDS / "wards.zip")
    unzip_archive(zip_path, config.RAW_WARDS)

    wards = load_wards(config.WARDS_SHP)
    save_csv(ward_table(wards), config.WARD_TABLE_PATH)
    logger.info("Ward boundaries ready: %d wards", len(wards))


if __name__ == "__main__":
    main()
