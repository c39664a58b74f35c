#!/usr/bin/env python3
"""
Label each geocoded record with its ward, convert units, and drop
incomplete records.

Writes data/cleaned/raw.csv (every record, reporting columns only) and
data/cleaned/cleaned.csv (complete records only).
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

    logger.info("=== Step 4: Label wards, convert units, clean ===")

    from toronto_energy_wards.clean import CLEAN_COLUMNS, drop_incomplete
    from toronto_energy_wards.io import load_csv, save_csv
    from toronto_energy_wards.spatial import assign_wards, load_wards
    from toronto_energy_wards.units import reconcile_units

    if not config.RAW_GEOCODED_PATH.exists():
        logger.error("No geocoded records found. Run step 03 first.")
        return
    if not config.WARDS_SHP.exists():
        logger.error("No ward shapefile found. Run step 01 first.")
        return

    records = load_csv(config.RAW_GEOCODED_PATH, dtype={"latitude": float, "longitude": float})
    wards = load_wards(config.WARDS_SHP)

    labelled = assign_wards(records, wards, name_field=config.WARD_NAME_FIELD)
    reconciled = reconcile_units(labelled)

    save_csv(reconciled[CLEAN_COLUMNS], config.RAW_PATH)

    cleaned, dropped = drop_incomplete(reconciled)
    save_csv(cleaned, config.CLEANED_PATH)
    logger.info("Cleaning complete: %d records kept, %d dropped", len(cleaned), dropped)


if __name__ == "__main__":
    main()
