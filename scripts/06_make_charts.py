#!/usr/bin/env python3
"""
Generate all charts for the ward report.
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

    logger.info("=== Step 6: Generate Charts ===")

    from toronto_energy_wards.charts import generate_all_charts
    from toronto_energy_wards.io import load_csv
    from toronto_energy_wards.spatial import load_wards

    output_dir = config.OUTPUTS_DIR
    if not config.CLEANED_PATH.exists():
        logger.error("No cleaned dataset found. Run step 04 first.")
        return

    clean = load_csv(config.CLEANED_PATH)

    # Load precomputed metrics
    metrics = {}
    for name in ["by_year", "by_ward_year", "ward_ranking"]:
        path = output_dir / f"{name}.csv"
        if path.exists():
            metrics[name] = load_csv(path)

    wards = load_wards(config.WARDS_SHP) if config.WARDS_SHP.exists() else None

    generate_all_charts(clean, metrics, output_dir, wards=wards)
    logger.info("Charts complete")


if __name__ == "__main__":
    main()
