#!/usr/bin/env python3
"""
Compute summary metrics and save output CSVs.
"""

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from scripts_helpers import setup_logging, get_config

logger = logging.getLogger(__name__)


def main():
    config = get_config()
    setup_logging()

    logger.info("=== Step 5: Compute Metrics ===")

    from toronto_energy_wards.io import load_csv, save_csv
    from toronto_energy_wards.metrics import compute_all_metrics, compute_intensity_trend

    if not config.CLEANED_PATH.exists():
        logger.error("No cleaned dataset found. Run step 04 first.")
        return

    clean = load_csv(config.CLEANED_PATH)
    metrics = compute_all_metrics(clean)
    trend = compute_intensity_trend(clean)

    output_dir = config.OUTPUTS_DIR
    output_dir.mkdir(parents=True, exist_ok=True)

    for name, df in metrics.items():
        save_csv(df, output_dir / f"{name}.csv")

    (output_dir / "intensity_trend.json").write_text(json.dumps(trend, indent=2))

    logger.info("Metrics computation complete. Outputs in %s", output_dir)


if __name__ == "__main__":
    main()
