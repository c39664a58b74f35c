#!/usr/bin/env python3
"""
Generate the markdown report.
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

    logger.info("=== Step 7: Generate Report ===")

    from toronto_energy_wards.io import load_csv
    from toronto_energy_wards.report import generate_report

    output_dir = config.OUTPUTS_DIR

    metrics = {}
    for name in ["headline", "by_year", "ward_ranking"]:
        path = output_dir / f"{name}.csv"
        if path.exists():
            metrics[name] = load_csv(path)

    if not metrics:
        logger.error("No metrics found. Run step 05 first.")
        return

    trend_path = output_dir / "intensity_trend.json"
    if trend_path.exists():
        trend = json.loads(trend_path.read_text())
    else:
        trend = {"correlation": None, "n": 0, "note": "Not computed"}

    template_path = config.REPORT_TEMPLATES_DIR / "report_template.md"
    if not template_path.exists():
        template_path = None

    report_path = generate_report(
        metrics=metrics,
        trend=trend,
        output_dir=output_dir,
        template_path=template_path,
    )

    logger.info("Report generated: %s", report_path)


if __name__ == "__main__":
    main()
