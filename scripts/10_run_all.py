#!/usr/bin/env python3
"""
End-to-end pipeline runner.

Usage:
    python scripts/10_run_all.py
    python scripts/10_run_all.py --skip-download
    python scripts/10_run_all.py --skip-download --skip-geocode
"""

import argparse
import importlib.util
import logging
import subprocess
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

# ── Setup ──────────────────────────────────────────────────────────────────
SCRIPTS_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPTS_DIR.parent
sys.path.insert(0, str(SCRIPTS_DIR))
sys.path.insert(0, str(ROOT_DIR / "src"))

from scripts_helpers import setup_logging, get_config


logger = logging.getLogger(__name__)


def _load_script(name: str):
    """Dynamically import a numbered script module."""
    path = SCRIPTS_DIR / name
    spec = importlib.util.spec_from_file_location(name.replace(".py", ""), path)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


def _get_git_hash() -> str:
    """Get current git commit hash, or 'unknown'."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            cwd=ROOT_DIR,
        )
        return result.stdout.strip() if result.returncode == 0 else "unknown"
    except FileNotFoundError:
        return "unknown"


def write_run_log(output_dir: Path, start_time: float, args, step_times: dict):
    """Write pipeline run log."""
    import pandas as pd

    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / "run_log.txt"

    elapsed = time.time() - start_time
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    lines = [
        "Pipeline Run Log",
        "================",
        f"Timestamp: {now}",
        f"Git Commit: {_get_git_hash()}",
        f"Python Version: {sys.version}",
        f"Total Elapsed: {elapsed:.1f}s",
        "",
        "Arguments:",
        f"  --skip-download: {args.skip_download}",
        f"  --skip-geocode: {args.skip_geocode}",
        "",
        "Step Timings:",
    ]
    for step, t in step_times.items():
        lines.append(f"  {step}: {t:.1f}s")

    lines.append("")

    # Record counts
    config = get_config()
    for name, path in [
        ("Wards", config.WARD_TABLE_PATH),
        ("Energy records", config.ENERGY_RECORDS_PATH),
        ("Raw geocoded", config.RAW_GEOCODED_PATH),
        ("Raw (unit reconciled)", config.RAW_PATH),
        ("Cleaned", config.CLEANED_PATH),
    ]:
        if path.exists():
            count = len(pd.read_csv(path, low_memory=False))
            lines.append(f"  {name}: {count} records")
        else:
            lines.append(f"  {name}: not found")

    log_path.write_text("\n".join(lines))
    logger.info("Run log written to %s", log_path)


def run_qa_checks(config):
    """Sanity checks on the cleaned dataset; problems are logged, not raised."""
    import pandas as pd

    if not config.CLEANED_PATH.exists():
        logger.warning("QA: no cleaned dataset to check")
        return

    clean = pd.read_csv(config.CLEANED_PATH, low_memory=False)

    missing = int(clean.isna().sum().sum())
    if missing:
        logger.warning("QA: %d missing values in cleaned dataset", missing)

    if config.WARD_TABLE_PATH.exists():
        known = set(pd.read_csv(config.WARD_TABLE_PATH)[config.WARD_NAME_FIELD])
        unknown = set(clean["ward"]) - known
        if unknown:
            logger.warning("QA: %d ward names not in ward table: %s", len(unknown), sorted(unknown))

    # Toronto sits roughly within 43.5-43.9N, 79.7-79.1W
    outside = ~clean["latitude"].between(43.5, 43.9) | ~clean["longitude"].between(-79.7, -79.1)
    if outside.any():
        logger.warning("QA: %d records outside the Toronto bounding box", int(outside.sum()))

    for col in ["floor_area_sf", "ghg_emissions_kg"]:
        vals = clean[col]
        if len(vals) > 0:
            q99 = vals.quantile(0.99)
            extreme = (vals > q99 * 3).sum()
            if extreme > 0:
                logger.warning("QA: %d extreme outliers in %s", extreme, col)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Run the Toronto building energy by ward pipeline"
    )
    parser.add_argument("--skip-download", action="store_true", help="Reuse downloaded data")
    parser.add_argument("--skip-geocode", action="store_true", help="Reuse the geocoded table")
    args = parser.parse_args(argv)

    setup_logging()

    logger.info("=" * 60)
    logger.info("Toronto Building Energy by Ward Pipeline")
    logger.info("=" * 60)

    start_time = time.time()
    step_times = {}

    steps = []
    if not args.skip_download:
        steps += [("01_get_wards", "01_get_wards.py"), ("02_get_energy", "02_get_energy.py")]
    else:
        logger.info("Skipping download steps (--skip-download)")
    if not args.skip_geocode:
        steps.append(("03_geocode", "03_geocode.py"))
    else:
        logger.info("Skipping geocoding (--skip-geocode)")
    steps += [
        ("04_label_wards", "04_label_wards.py"),
        ("05_compute_metrics", "05_compute_metrics.py"),
    ]

    # ── Steps 1–5: any failure aborts the run ─────────────────────────────
    for step_name, script_file in steps:
        t0 = time.time()
        try:
            logger.info("Running %s ...", step_name)
            _load_script(script_file).main()
        except Exception as exc:
            logger.error("Step %s failed: %s", step_name, exc)
            return 1
        step_times[step_name] = time.time() - t0

    # ── Step 6: Charts ─────────────────────────────────────────────────────
    t0 = time.time()
    try:
        _load_script("06_make_charts.py").main()
    except Exception as exc:
        logger.error("Step 06 failed: %s", exc)
        logger.info("Continuing without charts...")
    step_times["06_make_charts"] = time.time() - t0

    # ── Step 7: Report ─────────────────────────────────────────────────────
    t0 = time.time()
    try:
        _load_script("07_generate_report_md.py").main()
    except Exception as exc:
        logger.error("Step 07 failed: %s", exc)
    step_times["07_generate_report"] = time.time() - t0

    config = get_config()
    write_run_log(config.OUTPUTS_DIR, start_time, args, step_times)

    logger.info("Running QA checks...")
    run_qa_checks(config)

    total_elapsed = time.time() - start_time
    logger.info("=" * 60)
    logger.info("Pipeline complete in %.1fs", total_elapsed)
    logger.info("Outputs: %s", config.OUTPUTS_DIR)
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
