"""
Chart generation for the ward report.

All charts saved as PNGs to the outputs directory.
Uses matplotlib only (geopandas draws the ward outlines through it).
"""

import logging
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import pandas as pd

logger = logging.getLogger(__name__)

# ── Style constants ────────────────────────────────────────────────────────
BAR_COLOR = "#3498db"
GHG_COLOR = "#e67e22"
POINT_COLOR = "#c0392b"
WARD_FILL = "lightblue"
FIG_DPI = 150


def _save(fig: plt.Figure, path: Path):
    fig.savefig(path, dpi=FIG_DPI, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    logger.info("Saved chart: %s", path.name)


def chart_records_by_ward(by_ward_year: pd.DataFrame, output_dir: Path):
    """Horizontal bar chart: reporting records per ward, all years combined."""
    counts = by_ward_year.groupby("ward")["records"].sum().sort_values()
    if counts.empty:
        logger.warning("No ward data for records-by-ward chart")
        return

    fig, ax = plt.subplots(figsize=(8, max(4, 0.3 * len(counts))))
    ax.barh(counts.index, counts.values, color=BAR_COLOR, edgecolor="white")
    ax.set_xlabel("Reporting records (all years)")
    ax.set_title("Energy Reports by Ward")
    ax.spines[["top", "right"]].set_visible(False)

    _save(fig, output_dir / "records_by_ward.png")


def chart_ghg_by_year(by_year: pd.DataFrame, output_dir: Path):
    """Bar chart: total reported GHG emissions per year."""
    if by_year.empty:
        logger.warning("No yearly data for GHG chart")
        return

    fig, ax = plt.subplots(figsize=(8, 5))
    years = by_year["year"].astype(int).astype(str)
    bars = ax.bar(years, by_year["ghg_tonnes"], color=GHG_COLOR, edgecolor="white", linewidth=1.2)
    for bar, value in zip(bars, by_year["ghg_tonnes"]):
        ax.text(
            bar.get_x() + bar.get_width() / 2,
            bar.get_height(),
            f"{value:,.0f}",
            ha="center",
            va="bottom",
            fontsize=8,
        )

    ax.set_xlabel("Reporting Year")
    ax.set_ylabel("GHG Emissions (tonnes)")
    ax.set_title("Reported GHG Emissions by Year")
    ax.yaxis.set_major_formatter(mticker.StrMethodFormatter("{x:,.0f}"))
    ax.spines[["top", "right"]].set_visible(False)

    _save(fig, output_dir / "ghg_by_year.png")


def chart_intensity_by_ward(ward_ranking: pd.DataFrame, output_dir: Path):
    """Horizontal bar chart: mean GHG intensity per ward."""
    df = ward_ranking.dropna(subset=["mean_ghg_intensity_kg_sf"])
    if df.empty:
        logger.warning("No intensity data for ward chart")
        return

    df = df.sort_values("mean_ghg_intensity_kg_sf")
    fig, ax = plt.subplots(figsize=(8, max(4, 0.3 * len(df))))
    ax.barh(df["ward"], df["mean_ghg_intensity_kg_sf"], color=GHG_COLOR, edgecolor="white")
    ax.set_xlabel("Mean GHG intensity (kg CO2e / sq ft)")
    ax.set_title("GHG Intensity by Ward")
    ax.spines[["top", "right"]].set_visible(False)

    _save(fig, output_dir / "ghg_intensity_by_ward.png")


def chart_building_map(clean: pd.DataFrame, output_dir: Path, wards=None):
    """Scatter of building locations, drawn over ward boundaries when given."""
    if clean.empty:
        logger.warning("No records for building map")
        return

    fig, ax = plt.subplots(figsize=(9, 7))
    if wards is not None:
        wards.plot(ax=ax, color=WARD_FILL, edgecolor="white", alpha=0.5)
    ax.scatter(
        clean["longitude"],
        clean["latitude"],
        s=12,
        alpha=0.1,
        color=POINT_COLOR,
        linewidths=0,
    )
    ax.set_xlabel("Longitude")
    ax.set_ylabel("Latitude")
    ax.set_title("Reporting Buildings")

    _save(fig, output_dir / "building_map.png")


def generate_all_charts(
    clean: pd.DataFrame,
    metrics: dict[str, pd.DataFrame],
    output_dir: Path,
    wards=None,
):
    """Generate all charts and save to output directory."""
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Generating charts in %s", output_dir)

    if "by_ward_year" in metrics:
        chart_records_by_ward(metrics["by_ward_year"], output_dir)

    if "by_year" in metrics:
        chart_ghg_by_year(metrics["by_year"], output_dir)

    if "ward_ranking" in metrics:
        chart_intensity_by_ward(metrics["ward_ranking"], output_dir)

    chart_building_map(clean, output_dir, wards=wards)

    logger.info("All charts generated")
