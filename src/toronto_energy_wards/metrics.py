"""
Compute headline stats and per-year / per-ward summary tables from the
cleaned dataset.
"""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def _intensity(ghg_kg: pd.Series, floor_area_sf: pd.Series) -> pd.Series:
    """GHG intensity in kg per square foot; zero floor area gives NaN."""
    return (ghg_kg / floor_area_sf.where(floor_area_sf > 0)).replace([np.inf, -np.inf], np.nan)


def _aggregate(grouped) -> pd.DataFrame:
    out = grouped.agg(
        records=("operation_name", "size"),
        operations=("operation_name", "nunique"),
        floor_area_sf=("floor_area_sf", "sum"),
        electricity_wh=("electricity_wh", "sum"),
        gas_cm=("gas_cm", "sum"),
        ghg_emissions_kg=("ghg_emissions_kg", "sum"),
    ).reset_index()
    sums = ["floor_area_sf", "electricity_wh", "gas_cm", "ghg_emissions_kg"]
    out[sums] = out[sums].astype(float)
    out["electricity_mwh"] = (out["electricity_wh"] / 1e6).round(1)
    out["ghg_tonnes"] = (out["ghg_emissions_kg"] / 1000).round(1)
    out["ghg_intensity_kg_sf"] = _intensity(out["ghg_emissions_kg"], out["floor_area_sf"]).round(3)
    return out.drop(columns=["electricity_wh"])


def compute_all_metrics(clean: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """
    Compute all metrics and return a dict of summary DataFrames.

    Keys:
        headline: single-row headline stats
        by_year: totals per reporting year
        by_ward_year: totals and GHG intensity per ward and year
        ward_ranking: wards ordered by mean yearly GHG intensity
    """
    results = {}

    # ── Headline stats ─────────────────────────────────────────────────────
    n = len(clean)
    headline = pd.DataFrame([{
        "total_records": n,
        "unique_operations": int(clean["operation_name"].nunique()),
        "wards_covered": int(clean["ward"].nunique()),
        "first_year": int(clean["year"].min()) if n else None,
        "last_year": int(clean["year"].max()) if n else None,
        "total_electricity_mwh": round(clean["electricity_wh"].sum() / 1e6, 1),
        "total_gas_cm": round(clean["gas_cm"].sum(), 1),
        "total_ghg_tonnes": round(clean["ghg_emissions_kg"].sum() / 1000, 1),
    }])
    results["headline"] = headline

    # ── Per year ───────────────────────────────────────────────────────────
    results["by_year"] = _aggregate(clean.groupby("year")).sort_values("year")

    # ── Per ward and year ──────────────────────────────────────────────────
    by_ward_year = _aggregate(clean.groupby(["ward", "year"]))
    results["by_ward_year"] = by_ward_year.sort_values(["ward", "year"]).reset_index(drop=True)

    # ── Ward ranking ───────────────────────────────────────────────────────
    if len(by_ward_year) > 0:
        ranking = (
            by_ward_year.groupby("ward")
            .agg(
                years_reported=("year", "nunique"),
                mean_ghg_intensity_kg_sf=("ghg_intensity_kg_sf", "mean"),
                total_ghg_tonnes=("ghg_tonnes", "sum"),
            )
            .reset_index()
            .sort_values("mean_ghg_intensity_kg_sf", ascending=False, kind="stable")
            .reset_index(drop=True)
        )
        ranking["mean_ghg_intensity_kg_sf"] = ranking["mean_ghg_intensity_kg_sf"].round(3)
        ranking["rank"] = range(1, len(ranking) + 1)
    else:
        ranking = pd.DataFrame(
            columns=["ward", "years_reported", "mean_ghg_intensity_kg_sf", "total_ghg_tonnes", "rank"]
        )
    results["ward_ranking"] = ranking

    logger.info(
        "Metrics: %d records, %d wards, %d years",
        n, headline.at[0, "wards_covered"], len(results["by_year"]),
    )
    return results


def compute_intensity_trend(clean: pd.DataFrame) -> dict:
    """Correlation between reporting year and per-record GHG intensity."""
    df = clean.copy()
    df["intensity"] = _intensity(df["ghg_emissions_kg"], df["floor_area_sf"])
    df = df[df["intensity"].notna()]

    if len(df) < 5 or df["year"].nunique() < 2:
        return {"correlation": None, "n": len(df), "note": "Insufficient data"}

    corr = df["year"].astype(float).corr(df["intensity"])
    return {
        "correlation": round(corr, 3) if not np.isnan(corr) else None,
        "n": len(df),
        "note": "Negative correlation = GHG intensity falling over time",
    }
