"""
Render the markdown report from the metric tables and charts.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from string import Template

import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = """\
# Building Energy and Emissions by Toronto Ward

_Generated $generated_at_

## Headline

$headline

## Emissions by year

![GHG by year](ghg_by_year.png)

$by_year

## Wards ranked by GHG intensity

![GHG intensity by ward](ghg_intensity_by_ward.png)

$ward_ranking

Year-over-year intensity trend: $trend

## Coverage

![Reports by ward](records_by_ward.png)

![Building locations](building_map.png)

## Notes

- Floor area is in square feet; square-metre values were converted at 10.7639 sq ft/m².
- Electricity reported in any unit other than kWh is counted as zero, as published.
- Records whose address could not be geocoded, that fall outside every ward,
  or that are missing any reported field are excluded.
"""


def markdown_table(df: pd.DataFrame, **kwargs) -> str:
    """Render a DataFrame as a pipe markdown table; missing values are blank."""
    if df.empty:
        return "_No data._"
    kwargs.setdefault("floatfmt", ",.3f")
    return df.astype(object).where(df.notna(), None).to_markdown(index=False, **kwargs)


def _trend_text(trend: dict) -> str:
    if trend.get("correlation") is None:
        return f"not computed ({trend.get('note', 'no data')}, n={trend.get('n', 0)})"
    return f"r = {trend['correlation']} (n={trend['n']}). {trend.get('note', '')}".strip()


def generate_report(
    metrics: dict[str, pd.DataFrame],
    trend: dict,
    output_dir: Path,
    template_path: Path | None = None,
) -> Path:
    """Write ``report.md`` into ``output_dir`` and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    template = Template(template_path.read_text() if template_path else DEFAULT_TEMPLATE)

    headline = metrics.get("headline", pd.DataFrame())
    if not headline.empty:
        # Counts, years and totals share one column; keep each as written.
        headline = pd.DataFrame({
            "metric": list(headline.columns),
            "value": [
                "" if pd.isna(v) else str(v)
                for v in (headline[c].iloc[0] for c in headline.columns)
            ],
        })

    text = template.safe_substitute(
        generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
        headline=markdown_table(headline, disable_numparse=True),
        by_year=markdown_table(metrics.get("by_year", pd.DataFrame())),
        ward_ranking=markdown_table(metrics.get("ward_ranking", pd.DataFrame())),
        trend=_trend_text(trend),
    )

    path = output_dir / "report.md"
    path.write_text(text)
    logger.info("Report written to %s", path)
    return path
