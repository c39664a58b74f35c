import re

import numpy as np
import pandas as pd

from toronto_energy_wards.report import generate_report, markdown_table


def _squash(text: str) -> str:
    """Collapse the column padding tabulate adds so rows compare by content."""
    return re.sub(r" +", " ", text)


def _cells(line: str) -> list[str]:
    return [c.strip() for c in line.strip().strip("|").split("|")]


def test_markdown_table():
    df = pd.DataFrame({"ward": ["Ward A"], "records": [3], "ghg_tonnes": [1234.5]})
    lines = markdown_table(df).splitlines()

    assert len(lines) == 3
    assert _cells(lines[0]) == ["ward", "records", "ghg_tonnes"]
    assert set(lines[1]) <= set("|:- ")
    assert _cells(lines[2]) == ["Ward A", "3", "1,234.500"]


def test_markdown_table_missing_values_are_blank():
    df = pd.DataFrame({"ward": ["Ward A", "Ward B"], "intensity": [0.25, np.nan]})
    lines = markdown_table(df).splitlines()

    assert _cells(lines[3]) == ["Ward B", ""]


def test_markdown_table_empty():
    assert markdown_table(pd.DataFrame()) == "_No data._"


def test_generate_report(tmp_path):
    metrics = {
        "headline": pd.DataFrame([{"total_records": 3, "first_year": 2015, "total_ghg_tonnes": 1.5}]),
        "by_year": pd.DataFrame({"year": [2015], "ghg_tonnes": [2.0]}),
        "ward_ranking": pd.DataFrame({"ward": ["Ward B"], "rank": [1]}),
    }
    trend = {"correlation": None, "n": 3, "note": "Insufficient data"}

    path = generate_report(metrics, trend, tmp_path)

    text = _squash(path.read_text())
    assert path == tmp_path / "report.md"
    assert "| total_records | 3 |" in text
    assert "| first_year | 2015 |" in text
    assert "| total_ghg_tonnes | 1.5 |" in text
    assert "| Ward B | 1 |" in text
    assert "Insufficient data" in text


def test_generate_report_with_template(tmp_path):
    template = tmp_path / "template.md"
    template.write_text("# Custom\n$ward_ranking\n")

    path = generate_report(
        {"ward_ranking": pd.DataFrame({"ward": ["Ward A"]})},
        {"correlation": -0.5, "n": 10, "note": ""},
        tmp_path / "out",
        template_path=template,
    )

    assert path.read_text().startswith("# Custom\n| ward")
