import pandas as pd
import pytest

from toronto_energy_wards.errors import SchemaError
from toronto_energy_wards.io import read_workbook

YEARS = [2011, 2012, 2013, 2014]


@pytest.fixture
def multi_year_workbook(tmp_path, sheet_factory, building_factory):
    """A 2011-2014 style workbook: one sheet per year, 9 preamble rows each."""
    path = tmp_path / "annual-energy-consumption-data-2011-2014.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for i, year in enumerate(YEARS):
            sheet = sheet_factory(
                [building_factory(total_floor_area=str(100 + i))], preamble_rows=9
            )
            sheet.to_excel(writer, sheet_name=str(year), header=False, index=False)
    return path


def test_read_workbook_returns_sheets_in_order_as_text(multi_year_workbook):
    sheets = read_workbook(multi_year_workbook)

    assert len(sheets) == 4
    assert [s.iloc[9, 5] for s in sheets] == ["100", "101", "102", "103"]
    assert sheets[0].iloc[0, 0] == "preamble 0"


def test_load_resource_years_maps_sheets_to_years(load_script, multi_year_workbook):
    get_energy = load_script("02_get_energy.py")

    frames = get_energy.load_resource_years(multi_year_workbook, "2011-2014", YEARS)
    combined = pd.concat(frames, ignore_index=True)

    assert list(combined["year"]) == YEARS
    assert list(combined["total_floor_area"]) == ["100", "101", "102", "103"]
    assert set(combined["operation_name"]) == {"Union Station"}


def test_load_resource_years_more_years_than_sheets(load_script, multi_year_workbook):
    get_energy = load_script("02_get_energy.py")

    with pytest.raises(SchemaError):
        get_energy.load_resource_years(multi_year_workbook, "2011-2014", YEARS + [2015])
