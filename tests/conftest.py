from __future__ import annotations

import importlib.util
from pathlib import Path

import geopandas as gpd
import pandas as pd
import pytest
import requests
from shapely.geometry import box

from toronto_energy_wards.columns import CANONICAL_FIELDS

_POSITIONS = list(range(13)) + [31]


def make_sheet(rows: list[dict], preamble_rows: int = 8, width: int = 32) -> pd.DataFrame:
    """Build a sheet the way read_workbook returns it: no header, strings only."""
    data = []
    for i in range(preamble_rows):
        data.append([f"preamble {i}"] + [None] * (width - 1))
    for row in rows:
        line = ["ignored"] * width
        for pos, field in zip(_POSITIONS, CANONICAL_FIELDS):
            line[pos] = row.get(field)
        data.append(line)
    return pd.DataFrame(data)


def building(**overrides) -> dict:
    base = {
        "operation_name": "Union Station",
        "operation_type": "Office",
        "address": "65 Front St W",
        "city": "Toronto",
        "postal_code": "M5J1E6",
        "total_floor_area": "50",
        "unit": "Square meters",
        "avg_hrs_wk": "40",
        "annual_flow_mega_litres": "1.5",
        "electricity_quantity": "10",
        "electricity_unit": "kWh",
        "natural_gas_quantity": "5",
        "natural_gas_unit": "Cubic Meter",
        "ghg_emissions_kg": "20",
    }
    base.update(overrides)
    return base


@pytest.fixture
def sheet_factory():
    return make_sheet


@pytest.fixture
def building_factory():
    return building


@pytest.fixture
def wards() -> gpd.GeoDataFrame:
    """Two square wards sharing the edge at longitude -79.36."""
    return gpd.GeoDataFrame(
        {"AREA_NAME": ["Ward A", "Ward B"]},
        geometry=[
            box(-79.40, 43.63, -79.36, 43.67),
            box(-79.36, 43.63, -79.32, 43.67),
        ],
        crs="EPSG:4326",
    )


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, content: bytes = b""):
        self.status_code = status_code
        self._payload = payload
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession


SCRIPTS_DIR = Path(__file__).resolve().parents[1] / "scripts"


def _load_script(name):
    spec = importlib.util.spec_from_file_location(name.replace(".py", ""), SCRIPTS_DIR / name)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


@pytest.fixture
def load_script():
    """Import a numbered pipeline script as a module."""
    return _load_script


@pytest.fixture
def config(monkeypatch, tmp_path):
    """The pipeline config with every data path redirected under tmp_path."""
    from scripts_helpers import get_config

    cfg = get_config()
    for name, path in {
        "RAW_WARDS": tmp_path / "raw" / "wards",
        "RAW_ENERGY": tmp_path / "raw" / "energy",
        "WARDS_SHP": tmp_path / "raw" / "wards" / "WARD_WGS84.shp",
        "WARD_TABLE_PATH": tmp_path / "interim" / "ward_tbl.csv",
        "ENERGY_RECORDS_PATH": tmp_path / "interim" / "energy_records.csv",
        "RAW_GEOCODED_PATH": tmp_path / "interim" / "raw_geocoded.csv",
        "RAW_PATH": tmp_path / "cleaned" / "raw.csv",
        "CLEANED_PATH": tmp_path / "cleaned" / "cleaned.csv",
        "OUTPUTS_DIR": tmp_path / "outputs",
        "REPORT_TEMPLATES_DIR": tmp_path / "templates",
    }.items():
        monkeypatch.setattr(cfg, name, path)
    return cfg
