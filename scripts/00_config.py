"""
Central configuration for the Toronto ward energy pipeline.
All paths, URLs, and parameters live here.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
RAW_DIR = DATA_DIR / "raw"
INTERIM_DIR = DATA_DIR / "interim"
CLEANED_DIR = DATA_DIR / "cleaned"
OUTPUTS_DIR = DATA_DIR / "outputs"

RAW_WARDS = RAW_DIR / "wards"
RAW_ENERGY = RAW_DIR / "energy"

WARDS_SHP = RAW_WARDS / "WARD_WGS84.shp"

# Derived tables, loaded by later steps by name
WARD_TABLE_PATH = INTERIM_DIR / "ward_tbl.csv"
ENERGY_RECORDS_PATH = INTERIM_DIR / "energy_records.csv"
RAW_GEOCODED_PATH = INTERIM_DIR / "raw_geocoded.csv"
RAW_PATH = CLEANED_DIR / "raw.csv"
CLEANED_PATH = CLEANED_DIR / "cleaned.csv"

REPORT_TEMPLATES_DIR = ROOT_DIR / "report_templates"

# ── City of Toronto open data (CKAN) ───────────────────────────────────────
TORONTO_CKAN_BASE = "https://ckan0.cf.opendata.inter.prod-toronto.ca/api/3"

# 25-ward model, December 2018, WGS84 shapefile (zip)
WARDS_SHP_URL = (
    "https://ckan0.cf.opendata.inter.prod-toronto.ca/download_resource/"
    "586930e7-4178-42a1-a159-ce1da526ad6c"
)
WARD_NAME_FIELD = "AREA_NAME"

# Annual energy consumption and GHG emissions (Ontario Regulation 397/11)
ENERGY_PACKAGE_ID = "0600cad8-d024-483b-a9a8-ecfc3e32e375"

# (resource name, sheet format, years in sheet order)
ENERGY_RESOURCES = [
    ("annual-energy-consumption-data-2011-2014", "2011-2014", [2011, 2012, 2013, 2014]),
    ("annual-energy-consumption-data-2015", "2015-2018", [2015]),
    ("annual-energy-consumption-data-2016", "2015-2018", [2016]),
    ("annual-energy-consumption-data-2017", "2015-2018", [2017]),
    ("annual-energy-consumption-data-2018", "2015-2018", [2018]),
]

# ── Geocoding (OpenStreetMap Nominatim) ────────────────────────────────────
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
NOMINATIM_USER_AGENT = os.getenv(
    "NOMINATIM_USER_AGENT", "toronto-energy-wards/0.1 (open data analysis)"
)
NOMINATIM_EMAIL = os.getenv("NOMINATIM_EMAIL", "")
GEOCODE_MIN_INTERVAL_S = 1.0   # Nominatim usage policy: max 1 request/second
GEOCODE_MAX_ATTEMPTS = 3       # per address, transient errors only
GEOCODE_MAX_CONSECUTIVE_FAILURES = 10
GEOCODE_COUNTRY_CODES = "ca"

# ── Logging ────────────────────────────────────────────────────────────────
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
