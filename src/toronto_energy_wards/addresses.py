"""
Address normalization and deduplication ahead of geocoding.

Geocoding is rate limited to one call per second, so the pipeline only ever
looks up the distinct set of addresses, never one per record.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

ADDRESS_KEY = ["address", "postal_code", "city"]
DEFAULT_COUNTRY = "Canada"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class CanonicalAddress:
    address: str
    city: str
    postal_code: str | None
    country: str = DEFAULT_COUNTRY

    @property
    def query(self) -> str:
        """Free-text query sent to the geocoder."""
        return f"{self.address}, {self.city}"


def clean_text(raw: Any) -> str:
    """Strip and collapse whitespace; missing values become ''."""
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return ""
    return _WHITESPACE_RE.sub(" ", str(raw)).strip()


def normalize_postal_code(raw: Any) -> str | None:
    """
    Normalize a Canadian postal code to ``"AAA BBB"``.

    Spacing in the input is ignored, so already-normalized codes are returned
    unchanged. Blank or missing input gives None.
    """
    pc = _WHITESPACE_RE.sub("", clean_text(raw)).upper()
    if not pc:
        return None
    if len(pc) <= 3:
        return pc
    return f"{pc[:3]} {pc[3:6]}"


def canonicalize(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy with cleaned address/city and normalized postal codes."""
    out = df.copy()
    out["address"] = out["address"].map(clean_text)
    out["city"] = out["city"].map(clean_text)
    out["postal_code"] = out["postal_code"].map(normalize_postal_code)
    return out


def unique_addresses(df: pd.DataFrame) -> list[CanonicalAddress]:
    """One CanonicalAddress per distinct (address, postal code, city), first-seen order."""
    seen = {}
    for address, postal_code, city in df[ADDRESS_KEY].itertuples(index=False, name=None):
        postal_code = None if pd.isna(postal_code) else postal_code
        key = (address, postal_code, city)
        if key not in seen:
            seen[key] = CanonicalAddress(address=address, city=city, postal_code=postal_code)
    logger.info("%d distinct addresses across %d records", len(seen), len(df))
    return list(seen.values())
