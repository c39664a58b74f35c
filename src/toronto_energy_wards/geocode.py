"""
Geocoding of building addresses through OpenStreetMap Nominatim.

Nominatim's usage policy allows at most one request per second from a
single client, with an identifying User-Agent. All calls go through one
RateLimiter and are made strictly one at a time. With a few thousand
distinct addresses a full run takes the better part of an hour.

Results are memoized by query string so each distinct address is looked up
once per run, no matter how many yearly records share it.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

import numpy as np
import pandas as pd
import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .addresses import ADDRESS_KEY, CanonicalAddress
from .errors import GeocoderUnavailableError
from .io import is_transient_error

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"

Coordinates = tuple[float, float]


class GeocodeLookupError(Exception):
    """A single lookup failed after retries. Not fatal on its own."""


@dataclass(frozen=True)
class GeocodedAddress:
    address: CanonicalAddress
    latitude: float | None = None
    longitude: float | None = None

    @property
    def resolved(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    multiplier: float = 2.0
    max_wait: float = 30.0


class RateLimiter:
    """Enforce a minimum interval between consecutive calls."""

    def __init__(self, min_interval: float = 1.0, clock=time.monotonic, sleep=time.sleep):
        self.min_interval = min_interval
        self.clock = clock
        self.sleep = sleep
        self._last = None

    def wait(self) -> None:
        now = self.clock()
        if self._last is not None:
            remaining = self.min_interval - (now - self._last)
            if remaining > 0:
                self.sleep(remaining)
                now = self.clock()
        self._last = now


class NominatimClient:
    """Free-text Nominatim search returning at most one coordinate pair."""

    def __init__(
        self,
        user_agent: str,
        email: str = "",
        base_url: str = NOMINATIM_URL,
        country_codes: str = "ca",
        limiter: RateLimiter | None = None,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
        session=None,
    ):
        self.user_agent = user_agent
        self.email = email
        self.base_url = base_url
        self.country_codes = country_codes
        self.limiter = limiter or RateLimiter(1.0)
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self.session = session or requests.Session()

    def _params(self, query: str) -> dict:
        params = {"q": query, "format": "json", "limit": 1}
        if self.country_codes:
            params["countrycodes"] = self.country_codes
        if self.email:
            params["email"] = self.email
        return params

    def _request(self, query: str) -> requests.Response:
        # Retries pass through the limiter too.
        self.limiter.wait()
        resp = self.session.get(
            self.base_url,
            params=self._params(query),
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp

    def search(self, query: str) -> Coordinates | None:
        """Return (lat, lon) for ``query``, or None when nothing matches."""
        cfg = self.retry_config

        @retry(
            stop=stop_after_attempt(cfg.max_attempts),
            wait=wait_exponential(multiplier=cfg.multiplier, max=cfg.max_wait),
            retry=retry_if_exception(is_transient_error),
            reraise=True,
        )
        def _wrapped() -> requests.Response:
            return self._request(query)

        try:
            data = _wrapped().json()
        except (requests.RequestException, ValueError) as exc:
            raise GeocodeLookupError(f"{query!r}: {exc}") from exc

        if not data:
            return None
        try:
            return float(data[0]["lat"]), float(data[0]["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodeLookupError(f"{query!r}: malformed result {data[0]!r}") from exc


class Geocoder:
    """
    Memoizing front end over a lookup function.

    ``lookup`` takes a query string and returns coordinates or None, raising
    GeocodeLookupError when the call itself fails. Failed lookups are
    cached as unresolved. A run of ``max_consecutive_failures`` failures in
    a row means the service is down and aborts the pipeline.
    """

    def __init__(
        self,
        lookup: Callable[[str], Coordinates | None],
        max_consecutive_failures: int = 10,
        progress_every: int = 100,
    ):
        self.lookup = lookup
        self.max_consecutive_failures = max_consecutive_failures
        self.progress_every = progress_every
        self.cache: dict[str, Coordinates | None] = {}
        self.calls = 0
        self._consecutive_failures = 0

    def _lookup(self, query: str) -> Coordinates | None:
        self.calls += 1
        try:
            coords = self.lookup(query)
        except GeocodeLookupError as exc:
            self._consecutive_failures += 1
            logger.warning("Geocoding failed, leaving unresolved: %s", exc)
            if self._consecutive_failures >= self.max_consecutive_failures:
                raise GeocoderUnavailableError(
                    f"{self._consecutive_failures} consecutive geocoding failures"
                ) from exc
            return None
        self._consecutive_failures = 0
        if coords is None:
            logger.debug("No match for %r", query)
        return coords

    def resolve(self, address: CanonicalAddress) -> GeocodedAddress:
        # Blank rows (trailing spreadsheet lines) have nothing to look up.
        if not address.address.strip():
            return GeocodedAddress(address)
        query = address.query
        if query not in self.cache:
            self.cache[query] = self._lookup(query)
        coords = self.cache[query]
        if coords is None:
            return GeocodedAddress(address)
        return GeocodedAddress(address, latitude=coords[0], longitude=coords[1])

    def resolve_all(self, addresses: Iterable[CanonicalAddress]) -> list[GeocodedAddress]:
        addresses = list(addresses)
        total = len(addresses)
        logger.info("Geocoding %d addresses", total)
        start = time.monotonic()
        results = []
        for i, addr in enumerate(addresses, start=1):
            results.append(self.resolve(addr))
            if self.progress_every and i % self.progress_every == 0:
                rate = i / max(time.monotonic() - start, 1e-9)
                logger.info(
                    "  %d / %d addresses (%d lookups), ~%.0f min remaining",
                    i, total, self.calls, (total - i) / rate / 60,
                )
        unresolved = sum(not r.resolved for r in results)
        logger.info(
            "Geocoding done: %d lookups, %d resolved, %d unresolved",
            self.calls, total - unresolved, unresolved,
        )
        return results


def geocode_records(records: pd.DataFrame, geocoded: list[GeocodedAddress]) -> pd.DataFrame:
    """Attach latitude/longitude to every record by its address key."""
    lookup = {
        (g.address.address, g.address.postal_code, g.address.city): g for g in geocoded
    }
    lats, lons = [], []
    for address, postal_code, city in records[ADDRESS_KEY].itertuples(index=False, name=None):
        postal_code = None if pd.isna(postal_code) else postal_code
        g = lookup.get((address, postal_code, city))
        if g is not None and g.resolved:
            lats.append(g.latitude)
            lons.append(g.longitude)
        else:
            lats.append(np.nan)
            lons.append(np.nan)

    out = records.copy()
    out["latitude"] = pd.Series(lats, index=out.index, dtype=float)
    out["longitude"] = pd.Series(lons, index=out.index, dtype=float)
    logger.info(
        "%d of %d records have coordinates", int(out["latitude"].notna().sum()), len(out)
    )
    return out
