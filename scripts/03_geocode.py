#!/usr/bin/env python3
"""
Geocode every distinct building address.

Slow by necessity: Nominatim allows one request per second, so expect
roughly one second per distinct address.
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from scripts_helpers import setup_logging, get_config

logger = logging.getLogger(__name__)


def build_geocoder(config):
    from toronto_energy_wards.geocode import Geocoder, NominatimClient, RateLimiter, RetryConfig

    client = NominatimClient(
        user_agent=config.NOMINATIM_USER_AGENT,
        email=config.NOMINATIM_EMAIL,
        base_url=config.NOMINATIM_URL,
        country_codes=config.GEOCODE_COUNTRY_CODES,
        limiter=RateLimiter(config.GEOCODE_MIN_INTERVAL_S),
        retry_config=RetryConfig(max_attempts=config.GEOCODE_MAX_ATTEMPTS),
    )
    return Geocoder(
        client.search,
        max_consecutive_failures=config.GEOCODE_MAX_CONSECUTIVE_FAILURES,
    )


def main(geocoder=None):
    config = get_config()
    setup_logging()

    logger.info("=== Step 3: Geocode addresses ===")

    from toronto_energy_wards.addresses import canonicalize, unique_addresses
    from toronto_energy_wards.geocode import geocode_records
    from toronto_energy_wards.io import load_csv, save_csv

    if not config.ENERGY_RECORDS_PATH.exists():
        logger.error("No energy records found. Run step 02 first.")
        return

    records = canonicalize(load_csv(config.ENERGY_RECORDS_PATH, dtype=str))
    records["year"] = records["year"].astype(int)

    geocoder = geocoder or build_geocoder(config)
    geocoded = geocoder.resolve_all(unique_addresses(records))

    raw_geocoded = geocode_records(records, geocoded)
    save_csv(raw_geocoded, config.RAW_GEOCODED_PATH)

    unresolved = raw_geocoded["latitude"].isna().sum()
    if unresolved:
        logger.warning("%d records have no coordinates and will be dropped later", unresolved)


if __name__ == "__main__":
    main()
