import math

import pandas as pd
import pytest
import requests

from toronto_energy_wards.addresses import CanonicalAddress, canonicalize, unique_addresses
from toronto_energy_wards.errors import GeocoderUnavailableError
from toronto_energy_wards.geocode import (
    GeocodeLookupError,
    Geocoder,
    NominatimClient,
    RateLimiter,
    RetryConfig,
    geocode_records,
)


class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


NO_WAIT = RetryConfig(max_attempts=3, multiplier=0, max_wait=0)


def _addr(address, city="Toronto", postal_code=None):
    return CanonicalAddress(address=address, city=city, postal_code=postal_code)


def test_rate_limiter_spaces_consecutive_calls():
    clock = FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)

    stamps = []
    for _ in range(3):
        limiter.wait()
        stamps.append(clock.now)
        clock.now += 0.25  # time spent on the request itself

    assert clock.sleeps == [pytest.approx(0.75), pytest.approx(0.75)]
    assert all(b - a >= 1.0 for a, b in zip(stamps, stamps[1:]))


def test_rate_limiter_does_not_sleep_when_interval_already_passed():
    clock = FakeClock()
    limiter = RateLimiter(1.0, clock=clock, sleep=clock.sleep)
    limiter.wait()
    clock.now += 5
    limiter.wait()
    assert clock.sleeps == []


def test_one_lookup_per_distinct_address_and_city():
    records = canonicalize(pd.DataFrame({
        "address": ["65 Front St W", "65 Front St W", "65 Front St W", "1 Yonge St"],
        "city": ["Toronto", "Toronto", "Toronto", "Toronto"],
        "postal_code": ["M5J1E6", "M5J 1E6", "M5J1E6", "M5E1W7"],
        "year": [2015, 2016, 2017, 2015],
    }))
    queries = []

    def lookup(query):
        queries.append(query)
        return (43.6, -79.4)

    geocoder = Geocoder(lookup)
    geocoder.resolve_all(unique_addresses(records))

    assert geocoder.calls == 2
    assert sorted(queries) == ["1 Yonge St, Toronto", "65 Front St W, Toronto"]


def test_same_query_with_different_postal_code_reuses_cache():
    geocoder = Geocoder(lambda q: (43.6, -79.4))
    first = geocoder.resolve(_addr("65 Front St W", postal_code="M5J 1E6"))
    second = geocoder.resolve(_addr("65 Front St W", postal_code="M5J 1E7"))

    assert geocoder.calls == 1
    assert (first.latitude, first.longitude) == (second.latitude, second.longitude)


def test_unresolved_address_has_no_coordinates():
    geocoder = Geocoder(lambda q: None)
    result = geocoder.resolve(_addr("Various Locations"))

    assert result.latitude is None
    assert result.longitude is None
    assert not result.resolved


def test_zero_zero_is_a_real_coordinate():
    result = Geocoder(lambda q: (0.0, 0.0)).resolve(_addr("Null Island"))
    assert result.resolved
    assert (result.latitude, result.longitude) == (0.0, 0.0)


def test_failed_lookup_degrades_to_unresolved():
    def lookup(query):
        raise GeocodeLookupError("timeout")

    geocoder = Geocoder(lookup, max_consecutive_failures=5)
    result = geocoder.resolve(_addr("65 Front St W"))

    assert not result.resolved
    # cached: no second attempt for the same query
    geocoder.resolve(_addr("65 Front St W"))
    assert geocoder.calls == 1


def test_blank_address_is_unresolved_without_a_lookup():
    def lookup(query):
        raise GeocodeLookupError("400 Bad Request")

    geocoder = Geocoder(lookup, max_consecutive_failures=2)
    results = geocoder.resolve_all([_addr("")] * 3 + [_addr("  ")])

    assert not any(r.resolved for r in results)
    assert geocoder.calls == 0


def test_blank_rows_from_a_sheet_never_reach_the_geocoder():
    records = canonicalize(pd.DataFrame({
        "address": ["65 Front St W", None, "   "],
        "city": ["Toronto", "Toronto", None],
        "postal_code": ["M5J1E6", None, None],
    }))
    queries = []

    def lookup(query):
        queries.append(query)
        return (43.65, -79.38)

    geocoded = Geocoder(lookup).resolve_all(unique_addresses(records))
    out = geocode_records(records, geocoded)

    assert queries == ["65 Front St W, Toronto"]
    assert out["latitude"].notna().tolist() == [True, False, False]


def test_consecutive_failures_abort():
    def lookup(query):
        raise GeocodeLookupError("down")

    geocoder = Geocoder(lookup, max_consecutive_failures=3)

    with pytest.raises(GeocoderUnavailableError):
        geocoder.resolve_all([_addr(f"{i} King St") for i in range(5)])
    assert geocoder.calls == 3


def test_success_resets_failure_streak():
    outcomes = iter(["fail", "fail", "ok", "fail", "fail", "ok"])

    def lookup(query):
        if next(outcomes) == "fail":
            raise GeocodeLookupError("flaky")
        return (43.6, -79.4)

    geocoder = Geocoder(lookup, max_consecutive_failures=3)
    results = geocoder.resolve_all([_addr(f"{i} King St") for i in range(6)])

    assert sum(r.resolved for r in results) == 2


def test_geocode_records_attaches_coordinates_to_every_record():
    records = canonicalize(pd.DataFrame({
        "address": ["65 Front St W", "Various Locations", "65 Front St W"],
        "city": ["Toronto", "Toronto", "Toronto"],
        "postal_code": ["M5J1E6", None, "M5J1E6"],
    }))
    geocoder = Geocoder(lambda q: None if q.startswith("Various") else (43.645, -79.38))

    out = geocode_records(records, geocoder.resolve_all(unique_addresses(records)))

    assert len(out) == 3
    assert out.loc[0, "latitude"] == 43.645
    assert out.loc[2, "longitude"] == -79.38
    assert math.isnan(out.loc[1, "latitude"])


def _client(session, clock=None):
    clock = clock or FakeClock()
    return NominatimClient(
        user_agent="test-agent",
        limiter=RateLimiter(1.0, clock=clock, sleep=clock.sleep),
        retry_config=NO_WAIT,
        session=session,
    )


def test_client_parses_first_result(fake_session, fake_response):
    session = fake_session([fake_response(200, [{"lat": "43.645", "lon": "-79.38"}])])

    assert _client(session).search("65 Front St W, Toronto") == (43.645, -79.38)
    call = session.calls[0]
    assert call["params"]["q"] == "65 Front St W, Toronto"
    assert call["params"]["limit"] == 1
    assert call["headers"]["User-Agent"] == "test-agent"


def test_client_no_match_returns_none(fake_session, fake_response):
    session = fake_session([fake_response(200, [])])
    assert _client(session).search("Various Locations, Toronto") is None


def test_client_retries_transient_errors_through_the_limiter(fake_session, fake_response):
    clock = FakeClock()
    session = fake_session([
        fake_response(503),
        requests.ConnectionError("reset"),
        fake_response(200, [{"lat": "1", "lon": "2"}]),
    ])

    assert _client(session, clock).search("x") == (1.0, 2.0)
    assert len(session.calls) == 3
    assert len(clock.sleeps) == 2


def test_client_gives_up_after_max_attempts(fake_session, fake_response):
    session = fake_session([fake_response(429)] * 3)

    with pytest.raises(GeocodeLookupError):
        _client(session).search("x")
    assert len(session.calls) == 3


def test_client_does_not_retry_client_errors(fake_session, fake_response):
    session = fake_session([fake_response(400)])

    with pytest.raises(GeocodeLookupError):
        _client(session).search("x")
    assert len(session.calls) == 1


def test_client_bad_json_is_lookup_error(fake_session, fake_response):
    session = fake_session([fake_response(200, ValueError("bad json"))])

    with pytest.raises(GeocodeLookupError):
        _client(session).search("x")
