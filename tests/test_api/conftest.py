"""Shared fixtures for the API test suite.

The address service is never contacted: upstream.fetch_database_locations
and upstream.match_address are patched to serve the sample rows below.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from starlette.testclient import TestClient

from location_registry.upstream import AddressRecord, UpstreamError

# ---------------------------------------------------------------------------
# Sample address rows (the service stores longitude in latitude2 and
# latitude in longitude2)
# ---------------------------------------------------------------------------

SAMPLE_RECORDS: list[AddressRecord] = [
    AddressRecord(
        name1="BMW",
        name2="Berlin GmbH",
        street="Hauptstr 1",
        country="D",
        postal_code="10115",
        city="Berlin",
        latitude2=13.3849,
        longitude2=52.5321,
        confidence_percent=92,
    ),
    AddressRecord(
        name1="IKEA",
        street="Große Bergstraße 164",
        country="D",
        postal_code="22767",
        city="Hamburg",
        latitude2=9.9354,
        longitude2=53.5511,
        confidence_percent=40,
    ),
    AddressRecord(
        name1="Siemens",
        name2="München",
        street="Werner-von-Siemens-Str 1",
        country="D",
        postal_code="80333",
        city="München",
    ),
    AddressRecord(
        name1="Walmart",
        name2="Chicago",
        street="570 W Monroe St",
        country="USA",
        postal_code="60661",
        city="Chicago",
        latitude2=-87.6416,
        longitude2=41.8807,
    ),
]


def _down(*_args, **_kwargs):
    raise UpstreamError("Database API error: 503 Service Unavailable", status_code=503)


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def app():
    """FastAPI app with the address service patched to the sample rows."""
    with (
        patch("location_registry.upstream.fetch_database_locations", return_value=list(SAMPLE_RECORDS)),
        patch("location_registry.upstream.match_address", return_value=SAMPLE_RECORDS[:2]),
    ):
        from location_registry.api import helpers
        from location_registry.api.app import app as _app
        from location_registry.algorithms import MatcherConfig

        helpers._MATCHER_CONFIG = MatcherConfig()
        _app.state.server_started_at = datetime(2026, 3, 1, 0, 0, 0, tzinfo=timezone.utc)

        yield _app

        helpers._MATCHER_CONFIG = MatcherConfig()


@pytest.fixture()
def upstream_down(app):
    """Make every address service call fail."""
    with (
        patch("location_registry.upstream.fetch_database_locations", side_effect=_down),
        patch("location_registry.upstream.match_address", side_effect=_down),
    ):
        yield


@pytest.fixture()
def client(app):
    return TestClient(app, raise_server_exceptions=False)
