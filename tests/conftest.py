"""Pytest fixtures shared by the GeoViz unit and integration tests."""

import pytest

from geoviz.geocoding import StaticGeocoder


CITY_COORDS = {
    "Austin": (30.2672, -97.7431),
    "Dallas": (32.7767, -96.797),
    "Sacramento": (38.5816, -121.4944),
}

STATE_COORDS = {
    "California": (36.7783, -119.4179),
    "Texas": (31.9686, -99.9018),
}


@pytest.fixture
def static_geocoder():
    """Deterministic geocoder covering a few cities and two states."""
    regions = {
        CITY_COORDS["Austin"]: "Texas",
        CITY_COORDS["Dallas"]: "Texas",
        CITY_COORDS["Sacramento"]: "California",
        STATE_COORDS["California"]: "California",
        STATE_COORDS["Texas"]: "Texas",
    }
    return StaticGeocoder(places={**CITY_COORDS, **STATE_COORDS}, regions=regions)


@pytest.fixture
def scenario_a_rows():
    """Three rows keyed by a state column."""
    return [
        {"state": "California", "pop": 10},
        {"state": "California", "pop": 20},
        {"state": "Texas", "pop": 5},
    ]


@pytest.fixture
def city_rows():
    """City dataset with one blank and one unknown city."""
    return [
        {"city": "Austin", "sales": "10", "region": "south"},
        {"city": "Dallas", "sales": "30", "region": "south"},
        {"city": "Sacramento", "sales": "5", "region": "west"},
        {"city": "Nowhere", "sales": "1", "region": "west"},
        {"city": "  ", "sales": "2", "region": "west"},
    ]


@pytest.fixture
def coordinate_rows():
    """Dataset with direct latitude/longitude columns."""
    return [
        {"lat": "30.2672", "lon": "-97.7431", "pop": "3"},
        {"lat": "32.7767", "lon": "-96.797", "pop": "5"},
        {"lat": "38.5816", "lon": "-121.4944", "pop": "7"},
        {"lat": "not a number", "lon": "-121.4944", "pop": "9"},
    ]
