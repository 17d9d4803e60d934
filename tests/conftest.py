"""Shared test fixtures for the extraction pipeline test suite."""

import json
from pathlib import Path

import pytest

from models import RawProduct

REDTIGER_TITLE = (
    'REDTIGER F7NP Front Rear, 4K/2.5K Full HD Dash Camera for Cars, Included 32GB Card, '
    'Built-in Wi-Fi GPS, 3.16" IPS Screen, Night Vision, 170°Wide Angle, WDR, 24H Parking Mode'
)


@pytest.fixture
def repo_root():
    return Path(__file__).resolve().parents[1]


@pytest.fixture
def raw_products(repo_root):
    """The seeded raw collection shipped in data/."""
    return json.loads((repo_root / "data" / "raw_products.json").read_text(encoding="utf-8"))


@pytest.fixture
def redtiger_raw():
    """REDTIGER F7NP listing as the scraper writes it (camelCase keys)."""
    return {
        "id": 1234,
        "brand": "REDTIGER",
        "model": REDTIGER_TITLE,
        "image": "https://m.media-amazon.com/images/I/41IK3vBCYyL._AC_.jpg",
        "price": {"amazon_com": 119.99},
        "rating": 4.4,
        "reviewCount": 14124,
        "resolution": "4K",
        "features": [
            "SUPERIOR NIGHT VISION- equipped with HDR/WDR technology for low light conditions.",
            "WiFi/SMART APP CONTROL- connect the dash cam to your smartphone APP via WiFi.",
            "RELIABLE FEATURES- Loop Recording keeps going when the card is full. "
            "The G sensor locks the collision video. 24-hour parking monitor with time-lapse.",
        ],
        "releaseDate": "2024-03-15",
        "popularity": 94,
        "amazonUrl": {"com": "https://www.amazon.com/dp/B098WVKF19"},
    }


@pytest.fixture
def redtiger(redtiger_raw):
    return RawProduct.model_validate(redtiger_raw)


@pytest.fixture
def make_product():
    """Factory for small listings; keyword arguments override the defaults."""

    def _make(**overrides):
        data = {
            "id": 1,
            "brand": "Acme",
            "model": "Acme Dash Cam",
            "features": [],
            "price": {"amazon_com": 50.0},
            "rating": 4.0,
            "reviewCount": 10,
            "amazonUrl": {"com": "https://www.amazon.com/dp/B000000001"},
            "popularity": 50,
        }
        data.update(overrides)
        return RawProduct.model_validate(data)

    return _make
