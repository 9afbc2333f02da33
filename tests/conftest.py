from __future__ import annotations

from datetime import datetime

import pytest

from pharmacy_guard.config import PharmacyConfig
from pharmacy_guard.models import Coordinates, PharmacyRecord
from pharmacy_guard.store import InMemoryPharmacyStore

FIXED_NOW = datetime(2024, 10, 16, 9, 30)  # a Wednesday -> day 3


class StubConfig(PharmacyConfig):
    TESTING = True
    STORE_BACKEND = 'memory'
    SCHEDULER_ENABLED = False
    INITIAL_SCRAPE_IF_EMPTY = False
    CACHE_TYPE = 'SimpleCache'
    LOG_LEVEL = 'WARNING'


class FixedLocator:
    def __init__(self, coords=Coordinates(35.76, -5.83)):
        self.coords = coords
        self.addresses = []

    def locate(self, address):
        self.addresses.append(address)
        return self.coords


class FakeFetcher:
    def __init__(self, document="", error=None):
        self.document = document
        self.error = error
        self.calls = 0

    def fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.document


def make_record(name, latitude=None, longitude=None, is_open=True, day_of_week=3, record_id=None):
    return PharmacyRecord(
        id=record_id,
        name=name,
        address="Rue de Fès",
        phone="0539 123456",
        latitude=latitude,
        longitude=longitude,
        day_of_week=day_of_week,
        is_open=is_open,
        updated_at=FIXED_NOW,
    )


PRIMARY_HTML = """
<html><body>
  <div class="list__">
    <span class="list__label--name">Pharmacie Test</span>
    12 Rue de Fès 0539 123456 Tangier Tanger Morocco
  </div>
  <div class="list__">
    <span class="list__label--name">Pharmacie Ibn Sina</span>
    Boulevard Pasteur Tangier Tanger Morocco
  </div>
</body></html>
"""

EMPTY_HTML = "<html><body><div>Site en maintenance</div></body></html>"


@pytest.fixture
def memory_store():
    return InMemoryPharmacyStore()


@pytest.fixture
def locator():
    return FixedLocator()
