import itertools
import threading
from datetime import date, datetime
from pathlib import Path

import pytest

from djazair.config import DEFAULT_ELIGIBLE_CARRIERS
from djazair.core.models import (
    CarrierEligibility,
    ExchangeRateProfile,
    LegOffer,
    Money,
    Segment,
)
from djazair.providers.base import LegOfferProvider

SAMPLE_FARES = Path(__file__).resolve().parent.parent / "data" / "sample_leg_fares.csv"

_numbers = itertools.count(1000)


def build_offer(origin, destination, dep, arr, carrier="AH", number=None,
                price=100.0, currency="EUR", stops=0, segments=()):
    return LegOffer(
        origin=origin,
        destination=destination,
        carrier_code=carrier,
        flight_number=number or f"{carrier}{next(_numbers)}",
        departure_time=dep,
        arrival_time=arr,
        fare=Money(price, currency),
        stop_count=stops,
        duration_minutes=int((arr - dep).total_seconds() // 60),
        segments=tuple(segments),
        provider="fake",
    )


class FakeProvider(LegOfferProvider):
    """
    In-memory provider keyed by (origin, destination, date).
    `errors` are raised one per call, in order, before any offer is served.
    """

    name = "fake"

    def __init__(self, offers=None, available=True, errors=None, always_raise=None):
        self.offers = offers or {}
        self.available = available
        self.errors = list(errors or [])
        self.always_raise = always_raise
        self.calls = []
        self._lock = threading.Lock()

    def add(self, offer):
        key = (offer.origin, offer.destination, offer.departure_time.date())
        self.offers.setdefault(key, []).append(offer)
        return offer

    def is_available(self):
        return self.available

    def search_leg(self, query, currency):
        with self._lock:
            self.calls.append(query)
            if self.always_raise is not None:
                raise self.always_raise
            if self.errors:
                raise self.errors.pop(0)
        return list(self.offers.get((query.origin, query.destination, query.date), []))


class RecordingSleep:
    def __init__(self):
        self.delays = []
        self._lock = threading.Lock()

    def __call__(self, seconds):
        with self._lock:
            self.delays.append(seconds)


@pytest.fixture
def make_offer():
    return build_offer


@pytest.fixture
def make_segment():
    return Segment


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def rates():
    return ExchangeRateProfile(parallel_rate=260.0, official_rate=150.0)


@pytest.fixture
def eligibility():
    return CarrierEligibility(DEFAULT_ELIGIBLE_CARRIERS)


@pytest.fixture
def sample_fares_path():
    return str(SAMPLE_FARES)


@pytest.fixture
def travel_day():
    return date(2025, 9, 17)


@pytest.fixture
def cdg_alg_morning(make_offer):
    """CDG→ALG landing 09:15."""
    return make_offer("CDG", "ALG", datetime(2025, 9, 17, 6, 45), datetime(2025, 9, 17, 9, 15),
                      carrier="AH", number="AH1001", price=100.0)


@pytest.fixture
def alg_dxb_afternoon(make_offer):
    """ALG→DXB leaving 14:00 on an eligible carrier."""
    return make_offer("ALG", "DXB", datetime(2025, 9, 17, 14, 0), datetime(2025, 9, 17, 23, 30),
                      carrier="EK", number="EK758", price=100.0)
