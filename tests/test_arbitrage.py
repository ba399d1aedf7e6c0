from datetime import datetime

import pytest

from djazair.config import EngineConfig
from djazair.core.arbitrage import (
    break_even_local,
    compare_with_direct,
    dedupe_direct_offers,
    rate_sensitivity,
    savings_percent,
)
from djazair.core.models import LegCombination, LegRole
from djazair.core.pricing import PricingModel

DEP = datetime(2025, 9, 17, 10, 0)
ARR = datetime(2025, 9, 17, 19, 15)


@pytest.fixture
def itinerary(rates, eligibility, cdg_alg_morning, alg_dxb_afternoon):
    combo = LegCombination(
        ((LegRole.OUTBOUND_TO_HUB, cdg_alg_morning), (LegRole.OUTBOUND_FROM_HUB, alg_dxb_afternoon)),
        outbound_layover_minutes=285,
    )
    return PricingModel(rates, eligibility, EngineConfig()).price_itinerary(combo, "CDG", "DXB")


def test_savings_percent():
    assert savings_percent(200.0, 150.0) == 25.0
    assert savings_percent(0.0, 150.0) == 0.0


def test_break_even_is_never_negative():
    assert break_even_local(300.0, 100.0, 260.0) == 52000.0
    assert break_even_local(80.0, 100.0, 260.0) == 0.0


def test_compare_with_direct(itinerary, rates):
    result = compare_with_direct(itinerary, 300.0, rates, min_savings_percent=40)

    assert result.itinerary_id == "dz-OW-AH1001-EK758"
    assert result.hub_price == 165.38
    assert result.savings == 134.62
    assert result.savings_percent == 44.87
    assert result.is_deal
    assert result.break_even_local == 52000.0


def test_threshold_not_met(itinerary, rates):
    assert not compare_with_direct(itinerary, 300.0, rates, min_savings_percent=50).is_deal
    assert not compare_with_direct(itinerary, 0.0, rates).is_deal


def test_threshold_must_be_a_percentage(itinerary, rates):
    with pytest.raises(ValueError):
        compare_with_direct(itinerary, 300.0, rates, min_savings_percent=120)


def test_rate_sensitivity_brackets_savings(itinerary):
    sensitivity = rate_sensitivity(itinerary, 300.0, 260.0)

    assert sensitivity.lower_rate == pytest.approx(234.0)
    assert sensitivity.upper_rate == pytest.approx(286.0)
    # A weaker parallel rate buys fewer reference units per local unit.
    assert sensitivity.lower_savings < 134.62 < sensitivity.upper_savings


def test_dedupe_direct_offers(make_offer):
    a = make_offer("CDG", "DXB", DEP, ARR, carrier="EK", number="EK74", price=520)
    dup = make_offer("CDG", "DXB", DEP, ARR, carrier="EK", number="EK74", price=520)
    cheaper = make_offer("CDG", "DXB", DEP, ARR, carrier="AF", number="AF662", price=498)

    assert dedupe_direct_offers([a, dup, cheaper]) == [cheaper, a]
