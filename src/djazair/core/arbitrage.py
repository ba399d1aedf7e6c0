# src/djazair/core/arbitrage.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from djazair.core.models import ExchangeRateProfile, Itinerary, LegOffer


@dataclass(frozen=True)
class RateSensitivity:
    lower_rate: float
    upper_rate: float
    lower_savings: float
    upper_savings: float


@dataclass(frozen=True)
class DirectComparison:
    """How a hub itinerary compares with flying the route directly."""

    itinerary_id: str
    direct_price: float
    hub_price: float
    savings: float
    savings_percent: float
    is_deal: bool
    break_even_local: float
    sensitivity: RateSensitivity


def savings_percent(direct_price: float, hub_price: float) -> float:
    if direct_price <= 0:
        return 0.0
    return (direct_price - hub_price) / direct_price * 100


def break_even_local(direct_price: float, fixed_price: float, parallel_rate: float) -> float:
    """
    Highest local-currency price the converted legs may cost before the
    hub route stops beating the direct fare.
    """
    return max(0.0, (direct_price - fixed_price) * parallel_rate)


def _split_itinerary(itinerary: Itinerary) -> Tuple[float, float]:
    """(face-value reference total, local total of converted legs)."""
    fixed, local = 0.0, 0.0
    for leg in itinerary.legs:
        if leg.local_amount is not None:
            local += leg.local_amount.amount
        else:
            fixed += leg.amount.amount
    return fixed, local


def rate_sensitivity(
    itinerary: Itinerary,
    direct_price: float,
    parallel_rate: float,
    variation: float = 0.1,
) -> RateSensitivity:
    fixed, local = _split_itinerary(itinerary)
    lower_rate = parallel_rate * (1 - variation)
    upper_rate = parallel_rate * (1 + variation)
    return RateSensitivity(
        lower_rate=lower_rate,
        upper_rate=upper_rate,
        lower_savings=round(direct_price - (fixed + local / lower_rate), 2),
        upper_savings=round(direct_price - (fixed + local / upper_rate), 2),
    )


def compare_with_direct(
    itinerary: Itinerary,
    direct_price: float,
    rates: ExchangeRateProfile,
    min_savings_percent: float = 0.0,
) -> DirectComparison:
    if not 0 <= min_savings_percent <= 100:
        raise ValueError("min_savings_percent must be between 0 and 100")

    hub_price = itinerary.total_fare.amount
    percent = savings_percent(direct_price, hub_price)
    fixed, _ = _split_itinerary(itinerary)

    return DirectComparison(
        itinerary_id=itinerary.id,
        direct_price=direct_price,
        hub_price=hub_price,
        savings=round(direct_price - hub_price, 2),
        savings_percent=round(percent, 2),
        is_deal=direct_price > 0 and percent >= min_savings_percent,
        break_even_local=round(break_even_local(direct_price, fixed, rates.parallel_rate), 2),
        sensitivity=rate_sensitivity(itinerary, direct_price, rates.parallel_rate),
    )


def dedupe_direct_offers(offers: List[LegOffer]) -> List[LegOffer]:
    """
    Drop exact duplicates (same flight chain, same times, same price) and
    sort by price.
    """
    seen = set()
    unique: List[LegOffer] = []
    for o in offers:
        chain = tuple(
            (s.flight_number or "", s.dep_at.isoformat() if s.dep_at else "")
            for s in o.segments
        ) or ((o.flight_number, o.departure_time.isoformat()),)
        key = (chain, round(float(o.fare.amount), 2), o.fare.currency)
        if key in seen:
            continue
        seen.add(key)
        unique.append(o)
    return sorted(unique, key=lambda o: float(o.fare.amount))
