# src/djazair/providers/mock_provider.py
"""
Synthetic hub itineraries.

Nothing in this module comes from a live fare source. It exists for callers
that prefer showing an indicative itinerary over an empty result, and for
offline development. Every offer is tagged provider="synthetic" and every
itinerary built from them has is_synthetic=True; the engine only uses it
when the caller opts in.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Dict, List, Optional

from djazair.config import EngineConfig, RELAXED_LAYOVER_WINDOW
from djazair.core.combiner import ItineraryCombiner
from djazair.core.models import (
    Baggage,
    CarrierEligibility,
    ExchangeRateProfile,
    Itinerary,
    LegOffer,
    LegQuery,
    LegRole,
    Money,
    ONE_WAY_ROLES,
    ROUND_TRIP_ROLES,
    SearchRequest,
)
from djazair.core.pricing import PricingModel
from djazair.core.validation import expected_endpoints, validate_all
from djazair.providers.base import LegOfferProvider

# Approximate great-circle distances (km) for common routes.
ROUTE_DISTANCES_KM = {
    "CDG-DXB": 5200,
    "CDG-JFK": 5800,
    "CDG-NRT": 9700,
    "CDG-SYD": 17000,
    "CDG-BKK": 9500,
    "CDG-SIN": 10700,
    "CDG-HKG": 9600,
    "CDG-BOM": 6800,
    "CDG-DEL": 6500,
    "CDG-PEK": 8200,
    "CDG-SHA": 8900,
}
DEFAULT_DISTANCE_KM = 5000
PRICE_PER_KM = 0.08

CABIN_MULTIPLIERS = {"BUSINESS": 2.5, "FIRST": 4.0}

SYNTHETIC_CARRIER = "AH"

# (departure, arrival) local times per role
SCHEDULE = {
    LegRole.OUTBOUND_TO_HUB: (time(10, 0), time(12, 0)),
    LegRole.OUTBOUND_FROM_HUB: (time(14, 30), time(22, 0)),
    LegRole.RETURN_TO_HUB: (time(8, 0), time(15, 30)),
    LegRole.RETURN_FROM_HUB: (time(18, 0), time(20, 0)),
}

# Share of the route base price carried by each role.
PRICE_SHARE = {
    LegRole.OUTBOUND_TO_HUB: 0.4,
    LegRole.OUTBOUND_FROM_HUB: 0.6,
    LegRole.RETURN_TO_HUB: 0.6,
    LegRole.RETURN_FROM_HUB: 0.4,
}


def base_price(origin: str, destination: str) -> float:
    distance = ROUTE_DISTANCES_KM.get(f"{origin}-{destination}")
    if distance is None:
        distance = ROUTE_DISTANCES_KM.get(f"{destination}-{origin}", DEFAULT_DISTANCE_KM)
    return round(distance * PRICE_PER_KM, 2)


def role_for(query: LegQuery, hub: str, trip_origin: Optional[str] = None) -> Optional[LegRole]:
    """Role a query plays around `hub`; trip_origin tells outbound from return."""
    if query.destination == hub:
        if trip_origin is None or query.origin == trip_origin:
            return LegRole.OUTBOUND_TO_HUB
        return LegRole.RETURN_TO_HUB
    if query.origin == hub:
        if trip_origin is not None and query.destination == trip_origin:
            return LegRole.RETURN_FROM_HUB
        return LegRole.OUTBOUND_FROM_HUB
    return None


def generate_synthetic_offer(
    query: LegQuery,
    role: LegRole,
    route_price: float,
    number: int,
) -> LegOffer:
    dep_time, arr_time = SCHEDULE[role]
    departure = datetime.combine(query.date, dep_time)
    arrival = datetime.combine(query.date, arr_time)
    if arrival <= departure:
        arrival += timedelta(days=1)

    price = route_price * PRICE_SHARE[role]
    price *= CABIN_MULTIPLIERS.get((query.cabin_class or "").upper(), 1.0)
    price *= max(1, query.passenger_count)

    return LegOffer(
        origin=query.origin,
        destination=query.destination,
        carrier_code=SYNTHETIC_CARRIER,
        flight_number=f"SYN{number:03d}",
        departure_time=departure,
        arrival_time=arrival,
        fare=Money(round(price, 2), "EUR"),
        stop_count=0,
        duration_minutes=int((arrival - departure).total_seconds() // 60),
        baggage=Baggage(included=True, weight="23kg", details="Checked bag included"),
        provider="synthetic",
    )


class MockProvider(LegOfferProvider):
    """
    Deterministic offline provider: one synthetic offer per hub leg.
    Routes that do not touch the hub return nothing.
    """

    name = "synthetic"

    def __init__(self, hub: str = "ALG", trip_origin: Optional[str] = None,
                 route_price: Optional[float] = None):
        self.hub = hub
        self.trip_origin = trip_origin
        self.route_price = route_price

    def search_leg(self, query: LegQuery, currency: str) -> List[LegOffer]:
        role = role_for(query, self.hub, self.trip_origin)
        if role is None:
            return []
        price = self.route_price
        if price is None:
            far_end = query.origin if query.destination == self.hub else query.destination
            price = base_price(far_end, self.hub)
        number = list(ROUND_TRIP_ROLES).index(role) + 1
        return [generate_synthetic_offer(query, role, price, number)]


class SyntheticItineraryGenerator:
    """Builds clearly-labelled synthetic itineraries through the hub."""

    def __init__(self, config: Optional[EngineConfig] = None,
                 eligibility: Optional[CarrierEligibility] = None):
        self.config = config or EngineConfig()
        self.eligibility = eligibility or CarrierEligibility(self.config.eligible_carriers)
        self.combiner = ItineraryCombiner(
            RELAXED_LAYOVER_WINDOW, self.eligibility, self.config.max_combinations)

    def generate(self, request: SearchRequest, rates: ExchangeRateProfile) -> List[Itinerary]:
        hub = self.config.hub_airport_code
        provider = MockProvider(
            hub=hub,
            trip_origin=request.origin,
            route_price=base_price(request.origin, request.destination),
        )

        roles = ROUND_TRIP_ROLES if request.is_round_trip else ONE_WAY_ROLES
        offers: Dict[LegRole, List[LegOffer]] = {}
        for role in roles:
            leg_origin, leg_destination = expected_endpoints(
                role, request.origin, request.destination, hub)
            leg_date = request.departure_date
            if role in (LegRole.RETURN_TO_HUB, LegRole.RETURN_FROM_HUB):
                leg_date = request.return_date
            query = LegQuery(leg_origin, leg_destination, leg_date,
                             request.passengers, request.cabin_class)
            offers[role] = provider.search_leg(query, self.config.reference_currency)

        valid = validate_all(offers, request.origin, request.destination, hub)
        pricing = PricingModel(rates, self.eligibility, self.config)
        return [
            pricing.price_itinerary(combo, request.origin, request.destination, is_synthetic=True)
            for combo in self.combiner.combine(valid, pricing.face_value)
        ]
