# src/djazair/engine.py

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from djazair.config import EngineConfig
from djazair.core.arbitrage import DirectComparison, compare_with_direct, dedupe_direct_offers
from djazair.core.combiner import ItineraryCombiner
from djazair.core.models import (
    CarrierEligibility,
    ExchangeRateProfile,
    Itinerary,
    LegOffer,
    LegQuery,
    LegRole,
    ONE_WAY_ROLES,
    ROUND_TRIP_ROLES,
    SearchOutcome,
    SearchRequest,
)
from djazair.core.pricing import PricingModel
from djazair.core.ranking import pick_best_by_price
from djazair.core.validation import expected_endpoints, validate_all
from djazair.providers.base import LegOfferProvider
from djazair.providers.mock_provider import SyntheticItineraryGenerator
from djazair.services.gateway import ProviderGateway, RetryPolicy, linear_backoff

logger = logging.getLogger(__name__)


def shift_request(request: SearchRequest, offset_days: int) -> SearchRequest:
    """Move departure and return by the same number of days."""
    delta = timedelta(days=offset_days)
    return replace(
        request,
        departure_date=request.departure_date + delta,
        return_date=request.return_date + delta if request.return_date else None,
    )


def alternative_date_message(actual: date, offset_days: int) -> str:
    unit = "day" if abs(offset_days) == 1 else "days"
    return f"Alternative date: {actual.strftime('%A %d %B %Y')} ({offset_days:+d} {unit})"


class HubSearchEngine:
    """
    Finds itineraries routed through the hub and scores their dual-rate savings.

    ProviderUnavailable from the gateway is the only error a search raises;
    every other leg or combination failure just means fewer itineraries.
    """

    def __init__(
        self,
        provider: LegOfferProvider,
        config: Optional[EngineConfig] = None,
        eligibility: Optional[CarrierEligibility] = None,
        default_rates: Optional[ExchangeRateProfile] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config or EngineConfig()
        self.eligibility = eligibility or CarrierEligibility(self.config.eligible_carriers)
        self.default_rates = default_rates

        policy = RetryPolicy(
            max_attempts=self.config.max_provider_attempts,
            backoff=linear_backoff(self.config.backoff_step_seconds),
        )
        self.gateway = ProviderGateway(
            provider,
            currency=self.config.reference_currency,
            policy=policy,
            sleep=sleep or time.sleep,
        )
        self.combiner = ItineraryCombiner(
            self.config.layover_window, self.eligibility, self.config.max_combinations)

    def _rates_for(self, request: SearchRequest) -> ExchangeRateProfile:
        rates = request.rates or self.default_rates
        if rates is None:
            raise ValueError("An ExchangeRateProfile is required for a search")
        return rates

    def _leg_queries(self, request: SearchRequest) -> Dict[LegRole, LegQuery]:
        hub = self.config.hub_airport_code
        roles = ROUND_TRIP_ROLES if request.is_round_trip else ONE_WAY_ROLES

        queries: Dict[LegRole, LegQuery] = {}
        for role in roles:
            leg_origin, leg_destination = expected_endpoints(
                role, request.origin, request.destination, hub)
            leg_date = request.departure_date
            if role in (LegRole.RETURN_TO_HUB, LegRole.RETURN_FROM_HUB):
                leg_date = request.return_date
            queries[role] = LegQuery(
                origin=leg_origin,
                destination=leg_destination,
                date=leg_date,
                passenger_count=request.passengers,
                cabin_class=request.cabin_class,
            )
        return queries

    def search(self, request: SearchRequest) -> List[Itinerary]:
        rates = self._rates_for(request)
        self.gateway.ensure_available()

        trip = "round-trip" if request.is_round_trip else "one-way"
        logger.info(
            f"Searching {trip} {request.origin}-{request.destination} via "
            f"{self.config.hub_airport_code} on {request.departure_date}"
        )

        pricing = PricingModel(rates, self.eligibility, self.config)
        offers = self.gateway.query_many(self._leg_queries(request))
        valid = pricing.priceable(validate_all(
            offers, request.origin, request.destination, self.config.hub_airport_code))

        counts = ", ".join(f"{role.value}={len(v)}" for role, v in valid.items())
        logger.info(f"Valid legs: {counts}")

        if any(not v for v in valid.values()):
            return []

        itineraries = [
            pricing.price_itinerary(combo, request.origin, request.destination)
            for combo in self.combiner.combine(valid, pricing.face_value)
        ]
        itineraries.sort(key=lambda it: it.total_fare.amount)

        logger.info(f"Found {len(itineraries)} {trip} itineraries")
        return itineraries

    def search_one_way(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        passengers: int = 1,
        cabin_class: str = "ECONOMY",
        rates: Optional[ExchangeRateProfile] = None,
    ) -> List[Itinerary]:
        return self.search(SearchRequest(
            origin=origin.upper(),
            destination=destination.upper(),
            departure_date=departure_date,
            passengers=passengers,
            cabin_class=cabin_class,
            rates=rates,
        ))

    def search_round_trip(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        return_date: date,
        passengers: int = 1,
        cabin_class: str = "ECONOMY",
        rates: Optional[ExchangeRateProfile] = None,
    ) -> List[Itinerary]:
        if return_date < departure_date:
            raise ValueError("return_date must not be before departure_date")
        return self.search(SearchRequest(
            origin=origin.upper(),
            destination=destination.upper(),
            departure_date=departure_date,
            return_date=return_date,
            passengers=passengers,
            cabin_class=cabin_class,
            rates=rates,
        ))

    def search_with_date_fallback(
        self, request: SearchRequest, allow_synthetic: bool = False
    ) -> SearchOutcome:
        """
        Search the requested date, then each configured offset in order,
        stopping at the first date with at least one itinerary. Runs at most
        len(date_fallback_offsets) + 1 searches, one after another.
        """
        itineraries = self.search(request)
        if itineraries:
            return SearchOutcome(
                itineraries=tuple(itineraries),
                actual_departure_date=request.departure_date,
                actual_return_date=request.return_date,
            )

        logger.info("No itinerary on the requested date, trying nearby dates")

        for offset in self.config.date_fallback_offsets:
            shifted = shift_request(request, offset)
            logger.info(f"Trying {shifted.departure_date} ({offset:+d} days)")

            itineraries = self.search(shifted)
            if itineraries:
                logger.info(f"Found itineraries on {shifted.departure_date} ({offset:+d} days)")
                return SearchOutcome(
                    itineraries=tuple(itineraries),
                    actual_departure_date=shifted.departure_date,
                    actual_return_date=shifted.return_date,
                    is_alternative_date=True,
                    message=alternative_date_message(shifted.departure_date, offset),
                )

        hub = self.config.hub_airport_code
        logger.info(f"No itinerary via {hub} on any nearby date")

        if allow_synthetic:
            generator = SyntheticItineraryGenerator(self.config, self.eligibility)
            synthetic = generator.generate(request, self._rates_for(request))
            if synthetic:
                return SearchOutcome(
                    itineraries=tuple(synthetic),
                    actual_departure_date=request.departure_date,
                    actual_return_date=request.return_date,
                    message=f"No live fares via {hub}; showing indicative synthetic itineraries",
                    is_synthetic=True,
                )

        return SearchOutcome(
            itineraries=(),
            actual_departure_date=request.departure_date,
            actual_return_date=request.return_date,
            message=f"No itinerary via {hub} found, even on nearby dates",
        )

    def search_direct(self, request: SearchRequest) -> List[LegOffer]:
        """Classic origin→destination fares, without the hub, for comparison."""
        self.gateway.ensure_available()
        offers = self.gateway.query(LegQuery(
            origin=request.origin,
            destination=request.destination,
            date=request.departure_date,
            passenger_count=request.passengers,
            cabin_class=request.cabin_class,
        ))
        return dedupe_direct_offers(offers)

    def compare_with_direct(
        self,
        request: SearchRequest,
        itineraries: List[Itinerary],
        min_savings_percent: float = 0.0,
    ) -> List[DirectComparison]:
        """Compare one-way hub itineraries with the cheapest direct fare."""
        rates = self._rates_for(request)
        pricing = PricingModel(rates, self.eligibility, self.config)

        direct = pricing.priceable_offers(self.search_direct(request))
        cheapest = pick_best_by_price(direct, pricing.face_value)
        if cheapest is None:
            return []

        direct_price = pricing.price(cheapest, is_hub_departing=False).amount.amount

        return [
            compare_with_direct(it, direct_price, rates, min_savings_percent)
            for it in itineraries
            if not it.is_round_trip
        ]
