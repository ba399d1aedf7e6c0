# src/djazair/core/pricing.py
"""
Dual-rate pricing of hub itineraries.

A leg is converted only when it departs the hub and its carrier is
eligible:

    local     = round(face_value * carrier_commercial_rate)
    reference = local / parallel_rate

Every other leg is taken at face value. Savings compare the total with a
baseline that re-expresses each converted leg at the fixed official rate
(config.official_rate, BASELINE_OFFICIAL_RATE by default). The baseline is
a simple reconstruction for auditability, not a live market quote.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional

from djazair.config import EngineConfig
from djazair.core.models import (
    CarrierEligibility,
    ExchangeRateProfile,
    Itinerary,
    LegCombination,
    LegOffer,
    LegRole,
    Layover,
    Money,
    PricedLeg,
    Savings,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (12.5 -> 13, -12.5 -> -12)."""
    return int(math.floor(value + 0.5))


class PricingModel:
    def __init__(
        self,
        rates: ExchangeRateProfile,
        eligibility: CarrierEligibility,
        config: Optional[EngineConfig] = None,
    ):
        self.rates = rates
        self.eligibility = eligibility
        self.config = config or EngineConfig()

    @property
    def reference_currency(self) -> str:
        return self.config.reference_currency

    @property
    def local_currency(self) -> str:
        return self.config.local_currency

    def applies_dual_rate(self, leg: LegOffer, is_hub_departing: bool) -> bool:
        return is_hub_departing and leg.carrier_code in self.eligibility

    def supports(self, fare: Money) -> bool:
        return fare.currency.upper() in (self.reference_currency, self.local_currency)

    def priceable(
        self, offers_by_role: Dict[LegRole, List[LegOffer]]
    ) -> Dict[LegRole, List[LegOffer]]:
        """Drop offers quoted in a currency this model cannot price."""
        return {role: self.priceable_offers(offers) for role, offers in offers_by_role.items()}

    def priceable_offers(self, offers: List[LegOffer]) -> List[LegOffer]:
        kept: List[LegOffer] = []
        for offer in offers:
            if not self.supports(offer.fare):
                logger.warning(
                    f"Skipping {offer.flight_number} {offer.origin}-{offer.destination}: "
                    f"unsupported fare currency {offer.fare.currency}"
                )
                continue
            kept.append(offer)
        return kept

    def face_value(self, fare: Money) -> float:
        """Fare expressed in the reference currency, without arbitrage."""
        currency = fare.currency.upper()
        if currency == self.reference_currency:
            return float(fare.amount)
        if currency == self.local_currency:
            return float(fare.amount) / self.rates.official_rate
        raise ValueError(
            f"Unsupported fare currency {fare.currency!r}; expected "
            f"{self.reference_currency} or {self.local_currency}"
        )

    def price(self, leg: LegOffer, is_hub_departing: bool, role: Optional[LegRole] = None) -> PricedLeg:
        if role is None:
            role = LegRole.OUTBOUND_FROM_HUB if is_hub_departing else LegRole.OUTBOUND_TO_HUB

        if not self.applies_dual_rate(leg, is_hub_departing):
            return PricedLeg(
                role=role,
                offer=leg,
                amount=Money(self.face_value(leg.fare), self.reference_currency),
            )

        if leg.fare.currency.upper() == self.local_currency:
            local = float(leg.fare.amount)
        else:
            local = float(round(self.face_value(leg.fare) * self.config.carrier_commercial_rate))

        return PricedLeg(
            role=role,
            offer=leg,
            amount=Money(local / self.rates.parallel_rate, self.reference_currency),
            local_amount=Money(local, self.local_currency),
        )

    def total(self, legs: Iterable[PricedLeg]) -> Money:
        # Rounded once here, never per leg.
        return Money(round(sum(l.amount.amount for l in legs), 2), self.reference_currency)

    def local_total(self, legs: Iterable[PricedLeg]) -> Money:
        amount = 0.0
        for leg in legs:
            if leg.local_amount is not None:
                amount += leg.local_amount.amount
            else:
                amount += round(leg.amount.amount * self.rates.parallel_rate)
        return Money(amount, self.local_currency)

    def baseline(self, legs: Iterable[PricedLeg]) -> float:
        amount = 0.0
        for leg in legs:
            if leg.local_amount is not None:
                amount += leg.local_amount.amount / self.config.official_rate
            else:
                amount += leg.amount.amount
        return amount

    def savings(self, legs: List[PricedLeg]) -> Savings:
        baseline = self.baseline(legs)
        actual = sum(l.amount.amount for l in legs)
        saved = baseline - actual
        percentage = round_half_up(saved / baseline * 100) if baseline > 0 else 0
        return Savings(
            amount=round(saved, 2),
            percentage=int(percentage),
            baseline_amount=round(baseline, 2),
        )

    def price_itinerary(
        self,
        combo: LegCombination,
        origin: str,
        destination: str,
        is_synthetic: bool = False,
    ) -> Itinerary:
        legs = [self.price(offer, role.departs_hub, role) for role, offer in combo.legs]

        hub = self.config.hub_airport_code
        layover = Layover(combo.outbound_layover_minutes, hub, self.config.hub_location)
        return_layover = None
        if combo.return_layover_minutes is not None:
            return_layover = Layover(combo.return_layover_minutes, hub, self.config.hub_location)

        first, onward = combo.legs[0][1], combo.legs[1][1]
        outbound_minutes = int(
            (onward.arrival_time - first.departure_time).total_seconds() // 60
        )

        tag = "RT" if combo.is_round_trip else "OW"
        prefix = "syn" if is_synthetic else "dz"
        itinerary_id = "-".join([prefix, tag] + [offer.flight_number for _, offer in combo.legs])

        return Itinerary(
            id=itinerary_id,
            origin=origin,
            destination=destination,
            legs=tuple(legs),
            total_fare=self.total(legs),
            total_fare_local=self.local_total(legs),
            layover=layover,
            savings=self.savings(legs),
            total_duration_minutes=outbound_minutes,
            return_layover=return_layover,
            is_synthetic=is_synthetic,
        )
