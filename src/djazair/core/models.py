# src/djazair/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class LegRole(str, Enum):
    """Position of a leg in a hub itinerary."""

    OUTBOUND_TO_HUB = "OutboundToHub"
    OUTBOUND_FROM_HUB = "OutboundFromHub"
    RETURN_TO_HUB = "ReturnToHub"
    RETURN_FROM_HUB = "ReturnFromHub"

    @property
    def must_be_direct(self) -> bool:
        return self in (LegRole.OUTBOUND_TO_HUB, LegRole.RETURN_FROM_HUB)

    @property
    def departs_hub(self) -> bool:
        return self in (LegRole.OUTBOUND_FROM_HUB, LegRole.RETURN_FROM_HUB)


ONE_WAY_ROLES = (LegRole.OUTBOUND_TO_HUB, LegRole.OUTBOUND_FROM_HUB)
ROUND_TRIP_ROLES = (
    LegRole.OUTBOUND_TO_HUB,
    LegRole.OUTBOUND_FROM_HUB,
    LegRole.RETURN_TO_HUB,
    LegRole.RETURN_FROM_HUB,
)


@dataclass(frozen=True)
class Money:
    amount: float
    currency: str  # ISO 4217, e.g. "EUR"


@dataclass(frozen=True)
class ExchangeRateProfile:
    """Both rates are local-currency units per 1 reference-currency unit."""

    parallel_rate: float
    official_rate: float

    def __post_init__(self) -> None:
        if self.parallel_rate <= 0 or self.official_rate <= 0:
            raise ValueError("Exchange rates must be positive")


@dataclass(frozen=True)
class CarrierEligibility:
    """Carriers whose hub-departing fares are quoted in the local currency."""

    carriers: FrozenSet[str]

    def __contains__(self, carrier_code: object) -> bool:
        if not isinstance(carrier_code, str):
            return False
        # Flight numbers like "AH1010" also resolve to their IATA prefix.
        return carrier_code[:2].upper() in self.carriers

    @classmethod
    def of(cls, *codes: str) -> "CarrierEligibility":
        return cls(frozenset(c.upper() for c in codes))


@dataclass(frozen=True)
class LegQuery:
    origin: str
    destination: str
    date: date
    passenger_count: int = 1
    cabin_class: str = "ECONOMY"


@dataclass(frozen=True)
class Segment:
    """A single physical flight inside a leg offer."""

    origin: str
    destination: str
    dep_at: Optional[datetime] = None
    arr_at: Optional[datetime] = None
    carrier_code: Optional[str] = None  # e.g. "AH"
    flight_number: Optional[str] = None  # e.g. "AH1010"
    duration_minutes: Optional[int] = None


@dataclass(frozen=True)
class Baggage:
    included: bool = False
    weight: Optional[str] = None  # e.g. "23kg"
    details: Optional[str] = None


@dataclass(frozen=True)
class LegOffer:
    """One priced flight option for a LegQuery, as returned by a provider."""

    origin: str
    destination: str
    carrier_code: str
    flight_number: str
    departure_time: datetime
    arrival_time: datetime
    fare: Money
    stop_count: Optional[int] = 0  # None when the provider gave no stop detail
    duration_minutes: Optional[int] = None
    baggage: Baggage = field(default_factory=Baggage)
    segments: Tuple[Segment, ...] = ()
    carrier_name: Optional[str] = None
    provider: str = ""

    @property
    def stops(self) -> int:
        if self.stop_count is not None:
            return self.stop_count
        return max(0, len(self.segments) - 1)


@dataclass(frozen=True)
class PricedLeg:
    """A leg offer together with the price it contributes to an itinerary."""

    role: LegRole
    offer: LegOffer
    amount: Money  # reference currency, unrounded
    local_amount: Optional[Money] = None  # set only when the dual rate applied

    @property
    def converted(self) -> bool:
        return self.local_amount is not None

    @property
    def display_amount(self) -> float:
        return round(self.amount.amount, 2)


@dataclass(frozen=True)
class Layover:
    duration_minutes: int
    airport: str
    location: str

    @property
    def duration(self) -> str:
        return format_duration(self.duration_minutes)


@dataclass(frozen=True)
class Savings:
    amount: float
    percentage: int
    baseline_amount: float


@dataclass(frozen=True)
class RiskFlags:
    """Static annotation; the engine does not model these risks."""

    separate_tickets: bool = True
    visa_required: bool = True
    connection_risk: bool = True


@dataclass(frozen=True)
class LegCombination:
    """Legs chained through the hub that satisfy the layover window."""

    legs: Tuple[Tuple[LegRole, LegOffer], ...]
    outbound_layover_minutes: int
    return_layover_minutes: Optional[int] = None

    @property
    def is_round_trip(self) -> bool:
        return len(self.legs) == 4


@dataclass(frozen=True)
class Itinerary:
    id: str
    origin: str
    destination: str
    legs: Tuple[PricedLeg, ...]
    total_fare: Money
    total_fare_local: Money
    layover: Layover
    savings: Savings
    total_duration_minutes: int
    return_layover: Optional[Layover] = None
    risks: RiskFlags = field(default_factory=RiskFlags)
    is_synthetic: bool = False

    @property
    def is_round_trip(self) -> bool:
        return len(self.legs) == 4

    @property
    def departure_at(self) -> datetime:
        return self.legs[0].offer.departure_time

    @property
    def return_at(self) -> Optional[datetime]:
        if not self.is_round_trip:
            return None
        return self.legs[2].offer.departure_time

    @property
    def total_duration(self) -> str:
        return format_duration(self.total_duration_minutes)

    @property
    def flight_numbers(self) -> Tuple[str, ...]:
        return tuple(leg.offer.flight_number for leg in self.legs)


@dataclass(frozen=True)
class SearchRequest:
    origin: str
    destination: str
    departure_date: date
    return_date: Optional[date] = None
    passengers: int = 1
    cabin_class: str = "ECONOMY"
    rates: Optional[ExchangeRateProfile] = None

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None


@dataclass(frozen=True)
class SearchOutcome:
    itineraries: Tuple[Itinerary, ...]
    actual_departure_date: date
    actual_return_date: Optional[date] = None
    is_alternative_date: bool = False
    message: Optional[str] = None
    is_synthetic: bool = False


def format_duration(minutes: int) -> str:
    """Render minutes as "4h 45m"."""
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m"
