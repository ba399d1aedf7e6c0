# src/djazair/core/ranking.py

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from djazair.core.models import CarrierEligibility, LegOffer, Money

# Maps a fare to its amount in the reference currency.
FaceValue = Callable[[Money], float]


def fare_value(offer: LegOffer, face_value: Optional[FaceValue] = None) -> float:
    if face_value is None:
        return float(offer.fare.amount)
    return face_value(offer.fare)


def offer_rank_key(
    offer: LegOffer,
    eligibility: CarrierEligibility,
    face_value: Optional[FaceValue] = None,
):
    """
    Lower is better.
    Rank by (stops, eligible carriers first, face-value price).
    """
    return (
        offer.stops,
        0 if offer.carrier_code in eligibility else 1,
        fare_value(offer, face_value),
    )


def rank(
    offers: Sequence[LegOffer],
    eligibility: CarrierEligibility,
    face_value: Optional[FaceValue] = None,
) -> List[LegOffer]:
    # sorted() is stable, so equal keys keep provider order.
    return sorted(offers, key=lambda o: offer_rank_key(o, eligibility, face_value))


def return_pair_rank_key(
    pair: Tuple,
    eligibility: CarrierEligibility,
    face_value: Optional[FaceValue] = None,
):
    """
    Key for a (to_hub, from_hub, ...) return pair; extra items are ignored.
    The to-hub leg decides directness and eligibility, the pair decides price.
    """
    to_hub, from_hub = pair[0], pair[1]
    return (
        to_hub.stops,
        0 if to_hub.carrier_code in eligibility else 1,
        fare_value(to_hub, face_value) + fare_value(from_hub, face_value),
    )


def pick_best_return_pair(
    pairs: Sequence[Tuple],
    eligibility: CarrierEligibility,
    face_value: Optional[FaceValue] = None,
) -> Optional[Tuple]:
    if not pairs:
        return None
    return min(pairs, key=lambda p: return_pair_rank_key(p, eligibility, face_value))


def pick_best_by_price(
    offers: Sequence[LegOffer], face_value: Optional[FaceValue] = None
) -> Optional[LegOffer]:
    if not offers:
        return None
    return min(offers, key=lambda o: fare_value(o, face_value))
