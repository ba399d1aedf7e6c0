# src/djazair/core/validation.py

from __future__ import annotations

from typing import Dict, List, Tuple

from djazair.core.models import LegOffer, LegRole


def expected_endpoints(
    role: LegRole, origin: str, destination: str, hub: str
) -> Tuple[str, str]:
    """(origin, destination) a leg must declare for its role in an origin→destination trip."""
    if role is LegRole.OUTBOUND_TO_HUB:
        return origin, hub
    if role is LegRole.OUTBOUND_FROM_HUB:
        return hub, destination
    if role is LegRole.RETURN_TO_HUB:
        return destination, hub
    return hub, origin


def is_direct(offer: LegOffer) -> bool:
    if offer.stop_count is not None:
        return offer.stop_count == 0
    # No stop detail: direct only with at most one physical segment.
    return len(offer.segments) <= 1


def validate(
    offers: List[LegOffer], role: LegRole, endpoints: Tuple[str, str]
) -> List[LegOffer]:
    """
    Keep offers that fly the expected pair for `role` and, for roles that
    must be direct, have no stop.
    """
    want_origin, want_destination = (e.upper() for e in endpoints)

    kept: List[LegOffer] = []
    for offer in offers:
        if offer.origin.upper() != want_origin:
            continue
        if offer.destination.upper() != want_destination:
            continue
        if role.must_be_direct and not is_direct(offer):
            continue
        kept.append(offer)
    return kept


def validate_all(
    offers_by_role: Dict[LegRole, List[LegOffer]],
    origin: str,
    destination: str,
    hub: str,
) -> Dict[LegRole, List[LegOffer]]:
    return {
        role: validate(offers, role, expected_endpoints(role, origin, destination, hub))
        for role, offers in offers_by_role.items()
    }
