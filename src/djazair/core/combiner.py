# src/djazair/core/combiner.py

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from djazair.config import LayoverWindow
from djazair.core.models import CarrierEligibility, LegCombination, LegOffer, LegRole
from djazair.core.ranking import FaceValue, pick_best_return_pair, rank

logger = logging.getLogger(__name__)

ReturnPair = Tuple[LegOffer, LegOffer, float]


def layover_minutes(arrival: datetime, departure: datetime) -> float:
    return (departure - arrival).total_seconds() / 60.0


class ItineraryCombiner:
    """
    Cross-combines validated legs into hub itineraries.

    The outbound loop stops once `max_combinations` itineraries exist, so
    valid pairs past the cap are never explored. For round trips every
    return pair is evaluated for each outbound pair and exactly one is kept;
    an outbound pair with no usable return pair is dropped.
    """

    def __init__(
        self,
        window: LayoverWindow,
        eligibility: CarrierEligibility,
        max_combinations: int = 20,
    ):
        self.window = window
        self.eligibility = eligibility
        self.max_combinations = max_combinations

    def _chain(self, first: LegOffer, second: LegOffer) -> Optional[float]:
        minutes = layover_minutes(first.arrival_time, second.departure_time)
        return minutes if self.window.contains(minutes) else None

    def return_pairs(
        self, to_hub: Sequence[LegOffer], from_hub: Sequence[LegOffer]
    ) -> List[ReturnPair]:
        pairs: List[ReturnPair] = []
        for s3 in to_hub:
            for s4 in from_hub:
                minutes = self._chain(s3, s4)
                if minutes is not None:
                    pairs.append((s3, s4, minutes))
        return pairs

    def _best_return_for(
        self,
        outbound_arrival: datetime,
        pairs: Sequence[ReturnPair],
        face_value: Optional[FaceValue] = None,
    ) -> Optional[ReturnPair]:
        # The return trip cannot leave before the outbound trip lands.
        usable = [p for p in pairs if p[0].departure_time >= outbound_arrival]
        return pick_best_return_pair(usable, self.eligibility, face_value)

    def combine(
        self,
        offers_by_role: Dict[LegRole, List[LegOffer]],
        face_value: Optional[FaceValue] = None,
    ) -> List[LegCombination]:
        """
        `face_value` maps fares to the reference currency for ranking;
        without it fares are compared as quoted.
        """
        to_hub = offers_by_role.get(LegRole.OUTBOUND_TO_HUB) or []
        # Flexible roles are ranked so the capped loop sees the best candidates first.
        from_hub = rank(
            offers_by_role.get(LegRole.OUTBOUND_FROM_HUB) or [], self.eligibility, face_value)

        round_trip = (
            LegRole.RETURN_TO_HUB in offers_by_role
            or LegRole.RETURN_FROM_HUB in offers_by_role
        )

        return_pairs: List[ReturnPair] = []
        if round_trip:
            return_pairs = self.return_pairs(
                rank(offers_by_role.get(LegRole.RETURN_TO_HUB) or [], self.eligibility, face_value),
                offers_by_role.get(LegRole.RETURN_FROM_HUB) or [],
            )
            if not return_pairs:
                logger.info("No return pair satisfies the layover window")
                return []

        combos: List[LegCombination] = []
        for s1 in to_hub:
            if len(combos) >= self.max_combinations:
                break
            for s2 in from_hub:
                if len(combos) >= self.max_combinations:
                    break

                outbound_minutes = self._chain(s1, s2)
                if outbound_minutes is None:
                    continue

                legs = ((LegRole.OUTBOUND_TO_HUB, s1), (LegRole.OUTBOUND_FROM_HUB, s2))
                if not round_trip:
                    combos.append(LegCombination(legs, int(outbound_minutes)))
                    continue

                best = self._best_return_for(s2.arrival_time, return_pairs, face_value)
                if best is None:
                    continue

                s3, s4, return_minutes = best
                combos.append(
                    LegCombination(
                        legs + ((LegRole.RETURN_TO_HUB, s3), (LegRole.RETURN_FROM_HUB, s4)),
                        int(outbound_minutes),
                        int(return_minutes),
                    )
                )

        logger.info(
            f"Combined {len(to_hub)}x{len(from_hub)} outbound legs into {len(combos)} itineraries"
        )
        return combos
