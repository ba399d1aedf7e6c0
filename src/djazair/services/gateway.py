# src/djazair/services/gateway.py

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from djazair.core.models import LegOffer, LegQuery, LegRole
from djazair.providers.base import LegOfferProvider, ProviderUnavailable, RateLimited

logger = logging.getLogger(__name__)


def linear_backoff(step_seconds: float = 2.0) -> Callable[[int], float]:
    """Backoff after the n-th failed attempt: n * step_seconds."""

    def backoff(attempt: int) -> float:
        return attempt * step_seconds

    return backoff


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff: Callable[[int], float] = linear_backoff(2.0)

    def delay_after(self, attempt: int) -> float:
        return self.backoff(attempt)


class ProviderGateway:
    """
    Single-leg fare queries with bounded retry.

    Rate-limit responses are retried after the policy's backoff or the
    server's Retry-After, whichever is longer; any other
    failure is retried immediately. Once attempts run out the leg yields an
    empty list. Only ProviderUnavailable reaches the caller.
    """

    def __init__(
        self,
        provider: LegOfferProvider,
        currency: str = "EUR",
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.currency = currency
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    def ensure_available(self) -> None:
        if not self.provider.is_available():
            raise ProviderUnavailable(f"Flight data provider '{self.provider.name}' is not configured.")

    def query(self, leg: LegQuery) -> List[LegOffer]:
        route = f"{leg.origin}-{leg.destination} {leg.date}"
        max_attempts = self.policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                return list(self.provider.search_leg(leg, self.currency))
            except ProviderUnavailable:
                raise
            except RateLimited as e:
                if attempt < max_attempts:
                    delay = self.policy.delay_after(attempt)
                    if e.retry_after is not None:
                        delay = max(delay, e.retry_after)
                    logger.warning(
                        f"Rate limited on {route} (attempt {attempt}/{max_attempts}), retrying in {delay}s"
                    )
                    self.sleep(delay)
                    continue
                logger.error(f"Rate limited on {route} after {max_attempts} attempts, giving up")
            except Exception as e:
                if attempt < max_attempts:
                    logger.warning(
                        f"Query {route} failed (attempt {attempt}/{max_attempts}): {type(e).__name__}: {e}"
                    )
                    continue
                logger.error(f"Query {route} failed after {max_attempts} attempts: {e}", exc_info=True)

        return []

    def query_many(self, queries: Dict[LegRole, LegQuery]) -> Dict[LegRole, List[LegOffer]]:
        """Issue sibling leg queries concurrently and wait for all of them."""
        if not queries:
            return {}

        with ThreadPoolExecutor(max_workers=len(queries)) as pool:
            futures = {role: pool.submit(self.query, q) for role, q in queries.items()}
            return {role: future.result() for role, future in futures.items()}
