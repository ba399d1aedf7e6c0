# src/djazair/providers/base.py

from abc import ABC, abstractmethod
from typing import List, Optional

from djazair.core.models import LegQuery, LegOffer


class ProviderError(Exception):
    def __init__(self, message, status_code=502, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


class ProviderUnavailable(ProviderError):
    """The data source is not configured or cannot be reached at all."""

    def __init__(self, message, details=None):
        super().__init__(message, status_code=503, details=details)


class RateLimited(ProviderError):
    def __init__(self, message, retry_after: Optional[float] = None, details=None):
        super().__init__(message, status_code=429, details=details)
        self.retry_after = retry_after


class LegOfferProvider(ABC):
    """
    Single-leg fare source.

    search_leg may return an empty list for a valid route/date; it raises
    RateLimited on a recognised rate-limit response and ProviderUnavailable
    when it cannot be used at all.
    """

    name = "provider"

    def is_available(self) -> bool:
        return True

    @abstractmethod
    def search_leg(self, query: LegQuery, currency: str) -> List[LegOffer]:
        ...
