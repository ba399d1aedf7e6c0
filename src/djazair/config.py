# src/djazair/config.py

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple


# Baseline savings re-price converted legs at this fixed rate, not at the
# caller's ExchangeRateProfile.official_rate. Pending product clarification.
BASELINE_OFFICIAL_RATE = 150.0

DEFAULT_CARRIER_COMMERCIAL_RATE = 170.0

DEFAULT_DATE_FALLBACK_OFFSETS: Tuple[int, ...] = (1, 2, 3, 4, 5, -1, -2, -3)

# Carriers that sell hub-originating tickets in the local currency.
DEFAULT_ELIGIBLE_CARRIERS: FrozenSet[str] = frozenset(
    {"AH", "EK", "TK", "QR", "MS", "SV", "RJ", "TU", "ET"}
)


@dataclass(frozen=True)
class LayoverWindow:
    min_minutes: int = 120
    max_minutes: int = 1440

    def __post_init__(self) -> None:
        if self.min_minutes < 0 or self.max_minutes < self.min_minutes:
            raise ValueError(
                f"Invalid layover window [{self.min_minutes}, {self.max_minutes}]"
            )

    def contains(self, minutes: float) -> bool:
        return self.min_minutes <= minutes <= self.max_minutes


# Used by the synthetic generator only.
RELAXED_LAYOVER_WINDOW = LayoverWindow(min_minutes=60, max_minutes=1440)


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw and raw.strip() else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw and raw.strip() else default


def _env_list(name: str) -> Optional[Tuple[str, ...]]:
    raw = os.getenv(name)
    if not raw or not raw.strip():
        return None
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class EngineConfig:
    """
    Per-deployment settings of the hub search engine.

    Defaults match production search; use from_env() to override through
    DJAZAIR_* environment variables.
    """

    hub_airport_code: str = "ALG"
    hub_location: str = "Algiers, Algeria"
    min_layover_minutes: int = 120
    max_layover_minutes: int = 1440
    max_combinations: int = 20
    carrier_commercial_rate: float = DEFAULT_CARRIER_COMMERCIAL_RATE
    official_rate: float = BASELINE_OFFICIAL_RATE
    date_fallback_offsets: Tuple[int, ...] = DEFAULT_DATE_FALLBACK_OFFSETS
    reference_currency: str = "EUR"
    local_currency: str = "DZD"
    max_provider_attempts: int = 3
    backoff_step_seconds: float = 2.0
    eligible_carriers: FrozenSet[str] = field(
        default_factory=lambda: DEFAULT_ELIGIBLE_CARRIERS)

    def __post_init__(self) -> None:
        if self.max_combinations < 1:
            raise ValueError("max_combinations must be at least 1")
        if self.carrier_commercial_rate <= 0 or self.official_rate <= 0:
            raise ValueError("Rates must be positive")
        if not self.date_fallback_offsets:
            raise ValueError("date_fallback_offsets must not be empty")
        if self.max_provider_attempts < 1:
            raise ValueError("max_provider_attempts must be at least 1")
        LayoverWindow(self.min_layover_minutes, self.max_layover_minutes)

    @property
    def layover_window(self) -> LayoverWindow:
        return LayoverWindow(self.min_layover_minutes, self.max_layover_minutes)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        offsets = _env_list("DJAZAIR_DATE_FALLBACK_OFFSETS")
        carriers = _env_list("DJAZAIR_ELIGIBLE_CARRIERS")

        return cls(
            hub_airport_code=_env_str("DJAZAIR_HUB", "ALG").upper(),
            hub_location=_env_str("DJAZAIR_HUB_LOCATION", "Algiers, Algeria"),
            min_layover_minutes=_env_int("DJAZAIR_MIN_LAYOVER_MINUTES", 120),
            max_layover_minutes=_env_int("DJAZAIR_MAX_LAYOVER_MINUTES", 1440),
            max_combinations=_env_int("DJAZAIR_MAX_COMBINATIONS", 20),
            carrier_commercial_rate=_env_float(
                "DJAZAIR_CARRIER_COMMERCIAL_RATE", DEFAULT_CARRIER_COMMERCIAL_RATE),
            official_rate=_env_float(
                "DJAZAIR_BASELINE_OFFICIAL_RATE", BASELINE_OFFICIAL_RATE),
            date_fallback_offsets=(
                tuple(int(o) for o in offsets) if offsets
                else DEFAULT_DATE_FALLBACK_OFFSETS
            ),
            reference_currency=_env_str("DJAZAIR_REFERENCE_CURRENCY", "EUR").upper(),
            local_currency=_env_str("DJAZAIR_LOCAL_CURRENCY", "DZD").upper(),
            max_provider_attempts=_env_int("DJAZAIR_MAX_PROVIDER_ATTEMPTS", 3),
            backoff_step_seconds=_env_float("DJAZAIR_BACKOFF_STEP_SECONDS", 2.0),
            eligible_carriers=(
                frozenset(c.upper() for c in carriers) if carriers
                else DEFAULT_ELIGIBLE_CARRIERS
            ),
        )
