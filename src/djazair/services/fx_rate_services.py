# src/djazair/services/fx_rate_services.py

from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional, Dict, Any

import requests

from djazair.config import BASELINE_OFFICIAL_RATE
from djazair.core.models import ExchangeRateProfile

logger = logging.getLogger(__name__)

DEFAULT_PARALLEL_RATE = 262.0


class ExchangeRateService:
    """
    Builds ExchangeRateProfile values for searches.

    Contract:
      - get_official_rate(ts) -> local units per 1 reference unit (daily, UTC day)
      - get_parallel_rate() -> admin-configured unofficial rate
      - build_profile(parallel_rate=None, ts=None) -> immutable profile

    Official rates are cached per UTC day in SQLite. A failed fetch falls
    back to BASELINE_OFFICIAL_RATE so a search can still run.
    """

    def __init__(
        self,
        db_path: str = os.path.join("data", "fx_rates.sqlite"),
        base_url: Optional[str] = None,
        reference_currency: str = "EUR",
        local_currency: str = "DZD",
        parallel_rate: Optional[float] = None,
        timeout_s: int = 20,
    ):
        self.db_path = db_path
        self.base_url = (base_url or os.getenv(
            "EXCHANGE_BASE_URL", "https://api.exchangerate.host")).rstrip("/")
        self.reference_currency = reference_currency.upper()
        self.local_currency = local_currency.upper()
        self.parallel_rate = parallel_rate
        self.timeout_s = timeout_s
        self._init_schema()

    @property
    def pair(self) -> str:
        return f"{self.reference_currency}/{self.local_currency}"

    def _connect(self) -> sqlite3.Connection:
        parent = os.path.dirname(self.db_path)
        if parent and not os.path.exists(parent):
            os.makedirs(parent, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS fx_rates_daily (
                    pair TEXT NOT NULL,
                    day_utc TEXT NOT NULL,          -- YYYY-MM-DD
                    rate REAL NOT NULL,             -- local units per 1 reference unit
                    source TEXT NOT NULL,
                    fetched_at_utc TEXT NOT NULL,
                    PRIMARY KEY (pair, day_utc)
                );
                """
            )

    @staticmethod
    def _to_utc(ts: datetime) -> datetime:
        # Treat naive timestamps as UTC.
        if ts.tzinfo is None:
            return ts.replace(tzinfo=timezone.utc)
        return ts.astimezone(timezone.utc)

    def _cache_get_daily(self, day_utc: str) -> Optional[float]:
        with self._connect() as conn:
            cur = conn.execute(
                "SELECT rate FROM fx_rates_daily WHERE pair = ? AND day_utc = ?;",
                (self.pair, day_utc),
            )
            row = cur.fetchone()
            return float(row[0]) if row else None

    def _cache_put_daily(self, day_utc: str, rate: float, source: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO fx_rates_daily (pair, day_utc, rate, source, fetched_at_utc)
                VALUES (?, ?, ?, ?, ?);
                """,
                (self.pair, day_utc, float(rate), source, now),
            )

    def _fetch_official_rate(self) -> float:
        url = f"{self.base_url}/latest"
        params = {"base": self.reference_currency, "symbols": self.local_currency}

        r = requests.get(url, params=params, timeout=self.timeout_s,
                         headers={"Accept": "application/json"})
        r.raise_for_status()
        payload: Dict[str, Any] = r.json()

        rate = (payload.get("rates") or {}).get(self.local_currency)
        if rate is None:
            raise ValueError(f"{self.local_currency} rate missing from response")
        return float(rate)

    def get_official_rate(self, ts: Optional[datetime] = None) -> float:
        day_utc = self._to_utc(ts or datetime.now(timezone.utc)).strftime("%Y-%m-%d")

        cached = self._cache_get_daily(day_utc)
        if cached is not None:
            return cached

        try:
            rate = self._fetch_official_rate()
        except (requests.RequestException, ValueError) as e:
            logger.warning(
                f"Official {self.pair} rate unavailable ({e}); using fallback {BASELINE_OFFICIAL_RATE}"
            )
            return BASELINE_OFFICIAL_RATE

        self._cache_put_daily(day_utc, rate, source="exchangerate.host")
        return rate

    def get_parallel_rate(self) -> float:
        if self.parallel_rate is not None:
            return float(self.parallel_rate)
        raw = os.getenv("DJAZAIR_PARALLEL_RATE", "").strip()
        return float(raw) if raw else DEFAULT_PARALLEL_RATE

    def build_profile(
        self, parallel_rate: Optional[float] = None, ts: Optional[datetime] = None
    ) -> ExchangeRateProfile:
        return ExchangeRateProfile(
            parallel_rate=float(parallel_rate) if parallel_rate is not None else self.get_parallel_rate(),
            official_rate=self.get_official_rate(ts),
        )
