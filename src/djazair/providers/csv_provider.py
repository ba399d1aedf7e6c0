# src/djazair/providers/csv_provider.py

import os
from typing import List, Optional

import pandas as pd

from djazair.providers.base import LegOfferProvider, ProviderUnavailable
from djazair.core.models import Baggage, LegOffer, LegQuery, Money

DATA_PATH = os.getenv("DJAZAIR_FARES_CSV", os.path.join("data", "sample_leg_fares.csv"))

REQUIRED_COLUMNS = {
    "origin", "destination", "departure_at", "arrival_at",
    "carrier_code", "flight_number", "fare_amount", "fare_currency",
}


def load_leg_fares(path: str, query: LegQuery) -> pd.DataFrame:
    """
    Load leg fares from a local CSV and keep the rows matching one leg query.

    Expected columns:
      origin, destination, departure_at, arrival_at, carrier_code,
      flight_number, fare_amount, fare_currency
    Optional: stops, baggage_weight
    """
    df = pd.read_csv(path)

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"{path} is missing columns: {sorted(missing)}")

    # Basic normalization
    df["origin"] = df["origin"].str.upper()
    df["destination"] = df["destination"].str.upper()
    df["departure_at"] = pd.to_datetime(df["departure_at"])
    df["arrival_at"] = pd.to_datetime(df["arrival_at"])

    df = df[(df["origin"] == query.origin.upper()) &
            (df["destination"] == query.destination.upper())]
    df = df[df["departure_at"].dt.date == query.date]

    return df


class CSVProvider(LegOfferProvider):
    """Offline leg fares for demos and tests; fares scale with passenger count."""

    name = "csv"

    def __init__(self, path: Optional[str] = None):
        self.path = path or DATA_PATH

    def is_available(self) -> bool:
        return os.path.exists(self.path)

    def search_leg(self, query: LegQuery, currency: str) -> List[LegOffer]:
        if not self.is_available():
            raise ProviderUnavailable(f"Fare file not found: {self.path}")

        df = load_leg_fares(self.path, query)
        if df.empty:
            return []

        offers: List[LegOffer] = []
        for d in df.to_dict(orient="records"):
            stops = d.get("stops")
            weight = d.get("baggage_weight")
            has_bag = isinstance(weight, str) and bool(weight.strip())

            offers.append(
                LegOffer(
                    origin=d["origin"],
                    destination=d["destination"],
                    carrier_code=str(d["carrier_code"]),
                    flight_number=str(d["flight_number"]),
                    departure_time=d["departure_at"].to_pydatetime(),
                    arrival_time=d["arrival_at"].to_pydatetime(),
                    fare=Money(
                        round(float(d["fare_amount"]) * max(1, query.passenger_count), 2),
                        str(d["fare_currency"]).upper(),
                    ),
                    stop_count=None if pd.isna(stops) else int(stops),
                    duration_minutes=int(
                        (d["arrival_at"] - d["departure_at"]).total_seconds() // 60),
                    baggage=Baggage(included=has_bag, weight=weight if has_bag else None),
                    provider="csv",
                )
            )

        return offers
