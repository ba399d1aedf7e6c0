# src/djazair/providers/amadeus_provider.py

from __future__ import annotations

import logging
from typing import List, Optional, Dict, Any
from datetime import datetime

from djazair.providers.base import LegOfferProvider, ProviderUnavailable
from djazair.core.models import Baggage, LegOffer, LegQuery, Money, Segment
from djazair.services.amadeus_client import AmadeusClient

logger = logging.getLogger(__name__)

CABIN_CLASSES = {"ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"}


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    """
    Parse Amadeus datetime strings like:
      - '2026-02-15T10:30:00'
      - '2026-02-15T10:30:00Z'
      - '2026-02-15T10:30:00+00:00'
    """
    if not value:
        return None
    try:
        v = str(value).replace("Z", "+00:00")
        return datetime.fromisoformat(v)
    except ValueError:
        return None


def _parse_iso8601_duration_minutes(duration: Optional[str]) -> Optional[int]:
    """
    Parse durations like 'PT6H30M' into total minutes.
    """
    if not duration or not isinstance(duration, str):
        return None
    if not duration.startswith("PT"):
        return None

    hours = 0
    minutes = 0
    tmp = duration[2:]  # strip 'PT'

    num = ""
    for ch in tmp:
        if ch.isdigit():
            num += ch
            continue
        if ch == "H" and num:
            hours = int(num)
            num = ""
        elif ch == "M" and num:
            minutes = int(num)
            num = ""
        else:
            num = ""

    return hours * 60 + minutes


def _build_segments(segments_raw: List[Dict[str, Any]]) -> List[Segment]:
    segs: List[Segment] = []
    for seg in segments_raw:
        dep = seg.get("departure", {}) or {}
        arr = seg.get("arrival", {}) or {}
        carrier_code = seg.get("carrierCode")
        number = seg.get("number")

        segs.append(
            Segment(
                origin=str(dep.get("iataCode", "")),
                destination=str(arr.get("iataCode", "")),
                dep_at=_parse_dt(dep.get("at")),
                arr_at=_parse_dt(arr.get("at")),
                carrier_code=str(carrier_code) if carrier_code else None,
                flight_number=f"{carrier_code}{number}" if carrier_code and number else None,
                duration_minutes=_parse_iso8601_duration_minutes(seg.get("duration")),
            )
        )
    return segs


def _extract_baggage(offer_raw: Dict[str, Any]) -> Baggage:
    pricings = offer_raw.get("travelerPricings") or []
    if pricings:
        details = pricings[0].get("fareDetailsBySegment") or []
        bags = details[0].get("includedCheckedBags") if details else None
        if bags:
            weight = bags.get("weight")
            unit = str(bags.get("weightUnit", "KG")).lower()
            return Baggage(
                included=True,
                weight=f"{weight}{unit}" if weight is not None else None,
                details=f"{bags.get('quantity')} checked bag(s)" if bags.get("quantity") else "Checked bag included",
            )
    return Baggage(included=False, details="Checked bag not included")


def parse_leg_offer(
    offer_raw: Dict[str, Any], carriers_dict: Dict[str, str]
) -> Optional[LegOffer]:
    """
    Convert one Amadeus flight-offer into a LegOffer (first itinerary only).
    Returns None when the offer lacks the fields a leg needs.
    """
    itineraries = offer_raw.get("itineraries") or []
    if not itineraries or not itineraries[0].get("segments"):
        return None

    itinerary = itineraries[0]
    segments = _build_segments(itinerary["segments"])
    first, last = segments[0], segments[-1]
    if first.dep_at is None or last.arr_at is None or not first.carrier_code:
        return None

    price = offer_raw.get("price", {}) or {}
    total_str = price.get("grandTotal") or price.get("total") or "0"

    duration = _parse_iso8601_duration_minutes(itinerary.get("duration"))
    if duration is None:
        duration = int((last.arr_at - first.dep_at).total_seconds() // 60)

    return LegOffer(
        origin=first.origin,
        destination=last.destination,
        carrier_code=first.carrier_code,
        flight_number=first.flight_number or first.carrier_code,
        departure_time=first.dep_at,
        arrival_time=last.arr_at,
        fare=Money(round(float(total_str), 2), str(price.get("currency", "EUR"))),
        stop_count=len(segments) - 1,
        duration_minutes=duration,
        baggage=_extract_baggage(offer_raw),
        segments=tuple(segments),
        carrier_name=carriers_dict.get(first.carrier_code),
        provider="amadeus",
    )


class AmadeusProvider(LegOfferProvider):
    """
    Live provider (Amadeus Self-Service Flight Offers Search).
    """

    name = "amadeus"

    def __init__(self, client: Optional[AmadeusClient] = None, max_results: int = 20):
        self.client = client or AmadeusClient()
        self.max_results = max_results

    def is_available(self) -> bool:
        return self.client.is_configured()

    def search_leg(self, query: LegQuery, currency: str) -> List[LegOffer]:
        if not self.is_available():
            raise ProviderUnavailable("Amadeus provider is not configured.")

        params = {
            "originLocationCode": query.origin,
            "destinationLocationCode": query.destination,
            "departureDate": query.date.isoformat(),
            "adults": max(1, int(query.passenger_count)),
            "currencyCode": currency,
            "nonStop": "false",
            "max": self.max_results,
        }
        cabin = (query.cabin_class or "").upper()
        if cabin in CABIN_CLASSES:
            params["travelClass"] = cabin

        payload = self.client.get("/v2/shopping/flight-offers", params)

        data = payload.get("data", []) or []
        dictionaries = payload.get("dictionaries", {}) or {}
        carriers_dict = dictionaries.get("carriers", {}) or {}

        offers: List[LegOffer] = []
        for raw in data:
            offer = parse_leg_offer(raw, carriers_dict)
            if offer is None:
                logger.warning(f"Skipping unparseable Amadeus offer {raw.get('id')}")
                continue
            offers.append(offer)

        logger.info(
            f"Amadeus {query.origin}-{query.destination} on {query.date}: {len(offers)} offers"
        )
        return offers
