"""
Normalization of agent-reported rental shop payloads.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from app.schemas.search import BikeRecord, ShopRecord

VND_PER_USD = 25_000
# Prices above this are assumed to be quoted in VND.
VND_THRESHOLD = 1000


class ShopPayloadError(ValueError):
    """
    Raised when an agent result cannot be read as a shop object.
    """


def _to_number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def convert_price(value: Any) -> float | None:
    """
    Coerce a price to USD, converting VND-sized amounts at a fixed rate.
    """

    number = _to_number(value)
    if number is None:
        return None
    if number > VND_THRESHOLD:
        return float(math.floor(number / VND_PER_USD + 0.5))
    return number


def _engine_cc(value: Any) -> int | None:
    if not value:
        return None
    number = _to_number(value)
    if number is None:
        return None
    return int(number)


class ShopNormalizer:
    """
    Convert raw ``resultJson`` payloads into ShopRecord models.
    """

    def coerce_payload(self, raw: Any) -> dict[str, Any]:
        """
        Accept an object or a JSON string holding one.
        """

        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError as exc:
                raise ShopPayloadError("resultJson is not valid JSON") from exc
        if not isinstance(raw, Mapping):
            raise ShopPayloadError(f"resultJson must be an object, got {type(raw).__name__}")
        return dict(raw)

    def normalize(self, raw: Any, *, site_url: str | None = None) -> ShopRecord:
        payload = self.coerce_payload(raw)

        bikes_raw = payload.get("bikes")
        if isinstance(bikes_raw, list):
            candidates = bikes_raw
        elif isinstance(bikes_raw, Mapping):
            candidates = [bikes_raw]
        else:
            candidates = []

        bikes = [
            bike
            for bike in (self._normalize_bike(item) for item in candidates)
            if bike is not None
        ]
        notes = payload.get("notes")
        return ShopRecord(
            shop_name=str(payload.get("shop_name") or "Unknown Shop"),
            city=str(payload.get("city") or ""),
            website=str(payload.get("website") or site_url or ""),
            bikes=bikes,
            notes=str(notes) if notes else None,
        )

    @staticmethod
    def _normalize_bike(item: Any) -> BikeRecord | None:
        if not isinstance(item, Mapping):
            return None
        name = str(item.get("name") or "").strip()
        if not name:
            return None

        available = item.get("available")
        return BikeRecord(
            name=name,
            engine_cc=_engine_cc(item.get("engine_cc")),
            type=str(item.get("type") or "scooter"),
            price_daily_usd=convert_price(item.get("price_daily_usd")),
            price_weekly_usd=convert_price(item.get("price_weekly_usd")),
            price_monthly_usd=convert_price(item.get("price_monthly_usd")),
            currency=str(item.get("currency") or "USD"),
            deposit_usd=convert_price(item.get("deposit_usd")),
            available=True if available is None else bool(available),
        )
