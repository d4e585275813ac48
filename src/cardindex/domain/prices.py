"""Daily price history per card, derived from persisted card payloads."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

VARIANTS: tuple[str, ...] = ("normal", "holofoil", "reverseHolofoil")
DEFAULT_RETAIN_DAYS = 400

type PricePoint = dict[str, Any]
type PriceHistory = dict[str, Any]


def _number(value: object) -> float | int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _mapping(value: object) -> Mapping[str, Any] | None:
    return value if isinstance(value, dict) else None


def _tcgplayer_prices(card: Mapping[str, Any]) -> Mapping[str, Any] | None:
    prices = _mapping((_mapping(card.get("tcgplayer")) or {}).get("prices"))
    if prices is not None:
        return prices
    fallback = _mapping(card.get("prices"))
    if fallback is not None and any(fallback.get(variant) for variant in VARIANTS):
        return fallback
    return None


def _cardmarket_prices(card: Mapping[str, Any]) -> Mapping[str, Any] | None:
    prices = _mapping((_mapping(card.get("cardmarket")) or {}).get("prices"))
    if prices is not None:
        return prices
    fallback = _mapping(card.get("prices"))
    keys = ("trendPrice", "avg7", "avg30", "lowPrice")
    if fallback is not None and any(fallback.get(key) for key in keys):
        return fallback
    return None


def detect_variants(card: Mapping[str, Any]) -> list[str]:
    tcg = _tcgplayer_prices(card) or {}
    found = [variant for variant in VARIANTS if tcg.get(variant)]
    cardmarket = _cardmarket_prices(card) or {}
    if cardmarket.get("reverseHoloTrend") is not None and "reverseHolofoil" not in found:
        found.append("reverseHolofoil")
    return found or ["normal"]


def pick_tcgplayer(card: Mapping[str, Any], variant: str) -> PricePoint | None:
    node = _mapping((_tcgplayer_prices(card) or {}).get(variant))
    if node is None:
        return None
    return {
        "market": _number(node.get("market")),
        "low": _number(node.get("low")),
        "mid": _number(node.get("mid")),
        "high": _number(node.get("high")),
        "directLow": _number(node.get("directLow")),
    }


def pick_cardmarket(card: Mapping[str, Any], variant: str) -> PricePoint | None:
    prices = _cardmarket_prices(card)
    if prices is None:
        return None
    sales = _number(prices.get("salesPerWeek"))
    if sales is None:
        sales = _number(prices.get("weeklySales"))
    point: PricePoint = {
        "trend": _number(prices.get("trendPrice")),
        "avg7": _number(prices.get("avg7")),
        "avg30": _number(prices.get("avg30")),
        "low": _number(prices.get("lowPrice")),
        "salesWeek": sales,
    }
    if variant == "reverseHolofoil":
        reverse_trend = _number(prices.get("reverseHoloTrend"))
        if reverse_trend is not None:
            point["trend"] = reverse_trend
    return point


def prune(points: list[PricePoint], *, today: date, retain_days: int) -> list[PricePoint]:
    cutoff = (today - timedelta(days=retain_days)).isoformat()
    return [point for point in points if isinstance(point.get("d"), str) and point["d"] >= cutoff]


def _append_daily(
    series: dict[str, Any],
    variant: str,
    point: PricePoint,
    *,
    today: date,
    retain_days: int,
) -> None:
    stamp = today.isoformat()
    existing = series.get(variant)
    points: list[PricePoint] = list(existing) if isinstance(existing, list) else []
    if not any(isinstance(entry, dict) and entry.get("d") == stamp for entry in points):
        points.append({"d": stamp, **point})
    series[variant] = prune(
        [entry for entry in points if isinstance(entry, dict)],
        today=today,
        retain_days=retain_days,
    )


def update_history(
    history: Mapping[str, Any] | None,
    card: Mapping[str, Any],
    *,
    today: date,
    retain_days: int = DEFAULT_RETAIN_DAYS,
) -> PriceHistory:
    """Fold today's prices of ``card`` into its history; one point per day per variant."""

    updated: PriceHistory = {
        "id": card.get("id"),
        "tcgplayer": dict(_mapping((history or {}).get("tcgplayer")) or {}),
        "cardmarket": dict(_mapping((history or {}).get("cardmarket")) or {}),
    }
    for variant in detect_variants(card):
        tcg_point = pick_tcgplayer(card, variant)
        if tcg_point is not None:
            _append_daily(
                updated["tcgplayer"], variant, tcg_point, today=today, retain_days=retain_days
            )
        cm_point = pick_cardmarket(card, variant)
        if cm_point is not None:
            _append_daily(
                updated["cardmarket"], variant, cm_point, today=today, retain_days=retain_days
            )
    return updated
