from __future__ import annotations

import math
from typing import Callable, List, Optional

from .. import logging_util
from ..type_definitions import Card
from . import builder_constants as bc

logger = logging_util.get_logger(__name__)

# priceOf(card, prefer_cheapest) -> float; must be deterministic within a run
PriceFn = Callable[[Card, bool], float]

__all__ = ["PriceFn", "extract_card_price", "rarity_estimate"]


def rarity_estimate(rarity: Optional[str]) -> float:
    return bc.RARITY_PRICE_ESTIMATES.get((rarity or '').strip().lower(), bc.UNKNOWN_RARITY_PRICE)


def _valid(value: Optional[float]) -> bool:
    if value is None:
        return False
    try:
        f = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(f) and f >= 0


def extract_card_price(card: Card, prefer_cheapest: bool = False) -> float:
    """Resolve the USD price used for budgeting.

    ``prefer_cheapest`` picks the lower of the regular and foil prices;
    otherwise the regular price wins and foil is only a fallback. A card with
    no usable price falls back to a rarity-based estimate. A listed price of
    0 is kept as 0.
    """
    prices: List[float] = [float(p) for p in (card.price_usd, card.price_usd_foil) if _valid(p)]
    if not prices:
        estimate = rarity_estimate(card.rarity)
        logger.debug("price_missing name=%s rarity=%s estimate=%.2f", card.name, card.rarity, estimate)
        return estimate
    return min(prices) if prefer_cheapest else prices[0]
