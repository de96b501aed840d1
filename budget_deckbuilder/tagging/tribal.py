"""Tribe size tiers and tribal pool analysis.

The tier table lives in ``config/tribes.yml``. A tribe's tier decides how large
a bonus a matching card receives; when the real number of available creatures
is known it overrides the static tier.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from ..type_definitions import Card, MechanicTag
from .synergy_schema import TribesModel, cached_tribes

__all__ = [
    "TribalBonus",
    "TribalPoolAnalysis",
    "tier_for",
    "tribal_bonus",
    "matching_type_tags",
    "analyze_tribal_pool",
]

UNKNOWN_EDHREC_RANK = 50000


@dataclass(frozen=True)
class TribalBonus:
    tier: str
    base_bonus: float
    double_bonus: float
    threshold: int


@dataclass(frozen=True)
class TribalPoolAnalysis:
    tribe: str
    count: int
    quality: str  # "high" | "medium" | "low"
    bonus: TribalBonus
    viable: bool


def tier_for(tribe: str, available_creatures: int = 0, table: Optional[TribesModel] = None) -> str:
    table = table or cached_tribes()
    if available_creatures > 0:
        overrides = table.count_overrides
        for tier in ("common", "uncommon", "rare"):
            floor = overrides.get(tier)
            if floor is not None and available_creatures >= floor:
                return tier
        return "mythic"
    return table.tribes.get(str(tribe).lower(), table.default_tier)


def tribal_bonus(tribe: str, available_creatures: int = 0, table: Optional[TribesModel] = None) -> TribalBonus:
    """Return the bonus triple for ``tribe``.

    Args:
        tribe: Lower-case tribe name (``elf``, ``artifact``...)
        available_creatures: Known creature count in the pool, 0 if unknown
        table: Preloaded tribe table; the packaged one is used by default

    Returns:
        TribalBonus with the resolved tier name.
    """
    table = table or cached_tribes()
    tier = tier_for(tribe, available_creatures, table)
    spec = table.tiers[tier]
    return TribalBonus(tier=tier, base_bonus=spec.base_bonus, double_bonus=spec.double_bonus,
                       threshold=spec.threshold)


def matching_type_tags(tags: Sequence[MechanicTag], tribe: str) -> List[MechanicTag]:
    """Tags marking a card as a member of ``tribe``.

    Creature tribes match ``creature_type_<tribe>``; the artifact "tribe" matches
    ``type_artifact`` or any tag in the ``artifacts`` category.
    """
    if tribe == "artifact":
        return [t for t in tags if t.name == "type_artifact" or t.category == "artifacts"]
    wanted = f"creature_type_{tribe}"
    return [t for t in tags if t.name == wanted]


def _is_member(card: Card, tribe: str) -> bool:
    if matching_type_tags(card.mechanic_tags, tribe):
        return True
    type_line = card.type_line.lower()
    return "creature" in type_line and tribe.lower() in type_line


def analyze_tribal_pool(cards: Iterable[Card], tribe: str, table: Optional[TribesModel] = None) -> TribalPoolAnalysis:
    members = [c for c in cards if _is_member(c, tribe)]
    count = len(members)
    avg_rank = sum(c.edhrec_rank or UNKNOWN_EDHREC_RANK for c in members) / (count or 1)
    if count and avg_rank < 10000:
        quality = "high"
    elif count and avg_rank < 30000:
        quality = "medium"
    else:
        quality = "low"
    bonus = tribal_bonus(tribe, count, table)
    return TribalPoolAnalysis(tribe=tribe, count=count, quality=quality, bonus=bonus,
                              viable=count >= bonus.threshold)
