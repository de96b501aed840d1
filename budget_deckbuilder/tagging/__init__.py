"""Tag-driven synergy scoring: rule tables, tribal tiers and the scorer."""

from .tag_synergy import SynergyRule, SynergyBreakdown, TagSynergyScorer
from .tribal import analyze_tribal_pool, tribal_bonus

__all__ = [
    "SynergyRule",
    "SynergyBreakdown",
    "TagSynergyScorer",
    "analyze_tribal_pool",
    "tribal_bonus",
]
