"""Rule-table driven synergy between a commander profile and a card's tags.

The scorer is a small interpreter over declarative data:

1. every rule whose anchor tags intersect the profile and whose card tag is
   present on the card contributes ``rule.score * tag.synergy_weight``
   (all matching rules fire, negative scores included);
2. tribal bonuses for each tribe the profile flags as ``tribal_<x>`` or
   ``<x>_matters``, scaled by the tribe's size tier;
3. a baseline for literal tag matches (``2 * priority * weight``) and for tag
   categories that contain a profile strategy (``priority * weight``).

The result is unbounded and signed. Instances are cheap and hold no shared
state; ``add_rule`` only affects the instance it is called on.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .. import logging_util, settings
from ..type_definitions import AnchorProfile, MechanicTag
from .synergy_schema import SynergyRulesModel, TribesModel, cached_rules, cached_tribes
from .tribal import matching_type_tags, tribal_bonus

logger = logging_util.get_logger(__name__)

__all__ = [
    "SynergyRule",
    "AppliedRule",
    "SynergyBreakdown",
    "TagSynergyScorer",
    "rules_from_model",
]


@dataclass(frozen=True)
class SynergyRule:
    anchor_tags: Tuple[str, ...]
    card_tag: str
    score: float
    description: str = ""

    def fires_for(self, profile: AnchorProfile) -> bool:
        return any(profile.has(tag) for tag in self.anchor_tags)


@dataclass(frozen=True)
class AppliedRule:
    rule: SynergyRule
    card_tag: str
    score: float


@dataclass(frozen=True)
class SynergyBreakdown:
    total: float
    rule_total: float
    tribal_bonus: float
    baseline: float
    applied_rules: Tuple[AppliedRule, ...]
    unmatched_anchor_tags: Tuple[str, ...]
    unmatched_card_tags: Tuple[str, ...]


def rules_from_model(model: SynergyRulesModel) -> List[SynergyRule]:
    return [
        SynergyRule(
            anchor_tags=tuple(r.anchor_tags),
            card_tag=r.card_tag,
            score=float(r.score),
            description=r.description,
        )
        for r in model.rules
    ]


def _weight(tag: MechanicTag) -> float:
    weight = tag.synergy_weight
    return settings.DEFAULT_SYNERGY_WEIGHT if weight is None else float(weight)


class TagSynergyScorer:
    """Score card tags against a commander profile.

    Args:
        rules: Explicit rule list. When omitted the rule table is loaded from
            ``rules_path`` (or the packaged ``synergy_rules.yml``).
        tribes: Tribe tier table; defaults to the packaged ``tribes.yml``.
        rules_path: Alternate YAML rule table.
    """

    def __init__(
        self,
        rules: Optional[Iterable[SynergyRule]] = None,
        tribes: Optional[TribesModel] = None,
        rules_path: str | Path | None = None,
    ) -> None:
        if rules is None:
            rules = rules_from_model(cached_rules(rules_path))
        self._rules: List[SynergyRule] = list(rules)
        self._tribes = tribes or cached_tribes()

    @property
    def rules(self) -> Tuple[SynergyRule, ...]:
        return tuple(self._rules)

    def add_rule(self, rule: SynergyRule) -> None:
        self._rules.append(rule)

    def applicable_rules(self, profile: AnchorProfile) -> List[SynergyRule]:
        return [rule for rule in self._rules if rule.fires_for(profile)]

    def score(self, profile: AnchorProfile, tags: Sequence[MechanicTag]) -> float:
        return self.breakdown(profile, tags).total

    def breakdown(self, profile: AnchorProfile, tags: Sequence[MechanicTag]) -> SynergyBreakdown:
        by_name = {}
        for tag in tags:
            by_name.setdefault(tag.name, tag)

        applied: List[AppliedRule] = []
        for rule in self._rules:
            if not rule.fires_for(profile):
                continue
            tag = by_name.get(rule.card_tag)
            if tag is None:
                continue
            applied.append(AppliedRule(rule=rule, card_tag=tag.name, score=rule.score * _weight(tag)))
        rule_total = sum(a.score for a in applied)

        tribal_total = self._tribal_bonus(profile, tags)
        baseline = self._baseline(profile, tags)
        total = rule_total + tribal_total + baseline

        used_card_tags = {a.card_tag for a in applied}
        used_anchor_tags = {t for a in applied for t in a.rule.anchor_tags}
        unmatched_card = tuple(t.name for t in tags if t.name not in used_card_tags)
        unmatched_anchor = tuple(sorted(t for t in profile.tags if t not in used_anchor_tags))

        if abs(total) >= 50:
            logger.debug("tag_synergy_high total=%.1f rules=%d tribal=%.1f baseline=%.1f",
                         total, len(applied), tribal_total, baseline)
        return SynergyBreakdown(
            total=total,
            rule_total=rule_total,
            tribal_bonus=tribal_total,
            baseline=baseline,
            applied_rules=tuple(applied),
            unmatched_anchor_tags=unmatched_anchor,
            unmatched_card_tags=unmatched_card,
        )

    def _tribal_bonus(self, profile: AnchorProfile, tags: Sequence[MechanicTag]) -> float:
        bonus = 0.0
        for tribe in self._tribes.tribal_types:
            has_tribal = f"tribal_{tribe}" in profile.tags
            has_matters = f"{tribe}_matters" in profile.tags
            if not (has_tribal or has_matters):
                continue
            members = matching_type_tags(tags, tribe)
            if not members:
                continue
            avg_weight = sum(_weight(t) for t in members) / len(members)
            tier = tribal_bonus(tribe, table=self._tribes)
            bonus += tier.base_bonus * avg_weight
            if has_tribal and has_matters:
                bonus += tier.double_bonus * avg_weight
        return bonus

    @staticmethod
    def _baseline(profile: AnchorProfile, tags: Sequence[MechanicTag]) -> float:
        baseline = 0.0
        for tag in tags:
            weight = _weight(tag)
            if tag.name in profile.tags:
                baseline += 2 * tag.priority * weight
            if tag.category and any(s in tag.category for s in profile.strategies):
                baseline += tag.priority * weight
        return baseline
