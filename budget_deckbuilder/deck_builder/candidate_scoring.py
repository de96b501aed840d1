"""Per-candidate scoring: role fit, synergy, power, budget and curve.

Each sub-score is on a 0-10 scale. ``total_score`` is a weighted sum whose
weights depend on the policy's power level and always sum to 1.0.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .. import logging_util, settings
from ..tagging.tag_synergy import TagSynergyScorer
from ..type_definitions import AnchorProfile, Candidate, Card, Policy
from . import builder_constants as bc
from . import builder_utils as bu
from .pricing import PriceFn, extract_card_price

logger = logging_util.get_logger(__name__)

__all__ = [
    "ScoreWeights",
    "CandidateScorer",
    "score_roles",
    "primary_role_of",
]

_NUMBER_WORDS = {'a': 1, 'an': 1, 'one': 1, 'two': 2, 'three': 3, 'four': 4, 'five': 5, 'six': 6, 'seven': 7}
_DRAW_COUNT = re.compile(r'draws?\s+(\d+|a|an|one|two|three|four|five|six|seven)\b')
_MANA_SYMBOL = re.compile(r'\{[wubrgc]\}')


def _clamp(value: float, lo: float = 0.0, hi: float = 10.0) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class ScoreWeights:
    role: float
    synergy: float
    power: float
    budget: float
    curve: float

    @classmethod
    def for_power_level(cls, level: int) -> "ScoreWeights":
        """Raw power weight rises and budget weight falls as the power level rises."""
        raw = {
            'role': 0.3,
            'synergy': 0.25,
            'power': 0.25 if level >= 7 else 0.15,
            'budget': 0.15 if level <= 5 else 0.05,
            'curve': 0.1,
        }
        total = sum(raw.values())
        return cls(**{k: v / total for k, v in raw.items()})


def _draw_count(text: str) -> int:
    m = _DRAW_COUNT.search(text)
    if not m:
        return 1
    token = m.group(1)
    return int(token) if token.isdigit() else _NUMBER_WORDS.get(token, 1)


def score_roles(card: Card) -> Dict[str, float]:
    """Keyword/threshold role fit for every role. Later rules overwrite earlier ones."""
    text = (card.oracle_text or '').lower()
    tl = (card.type_line or '').lower()
    name = bu.canonical_name(card.name)
    scores: Dict[str, float] = {role: 0.0 for role in bc.ROLES}

    if 'land' in tl:
        scores[bc.ROLE_LAND] = 10.0
        return scores

    # Ramp
    if 'add' in text and ('mana' in text or _MANA_SYMBOL.search(text)):
        scores[bc.ROLE_RAMP] = 8.0
    if 'search your library for' in text and 'land' in text:
        scores[bc.ROLE_RAMP] = 7.0
    if 'signet' in name or 'talisman' in name or name == 'sol ring':
        scores[bc.ROLE_RAMP] = 9.0
    if 'artifact' in tl and 'tap' in text and 'add' in text:
        scores[bc.ROLE_RAMP] = 7.0

    # Draw / advantage
    if 'draw' in text and 'card' in text:
        scores[bc.ROLE_DRAW] = min(10.0, 5 + _draw_count(text) * 1.5)
    if 'scry' in text or 'surveil' in text:
        scores[bc.ROLE_DRAW] = 6.0
    if 'whenever' in text and 'draw' in text:
        scores[bc.ROLE_DRAW] = 8.0

    # Removal
    if 'destroy target' in text or 'exile target' in text:
        if 'creature' in text:
            scores[bc.ROLE_REMOVAL] = 8.0
        if 'permanent' in text or 'nonland' in text:
            scores[bc.ROLE_REMOVAL] = 9.0
        if 'artifact' in text or 'enchantment' in text:
            scores[bc.ROLE_REMOVAL] = 7.0
    if 'deal' in text and 'damage to' in text and 'target' in text:
        scores[bc.ROLE_REMOVAL] = 7.0
    if 'counter target spell' in text:
        scores[bc.ROLE_REMOVAL] = 8.0

    # Board wipes
    if 'destroy all' in text or 'exile all' in text:
        if 'creatures' in text:
            scores[bc.ROLE_BOARD_WIPE] = 9.0
        if 'nonland permanents' in text:
            scores[bc.ROLE_BOARD_WIPE] = 10.0
    if 'wrath' in name or 'damnation' in name:
        scores[bc.ROLE_BOARD_WIPE] = 9.0
    if 'deal' in text and 'damage to all' in text:
        scores[bc.ROLE_BOARD_WIPE] = 7.0

    # Protection
    if 'hexproof' in text or 'shroud' in text:
        scores[bc.ROLE_PROTECTION] = 8.0
    if 'indestructible' in text:
        scores[bc.ROLE_PROTECTION] = 9.0
    if 'counter target spell that targets' in text:
        scores[bc.ROLE_PROTECTION] = 8.0
    if 'prevent' in text and 'damage' in text:
        scores[bc.ROLE_PROTECTION] = 6.0

    # Tutors
    if 'search your library for' in text and 'land' not in text:
        if 'any card' in text:
            scores[bc.ROLE_TUTOR] = 10.0
        elif 'creature' in text or 'instant' in text or 'sorcery' in text:
            scores[bc.ROLE_TUTOR] = 8.0
        else:
            scores[bc.ROLE_TUTOR] = 7.0

    # Graveyard recursion
    if 'return' in text and 'from your graveyard' in text:
        if 'to your hand' in text:
            scores[bc.ROLE_GRAVEYARD_RECURSION] = 7.0
        if 'to the battlefield' in text:
            scores[bc.ROLE_GRAVEYARD_RECURSION] = 9.0
    if 'reanimate' in text or 'animate dead' in text:
        scores[bc.ROLE_GRAVEYARD_RECURSION] = 9.0

    # Graveyard hate
    if 'exile' in text and 'graveyard' in text:
        scores[bc.ROLE_GRAVEYARD_HATE] = 8.0
    if 'graveyard' in text and "can't" in text:
        scores[bc.ROLE_GRAVEYARD_HATE] = 9.0

    # Win conditions
    if 'creature' in tl:
        power = bu.parse_stat(card.power)
        if power >= 6 or (power >= 4 and ('flying' in text or 'trample' in text)):
            scores[bc.ROLE_WINCON] = 7.0
        if 'commander damage' in text or 'infect' in text:
            scores[bc.ROLE_WINCON] = 8.0
        if power >= 8:
            scores[bc.ROLE_WINCON] = 8.0
    if 'you win the game' in text or 'target player loses' in text:
        scores[bc.ROLE_WINCON] = 10.0
    if 'infinite' in text or ('untap' in text and 'all' in text):
        scores[bc.ROLE_WINCON] = 8.0

    # Catch-all
    if all(score < settings.ROLE_RELEVANCE_THRESHOLD for score in scores.values()):
        scores[bc.ROLE_SYNERGY] = 7.0
    return scores


def primary_role_of(role_scores: Dict[str, float]) -> str:
    """Highest-scoring role; ties resolve to the earlier role in ``ROLES``."""
    best = bc.ROLE_SYNERGY
    best_score = float('-inf')
    for role in bc.ROLES:
        score = role_scores.get(role, 0.0)
        if score > best_score:
            best, best_score = role, score
    return best


class CandidateScorer:
    """Score cards against one commander, profile and policy.

    One instance per generation run; it holds no state shared between runs.
    """

    def __init__(
        self,
        anchor: Card,
        profile: AnchorProfile,
        policy: Policy,
        synergy_scorer: Optional[TagSynergyScorer] = None,
        price_of: PriceFn = extract_card_price,
    ) -> None:
        policy.validate()
        self.anchor = anchor
        self.profile = profile
        self.policy = policy
        self.synergy_scorer = synergy_scorer or TagSynergyScorer()
        self.price_of = price_of
        self.weights = ScoreWeights.for_power_level(policy.power_level_target)
        self._anchor_keywords = {k.lower() for k in anchor.keywords}
        self._anchor_identity = {c.upper() for c in anchor.color_identity}

    # -- sub-scores -----------------------------------------------------------

    def _archetype_bonus(self, card: Card) -> float:
        tl = (card.type_line or '').lower()
        text = (card.oracle_text or '').lower()

        def fits(archetype: str) -> float:
            cue = bc.ARCHETYPE_CUES.get(archetype)
            if cue is None:
                return 0.0
            type_needles, text_needles, bonus = cue
            if any(n in tl for n in type_needles) or any(n in text for n in text_needles):
                return bonus
            return 0.0

        primary = self.profile.primary_strategy
        bonus = fits(primary) if primary else 0.0
        for archetype in sorted(self.profile.strategies):
            if archetype == primary:
                continue
            bonus += fits(archetype) * bc.SECONDARY_ARCHETYPE_FACTOR
        return bonus

    def synergy_score(self, card: Card) -> tuple[float, float]:
        """Return (clamped synergy sub-score, raw tag synergy)."""
        tag_synergy = self.synergy_scorer.score(self.profile, card.mechanic_tags)
        score = 5.0 + tag_synergy * settings.TAG_SYNERGY_SCALE
        score += self._archetype_bonus(card)
        card_keywords = {k.lower() for k in card.keywords}
        shared = [k for k in bc.SHARED_KEYWORDS if k in card_keywords and k in self._anchor_keywords]
        score += len(shared) * bc.SHARED_KEYWORD_BONUS
        colors = {c.upper() for c in card.colors}
        if len(colors) > 1 and colors <= self._anchor_identity:
            score += bc.MULTICOLOR_IDENTITY_BONUS
        return _clamp(score), tag_synergy

    @staticmethod
    def power_score(card: Card) -> float:
        text = (card.oracle_text or '').lower()
        tl = (card.type_line or '').lower()
        cmc = card.cmc
        score = 5.0
        if 'creature' in tl:
            stats = bu.parse_stat(card.power) + bu.parse_stat(card.toughness)
            if stats >= cmc * 2.5:
                score += 2
            elif stats >= cmc * 2:
                score += 1
        purposes = sum((
            'draw' in text,
            'destroy' in text or 'exile' in text,
            'add' in text and 'mana' in text,
            'search' in text,
        ))
        if purposes >= 2:
            score += 1.5
        elif purposes == 1:
            score += 0.5
        if cmc <= 2 and ('destroy' in text or 'counter' in text or 'draw' in text):
            score += 2
        score += bc.RARITY_POWER_BONUS.get((card.rarity or '').lower(), 0.0)
        if bu.canonical_name(card.name) in bc.POWER_STAPLES:
            score += bc.POWER_STAPLE_BONUS
        return _clamp(score)

    def budget_score(self, price: float) -> float:
        if price > self.policy.per_item_cap:
            return 0.0
        if price == 0:
            return 8.0
        ratio = price / self.policy.per_item_cap
        return max(1.0, 10 - ratio * 9)

    def curve_score(self, card: Card) -> float:
        curve = self.policy.curve_targets
        cmc = card.cmc
        score = 5.0
        if cmc <= 2 and curve.early_game_slots > 15:
            score += 2
        elif cmc >= 6 and curve.late_game_slots > 15:
            score += 2
        elif 3 <= cmc <= 5:
            score += 1
        if curve.multi_spell_priority >= 7 and cmc <= 3:
            score += 1.5
        if cmc >= 7 and curve.late_game_slots <= 8:
            score -= 2
        return _clamp(score)

    # -- composite ------------------------------------------------------------

    def score(self, card: Card) -> Candidate:
        roles = score_roles(card)
        synergy, tag_synergy = self.synergy_score(card)
        power = self.power_score(card)
        price = float(self.price_of(card, self.policy.prefer_cheapest))
        budget = self.budget_score(price)
        curve = self.curve_score(card)
        w = self.weights
        total = (
            max(roles.values()) * w.role
            + synergy * w.synergy
            + power * w.power
            + budget * w.budget
            + curve * w.curve
        )
        relevance = tuple(r for r in bc.ROLES if roles[r] >= settings.ROLE_RELEVANCE_THRESHOLD)
        return Candidate(
            card=card,
            role_scores=roles,
            synergy_score=synergy,
            power_score=power,
            budget_score=budget,
            curve_score=curve,
            total_score=total,
            role_relevance=relevance,
            price=price,
            primary_role=primary_role_of(roles),
            is_staple=bu.is_edh_staple(card),
            tag_synergy=tag_synergy,
            selection_priority=total,
        )

    def score_all(self, cards: Iterable[Card]) -> List[Candidate]:
        scored = [self.score(card) for card in cards]
        logger.info("candidates_scored count=%d power_level=%d", len(scored), self.policy.power_level_target)
        return scored
