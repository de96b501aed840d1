"""Greedy budget-constrained deck assembly.

``BudgetOptimizer.optimize`` runs a fixed sequence of phases::

    INIT -> FILL_ESSENTIAL -> FILL_REMAINDER -> BUDGET_REPAIR -> SIZE_REPAIR -> DONE

The pool is deduplicated and ranked once with a stable sort, then filled
essential roles first and role-agnostic afterwards. The repair phases trade
cost for size: budget repair swaps or drops expensive cards while keeping role
minimums, size repair pads the deck back to the exact target, going over
budget only as a last resort.

Business infeasibility (budget, role or size) never raises; every deviation is
recorded in ``AssemblyResult.warnings`` or ``AssemblyResult.replacements``.
Only a malformed policy raises ``PolicyValidationError``.

``total_cost`` covers the 99 (or ``target_size``) entries only. The anchor's
price is reserved up front: the optimizer works against
``total_budget - anchor_price``.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Dict, List, Optional, Sequence, Set

from .. import logging_util, settings
from ..exceptions import PolicyValidationError
from ..type_definitions import (
    AssemblyResult,
    Candidate,
    DeckEntry,
    Policy,
    Replacement,
    RoleQuota,
)
from . import builder_constants as bc
from . import builder_utils as bu

logger = logging_util.get_logger(__name__)

__all__ = [
    "AssemblyState",
    "RankingThresholds",
    "BudgetOptimizer",
    "card_type_quotas",
    "synergy_note",
]


class AssemblyState(str, Enum):
    INIT = "init"
    FILL_ESSENTIAL = "fill_essential"
    FILL_REMAINDER = "fill_remainder"
    BUDGET_REPAIR = "budget_repair"
    SIZE_REPAIR = "size_repair"
    DONE = "done"


@dataclass(frozen=True)
class RankingThresholds:
    """Comparator gaps and repair tunables, snapshotted from settings."""

    synergy_gap: float = field(default_factory=lambda: settings.RANK_SYNERGY_GAP)
    weighted_gap: float = field(default_factory=lambda: settings.RANK_WEIGHTED_GAP)
    price_gap: float = field(default_factory=lambda: settings.RANK_PRICE_GAP)
    alternative_price_gap: float = field(default_factory=lambda: settings.ALTERNATIVE_PRICE_GAP)
    repair_min_savings: float = field(default_factory=lambda: settings.REPAIR_MIN_SAVINGS)
    repair_slack: int = field(default_factory=lambda: settings.BUDGET_REPAIR_SLACK)
    network_cap: float = field(default_factory=lambda: settings.NETWORK_SYNERGY_CAP)
    network_partner_bonus: float = field(default_factory=lambda: settings.NETWORK_PARTNER_BONUS)


def card_type_quotas(policy: Policy) -> Optional[Dict[str, int]]:
    """Per-type slot limits from ``policy.type_weights`` (None when unset).

    Weight 0 excludes a type. When every weight is 0 the slots are split
    evenly; otherwise each type gets its share of ``target_size`` (at least 1).
    """
    if not policy.type_weights:
        return None
    n = policy.target_size
    weights = {key: policy.weight_for(key) for key, _ in bc.TYPE_PRECEDENCE}
    total = sum(weights.values())
    if total == 0:
        return {key: n // len(weights) for key in weights}
    return {
        key: 0 if w == 0 else max(1, round(w / total * n))
        for key, w in weights.items()
    }


def synergy_note(candidate: Candidate, role: str) -> str:
    parts = [f"{bc.ROLE_DISPLAY_NAMES.get(role, role)} support"]
    if candidate.price <= bc.BUDGET_FRIENDLY_PRICE:
        parts.append("budget-friendly")
    elif candidate.price >= bc.PREMIUM_PRICE:
        parts.append("premium option")
    if candidate.power_score >= bc.HIGH_POWER_SCORE:
        parts.append("high power")
    elif candidate.power_score >= bc.STRONG_POWER_SCORE:
        parts.append("strong choice")
    return ", ".join(parts)


@dataclass
class _Slot:
    index: int
    entry: DeckEntry


@dataclass(frozen=True)
class _Ranked:
    candidate: Candidate
    synergy: float
    weighted: float
    complexity: int


class BudgetOptimizer:
    """One instance per generation request; holds no state shared across runs."""

    def __init__(
        self,
        policy: Policy,
        anchor_price: float = 0.0,
        thresholds: Optional[RankingThresholds] = None,
    ) -> None:
        policy.validate()
        if not isinstance(anchor_price, (int, float)) or isinstance(anchor_price, bool) \
                or math.isnan(anchor_price) or anchor_price < 0:
            raise PolicyValidationError("anchor_price", "must be a non-negative number", {"value": anchor_price})
        self.policy = policy
        self.anchor_price = float(anchor_price)
        self.thresholds = thresholds or RankingThresholds()
        self.state = AssemblyState.INIT
        self.available_budget = max(0.0, policy.total_budget - self.anchor_price)
        self._reset()

    def _reset(self) -> None:
        self._ranked: List[Candidate] = []
        self._deck: List[_Slot] = []
        self._used: Set[int] = set()
        self._quotas: Dict[str, RoleQuota] = {}
        self._type_limits: Optional[Dict[str, int]] = None
        self._type_counts: Counter = Counter()
        self._replacements: List[Replacement] = []
        self._warnings: List[str] = []

    # ------------------------------------------------------------------
    # Dedup / rank
    # ------------------------------------------------------------------

    @staticmethod
    def deduplicate(candidates: Sequence[Candidate]) -> List[Candidate]:
        """Collapse duplicate names, keeping the lowest mana value, then the
        highest power, then the longest text. Basic lands are kept as given."""
        out: List[Candidate] = []
        slot_of: Dict[str, int] = {}

        def key(c: Candidate):
            return (c.card.cmc, -c.power_score, -len(c.card.oracle_text or ''))

        for cand in candidates:
            if bu.is_basic_land(cand.card):
                out.append(cand)
                continue
            name = bu.canonical_name(cand.name)
            if name not in slot_of:
                slot_of[name] = len(out)
                out.append(cand)
            elif key(cand) < key(out[slot_of[name]]):
                out[slot_of[name]] = cand
        return out

    def _network_bonus(self, pool: Sequence[Candidate]) -> List[float]:
        tag_counts: Counter = Counter()
        per_card = []
        for cand in pool:
            names = {t.name for t in cand.card.mechanic_tags}
            per_card.append(names)
            tag_counts.update(names)
        th = self.thresholds
        return [
            min(th.network_cap, th.network_partner_bonus * sum(tag_counts[n] - 1 for n in names))
            for names in per_card
        ]

    def _compare(self, a: _Ranked, b: _Ranked) -> int:
        th = self.thresholds
        cap = self.policy.per_item_cap
        ca, cb = a.candidate, b.candidate
        a_in, b_in = ca.price <= cap, cb.price <= cap
        if a_in != b_in:
            return -1 if a_in else 1
        if abs(a.synergy - b.synergy) >= th.synergy_gap:
            return -1 if a.synergy > b.synergy else 1
        if ca.is_staple != cb.is_staple:
            return -1 if ca.is_staple else 1
        if abs(a.weighted - b.weighted) > th.weighted_gap:
            return -1 if a.weighted > b.weighted else 1
        if a_in and b_in and abs(ca.price - cb.price) > th.price_gap:
            return -1 if ca.price < cb.price else 1
        if ca.card.cmc != cb.card.cmc:
            return -1 if ca.card.cmc < cb.card.cmc else 1
        if a.complexity != b.complexity:
            return -1 if a.complexity > b.complexity else 1
        return 0

    def rank(self, candidates: Sequence[Candidate]) -> List[Candidate]:
        pool = self.deduplicate(candidates)
        bonuses = self._network_bonus(pool)
        decorated = []
        for cand, bonus in zip(pool, bonuses):
            synergy = cand.synergy_score + bonus
            multiplier = 1.0 if cand.is_staple else bu.rank_type_multiplier(cand.card, self.policy)
            decorated.append(_Ranked(cand, synergy, synergy * multiplier, bu.text_complexity(cand.card.oracle_text)))
        ranked = sorted(decorated, key=cmp_to_key(self._compare))
        return [r.candidate for r in ranked]

    # ------------------------------------------------------------------
    # Deck bookkeeping
    # ------------------------------------------------------------------

    @property
    def total_cost(self) -> float:
        return sum(slot.entry.price_used for slot in self._deck)

    @property
    def remaining_budget(self) -> float:
        return self.available_budget - self.total_cost

    def _type_room(self, cand: Candidate) -> bool:
        if self._type_limits is None:
            return True
        key = bu.primary_type_key(cand.card.type_line)
        if key == bc.OTHER_TYPE or key not in self._type_limits:
            return True
        limit = self._type_limits[key]
        current = self._type_counts[key]
        if current < limit:
            return True
        return bu.is_critical_staple(cand.card) and current < limit + 1

    def _make_entry(self, cand: Candidate, role: str) -> DeckEntry:
        quota = self._quotas.get(role)
        counts = quota is not None and quota.has_room(bu.is_critical_staple(cand.card))
        return DeckEntry(
            candidate=cand,
            assigned_role=role,
            price_used=cand.price,
            synergy_note=synergy_note(cand, role),
            counts_toward_quota=counts,
        )

    def _admit(self, index: int, role: Optional[str] = None) -> DeckEntry:
        cand = self._ranked[index]
        entry = self._make_entry(cand, role or cand.primary_role)
        if entry.counts_toward_quota:
            self._quotas[entry.assigned_role].admit(entry)
        self._deck.append(_Slot(index, entry))
        self._used.add(index)
        self._type_counts[bu.primary_type_key(cand.card.type_line)] += 1
        logger.debug("admit name=%s role=%s price=%.2f", cand.name, entry.assigned_role, cand.price)
        return entry

    def _drop(self, slot: _Slot) -> None:
        entry = slot.entry
        if entry.counts_toward_quota:
            self._quotas[entry.assigned_role].release(entry)
        self._type_counts[bu.primary_type_key(entry.candidate.card.type_line)] -= 1
        self._deck.remove(slot)

    def _swap(self, slot: _Slot, index: int, role: str, reason: str) -> Replacement:
        """Replace ``slot`` in place with ranked candidate ``index``."""
        old = slot.entry
        if old.counts_toward_quota:
            self._quotas[old.assigned_role].release(old)
        self._type_counts[bu.primary_type_key(old.candidate.card.type_line)] -= 1
        cand = self._ranked[index]
        new = self._make_entry(cand, role)
        if new.counts_toward_quota:
            self._quotas[role].admit(new)
        self._type_counts[bu.primary_type_key(cand.card.type_line)] += 1
        self._used.add(index)
        slot.index, slot.entry = index, new
        replacement = Replacement(removed=old, added=new, reason=reason)
        self._replacements.append(replacement)
        return replacement

    def _replaceable(self, entry: DeckEntry) -> bool:
        if not entry.counts_toward_quota:
            return True
        quota = self._quotas.get(entry.assigned_role)
        return quota is None or quota.current - 1 >= quota.minimum

    def _unused(self) -> List[int]:
        return [i for i in range(len(self._ranked)) if i not in self._used]

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self._warnings.append(message)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _init(
        self,
        candidates: Sequence[Candidate],
        role_targets: Optional[Dict[str, int]],
        type_quotas: Optional[Dict[str, int]],
        initial_picks: Sequence[str],
    ) -> None:
        self.state = AssemblyState.INIT
        self._reset()
        self._ranked = self.rank(candidates)
        if role_targets is None:
            role_targets = {role: rt.target for role, rt in self.policy.composition.items()}
        self._quotas = {role: RoleQuota.for_target(role, int(t)) for role, t in role_targets.items()}
        self._type_limits = type_quotas if type_quotas is not None else card_type_quotas(self.policy)
        if self.anchor_price > self.policy.total_budget:
            self._warn(
                f"Commander price ${self.anchor_price:.2f} exceeds total budget ${self.policy.total_budget:.2f}"
            )
        if initial_picks:
            wanted = [bu.canonical_name(n) for n in initial_picks]
            for name in wanted:
                if len(self._deck) >= self.policy.target_size:
                    break
                index = next(
                    (i for i, c in enumerate(self._ranked)
                     if i not in self._used and bu.canonical_name(c.name) == name),
                    None,
                )
                if index is None:
                    self._warn(f"Initial pick {name} is not in the candidate pool")
                    continue
                self._admit(index)
        logger.info(
            "assembly_init candidates=%d ranked=%d budget=%.2f cap=%.2f target=%d picks=%d",
            len(candidates), len(self._ranked), self.available_budget,
            self.policy.per_item_cap, self.policy.target_size, len(self._deck),
        )

    def _fill_essential(self) -> None:
        self.state = AssemblyState.FILL_ESSENTIAL
        cap = self.policy.per_item_cap
        for role in bc.ESSENTIAL_ROLES:
            quota = self._quotas.get(role)
            if quota is None or quota.target <= 0:
                continue
            for index, cand in enumerate(self._ranked):
                if quota.current >= quota.target or len(self._deck) >= self.policy.target_size:
                    break
                if index in self._used or cand.primary_role != role:
                    continue
                if cand.price > cap or self.total_cost + cand.price > self.available_budget:
                    continue
                if not self._type_room(cand):
                    continue
                self._admit(index)
            logger.info("fill_essential role=%s admitted=%d target=%d", role, quota.current, quota.target)

    def _cheaper_alternative(self, role: str) -> Optional[int]:
        remaining = self.remaining_budget
        cap = self.policy.per_item_cap
        options = [
            i for i, c in enumerate(self._ranked)
            if i not in self._used and c.primary_role == role
            and c.price <= remaining and c.price <= cap and self._type_room(c)
        ]
        if not options:
            return None
        gap = self.thresholds.alternative_price_gap

        def compare(i: int, j: int) -> int:
            a, b = self._ranked[i], self._ranked[j]
            if abs(a.price - b.price) > gap:
                return -1 if a.price < b.price else 1
            if a.power_score != b.power_score:
                return -1 if a.power_score > b.power_score else 1
            if a.card.cmc != b.card.cmc:
                return -1 if a.card.cmc < b.card.cmc else 1
            return 0

        return sorted(options, key=cmp_to_key(compare))[0]

    def _fill_remainder(self) -> None:
        self.state = AssemblyState.FILL_REMAINDER
        target = self.policy.target_size
        cap = self.policy.per_item_cap
        exhausted: Set[str] = set()
        alternatives = 0
        for index, cand in enumerate(self._ranked):
            if len(self._deck) >= target:
                break
            if index in self._used or not self._type_room(cand):
                continue
            if self.total_cost + cand.price > self.available_budget:
                role = cand.primary_role
                if role in exhausted:
                    continue
                alt = self._cheaper_alternative(role)
                if alt is None:
                    exhausted.add(role)
                    logger.debug("fill_remainder role_exhausted role=%s", role)
                    continue
                self._admit(alt)
                alternatives += 1
                continue
            if cand.price > cap:
                continue
            self._admit(index)
        logger.info(
            "fill_remainder size=%d target=%d cost=%.2f alternatives=%d",
            len(self._deck), target, self.total_cost, alternatives,
        )

    def _budget_repair(self) -> None:
        self.state = AssemblyState.BUDGET_REPAIR
        th = self.thresholds
        cap = self.policy.per_item_cap
        floor = self.policy.target_size - th.repair_slack
        removed: Set[str] = set()
        while self.total_cost > self.available_budget and len(self._deck) > floor:
            replaceable = [s for s in self._deck if self._replaceable(s.entry)]
            if replaceable:
                victim = max(replaceable, key=lambda s: s.entry.price_used)
            else:
                victim = max(self._deck, key=lambda s: s.entry.price_used)
                self._warn(
                    f"No replaceable card keeps role minimums; replacing {victim.entry.name} regardless of quota"
                )
            old = victim.entry
            removed.add(bu.canonical_name(old.name))
            options = [
                i for i, c in enumerate(self._ranked)
                if i not in self._used
                and c.primary_role == old.assigned_role
                and c.price < old.price_used
                and c.price <= cap
                and c.price <= old.price_used - th.repair_min_savings
                and bu.canonical_name(c.name) not in removed
            ]
            if options:
                alt = min(options, key=lambda i: self._ranked[i].price)
                reason = (
                    f"Budget optimization: replaced ${old.price_used:.2f} card "
                    f"with ${self._ranked[alt].price:.2f} alternative"
                )
                swap = self._swap(victim, alt, old.assigned_role, reason)
                logger.info("budget_repair replaced=%s with=%s", old.name, swap.added.name)
            else:
                self._drop(victim)
                self._warn(f"Removed {old.name} due to budget constraints - no suitable replacement found")
        logger.info("budget_repair size=%d cost=%.2f budget=%.2f", len(self._deck), self.total_cost,
                    self.available_budget)

    def _size_repair(self) -> None:
        self.state = AssemblyState.SIZE_REPAIR
        target = self.policy.target_size
        cap = self.policy.per_item_cap

        def price(i: int) -> float:
            return self._ranked[i].price

        while len(self._deck) < target:
            unused = self._unused()
            if not unused:
                short = target - len(self._deck)
                self._warn(
                    f"Insufficient unique cards available. Deck has {len(self._deck)} cards "
                    f"instead of target {target} (short {short})."
                )
                break
            remaining = self.remaining_budget
            in_cap = [i for i in unused if price(i) <= cap]
            fitting = [i for i in in_cap if price(i) <= remaining]
            if fitting:
                self._admit(min(fitting, key=price))
                continue
            if in_cap:
                # Budget is the blocker: free headroom by swapping out a pricier entry.
                cheapest = min(in_cap, key=price)
                needed = price(cheapest) - remaining
                expensive = [s for s in self._deck if s.entry.price_used > price(cheapest) + needed]
                if expensive:
                    victim = max(expensive, key=lambda s: s.entry.price_used)
                    swap = self._swap(
                        victim, cheapest, self._ranked[cheapest].primary_role,
                        f"Replaced expensive card to ensure {target}-card deck within budget",
                    )
                    logger.info("size_repair replaced=%s with=%s", swap.removed.name, swap.added.name)
                    continue
                entry = self._admit(cheapest)
                self._warn(f"Added {entry.name} over budget to ensure {target}-card deck")
                continue
            # Only over-cap cards remain.
            cheapest = min(unused, key=price)
            over_budget = price(cheapest) > remaining
            entry = self._admit(cheapest)
            self._warn(
                f"Added {entry.name} above ${cap:.2f} per-card cap"
                f"{' and over budget' if over_budget else ''} to ensure {target}-card deck"
            )
        logger.info("size_repair size=%d target=%d cost=%.2f", len(self._deck), target, self.total_cost)

    def _done(self) -> AssemblyResult:
        self.state = AssemblyState.DONE
        target = self.policy.target_size
        if len(self._deck) != target:
            self._warn(f"CRITICAL: Final deck has {len(self._deck)} cards instead of {target}.")
        for role, quota in self._quotas.items():
            if quota.current < quota.minimum:
                display = bc.ROLE_DISPLAY_NAMES.get(role, role)
                self._warn(
                    f"Role {display} below minimum: {quota.current}/{quota.minimum} "
                    f"(short {quota.minimum - quota.current})"
                )
        total = self.total_cost
        if total > self.available_budget:
            self._warn(f"Deck total ${total:.2f} exceeds available budget ${self.available_budget:.2f}")
        result = AssemblyResult(
            final_deck=[s.entry for s in self._deck],
            total_cost=total,
            replacements=list(self._replacements),
            warnings=list(self._warnings),
            role_counts={role: q.current for role, q in self._quotas.items()},
            role_minimums={role: q.minimum for role, q in self._quotas.items()},
        )
        logger.info(
            "assembly_done size=%d cost=%.2f replacements=%d warnings=%d",
            result.size, result.total_cost, len(result.replacements), len(result.warnings),
        )
        return result

    # ------------------------------------------------------------------

    def optimize(
        self,
        candidates: Sequence[Candidate],
        role_targets: Optional[Dict[str, int]] = None,
        type_quotas: Optional[Dict[str, int]] = None,
        initial_picks: Sequence[str] = (),
    ) -> AssemblyResult:
        """Assemble a deck of exactly ``policy.target_size`` entries.

        Args:
            candidates: scored candidates (anchor and ineligible cards already removed)
            role_targets: role -> target count; defaults to the policy composition
            type_quotas: card type -> slot limit; defaults to ``card_type_quotas(policy)``
            initial_picks: card names placed before the fill phases without budget
                or cap checks (re-budgeting an existing list); they are subject to
                both repair phases like any other entry

        Returns:
            AssemblyResult with warnings for every shortfall or budget deviation.
        """
        self._init(candidates, role_targets, type_quotas, initial_picks)
        self._fill_essential()
        self._fill_remainder()
        self._budget_repair()
        self._size_repair()
        return self._done()
