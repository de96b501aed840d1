from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..type_definitions import AssemblyResult, Policy
from . import builder_constants as bc
from . import builder_utils as bu

__all__ = ["BudgetBreakdown", "DeckSummary", "summarize_result"]


@dataclass(frozen=True)
class BudgetBreakdown:
    anchor: float
    lands: float
    nonlands: float

    @property
    def total(self) -> float:
        return self.anchor + self.lands + self.nonlands


@dataclass(frozen=True)
class DeckSummary:
    role_breakdown: Dict[str, int]
    type_breakdown: Dict[str, int]
    budget: BudgetBreakdown
    land_count: int
    nonland_count: int
    average_mana_value: float
    average_total_score: float
    notes: List[str] = field(default_factory=list)
    explanation: str = ""


def summarize_result(
    result: AssemblyResult,
    anchor_price: float = 0.0,
    anchor_name: Optional[str] = None,
    policy: Optional[Policy] = None,
) -> DeckSummary:
    """Role, card type and budget breakdown plus plain-text generation notes.

    Average mana value counts nonland entries only. Role counts use each
    entry's assigned role, overflow entries included.
    """
    roles: Counter = Counter()
    types: Counter = Counter()
    land_cost = nonland_cost = 0.0
    lands = 0
    nonland_cmc: List[float] = []
    for entry in result.final_deck:
        card = entry.candidate.card
        roles[entry.assigned_role] += 1
        if 'land' in (card.type_line or '').lower():
            types['lands'] += 1
            lands += 1
            land_cost += entry.price_used
        else:
            types[bu.primary_type_key(card.type_line)] += 1
            nonland_cost += entry.price_used
            nonland_cmc.append(card.cmc)

    size = result.size
    avg_mv = sum(nonland_cmc) / len(nonland_cmc) if nonland_cmc else 0.0
    avg_score = sum(e.candidate.total_score for e in result.final_deck) / size if size else 0.0
    budget = BudgetBreakdown(anchor=float(anchor_price), lands=land_cost, nonlands=nonland_cost)

    role_breakdown = {role: roles[role] for role in bc.ROLES if roles[role]}
    for role, count in roles.items():
        role_breakdown.setdefault(role, count)

    notes: List[str] = []
    if anchor_name and policy is not None:
        notes.append(f"Generated deck for {anchor_name} at power level {policy.power_level_target}")
    if policy is not None:
        notes.append(f"Total budget: ${policy.total_budget:.2f}, per-card cap: ${policy.per_item_cap:.2f}")
    notes.append(f"Final deck: {size + 1} cards, ${budget.total:.2f} total cost")
    notes.append(f"Generated {size - lands} non-land cards and {lands} lands")
    notes.append(f"Total synergy-focused cards: {roles.get(bc.ROLE_SYNERGY, 0)}")
    if result.replacements:
        notes.append(f"{len(result.replacements)} cards replaced with budget alternatives")
    if result.warnings:
        notes.append(f"{len(result.warnings)} warnings raised during assembly")

    focus = ", ".join(
        f"{bc.ROLE_DISPLAY_NAMES.get(role, role)} ({count})"
        for role, count in sorted(role_breakdown.items(), key=lambda kv: -kv[1])[:3]
    )
    subject = anchor_name or "the commander"
    explanation = (
        f"This deck focuses on synergy with {subject}, prioritizing cards that work well with "
        f"the commander's abilities and strategy. Largest roles: {focus or 'none'}. "
        f"Average mana value {avg_mv:.2f}."
    )
    return DeckSummary(
        role_breakdown=role_breakdown,
        type_breakdown=dict(types),
        budget=budget,
        land_count=lands,
        nonland_count=size - lands,
        average_mana_value=avg_mv,
        average_total_score=avg_score,
        notes=notes,
        explanation=explanation,
    )
