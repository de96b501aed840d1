"""Shared helpers for scoring and assembly.

Only type-line classification and name lookups live here; role detection from
card text belongs to the candidate scorer.
"""
from __future__ import annotations

import re
from typing import Optional

import pandas as pd

from ..type_definitions import Card, Policy
from . import builder_constants as bc

_COMPLEXITY_SPLIT = re.compile(r'[.,;]')
_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def canonical_name(name: str | None) -> str:
    """Casefolded, trimmed name with curly apostrophes normalized."""
    if not name:
        return ""
    s = str(name).strip().replace("’", "'").replace("‘", "'")
    s = " ".join(s.split())
    return s.casefold()


def primary_type_key(type_line: str) -> str:
    tl = (type_line or '').lower()
    for needle, key in bc.TYPE_PRECEDENCE:
        if needle in tl:
            return key
    return bc.OTHER_TYPE


def is_basic_land(card: Card) -> bool:
    tl = (card.type_line or '').lower()
    return 'basic' in tl and 'land' in tl


def is_critical_staple(card: Card) -> bool:
    return canonical_name(card.name) in bc.CRITICAL_STAPLES


def is_edh_staple(card: Card) -> bool:
    """Known staple by name, or a cheap mana rock / cheap targeted removal spell."""
    if canonical_name(card.name) in bc.EDH_STAPLES:
        return True
    if card.cmc > 2:
        return False
    text = (card.oracle_text or '').lower()
    tl = (card.type_line or '').lower()
    if 'artifact' in tl and ('{t}: add' in text or 'add one mana' in text):
        return True
    if ('instant' in tl or 'sorcery' in tl) and (
        'destroy target' in text or 'exile target' in text or 'counter target' in text
    ):
        return True
    return False


def text_complexity(text: str | None) -> int:
    return len(_COMPLEXITY_SPLIT.split(text or ''))


def parse_stat(value: Optional[str]) -> int:
    """Leading integer of a power/toughness string; '*' and blanks count as 0."""
    if value is None:
        return 0
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else 0


def rank_type_multiplier(card: Card, policy: Policy) -> float:
    """Ranking multiplier from the user's type weights (1.0 without weights)."""
    if not policy.type_weights:
        return 1.0
    key = primary_type_key(card.type_line)
    if key == bc.OTHER_TYPE:
        return 1.0
    weight = max(0, min(10, policy.weight_for(key)))
    return bc.RANK_TYPE_MULTIPLIERS[weight]


def pool_type_multiplier(card: Card, policy: Policy) -> float:
    """Pool weighting multiplier: 0 for an excluded type, rising to 2.0 at weight 10."""
    if not policy.type_weights:
        return 1.0
    key = primary_type_key(card.type_line)
    if key == bc.OTHER_TYPE:
        return 1.0
    weight = policy.weight_for(key)
    if weight == 0:
        return 0.0
    return bc.POOL_TYPE_MULTIPLIER_BASE + weight * bc.POOL_TYPE_MULTIPLIER_STEP


def sort_by_priority(df: pd.DataFrame, columns: list[str], ascending: list[bool] | None = None) -> pd.DataFrame:
    """Stable sort of ``df`` by the listed columns that are present.

    Returns new DataFrame (does not mutate original)."""
    present = [c for c in columns if c in df.columns]
    if not present:
        return df
    if ascending is None:
        order = [True] * len(present)
    else:
        order = [asc for col, asc in zip(columns, ascending) if col in df.columns]
    return df.sort_values(by=present, ascending=order, kind='mergesort', na_position='last')
