from __future__ import annotations

# Standard library imports
import os
from typing import Dict, List


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# ----------------------------------------------------------------------------------
# RANKING COMPARATOR THRESHOLDS
# ----------------------------------------------------------------------------------
# Empirically tuned gaps used by the ranking comparator. A difference smaller
# than the gap falls through to the next tie-break.
RANK_SYNERGY_GAP: float = _env_float('RANK_SYNERGY_GAP', 3.0)
RANK_WEIGHTED_GAP: float = _env_float('RANK_WEIGHTED_GAP', 1.0)
RANK_PRICE_GAP: float = _env_float('RANK_PRICE_GAP', 1.0)

# Cheaper-alternative search: prices closer than this are treated as equal
ALTERNATIVE_PRICE_GAP: float = _env_float('ALTERNATIVE_PRICE_GAP', 0.5)

# Budget repair: a replacement must save at least this much per swap
REPAIR_MIN_SAVINGS: float = _env_float('REPAIR_MIN_SAVINGS', 1.0)

# Budget repair stops once the deck is this many entries below target
BUDGET_REPAIR_SLACK: int = _env_int('BUDGET_REPAIR_SLACK', 9)

# Pool-wide tag partner bonus added to the ranking synergy value
NETWORK_SYNERGY_CAP: float = _env_float('NETWORK_SYNERGY_CAP', 2.0)
NETWORK_PARTNER_BONUS: float = _env_float('NETWORK_PARTNER_BONUS', 0.05)

# ----------------------------------------------------------------------------------
# QUOTAS AND POOLS
# ----------------------------------------------------------------------------------
ROLE_MINIMUM_RATIO: float = _env_float('ROLE_MINIMUM_RATIO', 0.7)
ROLE_RELEVANCE_THRESHOLD: float = _env_float('ROLE_RELEVANCE_THRESHOLD', 5.0)
POOL_DEPTH_MULTIPLIER: int = _env_int('POOL_DEPTH_MULTIPLIER', 3)
POOL_TRIM_MULTIPLIER: int = _env_int('POOL_TRIM_MULTIPLIER', 2)

# ----------------------------------------------------------------------------------
# SCORING
# ----------------------------------------------------------------------------------
# Converts the unbounded tag synergy total into synergy sub-score points
TAG_SYNERGY_SCALE: float = _env_float('TAG_SYNERGY_SCALE', 0.15)
DEFAULT_SYNERGY_WEIGHT: float = 1.0

# ----------------------------------------------------------------------------------
# POLICY DEFAULTS
# ----------------------------------------------------------------------------------
DEFAULT_TARGET_SIZE: int = _env_int('DEFAULT_TARGET_SIZE', 99)

# Base role targets used when a caller does not provide a composition
DEFAULT_ROLE_TARGETS: Dict[str, int] = {
    'land': 36,
    'ramp': 12,
    'draw': 10,
    'removal': 6,
    'board_wipe': 3,
    'protection': 4,
    'tutor': 2,
    'graveyard_recursion': 2,
    'graveyard_hate': 1,
    'wincon': 2,
}
# Roles given the wider +/-2 window, everything else gets +/-1
WIDE_VARIANCE_ROLES: List[str] = ['land', 'ramp', 'draw', 'removal']
MIN_SYNERGY_FILL: int = 15

DEFAULT_EARLY_GAME_SLOTS: int = 18
DEFAULT_LATE_GAME_SLOTS: int = 12
DEFAULT_MULTI_SPELL_PRIORITY: int = 4

