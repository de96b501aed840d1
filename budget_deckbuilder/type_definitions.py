from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from . import settings
from .exceptions import PolicyValidationError

__all__ = [
    "MechanicTag",
    "AnchorProfile",
    "Card",
    "Candidate",
    "RoleTarget",
    "CurveTargets",
    "Policy",
    "RoleQuota",
    "RolePool",
    "PoolStats",
    "RolePools",
    "DeckEntry",
    "Replacement",
    "AssemblyResult",
    "SynergyType",
    "SynergyEdge",
    "SynergyGraph",
    "DeckCohesion",
    "TYPE_WEIGHT_KEYS",
]

# Card type keys accepted in Policy.type_weights (0..10 scale, 5 is neutral)
TYPE_WEIGHT_KEYS: Tuple[str, ...] = (
    "creatures", "artifacts", "enchantments", "instants", "sorceries", "planeswalkers",
)


# ---------------------------------------------------------------------------
# Upstream inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MechanicTag:
    """One classifier-produced mechanic tag on a card."""

    name: str
    category: str = ""
    priority: int = 5
    synergy_weight: float = settings.DEFAULT_SYNERGY_WEIGHT


@dataclass(frozen=True)
class AnchorProfile:
    """Tags and strategies derived from the commander.

    ``tag_priorities`` is optional; tags without an entry are treated as
    priority 5 where a priority is needed (graph edge strengths).
    """

    tags: FrozenSet[str] = frozenset()
    strategies: FrozenSet[str] = frozenset()
    primary_strategy: Optional[str] = None
    tag_priorities: Mapping[str, int] = field(default_factory=dict)

    @classmethod
    def of(
        cls,
        tags: Iterable[str] = (),
        strategies: Iterable[str] = (),
        primary_strategy: Optional[str] = None,
        tag_priorities: Optional[Mapping[str, int]] = None,
    ) -> "AnchorProfile":
        return cls(
            tags=frozenset(str(t) for t in tags if t),
            strategies=frozenset(str(s) for s in strategies if s),
            primary_strategy=primary_strategy,
            tag_priorities=dict(tag_priorities or {}),
        )

    def has(self, key: str) -> bool:
        return key in self.tags or key in self.strategies

    def priority_of(self, tag: str) -> int:
        return int(self.tag_priorities.get(tag, 5))


@dataclass(frozen=True)
class Card:
    """A card as returned by the candidate fetch."""

    name: str
    type_line: str = ""
    oracle_text: str = ""
    cmc: float = 0.0
    colors: Tuple[str, ...] = ()
    color_identity: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    rarity: str = ""
    power: Optional[str] = None
    toughness: Optional[str] = None
    price_usd: Optional[float] = None
    price_usd_foil: Optional[float] = None
    edhrec_rank: Optional[int] = None
    mechanic_tags: Tuple[MechanicTag, ...] = ()


@dataclass(frozen=True)
class Candidate:
    """A scored card. Immutable; pool weighting produces a copy."""

    card: Card
    role_scores: Mapping[str, float]
    synergy_score: float
    power_score: float
    budget_score: float
    curve_score: float
    total_score: float
    role_relevance: Tuple[str, ...]
    price: float
    primary_role: str
    is_staple: bool = False
    tag_synergy: float = 0.0
    selection_priority: float = 0.0

    @property
    def name(self) -> str:
        return self.card.name

    def with_priority(self, priority: float) -> "Candidate":
        return replace(self, selection_priority=priority)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoleTarget:
    target: int
    min: int
    max: int


@dataclass(frozen=True)
class CurveTargets:
    early_game_slots: int = settings.DEFAULT_EARLY_GAME_SLOTS
    late_game_slots: int = settings.DEFAULT_LATE_GAME_SLOTS
    multi_spell_priority: int = settings.DEFAULT_MULTI_SPELL_PRIORITY


@dataclass
class Policy:
    """Caller-supplied generation policy.

    Call ``validate()`` before use; the optimizer, scorer and pool builder all
    do so on construction.
    """

    total_budget: float
    per_item_cap: float
    prefer_cheapest: bool = False
    target_size: int = settings.DEFAULT_TARGET_SIZE
    type_weights: Optional[Dict[str, int]] = None
    composition: Dict[str, RoleTarget] = field(default_factory=dict)
    power_level_target: int = 5
    curve_targets: CurveTargets = field(default_factory=CurveTargets)

    @staticmethod
    def default_composition(target_size: int = settings.DEFAULT_TARGET_SIZE) -> Dict[str, RoleTarget]:
        comp: Dict[str, RoleTarget] = {}
        for role, target in settings.DEFAULT_ROLE_TARGETS.items():
            spread = 2 if role in settings.WIDE_VARIANCE_ROLES else 1
            comp[role] = RoleTarget(target=target, min=max(0, target - spread), max=target + spread)
        fill = max(settings.MIN_SYNERGY_FILL, target_size - sum(settings.DEFAULT_ROLE_TARGETS.values()))
        comp["synergy"] = RoleTarget(target=fill, min=max(0, fill - 5), max=fill + 5)
        return comp

    @staticmethod
    def default_curve() -> CurveTargets:
        return CurveTargets()

    def weight_for(self, type_key: str) -> int:
        if not self.type_weights:
            return 5
        return int(self.type_weights.get(type_key, 5))

    def validate(self) -> None:
        for name in ("total_budget", "per_item_cap"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or math.isnan(value):
                raise PolicyValidationError(name, "must be a number", {"value": value})
            if value < 0:
                raise PolicyValidationError(name, "must not be negative", {"value": value})
        if not isinstance(self.target_size, int) or isinstance(self.target_size, bool) or self.target_size <= 0:
            raise PolicyValidationError("target_size", "must be a positive integer", {"value": self.target_size})
        if not isinstance(self.power_level_target, int) or not 1 <= self.power_level_target <= 10:
            raise PolicyValidationError("power_level_target", "must be an integer in 1..10",
                                        {"value": self.power_level_target})
        if self.type_weights is not None:
            for key, weight in self.type_weights.items():
                if key not in TYPE_WEIGHT_KEYS:
                    raise PolicyValidationError("type_weights", f"unknown card type '{key}'",
                                                {"allowed": list(TYPE_WEIGHT_KEYS)})
                if not isinstance(weight, int) or isinstance(weight, bool) or not 0 <= weight <= 10:
                    raise PolicyValidationError("type_weights", f"weight for '{key}' must be an integer in 0..10",
                                                {"value": weight})
        if not isinstance(self.composition, dict):
            raise PolicyValidationError("composition", "must be a mapping of role to RoleTarget")
        for role, bounds in self.composition.items():
            if not isinstance(bounds, RoleTarget):
                raise PolicyValidationError("composition", f"role '{role}' must map to a RoleTarget",
                                            {"value": repr(bounds)})
            if bounds.target < 0 or bounds.min < 0 or bounds.max < 0:
                raise PolicyValidationError("composition", f"role '{role}' has a negative bound",
                                            {"target": bounds.target, "min": bounds.min, "max": bounds.max})
            if bounds.max < bounds.min:
                raise PolicyValidationError("composition", f"role '{role}' has max below min",
                                            {"min": bounds.min, "max": bounds.max})


# ---------------------------------------------------------------------------
# Pools and assembly state
# ---------------------------------------------------------------------------

@dataclass
class RoleQuota:
    """Per-role fill tracker used during assembly.

    ``current`` never exceeds ``target`` except for critical staples, which
    may take one extra slot.
    """

    role: str
    target: int
    minimum: int
    current: int = 0
    members: List["DeckEntry"] = field(default_factory=list)

    @classmethod
    def for_target(cls, role: str, target: int) -> "RoleQuota":
        return cls(role=role, target=target, minimum=math.floor(target * settings.ROLE_MINIMUM_RATIO))

    def has_room(self, critical: bool = False) -> bool:
        if self.current < self.target:
            return True
        return critical and self.current < self.target + 1

    def admit(self, entry: "DeckEntry") -> None:
        self.members.append(entry)
        self.current += 1

    def release(self, entry: "DeckEntry") -> None:
        self.members.remove(entry)
        self.current -= 1


@dataclass(frozen=True)
class RolePool:
    role: str
    candidates: Tuple[Candidate, ...]
    target_count: int
    min_count: int
    max_count: int


@dataclass(frozen=True)
class PoolStats:
    total_candidates: int
    average_candidates_per_role: float
    roles: Tuple[str, ...]


@dataclass(frozen=True)
class RolePools:
    pools: Dict[str, RolePool]
    all_candidates: Tuple[Candidate, ...]
    stats: PoolStats


@dataclass(frozen=True)
class DeckEntry:
    """A card placed in the deck.

    ``counts_toward_quota`` is False for entries admitted after their role
    quota was already full.
    """

    candidate: Candidate
    assigned_role: str
    price_used: float
    synergy_note: str
    counts_toward_quota: bool = True

    @property
    def name(self) -> str:
        return self.candidate.name


@dataclass(frozen=True)
class Replacement:
    removed: DeckEntry
    added: DeckEntry
    reason: str


@dataclass
class AssemblyResult:
    final_deck: List[DeckEntry]
    total_cost: float
    replacements: List[Replacement]
    warnings: List[str]
    role_counts: Dict[str, int] = field(default_factory=dict)
    role_minimums: Dict[str, int] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.final_deck)


# ---------------------------------------------------------------------------
# Synergy graph
# ---------------------------------------------------------------------------

class SynergyType(str, Enum):
    COMBO = "combo"
    AMPLIFIES = "amplifies"
    ENABLES = "enables"
    PROTECTS = "protects"
    RECURSES = "recurses"
    TUTORS = "tutors"
    TRIBAL = "tribal"
    THEMATIC = "thematic"
    CURVE = "curve"
    UTILITY = "utility"


@dataclass(frozen=True)
class SynergyEdge:
    a: str
    b: str
    type: SynergyType
    strength: float
    bidirectional: bool
    description: str = ""

    def reversed(self) -> "SynergyEdge":
        return replace(self, a=self.b, b=self.a)


@dataclass(frozen=True)
class SynergyGraph:
    nodes: Tuple[str, ...]
    edges: Tuple[SynergyEdge, ...]
    adjacency: Dict[str, List[SynergyEdge]]


@dataclass(frozen=True)
class DeckCohesion:
    overall_cohesion: float
    synergy_density: float
    clustering_coefficient: float
    critical_paths: List[List[str]]
    weakest_links: List[str]
    synergy_breakdown: Dict[str, float]
