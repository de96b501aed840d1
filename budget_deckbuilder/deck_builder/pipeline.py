"""Generation pipeline: fetch -> tag -> score -> pool -> assemble -> (graph).

The single asynchronous boundary is the candidate fetch. Everything after it
is synchronous pure computation, with fresh scorer/builder/optimizer objects
for every call.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence, Union

import pandas as pd

from .. import logging_util
from ..exceptions import CandidateFetchError, DeckBuilderError
from ..tagging.tag_synergy import TagSynergyScorer
from ..type_definitions import AnchorProfile, AssemblyResult, Candidate, Card, DeckCohesion, MechanicTag, Policy, RolePools
from . import builder_utils as bu
from .budget_optimizer import BudgetOptimizer
from .candidate_scoring import CandidateScorer
from .card_frame import cards_from_frame
from .pricing import PriceFn, extract_card_price
from .role_pools import RolePoolBuilder
from .summary import DeckSummary, summarize_result
from .synergy_graph import SynergyGraphBuilder

logger = logging_util.get_logger(__name__)

__all__ = ["DeckBuildOutcome", "build_deck", "COMMANDER_LEGALITY"]

COMMANDER_LEGALITY = 'commander'

FetchResult = Union[Sequence[Card], pd.DataFrame]
FetchFn = Callable[[Sequence[str], str], Union[FetchResult, Awaitable[FetchResult]]]
MechanicsFn = Callable[[Card], Iterable[MechanicTag]]
ProfileFn = Callable[[Card], AnchorProfile]


@dataclass(frozen=True)
class DeckBuildOutcome:
    result: AssemblyResult
    pools: RolePools
    summary: DeckSummary
    profile: AnchorProfile
    cohesion: Optional[DeckCohesion] = None


async def _fetch(fetch_candidates: FetchFn, anchor: Card) -> List[Card]:
    try:
        raw: Any = fetch_candidates(anchor.color_identity, COMMANDER_LEGALITY)
        if inspect.isawaitable(raw):
            raw = await raw
    except DeckBuilderError:
        raise
    except Exception as exc:
        raise CandidateFetchError(str(exc) or exc.__class__.__name__,
                                  {"anchor": anchor.name}) from exc
    if isinstance(raw, pd.DataFrame):
        return cards_from_frame(raw)
    return list(raw)


def _ordered_for_assembly(pools: RolePools, scored: Sequence[Candidate]) -> List[Candidate]:
    """Pool members first (role order, pool priority), then everything else."""
    position = {id(c.card): i for i, c in enumerate(scored)}
    seen = set()
    ordered: List[Candidate] = []
    for pool in pools.pools.values():
        for cand in pool.candidates:
            pos = position.get(id(cand.card))
            if pos is None or pos in seen:
                continue
            seen.add(pos)
            ordered.append(cand)
    ordered.extend(c for i, c in enumerate(scored) if i not in seen)
    return ordered


async def build_deck(
    anchor: Card,
    policy: Policy,
    fetch_candidates: FetchFn,
    mechanics_of: MechanicsFn,
    profile_of: ProfileFn,
    price_of: PriceFn = extract_card_price,
    with_graph: bool = False,
    tag_scorer: Optional[TagSynergyScorer] = None,
    initial_picks: Sequence[str] = (),
) -> DeckBuildOutcome:
    """Build one deck for ``anchor`` under ``policy``.

    ``fetch_candidates(color_identity, legality)`` may be sync or async and may
    return ``Card`` objects or a card DataFrame. Its failures surface as
    ``CandidateFetchError``; a malformed policy raises ``PolicyValidationError``
    before the fetch. Budget, role and size shortfalls are reported in
    ``result.warnings``.
    """
    policy.validate()
    anchor_price = float(price_of(anchor, policy.prefer_cheapest))

    fetched = await _fetch(fetch_candidates, anchor)
    anchor_key = bu.canonical_name(anchor.name)
    cards = [
        replace(card, mechanic_tags=tuple(mechanics_of(card)))
        for card in fetched
        if bu.canonical_name(card.name) != anchor_key
    ]
    anchor = replace(anchor, mechanic_tags=tuple(mechanics_of(anchor)))
    profile = profile_of(anchor)
    logger.info("build_deck anchor=%s fetched=%d candidates=%d", anchor.name, len(fetched), len(cards))

    scorer = CandidateScorer(anchor, profile, policy, synergy_scorer=tag_scorer, price_of=price_of)
    scored = scorer.score_all(cards)

    pool_builder = RolePoolBuilder(policy)
    pools = pool_builder.build(scored)
    role_targets = {role: bounds.target for role, bounds in pool_builder.composition().items()}

    optimizer = BudgetOptimizer(policy, anchor_price=anchor_price)
    result = optimizer.optimize(
        _ordered_for_assembly(pools, scored),
        role_targets=role_targets,
        initial_picks=initial_picks,
    )

    cohesion = None
    if with_graph:
        graph_builder = SynergyGraphBuilder(profile, anchor)
        deck_cards = [entry.candidate for entry in result.final_deck]
        cohesion = graph_builder.cohesion(graph_builder.build(deck_cards), deck_cards)

    summary = summarize_result(result, anchor_price, anchor_name=anchor.name, policy=policy)
    return DeckBuildOutcome(result=result, pools=pools, summary=summary, profile=profile, cohesion=cohesion)
