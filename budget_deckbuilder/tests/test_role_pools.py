from __future__ import annotations

import pytest

from budget_deckbuilder.deck_builder import builder_constants as bc
from budget_deckbuilder.deck_builder.role_pools import RolePoolBuilder
from budget_deckbuilder.type_definitions import Policy, RoleTarget

from deck_test_utils import make_candidate


def test_pool_depth_then_priority_trim():
    candidates = [
        make_candidate(f'Ramp {i}', role=bc.ROLE_RAMP, role_score=5 + i * 0.5, total=float(i))
        for i in range(10)
    ]
    candidates.append(make_candidate('Off Role', role=bc.ROLE_RAMP, role_score=4.0, total=99.0))
    policy = Policy(total_budget=100, per_item_cap=10,
                    composition={bc.ROLE_RAMP: RoleTarget(target=2, min=1, max=2)})
    pools = RolePoolBuilder(policy).build(candidates)
    ramp = pools.pools[bc.ROLE_RAMP]
    assert [c.name for c in ramp.candidates] == ['Ramp 9', 'Ramp 8', 'Ramp 7', 'Ramp 6']
    assert ramp.candidates[0].selection_priority == pytest.approx(9.0)
    assert (ramp.target_count, ramp.min_count, ramp.max_count) == (2, 1, 2)


def test_type_weights_reorder_and_exclude():
    candidates = [
        make_candidate('Rock', role=bc.ROLE_RAMP, role_score=9, total=9, type_line='Artifact'),
        make_candidate('Elf', role=bc.ROLE_RAMP, role_score=8, total=5),
        make_candidate('Cultivate', role=bc.ROLE_RAMP, role_score=7, total=4, type_line='Sorcery'),
    ]
    policy = Policy(total_budget=100, per_item_cap=10, type_weights={'artifacts': 0},
                    composition={bc.ROLE_RAMP: RoleTarget(target=1, min=1, max=1)})
    pools = RolePoolBuilder(policy).build(candidates)
    assert [c.name for c in pools.pools[bc.ROLE_RAMP].candidates] == ['Elf', 'Cultivate']


def test_default_composition_and_stats():
    candidates = [make_candidate(f'Card {i}') for i in range(4)]
    policy = Policy(total_budget=100, per_item_cap=10)
    pools = RolePoolBuilder(policy).build(candidates)
    assert set(pools.pools) == set(Policy.default_composition())
    assert pools.stats.total_candidates == 4
    assert pools.stats.roles == tuple(pools.pools)
    assert len(pools.pools[bc.ROLE_SYNERGY].candidates) == 4
    assert pools.stats.average_candidates_per_role == pytest.approx(4 / len(pools.pools))


def test_input_candidates_are_not_mutated():
    cand = make_candidate('Solo', role=bc.ROLE_DRAW, total=3.0)
    policy = Policy(total_budget=100, per_item_cap=10, type_weights={'creatures': 10},
                    composition={bc.ROLE_DRAW: RoleTarget(target=1, min=0, max=1)})
    pools = RolePoolBuilder(policy).build([cand])
    assert pools.pools[bc.ROLE_DRAW].candidates[0].selection_priority == pytest.approx(3.0 * 2.0)
    assert cand.selection_priority == 3.0
    assert pools.all_candidates == (cand,)
