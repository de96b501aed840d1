from __future__ import annotations

import pytest

from budget_deckbuilder.deck_builder import builder_constants as bc
from budget_deckbuilder.deck_builder.budget_optimizer import (
    AssemblyState,
    BudgetOptimizer,
    RankingThresholds,
    card_type_quotas,
    synergy_note,
)
from budget_deckbuilder.exceptions import PolicyValidationError
from budget_deckbuilder.type_definitions import Policy, RoleTarget

from deck_test_utils import make_candidate


def _pool(n, price=1.0, prefix='Card', **kw):
    return [make_candidate(f'{prefix} {i}', price=price, **kw) for i in range(n)]


def _names(result):
    return [e.name for e in result.final_deck]


def test_scenario_exact_pool_all_affordable():
    pool = _pool(10)
    policy = Policy(total_budget=100, per_item_cap=5, target_size=10)
    result = BudgetOptimizer(policy).optimize(pool)
    assert sorted(_names(result)) == sorted(c.name for c in pool)
    assert result.replacements == []
    assert result.warnings == []
    assert result.total_cost == pytest.approx(10.0)


def test_scenario_free_cards_zero_budget():
    pool = _pool(15, price=0.0)
    policy = Policy(total_budget=0, per_item_cap=0, target_size=10)
    result = BudgetOptimizer(policy).optimize(pool)
    assert result.size == 10
    assert result.total_cost == 0


def test_scenario_one_card_short():
    pool = _pool(9)
    policy = Policy(total_budget=100, per_item_cap=5, target_size=10)
    result = BudgetOptimizer(policy).optimize(pool)
    assert result.size == 9
    assert any('Insufficient unique cards' in w and 'short 1' in w for w in result.warnings)
    assert any(w.startswith('CRITICAL') for w in result.warnings)


def test_scenario_unfillable_role_minimum_warns():
    pool = _pool(12)
    policy = Policy(
        total_budget=100, per_item_cap=5, target_size=10,
        composition={bc.ROLE_REMOVAL: RoleTarget(target=5, min=3, max=6)},
    )
    result = BudgetOptimizer(policy).optimize(pool)
    assert result.size == 10
    assert result.role_counts[bc.ROLE_REMOVAL] == 0
    assert result.role_minimums[bc.ROLE_REMOVAL] == 3
    assert any('Removal/Interaction' in w and 'short 3' in w for w in result.warnings)


def test_exact_size_and_cost_is_sum_of_entries():
    pool = [make_candidate(f'Card {i}', price=float(i)) for i in range(1, 31)]
    policy = Policy(total_budget=20, per_item_cap=100, target_size=10)
    result = BudgetOptimizer(policy).optimize(pool)
    assert result.size == 10
    assert result.total_cost == sum(e.price_used for e in result.final_deck)


def test_duplicates_collapse_but_basics_repeat():
    pool = [
        make_candidate('Lightning Bolt', cmc=2),
        make_candidate('Lightning Bolt', cmc=1),
        make_candidate('Shock'),
    ] + [
        make_candidate('Forest', role=bc.ROLE_LAND, type_line='Basic Land — Forest', cmc=0, price=0.1)
        for _ in range(3)
    ]
    policy = Policy(total_budget=100, per_item_cap=5, target_size=5)
    optimizer = BudgetOptimizer(policy)
    deduped = optimizer.deduplicate(pool)
    bolts = [c for c in deduped if c.name == 'Lightning Bolt']
    assert len(bolts) == 1 and bolts[0].card.cmc == 1

    result = optimizer.optimize(pool)
    names = _names(result)
    assert result.size == 5
    assert names.count('Forest') == 3
    assert names.count('Lightning Bolt') == 1


def test_deterministic_across_runs():
    pool = [make_candidate(f'Card {i}', price=float(i % 7), synergy=5.0) for i in range(40)]
    policy = Policy(total_budget=25, per_item_cap=6, target_size=12)
    first = BudgetOptimizer(policy).optimize(pool)
    second = BudgetOptimizer(policy).optimize(pool)
    assert _names(first) == _names(second)
    assert first.total_cost == second.total_cost
    assert first.warnings == second.warnings
    assert [r.reason for r in first.replacements] == [r.reason for r in second.replacements]


def test_malformed_policy_raises():
    with pytest.raises(PolicyValidationError):
        BudgetOptimizer(Policy(total_budget=-1, per_item_cap=5))
    with pytest.raises(PolicyValidationError):
        BudgetOptimizer(Policy(total_budget=10, per_item_cap=5,
                               composition={bc.ROLE_RAMP: RoleTarget(target=3, min=4, max=2)}))
    with pytest.raises(PolicyValidationError):
        BudgetOptimizer(Policy(total_budget=10, per_item_cap=5), anchor_price=-2)


def test_budget_repair_replaces_with_cheaper_same_role():
    pool = [
        make_candidate('Pricey', price=50.0, role=bc.ROLE_RAMP),
        make_candidate('Cheap Ramp', price=2.0, role=bc.ROLE_RAMP),
    ] + _pool(5)
    policy = Policy(total_budget=20, per_item_cap=100, target_size=3)
    optimizer = BudgetOptimizer(policy)
    result = optimizer.optimize(pool, initial_picks=['Pricey'])
    assert optimizer.state == AssemblyState.DONE
    assert result.replacements[0].removed.name == 'Pricey'
    assert result.replacements[0].added.name == 'Cheap Ramp'
    assert result.replacements[0].reason == 'Budget optimization: replaced $50.00 card with $2.00 alternative'
    assert 'Pricey' not in _names(result)
    assert result.size == 3
    assert result.total_cost <= 20


def test_budget_repair_removes_when_no_alternative():
    pool = [make_candidate('Pricey', price=50.0, role=bc.ROLE_WINCON)] + _pool(5)
    policy = Policy(total_budget=20, per_item_cap=100, target_size=3)
    result = BudgetOptimizer(policy).optimize(pool, initial_picks=['Pricey'])
    assert 'Removed Pricey due to budget constraints - no suitable replacement found' in result.warnings
    assert 'Pricey' not in _names(result)
    assert result.size == 3


def test_budget_repair_keeps_role_minimum():
    pool = [
        make_candidate('Rock A', price=30.0, role=bc.ROLE_RAMP),
        make_candidate('Rock B', price=30.0, role=bc.ROLE_RAMP),
        make_candidate('Cheap Rock', price=1.0, role=bc.ROLE_RAMP),
    ] + _pool(5)
    policy = Policy(
        total_budget=20, per_item_cap=100, target_size=4,
        composition={bc.ROLE_RAMP: RoleTarget(target=2, min=1, max=3)},
    )
    result = BudgetOptimizer(policy).optimize(pool, initial_picks=['Rock A', 'Rock B'])
    assert result.role_counts[bc.ROLE_RAMP] >= result.role_minimums[bc.ROLE_RAMP]
    assert result.size == 4
    assert result.total_cost <= 20


def test_size_repair_goes_over_budget_as_last_resort():
    pool = _pool(3, price=10.0)
    policy = Policy(total_budget=15, per_item_cap=20, target_size=3)
    result = BudgetOptimizer(policy).optimize(pool)
    assert result.size == 3
    assert any('over budget to ensure 3-card deck' in w for w in result.warnings)
    assert any('exceeds available budget' in w for w in result.warnings)


def test_anchor_price_is_reserved_from_budget():
    pool = _pool(5, price=2.0)
    policy = Policy(total_budget=10, per_item_cap=5, target_size=5)
    optimizer = BudgetOptimizer(policy, anchor_price=4.0)
    assert optimizer.available_budget == pytest.approx(6.0)
    result = optimizer.optimize(pool)
    assert result.size == 5
    assert any('over budget' in w for w in result.warnings)


def test_ranking_order():
    policy = Policy(total_budget=100, per_item_cap=5, target_size=5)
    optimizer = BudgetOptimizer(policy)
    over_cap = make_candidate('Over Cap', price=9.0, synergy=10.0)
    strong = make_candidate('Strong', price=2.0, synergy=9.0)
    staple = make_candidate('Staple', price=2.0, synergy=6.0, staple=True)
    plain = make_candidate('Plain', price=2.0, synergy=5.0)
    cheap = make_candidate('Cheap', price=0.5, synergy=5.0)
    ranked = [c.name for c in optimizer.rank([over_cap, plain, staple, cheap, strong])]
    assert ranked == ['Strong', 'Staple', 'Cheap', 'Plain', 'Over Cap']


def test_ranking_thresholds_are_configurable():
    policy = Policy(total_budget=100, per_item_cap=5, target_size=2)
    a = make_candidate('A', synergy=6.0)
    b = make_candidate('B', synergy=5.0, staple=True)
    default = BudgetOptimizer(policy).rank([a, b])
    tight = BudgetOptimizer(policy, thresholds=RankingThresholds(synergy_gap=0.5)).rank([a, b])
    assert [c.name for c in default] == ['B', 'A']
    assert [c.name for c in tight] == ['A', 'B']


def test_type_quota_excludes_zero_weight_types():
    pool = [
        make_candidate(f'Trinket {i}', price=0.1, synergy=9.0, type_line='Artifact') for i in range(3)
    ] + [make_candidate(f'Bear {i}', price=1.0) for i in range(4)]
    weights = {k: 0 for k in ('artifacts', 'enchantments', 'instants', 'sorceries', 'planeswalkers')}
    weights['creatures'] = 10
    policy = Policy(total_budget=100, per_item_cap=5, target_size=4, type_weights=weights)
    result = BudgetOptimizer(policy).optimize(pool)
    assert result.size == 4
    assert all(n.startswith('Bear') for n in _names(result))


def test_card_type_quotas():
    assert card_type_quotas(Policy(total_budget=1, per_item_cap=1)) is None
    quotas = card_type_quotas(Policy(total_budget=1, per_item_cap=1,
                                     type_weights={'creatures': 10, 'artifacts': 0}))
    assert quotas['creatures'] == 33
    assert quotas['artifacts'] == 0
    zeros = {k: 0 for k in ('creatures', 'artifacts', 'enchantments', 'instants', 'sorceries', 'planeswalkers')}
    even = card_type_quotas(Policy(total_budget=1, per_item_cap=1, type_weights=zeros))
    assert set(even.values()) == {16}


def test_synergy_note_text():
    cand = make_candidate('Rock', price=0.5, power=8.5, role=bc.ROLE_RAMP)
    assert synergy_note(cand, bc.ROLE_RAMP) == 'Ramp support, budget-friendly, high power'
    pricey = make_candidate('Big', price=12.0, power=7.0)
    assert synergy_note(pricey, bc.ROLE_SYNERGY) == 'Synergy support, premium option, strong choice'


def test_fill_remainder_takes_cheaper_same_role_alternative():
    pool = [
        make_candidate('Big', price=9.0, synergy=9.0),
        make_candidate('Mid', price=8.0, synergy=8.0),
        make_candidate('Tiny', price=0.5, synergy=1.0),
    ]
    policy = Policy(total_budget=10, per_item_cap=20, target_size=2)
    result = BudgetOptimizer(policy).optimize(pool)
    assert _names(result) == ['Big', 'Tiny']
    assert result.total_cost == pytest.approx(9.5)
    assert result.replacements == []
    assert result.warnings == []


def test_size_repair_swaps_expensive_entry_to_reach_target():
    pool = [make_candidate('Pricey', price=12.0)] + _pool(3, price=3.0)
    policy = Policy(total_budget=15, per_item_cap=20, target_size=3)
    result = BudgetOptimizer(policy).optimize(pool, initial_picks=['Pricey'])
    assert len(result.replacements) == 1
    swap = result.replacements[0]
    assert swap.removed.name == 'Pricey'
    assert swap.added.name == 'Card 1'
    assert swap.reason == 'Replaced expensive card to ensure 3-card deck within budget'
    assert _names(result) == ['Card 1', 'Card 0', 'Card 2']
    assert result.total_cost == pytest.approx(9.0)
    assert result.warnings == []


def test_size_repair_pads_with_over_cap_cards_when_budget_allows():
    pool = _pool(3, price=1.0, prefix='Cheap') + _pool(3, price=10.0, prefix='Pricey')
    policy = Policy(total_budget=1000, per_item_cap=5, target_size=5)
    result = BudgetOptimizer(policy).optimize(pool)
    assert result.size == 5
    assert _names(result) == ['Cheap 0', 'Cheap 1', 'Cheap 2', 'Pricey 0', 'Pricey 1']
    assert result.total_cost == pytest.approx(23.0)
    assert result.replacements == []
    assert result.warnings == [
        'Added Pricey 0 above $5.00 per-card cap to ensure 5-card deck',
        'Added Pricey 1 above $5.00 per-card cap to ensure 5-card deck',
    ]


def test_budget_repair_ignores_over_cap_alternatives():
    pool = [
        make_candidate('Pricey', price=50.0, role=bc.ROLE_RAMP),
        make_candidate('Heavy Rock', price=30.0, role=bc.ROLE_RAMP),
    ] + _pool(5)
    policy = Policy(total_budget=20, per_item_cap=25, target_size=3)
    result = BudgetOptimizer(policy).optimize(pool, initial_picks=['Pricey'])
    assert result.replacements == []
    assert 'Removed Pricey due to budget constraints - no suitable replacement found' in result.warnings
    assert _names(result) == ['Card 0', 'Card 1', 'Card 2']
    assert all(e.price_used <= 25 for e in result.final_deck)


def test_critical_staple_takes_extra_slot_over_full_type_quota():
    artifacts = [
        make_candidate(name, price=1.0, synergy=9.0, type_line='Artifact')
        for name in ('Mind Stone', 'Sol Ring', 'Trinket')
    ]
    bears = [make_candidate(f'Bear {i}', price=1.0, type_line='Creature — Bear') for i in range(10)]
    weights = {k: 0 for k in ('enchantments', 'instants', 'sorceries', 'planeswalkers')}
    weights.update(creatures=10, artifacts=1)
    policy = Policy(total_budget=100, per_item_cap=5, target_size=11, type_weights=weights)
    assert card_type_quotas(policy)['artifacts'] == 1
    result = BudgetOptimizer(policy).optimize(artifacts + bears)
    names = _names(result)
    assert result.size == 11
    assert names[:2] == ['Mind Stone', 'Sol Ring']
    assert 'Trinket' not in names
    assert sum(n.startswith('Bear') for n in names) == 9
    assert result.warnings == []
