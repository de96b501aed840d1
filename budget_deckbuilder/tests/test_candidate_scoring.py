from __future__ import annotations

import pytest

from budget_deckbuilder.deck_builder import builder_constants as bc
from budget_deckbuilder.deck_builder.candidate_scoring import (
    CandidateScorer,
    ScoreWeights,
    primary_role_of,
    score_roles,
)
from budget_deckbuilder.exceptions import PolicyValidationError
from budget_deckbuilder.tagging.tag_synergy import SynergyRule, TagSynergyScorer
from budget_deckbuilder.type_definitions import AnchorProfile, Card, MechanicTag, Policy

from deck_test_utils import make_card


def _scorer(rules=(), profile=None, policy=None, anchor=None):
    anchor = anchor or Card(name='Rhys the Redeemed', type_line='Legendary Creature — Elf Warrior')
    profile = profile or AnchorProfile.of(tags=['tokens'])
    policy = policy or Policy(total_budget=100, per_item_cap=10)
    return CandidateScorer(anchor, profile, policy, synergy_scorer=TagSynergyScorer(rules=list(rules)))


def test_lands_short_circuit():
    scores = score_roles(make_card('Command Tower', type_line='Land', text='{T}: Add one mana of any color.'))
    assert scores[bc.ROLE_LAND] == 10
    assert all(v == 0 for r, v in scores.items() if r != bc.ROLE_LAND)


def test_role_rules():
    sol_ring = make_card('Sol Ring', type_line='Artifact', text='{T}: Add {C}{C}.', cmc=1)
    wrath = make_card('Wrath of God', type_line='Sorcery', text="Destroy all creatures. They can't be regenerated.", cmc=4)
    divination = make_card('Divination', type_line='Sorcery', text='Draw two cards.', cmc=3)
    assert score_roles(sol_ring)[bc.ROLE_RAMP] == 9
    assert score_roles(wrath)[bc.ROLE_BOARD_WIPE] == 9
    assert score_roles(divination)[bc.ROLE_DRAW] == 8


def test_vanilla_creature_falls_back_to_synergy():
    bears = make_card('Grizzly Bears', type_line='Creature — Bear', power='2', toughness='2')
    scores = score_roles(bears)
    assert scores[bc.ROLE_SYNERGY] == 7
    assert primary_role_of(scores) == bc.ROLE_SYNERGY


def test_primary_role_ties_go_to_earlier_role():
    scores = {r: 0.0 for r in bc.ROLES}
    scores[bc.ROLE_DRAW] = 8.0
    scores[bc.ROLE_RAMP] = 8.0
    assert primary_role_of(scores) == bc.ROLE_RAMP


@pytest.mark.parametrize('level', range(1, 11))
def test_weights_sum_to_one(level):
    w = ScoreWeights.for_power_level(level)
    assert w.role + w.synergy + w.power + w.budget + w.curve == pytest.approx(1.0)


def test_weights_shift_with_power_level():
    casual = ScoreWeights.for_power_level(3)
    cedh = ScoreWeights.for_power_level(9)
    assert cedh.power > casual.power
    assert cedh.budget < casual.budget


def test_budget_score():
    scorer = _scorer()
    assert scorer.budget_score(0) == 8
    assert scorer.budget_score(11) == 0
    assert scorer.budget_score(10) == pytest.approx(1.0)
    assert scorer.budget_score(5) == pytest.approx(5.5)


def test_power_score_staple_bonus():
    sol_ring = make_card('Sol Ring', type_line='Artifact', text='{T}: Add {C}{C}.', cmc=1, rarity='uncommon')
    assert CandidateScorer.power_score(sol_ring) == 7


def test_synergy_uses_tag_scorer():
    rule = SynergyRule(anchor_tags=('tokens',), card_tag='token_maker', score=20)
    scorer = _scorer(rules=[rule])
    card = make_card('Raise the Alarm', type_line='Instant', text='Create two 1/1 white Soldier creature tokens.',
                     tags=[MechanicTag('token_maker')])
    cand = scorer.score(card)
    assert cand.tag_synergy == pytest.approx(20)
    assert cand.synergy_score == pytest.approx(5 + 20 * 0.15)


def test_synergy_is_clamped():
    rule = SynergyRule(anchor_tags=('tokens',), card_tag='token_maker', score=200)
    scorer = _scorer(rules=[rule])
    cand = scorer.score(make_card('Big Maker', tags=['token_maker']))
    assert cand.synergy_score == 10


def test_archetype_and_keyword_bonuses():
    anchor = Card(name='Serra Angel Commander', type_line='Legendary Creature — Angel',
                  keywords=('flying', 'vigilance'), color_identity=('W', 'U'))
    profile = AnchorProfile.of(strategies=['tokens'], primary_strategy='tokens')
    scorer = _scorer(profile=profile, anchor=anchor)
    card = make_card('Gold Flier', type_line='Creature — Bird', text='When this enters, create a token.',
                     keywords=('flying',), colors=('W', 'U'))
    cand = scorer.score(card)
    # 5 base + 2 archetype + 0.5 shared keyword + 1 multicolor in identity
    assert cand.synergy_score == pytest.approx(8.5)


def test_score_fields_and_staple_flag():
    scorer = _scorer()
    card = make_card('Swords to Plowshares', type_line='Instant', cmc=1, price_usd=1.5,
                     text='Exile target creature. Its controller gains life equal to its power.')
    cand = scorer.score(card)
    assert cand.is_staple
    assert cand.price == pytest.approx(1.5)
    assert cand.primary_role == bc.ROLE_REMOVAL
    assert bc.ROLE_REMOVAL in cand.role_relevance
    assert 0 <= cand.total_score <= 10
    assert cand.selection_priority == cand.total_score


def test_score_all_and_policy_validation():
    scorer = _scorer()
    cards = [make_card(f'Bear {i}') for i in range(3)]
    assert [c.name for c in scorer.score_all(cards)] == ['Bear 0', 'Bear 1', 'Bear 2']
    with pytest.raises(PolicyValidationError):
        _scorer(policy=Policy(total_budget=10, per_item_cap=5, power_level_target=11))
