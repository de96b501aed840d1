from __future__ import annotations

import pandas as pd
import pytest

from budget_deckbuilder.deck_builder.card_frame import cards_from_frame, cards_to_frame
from budget_deckbuilder.deck_builder.pricing import extract_card_price, rarity_estimate
from budget_deckbuilder.exceptions import CandidateDataError

from deck_test_utils import make_card


def test_regular_price_wins_unless_prefer_cheapest():
    card = make_card('Foil Cheaper', price_usd=3.0, price_usd_foil=2.0)
    assert extract_card_price(card) == 3.0
    assert extract_card_price(card, prefer_cheapest=True) == 2.0


def test_foil_is_fallback_and_zero_is_real():
    assert extract_card_price(make_card('Foil Only', price_usd_foil=4.0)) == 4.0
    assert extract_card_price(make_card('Free', price_usd=0.0, rarity='mythic')) == 0.0


def test_missing_price_uses_rarity_estimate():
    assert extract_card_price(make_card('No Price', rarity='rare')) == pytest.approx(1.5)
    assert extract_card_price(make_card('NaN Price', price_usd=float('nan'), rarity='common')) == pytest.approx(0.1)
    assert rarity_estimate(None) == pytest.approx(0.5)


def _frame(**overrides):
    data = {
        'name': ['Llanowar Elves', 'Cultivate'],
        'type': ['Creature — Elf Druid', 'Sorcery'],
        'text': ['{T}: Add {G}.', 'Search your library for up to two basic land cards.'],
        'manaValue': [1, 3],
        'colorIdentity': ['G', 'G'],
        'colors': ['G', 'G'],
        'keywords': ['', ''],
        'rarity': ['Common', 'common'],
        'power': ['1', None],
        'toughness': ['1', None],
        'priceUsd': [0.25, None],
        'themeTags': [['Mana Dork', 'Elves'], []],
    }
    data.update(overrides)
    return pd.DataFrame(data)


def test_cards_from_frame():
    cards = cards_from_frame(_frame())
    elves, cultivate = cards
    assert elves.color_identity == ('G',)
    assert elves.rarity == 'common'
    assert elves.price_usd == 0.25
    assert [t.name for t in elves.mechanic_tags] == ['Mana Dork', 'Elves']
    assert cultivate.price_usd is None
    assert cultivate.cmc == 3.0


def test_multi_color_identity_strings():
    cards = cards_from_frame(_frame(colorIdentity=['G, W', 'BG']))
    assert cards[0].color_identity == ('G', 'W')
    assert cards[1].color_identity == ('B', 'G')


def test_missing_columns_raise():
    with pytest.raises(CandidateDataError):
        cards_from_frame(pd.DataFrame({'name': ['x']}))
    with pytest.raises(CandidateDataError):
        cards_from_frame(_frame(name=['Llanowar Elves', None]))


def test_frame_round_trip_keeps_tags():
    cards = cards_from_frame(_frame())
    again = cards_from_frame(cards_to_frame(cards))
    assert [c.name for c in again] == ['Llanowar Elves', 'Cultivate']
    assert again[0].mechanic_tags == cards[0].mechanic_tags
