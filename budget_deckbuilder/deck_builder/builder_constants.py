from typing import Dict, Final, List, Tuple

# Functional roles, in declaration order (also the tie-break order when two
# role scores are equal)
ROLE_LAND: Final[str] = 'land'
ROLE_RAMP: Final[str] = 'ramp'
ROLE_DRAW: Final[str] = 'draw'
ROLE_REMOVAL: Final[str] = 'removal'
ROLE_BOARD_WIPE: Final[str] = 'board_wipe'
ROLE_PROTECTION: Final[str] = 'protection'
ROLE_TUTOR: Final[str] = 'tutor'
ROLE_GRAVEYARD_RECURSION: Final[str] = 'graveyard_recursion'
ROLE_GRAVEYARD_HATE: Final[str] = 'graveyard_hate'
ROLE_WINCON: Final[str] = 'wincon'
ROLE_SYNERGY: Final[str] = 'synergy'

ROLES: Final[Tuple[str, ...]] = (
    ROLE_LAND, ROLE_RAMP, ROLE_DRAW, ROLE_REMOVAL, ROLE_BOARD_WIPE, ROLE_PROTECTION,
    ROLE_TUTOR, ROLE_GRAVEYARD_RECURSION, ROLE_GRAVEYARD_HATE, ROLE_WINCON, ROLE_SYNERGY,
)

# Filled first, in this order
ESSENTIAL_ROLES: Final[Tuple[str, ...]] = (
    ROLE_LAND, ROLE_RAMP, ROLE_DRAW, ROLE_REMOVAL, ROLE_PROTECTION,
)

ROLE_DISPLAY_NAMES: Final[Dict[str, str]] = {
    ROLE_LAND: 'Land',
    ROLE_RAMP: 'Ramp',
    ROLE_DRAW: 'Draw/Advantage',
    ROLE_REMOVAL: 'Removal/Interaction',
    ROLE_BOARD_WIPE: 'Board Wipe',
    ROLE_PROTECTION: 'Protection',
    ROLE_TUTOR: 'Tutor',
    ROLE_GRAVEYARD_RECURSION: 'Graveyard Recursion',
    ROLE_GRAVEYARD_HATE: 'Graveyard Hate',
    ROLE_WINCON: 'Win Condition',
    ROLE_SYNERGY: 'Synergy',
}

# Primary card type for quota tracking; first match wins
TYPE_PRECEDENCE: Final[List[Tuple[str, str]]] = [
    ('creature', 'creatures'),
    ('artifact', 'artifacts'),
    ('enchantment', 'enchantments'),
    ('instant', 'instants'),
    ('sorcery', 'sorceries'),
    ('planeswalker', 'planeswalkers'),
]
OTHER_TYPE: Final[str] = 'other'

# Staples (lower-case names)
RAMP_STAPLES: Final[List[str]] = [
    'sol ring', 'arcane signet', 'command tower', "commander's sphere", 'fellwar stone',
    'mind stone', 'cultivate', "kodama's reach", 'rampant growth', 'farseek',
]
DRAW_STAPLES: Final[List[str]] = [
    'rhystic study', 'mystic remora', 'smothering tithe', 'phyrexian arena', 'sylvan library',
]
REMOVAL_STAPLES: Final[List[str]] = [
    'swords to plowshares', 'path to exile', 'generous gift', 'beast within', 'chaos warp',
    'counterspell', 'negate', 'swan song',
]
PROTECTION_STAPLES: Final[List[str]] = [
    'heroic intervention', "teferi's protection", 'boros charm', 'malakir rebirth', 'snakeskin veil',
]
EDH_STAPLES: Final[frozenset] = frozenset(RAMP_STAPLES + DRAW_STAPLES + REMOVAL_STAPLES + PROTECTION_STAPLES)

# May exceed a type or role quota by one slot
CRITICAL_STAPLES: Final[frozenset] = frozenset({'sol ring', 'command tower', 'arcane signet'})

# Power score bonus list
POWER_STAPLES: Final[frozenset] = frozenset({
    'sol ring', 'command tower', 'arcane signet', 'lightning greaves', 'cyclonic rift',
    'demonic tutor', 'vampiric tutor', 'mystical tutor', 'swords to plowshares',
    'path to exile', 'counterspell', 'rhystic study',
})
POWER_STAPLE_BONUS: Final[float] = 2.0
RARITY_POWER_BONUS: Final[Dict[str, float]] = {'mythic': 1.0, 'rare': 0.5}

# Ranking multiplier per user type weight (0..10)
RANK_TYPE_MULTIPLIERS: Final[Dict[int, float]] = {
    0: 0.01, 1: 0.05, 2: 0.15, 3: 0.4, 4: 0.7, 5: 1.0,
    6: 1.3, 7: 1.8, 8: 2.5, 9: 3.5, 10: 5.0,
}

# Pool weighting: 0 for an excluded type, otherwise BASE + STEP * weight (0.1..2.0)
POOL_TYPE_MULTIPLIER_BASE: Final[float] = 0.1
POOL_TYPE_MULTIPLIER_STEP: Final[float] = 0.19

# Price estimate when a card has no price data at all
RARITY_PRICE_ESTIMATES: Final[Dict[str, float]] = {
    'mythic': 5.00,
    'rare': 1.50,
    'uncommon': 0.25,
    'common': 0.10,
}
UNKNOWN_RARITY_PRICE: Final[float] = 0.50

# Evasion/combat keywords shared with the commander
SHARED_KEYWORDS: Final[List[str]] = [
    'flying', 'trample', 'haste', 'vigilance', 'lifelink', 'deathtouch', 'first strike',
]
SHARED_KEYWORD_BONUS: Final[float] = 0.5
MULTICOLOR_IDENTITY_BONUS: Final[float] = 1.0

# Archetype match cues: archetype -> (type-line needles, text needles, bonus)
ARCHETYPE_CUES: Final[Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...], float]]] = {
    'tokens': ((), ('token',), 2.0),
    'spellslinger': (('instant', 'sorcery'), (), 2.0),
    'artifacts': (('artifact',), (), 2.0),
    'voltron': (('equipment', 'aura'), ('equip',), 2.0),
    'tribal': (('creature',), (), 1.0),
}
SECONDARY_ARCHETYPE_FACTOR: Final[float] = 0.5

# Deck entry notes
BUDGET_FRIENDLY_PRICE: Final[float] = 1.0
PREMIUM_PRICE: Final[float] = 10.0
HIGH_POWER_SCORE: Final[float] = 8.0
STRONG_POWER_SCORE: Final[float] = 7.0
