"""Conversion between card DataFrames and ``Card`` records.

Column names follow the card CSV/Parquet layout (``name``, ``type``, ``text``,
``manaValue``, ``colorIdentity``...). Price columns are ``priceUsd`` and
``priceUsdFoil``. Mechanic tags come from ``mechanicTags`` (list of dicts) or,
failing that, ``themeTags`` (list of names).
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple

import pandas as pd

from .. import logging_util
from ..exceptions import CandidateDataError
from ..type_definitions import Card, MechanicTag

logger = logging_util.get_logger(__name__)

REQUIRED_COLUMNS: List[str] = ['name', 'type', 'text', 'manaValue']
FRAME_COLUMNS: List[str] = [
    'name', 'type', 'text', 'manaValue', 'colors', 'colorIdentity', 'keywords', 'rarity',
    'power', 'toughness', 'edhrecRank', 'priceUsd', 'priceUsdFoil', 'mechanicTags',
]
_COLOR_LETTERS = set('WUBRGC')

__all__ = ["REQUIRED_COLUMNS", "FRAME_COLUMNS", "cards_from_frame", "cards_to_frame"]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_list(value: Any) -> List[str]:
    if _is_missing(value):
        return []
    if isinstance(value, str):
        s = value.strip()
        if not s or s.lower() == 'colorless':
            return []
        if ',' in s:
            return [p.strip() for p in s.split(',') if p.strip()]
        if set(s.upper()) <= _COLOR_LETTERS:
            return list(s.upper())
        return [s]
    return [str(v).strip() for v in value if str(v).strip()]


def _opt_float(value: Any) -> Optional[float]:
    if _is_missing(value):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _opt_int(value: Any) -> Optional[int]:
    f = _opt_float(value)
    return None if f is None else int(f)


def _opt_str(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return str(value)


def _tags(row: pd.Series) -> Tuple[MechanicTag, ...]:
    raw = row.get('mechanicTags')
    if not _is_missing(raw) and len(raw) > 0:
        out = []
        for item in raw:
            if isinstance(item, MechanicTag):
                out.append(item)
            elif isinstance(item, dict) and item.get('name'):
                out.append(MechanicTag(
                    name=str(item['name']),
                    category=str(item.get('category') or ''),
                    priority=int(item.get('priority', 5)),
                    synergy_weight=float(item.get('synergy_weight', 1.0)),
                ))
        return tuple(out)
    return tuple(MechanicTag(name=t, category='theme') for t in _as_list(row.get('themeTags')))


def cards_from_frame(df: pd.DataFrame) -> List[Card]:
    """Build ``Card`` records from a card DataFrame.

    Raises:
        CandidateDataError: required columns missing or a row without a name
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise CandidateDataError("Card frame is missing required columns", {"missing": missing})
    cards: List[Card] = []
    for idx, row in df.iterrows():
        name = _opt_str(row.get('name'))
        if not name or not name.strip():
            raise CandidateDataError("Card row without a name", {"index": str(idx)})
        cards.append(Card(
            name=name.strip(),
            type_line=_opt_str(row.get('type')) or '',
            oracle_text=_opt_str(row.get('text')) or '',
            cmc=_opt_float(row.get('manaValue')) or 0.0,
            colors=tuple(_as_list(row.get('colors'))),
            color_identity=tuple(_as_list(row.get('colorIdentity'))),
            keywords=tuple(k.lower() for k in _as_list(row.get('keywords'))),
            rarity=(_opt_str(row.get('rarity')) or '').lower(),
            power=_opt_str(row.get('power')),
            toughness=_opt_str(row.get('toughness')),
            price_usd=_opt_float(row.get('priceUsd')),
            price_usd_foil=_opt_float(row.get('priceUsdFoil')),
            edhrec_rank=_opt_int(row.get('edhrecRank')),
            mechanic_tags=_tags(row),
        ))
    logger.debug("cards_from_frame rows=%d", len(cards))
    return cards


def cards_to_frame(cards: Iterable[Card]) -> pd.DataFrame:
    rows = []
    for c in cards:
        rows.append({
            'name': c.name,
            'type': c.type_line,
            'text': c.oracle_text,
            'manaValue': c.cmc,
            'colors': list(c.colors),
            'colorIdentity': list(c.color_identity),
            'keywords': list(c.keywords),
            'rarity': c.rarity,
            'power': c.power,
            'toughness': c.toughness,
            'edhrecRank': c.edhrec_rank,
            'priceUsd': c.price_usd,
            'priceUsdFoil': c.price_usd_foil,
            'mechanicTags': [
                {'name': t.name, 'category': t.category, 'priority': t.priority,
                 'synergy_weight': t.synergy_weight}
                for t in c.mechanic_tags
            ],
        })
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)
