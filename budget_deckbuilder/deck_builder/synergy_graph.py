"""Pairwise synergy graph and deck cohesion diagnostics.

Reporting only: nothing here feeds back into selection. Edges are recomputed
for every run and never persisted.
"""
from __future__ import annotations

from itertools import combinations
from typing import Callable, Dict, List, Optional, Sequence

from .. import logging_util
from ..type_definitions import (
    AnchorProfile,
    Candidate,
    Card,
    DeckCohesion,
    SynergyEdge,
    SynergyGraph,
    SynergyType,
)

logger = logging_util.get_logger(__name__)

__all__ = ["SynergyGraphBuilder", "card_fits_archetype"]

CRITICAL_STRENGTH = 7
CRITICAL_PATH_MIN_LENGTH = 3
MAX_CRITICAL_PATHS = 5
MAX_WEAKEST_LINKS = 5
MANY_EDGES = 20


def _text(card: Card) -> str:
    return (card.oracle_text or '').lower()


def _type(card: Card) -> str:
    return (card.type_line or '').lower()


def card_fits_archetype(card: Card, archetype: str) -> bool:
    text, tl = _text(card), _type(card)
    if archetype == 'tokens':
        return 'token' in text or 'create' in text
    if archetype == 'spellslinger':
        return 'instant' in text or 'sorcery' in text or 'noncreature spell' in text
    if archetype == 'artifacts':
        return 'artifact' in tl or 'artifact' in text
    if archetype == 'voltron':
        return 'equip' in text or 'aura' in text or 'equipment' in tl
    if archetype == 'aristocrats':
        return 'sacrifice' in text or 'dies' in text or 'death' in text
    if archetype == 'tribal':
        return 'creature' in tl
    if archetype == 'ramp':
        return 'land' in text or ('add' in text and 'mana' in text)
    return False


# -- pair detectors: (a, b) -> edge or None ----------------------------------

def _edge(a: Card, b: Card, kind: SynergyType, strength: float, description: str,
          bidirectional: bool = False) -> SynergyEdge:
    return SynergyEdge(a=a.name, b=b.name, type=kind, strength=float(strength),
                       bidirectional=bidirectional, description=description)


def _combo(a: Card, b: Card) -> Optional[SynergyEdge]:
    ta, tb = _text(a), _text(b)
    if 'untap' in ta and 'tap' in tb and 'add' in tb:
        return _edge(a, b, SynergyType.COMBO, 9, 'Infinite mana combo', True)
    if 'exile' in ta and 'return' in ta and ('enters the battlefield' in tb or 'etb' in tb):
        return _edge(a, b, SynergyType.COMBO, 7, 'Flicker combo for repeated ETB triggers')
    if 'sacrifice' in ta and 'return' in tb and 'graveyard' in tb:
        return _edge(a, b, SynergyType.COMBO, 8, 'Sacrifice and recursion engine', True)
    return None


def _amplifies(a: Card, b: Card) -> Optional[SynergyEdge]:
    ta, tb, type_b = _text(a), _text(b), _type(b)
    if 'double' in ta and 'damage' in ta and ('damage' in tb or 'ping' in tb):
        return _edge(a, b, SynergyType.AMPLIFIES, 8, 'Damage amplification')
    if ('double' in ta or 'parallel' in ta) and 'token' in ta and 'token' in tb:
        return _edge(a, b, SynergyType.AMPLIFIES, 9, 'Token doubling')
    if 'cost' in ta and 'less' in ta and ('instant' in type_b or 'sorcery' in type_b or 'artifact' in type_b):
        return _edge(a, b, SynergyType.AMPLIFIES, 6, 'Cost reduction')
    if 'creatures you control get +' in ta and 'creature' in type_b:
        return _edge(a, b, SynergyType.AMPLIFIES, 5, 'Anthem effect')
    return None


def _enables(a: Card, b: Card) -> Optional[SynergyEdge]:
    ta, tb = _text(a), _text(b)
    if 'add' in ta and 'mana' in ta and b.cmc >= 6:
        return _edge(a, b, SynergyType.ENABLES, 5, 'Ramp enables expensive spell')
    if 'draw' in ta and 'card' in ta and 'hand' in tb:
        return _edge(a, b, SynergyType.ENABLES, 7, 'Card draw enables hand-size synergy')
    if ('mill' in ta or 'discard' in ta) and 'graveyard' in tb and 'return' in tb:
        return _edge(a, b, SynergyType.ENABLES, 8, 'Graveyard setup enables recursion')
    return None


def _protects(a: Card, b: Card) -> Optional[SynergyEdge]:
    ta, type_b = _text(a), _type(b)
    if ('hexproof' in ta or 'shroud' in ta) and 'creature' in type_b:
        return _edge(a, b, SynergyType.PROTECTS, 7, 'Hexproof protection')
    if 'counter target spell' in ta and (b.cmc >= 4 or 'planeswalker' in type_b):
        return _edge(a, b, SynergyType.PROTECTS, 6, 'Counterspell protection for key piece')
    if 'indestructible' in ta and 'creature' in type_b:
        return _edge(a, b, SynergyType.PROTECTS, 8, 'Indestructible protection')
    return None


def _recurses(a: Card, b: Card) -> Optional[SynergyEdge]:
    ta, type_b = _text(a), _type(b)
    if 'return' in ta and 'graveyard' in ta and any(t in type_b for t in ('creature', 'artifact', 'enchantment')):
        return _edge(a, b, SynergyType.RECURSES, 9 if 'battlefield' in ta else 7, 'Graveyard recursion')
    return None


def _tutors(a: Card, b: Card) -> Optional[SynergyEdge]:
    ta, type_b = _text(a), _type(b)
    if 'search your library for' not in ta:
        return None
    for needle, label in (('creature', 'Creature tutor'), ('instant', 'Instant tutor'), ('artifact', 'Artifact tutor')):
        if needle in ta and needle in type_b:
            return _edge(a, b, SynergyType.TUTORS, 8, label)
    if 'any card' in ta:
        return _edge(a, b, SynergyType.TUTORS, 9, 'Universal tutor')
    return _edge(a, b, SynergyType.TUTORS, 6, 'Tutor effect')


def _curve(a: Card, b: Card) -> Optional[SynergyEdge]:
    if abs(a.cmc - b.cmc) in (1, 2):
        return _edge(a, b, SynergyType.CURVE, 3, 'Good curve progression', True)
    return None


_PAIR_DETECTORS: List[Callable[[Card, Card], Optional[SynergyEdge]]] = [
    _combo, _amplifies, _enables, _protects, _recurses, _tutors,
]


class SynergyGraphBuilder:
    """Build a synergy graph over a card set and score its cohesion."""

    def __init__(self, profile: AnchorProfile, anchor: Card) -> None:
        self.profile = profile
        self.anchor = anchor
        self._archetypes = self._ordered_archetypes()
        self._tribes = self._profile_tribes()

    def _ordered_archetypes(self) -> List[str]:
        out = []
        if self.profile.primary_strategy:
            out.append(self.profile.primary_strategy)
        out.extend(s for s in sorted(self.profile.strategies) if s not in out)
        return out

    def _profile_tribes(self) -> List[str]:
        tribes = []
        for tag in sorted(self.profile.tags):
            if tag.startswith('tribal_'):
                tribes.append(tag[len('tribal_'):])
            elif tag.endswith('_tribal'):
                tribes.append(tag[:-len('_tribal')])
        return tribes

    # -- detectors needing the profile -----------------------------------------

    def _tribal(self, a: Card, b: Card) -> Optional[SynergyEdge]:
        type_a, text_a, type_b = _type(a), _text(a), _type(b)
        tag_names_b = {t.name for t in b.mechanic_tags}
        for tribe in self._tribes:
            type_tag = f'creature_type_{tribe}'
            a_member = tribe in type_a or tribe in text_a or type_tag in {t.name for t in a.mechanic_tags}
            b_member = tribe in type_b or type_tag in tag_names_b
            if a_member and b_member:
                strength = round(self.profile.priority_of(f'tribal_{tribe}') * 0.8)
                return _edge(a, b, SynergyType.TRIBAL, strength, f'{tribe} tribal synergy', True)
        return None

    def _thematic(self, a: Card, b: Card) -> Optional[SynergyEdge]:
        for archetype in self._archetypes:
            if card_fits_archetype(a, archetype) and card_fits_archetype(b, archetype):
                return _edge(a, b, SynergyType.THEMATIC, 5, f'{archetype} archetype synergy', True)
        shared = sorted(
            {t.name for t in a.mechanic_tags} & {t.name for t in b.mechanic_tags} & self.profile.tags
        )
        if shared:
            return _edge(a, b, SynergyType.THEMATIC, 5, f'shared {shared[0]} theme', True)
        return None

    def pair_edges(self, a: Card, b: Card) -> List[SynergyEdge]:
        edges = [d(a, b) for d in _PAIR_DETECTORS]
        edges.append(self._tribal(a, b))
        edges.append(self._thematic(a, b))
        edges.append(_curve(a, b))
        return [e for e in edges if e is not None]

    def anchor_edges(self, card: Card) -> List[SynergyEdge]:
        anchor = self.anchor
        text = _text(card)
        edges: List[SynergyEdge] = []
        card_tags = {t.name for t in card.mechanic_tags}
        for tag in sorted(self.profile.tags):
            priority = self.profile.priority_of(tag)
            if tag == 'tokens' and 'token' in text:
                edges.append(_edge(card, anchor, SynergyType.THEMATIC, priority, 'Token strategy synergy', True))
            elif tag == 'landfall' and ('landfall' in text or ('land' in text and 'enters' in text)):
                edges.append(_edge(card, anchor, SynergyType.THEMATIC, priority, 'Landfall synergy', True))
            elif tag == 'spellslinger' and ('instant' in text or 'sorcery' in text):
                edges.append(_edge(card, anchor, SynergyType.THEMATIC, priority, 'Spellslinger synergy', True))
            elif tag in card_tags:
                edges.append(_edge(card, anchor, SynergyType.THEMATIC, priority, f'{tag} synergy with commander', True))
        anchor_is_creature = 'creature' in _type(anchor)
        if ('hexproof' in text or 'shroud' in text) and anchor_is_creature:
            edges.append(_edge(card, anchor, SynergyType.PROTECTS, 8, 'Protects commander'))
        elif ('equipment' in _type(card) or 'aura' in _type(card)) and anchor_is_creature:
            edges.append(_edge(card, anchor, SynergyType.AMPLIFIES, 7, 'Equipment/Aura synergy with commander'))
        return edges

    # -- graph -----------------------------------------------------------------

    def build(self, cards: Sequence[Candidate | Card]) -> SynergyGraph:
        plain = [c.card if isinstance(c, Candidate) else c for c in cards]
        nodes: List[str] = [self.anchor.name]
        for card in plain:
            if card.name not in nodes:
                nodes.append(card.name)
        edges: List[SynergyEdge] = []
        for i, card in enumerate(plain):
            for other in plain[i + 1:]:
                edges.extend(self.pair_edges(card, other))
            edges.extend(self.anchor_edges(card))
        adjacency: Dict[str, List[SynergyEdge]] = {n: [] for n in nodes}
        for edge in edges:
            adjacency[edge.a].append(edge)
            if edge.bidirectional:
                adjacency[edge.b].append(edge.reversed())
        logger.info("synergy_graph nodes=%d edges=%d", len(nodes), len(edges))
        return SynergyGraph(nodes=tuple(nodes), edges=tuple(edges), adjacency=adjacency)

    # -- cohesion --------------------------------------------------------------

    @staticmethod
    def clustering_coefficient(graph: SynergyGraph) -> float:
        triangles = 0
        possible = 0
        for node in graph.nodes:
            neighbours = [e.b for e in graph.adjacency.get(node, [])]
            for x, y in combinations(neighbours, 2):
                possible += 1
                if any(e.b == y for e in graph.adjacency.get(x, [])):
                    triangles += 1
        return triangles / possible if possible else 0.0

    @staticmethod
    def _trace(graph: SynergyGraph, start: str, visited: set, min_strength: float) -> List[str]:
        path = [start]
        visited.add(start)
        node = start
        while True:
            strong = [e for e in graph.adjacency.get(node, [])
                      if e.strength >= min_strength and e.b not in visited]
            if not strong:
                return path
            best = max(strong, key=lambda e: e.strength)
            node = best.b
            path.append(node)
            visited.add(node)

    def critical_paths(self, graph: SynergyGraph) -> List[List[str]]:
        paths: List[List[str]] = []
        visited: set = set()
        for edge in graph.edges:
            if edge.strength >= CRITICAL_STRENGTH and edge.a not in visited:
                path = self._trace(graph, edge.a, visited, CRITICAL_STRENGTH)
                if len(path) >= CRITICAL_PATH_MIN_LENGTH:
                    paths.append(path)
        return paths[:MAX_CRITICAL_PATHS]

    @staticmethod
    def weakest_links(graph: SynergyGraph, names: Sequence[str]) -> List[str]:
        counts: Dict[str, int] = {n: 0 for n in names}
        for edge in graph.edges:
            if edge.a in counts:
                counts[edge.a] += 1
            if edge.bidirectional and edge.b in counts:
                counts[edge.b] += 1
        ordered = sorted(counts.items(), key=lambda kv: kv[1])
        return [name for name, _ in ordered[:MAX_WEAKEST_LINKS]]

    def cohesion(self, graph: SynergyGraph, cards: Sequence[Candidate | Card]) -> DeckCohesion:
        names = [c.name for c in cards]
        total_cards = len(names) + 1
        total_edges = len(graph.edges)
        density = total_edges / total_cards
        breakdown = {'combo': 0.0, 'tribal': 0.0, 'thematic': 0.0, 'utility': 0.0, 'protection': 0.0}
        for edge in graph.edges:
            if edge.type == SynergyType.COMBO:
                breakdown['combo'] += edge.strength
            elif edge.type == SynergyType.TRIBAL:
                breakdown['tribal'] += edge.strength
            elif edge.type == SynergyType.THEMATIC:
                breakdown['thematic'] += edge.strength
            elif edge.type == SynergyType.PROTECTS:
                breakdown['protection'] += edge.strength
            else:
                breakdown['utility'] += edge.strength
        breakdown = {k: v / max(1, total_edges) for k, v in breakdown.items()}
        clustering = self.clustering_coefficient(graph)
        overall = min(10.0, density * 2 + clustering * 3 + (2 if total_edges > MANY_EDGES else 1))
        result = DeckCohesion(
            overall_cohesion=overall,
            synergy_density=density,
            clustering_coefficient=clustering,
            critical_paths=self.critical_paths(graph),
            weakest_links=self.weakest_links(graph, names),
            synergy_breakdown=breakdown,
        )
        logger.info("deck_cohesion overall=%.2f density=%.2f clustering=%.2f",
                    overall, density, clustering)
        return result
