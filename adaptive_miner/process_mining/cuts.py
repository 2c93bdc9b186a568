"""
Recherche de coupes
===================

Chaque stratégie cherche, dans le graphe directly-follows, une partition des
activités compatible avec un opérateur (séquence, choix exclusif, parallèle,
boucle, entrelacement). Les stratégies sont essayées dans un ordre fixe; la
première coupe valide l'emporte.

Les composantes et l'accessibilité sont calculées avec networkx.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from adaptive_miner.process_mining.statistics import DirectlyFollowsGraph, LogStatistics


class CutOperator(str, Enum):
    SEQUENCE = 'sequence'
    XOR = 'xor'
    PARALLEL = 'parallel'
    LOOP = 'loop'
    INTERLEAVED = 'interleaved'
    MAYBE_INTERLEAVED = 'maybe_interleaved'


@dataclass(frozen=True)
class Cut:
    """
    Partition des activités sous un opérateur.

    Pour une boucle, le premier groupe est le corps et les suivants les
    parties redo. Pour une séquence, les groupes sont ordonnés.
    """
    operator: Any
    partition: Tuple[FrozenSet[str], ...]

    def __post_init__(self):
        object.__setattr__(self, 'partition', tuple(frozenset(g) for g in self.partition))

    def __str__(self) -> str:
        operator = getattr(self.operator, 'value', self.operator)
        groups = ' '.join('{' + ', '.join(sorted(g)) + '}' for g in self.partition)
        return f"{operator} {groups}"

    def __len__(self) -> int:
        return len(self.partition)

    @property
    def activities(self) -> FrozenSet[str]:
        return frozenset().union(*self.partition) if self.partition else frozenset()

    def is_valid(self) -> bool:
        """Au moins deux groupes non vides, deux à deux disjoints."""
        if len(self.partition) < 2:
            return False
        if any(not group for group in self.partition):
            return False
        return sum(len(g) for g in self.partition) == len(self.activities)

    def covers(self, activities: Iterable[str]) -> bool:
        return self.activities == frozenset(activities)

    def group_of(self, activity: str) -> Optional[int]:
        for index, group in enumerate(self.partition):
            if activity in group:
                return index
        return None


class CutFinder(ABC):
    """Stratégie de recherche d'une coupe."""

    name = 'cut'

    @abstractmethod
    def find_cut(self, log, stats: LogStatistics, state) -> Optional[Cut]:
        """Retourne une coupe, ou None si l'opérateur ne s'applique pas."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _sorted_groups(groups: Iterable[Iterable[str]]) -> List[FrozenSet[str]]:
    """Ordre déterministe: par plus petite activité."""
    return sorted((frozenset(g) for g in groups), key=lambda g: sorted(g))


def _merge_components(activities: Sequence[str], should_merge) -> List[FrozenSet[str]]:
    graph = nx.Graph()
    graph.add_nodes_from(activities)
    for a, b in combinations(activities, 2):
        if should_merge(a, b):
            graph.add_edge(a, b)
    return _sorted_groups(nx.connected_components(graph))


class SequenceCutFinder(CutFinder):
    """
    Coupe séquence.

    Deux activités sont fusionnées si elles sont mutuellement accessibles ou
    mutuellement inaccessibles; les groupes restants sont ordonnés par
    accessibilité.
    """

    name = 'sequence'

    def find_cut(self, log, stats, state):
        activities = sorted(stats.activities)
        if len(activities) < 2:
            return None

        graph = stats.dfg.to_networkx()
        successors = {a: nx.descendants(graph, a) for a in activities}

        groups = _merge_components(
            activities,
            lambda a, b: (b in successors[a]) == (a in successors[b])
        )
        if len(groups) < 2:
            return None

        order = nx.DiGraph()
        order.add_nodes_from(range(len(groups)))
        for i, j in combinations(range(len(groups)), 2):
            if any(b in successors[a] for a in groups[i] for b in groups[j]):
                order.add_edge(i, j)
            if any(a in successors[b] for a in groups[i] for b in groups[j]):
                order.add_edge(j, i)
        if not nx.is_directed_acyclic_graph(order):
            return None

        ordered = [groups[i] for i in nx.lexicographical_topological_sort(order)]
        return Cut(CutOperator.SEQUENCE, tuple(ordered))


class XorCutFinder(CutFinder):
    """Coupe choix exclusif: composantes faiblement connexes du DFG."""

    name = 'xor'

    def find_cut(self, log, stats, state):
        if len(stats.activities) < 2:
            return None
        graph = stats.dfg.to_networkx()
        groups = _sorted_groups(nx.weakly_connected_components(graph))
        if len(groups) < 2:
            return None
        return Cut(CutOperator.XOR, tuple(groups))


def _merge_groups_without_start_end(groups, starts, ends) -> List[FrozenSet[str]]:
    """Fusionne chaque groupe sans activité de début et de fin dans un groupe complet."""
    complete = [g for g in groups if g & starts and g & ends]
    incomplete = [g for g in groups if not (g & starts and g & ends)]
    if not complete:
        return [frozenset().union(*groups)] if groups else []
    for group in incomplete:
        complete[0] = complete[0] | group
    return _sorted_groups(complete)


class ParallelCutFinder(CutFinder):
    """
    Coupe parallèle.

    Les activités non reliées dans les deux sens sont fusionnées; chaque
    groupe doit contenir une activité de début et une activité de fin.
    """

    name = 'parallel'

    def find_cut(self, log, stats, state):
        activities = sorted(stats.activities)
        if len(activities) < 2:
            return None
        dfg = stats.dfg

        groups = _merge_components(
            activities,
            lambda a, b: not (dfg.has_edge(a, b) and dfg.has_edge(b, a))
        )
        groups = _merge_groups_without_start_end(groups, stats.starts, stats.ends)
        if len(groups) < 2:
            return None
        return Cut(CutOperator.PARALLEL, tuple(groups))


class LoopCutFinder(CutFinder):
    """
    Coupe boucle.

    Le corps contient toutes les activités de début et de fin. Les parties
    redo sont les composantes du reste, atteintes uniquement depuis les
    activités de fin et menant uniquement vers les activités de début.
    """

    name = 'loop'

    def find_cut(self, log, stats, state):
        activities = set(stats.activities)
        starts = set(stats.starts) & activities
        ends = set(stats.ends) & activities
        if len(activities) < 2 or not starts or not ends:
            return None
        dfg = stats.dfg

        body = starts | ends
        rest = activities - body
        if not rest:
            return None

        graph = nx.Graph()
        graph.add_nodes_from(rest)
        for a, b, _ in dfg.iter_edges():
            if a in rest and b in rest:
                graph.add_edge(a, b)
        redo = [set(c) for c in nx.connected_components(graph)]

        changed = True
        while changed:
            changed = False
            for group in list(redo):
                if not self._is_redo(group, body, starts, ends, dfg):
                    body |= group
                    redo.remove(group)
                    changed = True

        if not redo:
            return None
        return Cut(CutOperator.LOOP, tuple([frozenset(body)] + _sorted_groups(redo)))

    @staticmethod
    def _is_redo(group: Set[str], body: Set[str], starts: Set[str], ends: Set[str],
                 dfg: DirectlyFollowsGraph) -> bool:
        inner_body = body - ends
        outer_body = body - starts
        reached_from_end = False
        reaches_start = False

        for b in group:
            incoming = dfg.predecessors(b) & body
            outgoing = dfg.successors(b) & body
            # Accès depuis l'intérieur du corps ou retour au milieu du corps
            if incoming & inner_body or outgoing & outer_body:
                return False
            # Complétude: reliée à une fin => reliée à toutes les fins
            if incoming and not ends <= incoming:
                return False
            if outgoing and not starts <= outgoing:
                return False
            reached_from_end = reached_from_end or bool(incoming)
            reaches_start = reaches_start or bool(outgoing)

        return reached_from_end and reaches_start


def _interleaving_groups(stats: LogStatistics) -> List[FrozenSet[str]]:
    """Composantes après suppression des arcs fin -> début."""
    starts, ends = stats.starts, stats.ends
    graph = nx.Graph()
    graph.add_nodes_from(stats.activities)
    for a, b, _ in stats.dfg.iter_edges():
        if a in ends and b in starts:
            continue
        graph.add_edge(a, b)
    groups = _sorted_groups(nx.connected_components(graph))
    if len(groups) < 2:
        return []
    if any(not (g & starts and g & ends) for g in groups):
        return []
    return groups


class InterleavedCutFinder(CutFinder):
    """
    Coupe entrelacement stricte: chaque fin d'un groupe mène à chaque début
    de chaque autre groupe.
    """

    name = 'interleaved'

    def find_cut(self, log, stats, state):
        groups = _interleaving_groups(stats)
        if not groups:
            return None
        dfg = stats.dfg
        for gi, gj in _ordered_pairs(groups):
            for e in gi & stats.ends:
                for s in gj & stats.starts:
                    if not dfg.has_edge(e, s):
                        return None
        return Cut(CutOperator.INTERLEAVED, tuple(groups))


class MaybeInterleavedCutFinder(CutFinder):
    """
    Coupe entrelacement relâchée: chaque paire ordonnée de groupes n'a besoin
    que d'un arc fin -> début.
    """

    name = 'maybe_interleaved'

    def find_cut(self, log, stats, state):
        groups = _interleaving_groups(stats)
        if not groups:
            return None
        dfg = stats.dfg
        for gi, gj in _ordered_pairs(groups):
            if not any(dfg.has_edge(e, s) for e in gi & stats.ends for s in gj & stats.starts):
                return None
        return Cut(CutOperator.MAYBE_INTERLEAVED, tuple(groups))


def _ordered_pairs(groups):
    for i, gi in enumerate(groups):
        for j, gj in enumerate(groups):
            if i != j:
                yield gi, gj


# Filtrage du bruit (IMf)

def filter_statistics(stats: LogStatistics, noise_threshold: float) -> LogStatistics:
    """
    Retire les comportements rares des statistiques.

    Sont retirés: les activités de fréquence < seuil x fréquence maximale,
    les arcs de poids < seuil x poids sortant maximal de leur source, les
    activités de début/fin de fréquence < seuil x maximum.

    Args:
        stats: Statistiques exactes
        noise_threshold: Seuil de bruit (0-1)

    Returns:
        Nouvelles statistiques filtrées (``stats`` si le seuil est nul)
    """
    if noise_threshold <= 0 or not stats.activity_counts:
        return stats

    counts = stats.activity_counts
    max_count = max(counts.values())
    kept = {a: c for a, c in counts.items() if c >= noise_threshold * max_count}

    max_outgoing = {}
    for a, _, weight in stats.dfg.iter_edges():
        max_outgoing[a] = max(max_outgoing.get(a, 0), weight)
    edges = {
        (a, b): weight for a, b, weight in stats.dfg.iter_edges()
        if a in kept and b in kept and weight >= noise_threshold * max_outgoing[a]
    }

    def filter_boundary(boundary):
        boundary = {a: c for a, c in boundary.items() if a in kept}
        if not boundary:
            return boundary
        maximum = max(boundary.values())
        return {a: c for a, c in boundary.items() if c >= noise_threshold * maximum}

    return LogStatistics(
        dfg=DirectlyFollowsGraph(activity_counts=kept, edges=edges),
        start_activities=filter_boundary(stats.start_activities),
        end_activities=filter_boundary(stats.end_activities),
        empty_traces=stats.empty_traces,
        number_of_traces=stats.number_of_traces
    )


# Vérification a posteriori des règles structurelles

def check_cut(cut: Cut, stats: LogStatistics) -> bool:
    """
    Revérifie la règle structurelle d'une coupe sur des statistiques.

    Args:
        cut: Coupe à vérifier
        stats: Statistiques sur lesquelles la coupe a été trouvée

    Returns:
        True si la partition est une couverture propre respectant la règle
        de l'opérateur
    """
    if not cut.is_valid() or not cut.covers(stats.activities):
        return False

    dfg = stats.dfg
    groups = cut.partition
    index = {a: i for i, g in enumerate(groups) for a in g}
    cross_edges = [(a, b) for a, b, _ in dfg.iter_edges() if index[a] != index[b]]
    starts, ends = stats.starts, stats.ends

    if cut.operator == CutOperator.XOR:
        return not cross_edges

    if cut.operator == CutOperator.SEQUENCE:
        graph = dfg.to_networkx()
        for i, j in combinations(range(len(groups)), 2):
            for a in groups[i]:
                reachable = nx.descendants(graph, a)
                if not groups[j] <= reachable:
                    return False
        return all(index[a] < index[b] for a, b in cross_edges)

    if cut.operator == CutOperator.PARALLEL:
        for gi, gj in combinations(groups, 2):
            for a in gi:
                for b in gj:
                    if not (dfg.has_edge(a, b) and dfg.has_edge(b, a)):
                        return False
        return all(g & starts and g & ends for g in groups)

    if cut.operator == CutOperator.LOOP:
        body = groups[0]
        if not (starts | ends) <= body:
            return False
        for a, b in cross_edges:
            if index[a] != 0 and index[b] != 0:
                return False
            if index[b] != 0 and a not in ends:
                return False
            if index[a] != 0 and b not in starts:
                return False
        return True

    if cut.operator in (CutOperator.INTERLEAVED, CutOperator.MAYBE_INTERLEAVED):
        if not all(g & starts and g & ends for g in groups):
            return False
        return all(a in ends and b in starts for a, b in cross_edges)

    return False
