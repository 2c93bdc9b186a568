"""
Statistiques de log
===================

Graphe directly-follows (DFG), activités de début et de fin, fréquences des
activités et nombre de traces vides. Calculées une seule fois par log et
traitées comme immuables pendant un appel récursif.
"""

from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, Mapping, Set, Tuple

import networkx as nx

from adaptive_miner.process_mining.log import Log


Edge = Tuple[str, str]


def _freeze(mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class DirectlyFollowsGraph:
    """
    Graphe directly-follows en lecture seule.

    Attributes:
        activity_counts: Nombre d'occurrences par activité (nœuds du graphe)
        edges: Poids de chaque arc (a, b)
    """
    activity_counts: Mapping[str, int] = field(default_factory=dict)
    edges: Mapping[Edge, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'activity_counts', _freeze(self.activity_counts))
        object.__setattr__(self, 'edges', _freeze(self.edges))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirectlyFollowsGraph):
            return NotImplemented
        return (dict(self.activity_counts) == dict(other.activity_counts)
                and dict(self.edges) == dict(other.edges))

    def __hash__(self) -> int:
        return hash((frozenset(self.activity_counts.items()), frozenset(self.edges.items())))

    @property
    def activities(self) -> FrozenSet[str]:
        return frozenset(self.activity_counts)

    def weight(self, source: str, target: str) -> int:
        return self.edges.get((source, target), 0)

    def has_edge(self, source: str, target: str) -> bool:
        return (source, target) in self.edges

    def successors(self, activity: str) -> Set[str]:
        return {b for (a, b) in self.edges if a == activity}

    def predecessors(self, activity: str) -> Set[str]:
        return {a for (a, b) in self.edges if b == activity}

    def iter_edges(self) -> Iterator[Tuple[str, str, int]]:
        for (a, b), weight in self.edges.items():
            yield a, b, weight

    def to_networkx(self) -> nx.DiGraph:
        """Graphe networkx (nœuds = activités, attribut ``weight`` sur les arcs)."""
        graph = nx.DiGraph()
        graph.add_nodes_from(self.activity_counts)
        for a, b, weight in self.iter_edges():
            graph.add_edge(a, b, weight=weight)
        return graph


@dataclass(frozen=True)
class LogStatistics:
    """Instantané des statistiques d'un log."""
    dfg: DirectlyFollowsGraph
    start_activities: Mapping[str, int]
    end_activities: Mapping[str, int]
    empty_traces: int
    number_of_traces: int

    def __post_init__(self):
        object.__setattr__(self, 'start_activities', _freeze(self.start_activities))
        object.__setattr__(self, 'end_activities', _freeze(self.end_activities))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogStatistics):
            return NotImplemented
        return (self.dfg == other.dfg
                and dict(self.start_activities) == dict(other.start_activities)
                and dict(self.end_activities) == dict(other.end_activities)
                and self.empty_traces == other.empty_traces
                and self.number_of_traces == other.number_of_traces)

    def __hash__(self) -> int:
        return hash((self.dfg, self.empty_traces, self.number_of_traces))

    @property
    def activity_counts(self) -> Mapping[str, int]:
        return self.dfg.activity_counts

    @property
    def activities(self) -> FrozenSet[str]:
        return self.dfg.activities

    @property
    def starts(self) -> FrozenSet[str]:
        return frozenset(self.start_activities)

    @property
    def ends(self) -> FrozenSet[str]:
        return frozenset(self.end_activities)

    def describe(self) -> Dict[str, object]:
        """Résumé lisible (utilisé par les traces de debug)."""
        return {
            'activities': sorted(self.activities),
            'edges': len(self.dfg.edges),
            'start': sorted(self.starts),
            'end': sorted(self.ends),
            'empty_traces': self.empty_traces,
            'traces': self.number_of_traces,
        }


def compute_statistics(log: Log) -> LogStatistics:
    """
    Calcule les statistiques d'un log.

    Fonction pure du multiensemble de traces. Un log vide donne un DFG sans
    arc, des ensembles de début/fin vides et ``empty_traces == len(log)``.

    Args:
        log: Log à analyser

    Returns:
        LogStatistics
    """
    activity_counts: Counter = Counter()
    edges: Counter = Counter()
    start_activities: Counter = Counter()
    end_activities: Counter = Counter()
    empty_traces = 0

    for trace in log:
        if not trace:
            empty_traces += 1
            continue
        start_activities[trace[0]] += 1
        end_activities[trace[-1]] += 1
        activity_counts.update(trace)
        edges.update(zip(trace, trace[1:]))

    return LogStatistics(
        dfg=DirectlyFollowsGraph(activity_counts=activity_counts, edges=edges),
        start_activities=start_activities,
        end_activities=end_activities,
        empty_traces=empty_traces,
        number_of_traces=len(log)
    )
