"""
Découpage du log
================

Étant donné une coupe valide, répartit chaque trace entre les sous-logs des
groupes. Les événements qui violent l'ordre attendu par l'opérateur sont
écartés et comptés, jamais conservés silencieusement.

Invariant: nombre d'événements en entrée == événements des sous-logs +
événements écartés.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from adaptive_miner.process_mining.cuts import Cut, CutOperator
from adaptive_miner.process_mining.exceptions import SplitError
from adaptive_miner.process_mining.log import Log, Trace
from adaptive_miner.process_mining.state import DiscardedEvent


@dataclass
class SplitResult:
    """Sous-logs (un par groupe, corps puis redo pour une boucle) et événements écartés."""
    sublogs: List[Log]
    discarded: List[DiscardedEvent] = field(default_factory=list)

    @property
    def discarded_count(self) -> int:
        return len(self.discarded)


class LogSplitter(ABC):
    """Stratégie de découpage d'un log selon une coupe."""

    name = 'splitter'

    @abstractmethod
    def split(self, log: Log, stats, cut: Cut, state) -> SplitResult:
        """Découpe le log."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class InductiveLogSplitter(LogSplitter):
    """
    Découpage inductif avec filtrage des événements non conformes (IMf).

    Règles par opérateur:
        - xor: la trace entière va au groupe qui contient le plus de ses
          événements, les autres événements sont écartés
        - séquence: pour chaque groupe, point de coupure minimisant les
          événements mal placés
        - parallèle / entrelacement: projection sur chaque groupe
        - boucle: segments maximaux par groupe (corps, redo, corps, ...)
    """

    name = 'inductive'

    def split(self, log, stats, cut, state):
        splitters = {
            CutOperator.XOR: self._split_xor,
            CutOperator.SEQUENCE: self._split_sequence,
            CutOperator.PARALLEL: self._split_projection,
            CutOperator.INTERLEAVED: self._split_projection,
            CutOperator.MAYBE_INTERLEAVED: self._split_projection,
            CutOperator.LOOP: self._split_loop,
        }
        splitter = splitters.get(cut.operator)
        if splitter is None:
            raise SplitError(f"Aucun découpage pour l'opérateur {cut.operator!r}")

        groups = cut.partition
        sublogs: List[List[Trace]] = [[] for _ in groups]
        discarded: List[DiscardedEvent] = []

        for trace in log:
            if state.is_cancelled():
                break
            splitter(trace, cut, sublogs, discarded, state)

        return SplitResult([Log(traces) for traces in sublogs], discarded)

    @staticmethod
    def _discard(trace: Trace, positions, discarded: List[DiscardedEvent]) -> None:
        discarded.extend(DiscardedEvent(trace[p], p, trace) for p in positions)

    def _split_xor(self, trace, cut, sublogs, discarded, state):
        if not trace:
            sublogs[0].append(())
            return

        counts = [0] * len(cut.partition)
        for activity in trace:
            group = cut.group_of(activity)
            if group is not None:
                counts[group] += 1
        # Égalité: premier groupe
        chosen = counts.index(max(counts))
        group = cut.partition[chosen]

        sublogs[chosen].append(tuple(a for a in trace if a in group))
        self._discard(trace, [p for p, a in enumerate(trace) if a not in group], discarded)

    def _split_sequence(self, trace, cut, sublogs, discarded, state):
        groups = cut.partition
        start = 0
        for index, group in enumerate(groups):
            if index == len(groups) - 1:
                end = len(trace)
            else:
                end = self._find_split_point(trace, group, start)
            segment = range(start, end)
            sublogs[index].append(tuple(trace[p] for p in segment if trace[p] in group))
            self._discard(trace, [p for p in segment if trace[p] not in group], discarded)
            start = end

    @staticmethod
    def _find_split_point(trace: Trace, group, start: int) -> int:
        """
        Position k >= start minimisant: événements hors groupe dans
        [start, k) + événements du groupe dans [k, fin). Première position
        minimale en cas d'égalité.
        """
        cost = sum(1 for a in trace[start:] if a in group)
        best, best_cost = start, cost
        for k in range(start, len(trace)):
            cost += -1 if trace[k] in group else 1
            if cost < best_cost:
                best, best_cost = k + 1, cost
        return best

    def _split_projection(self, trace, cut, sublogs, discarded, state):
        for index, group in enumerate(cut.partition):
            sublogs[index].append(tuple(a for a in trace if a in group))
        self._discard(trace, [p for p, a in enumerate(trace) if cut.group_of(a) is None], discarded)

    def _split_loop(self, trace, cut, sublogs, discarded, state):
        """
        Segmente la trace en passages corps/redo.

        Deux redo consécutifs reçoivent un corps vide entre eux. Un redo en
        tête ou en queue de trace est écarté si le seuil de bruit est non
        nul, sinon complété par un corps vide.
        """
        segments: List[Tuple[int, List[int]]] = []
        orphans: List[int] = []
        for position, activity in enumerate(trace):
            group = cut.group_of(activity)
            if group is None:
                orphans.append(position)
                continue
            if segments and segments[-1][0] == group:
                segments[-1][1].append(position)
            else:
                segments.append((group, [position]))
        self._discard(trace, orphans, discarded)

        noisy = state.noise_threshold > 0
        if noisy:
            while segments and segments[0][0] != 0:
                self._discard(trace, segments.pop(0)[1], discarded)
            while segments and segments[-1][0] != 0:
                self._discard(trace, segments.pop()[1], discarded)

        if not segments:
            sublogs[0].append(())
            return

        previous: Optional[int] = None
        for group, positions in segments:
            if group != 0 and previous != 0:
                # Redo en tête ou après un autre redo
                sublogs[0].append(())
            sublogs[group].append(tuple(trace[p] for p in positions))
            previous = group
        if previous != 0:
            sublogs[0].append(())
