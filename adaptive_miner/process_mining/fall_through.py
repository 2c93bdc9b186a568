"""
Fall-throughs
=============

Stratégies de dernier recours quand aucune coupe n'est valide. La chaîne se
termine par le modèle fleur, qui s'applique toujours: la récursion termine
donc quel que soit le log. Seule l'annulation peut faire retourner None.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Optional

from adaptive_miner.process_mining.log import Log
from adaptive_miner.process_mining.statistics import compute_statistics
from adaptive_miner.process_mining.tree import Operator


class FallThrough(ABC):
    """Stratégie de fall-through."""

    name = 'fall_through'

    @abstractmethod
    def fall_through(self, log, stats, tree, state) -> Optional[int]:
        """Retourne l'index du nœud créé, ou None si la stratégie ne s'applique pas."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _concurrent_with(activity: str, log: Log, tree, state) -> Optional[int]:
    """Construit +(activité, reste du log)."""
    alone = log.project({activity})
    rest = Log(tuple(a for a in trace if a != activity) for trace in log)

    left = state.recurse(alone, tree)
    if left is None or state.is_cancelled():
        return None
    right = state.recurse(rest, tree)
    if right is None or state.is_cancelled():
        return None
    return tree.add_operator(Operator.PARALLEL, [left, right])


class ActivityOncePerTraceFallThrough(FallThrough):
    """Une activité présente exactement une fois dans chaque trace: +(a, reste)."""

    name = 'activity_once_per_trace'

    def fall_through(self, log, stats, tree, state):
        if len(stats.activities) < 2 or stats.empty_traces:
            return None

        candidates = set(stats.activities)
        for trace in log:
            counts = Counter(trace)
            candidates = {a for a in candidates if counts[a] == 1}
            if not candidates:
                return None

        activity = min(candidates)
        return _concurrent_with(activity, log, tree, state)


class ActivityConcurrentFallThrough(FallThrough):
    """
    Une activité dont le retrait rend une coupe valide: +(a, reste).

    Les recherches de coupe par activité sont indépendantes; avec
    ``max_workers > 1`` elles tournent sur le pool de l'état.
    """

    name = 'activity_concurrent'

    def fall_through(self, log, stats, tree, state):
        activities = sorted(stats.activities)
        if len(activities) < 3:
            return None

        from adaptive_miner.process_mining.miner import find_cut

        def has_cut(activity: str) -> bool:
            rest = Log(tuple(a for a in trace if a != activity) for trace in log)
            cut = find_cut(rest, compute_statistics(rest), state)
            return cut is not None

        max_workers = state.parameters.max_workers
        if max_workers > 1:
            pool = state.executor(max_workers)
            found = list(pool.map(has_cut, activities))
        else:
            found = []
            for activity in activities:
                if state.is_cancelled():
                    return None
                found.append(has_cut(activity))
                if found[-1]:
                    break

        for activity, ok in zip(activities, found):
            if ok:
                return _concurrent_with(activity, log, tree, state)
        return None


def _split_traces(log: Log, is_boundary) -> Log:
    """Coupe chaque trace entre deux positions i-1, i où ``is_boundary`` est vrai."""
    traces: List[tuple] = []
    for trace in log:
        current: List[str] = []
        for i, activity in enumerate(trace):
            if current and is_boundary(trace[i - 1], activity):
                traces.append(tuple(current))
                current = []
            current.append(activity)
        traces.append(tuple(current))
    return Log(traces)


def _tau_loop(body_log: Log, tree, state) -> Optional[int]:
    body = state.recurse(body_log, tree)
    if body is None or state.is_cancelled():
        return None
    redo = tree.add_tau()
    exit_ = tree.add_tau()
    return tree.add_operator(Operator.LOOP, [body, redo, exit_])


class StrictTauLoopFallThrough(FallThrough):
    """Coupe les traces entre une fin et un début directement consécutifs: *(reste, tau, tau)."""

    name = 'strict_tau_loop'

    def fall_through(self, log, stats, tree, state):
        starts, ends = stats.starts, stats.ends
        split = _split_traces(log, lambda previous, current: previous in ends and current in starts)
        if len(split) <= len(log):
            return None
        return _tau_loop(split, tree, state)


class TauLoopFallThrough(FallThrough):
    """Coupe les traces devant chaque activité de début: *(reste, tau, tau)."""

    name = 'tau_loop'

    def fall_through(self, log, stats, tree, state):
        starts = stats.starts
        split = _split_traces(log, lambda previous, current: current in starts)
        if len(split) <= len(log):
            return None
        return _tau_loop(split, tree, state)


class FlowerFallThrough(FallThrough):
    """
    Modèle fleur: n'importe quelle activité, n'importe combien de fois.

    Sans trace vide: *(X(a1..an), tau, tau); avec traces vides:
    *(tau, X(a1..an), tau).
    """

    name = 'flower'

    def fall_through(self, log, stats, tree, state):
        activities = sorted(stats.activities)
        if not activities:
            return tree.add_tau()

        leaves = [tree.add_leaf(a) for a in activities]
        choice = leaves[0] if len(leaves) == 1 else tree.add_operator(Operator.XOR, leaves)

        if stats.empty_traces:
            body, redo = tree.add_tau(), choice
        else:
            body, redo = choice, tree.add_tau()
        exit_ = tree.add_tau()
        return tree.add_operator(Operator.LOOP, [body, redo, exit_])
