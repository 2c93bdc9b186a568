"""
Cas de base
===========

Logs assez simples pour terminer la récursion directement. Les stratégies
sont essayées dans l'ordre; la première qui retourne un nœud l'emporte.
"""

from abc import ABC, abstractmethod
from typing import Optional

from adaptive_miner.process_mining.log import Log
from adaptive_miner.process_mining.state import DiscardedEvent
from adaptive_miner.process_mining.tree import Operator


class BaseCaseFinder(ABC):
    """Stratégie de détection d'un cas de base."""

    name = 'base_case'

    @abstractmethod
    def find_base_case(self, log, stats, tree, state) -> Optional[int]:
        """Retourne l'index du nœud créé, ou None (pas de décision)."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def _empty_traces_tolerated(stats, state) -> bool:
    if stats.empty_traces == 0:
        return True
    return stats.empty_traces < state.noise_threshold * stats.number_of_traces


class EmptyLogBaseCase(BaseCaseFinder):
    """Aucune activité (log vide ou uniquement des traces vides): tau."""

    name = 'empty_log'

    def find_base_case(self, log, stats, tree, state):
        if stats.activities:
            return None
        return tree.add_tau()


class SingleActivityBaseCase(BaseCaseFinder):
    """
    Une seule activité, exactement une fois par trace: feuille.

    Avec un seuil de bruit, les traces déviantes (vides ou répétées) sont
    tolérées tant qu'elles restent sous ``seuil x |log|``; les occurrences
    en trop sont écartées.
    """

    name = 'single_activity'

    def find_base_case(self, log, stats, tree, state):
        if len(stats.activities) != 1:
            return None
        (activity,) = stats.activities

        deviating = [trace for trace in log if len(trace) != 1]
        if deviating and len(deviating) >= state.noise_threshold * len(log):
            return None

        state.add_discarded(
            DiscardedEvent(activity, position, trace)
            for trace in deviating
            for position in range(1, len(trace))
        )
        return tree.add_leaf(activity)


class SingleActivityLoopBaseCase(BaseCaseFinder):
    """Une seule activité répétée dans les traces: boucle (a, tau, tau)."""

    name = 'single_activity_loop'

    def find_base_case(self, log, stats, tree, state):
        if len(stats.activities) != 1:
            return None
        if not _empty_traces_tolerated(stats, state):
            return None
        (activity,) = stats.activities
        body = tree.add_leaf(activity)
        redo = tree.add_tau()
        exit_ = tree.add_tau()
        return tree.add_operator(Operator.LOOP, [body, redo, exit_])


class EmptyTracesBaseCase(BaseCaseFinder):
    """
    Traces vides à côté d'activités réelles.

    Sous le seuil de bruit, elles sont filtrées et le reste est miné;
    sinon on produit X(tau, reste).
    """

    name = 'empty_traces'

    def find_base_case(self, log, stats, tree, state):
        if stats.empty_traces == 0 or not stats.activities:
            return None

        rest = log.without_empty_traces()
        if stats.empty_traces < state.noise_threshold * stats.number_of_traces:
            return state.recurse(rest, tree)

        child = state.recurse(rest, tree)
        if child is None or state.is_cancelled():
            return None
        tau = tree.add_tau()
        return tree.add_operator(Operator.XOR, [tau, child])
