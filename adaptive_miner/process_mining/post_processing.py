"""
Post-traitements
================

Transformations appliquées à chaque nœud juste après sa construction.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict

from adaptive_miner.process_mining.log import Log
from adaptive_miner.process_mining.tree import Operator


class PostProcessor(ABC):
    """Stratégie de post-traitement d'un nœud."""

    name = 'post_processor'

    @abstractmethod
    def post_process(self, node: int, log, stats, tree, state) -> int:
        """Retourne l'index du nœud (éventuellement remplacé)."""

    def record_base_case(self, node: int, log, stats, tree, state) -> None:
        """Notifié pour un nœud de cas de base, qui ne passe pas par ``post_process``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MaybeInterleavedPostProcessor(PostProcessor):
    """
    Résout un nœud maybe-interleaved.

    Si aucune trace n'entrelace les activités de deux enfants (chaque enfant
    s'exécute d'un bloc), le nœud devient interleaved, sinon parallèle.
    """

    name = 'maybe_interleaved'

    def post_process(self, node, log, stats, tree, state):
        if tree.node(node).operator != Operator.MAYBE_INTERLEAVED:
            return node

        groups = [tree.activities(child) for child in tree.children(node)]
        resolved = Operator.INTERLEAVED
        for trace in log:
            if self._overlaps(trace, groups):
                resolved = Operator.PARALLEL
                break
        tree.set_operator(node, resolved)
        return node

    @staticmethod
    def _overlaps(trace, groups) -> bool:
        finished = set()
        current = None
        for activity in trace:
            group = next((i for i, g in enumerate(groups) if activity in g), None)
            if group is None or group == current:
                continue
            if group in finished:
                return True
            if current is not None:
                finished.add(current)
            current = group
        return False


class LogPartitioningPostProcessor(PostProcessor):
    """
    Enregistre, pour chaque nœud miné (cas de base compris), le sous-log
    dont il a été miné. Les nœuds internes d'un fall-through (feuilles de
    la fleur, taus des boucles) ne sont pas enregistrés.

    Example:
        >>> partitioning = LogPartitioningPostProcessor()
        >>> params = build_parameters(post_processors=[partitioning])
        >>> result = mine(log, params)
        >>> partitioning.partitions[result.root] == log
        True
    """

    name = 'log_partitioning'

    def __init__(self):
        self.partitions: Dict[int, Log] = {}
        self._lock = threading.Lock()

    def post_process(self, node, log, stats, tree, state):
        with self._lock:
            self.partitions[node] = log
        return node

    def record_base_case(self, node, log, stats, tree, state):
        with self._lock:
            self.partitions[node] = log
