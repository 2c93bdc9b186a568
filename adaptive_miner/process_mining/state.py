"""
État du mineur
==============

Un ``MinerState`` par configuration (seuil de bruit): chaînes de stratégies,
jeton d'annulation et liste cumulée des événements écartés. Il est créé une
fois et réutilisé pendant toute la récursion de ce seuil.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional

from adaptive_miner.process_mining.log import Trace


class CancellationToken:
    """Drapeau d'annulation coopératif, passé explicitement le long des appels."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class DiscardedEvent:
    """Événement écarté par un découpage (bruit)."""
    activity: str
    position: int
    trace: Trace


class MinerState:
    """
    État partagé d'une récursion pour un seuil donné.

    Args:
        parameters: ``MiningParameters`` (chaînes de stratégies, seuil, flags)
        cancellation: Jeton d'annulation (un nouveau jeton si None)
        recurse: Point de récursion utilisé par les stratégies qui minent des
            sous-logs (cas de base, fall-throughs). Par défaut ``mine_node``.
    """

    def __init__(self, parameters, cancellation: CancellationToken = None,
                 recurse: Callable = None):
        self.parameters = parameters
        self.cancellation = cancellation or CancellationToken()
        self._recurse = recurse
        self._discarded: List[DiscardedEvent] = []
        self._discarded_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def __repr__(self) -> str:
        return (f"MinerState(noise_threshold={self.noise_threshold}, "
                f"discarded={self.discarded_count})")

    @property
    def noise_threshold(self) -> float:
        return self.parameters.noise_threshold

    def is_cancelled(self) -> bool:
        return self.cancellation.is_cancelled()

    def recurse(self, log, tree) -> Optional[int]:
        """Mine un sous-log avec ce même état."""
        if self._recurse is not None:
            return self._recurse(log, tree)
        from adaptive_miner.process_mining.miner import mine_node
        return mine_node(log, tree, self)

    # Événements écartés (ajout seul, tolère les ajouts concurrents)

    def add_discarded(self, events) -> None:
        with self._discarded_lock:
            self._discarded.extend(events)

    @property
    def discarded_events(self) -> List[DiscardedEvent]:
        with self._discarded_lock:
            return list(self._discarded)

    @property
    def discarded_count(self) -> int:
        with self._discarded_lock:
            return len(self._discarded)

    # Pool de workers, limité à une invocation de découverte

    def executor(self, max_workers: int) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=max_workers)
            return self._executor

    def shutdown_thread_pools(self) -> None:
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True, cancel_futures=True)
                self._executor = None

    def fork(self) -> 'MinerState':
        """Copie avec les mêmes paramètres et jeton, sans événements écartés."""
        return MinerState(self.parameters, self.cancellation, self._recurse)
