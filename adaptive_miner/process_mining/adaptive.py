"""
Mineur adaptatif multi-seuils
=============================

Pour chaque (sous-)log, la recherche de coupe est lancée une fois par seuil
de bruit candidat. Une politique de sélection choisit parmi les seuils qui
ont produit une coupe valide; la coupe et le découpage retenus guident une
étape de récursion. Chaque sous-log refait le balayage complet.

Les cas de base et les fall-throughs s'exécutent avec un état de référence
au seuil 0, dont la récursion repasse par le balayage.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping, Optional

from adaptive_miner.process_mining.config import (
    DEFAULT_NOISE_THRESHOLDS,
    MiningParameters,
    build_parameters,
    validate_threshold,
)
from adaptive_miner.process_mining.cuts import Cut
from adaptive_miner.process_mining.exceptions import MiningError
from adaptive_miner.process_mining.log import Log
from adaptive_miner.process_mining.miner import (
    DiscoveryResult,
    compose_node,
    find_base_cases,
    find_cut,
    find_fall_through,
    mine_node,
    node_operator,
    post_process,
    split_log,
)
from adaptive_miner.process_mining.splitting import SplitResult
from adaptive_miner.process_mining.state import CancellationToken, MinerState
from adaptive_miner.process_mining.tree import ProcessTree
from adaptive_miner.utils.logging import ProgressLogger, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Candidate:
    """Coupe valide trouvée pour un seuil, avec son découpage."""
    threshold: float
    cut: Cut
    split: SplitResult
    state: MinerState

    @property
    def discarded_count(self) -> int:
        return self.split.discarded_count


SelectionPolicy = Callable[[Mapping[float, Candidate], Log], Optional[float]]


# Politiques de sélection

def select_lowest_threshold(candidates: Mapping[float, Candidate], log: Log) -> Optional[float]:
    """Le plus petit seuil qui a produit une coupe (comportement IMf le plus proche du log)."""
    return min(candidates) if candidates else None


def select_fewest_discarded(candidates: Mapping[float, Candidate], log: Log) -> Optional[float]:
    """Le seuil dont le découpage écarte le moins d'événements (égalité: plus petit seuil)."""
    if not candidates:
        return None
    return min(candidates, key=lambda t: (candidates[t].discarded_count, t))


class ConformanceSelection:
    """
    Sélection par conformité.

    Chaque candidat est complété en arbre brouillon (récursion IMf au seuil
    du candidat, sur un état séparé), converti en réseau de Petri avec pm4py
    puis rejoué sur le log. Le meilleur score l'emporte, le plus petit seuil
    en cas d'égalité.

    Args:
        metric: 'fitness', 'precision' ou 'f1'
    """

    METRICS = ('fitness', 'precision', 'f1')

    def __init__(self, metric: str = 'f1'):
        if metric not in self.METRICS:
            raise ValueError(f"Métrique inconnue: {metric}. Options: {list(self.METRICS)}")
        self.metric = metric

    def __repr__(self) -> str:
        return f"ConformanceSelection(metric={self.metric!r})"

    def score(self, candidate: Candidate, log: Log) -> float:
        from adaptive_miner.process_mining.conformance import compute_tree_metrics

        scratch = ProcessTree()
        state = candidate.state.fork()
        children = []
        for sublog in candidate.split.sublogs:
            child = mine_node(sublog, scratch, state)
            if child is None:
                return 0.0
            children.append(child)
        root = compose_node(node_operator(candidate.cut.operator), children, scratch)

        metrics = compute_tree_metrics(scratch.to_pm4py(root), log)
        return metrics[self.metric]

    def __call__(self, candidates: Mapping[float, Candidate], log: Log) -> Optional[float]:
        if not candidates:
            return None
        if len(candidates) == 1:
            return next(iter(candidates))

        scores = {t: self.score(c, log) for t, c in candidates.items()}
        logger.debug(f"Scores de conformité: {scores}")
        return max(sorted(scores), key=lambda t: scores[t])


SELECTION_POLICIES = {
    'lowest_threshold': select_lowest_threshold,
    'fewest_discarded': select_fewest_discarded,
    'conformance': ConformanceSelection,
}


def get_selection_policy(selection) -> SelectionPolicy:
    if callable(selection):
        return selection
    if selection not in SELECTION_POLICIES:
        raise ValueError(
            f"Politique de sélection inconnue: {selection}. Options: {list(SELECTION_POLICIES)}"
        )
    policy = SELECTION_POLICIES[selection]
    return policy() if isinstance(policy, type) else policy


@dataclass
class _Sweep:
    """Ressources d'un appel à ``discover``."""
    states: Mapping[float, MinerState]
    reference: Optional[MinerState] = None
    executor: Optional[ThreadPoolExecutor] = None


class AdaptiveNoiseMiner:
    """
    Mineur inductif adaptatif.

    Les paramètres de chaque seuil sont construits une fois et conservés
    dans une table en lecture seule. Chaque appel à ``discover`` crée un
    ``MinerState`` par seuil; les événements écartés sont comptés par seuil.

    Args:
        thresholds: Seuils de bruit candidats (0-1)
        selection: Nom d'une politique ('lowest_threshold',
            'fewest_discarded', 'conformance') ou appelable
            ``(candidats, log) -> seuil``
        max_workers: Workers pour le balayage des seuils (1 = séquentiel)
        strategy_workers: Workers internes aux stratégies (ex.
            ``activity_concurrent``), transmis aux paramètres de chaque seuil
        **options: Chaînes et flags transmis à ``build_parameters``

    Example:
        >>> miner = AdaptiveNoiseMiner(thresholds=(0.1, 0.3))
        >>> result = miner.discover(Log([('a', 'b')] * 10))
        >>> str(result)
        "->( 'a', 'b' )"
    """

    def __init__(
        self,
        thresholds: Iterable[float] = DEFAULT_NOISE_THRESHOLDS,
        selection='lowest_threshold',
        max_workers: int = 1,
        strategy_workers: int = 1,
        **options
    ):
        thresholds = sorted({validate_threshold(t) for t in thresholds})
        if not thresholds:
            raise ValueError("Au moins un seuil de bruit est requis")
        if max_workers < 1:
            raise ValueError(f"max_workers doit être >= 1: {max_workers}")

        self.selection = get_selection_policy(selection)
        self.max_workers = max_workers

        # Table seuil -> paramètres (lecture seule)
        self.parameters: Mapping[float, MiningParameters] = MappingProxyType({
            t: build_parameters(noise_threshold=t, max_workers=strategy_workers, **options)
            for t in thresholds
        })
        self.reference_parameters = build_parameters(
            noise_threshold=0.0, max_workers=strategy_workers, **options
        )

    def __repr__(self) -> str:
        return (f"AdaptiveNoiseMiner(thresholds={self.thresholds}, "
                f"selection={self.selection!r})")

    @property
    def thresholds(self):
        return tuple(self.parameters)

    def create_states(self, cancellation: CancellationToken) -> Mapping[float, MinerState]:
        """Un état par seuil, partageant le jeton d'annulation."""
        return MappingProxyType({
            t: MinerState(parameters, cancellation)
            for t, parameters in self.parameters.items()
        })

    # Balayage

    @staticmethod
    def _mine_cut(log: Log, stats, state: MinerState) -> Optional[Candidate]:
        cut = find_cut(log, stats, state)
        if cut is None or state.is_cancelled():
            return None
        # Opérateur inconnu: erreur fatale avant tout découpage
        node_operator(cut.operator)
        split = split_log(log, stats, cut, state)
        if split is None:
            return None
        return Candidate(state.noise_threshold, cut, split, state)

    def mine_cuts(self, log: Log, stats, states: Mapping[float, MinerState],
                  executor: Optional[ThreadPoolExecutor] = None) -> Dict[float, Candidate]:
        """
        Lance la recherche de coupe pour chaque seuil.

        Args:
            log: Log courant
            stats: Statistiques exactes du log
            states: États par seuil
            executor: Pool optionnel (un seuil par tâche)

        Returns:
            Dict seuil -> Candidate, pour les seuils ayant une coupe valide
        """
        found = {}
        with ProgressLogger(len(states), desc=f"Seuils ({len(log)} traces)", logger=logger) as progress:
            if executor is not None:
                futures = {t: executor.submit(self._mine_cut, log, stats, s) for t, s in states.items()}
                for t, future in futures.items():
                    found[t] = future.result()
                    progress.update()
            else:
                for t, state in states.items():
                    if state.is_cancelled():
                        break
                    found[t] = self._mine_cut(log, stats, state)
                    progress.update()

        return {t: candidate for t, candidate in found.items() if candidate is not None}

    def select(self, candidates: Mapping[float, Candidate], log: Log) -> Optional[Candidate]:
        threshold = self.selection(candidates, log)
        if threshold is None:
            return None
        return candidates[threshold]

    def _mine(self, log: Log, tree: ProcessTree, sweep: _Sweep) -> Optional[int]:
        reference = sweep.reference
        if reference.is_cancelled():
            return None

        stats = reference.parameters.log_statistics(log)
        if reference.parameters.debug:
            logger.debug(f"Nœud: {stats.describe()}")

        node = find_base_cases(log, stats, tree, reference)
        if reference.is_cancelled():
            return None
        if node is not None:
            return node

        candidates = self.mine_cuts(log, stats, sweep.states, sweep.executor)
        if reference.is_cancelled():
            return None

        candidate = self.select(candidates, log)
        if candidate is None:
            node = find_fall_through(log, stats, tree, reference)
            if node is None:
                return None
        else:
            if reference.parameters.debug:
                logger.debug(f"Seuil {candidate.threshold} retenu: {candidate.cut}")
            operator = node_operator(candidate.cut.operator)
            children = []
            for sublog in candidate.split.sublogs:
                child = self._mine(sublog, tree, sweep)
                if child is None:
                    return None
                children.append(child)
            if reference.is_cancelled():
                return None
            node = compose_node(operator, children, tree)

        return post_process(node, log, stats, tree, reference)

    def discover(
        self,
        log,
        tree: Optional[ProcessTree] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[DiscoveryResult]:
        """
        Découvre un arbre de processus.

        Args:
            log: Log, ou journal d'événements (pm4py EventLog ou équivalent)
            tree: Arbre à compléter (un nouvel arbre par défaut)
            cancellation: Jeton d'annulation

        Returns:
            DiscoveryResult, ou None en cas d'annulation ou d'erreur
        """
        if not isinstance(log, Log):
            log = Log.from_event_log(
                log, repair_life_cycle=self.reference_parameters.repair_life_cycle
            )
        cancellation = cancellation or CancellationToken()
        tree = tree if tree is not None else ProcessTree()

        sweep = _Sweep(states=self.create_states(cancellation))
        sweep.reference = MinerState(
            self.reference_parameters, cancellation,
            recurse=lambda sublog, t: self._mine(sublog, t, sweep)
        )
        if self.max_workers > 1:
            sweep.executor = ThreadPoolExecutor(max_workers=self.max_workers)

        logger.info(f"Découverte adaptative: {len(log)} traces, seuils {list(self.thresholds)}")

        try:
            root = self._mine(log, tree, sweep)
        except MiningError:
            logger.exception("Échec de la découverte adaptative")
            return None
        finally:
            if sweep.executor is not None:
                sweep.executor.shutdown(wait=True, cancel_futures=True)
            sweep.reference.shutdown_thread_pools()
            for state in sweep.states.values():
                state.shutdown_thread_pools()

        if root is None:
            logger.info("Découverte adaptative annulée")
            return None

        tree.root = root
        discarded_events = {t: s.discarded_events for t, s in sweep.states.items()}
        discarded = {t: len(events) for t, events in discarded_events.items()}
        logger.info(f"Événements écartés par seuil: {discarded}")

        return DiscoveryResult(tree, root, discarded, discarded_events)
