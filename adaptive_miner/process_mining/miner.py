"""
Mineur inductif récursif
========================

Pour un log: cas de base, sinon coupe puis découpage et récursion sur chaque
sous-log, sinon fall-through. Le jeton d'annulation est consulté à chaque
transition; une récursion annulée retourne None sans ajouter de nœud.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from adaptive_miner.process_mining.config import MiningParameters, build_parameters
from adaptive_miner.process_mining.cuts import Cut, CutOperator, filter_statistics
from adaptive_miner.process_mining.exceptions import MiningError, SplitError, UnknownOperatorError
from adaptive_miner.process_mining.fall_through import FlowerFallThrough
from adaptive_miner.process_mining.log import Log
from adaptive_miner.process_mining.splitting import SplitResult
from adaptive_miner.process_mining.state import CancellationToken, DiscardedEvent, MinerState
from adaptive_miner.process_mining.tree import Operator, ProcessTree
from adaptive_miner.utils.logging import get_logger

logger = get_logger(__name__)


# Opérateur de coupe -> opérateur de nœud
NODE_OPERATORS = {
    CutOperator.SEQUENCE: Operator.SEQUENCE,
    CutOperator.XOR: Operator.XOR,
    CutOperator.PARALLEL: Operator.PARALLEL,
    CutOperator.LOOP: Operator.LOOP,
    CutOperator.INTERLEAVED: Operator.INTERLEAVED,
    CutOperator.MAYBE_INTERLEAVED: Operator.MAYBE_INTERLEAVED,
}


def node_operator(cut_operator) -> Operator:
    """Opérateur de nœud d'une coupe. Lève UnknownOperatorError sinon."""
    try:
        return NODE_OPERATORS[cut_operator]
    except (KeyError, TypeError):
        raise UnknownOperatorError(cut_operator) from None


@dataclass
class DiscoveryResult:
    """Arbre découvert et événements écartés par seuil."""
    tree: ProcessTree
    root: int
    discarded: Dict[float, int] = field(default_factory=dict)
    discarded_events: Dict[float, List[DiscardedEvent]] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.tree.to_string(self.root)

    @property
    def total_discarded(self) -> int:
        return sum(self.discarded.values())

    def to_pm4py(self):
        """Arbre au format pm4py."""
        return self.tree.to_pm4py(self.root)

    def to_dict(self) -> Dict[str, object]:
        return {
            'tree': self.tree.to_string(self.root),
            'structure': self.tree.to_dict(self.root),
            'discarded': {str(t): n for t, n in self.discarded.items()},
        }


# Chaînes de stratégies

def find_base_cases(log: Log, stats, tree: ProcessTree, state: MinerState) -> Optional[int]:
    for finder in state.parameters.base_case_finders:
        if state.is_cancelled():
            return None
        node = finder.find_base_case(log, stats, tree, state)
        if node is not None:
            if state.parameters.debug:
                logger.debug(f"Cas de base {finder.name}: {tree.to_string(node)}")
            # Hors chaîne de post-traitement: seul l'enregistrement est notifié
            for processor in state.parameters.post_processors:
                processor.record_base_case(node, log, stats, tree, state)
            return node
    return None


def _search_cut(log: Log, stats, state: MinerState) -> Optional[Cut]:
    for finder in state.parameters.cut_finders:
        if state.is_cancelled():
            return None
        cut = finder.find_cut(log, stats, state)
        if cut is not None and cut.is_valid() and cut.covers(stats.activities):
            if state.parameters.debug:
                logger.debug(f"Coupe {finder.name}: {cut}")
            return cut
    return None


def find_cut(log: Log, stats, state: MinerState) -> Optional[Cut]:
    """
    Cherche la première coupe valide de la chaîne.

    Avec un seuil de bruit non nul, la chaîne est d'abord essayée sur les
    statistiques filtrées, puis sur les statistiques exactes.

    Args:
        log: Log courant
        stats: Statistiques exactes du log
        state: État du seuil

    Returns:
        Cut couvrant les activités des statistiques utilisées, ou None
    """
    if state.noise_threshold > 0:
        filtered = filter_statistics(stats, state.noise_threshold)
        if filtered != stats:
            cut = _search_cut(log, filtered, state)
            if cut is not None or state.is_cancelled():
                return cut
    return _search_cut(log, stats, state)


def find_fall_through(log: Log, stats, tree: ProcessTree, state: MinerState) -> Optional[int]:
    for strategy in state.parameters.fall_throughs:
        if state.is_cancelled():
            return None
        node = strategy.fall_through(log, stats, tree, state)
        if node is not None:
            if state.parameters.debug:
                logger.debug(f"Fall-through {strategy.name}: {tree.to_string(node)}")
            return node

    if state.is_cancelled():
        return None
    # La chaîne configurée peut ne pas finir par la fleur
    return FlowerFallThrough().fall_through(log, stats, tree, state)


def split_log(log: Log, stats, cut: Cut, state: MinerState) -> Optional[SplitResult]:
    """Découpe le log et ajoute les événements écartés à l'état."""
    result = state.parameters.log_splitter.split(log, stats, cut, state)
    if state.is_cancelled():
        return None
    if len(result.sublogs) != len(cut.partition):
        raise SplitError(
            f"{len(result.sublogs)} sous-logs pour une coupe à {len(cut.partition)} groupes"
        )
    state.add_discarded(result.discarded)
    return result


def compose_node(operator: Operator, children: Sequence[int], tree: ProcessTree) -> int:
    """
    Crée le nœud d'une coupe à partir des enfants déjà minés.

    Une boucle a toujours trois enfants: corps, redo (un choix exclusif
    s'il y a plusieurs parties redo), tau.
    """
    if operator != Operator.LOOP:
        return tree.add_operator(operator, children)

    body, *redos = children
    redo = redos[0] if len(redos) == 1 else tree.add_operator(Operator.XOR, redos)
    exit_ = tree.add_tau()
    return tree.add_operator(Operator.LOOP, [body, redo, exit_])


def post_process(node: int, log: Log, stats, tree: ProcessTree, state: MinerState) -> Optional[int]:
    for processor in state.parameters.post_processors:
        if state.is_cancelled():
            return None
        node = processor.post_process(node, log, stats, tree, state)
    return node


def mine_node(log: Log, tree: ProcessTree, state: MinerState) -> Optional[int]:
    """
    Mine un (sous-)log et retourne l'index du nœud racine créé.

    Args:
        log: Log à miner
        tree: Arbre partagé par toute la récursion
        state: État du seuil

    Returns:
        Index du nœud, ou None en cas d'annulation
    """
    if state.is_cancelled():
        return None

    stats = state.parameters.log_statistics(log)
    if state.parameters.debug:
        logger.debug(f"Nœud: {stats.describe()}")

    node = find_base_cases(log, stats, tree, state)
    if state.is_cancelled():
        return None
    if node is not None:
        return node

    cut = find_cut(log, stats, state)
    if state.is_cancelled():
        return None

    if cut is not None:
        operator = node_operator(cut.operator)
        split = split_log(log, stats, cut, state)
        if split is None:
            return None

        children = []
        for sublog in split.sublogs:
            child = state.recurse(sublog, tree)
            if child is None:
                return None
            children.append(child)

        if state.is_cancelled():
            return None
        node = compose_node(operator, children, tree)
    else:
        node = find_fall_through(log, stats, tree, state)
        if node is None:
            return None

    return post_process(node, log, stats, tree, state)


def mine(
    log,
    parameters: Optional[MiningParameters] = None,
    cancellation: Optional[CancellationToken] = None,
    tree: Optional[ProcessTree] = None
) -> Optional[DiscoveryResult]:
    """
    Découverte non adaptative avec un seul seuil de bruit.

    Args:
        log: Log, ou journal d'événements (pm4py EventLog ou équivalent)
        parameters: Paramètres de minage (IMf à 0.2 par défaut)
        cancellation: Jeton d'annulation
        tree: Arbre à compléter (un nouvel arbre par défaut)

    Returns:
        DiscoveryResult, ou None en cas d'annulation ou d'erreur
    """
    parameters = parameters or build_parameters()
    if not isinstance(log, Log):
        log = Log.from_event_log(log, repair_life_cycle=parameters.repair_life_cycle)
    tree = tree if tree is not None else ProcessTree()
    state = MinerState(parameters, cancellation)

    logger.info(f"Découverte: {len(log)} traces, seuil de bruit {parameters.noise_threshold}")

    try:
        root = mine_node(log, tree, state)
    except MiningError:
        logger.exception("Échec de la découverte")
        return None
    finally:
        state.shutdown_thread_pools()

    if root is None:
        logger.info("Découverte annulée")
        return None

    tree.root = root
    discarded = state.discarded_events
    logger.info(f"Événements écartés: {len(discarded)}")

    return DiscoveryResult(
        tree=tree,
        root=root,
        discarded={parameters.noise_threshold: len(discarded)},
        discarded_events={parameters.noise_threshold: discarded}
    )
