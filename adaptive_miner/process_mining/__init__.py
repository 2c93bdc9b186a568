"""
Module de découverte inductive adaptative
=========================================

Découverte de process trees par l'Inductive Miner, avec balayage de
plusieurs seuils de bruit.

Fonctionnalités:
    - Statistiques de log (graphe directly-follows)
    - Cas de base, coupes, découpage, fall-throughs, post-traitements
    - Mineur récursif (un seuil) et mineur adaptatif (plusieurs seuils)
    - Conformance checking et export PM4Py

Usage:
    >>> from adaptive_miner.process_mining import Log, discover_adaptive
    >>>
    >>> log = Log([['a', 'b', 'c']] * 10)
    >>> result = discover_adaptive(log)
    >>> print(result)
    ->( 'a', 'b', 'c' )
"""

from adaptive_miner.process_mining.log import Log
from adaptive_miner.process_mining.statistics import LogStatistics, compute_statistics
from adaptive_miner.process_mining.tree import Operator, ProcessTree
from adaptive_miner.process_mining.cuts import Cut, CutOperator
from adaptive_miner.process_mining.state import CancellationToken, MinerState
from adaptive_miner.process_mining.config import MiningParameters, build_parameters
from adaptive_miner.process_mining.exceptions import MiningError, SplitError, UnknownOperatorError
from adaptive_miner.process_mining.miner import DiscoveryResult, mine, mine_node
from adaptive_miner.process_mining.adaptive import AdaptiveNoiseMiner, ConformanceSelection
from adaptive_miner.process_mining.discovery import discover_adaptive, discover_process_tree
from adaptive_miner.process_mining.pipeline import DiscoveryPipeline

__all__ = [
    "Log",
    "LogStatistics",
    "compute_statistics",
    "Operator",
    "ProcessTree",
    "Cut",
    "CutOperator",
    "CancellationToken",
    "MinerState",
    "MiningParameters",
    "build_parameters",
    "MiningError",
    "SplitError",
    "UnknownOperatorError",
    "DiscoveryResult",
    "mine",
    "mine_node",
    "AdaptiveNoiseMiner",
    "ConformanceSelection",
    "discover_adaptive",
    "discover_process_tree",
    "DiscoveryPipeline",
]
