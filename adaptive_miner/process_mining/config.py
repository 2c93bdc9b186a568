"""
Configuration du mineur
=======================

Paramètres d'une configuration de minage (un seuil de bruit) et chaînes de
stratégies nommées. Réordonner ou remplacer une stratégie se fait par nom,
sans modifier le code du mineur.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Union

from adaptive_miner.process_mining.base_cases import (
    BaseCaseFinder,
    EmptyLogBaseCase,
    EmptyTracesBaseCase,
    SingleActivityBaseCase,
    SingleActivityLoopBaseCase,
)
from adaptive_miner.process_mining.cuts import (
    CutFinder,
    InterleavedCutFinder,
    LoopCutFinder,
    MaybeInterleavedCutFinder,
    ParallelCutFinder,
    SequenceCutFinder,
    XorCutFinder,
)
from adaptive_miner.process_mining.fall_through import (
    ActivityConcurrentFallThrough,
    ActivityOncePerTraceFallThrough,
    FallThrough,
    FlowerFallThrough,
    StrictTauLoopFallThrough,
    TauLoopFallThrough,
)
from adaptive_miner.process_mining.post_processing import (
    LogPartitioningPostProcessor,
    MaybeInterleavedPostProcessor,
    PostProcessor,
)
from adaptive_miner.process_mining.splitting import InductiveLogSplitter, LogSplitter
from adaptive_miner.process_mining.statistics import compute_statistics


# Seuil par défaut d'IMf
DEFAULT_NOISE_THRESHOLD = 0.2

# Seuils explorés par le contrôleur adaptatif
DEFAULT_NOISE_THRESHOLDS = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6)


# Registres: nom -> classe de stratégie
BASE_CASE_FINDERS = {
    'empty_log': EmptyLogBaseCase,
    'single_activity': SingleActivityBaseCase,
    'single_activity_loop': SingleActivityLoopBaseCase,
    'empty_traces': EmptyTracesBaseCase,
}

# L'ordre des coupes est significatif
CUT_FINDERS = {
    'sequence': SequenceCutFinder,
    'xor': XorCutFinder,
    'parallel': ParallelCutFinder,
    'loop': LoopCutFinder,
    'interleaved': InterleavedCutFinder,
    'maybe_interleaved': MaybeInterleavedCutFinder,
}

FALL_THROUGHS = {
    'activity_once_per_trace': ActivityOncePerTraceFallThrough,
    'activity_concurrent': ActivityConcurrentFallThrough,
    'strict_tau_loop': StrictTauLoopFallThrough,
    'tau_loop': TauLoopFallThrough,
    'flower': FlowerFallThrough,
}

POST_PROCESSORS = {
    'maybe_interleaved': MaybeInterleavedPostProcessor,
    'log_partitioning': LogPartitioningPostProcessor,
}

LOG_SPLITTERS = {
    'inductive': InductiveLogSplitter,
}

DEFAULT_BASE_CASES = tuple(BASE_CASE_FINDERS)
DEFAULT_CUT_FINDERS = tuple(CUT_FINDERS)
DEFAULT_FALL_THROUGHS = tuple(FALL_THROUGHS)
DEFAULT_POST_PROCESSORS = ('maybe_interleaved',)


def validate_threshold(value: float) -> float:
    """Vérifie qu'un seuil de bruit est dans [0, 1]."""
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"Seuil de bruit hors de [0, 1]: {value}")
    return value


@dataclass
class MiningParameters:
    """Configuration complète d'un minage pour un seuil de bruit."""

    noise_threshold: float = DEFAULT_NOISE_THRESHOLD

    # Flags
    repair_life_cycle: bool = False
    debug: bool = False

    # Chaînes de stratégies (ordre significatif)
    base_case_finders: List[BaseCaseFinder] = field(default_factory=list)
    cut_finders: List[CutFinder] = field(default_factory=list)
    fall_throughs: List[FallThrough] = field(default_factory=list)
    post_processors: List[PostProcessor] = field(default_factory=list)
    log_splitter: LogSplitter = field(default_factory=InductiveLogSplitter)

    # Calcul des statistiques d'un log
    log_statistics: Callable = compute_statistics

    # Workers pour les calculs internes aux stratégies
    max_workers: int = 1

    def __post_init__(self):
        self.noise_threshold = validate_threshold(self.noise_threshold)
        if self.max_workers < 1:
            raise ValueError(f"max_workers doit être >= 1: {self.max_workers}")

    def describe(self) -> Dict[str, object]:
        return {
            'noise_threshold': self.noise_threshold,
            'base_cases': [s.name for s in self.base_case_finders],
            'cuts': [s.name for s in self.cut_finders],
            'fall_throughs': [s.name for s in self.fall_throughs],
            'post_processors': [s.name for s in self.post_processors],
            'log_splitter': self.log_splitter.name,
        }


Strategy = Union[str, object]


def _instantiate(strategies: Sequence[Strategy], registry: Dict[str, type], kind: str) -> list:
    instances = []
    for strategy in strategies:
        if isinstance(strategy, str):
            if strategy not in registry:
                raise ValueError(f"Stratégie {kind} inconnue: {strategy}")
            instances.append(registry[strategy]())
        else:
            instances.append(strategy)
    return instances


def build_parameters(
    noise_threshold: float = DEFAULT_NOISE_THRESHOLD,
    base_cases: Sequence[Strategy] = DEFAULT_BASE_CASES,
    cut_finders: Sequence[Strategy] = DEFAULT_CUT_FINDERS,
    fall_throughs: Sequence[Strategy] = DEFAULT_FALL_THROUGHS,
    post_processors: Sequence[Strategy] = DEFAULT_POST_PROCESSORS,
    log_splitter: Strategy = 'inductive',
    repair_life_cycle: bool = False,
    debug: bool = False,
    max_workers: int = 1
) -> MiningParameters:
    """
    Construit des paramètres de minage à partir de noms de stratégies.

    Chaque élément d'une chaîne est soit un nom de registre, soit une
    instance de stratégie déjà construite.

    Args:
        noise_threshold: Seuil de bruit (0-1)
        base_cases: Chaîne des cas de base
        cut_finders: Chaîne des coupes
        fall_throughs: Chaîne des fall-throughs
        post_processors: Chaîne des post-traitements
        log_splitter: Découpeur de log
        repair_life_cycle: Réparer les transitions start/complete à l'import
        debug: Tracer chaque nœud découvert
        max_workers: Workers pour les calculs internes

    Returns:
        MiningParameters
    """
    (splitter,) = _instantiate([log_splitter], LOG_SPLITTERS, 'de découpage')

    return MiningParameters(
        noise_threshold=noise_threshold,
        repair_life_cycle=repair_life_cycle,
        debug=debug,
        base_case_finders=_instantiate(base_cases, BASE_CASE_FINDERS, 'de cas de base'),
        cut_finders=_instantiate(cut_finders, CUT_FINDERS, 'de coupe'),
        fall_throughs=_instantiate(fall_throughs, FALL_THROUGHS, 'de fall-through'),
        post_processors=_instantiate(post_processors, POST_PROCESSORS, 'de post-traitement'),
        log_splitter=splitter,
        max_workers=max_workers
    )


def available_strategies() -> Dict[str, List[str]]:
    """Noms des stratégies disponibles, dans l'ordre par défaut."""
    return {
        'base_cases': list(BASE_CASE_FINDERS),
        'cut_finders': list(CUT_FINDERS),
        'fall_throughs': list(FALL_THROUGHS),
        'post_processors': list(POST_PROCESSORS),
        'log_splitters': list(LOG_SPLITTERS),
    }
