"""
Découverte de processus
=======================

Points d'entrée de la découverte: un seuil (IMf) ou balayage adaptatif, et
conversion de l'arbre obtenu vers les modèles PM4Py.
"""

from typing import Any, Iterable, Optional, Tuple

import pandas as pd

from adaptive_miner.process_mining.adaptive import AdaptiveNoiseMiner
from adaptive_miner.process_mining.config import (
    DEFAULT_NOISE_THRESHOLD,
    DEFAULT_NOISE_THRESHOLDS,
    build_parameters,
)
from adaptive_miner.process_mining.log import Log
from adaptive_miner.process_mining.miner import DiscoveryResult, mine
from adaptive_miner.process_mining.state import CancellationToken


def to_log(event_log: Any, repair_life_cycle: bool = False) -> Log:
    """
    Convertit un event log en ``Log``.

    Args:
        event_log: Log, DataFrame PM4Py, EventLog PM4Py ou liste de traces
            d'activités
        repair_life_cycle: Réparer les transitions start/complete

    Returns:
        Log
    """
    if isinstance(event_log, Log):
        return event_log
    if isinstance(event_log, pd.DataFrame):
        return Log.from_dataframe(event_log, repair_life_cycle=repair_life_cycle)

    traces = list(event_log)
    if all(isinstance(event, str) for trace in traces for event in trace):
        return Log(traces)
    return Log.from_event_log(traces, repair_life_cycle=repair_life_cycle)


def discover_process_tree(
    event_log: Any,
    noise_threshold: float = DEFAULT_NOISE_THRESHOLD,
    cancellation: Optional[CancellationToken] = None,
    **options
) -> Optional[DiscoveryResult]:
    """
    Découvre un process tree avec l'Inductive Miner filtrant (un seuil).

    Args:
        event_log: Log, DataFrame ou event log PM4Py
        noise_threshold: Seuil de filtrage du bruit (0-1)
        cancellation: Jeton d'annulation
        **options: Chaînes de stratégies et flags (voir ``build_parameters``)

    Returns:
        DiscoveryResult, ou None si la découverte est annulée ou échoue
    """
    parameters = build_parameters(noise_threshold=noise_threshold, **options)
    log = to_log(event_log, parameters.repair_life_cycle)
    return mine(log, parameters, cancellation)


def discover_adaptive(
    event_log: Any,
    thresholds: Iterable[float] = DEFAULT_NOISE_THRESHOLDS,
    selection='lowest_threshold',
    max_workers: int = 1,
    cancellation: Optional[CancellationToken] = None,
    **options
) -> Optional[DiscoveryResult]:
    """
    Découvre un process tree en balayant plusieurs seuils de bruit.

    Args:
        event_log: Log, DataFrame ou event log PM4Py
        thresholds: Seuils candidats
        selection: Politique de sélection entre seuils
        max_workers: Workers pour le balayage
        cancellation: Jeton d'annulation
        **options: ``strategy_workers``, chaînes de stratégies et flags
            (voir ``AdaptiveNoiseMiner`` et ``build_parameters``)

    Returns:
        DiscoveryResult, ou None si la découverte est annulée ou échoue
    """
    miner = AdaptiveNoiseMiner(
        thresholds=thresholds, selection=selection, max_workers=max_workers, **options
    )
    log = to_log(event_log, miner.reference_parameters.repair_life_cycle)
    return miner.discover(log, cancellation=cancellation)


def convert_to_petri_net(model: Any) -> Tuple[Any, Any, Any]:
    """
    Convertit un arbre découvert en Petri net.

    Args:
        model: DiscoveryResult ou process tree PM4Py

    Returns:
        Tuple (net, initial_marking, final_marking)
    """
    import pm4py

    if isinstance(model, DiscoveryResult):
        model = model.to_pm4py()
    return pm4py.convert_to_petri_net(model)


def convert_to_bpmn(model: Any) -> Any:
    """Convertit un arbre découvert en BPMN."""
    import pm4py

    if isinstance(model, DiscoveryResult):
        model = model.to_pm4py()
    return pm4py.convert_to_bpmn(model)
