"""
Conformance Checking
====================

Qualité d'un arbre découvert par rapport au log (rejeu de jetons PM4Py).
"""

from typing import Any, Dict, Tuple

from adaptive_miner.process_mining.log import Log


def _as_event_log(log: Any) -> Any:
    """Un ``Log`` est converti en DataFrame au format PM4Py."""
    if isinstance(log, Log):
        return log.to_dataframe()
    return log


def _as_petri_net(model: Any) -> Tuple[Any, Any, Any]:
    """
    Accepte un DiscoveryResult, un process tree PM4Py ou un dict
    net/initial_marking/final_marking.
    """
    import pm4py

    if isinstance(model, dict):
        return model['net'], model['initial_marking'], model['final_marking']
    if hasattr(model, 'to_pm4py'):
        model = model.to_pm4py()
    return pm4py.convert_to_petri_net(model)


def compute_fitness(event_log: Any, model: Any) -> Dict[str, float]:
    """
    Calcule le fitness d'un modèle par rapport à un event log.

    Le fitness mesure à quel point le modèle peut rejouer les traces du log.

    Args:
        event_log: Log, event log ou DataFrame PM4Py
        model: DiscoveryResult, process tree PM4Py ou Petri net (dict)

    Returns:
        Dict avec average_trace_fitness, percentage_of_fitting_traces, etc.
    """
    import pm4py

    net, im, fm = _as_petri_net(model)
    return pm4py.fitness_token_based_replay(_as_event_log(event_log), net, im, fm)


def compute_precision(event_log: Any, model: Any) -> float:
    """
    Calcule la précision d'un modèle.

    La précision mesure à quel point le modèle est restrictif
    (évite de permettre trop de comportements non observés).

    Args:
        event_log: Log, event log ou DataFrame PM4Py
        model: DiscoveryResult, process tree PM4Py ou Petri net (dict)

    Returns:
        Score de précision (0-1)
    """
    import pm4py

    net, im, fm = _as_petri_net(model)
    return pm4py.precision_token_based_replay(_as_event_log(event_log), net, im, fm)


def compute_simplicity(model: Any) -> float:
    """Simplicité (degré moyen des arcs) du réseau de Petri."""
    import pm4py

    net, im, fm = _as_petri_net(model)
    return pm4py.simplicity_petri_net(net, im, fm)


def compute_tree_metrics(model: Any, event_log: Any) -> Dict[str, float]:
    """
    Fitness, précision et F1 en une seule conversion du modèle.

    Args:
        model: DiscoveryResult, process tree PM4Py ou Petri net (dict)
        event_log: Log, event log ou DataFrame PM4Py

    Returns:
        Dict avec fitness, precision, f1
    """
    import pm4py

    net, im, fm = _as_petri_net(model)
    log = _as_event_log(event_log)

    fitness = pm4py.fitness_token_based_replay(log, net, im, fm).get('average_trace_fitness', 0)
    precision = pm4py.precision_token_based_replay(log, net, im, fm)

    # F1 entre fitness et precision
    f1 = 2 * fitness * precision / (fitness + precision + 1e-6)

    return {
        'fitness': float(fitness),
        'precision': float(precision),
        'f1': float(f1)
    }


def compute_all_metrics(event_log: Any, model: Any) -> Dict[str, float]:
    """
    Calcule toutes les métriques de qualité d'un modèle.

    Args:
        event_log: Log, event log ou DataFrame PM4Py
        model: DiscoveryResult, process tree PM4Py ou Petri net (dict)

    Returns:
        Dict avec fitness, precision, simplicity, f1
    """
    metrics = compute_tree_metrics(model, event_log)
    metrics['simplicity'] = float(compute_simplicity(model))
    return metrics
