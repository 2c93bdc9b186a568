"""
Adaptive Miner
==============

Découverte inductive de modèles de processus avec seuil de bruit adaptatif.

Un log d'événements est décomposé récursivement (séquence, choix exclusif,
parallélisme, boucle, entrelacement) en un process tree; à chaque étape,
plusieurs seuils de bruit sont essayés et l'un des seuils ayant produit une
coupe valide est retenu.

Modules:
    - process_mining: Statistiques, stratégies, mineurs, conformance
    - utils: Utilitaires (logging)
    - api: API FastAPI

Usage:
    >>> from adaptive_miner import AdaptiveNoiseMiner, Log
    >>>
    >>> miner = AdaptiveNoiseMiner()
    >>> result = miner.discover(Log([['a', 'b'], ['b', 'a']] * 5))
"""

__version__ = "1.0.0"
__license__ = "MIT"

from adaptive_miner.process_mining import (
    AdaptiveNoiseMiner,
    DiscoveryPipeline,
    DiscoveryResult,
    Log,
    build_parameters,
    discover_adaptive,
    discover_process_tree,
    mine,
)

__all__ = [
    "AdaptiveNoiseMiner",
    "DiscoveryPipeline",
    "DiscoveryResult",
    "Log",
    "build_parameters",
    "discover_adaptive",
    "discover_process_tree",
    "mine",
    "__version__",
]
