"""
Utilitaires adaptive_miner
==========================

Modules utilitaires pour le logging.
"""

from adaptive_miner.utils.logging import setup_logging, get_logger, ProgressLogger

__all__ = [
    "setup_logging",
    "get_logger",
    "ProgressLogger",
]
