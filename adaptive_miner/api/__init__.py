"""
API FastAPI Adaptive Miner
==========================

API REST pour la découverte de process trees.
"""

from adaptive_miner.api.main import app, create_app

__all__ = ["app", "create_app"]
