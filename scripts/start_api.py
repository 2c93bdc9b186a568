#!/usr/bin/env python
"""
Démarrage de l'API de découverte
================================

Usage:
    python scripts/start_api.py
    python scripts/start_api.py --port 8080 --reload --log-level debug
"""

import argparse
import sys
from pathlib import Path

# Ajouter le répertoire parent au path
sys.path.insert(0, str(Path(__file__).parent.parent))

from adaptive_miner import __version__
from adaptive_miner.process_mining.config import DEFAULT_NOISE_THRESHOLDS, available_strategies
from adaptive_miner.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description='Serveur HTTP de découverte adaptative')

    parser.add_argument('--host', type=str, default='0.0.0.0',
                       help='Adresse d\'écoute')
    parser.add_argument('--port', type=int, default=8000,
                       help='Port d\'écoute')
    parser.add_argument('--reload', action='store_true',
                       help='Rechargement automatique (développement)')
    parser.add_argument('--workers', type=int, default=1,
                       help='Processus uvicorn')
    parser.add_argument('--log-level', type=str, default='info',
                       choices=['debug', 'info', 'warning', 'error'],
                       help='Niveau de log du mineur et du serveur')

    args = parser.parse_args()

    setup_logging(level=args.log_level)
    strategies = available_strategies()

    print("=" * 70)
    print(f"  ADAPTIVE MINER API v{__version__}")
    print("=" * 70)
    print(f"  Écoute: {args.host}:{args.port} ({args.workers} worker(s))")
    print(f"  Seuils par défaut: {list(DEFAULT_NOISE_THRESHOLDS)}")
    print(f"  Coupes: {', '.join(strategies['cut_finders'])}")
    print(f"  Fall-throughs: {', '.join(strategies['fall_throughs'])}")
    print("=" * 70)
    print(f"\n  📖 Documentation: http://{args.host}:{args.port}/docs")
    print(f"  🧭 Stratégies: http://{args.host}:{args.port}/strategies\n")

    import uvicorn

    uvicorn.run(
        "adaptive_miner.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        # uvicorn ignore workers en mode reload
        workers=1 if args.reload else args.workers,
        log_level=args.log_level
    )


if __name__ == '__main__':
    main()
