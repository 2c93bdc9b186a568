#!/usr/bin/env python
"""
Découverte d'un process tree
============================

Usage:
    python scripts/discover.py event_log.xes
    python scripts/discover.py event_log.csv --thresholds 0.1 0.2 0.4 --selection fewest_discarded
    python scripts/discover.py event_log.csv --conformance --output model.ptml
"""

import argparse
import json
import sys
from pathlib import Path

# Ajouter le répertoire parent au path
sys.path.insert(0, str(Path(__file__).parent.parent))

from adaptive_miner.process_mining.adaptive import SELECTION_POLICIES
from adaptive_miner.process_mining.config import DEFAULT_NOISE_THRESHOLDS
from adaptive_miner.process_mining.pipeline import DiscoveryPipeline
from adaptive_miner.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description='Découverte inductive adaptative')

    parser.add_argument('event_log', type=str,
                       help='Event log (CSV ou XES)')
    parser.add_argument('--thresholds', type=float, nargs='+',
                       default=list(DEFAULT_NOISE_THRESHOLDS),
                       help='Seuils de bruit candidats')
    parser.add_argument('--selection', type=str, default='lowest_threshold',
                       choices=list(SELECTION_POLICIES),
                       help='Politique de sélection entre seuils')
    parser.add_argument('--variant-threshold', type=float, default=0.0,
                       help='Fréquence minimale des variantes (0 = pas de filtre)')
    parser.add_argument('--repair-life-cycle', action='store_true',
                       help='Réparer les transitions start/complete')
    parser.add_argument('--workers', type=int, default=1,
                       help='Workers pour le balayage des seuils')
    parser.add_argument('--case-id', type=str, default='case:concept:name',
                       help='Colonne case ID (CSV)')
    parser.add_argument('--activity', type=str, default='concept:name',
                       help='Colonne activité (CSV)')
    parser.add_argument('--timestamp', type=str, default='time:timestamp',
                       help='Colonne timestamp (CSV)')
    parser.add_argument('--separator', type=str, default=',',
                       help='Séparateur CSV')
    parser.add_argument('--conformance', action='store_true',
                       help='Calculer fitness et précision')
    parser.add_argument('--output', type=str, default=None,
                       help='Fichier PTML de sortie')
    parser.add_argument('--debug', action='store_true',
                       help='Tracer chaque nœud découvert')
    parser.add_argument('--log-level', type=str, default='info',
                       choices=['debug', 'info', 'warning', 'error'],
                       help='Niveau de log')

    args = parser.parse_args()

    setup_logging(level='DEBUG' if args.debug else args.log_level)

    print("=" * 70)
    print("  DÉCOUVERTE INDUCTIVE ADAPTATIVE")
    print("=" * 70)
    print(f"  Event log: {args.event_log}")
    print(f"  Seuils: {args.thresholds}")
    print(f"  Sélection: {args.selection}")
    print("=" * 70)

    pipeline = DiscoveryPipeline(
        case_id=args.case_id,
        activity=args.activity,
        timestamp=args.timestamp,
        thresholds=args.thresholds,
        selection=args.selection,
        variant_threshold=args.variant_threshold,
        repair_life_cycle=args.repair_life_cycle,
        max_workers=args.workers
    )
    pipeline.load_event_log(args.event_log, separator=args.separator)

    result = pipeline.discover(debug=args.debug)
    if result is None:
        print("\n  ✗ Aucun process tree découvert")
        return 1

    print("\n📊 Résumé:")
    print(json.dumps(pipeline.compute_summary(), indent=2, ensure_ascii=False))

    if args.conformance:
        print("\n🔍 Conformance:")
        metrics = pipeline.check_conformance()
        for name, value in metrics.items():
            print(f"  {name}: {value:.3f}")

    if args.output:
        pipeline.export_tree(args.output)

    print("\n" + "=" * 70)
    print("  ✅ Découverte terminée")
    print("=" * 70)

    return 0


if __name__ == '__main__':
    sys.exit(main())
