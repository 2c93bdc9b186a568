"""
Pipeline de découverte
======================

Pipeline complet: import d'un event log, filtrage optionnel des variantes
rares, découverte adaptative, résumé statistique, conformance et export.
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from adaptive_miner.process_mining.config import DEFAULT_NOISE_THRESHOLDS
from adaptive_miner.process_mining.discovery import discover_adaptive
from adaptive_miner.process_mining.log import ACTIVITY_KEY, CASE_ID_KEY, TIMESTAMP_KEY, Log
from adaptive_miner.process_mining.miner import DiscoveryResult


class DiscoveryPipeline:
    """
    Pipeline de découverte adaptative.

    Fonctionnalités:
        - Import des event logs (CSV, XES)
        - Filtrage des variantes rares
        - Découverte adaptative multi-seuils
        - Résumé statistique du log
        - Conformance checking
        - Export PTML

    Example:
        >>> pipeline = DiscoveryPipeline('event_log.csv')
        >>> result = pipeline.discover()
        >>> metrics = pipeline.check_conformance()
    """

    def __init__(
        self,
        event_log_path: str = None,
        case_id: str = CASE_ID_KEY,
        activity: str = ACTIVITY_KEY,
        timestamp: str = TIMESTAMP_KEY,
        thresholds: Iterable[float] = DEFAULT_NOISE_THRESHOLDS,
        selection: str = 'lowest_threshold',
        variant_threshold: float = 0.0,
        repair_life_cycle: bool = False,
        max_workers: int = 1
    ):
        """
        Args:
            event_log_path: Chemin vers le fichier event log
            case_id: Nom de la colonne case ID
            activity: Nom de la colonne activité
            timestamp: Nom de la colonne timestamp
            thresholds: Seuils de bruit candidats
            selection: Politique de sélection entre seuils
            variant_threshold: Fréquence relative minimale d'une variante (0 = pas de filtre)
            repair_life_cycle: Réparer les transitions start/complete
            max_workers: Workers pour le balayage des seuils
        """
        self.case_id = case_id
        self.activity = activity
        self.timestamp = timestamp
        self.thresholds = tuple(thresholds)
        self.selection = selection
        self.variant_threshold = variant_threshold
        self.repair_life_cycle = repair_life_cycle
        self.max_workers = max_workers

        self.df_log: Optional[pd.DataFrame] = None
        self.log: Optional[Log] = None
        self.result: Optional[DiscoveryResult] = None

        if event_log_path:
            self.load_event_log(event_log_path)

    def load_event_log(
        self,
        path: str,
        separator: str = ','
    ) -> 'DiscoveryPipeline':
        """
        Charge un event log depuis un fichier.

        Supporte CSV et XES.

        Args:
            path: Chemin du fichier
            separator: Séparateur CSV

        Returns:
            self
        """
        path = Path(path)

        if path.suffix.lower() == '.xes':
            import pm4py
            df = pm4py.convert_to_dataframe(pm4py.read_xes(str(path)))
        elif path.suffix.lower() in ['.csv', '.tsv']:
            df = pd.read_csv(path, sep=separator)

            # Renommer les colonnes si nécessaire
            column_mapping = {}
            if self.case_id != CASE_ID_KEY and self.case_id in df.columns:
                column_mapping[self.case_id] = CASE_ID_KEY
            if self.activity != ACTIVITY_KEY and self.activity in df.columns:
                column_mapping[self.activity] = ACTIVITY_KEY
            if self.timestamp != TIMESTAMP_KEY and self.timestamp in df.columns:
                column_mapping[self.timestamp] = TIMESTAMP_KEY

            if column_mapping:
                df = df.rename(columns=column_mapping)

            # Convertir timestamp
            if TIMESTAMP_KEY in df.columns:
                df[TIMESTAMP_KEY] = pd.to_datetime(df[TIMESTAMP_KEY])
        else:
            raise ValueError(f"Format non supporté: {path.suffix}")

        return self.load_dataframe(df)

    def load_dataframe(self, df: pd.DataFrame) -> 'DiscoveryPipeline':
        """Charge un event log déjà au format PM4Py."""
        self.df_log = df
        log = Log.from_dataframe(df, repair_life_cycle=self.repair_life_cycle)

        if self.variant_threshold > 0:
            filtered = log.filter_infrequent_variants(self.variant_threshold)
            print(f"  ✓ Variantes rares filtrées: {len(log) - len(filtered)} traces retirées")
            log = filtered

        self.log = log
        self.result = None

        print(f"  ✓ Event log chargé: {len(self.log)} traces")

        return self

    def _require_log(self) -> Log:
        if self.log is None:
            raise ValueError("Event log non chargé")
        return self.log

    def discover(self, **options) -> Optional[DiscoveryResult]:
        """
        Découvre le process tree par balayage des seuils.

        Args:
            **options: Chaînes de stratégies (voir ``build_parameters``)

        Returns:
            DiscoveryResult, ou None si la découverte échoue
        """
        log = self._require_log()

        self.result = discover_adaptive(
            log,
            thresholds=self.thresholds,
            selection=self.selection,
            max_workers=self.max_workers,
            **options
        )

        if self.result is not None:
            print(f"  ✓ Process tree découvert: {self.result}")

        return self.result

    def _require_result(self) -> DiscoveryResult:
        if self.result is None:
            self.discover()
        if self.result is None:
            raise ValueError("Aucun process tree découvert")
        return self.result

    def compute_summary(self) -> Dict[str, Any]:
        """
        Résumé statistique du log.

        Returns:
            Dict avec n_traces, n_events, n_activities, n_variants,
            longueurs de trace et part de la variante principale
        """
        log = self._require_log()
        if not len(log):
            return {'n_traces': 0, 'n_events': 0, 'n_activities': 0, 'n_variants': 0}

        lengths = np.array([len(trace) for trace in log])
        variants = np.array(list(log.variants().values()))

        summary = {
            'n_traces': len(log),
            'n_events': int(lengths.sum()),
            'n_activities': len(log.activities()),
            'n_variants': int(len(variants)),
            'trace_length_mean': float(lengths.mean()),
            'trace_length_median': float(np.median(lengths)),
            'trace_length_max': int(lengths.max()),
            'top_variant_pct': float(variants.max() / len(log) * 100),
        }

        if self.result is not None:
            summary['discarded'] = {str(t): n for t, n in self.result.discarded.items()}

        return summary

    def get_activity_statistics(self) -> pd.DataFrame:
        """Retourne les statistiques par activité."""
        log = self._require_log()

        counts = pd.Series(
            [activity for trace in log for activity in trace], dtype=object
        ).value_counts()
        stats = counts.rename_axis('activity').to_frame('count')
        stats['percentage'] = stats['count'] / stats['count'].sum() * 100

        return stats.sort_values('count', ascending=False)

    def check_conformance(self) -> Dict[str, float]:
        """
        Vérifie la conformance du log par rapport à l'arbre découvert.

        Returns:
            Dict avec fitness, precision, simplicity, f1
        """
        from adaptive_miner.process_mining.conformance import compute_all_metrics

        result = self._require_result()
        metrics = compute_all_metrics(self._require_log(), result)

        print(f"  ✓ Fitness: {metrics['fitness']:.3f} | Précision: {metrics['precision']:.3f}")

        return metrics

    def export_tree(self, output_path: str = 'process_tree.ptml') -> str:
        """
        Exporte l'arbre découvert au format PTML.

        Args:
            output_path: Fichier de sortie

        Returns:
            Chemin du fichier écrit
        """
        import pm4py

        result = self._require_result()
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        pm4py.write_ptml(result.to_pm4py(), str(output_path))

        print(f"  ✓ Process tree exporté: {output_path}")

        return str(output_path)
