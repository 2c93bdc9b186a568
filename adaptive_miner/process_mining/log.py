"""
Event log
=========

Représentation immuable d'un log: une séquence ordonnée de traces, chaque
trace étant un tuple de labels d'activité.

Le format source (XES, CSV) n'est jamais analysé ici: on reçoit un log déjà
lu (pm4py ``EventLog``, DataFrame pandas ou simples listes) et une fonction de
classification qui associe un label à chaque événement.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import pandas as pd


Trace = Tuple[str, ...]

CASE_ID_KEY = 'case:concept:name'
ACTIVITY_KEY = 'concept:name'
TIMESTAMP_KEY = 'time:timestamp'
LIFECYCLE_KEY = 'lifecycle:transition'


def event_name_classifier(event: Mapping[str, Any]) -> str:
    """Classifieur par défaut: le nom de l'événement (``concept:name``)."""
    return str(event[ACTIVITY_KEY])


def repair_life_cycles(
    events: Sequence[Mapping[str, Any]],
    classifier: Callable[[Mapping[str, Any]], str] = event_name_classifier
) -> List[str]:
    """
    Réduit une trace à une occurrence par instance d'activité.

    Les événements ``complete`` sont conservés. Un ``start`` dont le
    ``complete`` n'arrive jamais est conservé à sa place. Les autres
    transitions (``schedule``, ``suspend``...) sont ignorées. Les événements
    sans transition comptent comme ``complete``.

    Args:
        events: Événements bruts d'une trace
        classifier: Fonction événement -> activité

    Returns:
        Liste des activités réparées
    """
    repaired: List[Optional[str]] = []
    open_starts: Dict[str, List[int]] = {}

    for event in events:
        activity = classifier(event)
        transition = event.get(LIFECYCLE_KEY)
        # Valeur absente ou NaN (colonne pandas partiellement remplie)
        transition = transition.lower() if isinstance(transition, str) else 'complete'

        if transition == 'start':
            # Réserver la position, retirée si un complete suit
            open_starts.setdefault(activity, []).append(len(repaired))
            repaired.append(activity)
        elif transition == 'complete':
            pending = open_starts.get(activity)
            if pending:
                repaired[pending.pop(0)] = None
            repaired.append(activity)

    return [activity for activity in repaired if activity is not None]


class Log:
    """
    Log immuable de traces.

    Un sous-log produit par découpage possède ses propres copies des traces,
    il ne partage aucun état mutable avec son parent.

    Example:
        >>> log = Log([['a', 'b', 'c']] * 10)
        >>> len(log)
        10
    """

    def __init__(self, traces: Iterable[Iterable[str]] = ()):
        self._traces: Tuple[Trace, ...] = tuple(tuple(trace) for trace in traces)

    # Construction

    @classmethod
    def from_event_log(
        cls,
        event_log: Iterable[Iterable[Mapping[str, Any]]],
        classifier: Callable[[Mapping[str, Any]], str] = event_name_classifier,
        repair_life_cycle: bool = False
    ) -> 'Log':
        """
        Construit un log depuis un event log déjà lu.

        Args:
            event_log: Itérable de traces d'événements (ex. pm4py ``EventLog``)
            classifier: Fonction événement -> activité
            repair_life_cycle: Réparer les transitions start/complete

        Returns:
            Log
        """
        traces = []
        for trace in event_log:
            events = list(trace)
            if repair_life_cycle:
                traces.append(repair_life_cycles(events, classifier))
            else:
                traces.append([classifier(event) for event in events])
        return cls(traces)

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        case_id: str = CASE_ID_KEY,
        activity_key: str = ACTIVITY_KEY,
        timestamp_key: str = TIMESTAMP_KEY,
        repair_life_cycle: bool = False
    ) -> 'Log':
        """
        Construit un log depuis un DataFrame au format pm4py.

        Les événements sont triés par timestamp à l'intérieur de chaque cas
        (tri stable, l'ordre des lignes départage les égalités).

        Args:
            df: DataFrame d'événements
            case_id: Colonne identifiant le cas
            activity_key: Colonne de l'activité
            timestamp_key: Colonne du timestamp (optionnelle)
            repair_life_cycle: Réparer les transitions start/complete

        Returns:
            Log
        """
        if df.empty:
            return cls()

        for column in (case_id, activity_key):
            if column not in df.columns:
                raise ValueError(f"Colonne manquante: {column}")

        if timestamp_key in df.columns:
            df = df.sort_values([case_id, timestamp_key], kind='stable')

        classifier = lambda event: str(event[activity_key])
        traces = []
        for _, case_df in df.groupby(case_id, sort=False):
            events = case_df.to_dict('records')
            if repair_life_cycle:
                traces.append(repair_life_cycles(events, classifier))
            else:
                traces.append([classifier(event) for event in events])
        return cls(traces)

    # Accès

    @property
    def traces(self) -> Tuple[Trace, ...]:
        return self._traces

    def __len__(self) -> int:
        return len(self._traces)

    def __iter__(self) -> Iterator[Trace]:
        return iter(self._traces)

    def __getitem__(self, index: int) -> Trace:
        return self._traces[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Log):
            return NotImplemented
        return self._traces == other._traces

    def __hash__(self) -> int:
        return hash(self._traces)

    def __repr__(self) -> str:
        return f"Log({len(self)} traces, {self.number_of_events()} events)"

    def number_of_events(self) -> int:
        return sum(len(trace) for trace in self._traces)

    def activities(self) -> set:
        return {activity for trace in self._traces for activity in trace}

    def variants(self) -> Counter:
        """Fréquence de chaque variante de trace."""
        return Counter(self._traces)

    # Transformations (retournent toujours un nouveau log)

    def project(self, group: Iterable[str]) -> 'Log':
        """Garde uniquement les événements des activités du groupe."""
        group = set(group)
        return Log(tuple(a for a in trace if a in group) for trace in self._traces)

    def without_empty_traces(self) -> 'Log':
        return Log(trace for trace in self._traces if trace)

    def filter_infrequent_variants(self, threshold: float) -> 'Log':
        """
        Supprime les traces des variantes trop rares.

        Args:
            threshold: Fréquence relative minimale d'une variante (0-1)

        Returns:
            Log filtré
        """
        if not 0 <= threshold <= 1:
            raise ValueError(f"Seuil hors de [0, 1]: {threshold}")
        if not self._traces:
            return self

        variants = self.variants()
        total = len(self._traces)
        return Log(trace for trace in self._traces if variants[trace] / total >= threshold)

    def to_dataframe(self, start: datetime = None) -> pd.DataFrame:
        """
        Convertit le log en DataFrame au format pm4py.

        Les timestamps sont synthétiques (une seconde entre deux événements),
        seul l'ordre compte pour la conformance.
        """
        start = start or datetime(2000, 1, 1)
        rows = []
        tick = 0
        for case_index, trace in enumerate(self._traces):
            for activity in trace:
                rows.append({
                    CASE_ID_KEY: str(case_index),
                    ACTIVITY_KEY: activity,
                    TIMESTAMP_KEY: start + timedelta(seconds=tick)
                })
                tick += 1
        return pd.DataFrame(rows, columns=[CASE_ID_KEY, ACTIVITY_KEY, TIMESTAMP_KEY])
