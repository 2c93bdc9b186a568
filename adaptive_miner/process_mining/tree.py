"""
Arbre de processus
==================

Arène de nœuds adressés par index. Un seul arbre possède tous les nœuds;
les enfants sont référencés par index, jamais par pointeur vers le log.

Toutes les insertions passent par une opération d'ajout sérialisée (un seul
écrivain à la fois), même si plusieurs récursions tournent en parallèle.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set


class Operator(str, Enum):
    """Opérateurs de flot de contrôle d'un nœud."""
    SEQUENCE = 'sequence'
    XOR = 'xor'
    PARALLEL = 'parallel'
    LOOP = 'loop'
    INTERLEAVED = 'interleaved'
    MAYBE_INTERLEAVED = 'maybe_interleaved'


# Notation pm4py
OPERATOR_SYMBOLS = {
    Operator.SEQUENCE: '->',
    Operator.XOR: 'X',
    Operator.PARALLEL: '+',
    Operator.LOOP: '*',
    Operator.INTERLEAVED: '<>',
    Operator.MAYBE_INTERLEAVED: '<+>',
}

TAU = 'tau'


@dataclass
class Node:
    """Feuille (activité ou tau) ou nœud opérateur."""
    index: int
    operator: Optional[Operator] = None
    label: Optional[str] = None
    children: List[int] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return self.operator is None

    @property
    def is_tau(self) -> bool:
        return self.operator is None and self.label is None


class ProcessTree:
    """
    Arbre de processus partagé par toute une récursion.

    Les enfants sont enregistrés avant leur parent: un nœud opérateur est
    créé avec la liste ordonnée de ses enfants, l'ordre des frères suit donc
    l'ordre des sous-logs et non l'ordre d'enregistrement.

    Example:
        >>> tree = ProcessTree()
        >>> a, b = tree.add_leaf('a'), tree.add_leaf('b')
        >>> tree.root = tree.add_operator(Operator.SEQUENCE, [a, b])
        >>> str(tree)
        "->( 'a', 'b' )"
    """

    def __init__(self):
        self._nodes: List[Node] = []
        self._lock = threading.Lock()
        self.root: Optional[int] = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __str__(self) -> str:
        if self.root is None:
            return ''
        return self.to_string(self.root)

    def node(self, index: int) -> Node:
        return self._nodes[index]

    def children(self, index: int) -> List[int]:
        return list(self._nodes[index].children)

    # Mutations (sérialisées)

    def _append(self, operator: Optional[Operator], label: Optional[str],
                children: Sequence[int] = ()) -> int:
        with self._lock:
            for child in children:
                if not 0 <= child < len(self._nodes):
                    raise IndexError(f"Enfant inconnu: {child}")
            index = len(self._nodes)
            self._nodes.append(Node(index, operator, label, list(children)))
            return index

    def add_leaf(self, label: str) -> int:
        return self._append(None, label)

    def add_tau(self) -> int:
        return self._append(None, None)

    def add_operator(self, operator: Operator, children: Sequence[int]) -> int:
        return self._append(Operator(operator), None, children)

    def set_operator(self, index: int, operator: Operator) -> None:
        """Change l'opérateur d'un nœud existant (utilisé par les post-traitements)."""
        with self._lock:
            node = self._nodes[index]
            if node.is_leaf:
                raise ValueError(f"Le nœud {index} est une feuille")
            node.operator = Operator(operator)

    # Lecture

    def activities(self, index: Optional[int] = None) -> Set[str]:
        """Activités visibles sous un nœud."""
        index = self.root if index is None else index
        node = self._nodes[index]
        if node.is_leaf:
            return set() if node.is_tau else {node.label}
        result: Set[str] = set()
        for child in node.children:
            result |= self.activities(child)
        return result

    def depth(self, index: Optional[int] = None) -> int:
        index = self.root if index is None else index
        node = self._nodes[index]
        if node.is_leaf:
            return 0
        return 1 + max(self.depth(child) for child in node.children)

    def to_string(self, index: Optional[int] = None) -> str:
        """Représentation textuelle en notation pm4py."""
        index = self.root if index is None else index
        node = self._nodes[index]
        if node.is_tau:
            return TAU
        if node.is_leaf:
            return f"'{node.label}'"
        inner = ', '.join(self.to_string(child) for child in node.children)
        return f"{OPERATOR_SYMBOLS[node.operator]}( {inner} )"

    def to_dict(self, index: Optional[int] = None) -> Dict[str, Any]:
        """Représentation JSON du sous-arbre."""
        index = self.root if index is None else index
        node = self._nodes[index]
        if node.is_leaf:
            return {'label': node.label}
        return {
            'operator': node.operator.value,
            'children': [self.to_dict(child) for child in node.children]
        }

    def to_pm4py(self, index: Optional[int] = None) -> Any:
        """
        Convertit le sous-arbre en ``pm4py`` ProcessTree.

        Les boucles ternaires (corps, redo, tau) deviennent des boucles
        binaires pm4py ``*(corps, redo)``; une sortie non silencieuse est
        placée en séquence après la boucle. Les nœuds maybe-interleaved non
        résolus sont exportés en parallèle.
        """
        from pm4py.objects.process_tree.obj import ProcessTree as PMTree, Operator as PMOperator

        mapping = {
            Operator.SEQUENCE: PMOperator.SEQUENCE,
            Operator.XOR: PMOperator.XOR,
            Operator.PARALLEL: PMOperator.PARALLEL,
            Operator.LOOP: PMOperator.LOOP,
            Operator.INTERLEAVED: PMOperator.INTERLEAVING,
            Operator.MAYBE_INTERLEAVED: PMOperator.PARALLEL,
        }

        def attach(parent, child):
            child.parent = parent
            parent.children.append(child)
            return parent

        def convert(i: int):
            node = self._nodes[i]
            if node.is_leaf:
                return PMTree(label=node.label)

            if node.operator == Operator.LOOP:
                body, redo = node.children[0], node.children[1]
                loop = PMTree(operator=PMOperator.LOOP)
                attach(loop, convert(body))
                attach(loop, convert(redo))
                exit_ = node.children[2] if len(node.children) > 2 else None
                if exit_ is None or self._nodes[exit_].is_tau:
                    return loop
                sequence = PMTree(operator=PMOperator.SEQUENCE)
                attach(sequence, loop)
                return attach(sequence, convert(exit_))

            converted = PMTree(operator=mapping[node.operator])
            for child in node.children:
                attach(converted, convert(child))
            return converted

        return convert(self.root if index is None else index)
