"""
Exceptions de la découverte
===========================

L'annulation n'est pas une erreur: elle se traduit par un résultat ``None``.
"""


class MiningError(Exception):
    """Erreur fatale interrompant la découverte."""


class UnknownOperatorError(MiningError):
    """Une coupe porte un opérateur sans nœud correspondant."""

    def __init__(self, operator):
        self.operator = operator
        super().__init__(f"Opérateur de coupe inconnu: {operator!r}")


class SplitError(MiningError):
    """Le découpage du log a produit un résultat incohérent."""
