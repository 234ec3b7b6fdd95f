"""
Taxonomie des erreurs du moteur.

Les violations bloquantes et les avertissements ne sont pas des exceptions :
ce sont des RuleFinding (blocking=True/False). Les exceptions sont réservées
aux entrées mal formées et aux échecs de calcul.
"""


class EngineError(Exception):
    """Base class for all engine errors."""


class StructuralInputError(EngineError, ValueError):
    """Intervention mal formée (ex. segments de garde qui ne couvrent pas 24h)."""


class ComputationFailure(EngineError):
    """Échec d'une règle ou du calcul de paie."""


class InvalidTransition(EngineError):
    """Changement de statut d'absence non autorisé."""
