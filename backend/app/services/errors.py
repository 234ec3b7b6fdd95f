"""
Exceptions du service layer, traduites en HTTPException par les routers.
"""


class NotFoundError(LookupError):
    pass


class ShiftRejected(Exception):
    """Intervention refusée : erreurs bloquantes ou avertissements non acquittés."""

    def __init__(self, evaluation, alternatives=()):
        super().__init__("Intervention refusée")
        self.evaluation = evaluation
        self.alternatives = list(alternatives)


class AbsenceRejected(Exception):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
