"""
PCH (Prestation de Compensation du Handicap), élément aide humaine.
Tarifs horaires 2026 par mode d'intervention.
"""
import enum

from app.engine.errors import StructuralInputError


class PchType(str, enum.Enum):
    EMPLOI_DIRECT = "emploi_direct"
    MANDATAIRE = "mandataire"
    PRESTATAIRE = "prestataire"
    AIDANT_FAMILIAL = "aidant_familial"
    AIDANT_FAMILIAL_CESSATION = "aidant_familial_cessation"


PCH_TARIFFS_2026 = {
    PchType.EMPLOI_DIRECT:             19.34,
    PchType.MANDATAIRE:                21.27,
    PchType.PRESTATAIRE:               25.00,
    PchType.AIDANT_FAMILIAL:            4.78,
    PchType.AIDANT_FAMILIAL_CESSATION:  7.16,
}

PCH_TYPE_LABELS = {
    PchType.EMPLOI_DIRECT:             "Emploi direct",
    PchType.MANDATAIRE:                "Mandataire",
    PchType.PRESTATAIRE:               "Prestataire",
    PchType.AIDANT_FAMILIAL:           "Aidant familial",
    PchType.AIDANT_FAMILIAL_CESSATION: "Aidant familial (cessation d'activité)",
}


def benefit_rate(kind: PchType | str) -> float:
    try:
        return PCH_TARIFFS_2026[PchType(kind)]
    except ValueError as exc:
        raise StructuralInputError(f"Type PCH inconnu : {kind!r}") from exc


def benefit_envelope(hours: float, kind: PchType | str = PchType.EMPLOI_DIRECT) -> float:
    """Enveloppe mensuelle = heures PCH × tarif, arrondie au centime."""
    if hours < 0:
        raise StructuralInputError("Le nombre d'heures PCH ne peut pas être négatif")
    return round(hours * benefit_rate(kind), 2)
