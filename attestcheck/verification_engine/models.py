"""
Data structures for the attestation verification engine.

Implements the fixed-shape records exchanged between engine passes:
- AttestationExtraction: fields read from the uploaded attestation
- QuoteReference: company/project snapshot taken from the quote analysis
- AttestationComparison: per-field statuses with derived global coherence
- ComparisonStatus / Severity enums (wire values match the stored records)
"""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class AttestationCategory(str, Enum):
    """Insurance category reported by the extraction step."""
    DECENNALE = "decennale"
    RC_PRO = "rc_pro"
    OTHER = "autre"


class AttestationType(str, Enum):
    """Attestation types a caller may submit."""
    DECENNALE = "decennale"
    RC_PRO = "rc_pro"

    @property
    def sibling(self) -> "AttestationType":
        if self is AttestationType.DECENNALE:
            return AttestationType.RC_PRO
        return AttestationType.DECENNALE


class ComparisonStatus(str, Enum):
    """Outcome of comparing one attestation field with the quote."""
    CONSISTENT = "OK"
    INCOMPLETE = "INCOMPLET"
    INCONSISTENT = "INCOHERENT"
    UNAVAILABLE = "NON_DISPONIBLE"


class Severity(str, Enum):
    """Three-colour verdict, ordered green < amber < red."""
    GREEN = "VERT"
    AMBER = "ORANGE"
    RED = "ROUGE"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {Severity.GREEN: 0, Severity.AMBER: 1, Severity.RED: 2}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class AttestationExtraction:
    """Structured fields pulled out of one attestation document."""
    type_assurance: AttestationCategory = AttestationCategory.OTHER
    nom_entreprise_assuree: str = ""
    siret_ou_siren: str = ""
    adresse_assuree: str = ""
    assureur: str = ""
    numero_contrat: str = ""
    date_debut_couverture: str = ""
    date_fin_couverture: str = ""
    activites_couvertes: str = ""
    document_lisible: bool = False

    @classmethod
    def empty(cls) -> "AttestationExtraction":
        """Record used when the document could not be read."""
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttestationExtraction":
        try:
            category = AttestationCategory(data.get("type_assurance") or "autre")
        except ValueError:
            category = AttestationCategory.OTHER
        return cls(
            type_assurance=category,
            nom_entreprise_assuree=_text(data.get("nom_entreprise_assuree")),
            siret_ou_siren=_text(data.get("siret_ou_siren")),
            adresse_assuree=_text(data.get("adresse_assuree")),
            assureur=_text(data.get("assureur")),
            numero_contrat=_text(data.get("numero_contrat")),
            date_debut_couverture=_text(data.get("date_debut_couverture")),
            date_fin_couverture=_text(data.get("date_fin_couverture")),
            activites_couvertes=_text(data.get("activites_couvertes")),
            document_lisible=bool(data.get("document_lisible")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type_assurance"] = self.type_assurance.value
        return data


@dataclass(frozen=True)
class QuoteReference:
    """Company and project information already extracted from the quote."""
    nom_entreprise: str = ""
    siret: str = ""
    adresse: str = ""
    categorie_travaux: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "QuoteReference":
        data = data or {}
        return cls(
            nom_entreprise=_text(data.get("nom_entreprise")),
            siret=_text(data.get("siret")),
            adresse=_text(data.get("adresse")),
            categorie_travaux=_text(data.get("categorie_travaux")),
        )


@dataclass(frozen=True)
class AttestationComparison:
    """
    Per-field comparison statuses.

    ``coherence_globale`` is derived from the five fields on access and is
    only written out by ``to_dict`` for consumers of the stored record.
    """
    nom_entreprise: ComparisonStatus = ComparisonStatus.UNAVAILABLE
    siret_siren: ComparisonStatus = ComparisonStatus.UNAVAILABLE
    adresse: ComparisonStatus = ComparisonStatus.UNAVAILABLE
    periode_validite: ComparisonStatus = ComparisonStatus.UNAVAILABLE
    activite_couverte: ComparisonStatus = ComparisonStatus.UNAVAILABLE

    @property
    def field_statuses(self) -> Tuple[ComparisonStatus, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    @property
    def coherence_globale(self) -> ComparisonStatus:
        from attestcheck.verification_engine.aggregation import aggregate_coherence

        return aggregate_coherence(self.field_statuses)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttestationComparison":
        """Rebuild from a stored record; unknown or missing values are unavailable."""
        values = {}
        for f in fields(cls):
            try:
                values[f.name] = ComparisonStatus(data.get(f.name))
            except ValueError:
                values[f.name] = ComparisonStatus.UNAVAILABLE
        return cls(**values)

    def to_dict(self) -> Dict[str, str]:
        data = {f.name: getattr(self, f.name).value for f in fields(self)}
        data["coherence_globale"] = self.coherence_globale.value
        return data
