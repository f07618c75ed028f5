"""
Pydantic schemas for attestation API endpoints.

Field names follow the JSON contract shared with the front end (camelCase
request keys, French record keys).
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuoteInfo(BaseModel):
    """Company and project snapshot extracted from the quote."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    nom_entreprise: Optional[str] = Field(None, description="Company name on the quote")
    siret: Optional[str] = Field(None, description="SIRET on the quote")
    adresse: Optional[str] = Field(None, description="Company address on the quote")
    categorie_travaux: Optional[str] = Field(None, description="Work category of the quote")


class AttestationAnalysisRequest(BaseModel):
    """
    Raw attestation analysis request.

    Every field is optional at this level so that missing parameters are
    reported as a 400 by the service rather than a schema error.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    analysis_id: Optional[str] = Field(None, alias="analysisId", description="Analysis record UUID")
    attestation_type: Optional[str] = Field(None, alias="attestationType", description="decennale or rc_pro")
    file_base64: Optional[str] = Field(None, alias="fileBase64", description="Base64-encoded document")
    mime_type: Optional[str] = Field(None, alias="mimeType", description="Document media type")
    quote_info: Optional[QuoteInfo] = Field(None, alias="quoteInfo", description="Quote reference snapshot")


class ExtractionResponse(BaseModel):
    """Fields extracted from the attestation."""

    type_assurance: str = Field(..., description="decennale, rc_pro or autre")
    nom_entreprise_assuree: str
    siret_ou_siren: str
    adresse_assuree: str
    assureur: str
    numero_contrat: str
    date_debut_couverture: str
    date_fin_couverture: str
    activites_couvertes: str
    document_lisible: bool = Field(..., description="Whether the document could be read")


class ComparisonResponse(BaseModel):
    """Per-field comparison statuses (OK, INCOMPLET, INCOHERENT, NON_DISPONIBLE)."""

    nom_entreprise: str
    siret_siren: str
    adresse: str
    periode_validite: str
    activite_couverte: str
    coherence_globale: str


class AttestationAnalysisResponse(BaseModel):
    """Response model for an attestation analysis."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    extraction: ExtractionResponse
    comparison: ComparisonResponse
    score: str = Field(..., description="Score of this attestation (VERT, ORANGE, ROUGE)")
    overall_level2_score: str = Field(
        ...,
        alias="overallLevel2Score",
        description="Worst score across decennial and liability attestations",
    )
    message: str


class VerdictExplanation(BaseModel):
    """Fields behind a non-green verdict."""

    inconsistent: List[str] = Field(default_factory=list)
    unconfirmed: List[str] = Field(default_factory=list)


class StoredAttestationResponse(BaseModel):
    """Stored result for one attestation type."""

    extraction: Optional[ExtractionResponse] = None
    comparison: ComparisonResponse
    score: str
    explanation: VerdictExplanation


class AnalysisAttestationsResponse(BaseModel):
    """All stored attestation results of an analysis."""

    analysis_id: str
    assurance_source: Optional[str] = None
    attestations: Dict[str, StoredAttestationResponse] = Field(default_factory=dict)
    overall_level2_score: Optional[str] = None


class ErrorResponse(BaseModel):
    """Response model for API errors."""

    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict] = Field(None, description="Additional error details")
