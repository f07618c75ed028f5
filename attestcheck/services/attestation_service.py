"""
Attestation analysis service.

Validates an attestation analysis request, runs extraction, comparison and
scoring, then merges the result into the analysis record.
"""
import base64
import binascii
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from attestcheck.config import Settings, get_settings
from attestcheck.exceptions import (
    AttestationValidationError,
    FileTooLargeError,
    InvalidAttestationTypeError,
)
from attestcheck.schemas.attestation import AttestationAnalysisRequest
from attestcheck.services.analysis_store import AnalysisStore
from attestcheck.verification_engine.aggregation import explain_comparison, score_comparison
from attestcheck.verification_engine.comparators import compare_attestation
from attestcheck.verification_engine.extraction import ExtractionOracle
from attestcheck.verification_engine.models import (
    AttestationComparison,
    AttestationExtraction,
    AttestationType,
    QuoteReference,
    Severity,
)
from attestcheck.verification_engine.reconciliation import stored_score, worst_severity

logger = structlog.get_logger(__name__)

SUCCESS_MESSAGE = "Attestation analysée avec succès"

# Characters of the payload kept in the stored document reference
DOCUMENT_REFERENCE_PREFIX_LENGTH = 100


@dataclass(frozen=True)
class ValidatedAttestationRequest:
    """Attestation request that passed every input check."""
    analysis_id: uuid.UUID
    attestation_type: AttestationType
    content: bytes
    mime_type: str
    quote: QuoteReference
    document_reference: str


@dataclass(frozen=True)
class AttestationAnalysisResult:
    """Outcome of one attestation analysis."""
    extraction: AttestationExtraction
    comparison: AttestationComparison
    score: Severity
    overall_level2_score: Severity

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "extraction": self.extraction.to_dict(),
            "comparison": self.comparison.to_dict(),
            "score": self.score.value,
            "overallLevel2Score": self.overall_level2_score.value,
            "message": SUCCESS_MESSAGE,
        }


def parse_analysis_id(value: Optional[str]) -> Optional[uuid.UUID]:
    """Parse a canonical hyphenated UUID, None if malformed."""
    if not value:
        return None
    try:
        parsed = uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return None
    if str(parsed) != value.lower():
        return None
    return parsed


def max_encoded_length(max_bytes: int) -> int:
    """Longest base64 string whose decoded size can fit in ``max_bytes``."""
    return math.ceil(max_bytes / 3) * 4


def validate_request(payload: Any, settings: Optional[Settings] = None) -> ValidatedAttestationRequest:
    """
    Validate a raw attestation analysis request.

    Checks, in order: required parameters and analysis id, payload size,
    base64 encoding, attestation type.

    Args:
        payload: Decoded JSON body.
        settings: Application settings.

    Returns:
        ValidatedAttestationRequest.

    Raises:
        AttestationValidationError: Missing/malformed parameter (400).
        FileTooLargeError: Decoded document above the ceiling (413).
        InvalidAttestationTypeError: Unknown attestation type (400).
    """
    settings = settings or get_settings()

    if not isinstance(payload, dict):
        raise AttestationValidationError(errors=["Request body must be a JSON object"])

    try:
        request = AttestationAnalysisRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise AttestationValidationError(
            errors=[".".join(str(p) for p in err["loc"]) for err in e.errors()],
        )

    missing = [
        alias for alias, value in (
            ("analysisId", request.analysis_id),
            ("attestationType", request.attestation_type),
            ("fileBase64", request.file_base64),
            ("mimeType", request.mime_type),
        )
        if not value
    ]
    if missing:
        raise AttestationValidationError(errors=[f"Missing parameter: {name}" for name in missing])

    analysis_id = parse_analysis_id(request.analysis_id)
    if analysis_id is None:
        raise AttestationValidationError(errors=["analysisId must be a UUID"])

    max_size = settings.max_attestation_size_bytes
    encoded = request.file_base64
    if len(encoded) > max_encoded_length(max_size):
        raise FileTooLargeError(size=len(encoded) * 3 // 4, max_size=max_size)

    try:
        content = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise AttestationValidationError(errors=["fileBase64 is not valid base64"])

    if len(content) > max_size:
        raise FileTooLargeError(size=len(content), max_size=max_size)

    try:
        attestation_type = AttestationType(request.attestation_type)
    except ValueError:
        raise InvalidAttestationTypeError(
            request.attestation_type,
            expected_types=[t.value for t in AttestationType],
        )

    quote = QuoteReference.from_dict(request.quote_info.model_dump() if request.quote_info else None)

    return ValidatedAttestationRequest(
        analysis_id=analysis_id,
        attestation_type=attestation_type,
        content=content,
        mime_type=request.mime_type,
        quote=quote,
        document_reference=(
            f"data:{request.mime_type};base64,{encoded[:DOCUMENT_REFERENCE_PREFIX_LENGTH]}..."
        ),
    )


class AttestationService:
    """
    Runs the attestation verification pipeline for one upload.

    Extraction never fails the request; only invalid input and persistence
    failures are terminal.
    """

    def __init__(
        self,
        db: Session,
        oracle: ExtractionOracle,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._settings = settings or get_settings()
        self._oracle = oracle
        self._store = AnalysisStore(db, max_retries=self._settings.store_max_retries)
        self._clock = clock

    def analyze(self, payload: Any) -> AttestationAnalysisResult:
        """
        Analyze an attestation upload.

        Args:
            payload: Decoded JSON request body.

        Returns:
            AttestationAnalysisResult with the per-type and overall scores.
        """
        request = validate_request(payload, self._settings)

        logger.info(
            "attestation_analysis_started",
            analysis_id=str(request.analysis_id),
            attestation_type=request.attestation_type.value,
            mime_type=request.mime_type,
            size=len(request.content),
        )

        # Fail fast on an unknown record before paying for extraction
        self._store.ensure_exists(request.analysis_id)

        extraction = self._oracle.extract(request.content, request.mime_type)
        if not extraction.document_lisible:
            logger.warning(
                "attestation_unreadable",
                analysis_id=str(request.analysis_id),
                attestation_type=request.attestation_type.value,
            )

        comparison = compare_attestation(extraction, request.quote, now=self._clock())
        score = score_comparison(comparison)

        logger.info(
            "attestation_scored",
            analysis_id=str(request.analysis_id),
            attestation_type=request.attestation_type.value,
            coherence_globale=comparison.coherence_globale.value,
            score=score.value,
            **explain_comparison(comparison),
        )

        overall = self._store.merge_attestation(
            request.analysis_id,
            request.attestation_type,
            extraction,
            comparison,
            score,
            document_reference=request.document_reference,
        )

        return AttestationAnalysisResult(
            extraction=extraction,
            comparison=comparison,
            score=score,
            overall_level2_score=overall,
        )


def stored_attestation_results(db: Session, analysis_id: uuid.UUID) -> Dict[str, Any]:
    """
    Stored attestation results of an analysis with re-derived scores.

    Raises:
        AnalysisNotFoundError: If the record does not exist.
    """
    analysis = AnalysisStore(db).get(analysis_id)
    extractions = analysis.attestation_analysis or {}
    comparisons = analysis.attestation_comparison or {}

    attestations: Dict[str, Any] = {}
    scores = []
    for attestation_type in AttestationType:
        record = comparisons.get(attestation_type.value)
        if not record:
            continue
        comparison = AttestationComparison.from_dict(record)
        score = stored_score(comparisons, attestation_type)
        scores.append(score)

        extraction = extractions.get(attestation_type.value)
        attestations[attestation_type.value] = {
            "extraction": (
                AttestationExtraction.from_dict(extraction).to_dict() if extraction else None
            ),
            "comparison": comparison.to_dict(),
            "score": score.value,
            "explanation": explain_comparison(comparison),
        }

    overall = worst_severity(*scores)
    return {
        "analysis_id": str(analysis.id),
        "assurance_source": analysis.assurance_source,
        "attestations": attestations,
        "overall_level2_score": overall.value if overall else None,
    }
