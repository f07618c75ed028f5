"""
Attestation API routes.

Provides endpoints for insurance attestation analysis and stored results.
"""
import json
import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from attestcheck.database import get_db
from attestcheck.exceptions import AttestationValidationError
from attestcheck.middleware.rate_limit import analysis_rate_limit
from attestcheck.schemas.attestation import (
    AnalysisAttestationsResponse,
    AttestationAnalysisResponse,
    ErrorResponse,
)
from attestcheck.services.attestation_service import AttestationService, stored_attestation_results
from attestcheck.verification_engine.extraction import ExtractionOracle, get_extraction_oracle

router = APIRouter()


@router.post(
    "/analyze-attestation",
    response_model=AttestationAnalysisResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid parameters"},
        404: {"model": ErrorResponse, "description": "Analysis not found"},
        413: {"model": ErrorResponse, "description": "File too large"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Persistence or unexpected error"},
    },
    summary="Analyze an insurance attestation",
    description=(
        "Extract a decennial or professional-liability attestation and check it "
        "against the company information of the quote analysis."
    ),
)
@analysis_rate_limit()
async def analyze_attestation(
    request: Request,
    db: Session = Depends(get_db),
    oracle: ExtractionOracle = Depends(get_extraction_oracle),
) -> AttestationAnalysisResponse:
    """
    Analyze one attestation upload.

    Args:
        request: JSON body with analysisId, attestationType, fileBase64,
            mimeType and quoteInfo.
        db: Database session.
        oracle: Extraction oracle.

    Returns:
        AttestationAnalysisResponse with extraction, comparison and scores.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise AttestationValidationError(errors=["Request body must be valid JSON"])

    service = AttestationService(db, oracle)

    # Extraction and database work are blocking
    result = await run_in_threadpool(service.analyze, payload)

    return AttestationAnalysisResponse.model_validate(result.to_response())


@router.get(
    "/analyses/{analysis_id}/attestations",
    response_model=AnalysisAttestationsResponse,
    responses={404: {"model": ErrorResponse, "description": "Analysis not found"}},
    summary="Get stored attestation results",
    description="Retrieve per-type attestation results and the overall level-2 score of an analysis.",
)
def get_analysis_attestations(
    analysis_id: uuid.UUID,
    db: Session = Depends(get_db),
) -> AnalysisAttestationsResponse:
    """
    Get stored attestation results of an analysis.

    Args:
        analysis_id: Analysis UUID.
        db: Database session.

    Returns:
        Stored extractions, comparisons and re-derived scores.
    """
    return AnalysisAttestationsResponse.model_validate(stored_attestation_results(db, analysis_id))
