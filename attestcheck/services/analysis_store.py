"""
Analysis store for attestation results.

Merges one attestation type's extraction and comparison into the shared
analysis record without touching the sibling type, and keeps the overall
level-2 score in step. Concurrent merges on the same record are resolved
with optimistic concurrency (version counter + bounded retry).
"""
import uuid
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from attestcheck.config import get_settings
from attestcheck.exceptions import (
    AnalysisNotFoundError,
    ConcurrentUpdateError,
    PersistenceError,
)
from attestcheck.models.analysis import Analysis
from attestcheck.verification_engine.models import (
    AttestationComparison,
    AttestationExtraction,
    AttestationType,
    Severity,
)
from attestcheck.verification_engine.reconciliation import reconcile

logger = structlog.get_logger(__name__)

ASSURANCE_SOURCE_WITH_ATTESTATION = "devis+attestation"

DOCUMENT_REFERENCE_COLUMNS = {
    AttestationType.DECENNALE: "attestation_decennale_url",
    AttestationType.RC_PRO: "attestation_rcpro_url",
}


class AnalysisStore:
    """Read and merge attestation results on analysis records."""

    def __init__(self, db: Session, max_retries: Optional[int] = None):
        """
        Initialize the store.

        Args:
            db: Database session.
            max_retries: Merge attempts before giving up on a contended record.
        """
        self._db = db
        self._max_retries = max_retries if max_retries is not None else get_settings().store_max_retries

    def get(self, analysis_id: uuid.UUID) -> Analysis:
        """
        Load an analysis record, bypassing any stale identity-map copy.

        Raises:
            AnalysisNotFoundError: If no record has this id.
        """
        analysis = (
            self._db.query(Analysis)
            .populate_existing()
            .filter(Analysis.id == analysis_id)
            .first()
        )
        if analysis is None:
            raise AnalysisNotFoundError(str(analysis_id))
        return analysis

    def ensure_exists(self, analysis_id: uuid.UUID) -> None:
        """
        Check that a record exists, then end the read transaction.

        Releases the pooled connection so it is not held across the
        extraction call.

        Raises:
            AnalysisNotFoundError: If no record has this id.
        """
        try:
            self.get(analysis_id)
        finally:
            self._db.rollback()

    def merge_attestation(
        self,
        analysis_id: uuid.UUID,
        attestation_type: AttestationType,
        extraction: AttestationExtraction,
        comparison: AttestationComparison,
        score: Severity,
        document_reference: Optional[str] = None,
    ) -> Severity:
        """
        Upsert one attestation type's results and recompute the overall score.

        Args:
            analysis_id: Target analysis record.
            attestation_type: Type being (re-)analyzed; its sub-record is replaced.
            extraction: New extraction for this type.
            comparison: New comparison for this type.
            score: Score of this type.
            document_reference: Short reference to the uploaded document.

        Returns:
            Overall level-2 score written to the record.

        Raises:
            AnalysisNotFoundError: If the record does not exist.
            ConcurrentUpdateError: If every attempt lost a concurrent update.
            PersistenceError: On any other database failure.
        """
        type_key = attestation_type.value

        for attempt in range(1, self._max_retries + 1):
            try:
                analysis = self.get(analysis_id)

                overall = reconcile(attestation_type, score, analysis.attestation_comparison)

                # New dict objects so the JSON columns are flagged as changed
                analysis.attestation_analysis = {
                    **(analysis.attestation_analysis or {}),
                    type_key: extraction.to_dict(),
                }
                analysis.attestation_comparison = {
                    **(analysis.attestation_comparison or {}),
                    type_key: comparison.to_dict(),
                }
                analysis.assurance_source = ASSURANCE_SOURCE_WITH_ATTESTATION
                if document_reference is not None:
                    setattr(analysis, DOCUMENT_REFERENCE_COLUMNS[attestation_type], document_reference)
                analysis.assurance_level2_score = overall.value

                self._db.commit()

            except StaleDataError:
                self._db.rollback()
                logger.warning(
                    "analysis_merge_conflict",
                    analysis_id=str(analysis_id),
                    attestation_type=type_key,
                    attempt=attempt,
                )
                continue

            except AnalysisNotFoundError:
                self._db.rollback()
                raise

            except SQLAlchemyError as e:
                self._db.rollback()
                logger.error(
                    "analysis_merge_failed",
                    analysis_id=str(analysis_id),
                    attestation_type=type_key,
                    error=str(e),
                )
                raise PersistenceError(details={"analysis_id": str(analysis_id)}) from e

            logger.info(
                "analysis_merged",
                analysis_id=str(analysis_id),
                attestation_type=type_key,
                score=score.value,
                overall_level2_score=overall.value,
                attempt=attempt,
            )
            return overall

        raise ConcurrentUpdateError(str(analysis_id), self._max_retries)
