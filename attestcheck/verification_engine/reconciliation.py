"""
Cross-attestation reconciliation.

Combines the decennial and professional-liability verdicts of one quote
analysis into the overall level-2 score.
"""

from typing import Any, Mapping, Optional

import structlog

from attestcheck.verification_engine.aggregation import score_comparison
from attestcheck.verification_engine.models import (
    AttestationComparison,
    AttestationType,
    Severity,
)

logger = structlog.get_logger(__name__)


def worst_severity(*scores: Optional[Severity]) -> Optional[Severity]:
    """Worst of the given scores (red > amber > green), None if all absent."""
    present = [s for s in scores if s is not None]
    if not present:
        return None
    return max(present)


def stored_score(
    comparisons: Optional[Mapping[str, Any]],
    attestation_type: AttestationType,
) -> Optional[Severity]:
    """
    Re-derive the score of a stored comparison.

    Args:
        comparisons: Stored comparison map keyed by attestation type.
        attestation_type: Type to look up.

    Returns:
        Severity of that type, or None if it was never analyzed.
    """
    if not comparisons:
        return None
    record = comparisons.get(attestation_type.value)
    if not record:
        return None
    return score_comparison(AttestationComparison.from_dict(record))


def reconcile(
    attestation_type: AttestationType,
    score: Severity,
    stored_comparisons: Optional[Mapping[str, Any]],
) -> Severity:
    """
    Overall level-2 score after analyzing ``attestation_type``.

    Only the sibling type is read from ``stored_comparisons``; the submitted
    type's own prior record is superseded by ``score``.
    """
    sibling_score = stored_score(stored_comparisons, attestation_type.sibling)
    overall = worst_severity(score, sibling_score)

    logger.debug(
        "attestation_reconciled",
        attestation_type=attestation_type.value,
        score=score.value,
        sibling_score=sibling_score.value if sibling_score else None,
        overall=overall.value,
    )
    return overall
