"""
Coherence aggregation and scoring.

Reduces the five field statuses of an attestation comparison to one global
status and a three-colour score.
"""

from typing import Dict, List, Sequence

from attestcheck.verification_engine.models import (
    AttestationComparison,
    ComparisonStatus,
    Severity,
)

MIN_CONSISTENT_FIELDS = 3
MAX_INCOMPLETE_FIELDS = 2


def aggregate_coherence(statuses: Sequence[ComparisonStatus]) -> ComparisonStatus:
    """
    Derive the global coherence of an attestation.

    Rules, first match wins:
    1. any field INCONSISTENT -> INCONSISTENT
    2. at least 3 fields CONSISTENT -> CONSISTENT
    3. more than 2 fields INCOMPLETE -> INCOMPLETE
    4. otherwise -> CONSISTENT
    """
    if ComparisonStatus.INCONSISTENT in statuses:
        return ComparisonStatus.INCONSISTENT

    consistent_count = sum(1 for s in statuses if s is ComparisonStatus.CONSISTENT)
    if consistent_count >= MIN_CONSISTENT_FIELDS:
        return ComparisonStatus.CONSISTENT

    incomplete_count = sum(1 for s in statuses if s is ComparisonStatus.INCOMPLETE)
    if incomplete_count > MAX_INCOMPLETE_FIELDS:
        return ComparisonStatus.INCOMPLETE

    # TODO: confirm with product whether this fallback should read as INCOMPLETE
    return ComparisonStatus.CONSISTENT


def score_for(global_coherence: ComparisonStatus) -> Severity:
    """Map a global coherence status to a severity."""
    if global_coherence is ComparisonStatus.INCONSISTENT:
        return Severity.RED
    if global_coherence is ComparisonStatus.CONSISTENT:
        return Severity.GREEN
    return Severity.AMBER


def score_comparison(comparison: AttestationComparison) -> Severity:
    return score_for(comparison.coherence_globale)


def explain_comparison(comparison: AttestationComparison) -> Dict[str, List[str]]:
    """
    List the fields behind a verdict.

    Returns:
        Dict with ``inconsistent`` fields (explain a red score) and
        ``unconfirmed`` fields, incomplete or unavailable (explain amber).
    """
    data = comparison.to_dict()
    data.pop("coherence_globale")

    return {
        "inconsistent": [
            name for name, value in data.items()
            if value == ComparisonStatus.INCONSISTENT.value
        ],
        "unconfirmed": [
            name for name, value in data.items()
            if value in (ComparisonStatus.INCOMPLETE.value, ComparisonStatus.UNAVAILABLE.value)
        ],
    }
