"""
Attestation verification engine.

Deterministic comparison of an insurance attestation with the company and
project data of a renovation quote:

1. Extraction - vision model reads the attestation (never fails the request)
2. Comparison - five pure field comparators
3. Aggregation - global coherence and three-colour score
4. Reconciliation - worst-of-two across decennial and liability attestations
"""

from attestcheck.verification_engine.aggregation import (
    aggregate_coherence,
    explain_comparison,
    score_comparison,
    score_for,
)
from attestcheck.verification_engine.comparators import compare_attestation
from attestcheck.verification_engine.models import (
    AttestationCategory,
    AttestationComparison,
    AttestationExtraction,
    AttestationType,
    ComparisonStatus,
    QuoteReference,
    Severity,
)
from attestcheck.verification_engine.reconciliation import reconcile, worst_severity

__all__ = [
    "aggregate_coherence",
    "compare_attestation",
    "explain_comparison",
    "reconcile",
    "score_comparison",
    "score_for",
    "worst_severity",
    "AttestationCategory",
    "AttestationComparison",
    "AttestationExtraction",
    "AttestationType",
    "ComparisonStatus",
    "QuoteReference",
    "Severity",
]
