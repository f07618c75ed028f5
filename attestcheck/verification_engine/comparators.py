"""
Field comparators for attestation-to-quote verification.

Each comparator is a pure function of (attestation value, quote value) and
returns a ComparisonStatus. Missing attestation data reads as INCOMPLETE;
missing quote data with attestation data present reads as UNAVAILABLE.
"""

from datetime import datetime
from typing import Dict, List, Optional

import structlog

from attestcheck.verification_engine.models import (
    AttestationComparison,
    AttestationExtraction,
    ComparisonStatus,
    QuoteReference,
)
from attestcheck.verification_engine.normalization import (
    clean_identifier,
    extract_postal_code,
    jaccard_similarity,
    normalize_text,
    parse_coverage_date,
    siren_of,
)

logger = structlog.get_logger(__name__)

NAME_CONSISTENT_THRESHOLD = 0.7
NAME_INCOMPLETE_THRESHOLD = 0.4

ADDRESS_CONSISTENT_THRESHOLD = 0.5
ADDRESS_INCOMPLETE_THRESHOLD = 0.3

# Quote work category -> keywords expected in the covered activities
WORK_TYPE_KEYWORDS: Dict[str, List[str]] = {
    "toiture": ["toiture", "couverture", "toit", "charpente"],
    "charpente": ["charpente", "bois", "structure"],
    "maconnerie": ["maçonnerie", "maconnerie", "mur", "béton", "beton"],
    "peinture": ["peinture", "revêtement", "revetement", "finition"],
    "plomberie": ["plomberie", "sanitaire", "eau"],
    "electricite": ["électricité", "electricite", "électrique", "electrique"],
    "isolation": ["isolation", "thermique", "acoustique"],
    "carrelage": ["carrelage", "revêtement", "sol"],
    "menuiserie": ["menuiserie", "bois", "fenêtre", "fenetre", "porte"],
    "chauffage": ["chauffage", "climatisation", "ventilation", "hvac"],
}

GENERAL_COVERAGE_TERMS = [
    "bâtiment",
    "batiment",
    "construction",
    "travaux",
    "tous corps d'état",
    "tce",
]


def _missing_status(attestation_value: str) -> ComparisonStatus:
    if not attestation_value:
        return ComparisonStatus.INCOMPLETE
    return ComparisonStatus.UNAVAILABLE


def compare_company_name(attestation_name: str, quote_name: str) -> ComparisonStatus:
    """Fuzzy company name match (equality, containment, then Jaccard)."""
    if not attestation_name or not quote_name:
        return _missing_status(attestation_name)

    normalized_attestation = normalize_text(attestation_name)
    normalized_quote = normalize_text(quote_name)

    if normalized_attestation == normalized_quote:
        return ComparisonStatus.CONSISTENT

    # Containment in either direction ("SARL Dupont" vs "Dupont"). A name with
    # no [a-z0-9] character normalizes to "" and is contained in any name.
    if normalized_quote in normalized_attestation or normalized_attestation in normalized_quote:
        return ComparisonStatus.CONSISTENT

    similarity = jaccard_similarity(normalized_attestation, normalized_quote)
    if similarity > NAME_CONSISTENT_THRESHOLD:
        return ComparisonStatus.CONSISTENT
    if similarity > NAME_INCOMPLETE_THRESHOLD:
        return ComparisonStatus.INCOMPLETE
    return ComparisonStatus.INCONSISTENT


def compare_siret(attestation_identifier: str, quote_siret: str) -> ComparisonStatus:
    """
    Compare SIRET/SIREN identifiers.

    A different establishment of the same legal entity (shared SIREN) is
    consistent.
    """
    if not attestation_identifier or not quote_siret:
        return _missing_status(attestation_identifier)

    clean_attestation = clean_identifier(attestation_identifier)
    clean_quote = clean_identifier(quote_siret)

    if clean_attestation == clean_quote:
        return ComparisonStatus.CONSISTENT
    if siren_of(clean_attestation) == siren_of(clean_quote):
        return ComparisonStatus.CONSISTENT
    return ComparisonStatus.INCONSISTENT


def compare_address(attestation_address: str, quote_address: str) -> ComparisonStatus:
    """Fuzzy address match with a postal-code fallback."""
    if not attestation_address or not quote_address:
        return _missing_status(attestation_address)

    similarity = jaccard_similarity(
        normalize_text(attestation_address),
        normalize_text(quote_address),
    )
    if similarity > ADDRESS_CONSISTENT_THRESHOLD:
        return ComparisonStatus.CONSISTENT
    if similarity > ADDRESS_INCOMPLETE_THRESHOLD:
        return ComparisonStatus.INCOMPLETE

    postal_code_attestation = extract_postal_code(attestation_address)
    postal_code_quote = extract_postal_code(quote_address)
    if postal_code_attestation and postal_code_attestation == postal_code_quote:
        return ComparisonStatus.CONSISTENT
    return ComparisonStatus.INCONSISTENT


def compare_validity_period(
    coverage_end: str,
    now: Optional[datetime] = None,
) -> ComparisonStatus:
    """
    Check the coverage end date against the current time.

    Args:
        coverage_end: End of coverage as extracted (free-form).
        now: Reference time, defaults to the local current time.

    Returns:
        CONSISTENT if still covered, INCONSISTENT if expired, INCOMPLETE if
        the date is absent or unreadable.
    """
    end_date = parse_coverage_date(coverage_end)
    if end_date is None:
        return ComparisonStatus.INCOMPLETE

    now = now or datetime.now()
    if end_date > now:
        return ComparisonStatus.CONSISTENT
    return ComparisonStatus.INCONSISTENT


def work_type_keywords(work_category: str) -> List[str]:
    """Keywords for a quote work category, the category itself if unmapped."""
    category = (work_category or "").lower()
    for key, keywords in WORK_TYPE_KEYWORDS.items():
        if key in category:
            return keywords
    return [category]


def compare_activity_coverage(covered_activities: str, work_category: str) -> ComparisonStatus:
    """Infer whether the covered activities include the quoted work."""
    if not covered_activities or not work_category:
        return _missing_status(covered_activities)

    activities = covered_activities.lower()

    if any(keyword in activities for keyword in work_type_keywords(work_category)):
        return ComparisonStatus.CONSISTENT

    if any(term in activities for term in GENERAL_COVERAGE_TERMS):
        return ComparisonStatus.CONSISTENT

    # Cannot confirm, not necessarily wrong
    return ComparisonStatus.INCOMPLETE


def compare_attestation(
    extraction: AttestationExtraction,
    quote: QuoteReference,
    now: Optional[datetime] = None,
) -> AttestationComparison:
    """
    Run the five field comparators.

    Args:
        extraction: Fields read from the attestation.
        quote: Reference snapshot from the quote analysis.
        now: Reference time for the validity check.

    Returns:
        AttestationComparison with per-field statuses.
    """
    comparison = AttestationComparison(
        nom_entreprise=compare_company_name(extraction.nom_entreprise_assuree, quote.nom_entreprise),
        siret_siren=compare_siret(extraction.siret_ou_siren, quote.siret),
        adresse=compare_address(extraction.adresse_assuree, quote.adresse),
        periode_validite=compare_validity_period(extraction.date_fin_couverture, now=now),
        activite_couverte=compare_activity_coverage(extraction.activites_couvertes, quote.categorie_travaux),
    )

    logger.debug("attestation_compared", **comparison.to_dict())
    return comparison

