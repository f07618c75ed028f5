"""
Text, identifier and date normalization helpers for attestation comparison.
"""

import re
from datetime import datetime
from typing import Optional

import structlog
from dateutil import parser as date_parser

logger = structlog.get_logger(__name__)

NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
WHITESPACE = re.compile(r"\s")
POSTAL_CODE = re.compile(r"\b(\d{5})\b")

# French day-first date, searched anywhere in the string
DAY_FIRST_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
ISO_DATE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")

SIREN_LENGTH = 9


def normalize_text(value: str) -> str:
    """Lowercase and drop every character outside [a-z0-9]."""
    return NON_ALPHANUMERIC.sub("", (value or "").lower())


def clean_identifier(value: str) -> str:
    """Remove all whitespace from a SIRET/SIREN string."""
    return WHITESPACE.sub("", value or "")


def siren_of(identifier: str) -> str:
    """Legal-entity prefix of a SIRET (the SIREN itself for a 9-digit value)."""
    return identifier[:SIREN_LENGTH]


def jaccard_similarity(first: str, second: str) -> float:
    """
    Jaccard similarity over the character sets of two strings.

    Returns 0.0 when either string is empty.
    """
    if not first or not second:
        return 0.0

    chars_first = set(first)
    chars_second = set(second)
    return len(chars_first & chars_second) / len(chars_first | chars_second)


def extract_postal_code(address: str) -> Optional[str]:
    """Extract a standalone 5-digit postal code from a raw address."""
    match = POSTAL_CODE.search(address or "")
    return match.group(1) if match else None


def _safe_date(year: int, month: int, day: int) -> Optional[datetime]:
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def parse_coverage_date(value: str) -> Optional[datetime]:
    """
    Parse a free-form coverage date.

    Tries DD/MM/YYYY, then YYYY-MM-DD, then a generic parse. The first pattern
    that matches decides: a matching but impossible date (31/02/2025) is
    reported as unparseable rather than handed to the generic parser.

    Args:
        value: Date string as extracted from the attestation.

    Returns:
        Naive datetime at midnight, or None when the value cannot be read.
    """
    value = (value or "").strip()
    if not value:
        return None

    match = DAY_FIRST_DATE.search(value)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = ISO_DATE.search(value)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    try:
        parsed = date_parser.parse(value, dayfirst=True)
    except (ValueError, OverflowError) as e:
        logger.debug("coverage_date_unparseable", value=value, error=str(e))
        return None

    # Keep the comparison naive: drop any timezone the generic parser found
    return parsed.replace(tzinfo=None)
