"""
Reusable validators for EDGAR identifiers.

These validators can be used directly or with Pydantic @field_validator
decorator for automatic input validation.
"""

import re
from typing import Optional

ACCESSION_PATTERN = re.compile(r'^(\d{10})-(\d{2})-(\d{6})$')

# Suffixes found on accession-derived file names, longest first
_ACCESSION_SUFFIXES = (
    '-index-headers.html',
    '-index.html',
    '-index.htm',
    '.hdr.sgml',
    '.txt',
)


def normalize_accession_number(value: str) -> str:
    """
    Normalize an accession number string.

    Strips surrounding whitespace and trailing index/file-extension markers,
    and inserts dashes into the 18-digit undashed form.

    Args:
        value: Raw accession string (e.g., '0000320193-23-000106-index.htm')

    Returns:
        Accession in canonical dashed form

    Raises:
        ValueError: If the result is not a valid accession number

    Example:
        >>> normalize_accession_number('0000320193-23-000106-index.htm')
        '0000320193-23-000106'
        >>> normalize_accession_number('000032019323000106')
        '0000320193-23-000106'
    """
    if not value or not value.strip():
        raise ValueError("Accession number is required")

    normalized = value.strip()

    stripped = True
    while stripped:
        stripped = False
        lowered = normalized.lower()
        for suffix in _ACCESSION_SUFFIXES:
            if lowered.endswith(suffix):
                normalized = normalized[:-len(suffix)]
                stripped = True
                break

    if len(normalized) == 18 and normalized.isdigit():
        normalized = f"{normalized[:10]}-{normalized[10:12]}-{normalized[12:]}"

    return validate_accession_number(normalized)


def validate_accession_number(value: str) -> str:
    """
    Validate accession number format (10-2-6 digits, dash separated).

    Args:
        value: Accession number to validate

    Returns:
        The validated accession number (unchanged if valid)

    Raises:
        ValueError: If value is not in '0000000000-00-000000' format

    Example:
        >>> validate_accession_number('0000320193-23-000106')
        '0000320193-23-000106'
        >>> validate_accession_number('320193-23-106')  # Raises ValueError
    """
    if not value or not ACCESSION_PATTERN.match(value):
        raise ValueError(
            f"Accession number must be in format 0000000000-00-000000, got: '{value}'\n"
            f"Example: '0000320193-23-000106'"
        )
    return value


def parse_cik(value: Optional[str]) -> Optional[int]:
    """
    Interpret a locator hint as a CIK.

    Args:
        value: Ticker or CIK string (leading zeros allowed)

    Returns:
        CIK as an int if the hint is purely numeric, None otherwise

    Example:
        >>> parse_cik('0000320193')
        320193
        >>> parse_cik('AAPL') is None
        True
    """
    if value is None:
        return None

    candidate = value.strip()
    if not candidate.isdigit():
        return None

    cik = int(candidate)
    return cik if cik > 0 else None
