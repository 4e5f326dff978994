"""
edgar-filing-text: SEC EDGAR filing retrieval and section extraction library.

Main package exports for user-facing API.
"""

from edgar_filing_text.config import EdgarSettings, get_settings
from edgar_filing_text.exceptions import (
    EdgarError,
    MalformedFilingError,
    OperationCancelledError,
    RetryExhaustedError
)
from edgar_filing_text.models import DocumentFormat, SectionsRequest
from edgar_filing_text.services import DocumentService, FileCache

__all__ = [
    'EdgarSettings',
    'get_settings',
    'EdgarError',
    'MalformedFilingError',
    'OperationCancelledError',
    'RetryExhaustedError',
    'DocumentFormat',
    'SectionsRequest',
    'DocumentService',
    'FileCache',
    'create_document_service'
]


def create_document_service() -> DocumentService:
    """
    Build a DocumentService from environment configuration.

    Reads EDGAR_* variables (and .env) once, then wires a Fetcher, a
    FileCache in the configured cache directory and the filing index
    service together.

    Returns:
        Ready-to-use DocumentService

    Raises:
        pydantic.ValidationError: If EDGAR_APP_NAME, EDGAR_APP_VERSION or
            EDGAR_CONTACT_EMAIL is missing

    Example:
        >>> from edgar_filing_text import create_document_service
        >>> service = create_document_service()
        >>> result = service.preview_sections('0000320193-23-000106')
        >>> [p.anchor_id for p in result.preview][:3]
        ['part_i', 'item_1_business', 'item_1a_risk_factors']
    """
    return DocumentService.from_settings(get_settings())
