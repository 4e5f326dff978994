"""
Pydantic models for filings, sections and the retry trace.

This module contains type-safe models shared by the parsers and the
service layer.
"""

from edgar_filing_text.models.filing import AccessionNumber, FilingDocument, FilingDescriptor
from edgar_filing_text.models.retry import AttemptOutcome, FetchResult, RetryAttempt, RetryPolicy
from edgar_filing_text.models.section import (
    DocumentFormat,
    Section,
    SectionPreview,
    SectionsRequest,
    SectionsResult,
)

__all__ = [
    'AccessionNumber',
    'FilingDocument',
    'FilingDescriptor',
    'AttemptOutcome',
    'FetchResult',
    'RetryAttempt',
    'RetryPolicy',
    'DocumentFormat',
    'Section',
    'SectionPreview',
    'SectionsRequest',
    'SectionsResult',
]
