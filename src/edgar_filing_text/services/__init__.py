"""
Service layer for edgar-filing-text.

This module contains the classes that talk to SEC EDGAR and the cache:
- Fetcher: HTTP GETs with retry/backoff honoring SEC throttling
- FileCache: file-backed key → value cache with per-entry TTL
- FilingDetailsService: filing index pages, manifests and downloads
- DocumentService: primary documents and their sections
"""

from edgar_filing_text.services.fetcher import Fetcher, RetryLoop, resolve_delay
from edgar_filing_text.services.cache_service import CacheService, FileCache
from edgar_filing_text.services.filing_details import (
    FilingDetailsService,
    select_primary_document
)
from edgar_filing_text.services.document_service import DocumentService

__all__ = [
    'Fetcher',
    'RetryLoop',
    'resolve_delay',
    'CacheService',
    'FileCache',
    'FilingDetailsService',
    'select_primary_document',
    'DocumentService'
]
