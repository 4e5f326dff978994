"""
Document Service

Orchestrates filing retrieval and decomposition:
    Resolve → Fetch-or-CacheHit → Decompose-or-CacheHit → Filter → (Preview | Merge | List)

Design:
- The Fetcher, Cache and FilingDetailsService are injected (no global state)
- Decomposition always runs on the raw markup so section offsets stay valid
- Every public method returns None instead of raising; failures are logged.
  Cancellation is the exception: OperationCancelledError always propagates
"""

import logging
import threading
from datetime import timedelta
from typing import List, Optional, Union

from lxml import etree

from edgar_filing_text.config import EdgarSettings, get_primary_form_types
from edgar_filing_text.exceptions import (
    OperationCancelledError,
    RetryExhaustedError,
)
from edgar_filing_text.models.filing import AccessionNumber, FilingDescriptor
from edgar_filing_text.models.section import (
    DocumentFormat,
    Section,
    SectionPreview,
    SectionsRequest,
    SectionsResult,
)
from edgar_filing_text.parsers.markdown import html_to_markdown
from edgar_filing_text.parsers.section_parser import decompose, to_readable_text
from edgar_filing_text.services.cache_service import CacheService, FileCache
from edgar_filing_text.services.fetcher import Fetcher
from edgar_filing_text.services.filing_details import (
    FilingDetailsService,
    select_primary_document,
)
from edgar_filing_text.validators import parse_cik

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def document_cache_key(accession: str, fmt: DocumentFormat) -> str:
    return f"filing-document:{accession}:{fmt.value}"


def sections_cache_key(accession: str) -> str:
    return f"filing-sections:{accession}"


def _check_cancelled(cancel_event: Optional[threading.Event], accession) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info(f"Request cancelled: {accession}")
        raise OperationCancelledError(f"Request cancelled: {accession}")


class DocumentService:
    """
    Serves filing documents and their sections.

    Usage:
        service = DocumentService.from_settings(get_settings())

        # Discover structure first
        result = service.preview_sections('0000320193-23-000106', locator_hint='320193')
        for preview in result.preview:
            print(preview.anchor_id, preview.label)

        # Then pull only what is needed
        result = service.get_sections(
            '0000320193-23-000106',
            SectionsRequest(anchor_ids=['risk_factors'], merge=True)
        )
        print(result.merged_content)

    Testing:
        service = DocumentService(fetcher=mock_fetcher, cache=FileCache(tmp_path),
                                  form_types=['10-K'])
    """

    def __init__(
        self,
        fetcher: Fetcher,
        cache: CacheService,
        details_service: Optional[FilingDetailsService] = None,
        form_types: Optional[List[str]] = None,
        ttl: timedelta = DEFAULT_TTL
    ):
        """
        Initialize the document service.

        Args:
            fetcher: Fetcher for all outbound requests
            cache: Cache for documents and section lists
            details_service: Index page service (built on fetcher if omitted)
            form_types: Primary form types (defaults to the packaged forms.yaml)
            ttl: Lifetime of cache entries written by this service

        Raises:
            ValueError: If fetcher or cache is None
        """
        if fetcher is None:
            raise ValueError("fetcher is required")
        if cache is None:
            raise ValueError("cache is required")

        self.fetcher = fetcher
        self.cache = cache
        self.details_service = details_service or FilingDetailsService(fetcher)
        self._form_types = form_types
        self.ttl = ttl

    @classmethod
    def from_settings(
        cls,
        settings: EdgarSettings,
        cache: Optional[CacheService] = None
    ) -> 'DocumentService':
        """
        Wire a DocumentService from settings.

        Args:
            settings: Loaded EdgarSettings
            cache: Cache to use (defaults to a FileCache in settings.cache_dir)
        """
        fetcher = Fetcher.from_settings(settings)
        return cls(
            fetcher=fetcher,
            cache=cache or FileCache(settings.cache_dir),
            details_service=FilingDetailsService(fetcher, settings.archives_base_url),
            ttl=timedelta(hours=settings.cache_ttl_hours),
        )

    @property
    def form_types(self) -> List[str]:
        if self._form_types is None:
            self._form_types = get_primary_form_types()
        return self._form_types

    # ========================================================================
    # Resolution
    # ========================================================================

    @staticmethod
    def _cik(accession: AccessionNumber, locator_hint: Optional[str]) -> int:
        """A numeric locator hint wins; otherwise the accession's filer id."""
        return parse_cik(locator_hint) or accession.filer_id

    def _resolve_document_url(
        self,
        accession: AccessionNumber,
        locator_hint: Optional[str],
        cancel_event: Optional[threading.Event]
    ) -> str:
        """
        Locate the primary document of a filing.

        Falls back to the conventional archive URL when the index page cannot
        be fetched or names no usable document.
        """
        cik = self._cik(accession, locator_hint)
        index_url = self.details_service.build_index_url(cik, accession)

        try:
            descriptor = self.details_service.get_filing_details(
                index_url, cancel_event=cancel_event
            )
            primary = select_primary_document(descriptor, self.form_types)
            if primary is not None:
                logger.debug(f"Primary document for {accession}: {primary.url}")
                return primary.url
            logger.warning(f"No primary document listed in {index_url}")

        except (RetryExhaustedError, ValueError, etree.LxmlError) as e:
            # MalformedFilingError is a ValueError
            logger.warning(f"Filing index unavailable for {accession}: {e}")

        archive_url = self.details_service.build_archive_url(cik, accession)
        logger.info(f"Falling back to archive URL for {accession}: {archive_url}")
        return archive_url

    def _load_raw_document(
        self,
        accession: AccessionNumber,
        locator_hint: Optional[str],
        cancel_event: Optional[threading.Event]
    ) -> str:
        key = document_cache_key(str(accession), DocumentFormat.HTML)
        _check_cancelled(cancel_event, accession)
        cached = self.cache.get(key, str)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        url = self._resolve_document_url(accession, locator_hint, cancel_event)
        raw = self.fetcher.get(url, cancel_event=cancel_event)
        _check_cancelled(cancel_event, accession)
        self.cache.set(key, raw, self.ttl)
        return raw

    # ========================================================================
    # Public API
    # ========================================================================

    def get_document(
        self,
        accession: str,
        locator_hint: Optional[str] = None,
        format: Union[DocumentFormat, str, None] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[str]:
        """
        Get a filing's primary document.

        Args:
            accession: Accession number (index/file markers are tolerated)
            locator_hint: Ticker or CIK; a numeric hint is used as the CIK
            format: 'markdown' (default) or 'html' (raw markup)
            cancel_event: Set by the caller to abandon the request

        Returns:
            Document text, or None if the filing could not be retrieved

        Raises:
            OperationCancelledError: If cancel_event was set

        Example:
            >>> md = service.get_document('0000320193-23-000106-index.htm', '320193')
            >>> md.startswith('#')
            True
        """
        try:
            fmt = DocumentFormat.parse(format)
            acc = AccessionNumber.parse(accession)

            if fmt == DocumentFormat.HTML:
                return self._load_raw_document(acc, locator_hint, cancel_event)

            key = document_cache_key(str(acc), fmt)
            _check_cancelled(cancel_event, acc)
            cached = self.cache.get(key, str)
            if cached is not None:
                logger.debug(f"Cache hit: {key}")
                return cached

            raw = self._load_raw_document(acc, locator_hint, cancel_event)
            content = html_to_markdown(raw)
            _check_cancelled(cancel_event, acc)
            self.cache.set(key, content, self.ttl)
            return content

        except OperationCancelledError:
            raise

        except Exception as e:
            logger.error(f"Failed to get filing document {accession}: {e}", exc_info=True)
            return None

    def get_sections(
        self,
        accession: str,
        request: Optional[SectionsRequest] = None,
        locator_hint: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[SectionsResult]:
        """
        Get previews, or filtered (and optionally merged) sections, of a filing.

        Steps:
        1. Raw document (cached under the 'html' format)
        2. Section list (cached per accession; decomposed on miss)
        3. preview_only → previews of every section, nothing else
        4. Filter by anchor ID (case-insensitive; empty keeps all)
        5. Markdown conversion unless format is 'html'
        6. merge → non-blank contents joined by a blank line

        Args:
            accession: Accession number
            request: What to return (defaults to every section as markdown)
            locator_hint: Ticker or CIK
            cancel_event: Set by the caller to abandon the request

        Returns:
            SectionsResult, or None if the filing could not be retrieved

        Raises:
            OperationCancelledError: If cancel_event was set
        """
        request = request or SectionsRequest()

        try:
            acc = AccessionNumber.parse(accession)

            raw = self.get_document(str(acc), locator_hint, DocumentFormat.HTML, cancel_event)
            if raw is None:
                return None

            sections = self._load_sections(str(acc), raw, cancel_event)

            if request.preview_only:
                return SectionsResult(
                    preview=[SectionPreview.from_section(s) for s in sections]
                )

            wanted = {
                anchor.strip().lower()
                for anchor in (request.anchor_ids or [])
                if anchor and anchor.strip()
            }
            if wanted:
                sections = [s for s in sections if s.anchor_id.lower() in wanted]

            if request.format == DocumentFormat.MARKDOWN:
                sections = to_readable_text(sections)

            merged = None
            if request.merge:
                merged = "\n\n".join(s.content for s in sections if s.content.strip())

            logger.info(f"Returning {len(sections)} section(s) of {acc}")
            return SectionsResult(sections=sections, merged_content=merged)

        except OperationCancelledError:
            raise

        except Exception as e:
            logger.error(f"Failed to get filing sections {accession}: {e}", exc_info=True)
            return None

    def preview_sections(
        self,
        accession: str,
        locator_hint: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[SectionsResult]:
        """Shortcut for get_sections(..., SectionsRequest(preview_only=True))."""
        return self.get_sections(
            accession,
            SectionsRequest(preview_only=True),
            locator_hint=locator_hint,
            cancel_event=cancel_event
        )

    def get_filing_details(
        self,
        accession: str,
        locator_hint: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[FilingDescriptor]:
        """
        Parsed index page of a filing, or None if it could not be retrieved.

        Raises:
            OperationCancelledError: If cancel_event was set
        """
        try:
            acc = AccessionNumber.parse(accession)
            index_url = self.details_service.build_index_url(self._cik(acc, locator_hint), acc)
            return self.details_service.get_filing_details(index_url, cancel_event=cancel_event)

        except OperationCancelledError:
            raise

        except Exception as e:
            logger.error(f"Failed to get filing details {accession}: {e}", exc_info=True)
            return None

    def _load_sections(
        self,
        accession: str,
        raw: str,
        cancel_event: Optional[threading.Event]
    ) -> List[Section]:
        key = sections_cache_key(accession)
        _check_cancelled(cancel_event, accession)
        sections = self.cache.get(key, List[Section])
        if sections is not None:
            logger.debug(f"Cache hit: {key}")
            return sections

        sections = decompose(raw)
        _check_cancelled(cancel_event, accession)
        self.cache.set(key, sections, self.ttl)
        return sections
