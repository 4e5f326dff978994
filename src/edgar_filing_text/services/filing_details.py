"""
Filing Details Service

Retrieves and interprets EDGAR filing index pages:
- Filing metadata and manifests (via parsers.index_parser)
- CIK lookup, document format files, data files
- Raw document and XBRL instance downloads
- Conventional archive URLs and primary document selection
"""

import logging
import threading
from typing import List, Optional, Union

from edgar_filing_text.exceptions import MalformedFilingError
from edgar_filing_text.models.filing import AccessionNumber, FilingDescriptor, FilingDocument
from edgar_filing_text.parsers.index_parser import (
    DATA_FILES,
    DOCUMENT_FORMAT_FILES,
    extract_cik,
    load_index_page,
    parse_filing_index,
    parse_manifest,
)
from edgar_filing_text.services.fetcher import Fetcher

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.sec.gov"

Accession = Union[str, AccessionNumber]


def _require_url(url: Optional[str], name: str) -> str:
    if not url or not url.strip():
        raise ValueError(f"{name} is required")
    return url.strip()


def _as_accession(accession: Accession) -> AccessionNumber:
    if isinstance(accession, AccessionNumber):
        return accession
    return AccessionNumber.parse(accession)


def select_primary_document(
    descriptor: FilingDescriptor,
    form_types: List[str]
) -> Optional[FilingDocument]:
    """
    Choose a filing's primary document from its manifest.

    Selection order:
    1. First document whose declared type is a known primary form type
       (amendments such as '10-K/A' included)
    2. Document with sequence 1
    3. First document with a URL

    Args:
        descriptor: Parsed filing index
        form_types: Upper-case primary form types (see get_primary_form_types)

    Returns:
        The primary FilingDocument, or None if no document has a URL
    """
    candidates = [doc for doc in descriptor.documents if doc.url]
    if not candidates:
        return None

    known = {form.upper() for form in form_types}
    for doc in candidates:
        doc_type = (doc.type or '').strip().upper()
        if not doc_type:
            continue
        base_type = doc_type[:-2] if doc_type.endswith('/A') else doc_type
        if doc_type in known or base_type in known:
            return doc

    for doc in candidates:
        if doc.sequence == 1:
            return doc

    return candidates[0]


class FilingDetailsService:
    """
    Service for EDGAR filing index pages and the files they list.

    Usage:
        service = FilingDetailsService(Fetcher.from_settings(get_settings()))
        url = service.build_index_url(320193, '0000320193-23-000106')
        details = service.get_filing_details(url)
        print(details.form_type, len(details.documents))
    """

    def __init__(self, fetcher: Fetcher, base_url: str = DEFAULT_BASE_URL):
        """
        Initialize the service.

        Args:
            fetcher: Fetcher used for every request
            base_url: Base URL of the EDGAR archives

        Raises:
            ValueError: If fetcher is None
        """
        if fetcher is None:
            raise ValueError("fetcher is required")

        self.fetcher = fetcher
        self.base_url = base_url.rstrip('/')

    # ========================================================================
    # URL construction
    # ========================================================================

    def build_index_url(self, cik: int, accession: Accession) -> str:
        """
        Conventional location of a filing's index page.

        Example:
            >>> service.build_index_url(320193, '0000320193-23-000106')
            'https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/0000320193-23-000106-index.htm'
        """
        acc = _as_accession(accession)
        return f"{self.base_url}/Archives/edgar/data/{cik}/{acc.no_dashes}/{acc}-index.htm"

    def build_archive_url(self, cik: int, accession: Accession) -> str:
        """Conventional location of a filing's complete submission text file."""
        acc = _as_accession(accession)
        return f"{self.base_url}/Archives/edgar/data/{cik}/{acc.no_dashes}/{acc}.txt"

    # ========================================================================
    # Index page
    # ========================================================================

    def _fetch_index(self, index_url: str, cancel_event: Optional[threading.Event]) -> str:
        url = _require_url(index_url, "Documents URL")
        logger.debug(f"Getting filing details from: {url}")
        return self.fetcher.get(url, cancel_event=cancel_event)

    def get_filing_details(
        self,
        index_url: str,
        cancel_event: Optional[threading.Event] = None
    ) -> FilingDescriptor:
        """
        Fetch and parse a filing index page.

        Raises:
            ValueError: If index_url is blank
            MalformedFilingError: If the page has no manifest
            RetryExhaustedError: If the page could not be fetched
        """
        page = self._fetch_index(index_url, cancel_event)
        return parse_filing_index(page, index_url)

    def get_cik_from_filing(
        self,
        index_url: str,
        cancel_event: Optional[threading.Event] = None
    ) -> int:
        """
        CIK of the filer named on an index page.

        Raises:
            MalformedFilingError: If the page has no CIK link
        """
        root = load_index_page(self._fetch_index(index_url, cancel_event))
        cik = extract_cik(root)
        if cik is None:
            raise MalformedFilingError(f"Unable to find CIK in filing at {index_url}")
        return cik

    def get_document_format_files(
        self,
        index_url: str,
        cancel_event: Optional[threading.Event] = None
    ) -> List[FilingDocument]:
        """
        Rows of the 'Document Format Files' manifest.

        Raises:
            MalformedFilingError: If the manifest is absent
        """
        root = load_index_page(self._fetch_index(index_url, cancel_event))
        return parse_manifest(root, DOCUMENT_FORMAT_FILES, index_url)

    def get_data_files(
        self,
        index_url: str,
        cancel_event: Optional[threading.Event] = None
    ) -> List[FilingDocument]:
        """
        Rows of the 'Data Files' manifest (XBRL instance, schema, linkbases).

        Raises:
            MalformedFilingError: If the manifest is absent
        """
        root = load_index_page(self._fetch_index(index_url, cancel_event))
        return parse_manifest(root, DATA_FILES, index_url)

    # ========================================================================
    # Downloads
    # ========================================================================

    def download_document(
        self,
        document_url: str,
        cancel_event: Optional[threading.Event] = None
    ) -> str:
        """
        Download one file of a filing as text.

        Raises:
            ValueError: If document_url is blank
        """
        url = _require_url(document_url, "Document URL")
        logger.debug(f"Downloading document from: {url}")
        return self.fetcher.get(url, cancel_event=cancel_event)

    def download_xbrl_instance(
        self,
        index_url: str,
        cancel_event: Optional[threading.Event] = None
    ) -> str:
        """
        Download the XBRL instance document of a filing.

        The instance is the data file described as 'instance document', or
        failing that the first whose type contains 'INS' (e.g., 'EX-101.INS').

        Raises:
            MalformedFilingError: If the filing has no instance document
        """
        data_files = self.get_data_files(index_url, cancel_event=cancel_event)

        instance = next(
            (f for f in data_files
             if f.url and 'instance document' in (f.description or '').strip().lower()),
            None
        )
        if instance is None:
            instance = next(
                (f for f in data_files if f.url and 'ins' in (f.type or '').lower()),
                None
            )
        if instance is None:
            raise MalformedFilingError("Unable to find XBRL Instance Document in this filing.")

        return self.download_document(instance.url, cancel_event=cancel_event)
