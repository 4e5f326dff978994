"""
Smoke Tests - Quick sanity checks against live EDGAR

These tests make REAL requests to www.sec.gov to verify basic functionality.
Run them manually to ensure the system works end-to-end.

Usage:
    # Run smoke tests explicitly
    pytest -m smoke -v

    # Run smoke tests in this file only
    pytest tests/test_smoke.py -m smoke -v

    # Skip smoke tests (default)
    pytest tests/

Requirements:
- EDGAR_APP_NAME, EDGAR_APP_VERSION and EDGAR_CONTACT_EMAIL in .env
  (SEC rejects requests without an identifying User-Agent)
- Active internet connection
"""

import os

import pytest
from dotenv import load_dotenv

from edgar_filing_text import DocumentService, EdgarSettings, FileCache, SectionsRequest


# Mark all tests in this file as smoke tests (disabled by default)
pytestmark = pytest.mark.smoke

# Apple Inc. 10-K for fiscal 2023
ACCESSION = "0000320193-23-000106"
CIK = "320193"


@pytest.fixture(scope="module", autouse=True)
def setup_identity():
    """Require SEC identification once for all smoke tests."""
    load_dotenv()

    if not os.getenv("EDGAR_CONTACT_EMAIL"):
        pytest.skip("EDGAR_CONTACT_EMAIL not found in .env file")

    print(f"\n✓ Contact e-mail loaded: {os.getenv('EDGAR_CONTACT_EMAIL')}")
    yield
    print("\n✓ Smoke tests completed")


@pytest.fixture(scope="module")
def service(tmp_path_factory):
    settings = EdgarSettings()
    return DocumentService.from_settings(
        settings, cache=FileCache(tmp_path_factory.mktemp("edgar_cache"))
    )


class TestDocumentServiceSmoke:
    """Smoke tests for DocumentService with live EDGAR."""

    def test_filing_details(self, service):
        """
        Smoke Test: The filing index page should parse.

        This verifies:
        - Index URL construction from CIK + accession
        - Manifest table discovery on the current page layout
        """
        details = service.get_filing_details(ACCESSION, locator_hint=CIK)

        assert details is not None
        assert details.form_type == "10-K"
        assert any(d.type == "10-K" for d in details.documents)
        print(f"\n✓ {details!r}")

    def test_preview_then_fetch_section(self, service):
        """
        Smoke Test: Preview structure, then fetch one section as markdown.

        This verifies:
        - Primary document resolution and download
        - Heading decomposition of a real 10-K
        - Filtering by a previewed anchor ID
        """
        result = service.preview_sections(ACCESSION, locator_hint=CIK)

        assert result is not None
        assert len(result.preview) > 0
        print(f"\n✓ {len(result.preview)} sections previewed")

        anchor = result.preview[-1].anchor_id
        sections = service.get_sections(
            ACCESSION, SectionsRequest(anchor_ids=[anchor], merge=True), locator_hint=CIK
        )

        assert len(sections.sections) >= 1
        assert sections.merged_content
        print(f"✓ Section '{anchor}': {len(sections.merged_content):,} characters")

    def test_document_is_cached(self, service):
        """Smoke Test: A second markdown request should come from the cache."""
        first = service.get_document(ACCESSION, locator_hint=CIK)
        second = service.get_document(ACCESSION, locator_hint=CIK)

        assert first is not None
        assert first == second
