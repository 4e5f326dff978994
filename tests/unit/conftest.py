"""
Pytest configuration for unit tests.

Provides fixtures and fakes shared by all unit tests:
- Fake HTTP responses/sessions (no network access)
- Fixed clock and recording sleep (no real waiting)
- Sample filing markup (index page and primary document)
"""

from datetime import datetime, timezone
from typing import List, Optional
from unittest.mock import Mock

import pytest
import requests

from edgar_filing_text.models.retry import RetryPolicy
from edgar_filing_text.services.cache_service import FileCache
from edgar_filing_text.services.fetcher import Fetcher


FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_response(status: int = 200, text: str = "", headers: Optional[dict] = None) -> Mock:
    """Mock requests.Response with status_code, text and headers."""
    response = Mock(spec=requests.Response)
    response.status_code = status
    response.text = text
    response.headers = headers or {}
    return response


class RecordingSleep:
    """Sleep replacement that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fixed_clock():
    """Clock returning FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def mock_session():
    """requests.Session mock; configure .get.side_effect / .return_value per test."""
    session = Mock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def fetcher_factory(mock_session, recording_sleep, fixed_clock):
    """Build a Fetcher over mock_session with no real waiting."""
    def _factory(policy: Optional[RetryPolicy] = None, **kwargs) -> Fetcher:
        return Fetcher(
            session=mock_session,
            policy=policy or RetryPolicy(max_attempts=3, base_delay=0.5),
            user_agent="TestApp/1.0 (test@example.com)",
            sleep=recording_sleep,
            clock=fixed_clock,
            **kwargs
        )
    return _factory


@pytest.fixture
def file_cache(tmp_path):
    return FileCache(tmp_path / "cache")


# ============================================================================
# Sample markup
# ============================================================================

ACCESSION = "0000320193-23-000106"
CIK = 320193

INDEX_URL = (
    "https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/"
    "0000320193-23-000106-index.htm"
)
PRIMARY_URL = (
    "https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/aapl-20230930.htm"
)
ARCHIVE_URL = (
    "https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/"
    "0000320193-23-000106.txt"
)

INDEX_PAGE = """<!DOCTYPE html>
<html>
<head><title>EDGAR Filing Documents for 0000320193-23-000106</title></head>
<body>
<div id="formDiv">
  <div id="formHeader">
    <div id="formName"><strong>Form 10-K</strong> - Annual report [Section 13 and 15(d)]</div>
    <div id="secNum"><strong>SEC Accession No. </strong> 0000320193-23-000106</div>
  </div>
  <div class="formContent">
    <div class="formGrouping">
      <div class="infoHead">Filing Date</div>
      <div class="info">2023-11-03</div>
      <div class="infoHead">Accepted</div>
      <div class="info">2023-11-02 18:08:27</div>
      <div class="infoHead">Documents</div>
      <div class="info">97</div>
    </div>
    <div class="formGrouping">
      <div class="infoHead">Period of Report</div>
      <div class="info">2023-09-30</div>
    </div>
  </div>
</div>
<div id="formDiv">
  <div>
    <p>Document Format Files</p>
    <table class="tableFile" summary="Document Format Files">
      <tr>
        <th scope="col"><acronym title="Sequence Number">Seq</acronym></th>
        <th scope="col">Description</th>
        <th scope="col">Document</th>
        <th scope="col">Type</th>
        <th scope="col">Size</th>
      </tr>
      <tr>
        <td scope="row">1</td>
        <td scope="row">10-K</td>
        <td scope="row"><a href="/Archives/edgar/data/320193/000032019323000106/aapl-20230930.htm">aapl-20230930.htm</a></td>
        <td scope="row">10-K</td>
        <td scope="row">1,210,914</td>
      </tr>
      <tr class="evenRow">
        <td scope="row">2</td>
        <td scope="row">EX-21.1</td>
        <td scope="row"><a href="/Archives/edgar/data/320193/000032019323000106/a10-kexhibit2112023.htm">a10-kexhibit2112023.htm</a></td>
        <td scope="row">EX-21.1</td>
        <td scope="row">3,370</td>
      </tr>
      <tr>
        <td scope="row">&nbsp;</td>
        <td scope="row">Complete submission text file</td>
        <td scope="row"><a href="/Archives/edgar/data/320193/000032019323000106/0000320193-23-000106.txt">0000320193-23-000106.txt</a></td>
        <td scope="row">&nbsp;</td>
        <td scope="row">9708806</td>
      </tr>
    </table>
  </div>
  <div>
    <p>Data Files</p>
    <table class="tableFile" summary="Data Files">
      <tr>
        <th scope="col"><acronym title="Sequence Number">Seq</acronym></th>
        <th scope="col">Description</th>
        <th scope="col">Document</th>
        <th scope="col">Type</th>
        <th scope="col">Size</th>
      </tr>
      <tr>
        <td scope="row">6</td>
        <td scope="row">XBRL TAXONOMY EXTENSION SCHEMA DOCUMENT</td>
        <td scope="row"><a href="/Archives/edgar/data/320193/000032019323000106/aapl-20230930.xsd">aapl-20230930.xsd</a></td>
        <td scope="row">EX-101.SCH</td>
        <td scope="row">52,100</td>
      </tr>
      <tr>
        <td scope="row">11</td>
        <td scope="row">EXTRACTED XBRL INSTANCE DOCUMENT</td>
        <td scope="row"><a href="/Archives/edgar/data/320193/000032019323000106/aapl-20230930_htm.xml">aapl-20230930_htm.xml</a></td>
        <td scope="row">XML</td>
        <td scope="row">1,042,522</td>
      </tr>
    </table>
  </div>
</div>
<div id="filerDiv">
  <div class="companyInfo">
    <span class="companyName">Apple Inc. (Filer)
      <acronym title="Central Index Key">CIK</acronym>: <a href="/cgi-bin/browse-edgar?action=getcompany&amp;CIK=0000320193">0000320193 (see all company filings)</a>
    </span>
  </div>
</div>
</body>
</html>
"""

PRIMARY_DOCUMENT = (
    "<html><body>"
    "<h1>Annual Report</h1><p>Apple Inc. designs <b>smartphones</b>.</p>"
    "<h2>Risk Factors</h2><p>The Company faces <i>many</i> risks.</p>"
    "<h2>Legal Proceedings</h2><p>See <a href=\"https://example.com/legal\">details</a>.</p>"
    "</body></html>"
)


@pytest.fixture
def index_page():
    return INDEX_PAGE


@pytest.fixture
def primary_document():
    return PRIMARY_DOCUMENT


@pytest.fixture
def response_factory():
    """make_response as a fixture: response_factory(503, headers={'Retry-After': '2'})."""
    return make_response
