"""
Filing index page parsing.

Parses an EDGAR filing index page ({accession}-index.htm) into a
FilingDescriptor using the lxml DOM:
- header block: accession number (div#secNum), form name (div#formName),
  infoHead/info pairs (Filing Date, Accepted, Period of Report, Type)
- filer block: span.companyName and the "Central Index Key" link
- manifests: the "Document Format Files" and "Data Files" tables, located
  by their summary attribute or, failing that, by the caption text that
  precedes them
"""

import logging
import re
from datetime import date, datetime
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urljoin, urlsplit

from lxml import etree, html

from edgar_filing_text.exceptions import MalformedFilingError
from edgar_filing_text.models.filing import AccessionNumber, FilingDescriptor, FilingDocument

logger = logging.getLogger(__name__)

DOCUMENT_FORMAT_FILES = "Document Format Files"
DATA_FILES = "Data Files"

_ACCESSION = re.compile(r'\d{10}-\d{2}-\d{6}')
_DIGITS = re.compile(r'\d+')
_ROLE_SUFFIX = re.compile(r'\((Filer|Subject|Filed by|Reporting|Issuer)\)', re.IGNORECASE)
_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>', re.IGNORECASE)

DATE_FORMATS = ('%Y-%m-%d', '%m/%d/%Y')
DATETIME_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M', '%Y-%m-%dT%H:%M:%S', '%m/%d/%Y %H:%M:%S')

# Manifest column name → FilingDocument field
COLUMN_FIELDS = {
    'seq': 'sequence',
    'sequence': 'sequence',
    'description': 'description',
    'document': 'name',
    'type': 'type',
    'size': 'size',
}
DEFAULT_COLUMNS = ['sequence', 'description', 'name', 'type', 'size']


def _text(el: Optional[html.HtmlElement]) -> str:
    if el is None:
        return ''
    return ' '.join(el.text_content().split())


def load_index_page(markup: str) -> html.HtmlElement:
    """
    Parse index page markup into an lxml tree.

    Raises:
        MalformedFilingError: If the markup is empty or unparseable
    """
    if not markup or not markup.strip():
        raise MalformedFilingError("Filing index page is empty")

    markup = _XML_DECLARATION.sub('', markup, count=1)
    try:
        return html.document_fromstring(markup)
    except (etree.ParserError, ValueError) as e:
        raise MalformedFilingError(f"Unable to parse filing index page: {e}") from e


# ============================================================================
# Manifest tables
# ============================================================================

def find_manifest_table(root: html.HtmlElement, title: str) -> Optional[html.HtmlElement]:
    """
    Locate a manifest table by title ('Document Format Files' / 'Data Files').

    Tries the table's summary attribute first, then the first table after a
    text node whose normalized content equals the title.
    """
    tables = root.xpath('//table[@summary=$title]', title=title)
    if tables:
        return tables[0]

    tables = root.xpath(
        '//text()[normalize-space(.)=$title]/following::table[1]',
        title=title
    )
    return tables[0] if tables else None


def _column_fields(table: html.HtmlElement) -> List[str]:
    header_cells = table.xpath('.//tr[th][1]/th')
    if not header_cells:
        return DEFAULT_COLUMNS

    fields = [COLUMN_FIELDS.get(_text(th).lower(), '') for th in header_cells]
    if 'name' not in fields:
        return DEFAULT_COLUMNS
    return fields


def resolve_document_link(href: str, page_url: str) -> str:
    """
    Absolute URL of a manifest link.

    Inline XBRL documents are linked through the viewer
    ('/ix?doc=/Archives/...'); the document itself is the doc parameter.

    Example:
        >>> resolve_document_link('/ix?doc=/Archives/edgar/data/320193/000032019323000106/aapl-20230930.htm',
        ...                       'https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/')
        'https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/aapl-20230930.htm'
    """
    url = urljoin(page_url, href)
    parts = urlsplit(url)
    if parts.path.rstrip('/').endswith('/ix'):
        doc = parse_qs(parts.query).get('doc')
        if doc and doc[0].strip():
            return urljoin(url, doc[0].strip())
    return url


def _parse_int(value: str) -> Optional[int]:
    cleaned = value.replace(',', '').strip()
    return int(cleaned) if cleaned.isdigit() else None


def parse_document_table(table: html.HtmlElement, page_url: str) -> List[FilingDocument]:
    """
    Parse the rows of one manifest table.

    Args:
        table: <table> element of the manifest
        page_url: URL of the index page (relative links are resolved against it)

    Returns:
        FilingDocument per data row, in table order
    """
    fields = _column_fields(table)
    documents: List[FilingDocument] = []

    for tr in table.xpath('.//tr[td]'):
        cells = tr.xpath('./td')
        if len(cells) < len(DEFAULT_COLUMNS):
            continue

        values: Dict[str, object] = {}
        for field, cell in zip(fields, cells):
            if not field:
                continue

            if field == 'name':
                link = cell.find('.//a')
                if link is not None:
                    href = (link.get('href') or '').strip()
                    if href:
                        values['url'] = resolve_document_link(href, page_url)
                    values['name'] = _text(link) or None
                else:
                    values['name'] = _text(cell) or None
            elif field == 'sequence':
                values['sequence'] = _parse_int(_text(cell))
            elif field == 'size':
                values['size'] = _parse_int(_text(cell)) or 0
            else:
                values[field] = _text(cell) or None

        documents.append(FilingDocument(**values))

    return documents


def parse_manifest(root: html.HtmlElement, title: str, page_url: str) -> List[FilingDocument]:
    """
    Parse one manifest of the index page.

    Raises:
        MalformedFilingError: If the manifest table is absent
    """
    table = find_manifest_table(root, title)
    if table is None:
        raise MalformedFilingError(f"Unable to locate {title.lower()}.")
    return parse_document_table(table, page_url)


# ============================================================================
# Header and filer blocks
# ============================================================================

def extract_info_value(root: html.HtmlElement, label: str) -> Optional[str]:
    """
    Value of an infoHead/info pair, e.g. extract_info_value(root, 'Filing Date').

    The value is the element right after the infoHead element.
    """
    for head in root.xpath('//*[contains(concat(" ", normalize-space(@class), " "), " infoHead ")]'):
        if _text(head).rstrip(':').strip().lower() != label.rstrip(':').lower():
            continue
        value = head.getnext()
        text = _text(value)
        if text:
            return text
    return None


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    logger.debug(f"Unrecognized date: {value}")
    return None


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    for fmt in DATETIME_FORMATS + DATE_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
    logger.debug(f"Unrecognized timestamp: {value}")
    return None


def extract_accession_number(root: html.HtmlElement) -> Optional[AccessionNumber]:
    sec_num = root.xpath('//*[@id="secNum"]')
    if not sec_num:
        return None
    match = _ACCESSION.search(_text(sec_num[0]))
    if not match:
        return None
    return AccessionNumber.parse(match.group(0))


def extract_form_type(root: html.HtmlElement) -> Optional[str]:
    """Form type from div#formName ('Form 10-K - Annual report') or the 'Type:' info pair."""
    form_name = root.xpath('//*[@id="formName"]')
    if form_name:
        strong = form_name[0].find('.//strong')
        text = _text(strong) if strong is not None else _text(form_name[0]).split(' - ')[0]
        text = re.sub(r'^Form\s+', '', text, flags=re.IGNORECASE).strip()
        if text:
            return text

    return extract_info_value(root, 'Type')


def extract_filer_name(root: html.HtmlElement) -> Optional[str]:
    names = root.xpath('//*[contains(concat(" ", normalize-space(@class), " "), " companyName ")]')
    if not names:
        return None
    # Only the element's own leading text; the CIK link is a child
    name = _ROLE_SUFFIX.sub('', names[0].text or '')
    name = ' '.join(name.split())
    return name or None


def extract_cik(root: html.HtmlElement) -> Optional[int]:
    """CIK from the first link following the 'Central Index Key' acronym."""
    links = root.xpath('//acronym[@title="Central Index Key"]/following::a[1]')
    if not links:
        return None
    match = _DIGITS.search(_text(links[0]))
    return int(match.group(0)) if match else None


def parse_filing_index(markup: str, page_url: str) -> FilingDescriptor:
    """
    Parse a filing index page.

    Optional header fields that cannot be found or parsed are left None.

    Args:
        markup: HTML of the index page
        page_url: URL the page was fetched from

    Returns:
        FilingDescriptor

    Raises:
        MalformedFilingError: If the page has neither manifest table

    Example:
        >>> descriptor = parse_filing_index(page, 'https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/0000320193-23-000106-index.htm')
        >>> descriptor.form_type, descriptor.filer_cik
        ('10-K', 320193)
    """
    root = load_index_page(markup)

    document_table = find_manifest_table(root, DOCUMENT_FORMAT_FILES)
    data_table = find_manifest_table(root, DATA_FILES)
    if document_table is None and data_table is None:
        raise MalformedFilingError(f"No document manifest found in filing index: {page_url}")

    try:
        accession = extract_accession_number(root)
    except ValueError as e:
        logger.warning(f"Failed to parse accession number: {e}")
        accession = None

    descriptor = FilingDescriptor(
        accession_number=accession,
        form_type=extract_form_type(root),
        filing_date=_parse_date(extract_info_value(root, 'Filing Date')),
        period_of_report=_parse_date(extract_info_value(root, 'Period of Report')),
        accepted=_parse_datetime(extract_info_value(root, 'Accepted')),
        filer_name=extract_filer_name(root),
        filer_cik=extract_cik(root),
        documents=parse_document_table(document_table, page_url) if document_table is not None else [],
        data_files=parse_document_table(data_table, page_url) if data_table is not None else [],
    )

    logger.debug(
        f"Parsed filing index: {descriptor.accession_number} "
        f"({len(descriptor.documents)} documents, {len(descriptor.data_files)} data files)"
    )
    return descriptor
