"""
HTML parsing modules for SEC EDGAR filings.

- Section decomposition is heading-based (<h1>..<h6>), with exact
  character offsets into the raw document
- Readable text is markdown rendered from the lxml DOM
- Filing index pages are parsed structurally (lxml), not by substring search
"""

from .section_parser import (
    clean_label,
    decompose,
    find_headings,
    generate_anchor_id,
    to_readable_text,
)
from .markdown import html_to_markdown
from .table_parser import parse_table, table_to_markdown
from .index_parser import (
    DATA_FILES,
    DOCUMENT_FORMAT_FILES,
    load_index_page,
    parse_filing_index,
    parse_manifest,
)

__all__ = [
    # Sections
    'clean_label',
    'decompose',
    'find_headings',
    'generate_anchor_id',
    'to_readable_text',
    # Rendering
    'html_to_markdown',
    'parse_table',
    'table_to_markdown',
    # Filing index
    'DATA_FILES',
    'DOCUMENT_FORMAT_FILES',
    'load_index_page',
    'parse_filing_index',
    'parse_manifest',
]
