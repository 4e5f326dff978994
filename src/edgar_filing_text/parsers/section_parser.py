"""
Heading-based decomposition of filing markup into addressable sections.

Handles raw filing HTML by:
1. Scanning for <h1>..<h6> elements with an event-driven tokenizer
   (html.parser), which reports the exact character offset of every tag
2. Cutting the raw string at each heading's start tag
3. Deriving a label and a unique anchor ID from each heading's text

Offsets always refer to the raw input, so sections must be computed on raw
markup and converted to readable text afterwards (to_readable_text).
"""

import logging
import re
from html import unescape
from html.parser import HTMLParser
from typing import List, Optional, Tuple

from edgar_filing_text.models.section import Section
from .markdown import html_to_markdown

logger = logging.getLogger(__name__)

HEADING_TAGS = ('h1', 'h2', 'h3', 'h4', 'h5', 'h6')
WHOLE_DOCUMENT_LABEL = "Complete Document"
WHOLE_DOCUMENT_ANCHOR = "document"
FALLBACK_ANCHOR = "section"
MAX_ANCHOR_LENGTH = 100

_TAG = re.compile(r'<[^>]+>')
_WHITESPACE = re.compile(r'\s+')
_NON_ALPHANUMERIC = re.compile(r'[^a-z0-9]+')


class _HeadingScanner(HTMLParser):
    """
    Collects (start_offset, inner_start, inner_end) for every closed heading.

    Offsets are absolute character positions in the fed string. A heading
    opened inside another open heading is ignored; an unclosed heading is
    dropped.
    """

    def __init__(self, markup: str):
        super().__init__(convert_charrefs=True)
        self._markup = markup
        self._line_starts = [0]
        for i, ch in enumerate(markup):
            if ch == '\n':
                self._line_starts.append(i + 1)

        self._open: Optional[Tuple[str, int, int]] = None
        self.headings: List[Tuple[int, int, int]] = []

    def _offset(self) -> int:
        lineno, column = self.getpos()
        return self._line_starts[lineno - 1] + column

    def handle_starttag(self, tag, attrs):
        if tag not in HEADING_TAGS or self._open is not None:
            return
        start = self._offset()
        tag_text = self.get_starttag_text() or ''
        self._open = (tag, start, start + len(tag_text))

    def handle_endtag(self, tag):
        if self._open is None or tag != self._open[0]:
            return
        _, start, inner_start = self._open
        self.headings.append((start, inner_start, self._offset()))
        self._open = None


def clean_label(text: str) -> str:
    """
    Turn heading markup into a label: tags stripped, entities decoded,
    whitespace collapsed to single spaces, trimmed.

    Example:
        >>> clean_label('<b>Item 1A.</b>\\n  Risk&nbsp;Factors ')
        'Item 1A. Risk Factors'
    """
    text = _TAG.sub(' ', text or '')
    text = unescape(text)
    return _WHITESPACE.sub(' ', text).strip()


def generate_anchor_id(label: str) -> str:
    """
    Derive an anchor ID from a label.

    Lowercase; every run of non-alphanumeric characters becomes a single
    underscore; leading/trailing underscores are trimmed; the result is
    truncated to 100 characters and re-trimmed.

    Args:
        label: Cleaned section label

    Returns:
        Anchor ID ('' if the label has no ASCII letters or digits)

    Example:
        >>> generate_anchor_id("Item 7. Management's Discussion & Analysis")
        'item_7_management_s_discussion_analysis'
    """
    anchor = _NON_ALPHANUMERIC.sub('_', (label or '').lower()).strip('_')
    if len(anchor) > MAX_ANCHOR_LENGTH:
        anchor = anchor[:MAX_ANCHOR_LENGTH].rstrip('_')
    return anchor


def _unique_anchor(base: str, used: set) -> str:
    if base not in used:
        return base
    suffix = 2
    while f"{base}_{suffix}" in used:
        suffix += 1
    return f"{base}_{suffix}"


def find_headings(markup: str) -> List[Tuple[int, str]]:
    """
    Locate headings with non-blank text.

    Returns:
        (start_offset, label) pairs in document order
    """
    scanner = _HeadingScanner(markup)
    scanner.feed(markup)
    scanner.close()

    found = []
    for start, inner_start, inner_end in scanner.headings:
        label = clean_label(markup[inner_start:inner_end])
        if label:
            found.append((start, label))
    return found


def decompose(markup: str) -> List[Section]:
    """
    Split raw filing markup into heading-delimited sections.

    A section runs from its heading's start tag to the next heading's start
    tag (or the end of the document). Content before the first heading
    belongs to the first section, so the (start_offset, length) pairs of the
    result always tile the whole input.

    Anchor IDs are unique within the result: repeated base anchors get
    '_2', '_3', ... in document order.

    Args:
        markup: Raw HTML of the document

    Returns:
        Sections in document order:
        - [] for empty/whitespace-only input
        - one 'Complete Document' section when no heading is found

    Example:
        >>> sections = decompose('<h2>Business</h2><p>...</p><h2>Risk Factors</h2><p>...</p>')
        >>> [s.anchor_id for s in sections]
        ['business', 'risk_factors']
    """
    if not markup or not markup.strip():
        return []

    headings = find_headings(markup)

    if not headings:
        logger.debug("No headings found, returning whole document as one section")
        return [Section(
            content=markup,
            label=WHOLE_DOCUMENT_LABEL,
            anchor_id=WHOLE_DOCUMENT_ANCHOR,
            start_offset=0,
            length=len(markup)
        )]

    sections: List[Section] = []
    used_anchors: set = set()

    for i, (heading_start, label) in enumerate(headings):
        start = 0 if i == 0 else heading_start
        end = headings[i + 1][0] if i + 1 < len(headings) else len(markup)

        anchor = _unique_anchor(generate_anchor_id(label) or FALLBACK_ANCHOR, used_anchors)
        used_anchors.add(anchor)

        sections.append(Section(
            content=markup[start:end],
            label=label,
            anchor_id=anchor,
            start_offset=start,
            length=end - start
        ))

    logger.debug(f"Decomposed document into {len(sections)} sections")
    return sections


def to_readable_text(sections: List[Section]) -> List[Section]:
    """
    Replace each section's markup with its markdown rendering.

    Label, anchor ID and offsets are unchanged (offsets still refer to the
    raw document).
    """
    return [
        section.model_copy(update={'content': html_to_markdown(section.content)})
        for section in sections
    ]
