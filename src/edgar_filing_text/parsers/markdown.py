"""
HTML → markdown rendering for filing content.

Walks an lxml.html tree and emits lightweight GitHub-flavored markdown:
- headings, paragraphs, line breaks, rules, lists, block quotes
- emphasis (**bold**, *italic*), links, images, inline/pre code
- tables (via table_parser)
- comments, scripts, styles, hidden and iXBRL header content are dropped
"""

import re
from typing import Optional

from lxml import etree, html

from .table_parser import parse_table, table_to_markdown

_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>', re.IGNORECASE)
_WHITESPACE = re.compile(r'\s+')
_BLANK_LINES = re.compile(r'\n{3,}')

SKIP_TAGS = {'script', 'style', 'head', 'title', 'meta', 'link', 'noscript', 'template'}
BLOCK_TAGS = {
    'p', 'div', 'section', 'article', 'header', 'footer', 'main', 'nav', 'aside',
    'center', 'body', 'html', 'form', 'fieldset', 'figure', 'figcaption', 'address',
    'dl', 'dt', 'dd', 'caption',
}
HEADING_TAGS = {'h1', 'h2', 'h3', 'h4', 'h5', 'h6'}
BOLD_TAGS = {'strong', 'b'}
ITALIC_TAGS = {'em', 'i', 'cite', 'var'}


def html_to_markdown(markup: str) -> str:
    """
    Convert an HTML document or fragment to markdown.

    Args:
        markup: Raw HTML (possibly an unbalanced slice of a larger document)

    Returns:
        Markdown text ('' if the markup has no visible content)

    Example:
        >>> html_to_markdown('<h2>Risk Factors</h2><p>We face <b>risks</b>.</p>')
        '## Risk Factors\\n\\nWe face **risks**.'
    """
    if not markup or not markup.strip():
        return ''

    markup = _XML_DECLARATION.sub('', markup, count=1)
    if not markup.strip():
        return ''

    parser = html.HTMLParser(remove_comments=True, remove_pis=True)
    try:
        root = html.document_fromstring(markup, parser=parser)
    except (etree.ParserError, ValueError):
        # Comment-only or otherwise empty documents
        return ''

    rendered = _render(root)
    return _tidy(rendered)


def _tidy(text: str) -> str:
    lines = [line.rstrip() for line in text.split('\n')]
    text = '\n'.join(lines)
    text = _BLANK_LINES.sub('\n\n', text)
    return text.strip()


def _inline(text: Optional[str]) -> str:
    """Collapse HTML whitespace like a browser would."""
    if not text:
        return ''
    return _WHITESPACE.sub(' ', text)


def _is_hidden(el: html.HtmlElement) -> bool:
    style = (el.get('style') or '').replace(' ', '').lower()
    return 'display:none' in style or el.get('hidden') is not None


def _children(el: html.HtmlElement) -> str:
    parts = [_inline(el.text)]
    for child in el:
        parts.append(_render(child))
        parts.append(_inline(child.tail))
    return ''.join(parts)


def _wrap(inner: str, marker: str) -> str:
    """Wrap inner text in an emphasis marker, keeping outer whitespace outside."""
    stripped = inner.strip()
    if not stripped:
        return inner
    lead = ' ' if inner[:1].isspace() else ''
    trail = ' ' if inner[-1:].isspace() else ''
    return f"{lead}{marker}{stripped}{marker}{trail}"


def _single_line(text: str) -> str:
    return _WHITESPACE.sub(' ', text).strip()


def _render_list(el: html.HtmlElement, ordered: bool) -> str:
    items = []
    index = 1
    for child in el:
        if not isinstance(child.tag, str) or child.tag != 'li':
            continue
        body = _tidy(_children(child))
        if not body:
            continue
        prefix = f"{index}. " if ordered else "- "
        indent = ' ' * len(prefix)
        body = body.replace('\n', '\n' + indent)
        items.append(prefix + body)
        index += 1
    if not items:
        return ''
    return '\n\n' + '\n'.join(items) + '\n\n'


def _render(el: html.HtmlElement) -> str:
    tag = el.tag
    if not isinstance(tag, str):
        # Comments / processing instructions that survived parsing
        return ''

    tag = tag.lower()
    if tag in SKIP_TAGS or (tag.startswith('ix:') and tag.endswith('header')):
        return ''
    if _is_hidden(el):
        return ''

    if tag in HEADING_TAGS:
        text = _single_line(_children(el))
        if not text:
            return ''
        return f"\n\n{'#' * int(tag[1])} {text}\n\n"

    if tag == 'br':
        return '\n'

    if tag == 'hr':
        return '\n\n---\n\n'

    if tag == 'table':
        table_md = table_to_markdown(parse_table(el))
        return f"\n\n{table_md}\n\n" if table_md else ''

    if tag == 'ul':
        return _render_list(el, ordered=False)

    if tag == 'ol':
        return _render_list(el, ordered=True)

    if tag == 'blockquote':
        body = _tidy(_children(el))
        if not body:
            return ''
        quoted = '\n'.join(f"> {line}" if line else '>' for line in body.split('\n'))
        return f"\n\n{quoted}\n\n"

    if tag == 'pre':
        body = el.text_content().strip('\n')
        return f"\n\n```\n{body}\n```\n\n" if body.strip() else ''

    if tag == 'code':
        body = _single_line(el.text_content())
        return f"`{body}`" if body else ''

    if tag in BOLD_TAGS:
        return _wrap(_children(el), '**')

    if tag in ITALIC_TAGS:
        return _wrap(_children(el), '*')

    if tag == 'a':
        text = _single_line(_children(el))
        href = (el.get('href') or '').strip()
        if not href or href.startswith('#') or href.lower().startswith('javascript:'):
            return text
        if not text or text == href:
            return f"<{href}>"
        return f"[{text}]({href})"

    if tag == 'img':
        src = (el.get('src') or '').strip()
        if not src:
            return ''
        alt = _single_line(el.get('alt') or '')
        return f"![{alt}]({src})"

    if tag in BLOCK_TAGS or tag == 'li':
        body = _children(el)
        return f"\n\n{body.strip()}\n\n" if body.strip() else ''

    # Inline / unknown elements (span, font, ix:nonfraction, ...) render their children
    return _children(el)
