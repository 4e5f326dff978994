"""
Table parsing utilities for filing HTML.

Extracts tables as headers + rows from lxml elements and renders them as
GitHub-flavored markdown tables.
"""

from typing import Any, Dict, List

from lxml import html


def _cell_text(cell: html.HtmlElement) -> str:
    """Cell text with whitespace (including &nbsp;) collapsed."""
    return ' '.join(cell.text_content().split())


def parse_table(table_elem: html.HtmlElement) -> Dict[str, Any]:
    """
    Extract table with headers and rows.

    Headers come from <thead> or, failing that, from a first row made only
    of <th> cells. Rows whose cells are all empty are dropped, and so are
    columns that are empty in every row (SEC filings use spacer cells
    heavily).

    Args:
        table_elem: lxml Element for <table>

    Returns:
        Dictionary with 'headers' and 'rows' keys:
        {
            'headers': ['Header1', 'Header2', ...],
            'rows': [
                ['Cell1', 'Cell2', ...],
                ...
            ]
        }
    """
    headers: List[str] = []
    rows: List[List[str]] = []

    # Rows of nested tables belong to the nested table
    all_rows = [
        tr for tr in table_elem.iter('tr')
        if next(tr.iterancestors('table'), None) is table_elem
    ]

    for tr in all_rows:
        cells = [c for c in tr if isinstance(c.tag, str) and c.tag in ('td', 'th')]
        if not cells:
            continue

        values = [_cell_text(c) for c in cells]
        in_thead = next(tr.iterancestors('thead'), None) is not None
        all_th = all(c.tag == 'th' for c in cells)

        if not headers and not rows and (in_thead or all_th):
            headers = values
            continue

        if any(values):
            rows.append(values)

    return _drop_empty_columns({'headers': headers, 'rows': rows})


def _drop_empty_columns(table: Dict[str, Any]) -> Dict[str, Any]:
    headers = table['headers']
    rows = table['rows']

    width = max([len(headers)] + [len(r) for r in rows]) if (headers or rows) else 0
    keep = []
    for i in range(width):
        column = [r[i] if i < len(r) else '' for r in rows]
        header = headers[i] if i < len(headers) else ''
        if header or any(column):
            keep.append(i)

    return {
        'headers': [headers[i] if i < len(headers) else '' for i in keep] if headers else [],
        'rows': [[r[i] if i < len(r) else '' for i in keep] for r in rows],
    }


def table_to_markdown(table: Dict[str, Any]) -> str:
    """
    Render a parsed table as a markdown table.

    The first row is promoted to the header when the table has none.

    Args:
        table: Parsed table from parse_table()

    Returns:
        Markdown table text, or '' for an empty table

    Example:
        >>> table_to_markdown({'headers': ['Year', 'Revenue'], 'rows': [['2023', '$383,285']]})
        '| Year | Revenue |\\n| --- | --- |\\n| 2023 | $383,285 |'
    """
    headers = list(table['headers'])
    rows = [list(r) for r in table['rows']]

    if not headers and not rows:
        return ''
    if not headers:
        headers = rows.pop(0)

    width = max([len(headers)] + [len(r) for r in rows])

    def fmt(cells: List[str]) -> str:
        padded = cells + [''] * (width - len(cells))
        return '| ' + ' | '.join(c.replace('|', '\\|') for c in padded) + ' |'

    lines = [fmt(headers), '| ' + ' | '.join(['---'] * width) + ' |']
    lines.extend(fmt(r) for r in rows)
    return '\n'.join(lines)
