"""
Pydantic models for filing sections.

Schema Design:
- Section: one heading-delimited slice of the raw filing markup
- SectionPreview: label + anchor + short snippet, for structure discovery
- SectionsRequest / SectionsResult: request/response of DocumentService.get_sections
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SNIPPET_LENGTH = 200
ELLIPSIS = "..."


class DocumentFormat(str, Enum):
    """Output format of documents and sections."""

    HTML = "html"
    MARKDOWN = "markdown"

    @classmethod
    def parse(cls, value: Optional[str]) -> 'DocumentFormat':
        """
        Parse a user-supplied format name.

        Args:
            value: 'html'/'raw' or 'markdown'/'md'/'text'; None means markdown

        Returns:
            DocumentFormat

        Raises:
            ValueError: If value is not a known format name

        Example:
            >>> DocumentFormat.parse(None)
            <DocumentFormat.MARKDOWN: 'markdown'>
            >>> DocumentFormat.parse('RAW')
            <DocumentFormat.HTML: 'html'>
        """
        if value is None:
            return cls.MARKDOWN
        if isinstance(value, cls):
            return value

        key = str(value).strip().lower()
        if key in ('html', 'raw'):
            return cls.HTML
        if key in ('markdown', 'md', 'text', 'readable'):
            return cls.MARKDOWN

        raise ValueError(
            f"Unknown format: '{value}'. Use 'markdown' (default) or 'html'."
        )


class Section(BaseModel):
    """
    One section of a filing document.

    For a given document, (start_offset, length) pairs of all sections tile
    the original text with no gaps or overlaps.

    Example:
        >>> section = Section(content='<h2>Risk Factors</h2>...', label='Risk Factors',
        ...                   anchor_id='risk_factors', start_offset=120, length=5400)
    """

    content: str = Field(..., description="Section content (raw markup or rendered text)")
    label: str = Field(..., description="Cleaned heading text")
    anchor_id: str = Field(..., description="Identifier derived from the label")
    start_offset: int = Field(..., ge=0, description="Offset of the heading in the raw document")
    length: int = Field(..., ge=0, description="Length of the section in the raw document")

    @property
    def end_offset(self) -> int:
        return self.start_offset + self.length

    def __repr__(self) -> str:
        """Truncate content to keep terminals readable."""
        preview = self.content[:80] + ELLIPSIS if len(self.content) > 80 else self.content
        return (
            f"Section(label='{self.label}', anchor_id='{self.anchor_id}', "
            f"start_offset={self.start_offset}, length={self.length}, "
            f"content='{preview}')"
        )


class SectionPreview(BaseModel):
    """Label, anchor and a snippet of at most SNIPPET_LENGTH characters plus ellipsis."""

    label: str
    anchor_id: str
    snippet: str = ""

    @classmethod
    def from_section(cls, section: Section) -> 'SectionPreview':
        content = section.content
        if len(content) > SNIPPET_LENGTH:
            snippet = content[:SNIPPET_LENGTH] + ELLIPSIS
        else:
            snippet = content
        return cls(label=section.label, anchor_id=section.anchor_id, snippet=snippet)


class SectionsRequest(BaseModel):
    """
    Request model for DocumentService.get_sections.

    Attributes:
        preview_only: Return previews of every section and nothing else
        anchor_ids: Anchor IDs to keep (case-insensitive); empty or None keeps all
        merge: Also return the filtered sections joined into one string
        format: Output format of section contents (markdown by default)

    Example:
        >>> request = SectionsRequest(anchor_ids=['Risk_Factors'], merge=True)
        >>> request.anchor_ids
        ['Risk_Factors']
    """

    preview_only: bool = False
    anchor_ids: Optional[List[str]] = None
    merge: bool = False
    format: DocumentFormat = DocumentFormat.MARKDOWN

    model_config = ConfigDict(frozen=True)

    @field_validator('format', mode='before')
    @classmethod
    def parse_format(cls, v) -> DocumentFormat:
        return DocumentFormat.parse(v)


class SectionsResult(BaseModel):
    """Either a preview list, or filtered sections plus optional merged content."""

    preview: Optional[List[SectionPreview]] = None
    sections: Optional[List[Section]] = None
    merged_content: Optional[str] = None
