"""
Pydantic models for EDGAR filings.

Schema Design:
- AccessionNumber: three-part composite identifier of one submission
- FilingDocument: one manifest row of a filing index page
- FilingDescriptor: everything the index page says about a filing
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from edgar_filing_text.validators import ACCESSION_PATTERN, normalize_accession_number


class AccessionNumber(BaseModel):
    """
    Accession number: filer id, two-digit year and six-digit sequence.

    Example:
        >>> acc = AccessionNumber.parse('0000320193-23-000106')
        >>> acc.filer_id, acc.year, acc.sequence
        (320193, 23, 106)
        >>> str(acc)
        '0000320193-23-000106'
        >>> acc.no_dashes
        '000032019323000106'
    """

    filer_id: int = Field(..., ge=0, description="Filer (or filing agent) CIK")
    year: int = Field(..., ge=0, le=99, description="Two-digit filing year")
    sequence: int = Field(..., ge=0, le=999999, description="Sequence within the year")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def parse(cls, value: str) -> 'AccessionNumber':
        """
        Parse an accession string (markers such as '-index.htm' are tolerated).

        Raises:
            ValueError: If the string is not a valid accession number
        """
        normalized = normalize_accession_number(value)
        match = ACCESSION_PATTERN.match(normalized)
        filer_id, year, sequence = match.groups()
        return cls(filer_id=int(filer_id), year=int(year), sequence=int(sequence))

    @property
    def no_dashes(self) -> str:
        """18-digit form used in archive folder names."""
        return str(self).replace('-', '')

    def __str__(self) -> str:
        return f"{self.filer_id:010d}-{self.year:02d}-{self.sequence:06d}"


class FilingDocument(BaseModel):
    """
    One file listed in a filing index manifest.

    Attributes:
        sequence: Position in the manifest (1 is usually the primary document)
        description: Free-text description (e.g., '10-K', 'EX-21.1')
        name: File name
        url: Absolute URL of the file
        type: Declared document type (e.g., '10-K', 'EX-101.INS')
        size: Size in bytes (0 if not stated)
    """

    sequence: Optional[int] = None
    description: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None
    size: int = 0


class FilingDescriptor(BaseModel):
    """
    Metadata parsed from a filing index page.

    Derived on demand from upstream content; never the source of truth.

    Example:
        >>> descriptor.form_type
        '10-K'
        >>> descriptor.documents[0].url
        'https://www.sec.gov/Archives/edgar/data/320193/000032019323000106/aapl-20230930.htm'
    """

    accession_number: Optional[AccessionNumber] = None
    form_type: Optional[str] = None
    filing_date: Optional[date] = None
    period_of_report: Optional[date] = None
    accepted: Optional[datetime] = None
    filer_name: Optional[str] = None
    filer_cik: Optional[int] = None
    documents: List[FilingDocument] = Field(
        default_factory=list,
        description="Document format files (HTML, PDF, text, exhibits)"
    )
    data_files: List[FilingDocument] = Field(
        default_factory=list,
        description="Data files (XBRL instance, schema, linkbases)"
    )

    def __repr__(self) -> str:
        return (
            f"FilingDescriptor("
            f"accession_number='{self.accession_number}', "
            f"form_type='{self.form_type}', "
            f"filer_name='{self.filer_name}', "
            f"documents={len(self.documents)}, "
            f"data_files={len(self.data_files)})"
        )
