"""
Fixed-Width Layout Configuration

Defines dataclasses describing where each field lives in a positional
(CNAB-style) bank export, so a new exporter is a new layout, not new code.
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ColumnDef:
    """
    A positional field: `length` characters starting at 0-based `start`.

    Attributes:
        name: Field name ('bank_code', 'account', 'company', 'sequence', 'reference')
        start: 0-based start column
        length: Field width in characters
    """
    name: str
    start: int
    length: int

    def extract(self, line: str) -> str:
        return line[self.start:self.start + self.length]


@dataclass
class FixedWidthLayout:
    """
    Configuration for one exporter's fixed-width statement file.

    Detail lines are recognised by `detail_prefix`. Date, amount and the C/D
    flag are located with `detail_pattern` (groups: accounting date, posting
    date, amount in minor units, flag); the description is read
    `description_offset` characters after the flag.

    Attributes:
        name: Human-readable layout name (e.g. "Banco Inter - CNAB240 Extrato")
        bank_id: Bank code found in the file header (e.g. "077")
        bank_name: Label stored on the reconciliation batch
        detail_prefix: Literal prefix of every transaction line
        keywords: Extra substrings that identify this layout in raw text
        header_columns: Header fields (bank_code, account, company)
        detail_columns: Detail fields (sequence, reference)
    """
    name: str
    bank_id: str
    bank_name: str
    detail_prefix: str
    keywords: List[str] = field(default_factory=list)
    header_columns: List[ColumnDef] = field(default_factory=list)
    detail_columns: List[ColumnDef] = field(default_factory=list)

    # Header recognition
    header_record_column: int = 7
    header_marker: str = '0'

    # Detail extraction
    detail_pattern: str = r"S(\d{8})(\d{8})(\d{17})([A-Z])"
    date_group: int = 2
    amount_group: int = 3
    flag_group: int = 4
    date_format: str = '%d%m%Y'
    amount_scale: int = 100
    credit_flag: str = 'C'
    description_offset: int = 7
    description_width: int = 25
    empty_description: str = 'SEM DESCRIÇÃO'

    def header_column(self, name: str) -> Optional[ColumnDef]:
        return next((c for c in self.header_columns if c.name == name), None)

    def detail_column(self, name: str) -> Optional[ColumnDef]:
        return next((c for c in self.detail_columns if c.name == name), None)

    def is_header(self, line: str) -> bool:
        col = self.header_record_column
        return line[col:col + 1] == self.header_marker

    def is_detail(self, line: str) -> bool:
        return line.startswith(self.detail_prefix)


# Banco Inter statement export (FEBRABAN CNAB240, segment E).
# Detail lines: bank 077, batch 0001, record type 3, sequence starting "00".
BANCO_INTER_CNAB240 = FixedWidthLayout(
    name="Banco Inter - CNAB240 Extrato",
    bank_id="077",
    bank_name="Banco Inter",
    detail_prefix="0770001300",
    keywords=["0770001300"],
    header_columns=[
        ColumnDef(name="bank_code", start=0, length=3),
        ColumnDef(name="account", start=58, length=12),
        ColumnDef(name="company", start=72, length=30),
    ],
    detail_columns=[
        # FEBRABAN record number (positions 9-13). Readers slicing [10:15] also take
        # the segment code; the column only feeds transaction ids.
        ColumnDef(name="sequence", start=8, length=5),
        ColumnDef(name="reference", start=200, length=40),
    ],
)
