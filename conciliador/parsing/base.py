"""
Base Classes for Parsing Module

Every statement format is a strategy with two operations:
- detect(source): can this parser handle the upload?
- parse(source): build a BankReconciliation from it
"""
import hashlib
import os
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, List, Optional, Union

from conciliador.common.logging_config import get_logger
from conciliador.common.models import (
    CENTS, BankReconciliation, BankTransaction, ReconciliationStatus, TransactionType,
)
from .exceptions import FormatMismatchError

logger = get_logger(__name__)

UNKNOWN_ACCOUNT = 'unknown'


class StatementFormat(str, Enum):
    FIXED_WIDTH = 'fixed_width'
    DELIMITED = 'delimited'
    PDF_TEXT = 'pdf_text'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class StatementSource:
    """
    One uploaded statement: raw content, original file name and uploader.

    `content` is either decoded text or the raw bytes of a binary file (PDF).
    """
    content: Union[str, bytes]
    filename: str
    uploaded_by: str = ''

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename or '')[1].lstrip('.').lower()

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, (bytes, bytearray))

    def require_text(self, parser: str) -> str:
        """Text content, or FormatMismatchError when the upload is binary."""
        if self.is_binary:
            raise FormatMismatchError(
                "Conteúdo binário recebido por um parser de texto.",
                filename=self.filename, parser=parser,
            )
        return self.content

    @classmethod
    def from_upload(cls, raw: bytes, filename: str, uploaded_by: str = '') -> 'StatementSource':
        """
        Wraps uploaded bytes. Non-PDF files are decoded to text
        (UTF-8, falling back to cp1252 as used by most Brazilian bank exports).
        """
        is_pdf = (filename or '').lower().endswith('.pdf') or raw[:5] == b'%PDF-'
        if is_pdf or b'\x00' in raw[:1024]:
            return cls(content=raw, filename=filename, uploaded_by=uploaded_by)
        try:
            text = raw.decode('utf-8-sig')
        except UnicodeDecodeError:
            text = raw.decode('cp1252', errors='replace')
        return cls(content=text, filename=filename, uploaded_by=uploaded_by)


def normalize_text(text: str) -> str:
    """Trims and collapses internal whitespace."""
    return " ".join((text or '').split())


def parse_br_amount(amount_str) -> Optional[Decimal]:
    """
    Parses a Brazilian currency string to a signed Decimal.
    Examples:
        "1.000,00"    -> Decimal("1000.00")
        "-150,00"     -> Decimal("-150.00")
        "R$ 1.234,56" -> Decimal("1234.56")
        "1000.00"     -> Decimal("1000.00")
    Returns None when the string holds no number.
    """
    if amount_str is None:
        return None
    if isinstance(amount_str, (int, Decimal)):
        return Decimal(amount_str).quantize(CENTS)

    clean = str(amount_str).replace('R$', '').replace(' ', '').replace('\xa0', '').strip()
    if not clean:
        return None

    if ',' in clean:
        clean = clean.replace('.', '').replace(',', '.')
    elif not re.fullmatch(r"-?\d+\.\d{1,2}", clean):
        # Dots are thousands separators unless they form a plain decimal "1000.00"
        clean = clean.replace('.', '')

    try:
        value = Decimal(clean)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value.quantize(CENTS)


class TransactionIdFactory:
    """
    Builds ids from (source tag, date, sequence-or-index, description).

    Deterministic for a given input; a repeated base id inside one run gets a
    numeric suffix so ids never collide within a batch.
    """

    def __init__(self, tag: str):
        self.tag = tag
        self._seen: Dict[str, int] = {}

    def make(self, tx_date: date, sequence, description: str) -> str:
        digest = hashlib.sha1(description.encode('utf-8')).hexdigest()[:8]
        base = f"{self.tag}-{tx_date.isoformat()}-{sequence}-{digest}"
        count = self._seen.get(base, 0) + 1
        self._seen[base] = count
        return base if count == 1 else f"{base}-{count}"


class BaseStatementParser(ABC):
    """
    Abstract Base Class for all statement parsers.

    Subclasses set `format` and `bank_name` and implement `parse`.
    """
    format: StatementFormat = StatementFormat.UNKNOWN
    bank_name: str = 'Banco'
    id_tag: str = 'bank'

    def detect(self, source: StatementSource, registry=None) -> bool:
        """
        Returns True if this parser should handle the given upload.
        Defaults to asking the format detector.
        """
        from .detector import detect_format
        return detect_format(source.content, source.filename, registry) is self.format

    @abstractmethod
    def parse(self, source: StatementSource) -> BankReconciliation:
        """
        Parses the statement and returns a reconciliation batch.
        Must be implemented by subclasses.
        """
        raise NotImplementedError

    def _make_transaction(self, ids: TransactionIdFactory, tx_date: date, tx_type: TransactionType,
                          amount: Decimal, description: str, sequence, reference: str = '') -> BankTransaction:
        description = normalize_text(description)
        return BankTransaction(
            id=ids.make(tx_date, sequence, description),
            date=tx_date,
            type=tx_type,
            amount=abs(amount).quantize(CENTS),
            description=description,
            reference=normalize_text(reference),
        )

    def _build_reconciliation(self, source: StatementSource, transactions: List[BankTransaction],
                              bank_name: Optional[str] = None, account_number: Optional[str] = None,
                              company_name: str = '') -> BankReconciliation:
        """
        Wraps parsed transactions in a batch: date range, balance and counters.
        """
        min_date = None
        max_date = None
        credits = Decimal('0.00')
        debits = Decimal('0.00')

        for tx in transactions:
            if min_date is None or tx.date < min_date:
                min_date = tx.date
            if max_date is None or tx.date > max_date:
                max_date = tx.date
            if tx.type is TransactionType.CREDIT:
                credits += tx.amount
            else:
                debits += tx.amount

        reconciliation = BankReconciliation(
            id=f"reconciliation-{uuid.uuid4().hex}",
            uploaded_at=datetime.now().isoformat(timespec='seconds'),
            uploaded_by=source.uploaded_by,
            file_name=source.filename,
            bank_name=bank_name or self.bank_name,
            account_number=account_number or UNKNOWN_ACCOUNT,
            start_date=min_date.isoformat() if min_date else '',
            end_date=max_date.isoformat() if max_date else '',
            initial_balance=Decimal('0.00'),
            final_balance=credits - debits,
            total_transactions=len(transactions),
            reconciled_transactions=0,
            transactions=tuple(transactions),
            status=ReconciliationStatus.PENDING,
            company_name=company_name,
        )
        logger.info(
            f"{self.__class__.__name__} parsed {len(transactions)} transactions.",
            parser=self.__class__.__name__,
            file_name=source.filename,
            tx_count=len(transactions),
            start_date=reconciliation.start_date,
            end_date=reconciliation.end_date,
        )
        return reconciliation
