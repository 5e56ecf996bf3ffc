"""
Delimited Text Statement Parser

Parses simple exports with one transaction per line:

    25/01/2026|PIX RECEBIDO|C|1000,00
    26/01/2026<TAB>TARIFA<TAB>D<TAB>12,90
"""
from datetime import date, datetime
from typing import Optional

from conciliador.common.logging_config import get_logger
from conciliador.common.models import BankReconciliation, TransactionType
from ..base import (
    BaseStatementParser, StatementFormat, StatementSource, TransactionIdFactory, parse_br_amount,
)
from ..detector import is_header_or_separator, split_fields

logger = get_logger(__name__)

DATE_FORMATS = ('%d/%m/%Y', '%d-%m-%Y', '%Y-%m-%d')


class DelimitedStatementParser(BaseStatementParser):
    """
    Parser for pipe / tab separated statements.

    Columns: date | description | type flag (C/D) | amount [| ignored...]
    """
    format = StatementFormat.DELIMITED
    bank_name = 'Extrato (texto)'
    id_tag = 'txt'
    min_fields = 4

    def parse(self, source: StatementSource) -> BankReconciliation:
        text = source.require_text(self.__class__.__name__)
        ids = TransactionIdFactory(self.id_tag)
        transactions = []

        for index, raw in enumerate(text.splitlines()):
            line = raw.strip()
            if not line or is_header_or_separator(line):
                continue

            fields = split_fields(line)
            if len(fields) < self.min_fields:
                logger.debug("Line with too few fields.", line_no=index + 1, fields=len(fields))
                continue

            date_s, description, flag, amount_s = fields[:4]
            tx_date = self._parse_date(date_s)
            if tx_date is None:
                logger.debug("Line with malformed date.", line_no=index + 1, value=date_s)
                continue

            amount = parse_br_amount(amount_s)
            if amount is None or amount <= 0:
                logger.debug("Line with invalid amount.", line_no=index + 1, value=amount_s)
                continue

            tx_type = TransactionType.CREDIT if flag.strip().upper() == 'C' else TransactionType.DEBIT
            transactions.append(self._make_transaction(
                ids, tx_date, tx_type, amount, description,
                sequence=index, reference=str(index),
            ))

        return self._build_reconciliation(source, transactions)

    def _parse_date(self, value: str) -> Optional[date]:
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(value.strip(), fmt).date()
            except ValueError:
                continue
        return None
