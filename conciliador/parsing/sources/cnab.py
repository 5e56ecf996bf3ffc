"""
Fixed-Width (CNAB240) Statement Parser

Reads positional bank exports using a FixedWidthLayout column map.
"""
import re
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from conciliador.common.logging_config import get_logger
from conciliador.common.models import BankReconciliation, TransactionType
from ..base import (
    BaseStatementParser, StatementFormat, StatementSource, TransactionIdFactory, normalize_text,
)
from ..exceptions import FormatMismatchError
from ..config.layout import FixedWidthLayout
from ..config.registry import LayoutRegistry

logger = get_logger(__name__)


class CnabStatementParser(BaseStatementParser):
    """
    Parser for fixed-width ledger exports (CNAB-style).

    Best effort for the exporters described by the registered layouts: the
    header (when present) selects the layout by bank code, otherwise the
    layout whose detail prefix appears in the file is used.
    """
    format = StatementFormat.FIXED_WIDTH
    bank_name = 'Banco Inter'
    id_tag = 'cnab'

    def __init__(self, registry: Optional[LayoutRegistry] = None, layout: Optional[FixedWidthLayout] = None):
        self.registry = registry or LayoutRegistry()
        self.layout = layout

    def parse(self, source: StatementSource) -> BankReconciliation:
        text = source.require_text(self.__class__.__name__)
        lines = [line for line in text.splitlines() if line.strip()]

        layout = self.layout or self.registry.detect(text) or next(iter(self.registry.layouts), None)
        if layout is None:
            raise FormatMismatchError(
                "Nenhum layout de largura fixa registrado.",
                filename=source.filename, parser=self.__class__.__name__,
            )
        header = None
        transactions = []
        ids = TransactionIdFactory(self.id_tag)
        skipped = 0

        for line_no, line in enumerate(lines, start=1):
            if header is None and layout.is_header(line):
                header = self._parse_header(line, layout)
                # The header's bank code may point at a more specific layout
                if not self.layout:
                    by_bank = self.registry.get_by_bank_id(header.get('bank_code', ''))
                    if by_bank:
                        layout = by_bank
                continue

            if not layout.is_detail(line):
                continue

            try:
                tx = self._parse_detail(line, layout, ids, line_no)
            except (ValueError, ArithmeticError, IndexError) as e:
                skipped += 1
                logger.warning(f"Skipping malformed detail line: {e}", line_no=line_no, layout=layout.name)
                continue

            if tx is None:
                skipped += 1
                logger.debug("Detail line without date/amount pattern.", line_no=line_no, layout=layout.name)
                continue
            transactions.append(tx)

        if skipped:
            logger.info("Some detail lines were skipped.", skipped=skipped, file_name=source.filename)

        header = header or {}
        return self._build_reconciliation(
            source,
            transactions,
            bank_name=layout.bank_name,
            account_number=header.get('account') or None,
            company_name=header.get('company', ''),
        )

    def _parse_header(self, line: str, layout: FixedWidthLayout) -> Dict[str, str]:
        """Extracts bank code / account / company from the file header."""
        header = {}
        for name in ('bank_code', 'account', 'company'):
            col = layout.header_column(name)
            if col:
                header[name] = col.extract(line).strip()
        # Account numbers come zero-padded
        if header.get('account'):
            header['account'] = header['account'].lstrip('0') or header['account']
        return header

    def _parse_detail(self, line: str, layout: FixedWidthLayout, ids: TransactionIdFactory, index: int):
        """
        Parses one detail line. Returns None when the date/amount pattern is
        missing; raises ValueError on malformed fields.
        """
        match = re.search(layout.detail_pattern, line)
        if not match:
            return None

        tx_date = datetime.strptime(match.group(layout.date_group), layout.date_format).date()
        amount = Decimal(int(match.group(layout.amount_group))) / layout.amount_scale
        flag = match.group(layout.flag_group)
        tx_type = TransactionType.CREDIT if flag == layout.credit_flag else TransactionType.DEBIT

        desc_start = match.end(layout.flag_group) + layout.description_offset
        description = normalize_text(line[desc_start:desc_start + layout.description_width])
        if not description:
            description = layout.empty_description

        seq_col = layout.detail_column('sequence')
        sequence = int(seq_col.extract(line)) if seq_col else index

        ref_col = layout.detail_column('reference')
        reference = ref_col.extract(line).strip() if ref_col else ''

        return self._make_transaction(
            ids, tx_date, tx_type, amount, description,
            sequence=sequence,
            reference=reference,
        )
