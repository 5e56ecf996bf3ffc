"""
PDF Statement Parser

Heuristic extraction over lines reconstructed from a PDF (see layout_text).
Best effort: odd lines are skipped, never raised.
"""
import re
from datetime import date
from typing import List, Optional, Tuple

from conciliador.common.logging_config import get_logger
from conciliador.common.models import BankReconciliation, BankTransaction, TransactionType
from ..base import (
    BaseStatementParser, StatementFormat, StatementSource, TransactionIdFactory,
    normalize_text, parse_br_amount,
)
from ..layout_text import DEFAULT_TOLERANCE, extract_pdf_lines

logger = get_logger(__name__)

FULL_DATE_RE = re.compile(r"(?<![\d/])(\d{2})/(\d{2})/(\d{4})(?![\d/])")
DATE_TOKEN_RE = re.compile(r"(?<![\d/])(\d{2})/(\d{2})(?:/(\d{4}))?(?![\d/])")
YEAR_RE = re.compile(r"\b(20\d{2})\b")
AMOUNT_RE = re.compile(
    r"(?<![\w.,/])-?(?:\d{1,3}(?:\.\d{3})+|\d+),\d{2}(?!\d)"
    r"|(?<![\w.,/])-?\d+\.\d{2}(?![\d.])"
)
DC_WORDS_RE = re.compile(r"\b(?:CR[ÉE]DITO|D[ÉE]BITO)\b", re.IGNORECASE)
STRAY_DC_RE = re.compile(r"(?<!\S)[CD](?!\S)")

# Structural lines: titles, period, balances, totals, account labels, column headers
BLACKLIST = [
    "EXTRATO", "PERÍODO", "PERIODO", "SALDO", "S A L D O", "TOTAL",
    "AGÊNCIA", "AGENCIA", "CONTA CORRENTE", "CONTA:", "Nº DA CONTA",
    "DATA HISTÓRICO", "DATA HISTORICO", "DATA DESCRIÇÃO", "DATA DESCRICAO",
    "DATA LANÇAMENTO", "DATA LANCAMENTO", "LANÇAMENTOS", "LANCAMENTOS",
]

DEBIT_KEYWORDS = [
    "DÉBITO", "DEBITO", "PAGAMENTO", "PAGTO", "PGTO", "ENVIADO", "ENVIADA",
    "SAÍDA", "SAIDA", "TARIFA", "PIX ENVIADO", "TRANSFERÊNCIA", "TRANSFERENCIA", "SAQUE",
]
CREDIT_KEYWORDS = [
    "CRÉDITO", "CREDITO", "RECEBIDO", "RECEBIDA", "ENTRADA", "DEPÓSITO", "DEPOSITO", "PIX RECEBIDO",
]


class PdfStatementParser(BaseStatementParser):
    """
    Parser for PDF statements.

    Binary content is decoded with pdfplumber and reconstructed into lines;
    text content is taken as lines that were already extracted.

    Attributes:
        amount_position: Which amount token to use when a line has several.
            Defaults to -2 (the last column is usually the running balance).
        tolerance: Vertical tolerance used when rebuilding lines
    """
    format = StatementFormat.PDF_TEXT
    bank_name = 'Extrato (PDF)'
    id_tag = 'pdf'

    def __init__(self, amount_position: int = -2, tolerance: float = DEFAULT_TOLERANCE):
        self.amount_position = amount_position
        self.tolerance = tolerance

    def parse(self, source: StatementSource) -> BankReconciliation:
        if source.is_binary:
            lines = extract_pdf_lines(bytes(source.content), source.filename, self.tolerance)
        else:
            lines = source.content.splitlines()
        transactions = self.extract_transactions(lines)
        return self._build_reconciliation(source, transactions)

    def extract_transactions(self, lines: List[str]) -> List[BankTransaction]:
        """Runs the heuristics over reconstructed lines."""
        period = self._find_period(lines)
        text_year = self._find_year(lines)
        ids = TransactionIdFactory(self.id_tag)
        transactions = []

        for index, raw in enumerate(lines):
            line = normalize_text(raw)
            if not line or self.should_ignore_line(line):
                continue
            try:
                tx = self._parse_line(line, index, period, text_year, ids)
            except (ValueError, ArithmeticError) as e:
                logger.debug(f"Skipping line: {e}", line_no=index + 1)
                continue
            if tx is not None:
                transactions.append(tx)

        logger.debug("PDF heuristic extraction finished.", line_count=len(lines), tx_count=len(transactions))
        return transactions

    def should_ignore_line(self, line: str) -> bool:
        """
        Checks if a line is structural (title, balance, totals, headers).
        """
        upper_line = line.upper()
        return any(k in upper_line for k in BLACKLIST)

    def _parse_line(self, line: str, index: int, period, text_year, ids: TransactionIdFactory) -> Optional[BankTransaction]:
        date_match = DATE_TOKEN_RE.search(line)
        if not date_match:
            return None

        day_s, month_s, year_s = date_match.groups()
        day, month = int(day_s), int(month_s)
        year = int(year_s) if year_s else self._fallback_year(day, month, period, text_year)
        tx_date = date(year, month, day)

        amount_tokens = AMOUNT_RE.findall(line)
        if not amount_tokens:
            return None
        # Clamp to the tokens present; short lines carry the amount first
        position = max(-len(amount_tokens), min(self.amount_position, len(amount_tokens) - 1))
        token = amount_tokens[position]

        amount = parse_br_amount(token)
        if amount is None or amount == 0:
            return None

        tx_type = self._detect_direction(token, line)
        description = self._clean_description(line, date_match)
        if not description:
            return None

        return self._make_transaction(ids, tx_date, tx_type, amount, description, sequence=index, reference=str(index))

    def _detect_direction(self, token: str, line: str) -> TransactionType:
        if token.strip().startswith('-'):
            return TransactionType.DEBIT
        upper_line = line.upper()
        if any(k in upper_line for k in DEBIT_KEYWORDS):
            return TransactionType.DEBIT
        if any(k in upper_line for k in CREDIT_KEYWORDS):
            return TransactionType.CREDIT
        return TransactionType.CREDIT

    def _clean_description(self, line: str, date_match) -> str:
        text = line[:date_match.start()] + " " + line[date_match.end():]
        text = AMOUNT_RE.sub(" ", text)
        text = text.replace("R$", " ")
        text = DC_WORDS_RE.sub(" ", text)
        text = STRAY_DC_RE.sub(" ", text)
        return normalize_text(text)

    def _find_period(self, lines: List[str]) -> Optional[Tuple[date, date]]:
        """First line holding two DD/MM/YYYY dates: (period start, period end)."""
        for line in lines:
            found = FULL_DATE_RE.findall(line)
            if len(found) >= 2:
                try:
                    start = date(int(found[0][2]), int(found[0][1]), int(found[0][0]))
                    end = date(int(found[1][2]), int(found[1][1]), int(found[1][0]))
                except ValueError:
                    continue
                return start, end
        return None

    def _find_year(self, lines: List[str]) -> Optional[int]:
        for line in lines:
            m = YEAR_RE.search(line)
            if m:
                return int(m.group(1))
        return None

    def _fallback_year(self, day: int, month: int, period, text_year) -> int:
        """
        Year for DD/MM dates: the period start year, or the end year when the
        period crosses new year and the date falls before the period start.
        """
        if period:
            start, end = period
            if start.year != end.year and (month, day) < (start.month, start.day):
                return end.year
            return start.year
        return text_year or date.today().year
