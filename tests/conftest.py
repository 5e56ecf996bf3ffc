"""
Shared fixtures: CNAB240 line builders and in-memory statement batches.
"""
from datetime import date
from decimal import Decimal

import pytest

from conciliador.common.models import (
    BankReconciliation, BankTransaction, ReconciliationStatus, TransactionType,
)


def _cnab_header(bank="077", account="000001234567", company="EMPRESA TESTE LTDA"):
    line = (
        bank + "0000" + "0"            # bank, batch, record type 0 (file header)
        + " " * 9
        + "2" + "12345678000190"       # CNPJ
        + " " * 20
        + "00001" + "9"                # agency + dv
        + account.rjust(12, "0")[:12]
        + "8" + " "
        + company.ljust(30)[:30]
    )
    return line.ljust(240)


def _cnab_detail(seq, day, cents, flag, description, reference="", bank="077"):
    line = (
        bank + "0001" + "3"
        + f"{seq:05d}" + "E" + " " * 3
        + "2" + "12345678000190"
        + " " * 20
        + "00001" + "9" + "000001234567" + "8" + " "
        + "EMPRESA TESTE LTDA".ljust(30)
        + " " * 6
        + "012" + "00"
        + " " * 20
        + "S" + day + day + f"{cents:017d}" + flag
        + "1010101"                    # category + history code
        + description.ljust(25)[:25]
        + reference.ljust(40)[:40]
    )
    assert len(line) == 240
    return line


@pytest.fixture
def cnab_header():
    return _cnab_header


@pytest.fixture
def cnab_detail():
    return _cnab_detail


@pytest.fixture
def cnab_statement():
    """Header + three detail lines (one credit, two debits) + trailer."""
    return "\n".join([
        _cnab_header(),
        "07700011" + " " * 232,
        _cnab_detail(1, "02012026", 5000, "C", "SALARY", "DOC0001"),
        _cnab_detail(2, "05012026", 12990, "D", "PAGTO ENERGIA ELETRICA", "DOC0002"),
        _cnab_detail(3, "07012026", 1290, "D", "TARIFA PACOTE", "DOC0003"),
        "07700015" + " " * 232,
        "07799999" + " " * 232,
    ]) + "\n"


@pytest.fixture
def make_tx():
    counter = {"n": 0}

    def _make(day, tx_type, amount, description="", tx_id=None):
        counter["n"] += 1
        return BankTransaction(
            id=tx_id or f"tx-{counter['n']}",
            date=date.fromisoformat(day),
            type=TransactionType(tx_type),
            amount=Decimal(str(amount)).quantize(Decimal("0.01")),
            description=description,
        )
    return _make


@pytest.fixture
def make_reconciliation():
    def _make(transactions):
        transactions = tuple(transactions)
        credits = sum((t.amount for t in transactions if t.is_credit), Decimal("0.00"))
        debits = sum((t.amount for t in transactions if t.is_debit), Decimal("0.00"))
        dates = [t.date for t in transactions]
        return BankReconciliation(
            id="reconciliation-test",
            uploaded_at="2026-02-28T10:00:00",
            uploaded_by="operador",
            file_name="extrato.txt",
            bank_name="Extrato (texto)",
            account_number="unknown",
            start_date=min(dates).isoformat() if dates else "",
            end_date=max(dates).isoformat() if dates else "",
            initial_balance=Decimal("0.00"),
            final_balance=credits - debits,
            total_transactions=len(transactions),
            reconciled_transactions=0,
            transactions=transactions,
            status=ReconciliationStatus.PENDING,
        )
    return _make
