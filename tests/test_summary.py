"""
Unit tests for statement summaries and the immutable batch models.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from conciliador.common.models import (
    BankTransaction, PaidRecord, ReconciliationStatus, to_date, to_money,
)
from conciliador.core.summary import (
    daily_totals, debit_transactions, group_credits_by_date, pix_received_transactions,
    total_credits_for_date,
)


@pytest.fixture
def transactions(make_tx):
    return [
        make_tx("2026-01-02", "CREDIT", "100.00", "PIX RECEBIDO CLIENTE A", tx_id="t1"),
        make_tx("2026-01-02", "DEBIT", "30.50", "TARIFA", tx_id="t2"),
        make_tx("2026-01-02", "CREDIT", "20.00", "RECEBIMENTO BOLETO", tx_id="t3"),
        make_tx("2026-01-03", "CREDIT", "5.00", "ESTORNO", tx_id="t4"),
        make_tx("2026-01-01", "DEBIT", "10.00", "PAGTO", tx_id="t5"),
    ]


# =============================================================================
# TEST: summaries
# =============================================================================

class TestSummaries:

    def test_debit_transactions(self, transactions):
        assert [t.id for t in debit_transactions(transactions)] == ["t2", "t5"]

    def test_group_credits_by_date(self, transactions):
        grouped = group_credits_by_date(transactions)

        assert list(grouped) == ["2026-01-02", "2026-01-03"]
        assert [t.id for t in grouped["2026-01-02"]] == ["t1", "t3"]

    @pytest.mark.parametrize("day", ["2026-01-02", date(2026, 1, 2), datetime(2026, 1, 2, 15, 30)])
    def test_total_credits_for_date(self, transactions, day):
        assert total_credits_for_date(transactions, day) == Decimal("120.00")

    def test_total_credits_for_empty_day(self, transactions):
        assert total_credits_for_date(transactions, "2026-02-01") == Decimal("0.00")

    def test_pix_received(self, transactions):
        assert [t.id for t in pix_received_transactions(transactions)] == ["t1", "t3"]

    def test_daily_totals(self, transactions, make_reconciliation):
        df = daily_totals(make_reconciliation(transactions))

        assert list(df.columns) == ["date", "credits", "debits", "net"]
        assert list(df["date"]) == [date(2026, 1, 1), date(2026, 1, 2), date(2026, 1, 3)]
        assert list(df["credits"]) == [0.0, 120.0, 5.0]
        assert list(df["debits"]) == [10.0, 30.5, 0.0]
        assert list(df["net"]) == [-10.0, 89.5, 5.0]

    def test_daily_totals_empty(self, make_reconciliation):
        df = daily_totals(make_reconciliation([]))

        assert df.empty
        assert list(df.columns) == ["date", "credits", "debits", "net"]


# =============================================================================
# TEST: models
# =============================================================================

class TestModels:

    @pytest.mark.parametrize("value,expected", [
        (0.1, Decimal("0.10")),
        ("12.345", Decimal("12.35")),
        (Decimal("7"), Decimal("7.00")),
        (3, Decimal("3.00")),
    ])
    def test_to_money(self, value, expected):
        assert to_money(value) == expected

    def test_to_money_invalid(self):
        with pytest.raises(ValueError):
            to_money("doze reais")

    def test_to_date(self):
        assert to_date("2026-01-02T10:00:00") == date(2026, 1, 2)
        assert to_date(datetime(2026, 1, 2, 9)) == date(2026, 1, 2)

    def test_amounts_serialize_as_two_decimal_strings(self, make_tx, make_reconciliation):
        tx = make_tx("2026-01-25", "CREDIT", "0.1", "PIX")

        data = make_reconciliation([tx]).to_dict()

        assert data["transactions"][0]["amount"] == "0.10"
        assert data["finalBalance"] == "0.10"

    def test_transaction_round_trip(self, make_tx):
        tx = make_tx("2026-01-02", "DEBIT", "12.90", "TARIFA")

        assert BankTransaction.from_dict(tx.to_dict()) == tx

    def test_transaction_from_dict_normalises(self):
        tx = BankTransaction.from_dict({"id": "x", "date": "2026-01-02", "type": "debit", "amount": -5})

        assert tx.amount == Decimal("5.00")
        assert tx.is_debit

    def test_paid_record_camel_case(self):
        record = PaidRecord.from_dict({
            "id": 7, "amount": "100", "dueDate": "2026-01-10", "paidAmount": 95.5, "paidDate": "2026-01-12",
        })

        assert record.id == "7"
        assert record.effective_amount == Decimal("95.50")
        assert record.effective_date == "2026-01-12"

    def test_paid_record_without_payment_data(self):
        record = PaidRecord.from_dict({"id": "b", "amount": 10, "due_date": "2026-01-10"})

        assert record.effective_amount == Decimal("10.00")
        assert record.effective_date == "2026-01-10"

    def test_with_reconciled(self, transactions, make_reconciliation):
        batch = make_reconciliation(transactions)

        partial = batch.with_reconciled(["t1", "t2"])
        assert partial.reconciled_transactions == 2
        assert partial.status is ReconciliationStatus.PARTIAL
        assert batch.reconciled_transactions == 0

        complete = batch.with_reconciled([t.id for t in transactions])
        assert complete.status is ReconciliationStatus.COMPLETE

        reset = complete.with_reconciled([])
        assert reset.status is ReconciliationStatus.PENDING
        assert not any(t.reconciled for t in reset.transactions)

    def test_batch_to_dict(self, transactions, make_reconciliation):
        data = make_reconciliation(transactions).to_dict()

        assert data["totalTransactions"] == 5
        assert data["finalBalance"] == "84.50"
        assert data["initialBalance"] == "0.00"
        assert data["status"] == "pending"
        assert data["transactions"][0]["date"] == "2026-01-02"
