"""
Unit tests for BillsReconciler and the confirm / reject workflow.
"""
from decimal import Decimal

import pytest

from conciliador.common.models import MatchType, PaidRecord, ReconciliationStatus
from conciliador.core.reconciler import (
    REJECTED_NOTE, UNMATCHED_NOTE, BillsReconciler, confirm_match, reject_match,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def statement(make_tx, make_reconciliation):
    return make_reconciliation([
        make_tx("2026-02-15", "DEBIT", "850.00", "PAGTO ENERGIA ELETRICA", tx_id="d1"),
        make_tx("2026-02-16", "CREDIT", "3000.00", "PIX RECEBIDO CLIENTE", tx_id="c1"),
        make_tx("2026-02-20", "DEBIT", "100.00", "PAGTO FORNECEDOR", tx_id="d2"),
        make_tx("2026-02-25", "DEBIT", "5000.00", "TED ENVIADA", tx_id="d3"),
    ])


@pytest.fixture
def bills():
    return [
        PaidRecord(id="b1", amount=Decimal("850.00"), due_date="2026-02-15", description="Energia"),
        # diff 4 -> 60, 18 days -> 10: needs confirmation
        PaidRecord(id="b2", amount=Decimal("104.00"), due_date="2026-03-10", description="Material"),
    ]


@pytest.fixture
def result(statement, bills):
    return BillsReconciler().reconcile(statement, bills, user="operador")


# =============================================================================
# TEST: reconcile
# =============================================================================

class TestReconcile:

    def test_one_match_per_debit_in_order(self, result):
        assert [m.bank_transaction.id for m in result.matches] == ["d1", "d2", "d3"]
        assert [t.id for t in result.debit_transactions] == ["d1", "d2", "d3"]

    def test_auto_confirmed_above_threshold(self, result):
        match = result.matches[0]

        assert match.match_type is MatchType.AUTO
        assert match.bill_id == "b1"
        assert match.match_score == 140
        assert match.confirmed_by == "operador"
        assert match.confirmed_at
        assert match.bill_description == "Energia"
        assert match.bill_amount == Decimal("850.00")
        assert match.bill_due_date == "2026-02-15"

    def test_manual_in_review_band(self, result):
        match = result.matches[1]

        assert match.match_type is MatchType.MANUAL
        assert match.bill_id == "b2"
        assert match.match_score == 70
        assert match.confirmed_at is None
        assert match.confirmed_by is None

    def test_unmatched_debit(self, result):
        match = result.matches[2]

        assert match.match_type is MatchType.NONE
        assert match.bill_id is None
        assert match.match_score == 0
        assert match.notes == UNMATCHED_NOTE
        assert match.id == "match-d3-unmatched"

    def test_counters_and_status(self, result):
        assert result.total_debits == 3
        assert result.total_matched == 2
        assert result.status is ReconciliationStatus.PARTIAL
        assert result.start_date == "2026-02-15"
        assert result.end_date == "2026-02-25"

    def test_alternatives_keep_runner_ups(self, make_tx, make_reconciliation):
        statement = make_reconciliation([make_tx("2026-02-15", "DEBIT", "50.00", tx_id="d1")])
        bills = [
            PaidRecord(id="a", amount=Decimal("50.00"), due_date="2026-02-15"),
            PaidRecord(id="b", amount=Decimal("52.00"), due_date="2026-02-15"),
        ]

        match = BillsReconciler().reconcile(statement, bills).matches[0]

        assert match.bill_id == "a"
        assert [c.bill_id for c in match.alternatives] == ["b"]

    def test_auto_confirmed_bill_not_reused(self, make_tx, make_reconciliation):
        statement = make_reconciliation([
            make_tx("2026-02-15", "DEBIT", "850.00", tx_id="d1"),
            make_tx("2026-02-15", "DEBIT", "850.00", tx_id="d2"),
        ])
        bills = [PaidRecord(id="b1", amount=Decimal("850.00"), due_date="2026-02-15")]

        result = BillsReconciler().reconcile(statement, bills)

        assert [m.bill_id for m in result.matches] == ["b1", None]

    def test_no_debits(self, make_tx, make_reconciliation):
        statement = make_reconciliation([make_tx("2026-02-15", "CREDIT", "10.00")])

        result = BillsReconciler().reconcile(statement, [])

        assert result.matches == ()
        assert result.total_debits == 0
        assert result.start_date == ""
        assert result.status is ReconciliationStatus.COMPLETE

    def test_to_dict(self, result):
        data = result.to_dict()

        assert data["totalDebits"] == 3
        assert data["status"] == "partial"
        assert data["matches"][0]["matchType"] == "auto"
        assert data["matches"][0]["billAmount"] == "850.00"
        assert data["matches"][0]["bankTransaction"]["id"] == "d1"


# =============================================================================
# TEST: confirm / reject
# =============================================================================

class TestConfirmReject:

    def test_confirm_suggested_bill(self, result):
        match_id = result.matches[1].id

        updated = confirm_match(result, match_id, "revisor")

        match = updated.find_match(match_id)
        assert match.match_type is MatchType.MANUAL
        assert match.bill_id == "b2"
        assert match.confirmed_by == "revisor"
        assert match.confirmed_at
        # original untouched
        assert result.find_match(match_id).confirmed_by is None

    def test_confirm_with_override_completes(self, result):
        updated = confirm_match(result, "match-d3-unmatched", "revisor", bill_id="b9")

        assert updated.find_match("match-d3-unmatched").bill_id == "b9"
        assert updated.total_matched == 3
        assert updated.status is ReconciliationStatus.COMPLETE

    def test_reject(self, result):
        match_id = result.matches[0].id

        updated = reject_match(result, match_id, "revisor")

        match = updated.find_match(match_id)
        assert match.match_type is MatchType.NONE
        assert match.bill_id is None
        assert match.notes == REJECTED_NOTE
        assert updated.total_matched == 1
        assert updated.matched_transaction_ids() == ["d2"]

    def test_unknown_match(self, result):
        with pytest.raises(KeyError):
            confirm_match(result, "match-x", "revisor")
        with pytest.raises(KeyError):
            reject_match(result, "match-x", "revisor")
