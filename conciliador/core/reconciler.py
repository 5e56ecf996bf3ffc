import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from conciliador.common.logging_config import get_logger
from conciliador.common.models import (
    BankReconciliation, BillMatch, BillsReconciliation, MatchType, PaidRecord, ReconciliationStatus,
)
from .matcher import DEFAULT_POLICY, BillMatcher, MatchPolicy
from .summary import debit_transactions

logger = get_logger(__name__)

UNMATCHED_NOTE = 'Débito sem conta correspondente'
REJECTED_NOTE = 'Rejeitado pelo usuário'


def _now() -> str:
    return datetime.now().isoformat(timespec='seconds')


class BillsReconciler:
    """
    Pairs the debits of a statement with paid bills.

    Per debit, the best candidate decides the outcome:
    - score > auto_confirm_above -> 'auto' (confirmed)
    - score in [min_score, auto_confirm_above] -> 'manual' (awaits the user)
    - no candidate -> 'none'
    A bill auto-confirmed for one debit is not offered to later debits.
    """

    def __init__(self, policy: MatchPolicy = DEFAULT_POLICY):
        self.policy = policy
        self.matcher = BillMatcher(policy)

    def reconcile(self, reconciliation: BankReconciliation, paid_bills: Iterable[PaidRecord],
                  user: str = '') -> BillsReconciliation:
        """
        Runs matching for every debit of the batch.

        Args:
            reconciliation: Parsed statement
            paid_bills: Paid records supplied by the caller
            user: Identity stored on auto-confirmed matches

        Returns:
            BillsReconciliation with one BillMatch per debit, in statement order
        """
        bills = list(paid_bills)
        bills_by_id: Dict[str, PaidRecord] = {b.id: b for b in bills}
        used: Set[str] = set()
        debits = debit_transactions(reconciliation.transactions)
        matches: List[BillMatch] = []

        for debit in debits:
            available = [b for b in bills if b.id not in used]
            ranked = self.matcher.match(debit, available)

            if not ranked:
                matches.append(BillMatch(
                    id=f"match-{debit.id}-unmatched",
                    bank_transaction=debit,
                    match_type=MatchType.NONE,
                    match_score=0,
                    notes=UNMATCHED_NOTE,
                ))
                continue

            best = ranked[0]
            bill = bills_by_id[best.bill_id]
            auto = best.score > self.policy.auto_confirm_above
            if auto:
                used.add(bill.id)

            matches.append(BillMatch(
                id=f"match-{debit.id}-{bill.id}",
                bank_transaction=debit,
                match_type=MatchType.AUTO if auto else MatchType.MANUAL,
                match_score=best.score,
                bill_id=bill.id,
                confirmed_at=_now() if auto else None,
                confirmed_by=user if auto else None,
                bill_description=bill.description,
                bill_amount=bill.amount,
                bill_due_date=bill.due_date,
                alternatives=tuple(ranked[1:]),
            ))

        result = self._build(reconciliation, debits, matches, user)
        logger.info(
            "Bills reconciliation completed.",
            total_debits=result.total_debits,
            total_matched=result.total_matched,
            auto=sum(1 for m in matches if m.match_type is MatchType.AUTO),
            manual=sum(1 for m in matches if m.match_type is MatchType.MANUAL),
        )
        return result

    def _build(self, reconciliation: BankReconciliation, debits, matches: List[BillMatch],
               user: str) -> BillsReconciliation:
        return BillsReconciliation(
            id=f"bills-reconciliation-{uuid.uuid4().hex}",
            uploaded_at=reconciliation.uploaded_at,
            uploaded_by=user or reconciliation.uploaded_by,
            file_name=reconciliation.file_name,
            bank_name=reconciliation.bank_name,
            account_number=reconciliation.account_number,
            start_date=min(d.date for d in debits).isoformat() if debits else '',
            end_date=max(d.date for d in debits).isoformat() if debits else '',
            debit_transactions=tuple(debits),
            matches=tuple(matches),
            total_debits=len(debits),
            total_matched=_count_matched(matches),
            status=_status(matches, len(debits)),
        )


def _count_matched(matches: Iterable[BillMatch]) -> int:
    return sum(1 for m in matches if m.bill_id)


def _status(matches, total_debits: int) -> ReconciliationStatus:
    if _count_matched(matches) == total_debits:
        return ReconciliationStatus.COMPLETE
    return ReconciliationStatus.PARTIAL


def _update_match(reconciliation: BillsReconciliation, match_id: str, **changes) -> BillsReconciliation:
    target = reconciliation.find_match(match_id)
    if target is None:
        raise KeyError(f"Match not found: {match_id}")

    matches = tuple(replace(m, **changes) if m.id == match_id else m for m in reconciliation.matches)
    return replace(
        reconciliation,
        matches=matches,
        total_matched=_count_matched(matches),
        status=_status(matches, reconciliation.total_debits),
    )


def confirm_match(reconciliation: BillsReconciliation, match_id: str, user: str,
                  bill_id: Optional[str] = None) -> BillsReconciliation:
    """
    Confirms a match. Without `bill_id` the suggested bill is kept;
    passing one overrides the suggestion.
    """
    target = reconciliation.find_match(match_id)
    if target is None:
        raise KeyError(f"Match not found: {match_id}")
    chosen = bill_id or target.bill_id
    return _update_match(
        reconciliation, match_id,
        bill_id=chosen,
        match_type=MatchType.MANUAL if chosen else MatchType.NONE,
        confirmed_at=_now(),
        confirmed_by=user,
    )


def reject_match(reconciliation: BillsReconciliation, match_id: str, user: str) -> BillsReconciliation:
    return _update_match(
        reconciliation, match_id,
        bill_id=None,
        match_type=MatchType.NONE,
        confirmed_at=_now(),
        confirmed_by=user,
        notes=REJECTED_NOTE,
    )
