from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from conciliador.common.logging_config import get_logger
from conciliador.common.models import BankTransaction, MatchCandidate, PaidRecord, to_date

logger = get_logger(__name__)


@dataclass(frozen=True)
class MatchPolicy:
    """
    Scoring tables for the bill matcher.

    amount_tiers: (max difference, exclusive) -> points
    date_tiers: (max days, inclusive) -> points
    Scores above `auto_confirm_above` are confirmed without a human;
    scores in [min_score, auto_confirm_above] need confirmation.
    """
    amount_tiers: Tuple[Tuple[Decimal, int], ...] = (
        (Decimal('0.01'), 100),
        (Decimal('1'), 80),
        (Decimal('5'), 60),
        (Decimal('10'), 40),
        (Decimal('50'), 20),
    )
    date_tiers: Tuple[Tuple[int, int], ...] = (
        (0, 30),
        (3, 25),
        (7, 20),
        (15, 15),
        (30, 10),
    )
    description_bonus: int = 10
    min_token_length: int = 3
    min_score: int = 30
    auto_confirm_above: int = 80


DEFAULT_POLICY = MatchPolicy()


class BillMatcher:
    """
    Scores a bank debit against paid bills.

    Score = amount factor + date factor + description factor. A candidate
    with no amount points is discarded before the other factors run.
    """

    def __init__(self, policy: MatchPolicy = DEFAULT_POLICY):
        self.policy = policy

    def match(self, debit: BankTransaction, candidates: Iterable[PaidRecord]) -> List[MatchCandidate]:
        """
        Ranks candidates for one debit.

        Returns:
            MatchCandidate list with score >= min_score, best first.
            Ties keep the order the candidates were given in.
        """
        scored = []
        for candidate in candidates:
            score = self.score(debit, candidate)
            if score >= self.policy.min_score:
                scored.append(MatchCandidate(bill_id=candidate.id, score=score))

        # sorted() is stable, so equal scores keep encounter order
        ranked = sorted(scored, key=lambda c: c.score, reverse=True)
        logger.debug("Debit matched.", debit_id=debit.id, candidates=len(ranked))
        return ranked

    def score(self, debit: BankTransaction, candidate: PaidRecord) -> int:
        amount_points = self.amount_score(debit.amount, candidate.effective_amount)
        if amount_points == 0:
            return 0
        return (
            amount_points
            + self.date_score(debit.date, candidate.effective_date)
            + self.description_score(debit.description, candidate.description)
        )

    def amount_score(self, debit_amount: Decimal, bill_amount: Decimal) -> int:
        diff = abs(Decimal(bill_amount) - Decimal(debit_amount))
        for limit, points in self.policy.amount_tiers:
            if diff < limit:
                return points
        return 0

    def date_score(self, debit_date: date, bill_date: Optional[str]) -> int:
        if not bill_date:
            return 0
        try:
            days = abs((to_date(debit_date) - to_date(bill_date)).days)
        except ValueError:
            return 0
        for limit, points in self.policy.date_tiers:
            if days <= limit:
                return points
        return 0

    def description_score(self, debit_description: str, bill_description: str) -> int:
        """
        Flat bonus when some bill word (3+ chars) appears inside a debit word.
        """
        debit_tokens = (debit_description or '').upper().split()
        bill_tokens = [t for t in (bill_description or '').upper().split()
                       if len(t) >= self.policy.min_token_length]
        for token in bill_tokens:
            if any(token in d for d in debit_tokens):
                return self.policy.description_bonus
        return 0


def match_debit_with_bills(debit: BankTransaction, candidates: Sequence[PaidRecord],
                           policy: MatchPolicy = DEFAULT_POLICY) -> List[MatchCandidate]:
    """Shortcut for BillMatcher(policy).match(debit, candidates)."""
    return BillMatcher(policy).match(debit, candidates)
