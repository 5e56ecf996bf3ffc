from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """
    Coerces numbers / numeric strings to a 2-decimal Decimal.
    Floats go through str() so 0.1 becomes Decimal('0.10'), not its binary expansion.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Invalid monetary value: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Any) -> str:
    """Renders an amount as a plain string with exactly two decimals ('-12.30')."""
    return str(to_money(value))


def to_date(value: Any) -> date:
    """Accepts date, datetime or an ISO 'YYYY-MM-DD' string (time part ignored)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


class TransactionType(str, Enum):
    CREDIT = 'CREDIT'
    DEBIT = 'DEBIT'


class ReconciliationStatus(str, Enum):
    PENDING = 'pending'
    PARTIAL = 'partial'
    COMPLETE = 'complete'


@dataclass(frozen=True)
class BankTransaction:
    """
    Canonical representation of a bank statement transaction.
    Produced by every statement parser and consumed by the matcher.

    `amount` is always a non-negative magnitude; direction lives only in `type`.
    """
    id: str
    date: date
    type: TransactionType
    amount: Decimal
    description: str
    reference: str = ''
    reconciled: bool = False

    @property
    def is_debit(self) -> bool:
        return self.type is TransactionType.DEBIT

    @property
    def is_credit(self) -> bool:
        return self.type is TransactionType.CREDIT

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'type': self.type.value,
            'amount': format_money(self.amount),
            'description': self.description,
            'reference': self.reference,
            'reconciled': self.reconciled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BankTransaction':
        return cls(
            id=str(data.get('id', '')),
            date=to_date(data['date']),
            type=TransactionType(str(data.get('type', 'DEBIT')).upper()),
            amount=abs(to_money(data['amount'])),
            description=str(data.get('description') or ''),
            reference=str(data.get('reference') or ''),
            reconciled=bool(data.get('reconciled', False)),
        )


@dataclass(frozen=True)
class BankReconciliation:
    """
    Batch produced by one statement upload.

    Immutable: annotating reconciled transactions goes through `with_reconciled`,
    which returns a new batch.
    """
    id: str
    uploaded_at: str
    uploaded_by: str
    file_name: str
    bank_name: str
    account_number: str
    start_date: str
    end_date: str
    initial_balance: Decimal
    final_balance: Decimal
    total_transactions: int
    reconciled_transactions: int
    transactions: Tuple[BankTransaction, ...] = field(default_factory=tuple)
    status: ReconciliationStatus = ReconciliationStatus.PENDING
    company_name: str = ''

    @property
    def total_credits(self) -> Decimal:
        return sum((t.amount for t in self.transactions if t.is_credit), Decimal('0.00'))

    @property
    def total_debits(self) -> Decimal:
        return sum((t.amount for t in self.transactions if t.is_debit), Decimal('0.00'))

    def with_reconciled(self, transaction_ids: Iterable[str]) -> 'BankReconciliation':
        """Returns a copy where exactly the given transactions are flagged as reconciled."""
        ids = set(transaction_ids)
        transactions = tuple(
            t if t.reconciled == (t.id in ids) else replace(t, reconciled=t.id in ids)
            for t in self.transactions
        )
        reconciled = sum(1 for t in transactions if t.reconciled)
        if reconciled == 0:
            status = ReconciliationStatus.PENDING
        elif reconciled == len(transactions):
            status = ReconciliationStatus.COMPLETE
        else:
            status = ReconciliationStatus.PARTIAL
        return replace(
            self,
            transactions=transactions,
            reconciled_transactions=reconciled,
            status=status,
        )

    def to_dataframe(self) -> pd.DataFrame:
        columns = ['id', 'date', 'type', 'amount', 'description', 'reference', 'reconciled']
        if not self.transactions:
            return pd.DataFrame(columns=columns)
        df = pd.DataFrame([t.to_dict() for t in self.transactions], columns=columns)
        df['date'] = pd.to_datetime(df['date']).dt.date
        df['amount'] = df['amount'].astype(float)
        return df

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'uploadedAt': self.uploaded_at,
            'uploadedBy': self.uploaded_by,
            'fileName': self.file_name,
            'bankName': self.bank_name,
            'accountNumber': self.account_number,
            'companyName': self.company_name,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'initialBalance': format_money(self.initial_balance),
            'finalBalance': format_money(self.final_balance),
            'totalTransactions': self.total_transactions,
            'reconciledTransactions': self.reconciled_transactions,
            'transactions': [t.to_dict() for t in self.transactions],
            'status': self.status.value,
        }


@dataclass(frozen=True)
class PaidRecord:
    """
    A paid payable ("conta paga") supplied by the surrounding application.
    The matcher only reads it.
    """
    id: str
    amount: Decimal
    due_date: str
    description: str = ''
    paid_amount: Optional[Decimal] = None
    paid_date: Optional[str] = None

    @property
    def effective_amount(self) -> Decimal:
        return self.paid_amount if self.paid_amount is not None else self.amount

    @property
    def effective_date(self) -> str:
        return self.paid_date or self.due_date

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PaidRecord':
        """Accepts snake_case or the camelCase keys used by the web client."""
        def pick(*keys):
            for k in keys:
                if data.get(k) not in (None, ''):
                    return data[k]
            return None

        paid_amount = pick('paid_amount', 'paidAmount')
        return cls(
            id=str(data['id']),
            amount=to_money(data.get('amount', 0)),
            due_date=str(pick('due_date', 'dueDate') or ''),
            description=str(data.get('description') or ''),
            paid_amount=to_money(paid_amount) if paid_amount is not None else None,
            paid_date=pick('paid_date', 'paidDate'),
        )


@dataclass(frozen=True)
class MatchCandidate:
    bill_id: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {'billId': self.bill_id, 'score': self.score}


class MatchType(str, Enum):
    AUTO = 'auto'
    MANUAL = 'manual'
    NONE = 'none'


@dataclass(frozen=True)
class BillMatch:
    """One debit of the statement and the bill (if any) it was paired with."""
    id: str
    bank_transaction: BankTransaction
    match_type: MatchType
    match_score: int
    bill_id: Optional[str] = None
    confirmed_at: Optional[str] = None
    confirmed_by: Optional[str] = None
    notes: Optional[str] = None
    bill_description: Optional[str] = None
    bill_amount: Optional[Decimal] = None
    bill_due_date: Optional[str] = None
    alternatives: Tuple[MatchCandidate, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'bankTransaction': self.bank_transaction.to_dict(),
            'matchType': self.match_type.value,
            'matchScore': self.match_score,
            'billId': self.bill_id,
            'confirmedAt': self.confirmed_at,
            'confirmedBy': self.confirmed_by,
            'notes': self.notes,
            'billDescription': self.bill_description,
            'billAmount': format_money(self.bill_amount) if self.bill_amount is not None else None,
            'billDueDate': self.bill_due_date,
            'alternatives': [c.to_dict() for c in self.alternatives],
        }


@dataclass(frozen=True)
class BillsReconciliation:
    id: str
    uploaded_at: str
    uploaded_by: str
    file_name: str
    bank_name: str
    account_number: str
    start_date: str
    end_date: str
    debit_transactions: Tuple[BankTransaction, ...]
    matches: Tuple[BillMatch, ...]
    total_debits: int
    total_matched: int
    status: ReconciliationStatus

    def find_match(self, match_id: str) -> Optional[BillMatch]:
        for m in self.matches:
            if m.id == match_id:
                return m
        return None

    def matched_transaction_ids(self) -> List[str]:
        return [m.bank_transaction.id for m in self.matches if m.bill_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'uploadedAt': self.uploaded_at,
            'uploadedBy': self.uploaded_by,
            'fileName': self.file_name,
            'bankName': self.bank_name,
            'accountNumber': self.account_number,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'debitTransactions': [t.to_dict() for t in self.debit_transactions],
            'matches': [m.to_dict() for m in self.matches],
            'totalDebits': self.total_debits,
            'totalMatched': self.total_matched,
            'status': self.status.value,
        }
