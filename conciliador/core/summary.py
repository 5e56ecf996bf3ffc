from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List

import pandas as pd

from conciliador.common.models import BankReconciliation, BankTransaction, to_date

PIX_RECEIVED_MARKERS = ('PIX RECEBIDO', 'RECEBIMENTO')


def debit_transactions(transactions: Iterable[BankTransaction]) -> List[BankTransaction]:
    return [t for t in transactions if t.is_debit]


def group_credits_by_date(transactions: Iterable[BankTransaction]) -> Dict[str, List[BankTransaction]]:
    """Credits keyed by ISO date, in statement order."""
    grouped: Dict[str, List[BankTransaction]] = OrderedDict()
    for t in transactions:
        if t.is_credit:
            grouped.setdefault(t.date.isoformat(), []).append(t)
    return grouped


def total_credits_for_date(transactions: Iterable[BankTransaction], day) -> Decimal:
    target = to_date(day)
    return sum((t.amount for t in transactions if t.is_credit and t.date == target), Decimal('0.00'))


def pix_received_transactions(transactions: Iterable[BankTransaction]) -> List[BankTransaction]:
    return [
        t for t in transactions
        if t.is_credit and any(marker in t.description.upper() for marker in PIX_RECEIVED_MARKERS)
    ]


def daily_totals(reconciliation: BankReconciliation) -> pd.DataFrame:
    """
    Credits, debits and net movement per day.

    Returns:
        DataFrame with columns date, credits, debits, net (sorted by date)
    """
    columns = ['date', 'credits', 'debits', 'net']
    df = reconciliation.to_dataframe()
    if df.empty:
        return pd.DataFrame(columns=columns)

    df['credits'] = df['amount'].where(df['type'] == 'CREDIT', 0.0)
    df['debits'] = df['amount'].where(df['type'] == 'DEBIT', 0.0)
    grouped = df.groupby('date')[['credits', 'debits']].sum().reset_index()
    grouped['net'] = grouped['credits'] - grouped['debits']
    grouped[['credits', 'debits', 'net']] = grouped[['credits', 'debits', 'net']].round(2)
    return grouped.sort_values('date').reset_index(drop=True)[columns]
