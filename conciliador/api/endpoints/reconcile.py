from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from conciliador.api.state import get_session_state
from conciliador.common.logging_config import get_logger
from conciliador.common.models import BankTransaction, PaidRecord
from conciliador.core.matcher import BillMatcher
from conciliador.core.reconciler import BillsReconciler, confirm_match, reject_match

logger = get_logger(__name__)
router = APIRouter()


class TransactionIn(BaseModel):
    id: str = "manual"
    date: str
    amount: Decimal
    type: str = "DEBIT"
    description: str = ""


class PaidRecordIn(BaseModel):
    id: str
    amount: Decimal
    dueDate: str
    paidAmount: Optional[Decimal] = None
    paidDate: Optional[str] = None
    description: str = ""


class MatchRequest(BaseModel):
    debit: TransactionIn
    candidates: List[PaidRecordIn]


class BillsRequest(BaseModel):
    bills: List[PaidRecordIn]
    confirmed_by: str = ""


class ConfirmRequest(BaseModel):
    match_id: str
    user: str = ""
    bill_id: Optional[str] = None


class RejectRequest(BaseModel):
    match_id: str
    user: str = ""


def _paid_records(items: List[PaidRecordIn]) -> List[PaidRecord]:
    return [PaidRecord.from_dict(item.model_dump()) for item in items]


def _sync_reconciled(state):
    """Marks the statement transactions that now have a bill."""
    bills = state.bills_reconciliation
    if state.reconciliation is not None and bills is not None:
        state.reconciliation = state.reconciliation.with_reconciled(bills.matched_transaction_ids())


@router.post("/match")
def match_debit(body: MatchRequest):
    try:
        debit = BankTransaction.from_dict(body.debit.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Transação inválida: {e}")
    candidates = BillMatcher().match(debit, _paid_records(body.candidates))
    return {"candidates": [c.to_dict() for c in candidates]}


@router.post("/bills")
def reconcile_bills(request: Request, body: BillsRequest):
    state = get_session_state(request)
    if state.reconciliation is None:
        raise HTTPException(status_code=404, detail="Nenhum extrato carregado nesta sessão.")

    result = BillsReconciler().reconcile(state.reconciliation, _paid_records(body.bills), body.confirmed_by)
    state.bills_reconciliation = result
    _sync_reconciled(state)
    return result.to_dict()


@router.post("/confirm")
def confirm(request: Request, body: ConfirmRequest):
    state = get_session_state(request)
    if state.bills_reconciliation is None:
        raise HTTPException(status_code=404, detail="Nenhuma conciliação de contas em andamento.")
    try:
        state.bills_reconciliation = confirm_match(state.bills_reconciliation, body.match_id, body.user, body.bill_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Match não encontrado: {body.match_id}")
    _sync_reconciled(state)
    logger.info("Match confirmed.", match_id=body.match_id, user=body.user)
    return state.bills_reconciliation.to_dict()


@router.post("/reject")
def reject(request: Request, body: RejectRequest):
    state = get_session_state(request)
    if state.bills_reconciliation is None:
        raise HTTPException(status_code=404, detail="Nenhuma conciliação de contas em andamento.")
    try:
        state.bills_reconciliation = reject_match(state.bills_reconciliation, body.match_id, body.user)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Match não encontrado: {body.match_id}")
    _sync_reconciled(state)
    logger.info("Match rejected.", match_id=body.match_id, user=body.user)
    return state.bills_reconciliation.to_dict()
