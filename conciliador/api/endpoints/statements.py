from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from conciliador.api.state import get_session_state, session_manager
from conciliador.common.logging_config import get_logger
from conciliador.common.models import format_money
from conciliador.core.summary import daily_totals
from conciliador.parsing.base import StatementSource
from conciliador.parsing.exceptions import StatementParsingError
from conciliador.parsing.pipeline import StatementPipeline

logger = get_logger(__name__)
router = APIRouter()

pipeline = StatementPipeline()


def _current_or_404(request: Request):
    state = get_session_state(request)
    if state.reconciliation is None:
        raise HTTPException(status_code=404, detail="Nenhum extrato carregado nesta sessão.")
    return state.reconciliation


@router.post("/upload")
async def upload_statement(request: Request, file: UploadFile = File(...), uploaded_by: str = Form("")):
    logger.info(f"Statement upload started: {file.filename}", uploaded_by=uploaded_by)
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Arquivo vazio.")

    source = StatementSource.from_upload(raw, file.filename or "", uploaded_by)
    try:
        reconciliation = pipeline.process_source(source)
    except StatementParsingError as e:
        logger.warning(f"Statement rejected: {e.message}", file_name=file.filename)
        raise HTTPException(
            status_code=400,
            detail=f"Arquivo ilegível ou formato inválido: {e.message} Envie novamente um extrato .RET, .TXT ou .PDF.",
        )

    state = get_session_state(request)
    state.reconciliation = reconciliation
    state.bills_reconciliation = None

    body = reconciliation.to_dict()
    if reconciliation.total_transactions == 0:
        logger.warning("No transactions found in statement.", file_name=file.filename)
        body["warning"] = "Arquivo lido, mas nenhuma transação foi encontrada."
    else:
        logger.info("Statement parsed successfully.", tx_count=reconciliation.total_transactions,
                    bank=reconciliation.bank_name)
    return body


@router.get("/current")
def current_statement(request: Request):
    return _current_or_404(request).to_dict()


@router.get("/summary")
def statement_summary(request: Request):
    reconciliation = _current_or_404(request)
    df = daily_totals(reconciliation)
    if not df.empty:
        df["date"] = df["date"].astype(str)
        for column in ("credits", "debits", "net"):
            df[column] = df[column].map(format_money)
    return {
        "totalCredits": format_money(reconciliation.total_credits),
        "totalDebits": format_money(reconciliation.total_debits),
        "finalBalance": format_money(reconciliation.final_balance),
        "daily": df.to_dict(orient="records"),
    }


@router.post("/clear")
async def clear_data(request: Request):
    """
    Drops this session together with its statement and bill reconciliation.
    """
    session_manager.delete_session(request.state.session_id)
    return {"message": "Todos os dados foram limpos."}
