import os
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from conciliador.api.endpoints import reconcile, statements
from conciliador.api.state import session_manager
from conciliador.common.logging_config import get_logger, set_request_id, setup_logging

SESSION_HEADER = "X-Session-ID"

# Initialize Structured Logging
setup_logging()
logger = get_logger("api.main")

app = FastAPI(title="Conciliador API", version="1.0.0")


@app.middleware("http")
async def session_middleware(request: Request, call_next):
    session_id = request.headers.get(SESSION_HEADER) or session_manager.generate_session_id()
    removed = session_manager.cleanup_inactive_sessions()
    if removed:
        logger.info(f"Expired {removed} inactive session(s)", sessions=session_manager.get_session_count())
    request.state.session_id = session_id
    response = await call_next(request)
    response.headers[SESSION_HEADER] = session_id
    return response


# Middleware for Request ID and Logging
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())
    set_request_id(request_id)

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path}",
        extra_fields={
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else "unknown"
        }
    )

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            f"Request failed: {str(e)}",
            extra_fields={
                "error": str(e),
                "process_time_ms": round(process_time * 1000, 2)
            },
            exc_info=True
        )
        response = JSONResponse(status_code=500, content={"detail": "Erro interno ao processar a requisição."})

    process_time = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}",
        extra_fields={
            "status_code": response.status_code,
            "process_time_ms": round(process_time * 1000, 2)
        }
    )
    response.headers["X-Request-ID"] = request_id
    return response


# CORS Setup - Enable frontend access
origins = [
    "http://localhost:5173",  # Vite Default
    "http://localhost:3000",
    "http://127.0.0.1:5173"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[SESSION_HEADER, "X-Request-ID"],
)

# Include Routers
app.include_router(statements.router, prefix="/api/statements", tags=["Statements"])
app.include_router(reconcile.router, prefix="/api/reconcile", tags=["Reconcile"])


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": "Conciliador", "sessions": session_manager.get_session_count()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=os.getenv("CONCILIADOR_HOST", "127.0.0.1"),
        port=int(os.getenv("CONCILIADOR_PORT", "8010")),
    )
