import logging
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sqlalchemy.orm import Session

from src.api.commands import execute
from src.api.schemas import Command
from src.core import config
from src.core.errors import InvalidRequest, RegistrationError
from src.core.logging_config import configure_logging
from src.db.session import db_healthcheck, get_db

configure_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Service and dependency health checks."},
    {"name": "Commands", "description": "Create, read, update and delete registration records."},
]

app = FastAPI(
    title="Golf Registration Backend API",
    description="Backend function for event registration: carts, participants, orders and reports.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Failures are reported in the body; the transport status stays 200.
@app.exception_handler(RegistrationError)
def registration_error_handler(request: Request, exc: RegistrationError) -> JSONResponse:
    logger.warning("Command failed (%s): %s", exc.kind, exc)
    return JSONResponse(jsonable_encoder(exc.to_payload()), status_code=200)


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in exc.errors()]
    error = InvalidRequest("invalid command payload", details={"errors": errors})
    return registration_error_handler(request, error)


@app.get("/", tags=["Health"], summary="Service health check")
def health_check():
    """Basic health check for the backend service (no external dependencies)."""
    return {"message": "Healthy"}


@app.get("/health/db", tags=["Health"], summary="Database health check")
def health_db_check():
    """
    Check database connectivity.

    Returns a JSON payload indicating whether PostgreSQL is reachable.
    """
    ok = db_healthcheck()
    return {"database": "ok" if ok else "unreachable", "ok": ok}


def _render(result: Any) -> Response:
    if isinstance(result, (list, dict)):
        return JSONResponse(jsonable_encoder(result))
    return PlainTextResponse(str(result))


@app.post("/", tags=["Commands"], summary="Run a registration command")
def run_command(command: Command, db: Session = Depends(get_db)) -> Response:
    """
    Execute one create/read/readall/update/delete command.

    Creates answer ``success!`` or the generated id as text, reads answer a JSON
    list of records (or one summary record), updates and deletes answer
    ``success!``. Failures answer ``{"error", "kind", "details"}`` with status 200.
    """
    return _render(execute(db, command))
