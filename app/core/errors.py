"""
Domain errors raised by the lease, payment and deposit services.

Every error is raised before any write is attempted, so the caller can show
the message as-is. `register_error_handlers` maps them onto HTTP responses.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class LeaseLedgerError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthenticated(LeaseLedgerError):
    status_code = 401
    code = "unauthenticated"

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail)


class Unauthorized(LeaseLedgerError):
    status_code = 403
    code = "unauthorized"


class NotFound(LeaseLedgerError):
    status_code = 404
    code = "not_found"


class InvalidState(LeaseLedgerError):
    status_code = 409
    code = "invalid_state"


class ValidationError(LeaseLedgerError):
    status_code = 422
    code = "validation_error"


class AlreadyExists(LeaseLedgerError):
    status_code = 409
    code = "already_exists"


class LedgerWriteError(LeaseLedgerError):
    status_code = 500
    code = "server_error"

    def __init__(self, detail: str = "The operation could not be completed"):
        super().__init__(detail)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(LeaseLedgerError)
    async def lease_ledger_error(request: Request, exc: LeaseLedgerError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error": exc.code},
            headers=headers,
        )

    @app.exception_handler(SQLAlchemyError)
    async def ledger_store_error(request: Request, exc: SQLAlchemyError):
        logger.error("Ledger store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": LedgerWriteError().detail, "error": LedgerWriteError.code},
        )
