# maintdesk/middleware/error_handler.py
"""Global error handling middleware"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from maintdesk.core.logger import get_logger
from maintdesk.schemas.common import response_meta
from maintdesk.utils.exceptions import InternalFailureError, MaintdeskException

logger = get_logger(__name__)


def error_response(request: Request, status_code: int, code: str, message: str, details=None) -> JSONResponse:
    """Failure envelope: {success: false, error: {code, message, details}, meta}."""
    meta = response_meta()
    meta["path"] = str(request.url.path)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        meta["request_id"] = request_id
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "data": None,
            "error": {"code": code, "message": message, "details": details},
            "meta": meta,
        },
    )


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "request"


def register_error_handlers(app: FastAPI):
    """Register error handlers with FastAPI app"""

    @app.exception_handler(MaintdeskException)
    async def maintdesk_exception_handler(request: Request, exc: MaintdeskException):
        """Handle typed service errors"""
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}")
        else:
            logger.warning(f"{exc.code}: {exc.message}")
        return error_response(request, exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed payloads are 400 with one message per field"""
        details = {_field_name(err.get("loc", ())): err.get("msg", "invalid") for err in exc.errors()}
        logger.warning(f"VALIDATION_ERROR: {request.method} {request.url.path} {details}")
        return error_response(request, 400, "VALIDATION_ERROR", "Invalid request", details)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        """Storage failures never leak driver messages"""
        logger.error(f"Database error: {exc}", exc_info=True)
        failure = InternalFailureError("A storage error occurred")
        return error_response(request, failure.status_code, failure.code, failure.message)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions"""
        logger.error(f"Unexpected error: {exc}", exc_info=True)
        return error_response(request, 500, "INTERNAL_FAILURE", "An unexpected error occurred")
