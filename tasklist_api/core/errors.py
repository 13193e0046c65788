import enum
import logging
from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    STORAGE = "STORAGE_ERROR"
    UNIMPLEMENTED = "NOT_IMPLEMENTED"
    TIMEOUT = "TIMEOUT"
    INTERNAL = "INTERNAL_ERROR"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STORAGE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.UNIMPLEMENTED: status.HTTP_501_NOT_IMPLEMENTED,
    ErrorKind.TIMEOUT: status.HTTP_408_REQUEST_TIMEOUT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Messages for these kinds are meant for the caller and are always returned.
CLIENT_KINDS = frozenset({
    ErrorKind.VALIDATION,
    ErrorKind.AUTHENTICATION,
    ErrorKind.NOT_FOUND,
    ErrorKind.CONFLICT,
})

GENERIC_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.STORAGE: "Database error occurred.",
    ErrorKind.UNIMPLEMENTED: "Functionality not implemented.",
    ErrorKind.TIMEOUT: "The request timed out.",
    ErrorKind.INTERNAL: "An unexpected error occurred. Please try again later.",
}


class AppError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class StorageError(AppError):
    kind = ErrorKind.STORAGE


class UnimplementedError(AppError):
    kind = ErrorKind.UNIMPLEMENTED


class RequestTimeoutError(AppError):
    kind = ErrorKind.TIMEOUT


def classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, AppError):
        return exc.kind
    if isinstance(exc, RequestValidationError):
        return ErrorKind.VALIDATION
    if isinstance(exc, NotImplementedError):
        return ErrorKind.UNIMPLEMENTED
    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(exc, SQLAlchemyError):
        return ErrorKind.STORAGE
    return ErrorKind.INTERNAL


def error_response(code: str, message: str, status_code: int = 400) -> JSONResponse:
    payload = {"error": {"code": code, "message": message}}
    return JSONResponse(status_code=status_code, content=payload)


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return " | ".join(parts) or "Invalid request."


def build_error_response(exc: BaseException, request: Request, detailed: bool) -> JSONResponse:
    kind = classify(exc)
    status_code = STATUS_BY_KIND[kind]
    path = request.url.path

    if isinstance(exc, RequestValidationError):
        message = _describe_validation(exc)
    elif kind in CLIENT_KINDS:
        message = str(exc)
    elif detailed:
        message = str(exc) or GENERIC_MESSAGES[kind]
    else:
        message = GENERIC_MESSAGES[kind]

    if kind in CLIENT_KINDS:
        logger.info("%s %s -> %s: %s", request.method, path, kind.value, exc)
    else:
        logger.error("Unhandled exception on %s %s: %s", request.method, path, exc, exc_info=exc)

    return error_response(kind.value, message, status_code)


def register_exception_handlers(app: FastAPI, detailed: bool) -> None:
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return build_error_response(exc, request, detailed)

    app.add_exception_handler(AppError, handle)
    app.add_exception_handler(RequestValidationError, handle)
    app.add_exception_handler(SQLAlchemyError, handle)
    app.add_exception_handler(NotImplementedError, handle)
    app.add_exception_handler(TimeoutError, handle)
    app.add_exception_handler(Exception, handle)
