"""Maps service errors onto HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from factgraph.api.schemas import ErrorResponse, Message
from factgraph.exceptions import (
    AccessDeniedError,
    AuthenticationFailedError,
    FactGraphError,
    InvalidArgumentError,
    ObjectNotFoundError,
)
from factgraph.logging import get_logger

log = get_logger("api")

STATUS_CODES: dict[type[FactGraphError], int] = {
    AuthenticationFailedError: 401,
    AccessDeniedError: 403,
    ObjectNotFoundError: 404,
    InvalidArgumentError: 412,
}


def _error_response(exc: FactGraphError) -> ErrorResponse:
    if exc.validation_errors:
        return ErrorResponse(messages=[
            Message(type="FieldError", message=e.message, messageTemplate=e.message_template,
                    field=e.field, parameter=e.parameter)
            for e in exc.validation_errors
        ])
    return ErrorResponse(messages=[Message(type="ActionError", message=exc.message)])


async def handle_service_error(request: Request, exc: FactGraphError) -> JSONResponse:
    status = next((code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 500)
    log.info("request_failed", path=request.url.path, status=status,
             error=type(exc).__name__, message=exc.message)
    return JSONResponse(status_code=status, content=_error_response(exc).model_dump())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [
        Message(
            type="FieldError",
            message=err.get("msg", "Invalid value."),
            messageTemplate="invalid.request.field",
            field=".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            parameter=str(err.get("input")) if err.get("input") is not None else None,
        )
        for err in exc.errors()
    ]
    return JSONResponse(status_code=412, content=ErrorResponse(messages=messages).model_dump())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FactGraphError, handle_service_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
