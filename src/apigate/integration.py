"""FastAPI exception handlers for errors raised outside a dispatcher.

Controllers built with ``make_api_controller`` never let errors escape. Plain
FastAPI routes and dependencies can, and these handlers render what they
raise in the same wire record so clients see one error shape everywhere.
"""

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from apigate.exceptions import ErrorCode, StructuredError
from apigate.logging import get_logger
from apigate.normalizer import ErrorOptions, default_error, format_issues

logger = get_logger(__name__)


def _error_response(error: StructuredError) -> JSONResponse:
    return JSONResponse(status_code=error.status, content=error.to_json())


async def structured_error_handler(request: Request, exc: StructuredError) -> JSONResponse:
    """Render a StructuredError with its own status and code."""
    logger.warning("structured_error", code=exc.code, status=exc.status, path=request.url.path)
    return _error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI's own parameter validation to VALIDATION_ERROR / 400."""
    issues = format_issues(exc.errors())
    logger.warning("request_validation_failed", path=request.url.path, issues=issues)
    return _error_response(
        StructuredError(
            message="Request validation failed",
            code=ErrorCode.VALIDATION_ERROR,
            status=status.HTTP_400_BAD_REQUEST,
            meta={"issues": issues},
        )
    )


def unhandled_exception_handler(
    options: ErrorOptions | None = None,
) -> Callable[[Request, Exception], Awaitable[JSONResponse]]:
    """Build a catch-all handler that logs the traceback and returns a generic error.

    The exception's message is never sent to the client.
    """

    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", path=request.url.path, method=request.method)
        return _error_response(default_error(options))

    return handler


def register_error_handlers(app: FastAPI, options: ErrorOptions | None = None) -> None:
    """Attach apigate's error handlers to a FastAPI app instance."""
    app.add_exception_handler(StructuredError, structured_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler(options))
