from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)

_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    429: "Too Many Requests",
    500: "Internal Server Error",
    503: "Service Unavailable",
}

_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMIT_EXCEEDED",
    500: "INTERNAL_ERROR",
}


class ApiError(Exception):
    """An anticipated failure that maps straight onto an HTTP response."""

    def __init__(
        self,
        status: int,
        message: str,
        code: str | None = None,
        details: dict | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code or _CODES.get(status, "HTTP_ERROR")
        self.details = details or {}
        self.headers = headers


def problem(
    request: Request,
    status: int,
    message: str,
    code: str | None = None,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    cid = getattr(request.state, "correlation_id", None) or str(uuid4())
    body = {
        "error": message,
        "code": code or _CODES.get(status, "HTTP_ERROR"),
        "status": status,
        "title": _TITLES.get(status, "HTTP Error"),
        "detail": message,
        "correlation_id": cid,
        "details": details or {},
    }
    return JSONResponse(
        body,
        status_code=status,
        media_type="application/problem+json",
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status >= 500:
            logger.error("request.api_error", code=exc.code, error=exc.message)
        return problem(
            request, exc.status, exc.message, exc.code, exc.details, exc.headers
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return problem(
            request,
            exc.status_code,
            detail or _TITLES.get(exc.status_code, "HTTP error"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in e["loc"]),
                "message": e["msg"],
                "type": e["type"],
            }
            for e in exc.errors()
        ]
        logger.info("request.validation_failed", errors=errors)
        first = errors[0]["message"] if errors else "Invalid request"
        return problem(
            request,
            400,
            first,
            code="VALIDATION_ERROR",
            details={"errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("request.unhandled_error", error=str(exc))
        return problem(request, 500, f"Internal server error: {exc}", "INTERNAL_ERROR")
