"""
Error shapes shared by every endpoint.

All failures leave the API as ``{"error": <title>, "message": <detail>}``.
Routers raise ``ApiError``; framework errors (validation, 404/405) are
reshaped by the handlers registered in ``install_error_handlers``.
"""
import logging
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger("krishimitra.errors")


class ApiError(HTTPException):
    """HTTPException carrying a short title and a human-readable message."""

    def __init__(self, status_code: int, error: str, message: str):
        super().__init__(status_code=status_code, detail=message)
        self.error = error
        self.message = message


def error_body(error: str, message: str) -> Dict[str, Any]:
    return {"error": error, "message": message}


def classify_upstream_error(
    exc: Exception,
    service: str,
    key_env: str,
    on_400: str = "Please check the request parameters",
    on_404: str = "No data available for this request",
) -> Optional[ApiError]:
    """Map an httpx failure from an upstream API onto the status we return.

    Returns None when the exception is not an HTTP/transport failure, so the
    caller can decide how to report it.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 401:
            return ApiError(500, "Invalid API key", f"Please check your {key_env} environment variable")
        if status == 429:
            return ApiError(429, "API rate limit exceeded", "Please try again later")
        if status == 400:
            return ApiError(400, "Invalid request", on_400)
        if status == 404:
            return ApiError(404, "Not found", on_404)
        return ApiError(500, "Internal server error", f"{service} responded with HTTP {status}")
    if isinstance(exc, httpx.TimeoutException):
        return ApiError(408, "Request timeout", f"{service} took too long to respond")
    if isinstance(exc, httpx.TransportError):
        return ApiError(503, "Service unavailable", f"Unable to connect to {service}")
    return None


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    err = errors[0]
    loc = [str(p) for p in err.get("loc", ()) if p != "body"]
    if err.get("type") == "json_invalid":
        return "Request body must be valid JSON"
    if err.get("type") == "missing":
        if not loc:
            return "Request body is required"
        return f"{loc[-1]} is required"
    msg = err.get("msg") or "Invalid value"
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return msg


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, exc.message))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return JSONResponse(
            status_code=405,
            content=error_body("Method not allowed", "Only POST requests are allowed"),
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = _validation_message(exc)
    log.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content=error_body("Invalid request", message))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
