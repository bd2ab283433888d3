"""
Exception handling and request logging for the JobAlign API
"""
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from jobalign.utils.exceptions import JobAlignBaseException, map_to_http_exception
from jobalign.utils.logging_config import get_logger

logger = get_logger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, 'request_id', None) or str(uuid.uuid4())


def create_error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Create standardized error response"""
    if isinstance(detail, str):
        detail = {"message": detail}
    elif not isinstance(detail, dict):
        detail = {"message": str(detail)}

    error_response = {
        "success": False,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail
    }
    return JSONResponse(status_code=status_code, content=error_response, headers={"X-Request-ID": request_id})


async def jobalign_exception_handler(request: Request, exc: JobAlignBaseException) -> JSONResponse:
    request_id = _request_id(request)
    http_exc = map_to_http_exception(exc)
    log = logger.warning if http_exc.status_code < 500 else logger.error
    log(
        f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.error_code,
            "status_code": http_exc.status_code,
            "path": request.url.path
        }
    )
    return create_error_response(request_id, http_exc.status_code, http_exc.detail)


def install_error_handlers(app: FastAPI) -> None:
    """Map JobAlign exceptions to structured JSON error responses"""
    app.add_exception_handler(JobAlignBaseException, jobalign_exception_handler)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Assigns a request id and turns anything unhandled into a 500"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except JobAlignBaseException as exc:
            return await jobalign_exception_handler(request, exc)
        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                    "path": request.url.path
                },
                exc_info=True
            )
            # Don't expose internal errors
            return create_error_response(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later."
            })

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and its outcome. Bodies are never logged: they carry résumés and JDs."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = _request_id(request)

        logger.debug(
            f"Request: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "content_length": request.headers.get("content-length", "0"),
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        response = await call_next(request)
        processing_time = time.time() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code, "processing_time": processing_time}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Flags slow requests and reports processing time in a header"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        processing_time = time.time() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": _request_id(request),
                    "processing_time": processing_time,
                    "threshold": self.slow_request_threshold
                }
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
