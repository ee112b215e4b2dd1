"""
Global Exception Handler Middleware for the CV Scanner API
"""
import time
import traceback
import uuid
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cvscanner.utils.exceptions import CVScannerBaseException, error_body, status_code_for
from cvscanner.utils.logging_config import bind_request_id, get_logger, reset_request_id

logger = get_logger(__name__)


def _error_response(request_id: str, status_code: int, content: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Request-ID": request_id}
    )


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Turns project exceptions into {error} responses and tags every request with an ID"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = bind_request_id(request_id)
        try:
            return await self._handle(request, call_next, request_id)
        finally:
            reset_request_id(token)

    async def _handle(self, request: Request, call_next, request_id: str):
        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)

            logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra={"status_code": response.status_code}
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except CVScannerBaseException as exc:
            status_code = status_code_for(exc)
            log = logger.warning if status_code < 500 else logger.error
            log(
                f"{exc.error_code} in {request.method} {request.url.path}: {exc.message}",
                extra={"error": exc.to_dict()}
            )
            return _error_response(request_id, status_code, error_body(exc))

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                },
                exc_info=True
            )
            return _error_response(request_id, 500, {"error": f"Internal server error: {exc}"})


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies get the same {error} shape, as a 400"""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    errors = exc.errors()
    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {errors}",
        extra={"request_id": request_id}
    )
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return _error_response(
        request_id, 400,
        {"error": f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"}
    )


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware for performance monitoring"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        processing_time = time.time() - start_time
        # set by ExceptionHandlerMiddleware, which runs inside this one
        request_id = response.headers.get("X-Request-ID", "-")

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "processing_time": processing_time,
                    "threshold": self.slow_request_threshold,
                }
            )
        else:
            logger.debug(
                f"Request performance: {request.method} {request.url.path} - {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "processing_time": processing_time
                }
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"

        return response
