"""Request context middleware for logging."""
import time
import uuid
from typing import Any
from typing import Callable

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to bind a request id to every log line and log one entry per request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Any:
        """
        Capture request context and add it to logging.

        The request id is taken from the X-Request-ID header when the presentation
        layer sends one, otherwise a new one is generated. It is echoed back on the
        response so client-side toasts can be correlated with server logs.
        """
        request_id = request.headers.get("X-Request-ID") or self._generate_request_id()
        request_path = f"{request.method} {request.url.path}"

        with logger.contextualize(request_id=request_id, request_path=request_path):
            start_time = time.time()
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                f"{request.method} {request.url.path} - {response.status_code}",
                event_type="http_request",
                http_method=request.method,
                url_path=str(request.url.path),
                url_query=str(request.query_params) if request.query_params else None,
                status_code=response.status_code,
                response_time_ms=round(duration_ms, 2),
            )

            response.headers["X-Request-ID"] = request_id
            return response

    def _generate_request_id(self) -> str:
        """Generate a unique request ID."""
        return str(uuid.uuid4())
