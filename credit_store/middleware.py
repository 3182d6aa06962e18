"""Request logging middleware: correlation IDs, caller identity and record IDs."""

import time
import uuid
from typing import Callable, Dict, List

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from credit_store.logging_config import bind_context, clear_context, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Path segment -> logging context key for the ID that follows it
_PATH_CONTEXT_KEYS = {
    "products": "product_id",
    "credit-packages": "package_id",
    "purchases": "purchase_id",
    "notifications": "notification_id",
}

# Segments after a collection name that are actions, not record IDs
_NON_ID_SEGMENTS = {"read-all"}


def path_context(path: str) -> Dict[str, str]:
    """Extract record IDs from a request path.

    ``/admin/purchases/p-1/approve`` gives ``{"purchase_id": "p-1"}``.
    """
    parts: List[str] = [part for part in path.split("/") if part]
    context: Dict[str, str] = {}
    for index, segment in enumerate(parts[:-1]):
        key = _PATH_CONTEXT_KEYS.get(segment)
        following = parts[index + 1]
        if key and following not in _NON_ID_SEGMENTS:
            context[key] = following
    return context


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Log each request once on arrival and once on completion.

    The request ID is taken from an incoming ``X-Request-ID`` header when
    the caller supplies one, and echoed back on the response.
    """

    def __init__(self, app: ASGIApp, include_request_details: bool = True):
        super().__init__(app)
        self.include_request_details = include_request_details

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        bind_context(request_id=request_id, **path_context(request.url.path))

        user_id = request.headers.get("x-user-id")
        if user_id:
            bind_context(user_id=user_id, role=request.headers.get("x-user-role", "user"))

        details = {}
        if self.include_request_details:
            details = {
                "query_params": str(request.query_params) if request.query_params else None,
                "client_host": request.client.host if request.client else "unknown",
            }
        logger.info("request_started", method=request.method, path=request.url.path, **details)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            raise
        else:
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_context()
