"""FastAPI middleware for request tracing and logging."""

import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by load balancers and Prometheus; traced but not logged at info
QUIET_PATHS = frozenset({"/health", "/metrics"})


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id to the structlog context for the whole request.

    An incoming X-Request-ID is reused so callers can correlate their own
    logs; otherwise a UUID4 is generated. The id is echoed in the response,
    and every log line emitted while resolving a tour carries it.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        path = request.url.path
        log = logger.debug if path in QUIET_PATHS else logger.info

        structlog.contextvars.bind_contextvars(request_id=request_id, method=request.method, path=path)
        log("Request received", client_host=request.client.host if request.client else None)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed",
                exc_info=exc,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        else:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            if response.status_code >= 500:
                logger.warning("Request answered with server error", status_code=response.status_code, duration_ms=duration_ms)
            else:
                log("Request answered", status_code=response.status_code, duration_ms=duration_ms)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()
