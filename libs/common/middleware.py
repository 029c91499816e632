"""Request logging middleware shared by every service app.

Each request gets an id (taken from ``X-Request-ID`` when the storefront or
the reverse proxy sends one) that is bound to the logging context, echoed
back in the response and attached to every log line written while the
request is handled.

Usage:
    app = FastAPI()
    add_observability_middleware(app, service="store")
"""
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.config import get_settings
from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

QUIET_PATHS = frozenset({"/health", "/docs", "/openapi.json"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the request id, log one line per request, flag slow requests."""

    def __init__(self, app, service: str, slow_request_ms: float):
        super().__init__(app)
        self.service = service
        self.slow_request_ms = slow_request_ms

    def _fields(self, **fields) -> dict:
        return {"extra_fields": {"service": self.service, **fields}}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "%s %s crashed",
                request.method,
                request.url.path,
                extra=self._fields(
                    error=str(e),
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                ),
            )
            raise
        else:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            if not quiet:
                if response.status_code >= 500:
                    level = "error"
                elif response.status_code >= 400 or elapsed_ms > self.slow_request_ms:
                    level = "warning"
                else:
                    level = "info"
                getattr(logger, level)(
                    "%s %s -> %d (%.0f ms)",
                    request.method,
                    request.url.path,
                    response.status_code,
                    elapsed_ms,
                    extra=self._fields(
                        status_code=response.status_code,
                        duration_ms=elapsed_ms,
                        query=request.url.query or None,
                    ),
                )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI, service: str) -> None:
    """Configure logging and install the request middleware on ``app``."""
    configure_logging()
    app.add_middleware(
        RequestContextMiddleware,
        service=service,
        slow_request_ms=get_settings().SLOW_REQUEST_MS,
    )
    logger.info("Request logging enabled for %s service", service)
