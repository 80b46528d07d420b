"""Middleware Starlette de journal d'accès avec durée de traitement.

Chaque requête produit un évènement `request_completed` (méthode, gabarit de route, statut,
durée) et l'en-tête `X-Process-Time-ms`.
"""

import time
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from myles.app.metrics import normalize_route

log = structlog.get_logger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, header_name: str = "X-Process-Time-ms") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next: Callable):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers[self.header_name] = str(duration_ms)
        log.info(
            "request_completed",
            method=request.method,
            route=normalize_route(request),
            status=response.status_code,
            duration_ms=duration_ms,
        )
        return response
