"""Middleware Starlette pour attribuer un identifiant de trace à chaque requête.

L'identifiant (repris de l'en-tête entrant ou généré) est exposé sur `request.state.trace_id`,
lié au contexte structlog pour toute la durée de la requête et renvoyé dans la réponse.
"""

from collections.abc import Callable
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propage l'identifiant de requête vers les logs, l'enveloppe d'erreur et la réponse."""

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next: Callable):
        request_id = request.headers.get(self.header_name) or uuid4().hex
        request.state.trace_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("trace_id")
        response.headers[self.header_name] = request_id
        return response
