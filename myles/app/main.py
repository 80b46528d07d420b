"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares,
routes, métriques et configuration de la marketplace.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (request id, timing, métriques)
- Enregistrer les gestionnaires d'erreurs (enveloppe standard)
- Monter les routers métier sous `/api`, plus santé et métriques
"""

from __future__ import annotations

from fastapi import FastAPI

from myles.api.routes_admin import router as admin_router
from myles.api.routes_auth import router as auth_router
from myles.api.routes_bookings import router as bookings_router
from myles.api.routes_businesses import router as businesses_router
from myles.api.routes_health import router as health_router
from myles.api.routes_sessions import router as sessions_router
from myles.api.routes_trainers import router as trainers_router
from myles.api.routes_webhooks import router as webhooks_router
from myles.apigw.errors import register_error_handlers
from myles.app.metrics import PrometheusMiddleware, metrics_router
from myles.core.container import Container
from myles.core.logging import setup_logging
from myles.middlewares.request_id import RequestIDMiddleware
from myles.middlewares.timing import TimingMiddleware

API_PREFIX = "/api"


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Construit le conteneur (ou utilise celui fourni, ex: tests)
    - Configure le logging structuré (structlog)
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes métier, de santé et de métriques
    """
    container = container or Container()
    settings = container.settings
    setup_logging(debug=settings.APP_DEBUG)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.state.container = container
    app.state.login_url = settings.LOGIN_URL

    # Le dernier ajouté est le plus externe: l'id de requête est lié avant les autres
    app.add_middleware(TimingMiddleware)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    for router in (
        auth_router,
        businesses_router,
        sessions_router,
        bookings_router,
        trainers_router,
        admin_router,
        webhooks_router,
    ):
        app.include_router(router, prefix=API_PREFIX)
    app.include_router(health_router)
    app.include_router(metrics_router)
    return app


def get_app() -> FastAPI:
    """Point d'entrée ASGI paresseux (`uvicorn myles.app.main:get_app --factory`)."""
    return create_app()
