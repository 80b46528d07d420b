"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP et les compteurs d'évènements marketplace (réservations,
approbations, abonnements, notifications) exposés sur `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Marketplace events
BOOKINGS_TOTAL = Counter(
    "marketplace_bookings_total",
    "Booking attempts by kind and outcome",
    ["kind", "result"],
)
APPROVALS_TOTAL = Counter(
    "marketplace_approvals_total",
    "Admin approval decisions",
    ["entity", "decision"],
)
SUBSCRIPTION_CHANGES_TOTAL = Counter(
    "marketplace_subscription_changes_total",
    "Business subscription tier changes",
    ["tier", "source"],
)
CLAIMS_TOTAL = Counter(
    "marketplace_claims_total",
    "Business claim submissions and decisions",
    ["status"],
)
PAYMENT_GATEWAY_ERRORS = Counter(
    "payment_gateway_errors_total",
    "Payment provider failures",
    ["operation"],
)
NOTIFICATIONS_TOTAL = Counter(
    "notifications_total",
    "Outbound email attempts",
    ["result"],
)
POSTCOMMIT_ACTIONS_TOTAL = Counter(
    "postcommit_actions_total",
    "Post-commit side effect outcomes",
    ["result"],
)


def normalize_route(request: Request) -> str:
    """Retourne le gabarit de route (ex: `/api/businesses/{business_id}`) pour limiter la cardinalité."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par route pour l'exposition
    Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = normalize_route(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
