"""
Métriques Prometheus pour le service bylines.

Ce module définit les métriques métier (bylines créées, jetons ignorés, écritures de relations)
et HTTP, expose `/metrics` et fournit le middleware de mesure.
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

# Métriques métier
BYLINES_CREATED = Counter(
    "bylines_created_total",
    "Total bylines created",
    ["source"],  # explicit | user
)
BYLINE_TOKENS_DROPPED = Counter(
    "byline_tokens_dropped_total",
    "Authorship tokens dropped during a save",
    ["reason"],  # malformed | not_found | user_not_found | conflict
)
BYLINE_RELATION_WRITES = Counter(
    "byline_relation_writes_total",
    "Total authorship relation replacements",
)
GRAPHQL_REQUESTS = Counter(
    "graphql_requests_total",
    "Total GraphQL operations",
    ["status"],  # ok | error
)


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Routes de service non mesurées (scraping et sondes)
UNMETERED_PATHS = frozenset({"/metrics", "/health"})


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Compte et chronomètre les requêtes HTTP par gabarit de route (`/bylines/{byline_id}`)."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in UNMETERED_PATHS:
            return await call_next(request)
        start = time.perf_counter()
        response: Response = await call_next(request)
        route_obj = request.scope.get("route")
        route = getattr(route_obj, "path", None) or "unmatched"
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
