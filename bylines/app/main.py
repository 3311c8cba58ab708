"""
Application principale FastAPI du service bylines.

Ce module assemble les composants de l'application : middlewares, routes, métriques, gestion
des erreurs et construction du schéma GraphQL.

Responsabilités du module:
- Initialiser le logging structuré et le tracing
- Construire le schéma GraphQL au démarrage (les erreurs de métadonnées échouent ici)
- Ajouter les middlewares (request id, timing, Prometheus)
- Monter les routers (santé, bylines, GraphQL, métriques)
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from bylines.api.errors import install_error_handlers
from bylines.api.routes_bylines import router as bylines_router
from bylines.api.routes_graphql import router as graphql_router
from bylines.api.routes_health import router as health_router
from bylines.app.metrics import PrometheusMiddleware, metrics_router
from bylines.app.tracing import setup_tracing
from bylines.core.container import Container, container
from bylines.core.logging import setup_logging
from bylines.middlewares.request_id import RequestIDMiddleware
from bylines.middlewares.timing import TimingMiddleware


def create_app(app_container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog) et le tracing
    - Construit le schéma GraphQL une fois pour toutes
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes
    """
    c = app_container or container
    setup_logging(debug=c.settings.APP_DEBUG)
    setup_tracing(c.settings)
    c.startup()
    app = FastAPI(title=c.settings.APP_NAME, debug=c.settings.APP_DEBUG)
    app.state.container = c
    install_error_handlers(app)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health_router)
    app.include_router(bylines_router)
    app.include_router(graphql_router)
    app.include_router(metrics_router)
    return app


app = create_app()


def run() -> None:
    """Lance le serveur uvicorn sur `APP_HOST`/`APP_PORT`."""
    settings = app.state.container.settings
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
