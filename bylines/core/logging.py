"""Configuration de logging basée sur structlog.

Objectif du module
------------------
- Logs console lisibles en développement (`APP_DEBUG`), JSON une ligne par événement sinon.
- Propager l'identifiant de requête lié via `structlog.contextvars`.
"""

import logging
import sys

import structlog


def setup_logging(debug: bool = True) -> None:
    """Configure structlog; `debug` choisit le rendu console et le niveau DEBUG."""
    level = logging.DEBUG if debug else logging.INFO
    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
