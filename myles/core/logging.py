"""Configuration de logging basée sur structlog.

En développement les événements sont rendus lisiblement sur la console; ailleurs ils sont émis
en JSON (une ligne par événement) avec l'identifiant de requête lié par le middleware.
"""

import logging
import sys

import structlog


def setup_logging(debug: bool = True):
    """Configure structlog et redirige les loggers stdlib vers la même sortie."""
    level = logging.DEBUG if debug else logging.INFO
    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
    # Les gestionnaires d'erreurs API loguent via logging
    logging.basicConfig(stream=sys.stdout, level=level, format="%(levelname)s %(name)s %(message)s")
