"""
Endpoint de santé pour vérifier la disponibilité de l'API et de la base.

Expose `/health` pour signaler l'état général de l'application et du stockage.
"""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from myles.api.deps import get_container
from myles.core.container import Container

router = APIRouter(tags=["health"])
log = structlog.get_logger(__name__)


@router.get("/health")
def health(container: Container = Depends(get_container)):
    """Vérifie la disponibilité de l'API et de la base de données."""
    try:
        with container.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        log.warning("health_database_unavailable", error=str(exc))
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "email": type(container.notifier).__name__,
    }
