"""Tests pour l'endpoint de santé de l'application."""

from sqlalchemy.exc import SQLAlchemyError

from myles.core.http_constants import HTTP_OK


class _DownEngine:
    def connect(self):
        raise SQLAlchemyError("database is down")


def test_health(client):
    """Teste que l'endpoint de santé retourne un statut OK."""
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    assert r.json()["status"] == "ok"


def test_health_reports_degraded_database(client, container, monkeypatch):
    monkeypatch.setattr(container, "engine", _DownEngine())
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    assert r.json()["status"] == "degraded"
    assert r.json()["database"] == "unavailable"
