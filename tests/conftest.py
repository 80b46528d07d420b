"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path, fixe un environnement minimal (clé Stripe
factice, base SQLite en mémoire) et fournit les fixtures partagées: conteneur câblé sur des
fakes, client HTTP, utilisateurs types et une séance réservable.
"""

import os
import sys
from types import SimpleNamespace

import pytest

# Ensure project root is on sys.path so that
# imports like `from myles...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from fastapi.testclient import TestClient  # noqa: E402

from myles.app.main import create_app  # noqa: E402
from myles.core.container import Container  # noqa: E402
from myles.core.settings import Settings  # noqa: E402
from myles.domain.auth import create_session_token  # noqa: E402
from myles.domain.entities import Identity, Role  # noqa: E402
from tests.fakes import (  # noqa: E402
    ADMIN,
    CUSTOMER,
    OTHER,
    OWNER,
    FakePaymentGateway,
    RecordingNotifier,
    business_payload,
    session_payload,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        APP_DEBUG=False,
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        DB_AUTO_CREATE=True,
        STRIPE_SECRET_KEY="sk_test_dummy",
        STRIPE_WEBHOOK_SECRET="whsec_test",
        STRIPE_BASIC_PRICE_ID="price_basic",
        STRIPE_PREMIUM_PRICE_ID="price_premium",
        SENDGRID_API_KEY=None,
        ADMIN_EMAIL="admin@myles.example.com",
        SESSION_SECRET="test-session-secret",
        IDENTITY_CLIENT_ID="myles-test",
        LOGIN_URL="/api/login",
    )


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def container(settings, gateway, notifier) -> Container:
    return Container(settings=settings, payments=gateway, notifier=notifier)


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container))


@pytest.fixture
def users(container) -> SimpleNamespace:
    """Administrateur, futur propriétaire et deux clients, insérés en base."""
    with container.uow() as uow:
        return SimpleNamespace(
            admin=uow.users.upsert(ADMIN, role=Role.ADMIN),
            owner=uow.users.upsert(OWNER),
            customer=uow.users.upsert(CUSTOMER),
            other=uow.users.upsert(OTHER),
        )


@pytest.fixture
def auth_headers(settings):
    """Fabrique d'en-têtes `Authorization` signés pour une identité."""

    def _headers(identity: Identity) -> dict[str, str]:
        token = create_session_token(
            settings.SESSION_SECRET,
            settings.SESSION_ALG,
            settings.IDENTITY_CLIENT_ID,
            {
                "sub": identity.user_id,
                "email": identity.email,
                "first_name": identity.first_name,
                "last_name": identity.last_name,
            },
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def bookable(container, users) -> SimpleNamespace:
    """Entreprise approuvée au palier basic avec une séance approuvée à 20.00."""
    business = container.businesses.register_business(users.owner.id, business_payload())
    container.businesses.approve_business(users.admin, business.id, True)
    container.businesses.upgrade_subscription(users.owner.id, business.id, "basic")
    yoga = container.sessions.create_session_type(users.admin, "Yoga", "Mindful movement")
    session = container.sessions.create_session(
        users.owner.id, business.id, session_payload(yoga.id)
    )
    session = container.sessions.approve_session(users.admin, session.id, True)
    return SimpleNamespace(
        business=container.businesses.get_business(business.id),
        session=session,
        session_type=yoga,
    )
