"""Tests du script de données d'exemple (insertion puis rejeu idempotent)."""

import pytest

from myles.domain.entities import Role
from myles.infra.repo.db import get_engine, get_session_factory
from myles.infra.repo.models import Base
from myles.infra.repo.uow import unit_of_work_factory
from scripts.seed_data import ADMIN, seed


@pytest.fixture
def uow_factory():
    engine = get_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    return unit_of_work_factory(get_session_factory(engine))


def test_seed_creates_catalogue(uow_factory):
    created = seed(uow_factory)

    assert created == {"session_types": 8, "businesses": 4, "sessions": 3}
    with uow_factory() as uow:
        assert uow.users.get(ADMIN.user_id).role == Role.ADMIN
        assert [b.name for b in uow.businesses.list_unclaimed()] == [
            "Aqua Sports Centre",
            "Riverside Spin",
        ]
        assert uow.sessions.count(approved=True) == 3


def test_seed_is_replayable(uow_factory):
    seed(uow_factory)

    assert seed(uow_factory) == {"session_types": 0, "businesses": 0, "sessions": 0}
    with uow_factory() as uow:
        assert uow.businesses.count() == 4
