"""Requêtes d'administration: statistiques agrégées et gestion des rôles."""

from __future__ import annotations

import structlog

from myles.domain.authz import require_admin
from myles.domain.entities import MarketplaceStats, Role, User
from myles.domain.errors import NotFoundError, ValidationError
from myles.infra.repo.uow import UnitOfWorkFactory

log = structlog.get_logger(__name__)


class AdminService:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow = uow_factory

    def stats(self, admin: User | None) -> MarketplaceStats:
        require_admin(admin)
        with self._uow() as uow:
            return MarketplaceStats(
                total_users=uow.users.count(),
                total_businesses=uow.businesses.count(),
                total_sessions=uow.sessions.count(),
                pending_businesses=uow.businesses.count(approved=False),
                pending_sessions=uow.sessions.count(approved=False),
                pending_claims=uow.claims.count_pending(),
                pending_trainers=uow.trainers.count(approved=False),
            )

    def set_user_role(self, admin: User | None, user_id: str, role: Role | str) -> User:
        caller = require_admin(admin)
        try:
            target = Role(role)
        except ValueError as exc:
            raise ValidationError({"role": f"unknown role: {role}"}) from exc
        with self._uow() as uow:
            user = uow.users.set_role(user_id, target)
        if user is None:
            raise NotFoundError("user_not_found")
        log.info("user_role_set", user_id=user_id, role=target.value, by=caller.id)
        return user
