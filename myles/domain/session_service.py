"""
Cycle de vie des séances de fitness.

Création par le propriétaire d'une entreprise approuvée, approbation administrateur et
recherche publique des séances visibles.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from myles.app.metrics import APPROVALS_TOTAL
from myles.core.settings import MarketplaceConfig
from myles.domain import emails
from myles.domain.authz import require_admin, require_owner
from myles.domain.entities import (
    FitnessSession,
    SessionDetails,
    SessionSearchFilters,
    SessionType,
    User,
)
from myles.domain.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from myles.domain.validation import SessionInput, coerce
from myles.infra.notifications.base import Notifier
from myles.infra.repo.uow import UnitOfWorkFactory

log = structlog.get_logger(__name__)


class SessionService:
    def __init__(
        self, uow_factory: UnitOfWorkFactory, config: MarketplaceConfig, notifier: Notifier
    ) -> None:
        self._uow = uow_factory
        self.config = config
        self.notifier = notifier

    def create_session(
        self, owner_id: str, business_id: int, attributes: SessionInput | Mapping[str, Any]
    ) -> FitnessSession:
        """
        Crée une séance en attente d'approbation.

        Raises:
            AuthorizationError: L'appelant ne possède pas d'entreprise approuvée avec cet id.
            ValidationError: Attributs invalides ou type de séance inconnu.
        """
        data = coerce(SessionInput, attributes)
        with self._uow() as uow:
            business = uow.businesses.get(business_id)
            if business is None:
                raise AuthorizationError("not_business_owner")
            require_owner(owner_id, business)
            if not business.approved:
                raise AuthorizationError("business_not_approved")
            if uow.session_types.get(data.session_type_id) is None:
                raise ValidationError({"sessionTypeId": "unknown session type"})
            session = uow.sessions.create(
                business_id=business_id,
                session_type_id=data.session_type_id,
                title=data.title,
                description=data.description,
                difficulty=data.difficulty,
                age_groups=data.age_groups,
                gender=data.gender,
                price=data.price,
                duration=data.duration,
                max_participants=data.max_participants,
                schedule=[slot.to_slot() for slot in data.schedule],
                approved=False,
            )
            uow.after_commit(
                self.notifier.deliver,
                emails.session_submitted(self.config.admin_email, session, business),
            )
        log.info("session_created", session_id=session.id, business_id=business_id)
        return session

    def approve_session(self, admin: User | None, session_id: int, approved: bool) -> FitnessSession:
        # Le propriétaire n'est pas notifié
        require_admin(admin)
        with self._uow() as uow:
            if uow.sessions.get(session_id, for_update=True) is None:
                raise NotFoundError("session_not_found")
            session = uow.sessions.set_approved(session_id, approved)
        APPROVALS_TOTAL.labels(entity="session", decision="approved" if approved else "rejected").inc()
        log.info("session_approval_set", session_id=session_id, approved=approved)
        return session

    def search_sessions(self, filters: SessionSearchFilters | None = None) -> list[SessionDetails]:
        with self._uow() as uow:
            return uow.sessions.search(filters or SessionSearchFilters())

    def get_session_details(self, session_id: int) -> SessionDetails:
        with self._uow() as uow:
            session = uow.sessions.get(session_id)
            details = uow.sessions.hydrate([session]) if session else []
        if not details:
            raise NotFoundError("session_not_found")
        return details[0]

    def list_session_types(self) -> list[SessionType]:
        with self._uow() as uow:
            return uow.session_types.list_all()

    def create_session_type(
        self, admin: User | None, name: str, description: str | None = None
    ) -> SessionType:
        require_admin(admin)
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "field required"})
        with self._uow() as uow:
            if uow.session_types.get_by_name(name) is not None:
                raise ConflictError("session_type_exists")
            return uow.session_types.create(name, description)

    def list_business_sessions(self, owner_id: str, business_id: int) -> list[SessionDetails]:
        """Séances d'une entreprise (y compris en attente), réservé au propriétaire."""
        with self._uow() as uow:
            business = uow.businesses.get(business_id)
            if business is None:
                raise NotFoundError("business_not_found")
            require_owner(owner_id, business)
            return uow.sessions.hydrate(uow.sessions.list_by_business(business_id))

    def list_pending_sessions(self, admin: User | None) -> list[SessionDetails]:
        require_admin(admin)
        with self._uow() as uow:
            return uow.sessions.hydrate(uow.sessions.list_pending())
