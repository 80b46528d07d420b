# ============================================================
# Module : myles/infra/repo/session_repo.py
# Objet  : Accès SQL aux types de séance et aux séances de fitness.
# ============================================================

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from myles.domain.entities import (
    FitnessSession,
    Gender,
    ScheduleSlot,
    SessionDetails,
    SessionSearchFilters,
    SessionType,
)
from myles.infra.repo.business_repo import BusinessRepo, to_business
from myles.infra.repo.models import BusinessORM, FitnessSessionORM, SessionTypeORM


def to_session_type(row: SessionTypeORM) -> SessionType:
    return SessionType(
        id=row.id, name=row.name, description=row.description, created_at=row.created_at
    )


def _slot_to_json(slot: ScheduleSlot) -> dict[str, Any]:
    return {"dayOfWeek": slot.day_of_week, "startTime": slot.start_time, "endTime": slot.end_time}


def _slot_from_json(data: dict[str, Any]) -> ScheduleSlot:
    return ScheduleSlot(
        day_of_week=int(data["dayOfWeek"]),
        start_time=str(data["startTime"]),
        end_time=str(data["endTime"]),
    )


def to_session(row: FitnessSessionORM) -> FitnessSession:
    return FitnessSession(
        id=row.id,
        business_id=row.business_id,
        session_type_id=row.session_type_id,
        title=row.title,
        description=row.description,
        difficulty=list(row.difficulty or []),
        age_groups=list(row.age_groups or []),
        gender=Gender(row.gender),
        price=Decimal(row.price),
        duration=row.duration,
        max_participants=row.max_participants,
        schedule=[_slot_from_json(s) for s in (row.schedule or [])],
        approved=bool(row.approved),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _contains(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SessionTypeRepo:
    """Dépôt de la table de référence des types de séance."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[SessionType]:
        stmt = select(SessionTypeORM).order_by(SessionTypeORM.name)
        return [to_session_type(r) for r in self._session.execute(stmt).scalars()]

    def get(self, type_id: int) -> SessionType | None:
        row = self._session.get(SessionTypeORM, type_id)
        return to_session_type(row) if row else None

    def get_by_name(self, name: str) -> SessionType | None:
        stmt = select(SessionTypeORM).where(func.lower(SessionTypeORM.name) == name.lower())
        row = self._session.execute(stmt).scalars().first()
        return to_session_type(row) if row else None

    def get_many(self, type_ids: set[int]) -> dict[int, SessionType]:
        if not type_ids:
            return {}
        stmt = select(SessionTypeORM).where(SessionTypeORM.id.in_(type_ids))
        return {r.id: to_session_type(r) for r in self._session.execute(stmt).scalars()}

    def create(self, name: str, description: str | None = None) -> SessionType:
        row = SessionTypeORM(name=name, description=description)
        self._session.add(row)
        self._session.flush()
        return to_session_type(row)


class FitnessSessionRepo:
    """Dépôt des séances; la recherche ne retourne que des séances approuvées."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, session_id: int, for_update: bool = False) -> FitnessSessionORM | None:
        stmt = select(FitnessSessionORM).where(FitnessSessionORM.id == session_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def create(self, **fields: Any) -> FitnessSession:
        schedule = [_slot_to_json(s) for s in fields.pop("schedule", [])]
        gender = fields.pop("gender", Gender.MIXED)
        row = FitnessSessionORM(schedule=schedule, gender=Gender(gender).value, **fields)
        self._session.add(row)
        self._session.flush()
        return to_session(row)

    def get(self, session_id: int, for_update: bool = False) -> FitnessSession | None:
        row = self._row(session_id, for_update=for_update)
        return to_session(row) if row else None

    def get_many(self, session_ids: set[int]) -> dict[int, FitnessSession]:
        if not session_ids:
            return {}
        stmt = select(FitnessSessionORM).where(FitnessSessionORM.id.in_(session_ids))
        return {r.id: to_session(r) for r in self._session.execute(stmt).scalars()}

    def set_approved(self, session_id: int, approved: bool) -> FitnessSession:
        row = self._row(session_id)
        if row is None:
            raise KeyError(session_id)
        row.approved = approved
        self._session.flush()
        return to_session(row)

    def list_by_business(self, business_id: int) -> list[FitnessSession]:
        stmt = (
            select(FitnessSessionORM)
            .where(FitnessSessionORM.business_id == business_id)
            .order_by(FitnessSessionORM.id)
        )
        return [to_session(r) for r in self._session.execute(stmt).scalars()]

    def list_pending(self) -> list[FitnessSession]:
        stmt = (
            select(FitnessSessionORM)
            .where(FitnessSessionORM.approved.is_(False))
            .order_by(FitnessSessionORM.id)
        )
        return [to_session(r) for r in self._session.execute(stmt).scalars()]

    def search(self, filters: SessionSearchFilters) -> list[SessionDetails]:
        """
        Recherche les séances visibles.

        Les filtres texte et prix sont traduits en SQL; l'appartenance aux ensembles JSON
        (tranche d'âge, difficulté) est évaluée après chargement pour rester portable entre
        moteurs.
        """
        stmt = (
            select(FitnessSessionORM, BusinessORM, SessionTypeORM)
            .join(BusinessORM, BusinessORM.id == FitnessSessionORM.business_id)
            .join(SessionTypeORM, SessionTypeORM.id == FitnessSessionORM.session_type_id)
            .where(FitnessSessionORM.approved.is_(True), BusinessORM.approved.is_(True))
            .order_by(FitnessSessionORM.id)
        )
        if filters.postcode:
            stmt = stmt.where(BusinessORM.postcode.ilike(_contains(filters.postcode), escape="\\"))
        if filters.session_type:
            stmt = stmt.where(
                SessionTypeORM.name.ilike(_contains(filters.session_type), escape="\\")
            )
        if filters.min_price is not None:
            stmt = stmt.where(FitnessSessionORM.price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(FitnessSessionORM.price <= filters.max_price)

        results: list[SessionDetails] = []
        for session_row, business_row, type_row in self._session.execute(stmt).all():
            if filters.age_group and filters.age_group not in (session_row.age_groups or []):
                continue
            if filters.difficulty and filters.difficulty not in (session_row.difficulty or []):
                continue
            results.append(
                SessionDetails(
                    session=to_session(session_row),
                    business=to_business(business_row),
                    session_type=to_session_type(type_row),
                )
            )
        return results

    def hydrate(self, sessions: list[FitnessSession]) -> list[SessionDetails]:
        """Assemble chaque séance avec son entreprise et son type (requêtes groupées)."""
        businesses = BusinessRepo(self._session).get_many({s.business_id for s in sessions})
        types = SessionTypeRepo(self._session).get_many({s.session_type_id for s in sessions})
        return [
            SessionDetails(
                session=s, business=businesses[s.business_id], session_type=types[s.session_type_id]
            )
            for s in sessions
            if s.business_id in businesses and s.session_type_id in types
        ]

    def count(self, approved: bool | None = None) -> int:
        stmt = select(func.count()).select_from(FitnessSessionORM)
        if approved is not None:
            stmt = stmt.where(FitnessSessionORM.approved.is_(approved))
        return int(self._session.execute(stmt).scalar_one())
