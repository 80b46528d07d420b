# ============================================================
# Module : myles/infra/repo/booking_repo.py
# Objet  : Accès SQL aux réservations de séances.
# ============================================================

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from myles.domain.entities import Booking, BookingDetails, BookingStatus
from myles.infra.repo.models import BookingORM, FitnessSessionORM
from myles.infra.repo.session_repo import FitnessSessionRepo


def to_booking(row: BookingORM) -> Booking:
    return Booking(
        id=row.id,
        user_id=row.user_id,
        session_id=row.session_id,
        session_date=row.session_date,
        status=BookingStatus(row.status),
        payment_intent_id=row.payment_intent_id,
        total_amount=Decimal(row.total_amount),
        special_requirements=row.special_requirements,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class BookingRepo:
    """Dépôt des réservations de séances."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, booking_id: int, for_update: bool = False) -> BookingORM | None:
        stmt = select(BookingORM).where(BookingORM.id == booking_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def create(self, **fields: Any) -> Booking:
        status = fields.pop("status", BookingStatus.CONFIRMED)
        row = BookingORM(status=BookingStatus(status).value, **fields)
        self._session.add(row)
        self._session.flush()
        return to_booking(row)

    def get(self, booking_id: int, for_update: bool = False) -> Booking | None:
        row = self._row(booking_id, for_update=for_update)
        return to_booking(row) if row else None

    def get_by_payment_intent(self, payment_intent_id: str) -> Booking | None:
        stmt = select(BookingORM).where(BookingORM.payment_intent_id == payment_intent_id)
        row = self._session.execute(stmt).scalars().first()
        return to_booking(row) if row else None

    def set_status(self, booking_id: int, status: BookingStatus) -> Booking:
        row = self._row(booking_id)
        if row is None:
            raise KeyError(booking_id)
        row.status = status.value
        self._session.flush()
        return to_booking(row)

    def count_active(self, session_id: int, session_date: datetime) -> int:
        """Nombre de réservations non annulées pour une occurrence (séance, date)."""
        stmt = (
            select(func.count())
            .select_from(BookingORM)
            .where(
                BookingORM.session_id == session_id,
                BookingORM.session_date == session_date,
                BookingORM.status != BookingStatus.CANCELLED.value,
            )
        )
        return int(self._session.execute(stmt).scalar_one())

    def list_by_user(self, user_id: str) -> list[Booking]:
        stmt = (
            select(BookingORM)
            .where(BookingORM.user_id == user_id)
            .order_by(BookingORM.session_date.desc(), BookingORM.id.desc())
        )
        return [to_booking(r) for r in self._session.execute(stmt).scalars()]

    def list_by_business(self, business_id: int) -> list[Booking]:
        stmt = (
            select(BookingORM)
            .join(FitnessSessionORM, FitnessSessionORM.id == BookingORM.session_id)
            .where(FitnessSessionORM.business_id == business_id)
            .order_by(BookingORM.session_date.desc(), BookingORM.id.desc())
        )
        return [to_booking(r) for r in self._session.execute(stmt).scalars()]

    def hydrate(self, bookings: list[Booking]) -> list[BookingDetails]:
        sessions_repo = FitnessSessionRepo(self._session)
        sessions = sessions_repo.get_many({b.session_id for b in bookings})
        details = {d.session.id: d for d in sessions_repo.hydrate(list(sessions.values()))}
        return [
            BookingDetails(booking=b, session=details[b.session_id])
            for b in bookings
            if b.session_id in details
        ]
