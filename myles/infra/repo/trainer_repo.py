# ============================================================
# Module : myles/infra/repo/trainer_repo.py
# Objet  : Accès SQL aux coachs personnels et à leurs réservations.
# ============================================================

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from myles.domain.entities import (
    BookingStatus,
    PersonalTrainer,
    TrainerBooking,
    TrainerBookingDetails,
    TrainerSearchFilters,
)
from myles.infra.repo.models import PersonalTrainerORM, TrainerBookingORM


def to_trainer(row: PersonalTrainerORM) -> PersonalTrainer:
    return PersonalTrainer(
        id=row.id,
        user_id=row.user_id,
        first_name=row.first_name,
        last_name=row.last_name,
        bio=row.bio,
        specialties=list(row.specialties or []),
        certifications=list(row.certifications or []),
        experience=row.experience,
        hourly_rate=Decimal(row.hourly_rate) if row.hourly_rate is not None else None,
        location=row.location,
        profile_image_url=row.profile_image_url,
        phone_number=row.phone_number,
        email=row.email,
        available_days=list(row.available_days or []),
        preferred_times=list(row.preferred_times or []),
        session_types=list(row.session_types or []),
        travel_radius=row.travel_radius,
        approved=bool(row.approved),
        booking_enabled=bool(row.booking_enabled),
        featured=bool(row.featured),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_trainer_booking(row: TrainerBookingORM) -> TrainerBooking:
    return TrainerBooking(
        id=row.id,
        user_id=row.user_id,
        trainer_id=row.trainer_id,
        session_date=row.session_date,
        duration=row.duration,
        session_type=row.session_type,
        location=row.location,
        total_amount=Decimal(row.total_amount),
        status=BookingStatus(row.status),
        notes=row.notes,
        client_name=row.client_name,
        client_email=row.client_email,
        client_phone=row.client_phone,
        payment_intent_id=row.stripe_payment_intent_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _contains(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class TrainerRepo:
    """Dépôt des profils de coachs."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, trainer_id: int, for_update: bool = False) -> PersonalTrainerORM | None:
        stmt = select(PersonalTrainerORM).where(PersonalTrainerORM.id == trainer_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def create(self, **fields: Any) -> PersonalTrainer:
        row = PersonalTrainerORM(**fields)
        self._session.add(row)
        self._session.flush()
        return to_trainer(row)

    def get(self, trainer_id: int, for_update: bool = False) -> PersonalTrainer | None:
        row = self._row(trainer_id, for_update=for_update)
        return to_trainer(row) if row else None

    def get_many(self, trainer_ids: set[int]) -> dict[int, PersonalTrainer]:
        if not trainer_ids:
            return {}
        stmt = select(PersonalTrainerORM).where(PersonalTrainerORM.id.in_(trainer_ids))
        return {r.id: to_trainer(r) for r in self._session.execute(stmt).scalars()}

    def update(self, trainer_id: int, **fields: Any) -> PersonalTrainer:
        row = self._row(trainer_id)
        if row is None:
            raise KeyError(trainer_id)
        for key, value in fields.items():
            setattr(row, key, value)
        self._session.flush()
        return to_trainer(row)

    def list_by_user(self, user_id: str) -> list[PersonalTrainer]:
        stmt = (
            select(PersonalTrainerORM)
            .where(PersonalTrainerORM.user_id == user_id)
            .order_by(PersonalTrainerORM.id)
        )
        return [to_trainer(r) for r in self._session.execute(stmt).scalars()]

    def list_pending(self) -> list[PersonalTrainer]:
        stmt = (
            select(PersonalTrainerORM)
            .where(PersonalTrainerORM.approved.is_(False))
            .order_by(PersonalTrainerORM.id)
        )
        return [to_trainer(r) for r in self._session.execute(stmt).scalars()]

    def search(self, filters: TrainerSearchFilters) -> list[PersonalTrainer]:
        """Coachs approuvés correspondant aux filtres; la spécialité est filtrée après chargement."""
        stmt = (
            select(PersonalTrainerORM)
            .where(PersonalTrainerORM.approved.is_(True))
            .order_by(PersonalTrainerORM.featured.desc(), PersonalTrainerORM.id)
        )
        if filters.search:
            pattern = _contains(filters.search)
            stmt = stmt.where(
                or_(
                    PersonalTrainerORM.first_name.ilike(pattern, escape="\\"),
                    PersonalTrainerORM.last_name.ilike(pattern, escape="\\"),
                    PersonalTrainerORM.bio.ilike(pattern, escape="\\"),
                )
            )
        if filters.location:
            stmt = stmt.where(
                PersonalTrainerORM.location.ilike(_contains(filters.location), escape="\\")
            )
        if filters.max_rate is not None:
            stmt = stmt.where(PersonalTrainerORM.hourly_rate <= filters.max_rate)

        trainers = [to_trainer(r) for r in self._session.execute(stmt).scalars()]
        if filters.specialty:
            trainers = [t for t in trainers if filters.specialty in t.specialties]
        return trainers

    def count(self, approved: bool | None = None) -> int:
        stmt = select(func.count()).select_from(PersonalTrainerORM)
        if approved is not None:
            stmt = stmt.where(PersonalTrainerORM.approved.is_(approved))
        return int(self._session.execute(stmt).scalar_one())


class TrainerBookingRepo:
    """Dépôt des réservations de coachs."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, booking_id: int, for_update: bool = False) -> TrainerBookingORM | None:
        stmt = select(TrainerBookingORM).where(TrainerBookingORM.id == booking_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def create(self, **fields: Any) -> TrainerBooking:
        status = fields.pop("status", BookingStatus.CONFIRMED)
        intent = fields.pop("payment_intent_id", None)
        row = TrainerBookingORM(
            status=BookingStatus(status).value, stripe_payment_intent_id=intent, **fields
        )
        self._session.add(row)
        self._session.flush()
        return to_trainer_booking(row)

    def get(self, booking_id: int, for_update: bool = False) -> TrainerBooking | None:
        row = self._row(booking_id, for_update=for_update)
        return to_trainer_booking(row) if row else None

    def get_by_payment_intent(self, payment_intent_id: str) -> TrainerBooking | None:
        stmt = select(TrainerBookingORM).where(
            TrainerBookingORM.stripe_payment_intent_id == payment_intent_id
        )
        row = self._session.execute(stmt).scalars().first()
        return to_trainer_booking(row) if row else None

    def set_status(self, booking_id: int, status: BookingStatus) -> TrainerBooking:
        row = self._row(booking_id)
        if row is None:
            raise KeyError(booking_id)
        row.status = status.value
        self._session.flush()
        return to_trainer_booking(row)

    def list_by_user(self, user_id: str) -> list[TrainerBooking]:
        stmt = (
            select(TrainerBookingORM)
            .where(TrainerBookingORM.user_id == user_id)
            .order_by(TrainerBookingORM.session_date.desc(), TrainerBookingORM.id.desc())
        )
        return [to_trainer_booking(r) for r in self._session.execute(stmt).scalars()]

    def hydrate(self, bookings: list[TrainerBooking]) -> list[TrainerBookingDetails]:
        trainers = TrainerRepo(self._session).get_many({b.trainer_id for b in bookings})
        return [
            TrainerBookingDetails(booking=b, trainer=trainers[b.trainer_id])
            for b in bookings
            if b.trainer_id in trainers
        ]
