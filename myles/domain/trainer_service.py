"""
Cycle de vie des coachs personnels et de leurs réservations.

Contrairement aux entreprises, l'ouverture à la réservation d'un coach est un drapeau posé
directement par un administrateur (pas de palier d'abonnement). Le montant d'une réservation
est recalculé côté serveur à partir du tarif horaire et de la durée.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import structlog

from myles.app.metrics import APPROVALS_TOTAL, BOOKINGS_TOTAL
from myles.core.settings import MarketplaceConfig
from myles.domain import emails
from myles.domain.authz import is_admin, require_admin, require_authenticated
from myles.domain.booking_service import (
    check_client_amount,
    ensure_transition,
    parse_status,
    to_naive_utc,
    verify_authorization,
)
from myles.domain.entities import (
    BookingStatus,
    PersonalTrainer,
    TrainerBooking,
    TrainerBookingDetails,
    TrainerSearchFilters,
    User,
)
from myles.domain.errors import (
    AdmissionError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from myles.domain.pricing import to_minor_units, trainer_booking_total
from myles.domain.validation import (
    MIN_SESSION_DURATION,
    TrainerBookingInput,
    TrainerInput,
    coerce,
)
from myles.infra.notifications.base import Notifier
from myles.infra.payments.base import PaymentGateway, PaymentToken
from myles.infra.repo.uow import UnitOfWork, UnitOfWorkFactory

log = structlog.get_logger(__name__)

TRAINER_BOOKING = "trainer_booking"


@dataclass
class TrainerBookingQuote:
    trainer_id: int
    duration: int
    total: Decimal


class TrainerService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        config: MarketplaceConfig,
        payments: PaymentGateway,
        notifier: Notifier,
    ) -> None:
        self._uow = uow_factory
        self.config = config
        self.payments = payments
        self.notifier = notifier

    # ------------------------------------------------------------------ profiles

    def apply_as_trainer(
        self, user_id: str, attributes: TrainerInput | Mapping[str, Any]
    ) -> PersonalTrainer:
        data = coerce(TrainerInput, attributes)
        with self._uow() as uow:
            trainer = uow.trainers.create(
                user_id=user_id,
                **data.model_dump(),
                approved=False,
                booking_enabled=False,
                featured=False,
            )
            uow.after_commit(
                self.notifier.deliver, emails.trainer_applied(self.config.admin_email, trainer)
            )
        log.info("trainer_applied", trainer_id=trainer.id, user_id=user_id)
        return trainer

    def approve_trainer(
        self, admin: User | None, trainer_id: int, approved: bool
    ) -> PersonalTrainer:
        require_admin(admin)
        with self._uow() as uow:
            if uow.trainers.get(trainer_id, for_update=True) is None:
                raise NotFoundError("trainer_not_found")
            trainer = uow.trainers.update(trainer_id, approved=approved)
            recipient = trainer.email or self._account_email(uow, trainer.user_id)
            if recipient:
                uow.after_commit(
                    self.notifier.deliver, emails.trainer_decision(recipient, approved)
                )
        APPROVALS_TOTAL.labels(entity="trainer", decision="approved" if approved else "rejected").inc()
        log.info("trainer_approval_set", trainer_id=trainer_id, approved=approved)
        return trainer

    def set_trainer_booking_enabled(
        self, admin: User | None, trainer_id: int, enabled: bool
    ) -> PersonalTrainer:
        require_admin(admin)
        with self._uow() as uow:
            if uow.trainers.get(trainer_id, for_update=True) is None:
                raise NotFoundError("trainer_not_found")
            trainer = uow.trainers.update(trainer_id, booking_enabled=enabled)
        log.info("trainer_booking_enabled_set", trainer_id=trainer_id, enabled=enabled)
        return trainer

    def search_trainers(self, filters: TrainerSearchFilters | None = None) -> list[PersonalTrainer]:
        with self._uow() as uow:
            return uow.trainers.search(filters or TrainerSearchFilters())

    def get_trainer(self, trainer_id: int) -> PersonalTrainer:
        with self._uow() as uow:
            trainer = uow.trainers.get(trainer_id)
        if trainer is None:
            raise NotFoundError("trainer_not_found")
        return trainer

    def list_my_trainer_profiles(self, user_id: str) -> list[PersonalTrainer]:
        with self._uow() as uow:
            return uow.trainers.list_by_user(user_id)

    def list_pending_trainers(self, admin: User | None) -> list[PersonalTrainer]:
        require_admin(admin)
        with self._uow() as uow:
            return uow.trainers.list_pending()

    # ------------------------------------------------------------------ bookings

    @staticmethod
    def _admit(uow: UnitOfWork, trainer_id: int, lock: bool = False) -> PersonalTrainer:
        trainer = uow.trainers.get(trainer_id, for_update=lock)
        if trainer is None:
            raise NotFoundError("trainer_not_found")
        if not trainer.approved:
            raise AdmissionError("trainer_not_approved")
        if not trainer.booking_enabled:
            raise AdmissionError("trainer_booking_not_enabled")
        if trainer.hourly_rate is None:
            raise AdmissionError("trainer_rate_missing")
        return trainer

    def authorize_payment(
        self,
        user: User | None,
        trainer_id: int,
        duration: int,
        amount: Decimal | None = None,
    ) -> tuple[PaymentToken, TrainerBookingQuote]:
        """Autorisation de paiement pour une séance de coaching de `duration` minutes."""
        caller = require_authenticated(user)
        if duration < MIN_SESSION_DURATION:
            raise ValidationError(
                {"duration": f"Input should be greater than or equal to {MIN_SESSION_DURATION}"}
            )
        with self._uow() as uow:
            trainer = self._admit(uow, trainer_id)
        total = trainer_booking_total(trainer.hourly_rate, duration, self.config.platform_fee_rate)
        check_client_amount(amount, total)
        token = self.payments.authorize(
            to_minor_units(total),
            self.config.currency,
            {"kind": TRAINER_BOOKING, "trainer_id": str(trainer_id), "user_id": caller.id},
        )
        return token, TrainerBookingQuote(trainer_id=trainer_id, duration=duration, total=total)

    def create_trainer_booking(
        self, user: User | None, attributes: TrainerBookingInput | Mapping[str, Any]
    ) -> TrainerBooking:
        """
        Crée une réservation de coach confirmée.

        Raises:
            AdmissionError: Coach non approuvé ou fermé à la réservation, paiement non conforme.
            ValidationError: Montant fourni par le client différent du montant calculé.
        """
        caller = require_authenticated(user)
        data = coerce(TrainerBookingInput, attributes)
        session_date = to_naive_utc(data.session_date)
        try:
            with self._uow() as uow:
                trainer = self._admit(uow, data.trainer_id)
            total = trainer_booking_total(
                trainer.hourly_rate, data.duration, self.config.platform_fee_rate
            )
            check_client_amount(data.total_amount, total)
            if total > 0:
                verify_authorization(
                    self.payments,
                    data.payment_intent_id,
                    total,
                    "trainer_id",
                    str(data.trainer_id),
                )
            with self._uow() as uow:
                trainer = self._admit(uow, data.trainer_id, lock=True)
                if data.payment_intent_id and uow.trainer_bookings.get_by_payment_intent(
                    data.payment_intent_id
                ):
                    raise ConflictError("payment_already_used")
                booking = uow.trainer_bookings.create(
                    user_id=caller.id,
                    trainer_id=data.trainer_id,
                    session_date=session_date,
                    duration=data.duration,
                    session_type=data.session_type,
                    location=data.location,
                    total_amount=total,
                    status=BookingStatus.CONFIRMED,
                    notes=data.notes,
                    client_name=data.client_name,
                    client_email=data.client_email,
                    client_phone=data.client_phone,
                    payment_intent_id=data.payment_intent_id,
                )
                uow.after_commit(
                    self.notifier.deliver, emails.trainer_booking_client(booking, trainer)
                )
                trainer_email = trainer.email or self._account_email(uow, trainer.user_id)
                if trainer_email:
                    uow.after_commit(
                        self.notifier.deliver, emails.trainer_booking_trainer(trainer_email, booking)
                    )
        except (AdmissionError, ConflictError):
            BOOKINGS_TOTAL.labels(kind="trainer", result="rejected").inc()
            raise
        BOOKINGS_TOTAL.labels(kind="trainer", result="created").inc()
        log.info("trainer_booking_created", booking_id=booking.id, trainer_id=data.trainer_id)
        return booking

    def update_trainer_booking_status(
        self, actor: User | None, booking_id: int, new_status: BookingStatus | str
    ) -> TrainerBooking:
        """Le client peut annuler; le coach ou un administrateur peut annuler ou terminer."""
        caller = require_authenticated(actor)
        target = parse_status(new_status)
        with self._uow() as uow:
            booking = uow.trainer_bookings.get(booking_id, for_update=True)
            if booking is None:
                raise NotFoundError("booking_not_found")
            trainer = uow.trainers.get(booking.trainer_id)
            manages = is_admin(caller) or (trainer is not None and trainer.user_id == caller.id)
            if not manages:
                if booking.user_id != caller.id:
                    raise AuthorizationError("not_booking_party")
                if target != BookingStatus.CANCELLED:
                    raise AuthorizationError("customer_can_only_cancel")
            ensure_transition(booking.status, target)
            booking = uow.trainer_bookings.set_status(booking_id, target)
        log.info("trainer_booking_status_changed", booking_id=booking_id, status=target.value)
        return booking

    def list_my_trainer_bookings(self, user_id: str) -> list[TrainerBookingDetails]:
        with self._uow() as uow:
            return uow.trainer_bookings.hydrate(uow.trainer_bookings.list_by_user(user_id))

    @staticmethod
    def _account_email(uow: UnitOfWork, user_id: str) -> str | None:
        account = uow.users.get(user_id)
        return account.email if account else None
