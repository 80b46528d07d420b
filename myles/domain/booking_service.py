"""
Admission des réservations de séances.

Une réservation n'est créée que si la séance est approuvée, que son entreprise est approuvée
et ouverte à la réservation, et qu'une autorisation de paiement confirmée couvre exactement le
montant calculé côté serveur (prix + commission plateforme).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import structlog

from myles.app.metrics import BOOKINGS_TOTAL
from myles.core.settings import MarketplaceConfig
from myles.domain import emails
from myles.domain.authz import is_admin, require_authenticated
from myles.domain.entities import (
    BOOKING_TRANSITIONS,
    Booking,
    BookingDetails,
    BookingStatus,
    SessionDetails,
    User,
)
from myles.domain.errors import (
    AdmissionError,
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from myles.domain.pricing import booking_total, platform_fee, to_minor_units, to_money
from myles.domain.validation import BookingInput, coerce
from myles.infra.notifications.base import Notifier
from myles.infra.payments.base import PaymentGateway, PaymentToken
from myles.infra.repo.uow import UnitOfWork, UnitOfWorkFactory

log = structlog.get_logger(__name__)

SESSION_BOOKING = "session_booking"


@dataclass
class PaymentQuote:
    session_id: int
    price: Decimal
    fee: Decimal
    total: Decimal
    currency: str

    @property
    def amount_minor(self) -> int:
        return to_minor_units(self.total)


def to_naive_utc(value: datetime) -> datetime:
    """Les dates sont stockées en UTC naïf."""
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def parse_status(value: BookingStatus | str) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError as exc:
        raise ValidationError({"status": f"unknown status: {value}"}) from exc


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    """confirmed → cancelled|completed uniquement; les autres statuts sont terminaux."""
    if target not in BOOKING_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(f"invalid_transition:{current.value}->{target.value}")


def check_client_amount(client_amount: Decimal | None, total: Decimal) -> None:
    if client_amount is not None and to_money(client_amount) != total:
        raise ValidationError(
            {"totalAmount": f"amount mismatch: expected {total}"}, message="amount_mismatch"
        )


def verify_authorization(
    payments: PaymentGateway,
    intent_id: str | None,
    total: Decimal,
    metadata_key: str,
    metadata_value: str,
) -> None:
    """
    Vérifie qu'une autorisation confirmée couvre exactement `total`.

    Raises:
        AdmissionError: Autorisation absente, non confirmée, d'un autre montant ou liée à une
            autre cible.
    """
    if not intent_id:
        raise AdmissionError("payment_required")
    auth = payments.get_authorization(intent_id)
    if not auth.is_confirmed:
        raise AdmissionError("payment_not_confirmed")
    if auth.amount != to_minor_units(total):
        raise AdmissionError("payment_amount_mismatch")
    if auth.metadata.get(metadata_key) != metadata_value:
        raise AdmissionError("payment_target_mismatch")


class BookingService:
    """Contrôleur d'admission des réservations de séances."""

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

    # ------------------------------------------------------------------ admission

    @staticmethod
    def _admit(uow: UnitOfWork, session_id: int, lock: bool = False) -> SessionDetails:
        session = uow.sessions.get(session_id, for_update=lock)
        details = uow.sessions.hydrate([session]) if session else []
        if not details:
            raise NotFoundError("session_not_found")
        found = details[0]
        if not found.session.approved:
            raise AdmissionError("session_not_approved")
        if not found.business.approved:
            raise AdmissionError("business_not_approved")
        if not found.business.booking_enabled:
            raise AdmissionError("booking_not_enabled")
        return found

    def _quote(self, details: SessionDetails) -> PaymentQuote:
        price = to_money(details.session.price)
        rate = self.config.platform_fee_rate
        return PaymentQuote(
            session_id=details.session.id,
            price=price,
            fee=platform_fee(price, rate),
            total=booking_total(price, rate),
            currency=self.config.currency,
        )

    def quote(self, session_id: int) -> PaymentQuote:
        """Montant dû pour une séance réservable."""
        with self._uow() as uow:
            return self._quote(self._admit(uow, session_id))

    def authorize_payment(
        self, user: User | None, session_id: int, amount: Decimal | None = None
    ) -> tuple[PaymentToken, PaymentQuote]:
        """Crée une autorisation de paiement du montant calculé côté serveur."""
        caller = require_authenticated(user)
        quote = self.quote(session_id)
        check_client_amount(amount, quote.total)
        token = self.payments.authorize(
            quote.amount_minor,
            quote.currency,
            {"kind": SESSION_BOOKING, "session_id": str(session_id), "user_id": caller.id},
        )
        log.info("payment_authorized", session_id=session_id, amount=quote.amount_minor)
        return token, quote

    def create_booking(
        self, user: User | None, attributes: BookingInput | Mapping[str, Any]
    ) -> Booking:
        """
        Crée une réservation confirmée.

        Raises:
            AuthenticationError: Appelant anonyme.
            NotFoundError: Séance inconnue.
            AdmissionError: Séance/entreprise non admissible, paiement non conforme, séance
                complète.
            ConflictError: Autorisation de paiement déjà utilisée.
        """
        caller = require_authenticated(user)
        data = coerce(BookingInput, attributes)
        session_date = to_naive_utc(data.session_date)
        try:
            quote = self.quote(data.session_id)
            check_client_amount(data.total_amount, quote.total)
            if quote.total > 0:
                verify_authorization(
                    self.payments,
                    data.payment_intent_id,
                    quote.total,
                    "session_id",
                    str(data.session_id),
                )
            with self._uow() as uow:
                details = self._admit(uow, data.session_id, lock=True)
                if data.payment_intent_id and uow.bookings.get_by_payment_intent(
                    data.payment_intent_id
                ):
                    raise ConflictError("payment_already_used")
                if self.config.enforce_capacity:
                    taken = uow.bookings.count_active(data.session_id, session_date)
                    if taken >= details.session.max_participants:
                        raise AdmissionError("session_full")
                booking = uow.bookings.create(
                    user_id=caller.id,
                    session_id=data.session_id,
                    session_date=session_date,
                    status=BookingStatus.CONFIRMED,
                    payment_intent_id=data.payment_intent_id,
                    total_amount=quote.total,
                    special_requirements=data.special_requirements,
                )
                if caller.email:
                    uow.after_commit(
                        self.notifier.deliver,
                        emails.booking_confirmed(
                            caller.email, details.session, session_date, quote.total
                        ),
                    )
        except (AdmissionError, ConflictError):
            BOOKINGS_TOTAL.labels(kind="session", result="rejected").inc()
            raise
        BOOKINGS_TOTAL.labels(kind="session", result="created").inc()
        log.info("booking_created", booking_id=booking.id, session_id=data.session_id)
        return booking

    # ------------------------------------------------------------------ status

    def update_booking_status(
        self, actor: User | None, booking_id: int, new_status: BookingStatus | str
    ) -> Booking:
        """
        Change le statut d'une réservation.

        Le client peut annuler; le propriétaire de l'entreprise ou un administrateur peut
        annuler ou terminer.
        """
        caller = require_authenticated(actor)
        target = parse_status(new_status)
        with self._uow() as uow:
            booking = uow.bookings.get(booking_id, for_update=True)
            if booking is None:
                raise NotFoundError("booking_not_found")
            session = uow.sessions.get(booking.session_id)
            business = uow.businesses.get(session.business_id) if session else None
            manages = is_admin(caller) or (business is not None and business.user_id == caller.id)
            if not manages:
                if booking.user_id != caller.id:
                    raise AuthorizationError("not_booking_party")
                if target != BookingStatus.CANCELLED:
                    raise AuthorizationError("customer_can_only_cancel")
            ensure_transition(booking.status, target)
            booking = uow.bookings.set_status(booking_id, target)
        log.info("booking_status_changed", booking_id=booking_id, status=target.value)
        return booking

    # ------------------------------------------------------------------ queries

    def list_my_bookings(self, user_id: str) -> list[BookingDetails]:
        with self._uow() as uow:
            return uow.bookings.hydrate(uow.bookings.list_by_user(user_id))

    def list_business_bookings(self, actor: User | None, business_id: int) -> list[BookingDetails]:
        caller = require_authenticated(actor)
        with self._uow() as uow:
            business = uow.businesses.get(business_id)
            if business is None:
                raise NotFoundError("business_not_found")
            if not is_admin(caller) and business.user_id != caller.id:
                raise AuthorizationError("not_business_owner")
            return uow.bookings.hydrate(uow.bookings.list_by_business(business_id))
