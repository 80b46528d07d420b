"""Tests du contrôleur d'admission des réservations de séances."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from myles.domain.booking_service import ensure_transition, to_naive_utc
from myles.domain.entities import BookingStatus
from myles.domain.errors import (
    AdmissionError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from tests.fakes import business_payload, session_payload

MONDAY = datetime(2026, 11, 2, 8, 0)


def _paid_booking(container, gateway, user, session_id, when=MONDAY):
    token, quote = container.bookings.authorize_payment(user, session_id)
    gateway.confirm(token.intent_id)
    return container.bookings.create_booking(
        user,
        {
            "sessionId": session_id,
            "sessionDate": when.isoformat(),
            "paymentIntentId": token.intent_id,
            "totalAmount": str(quote.total),
        },
    )


def test_quote_adds_platform_fee(container, bookable):
    quote = container.bookings.quote(bookable.session.id)

    assert quote.price == Decimal("20.00")
    assert quote.fee == Decimal("2.00")
    assert quote.total == Decimal("22.00")
    assert quote.amount_minor == 2200
    assert quote.currency == "gbp"


def test_confirmed_payment_creates_booking(container, users, bookable, gateway, notifier):
    token, quote = container.bookings.authorize_payment(users.customer, bookable.session.id)
    assert gateway.intents[token.intent_id].amount == 2200
    assert gateway.intents[token.intent_id].metadata["session_id"] == str(bookable.session.id)
    gateway.confirm(token.intent_id)

    booking = container.bookings.create_booking(
        users.customer,
        {
            "sessionId": bookable.session.id,
            "sessionDate": MONDAY.isoformat(),
            "paymentIntentId": token.intent_id,
            "specialRequirements": "Bring a mat",
        },
    )

    assert booking.status == BookingStatus.CONFIRMED
    assert booking.total_amount == Decimal("22.00")
    assert booking.user_id == users.customer.id
    assert booking.session_date == MONDAY
    mail = notifier.to(users.customer.email)
    assert [m.subject for m in mail] == ["Booking Confirmation - MYLES"]
    assert "22.00" in mail[0].html


def test_free_tier_business_is_not_bookable_even_with_payment(container, users, gateway):
    yoga = container.sessions.create_session_type(users.admin, "Yoga")
    business = container.businesses.register_business(users.owner.id, business_payload())
    container.businesses.approve_business(users.admin, business.id, True)
    session = container.sessions.create_session(
        users.owner.id, business.id, session_payload(yoga.id)
    )
    container.sessions.approve_session(users.admin, session.id, True)
    intent = gateway.add_confirmed(2200, {"session_id": str(session.id)})

    with pytest.raises(AdmissionError) as exc:
        container.bookings.create_booking(
            users.customer,
            {"sessionId": session.id, "sessionDate": MONDAY, "paymentIntentId": intent},
        )

    assert exc.value.message == "booking_not_enabled"
    assert container.bookings.list_my_bookings(users.customer.id) == []


def test_unapproved_session_is_not_bookable(container, users, bookable):
    container.sessions.approve_session(users.admin, bookable.session.id, False)
    with pytest.raises(AdmissionError) as exc:
        container.bookings.quote(bookable.session.id)
    assert exc.value.message == "session_not_approved"


def test_unknown_session_is_not_found(container, users):
    with pytest.raises(NotFoundError):
        container.bookings.create_booking(users.customer, {"sessionId": 42, "sessionDate": MONDAY})


def test_anonymous_caller_cannot_book(container, bookable):
    with pytest.raises(AuthenticationError):
        container.bookings.create_booking(
            None, {"sessionId": bookable.session.id, "sessionDate": MONDAY}
        )


@pytest.mark.parametrize(
    "intent_factory, reason",
    [
        (lambda gw, sid: None, "payment_required"),
        (lambda gw, sid: gw.authorize(2200, "gbp", {"session_id": sid}).intent_id,
         "payment_not_confirmed"),
        (lambda gw, sid: gw.add_confirmed(2000, {"session_id": sid}), "payment_amount_mismatch"),
        (lambda gw, sid: gw.add_confirmed(2200, {"session_id": "999"}), "payment_target_mismatch"),
        (lambda gw, sid: "pi_does_not_exist", "payment_not_confirmed"),
    ],
)
def test_payment_must_be_confirmed_and_match(
    container, users, bookable, gateway, intent_factory, reason
):
    intent = intent_factory(gateway, str(bookable.session.id))

    with pytest.raises(AdmissionError) as exc:
        container.bookings.create_booking(
            users.customer,
            {"sessionId": bookable.session.id, "sessionDate": MONDAY, "paymentIntentId": intent},
        )

    assert exc.value.message == reason
    assert container.bookings.list_my_bookings(users.customer.id) == []


def test_client_amount_must_match_server_total(container, users, bookable, gateway):
    with pytest.raises(ValidationError) as exc:
        container.bookings.authorize_payment(users.customer, bookable.session.id, Decimal("20.00"))
    assert exc.value.message == "amount_mismatch"
    assert "authorize" not in gateway.calls

    intent = gateway.add_confirmed(2200, {"session_id": str(bookable.session.id)})
    with pytest.raises(ValidationError):
        container.bookings.create_booking(
            users.customer,
            {
                "sessionId": bookable.session.id,
                "sessionDate": MONDAY,
                "paymentIntentId": intent,
                "totalAmount": "20.00",
            },
        )


def test_payment_intent_cannot_be_reused(container, users, bookable, gateway):
    first = _paid_booking(container, gateway, users.customer, bookable.session.id)

    with pytest.raises(ConflictError):
        container.bookings.create_booking(
            users.other,
            {
                "sessionId": bookable.session.id,
                "sessionDate": (MONDAY + timedelta(days=7)).isoformat(),
                "paymentIntentId": first.payment_intent_id,
            },
        )


def test_capacity_is_enforced_per_occurrence(container, users, bookable, gateway):
    _paid_booking(container, gateway, users.customer, bookable.session.id)
    _paid_booking(container, gateway, users.other, bookable.session.id)

    with pytest.raises(AdmissionError) as exc:
        _paid_booking(container, gateway, users.owner, bookable.session.id)
    assert exc.value.message == "session_full"

    next_week = _paid_booking(
        container, gateway, users.owner, bookable.session.id, MONDAY + timedelta(days=7)
    )
    assert next_week.status == BookingStatus.CONFIRMED


def test_cancelled_booking_frees_a_place(container, users, bookable, gateway):
    first = _paid_booking(container, gateway, users.customer, bookable.session.id)
    _paid_booking(container, gateway, users.other, bookable.session.id)
    container.bookings.update_booking_status(users.customer, first.id, "cancelled")

    again = _paid_booking(container, gateway, users.owner, bookable.session.id)
    assert again.status == BookingStatus.CONFIRMED


def test_aware_session_date_is_stored_as_naive_utc(container, users, bookable, gateway):
    aware = datetime(2026, 11, 2, 9, 0, tzinfo=UTC)
    booking = _paid_booking(container, gateway, users.customer, bookable.session.id, aware)
    assert booking.session_date == datetime(2026, 11, 2, 9, 0)
    assert to_naive_utc(MONDAY) is MONDAY


def test_customer_can_only_cancel_own_booking(container, users, bookable, gateway):
    booking = _paid_booking(container, gateway, users.customer, bookable.session.id)

    with pytest.raises(AuthorizationError):
        container.bookings.update_booking_status(users.customer, booking.id, "completed")
    with pytest.raises(AuthorizationError):
        container.bookings.update_booking_status(users.other, booking.id, "cancelled")

    cancelled = container.bookings.update_booking_status(users.customer, booking.id, "cancelled")
    assert cancelled.status == BookingStatus.CANCELLED

    with pytest.raises(InvalidTransitionError):
        container.bookings.update_booking_status(users.customer, booking.id, "cancelled")


def test_owner_and_admin_manage_bookings(container, users, bookable, gateway):
    first = _paid_booking(container, gateway, users.customer, bookable.session.id)
    second = _paid_booking(
        container, gateway, users.other, bookable.session.id, MONDAY + timedelta(days=7)
    )

    done = container.bookings.update_booking_status(users.owner, first.id, "completed")
    assert done.status == BookingStatus.COMPLETED
    with pytest.raises(InvalidTransitionError):
        container.bookings.update_booking_status(users.owner, first.id, "cancelled")

    cancelled = container.bookings.update_booking_status(users.admin, second.id, "cancelled")
    assert cancelled.status == BookingStatus.CANCELLED

    with pytest.raises(ValidationError):
        container.bookings.update_booking_status(users.admin, second.id, "refunded")
    with pytest.raises(NotFoundError):
        container.bookings.update_booking_status(users.admin, 999, "cancelled")


def test_transition_table():
    ensure_transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED)
    ensure_transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED)
    for current in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
        for target in BookingStatus:
            with pytest.raises(InvalidTransitionError):
                ensure_transition(current, target)


def test_bookings_are_listed_latest_first(container, users, bookable, gateway):
    early = _paid_booking(container, gateway, users.customer, bookable.session.id)
    late = _paid_booking(
        container, gateway, users.customer, bookable.session.id, MONDAY + timedelta(days=14)
    )

    mine = container.bookings.list_my_bookings(users.customer.id)
    assert [d.booking.id for d in mine] == [late.id, early.id]
    assert mine[0].session.session.title == "Morning Hatha Yoga"
    assert mine[0].session.business.name == "FitLife Studio"
    assert container.bookings.list_my_bookings(users.other.id) == []


def test_business_bookings_are_owner_or_admin_only(container, users, bookable, gateway):
    booking = _paid_booking(container, gateway, users.customer, bookable.session.id)

    for caller in (users.owner, users.admin):
        listed = container.bookings.list_business_bookings(caller, bookable.business.id)
        assert [d.booking.id for d in listed] == [booking.id]
    with pytest.raises(AuthorizationError):
        container.bookings.list_business_bookings(users.customer, bookable.business.id)
    with pytest.raises(NotFoundError):
        container.bookings.list_business_bookings(users.admin, 999)


def test_free_session_needs_no_payment(container, users, bookable):
    free = container.sessions.create_session(
        users.owner.id,
        bookable.business.id,
        session_payload(bookable.session_type.id, title="Community Run", price="0.00"),
    )
    container.sessions.approve_session(users.admin, free.id, True)

    booking = container.bookings.create_booking(
        users.customer, {"sessionId": free.id, "sessionDate": MONDAY}
    )
    assert booking.total_amount == Decimal("0.00")
    assert booking.payment_intent_id is None
