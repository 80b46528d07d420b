"""Tests de création, d'approbation et de recherche des séances."""

from decimal import Decimal

import pytest

from myles.domain.entities import SessionSearchFilters
from myles.domain.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from tests.fakes import business_payload, session_payload


@pytest.fixture
def yoga(container, users):
    return container.sessions.create_session_type(users.admin, "Yoga", "Mindful movement")


def test_unapproved_business_cannot_create_sessions(container, users, yoga):
    business = container.businesses.register_business(users.owner.id, business_payload())

    with pytest.raises(AuthorizationError):
        container.sessions.create_session(users.owner.id, business.id, session_payload(yoga.id))

    assert container.sessions.list_business_sessions(users.owner.id, business.id) == []


def test_non_owner_cannot_create_sessions(container, users, yoga):
    business = container.businesses.register_business(users.owner.id, business_payload())
    container.businesses.approve_business(users.admin, business.id, True)

    with pytest.raises(AuthorizationError):
        container.sessions.create_session(users.other.id, business.id, session_payload(yoga.id))
    with pytest.raises(AuthorizationError):
        container.sessions.create_session(users.owner.id, 999, session_payload(yoga.id))


def test_created_session_is_pending_and_admin_is_notified(container, users, yoga, notifier):
    business = container.businesses.register_business(users.owner.id, business_payload())
    container.businesses.approve_business(users.admin, business.id, True)

    session = container.sessions.create_session(
        users.owner.id, business.id, session_payload(yoga.id)
    )

    assert session.approved is False
    assert session.price == Decimal("20.00")
    assert session.schedule[0].start_time == "08:00"
    pending = container.sessions.list_pending_sessions(users.admin)
    assert [d.session.id for d in pending] == [session.id]
    subjects = [m.subject for m in notifier.to("admin@myles.example.com")]
    assert "New Session Submission - Pending Approval" in subjects


def test_unknown_session_type_is_rejected(container, users, yoga):
    business = container.businesses.register_business(users.owner.id, business_payload())
    container.businesses.approve_business(users.admin, business.id, True)

    with pytest.raises(ValidationError) as exc:
        container.sessions.create_session(users.owner.id, business.id, session_payload(999))
    assert "sessionTypeId" in exc.value.fields


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"difficulty": ["all_levels", "beginner"]}, "difficulty"),
        ({"ageGroups": ["all_ages", "18-25"]}, "ageGroups"),
        ({"ageGroups": []}, "ageGroups"),
        ({"duration": 10}, "duration"),
        ({"maxParticipants": 0}, "maxParticipants"),
        ({"schedule": []}, "schedule"),
        ({"price": "-1"}, "price"),
    ],
)
def test_session_attributes_are_validated(container, users, yoga, overrides, field):
    business = container.businesses.register_business(users.owner.id, business_payload())
    container.businesses.approve_business(users.admin, business.id, True)

    with pytest.raises(ValidationError) as exc:
        container.sessions.create_session(
            users.owner.id, business.id, session_payload(yoga.id, **overrides)
        )
    assert field in exc.value.fields


def test_schedule_slot_must_end_after_start(container, users, yoga):
    business = container.businesses.register_business(users.owner.id, business_payload())
    container.businesses.approve_business(users.admin, business.id, True)
    slot = {"dayOfWeek": 2, "startTime": "10:00", "endTime": "09:30"}

    with pytest.raises(ValidationError):
        container.sessions.create_session(
            users.owner.id, business.id, session_payload(yoga.id, schedule=[slot])
        )


def test_search_only_returns_approved_sessions_of_approved_businesses(container, users, bookable):
    pending = container.sessions.create_session(
        users.owner.id,
        bookable.business.id,
        session_payload(bookable.session_type.id, title="Evening Flow"),
    )

    found = container.sessions.search_sessions()
    assert [d.session.id for d in found] == [bookable.session.id]
    assert all(d.is_visible for d in found)
    assert pending.id not in {d.session.id for d in found}

    container.businesses.approve_business(users.admin, bookable.business.id, False)
    assert container.sessions.search_sessions() == []


def test_search_filters_combine(container, users, bookable):
    hiit = container.sessions.create_session_type(users.admin, "HIIT")
    extra = container.sessions.create_session(
        users.owner.id,
        bookable.business.id,
        session_payload(hiit.id, title="Lunch HIIT", price="35.00", difficulty=["advanced"]),
    )
    container.sessions.approve_session(users.admin, extra.id, True)
    search = container.sessions.search_sessions

    assert [d.session.id for d in search(SessionSearchFilters(session_type="hii"))] == [extra.id]
    assert [d.session.id for d in search(SessionSearchFilters(postcode="sw1a"))] == [
        bookable.session.id,
        extra.id,
    ]
    assert [
        d.session.id for d in search(SessionSearchFilters(min_price=Decimal("30")))
    ] == [extra.id]
    assert [
        d.session.id for d in search(SessionSearchFilters(max_price=Decimal("20.00")))
    ] == [bookable.session.id]
    assert [d.session.id for d in search(SessionSearchFilters(difficulty="beginner"))] == [
        bookable.session.id
    ]
    assert search(SessionSearchFilters(age_group="65+")) == []
    assert search(SessionSearchFilters(postcode="E1", session_type="Yoga")) == []


def test_session_details_and_unknown_session(container, bookable):
    details = container.sessions.get_session_details(bookable.session.id)
    assert details.business.id == bookable.business.id
    assert details.session_type.name == "Yoga"

    with pytest.raises(NotFoundError):
        container.sessions.get_session_details(999)


def test_business_sessions_are_owner_only(container, users, bookable):
    listed = container.sessions.list_business_sessions(users.owner.id, bookable.business.id)
    assert [d.session.id for d in listed] == [bookable.session.id]

    with pytest.raises(AuthorizationError):
        container.sessions.list_business_sessions(users.customer.id, bookable.business.id)


def test_session_types_are_sorted_and_unique(container, users, yoga):
    container.sessions.create_session_type(users.admin, "Boxing")

    assert [t.name for t in container.sessions.list_session_types()] == ["Boxing", "Yoga"]
    with pytest.raises(ConflictError):
        container.sessions.create_session_type(users.admin, "Yoga")
    with pytest.raises(ValidationError):
        container.sessions.create_session_type(users.admin, "   ")
    with pytest.raises(AuthorizationError):
        container.sessions.create_session_type(users.owner, "Spin Class")


def test_only_admins_approve_sessions(container, users, bookable):
    with pytest.raises(AuthorizationError):
        container.sessions.approve_session(users.owner, bookable.session.id, False)
    with pytest.raises(NotFoundError):
        container.sessions.approve_session(users.admin, 999, True)
