"""Tests HTTP de bout en bout (TestClient) sur l'application assemblée."""

import json

from myles.domain.auth import create_session_token
from tests.fakes import (
    ADMIN,
    CUSTOMER,
    OWNER,
    WEBHOOK_SIGNATURE,
    business_payload,
    session_payload,
    trainer_payload,
)


def _bookable_via_http(client, auth_headers):
    owner, admin = auth_headers(OWNER), auth_headers(ADMIN)
    r = client.post("/api/businesses", json=business_payload(), headers=owner)
    assert r.status_code == 201
    business = r.json()
    r = client.put(
        f"/api/admin/businesses/{business['id']}/approve", json={"approved": True}, headers=admin
    )
    assert r.status_code == 200
    r = client.post(f"/api/businesses/{business['id']}/upgrade", json={"tier": "basic"}, headers=owner)
    assert r.status_code == 200
    r = client.post("/api/admin/session-types", json={"name": "Yoga"}, headers=admin)
    assert r.status_code == 201
    type_id = r.json()["id"]
    r = client.post(
        "/api/sessions", json={**session_payload(type_id), "businessId": business["id"]}, headers=owner
    )
    assert r.status_code == 201
    session = r.json()
    r = client.put(f"/api/admin/sessions/{session['id']}/approve", json={"approved": True}, headers=admin)
    assert r.status_code == 200
    return business, session


def test_anonymous_call_gets_401_with_login_url(client):
    r = client.get("/api/auth/user")

    assert r.status_code == 401
    body = r.json()
    assert body["code"] == "UNAUTHORIZED"
    assert body["details"]["login_url"] == "/api/login"
    assert body["trace_id"] == r.headers["X-Request-ID"]


def test_invalid_token_is_treated_as_anonymous(client):
    r = client.get("/api/auth/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_token_with_wrong_audience_is_rejected(client, settings):
    token = create_session_token(
        settings.SESSION_SECRET, settings.SESSION_ALG, "another-app", {"sub": "x", "email": "x@example.com"}
    )
    r = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_current_user_is_upserted_with_database_role(client, users, auth_headers):
    r = client.get("/api/auth/user", headers=auth_headers(ADMIN))

    assert r.status_code == 200
    body = r.json()
    assert body["id"] == "admin_1"
    assert body["role"] == "admin"
    assert body["firstName"] == "Ada"


def test_session_cookie_is_accepted(client, settings):
    token = create_session_token(
        settings.SESSION_SECRET,
        settings.SESSION_ALG,
        settings.IDENTITY_CLIENT_ID,
        {"sub": "cookie_user", "email": "cookie@example.com"},
    )
    cookie = {"Cookie": f"{settings.SESSION_COOKIE_NAME}={token}"}

    r = client.get("/api/auth/user", headers=cookie)

    assert r.status_code == 200
    assert r.json() == {
        "id": "cookie_user",
        "email": "cookie@example.com",
        "role": "user",
        "firstName": None,
        "lastName": None,
        "profileImageUrl": None,
    }


def test_registration_validation_uses_error_envelope(client, auth_headers):
    r = client.post("/api/businesses", json={"name": "FitLife"}, headers=auth_headers(OWNER))

    assert r.status_code == 422
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert {"address", "postcode"} <= set(body["details"]["fields"])


def test_registered_business_is_camel_cased(client, auth_headers):
    r = client.post("/api/businesses", json=business_payload(), headers=auth_headers(OWNER))

    body = r.json()
    assert body["subscriptionTier"] == "free"
    assert body["bookingEnabled"] is False
    assert body["approved"] is False
    assert body["businessType"] == "studio"
    assert body["userId"] == OWNER.user_id
    assert "subscription_tier" not in body


def test_admin_routes_reject_non_admins(client, users, auth_headers):
    r = client.get("/api/admin/stats", headers=auth_headers(CUSTOMER))
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"

    r = client.get("/api/admin/stats", headers=auth_headers(ADMIN))
    assert r.status_code == 200
    assert r.json()["totalUsers"] == 4


def test_unknown_business_is_404(client):
    r = client.get("/api/businesses/404")
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_session_creation_requires_business_id(client, auth_headers):
    r = client.post("/api/sessions", json=session_payload(1), headers=auth_headers(OWNER))
    assert r.status_code == 422
    assert "businessId" in r.json()["details"]["fields"]


def test_full_booking_flow(client, users, gateway, notifier, auth_headers):
    business, session = _bookable_via_http(client, auth_headers)
    customer = auth_headers(CUSTOMER)

    r = client.get("/api/sessions/search", params={"postcode": "sw1a", "sessionType": "yoga"})
    assert [s["id"] for s in r.json()] == [session["id"]]
    assert r.json()[0]["price"] == "20.00"
    assert r.json()[0]["business"]["name"] == "FitLife Studio"

    r = client.post("/api/create-payment-intent", json={"sessionId": session["id"]}, headers=customer)
    assert r.status_code == 200
    intent = r.json()
    assert (intent["amount"], intent["fee"], intent["total"]) == ("20.00", "2.00", "22.00")
    assert intent["clientSecret"] == f"{intent['paymentIntentId']}_secret"

    r = client.post(
        "/api/bookings",
        json={
            "sessionId": session["id"],
            "sessionDate": "2026-11-02T08:00:00",
            "paymentIntentId": intent["paymentIntentId"],
        },
        headers=customer,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "payment_not_confirmed"

    gateway.confirm(intent["paymentIntentId"])
    r = client.post(
        "/api/bookings",
        json={
            "sessionId": session["id"],
            "sessionDate": "2026-11-02T08:00:00",
            "paymentIntentId": intent["paymentIntentId"],
            "totalAmount": "22.00",
        },
        headers=customer,
    )
    assert r.status_code == 201
    booking = r.json()
    assert booking["status"] == "confirmed"
    assert booking["totalAmount"] == "22.00"

    r = client.get("/api/bookings/my", headers=customer)
    assert [b["id"] for b in r.json()] == [booking["id"]]
    assert r.json()[0]["session"]["sessionType"]["name"] == "Yoga"

    r = client.get(f"/api/bookings/business/{business['id']}", headers=auth_headers(OWNER))
    assert [b["id"] for b in r.json()] == [booking["id"]]

    r = client.put(f"/api/bookings/{booking['id']}/status", json={"status": "completed"}, headers=customer)
    assert r.status_code == 403
    r = client.put(f"/api/bookings/{booking['id']}/status", json={"status": "cancelled"}, headers=customer)
    assert r.json()["status"] == "cancelled"
    assert "Booking Confirmation - MYLES" in [m.subject for m in notifier.to(CUSTOMER.email)]


def test_payment_intent_needs_a_target(client, auth_headers):
    r = client.post("/api/create-payment-intent", json={}, headers=auth_headers(CUSTOMER))
    assert r.status_code == 422
    assert "sessionId" in r.json()["details"]["fields"]


def test_trainer_flow_over_http(client, users, gateway, auth_headers):
    admin, customer = auth_headers(ADMIN), auth_headers(CUSTOMER)
    r = client.post("/api/personal-trainers", json=trainer_payload(), headers=auth_headers(OWNER))
    assert r.status_code == 201
    trainer_id = r.json()["id"]
    client.put(f"/api/admin/trainers/{trainer_id}/approve", json={"approved": True}, headers=admin)
    r = client.put(
        f"/api/admin/trainers/{trainer_id}/booking-enabled", json={"bookingEnabled": True}, headers=admin
    )
    assert r.json()["bookingEnabled"] is True

    r = client.get("/api/personal-trainers/search", params={"maxRate": "45", "specialty": "HIIT"})
    assert [t["id"] for t in r.json()] == [trainer_id]
    assert r.json()[0]["hourlyRate"] == "40.00"

    r = client.post(
        "/api/create-payment-intent", json={"trainerId": trainer_id}, headers=customer
    )
    assert r.status_code == 422
    r = client.post(
        "/api/create-payment-intent",
        json={"trainerId": trainer_id, "duration": 60},
        headers=customer,
    )
    assert r.json()["total"] == "44.00"
    gateway.confirm(r.json()["paymentIntentId"])

    r = client.post(
        "/api/trainer-bookings",
        json={
            "trainerId": trainer_id,
            "sessionDate": "2026-11-04T18:30:00Z",
            "duration": 60,
            "sessionType": "1-on-1",
            "clientName": "Casey Client",
            "clientEmail": CUSTOMER.email,
            "paymentIntentId": r.json()["paymentIntentId"],
        },
        headers=customer,
    )
    assert r.status_code == 201
    assert r.json()["totalAmount"] == "44.00"
    r = client.get("/api/trainer-bookings/my", headers=customer)
    assert r.json()[0]["trainer"]["id"] == trainer_id


def test_claim_flow_over_http(client, container, users, auth_headers):
    with container.uow() as uow:
        listed = uow.businesses.create(
            name="Aqua Sports Centre", address="78 Park Road", postcode="NW1 4SH", manually_added=True
        )
    r = client.get("/api/businesses/unclaimed")
    assert [b["id"] for b in r.json()] == [listed.id]

    r = client.post(
        f"/api/businesses/{listed.id}/claim",
        json={"claimMessage": "I manage this centre"},
        headers=auth_headers(CUSTOMER),
    )
    assert r.status_code == 201
    claim_id = r.json()["id"]

    r = client.get("/api/admin/claims/pending", headers=auth_headers(ADMIN))
    assert r.json()[0]["business"]["id"] == listed.id
    r = client.put(
        f"/api/admin/claims/{claim_id}/decide", json={"approve": True}, headers=auth_headers(ADMIN)
    )
    assert r.json()["status"] == "approved"
    r = client.put(
        f"/api/admin/claims/{claim_id}/decide", json={"approve": True}, headers=auth_headers(ADMIN)
    )
    assert r.status_code == 400
    assert r.json()["code"] == "INVALID_TRANSITION"


def test_webhook_signature_is_verified(client):
    payload = json.dumps({"id": "evt_1", "type": "invoice.paid", "data": {"object": {}}})

    r = client.post("/api/webhooks/stripe", content=payload, headers={"Stripe-Signature": "forged"})
    assert r.status_code == 422

    r = client.post(
        "/api/webhooks/stripe", content=payload, headers={"Stripe-Signature": WEBHOOK_SIGNATURE}
    )
    assert r.status_code == 200
    assert r.json() == {"received": True}


def test_subscription_deleted_webhook_downgrades(client, container, users, auth_headers):
    business, _ = _bookable_via_http(client, auth_headers)
    subscription_id = container.businesses.get_business(business["id"]).subscription_id
    payload = json.dumps(
        {
            "id": "evt_2",
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": subscription_id, "status": "canceled"}},
        }
    )

    r = client.post(
        "/api/webhooks/stripe", content=payload, headers={"Stripe-Signature": WEBHOOK_SIGNATURE}
    )

    assert r.status_code == 200
    current = client.get(f"/api/businesses/{business['id']}").json()
    assert current["subscriptionTier"] == "free"
    assert current["bookingEnabled"] is False
    assert client.get("/api/sessions/search").json()[0]["business"]["bookingEnabled"] is False


def test_health_and_metrics(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "ok", "email": "RecordingNotifier"}

    r = client.get("/metrics")
    assert r.status_code == 200
    assert "http_requests_total" in r.text
