"""Tests de la passerelle Stripe, SDK simulé par monkeypatch (aucun appel réseau)."""

import hashlib
import hmac
import json
import time
from datetime import datetime

import pytest
import stripe
from tenacity import wait_none

from myles.domain.errors import PaymentGatewayError, ValidationError
from myles.infra.payments.base import PaymentStatus, SubscriptionStatus
from myles.infra.payments.stripe_gateway import (
    StripeGateway,
    map_intent_status,
    map_subscription_status,
    subscription_period_end,
)

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def gateway() -> StripeGateway:
    return StripeGateway("sk_test_dummy", WEBHOOK_SECRET)


def _signed(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    digest = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


def test_missing_secret_key_is_fatal():
    with pytest.raises(RuntimeError):
        StripeGateway("")


def test_authorize_creates_intent(monkeypatch, gateway):
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return {"id": "pi_1", "client_secret": "pi_1_secret", "amount": 2200, "currency": "gbp"}

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    token = gateway.authorize(2200, "GBP", {"session_id": "7"})

    assert (token.intent_id, token.client_secret, token.amount) == ("pi_1", "pi_1_secret", 2200)
    assert captured["currency"] == "gbp"
    assert captured["metadata"] == {"session_id": "7"}


def test_authorize_provider_error_becomes_gateway_error(monkeypatch, gateway):
    def fake_create(**kwargs):
        raise stripe.InvalidRequestError("amount too small", "amount")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)

    with pytest.raises(PaymentGatewayError):
        gateway.authorize(10, "gbp", {})


def test_transient_errors_are_retried(monkeypatch, gateway):
    monkeypatch.setattr(StripeGateway._create_customer_api.retry, "wait", wait_none())
    attempts = []

    def flaky_create(**kwargs):
        attempts.append(kwargs)
        if len(attempts) < 3:
            raise stripe.APIConnectionError("connection reset")
        return {"id": "cus_1"}

    monkeypatch.setattr(stripe.Customer, "create", flaky_create)

    assert gateway.ensure_customer("olive@example.com", "Olive", {"user_id": "u1"}) == "cus_1"
    assert len(attempts) == 3
    assert attempts[0]["name"] == "Olive"


def test_get_authorization_maps_status_and_metadata(monkeypatch, gateway):
    intent = {
        "id": "pi_1",
        "amount": 2200,
        "currency": "gbp",
        "status": "succeeded",
        "metadata": {"session_id": "7", "user_id": "u1", "unrelated": "x"},
    }
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", lambda intent_id: intent)

    auth = gateway.get_authorization("pi_1")

    assert auth.is_confirmed
    assert auth.amount == 2200
    assert auth.metadata == {"session_id": "7", "user_id": "u1"}


def test_unknown_intent_is_a_failed_authorization(monkeypatch, gateway):
    def fake_retrieve(intent_id):
        raise stripe.InvalidRequestError("No such payment_intent", "intent")

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake_retrieve)

    auth = gateway.get_authorization("pi_missing")
    assert auth.status == PaymentStatus.FAILED
    assert not auth.is_confirmed


def test_create_subscription_reads_expanded_invoice(monkeypatch, gateway):
    period_end = 1798761600
    subscription = {
        "id": "sub_1",
        "status": "incomplete",
        "current_period_end": period_end,
        "latest_invoice": {"payment_intent": {"client_secret": "pi_sub_secret"}},
    }
    captured = {}

    def fake_create(**kwargs):
        captured.update(kwargs)
        return subscription

    monkeypatch.setattr(stripe.Subscription, "create", fake_create)

    result = gateway.create_subscription("cus_1", "price_basic")

    assert result.subscription_id == "sub_1"
    assert result.status == SubscriptionStatus.INCOMPLETE
    assert result.client_secret == "pi_sub_secret"
    assert result.period_end == datetime(2027, 1, 1)
    assert captured["items"] == [{"price": "price_basic"}]
    assert captured["payment_behavior"] == "default_incomplete"


def test_parse_webhook_verifies_signature(gateway):
    payload = json.dumps(
        {
            "id": "evt_1",
            "type": "customer.subscription.deleted",
            "created": 1,
            "data": {"object": {"id": "sub_1"}},
        }
    )

    event = gateway.parse_webhook(payload.encode("utf-8"), _signed(payload))

    assert event.event_type == "customer.subscription.deleted"
    assert event.data == {"id": "sub_1"}

    with pytest.raises(ValidationError):
        gateway.parse_webhook(payload.encode("utf-8"), _signed(payload, "whsec_other"))


def test_webhook_without_secret_is_a_gateway_error():
    with pytest.raises(PaymentGatewayError):
        StripeGateway("sk_test_dummy").parse_webhook(b"{}", "t=1,v1=x")


def test_status_mappings():
    assert map_intent_status("requires_payment_method") == PaymentStatus.PENDING
    assert map_intent_status("succeeded") == PaymentStatus.SUCCEEDED
    assert map_intent_status(None) == PaymentStatus.FAILED
    assert map_subscription_status("past_due") == SubscriptionStatus.PAST_DUE
    assert map_subscription_status("trialing") == SubscriptionStatus.OTHER
    assert subscription_period_end({}) is None
