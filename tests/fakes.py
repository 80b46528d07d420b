"""
Fakes pour les tests unitaires et d'API.

Ce module fournit une passerelle de paiement en mémoire (autorisations confirmables à la main,
abonnements et webhooks déterministes), un notifier qui enregistre les emails, et des charges
utiles d'exemple au format du client web (camelCase).
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from myles.domain.entities import Identity
from myles.domain.errors import NotificationError, ValidationError
from myles.infra.notifications.base import EmailMessage, Notifier
from myles.infra.payments.base import (
    PaymentAuthorization,
    PaymentGateway,
    PaymentStatus,
    PaymentToken,
    SubscriptionResult,
    SubscriptionStatus,
    WebhookEvent,
)

WEBHOOK_SIGNATURE = "t=1,v1=valid"
PERIOD_END = datetime(2026, 12, 1, 0, 0, 0)

ADMIN = Identity("admin_1", "admin@myles.example.com", "Ada", "Admin")
OWNER = Identity("owner_1", "olive@fitlife.example.com", "Olive", "Owner")
CUSTOMER = Identity("cust_1", "casey@example.com", "Casey", "Client")
OTHER = Identity("cust_2", "drew@example.com", "Drew", "Other")


class FakePaymentGateway(PaymentGateway):
    """
    Passerelle en mémoire.

    Les autorisations naissent `pending`; `confirm()` simule la confirmation côté client.
    `fail_with` fait échouer tous les appels fournisseur suivants.
    """

    def __init__(self) -> None:
        self.intents: dict[str, PaymentAuthorization] = {}
        self.customers: dict[str, dict[str, Any]] = {}
        self.subscriptions: dict[str, dict[str, str]] = {}
        self.fail_with: Exception | None = None
        self.calls: list[str] = []

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_with is not None:
            raise self.fail_with

    def authorize(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentToken:
        self._call("authorize")
        intent_id = f"pi_{len(self.intents) + 1}"
        self.intents[intent_id] = PaymentAuthorization(
            intent_id=intent_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING,
            metadata=dict(metadata),
        )
        return PaymentToken(intent_id, f"{intent_id}_secret", amount, currency)

    def confirm(self, intent_id: str) -> None:
        self.intents[intent_id].status = PaymentStatus.SUCCEEDED

    def add_confirmed(self, amount: int, metadata: dict[str, str], currency: str = "gbp") -> str:
        """Enregistre directement une autorisation confirmée (sans passer par `authorize`)."""
        intent_id = f"pi_manual_{len(self.intents) + 1}"
        self.intents[intent_id] = PaymentAuthorization(
            intent_id, amount, currency, PaymentStatus.SUCCEEDED, dict(metadata)
        )
        return intent_id

    def get_authorization(self, intent_id: str) -> PaymentAuthorization:
        self._call("get_authorization")
        found = self.intents.get(intent_id)
        if found is None:
            return PaymentAuthorization(intent_id, 0, "gbp", PaymentStatus.FAILED)
        return found

    def ensure_customer(self, email: str, name: str | None, metadata: dict[str, str]) -> str:
        self._call("ensure_customer")
        customer_id = f"cus_{len(self.customers) + 1}"
        self.customers[customer_id] = {"email": email, "name": name, "metadata": metadata}
        return customer_id

    def create_subscription(self, customer_id: str, price_id: str) -> SubscriptionResult:
        self._call("create_subscription")
        subscription_id = f"sub_{len(self.subscriptions) + 1}"
        self.subscriptions[subscription_id] = {"customer": customer_id, "price": price_id}
        return SubscriptionResult(
            subscription_id=subscription_id,
            status=SubscriptionStatus.INCOMPLETE,
            period_end=PERIOD_END,
            client_secret=f"{subscription_id}_secret",
        )

    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if signature != WEBHOOK_SIGNATURE:
            raise ValidationError({"Stripe-Signature": "invalid webhook signature"})
        event = json.loads(payload)
        return WebhookEvent(
            event_id=event["id"],
            event_type=event["type"],
            data=event["data"]["object"],
            created_at=int(event.get("created", 0)),
        )


class RecordingNotifier(Notifier):
    """Notifier qui conserve les messages envoyés; `fail=True` simule une panne du transport."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = fail

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise NotificationError("transport down")
        self.sent.append(message)

    def to(self, address: str) -> list[EmailMessage]:
        return [m for m in self.sent if m.to == address]


def business_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "name": "FitLife Studio",
        "address": "45 High Street",
        "postcode": "SW1A 1AA",
        "phone": "020 7123 4567",
        "businessType": "studio",
        "specialties": ["Yoga", "Pilates"],
        "ageRanges": ["all_ages"],
        "difficultyLevels": ["all_levels"],
        "email": "hello@fitlife.example.com",
    }
    payload.update(overrides)
    return payload


def session_payload(session_type_id: int, **overrides: Any) -> dict[str, Any]:
    payload = {
        "sessionTypeId": session_type_id,
        "title": "Morning Hatha Yoga",
        "difficulty": ["beginner"],
        "ageGroups": ["26-35"],
        "price": "20.00",
        "duration": 60,
        "maxParticipants": 2,
        "schedule": [{"dayOfWeek": 1, "startTime": "08:00", "endTime": "09:00"}],
    }
    payload.update(overrides)
    return payload


def trainer_payload(**overrides: Any) -> dict[str, Any]:
    payload = {
        "firstName": "Sam",
        "lastName": "Carter",
        "specialties": ["HIIT", "Strength"],
        "hourlyRate": "40.00",
        "bio": "Strength and conditioning coach",
        "location": "Camden, London",
        "email": "sam@trainers.example.com",
    }
    payload.update(overrides)
    return payload
