"""
Passerelle de paiement Stripe.

Implémentation de `PaymentGateway` sur le SDK `stripe`. Les appels réseau sont rejoués par
`tenacity` sur les erreurs transitoires (limitation de débit, connexion, erreur serveur); toute
erreur Stripe restante est convertie en `PaymentGatewayError`.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import stripe
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from myles.app.metrics import PAYMENT_GATEWAY_ERRORS
from myles.core.http_constants import MAX_RETRIES
from myles.domain.errors import PaymentGatewayError, ValidationError
from myles.infra.payments.base import (
    PaymentAuthorization,
    PaymentGateway,
    PaymentStatus,
    PaymentToken,
    SubscriptionResult,
    SubscriptionStatus,
    WebhookEvent,
)

log = structlog.get_logger(__name__)

STRIPE_API_VERSION = "2024-06-20"

# Clés de métadonnées posées par les services lors de l'autorisation
METADATA_KEYS = ("kind", "session_id", "trainer_id", "user_id", "business_id")

_TRANSIENT = (stripe.RateLimitError, stripe.APIConnectionError, stripe.APIError)

_transient_retry = retry(
    stop=stop_after_attempt(MAX_RETRIES),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(_TRANSIENT),
    reraise=True,
)

_INTENT_STATUS = {
    "requires_payment_method": PaymentStatus.PENDING,
    "requires_confirmation": PaymentStatus.PENDING,
    "requires_action": PaymentStatus.PROCESSING,
    "processing": PaymentStatus.PROCESSING,
    "requires_capture": PaymentStatus.PROCESSING,
    "canceled": PaymentStatus.CANCELED,
    "succeeded": PaymentStatus.SUCCEEDED,
}


def map_intent_status(value: str | None) -> PaymentStatus:
    return _INTENT_STATUS.get(value or "", PaymentStatus.FAILED)


def map_subscription_status(value: str | None) -> SubscriptionStatus:
    try:
        return SubscriptionStatus(value or "")
    except ValueError:
        return SubscriptionStatus.OTHER


def _field(obj: Any, key: str) -> Any:
    """Lecture tolérante d'un champ d'objet Stripe (absent = None)."""
    if obj is None or isinstance(obj, str):
        return None
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), UTC).replace(tzinfo=None)


def _client_secret(subscription: Any) -> str | None:
    intent = _field(_field(subscription, "latest_invoice"), "payment_intent")
    return _field(intent, "client_secret")


def _metadata(intent: Any) -> dict[str, str]:
    metadata = _field(intent, "metadata")
    values = {key: _field(metadata, key) for key in METADATA_KEYS}
    return {k: str(v) for k, v in values.items() if v is not None}


class StripeGateway(PaymentGateway):
    """Passerelle Stripe (payment intents, clients, abonnements, webhooks)."""

    def __init__(self, secret_key: str, webhook_secret: str | None = None) -> None:
        if not secret_key:
            raise RuntimeError("STRIPE_SECRET_KEY is required")
        stripe.api_key = secret_key
        stripe.api_version = STRIPE_API_VERSION
        # Les rejeux sont portés par tenacity
        stripe.max_network_retries = 0
        self._webhook_secret = webhook_secret

    def _fail(self, operation: str, exc: Exception) -> PaymentGatewayError:
        PAYMENT_GATEWAY_ERRORS.labels(operation=operation).inc()
        log.error(
            "payment_gateway_error",
            operation=operation,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return PaymentGatewayError(f"Payment provider error during {operation}")

    @_transient_retry
    def _create_intent_api(self, **kwargs):
        return stripe.PaymentIntent.create(**kwargs)

    @_transient_retry
    def _retrieve_intent_api(self, intent_id: str):
        return stripe.PaymentIntent.retrieve(intent_id)

    @_transient_retry
    def _create_customer_api(self, **kwargs):
        return stripe.Customer.create(**kwargs)

    @_transient_retry
    def _create_subscription_api(self, **kwargs):
        return stripe.Subscription.create(**kwargs)

    def authorize(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentToken:
        try:
            intent = self._create_intent_api(
                amount=amount,
                currency=currency.lower(),
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as exc:
            raise self._fail("authorize", exc) from exc
        log.info("payment_intent_created", intent_id=intent["id"], amount=amount)
        return PaymentToken(
            intent_id=intent["id"],
            client_secret=intent["client_secret"],
            amount=int(intent["amount"]),
            currency=intent["currency"],
        )

    def get_authorization(self, intent_id: str) -> PaymentAuthorization:
        try:
            intent = self._retrieve_intent_api(intent_id)
        except stripe.InvalidRequestError as exc:
            # Identifiant inconnu côté Stripe: autorisation inexistante
            log.warning("payment_intent_not_found", intent_id=intent_id, error=str(exc))
            return PaymentAuthorization(
                intent_id=intent_id, amount=0, currency="", status=PaymentStatus.FAILED
            )
        except stripe.StripeError as exc:
            raise self._fail("get_authorization", exc) from exc
        return PaymentAuthorization(
            intent_id=intent["id"],
            amount=int(intent["amount"]),
            currency=intent["currency"],
            status=map_intent_status(intent["status"]),
            metadata=_metadata(intent),
        )

    def ensure_customer(self, email: str, name: str | None, metadata: dict[str, str]) -> str:
        params: dict[str, Any] = {"email": email, "metadata": metadata}
        if name:
            params["name"] = name
        try:
            customer = self._create_customer_api(**params)
        except stripe.StripeError as exc:
            raise self._fail("ensure_customer", exc) from exc
        log.info("payment_customer_created", customer_id=customer["id"])
        return customer["id"]

    def create_subscription(self, customer_id: str, price_id: str) -> SubscriptionResult:
        try:
            subscription = self._create_subscription_api(
                customer=customer_id,
                items=[{"price": price_id}],
                payment_behavior="default_incomplete",
                expand=["latest_invoice.payment_intent"],
            )
        except stripe.StripeError as exc:
            raise self._fail("create_subscription", exc) from exc
        status = _field(subscription, "status")
        log.info("subscription_created", subscription_id=subscription["id"], status=status)
        return SubscriptionResult(
            subscription_id=subscription["id"],
            status=map_subscription_status(status),
            period_end=_timestamp(_field(subscription, "current_period_end")),
            client_secret=_client_secret(subscription),
        )

    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        if not self._webhook_secret:
            raise PaymentGatewayError("Webhook secret is not configured")
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"), signature, self._webhook_secret
            )
            event = json.loads(payload)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            log.warning("webhook_rejected", error_type=type(exc).__name__)
            raise ValidationError({"Stripe-Signature": "invalid webhook signature"}) from exc
        log.info("webhook_verified", event_type=event.get("type"), event_id=event.get("id"))
        return WebhookEvent(
            event_id=str(event.get("id", "")),
            event_type=str(event.get("type", "")),
            data=dict((event.get("data") or {}).get("object") or {}),
            created_at=int(event.get("created") or 0),
        )


def subscription_period_end(data: dict[str, Any]) -> datetime | None:
    """Fin de période d'un objet abonnement issu d'un webhook."""
    return _timestamp(data.get("current_period_end"))
