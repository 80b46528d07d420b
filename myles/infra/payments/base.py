"""
Interface du fournisseur de paiement.

Contrat consommé par les services métier: autorisations de paiement (payment intents),
clients, abonnements et évènements webhook. Les montants circulent en unités mineures
(pence); toute défaillance du fournisseur remonte en `PaymentGatewayError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INCOMPLETE = "incomplete"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    OTHER = "other"

    @property
    def is_terminal(self) -> bool:
        return self in (
            SubscriptionStatus.CANCELED,
            SubscriptionStatus.UNPAID,
            SubscriptionStatus.INCOMPLETE_EXPIRED,
        )


@dataclass
class PaymentToken:
    """Autorisation créée côté serveur; le client la confirme avec `client_secret`."""

    intent_id: str
    client_secret: str
    amount: int
    currency: str


@dataclass
class PaymentAuthorization:
    intent_id: str
    amount: int
    currency: str
    status: PaymentStatus
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_confirmed(self) -> bool:
        return self.status == PaymentStatus.SUCCEEDED


@dataclass
class SubscriptionResult:
    subscription_id: str
    status: SubscriptionStatus
    period_end: datetime | None
    client_secret: str | None


@dataclass
class WebhookEvent:
    event_id: str
    event_type: str
    data: dict[str, Any]
    created_at: int


class PaymentGateway(ABC):
    """Contrat abstrait du fournisseur de paiement."""

    @abstractmethod
    def authorize(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentToken:
        """Crée une autorisation de paiement pour `amount` unités mineures."""

    @abstractmethod
    def get_authorization(self, intent_id: str) -> PaymentAuthorization:
        """Relit une autorisation (statut, montant, métadonnées)."""

    @abstractmethod
    def ensure_customer(self, email: str, name: str | None, metadata: dict[str, str]) -> str:
        """Crée un client chez le fournisseur et retourne sa référence."""

    @abstractmethod
    def create_subscription(self, customer_id: str, price_id: str) -> SubscriptionResult:
        """Crée un abonnement en attente de confirmation du premier paiement."""

    @abstractmethod
    def parse_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """Vérifie la signature d'un webhook et retourne l'évènement."""
