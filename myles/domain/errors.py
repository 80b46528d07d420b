"""
Taxonomie des erreurs métier de la marketplace.

Chaque erreur porte un code stable et le statut HTTP associé; la couche API se contente de les
traduire dans l'enveloppe d'erreur standard (voir `myles.apigw.errors`).
"""

from __future__ import annotations

from typing import Any


class MarketplaceError(Exception):
    """Erreur métier de base (code stable + statut HTTP)."""

    code = "MARKETPLACE_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(MarketplaceError):
    """Entrée absente ou mal formée; `details["fields"]` énumère les champs fautifs."""

    code = "VALIDATION_ERROR"
    status_code = 422

    def __init__(self, fields: dict[str, str], message: str | None = None) -> None:
        self.fields = dict(fields)
        names = ", ".join(sorted(self.fields))
        super().__init__(message or f"invalid fields: {names}", {"fields": self.fields})


class AuthenticationError(MarketplaceError):
    """Identité absente ou invalide."""

    code = "UNAUTHORIZED"
    status_code = 401


class AuthorizationError(MarketplaceError):
    """L'appelant n'a pas le rôle ou la propriété requis."""

    code = "FORBIDDEN"
    status_code = 403


class NotFoundError(MarketplaceError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(MarketplaceError):
    """Précondition d'état violée (ex: entreprise déjà revendiquée)."""

    code = "CONFLICT"
    status_code = 409


class AdmissionError(MarketplaceError):
    """Réservation tentée contre une séance ou un coach non admissible."""

    code = "ADMISSION_REJECTED"
    status_code = 400


class InvalidTransitionError(MarketplaceError):
    """Changement de statut interdit."""

    code = "INVALID_TRANSITION"
    status_code = 400


class PaymentGatewayError(MarketplaceError):
    """Échec du fournisseur de paiement ou configuration de prix manquante."""

    code = "PAYMENT_GATEWAY_ERROR"
    status_code = 502


class NotificationError(MarketplaceError):
    """Échec d'envoi d'email. Journalisé, jamais propagé au-delà du notifier."""

    code = "NOTIFICATION_ERROR"
    status_code = 502
