"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Dériver la configuration métier (`MarketplaceConfig`) injectée dans les services
"""

import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "myles-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000

    DATABASE_URL: str | None = None
    DB_AUTO_CREATE: bool = True

    # Identité (jeton de session signé par le fournisseur d'identité)
    IDENTITY_CLIENT_ID: str = "myles-web"
    SESSION_SECRET: str = "dev-secret-change-me"
    SESSION_ALG: str = "HS256"
    SESSION_COOKIE_NAME: str = "session"
    LOGIN_URL: str = "/api/login"

    # Paiements (Stripe)
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None
    STRIPE_BASIC_PRICE_ID: str | None = None
    STRIPE_PREMIUM_PRICE_ID: str | None = None
    PAYMENT_CURRENCY: str = "gbp"

    # Notifications (SendGrid)
    SENDGRID_API_KEY: str | None = None
    EMAIL_FROM: str = "noreply@mylesfitness.co.uk"
    ADMIN_EMAIL: str = "admin@mylesfitness.co.uk"

    # Règles marketplace
    PLATFORM_FEE_RATE: Decimal = Decimal("0.10")
    ENFORCE_SESSION_CAPACITY: bool = True


@dataclass(frozen=True)
class MarketplaceConfig:
    """Configuration métier injectée dans les gestionnaires de cycle de vie.

    Attributs
    - admin_email: destinataire des notifications d'administration.
    - platform_fee_rate: commission plateforme appliquée au prix d'une séance.
    - currency: devise ISO (minuscule) des paiements.
    - plan_prices: référence de prix du fournisseur par palier payant.
    - enforce_capacity: contrôle du nombre de places par séance/date.
    """

    admin_email: str
    platform_fee_rate: Decimal = Decimal("0.10")
    currency: str = "gbp"
    plan_prices: dict[str, str | None] | None = None
    enforce_capacity: bool = True

    def plan_price(self, tier: str) -> str | None:
        """Retourne la référence de prix configurée pour un palier, ou None."""
        return (self.plan_prices or {}).get(tier) or None


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()


def marketplace_config(settings: Settings) -> MarketplaceConfig:
    """Dérive la configuration métier à partir des paramètres applicatifs."""
    return MarketplaceConfig(
        admin_email=settings.ADMIN_EMAIL,
        platform_fee_rate=Decimal(str(settings.PLATFORM_FEE_RATE)),
        currency=settings.PAYMENT_CURRENCY.lower(),
        plan_prices={
            "basic": settings.STRIPE_BASIC_PRICE_ID,
            "premium": settings.STRIPE_PREMIUM_PRICE_ID,
        },
        enforce_capacity=settings.ENFORCE_SESSION_CAPACITY,
    )
