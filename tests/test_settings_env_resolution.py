"""
Tests pour la résolution des variables d'environnement.

Ce module teste le chargement des settings à partir de fichiers .env personnalisés et la
dérivation de la configuration métier.
"""

from __future__ import annotations

import importlib
from decimal import Decimal
from pathlib import Path

from myles.core.settings import Settings, marketplace_config


def test_settings_reads_env_file(tmp_path: Path, monkeypatch) -> None:
    """
    Teste que les settings lisent correctement les fichiers d'environnement.

    Vérifie que les variables définies dans un fichier .env désigné par ENV_FILE sont
    chargées et appliquées aux settings.
    """
    env = tmp_path / ".env.custom"
    env.write_text(
        "ADMIN_EMAIL=ops@myles.example.com\nPLATFORM_FEE_RATE=0.15\nENFORCE_SESSION_CAPACITY=false\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ENV_FILE", str(env))
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)

    # Reload settings module to pick up new ENV_FILE
    settings_mod = importlib.import_module("myles.core.settings")
    try:
        importlib.reload(settings_mod)
        s = settings_mod.get_settings()
        assert s.ADMIN_EMAIL == "ops@myles.example.com"
        assert s.PLATFORM_FEE_RATE == Decimal("0.15")
        assert s.ENFORCE_SESSION_CAPACITY is False
    finally:
        monkeypatch.delenv("ENV_FILE")
        importlib.reload(settings_mod)


def test_marketplace_config_is_derived_from_settings() -> None:
    config = marketplace_config(
        Settings(
            ADMIN_EMAIL="admin@myles.example.com",
            PAYMENT_CURRENCY="GBP",
            STRIPE_BASIC_PRICE_ID="price_basic",
            STRIPE_PREMIUM_PRICE_ID="",
        )
    )

    assert config.currency == "gbp"
    assert config.platform_fee_rate == Decimal("0.10")
    assert config.plan_price("basic") == "price_basic"
    assert config.plan_price("premium") is None
    assert config.plan_price("gold") is None
