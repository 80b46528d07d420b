"""
Environnement Alembic des migrations du schéma de la marketplace.

L'URL de base est celle des `Settings` de l'application (variable `DATABASE_URL` ou fichiers
`.env`), ce qui garde migrations et application alignées sur la même base.
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore[attr-defined]

# Racine du dépôt importable quand Alembic est lancé depuis un autre dossier
_root = str(Path(__file__).resolve().parent.parent)
if _root not in sys.path:
    sys.path.append(_root)

from myles.core.settings import get_settings  # noqa: E402
from myles.infra.repo.models import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return (
        config.get_main_option("sqlalchemy.url")
        or get_settings().DATABASE_URL
        or "sqlite:///./myles.db"
    )


def run_migrations_offline() -> None:
    """Émet le SQL des migrations sans connexion (bindings littéraux)."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Applique les migrations sur une connexion ouverte à la base configurée."""
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # SQLite ne sait pas altérer les colonnes en place
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
