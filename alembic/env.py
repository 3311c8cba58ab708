"""
Configuration de l'environnement Alembic pour les tables bylines.

L'URL de base vient de `DATABASE_URL` (via les settings du service), avec un repli SQLite local.
Les modes offline (SQL littéral) et online sont supportés; SQLite utilise le mode batch pour les
modifications de tables.
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore[attr-defined]

# Allow importing project modules when running via Alembic CLI
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.append(str(_root))

from bylines.core.settings import get_settings  # noqa: E402
from bylines.infra.repo.models import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
DEFAULT_URL = "sqlite:///./bylines.db"


def _database_url() -> str:
    return get_settings().DATABASE_URL or DEFAULT_URL


def run_migrations_offline() -> None:
    """Génère le SQL des migrations sans connexion à la base."""
    url = _database_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Applique les migrations avec une connexion active."""
    url = _database_url()
    connectable = create_engine(url, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=url.startswith("sqlite"),
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
