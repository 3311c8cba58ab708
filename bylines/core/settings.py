"""Définition et chargement des paramètres de configuration du service bylines.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path
from typing import Literal

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
    )
    APP_NAME: str = "bylines-service"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000

    # Stockage: SQL si DATABASE_URL, sinon mémoire
    DATABASE_URL: str | None = None
    # Verrous par utilisateur partagés entre workers si Redis est disponible
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False
    USER_LOCK_TIMEOUT_S: float = 10.0

    # Résolution des jetons d'auteur: "drop" ignore les jetons invalides, "fail" rejette la sauvegarde
    BYLINES_UNRESOLVED_TOKEN_POLICY: Literal["drop", "fail"] = "drop"
    BYLINES_USER_TOKEN_PREFIX: str = "u"

    # Schéma GraphQL
    GRAPHQL_ESCAPE_HTML: bool = True
    GRAPHQL_DEFAULT_PAGE_SIZE: int = 10
    BYLINE_CONTENT_TYPES: list[str] = ["post"]
    GRAPHQL_EXPOSED_TYPES: list[str] = ["post", "page"]

    OTLP_ENDPOINT: str | None = None


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
