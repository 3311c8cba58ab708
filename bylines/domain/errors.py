"""Erreurs du domaine bylines.

Les recherches (par id, par utilisateur, résolution de noeud) ne lèvent jamais d'erreur sur
absence: elles renvoient `None`. Les exceptions ci-dessous couvrent les violations d'invariants
et les échecs de construction du schéma.
"""

from __future__ import annotations

from typing import Any


class BylineError(Exception):
    """Base des erreurs du service, avec un code stable pour l'API."""

    code = "BYLINE_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or None


class InvalidSlug(BylineError):
    """Slug vide ou non normalisable."""

    code = "INVALID_SLUG"


class DuplicateSlug(BylineError):
    """Slug déjà utilisé par une autre byline."""

    code = "DUPLICATE_SLUG"


class UserAlreadyLinked(BylineError):
    """Le compte utilisateur est déjà lié à une autre byline."""

    code = "USER_ALREADY_LINKED"


class UserNotFound(BylineError):
    code = "USER_NOT_FOUND"


class BylineNotFound(BylineError):
    code = "BYLINE_NOT_FOUND"


class UnresolvedToken(BylineError):
    """Jeton d'auteur impossible à résoudre (politique `fail`)."""

    code = "UNRESOLVED_TOKEN"


class SchemaBuildError(BylineError):
    """Métadonnées manquantes détectées pendant la construction du schéma."""

    code = "SCHEMA_BUILD_ERROR"


class InvalidGlobalId(BylineError):
    code = "INVALID_GLOBAL_ID"
