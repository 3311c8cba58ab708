"""
Entités du domaine bylines.

Ce module définit les objets métier manipulés par le registre des bylines et le gestionnaire de
relations: la byline elle-même, ainsi que les enregistrements fournis par les collaborateurs
externes (comptes utilisateurs, contenus, types de contenu).
"""

# ============================================================
# Module : bylines/domain/entities.py
# Objet  : Objets domaine (POPO) du service bylines.
# ============================================================

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any

BYLINE_TAXONOMY = "byline"

# Attributs textuels modifiables d'une byline (hors id/slug/lien utilisateur)
TEXT_ATTRIBUTES = ("display_name", "first_name", "last_name", "bio", "email", "url")


@dataclass(frozen=True)
class Byline:
    """
    Identité d'auteur attachable à des contenus, distincte d'un compte utilisateur.

    Attributs
    - id: identifiant numérique attribué par la couche de persistance (term id).
    - slug: identifiant textuel unique parmi les bylines.
    - display_name, first_name, last_name, bio, email, url: attributs optionnels.
    - linked_user_id: référence faible vers un compte utilisateur (au plus une byline par compte).
    """

    id: int
    slug: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    email: str | None = None
    url: str | None = None
    linked_user_id: int | None = None

    def with_changes(self, **changes: Any) -> Byline:
        """Retourne une copie modifiée de la byline."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Sérialise la byline en dict (JSON-compatible)."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class BylineDraft:
    """Attributs d'une byline à créer (avant attribution d'un id)."""

    slug: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    email: str | None = None
    url: str | None = None
    linked_user_id: int | None = None

    @classmethod
    def from_attributes(cls, attributes: dict[str, Any]) -> BylineDraft:
        """Construit un brouillon depuis un dict en ignorant les clés inconnues."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in attributes.items() if k in known})

    def build(self, byline_id: int) -> Byline:
        """Matérialise la byline avec l'id attribué."""
        return Byline(id=byline_id, **{f.name: getattr(self, f.name) for f in fields(self)})


@dataclass(frozen=True)
class UserAccount:
    """Compte utilisateur tel qu'exposé par l'annuaire externe."""

    id: int
    login: str
    nicename: str | None = None
    display_name: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    url: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ContentItem:
    """Contenu opaque appartenant au stockage externe."""

    id: int
    content_type: str
    title: str = ""
    status: str = "publish"


@dataclass(frozen=True)
class ContentType:
    """
    Type de contenu connu du modèle.

    `supports_bylines` indique le drapeau de capacité; les noms GraphQL sont requis pour exposer le
    type dans le schéma.
    """

    name: str
    graphql_single_name: str | None = None
    graphql_plural_name: str | None = None
    supports_bylines: bool = False
    labels: dict[str, str] = field(default_factory=dict, compare=False)
