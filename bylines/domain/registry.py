"""Registre des bylines: création, recherche et lien avec les comptes utilisateurs.

Invariants maintenus ici:
- un slug est non vide et unique parmi les bylines;
- un compte utilisateur est lié à au plus une byline;
- `create_from_user` est idempotent et sérialisé par utilisateur.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

import structlog

from bylines.app.metrics import BYLINES_CREATED
from bylines.domain.entities import TEXT_ATTRIBUTES, Byline, BylineDraft, UserAccount
from bylines.domain.errors import (
    BylineNotFound,
    InvalidSlug,
    UserAlreadyLinked,
    UserNotFound,
)
from bylines.infra.base import BylineRepository, KeyedLock, UserDirectory
from bylines.infra.ops.locks import LocalKeyedLock, make_lock_key

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9_-]+")
_SLUG_DASHES_RE = re.compile(r"-{2,}")


def slugify(value: str | None) -> str:
    """Normalise une chaîne en slug (minuscules ASCII, tirets); "" si rien ne subsiste."""
    if not value:
        return ""
    ascii_value = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii").lower()
    )
    slug = _SLUG_STRIP_RE.sub("-", ascii_value.strip())
    return _SLUG_DASHES_RE.sub("-", slug).strip("-")


def draft_from_user(user: UserAccount) -> BylineDraft:
    """Dérive les attributs d'une byline depuis un compte utilisateur."""
    return BylineDraft(
        slug=slugify(user.nicename or user.login),
        display_name=user.display_name or user.login,
        first_name=user.first_name,
        last_name=user.last_name,
        bio=user.description,
        email=user.email,
        url=user.url,
        linked_user_id=user.id,
    )


class BylineRegistry:
    """Service métier de gestion des bylines.

    Responsabilités:
    - Valider et créer les bylines (slug non vide et unique).
    - Retrouver une byline par id, slug ou utilisateur lié.
    - Créer ou réutiliser la byline d'un compte utilisateur sans jamais la dupliquer.
    """

    def __init__(
        self,
        repo: BylineRepository,
        users: UserDirectory,
        locks: KeyedLock | None = None,
    ) -> None:
        """Initialise le registre avec ses dépendances.

        Paramètres:
        - repo: dépôt des bylines (mémoire ou SQL).
        - users: annuaire des comptes utilisateurs.
        - locks: verrous par clé; verrous locaux au processus par défaut.
        """
        self.repo = repo
        self.users = users
        self.locks = locks or LocalKeyedLock()
        self._log = structlog.get_logger(__name__).bind(component="byline_registry")

    def create(self, attributes: dict[str, Any] | BylineDraft) -> Byline:
        """Crée une byline.

        Lève InvalidSlug (slug vide), DuplicateSlug (slug pris) ou UserAlreadyLinked.
        """
        draft = (
            attributes
            if isinstance(attributes, BylineDraft)
            else BylineDraft.from_attributes({"slug": "", **attributes})
        )
        draft.slug = slugify(draft.slug)
        if not draft.slug:
            raise InvalidSlug("byline slug must not be empty")
        byline = self.repo.add(draft)
        BYLINES_CREATED.labels(source="explicit").inc()
        self._log.info("byline_created", byline_id=byline.id, slug=byline.slug)
        return byline

    def get_by_id(self, byline_id: int) -> Byline | None:
        """Retourne la byline ou None (jamais d'erreur sur absence)."""
        try:
            return self.repo.get(int(byline_id))
        except (TypeError, ValueError):
            return None

    def get_by_slug(self, slug: str) -> Byline | None:
        return self.repo.get_by_slug(slugify(slug))

    def get_by_user_id(self, user_id: int) -> Byline | None:
        """Retourne la byline liée au compte, ou None si aucune."""
        return self.repo.get_by_user_id(int(user_id))

    def create_from_user(self, user_id: int) -> Byline:
        """Retourne la byline liée au compte, en la créant si besoin.

        Deux appels (même concurrents) pour le même utilisateur renvoient la même byline.
        Lève UserNotFound si le compte n'existe pas, DuplicateSlug si le slug dérivé est déjà
        porté par une byline non liée.
        """
        user_id = int(user_id)
        with self.locks.hold(make_lock_key("user", user_id)):
            existing = self.repo.get_by_user_id(user_id)
            if existing is not None:
                return existing
            user = self.users.get(user_id)
            if user is None:
                raise UserNotFound(f"user {user_id} not found", user_id=user_id)
            draft = draft_from_user(user)
            if not draft.slug:
                raise InvalidSlug(f"cannot derive a slug for user {user_id}", user_id=user_id)
            try:
                byline = self.repo.add(draft)
            except UserAlreadyLinked:
                # créée entre-temps par un autre processus sans verrou partagé
                linked = self.repo.get_by_user_id(user_id)
                if linked is None:
                    raise
                return linked
        BYLINES_CREATED.labels(source="user").inc()
        self._log.info(
            "byline_created_from_user", byline_id=byline.id, slug=byline.slug, user_id=user_id
        )
        return byline

    def user_link_problem(self, user_id: int) -> str | None:
        """Motif pour lequel `create_from_user` échouerait, sans rien écrire; None sinon.

        Motifs: `user_not_found` (compte inconnu), `conflict` (slug dérivé vide ou déjà pris).
        """
        user_id = int(user_id)
        if self.repo.get_by_user_id(user_id) is not None:
            return None
        user = self.users.get(user_id)
        if user is None:
            return "user_not_found"
        slug = draft_from_user(user).slug
        if not slug or self.repo.get_by_slug(slug) is not None:
            return "conflict"
        return None

    def update(self, byline_id: int, attributes: dict[str, Any]) -> Byline:
        """Met à jour partiellement une byline (attributs texte, slug, lien utilisateur)."""
        current = self.repo.get(int(byline_id))
        if current is None:
            raise BylineNotFound(f"byline {byline_id} not found", byline_id=byline_id)
        changes = {k: v for k, v in attributes.items() if k in TEXT_ATTRIBUTES}
        if "slug" in attributes:
            slug = slugify(attributes["slug"])
            if not slug:
                raise InvalidSlug("byline slug must not be empty")
            changes["slug"] = slug
        if "linked_user_id" in attributes:
            changes["linked_user_id"] = attributes["linked_user_id"]
        if not changes:
            return current
        byline = self.repo.save(current.with_changes(**changes))
        self._log.info("byline_updated", byline_id=byline.id, fields=sorted(changes))
        return byline

    def list_all(self) -> list[Byline]:
        return self.repo.list_all()
