"""Interfaces de base des dépôts et collaborateurs externes.

Ce module définit les contrats que doivent respecter les implémentations en mémoire et SQL, ainsi
que les collaborateurs fournis par l'hôte (annuaire utilisateurs, stockage des contenus).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol

from bylines.domain.entities import Byline, BylineDraft, ContentItem, UserAccount


class BylineRepository(ABC):
    """Dépôt des bylines, indexé par id, slug et utilisateur lié."""

    @abstractmethod
    def add(self, draft: BylineDraft) -> Byline:
        """Persiste une nouvelle byline et lui attribue un id.

        Lève DuplicateSlug si le slug est pris, UserAlreadyLinked si l'utilisateur est déjà lié.
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, byline: Byline) -> Byline:
        """Écrase une byline existante (mêmes contraintes d'unicité que `add`)."""
        raise NotImplementedError

    @abstractmethod
    def get(self, byline_id: int) -> Byline | None:
        raise NotImplementedError

    @abstractmethod
    def get_by_slug(self, slug: str) -> Byline | None:
        raise NotImplementedError

    @abstractmethod
    def get_by_user_id(self, user_id: int) -> Byline | None:
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> list[Byline]:
        raise NotImplementedError


class RelationRepository(ABC):
    """Relation ordonnée contenu -> bylines."""

    @abstractmethod
    def replace(self, content_item_id: int, byline_ids: Sequence[int]) -> None:
        """Remplace intégralement la relation d'un contenu, en une écriture atomique."""
        raise NotImplementedError

    @abstractmethod
    def get(self, content_item_id: int) -> tuple[int, ...]:
        """Retourne les ids de bylines du contenu, dans l'ordre (tuple vide si aucune)."""
        raise NotImplementedError

    @abstractmethod
    def content_items_for(self, byline_ids: Sequence[int]) -> set[int]:
        """Ids des contenus liés à au moins une des bylines données."""
        raise NotImplementedError


class KeyedLock(ABC):
    """Verrou d'exclusion mutuelle par clé (ex: `user:42`)."""

    @abstractmethod
    def hold(self, key: str) -> AbstractContextManager[None]:
        raise NotImplementedError


class UserDirectory(Protocol):
    """Annuaire des comptes utilisateurs (collaborateur externe)."""

    def get(self, user_id: int) -> UserAccount | None:
        """Retourne le compte ou None s'il n'existe pas."""


class ContentStore(Protocol):
    """Stockage des contenus (collaborateur externe).

    `query` comprend les arguments `content_type`, `status` et `relation`; la pagination reste à la
    charge de l'hôte GraphQL.
    """

    def get(self, item_id: int) -> ContentItem | None:
        """Retourne le contenu ou None."""

    def query(self, query_args: dict[str, Any]) -> Iterator[ContentItem]:
        """Itère sur les contenus correspondant aux arguments, triés par id."""
