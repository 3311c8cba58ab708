"""
Dépôts en mémoire pour les bylines, les relations et les collaborateurs externes.

Ces implémentations conservent les données dans des dicts locaux (non persistants). Elles sont
utilisées en développement, dans les tests, et quand `DATABASE_URL` n'est pas configurée.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from bylines.domain.entities import Byline, BylineDraft, ContentItem, UserAccount
from bylines.domain.errors import BylineNotFound, DuplicateSlug, UserAlreadyLinked
from bylines.infra.base import BylineRepository, RelationRepository


class InMemoryBylineRepo(BylineRepository):
    """
    Dépôt de bylines en mémoire.

    Maintient deux index secondaires (slug -> id, utilisateur -> id) sous un même verrou pour que
    les contrôles d'unicité et l'écriture soient indivisibles.
    """

    def __init__(self, start_id: int = 1) -> None:
        """Initialise une base mémoire vide."""
        self._db: dict[int, Byline] = {}
        self._by_slug: dict[str, int] = {}
        self._by_user: dict[int, int] = {}
        self._ids = itertools.count(start_id)
        self._lock = threading.RLock()

    def _check_unique(self, byline_id: int | None, slug: str, user_id: int | None) -> None:
        owner = self._by_slug.get(slug)
        if owner is not None and owner != byline_id:
            raise DuplicateSlug(f"slug already in use: {slug}", slug=slug)
        if user_id is not None:
            linked = self._by_user.get(user_id)
            if linked is not None and linked != byline_id:
                raise UserAlreadyLinked(
                    f"user {user_id} already linked to byline {linked}",
                    user_id=user_id,
                    byline_id=linked,
                )

    def _index(self, byline: Byline) -> None:
        self._db[byline.id] = byline
        self._by_slug[byline.slug] = byline.id
        if byline.linked_user_id is not None:
            self._by_user[byline.linked_user_id] = byline.id

    def add(self, draft: BylineDraft) -> Byline:
        """Attribue un id et enregistre la byline."""
        with self._lock:
            self._check_unique(None, draft.slug, draft.linked_user_id)
            byline = draft.build(next(self._ids))
            self._index(byline)
            return byline

    def save(self, byline: Byline) -> Byline:
        """Écrase la byline et met à jour les index secondaires."""
        with self._lock:
            previous = self._db.get(byline.id)
            if previous is None:
                raise BylineNotFound(f"byline {byline.id} not found", byline_id=byline.id)
            self._check_unique(byline.id, byline.slug, byline.linked_user_id)
            self._by_slug.pop(previous.slug, None)
            if previous.linked_user_id is not None:
                self._by_user.pop(previous.linked_user_id, None)
            self._index(byline)
            return byline

    def get(self, byline_id: int) -> Byline | None:
        return self._db.get(byline_id)

    def get_by_slug(self, slug: str) -> Byline | None:
        byline_id = self._by_slug.get(slug)
        return self._db.get(byline_id) if byline_id is not None else None

    def get_by_user_id(self, user_id: int) -> Byline | None:
        byline_id = self._by_user.get(user_id)
        return self._db.get(byline_id) if byline_id is not None else None

    def list_all(self) -> list[Byline]:
        return sorted(self._db.values(), key=lambda b: b.id)


class InMemoryRelationRepo(RelationRepository):
    """Relations ordonnées en mémoire; chaque remplacement est un échange de tuple."""

    def __init__(self) -> None:
        """Initialise une base mémoire vide."""
        self._db: dict[int, tuple[int, ...]] = {}
        self._lock = threading.Lock()

    def replace(self, content_item_id: int, byline_ids: Sequence[int]) -> None:
        """Remplace la relation; les lecteurs voient l'ancienne ou la nouvelle liste, jamais un mélange."""
        snapshot = tuple(byline_ids)
        with self._lock:
            if snapshot:
                self._db[content_item_id] = snapshot
            else:
                self._db.pop(content_item_id, None)

    def get(self, content_item_id: int) -> tuple[int, ...]:
        return self._db.get(content_item_id, ())

    def content_items_for(self, byline_ids: Sequence[int]) -> set[int]:
        wanted = set(byline_ids)
        with self._lock:
            items = list(self._db.items())
        return {item_id for item_id, ids in items if wanted.intersection(ids)}


class InMemoryUserDirectory:
    """Annuaire utilisateurs en mémoire (comptes indexés par id)."""

    def __init__(self, users: Iterable[UserAccount] = ()) -> None:
        """Initialise l'annuaire avec des comptes optionnels."""
        self._db: dict[int, UserAccount] = {u.id: u for u in users}

    def get(self, user_id: int) -> UserAccount | None:
        """Recherche un compte par id."""
        return self._db.get(user_id)

    def save(self, user: UserAccount) -> UserAccount:
        """Sauvegarde (ou remplace) un compte."""
        self._db[user.id] = user
        return user

    def delete(self, user_id: int) -> None:
        """Supprime un compte; les bylines liées ne sont pas touchées."""
        self._db.pop(user_id, None)


class InMemoryContentStore:
    """
    Stockage de contenus en mémoire.

    Les prédicats `relation` (`{"taxonomy", "terms", "field"}`, ou une liste de prédicats combinés
    en ET) sont évalués grâce aux dépôts de relations enregistrés par taxonomie.
    """

    def __init__(
        self,
        items: Iterable[ContentItem] = (),
        relations: dict[str, RelationRepository] | None = None,
    ) -> None:
        """Initialise le stockage avec ses contenus et ses dépôts de relations."""
        self._db: dict[int, ContentItem] = {i.id: i for i in items}
        self._relations = dict(relations or {})

    def save(self, item: ContentItem) -> ContentItem:
        self._db[item.id] = item
        return item

    def get(self, item_id: int) -> ContentItem | None:
        return self._db.get(item_id)

    def _matching_ids(self, predicate: dict[str, Any]) -> set[int]:
        repo = self._relations.get(predicate.get("taxonomy", ""))
        if repo is None:
            return set()
        terms = [int(t) for t in predicate.get("terms", [])]
        return repo.content_items_for(terms)

    def query(self, query_args: dict[str, Any]) -> Iterator[ContentItem]:
        """Filtre par type, statut et relations; tri par id croissant."""
        content_type = query_args.get("content_type")
        if isinstance(content_type, str):
            content_type = [content_type]
        status = query_args.get("status")
        relation = query_args.get("relation")
        predicates = [relation] if isinstance(relation, dict) else list(relation or [])
        allowed: set[int] | None = None
        for predicate in predicates:
            ids = self._matching_ids(predicate)
            allowed = ids if allowed is None else allowed & ids
        for item_id in sorted(self._db):
            item = self._db[item_id]
            if content_type and item.content_type not in content_type:
                continue
            if status and item.status != status:
                continue
            if allowed is not None and item_id not in allowed:
                continue
            yield item
