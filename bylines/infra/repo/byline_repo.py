# ============================================================
# Module : bylines/infra/repo/byline_repo.py
# Objet  : Accès SQL (CRUD) pour les bylines et leurs relations.
# ============================================================

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bylines.domain.entities import TEXT_ATTRIBUTES, Byline, BylineDraft
from bylines.domain.errors import BylineNotFound, DuplicateSlug, UserAlreadyLinked
from bylines.infra.base import BylineRepository, RelationRepository
from bylines.infra.repo.db import session_scope
from bylines.infra.repo.models import BylineORM, BylineRelationshipORM


def _to_domain(row: BylineORM) -> Byline:
    return Byline(
        id=row.id,
        slug=row.slug,
        linked_user_id=row.linked_user_id,
        **{name: getattr(row, name) for name in TEXT_ATTRIBUTES},
    )


class SqlBylineRepo(BylineRepository):
    """CRUD des bylines; une transaction par opération.

    Contraintes d'unicité: `slug` et `linked_user_id`. Elles sont vérifiées avant l'écriture pour
    produire une erreur précise, puis garanties par la base en cas de concurrence.
    """

    def __init__(self, engine: Engine) -> None:
        """Construit le repo avec un moteur SQLAlchemy."""
        self._engine = engine

    @staticmethod
    def _check_unique(
        session: Session, byline_id: int | None, slug: str, user_id: int | None
    ) -> None:
        owner = session.execute(select(BylineORM.id).where(BylineORM.slug == slug)).scalar()
        if owner is not None and owner != byline_id:
            raise DuplicateSlug(f"slug already in use: {slug}", slug=slug)
        if user_id is None:
            return
        linked = session.execute(
            select(BylineORM.id).where(BylineORM.linked_user_id == user_id)
        ).scalar()
        if linked is not None and linked != byline_id:
            raise UserAlreadyLinked(
                f"user {user_id} already linked to byline {linked}",
                user_id=user_id,
                byline_id=linked,
            )

    @staticmethod
    def _flush(session: Session, slug: str, user_id: int | None) -> None:
        try:
            session.flush()
        except IntegrityError as err:
            # course perdue face à une autre transaction
            if user_id is not None and "linked_user_id" in str(err.orig):
                raise UserAlreadyLinked(
                    f"user {user_id} already linked", user_id=user_id
                ) from err
            raise DuplicateSlug(f"slug already in use: {slug}", slug=slug) from err

    def add(self, draft: BylineDraft) -> Byline:
        """Insère une byline; l'id est attribué par la base."""
        with session_scope(self._engine) as session:
            self._check_unique(session, None, draft.slug, draft.linked_user_id)
            row = BylineORM(
                slug=draft.slug,
                linked_user_id=draft.linked_user_id,
                **{name: getattr(draft, name) for name in TEXT_ATTRIBUTES},
            )
            session.add(row)
            self._flush(session, draft.slug, draft.linked_user_id)
            return _to_domain(row)

    def save(self, byline: Byline) -> Byline:
        """Met à jour une byline existante."""
        with session_scope(self._engine) as session:
            row = session.get(BylineORM, byline.id)
            if row is None:
                raise BylineNotFound(f"byline {byline.id} not found", byline_id=byline.id)
            self._check_unique(session, byline.id, byline.slug, byline.linked_user_id)
            row.slug = byline.slug
            row.linked_user_id = byline.linked_user_id
            for name in TEXT_ATTRIBUTES:
                setattr(row, name, getattr(byline, name))
            self._flush(session, byline.slug, byline.linked_user_id)
            return _to_domain(row)

    def get(self, byline_id: int) -> Byline | None:
        with session_scope(self._engine) as session:
            row = session.get(BylineORM, byline_id)
            return _to_domain(row) if row else None

    def get_by_slug(self, slug: str) -> Byline | None:
        with session_scope(self._engine) as session:
            row = session.execute(select(BylineORM).where(BylineORM.slug == slug)).scalars().first()
            return _to_domain(row) if row else None

    def get_by_user_id(self, user_id: int) -> Byline | None:
        with session_scope(self._engine) as session:
            stmt = select(BylineORM).where(BylineORM.linked_user_id == user_id)
            row = session.execute(stmt).scalars().first()
            return _to_domain(row) if row else None

    def list_all(self) -> list[Byline]:
        with session_scope(self._engine) as session:
            rows = session.execute(select(BylineORM).order_by(BylineORM.id)).scalars().all()
            return [_to_domain(r) for r in rows]


class SqlRelationRepo(RelationRepository):
    """Relations ordonnées stockées ligne par ligne (`position` croissante)."""

    def __init__(self, engine: Engine) -> None:
        """Construit le repo avec un moteur SQLAlchemy."""
        self._engine = engine

    def replace(self, content_item_id: int, byline_ids: Sequence[int]) -> None:
        """Supprime puis réinsère la relation dans une seule transaction."""
        with session_scope(self._engine) as session:
            session.execute(
                delete(BylineRelationshipORM).where(
                    BylineRelationshipORM.content_item_id == content_item_id
                )
            )
            session.add_all(
                BylineRelationshipORM(
                    content_item_id=content_item_id, position=position, byline_id=byline_id
                )
                for position, byline_id in enumerate(byline_ids)
            )

    def get(self, content_item_id: int) -> tuple[int, ...]:
        with session_scope(self._engine) as session:
            stmt = (
                select(BylineRelationshipORM.byline_id)
                .where(BylineRelationshipORM.content_item_id == content_item_id)
                .order_by(BylineRelationshipORM.position)
            )
            return tuple(session.execute(stmt).scalars().all())

    def content_items_for(self, byline_ids: Sequence[int]) -> set[int]:
        if not byline_ids:
            return set()
        with session_scope(self._engine) as session:
            stmt = (
                select(BylineRelationshipORM.content_item_id)
                .where(BylineRelationshipORM.byline_id.in_(list(byline_ids)))
                .distinct()
            )
            return set(session.execute(stmt).scalars().all())
