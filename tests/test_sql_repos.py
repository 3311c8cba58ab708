"""
Tests des dépôts SQLAlchemy (SQLite en mémoire).

Vérifie les contraintes d'unicité, l'ordre des relations et le comportement du registre et du
gestionnaire de relations adossés à la base.
"""

import pytest

from bylines.domain.entities import BylineDraft
from bylines.domain.errors import BylineNotFound, DuplicateSlug, UserAlreadyLinked
from bylines.domain.registry import BylineRegistry
from bylines.domain.relations import RelationManager
from bylines.infra.repo.byline_repo import SqlBylineRepo, SqlRelationRepo
from bylines.infra.repo.db import create_schema, get_engine


@pytest.fixture
def engine():
    engine = get_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_bylines(engine) -> SqlBylineRepo:
    return SqlBylineRepo(engine)


@pytest.fixture
def sql_relations(engine) -> SqlRelationRepo:
    return SqlRelationRepo(engine)


def test_add_and_lookups(sql_bylines) -> None:
    """Teste l'insertion et les trois recherches."""
    byline = sql_bylines.add(BylineDraft(slug="b1", display_name="Byline 1", linked_user_id=3))
    assert byline.id is not None
    assert sql_bylines.get(byline.id) == byline
    assert sql_bylines.get_by_slug("b1") == byline
    assert sql_bylines.get_by_user_id(3) == byline
    assert sql_bylines.get(999) is None
    assert sql_bylines.get_by_slug("nope") is None
    assert sql_bylines.get_by_user_id(4) is None


def test_unique_constraints(sql_bylines) -> None:
    """Teste les erreurs d'unicité sur le slug et le compte lié."""
    sql_bylines.add(BylineDraft(slug="b1", linked_user_id=3))
    with pytest.raises(DuplicateSlug):
        sql_bylines.add(BylineDraft(slug="b1"))
    with pytest.raises(UserAlreadyLinked):
        sql_bylines.add(BylineDraft(slug="b2", linked_user_id=3))
    assert [b.slug for b in sql_bylines.list_all()] == ["b1"]


def test_save_updates_row(sql_bylines) -> None:
    """Teste la mise à jour d'une ligne existante."""
    byline = sql_bylines.add(BylineDraft(slug="b1"))
    updated = sql_bylines.save(byline.with_changes(slug="renamed", bio="Hello"))
    assert sql_bylines.get(byline.id) == updated
    assert sql_bylines.get_by_slug("b1") is None
    with pytest.raises(BylineNotFound):
        sql_bylines.save(byline.with_changes(id=999))


def test_relation_replace_and_order(sql_bylines, sql_relations) -> None:
    """Teste le remplacement d'une relation ordonnée avec doublons."""
    b1 = sql_bylines.add(BylineDraft(slug="b1"))
    b2 = sql_bylines.add(BylineDraft(slug="b2"))
    sql_relations.replace(10, [b2.id, b1.id, b2.id])
    assert sql_relations.get(10) == (b2.id, b1.id, b2.id)

    sql_relations.replace(10, [b1.id])
    assert sql_relations.get(10) == (b1.id,)

    sql_relations.replace(10, [])
    assert sql_relations.get(10) == ()


def test_content_items_for(sql_bylines, sql_relations) -> None:
    """Teste la recherche inverse des contenus d'une byline."""
    b1 = sql_bylines.add(BylineDraft(slug="b1"))
    b2 = sql_bylines.add(BylineDraft(slug="b2"))
    sql_relations.replace(10, [b1.id])
    sql_relations.replace(11, [b1.id, b2.id])
    sql_relations.replace(12, [b2.id])
    assert sql_relations.content_items_for([b1.id]) == {10, 11}
    assert sql_relations.content_items_for([b1.id, b2.id]) == {10, 11, 12}
    assert sql_relations.content_items_for([]) == set()


def test_services_on_sql_backend(sql_bylines, sql_relations, users) -> None:
    """Teste le scénario de sauvegarde complet adossé à SQLite."""
    registry = BylineRegistry(sql_bylines, users)
    manager = RelationManager(registry, sql_relations)
    b1 = registry.create({"slug": "b1"})

    saved = manager.save(42, ["u7", b1.id])

    assert [b.slug for b in saved] == ["foobar", "b1"]
    assert [b.slug for b in manager.get_bylines(42)] == ["foobar", "b1"]
    assert registry.create_from_user(7).id == saved[0].id
