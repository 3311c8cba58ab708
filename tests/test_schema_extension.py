"""
Tests du constructeur de schéma `Byline`.

Vérifie la mémoïsation (type et champs construits une fois), le calcul des types de contenu
éligibles, les erreurs de métadonnées et les stratégies de résolution des champs.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
from graphql import GraphQLList, GraphQLNonNull, GraphQLString

from bylines.domain.content_model import DEFAULT_CONTENT_TYPES, ContentModel
from bylines.domain.entities import Byline, ContentItem, ContentType
from bylines.domain.errors import SchemaBuildError
from bylines.graphql.byline_type import (
    AttributeResolver,
    BylineSchemaBuilder,
    GlobalIdResolver,
    OrderedBylinesResolver,
)
from bylines.graphql.global_id import to_global_id
from bylines.graphql.host import FieldSpec, GraphQLHost
from bylines.infra.repositories import InMemoryContentStore

ARTICLE = ContentType("article", graphql_single_name="article", graphql_plural_name=None)


def make_builder(relations, byline_types=("post",), exposed=("post", "page"), types=None):
    model = ContentModel(types or DEFAULT_CONTENT_TYPES, byline_types=byline_types)
    host = GraphQLHost(model, InMemoryContentStore(), exposed_types=exposed)
    return host, BylineSchemaBuilder(host, model, relations)


def test_fields_are_built_once(relations) -> None:
    """Teste que le jeu de champs et le type sont les mêmes objets à chaque appel."""
    _host, builder = make_builder(relations)
    assert builder.fields() is builder.fields()
    assert builder.byline_type() is builder.byline_type()
    assert builder.build() is builder.byline_type()


def test_concurrent_first_build_yields_one_type(relations) -> None:
    """Teste que des threads concurrents obtiennent les mêmes objets, construits une seule fois."""
    _host, builder = make_builder(relations, byline_types=("post", "page"))
    builder._log = MagicMock()
    threads = 8
    barrier = threading.Barrier(threads)

    def build():
        barrier.wait()
        return builder.fields(), builder.byline_type()

    with ThreadPoolExecutor(max_workers=threads) as pool:
        results = list(pool.map(lambda _: build(), range(threads)))

    fields, byline_type = results[0]
    assert all(f is fields and t is byline_type for f, t in results)
    built = [c for c in builder._log.info.call_args_list if c.args == ("byline_schema_built",)]
    assert len(built) == 1


def test_field_names(relations) -> None:
    """Teste les champs scalaires et la connexion vers les types éligibles."""
    _host, builder = make_builder(relations)
    assert set(builder.fields()) == {
        "id",
        "databaseId",
        "slug",
        "displayName",
        "firstName",
        "lastName",
        "bio",
        "email",
        "url",
        "posts",
    }
    assert builder.fields()["displayName"].type is GraphQLString
    assert isinstance(builder.fields()["id"].type, GraphQLNonNull)


def test_eligible_types_intersect_flag_and_exposure(relations) -> None:
    """Teste que seuls les types compatibles ET exposés reçoivent une connexion."""
    _host, builder = make_builder(relations, byline_types=("post", "page"), exposed=("post",))
    assert [ct.name for ct in builder.eligible_content_types()] == ["post"]
    assert "pages" not in builder.fields()

    _host, builder = make_builder(relations, byline_types=("post", "page"))
    assert "pages" in builder.fields()


def test_no_eligible_types(relations) -> None:
    _host, builder = make_builder(relations, byline_types=())
    assert builder.eligible_content_types() == []
    assert "posts" not in builder.fields()


def test_eligible_type_without_graphql_names_fails(relations) -> None:
    """Teste l'échec explicite quand un type éligible n'a pas de nom pluriel GraphQL."""
    types = (*DEFAULT_CONTENT_TYPES, ARTICLE)
    _host, builder = make_builder(
        relations, byline_types=("article",), exposed=("post", "article"), types=types
    )
    with pytest.raises(SchemaBuildError):
        builder.eligible_content_types()


def test_unexposed_type_without_graphql_names_is_ignored(relations) -> None:
    types = (*DEFAULT_CONTENT_TYPES, ARTICLE)
    _host, builder = make_builder(relations, byline_types=("post", "article"), types=types)
    assert [ct.name for ct in builder.eligible_content_types()] == ["post"]


def test_content_fields_use_shared_byline_type(relations) -> None:
    """Teste que le champ `bylines` référence l'unique type `Byline`."""
    _host, builder = make_builder(relations)
    spec = builder.content_fields(DEFAULT_CONTENT_TYPES[0])["bylines"]
    assert isinstance(spec, FieldSpec)
    assert isinstance(spec.type, GraphQLList)
    assert spec.type.of_type is builder.byline_type()


def test_host_build_surfaces_extension_errors(relations) -> None:
    """Teste qu'une erreur levée par un hook de champs remonte telle quelle au build."""
    host, _builder = make_builder(relations)

    def broken(_ct):
        raise SchemaBuildError("broken hook")

    host.add_fields_hook("post", broken)
    with pytest.raises(SchemaBuildError):
        host.build_schema()


def test_host_rejects_late_registration(relations) -> None:
    """Teste que l'ajout de champs après construction du schéma est refusé."""
    host, _builder = make_builder(relations)
    host.build_schema()
    assert host.schema is host.build_schema()
    with pytest.raises(SchemaBuildError):
        host.add_fields_hook("post", lambda _ct: {})


def test_attribute_resolver_empty_values_are_null() -> None:
    byline = Byline(id=1, slug="b1", display_name="", bio=None)
    assert AttributeResolver("display_name")(byline, None) is None
    assert AttributeResolver("bio")(byline, None) is None
    assert AttributeResolver("slug")(byline, None) == "b1"


def test_attribute_resolver_escapes_html() -> None:
    """Teste l'échappement HTML optionnel des valeurs texte."""
    byline = Byline(id=1, slug="b1", display_name="<b>Tom & Jerry</b>")
    assert AttributeResolver("display_name")(byline, None) == "<b>Tom & Jerry</b>"
    escaped = AttributeResolver("display_name", escape=lambda v: v.replace("&", "&amp;"))
    assert escaped(byline, None) == "<b>Tom &amp; Jerry</b>"


def test_global_id_resolver() -> None:
    assert GlobalIdResolver("byline")(Byline(id=3, slug="b3"), None) == to_global_id("byline", 3)


def test_ordered_bylines_resolver(registry, relations) -> None:
    """Teste le résolveur du champ `bylines`: liste ordonnée, ou None si vide."""
    b1 = registry.create({"slug": "b1"})
    b2 = registry.create({"slug": "b2"})
    relations.save(1, [b2.id, b1.id])
    resolver = OrderedBylinesResolver(relations)
    assert resolver(ContentItem(1, "post"), None) == [b2, b1]
    assert resolver(ContentItem(2, "post"), None) is None
