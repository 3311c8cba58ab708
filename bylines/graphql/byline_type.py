"""Type GraphQL `Byline` et champs ajoutés aux types de contenu.

`BylineSchemaBuilder` est construit une fois au démarrage avec ses dépendances. Le jeu de champs
du type est calculé à la première demande, une seule fois (mémoïsation sous verrou):

- champs scalaires (`id`, `databaseId`, `slug`, `displayName`, `firstName`, `lastName`, `bio`,
  `email`, `url`), chacun résolu par une stratégie paramétrée;
- une connexion par type de contenu à la fois compatible bylines et exposé par l'hôte, nommée
  d'après son nom pluriel; le filtre d'arguments restreint ensuite les résultats à la byline source.
"""

from __future__ import annotations

import html
import threading
from collections.abc import Callable
from typing import Any

import structlog
from graphql import (
    GraphQLField,
    GraphQLID,
    GraphQLInt,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLString,
)

from bylines.domain.content_model import ContentModel
from bylines.domain.entities import BYLINE_TAXONOMY, Byline, ContentItem, ContentType
from bylines.domain.errors import SchemaBuildError
from bylines.domain.relations import RelationManager
from bylines.graphql.global_id import to_global_id
from bylines.graphql.host import FieldSpec, GraphQLHost

BYLINE_TYPE_NAME = "Byline"
BYLINE_NODE_TYPE = BYLINE_TAXONOMY

# champ GraphQL -> (attribut de Byline, description)
SCALAR_FIELDS: dict[str, tuple[str, str]] = {
    "slug": ("slug", "The unique slug of the byline"),
    "displayName": ("display_name", "The display name of the byline"),
    "firstName": ("first_name", "The first name of the byline"),
    "lastName": ("last_name", "The last name of the byline"),
    "bio": ("bio", "The biographical information for the byline"),
    "email": ("email", "The email associated with the byline"),
    "url": ("url", "The url (web address) associated with the byline"),
}


class AttributeResolver:
    """Lit un attribut de la byline; None si absent ou vide."""

    def __init__(self, attribute: str, escape: Callable[[str], str] | None = None) -> None:
        self.attribute = attribute
        self.escape = escape

    def __call__(self, byline: Byline, _info: Any, **_args: Any) -> Any:
        value = getattr(byline, self.attribute, None)
        if value is None or value == "":
            return None
        if self.escape is not None and isinstance(value, str):
            return self.escape(value)
        return value


class GlobalIdResolver:
    """Encode l'id numérique et le type du noeud en identifiant global opaque."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name

    def __call__(self, node: Any, _info: Any, **_args: Any) -> str | None:
        node_id = getattr(node, "id", None)
        return to_global_id(self.type_name, node_id) if node_id else None


class OrderedBylinesResolver:
    """Bylines ordonnées d'un contenu; None (jamais d'erreur) quand il n'y en a pas."""

    def __init__(self, relations: RelationManager) -> None:
        self.relations = relations

    def __call__(self, item: ContentItem, _info: Any, **_args: Any) -> list[Byline] | None:
        bylines = self.relations.get_bylines(item.id)
        return bylines or None


def _html_escape(value: str) -> str:
    return html.escape(value, quote=True)


class BylineSchemaBuilder:
    """Construit le type `Byline` et ses champs, une seule fois par instance."""

    def __init__(
        self,
        host: GraphQLHost,
        content_model: ContentModel,
        relations: RelationManager,
        escape_html: bool = True,
    ) -> None:
        """Initialise le constructeur.

        Paramètres:
        - host: hôte GraphQL (connexions, interface `Node`).
        - content_model: drapeaux de support des bylines.
        - relations: lecture des bylines d'un contenu.
        - escape_html: échappe les valeurs texte des champs scalaires.
        """
        self.host = host
        self.content_model = content_model
        self.relations = relations
        self.escape = _html_escape if escape_html else None
        self._lock = threading.Lock()
        self._eligible: list[ContentType] | None = None
        self._fields: dict[str, GraphQLField] | None = None
        self._type: GraphQLObjectType | None = None
        self._log = structlog.get_logger(__name__).bind(component="byline_schema")

    def eligible_content_types(self) -> list[ContentType]:
        """Types de contenu à la fois compatibles bylines et exposés par l'hôte.

        Lève SchemaBuildError si l'un d'eux n'a pas de noms GraphQL.
        """
        with self._lock:
            if self._eligible is None:
                exposed = set(self.host.allowed_content_types())
                eligible = []
                for name in self.content_model.byline_supported_types():
                    if name not in exposed:
                        continue
                    ct = self.content_model.get(name)
                    if ct is None or not ct.graphql_plural_name or not ct.graphql_single_name:
                        raise SchemaBuildError(
                            f"content type {name!r} supports bylines but lacks GraphQL names",
                            content_type=name,
                        )
                    eligible.append(ct)
                self._eligible = eligible
            return list(self._eligible)

    def fields(self) -> dict[str, GraphQLField]:
        """Jeu de champs du type `Byline`, calculé une seule fois."""
        eligible = self.eligible_content_types()
        with self._lock:
            if self._fields is not None:
                return self._fields
            fields: dict[str, GraphQLField] = {
                "id": GraphQLField(
                    GraphQLNonNull(GraphQLID),
                    resolve=GlobalIdResolver(BYLINE_NODE_TYPE),
                    description="The globally unique identifier of the byline",
                ),
                "databaseId": GraphQLField(
                    GraphQLNonNull(GraphQLInt),
                    resolve=AttributeResolver("id"),
                    description="The term id of the byline",
                ),
            }
            for field_name, (attribute, description) in SCALAR_FIELDS.items():
                fields[field_name] = GraphQLField(
                    GraphQLString,
                    resolve=AttributeResolver(attribute, self.escape),
                    description=description,
                )
            for ct in eligible:
                fields[ct.graphql_plural_name] = self.host.connection_field(
                    ct, description=f"The {ct.graphql_plural_name} attributed to the byline"
                )
            self._fields = fields
            self._log.info(
                "byline_schema_built",
                fields=len(fields),
                connections=[ct.graphql_plural_name for ct in eligible],
            )
            return fields

    def byline_type(self) -> GraphQLObjectType:
        """Type objet `Byline`, instancié une seule fois."""
        with self._lock:
            if self._type is None:
                self._type = GraphQLObjectType(
                    BYLINE_TYPE_NAME,
                    self.fields,
                    interfaces=[self.host.node_interface],
                    is_type_of=lambda obj, _info: isinstance(obj, Byline),
                    description="The Byline object type",
                )
            return self._type

    def build(self) -> GraphQLObjectType:
        """Construit immédiatement type et champs (appelé au démarrage)."""
        self.fields()
        return self.byline_type()

    def content_fields(self, _content_type: ContentType) -> dict[str, FieldSpec]:
        """Champs ajoutés à chaque type de contenu éligible."""
        return {
            "bylines": FieldSpec(
                GraphQLList(self.byline_type()),
                description="The bylines for the object",
                resolve=OrderedBylinesResolver(self.relations),
            )
        }
