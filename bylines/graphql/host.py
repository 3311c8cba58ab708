"""Hôte GraphQL: points d'extension typés et assemblage du schéma (graphql-core).

L'hôte possède le système de types des contenus (un type objet et une connexion par type de
contenu exposé, l'interface `Node`, la requête `node(id)`). Les extensions s'y branchent par
enregistrement explicite de callbacks:

- `add_fields_hook(type_name, hook)`: `hook(content_type) -> dict[str, FieldSpec]`
- `add_query_args_filter(hook)`: `(query_args, source, request_args, context, info) -> dict`
- `add_node_resolver(hook)`: `(node, id, type_name) -> node`
- `add_node_type_resolver(hook)`: `(current_type, node) -> type`
- `add_type(factory)`: types supplémentaires inclus dans le schéma

Le schéma est construit une seule fois, à la première demande, sous verrou.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import structlog
from graphql import (
    ExecutionResult,
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLField,
    GraphQLID,
    GraphQLInt,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNamedType,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLResolveInfo,
    GraphQLSchema,
    GraphQLString,
    graphql_sync,
)

from bylines.domain.content_model import ContentModel
from bylines.domain.entities import ContentItem, ContentType
from bylines.domain.errors import BylineError, InvalidGlobalId, SchemaBuildError
from bylines.graphql.global_id import from_global_id, to_global_id
from bylines.infra.base import ContentStore

MAX_PAGE_SIZE = 100
CURSOR_PREFIX = "cursor"


@dataclass
class FieldSpec:
    """Définition d'un champ contribuée par une extension."""

    type: Any
    description: str | None = None
    resolve: Callable[..., Any] | None = None
    args: dict[str, GraphQLArgument] | None = None

    def to_field(self) -> GraphQLField:
        return GraphQLField(
            self.type, args=self.args, resolve=self.resolve, description=self.description
        )


FieldsHook = Callable[[ContentType], dict[str, FieldSpec]]
QueryArgsFilter = Callable[[dict, Any, dict, Any, GraphQLResolveInfo | None], dict]
NodeResolver = Callable[[Any, str, str], Any]
NodeTypeResolver = Callable[[GraphQLObjectType | None, Any], GraphQLObjectType | None]


def type_name_for(content_type: ContentType) -> str:
    """Nom du type objet GraphQL d'un type de contenu (`post` -> `Post`)."""
    single = content_type.graphql_single_name
    if not single:
        raise SchemaBuildError(
            f"content type {content_type.name!r} has no GraphQL single name",
            content_type=content_type.name,
        )
    return single[:1].upper() + single[1:]


class ContentConnectionResolver:
    """Résout une connexion paginée vers les contenus d'un type.

    Les arguments de requête par défaut passent par les filtres enregistrés avec la source du
    champ; c'est ce qui permet à une extension de restreindre les résultats selon la source.
    """

    def __init__(self, host: GraphQLHost, content_type: ContentType) -> None:
        self.host = host
        self.content_type = content_type

    def __call__(self, source: Any, info: GraphQLResolveInfo, **args: Any) -> dict[str, Any]:
        query_args = self.host.default_query_args(
            self.content_type, source, args, info.context, info
        )
        items = list(self.host.content_store.query(query_args))
        return paginate(items, args.get("first"), args.get("after"), self.host.default_page_size)


def paginate(
    items: list[ContentItem], first: int | None, after: str | None, default_size: int
) -> dict[str, Any]:
    """Découpe une liste triée par id selon `first`/`after` (curseur opaque)."""
    start = 0
    if after:
        after_id = int(from_global_id(after, expected_type=CURSOR_PREFIX).id)
        start = next((i for i, item in enumerate(items) if item.id > after_id), len(items))
    size = default_size if first is None else max(0, min(int(first), MAX_PAGE_SIZE))
    page = items[start : start + size]
    edges = [{"cursor": to_global_id(CURSOR_PREFIX, item.id), "node": item} for item in page]
    return {
        "edges": edges,
        "nodes": page,
        "pageInfo": {
            "hasNextPage": start + size < len(items),
            "hasPreviousPage": start > 0,
            "startCursor": edges[0]["cursor"] if edges else None,
            "endCursor": edges[-1]["cursor"] if edges else None,
        },
    }


class GraphQLHost:
    """Système de types hôte et registre des points d'extension."""

    def __init__(
        self,
        content_model: ContentModel,
        content_store: ContentStore,
        exposed_types: Iterable[str] | None = None,
        default_page_size: int = 10,
    ) -> None:
        """Initialise l'hôte.

        Paramètres:
        - content_model: types de contenu connus.
        - content_store: stockage interrogé par les connexions.
        - exposed_types: noms des types exposés (tous ceux du modèle par défaut).
        - default_page_size: taille de page quand `first` est absent.
        """
        self.content_model = content_model
        self.content_store = content_store
        self._exposed = list(exposed_types) if exposed_types is not None else None
        self.default_page_size = default_page_size
        self._fields_hooks: dict[str, list[FieldsHook]] = {}
        self._query_args_filters: list[QueryArgsFilter] = []
        self._node_resolvers: list[NodeResolver] = []
        self._node_type_resolvers: list[NodeTypeResolver] = []
        self._type_factories: list[Callable[[], GraphQLNamedType]] = []
        self._object_types: dict[str, GraphQLObjectType] = {}
        self._connection_types: dict[str, GraphQLObjectType] = {}
        self._schema: GraphQLSchema | None = None
        self._lock = threading.RLock()
        self._log = structlog.get_logger(__name__).bind(component="graphql_host")
        self.node_interface = GraphQLInterfaceType(
            "Node",
            lambda: {"id": GraphQLField(GraphQLNonNull(GraphQLID))},
            resolve_type=self._resolve_interface_type,
            description="An object with a globally unique opaque id",
        )
        self.page_info_type = GraphQLObjectType(
            "PageInfo",
            lambda: {
                "hasNextPage": GraphQLField(GraphQLNonNull(GraphQLBoolean)),
                "hasPreviousPage": GraphQLField(GraphQLNonNull(GraphQLBoolean)),
                "startCursor": GraphQLField(GraphQLString),
                "endCursor": GraphQLField(GraphQLString),
            },
        )

    # ------------------------------------------------------------------
    # Enregistrement des extensions
    # ------------------------------------------------------------------
    def _ensure_open(self) -> None:
        if self._schema is not None:
            raise SchemaBuildError("schema already built; extensions must register at startup")

    def add_fields_hook(self, type_name: str, hook: FieldsHook) -> None:
        with self._lock:
            self._ensure_open()
            self._fields_hooks.setdefault(type_name, []).append(hook)

    def add_query_args_filter(self, hook: QueryArgsFilter) -> None:
        with self._lock:
            self._query_args_filters.append(hook)

    def add_node_resolver(self, hook: NodeResolver) -> None:
        with self._lock:
            self._node_resolvers.append(hook)

    def add_node_type_resolver(self, hook: NodeTypeResolver) -> None:
        with self._lock:
            self._node_type_resolvers.append(hook)

    def add_type(self, factory: Callable[[], GraphQLNamedType]) -> None:
        with self._lock:
            self._ensure_open()
            self._type_factories.append(factory)

    # ------------------------------------------------------------------
    # Types de contenu
    # ------------------------------------------------------------------
    def allowed_content_types(self) -> list[str]:
        """Types de contenu exposés par le schéma hôte."""
        known = [ct.name for ct in self.content_model.all()]
        if self._exposed is None:
            return known
        return [name for name in self._exposed if name in known]

    def _content_type(self, name: str) -> ContentType:
        ct = self.content_model.get(name)
        if ct is None:
            raise SchemaBuildError(f"unknown content type {name!r}", content_type=name)
        return ct

    def _content_fields(self, content_type: ContentType) -> dict[str, GraphQLField]:
        fields = {
            "id": GraphQLField(
                GraphQLNonNull(GraphQLID),
                resolve=lambda item, _info: to_global_id(item.content_type, item.id),
            ),
            "databaseId": GraphQLField(
                GraphQLNonNull(GraphQLInt), resolve=lambda item, _info: item.id
            ),
            "title": GraphQLField(GraphQLString, resolve=lambda item, _info: item.title or None),
            "status": GraphQLField(GraphQLString, resolve=lambda item, _info: item.status),
        }
        for hook in self._fields_hooks.get(content_type.name, []):
            for name, spec in hook(content_type).items():
                fields[name] = spec.to_field()
        return fields

    def content_object_type(self, name: str) -> GraphQLObjectType:
        """Type objet (unique par processus) d'un type de contenu exposé."""
        with self._lock:
            existing = self._object_types.get(name)
            if existing is not None:
                return existing
            ct = self._content_type(name)
            object_type = GraphQLObjectType(
                type_name_for(ct),
                lambda: self._content_fields(ct),
                interfaces=[self.node_interface],
                is_type_of=lambda obj, _info: isinstance(obj, ContentItem)
                and obj.content_type == ct.name,
                description=f"The {ct.name} content type",
            )
            self._object_types[name] = object_type
            return object_type

    def connection_type(self, name: str) -> GraphQLObjectType:
        with self._lock:
            existing = self._connection_types.get(name)
            if existing is not None:
                return existing
            node_type = self.content_object_type(name)
            edge_type = GraphQLObjectType(
                f"{node_type.name}Edge",
                lambda: {
                    "cursor": GraphQLField(GraphQLNonNull(GraphQLString)),
                    "node": GraphQLField(node_type),
                },
            )
            connection = GraphQLObjectType(
                f"{node_type.name}Connection",
                lambda: {
                    "edges": GraphQLField(GraphQLList(edge_type)),
                    "nodes": GraphQLField(GraphQLList(node_type)),
                    "pageInfo": GraphQLField(GraphQLNonNull(self.page_info_type)),
                },
            )
            self._connection_types[name] = connection
            return connection

    def connection_field(self, content_type: ContentType, description: str | None = None):
        """Champ de connexion paginée vers les contenus d'un type."""
        return GraphQLField(
            self.connection_type(content_type.name),
            args={
                "first": GraphQLArgument(GraphQLInt),
                "after": GraphQLArgument(GraphQLString),
            },
            resolve=ContentConnectionResolver(self, content_type),
            description=description or f"Connection to {content_type.graphql_plural_name}",
        )

    # ------------------------------------------------------------------
    # Points d'extension à l'exécution
    # ------------------------------------------------------------------
    def default_query_args(
        self,
        content_type: ContentType,
        source: Any,
        request_args: dict[str, Any],
        context: Any,
        info: GraphQLResolveInfo | None,
    ) -> dict[str, Any]:
        """Arguments par défaut d'une requête de contenus, passés par les filtres enregistrés."""
        query_args: dict[str, Any] = {"content_type": content_type.name, "status": "publish"}
        for hook in self._query_args_filters:
            query_args = hook(query_args, source, request_args, context, info)
        return query_args

    def resolve_node(self, global_id: str) -> Any:
        """Résout un identifiant global en objet; None si inconnu ou invalide."""
        try:
            resolved = from_global_id(global_id)
        except InvalidGlobalId:
            return None
        node: Any = None
        if resolved.type in self.allowed_content_types() and resolved.id.isdigit():
            item = self.content_store.get(int(resolved.id))
            if item is not None and item.content_type == resolved.type:
                node = item
        for hook in self._node_resolvers:
            node = hook(node, resolved.id, resolved.type)
        return node

    def resolve_node_type(self, node: Any) -> GraphQLObjectType | None:
        """Type GraphQL d'un objet déjà résolu (inverse de `resolve_node`)."""
        current: GraphQLObjectType | None = None
        if isinstance(node, ContentItem) and node.content_type in self.allowed_content_types():
            current = self.content_object_type(node.content_type)
        for hook in self._node_type_resolvers:
            current = hook(current, node)
        return current

    def _resolve_interface_type(self, obj: Any, _info: GraphQLResolveInfo, _type: Any):
        resolved = self.resolve_node_type(obj)
        return resolved.name if resolved is not None else None

    # ------------------------------------------------------------------
    # Schéma
    # ------------------------------------------------------------------
    def _query_type(self) -> GraphQLObjectType:
        def fields() -> dict[str, GraphQLField]:
            root: dict[str, GraphQLField] = {
                "node": GraphQLField(
                    self.node_interface,
                    args={"id": GraphQLArgument(GraphQLNonNull(GraphQLID))},
                    resolve=lambda _root, _info, id: self.resolve_node(id),
                ),
            }
            for name in self.allowed_content_types():
                ct = self._content_type(name)
                if not ct.graphql_plural_name:
                    raise SchemaBuildError(
                        f"content type {name!r} has no GraphQL plural name", content_type=name
                    )
                root[ct.graphql_plural_name] = self.connection_field(ct)
                root[ct.graphql_single_name] = GraphQLField(
                    self.content_object_type(name),
                    args={"id": GraphQLArgument(GraphQLNonNull(GraphQLID))},
                    resolve=self._single_resolver(ct),
                )
            return root

        return GraphQLObjectType("RootQuery", fields)

    def _single_resolver(self, content_type: ContentType):
        def resolve(_root: Any, _info: GraphQLResolveInfo, id: str) -> ContentItem | None:
            node = self.resolve_node(id)
            if isinstance(node, ContentItem) and node.content_type == content_type.name:
                return node
            return None

        return resolve

    def build_schema(self) -> GraphQLSchema:
        """Construit (une fois) et retourne le schéma.

        Les erreurs d'extension levées pendant la résolution des champs sont propagées telles
        quelles (échec au démarrage, pas à la requête).
        """
        with self._lock:
            if self._schema is not None:
                return self._schema
            try:
                types = [self.content_object_type(n) for n in self.allowed_content_types()]
                types.extend(factory() for factory in self._type_factories)
                schema = GraphQLSchema(query=self._query_type(), types=types)
                # force la résolution de tous les thunks maintenant
                for named in schema.type_map.values():
                    if isinstance(named, GraphQLObjectType | GraphQLInterfaceType):
                        _ = named.fields
            except (TypeError, ValueError) as err:
                if isinstance(err.__cause__, BylineError):
                    raise err.__cause__ from err
                raise
            self._schema = schema
            self._log.info("graphql_schema_built", types=len(schema.type_map))
            return schema

    @property
    def schema(self) -> GraphQLSchema:
        return self.build_schema()

    def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        operation_name: str | None = None,
        context: Any = None,
    ) -> ExecutionResult:
        """Exécute une opération GraphQL sur le schéma."""
        return graphql_sync(
            self.schema,
            query,
            variable_values=variables,
            operation_name=operation_name,
            context_value=context,
        )
