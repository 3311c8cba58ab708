"""Branchement des bylines sur l'hôte GraphQL.

`BylineGraphQLIntegration.register(host)` enregistre explicitement:
- le champ `bylines` sur chaque type de contenu éligible;
- le type `Byline` dans le schéma;
- le filtre d'arguments de requête (source = byline -> prédicat de relation);
- la résolution de noeud (`byline` -> registre) et son inverse (Byline -> type `Byline`).

Aucun de ces callbacks ne lève d'erreur pour une source ou un type inconnu: ils laissent passer
la valeur reçue.
"""

from __future__ import annotations

from typing import Any

from graphql import GraphQLObjectType, GraphQLResolveInfo

from bylines.domain.entities import BYLINE_TAXONOMY, Byline
from bylines.domain.registry import BylineRegistry
from bylines.graphql.byline_type import BYLINE_NODE_TYPE, BylineSchemaBuilder
from bylines.graphql.host import GraphQLHost


class BylineGraphQLIntegration:
    """Filtres et résolveurs reliant le registre des bylines à l'hôte GraphQL."""

    def __init__(self, registry: BylineRegistry, schema_builder: BylineSchemaBuilder) -> None:
        self.registry = registry
        self.schema_builder = schema_builder

    def register(self, host: GraphQLHost) -> None:
        """Enregistre tous les points d'extension auprès de l'hôte (une fois, au démarrage)."""
        for ct in self.schema_builder.eligible_content_types():
            host.add_fields_hook(ct.name, self.schema_builder.content_fields)
        host.add_type(self.schema_builder.byline_type)
        host.add_query_args_filter(self.filter_query_args)
        host.add_node_resolver(self.resolve_node)
        host.add_node_type_resolver(self.resolve_node_type)

    @staticmethod
    def filter_query_args(
        query_args: dict[str, Any],
        source: Any,
        request_args: dict[str, Any],
        context: Any,
        info: GraphQLResolveInfo | None,
    ) -> dict[str, Any]:
        """Restreint la requête aux contenus de la byline source.

        Retourne un nouveau dict quand la source est une byline, l'objet reçu sinon.
        """
        if isinstance(source, Byline):
            return {
                **query_args,
                "relation": [
                    {"taxonomy": BYLINE_TAXONOMY, "terms": [source.id], "field": "id"},
                ],
            }
        return query_args

    def resolve_node(self, node: Any, node_id: str, type_name: str) -> Any:
        """Résout un noeud `byline` via le registre (None si absent)."""
        if type_name == BYLINE_NODE_TYPE:
            return self.registry.get_by_id(node_id)
        return node

    def resolve_node_type(
        self, current_type: GraphQLObjectType | None, node: Any
    ) -> GraphQLObjectType | None:
        """Associe une instance de Byline au type `Byline`."""
        if isinstance(node, Byline):
            return self.schema_builder.byline_type()
        return current_type
