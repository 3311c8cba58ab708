"""Modèle de contenu: types connus et drapeau de support des bylines.

Le modèle est construit une fois au démarrage à partir de la configuration
(`BYLINE_CONTENT_TYPES`) et consulté par le schéma GraphQL.
"""

from __future__ import annotations

from collections.abc import Iterable

from bylines.domain.entities import ContentType

DEFAULT_CONTENT_TYPES = (
    ContentType("post", graphql_single_name="post", graphql_plural_name="posts"),
    ContentType("page", graphql_single_name="page", graphql_plural_name="pages"),
)


class ContentModel:
    """Registre des types de contenu et de leur capacité « bylines »."""

    def __init__(
        self,
        content_types: Iterable[ContentType] = DEFAULT_CONTENT_TYPES,
        byline_types: Iterable[str] | None = None,
    ) -> None:
        """Enregistre les types; `byline_types` force le drapeau pour les noms listés."""
        flagged = set(byline_types) if byline_types is not None else None
        self._types: dict[str, ContentType] = {}
        for ct in content_types:
            if flagged is not None:
                ct = ContentType(
                    ct.name,
                    graphql_single_name=ct.graphql_single_name,
                    graphql_plural_name=ct.graphql_plural_name,
                    supports_bylines=ct.name in flagged,
                    labels=ct.labels,
                )
            self._types[ct.name] = ct

    def get(self, name: str) -> ContentType | None:
        return self._types.get(name)

    def all(self) -> list[ContentType]:
        return list(self._types.values())

    def byline_supported_types(self) -> list[str]:
        """Noms des types de contenu portant le drapeau de support des bylines."""
        return [ct.name for ct in self._types.values() if ct.supports_bylines]

    def supports_bylines(self, name: str) -> bool:
        ct = self._types.get(name)
        return bool(ct and ct.supports_bylines)
