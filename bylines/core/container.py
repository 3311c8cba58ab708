"""
Conteneur d'injection de dépendances du service bylines.

Instancie les composants centraux (settings, dépôts, verrous, registre, relations, hôte GraphQL
et extension bylines) et expose un singleton `container` utilisé par l'API.
"""

from __future__ import annotations

import redis

from bylines.core.settings import Settings, get_settings
from bylines.domain.content_model import ContentModel
from bylines.domain.entities import BYLINE_TAXONOMY
from bylines.domain.registry import BylineRegistry
from bylines.domain.relations import RelationManager
from bylines.graphql.byline_type import BylineSchemaBuilder
from bylines.graphql.host import GraphQLHost
from bylines.graphql.integration import BylineGraphQLIntegration
from bylines.infra.ops.locks import LocalKeyedLock, RedisKeyedLock
from bylines.infra.repo.byline_repo import SqlBylineRepo, SqlRelationRepo
from bylines.infra.repo.db import create_schema, get_engine
from bylines.infra.repositories import (
    InMemoryBylineRepo,
    InMemoryContentStore,
    InMemoryRelationRepo,
    InMemoryUserDirectory,
)


class Container:
    def __init__(self, settings: Settings | None = None, users=None, content_store=None):
        self.settings = settings or get_settings()

        # bylines et relations
        if self.settings.DATABASE_URL:
            self.engine = get_engine(self.settings.DATABASE_URL)
            if self.settings.DATABASE_URL.startswith("sqlite"):
                create_schema(self.engine)
            self.byline_repo = SqlBylineRepo(self.engine)
            self.relation_repo = SqlRelationRepo(self.engine)
            self.storage_backend = "sql"
        else:
            self.engine = None
            self.byline_repo = InMemoryBylineRepo()
            self.relation_repo = InMemoryRelationRepo()
            self.storage_backend = "memory"

        # verrous par utilisateur
        if self.settings.REDIS_URL:
            try:
                client = redis.Redis.from_url(self.settings.REDIS_URL, decode_responses=True)
                client.ping()
                self.locks = RedisKeyedLock(client, timeout=self.settings.USER_LOCK_TIMEOUT_S)
                self.lock_backend = "redis"
            except redis.exceptions.RedisError as err:
                if self.settings.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                self.locks = LocalKeyedLock()
                self.lock_backend = "memory-fallback"
        else:
            if self.settings.REQUIRE_REDIS:
                raise RuntimeError("Redis required but REDIS_URL not set")
            self.locks = LocalKeyedLock()
            self.lock_backend = "memory"

        # collaborateurs externes (fournis par l'hôte en production)
        self.users = users if users is not None else InMemoryUserDirectory()
        self.content_store = (
            content_store
            if content_store is not None
            else InMemoryContentStore(relations={BYLINE_TAXONOMY: self.relation_repo})
        )

        self.content_model = ContentModel(byline_types=self.settings.BYLINE_CONTENT_TYPES)
        self.registry = BylineRegistry(self.byline_repo, self.users, self.locks)
        self.relations = RelationManager(
            self.registry,
            self.relation_repo,
            policy=self.settings.BYLINES_UNRESOLVED_TOKEN_POLICY,
            user_prefix=self.settings.BYLINES_USER_TOKEN_PREFIX,
        )

        # GraphQL
        self.graphql_host = GraphQLHost(
            self.content_model,
            self.content_store,
            exposed_types=self.settings.GRAPHQL_EXPOSED_TYPES,
            default_page_size=self.settings.GRAPHQL_DEFAULT_PAGE_SIZE,
        )
        self.schema_builder = BylineSchemaBuilder(
            self.graphql_host,
            self.content_model,
            self.relations,
            escape_html=self.settings.GRAPHQL_ESCAPE_HTML,
        )
        self.graphql = BylineGraphQLIntegration(self.registry, self.schema_builder)
        self.graphql.register(self.graphql_host)

    def startup(self) -> None:
        """Construit le schéma GraphQL; les erreurs de métadonnées échouent ici, pas en requête."""
        self.schema_builder.build()
        self.graphql_host.build_schema()


container = Container()
