"""Gestionnaire des relations ordonnées contenu -> bylines.

Démarche lors d'une sauvegarde:
- interpréter chaque entrée du payload en jeton (`parse_token`);
- résoudre les jetons dans l'ordre (id direct ou byline d'un utilisateur);
- remplacer intégralement la relation du contenu par la séquence obtenue, en une écriture.

L'ordre est conservé, les doublons aussi. Un payload vide ou absent vide la relation.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any

import structlog
from opentelemetry import trace

from bylines.app.metrics import BYLINE_RELATION_WRITES, BYLINE_TOKENS_DROPPED
from bylines.domain.entities import Byline
from bylines.domain.errors import BylineError, UnresolvedToken, UserNotFound
from bylines.domain.registry import BylineRegistry
from bylines.domain.tokens import DEFAULT_USER_PREFIX, AuthorshipToken, parse_token
from bylines.infra.base import RelationRepository

tracer = trace.get_tracer(__name__)


class UnresolvedTokenPolicy(str, Enum):
    """Traitement des jetons impossibles à résoudre."""

    DROP = "drop"  # le jeton est ignoré, la sauvegarde continue
    FAIL = "fail"  # la sauvegarde est rejetée, rien n'est écrit


class RelationManager:
    """Service de sauvegarde et de lecture des bylines d'un contenu."""

    def __init__(
        self,
        registry: BylineRegistry,
        relations: RelationRepository,
        policy: UnresolvedTokenPolicy | str = UnresolvedTokenPolicy.DROP,
        user_prefix: str = DEFAULT_USER_PREFIX,
    ) -> None:
        """Initialise le gestionnaire.

        Paramètres:
        - registry: registre des bylines (résolution des jetons).
        - relations: dépôt des relations ordonnées.
        - policy: politique pour les jetons non résolus (`drop` ou `fail`).
        - user_prefix: préfixe des marqueurs utilisateur (`u` par défaut).
        """
        self.registry = registry
        self.relations = relations
        self.policy = UnresolvedTokenPolicy(policy)
        self.user_prefix = user_prefix
        self._log = structlog.get_logger(__name__).bind(component="relation_manager")

    def _unresolved(self, raw: Any, reason: str, cause: Exception | None = None) -> None:
        if self.policy is UnresolvedTokenPolicy.FAIL:
            raise UnresolvedToken(
                f"authorship token could not be resolved: {raw!r}", token=raw, reason=reason
            ) from cause
        BYLINE_TOKENS_DROPPED.labels(reason=reason).inc()
        self._log.warning("byline_token_dropped", token=raw, reason=reason)

    def _resolve_token(self, token: AuthorshipToken) -> Byline | None:
        if token.is_user_marker:
            try:
                return self.registry.create_from_user(token.value)
            except UserNotFound as err:
                self._unresolved(token.raw, "user_not_found", err)
            except BylineError as err:
                self._unresolved(token.raw, "conflict", err)
            return None
        byline = self.registry.get_by_id(token.value)
        if byline is None:
            self._unresolved(token.raw, "not_found")
        return byline

    def _check_all(self, payload: list[Any]) -> None:
        # politique FAIL: tout valider avant la moindre création de byline
        for raw in payload:
            token = parse_token(raw, self.user_prefix)
            if token is None:
                self._unresolved(raw, "malformed")
            elif token.is_user_marker:
                reason = self.registry.user_link_problem(token.value)
                if reason is not None:
                    self._unresolved(raw, reason)
            elif self.registry.get_by_id(token.value) is None:
                self._unresolved(raw, "not_found")

    def resolve(self, payload: Iterable[Any] | None) -> list[Byline]:
        """Résout un payload en bylines ordonnées.

        Seuls les marqueurs utilisateur peuvent écrire (création de la byline liée). Avec la
        politique FAIL, le payload entier est validé d'abord: un rejet ne crée rien.
        """
        payload = list(payload or ())
        if self.policy is UnresolvedTokenPolicy.FAIL:
            self._check_all(payload)
        resolved: list[Byline] = []
        for raw in payload:
            token = parse_token(raw, self.user_prefix)
            if token is None:
                self._unresolved(raw, "malformed")
                continue
            byline = self._resolve_token(token)
            if byline is not None:
                resolved.append(byline)
        return resolved

    def save(self, content_item_id: int, payload: Iterable[Any] | None) -> list[Byline]:
        """Remplace les bylines du contenu par la résolution du payload et les retourne."""
        with tracer.start_as_current_span("bylines.save_relation") as span:
            span.set_attribute("bylines.content_item_id", int(content_item_id))
            bylines = self.resolve(payload)
            self.relations.replace(int(content_item_id), [b.id for b in bylines])
            BYLINE_RELATION_WRITES.inc()
            span.set_attribute("bylines.count", len(bylines))
        self._log.info(
            "byline_relation_saved",
            content_item_id=content_item_id,
            byline_ids=[b.id for b in bylines],
        )
        return bylines

    def get_bylines(self, content_item_id: int) -> list[Byline]:
        """Lit la relation dans l'ordre; les ids sans byline existante sont ignorés."""
        bylines = []
        for byline_id in self.relations.get(int(content_item_id)):
            byline = self.registry.get_by_id(byline_id)
            if byline is not None:
                bylines.append(byline)
        return bylines
