"""Configuration de test pour pytest: chemins et fixtures du domaine bylines.

Ajoute la racine du projet au sys.path et fournit des dépôts en mémoire, un annuaire utilisateurs
pré-rempli et des conteneurs isolés (aucune connexion Redis ni base externe).
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from bylines...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from bylines.core.container import Container  # noqa: E402
from bylines.domain.registry import BylineRegistry  # noqa: E402
from bylines.domain.relations import RelationManager  # noqa: E402
from bylines.infra.repositories import (  # noqa: E402
    InMemoryBylineRepo,
    InMemoryRelationRepo,
    InMemoryUserDirectory,
)
from tests.fakes import FOO_BAR, make_settings  # noqa: E402


@pytest.fixture
def users() -> InMemoryUserDirectory:
    return InMemoryUserDirectory([FOO_BAR])


@pytest.fixture
def byline_repo() -> InMemoryBylineRepo:
    return InMemoryBylineRepo()


@pytest.fixture
def relation_repo() -> InMemoryRelationRepo:
    return InMemoryRelationRepo()


@pytest.fixture
def registry(byline_repo, users) -> BylineRegistry:
    return BylineRegistry(byline_repo, users)


@pytest.fixture
def relations(registry, relation_repo) -> RelationManager:
    return RelationManager(registry, relation_repo)


@pytest.fixture
def container(users) -> Container:
    """Conteneur complet en mémoire, avec l'annuaire de test."""
    return Container(settings=make_settings(), users=users)
