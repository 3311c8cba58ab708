"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Fournir aux endpoints le conteneur de l'application (registre, relations, hôte GraphQL).
- Permettre aux tests de substituer un conteneur isolé via `app.state.container`.
"""

from fastapi import Request

from bylines.core.container import Container


def get_container(request: Request) -> Container:
    """Retourne le conteneur attaché à l'application."""
    return request.app.state.container
