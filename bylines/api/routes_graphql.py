"""Endpoint GraphQL.

Exécute les opérations sur le schéma de l'hôte, étendu par les bylines. Le statut HTTP reste 200
quand l'exécution produit des erreurs GraphQL; elles sont renvoyées dans `errors`.
"""

from fastapi import APIRouter, Depends, Request

from bylines.api.deps import get_container
from bylines.api.schemas import GraphQLRequest
from bylines.app.metrics import GRAPHQL_REQUESTS
from bylines.core.container import Container

router = APIRouter(tags=["graphql"])


@router.post("/graphql")
def graphql_endpoint(
    payload: GraphQLRequest, request: Request, c: Container = Depends(get_container)
):
    """Exécute une requête GraphQL et renvoie `{data, errors}`."""
    result = c.graphql_host.execute(
        payload.query,
        variables=payload.variables,
        operation_name=payload.operation_name,
        context={"request": request, "container": c},
    )
    GRAPHQL_REQUESTS.labels(status="error" if result.errors else "ok").inc()
    return result.formatted
