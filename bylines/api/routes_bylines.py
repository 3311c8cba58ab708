"""Routes du registre des bylines et des bylines de contenus.

Objectif du module
------------------
- Créer, consulter et mettre à jour des bylines.
- Créer ou retrouver la byline liée à un compte utilisateur.
- Sauvegarder la liste ordonnée des bylines d'un contenu (payload de l'éditeur).
"""

from fastapi import APIRouter, Depends, HTTPException

from bylines.api.deps import get_container
from bylines.api.schemas import (
    BylineCreateRequest,
    BylineResponse,
    BylineUpdateRequest,
    ContentBylinesResponse,
    SaveBylinesRequest,
)
from bylines.core.container import Container
from bylines.core.http_constants import HTTP_CREATED, HTTP_NOT_FOUND

router = APIRouter(tags=["bylines"])


@router.post("/bylines", response_model=BylineResponse, status_code=HTTP_CREATED)
def create_byline(payload: BylineCreateRequest, c: Container = Depends(get_container)):
    """Crée une byline (409 si le slug ou le compte lié est déjà pris)."""
    byline = c.registry.create(payload.model_dump())
    return BylineResponse.from_domain(byline)


@router.get("/bylines/{byline_id}", response_model=BylineResponse)
def get_byline(byline_id: int, c: Container = Depends(get_container)):
    """Récupère une byline par identifiant, sinon 404."""
    byline = c.registry.get_by_id(byline_id)
    if byline is None:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="Byline not found")
    return BylineResponse.from_domain(byline)


@router.patch("/bylines/{byline_id}", response_model=BylineResponse)
def update_byline(
    byline_id: int, payload: BylineUpdateRequest, c: Container = Depends(get_container)
):
    """Met à jour les champs fournis d'une byline."""
    byline = c.registry.update(byline_id, payload.model_dump(exclude_unset=True))
    return BylineResponse.from_domain(byline)


@router.get("/users/{user_id}/byline", response_model=BylineResponse)
def get_user_byline(user_id: int, c: Container = Depends(get_container)):
    """Byline liée au compte, sinon 404."""
    byline = c.registry.get_by_user_id(user_id)
    if byline is None:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="No byline linked to this user")
    return BylineResponse.from_domain(byline)


@router.post("/users/{user_id}/byline", response_model=BylineResponse)
def create_user_byline(user_id: int, c: Container = Depends(get_container)):
    """Crée (ou retrouve) la byline liée au compte."""
    return BylineResponse.from_domain(c.registry.create_from_user(user_id))


@router.put("/content/{item_id}/bylines", response_model=ContentBylinesResponse)
def save_content_bylines(
    item_id: int, payload: SaveBylinesRequest, c: Container = Depends(get_container)
):
    """Remplace les bylines du contenu par celles résolues depuis le payload."""
    bylines = c.relations.save(item_id, payload.bylines)
    return ContentBylinesResponse(
        content_item_id=item_id, bylines=[BylineResponse.from_domain(b) for b in bylines]
    )


@router.get("/content/{item_id}/bylines", response_model=ContentBylinesResponse)
def get_content_bylines(item_id: int, c: Container = Depends(get_container)):
    """Bylines du contenu, dans l'ordre."""
    bylines = c.relations.get_bylines(item_id)
    return ContentBylinesResponse(
        content_item_id=item_id, bylines=[BylineResponse.from_domain(b) for b in bylines]
    )
