# Schémas Pydantic exposés par l'API (requêtes et réponses).

from typing import Any

from pydantic import BaseModel, Field

from bylines.domain.entities import Byline


class BylineCreateRequest(BaseModel):
    """Modèle de requête pour créer une byline.

    Champs:
    - slug: str (obligatoire, unique)
    - display_name, first_name, last_name, bio, email, url: str | None
    - linked_user_id: int | None (compte lié, au plus une byline par compte)
    """

    slug: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    email: str | None = None
    url: str | None = None
    linked_user_id: int | None = None


class BylineUpdateRequest(BaseModel):
    """Mise à jour partielle: seuls les champs fournis sont modifiés."""

    slug: str | None = None
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    email: str | None = None
    url: str | None = None
    linked_user_id: int | None = None


class BylineResponse(BaseModel):
    id: int
    slug: str
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    email: str | None = None
    url: str | None = None
    linked_user_id: int | None = None

    @classmethod
    def from_domain(cls, byline: Byline) -> "BylineResponse":
        return cls(**byline.to_dict())


class SaveBylinesRequest(BaseModel):
    """Payload de sauvegarde: ids de bylines ou marqueurs `u<user_id>`, dans l'ordre."""

    bylines: list[int | str] | None = None


class ContentBylinesResponse(BaseModel):
    content_item_id: int
    bylines: list[BylineResponse]


class GraphQLRequest(BaseModel):
    query: str
    variables: dict[str, Any] | None = None
    operation_name: str | None = Field(default=None, alias="operationName")
