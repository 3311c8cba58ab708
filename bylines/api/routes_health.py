"""
Endpoint de santé pour vérifier la disponibilité de l'API et de ses backends.

Expose `/health` pour signaler l'état général, le stockage des bylines et le backend de verrous.
"""

from fastapi import APIRouter, Depends

from bylines.api.deps import get_container
from bylines.core.container import Container

router = APIRouter(tags=["health"])


@router.get("/health")
def health(c: Container = Depends(get_container)):
    """Vérifie la disponibilité de l'API et les backends de stockage et de verrous."""
    return {
        "status": "ok",
        "storage": getattr(c, "storage_backend", "unknown"),
        "locks": getattr(c, "lock_backend", "unknown"),
        "redis_url": bool(c.settings.REDIS_URL),
    }
