from typing import Any, Dict

from fastapi import APIRouter

from .. import __version__
from ..config import settings

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Liveness plus the upstream configuration the engine will use"""
    return {
        "status": "healthy" if settings.has_hooks_api else "degraded",
        "version": __version__,
        "hooks_api_configured": settings.has_hooks_api,
        "rpc_networks": sorted(settings.rpc_urls),
        "app_version": settings.app_version,
    }
