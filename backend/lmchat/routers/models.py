"""
Model Listing Router

Exposes the models loaded on the LM Studio server and the default
server address the UI falls back to.
"""

import logging

from fastapi import APIRouter, HTTPException

from ..models.chat_types import ModelList
from ..services.lm_studio_service import (
    UpstreamConnectionError,
    UpstreamStatusError,
    lm_studio_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models")
async def list_models(server_url: str | None = None) -> ModelList:
    """
    List available models.

    Args:
        server_url: LM Studio address; the configured default when omitted

    Raises:
        503: Server unreachable
        4xx/5xx: Upstream status passed through
    """
    try:
        return await lm_studio_service.list_models(server_url)
    except UpstreamConnectionError as e:
        raise HTTPException(
            status_code=503,
            detail={
                "error": "An error occurred while fetching the model list",
                "details": str(e),
            },
        )
    except UpstreamStatusError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": "Could not fetch the model list", "details": e.reason},
        )


@router.get("/settings")
async def read_settings() -> dict[str, str]:
    """Default server address for the client-side setting."""
    return {"server_url": lm_studio_service.settings.server_url}
