import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.core.dependencies import get_backend_client
from app.infrastructure.backend.client import BackendClient
from app.infrastructure.backend.exceptions import BackendError

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: Literal["ok", "error"] = Field(..., description="The status of the health check")


@router.get("/health", tags=["health"], response_model=HealthResponse)
async def health(backend: BackendClient = Depends(get_backend_client)):
    try:
        reachable = await backend.health_check()
    except BackendError as e:
        logger.error(f"Error checking health: {e.message}")
        raise HTTPException(status_code=503, detail=f"Backend unreachable: {e.message}") from None

    if not reachable:
        raise HTTPException(status_code=503, detail="Backend unhealthy")
    return HealthResponse(status="ok")
