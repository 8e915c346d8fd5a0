"""Health check endpoint.

Liveness check for monitoring; needs no credential.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from commerce_mcp import __version__

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    server: str
    version: str
    timestamp: datetime


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check service health.

    Returns:
        Health status with server name, version and current time.
    """
    return HealthResponse(
        status="healthy",
        server=request.app.state.settings.server_name,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
    )
