"""
System router: health check.

Endpoints:
- GET /health: Liveness and configuration status (not rate limited)
"""

from fastapi import APIRouter

from configs import GROQ_API_KEY, LLM_MODEL

from ... import __version__
from ...adapters import list_adapters
from ..schemas import HealthResponse


router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Check API health and configuration status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        llm_model=LLM_MODEL,
        llm_configured=bool(GROQ_API_KEY),
        supported_databases=list_adapters(),
    )
