"""
Schema router.

Endpoints:
- GET /api/schema: Structured schema of the connected database
"""

import asyncio

from fastapi import APIRouter, Depends

from ...models import Schema
from ...orchestrator import QueryOrchestrator
from ...session import CookieSession
from ..deps import get_orchestrator, get_session
from ..schemas import ApiResponse


router = APIRouter(prefix="/api", tags=["Schema"])


@router.get("/schema", response_model=ApiResponse[Schema])
async def get_schema(
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    schema = await asyncio.to_thread(orchestrator.get_schema, session)
    return ApiResponse(data=schema)
