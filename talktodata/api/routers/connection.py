"""
Connection router: session lifecycle.

Endpoints:
- POST   /api/connect      : Validate + connect, store config in session cookie
- DELETE /api/connect      : Clear the session
- POST   /api/demo-connect : Connect to the server-configured demo database
- GET    /api/session      : Re-check the stored connection, return schema
"""

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response

from ...models import SessionStatus
from ...orchestrator import QueryOrchestrator
from ...session import CookieSession
from ..deps import commit_session, get_orchestrator, get_session, logger
from ..schemas import ApiResponse, DisconnectData


router = APIRouter(prefix="/api", tags=["Connection"])


@router.post("/connect", response_model=ApiResponse[SessionStatus])
async def connect(
    response: Response,
    payload: Dict[str, Any] = Body(...),
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """
    Connect to a database.

    The body is a ConnectionConfig. For SQLite, `database` is the file
    path and host/port/username may be omitted.
    """
    status_ = await asyncio.to_thread(orchestrator.connect, session, payload)
    commit_session(response, session)
    return ApiResponse(data=status_)


@router.delete("/connect", response_model=ApiResponse[DisconnectData])
async def disconnect(
    response: Response,
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    orchestrator.disconnect(session)
    commit_session(response, session)
    return ApiResponse(data=DisconnectData())


@router.post("/demo-connect", response_model=ApiResponse[SessionStatus])
async def demo_connect(
    response: Response,
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Connect to the demo PostgreSQL database configured via DEMO_DB_*."""
    status_ = await asyncio.to_thread(orchestrator.connect_demo, session)
    commit_session(response, session)
    logger.info("Demo database connected")
    return ApiResponse(data=status_)


@router.get("/session", response_model=ApiResponse[SessionStatus])
async def session_status(
    session: CookieSession = Depends(get_session),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
):
    """Connected flag, database name/type and schema of the current session."""
    status_ = await asyncio.to_thread(orchestrator.session_status, session)
    return ApiResponse(data=status_)
