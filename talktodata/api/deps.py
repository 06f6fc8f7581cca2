"""
Shared dependencies for the TalkToData API.

Provides:
- Structured logging
- Singleton orchestrator (created once, reused per request)
- Per-request cookie session
- Error-code -> HTTP status mapping
"""

from typing import Optional

from fastapi import Request, Response, status

from configs import (
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_SECURE,
    SESSION_SECRET,
    SESSION_TTL_SECONDS,
)

from ..errors import ErrorCode
from ..orchestrator import QueryOrchestrator
from ..session import CookieSession, SessionCodec
from ..utils import setup_logging


logger = setup_logging()


# =============================================================================
# ERROR MAPPING
# =============================================================================

STATUS_BY_CODE = {
    ErrorCode.NO_CONNECTION: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.DANGEROUS_QUERY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_SQL: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONNECTION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.QUERY_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.LLM_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIG_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(code: ErrorCode) -> int:
    return STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


# =============================================================================
# SINGLETON ORCHESTRATOR
# =============================================================================

_orchestrator: Optional[QueryOrchestrator] = None


def get_orchestrator() -> QueryOrchestrator:
    """
    Get or create the singleton orchestrator instance.

    The orchestrator holds no per-request state (adapters are created per
    call), so one instance serves every request.
    """
    global _orchestrator
    if _orchestrator is None:
        logger.info("Creating singleton QueryOrchestrator")
        _orchestrator = QueryOrchestrator()
    return _orchestrator


def reset_orchestrator() -> None:
    """Reset the orchestrator (useful for testing)."""
    global _orchestrator
    _orchestrator = None


# =============================================================================
# SESSION
# =============================================================================

_codec: Optional[SessionCodec] = None


def get_session_codec() -> SessionCodec:
    """Build the token codec on first use (ConfigError if the secret is weak)."""
    global _codec
    if _codec is None:
        _codec = SessionCodec(SESSION_SECRET)
    return _codec


def get_session(request: Request) -> CookieSession:
    return CookieSession(
        get_session_codec(),
        token=request.cookies.get(SESSION_COOKIE_NAME),
        ttl_seconds=SESSION_TTL_SECONDS,
    )


def commit_session(response: Response, session: CookieSession) -> None:
    """Write a changed session back to the client cookie."""
    if not session.modified:
        return
    if session.token:
        response.set_cookie(
            SESSION_COOKIE_NAME,
            session.token,
            max_age=SESSION_TTL_SECONDS,
            httponly=True,
            secure=SESSION_COOKIE_SECURE,
            samesite="lax",
            path="/",
        )
    else:
        response.delete_cookie(SESSION_COOKIE_NAME, path="/")
