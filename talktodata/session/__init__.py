"""Connection session store."""
from .store import SessionData, SessionStore, MemorySession, CookieSession, SessionCodec

__all__ = [
    "SessionData",
    "SessionStore",
    "MemorySession",
    "CookieSession",
    "SessionCodec",
]
