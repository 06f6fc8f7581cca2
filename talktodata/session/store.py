"""
Connection session store.

A session holds ONLY the ConnectionConfig of the connected database plus
the time it was saved. Schema and query state are never stored: the
schema is re-read from a fresh connection whenever a request needs it,
which keeps the client-held token small.

Two implementations share the SessionStore interface:

- CookieSession: an encrypted token (Fernet, key derived from
  SESSION_SECRET with HKDF) held by the HTTP client in a cookie
- MemorySession: process-local, for the CLI and tests

Both expire SESSION_TTL_SECONDS after `save()`.
"""

import base64
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic import ValidationError as PydanticValidationError

from configs import SESSION_SECRET_MIN_LENGTH, SESSION_TTL_SECONDS

from ..errors import ConfigError
from ..models import ConnectionConfig


logger = logging.getLogger(__name__)

_HKDF_SALT = b"talktodata-session-v1"
_HKDF_INFO = b"talktodata-connection-config"


@dataclass
class SessionData:
    """What a session carries: the config and when it was saved."""
    config: Optional[ConnectionConfig] = None
    connected_at: Optional[float] = None


class SessionStore(ABC):
    """get / save / clear / is_valid over one client's session."""

    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    @abstractmethod
    def get(self) -> SessionData:
        pass

    @abstractmethod
    def save(self, config: ConnectionConfig) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def is_valid(self) -> bool:
        """True when a config is stored and the TTL has not elapsed."""
        data = self.get()
        if data.config is None or data.connected_at is None:
            return False
        return self._clock() - data.connected_at < self.ttl_seconds


class MemorySession(SessionStore):
    """Session kept in process memory (one per CLI run or test)."""

    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS, clock: Callable[[], float] = time.time):
        super().__init__(ttl_seconds, clock)
        self._data = SessionData()

    def get(self) -> SessionData:
        return self._data

    def save(self, config: ConnectionConfig) -> None:
        self._data = SessionData(config=config, connected_at=self._clock())

    def clear(self) -> None:
        self._data = SessionData()


# ============================================================
# ENCRYPTED TOKEN
# ============================================================

class SessionCodec:
    """Encrypts session payloads into URL-safe tokens and back."""

    def __init__(self, secret: str):
        if not secret or len(secret) < SESSION_SECRET_MIN_LENGTH:
            raise ConfigError(
                f"SESSION_SECRET must be at least {SESSION_SECRET_MIN_LENGTH} characters long"
            )
        kdf = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=_HKDF_SALT,
            info=_HKDF_INFO,
        )
        key = base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))
        self._fernet = Fernet(key)

    def encode(self, payload: Dict[str, Any]) -> str:
        return self._fernet.encrypt(json.dumps(payload).encode("utf-8")).decode("ascii")

    def decode(self, token: str, ttl_seconds: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """Return the payload, or None for tampered, foreign or expired tokens."""
        try:
            raw = self._fernet.decrypt(token.encode("ascii"), ttl=ttl_seconds)
            payload = json.loads(raw)
        except (InvalidToken, ValueError, UnicodeEncodeError):
            return None
        return payload if isinstance(payload, dict) else None


class CookieSession(SessionStore):
    """
    Session backed by an encrypted, client-held token.

    `token` is the current cookie value; after `save()` / `clear()` the
    caller writes `token` back to the client (None means delete).
    """

    def __init__(
        self,
        codec: SessionCodec,
        token: Optional[str] = None,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(ttl_seconds, clock)
        self._codec = codec
        self.token = token
        self.modified = False
        self._cached: Optional[SessionData] = None

    def get(self) -> SessionData:
        if self._cached is not None:
            return self._cached

        data = SessionData()
        if self.token:
            payload = self._codec.decode(self.token, ttl_seconds=self.ttl_seconds)
            if payload and payload.get("config"):
                try:
                    data = SessionData(
                        config=ConnectionConfig.model_validate(payload["config"]),
                        connected_at=float(payload.get("connected_at") or 0),
                    )
                except (PydanticValidationError, TypeError, ValueError):
                    logger.warning("Discarding session with an invalid connection config")
        self._cached = data
        return data

    def save(self, config: ConnectionConfig) -> None:
        connected_at = self._clock()
        self.token = self._codec.encode({
            "config": config.model_dump(mode="json"),
            "connected_at": connected_at,
        })
        self._cached = SessionData(config=config, connected_at=connected_at)
        self.modified = True

    def clear(self) -> None:
        self.token = None
        self._cached = SessionData()
        self.modified = True
