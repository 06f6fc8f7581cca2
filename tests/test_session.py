"""Session store tests (in-memory and encrypted cookie token)."""

import pytest

from talktodata.errors import ConfigError
from talktodata.models import ConnectionConfig, DatabaseType
from talktodata.session import CookieSession, MemorySession, SessionCodec


SECRET = "x" * 32

CONFIG = ConnectionConfig(
    type=DatabaseType.MYSQL,
    host="db.example.com",
    port=3306,
    database="shop",
    username="reader",
    password="hunter2",
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def codec():
    return SessionCodec(SECRET)


class TestMemorySession:

    def test_empty_session_is_invalid(self):
        session = MemorySession()
        assert not session.is_valid()
        assert session.get().config is None

    def test_save_then_expire(self):
        clock = FakeClock()
        session = MemorySession(ttl_seconds=60, clock=clock)
        session.save(CONFIG)
        assert session.is_valid()

        clock.now += 59
        assert session.is_valid()
        clock.now += 1
        assert not session.is_valid()

    def test_clear(self):
        session = MemorySession()
        session.save(CONFIG)
        session.clear()
        assert not session.is_valid()


class TestSessionCodec:

    def test_short_secret_rejected(self):
        with pytest.raises(ConfigError):
            SessionCodec("too-short")

    def test_token_hides_credentials(self, codec):
        token = codec.encode({"config": CONFIG.model_dump(mode="json")})
        assert "hunter2" not in token
        assert codec.decode(token)["config"]["password"] == "hunter2"

    def test_foreign_secret_cannot_read_token(self, codec):
        token = codec.encode({"a": 1})
        assert SessionCodec("y" * 32).decode(token) is None

    @pytest.mark.parametrize("token", ["", "garbage", "gAAAAA-not-really", "ünïcode"])
    def test_tampered_tokens(self, codec, token):
        assert codec.decode(token) is None


class TestCookieSession:

    def test_round_trip_through_token(self, codec):
        writer = CookieSession(codec)
        writer.save(CONFIG)
        assert writer.modified
        assert writer.token

        reader = CookieSession(codec, token=writer.token)
        assert reader.is_valid()
        assert reader.get().config == CONFIG
        assert not reader.modified

    def test_expired_by_connected_at(self, codec):
        clock = FakeClock()
        writer = CookieSession(codec, ttl_seconds=60, clock=clock)
        writer.save(CONFIG)

        clock.now += 61
        reader = CookieSession(codec, token=writer.token, ttl_seconds=60, clock=clock)
        assert not reader.is_valid()

    def test_clear_drops_token(self, codec):
        session = CookieSession(codec)
        session.save(CONFIG)
        session.clear()
        assert session.token is None
        assert session.modified
        assert not session.is_valid()

    def test_invalid_config_in_token_is_discarded(self, codec):
        token = codec.encode({"config": {"type": "postgresql", "database": "x"}, "connected_at": 1.0})
        assert CookieSession(codec, token=token).get().config is None

    def test_missing_cookie(self, codec):
        session = CookieSession(codec, token=None)
        assert not session.is_valid()
        assert not session.modified
