"""Fixed-window rate limiter tests."""

import threading

from talktodata.utils import RateLimiter, get_client_id


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:

    def test_allows_up_to_limit(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60, clock=FakeClock())
        decisions = [limiter.check("1.2.3.4") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]

    def test_blocked_decision_carries_retry_after(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        limiter.check("c")
        clock.now += 20

        blocked = limiter.check("c")
        headers = blocked.headers()

        assert blocked.retry_after == 40
        assert headers["Retry-After"] == "40"
        assert headers["X-RateLimit-Limit"] == "1"
        assert headers["X-RateLimit-Remaining"] == "0"
        assert headers["X-RateLimit-Reset"] == "1060"

    def test_allowed_decision_has_no_retry_after(self):
        limiter = RateLimiter(max_requests=5, clock=FakeClock())
        assert "Retry-After" not in limiter.check("c").headers()

    def test_new_window_after_reset_time(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        assert limiter.check("c").allowed
        assert not limiter.check("c").allowed

        clock.now += 60
        assert limiter.check("c").allowed

    def test_clients_counted_separately(self):
        limiter = RateLimiter(max_requests=1, clock=FakeClock())
        assert limiter.check("a").allowed
        assert limiter.check("b").allowed
        assert not limiter.check("a").allowed

    def test_expired_windows_swept(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=5, window_seconds=60, cleanup_interval_seconds=300, clock=clock)
        for client in ("a", "b", "c"):
            limiter.check(client)
        assert limiter.tracked_clients == 3

        clock.now += 301
        limiter.check("d")
        assert limiter.tracked_clients == 1

    def test_reset(self):
        limiter = RateLimiter(max_requests=1, clock=FakeClock())
        limiter.check("a")
        limiter.reset("a")
        assert limiter.check("a").allowed
        limiter.reset()
        assert limiter.tracked_clients == 0

    def test_thread_safe_counting(self):
        limiter = RateLimiter(max_requests=50, window_seconds=60)
        results = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                allowed = limiter.check("shared").allowed
                with lock:
                    results.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 50
        assert results.count(False) == 50


class TestClientId:

    def test_forwarded_for_first_hop(self):
        assert get_client_id({"x-forwarded-for": "10.0.0.1, 10.0.0.2"}) == "10.0.0.1"

    def test_real_ip_then_cloudflare(self):
        assert get_client_id({"x-real-ip": "10.0.0.3"}) == "10.0.0.3"
        assert get_client_id({"cf-connecting-ip": "10.0.0.4"}) == "10.0.0.4"

    def test_fallbacks(self):
        assert get_client_id({}, "127.0.0.1") == "127.0.0.1"
        assert get_client_id({}) == "unknown"
