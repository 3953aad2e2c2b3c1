"""
Rate Limiting Tests
"""
import pytest

from baseline.rate_limit import (
    MemoryRateLimitStore,
    RateLimitConfig,
    RateLimiter,
    RateLimitResult,
    RedisRateLimitStore,
    get_client_ip,
    store_from_url,
)


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance_ms(self, ms):
        self.now += ms / 1000.0


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def incr(self, key):
        self.ops.append(('incr', key))

    def pttl(self, key):
        self.ops.append(('pttl', key))

    def execute(self):
        results = []
        for op, key in self.ops:
            if op == 'incr':
                self.client.values[key] = self.client.values.get(key, 0) + 1
                results.append(self.client.values[key])
            else:
                results.append(self.client.ttls.get(key, -1))
        return results


class FakeRedis:
    def __init__(self):
        self.values = {}
        self.ttls = {}

    def pipeline(self):
        return FakePipeline(self)

    def pexpire(self, key, ms):
        self.ttls[key] = ms


class TestRateLimiter:
    """Fixed window counting"""

    def test_window_allows_then_blocks(self):
        """Three requests pass with remaining 2, 1, 0; the fourth is refused"""
        limiter = RateLimiter(MemoryRateLimitStore(), clock=FakeClock())
        config = RateLimitConfig(max_requests=3, window_ms=60000)

        results = [limiter.check('ip-A', config) for _ in range(4)]

        assert [r.success for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]
        assert all(r.limit == 3 for r in results)

    def test_window_resets_after_expiry(self):
        clock = FakeClock()
        limiter = RateLimiter(MemoryRateLimitStore(), clock=clock)
        config = RateLimitConfig(max_requests=1, window_ms=60000)

        first = limiter.check('ip-A', config)
        assert limiter.check('ip-A', config).success is False

        clock.advance_ms(60001)
        again = limiter.check('ip-A', config)
        assert again.success is True
        assert again.remaining == 0
        assert again.reset_at > first.reset_at

    def test_reset_time_fixed_within_window(self):
        clock = FakeClock()
        limiter = RateLimiter(MemoryRateLimitStore(), clock=clock)
        config = RateLimitConfig(max_requests=5, window_ms=60000)

        first = limiter.check('ip-A', config)
        clock.advance_ms(30000)
        second = limiter.check('ip-A', config)

        assert first.reset_at == second.reset_at == int(FakeClock().now * 1000) + 60000

    def test_identifiers_counted_separately(self):
        limiter = RateLimiter(MemoryRateLimitStore(), clock=FakeClock())
        config = RateLimitConfig(max_requests=1, window_ms=60000)

        assert limiter.check('ip-A', config).success is True
        assert limiter.check('ip-B', config).success is True
        assert limiter.check('ip-A', config).success is False


class TestMemoryStore:
    def test_sweep_drops_expired_windows(self):
        store = MemoryRateLimitStore(sweep_interval_ms=1000)
        store.hit('ip-A', 500, now_ms=0)
        store.hit('ip-B', 500, now_ms=0)
        assert len(store) == 2

        store.hit('ip-C', 500, now_ms=2000)
        assert len(store) == 1


class TestRedisStore:
    def test_first_hit_sets_expiry(self):
        client = FakeRedis()
        store = RedisRateLimitStore(client)

        count, reset_at = store.hit('ip-A', 60000, now_ms=1000)

        assert count == 1
        assert reset_at == 61000
        assert client.ttls['ratelimit:ip-A'] == 60000

    def test_later_hits_use_remaining_ttl(self):
        client = FakeRedis()
        store = RedisRateLimitStore(client)
        store.hit('ip-A', 60000, now_ms=1000)
        client.ttls['ratelimit:ip-A'] = 20000

        count, reset_at = store.hit('ip-A', 60000, now_ms=41000)

        assert count == 2
        assert reset_at == 61000

    def test_limiter_over_redis_store(self):
        limiter = RateLimiter(RedisRateLimitStore(FakeRedis()), clock=FakeClock())
        config = RateLimitConfig(max_requests=2, window_ms=60000)

        assert [limiter.check('ip-A', config).success for _ in range(3)] == [True, True, False]


class TestResultHeaders:
    def test_headers(self):
        result = RateLimitResult(success=False, limit=5, remaining=0, reset_at=10_500)

        headers = result.headers(now_ms=1_000)

        assert headers == {
            'X-RateLimit-Limit': '5',
            'X-RateLimit-Remaining': '0',
            'X-RateLimit-Reset': '10500',
            'Retry-After': '10',
        }


class TestStoreFromUrl:
    def test_memory(self):
        assert isinstance(store_from_url('memory://'), MemoryRateLimitStore)
        assert isinstance(store_from_url(None), MemoryRateLimitStore)

    def test_redis(self):
        store = store_from_url('redis://localhost:6379/0')
        assert isinstance(store, RedisRateLimitStore)

    def test_unsupported(self):
        with pytest.raises(ValueError):
            store_from_url('memcached://localhost')


class TestClientIp:
    def test_first_forwarded_hop(self):
        assert get_client_ip({'x-forwarded-for': '203.0.113.7, 10.0.0.1'}) == '203.0.113.7'

    def test_real_ip_fallback(self):
        assert get_client_ip({'x-real-ip': ' 198.51.100.2 '}) == '198.51.100.2'

    def test_unknown(self):
        assert get_client_ip({}) == 'unknown'
        assert get_client_ip({'x-forwarded-for': ' , '}) == 'unknown'
