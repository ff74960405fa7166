"""Unit tests for the hybrid memory/Redis rate limiter."""

from unittest.mock import MagicMock

import redis

from gapp_directory import rate_limiter
from gapp_directory.rate_limiter import check_rate_limit, get_redis_client


class TestMemoryLimiter:
    def test_allows_up_to_limit(self):
        results = [check_rate_limit("test:1.2.3.4", limit=3, window_seconds=60)[0] for _ in range(4)]
        assert results == [True, True, True, False]

    def test_keys_are_independent(self):
        for _ in range(2):
            check_rate_limit("test:a", limit=2, window_seconds=60)

        assert check_rate_limit("test:a", limit=2, window_seconds=60)[0] is False
        assert check_rate_limit("test:b", limit=2, window_seconds=60)[0] is True

    def test_window_reset(self, monkeypatch):
        now = [1_000_000]
        monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

        check_rate_limit("test:w", limit=1, window_seconds=60)
        assert check_rate_limit("test:w", limit=1, window_seconds=60)[0] is False

        now[0] += 61
        allowed, count, ttl = check_rate_limit("test:w", limit=1, window_seconds=60)
        assert allowed is True
        assert count == 1
        assert ttl == 60

    def test_ttl_is_reported(self):
        _, _, ttl = check_rate_limit("test:ttl", limit=5, window_seconds=120)
        assert 0 < ttl <= 120


class TestRedisSync:
    def test_seeds_from_redis_and_syncs_back(self):
        client = MagicMock()
        client.get.return_value = "4"
        client.ttl.return_value = 30

        allowed, count, _ = check_rate_limit("test:redis", limit=5, window_seconds=60, client=client)

        assert allowed is True
        assert count == 5
        client.set.assert_not_called()

    def test_redis_errors_fall_back_to_memory(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")

        allowed, count, _ = check_rate_limit("test:down", limit=5, window_seconds=60, client=client)

        assert allowed is True
        assert count == 1

    def test_no_client_without_url(self, test_settings):
        assert get_redis_client(test_settings) is None


class TestRateLimitDependency:
    async def test_returns_429_with_retry_after(self, client, test_settings):
        test_settings.rate_limit_enabled = True
        payload = {"token": "0" * 64, "response": "available"}

        statuses = [
            (await client.post("/api/availability/respond", json=payload)).status_code for _ in range(31)
        ]
        blocked = await client.post("/api/availability/respond", json=payload)

        assert statuses[:30] == [404] * 30
        assert statuses[30] == 429
        assert "Retry-After" in blocked.headers

    async def test_forwarded_for_separates_clients(self, client, test_settings):
        test_settings.rate_limit_enabled = True
        test_settings.trusted_proxies = ["127.0.0.1"]
        payload = {"token": "0" * 64, "response": "available"}

        for _ in range(30):
            await client.post("/api/availability/respond", json=payload, headers={"X-Forwarded-For": "10.0.0.1"})
        blocked = await client.post(
            "/api/availability/respond", json=payload, headers={"X-Forwarded-For": "10.0.0.1"}
        )
        other = await client.post(
            "/api/availability/respond", json=payload, headers={"X-Forwarded-For": "10.0.0.2, 10.0.0.1"}
        )

        assert blocked.status_code == 429
        assert other.status_code == 404

    async def test_forwarded_for_is_ignored_from_untrusted_peers(self, client, test_settings):
        test_settings.rate_limit_enabled = True
        test_settings.trusted_proxies = []
        payload = {"token": "0" * 64, "response": "available"}

        statuses = [
            (
                await client.post(
                    "/api/availability/respond", json=payload, headers={"X-Forwarded-For": f"10.0.1.{n}"}
                )
            ).status_code
            for n in range(31)
        ]

        assert statuses[:30] == [404] * 30
        assert statuses[30] == 429
