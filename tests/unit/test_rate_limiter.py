"""Tests for the relay rate limiter."""

from __future__ import annotations

from unittest.mock import patch

from discord_relay.gate.rate_limiter import RelayRateLimiter


class TestRelayRateLimiter:
    """Rolling window per client."""

    def test_allows_within_limit(self) -> None:
        limiter = RelayRateLimiter(max_requests=5, window_seconds=60)
        for _ in range(5):
            assert limiter.check("192.168.1.1") is True

    def test_blocks_over_limit(self) -> None:
        limiter = RelayRateLimiter(max_requests=5, window_seconds=60)
        for _ in range(5):
            limiter.check("192.168.1.1")
        assert limiter.check("192.168.1.1") is False

    def test_different_clients_independent(self) -> None:
        limiter = RelayRateLimiter(max_requests=1, window_seconds=60)
        assert limiter.check("192.168.1.1") is True
        assert limiter.check("192.168.1.2") is True
        assert limiter.check("192.168.1.1") is False

    def test_default_60_per_minute(self) -> None:
        limiter = RelayRateLimiter()
        assert limiter._max_requests == 60
        assert limiter._window_seconds == 60

    def test_zero_quota_disables_limiting(self) -> None:
        limiter = RelayRateLimiter(max_requests=0)
        assert limiter.enabled is False
        assert all(limiter.check("10.0.0.1") for _ in range(500))

    def test_window_rolls_forward(self) -> None:
        limiter = RelayRateLimiter(max_requests=2, window_seconds=10)
        with patch("discord_relay.gate.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            assert limiter.check("10.0.0.1") is True
            mock_time.time.return_value = 1005.0
            assert limiter.check("10.0.0.1") is True
            assert limiter.check("10.0.0.1") is False
            # First request has left the window, second has not
            mock_time.time.return_value = 1010.5
            assert limiter.check("10.0.0.1") is True
            assert limiter.check("10.0.0.1") is False

    def test_rejected_requests_do_not_extend_window(self) -> None:
        limiter = RelayRateLimiter(max_requests=1, window_seconds=10)
        with patch("discord_relay.gate.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            assert limiter.check("10.0.0.1") is True
            mock_time.time.return_value = 1009.0
            assert limiter.check("10.0.0.1") is False
            mock_time.time.return_value = 1011.0
            assert limiter.check("10.0.0.1") is True

    def test_idle_clients_pruned(self) -> None:
        limiter = RelayRateLimiter(max_requests=5, window_seconds=10)
        with patch("discord_relay.gate.rate_limiter.time") as mock_time:
            mock_time.time.return_value = 1000.0
            limiter.check("10.0.0.1")
            mock_time.time.return_value = 1020.0
            limiter.check("10.0.0.2")
        assert "10.0.0.1" not in limiter._counters
        assert "10.0.0.2" in limiter._counters
