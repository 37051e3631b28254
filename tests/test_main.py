"""Tests for the keep-alive ping job."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from cmr_dynasty.config import Settings
from cmr_dynasty.main import self_ping, start_self_ping


class TestSelfPing:
    async def test_logs_status(self, caplog):
        response = MagicMock(status_code=200)
        with patch.object(httpx.AsyncClient, "get", new=AsyncMock(return_value=response)) as get:
            with caplog.at_level("INFO", logger="cmr_dynasty.main"):
                await self_ping("https://dynasty.example/health")
        get.assert_called_once_with("https://dynasty.example/health")
        assert "self_ping status=200" in caplog.text

    async def test_http_error_is_logged_not_raised(self, caplog):
        error = httpx.ConnectError("connection refused")
        with patch.object(httpx.AsyncClient, "get", new=AsyncMock(side_effect=error)):
            with caplog.at_level("WARNING", logger="cmr_dynasty.main"):
                await self_ping("https://dynasty.example/health")
        assert "self_ping_failed" in caplog.text


class TestStartSelfPing:
    def test_not_scheduled_without_url(self):
        assert start_self_ping(Settings(self_ping_url="")) is None

    async def test_scheduled_with_url(self):
        scheduler = start_self_ping(
            Settings(self_ping_url="https://dynasty.example/health", self_ping_interval_seconds=60)
        )
        assert scheduler is not None
        try:
            job = scheduler.get_job("self_ping")
            assert job is not None
            assert job.kwargs == {"url": "https://dynasty.example/health"}
        finally:
            scheduler.shutdown(wait=False)
