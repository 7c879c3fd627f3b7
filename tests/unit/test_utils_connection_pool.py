"""Tests for vcs_toolkit/utils/connection_pool.py - HTTP connection pooling."""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from vcs_toolkit.utils.connection_pool import HTTPConnectionPool

# =============================================================================
# Tests for HTTPConnectionPool
# =============================================================================


class TestHTTPConnectionPool:
    """Tests for HTTPConnectionPool class."""

    def test_init_defaults(self):
        pool = HTTPConnectionPool("https://api.example.com")

        assert pool.base_url == "https://api.example.com"
        assert pool.max_connections == 10
        assert pool.max_keepalive_connections == 5
        assert pool.timeout == 30.0
        assert pool.headers == {}
        assert pool._client is None

    @pytest.mark.asyncio
    async def test_initialize_creates_client_with_headers(self):
        pool = HTTPConnectionPool("https://api.example.com", headers={"Authorization": "token abc"})

        await pool.initialize()

        assert isinstance(pool._client, httpx.AsyncClient)
        assert pool._client.headers["Authorization"] == "token abc"
        await pool.close()

    @pytest.mark.asyncio
    async def test_initialize_idempotent(self):
        pool = HTTPConnectionPool("https://api.example.com")

        await pool.initialize()
        client = pool._client
        await pool.initialize()

        assert pool._client is client
        await pool.close()

    @pytest.mark.asyncio
    async def test_close_when_not_initialized(self):
        pool = HTTPConnectionPool("https://api.example.com")

        await pool.close()

        assert pool._client is None

    @pytest.mark.asyncio
    async def test_request_auto_initializes_and_forwards_kwargs(self):
        pool = HTTPConnectionPool("https://api.example.com")
        response = httpx.Response(200, json={}, request=httpx.Request("GET", "https://api.example.com/x"))

        with patch.object(httpx.AsyncClient, "request", new=AsyncMock(return_value=response)) as mock_request:
            result = await pool.request("GET", "/x", params={"page": 1}, follow_redirects=True)

        assert result is response
        assert pool._client is not None
        mock_request.assert_awaited_once_with("GET", "/x", params={"page": 1}, follow_redirects=True)
        await pool.close()

    @pytest.mark.asyncio
    async def test_concurrent_initialization_creates_one_client(self):
        pool = HTTPConnectionPool("https://api.example.com")

        await asyncio.gather(*(pool.initialize() for _ in range(5)))

        assert pool._client is not None
        await pool.close()
