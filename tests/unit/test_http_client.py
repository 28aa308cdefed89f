"""
Unit Tests for the shared HTTP transport

A fake aiohttp session replays canned responses, so these tests cover:
- Successful JSON decoding
- Rate-limit retry (429) followed by success
- Non-2xx responses mapped to TransportError
- Network errors and timeouts mapped to TransportError

Run with:
    pytest tests/unit/test_http_client.py -v
"""

import asyncio
import json

import aiohttp
import pytest

from core.exceptions import TransportError
from core.http_client import HttpClient


# ============================================
# Fakes
# ============================================

class FakeResponse:
    def __init__(self, status, payload=None, body=None, url="https://api.test/path"):
        self.status = status
        self._payload = payload
        self._body = body if body is not None else json.dumps(payload)
        self.url = url

    async def json(self, content_type=None):
        if self._payload is None:
            return json.loads(self._body)
        return self._payload

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeSession:
    """Replays responses (or raises exceptions) in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


def make_client(*outcomes, max_retries=3):
    client = HttpClient("test", "https://api.test/", max_retries=max_retries, retry_backoff=0)
    client.session = FakeSession(*outcomes)
    return client


# ============================================
# Tests
# ============================================

class TestGetJson:

    @pytest.mark.asyncio
    async def test_success_returns_payload(self):
        client = make_client(FakeResponse(200, {"symbols": []}))

        result = await client.get_json("/api/v3/exchangeInfo", {"a": 1})

        assert result.is_success
        assert result.value == {"symbols": []}
        assert client.session.calls == [("https://api.test/api/v3/exchangeInfo", {"a": 1})]

    @pytest.mark.asyncio
    async def test_retries_on_rate_limit_then_succeeds(self):
        client = make_client(FakeResponse(429, body="slow down"), FakeResponse(200, [1, 2]))

        result = await client.get_json("/klines")

        assert result.is_success
        assert result.value == [1, 2]
        assert len(client.session.calls) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_on_last_attempt_fails(self):
        client = make_client(FakeResponse(429, body="a"), FakeResponse(429, body="b"), max_retries=2)

        result = await client.get_json("/klines")

        assert result.is_failure
        error = result.errors[0]
        assert isinstance(error, TransportError)
        assert error.status_code == 429
        assert error.is_rate_limited()

    @pytest.mark.asyncio
    async def test_non_2xx_is_transport_failure_without_retry(self):
        client = make_client(FakeResponse(400, body='{"msg": "Invalid symbol."}'))

        result = await client.get_json("/klines", failure_message="Failed to fetch klines")

        assert result.is_failure
        error = result.errors[0]
        assert error.status_code == 400
        assert error.source == "test"
        assert "Invalid symbol" in error.response_body
        assert error.message.startswith("Failed to fetch klines")
        assert len(client.session.calls) == 1

    @pytest.mark.asyncio
    async def test_network_error_is_transport_failure(self):
        client = make_client(aiohttp.ClientConnectionError("connection reset"))

        result = await client.get_json("/ping")

        assert result.is_failure
        assert isinstance(result.errors[0], TransportError)
        assert result.errors[0].status_code is None

    @pytest.mark.asyncio
    async def test_timeout_is_transport_failure(self):
        client = make_client(asyncio.TimeoutError())

        result = await client.get_json("/ping")

        assert result.is_failure
        assert "timeout" in result.error_message

    @pytest.mark.asyncio
    async def test_malformed_json_is_transport_failure(self):
        client = make_client(FakeResponse(200, body="<html>"))

        result = await client.get_json("/ping")

        assert result.is_failure
        assert "malformed JSON" in result.error_message

    @pytest.mark.asyncio
    async def test_requires_open_session(self):
        client = HttpClient("test", "https://api.test")

        with pytest.raises(RuntimeError):
            await client.get_json("/ping")


@pytest.mark.asyncio
async def test_context_manager_opens_and_closes_session():
    async with HttpClient("test", "https://api.test") as client:
        assert client.session is not None
        assert not client.session.closed
    assert client.session is None
