"""Tests for the HTTP client."""

import json

import httpx
import pytest

from floaty.backends.http import HttpClient, HttpResponse
from floaty.errors import InvalidResponseError


class TestHttpResponse:
    """Test body decoding."""

    def test_json(self):
        assert HttpResponse(200, '{"ok": true}').json() == {"ok": True}

    def test_empty_body_is_empty_dict(self):
        assert HttpResponse(200, "  ").json() == {}

    def test_invalid_json(self):
        with pytest.raises(InvalidResponseError):
            HttpResponse(500, "<html>oops</html>").json()

    def test_is_json(self):
        assert HttpResponse(200, "[]").is_json() is True
        assert HttpResponse(200, "OK").is_json() is False


class TestHttpClient:
    """Test request construction."""

    def test_request_joins_base_url_and_sends_json(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, text='{"ok": true}')

        client = HttpClient("https://pooler.example.com/api/v2", transport=httpx.MockTransport(handler), token="abc")
        response = client.put("/vm/myvm", body={"lifetime": 2})

        assert response == HttpResponse(201, '{"ok": true}')
        request = seen[0]
        assert str(request.url) == "https://pooler.example.com/api/v2/vm/myvm"
        assert request.headers["X-AUTH-TOKEN"] == "abc"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"lifetime": 2}

    def test_non_2xx_is_returned_not_raised(self):
        client = HttpClient("https://pooler.example.com", transport=httpx.MockTransport(
            lambda request: httpx.Response(500, text="boom")
        ))

        assert client.get("status") == HttpResponse(500, "boom")

    def test_transport_failure_propagates(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = HttpClient("https://pooler.example.com", transport=httpx.MockTransport(handler))

        with pytest.raises(httpx.HTTPError):
            client.get("status")
