"""
Tests for the single-shot HTTP transport, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from objid.core.backend.errors import ECONNREFUSED, ECONNRESET, ENOTFOUND
from objid.core.backend.transport import (
    HttpRequest,
    HttpTransport,
    build_url,
    network_error_code,
)


def make_transport(handler) -> HttpTransport:
    return HttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestBuildUrl:
    def test_defaults_to_https(self):
        assert build_url("example.net", "/api/v2/getNext") == "https://example.net/api/v2/getNext"

    def test_keeps_explicit_scheme(self):
        assert build_url("http://localhost:7071/", "api/v2/check") == "http://localhost:7071/api/v2/check"


class TestSend:
    @pytest.mark.asyncio
    async def test_success_decodes_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("X-Functions-Key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": 50000, "available": True})

        response = await make_transport(handler).send(
            HttpRequest(
                hostname="backend.test",
                path="/api/v2/getNext",
                method="GET",
                headers={"X-Functions-Key": "k"},
                data={"appId": "a", "type": "table"},
            )
        )

        assert response.status == 200
        assert response.value == {"id": 50000, "available": True}
        assert response.error is None
        assert seen == {
            "method": "GET",
            "url": "https://backend.test/api/v2/getNext",
            "key": "k",
            "body": {"appId": "a", "type": "table"},
        }

    @pytest.mark.asyncio
    async def test_empty_body_and_204(self):
        transport = make_transport(lambda request: httpx.Response(204))
        response = await transport.send(HttpRequest(hostname="h", path="/p"))
        assert response.status == 204
        assert response.value is None
        assert response.error is None

    @pytest.mark.asyncio
    async def test_error_status_is_not_interpreted(self):
        transport = make_transport(lambda request: httpx.Response(500, json={"message": "boom"}))
        response = await transport.send(HttpRequest(hostname="h", path="/p"))
        assert response.status == 500
        assert response.value == {"message": "boom"}
        assert response.error is None

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        transport = make_transport(lambda request: httpx.Response(200, text="<html>oops</html>"))
        response = await transport.send(HttpRequest(hostname="h", path="/p"))
        assert response.status == 200
        assert response.error["message"] == "Invalid JSON response"
        assert response.error["body"] == "<html>oops</html>"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        response = await make_transport(handler).send(
            HttpRequest(hostname="h", path="/p", timeout=5.0)
        )
        assert response.status == 0
        assert response.error == {"message": "Request timeout", "timeout": 5.0}

    @pytest.mark.asyncio
    async def test_connection_refused(self):
        def handler(request):
            raise httpx.ConnectError("All connection attempts failed", request=request)

        response = await make_transport(handler).send(HttpRequest(hostname="h", path="/p"))
        assert response.status == 0
        assert response.error["code"] == ECONNREFUSED

    @pytest.mark.asyncio
    async def test_dns_failure(self):
        def handler(request):
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)

        response = await make_transport(handler).send(HttpRequest(hostname="h", path="/p"))
        assert response.error["code"] == ENOTFOUND


class TestNetworkErrorCode:
    def test_walks_cause_chain(self):
        error = httpx.ReadError("read failed")
        error.__cause__ = ConnectionResetError()
        assert network_error_code(error) == ECONNRESET

    def test_falls_back_to_type_name(self):
        assert network_error_code(httpx.UnsupportedProtocol("ftp")) == "UnsupportedProtocol"
