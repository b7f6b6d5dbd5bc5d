import json

import httpx
import pytest

from structgen.domain.errors import CapabilityError
from structgen.domain.models.generation import CapabilityProvider
from structgen.infrastructure.capability.http_client import HttpCapabilityClient

PROVIDER = CapabilityProvider(name="weather", address="http://weather.test/")


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpCapabilityClient:

    @pytest.mark.asyncio
    async def test_discover(self):
        seen = []

        def handler(request):
            seen.append((request.method, str(request.url)))
            return httpx.Response(200, json=[
                {"name": "current", "description": "Now", "inputSchema": {"type": "object"}},
                {"name": "forecast"},
            ])

        async with _client(handler) as http:
            capabilities = await HttpCapabilityClient(http).discover(PROVIDER)

        assert seen == [("GET", "http://weather.test/tools")]
        assert [capability.name for capability in capabilities] == ["current", "forecast"]
        assert capabilities[0].input_shape == {"type": "object"}
        assert capabilities[1].description == ""

    @pytest.mark.asyncio
    async def test_invoke(self):
        bodies = []

        def handler(request):
            bodies.append((request.method, str(request.url), json.loads(request.content)))
            return httpx.Response(200, json={"temp": 21})

        async with _client(handler) as http:
            result = await HttpCapabilityClient(http).invoke(PROVIDER, "current", {"city": "Paris"})

        assert result == {"temp": 21}
        assert bodies == [("POST", "http://weather.test/call", {"method": "current", "params": {"city": "Paris"}})]

    @pytest.mark.asyncio
    async def test_status_error(self):
        async with _client(lambda request: httpx.Response(503, text="unavailable")) as http:
            with pytest.raises(CapabilityError) as exc_info:
                await HttpCapabilityClient(http).invoke(PROVIDER, "current", {})

        assert str(exc_info.value) == "Request failed: 503 - unavailable"
        assert exc_info.value.provider == "weather"

    @pytest.mark.asyncio
    async def test_unexpected_listing(self):
        async with _client(lambda request: httpx.Response(200, json={"tools": []})) as http:
            with pytest.raises(CapabilityError):
                await HttpCapabilityClient(http).discover(PROVIDER)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with _client(lambda request: httpx.Response(200, text="not json")) as http:
            with pytest.raises(CapabilityError):
                await HttpCapabilityClient(http).invoke(PROVIDER, "current", {})

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as http:
            with pytest.raises(CapabilityError):
                await HttpCapabilityClient(http).discover(PROVIDER)
