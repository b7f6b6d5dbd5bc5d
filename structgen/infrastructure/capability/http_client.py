from typing import Any, Dict, List, Optional
import httpx
import structlog

from structgen.domain.errors import CapabilityError
from structgen.domain.models.generation import Capability, CapabilityProvider
from structgen.domain.orchestration.interfaces import CapabilityClient
from structgen.infrastructure.config.settings import get_settings

logger = structlog.get_logger(__name__)


class HttpCapabilityClient(CapabilityClient):
    """Capability client speaking the provider HTTP protocol.

    ``GET {address}/tools`` lists capabilities; ``POST {address}/call`` with
    ``{"method": name, "params": parameters}`` invokes one.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout if timeout is not None else get_settings().http_timeout

    async def _request(self, provider: CapabilityProvider, method: str, path: str, **kwargs) -> Any:
        url = f"{provider.address.rstrip('/')}/{path}"
        try:
            if self.client is not None:
                response = await self.client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise CapabilityError(
                f"Request failed: {e.response.status_code} - {e.response.text[:200]}",
                provider=provider.name
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CapabilityError(f"HTTP {method} {url} failed: {e}", provider=provider.name) from e

    async def discover(self, provider: CapabilityProvider) -> List[Capability]:
        payload = await self._request(provider, "GET", "tools")
        if not isinstance(payload, list):
            raise CapabilityError(
                f"Unexpected tool listing from {provider.name}: {str(payload)[:200]}",
                provider=provider.name
            )
        return [Capability.model_validate(item) for item in payload]

    async def invoke(self, provider: CapabilityProvider, name: str, parameters: Dict[str, Any]) -> Any:
        logger.debug("Invoking capability", provider=provider.name, capability=name)
        return await self._request(
            provider, "POST", "call",
            json={"method": name, "params": parameters}
        )
