from typing import Dict, Any, List
import time
import structlog

from structgen.domain.errors import CapabilityError
from structgen.domain.models.generation import Capability, CapabilityProvider, ToolInvocation
from structgen.domain.orchestration.interfaces import CapabilityClient
from structgen.infrastructure.observability.logging import generation_logger

logger = structlog.get_logger(__name__)


class ToolExecutor:
    """Discovers and invokes capabilities through a capability client"""

    def __init__(self, client: CapabilityClient):
        self.client = client

    async def discover(self, provider: CapabilityProvider) -> List[Capability]:
        """Discover the capabilities of a provider"""

        try:
            capabilities = await self.client.discover(provider)
        except CapabilityError:
            raise
        except Exception as e:
            logger.error("Capability discovery failed", provider=provider.name, error=str(e))
            raise CapabilityError(
                f"Discovery on {provider.name} ({provider.address}) failed: {e}",
                provider=provider.name
            ) from e

        logger.info("Discovered capabilities",
                    provider=provider.name,
                    capabilities=[capability.name for capability in capabilities])
        return capabilities

    async def execute(
        self,
        provider: CapabilityProvider,
        capability: Capability,
        parameters: Dict[str, Any]
    ) -> ToolInvocation:
        """Invoke a capability and record the invocation"""

        started = time.perf_counter()
        try:
            result = await self.client.invoke(provider, capability.name, parameters)
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            generation_logger.log_tool_execution(
                provider.name, capability.name, parameters,
                duration_ms=duration_ms, success=False, error=str(e)
            )
            if isinstance(e, CapabilityError):
                raise
            raise CapabilityError(
                f"Invocation of {provider.name}.{capability.name} failed: {e}",
                provider=provider.name,
                capability=capability.name
            ) from e

        duration_ms = (time.perf_counter() - started) * 1000
        generation_logger.log_tool_execution(
            provider.name, capability.name, parameters, duration_ms=duration_ms
        )

        return ToolInvocation(
            provider=provider.name,
            capability=capability.name,
            parameters=parameters,
            result=result,
            duration_ms=duration_ms
        )
