from typing import Dict, Any, List

from structgen.domain.models.generation import CapabilityProvider
from structgen.domain.tool.tool_registry import ProviderRegistry
from structgen.domain.orchestration.subagent.base_subagent import BaseDecisionAgent
from structgen.infrastructure.observability.logging import generation_logger

SYSTEM_PROMPT = """You are analyzing user input to determine which servers might be relevant to fulfill the request.
Select only servers that are likely needed based on the input content."""


class ProviderSelector(BaseDecisionAgent):
    """Picks the capability providers relevant to an input.

    Fails open: an empty or undecodable answer, or one naming no configured
    provider, selects every provider.
    """

    name = "provider_selector"

    async def decide(self, input_data: Dict[str, Any], registry: ProviderRegistry) -> List[CapabilityProvider]:
        providers = registry.get_available_providers()
        if not providers:
            return []

        parsed = await self.ask(SYSTEM_PROMPT, {
            "input": input_data,
            "available_servers": registry.describe(),
            "task": "Select relevant server names that should be used to fulfill this request",
            "response_format": {"relevant_servers": {"server_names": "array of server names"}},
        })

        section = parsed.get("relevant_servers") if isinstance(parsed, dict) else None
        if not isinstance(section, dict):
            generation_logger.log_fallback(self.name, "undecodable selection", "all providers")
            return list(providers)

        names = self.as_names(section.get("server_names"))
        selected = [provider for provider in providers if provider.name in names]
        if not selected:
            generation_logger.log_fallback(self.name, "no provider selected", "all providers", names=names)
            return list(providers)

        return selected
