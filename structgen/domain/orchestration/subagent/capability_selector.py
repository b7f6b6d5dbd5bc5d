from typing import Dict, Any, List

from structgen.domain.models.generation import Capability, CapabilityProvider
from structgen.domain.orchestration.subagent.base_subagent import BaseDecisionAgent
from structgen.infrastructure.observability.logging import generation_logger

SYSTEM_PROMPT = """You are selecting which tools from a server should be used to fulfill a user request.
Select only tools that are necessary for the given input."""


class CapabilitySelector(BaseDecisionAgent):
    """Picks the capabilities of one provider to invoke.

    An empty or undecodable answer falls back to the first discovered
    capability only. A well-formed answer naming nothing known selects none.
    """

    name = "capability_selector"

    async def decide(
        self,
        input_data: Dict[str, Any],
        provider: CapabilityProvider,
        capabilities: List[Capability]
    ) -> List[Capability]:
        if not capabilities:
            return []

        parsed = await self.ask(SYSTEM_PROMPT, {
            "input": input_data,
            "server": provider.name,
            "available_tools": [
                {"name": capability.name, "description": capability.description}
                for capability in capabilities
            ],
            "task": "Select tool names that should be invoked",
            "response_format": {"selected_tools": {"tool_names": "array of tool names"}},
        })

        section = parsed.get("selected_tools") if isinstance(parsed, dict) else None
        if not isinstance(section, dict):
            generation_logger.log_fallback(
                self.name, "undecodable selection", "first capability",
                provider=provider.name, capability=capabilities[0].name
            )
            return capabilities[:1]

        names = self.as_names(section.get("tool_names"))
        return [capability for capability in capabilities if capability.name in names]
