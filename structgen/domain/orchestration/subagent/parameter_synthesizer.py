from typing import Dict, Any

from structgen.domain.models.generation import Capability
from structgen.domain.orchestration.subagent.base_subagent import BaseDecisionAgent
from structgen.infrastructure.observability.logging import generation_logger

SYSTEM_PROMPT = """You are generating parameters for a tool invocation based on user input and tool specification.
Generate appropriate parameters that match the tool's input schema."""


class ParameterSynthesizer(BaseDecisionAgent):
    """Fills a capability's parameters from the run input; {} on bad output"""

    name = "parameter_synthesizer"

    async def decide(self, input_data: Dict[str, Any], capability: Capability) -> Dict[str, Any]:
        parsed = await self.ask(SYSTEM_PROMPT, {
            "input": input_data,
            "tool": {
                "name": capability.name,
                "description": capability.description,
                "input_schema": capability.input_shape,
            },
            "task": "Generate parameters for this tool",
            "response_format": {"parameters": "object containing the tool parameters"},
        })

        parameters = parsed.get("parameters") if isinstance(parsed, dict) else None
        if not isinstance(parameters, dict):
            generation_logger.log_fallback(
                self.name, "undecodable parameters", "empty parameters", capability=capability.name
            )
            return {}

        return parameters
