from typing import Dict, Any, Optional, Type
import re
import structlog
from pydantic import BaseModel

from structgen.domain.models.generation import ProgressStage
from structgen.domain.orchestration.interfaces import GenerationService
from structgen.domain.orchestration.subagent.base_subagent import BaseDecisionAgent
from structgen.domain.orchestration.subagent.parameter_synthesizer import ParameterSynthesizer
from structgen.domain.streaming.streaming_handler import StreamingHandler
from structgen.domain.tool.tool_executor import ToolExecutor
from structgen.domain.tool.tool_registry import ProviderRegistry
from structgen.infrastructure.security.url_validator import validate_url

logger = structlog.get_logger(__name__)

RESOLUTION_PREFIX = "mcp:"
_RESOLUTION_DIRECTIVE = re.compile(r"^mcp:\s*(https?://\S+)")

SYSTEM_PROMPT = """You are selecting the most appropriate tool from the available tools on the server to resolve the value for the input field "{field}".
The field's description is: "{description}".
Select only the single most relevant tool based on the field description, tool descriptions, and the provided user input.
If no tool seems suitable, do not select any."""


def resolution_address(description: Optional[str]) -> Optional[str]:
    """Provider address named by a field description's resolution directive"""

    if not description or not description.startswith(RESOLUTION_PREFIX):
        return None
    match = _RESOLUTION_DIRECTIVE.match(description)
    return match.group(1) if match else None


class FieldResolver(BaseDecisionAgent):
    """Replaces input fields carrying a resolution directive with a capability result.

    A field is resolved when its description reads ``mcp: <address>``. Any
    failure along the way leaves the field's value as given.
    """

    name = "field_resolver"

    def __init__(
        self,
        generation: GenerationService,
        executor: ToolExecutor,
        synthesizer: Optional[ParameterSynthesizer] = None,
        **kwargs
    ):
        super().__init__(generation, **kwargs)
        self.executor = executor
        self.synthesizer = synthesizer or ParameterSynthesizer(generation, options=self.options)

    async def decide(
        self,
        input_data: Dict[str, Any],
        input_shape: Type[BaseModel],
        streamer: Optional[StreamingHandler] = None
    ) -> Dict[str, Any]:
        """Return a copy of the input with every resolvable field resolved"""

        resolved = dict(input_data)
        for key, info in input_shape.model_fields.items():
            address = resolution_address(info.description)
            if address is None:
                continue

            try:
                await self._resolve_field(key, info.description, address, resolved, streamer)
            except Exception as e:
                logger.warning("Input field resolution skipped", field=key, address=address, error=str(e))

        return resolved

    async def _resolve_field(
        self,
        key: str,
        description: str,
        address: str,
        input_data: Dict[str, Any],
        streamer: Optional[StreamingHandler]
    ):
        provider = ProviderRegistry.resolver_for(key, validate_url(address))

        if streamer:
            await streamer.send_progress(
                ProgressStage.INPUT_RESOLUTION,
                f'Resolving input field "{key}" using MCP server at {provider.address}...'
            )

        capabilities = await self.executor.discover(provider)
        if not capabilities:
            return

        parsed = await self.ask(SYSTEM_PROMPT.format(field=key, description=description), {
            "resolve_field": key,
            "field_description": description,
            "input": input_data,
            "available_tools": [
                {
                    "name": capability.name,
                    "description": capability.description,
                    "input_schema": capability.input_shape,
                }
                for capability in capabilities
            ],
            "task": "Select the tool name to invoke to resolve this field",
            "response_format": {"selected_tool": "string: the name of the selected tool"},
        })

        selected_name = parsed.get("selected_tool") if isinstance(parsed, dict) else None
        capability = next((c for c in capabilities if selected_name is not None and c.name == str(selected_name)), None)
        if capability is None:
            logger.info("No capability selected for input field", field=key, selected=selected_name)
            return

        parameters = await self.synthesizer.decide(input_data, capability)
        invocation = await self.executor.execute(provider, capability, parameters)
        input_data[key] = invocation.result

        if streamer:
            await streamer.send_progress(
                ProgressStage.INPUT_RESOLUTION,
                f'Resolved input field "{key}" with {provider.name}.{capability.name}',
                data={"field": key, "capability": capability.name}
            )
