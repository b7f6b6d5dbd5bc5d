from typing import Dict, List, Any, Optional
import structlog

from structgen.domain.codec.tag_codec import encode
from structgen.domain.models.generation import ChatMessage, MessageRole
from structgen.domain.orchestration.subagent.base_subagent import wrap_request
from structgen.domain.schema.shape_descriptor import ShapeDescriptor

logger = structlog.get_logger(__name__)


def has_tool_results(tool_results: Dict[str, Any]) -> bool:
    """True when at least one tool result carries content"""

    return any(result not in (None, "", {}) for result in tool_results.values())


class ContextManager:
    """Assembles the final-response prompt from input, output shape and tool results"""

    def __init__(self, descriptor: ShapeDescriptor, system_prompt: Optional[str] = None):
        self.descriptor = descriptor
        self.system_prompt = system_prompt
        # Static per output shape
        self.output_format = descriptor.skeleton()
        self.task = descriptor.task_description()

    def build_prompt(self, input_data: Dict[str, Any], tool_results: Dict[str, Any]) -> Dict[str, Any]:
        """Prompt object sent, encoded, to the generation service"""

        prompt: Dict[str, Any] = {
            "input": input_data,
            "output_format": self.output_format,
            "task": self.task,
        }
        if has_tool_results(tool_results):
            prompt["context"] = {"tool_results": tool_results}

        logger.debug("Built response prompt",
                     tool_results=list(tool_results),
                     with_context="context" in prompt)
        return prompt

    def build_messages(self, prompt: Dict[str, Any]) -> List[ChatMessage]:
        messages = []
        if self.system_prompt:
            messages.append(ChatMessage(role=MessageRole.SYSTEM, content=self.system_prompt))
        messages.append(ChatMessage(role=MessageRole.USER, content=wrap_request(encode(prompt))))
        return messages
