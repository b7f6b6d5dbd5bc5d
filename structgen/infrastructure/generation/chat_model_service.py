from typing import Any, Dict, List
import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from structgen.domain.errors import GenerationError
from structgen.domain.models.generation import ChatMessage, GenerationRequest, MessageRole
from structgen.domain.orchestration.interfaces import GenerationService

logger = structlog.get_logger(__name__)

_MESSAGE_TYPES = {
    MessageRole.SYSTEM: SystemMessage,
    MessageRole.USER: HumanMessage,
    MessageRole.ASSISTANT: AIMessage,
}


def to_langchain_messages(messages: List[ChatMessage]) -> List[BaseMessage]:
    return [_MESSAGE_TYPES[message.role](content=message.content) for message in messages]


def content_text(content: Any) -> str:
    """Text of a message or chunk content, which may be a list of content blocks"""

    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


class ChatModelGenerationService(GenerationService):
    """Generation service backed by a langchain chat model.

    Plain requests use ``ainvoke``; requests with a stream sink use
    ``astream`` and hand every chunk's text to the sink as it arrives.
    """

    def __init__(self, chat_model: BaseChatModel, pass_sampling_options: bool = True):
        self.chat_model = chat_model
        self.pass_sampling_options = pass_sampling_options

    def _call_kwargs(self, request: GenerationRequest) -> Dict[str, Any]:
        if not self.pass_sampling_options:
            return {}
        return {
            "temperature": request.options.temperature,
            "max_tokens": request.options.max_tokens,
        }

    async def generate(self, request: GenerationRequest) -> str:
        messages = to_langchain_messages(request.messages)
        kwargs = self._call_kwargs(request)

        try:
            if request.stream_sink is None:
                message = await self.chat_model.ainvoke(messages, **kwargs)
                return content_text(message.content)

            full_response = ""
            async for chunk in self.chat_model.astream(messages, **kwargs):
                text = content_text(chunk.content)
                if text:
                    full_response += text
                    await request.stream_sink(text)
            return full_response
        except Exception as e:
            logger.error("Chat model call failed",
                         model=type(self.chat_model).__name__,
                         streaming=request.is_streaming,
                         error=str(e))
            raise GenerationError(f"Chat model call failed: {e}") from e
