from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import structlog

from structgen.domain.codec.tag_codec import decode, encode
from structgen.domain.errors import GenerationError, StructgenError
from structgen.domain.models.generation import (
    ChatMessage, GenerationRequest, MessageRole, SamplingOptions
)
from structgen.domain.orchestration.interfaces import GenerationService
from structgen.infrastructure.config.settings import get_settings

logger = structlog.get_logger(__name__)


def wrap_request(prompt: str) -> str:
    return f"<request>{prompt}</request>"


class BaseDecisionAgent(ABC):
    """Base class for the small LLM-driven decisions taken during a run"""

    name: str = "decision"

    def __init__(self, generation: GenerationService, options: Optional[SamplingOptions] = None):
        self.generation = generation
        if options is None:
            settings = get_settings()
            options = SamplingOptions(
                temperature=settings.decision_temperature,
                max_tokens=settings.default_max_tokens
            )
        self.options = options

    @abstractmethod
    async def decide(self, *args, **kwargs) -> Any:
        """Take the decision, falling back to the agent's default on bad output"""
        pass

    async def ask(self, system_prompt: str, prompt: Dict[str, Any]) -> Optional[Any]:
        """Send an encoded prompt object and decode the answer.

        Returns None when the service answers with empty text. Transport
        failures are raised as GenerationError.
        """

        request = GenerationRequest(
            messages=[
                ChatMessage(role=MessageRole.SYSTEM, content=system_prompt),
                ChatMessage(role=MessageRole.USER, content=wrap_request(encode(prompt))),
            ],
            options=self.options
        )

        try:
            response = await self.generation.generate(request)
        except StructgenError:
            raise
        except Exception as e:
            logger.error("Decision call failed", agent=self.name, error=str(e))
            raise GenerationError(f"{self.name} call failed: {e}", stage=self.name) from e

        if not response:
            return None
        return decode(response)

    @staticmethod
    def as_names(value: Any) -> list:
        """Normalize a decoded name or list of names"""

        if value is None or value == "":
            return []
        if isinstance(value, list):
            return [str(item) for item in value if item not in (None, "")]
        return [str(value)]
