from abc import ABC, abstractmethod
from typing import Any, Dict, List

from structgen.domain.models.generation import (
    Capability, CapabilityProvider, GenerationRequest, RunRecord
)


class GenerationService(ABC):
    """Language-generation backend.

    ``generate`` returns the full response text. When the request carries a
    ``stream_sink`` the implementation awaits it with each text chunk as the
    response arrives and still returns the complete text at the end.
    """

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> str:
        pass


class CapabilityClient(ABC):
    """Transport to capability providers"""

    @abstractmethod
    async def discover(self, provider: CapabilityProvider) -> List[Capability]:
        """List the capabilities a provider exposes"""
        pass

    @abstractmethod
    async def invoke(self, provider: CapabilityProvider, name: str, parameters: Dict[str, Any]) -> Any:
        """Invoke a capability and return its raw result"""
        pass


class RunReporter(ABC):
    """Receives a record of every finished run"""

    @abstractmethod
    async def report(self, record: RunRecord) -> None:
        pass
