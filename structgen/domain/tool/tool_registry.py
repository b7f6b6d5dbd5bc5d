from typing import Dict, List, Any, Iterable

from structgen.domain.errors import StructgenError
from structgen.domain.models.generation import CapabilityProvider


class ProviderRegistry:
    """Read-only view of the capability providers configured for an orchestrator"""

    def __init__(self, providers: Iterable[CapabilityProvider] = ()):
        self.providers: Dict[str, CapabilityProvider] = {}
        for provider in providers:
            self.register_provider(provider)

    def register_provider(self, provider: CapabilityProvider):
        """Register a provider; names must be unique"""

        if provider.name in self.providers:
            raise StructgenError(f"Duplicate capability provider name: {provider.name}")
        self.providers[provider.name] = provider

    def __len__(self) -> int:
        return len(self.providers)

    def get_available_providers(self) -> List[CapabilityProvider]:
        """All providers, in configuration order"""

        return list(self.providers.values())

    def describe(self) -> List[Dict[str, Any]]:
        """Name and description of every provider, for prompts and progress events"""

        return [
            {"name": provider.name, "description": provider.description}
            for provider in self.providers.values()
        ]

    @staticmethod
    def resolver_for(field_name: str, address: str) -> CapabilityProvider:
        """Temporary provider used to resolve one input field"""

        return CapabilityProvider(
            name=f"resolver_{field_name}",
            description=f"Temporary server for resolving input field {field_name}",
            address=address
        )
