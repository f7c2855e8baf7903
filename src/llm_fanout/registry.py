"""Read-only registry of the providers a fan-out can target."""

from typing import Iterable, List, Optional, Tuple

from llm_fanout.gateway.errors import UnknownProvider
from llm_fanout.gateway.types import ProviderSpec


class ProviderRegistry:
    """Ordered, immutable collection of ProviderSpec.

    Safe to share across concurrent requests: nothing mutates it after
    construction.
    """

    def __init__(self, providers: Iterable[ProviderSpec]):
        specs = tuple(providers)
        ids = [s.id for s in specs]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate provider ids: {', '.join(duplicates)}")
        self._providers: Tuple[ProviderSpec, ...] = specs

    @classmethod
    def from_config(cls, config) -> "ProviderRegistry":
        return cls(config.provider_specs())

    @property
    def providers(self) -> Tuple[ProviderSpec, ...]:
        return self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self):
        return iter(self._providers)

    def get(self, provider_id: str) -> Optional[ProviderSpec]:
        for spec in self._providers:
            if spec.id == provider_id:
                return spec
        return None

    def select(self, provider: Optional[str] = None, model: Optional[str] = None) -> List[ProviderSpec]:
        """Restrict the worklist to the requested provider and/or model.

        Args:
            provider: A provider id or a group name (case-insensitive).
            model: A model id or provider id (case-insensitive).

        Returns:
            Matching specs in registry order; every spec when both are None.

        Raises:
            UnknownProvider: If the filters match nothing.
        """
        if not provider and not model:
            return list(self._providers)

        selected = list(self._providers)
        if provider:
            wanted = provider.strip().lower()
            selected = [
                s for s in selected if s.id.lower() == wanted or s.group.value == wanted
            ]
        if model:
            wanted = model.strip().lower()
            selected = [
                s for s in selected if s.model_id.lower() == wanted or s.id.lower() == wanted
            ]

        if not selected:
            raise UnknownProvider(provider=provider, model=model)
        return selected
