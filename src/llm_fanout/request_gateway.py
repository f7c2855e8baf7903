"""Request gateway: validation and wiring for one fan-out request.

The gateway validates the prompt, resolves the provider worklist, checks for
global misconfiguration, then hands off to the dispatcher and aggregator. It
adds no behavior of its own beyond that, so everything interesting can be
tested without HTTP.
"""

import logging
from typing import Dict, List, Optional, Sequence

from llm_fanout.aggregator import ResultAggregator
from llm_fanout.config import CREDENTIAL_ENV_VARS, FanoutConfig
from llm_fanout.gateway.dispatcher import FanoutDispatcher, build_adapters
from llm_fanout.gateway.errors import ConfigurationError, EmptyPrompt
from llm_fanout.gateway.types import AggregateResult, ProviderGroup, ProviderSpec
from llm_fanout.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class RequestGateway:
    """Entry point for one fan-out request.

    Example:
        gateway = RequestGateway.from_config(get_config())
        result = await gateway.handle("Hello")
        print(result.combined_answer)
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        dispatcher: FanoutDispatcher,
        aggregator: Optional[ResultAggregator] = None,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.aggregator = aggregator or ResultAggregator()

    @classmethod
    def from_config(cls, config: FanoutConfig, transport=None) -> "RequestGateway":
        """Build a gateway and its collaborators from configuration.

        Args:
            config: Immutable process configuration.
            transport: Optional httpx transport passed to every adapter.
        """
        return cls(
            registry=ProviderRegistry.from_config(config),
            dispatcher=FanoutDispatcher(build_adapters(config, transport=transport)),
            aggregator=ResultAggregator(preview_chars=config.fallback_preview_chars),
        )

    def _has_credential(self, group: ProviderGroup) -> bool:
        adapter = self.dispatcher.adapter_for(group)
        return adapter is not None and adapter.has_credential

    def missing_credentials(self, providers: Sequence[ProviderSpec]) -> List[str]:
        """Env var names of the credentials the worklist needs but lacks."""
        missing: List[str] = []
        for spec in providers:
            env_var = CREDENTIAL_ENV_VARS[spec.group]
            if not self._has_credential(spec.group) and env_var not in missing:
                missing.append(env_var)
        return missing

    def credential_status(self) -> Dict[str, str]:
        """Map every canonical credential env var name to OK or MISSING."""
        return {
            env_var: "OK" if self._has_credential(group) else "MISSING"
            for group, env_var in CREDENTIAL_ENV_VARS.items()
        }

    async def handle(
        self,
        raw_prompt: Optional[str],
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ) -> AggregateResult:
        """Validate, fan out and aggregate one request.

        Args:
            raw_prompt: Prompt as received from the caller.
            provider: Optional provider id or group name to restrict to.
            model: Optional model id to restrict to.

        Returns:
            AggregateResult for the selected providers.

        Raises:
            EmptyPrompt: Prompt missing or blank.
            ConfigurationError: Empty registry, or no credential configured
                for any selected provider.
            UnknownProvider: provider/model matched nothing.
        """
        prompt = (raw_prompt or "").strip()
        if not prompt:
            raise EmptyPrompt()

        if len(self.registry) == 0:
            raise ConfigurationError("No providers are configured.")

        providers = self.registry.select(provider=provider, model=model)

        missing = self.missing_credentials(providers)
        if not any(self._has_credential(spec.group) for spec in providers):
            raise ConfigurationError("Missing API keys in environment variables.", missing=missing)
        if missing:
            logger.warning(f"Running fan-out without credentials: {', '.join(missing)}")

        outcomes = await self.dispatcher.dispatch(prompt, providers)
        result = self.aggregator.aggregate(outcomes)
        logger.info(
            f"Fan-out finished: {result.success_count}/{len(outcomes)} providers succeeded"
        )
        return result
