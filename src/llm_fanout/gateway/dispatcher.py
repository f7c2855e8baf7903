"""Concurrent fan-out of one prompt to many providers.

The dispatcher launches every provider call at once and waits for all of
them. A provider failure is turned into a Failure outcome in place, so it can
never cancel or fail the other in-flight calls. Output order always matches
input order, whatever order the calls complete in.
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence

import httpx

from .base import BaseAdapter
from .errors import AdapterError, ErrorKind
from .gemini import GeminiAdapter
from .huggingface import HuggingFaceAdapter
from .openrouter import OpenRouterAdapter
from .types import InvocationOutcome, ProviderGroup, ProviderSpec

if TYPE_CHECKING:
    from ..config import FanoutConfig

logger = logging.getLogger(__name__)


def build_adapters(
    config: "FanoutConfig",
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[ProviderGroup, BaseAdapter]:
    """Create one adapter per provider group from configuration.

    Args:
        config: Process configuration (credentials and limits).
        transport: Optional httpx transport shared by all adapters.

    Returns:
        Dict mapping provider group to its adapter.
    """
    common = {
        "timeout": config.timeout_seconds,
        "max_detail_chars": config.max_detail_chars,
        "transport": transport,
    }
    creds = config.credentials
    return {
        ProviderGroup.HUGGINGFACE: HuggingFaceAdapter(
            creds.huggingface, max_tokens=config.hf_max_tokens, **common
        ),
        ProviderGroup.OPENROUTER: OpenRouterAdapter(
            creds.openrouter,
            referer=config.openrouter_referer,
            title=config.openrouter_title,
            **common,
        ),
        ProviderGroup.GEMINI: GeminiAdapter(creds.gemini, **common),
    }


class FanoutDispatcher:
    """Issues one adapter call per provider concurrently.

    Example:
        dispatcher = FanoutDispatcher(build_adapters(config))
        outcomes = await dispatcher.dispatch("Hello", registry.providers)
    """

    def __init__(self, adapters: Mapping[ProviderGroup, BaseAdapter]):
        self._adapters = dict(adapters)

    def adapter_for(self, group: ProviderGroup) -> Optional[BaseAdapter]:
        return self._adapters.get(group)

    async def _invoke_one(self, prompt: str, spec: ProviderSpec) -> InvocationOutcome:
        """Run one provider call and convert any failure into an outcome."""
        start_time = time.monotonic()

        def elapsed_ms() -> int:
            return int((time.monotonic() - start_time) * 1000)

        adapter = self.adapter_for(spec.group)
        if adapter is None:
            return InvocationOutcome.failure(
                spec.id,
                ErrorKind.INTERNAL_FAULT,
                f"No adapter registered for group {spec.group.value}",
                latency_ms=0,
            )

        try:
            text = await adapter.invoke(prompt, spec)
        except AdapterError as e:
            logger.warning(f"Provider {spec.id} failed: {e.kind}: {e.detail}")
            return InvocationOutcome.failure(spec.id, e.kind, e.detail, latency_ms=elapsed_ms())
        except Exception as e:
            logger.exception(f"Unexpected error from provider {spec.id}")
            return InvocationOutcome.failure(
                spec.id,
                ErrorKind.INTERNAL_FAULT,
                f"{type(e).__name__}: {e}",
                latency_ms=elapsed_ms(),
            )

        latency_ms = elapsed_ms()
        logger.info(f"Provider {spec.id} answered in {latency_ms}ms ({len(text)} chars)")
        return InvocationOutcome.success(spec.id, text, latency_ms=latency_ms)

    async def dispatch(
        self, prompt: str, providers: Sequence[ProviderSpec]
    ) -> List[InvocationOutcome]:
        """Send ``prompt`` to every provider concurrently.

        Args:
            prompt: User prompt, already validated.
            providers: Worklist in the order results should be reported.

        Returns:
            One outcome per provider, same length and order as ``providers``.
        """
        logger.debug(f"Dispatching prompt to {len(providers)} providers")
        tasks = [self._invoke_one(prompt, spec) for spec in providers]
        # gather preserves argument order regardless of completion order
        return list(await asyncio.gather(*tasks))
