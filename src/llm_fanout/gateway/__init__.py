"""Provider gateway layer for the LLM fan-out service.

This package holds everything that talks to upstream LLM vendors:

- Registry and outcome types
- One adapter per vendor family (Hugging Face, OpenRouter, Gemini)
- Named response extraction strategies
- The concurrent fan-out dispatcher

Example usage:
    from llm_fanout.gateway import FanoutDispatcher, build_adapters

    dispatcher = FanoutDispatcher(build_adapters(config))
    outcomes = await dispatcher.dispatch("Hello", providers)
"""

from .types import (
    AggregateResult,
    AuthMode,
    InvocationOutcome,
    OutcomeStatus,
    ProviderGroup,
    ProviderSpec,
)
from .errors import (
    AdapterError,
    ConfigurationError,
    EmptyPrompt,
    ErrorKind,
    GatewayError,
    InternalFault,
    InvalidRequest,
    UnknownProvider,
)
from .base import BaseAdapter
from .huggingface import HuggingFaceAdapter
from .openrouter import OpenRouterAdapter
from .gemini import GeminiAdapter
from .dispatcher import FanoutDispatcher, build_adapters

__all__ = [
    # Types
    "AggregateResult",
    "AuthMode",
    "InvocationOutcome",
    "OutcomeStatus",
    "ProviderGroup",
    "ProviderSpec",
    # Errors
    "AdapterError",
    "ConfigurationError",
    "EmptyPrompt",
    "ErrorKind",
    "GatewayError",
    "InternalFault",
    "InvalidRequest",
    "UnknownProvider",
    # Adapters
    "BaseAdapter",
    "HuggingFaceAdapter",
    "OpenRouterAdapter",
    "GeminiAdapter",
    # Dispatch
    "FanoutDispatcher",
    "build_adapters",
]
