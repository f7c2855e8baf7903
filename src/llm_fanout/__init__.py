"""LLM Fan-out - send one prompt to several LLM providers and merge the answers.

Usage:
    from llm_fanout import RequestGateway, get_config

    gateway = RequestGateway.from_config(get_config())
    result = await gateway.handle("What's the best approach for error handling?")
    print(result.combined_answer)

For the HTTP server:
    pip install llm-fanout
    llm-fanout serve
"""

from llm_fanout.aggregator import ResultAggregator
from llm_fanout.config import FanoutConfig, get_config, load_config, reload_config
from llm_fanout.gateway import (
    AggregateResult,
    FanoutDispatcher,
    InvocationOutcome,
    ProviderSpec,
)
from llm_fanout.registry import ProviderRegistry
from llm_fanout.request_gateway import RequestGateway

__version__ = "1.0.0"

__all__ = [
    # Core orchestration
    "RequestGateway",
    "FanoutDispatcher",
    "ResultAggregator",
    "ProviderRegistry",
    # Types
    "AggregateResult",
    "InvocationOutcome",
    "ProviderSpec",
    # Configuration
    "FanoutConfig",
    "get_config",
    "load_config",
    "reload_config",
    # Version
    "__version__",
]
