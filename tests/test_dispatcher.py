"""Tests for concurrent fan-out dispatch.

Verifies that one provider's failure never cancels the others and that the
outcome order always matches the provider order.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from llm_fanout.config import CredentialsConfig, FanoutConfig
from llm_fanout.gateway.dispatcher import FanoutDispatcher, build_adapters
from llm_fanout.gateway.errors import AdapterError, ErrorKind
from llm_fanout.gateway.gemini import GeminiAdapter
from llm_fanout.gateway.huggingface import HuggingFaceAdapter
from llm_fanout.gateway.openrouter import OpenRouterAdapter
from llm_fanout.gateway.types import OutcomeStatus, ProviderGroup, ProviderSpec


def or_spec(provider_id: str) -> ProviderSpec:
    return ProviderSpec(
        id=provider_id,
        group=ProviderGroup.OPENROUTER,
        model_id=f"model/{provider_id.lower()}",
        endpoint="https://openrouter.ai/api/v1/chat/completions",
    )


def fake_adapter(invoke) -> MagicMock:
    adapter = MagicMock()
    adapter.invoke = invoke
    adapter.has_credential = True
    return adapter


class TestBuildAdapters:
    def test_one_adapter_per_group(self):
        config = FanoutConfig(
            credentials=CredentialsConfig(openrouter="sk-or"),
            timeout_seconds=12,
            openrouter_title="Fanout",
        )

        adapters = build_adapters(config)

        assert isinstance(adapters[ProviderGroup.HUGGINGFACE], HuggingFaceAdapter)
        assert isinstance(adapters[ProviderGroup.OPENROUTER], OpenRouterAdapter)
        assert isinstance(adapters[ProviderGroup.GEMINI], GeminiAdapter)
        assert adapters[ProviderGroup.OPENROUTER].has_credential
        assert not adapters[ProviderGroup.HUGGINGFACE].has_credential
        assert not adapters[ProviderGroup.GEMINI].has_credential


class TestDispatchOrdering:
    """Outcome order equals provider order, not completion order."""

    @pytest.mark.asyncio
    async def test_order_preserved_when_first_provider_is_slowest(self):
        delays = {"P1": 0.05, "P2": 0.01, "P3": 0.0}
        completed = []

        async def invoke(prompt, spec):
            await asyncio.sleep(delays[spec.id])
            completed.append(spec.id)
            return f"answer from {spec.id}"

        dispatcher = FanoutDispatcher({ProviderGroup.OPENROUTER: fake_adapter(invoke)})
        providers = [or_spec("P1"), or_spec("P2"), or_spec("P3")]

        outcomes = await dispatcher.dispatch("Hello", providers)

        assert completed == ["P3", "P2", "P1"]
        assert [o.provider_id for o in outcomes] == ["P1", "P2", "P3"]
        assert [o.text for o in outcomes] == [
            "answer from P1",
            "answer from P2",
            "answer from P3",
        ]

    @pytest.mark.asyncio
    async def test_calls_run_concurrently(self):
        """All calls are in flight before any of them finishes."""
        in_flight = 0
        peak = 0

        async def invoke(prompt, spec):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return "ok"

        dispatcher = FanoutDispatcher({ProviderGroup.OPENROUTER: fake_adapter(invoke)})

        await dispatcher.dispatch("Hello", [or_spec(f"P{i}") for i in range(5)])

        assert peak == 5

    @pytest.mark.asyncio
    async def test_empty_worklist(self):
        dispatcher = FanoutDispatcher({})
        assert await dispatcher.dispatch("Hello", []) == []


class TestFailureIsolation:
    """One provider failing never affects the others."""

    @pytest.mark.asyncio
    async def test_adapter_error_becomes_failure_outcome(self):
        async def invoke(prompt, spec):
            if spec.id == "P2":
                raise AdapterError(spec.id, ErrorKind.UPSTREAM_ERROR, "HTTP 400: bad request")
            return f"ok {spec.id}"

        dispatcher = FanoutDispatcher({ProviderGroup.OPENROUTER: fake_adapter(invoke)})

        outcomes = await dispatcher.dispatch("Hello", [or_spec("P1"), or_spec("P2"), or_spec("P3")])

        assert len(outcomes) == 3
        assert outcomes[0].ok and outcomes[2].ok
        failed = outcomes[1]
        assert failed.status == OutcomeStatus.FAILURE
        assert failed.error_kind == ErrorKind.UPSTREAM_ERROR
        assert failed.error_message == "HTTP 400: bad request"
        assert failed.text is None

    @pytest.mark.asyncio
    async def test_slow_failure_does_not_cancel_fast_success(self):
        async def invoke(prompt, spec):
            if spec.id == "P1":
                await asyncio.sleep(0.02)
                raise AdapterError(spec.id, ErrorKind.TRANSPORT_ERROR, "Timeout after 0.02s")
            return "Y"

        dispatcher = FanoutDispatcher({ProviderGroup.OPENROUTER: fake_adapter(invoke)})

        outcomes = await dispatcher.dispatch("Hello", [or_spec("P1"), or_spec("P2")])

        assert outcomes[0].error_kind == ErrorKind.TRANSPORT_ERROR
        assert outcomes[1].text == "Y"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_internal_fault(self):
        async def invoke(prompt, spec):
            if spec.id == "P1":
                raise RuntimeError("adapter bug")
            return "fine"

        dispatcher = FanoutDispatcher({ProviderGroup.OPENROUTER: fake_adapter(invoke)})

        outcomes = await dispatcher.dispatch("Hello", [or_spec("P1"), or_spec("P2")])

        assert outcomes[0].error_kind == ErrorKind.INTERNAL_FAULT
        assert "RuntimeError: adapter bug" in outcomes[0].error_message
        assert outcomes[1].ok

    @pytest.mark.asyncio
    async def test_missing_adapter_for_group(self):
        gemini_spec = ProviderSpec(
            id="Gemini",
            group=ProviderGroup.GEMINI,
            model_id="gemini-2.5-flash",
            endpoint="https://example.invalid",
        )
        invoke = AsyncMock(return_value="ok")
        dispatcher = FanoutDispatcher({ProviderGroup.OPENROUTER: fake_adapter(invoke)})

        outcomes = await dispatcher.dispatch("Hello", [gemini_spec, or_spec("P1")])

        assert outcomes[0].error_kind == ErrorKind.INTERNAL_FAULT
        assert outcomes[1].ok
        invoke.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_latency_recorded(self):
        dispatcher = FanoutDispatcher(
            {ProviderGroup.OPENROUTER: fake_adapter(AsyncMock(return_value="ok"))}
        )

        outcomes = await dispatcher.dispatch("Hello", [or_spec("P1")])

        assert outcomes[0].latency_ms is not None
        assert outcomes[0].latency_ms >= 0


class TestDispatchOverHttp:
    """End-to-end through real adapters with a mock transport."""

    @pytest.mark.asyncio
    async def test_missing_credential_produces_failure_without_network(self, make_transport):
        transport, calls = make_transport()
        config = FanoutConfig(credentials=CredentialsConfig(openrouter="sk-or"))
        dispatcher = FanoutDispatcher(build_adapters(config, transport=transport))
        specs = [s for s in config.provider_specs() if s.id in ("HF_Mistral7B", "OR_Llama3.3")]

        outcomes = await dispatcher.dispatch("Hello", specs)

        assert [o.provider_id for o in outcomes] == ["HF_Mistral7B", "OR_Llama3.3"]
        assert outcomes[0].error_kind == ErrorKind.MISSING_CREDENTIAL
        assert outcomes[1].text == "ok"
        assert len(calls) == 1
        assert calls[0].url.host == "openrouter.ai"
