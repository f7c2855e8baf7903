"""Tests for the llm-fanout command line."""

import json
from unittest.mock import AsyncMock, patch

import pytest

from llm_fanout.aggregator import ResultAggregator
from llm_fanout.cli import build_parser, main
from llm_fanout.gateway.errors import ConfigurationError
from llm_fanout.gateway.types import InvocationOutcome


class TestParser:
    def test_serve_defaults(self):
        args = build_parser().parse_args(["serve"])

        assert args.host == "127.0.0.1"
        assert args.port == 8000
        assert args.config is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestProvidersCommand:
    def test_lists_providers_and_credentials(self, capsys, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or")

        assert main(["providers"]) == 0

        listing = json.loads(capsys.readouterr().out)
        assert [p["id"] for p in listing["providers"]][0] == "Gemini"
        assert listing["credentials"]["OPENROUTER_API_KEY"] == "OK"
        assert listing["credentials"]["HF_API_KEY"] == "MISSING"
        assert "sk-or" not in json.dumps(listing)


class TestAskCommand:
    def test_prints_payload(self, capsys):
        result = ResultAggregator().aggregate([InvocationOutcome.success("P1", "A")])

        with patch(
            "llm_fanout.cli.RequestGateway.handle", new_callable=AsyncMock
        ) as mock_handle:
            mock_handle.return_value = result
            assert main(["ask", "  Hello  ", "--provider", "openrouter"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["prompt"] == "Hello"
        assert payload["combinedAnswer"] == "--- P1 ---\nA"
        assert mock_handle.await_args.kwargs["provider"] == "openrouter"

    def test_gateway_error_exits_nonzero(self, capsys):
        error = ConfigurationError("Missing API keys in environment variables.", missing=["HF_API_KEY"])

        with patch(
            "llm_fanout.cli.RequestGateway.handle", new_callable=AsyncMock, side_effect=error
        ):
            assert main(["ask", "Hello"]) == 1

        err = json.loads(capsys.readouterr().err)
        assert err["missing"] == ["HF_API_KEY"]
