"""Command line entry point for the LLM fan-out service.

Usage:
    llm-fanout serve --host 0.0.0.0 --port 8000
    llm-fanout providers
    llm-fanout ask "Explain recursion" --provider openrouter
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from llm_fanout.config import get_effective_config, reload_config
from llm_fanout.gateway.errors import GatewayError
from llm_fanout.request_gateway import RequestGateway


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    config = reload_config(args.config)
    _configure_logging(args.log_level or config.log_level)
    uvicorn.run("llm_fanout.http_server:app", host=args.host, port=args.port)
    return 0


def _cmd_providers(args: argparse.Namespace) -> int:
    config = get_effective_config(args.config)
    gateway = RequestGateway.from_config(config)
    listing = {
        "providers": [
            {
                "id": spec.id,
                "group": spec.group.value,
                "model": spec.model_id,
                "endpoint": spec.endpoint,
            }
            for spec in gateway.registry
        ],
        "credentials": gateway.credential_status(),
    }
    print(json.dumps(listing, indent=2))
    return 0


def _cmd_ask(args: argparse.Namespace) -> int:
    config = get_effective_config(args.config)
    _configure_logging(args.log_level or config.log_level)
    gateway = RequestGateway.from_config(config)
    try:
        result = asyncio.run(gateway.handle(args.prompt, provider=args.provider, model=args.model))
    except GatewayError as e:
        print(json.dumps(e.to_payload(), indent=2), file=sys.stderr)
        return 1
    print(json.dumps(result.to_payload(args.prompt.strip()), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llm-fanout",
        description="Send one prompt to several LLM providers and merge the answers.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to llm_fanout.yaml")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=_cmd_serve)

    providers = subparsers.add_parser("providers", help="List providers and credential status")
    providers.set_defaults(func=_cmd_providers)

    ask = subparsers.add_parser("ask", help="Run one fan-out and print the JSON result")
    ask.add_argument("prompt")
    ask.add_argument("--provider", default=None, help="Provider id or group")
    ask.add_argument("--model", default=None, help="Model id")
    ask.set_defaults(func=_cmd_ask)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the llm-fanout command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
