"""Entry point for the chat-gateway command."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import GatewayConfig, reload_config
from .gateway import ProviderError, build_adapters

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chat-gateway",
        description="Multi-provider LLM completion gateway with ordered fallback.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to chat_gateway.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Accepted after the subcommand too; SUPPRESS keeps a value given before it.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", type=Path, default=argparse.SUPPRESS, help="Path to chat_gateway.yaml"
    )

    serve = subparsers.add_parser("serve", parents=[common], help="Run the HTTP server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    subparsers.add_parser(
        "providers", parents=[common], help="Show the fallback chain and availability"
    )

    models = subparsers.add_parser(
        "models", parents=[common], help="List models offered by available providers"
    )
    models.add_argument("--provider", default=None, help="Only query this provider")

    return parser.parse_args(argv)


def show_providers(config: GatewayConfig) -> int:
    for position, provider in enumerate(config.providers, start=1):
        if not provider.enabled:
            state = "disabled"
        elif provider.has_credential:
            state = "available"
        else:
            state = f"unavailable ({provider.credential_env_var} not set)"
        print(f"{position}. {provider.name:<10} {provider.model:<24} {state}")
    return 0


async def list_models(config: GatewayConfig, provider_name: Optional[str] = None) -> int:
    adapters = build_adapters(config)
    if provider_name is not None:
        adapters = [a for a in adapters if a.name == provider_name]
        if not adapters:
            print(f"Unknown provider: {provider_name}", file=sys.stderr)
            return 2

    exit_code = 0
    for adapter in adapters:
        if not adapter.is_available():
            print(f"{adapter.name}: skipped ({adapter.config.credential_env_var} not set)")
            continue
        try:
            model_ids = await adapter.list_models()
        except ProviderError as e:
            print(f"{adapter.name}: {e}", file=sys.stderr)
            exit_code = 1
            continue
        print(f"{adapter.name}: {len(model_ids)} models")
        for model_id in model_ids:
            print(f"  {model_id}")
    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """Run the chat-gateway command."""
    args = parse_args(argv)
    config = reload_config(args.config)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs full request URLs at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    if args.command == "providers":
        return show_providers(config)
    if args.command == "models":
        return asyncio.run(list_models(config, args.provider))

    import uvicorn

    from .http_server import create_app

    logger.info(f"Starting chat gateway on {args.host}:{args.port}")
    uvicorn.run(create_app(config), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
