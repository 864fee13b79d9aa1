"""Command-line entry point.

    ai-factory                     # stdio transport (default)
    ai-factory --transport http    # HTTP transport
    TRANSPORT=http ai-factory      # same, from the environment
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from shared.config import Settings, get_settings
from shared.logging import configure_logging, get_logger
from orchestrator.gateway import create_gateway
from transports.stdio import StdioServer

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ai-factory",
        description="Uniform tool-call gateway over interchangeable LLM providers",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default=None,
        help="Transport to serve (default: TRANSPORT setting, else stdio)",
    )
    parser.add_argument("--host", default=None, help="HTTP bind host")
    parser.add_argument("--port", type=int, default=None, help="HTTP port")
    parser.add_argument("--log-level", default=None, help="Log level (debug, info, ...)")
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    update: dict = {}
    if args.transport:
        update["transport"] = args.transport
    if args.log_level:
        update["log_level"] = args.log_level
    if args.host or args.port:
        http = settings.http.model_copy(update={
            k: v for k, v in {"host": args.host, "port": args.port}.items() if v
        })
        update["http"] = http
    return settings.model_copy(update=update) if update else settings


async def serve_stdio(settings: Settings) -> None:
    gateway = create_gateway(settings)
    await StdioServer(gateway).serve()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the selected transport."""
    args = build_parser().parse_args(argv)
    settings = _apply_overrides(get_settings(), args)

    configure_logging(settings)

    try:
        if settings.transport == "http":
            from transports.http import run

            logger.info("AI Factory running in HTTP mode")
            run(settings)
        else:
            asyncio.run(serve_stdio(settings))
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logger.error("Server error", error=str(e), exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
