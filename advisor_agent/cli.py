"""Command line entry point.

Usage:
    # Run the flow that handles a message, as advisor 1
    python -m advisor_agent run "client details for Mario Rossi" --caller 1

    # Force a specific flow
    python -m advisor_agent run "anything" --caller 1 --flow financial_news

    # List the registered flows in match order
    python -m advisor_agent flows

    # Serve the HTTP API
    python -m advisor_agent serve
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from advisor_agent.config import settings
from advisor_agent.service import create_service

log = logging.getLogger("advisor_agent.cli")


async def _run(args: argparse.Namespace) -> int:
    service = create_service(settings)
    response = await service.handle(
        args.message,
        caller_id=args.caller,
        conversation_id=args.conversation,
        flow_id=args.flow,
    )
    if args.json:
        print(json.dumps(response.model_dump(mode="json"), indent=2, ensure_ascii=False))
    elif response.success:
        print(response.result.response if response.result and response.result.response else "")
    else:
        print(f"Error: {response.error}", file=sys.stderr)
    return 0 if response.success else 1


def _flows() -> int:
    service = create_service(settings)
    for flow in service.registry:
        print(f"{flow.id:<24} {flow.name}  [{', '.join(flow.trigger.keywords)}]")
    return 0


def _serve() -> int:
    import uvicorn

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )
    uvicorn.run(
        "advisor_agent.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run advisor agent flows",
        prog="python -m advisor_agent",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run the flow that handles a message")
    run.add_argument("message", help="Message text")
    run.add_argument("--caller", type=int, required=True, help="Advisor id of the caller")
    run.add_argument("--flow", default=None, help="Explicit flow id")
    run.add_argument("--conversation", default="", help="Conversation id")
    run.add_argument("--json", action="store_true", help="Print the full response as JSON")

    sub.add_parser("flows", help="List registered flows")
    sub.add_parser("serve", help="Serve the HTTP API with uvicorn")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
        stream=sys.stderr,
    )

    if args.command == "run":
        return asyncio.run(_run(args))
    if args.command == "flows":
        return _flows()
    return _serve()


if __name__ == "__main__":
    sys.exit(main())
