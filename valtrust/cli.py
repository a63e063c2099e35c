"""Command-line entry point: print the dashboard once, or serve the API."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import List, Optional

from valtrust.config import DashboardConfig, load_dashboard_env
from valtrust.dashboard.service import DashboardService
from valtrust.dashboard.view import render_text, resolve_validator
from valtrust.history.store import history_store_from_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="valtrust", description="Solana validator trust dashboard.")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Refresh once and print the dashboard.")
    show.add_argument("--url", default="", help="Dashboard URL carrying ?vote=&name= (or #vote=&name=).")
    show.add_argument("--vote", default=None, help="Validator vote account (overrides --url).")
    show.add_argument("--name", default=None, help="Display name (overrides --url).")
    show.add_argument("--share-base", default=None, help="Page URL used to build the share link.")
    show.add_argument("--json", action="store_true", help="Print the raw dashboard state as JSON.")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


async def _show(config: DashboardConfig, args: argparse.Namespace) -> int:
    ref = resolve_validator(
        config.validator_vote,
        config.validator_name,
        url=args.url,
        vote=args.vote,
        name=args.name,
    )
    service = DashboardService(config, history_store_from_config(config.history))
    state = await service.refresh(ref, page_url=args.share_base or (args.url or None))
    if args.json:
        print(json.dumps(state.to_payload(), indent=2, ensure_ascii=False))
    else:
        print(render_text(state))
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("valtrust.api.app:app", host=args.host, port=args.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    config = load_dashboard_env()
    configure_logging(config.log_level)

    if args.command == "serve":
        return _serve(args)
    return asyncio.run(_show(config, args))


if __name__ == "__main__":
    raise SystemExit(main())
