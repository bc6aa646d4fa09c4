"""Command line entry for the document intake service."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

import uvicorn

from kmrl_docs.api.dependencies import get_orchestrator
from kmrl_docs.core.config import settings
from kmrl_docs.core.exceptions import ApplicationError

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run_server(host: Optional[str] = None, port: Optional[int] = None) -> None:
    from kmrl_docs.api.main import app

    uvicorn.run(app, host=host or settings.HOST, port=port or settings.PORT, log_level=settings.LOG_LEVEL.lower())


async def sync_connector(connector_id: str) -> int:
    records = await get_orchestrator().ingest_from_connector(connector_id)
    for record in records:
        print(f"{record.id}\t{record.category}\t{record.title}")
    logger.info("Synced %s document(s) from %s", len(records), connector_id)
    return len(records)


async def list_documents(as_json: bool = False) -> None:
    records = await get_orchestrator().list_documents()
    if as_json:
        print(json.dumps([record.model_dump(mode="json") for record in records], indent=2))
        return
    for record in records:
        print(f"{record.id}\t{record.status.value}\t{record.category}\t{record.title}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="KMRL document intake")
    parser.add_argument("--log-level", help=f"Logging level (default: {settings.LOG_LEVEL})")
    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP API (default)")
    serve.add_argument("--host", help=f"Bind address (default: {settings.HOST})")
    serve.add_argument("--port", type=int, help=f"Bind port (default: {settings.PORT})")

    sync = commands.add_parser("sync", help="Pull documents from a connector into the store")
    sync.add_argument("connector_id", help="Connector id, e.g. jira or confluence")

    listing = commands.add_parser("list", help="Print stored documents")
    listing.add_argument("--json", action="store_true", help="Print full records as JSON")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        if args.command == "sync":
            asyncio.run(sync_connector(args.connector_id))
        elif args.command == "list":
            asyncio.run(list_documents(as_json=args.json))
        else:
            run_server(getattr(args, "host", None), getattr(args, "port", None))
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user.")
        sys.exit(1)
    except ApplicationError as exc:
        logger.error("%s (%s)", exc.message, exc.code)
        sys.exit(1)


if __name__ == "__main__":
    main()
