"""
CLI entrypoint for CAS Store.

    cas-store serve --port 8081 --node-id node-1 --data-dir ./data
    cas-store dispatch --backend http://localhost:8081 --backend http://localhost:8082
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

import uvicorn

from cas_store import __version__
from cas_store.infrastructure.config import Config, get_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cas-store",
        description="Content-addressable object store node and round-robin dispatcher.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run a storage node.")
    serve_parser.add_argument("--host", help="Bind address.")
    serve_parser.add_argument("--port", type=int, help="Listen port.")
    serve_parser.add_argument("--node-id", dest="node_id", help="Node identifier for logs.")
    serve_parser.add_argument("--data-dir", dest="data_dir", type=Path, help="Root storage directory.")
    serve_parser.add_argument("--metadata-url", dest="metadata_url", help="SQLAlchemy URL for the index.")

    dispatch_parser = subparsers.add_parser("dispatch", help="Run the round-robin dispatcher.")
    dispatch_parser.add_argument("--host", help="Bind address.")
    dispatch_parser.add_argument("--port", type=int, help="Listen port.")
    dispatch_parser.add_argument(
        "--backend",
        action="append",
        dest="backends",
        default=None,
        help="Backend base URL; repeat flag for each node, in rotation order.",
    )
    return parser


def _override(model, **updates):
    updates = {k: v for k, v in updates.items() if v is not None}
    return model.model_copy(update=updates) if updates else model


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Layer command line flags over environment configuration."""
    if args.command == "serve":
        return config.model_copy(
            update={
                "server": _override(
                    config.server, host=args.host, port=args.port, node_id=args.node_id
                ),
                "storage": _override(config.storage, data_dir=args.data_dir),
                "metadata": _override(config.metadata, url=args.metadata_url),
            }
        )
    return config.model_copy(
        update={
            "dispatcher": _override(
                config.dispatcher, host=args.host, port=args.port, backends=args.backends
            ),
        }
    )


def run_serve(config: Config) -> None:
    from cas_store.adapters.inbound.rest_api import create_app
    from cas_store.infrastructure.container import Container

    container = Container.create(config)
    container.logger.info(
        "storage_node_starting",
        node_id=config.server.node_id,
        data_dir=str(config.storage.data_dir),
        port=config.server.port,
    )
    app = create_app(container.object_service, container.config, container.metrics)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.observability.log_level.lower(),
    )


def run_dispatch(config: Config) -> None:
    from cas_store.adapters.inbound.dispatcher import create_dispatcher_app
    from cas_store.infrastructure.logging import setup_logging

    setup_logging(config.observability.log_level, config.observability.log_format)
    app = create_dispatcher_app(
        config.dispatcher.backends,
        timeout_seconds=config.dispatcher.timeout_seconds,
    )
    uvicorn.run(
        app,
        host=config.dispatcher.host,
        port=config.dispatcher.port,
        log_level=config.observability.log_level.lower(),
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = apply_overrides(get_config(), args)

    if args.command == "serve":
        run_serve(config)
    elif args.command == "dispatch":
        if not config.dispatcher.backends:
            parser.error("dispatch requires at least one --backend (or CAS_STORE_DISPATCHER__BACKENDS)")
        run_dispatch(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
