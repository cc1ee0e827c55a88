"""Serve the HTTP API with uvicorn."""

from __future__ import annotations

import argparse
import dataclasses
from typing import Any

import uvicorn

from agent_studio.config import StudioConfig
from agent_studio.server import create_app


def cmd_serve(args: argparse.Namespace) -> None:
    config = StudioConfig.from_env()
    if args.simulate:
        config = dataclasses.replace(config, simulate=True)
    uvicorn.run(
        create_app(config),
        host=args.host,
        port=args.port,
        log_level="debug" if args.verbose else "info",
    )


def register_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("serve", help="Serve the HTTP API")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Port")
    parser.add_argument("--simulate", action="store_true", help="Answer locally instead of calling the completion API")
    parser.set_defaults(handler=cmd_serve)
