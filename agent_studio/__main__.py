"""Command line for agent_studio.

Usage:
    python -m agent_studio profiles                       # list built-in agents
    python -m agent_studio profiles --format json

    python -m agent_studio run sales "We have 10 people on reporting"
    python -m agent_studio run customer-support "I want a refund" --context '{"plan": "pro"}'
    python -m agent_studio run agents/helpdesk.yaml "Hi" --format json
    python -m agent_studio run code-review "Review: eval(x)" --simulate

    python -m agent_studio stream content-writer "Write about solar panels"

    python -m agent_studio serve --port 8000
"""

from __future__ import annotations

import argparse
import sys

from agent_studio.cli import (
    register_profiles_parser,
    register_run_parser,
    register_serve_parser,
    register_stream_parser,
)
from agent_studio.cli.common import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="agent_studio",
        description="Run tool-calling agents from the command line or over HTTP",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    register_profiles_parser(sub)
    register_run_parser(sub)
    register_stream_parser(sub)
    register_serve_parser(sub)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.verbose)
    args.handler(args)


if __name__ == "__main__":
    main()
