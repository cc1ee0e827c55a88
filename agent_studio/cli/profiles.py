"""List the built-in agent profiles."""

from __future__ import annotations

import argparse
import json
from typing import Any

from agent_studio.profiles import list_profiles


def cmd_profiles(args: argparse.Namespace) -> None:
    profiles = list_profiles()

    if args.format == "json":
        data = [
            {
                "agentType": p.agent_type,
                "name": p.display_name,
                "tools": p.tool_names,
                "maxSteps": p.max_steps,
            }
            for p in profiles
        ]
        print(json.dumps(data, indent=2))
        return

    headers = ["Type", "Name", "Steps", "Tools"]
    rows = [(p.agent_type, p.display_name, str(p.max_steps), ", ".join(p.tool_names)) for p in profiles]
    col_widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]

    fmt = "  ".join(f"{{:<{w}}}" for w in col_widths)
    print(fmt.format(*headers))
    print("─" * (sum(col_widths) + 2 * (len(col_widths) - 1)))
    for row in rows:
        print(fmt.format(*row))


def register_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("profiles", help="List built-in agent profiles")
    parser.add_argument("--format", choices=["table", "json"], default="table", help="Output format")
    parser.set_defaults(handler=cmd_profiles)
