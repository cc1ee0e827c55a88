"""CLI command modules for ``python -m agent_studio``."""

from agent_studio.cli.profiles import cmd_profiles, register_parser as register_profiles_parser
from agent_studio.cli.run import cmd_run, register_parser as register_run_parser
from agent_studio.cli.serve import cmd_serve, register_parser as register_serve_parser
from agent_studio.cli.stream import cmd_stream, register_parser as register_stream_parser

__all__ = [
    "cmd_profiles",
    "cmd_run",
    "cmd_serve",
    "cmd_stream",
    "register_profiles_parser",
    "register_run_parser",
    "register_serve_parser",
    "register_stream_parser",
]
