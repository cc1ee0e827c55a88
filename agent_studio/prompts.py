"""System prompt templates: YAML files whose message bodies are Jinja2.

Each built-in agent profile names one bundled template under
``agent_studio/prompt_templates/``. Optional context blocks (customer
details, content requirements, source language) are conditionals inside the
template, so callers never splice prompt strings together:

    name: sales_assistant
    version: "1.0"
    description: Consultative sales assistant
    messages:
      - role: system
        content: |
          You are an expert sales assistant.
          {% if context is not none %}
          - Company: {{ context.get("company") or "Not provided" }}
          {% endif %}

Templates always receive ``context`` (None when the caller sent none).
Undefined variables raise instead of rendering as empty strings. The
``compact_json`` filter serializes a value as a single line of plain JSON.

    from agent_studio.prompts import load_prompt, render_template

    system_text = render_template("customer_support", context={"plan": "pro"})
    template = load_prompt("my_prompts/triage.yaml")
    messages = template.render(context=None)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from jinja2 import Environment, StrictUndefined

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "prompt_templates"

_env = Environment(undefined=StrictUndefined)


def _compact_json(value: Any) -> str:
    """Key order kept, no HTML escaping, no whitespace between tokens."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


_env.filters["compact_json"] = _compact_json


@dataclass(frozen=True)
class PromptTemplate:
    """A parsed prompt file. ``messages`` holds (role, unrendered body) pairs."""

    name: str
    messages: tuple[tuple[str, str], ...]
    version: str = ""
    description: str = ""
    source: Path | None = None

    def render(self, **context: Any) -> list[dict[str, str]]:
        """Render every message body with ``context``.

        Raises:
            jinja2.UndefinedError: A body references a variable not in context.
        """
        rendered = [
            {"role": role, "content": _env.from_string(body).render(**context).strip()}
            for role, body in self.messages
        ]
        logger.debug(
            "Rendered prompt %s v%s (%d chars)",
            self.name, self.version or "?", sum(len(m["content"]) for m in rendered),
        )
        return rendered


def _parse_messages(raw: Any, path: Path) -> tuple[tuple[str, str], ...]:
    if not raw:
        raise ValueError(f"Prompt file has no 'messages': {path}")
    if not isinstance(raw, list):
        raise ValueError(f"'messages' must be a list in {path}, got {type(raw).__name__}")
    parsed: list[tuple[str, str]] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict) or "role" not in entry or "content" not in entry:
            raise ValueError(f"messages[{i}] in {path} needs 'role' and 'content'")
        parsed.append((str(entry["role"]), str(entry["content"])))
    return tuple(parsed)


def load_prompt(path: str | Path) -> PromptTemplate:
    """Parse a prompt file. Relative paths resolve against the working directory.

    Raises:
        FileNotFoundError: No such file.
        yaml.YAMLError: Malformed YAML.
        ValueError: The document is not a mapping or its messages are malformed.
    """
    path = Path(path)
    if not path.is_absolute():
        path = Path.cwd() / path
    if not path.is_file():
        raise FileNotFoundError(f"Prompt template not found: {path}")

    doc = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(doc, dict):
        raise ValueError(f"Prompt file must be a mapping, got {type(doc).__name__}: {path}")

    return PromptTemplate(
        name=str(doc.get("name") or path.stem),
        messages=_parse_messages(doc.get("messages"), path),
        version=str(doc.get("version") or ""),
        description=str(doc.get("description") or ""),
        source=path,
    )


def render_prompt(template_path: str | Path, **context: Any) -> list[dict[str, str]]:
    """Load and render a prompt file into OpenAI chat messages."""
    return load_prompt(template_path).render(**context)


def render_template(name: str, **context: Any) -> str:
    """Render the system message of the bundled template ``name``.

    Raises:
        FileNotFoundError: No bundled template has that name.
        ValueError: The template does not start with a system message.
    """
    template = load_prompt(TEMPLATE_DIR / f"{name}.yaml")
    if template.messages[0][0] != "system":
        raise ValueError(f"Template {name!r} must start with a system message")
    return template.render(**context)[0]["content"]
