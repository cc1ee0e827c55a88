"""User-defined agent configurations.

A custom agent is what the studio's builder produces: a name, free-form
instructions, a model and a list of catalogue tools. Configs arrive as HTTP
bodies or as JSON/YAML files and are validated before they become an
``AgentProfile``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from agent_studio.profiles import AgentProfile
from agent_studio.tools import ToolId

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_MAX_STEPS = 5
MAX_CUSTOM_STEPS = 20


class AgentConfigValidationError(ValueError):
    """Raised when a custom agent config fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        joined = "; ".join(errors) if errors else "unknown validation error"
        super().__init__(f"Agent config validation failed: {joined}")


class CustomAgentConfig(BaseModel):
    """Builder-side agent definition. Field aliases match the builder's JSON."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    name: str = Field(min_length=1, max_length=100)
    instructions: str = Field(min_length=1)
    model: str | None = None
    tools: list[str] = Field(default_factory=list)
    handoffs: list[str] = Field(default_factory=list)
    max_steps: int = Field(DEFAULT_CUSTOM_MAX_STEPS, ge=1, le=MAX_CUSTOM_STEPS, alias="maxSteps")
    temperature: float | None = Field(None, ge=0.0, le=2.0)

    @field_validator("name", "instructions")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @field_validator("tools")
    @classmethod
    def _known_tools(cls, value: list[str]) -> list[str]:
        known = {t.value for t in ToolId}
        unknown = [name for name in value if name not in known]
        if unknown:
            raise ValueError(f"unknown tools: {', '.join(unknown)}")
        # Keep first occurrence order, drop repeats.
        return list(dict.fromkeys(value))

    def to_profile(self) -> AgentProfile:
        return AgentProfile(
            agent_type="custom",
            display_name=self.name,
            instructions=self.instructions,
            tools=tuple(ToolId(name) for name in self.tools),
            max_steps=self.max_steps,
            model=self.model,
            temperature=self.temperature,
            handoffs=tuple(self.handoffs),
        )


def _load_from_path(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Agent config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix == ".json":
        data = json.loads(text)
    elif suffix in {".yaml", ".yml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        raise ValueError(
            f"Unsupported agent config extension {suffix!r} for {path}. "
            "Use .json, .yaml, or .yml."
        )
    if not isinstance(data, dict):
        raise ValueError(f"Agent config root must be a mapping. Got: {type(data).__name__}")
    return data


def load_agent_config(source: str | Path | Mapping[str, Any]) -> CustomAgentConfig:
    """Load and validate a custom agent config from a file path or mapping.

    Raises:
        AgentConfigValidationError: If the config fails validation.
        FileNotFoundError: If a path is given and doesn't exist.
        ValueError: If the file is not valid JSON/YAML or its root is not a mapping.
    """
    if isinstance(source, Mapping):
        raw = dict(source)
    else:
        raw = _load_from_path(Path(source).expanduser())

    try:
        config = CustomAgentConfig.model_validate(raw)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise AgentConfigValidationError(errors) from exc

    logger.debug("Loaded custom agent %r with tools %s", config.name, config.tools)
    return config
