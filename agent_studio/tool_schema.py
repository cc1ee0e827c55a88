"""Declarative tool definitions, argument validation and the tool registry.

A tool is a name, a description, an ordered tuple of typed parameters and an
async executor. The registry exports schemas in OpenAI function-calling format
(schemas only, never executors) and runs validated invocations in-process.
Arguments are checked against the exported schema with jsonschema, so the
model and the validator see the same contract.

Usage:
    from agent_studio.tool_schema import ParamSpec, ParamType, ToolRegistry, ToolSpec

    async def lookup(args):
        return {"answer": args["query"].upper()}

    registry = ToolRegistry()
    registry.register(ToolSpec(
        name="lookup",
        description="Look something up.",
        parameters=(ParamSpec("query", ParamType.STRING, "What to look up"),),
        executor=lookup,
    ))
    openai_tools = registry.to_openai_tools()   # ready for litellm tools=
    result = await registry.invoke("lookup", '{"query": "refund"}')
"""

from __future__ import annotations

import json as _json
import logging
import math
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import jsonschema

from agent_studio.errors import ExecutionError, SchemaValidationError, ToolError, UnknownToolError

logger = logging.getLogger(__name__)

ToolExecutor = Callable[[dict[str, Any]], Awaitable[Any]]


class ParamType(str, Enum):
    """JSON Schema primitive types a tool parameter may declare."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


@dataclass(frozen=True)
class ParamSpec:
    """One field of a tool's parameter schema.

    ``default`` only applies to optional parameters; it is filled in when the
    model omits the field.
    """

    name: str
    type: ParamType
    description: str = ""
    required: bool = True
    enum: tuple[str, ...] | None = None
    items: ParamType | None = None
    default: Any = None

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type.value}
        if self.description:
            schema["description"] = self.description
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.type is ParamType.ARRAY:
            schema["items"] = {"type": (self.items or ParamType.STRING).value}
        if not self.required and self.default is not None:
            schema["default"] = self.default
        return schema


@dataclass(frozen=True)
class ToolSpec:
    """A named, schema-described capability the model may invoke."""

    name: str
    description: str
    parameters: tuple[ParamSpec, ...]
    executor: ToolExecutor

    def parameters_schema(self) -> dict[str, Any]:
        """JSON Schema object describing the accepted arguments."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {p.name: p.to_json_schema() for p in self.parameters},
        }
        required = [p.name for p in self.parameters if p.required]
        if required:
            schema["required"] = required
        return schema

    def to_openai_tool(self) -> dict[str, Any]:
        """OpenAI tool schema dict: {"type": "function", "function": {...}}."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def parse_arguments(tool: str, raw: Any) -> dict[str, Any]:
    """Decode a raw argument payload (JSON string, dict or None) into a dict."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = _json.loads(raw)
        except _json.JSONDecodeError as exc:
            raise SchemaValidationError(tool, "<arguments>", f"invalid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise SchemaValidationError(tool, "<arguments>", f"expected object, got {type(raw).__name__}")
    return dict(raw)


def _error_field(error: jsonschema.ValidationError) -> str:
    """Field name a jsonschema error refers to, e.g. ``query`` or ``tags[1]``."""
    if error.validator == "required":
        missing = [name for name in error.validator_value if name not in error.instance]
        return missing[0] if missing else "<arguments>"
    path = list(error.absolute_path)
    if not path:
        return "<arguments>"
    field = str(path[0])
    for part in path[1:]:
        field += f"[{part}]" if isinstance(part, int) else f".{part}"
    return field


def _first_error(spec: ToolSpec, arguments: dict[str, Any]) -> SchemaValidationError | None:
    """Earliest violation in parameter order, or None."""
    validator = jsonschema.Draft202012Validator(spec.parameters_schema())
    order = {p.name: i for i, p in enumerate(spec.parameters)}
    found: list[tuple[int, SchemaValidationError]] = []
    for error in validator.iter_errors(arguments):
        field = _error_field(error)
        message = "missing required field" if error.validator == "required" else error.message
        rank = order.get(field.split("[", 1)[0], len(order))
        found.append((rank, SchemaValidationError(spec.name, field, message)))
    if not found:
        return None
    return min(found, key=lambda item: item[0])[1]


def _coerce(spec: ToolSpec, param: ParamSpec, value: Any) -> Any:
    """Post-schema normalization: integral floats to int, finite numbers only."""
    if param.type is ParamType.ARRAY:
        item_type = param.items or ParamType.STRING
        return [_coerce_scalar(spec, f"{param.name}[{i}]", item_type, v) for i, v in enumerate(value)]
    return _coerce_scalar(spec, param.name, param.type, value)


def _coerce_scalar(spec: ToolSpec, field: str, type_: ParamType, value: Any) -> Any:
    if type_ is ParamType.INTEGER and isinstance(value, float):
        return int(value)
    if type_ is ParamType.NUMBER and isinstance(value, float) and not math.isfinite(value):
        raise SchemaValidationError(spec.name, field, "expected a finite number")
    return value


def validate_arguments(spec: ToolSpec, raw: Any) -> dict[str, Any]:
    """Validate a raw payload against the tool's JSON Schema.

    Null values count as absent. Unrecognized fields are dropped before
    validation, optional fields with defaults are filled in afterwards, and
    integral floats are coerced for integer fields.

    Raises:
        SchemaValidationError: naming the first offending field in parameter order.
    """
    arguments = parse_arguments(spec.name, raw)
    known = {p.name for p in spec.parameters}
    ignored = sorted(k for k in arguments if k not in known)
    if ignored:
        logger.debug("Tool %s: ignoring unrecognized args %s", spec.name, ", ".join(ignored))
    present = {k: v for k, v in arguments.items() if k in known and v is not None}

    error = _first_error(spec, present)
    if error is not None:
        raise error

    validated: dict[str, Any] = {}
    for param in spec.parameters:
        if param.name in present:
            validated[param.name] = _coerce(spec, param, present[param.name])
        elif param.default is not None:
            validated[param.name] = param.default
    return validated


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """Ordered name → ToolSpec mapping with explicit, loud lookup."""

    def __init__(self, specs: Iterable[ToolSpec] = ()) -> None:
        self._tools: dict[str, ToolSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: ToolSpec) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if spec.name in self._tools:
            raise ValueError(f"Duplicate tool name {spec.name!r}")
        self._tools[spec.name] = spec
        logger.debug("Registered tool: %s", spec.name)

    def get(self, name: str) -> ToolSpec:
        """Look up a tool by name. Raises UnknownToolError on miss."""
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def subset(self, names: Iterable[str]) -> ToolRegistry:
        """New registry holding only ``names``, in the given order."""
        return ToolRegistry(self.get(n) for n in names)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def to_openai_tools(self) -> list[dict[str, Any]]:
        """Export schemas in OpenAI function-calling format."""
        return [spec.to_openai_tool() for spec in self._tools.values()]

    async def invoke(self, name: str, raw_arguments: Any) -> Any:
        """Look up, validate and run one tool.

        Raises:
            UnknownToolError: tool not registered.
            SchemaValidationError: arguments don't match the schema.
            ExecutionError: executor failed or returned non-JSON data.
        """
        spec = self.get(name)
        arguments = validate_arguments(spec, raw_arguments)
        try:
            result = await spec.executor(arguments)
        except ToolError:
            raise
        except Exception as exc:
            raise ExecutionError(name, f"{type(exc).__name__}: {exc}", original=exc) from exc

        try:
            _json.dumps(result)
        except (TypeError, ValueError) as exc:
            raise ExecutionError(name, f"result is not JSON-serializable: {exc}", original=exc) from exc
        return result
