"""Tool registry, dispatch, and result envelopes."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import httpx
from mcp.types import CallToolResult, TextContent, Tool
from pydantic import BaseModel, ValidationError

from heroku_mcp.observability import ToolCallTelemetry, log_tool_call

logger = logging.getLogger(__name__)

ToolHandler = Callable[[httpx.AsyncClient, Any], Awaitable[CallToolResult]]


class DuplicateToolError(ValueError):
    """Raised when two tool definitions share a name."""


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """One named capability: description, typed input, and async handler."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the input model, keyed by the camelCase aliases."""
        return self.input_model.model_json_schema(by_alias=True)

    def to_mcp_tool(self) -> Tool:
        return Tool(name=self.name, description=self.description, inputSchema=self.input_schema)


def text_result(text: str) -> CallToolResult:
    """Build a successful one-block result."""
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=False)


def json_result(data: object) -> CallToolResult:
    """Build a successful result holding indented JSON."""
    return text_result(json.dumps(data, indent=2))


def error_result(message: str) -> CallToolResult:
    """Build an error result."""
    return CallToolResult(content=[TextContent(type="text", text=message)], isError=True)


def result_text(result: CallToolResult) -> str:
    """Join the text blocks of a result."""
    return "\n".join(block.text for block in result.content if isinstance(block, TextContent))


def format_validation_error(error: ValidationError) -> str:
    """Render pydantic errors as ``field: reason`` pairs."""
    parts: list[str] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


class ToolRegistry:
    """Fixed, ordered catalog of tools bound to one Heroku client."""

    def __init__(self, tools: Sequence[ToolDefinition], *, client: httpx.AsyncClient) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise DuplicateToolError(f"Duplicate tool name '{tool.name}'.")
            self._tools[tool.name] = tool
        self._client = client

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def list_tools(self) -> list[Tool]:
        """Return the catalog in registration order."""
        return [tool.to_mcp_tool() for tool in self._tools.values()]

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None) -> CallToolResult:
        """Validate arguments, run the handler, and always return an envelope."""
        started = time.perf_counter()
        tool = self._tools.get(name)
        if tool is None:
            result = error_result(f"Unknown tool: {name}")
            self._record(name, result, started, error_code="unknown_tool")
            return result

        try:
            params = tool.input_model.model_validate(dict(arguments or {}))
        except ValidationError as error:
            result = error_result(
                f"Invalid arguments for {name}: {format_validation_error(error)}"
            )
            self._record(name, result, started, error_code="invalid_arguments")
            return result

        try:
            result = await tool.handler(self._client, params)
        except Exception as error:
            logger.exception("tool call failed: %s", name)
            result = error_result(f"Error: {error}")
            self._record(name, result, started, error_code="tool_exception")
            return result

        self._record(name, result, started, error_code="tool_error" if result.isError else "")
        return result

    @staticmethod
    def _record(name: str, result: CallToolResult, started: float, *, error_code: str) -> None:
        log_tool_call(
            ToolCallTelemetry(
                tool_name=name,
                status="error" if result.isError else "success",
                latency_ms=int((time.perf_counter() - started) * 1000),
                error_code=error_code,
            )
        )
