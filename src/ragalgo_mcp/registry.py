"""
Tool registry and request dispatcher.

Every tool is a (name, description, parameter model, async handler) entry.
Handlers are registered with the ``ToolRegistry.tool`` decorator:

    registry = ToolRegistry()

    @registry.tool("get_trends", TrendsParams)
    async def get_trends(params: TrendsParams) -> Dict[str, Any]:
        \"\"\"Description shown to the agent.\"\"\"
        return await client.call_api("trends", params.model_dump(exclude_none=True))

``call_tool`` never raises. Unknown names, invalid arguments and handler
exceptions all come back as a ``ToolFailure`` so one bad call cannot tear
down the session that carried it.
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type, Union

from mcp import types
from pydantic import BaseModel, ValidationError

from ragalgo_mcp.errors import InvalidArgumentsError, UnknownToolError

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolSpec:
    """Immutable descriptor for one tool."""

    name: str
    description: str
    params_model: Type[BaseModel]
    handler: ToolHandler

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.params_model.model_json_schema()

    def parse_arguments(self, arguments: Any) -> BaseModel:
        try:
            return self.params_model.model_validate(arguments)
        except ValidationError as e:
            raise InvalidArgumentsError(self.name, _describe_validation_error(e)) from e

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.input_schema)


@dataclass(frozen=True)
class ToolSuccess:
    payload: Any

    def to_text(self) -> str:
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload, indent=2, ensure_ascii=False)

    def to_call_tool_result(self) -> types.CallToolResult:
        return types.CallToolResult(content=[types.TextContent(type="text", text=self.to_text())], isError=False)


@dataclass(frozen=True)
class ToolFailure:
    message: str

    def to_text(self) -> str:
        return f"Error: {self.message}"

    def to_call_tool_result(self) -> types.CallToolResult:
        return types.CallToolResult(content=[types.TextContent(type="text", text=self.to_text())], isError=True)


ToolResult = Union[ToolSuccess, ToolFailure]


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{field}: {item['msg']}")
    return "; ".join(parts)


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if not spec.name:
            raise ValueError(f"Tool handler {spec.handler!r} has no name")
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec
        logger.debug("Registered tool: %s", spec.name)

    def tool(
        self,
        name: str,
        params_model: Type[BaseModel],
        description: Optional[str] = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Register the decorated coroutine as tool ``name``.

        The description defaults to the handler's docstring.
        """

        def decorator(func: ToolHandler) -> ToolHandler:
            text = description if description is not None else inspect.cleandoc(func.__doc__ or "")
            self.register(ToolSpec(name=name, description=text, params_model=params_model, handler=func))
            return func

        return decorator

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def list_tools(self) -> List[ToolSpec]:
        return list(self._tools.values())

    def to_mcp_tools(self) -> List[types.Tool]:
        return [spec.to_mcp_tool() for spec in self._tools.values()]

    async def call_tool(self, name: str, arguments: Optional[Any]) -> ToolResult:
        """Validate ``arguments`` for tool ``name``, run it and wrap the outcome."""
        try:
            spec = self.get(name)
            params = spec.parse_arguments(arguments if arguments is not None else {})
            payload = await spec.handler(params)
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e)
            return ToolFailure(str(e))
        return ToolSuccess(payload)
