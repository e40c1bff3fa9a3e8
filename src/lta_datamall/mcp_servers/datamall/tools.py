from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from mcp import types
from mcp.shared.exceptions import McpError
from pydantic import ValidationError

from lta_datamall.sources.datamall import DataMallClient, DataMallError

from .catalog import BINDINGS_BY_NAME, ToolBinding, list_tool_descriptors
from .schemas import ToolArgs


logger = logging.getLogger(__name__)

ERROR_PREFIX = "LTA API error: "


def text_result(text: str, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=is_error)


def format_body(body: Any) -> str:
    """Pretty-print an upstream body the same way for every tool (2-space indent, non-ASCII kept)."""
    return json.dumps(body, indent=2, ensure_ascii=False)


def _describe_validation_error(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def build_query(binding: ToolBinding, args: ToolArgs) -> Dict[str, str]:
    """Forward only the arguments that are present; absent optional values never reach the URL."""
    values = args.model_dump()
    query: Dict[str, str] = {}
    for arg_name, param_name in binding.query_params.items():
        value = values.get(arg_name)
        if value is None or value == "":
            continue
        query[param_name] = str(value)
    return query


class ToolDispatcher:
    """
    Routes tool invocations to the DataMall endpoint bound to each tool.

    Error channels:
    - caller defects (unknown tool, bad arguments) raise McpError;
    - upstream HTTP failures come back as a CallToolResult with isError=True;
    - anything else propagates untouched.
    """

    def __init__(self, client: DataMallClient, bindings: Mapping[str, ToolBinding] = BINDINGS_BY_NAME):
        self.client = client
        self.bindings = bindings

    def list_tools(self) -> List[types.Tool]:
        return list_tool_descriptors()

    def resolve(self, name: str) -> ToolBinding:
        binding = self.bindings.get(name)
        if binding is None:
            raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))
        return binding

    def narrow(self, binding: ToolBinding, arguments: Optional[Mapping[str, Any]]) -> ToolArgs:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise McpError(
                types.ErrorData(
                    code=types.INVALID_PARAMS,
                    message=f"Invalid arguments for {binding.name}: expected an object",
                )
            )
        try:
            return binding.args_model.model_validate(dict(arguments))
        except ValidationError as e:
            raise McpError(
                types.ErrorData(
                    code=types.INVALID_PARAMS,
                    message=f"Invalid arguments for {binding.name}: {_describe_validation_error(e)}",
                )
            ) from e

    def prepare(self, name: str, arguments: Optional[Mapping[str, Any]]) -> tuple[ToolBinding, Dict[str, str]]:
        binding = self.resolve(name)
        args = self.narrow(binding, arguments)
        return binding, build_query(binding, args)

    def fetch(self, binding: ToolBinding, query: Dict[str, str]) -> types.CallToolResult:
        logger.info("Calling endpoint | tool=%s | path=%s | params=%s", binding.name, binding.path, sorted(query))
        try:
            body = self.client.get(binding.path, params=query)
        except DataMallError as e:
            return text_result(f"{ERROR_PREFIX}{e.message}", is_error=True)
        return text_result(format_body(body))

    def call_tool_sync(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> types.CallToolResult:
        binding, query = self.prepare(name, arguments)
        return self.fetch(binding, query)

    async def call_tool(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> types.CallToolResult:
        # Validation runs on the loop; only the blocking HTTP call moves to a worker thread.
        binding, query = self.prepare(name, arguments)
        return await asyncio.to_thread(self.fetch, binding, query)
