"""File tools the model may call, and the registry used to dispatch them.

Handlers never raise: bad arguments and I/O failures are turned into a tool
message so the model can see its mistake and try again.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Dict, Iterator, List, Optional

from .messages import ToolCall, ToolMessage

logger = logging.getLogger(__name__)

ToolHandler = Callable[[ToolCall], ToolMessage]

FILE_MODE = 0o644


class ToolArgumentError(ValueError):
    pass


def _function_tool(name: str, description: str, *params: str) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {p: {"type": "string"} for p in params},
                "required": list(params),
            },
        },
    }


READ_FILE_TOOL = _function_tool(
    "read_file",
    "Use this function to read and analyze a local file before modifying it.",
    "file_path",
)

OVERRIDE_FILE_TOOL = _function_tool(
    "override_file",
    "Use this function to override a local file after identifying required changes.",
    "file_path",
    "content",
)

# NOTE: the model is asked for a unique pattern, but every occurrence is replaced.
REPLACE_IN_FILE_TOOL = _function_tool(
    "replace_in_file",
    "Use this function to replace matching lines with other lines in a file. "
    "Make sure the search pattern only occurs exactly once.",
    "file_path",
    "old_lines",
    "new_lines",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _arguments(call: ToolCall, *names: str) -> Dict[str, str]:
    """Decode the JSON arguments of *call*; absent keys read as ``""``."""
    try:
        payload = json.loads(call.arguments)
    except json.JSONDecodeError as exc:
        raise ToolArgumentError(f"invalid arguments: {exc}") from exc
    if not isinstance(payload, dict):
        raise ToolArgumentError("arguments must be a JSON object")

    values = {}
    for name in names:
        value = payload.get(name, "")
        if not isinstance(value, str):
            raise ToolArgumentError(f"argument {name} must be a string")
        values[name] = value
    return values


def _error(call: ToolCall, tool: str, reason: Any) -> ToolMessage:
    logger.debug("Tool %s failed: %s", tool, reason)
    return ToolMessage(content=f"Error calling tool {tool}(): {reason}", tool_call_id=call.id)


def _write(path: str, text: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    with open(fd, "w", encoding="utf-8") as fh:
        fh.write(text)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def read_file(call: ToolCall) -> ToolMessage:
    try:
        args = _arguments(call, "file_path")
    except ToolArgumentError as exc:
        return _error(call, "read_file", exc)
    if not args["file_path"]:
        return _error(call, "read_file", "argument file_path is empty")

    try:
        with open(args["file_path"], encoding="utf-8") as fh:
            data = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        return _error(call, "read_file", exc)
    return ToolMessage(content=data, tool_call_id=call.id)


def override_file(call: ToolCall) -> ToolMessage:
    try:
        args = _arguments(call, "file_path", "content")
    except ToolArgumentError as exc:
        return _error(call, "override_file", exc)
    if not args["file_path"]:
        return _error(call, "override_file", "argument file_path is empty")

    try:
        _write(args["file_path"], args["content"])
    except OSError as exc:
        return _error(call, "override_file", exc)
    return ToolMessage(content="File successfully overridden", tool_call_id=call.id)


def replace_in_file(call: ToolCall) -> ToolMessage:
    """Replace every occurrence of ``old_lines`` with ``new_lines``."""
    try:
        args = _arguments(call, "file_path", "old_lines", "new_lines")
    except ToolArgumentError as exc:
        return _error(call, "replace_in_file", exc)
    if not args["file_path"]:
        return _error(call, "replace_in_file", "argument file_path is empty")
    if not args["old_lines"]:
        return _error(call, "replace_in_file", "argument old_lines is empty")

    try:
        with open(args["file_path"], encoding="utf-8") as fh:
            text = fh.read()
        count = text.count(args["old_lines"])
        if count != 1:
            logger.debug("replace_in_file: pattern occurs %d times in %s", count, args["file_path"])
        _write(args["file_path"], text.replace(args["old_lines"], args["new_lines"]))
    except (OSError, UnicodeDecodeError) as exc:
        return _error(call, "replace_in_file", exc)
    return ToolMessage(content="Text successfully replaced in file", tool_call_id=call.id)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """Maps tool names to handlers and the schemas advertised to the model."""

    def __init__(self) -> None:
        self._handlers: Dict[str, ToolHandler] = {}
        self._definitions: Dict[str, Dict[str, Any]] = {}

    def register(self, definition: Dict[str, Any], handler: ToolHandler) -> None:
        name = definition["function"]["name"]
        self._handlers[name] = handler
        self._definitions[name] = definition

    def get(self, name: str) -> Optional[ToolHandler]:
        return self._handlers.get(name)

    def definitions(self) -> List[Dict[str, Any]]:
        return list(self._definitions.values())

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


def default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(READ_FILE_TOOL, read_file)
    registry.register(OVERRIDE_FILE_TOOL, override_file)
    registry.register(REPLACE_IN_FILE_TOOL, replace_in_file)
    return registry
