"""Session persistence: the conversation plus its model settings, as YAML."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from .errors import SessionError
from .messages import (
    AssistantMessage,
    Conversation,
    DeveloperMessage,
    Message,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
)

logger = logging.getLogger(__name__)

SESSION_FILE_MODE = 0o640

PathLike = Union[str, Path]


@dataclass
class SessionRecord:
    """What a session file holds. The default value stands for "no session yet"."""

    model: str = ""
    reasoning: str = ""
    conversation: Conversation = field(default_factory=Conversation)


# ---------------------------------------------------------------------------
# Mapping between messages and plain YAML data
# ---------------------------------------------------------------------------


def message_to_data(message: Message) -> Dict[str, Any]:
    data: Dict[str, Any] = {"role": message.role}
    if isinstance(message, (SystemMessage, DeveloperMessage, UserMessage)):
        data["content"] = message.content
    elif isinstance(message, AssistantMessage):
        if message.content is not None:
            data["content"] = message.content
        if message.refusal is not None:
            data["refusal"] = message.refusal
        if message.tool_calls:
            data["tool_calls"] = [
                {"id": c.id, "name": c.name, "arguments": c.arguments}
                for c in message.tool_calls
            ]
    elif isinstance(message, ToolMessage):
        data["content"] = message.content
        data["tool_call_id"] = message.tool_call_id
    else:
        raise TypeError(f"cannot serialise {type(message).__name__}")
    return data


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise SessionError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def message_from_data(data: Any) -> Message:
    if not isinstance(data, dict):
        raise SessionError(f"message must be a mapping, got {type(data).__name__}")

    role = data.get("role")
    if role == "system":
        return SystemMessage(_text(data, "content"))
    if role == "developer":
        return DeveloperMessage(_text(data, "content"))
    if role == "user":
        return UserMessage(_text(data, "content"))
    if role == "assistant":
        calls = data.get("tool_calls") or []
        if not isinstance(calls, list):
            raise SessionError("'tool_calls' must be a list")
        tool_calls: List[ToolCall] = []
        for call in calls:
            if not isinstance(call, dict):
                raise SessionError("tool call must be a mapping")
            tool_calls.append(
                ToolCall(_text(call, "id"), _text(call, "name"), _text(call, "arguments"))
            )
        content = _text(data, "content") if "content" in data else None
        refusal = _text(data, "refusal") if "refusal" in data else None
        return AssistantMessage(content=content, tool_calls=tool_calls, refusal=refusal)
    if role == "tool":
        return ToolMessage(_text(data, "content"), _text(data, "tool_call_id"))
    raise SessionError(f"unknown message role: {role!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def save(path: PathLike, conversation: Conversation, model: str, reasoning: str) -> None:
    """Write the session to *path*, replacing any previous content."""
    path = Path(path)
    data = {
        "model": model,
        "reasoning": reasoning,
        "messages": [message_to_data(m) for m in conversation],
    }
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        text = yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SESSION_FILE_MODE)
        with open(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        tmp_path.replace(path)
    except (OSError, yaml.YAMLError) as exc:
        try:
            tmp_path.unlink()
        except FileNotFoundError:
            pass
        raise SessionError(f"cannot save session to {path}: {exc}") from exc
    logger.debug("Saved %d messages to %s", len(conversation), path)


def load(path: PathLike) -> SessionRecord:
    """Read the session at *path*; a missing file yields an empty record."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No session file at %s, starting fresh", path)
        return SessionRecord()
    except (OSError, UnicodeDecodeError) as exc:
        raise SessionError(f"cannot read session {path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SessionError(f"cannot parse session {path}: {exc}") from exc

    if data is None:
        return SessionRecord()
    if not isinstance(data, dict):
        raise SessionError(f"session {path} must contain a mapping")

    messages = data.get("messages") or []
    if not isinstance(messages, list):
        raise SessionError(f"session {path}: 'messages' must be a list")

    conversation = Conversation()
    for item in messages:
        conversation.append(message_from_data(item))

    return SessionRecord(
        model=_text(data, "model"),
        reasoning=_text(data, "reasoning"),
        conversation=conversation,
    )
