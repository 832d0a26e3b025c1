"""Conversation messages as a closed set of role-specific dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union


@dataclass
class ToolCall:
    """A model-issued request to run the tool *name* with raw JSON *arguments*."""

    id: str
    name: str
    arguments: str = ""

    def to_param(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class SystemMessage:
    content: str
    role = "system"

    def to_param(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass
class DeveloperMessage:
    content: str
    role = "developer"

    def to_param(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass
class UserMessage:
    content: str
    role = "user"

    def to_param(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass
class AssistantMessage:
    """Assistant reply. *content* is ``None`` when it only carries tool calls
    or a refusal.
    """

    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    refusal: Optional[str] = None
    role = "assistant"

    def to_param(self) -> Dict[str, Any]:
        param: Dict[str, Any] = {"role": self.role}
        if self.content is not None:
            param["content"] = self.content
        if self.refusal is not None:
            param["refusal"] = self.refusal
        if self.tool_calls:
            param["tool_calls"] = [call.to_param() for call in self.tool_calls]
        return param


@dataclass
class ToolMessage:
    """Result of one tool call, linked back to it by *tool_call_id*."""

    content: str
    tool_call_id: str
    role = "tool"

    def to_param(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "tool_call_id": self.tool_call_id,
        }


Message = Union[SystemMessage, DeveloperMessage, UserMessage, AssistantMessage, ToolMessage]

MESSAGE_TYPES = (SystemMessage, DeveloperMessage, UserMessage, AssistantMessage, ToolMessage)


@dataclass
class Conversation:
    """Ordered list of messages owned by whoever drives the current turn."""

    messages: List[Message] = field(default_factory=list)

    def append(self, message: Message) -> None:
        if not isinstance(message, MESSAGE_TYPES):
            raise TypeError(f"not a conversation message: {message!r}")
        self.messages.append(message)

    def clear(self) -> None:
        """Drop the dialogue but keep the system and developer instructions."""
        self.messages = [
            m for m in self.messages if isinstance(m, (SystemMessage, DeveloperMessage))
        ]

    def to_params(self) -> List[Dict[str, Any]]:
        return [message.to_param() for message in self.messages]

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def __getitem__(self, index: int) -> Message:
        return self.messages[index]
