from .errors import ChatError, SessionError
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
from .session import SessionRecord
from .tools import ToolRegistry, default_registry

__all__ = [
    "ChatError",
    "SessionError",
    "AssistantMessage",
    "Conversation",
    "DeveloperMessage",
    "Message",
    "SystemMessage",
    "ToolCall",
    "ToolMessage",
    "UserMessage",
    "SessionRecord",
    "ToolRegistry",
    "default_registry",
]
