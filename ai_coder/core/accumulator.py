"""Fold streamed chat completion chunks into one assistant message.

Besides merging the deltas, the accumulator tracks which *section* of the
response the stream is currently in (content, refusal or a tool call by
index).  Whenever a chunk moves the stream past a section - by starting
another one or by carrying a finish reason - that section is reported as
*just finished*, exactly once, so the caller can react to it while the rest
of the response is still arriving.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, NamedTuple, Optional

from .messages import AssistantMessage, ToolCall

logger = logging.getLogger(__name__)

# Extension fields used by OpenAI-compatible servers (Ollama, vLLM, ...)
REASONING_FIELDS = ("reasoning", "reasoning_content")

_EMPTY = "empty"
_CONTENT = "content"
_REFUSAL = "refusal"
_TOOL = "tool"
_FINISHED = "finished"


class _Section(NamedTuple):
    state: str = _EMPTY
    index: int = 0


@dataclass
class FinishedToolCall:
    index: int
    id: str
    name: str
    arguments: str


def reasoning_text(delta: Any) -> str:
    """Return the reasoning fragment carried by *delta*, or ``""``."""
    extra = getattr(delta, "model_extra", None)
    if not isinstance(extra, dict):
        return ""
    for key in REASONING_FIELDS:
        value = extra.get(key)
        if isinstance(value, str):
            return value
        if value is not None:
            logger.debug("Ignoring non-text %s delta: %r", key, value)
    return ""


class StreamAccumulator:
    """Running state of one streamed response."""

    def __init__(self) -> None:
        self.id: Optional[str] = None
        self.content = ""
        self.reasoning = ""
        self.refusal = ""
        self.finish_reason: Optional[str] = None
        self.usage: Any = None
        self._tool_calls: List[ToolCall] = []
        self._latest = _Section()
        self._just_finished: List[_Section] = []

    @property
    def tool_calls(self) -> List[ToolCall]:
        return [ToolCall(c.id, c.name, c.arguments) for c in self._tool_calls]

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def add_chunk(self, chunk: Any) -> bool:
        """Merge *chunk*; return False when it belongs to another response."""
        self._just_finished = []

        chunk_id = getattr(chunk, "id", None)
        if self.id is None:
            self.id = chunk_id
        elif chunk_id and chunk_id != self.id:
            logger.warning("Dropping chunk %s while accumulating %s", chunk_id, self.id)
            return False

        if getattr(chunk, "usage", None) is not None:
            self.usage = chunk.usage

        choices = getattr(chunk, "choices", None) or []
        if not choices:
            return True

        choice = choices[0]
        if choice.delta is not None:
            self._merge_delta(choice.delta)
        if choice.finish_reason:
            self.finish_reason = choice.finish_reason

        current = self._latest
        for section in self._sections_of(choice):
            if section == current:
                continue
            if current.state not in (_EMPTY, _FINISHED):
                self._just_finished.append(current)
            current = section
        self._latest = current
        return True

    def _merge_delta(self, delta: Any) -> None:
        if delta.content:
            self.content += delta.content
        if getattr(delta, "refusal", None):
            self.refusal += delta.refusal
        self.reasoning += reasoning_text(delta)

        for fragment in delta.tool_calls or []:
            while len(self._tool_calls) <= fragment.index:
                self._tool_calls.append(ToolCall(id="", name=""))
            call = self._tool_calls[fragment.index]
            if fragment.id and not call.id:
                call.id = fragment.id
            function = fragment.function
            if function is None:
                continue
            if function.name and not call.name:
                call.name = function.name
            if function.arguments:
                call.arguments += function.arguments

    @staticmethod
    def _sections_of(choice: Any) -> List[_Section]:
        """Sections touched by *choice*, in the order they appear in it."""
        sections: List[_Section] = []
        delta = choice.delta
        if delta is not None:
            # an empty string still continues the section
            if delta.content is not None:
                sections.append(_Section(_CONTENT))
            if getattr(delta, "refusal", None) is not None:
                sections.append(_Section(_REFUSAL))
            for fragment in delta.tool_calls or []:
                section = _Section(_TOOL, fragment.index)
                if not sections or sections[-1] != section:
                    sections.append(section)
        if choice.finish_reason:
            sections.append(_Section(_FINISHED))
        elif not sections and not (delta is not None and reasoning_text(delta)):
            sections.append(_Section(_FINISHED))
        return sections

    # ------------------------------------------------------------------
    # Completion events, valid until the next add_chunk call
    # ------------------------------------------------------------------

    def just_finished_content(self) -> Optional[str]:
        if any(s.state == _CONTENT for s in self._just_finished):
            return self.content
        return None

    def just_finished_refusal(self) -> Optional[str]:
        if any(s.state == _REFUSAL for s in self._just_finished):
            return self.refusal
        return None

    def just_finished_tool_calls(self) -> List[FinishedToolCall]:
        finished = []
        for section in self._just_finished:
            if section.state != _TOOL:
                continue
            call = self._tool_calls[section.index]
            finished.append(FinishedToolCall(section.index, call.id, call.name, call.arguments))
        return finished

    def just_finished_tool_call(self) -> Optional[FinishedToolCall]:
        finished = self.just_finished_tool_calls()
        return finished[0] if finished else None

    # ------------------------------------------------------------------

    def to_message(self) -> AssistantMessage:
        tool_calls = self.tool_calls
        content: Optional[str] = self.content
        refusal = self.refusal or None
        if not content and (tool_calls or refusal):
            content = None
        return AssistantMessage(content=content, tool_calls=tool_calls, refusal=refusal)
