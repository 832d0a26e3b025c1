"""Turn runner: stream completions, execute tool calls, repeat until done."""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx
import openai
from openai import OpenAI  # type: ignore

from .accumulator import StreamAccumulator, reasoning_text
from .cancel import CancellationToken, cancel_on_signals
from .errors import ChatError
from .messages import AssistantMessage, Conversation
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

REASONING_LEVELS = ["none", "low", "medium", "high"]

StreamError = (openai.OpenAIError, httpx.HTTPError)

CancelScope = Callable[[], "AbstractContextManager[CancellationToken]"]


@dataclass
class CompletionRequest:
    """Everything sent with each completion request of a turn."""

    model: str
    reasoning: str = ""
    conversation: Conversation = field(default_factory=Conversation)
    tools: List[Dict[str, Any]] = field(default_factory=list)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": self.conversation.to_params(),
            "stream": True,
        }
        if self.reasoning:
            params["reasoning_effort"] = self.reasoning
        if self.tools:
            params["tools"] = self.tools
        return params


class TurnRunner:
    """Drive one user turn against the chat completions endpoint.

    *renderer* is the output surface (see :class:`ai_coder.utils.TerminalRenderer`);
    *cancel_scope* yields the token polled while a response is streamed.
    """

    def __init__(
        self,
        client: OpenAI,
        renderer: Any,
        registry: Optional[ToolRegistry] = None,
        cancel_scope: CancelScope = cancel_on_signals,
    ):
        self.client = client
        self.renderer = renderer
        self.registry = registry if registry is not None else ToolRegistry()
        self.cancel_scope = cancel_scope

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run_turn(self, request: CompletionRequest) -> None:
        """Run requests until the assistant answers without tool calls.

        The number of tool rounds is not bounded.
        """
        rounds = 0
        while True:
            rounds += 1
            message = self._complete(request)
            request.conversation.append(message)

            for call in message.tool_calls:
                handler = self.registry.get(call.name)
                if handler is None:
                    logger.debug("No handler registered for tool %r", call.name)
                    self.renderer.missing_tool(call)
                    continue
                self.renderer.tool_call(call)
                result = handler(call)
                request.conversation.append(result)
                self.renderer.tool_result(result)

            if not message.tool_calls:
                break

        logger.debug("Turn finished after %d round(s)", rounds)
        self.renderer.end_turn()

    def list_models(self) -> List[str]:
        try:
            return sorted(model.id for model in self.client.models.list())
        except StreamError as exc:
            raise ChatError(f"cannot list models: {exc}") from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _complete(self, request: CompletionRequest) -> AssistantMessage:
        """Stream one response and return the (possibly partial) message."""
        params = request.to_params()
        logger.debug(
            "Requesting completion: model=%s messages=%d tools=%d",
            request.model,
            len(request.conversation),
            len(request.tools),
        )

        self.renderer.begin_response()
        try:
            stream = self.client.chat.completions.create(**params)  # type: ignore[arg-type]
        except StreamError as exc:
            self.renderer.end_response()
            raise ChatError(f"OpenAI API error: {exc}") from exc

        acc = StreamAccumulator()
        with self.cancel_scope() as token:
            error = self._consume(stream, acc, token)
        self.renderer.end_response()

        try:
            stream.close()
        except StreamError as exc:
            raise ChatError(f"cannot close stream: {exc}") from exc
        if error is not None:
            raise ChatError(f"stream failed: {error}") from error

        logger.debug("Response finished: reason=%s usage=%s", acc.finish_reason, acc.usage)
        return acc.to_message()

    def _consume(
        self, stream: Any, acc: StreamAccumulator, token: CancellationToken
    ) -> Optional[Exception]:
        """Feed *stream* into *acc*; return the error that ended it, if any."""
        try:
            for chunk in stream:
                if token.cancelled:
                    self.renderer.cancelled()
                    break
                if not acc.add_chunk(chunk):
                    continue

                if chunk.choices:
                    delta = chunk.choices[0].delta
                    reasoning = reasoning_text(delta)
                    if reasoning:
                        self.renderer.reasoning(reasoning)
                    if delta.content:
                        self.renderer.content(delta.content)

                content = acc.just_finished_content()
                if content is not None:
                    self.renderer.content_finished(content)
                for finished in acc.just_finished_tool_calls():
                    self.renderer.tool_call_finished(finished)
                refusal = acc.just_finished_refusal()
                if refusal is not None:
                    self.renderer.refusal_finished(refusal)
        except StreamError as exc:
            return exc
        return None
