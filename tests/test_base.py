import tempfile
import unittest
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import Mock

import httpx
import openai
from openai.types.chat import ChatCompletionChunk

from ai_coder import ChatCLI, CompletionRequest, TurnRunner
from ai_coder.core import Conversation
from ai_coder.core.cancel import CancellationToken
from ai_coder.utils import console


def make_chunk(
    content=None,
    *,
    reasoning=None,
    refusal=None,
    tool_calls=None,
    finish_reason=None,
    role=None,
    chunk_id="chatcmpl-1",
    choices=True,
    usage=None,
):
    """Build a real SDK chunk the way the server would stream it."""
    delta = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    if refusal is not None:
        delta["refusal"] = refusal
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    if reasoning is not None:
        delta["reasoning"] = reasoning

    data = {
        "id": chunk_id,
        "object": "chat.completion.chunk",
        "created": 0,
        "model": "test-model",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}] if choices else [],
    }
    if usage is not None:
        data["usage"] = usage
    return ChatCompletionChunk.model_validate(data)


def tool_fragment(index, name=None, arguments=None, call_id=None):
    function = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    fragment = {"index": index, "function": function}
    if call_id is not None:
        fragment["id"] = call_id
        fragment["type"] = "function"
    return fragment


def text_response(*parts):
    """Chunks for a plain answer made of *parts*."""
    chunks = [make_chunk(role="assistant")]
    chunks += [make_chunk(part) for part in parts]
    chunks.append(make_chunk(finish_reason="stop"))
    return chunks


def tool_response(call_id, name, arguments):
    return [
        make_chunk(role="assistant"),
        make_chunk(tool_calls=[tool_fragment(0, name, "", call_id)]),
        make_chunk(tool_calls=[tool_fragment(0, arguments=arguments)]),
        make_chunk(finish_reason="tool_calls"),
    ]


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "http://test/v1/chat/completions"))


class FakeStream:
    """Iterable stand-in for ``openai.Stream`` with the same close() contract."""

    def __init__(self, chunks, error=None, close_error=None, cancel=None, cancel_after=None):
        self.chunks = list(chunks)
        self.error = error
        self.close_error = close_error
        self.cancel = cancel
        self.cancel_after = cancel_after
        self.consumed = 0
        self.closed = False

    def __iter__(self):
        for index, chunk in enumerate(self.chunks):
            if self.cancel is not None and index == self.cancel_after:
                self.cancel.cancel()
            self.consumed += 1
            yield chunk
        if self.error is not None:
            raise self.error

    def close(self):
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class BaseRunnerTest(unittest.TestCase):
    def setUp(self):
        # Keep rich output out of the test log
        console.begin_capture()

        self.mock_client = Mock()
        self.renderer = Mock()
        self.token = CancellationToken()
        self.runner = TurnRunner(self.mock_client, self.renderer, cancel_scope=self._scope)
        self.request = CompletionRequest(model="test-model", conversation=Conversation())

    @contextmanager
    def _scope(self):
        yield self.token

    def respond(self, *streams):
        self.mock_client.chat.completions.create.side_effect = list(streams)

    def sent_messages(self, call_index):
        call = self.mock_client.chat.completions.create.call_args_list[call_index]
        return call.kwargs["messages"]

    def tearDown(self):
        console.end_capture()


class BaseChatCLITest(BaseRunnerTest):
    def setUp(self):
        super().setUp()
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.session_file = Path(self.tmp_dir.name) / "session.yaml"
        self.chat_cli = ChatCLI(self.request, self.runner, session_file=self.session_file)

    def tearDown(self):
        super().tearDown()
        self.tmp_dir.cleanup()
