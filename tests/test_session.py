import tempfile
import unittest
from pathlib import Path

import yaml

from ai_coder.core import (
    AssistantMessage,
    Conversation,
    DeveloperMessage,
    SessionError,
    SessionRecord,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
    session,
)


def sample_conversation():
    conversation = Conversation()
    conversation.append(SystemMessage("You are terse."))
    conversation.append(DeveloperMessage("Prefer small diffs."))
    conversation.append(UserMessage("Fix the typo in notes.txt"))
    conversation.append(
        AssistantMessage(
            content=None,
            tool_calls=[
                ToolCall("call_1", "read_file", '{"file_path": "notes.txt"}'),
                ToolCall("call_2", "read_file", ""),
            ],
        )
    )
    conversation.append(ToolMessage("teh notes\n", "call_1"))
    conversation.append(ToolMessage("Error calling tool read_file(): ...", "call_2"))
    conversation.append(AssistantMessage(content="", tool_calls=[]))
    conversation.append(AssistantMessage(content="Done: 'teh' -> 'the'.\nnull: yes"))
    return conversation


class TestSession(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp_dir.name) / "session.yaml"

    def tearDown(self):
        self.tmp_dir.cleanup()

    def test_session_save_load(self):
        """Saving and loading reproduces every message exactly"""
        conversation = sample_conversation()
        session.save(self.path, conversation, "qwen3:1.7b", "low")

        loaded = session.load(self.path)

        self.assertEqual(loaded, SessionRecord("qwen3:1.7b", "low", conversation))
        self.assertIsNone(loaded.conversation[3].content)
        self.assertEqual(loaded.conversation[6].content, "")

    def test_load_missing_file_returns_empty_record(self):
        record = session.load(self.path)
        self.assertEqual(record.model, "")
        self.assertEqual(record.reasoning, "")
        self.assertEqual(len(record.conversation), 0)

    def test_file_format(self):
        session.save(self.path, sample_conversation(), "m", "")
        data = yaml.safe_load(self.path.read_text(encoding="utf-8"))

        self.assertEqual(list(data), ["model", "reasoning", "messages"])
        tool_request = data["messages"][3]
        self.assertEqual(tool_request["role"], "assistant")
        self.assertNotIn("content", tool_request)
        self.assertEqual(
            tool_request["tool_calls"][0],
            {"id": "call_1", "name": "read_file", "arguments": '{"file_path": "notes.txt"}'},
        )
        self.assertEqual(data["messages"][4]["tool_call_id"], "call_1")
        self.assertNotIn("tool_calls", data["messages"][2])

    def test_save_overwrites(self):
        session.save(self.path, sample_conversation(), "m", "")
        session.save(self.path, Conversation([UserMessage("again")]), "m2", "high")
        record = session.load(self.path)
        self.assertEqual(record.model, "m2")
        self.assertEqual(record.conversation.messages, [UserMessage("again")])

    def test_save_failure_is_fatal(self):
        target = Path(self.tmp_dir.name) / "missing" / "session.yaml"
        with self.assertRaises(SessionError):
            session.save(target, Conversation(), "m", "")

    def test_failed_save_removes_temporary_file(self):
        self.path.mkdir()
        with self.assertRaises(SessionError):
            session.save(self.path, sample_conversation(), "m", "")
        self.assertFalse(self.path.with_name("session.yaml.tmp").exists())
        self.assertTrue(self.path.is_dir())

    def test_refusal_survives_round_trip(self):
        conversation = Conversation()
        conversation.append(UserMessage("Do something bad"))
        conversation.append(AssistantMessage(refusal="No."))
        session.save(self.path, conversation, "m", "")

        data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        self.assertEqual(data["messages"][1], {"role": "assistant", "refusal": "No."})
        self.assertEqual(session.load(self.path).conversation, conversation)

    def test_invalid_yaml_is_fatal(self):
        self.path.write_text("model: [unclosed\n", encoding="utf-8")
        with self.assertRaises(SessionError):
            session.load(self.path)

    def test_unknown_role_is_fatal(self):
        self.path.write_text(
            "model: m\nreasoning: ''\nmessages:\n- role: narrator\n  content: hi\n",
            encoding="utf-8",
        )
        with self.assertRaises(SessionError):
            session.load(self.path)

    def test_unreadable_path_is_fatal(self):
        with self.assertRaises(SessionError):
            session.load(self.tmp_dir.name)


if __name__ == "__main__":
    unittest.main()
