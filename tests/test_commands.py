from unittest.mock import patch

from ai_coder.core import ChatError, SystemMessage, UserMessage, session

from .test_base import BaseChatCLITest


class TestCommands(BaseChatCLITest):
    def test_model_switching(self):
        """Test that model switching works correctly"""
        self.chat_cli.handle_command("/model llama3.2")
        self.assertEqual(self.request.model, "llama3.2")

        # Extra arguments are rejected
        self.chat_cli.handle_command("/model a b")
        self.assertEqual(self.request.model, "llama3.2")

    @patch("ai_coder.cli.questionary.select")
    def test_model_interactive(self, mock_select):
        """Interactive model selection offers the server's models"""
        with patch.object(self.runner, "list_models", return_value=["llama3.2", "qwen3:1.7b"]):
            mock_select.return_value.ask.return_value = "qwen3:1.7b"
            self.chat_cli.handle_command("/model")

        mock_select.assert_called_once()
        self.assertEqual(mock_select.call_args.kwargs["choices"], ["llama3.2", "qwen3:1.7b"])
        self.assertEqual(self.request.model, "qwen3:1.7b")

    def test_model_listing_failure_is_not_fatal(self):
        with patch.object(self.runner, "list_models", side_effect=ChatError("offline")):
            self.assertTrue(self.chat_cli.handle_command("/model"))
        self.assertEqual(self.request.model, "test-model")

    def test_reasoning_levels(self):
        self.chat_cli.handle_command("/reasoning low")
        self.assertEqual(self.request.reasoning, "low")

        self.chat_cli.handle_command("/reasoning extreme")
        self.assertEqual(self.request.reasoning, "low")  # Should not change

    @patch("ai_coder.cli.questionary.select")
    def test_reasoning_interactive(self, mock_select):
        mock_select.return_value.ask.return_value = "medium"
        self.chat_cli.handle_command("/reasoning")
        self.assertEqual(self.request.reasoning, "medium")

    @patch("ai_coder.cli.questionary.select")
    def test_picker_cancelled(self, mock_select):
        mock_select.return_value.ask.return_value = None
        self.chat_cli.handle_command("/reasoning")
        self.assertEqual(self.request.reasoning, "")

    def test_tools_toggle(self):
        """Tools are offered to the model and dispatched only when enabled"""
        self.chat_cli.handle_command("/tools on")
        self.assertTrue(self.chat_cli.tools_enabled)
        self.assertEqual(len(self.request.tools), 3)
        self.assertIn("read_file", self.runner.registry)

        self.chat_cli.handle_command("/tools off")
        self.assertFalse(self.chat_cli.tools_enabled)
        self.assertEqual(self.request.tools, [])
        self.assertNotIn("read_file", self.runner.registry)

        self.chat_cli.handle_command("/tools maybe")
        self.assertFalse(self.chat_cli.tools_enabled)

    def test_clear_command(self):
        self.request.conversation.append(SystemMessage("Be brief."))
        self.request.conversation.append(UserMessage("Hello"))

        self.chat_cli.handle_command("/clear")

        self.assertEqual(self.request.conversation.messages, [SystemMessage("Be brief.")])
        self.assertEqual(len(session.load(self.session_file).conversation), 1)

    def test_exit_saves_session(self):
        self.request.conversation.append(UserMessage("Hello"))
        self.assertFalse(self.chat_cli.handle_command("/exit"))
        self.assertEqual(session.load(self.session_file).model, "test-model")

    def test_unknown_command_keeps_running(self):
        self.assertTrue(self.chat_cli.handle_command("/frobnicate"))
        self.assertTrue(self.chat_cli.handle_command("/help"))
