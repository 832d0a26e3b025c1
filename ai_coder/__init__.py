"""Terminal chat client for OpenAI-compatible chat completion endpoints.

Features
--------
1. Streaming output: answers (and reasoning, for models that emit it) are printed as they arrive.
2. File tools: with `--tools` the model may call `read_file`, `override_file` and `replace_in_file`.
3. Sessions: with `--session-file PATH` the conversation is saved as YAML after every turn and resumed on start.

Commands (interactive mode)
---------------------------
    /help                    – show this help
    /exit                    – save and quit (Ctrl-D works too)
    /model [NAME]            – switch model (without NAME: pick from the server's list)
    /reasoning [LEVEL]       – set reasoning effort: none, low, medium, high
    /tools on|off            – enable or disable the file tools
    /clear                   – forget the dialogue, keep system messages

Ctrl-C while an answer streams stops it; the partial answer is kept.

Run `python -m ai_coder` or the `ai-coder` script.
"""
# Re-export useful symbols for convenience
from .core import ChatError, Conversation, SessionRecord
from .core.client import CompletionRequest, TurnRunner
from .cli import ChatCLI, run_cli

__all__ = [
    "ChatError",
    "Conversation",
    "SessionRecord",
    "CompletionRequest",
    "TurnRunner",
    "ChatCLI",
    "run_cli",
]
