"""Terminal chat client entry point and interactive loop."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import questionary
from openai import OpenAI  # type: ignore
from rich.panel import Panel

from .core import ChatError, ToolRegistry, UserMessage, SystemMessage, default_registry, session
from .core.client import REASONING_LEVELS, CompletionRequest, TurnRunner
from .utils import (
    Ansi,
    ERROR_LABEL,
    USER_LABEL,
    TerminalRenderer,
    configure_logging,
    console,
    read_line,
)
from .utils.ansi import err_console

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://127.0.0.1:11434/v1"
DEFAULT_MODEL = "qwen3:1.7b"
# Local servers such as Ollama ignore the key, but the SDK insists on one.
PLACEHOLDER_API_KEY = "sk-no-key-required"

# ---------------------------------------------------------------------------
# Helper classes
# ---------------------------------------------------------------------------


class ChatCLI:
    """High-level orchestration class for the interactive REPL."""

    def __init__(
        self,
        request: CompletionRequest,
        runner: TurnRunner,
        session_file: Optional[Path] = None,
        tools: Optional[ToolRegistry] = None,
    ):
        self.request = request
        self.runner = runner
        self.session_file = session_file
        self.tools = tools if tools is not None else default_registry()

    # ---------------- Utility ----------------

    @property
    def tools_enabled(self) -> bool:
        return bool(self.request.tools)

    def set_tools(self, enabled: bool) -> None:
        """Offer the file tools to the model, or withdraw them."""
        if enabled:
            self.runner.registry = self.tools
            self.request.tools = self.tools.definitions()
        else:
            self.runner.registry = ToolRegistry()
            self.request.tools = []

    def save(self) -> None:
        if self.session_file is None:
            return
        session.save(
            self.session_file,
            self.request.conversation,
            self.request.model,
            self.request.reasoning,
        )

    def send(self, text: str) -> None:
        """Run one turn for the user message *text* and persist the result."""
        self.request.conversation.append(UserMessage(text))
        self.runner.run_turn(self.request)
        self.save()

    # -------------- Interactive pickers ---------------

    @staticmethod
    def _interactive_picker(
        title: str, options: List[str], current: Optional[str] = None
    ) -> Optional[str]:
        """Present *options* to the user and return the selected value."""
        if not options:
            console.print("(no items available)")
            return None

        try:
            return questionary.select(
                title,
                choices=options,
                default=current if current in options else None,
            ).ask()
        except (KeyboardInterrupt, EOFError):
            console.print()
            return None

    # ---------------- Command handling ---------------

    def handle_command(self, line: str) -> bool:
        """Handle slash commands. Return False to exit REPL."""

        parts = line.strip().split()
        if not parts:
            return True

        cmd = parts[0].lower()

        if cmd == "/help":
            from . import __doc__ as _doc  # lazy import to avoid circularity

            console.print(_doc or "(no help available)", markup=False)

        elif cmd == "/exit":
            self.save()
            console.print("Bye!")
            return False

        elif cmd == "/model":
            if len(parts) == 1:
                try:
                    models = self.runner.list_models()
                except ChatError as exc:
                    console.print(Ansi.style("Cannot list models:", Ansi.FG_RED), end=" ")
                    console.out(str(exc), highlight=False)
                    return True
                selection = self._interactive_picker(
                    "Select a model:", models, current=self.request.model
                )
                if selection:
                    self.request.model = selection
                    console.print(f"\\[model switched to {self.request.model}]")
            elif len(parts) == 2:
                self.request.model = parts[1]
                console.print(f"\\[model switched to {self.request.model}]")
            else:
                console.print("Usage: /model [model_name]")

        elif cmd == "/reasoning":
            if len(parts) == 1:
                selection = self._interactive_picker(
                    "Reasoning effort:", REASONING_LEVELS, current=self.request.reasoning
                )
                if selection:
                    self.request.reasoning = selection
                    console.print(f"\\[reasoning effort {selection}]")
            elif len(parts) == 2 and parts[1] in REASONING_LEVELS:
                self.request.reasoning = parts[1]
                console.print(f"\\[reasoning effort {parts[1]}]")
            else:
                console.print(f"Usage: /reasoning [{'|'.join(REASONING_LEVELS)}]", markup=False)

        elif cmd == "/tools":
            if len(parts) != 2 or parts[1] not in {"on", "off"}:
                console.print("Usage: /tools on|off")
            else:
                self.set_tools(parts[1] == "on")
                state = "enabled" if self.tools_enabled else "disabled"
                console.print(f"\\[file tools {state}]")

        elif cmd == "/clear":
            self.request.conversation.clear()
            self.save()
            console.print("\\[conversation cleared – system messages kept]")

        else:
            console.print(Ansi.style(f"Unknown command: {cmd} (see /help)", Ansi.FG_RED))

        return True

    # ---------------- Interaction loop ---------------

    def repl(self) -> None:
        """Run the interactive read–eval–print-loop until end of input."""
        console.print(Panel.fit("ai-coder", style="bold magenta"))

        console.print(
            Ansi.style("Type your message and press Enter. Commands start with '/'.", Ansi.FG_YELLOW),
            Ansi.style(f"Current model: {self.request.model}.", Ansi.FG_YELLOW),
            Ansi.style("Type /help for help, Ctrl-D to quit.", Ansi.FG_YELLOW),
            sep="\n",
        )

        while True:
            try:
                line = read_line(f"{USER_LABEL}> ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            except OSError as exc:
                raise ChatError(f"cannot read input: {exc}") from exc

            if not line:
                continue

            if line.startswith("/"):
                if not self.handle_command(line):
                    break
                continue

            self.send(line)


# ---------------------------------------------------------------------------
# Entrypoint helpers (keeping it separate simplifies __main__ handling)
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chat with an OpenAI-compatible model, optionally letting it edit local files."
    )
    parser.add_argument(
        "--api",
        default=os.getenv("OPENAI_URL") or os.getenv("OPENAI_BASE_URL") or DEFAULT_API_URL,
        help="URL for the OpenAI API endpoint (default: %(default)s)",
    )
    parser.add_argument("--model", "-m", help="Technical name of the LLM (overrides saved value)")
    parser.add_argument("--message", help="User message; run a single turn and exit")
    parser.add_argument("--system", help="System message appended to the conversation")
    parser.add_argument(
        "--reasoning", choices=REASONING_LEVELS, help="Level of reasoning effort"
    )
    parser.add_argument(
        "--session-file", type=Path, help="Use this file to save and resume chat sessions"
    )
    parser.add_argument("--tools", action="store_true", help="Activate file tools")
    parser.add_argument("--log", action="store_true", help="Activate debug logging")
    return parser.parse_args(argv)


def build_cli(args: argparse.Namespace) -> ChatCLI:
    """Load the session, apply the flags and wire up the client."""
    record = session.load(args.session_file) if args.session_file else session.SessionRecord()

    model = args.model or record.model or os.getenv("OPENAI_DEFAULT_MODEL", DEFAULT_MODEL)
    reasoning = args.reasoning or record.reasoning
    request = CompletionRequest(model=model, reasoning=reasoning, conversation=record.conversation)
    if args.system:
        request.conversation.append(SystemMessage(args.system))

    client = OpenAI(
        base_url=args.api,
        api_key=os.getenv("OPENAI_API_KEY") or PLACEHOLDER_API_KEY,
    )
    logger.debug("Using %s with model %s", args.api, model)

    cli = ChatCLI(request, TurnRunner(client, TerminalRenderer()), session_file=args.session_file)
    cli.set_tools(args.tools)
    return cli


def run_cli(argv: Optional[List[str]] = None) -> None:  # pragma: no cover
    args = _parse_args(argv)
    configure_logging(args.log)

    try:
        cli = build_cli(args)
        if args.message:
            cli.send(args.message)
        else:
            cli.repl()
    except ChatError as exc:
        err_console.print(f"{ERROR_LABEL}>", end=" ")
        err_console.out(str(exc), highlight=False)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[interrupted]", markup=False)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    run_cli()
