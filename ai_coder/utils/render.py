"""Terminal output for a running turn."""

from __future__ import annotations

from typing import Optional

from .ansi import (
    ASSISTANT_LABEL,
    ERROR_LABEL,
    TOOL_LABEL,
    WARNING_LABEL,
    Ansi,
    console,
)
from .spinner import Spinner


class TerminalRenderer:
    """Prints streamed deltas as they arrive and reports tool activity.

    Model output goes through ``console.out`` so brackets in the answer are
    never taken for rich markup.
    """

    def __init__(self, show_spinner: bool = True):
        self._prefix = f"{ASSISTANT_LABEL}> "
        self._show_spinner = show_spinner
        self._spinner: Optional[Spinner] = None
        self._in_reasoning = False
        self._column = 0

    # ---------------- stream -----------------

    def begin_response(self) -> None:
        self._in_reasoning = False
        self._column = len("assistant> ")
        if self._show_spinner:
            self._spinner = Spinner(prefix=self._prefix)
            self._spinner.start()
        else:
            console.print(self._prefix, end="")

    def _first_output(self) -> None:
        if self._spinner is not None and self._spinner.running:
            self._spinner.stop()

    def _write(self, text: str, style: str = "") -> None:
        self._first_output()
        console.out(text, end="", style=style or None, highlight=False)
        console.file.flush()
        newline = text.rfind("\n")
        self._column = len(text) - newline - 1 if newline >= 0 else self._column + len(text)

    def reasoning(self, text: str) -> None:
        self._in_reasoning = True
        self._write(text, Ansi.DIM)

    def content(self, text: str) -> None:
        if self._in_reasoning:
            self._in_reasoning = False
            self._write("\n")
        self._write(text)

    def content_finished(self, content: str) -> None:
        self._newline()

    def refusal_finished(self, refusal: str) -> None:
        self._first_output()
        self._newline()
        console.print(f"{WARNING_LABEL}> refused:", end=" ")
        console.out(refusal, highlight=False)

    def tool_call_finished(self, call) -> None:
        self._first_output()
        self._newline()
        console.out(f"requested {call.name} #{call.index}", style=Ansi.DIM, highlight=False)

    def cancelled(self) -> None:
        self._first_output()
        self._newline()
        console.print("[interrupted]", markup=False)

    def end_response(self) -> None:
        self._first_output()
        self._newline()

    def _newline(self) -> None:
        if self._column:
            console.out("")
            self._column = 0

    # ---------------- tools -----------------

    def tool_call(self, call) -> None:
        console.print(f"{TOOL_LABEL}> {call.name}", end=" ")
        console.out(call.arguments, highlight=False)

    def tool_result(self, message) -> None:
        console.print(f"{TOOL_LABEL}> result:", end=" ")
        console.out(message.content, highlight=False)

    def missing_tool(self, call) -> None:
        console.print(f"{ERROR_LABEL}> no handler for tool call", end=" ")
        console.out(f"{call.name}({call.arguments})", highlight=False)

    def end_turn(self) -> None:
        console.out("")
