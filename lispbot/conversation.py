"""
conversation - One chat conversation: buffer + session + directives.

Messages either extend the buffer or are directives:
  !delete N     drop line N counted back from the newest (0 = last)
  !del N        same
  !reset        empty the buffer and forget all bindings
  !show         show the buffer
"""

from __future__ import annotations

from . import balance, markup
from .accumulator import CodeAccumulator
from .config import Config, Mode
from .session import EvaluationSession, Outcome

HELP = "Directives: !delete N, !reset, !show"


class Conversation:
    def __init__(self, config: Config | None = None):
        self.config = config or Config()
        self.code = self._new_buffer()
        self.session = self._new_session()

    def _new_buffer(self) -> CodeAccumulator:
        return CodeAccumulator(line_break=self.config.line_break,
                               language=self.config.language)

    def _new_session(self) -> EvaluationSession:
        return EvaluationSession(max_value_chars=self.config.max_value_chars,
                                 truncate_head=self.config.truncate_head,
                                 truncate_tail=self.config.truncate_tail)

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------

    def handle(self, message: str) -> str:
        """Process one inbound message and return the reply text."""
        stripped = message.strip()
        if stripped.startswith(self.config.directive_prefix):
            return self._directive(stripped[len(self.config.directive_prefix):])

        self.code.append(message)
        reply = str(self.code)
        if not isinstance(self.code.balance(), balance.Balanced):
            return reply

        outcomes = self.evaluate()
        if outcomes:
            reply += "\n" + markup.wrap(self.session.render(outcomes), self.config.language)
        return reply

    def evaluate(self) -> list[Outcome]:
        """Run the current buffer through the session according to the mode."""
        if self.config.mode is Mode.SINGLE:
            outcomes = self.session.run_once(self.code.text)
            self.code.reset()
            return outcomes
        return self.session.run(self.code.text)

    # -------------------------------------------------------------------
    # Directives
    # -------------------------------------------------------------------

    def _directive(self, text: str) -> str:
        parts = text.split()
        name = parts[0].lower() if parts else ""

        if name in ("delete", "del"):
            if len(parts) != 2:
                return "Usage: !delete N"
            try:
                index = int(parts[1])
            except ValueError:
                return f"Not a line index: {parts[1]}"
            self.code.delete(index)
            return str(self.code)

        if name == "reset":
            self.code = self._new_buffer()
            self.session = self._new_session()
            return str(self.code)

        if name == "show":
            return f"{self.code}\n({self.code.balance()})"

        return HELP
