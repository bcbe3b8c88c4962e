"""
session - Evaluation of a balanced buffer against a long-lived environment.

The session owns both the Lisp environment and the capture buffer that the
overridden `print` writes into, so printed output ends up in the reply
instead of on the bot's stdout. Bindings persist across runs; captured
output is per expression.
"""

from __future__ import annotations

from dataclasses import dataclass

from . import lisp
from .config import ELLIPSIS, MAX_VALUE_CHARS, TRUNCATE_HEAD, TRUNCATE_TAIL


class CaptureError(lisp.LispError):
    """`print` could not render its argument."""


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParseFailure:
    message: str
    def __str__(self): return f"Invalid S-expression, {self.message}"


@dataclass(frozen=True)
class RuntimeFailure:
    message: str
    def __str__(self): return f"Runtime error: {self.message}"


@dataclass(frozen=True)
class CaptureFailure:
    message: str
    def __str__(self): return f"Runtime error: {self.message}"


@dataclass(frozen=True)
class MissingExpression:
    def __str__(self): return "Missing S-expression"


@dataclass(frozen=True)
class WrongExpressionCount:
    count: int
    def __str__(self): return f"Wrong number of S-expressions, {self.count}"


Failure = ParseFailure | RuntimeFailure | CaptureFailure | MissingExpression | WrongExpressionCount


@dataclass(frozen=True)
class Outcome:
    """Result of one top-level expression: a value or a failure, plus its output."""
    value: str | None = None
    failure: Failure | None = None
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    def result_text(self) -> str:
        return self.value if self.failure is None else str(self.failure)


# ---------------------------------------------------------------------------
# EvaluationSession
# ---------------------------------------------------------------------------

class EvaluationSession:
    """Environment + capture buffer for one conversation."""

    def __init__(self, max_value_chars: int = MAX_VALUE_CHARS,
                 truncate_head: int = TRUNCATE_HEAD,
                 truncate_tail: int = TRUNCATE_TAIL):
        self.max_value_chars = max_value_chars
        self.truncate_head = truncate_head
        self.truncate_tail = truncate_tail
        self.out_buf: list[str] = []

        # Register a print that writes to the session buffer
        # instead of the process's stdout.
        self.env = lisp.default_env()
        self.env.undefine("print")
        self.env.define("print", lisp.Native("print", self._print))

    def _print(self, args: list):
        expr = lisp.require_arg("print", args, 0)
        try:
            text = lisp.format_value(expr)
        except (RecursionError, ValueError) as e:
            raise CaptureError("Failed to print output") from e
        self.out_buf.append(text + "\n")
        return expr

    def _take_output(self) -> str:
        output = "".join(self.out_buf)
        self.out_buf.clear()
        return output

    def evaluate(self, expr) -> Outcome:
        """Evaluate one parsed expression; never raises."""
        value = None
        failure = None
        try:
            value = lisp.format_value(lisp.evaluate(expr, self.env))
        except CaptureError as e:
            failure = CaptureFailure(str(e))
        except lisp.LispError as e:
            failure = RuntimeFailure(str(e))
        except RecursionError:
            failure = RuntimeFailure("Maximum recursion depth exceeded")
        except (ValueError, ArithmeticError) as e:
            # int too large to convert to str, float overflow
            failure = RuntimeFailure(str(e))
        except Exception as e:
            failure = RuntimeFailure(f"{type(e).__name__}: {e}")
        return Outcome(value=value, failure=failure, output=self._take_output())

    # -------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------

    def run_once(self, buffer: str) -> list[Outcome]:
        """Single-pass mode: the buffer must hold exactly one expression."""
        forms = list(lisp.parse(buffer))
        if not forms:
            return [Outcome(failure=MissingExpression())]
        if len(forms) > 1:
            return [Outcome(failure=WrongExpressionCount(len(forms)))]
        if isinstance(forms[0], lisp.ParseError):
            return [Outcome(failure=ParseFailure(str(forms[0])))]
        return [self.evaluate(forms[0])]

    def run(self, buffer: str) -> list[Outcome]:
        """Multi-pass mode: evaluate every readable form, skipping the rest."""
        outcomes = []
        for form in lisp.parse(buffer):
            if isinstance(form, lisp.ParseError):
                continue
            outcomes.append(self.evaluate(form))
        return outcomes

    # -------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------

    def truncate(self, text: str) -> str:
        if len(text) <= self.max_value_chars:
            return text
        return text[:self.truncate_head] + ELLIPSIS + text[len(text) - self.truncate_tail:]

    def render(self, outcomes: list[Outcome]) -> str:
        # captured output already ends in "\n", so the value lands on its own line
        return "\n".join(o.output + self.truncate(o.result_text()) for o in outcomes)
