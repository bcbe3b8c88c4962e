"""
accumulator - The growing source buffer of one conversation.

Fragments are appended message by message. Each new line is indented by
the number of parens still open, and closing parens are glued onto the
line before them, so loosely typed input reads as nested code without
running a parser.
"""

from __future__ import annotations

from . import balance, markup
from .config import DEFAULT_LANGUAGE, LineBreak


class CodeAccumulator:
    """Owns the source buffer; mutated only through append/delete/reset."""

    def __init__(self, source: str = "",
                 line_break: LineBreak = LineBreak.ALWAYS,
                 language: str = DEFAULT_LANGUAGE,
                 opener: str = balance.OPENER,
                 closer: str = balance.CLOSER):
        self.text = source
        self.line_break = line_break
        self.language = language
        self.opener = opener
        self.closer = closer

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------

    def balance(self) -> balance.BalanceState:
        """Are the parentheses in the source code balanced?"""
        return balance.scan(self.text, self.opener, self.closer)

    def lines(self) -> list[str]:
        return self.text.split("\n") if self.text else []

    def __len__(self):
        return len(self.lines())

    def __str__(self):
        return markup.wrap(self.text, self.language)

    def __repr__(self):
        return f"CodeAccumulator({self.text!r})"

    # -------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------

    def append(self, fragment: str) -> None:
        """Strip chat markup from `fragment` and add it to the buffer."""
        indents = balance.missing_depth(self.balance())
        code = markup.strip(fragment, self.language)

        # only "\n" ends a line; form feeds and the like belong to the code
        for line in code.split("\n"):
            if line.endswith("\r"):
                line = line[:-1]
            for i, c in enumerate(line):
                if c == self.closer:
                    self.text += c
                    continue
                self._start_line(indents)
                self.text += line[i:]
                break

    def _start_line(self, indents: int) -> None:
        if not self.text:
            return
        if self.line_break is LineBreak.ALWAYS or self.text.endswith(self.closer):
            # Tabs per open paren: crude, but it makes the code look decent.
            self.text += "\n" + "\t" * indents
        elif not (self.text[-1].isspace() or self.text.endswith(self.opener)):
            # Our own joining rule: one space keeps "(+ 1" + "2)" from fusing.
            self.text += " "

    def delete(self, relative_index: int) -> str | None:
        """Remove one line counted back from the newest (0 = last line).

        Indexes past the first line saturate to it. Returns the removed
        text, or None when nothing was removed.
        """
        if relative_index < 0:
            return None
        lines = self.lines()
        if not lines:
            return None
        index = max(0, len(lines) - relative_index - 1)
        removed = lines.pop(index)
        self.text = "\n".join(lines)
        return removed

    def reset(self) -> None:
        self.text = ""
