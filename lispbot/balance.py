"""
balance - Bracket-balance classification of a source buffer.

A single counter is moved up on every opener and down on every closer.
Strings and comments are not special: a paren inside "..." counts too.
"""

from __future__ import annotations

from dataclasses import dataclass


OPENER = "("
CLOSER = ")"


@dataclass(frozen=True)
class Balanced:
    def __str__(self): return "balanced"


@dataclass(frozen=True)
class MissingClosers:
    count: int
    def __str__(self): return f"missing {self.count} closing"


@dataclass(frozen=True)
class ExtraClosers:
    count: int
    def __str__(self): return f"{self.count} extra closing"


BalanceState = Balanced | MissingClosers | ExtraClosers


def scan(text: str, opener: str = OPENER, closer: str = CLOSER) -> BalanceState:
    """Are the brackets in `text` balanced?"""
    n_opened = 0
    for c in text:
        if c == opener:
            n_opened += 1
        elif c == closer:
            n_opened -= 1

    if n_opened == 0:
        return Balanced()
    if n_opened < 0:
        return ExtraClosers(-n_opened)
    return MissingClosers(n_opened)


def missing_depth(state: BalanceState) -> int:
    """Indent depth implied by a balance state (0 unless closers are missing)."""
    if isinstance(state, MissingClosers):
        return state.count
    return 0
