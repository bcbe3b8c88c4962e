"""
config - Defaults and per-conversation settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


DEFAULT_LANGUAGE = "lisp"   # code-fence language tag
DIRECTIVE_PREFIX = "!"

# Rendered values longer than MAX_VALUE_CHARS are shown as
# head + ELLIPSIS + tail.
MAX_VALUE_CHARS = 64
TRUNCATE_HEAD = 32
TRUNCATE_TAIL = 29
ELLIPSIS = "..."


class LineBreak(Enum):
    """Where `CodeAccumulator.append` starts a new line."""
    ALWAYS = "always"               # before every line that opens with a non-closer
    AFTER_CLOSER = "after-closer"   # only when the buffer ends with a closer


class Mode(Enum):
    """How a balanced buffer is evaluated."""
    SINGLE = "single"   # exactly one form, buffer cleared afterwards
    MULTI = "multi"     # every form, buffer and bindings kept


@dataclass
class Config:
    language: str = DEFAULT_LANGUAGE
    line_break: LineBreak = LineBreak.ALWAYS
    mode: Mode = Mode.MULTI
    max_value_chars: int = MAX_VALUE_CHARS
    truncate_head: int = TRUNCATE_HEAD
    truncate_tail: int = TRUNCATE_TAIL
    directive_prefix: str = DIRECTIVE_PREFIX
    verbose: bool = False

    def __post_init__(self):
        # argparse hands us plain strings
        if isinstance(self.line_break, str):
            self.line_break = LineBreak(self.line_break)
        if isinstance(self.mode, str):
            self.mode = Mode(self.mode)
        if self.truncate_head + len(ELLIPSIS) + self.truncate_tail > self.max_value_chars:
            raise ValueError(
                f"truncate_head + truncate_tail + {len(ELLIPSIS)} must not exceed "
                f"max_value_chars ({self.max_value_chars})"
            )
