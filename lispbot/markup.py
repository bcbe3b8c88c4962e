"""
markup - Chat code-block formatting.

Inbound messages arrive as `code`, ```code``` or ```lisp\\ncode```;
`strip` recovers the bare source. `wrap` does the reverse for replies.
"""

from __future__ import annotations

from .config import DEFAULT_LANGUAGE

FENCE = "```"
TICK = "`"


def strip(text: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Remove the chat formatting (backticks etc.) and return only the source."""
    # Optional prefixes.
    trimmed = text.strip()
    if trimmed.startswith(FENCE):
        s = trimmed[len(FENCE):]
        tag = language + "\n"
        if s.startswith(tag):
            s = s[len(tag):]
    elif text.startswith(TICK):
        s = text[len(TICK):]
    else:
        s = text

    # Optional postfixes.
    trimmed = s.strip()
    if trimmed.endswith(FENCE):
        s = trimmed[:-len(FENCE)]
    elif s.endswith(TICK):
        s = s[:-len(TICK)]
    return s.strip()


def wrap(text: str, language: str = DEFAULT_LANGUAGE) -> str:
    """Add the chat formatting so `text` displays as a code block."""
    return f"{FENCE}{language}\n{text}\n{FENCE}"
