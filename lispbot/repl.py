#!/usr/bin/env python3
"""
lispbot REPL - Chat-style front end for the code accumulator.

Every input line is treated as one chat message, so an expression can be
typed across several lines and is evaluated once its parens balance.

Usage:
  python -m lispbot.repl                              # interactive
  python -m lispbot.repl -e '(+ 1' -e '2)'            # one message per -e
  python -m lispbot.repl messages.txt                 # one message per line
  python -m lispbot.repl --mode single --line-break after-closer
"""

from __future__ import annotations

import argparse
import sys

from colorama import Fore, Style, init as colorama_init

from .config import (
    DEFAULT_LANGUAGE, DIRECTIVE_PREFIX, ELLIPSIS, MAX_VALUE_CHARS, TRUNCATE_HEAD, TRUNCATE_TAIL,
    Config, LineBreak, Mode,
)
from .conversation import Conversation
from .markup import FENCE


def log(config: Config, msg: str):
    if config.verbose:
        print(Style.DIM + msg + Style.RESET_ALL, file=sys.stderr, flush=True)


def colorize(reply: str) -> str:
    """Cyan for the first code block (the buffer), green for the rest."""
    out = []
    block = 0
    inside = False
    for line in reply.split("\n"):
        if line.startswith(FENCE) and not inside:
            inside = True
            block += 1
            out.append(Style.DIM + line + Style.RESET_ALL)
        elif line.startswith(FENCE) and inside:
            inside = False
            out.append(Style.DIM + line + Style.RESET_ALL)
        elif inside:
            color = Fore.CYAN if block == 1 else Fore.GREEN
            out.append(color + line + Style.RESET_ALL)
        else:
            out.append(Fore.YELLOW + line + Style.RESET_ALL)
    return "\n".join(out)


def send(conv: Conversation, message: str) -> str:
    log(conv.config, f"  <- {message!r}")
    reply = conv.handle(message)
    log(conv.config, f"  buffer: {conv.code.balance()}")
    print(colorize(reply))
    return reply


def repl(conv: Conversation):
    """Interactive REPL."""
    print("lispbot REPL")
    print("  One line = one message; evaluation runs once parens balance")
    print(f"  Directives: {DIRECTIVE_PREFIX}delete N, {DIRECTIVE_PREFIX}reset, {DIRECTIVE_PREFIX}show")
    print("  Ctrl-D to exit\n")

    while True:
        try:
            line = input("msg> ")
        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            break

        if not line.strip():
            continue

        try:
            send(conv, line)
        except Exception as e:
            print(f"Error: {e}")


def run_file(conv: Conversation, path: str):
    """Send each non-blank line of a file as a message."""
    with open(path, encoding="utf-8") as f:
        for line in f:
            if line.strip():
                send(conv, line.rstrip("\n"))


# ============================================================
# Main
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lispbot", description=__doc__.split("\n\n")[0])
    p.add_argument("file", nargs="?", help="file of messages, one per line")
    p.add_argument("-e", dest="messages", action="append", metavar="MESSAGE",
                   help="send MESSAGE (repeatable)")
    p.add_argument("--mode", choices=[m.value for m in Mode], default=Mode.MULTI.value)
    p.add_argument("--line-break", choices=[lb.value for lb in LineBreak],
                   default=LineBreak.ALWAYS.value)
    p.add_argument("--language", default=DEFAULT_LANGUAGE, help="code-fence language tag")
    p.add_argument("--max-value-chars", type=int, default=MAX_VALUE_CHARS)
    p.add_argument("--no-color", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def config_from_args(args: argparse.Namespace) -> Config:
    # keep the head/tail split proportional when the limit changes
    head = min(TRUNCATE_HEAD, args.max_value_chars // 2)
    tail = min(TRUNCATE_TAIL, max(0, args.max_value_chars - head - len(ELLIPSIS)))
    return Config(
        language=args.language,
        line_break=args.line_break,
        mode=args.mode,
        max_value_chars=args.max_value_chars,
        truncate_head=head,
        truncate_tail=tail,
        verbose=args.verbose,
    )


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    colorama_init(strip=args.no_color or None)
    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(2)

    conv = Conversation(config)
    log(config, f"mode={config.mode.value} line_break={config.line_break.value}")

    try:
        if args.messages:
            for message in args.messages:
                send(conv, message)
        elif args.file:
            run_file(conv, args.file)
        else:
            repl(conv)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
