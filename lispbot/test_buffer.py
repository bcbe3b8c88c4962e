"""
Tests for the buffer side of lispbot: balance scan, chat markup and the
code accumulator (indentation, closer hugging, line deletion).
"""

from __future__ import annotations

import sys

from lispbot import markup
from lispbot.accumulator import CodeAccumulator
from lispbot.balance import Balanced, ExtraClosers, MissingClosers, scan
from lispbot.config import LineBreak


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------

def test_scan_counts():
    assert scan("") == Balanced()
    assert scan("(+ 1 2)") == Balanced()
    assert scan("(define x (+ 1") == MissingClosers(2)
    assert scan("(+ 1 2)))") == ExtraClosers(2)
    for n in range(1, 6):
        assert scan("(" * n + "x") == MissingClosers(n)
        assert scan("x" + ")" * n) == ExtraClosers(n)
        assert scan("(" * n + ")" * n) == Balanced()


def test_scan_ignores_quoting():
    # parens inside strings and comments still count
    assert scan('(print "(")') == MissingClosers(1)
    assert scan("(+ 1 2) ; )") == ExtraClosers(1)


def test_scan_other_brackets():
    assert scan("[a [b]", "[", "]") == MissingClosers(1)
    assert scan("(((", "[", "]") == Balanced()


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------

def test_strip_markup():
    assert markup.strip("`blah`") == "blah"
    assert markup.strip("`blah") == "blah"
    assert markup.strip("blah`") == "blah"
    assert markup.strip("```blah```") == "blah"
    assert markup.strip("```blah") == "blah"
    assert markup.strip("blah```") == "blah"
    assert markup.strip("```lisp\nblah```") == "blah"
    assert markup.strip("```lisp\nblah") == "blah"
    assert markup.strip("lisp\nblah```") == "lisp\nblah"
    assert markup.strip("  (+ 1 2)\n") == "(+ 1 2)"
    assert markup.strip("```lisp\nfoo") == "foo"
    assert markup.strip("`foo`") == "foo"


def test_strip_other_language():
    assert markup.strip("```scheme\n(car x)\n```", language="scheme") == "(car x)"
    assert markup.strip("```lisp\n(car x)\n```", language="scheme") == "lisp\n(car x)"


def test_wrap_then_strip():
    for text in ["foo", "(+ 1 2)", "(define x\n\t(+ 1 2))", "a\nb\nc"]:
        wrapped = markup.wrap(text)
        assert wrapped == f"```lisp\n{text}\n```"
        assert markup.strip(wrapped) == text


# ---------------------------------------------------------------------------
# Accumulator
# ---------------------------------------------------------------------------

def test_append_indents_by_depth():
    code = CodeAccumulator(
        "(define fib (lambda (n)\n\t\t(if (< n 2)\n\t\t\tn(+ (fib (- n 1))",
    )
    code.append("(fib (- n 2))")
    assert code.text.endswith("\n\t\t\t\t(fib (- n 2))")
    code.append(")")
    assert code.text.endswith("(- n 2)))")
    code.append(")))")
    assert code.text.endswith("(- n 2))))))")
    assert code.balance() == Balanced()


def test_append_to_empty_buffer():
    code = CodeAccumulator()
    code.append("(+ 1 2")
    assert code.text == "(+ 1 2"
    assert code.balance() == MissingClosers(1)
    code.append(")")
    assert code.text == "(+ 1 2)"
    assert code.balance() == Balanced()


def test_closers_hug_previous_line():
    code = CodeAccumulator("(a (b (c")
    code.append("))")
    assert code.text == "(a (b (c))"
    code.append("`)`")
    assert code.text == "(a (b (c)))"
    assert "\n" not in code.text


def test_closers_then_rest_of_line():
    code = CodeAccumulator("(list (a")
    code.append(") (b)")
    # the closer hugs, the rest starts a new line at the old depth
    assert code.text == "(list (a)\n\t\t (b)"


def test_append_multiline_fragment():
    code = CodeAccumulator()
    code.append("```lisp\n(defun sq (x)\n(* x x))\n```")
    assert code.text == "(defun sq (x)\n(* x x))"
    assert code.lines() == ["(defun sq (x)", "(* x x))"]


def test_append_splits_on_newline_only():
    code = CodeAccumulator()
    code.append('(concat "a\x0cb\x0bc d")')
    assert code.text == '(concat "a\x0cb\x0bc d")'
    assert len(code) == 1


def test_append_drops_carriage_returns():
    code = CodeAccumulator()
    code.append("(a\r\nb)")
    assert code.text == "(a\nb)"


def test_after_closer_policy():
    code = CodeAccumulator(line_break=LineBreak.AFTER_CLOSER)
    code.append("(define x")
    code.append("10)")
    assert code.text == "(define x 10)"
    code.append("(print x)")
    assert code.text == "(define x 10)\n(print x)"

    code = CodeAccumulator(line_break=LineBreak.AFTER_CLOSER)
    code.append("(list (+ 1 2)")
    code.append("(* 3 4)")
    assert code.text == "(list (+ 1 2)\n\t(* 3 4)"
    code.append("(")
    code.append("5)")
    assert code.text == "(list (+ 1 2)\n\t(* 3 4)\n\t(5)"


def test_always_policy_breaks_every_line():
    code = CodeAccumulator(line_break=LineBreak.ALWAYS)
    code.append("(define x")
    code.append("10)")
    assert code.text == "(define x\n\t10)"


def test_delete_lines():
    code = CodeAccumulator("a\nb\nc")
    assert code.delete(0) == "c"
    assert code.text == "a\nb"

    code = CodeAccumulator("a\nb\nc")
    assert code.delete(1) == "b"
    assert code.text == "a\nc"


def test_delete_saturates_to_first_line():
    code = CodeAccumulator("a\nb\nc")
    assert code.delete(3) == "a"
    assert code.delete(100) == "b"
    assert code.text == "c"
    assert code.delete(0) == "c"
    assert code.text == ""
    assert code.delete(0) is None
    assert code.balance() == Balanced()


def test_delete_negative_is_noop():
    code = CodeAccumulator("a\nb")
    assert code.delete(-1) is None
    assert code.text == "a\nb"


def test_str_wraps_buffer():
    code = CodeAccumulator("(+ 1 2)")
    assert str(code) == "```lisp\n(+ 1 2)\n```"
    assert len(code) == 1
    code.reset()
    assert code.text == "" and len(code) == 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    tests = [(name, fn) for name, fn in globals().items()
             if name.startswith("test_") and callable(fn)]
    failed = 0
    for name, fn in tests:
        try:
            fn()
            print(f"  ok    {name}")
        except AssertionError as e:
            failed += 1
            print(f"  FAIL  {name}: {e}")
    print(f"\n{len(tests) - failed}/{len(tests)} passed")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
