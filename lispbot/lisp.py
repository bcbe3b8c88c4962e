"""
lisp - A small Lisp reader and evaluator.

Reader: Lark grammar over integers, floats, strings, symbols, 'quote sugar,
lists and ; comments. `parse` yields one entry per top-level form so a
single malformed form does not hide the others.

Evaluator:
  (define x 1)                   bind name in current env
  (set x 2)                      rebind an existing name
  (lambda (a b) body...)         anonymous function
  (defun f (a b) body...)        named function
  (let ((a 1) (b 2)) body...)    local bindings
  (if c then else)               conditional, else optional
  (cond (c1 e1...) (c2 e2...))   first true clause
  (begin e1 e2 ...)              sequence, returns last
  (and ...) (or ...)             short-circuit
  (quote x) / 'x                 data

Falsy values are F and NIL (the empty list); everything else is true.
"""

from __future__ import annotations

import ast
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from lark import Lark, Transformer, v_args
from lark.exceptions import (
    UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError,
)

# ============================================================
# Grammar
# ============================================================

GRAMMAR = r"""
    start: expr

    ?expr: string
         | quoted
         | list
         | atom

    atom: /[^\s()'";]+/
    string: ESCAPED_STRING
    quoted: "'" expr
    list: "(" expr* ")"

    %import common.ESCAPED_STRING
    COMMENT: /;[^\n]*/
    %ignore COMMENT
    %ignore /\s+/
"""

parser = Lark(GRAMMAR, parser="lalr")

# ============================================================
# Values
# ============================================================

NIL: list = []


@dataclass(frozen=True)
class Symbol:
    name: str
    def __repr__(self): return self.name


@dataclass(eq=False)
class Lambda:
    params: list[Symbol]
    body: list
    env: "Env"
    name: str = ""
    def __repr__(self): return format_value(self)


@dataclass(eq=False)
class Native:
    name: str
    fn: Callable[[list], Any]
    def __repr__(self): return format_value(self)


class LispError(Exception):
    """Runtime error raised while evaluating an expression."""


class ParseError(Exception):
    """A top-level form that could not be read."""


def require_arg(func_name: str, args: list, index: int) -> Any:
    if index >= len(args):
        raise LispError(f'"{func_name}" requires an argument {index + 1}')
    return args[index]


def is_truthy(v: Any) -> bool:
    if v is False:
        return False
    return not (isinstance(v, list) and not v)


# ============================================================
# Reader
# ============================================================

def read_atom(text: str) -> Any:
    if text == "T":
        return True
    if text == "F":
        return False
    if text in ("nil", "NIL"):
        return []
    if not any(ch.isdigit() for ch in text):
        return Symbol(text)
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return Symbol(text)


@v_args(inline=True)
class ASTBuilder(Transformer):
    def atom(self, tok):
        return read_atom(str(tok))

    def string(self, tok):
        return ast.literal_eval(str(tok))

    def quoted(self, expr):
        return [Symbol("quote"), expr]

    def list(self, *items):
        return list(items)

    def start(self, expr):
        return expr


ast_builder = ASTBuilder()


def _skip_string(text: str, i: int) -> int:
    """Index just past the string literal starting at text[i]."""
    j = i + 1
    while j < len(text):
        if text[j] == "\\":
            j += 2
        elif text[j] == '"':
            return j + 1
        else:
            j += 1
    return len(text)


def _skip_comment(text: str, i: int) -> int:
    end = text.find("\n", i)
    return len(text) if end == -1 else end + 1


def split_forms(text: str) -> Iterator[str]:
    """Yield the source of each top-level form.

    An unclosed list runs to the end of the text; a stray ")" is yielded
    on its own. Both then fail in `read`.
    """
    i, n = 0, len(text)
    while i < n:
        c = text[i]
        if c.isspace():
            i += 1
            continue
        if c == ";":
            i = _skip_comment(text, i)
            continue

        start = i
        while i < n and text[i] == "'":
            i += 1

        if i < n and text[i] == "(":
            depth = 0
            while i < n:
                c = text[i]
                if c == '"':
                    i = _skip_string(text, i)
                    continue
                if c == ";":
                    i = _skip_comment(text, i)
                    continue
                i += 1
                if c == "(":
                    depth += 1
                elif c == ")":
                    depth -= 1
                    if depth == 0:
                        break
        elif i < n and text[i] == '"':
            i = _skip_string(text, i)
        elif i < n and text[i] == ")":
            i += 1
        else:
            while i < n and not text[i].isspace() and text[i] not in "()'\";":
                i += 1
        yield text[start:i]


def _describe(e: UnexpectedInput) -> str:
    if isinstance(e, UnexpectedEOF):
        return "unexpected end of input"
    if isinstance(e, UnexpectedToken):
        if e.token.type == "$END":
            return "unexpected end of input"
        return f"unexpected {str(e.token)!r} at line {e.line}, column {e.column}"
    if isinstance(e, UnexpectedCharacters):
        return f"unexpected character {e.char!r} at line {e.line}, column {e.column}"
    return str(e)


def read(text: str) -> Any:
    """Read exactly one form."""
    try:
        tree = parser.parse(text)
    except UnexpectedInput as e:
        raise ParseError(_describe(e)) from e
    except RecursionError as e:
        raise ParseError("expression nested too deeply") from e
    try:
        return ast_builder.transform(tree)
    except VisitError as e:
        # lark wraps whatever a rule callback raises
        if isinstance(e.orig_exc, RecursionError):
            raise ParseError("expression nested too deeply") from e
        raise ParseError(f"invalid {e.rule}: {e.orig_exc}") from e
    except RecursionError as e:
        raise ParseError("expression nested too deeply") from e


def parse(text: str) -> Iterator[Any]:
    """Lazily yield each top-level expression, or a ParseError in its place."""
    for source in split_forms(text):
        try:
            yield read(source)
        except ParseError as e:
            yield e


# ============================================================
# Environment
# ============================================================

class Env:
    """Name bindings with an optional enclosing scope."""

    def __init__(self, bindings: dict[str, Any] | None = None, parent: Env | None = None):
        self.bindings: dict[str, Any] = dict(bindings or {})
        self.parent = parent

    def lookup(self, name: str) -> Any:
        env = self
        while env is not None:
            if name in env.bindings:
                return env.bindings[name]
            env = env.parent
        raise LispError(f"Symbol {name} is not defined")

    def define(self, name: str, value: Any) -> None:
        self.bindings[name] = value

    def undefine(self, name: str) -> None:
        self.bindings.pop(name, None)

    def set(self, name: str, value: Any) -> None:
        env = self
        while env is not None:
            if name in env.bindings:
                env.bindings[name] = value
                return
            env = env.parent
        raise LispError(f"Tried to set value of undefined symbol {name}")

    def __contains__(self, name: str):
        try:
            self.lookup(name)
        except LispError:
            return False
        return True


# ============================================================
# Evaluator
# ============================================================

def _symbol(form: Any, what: str) -> Symbol:
    if not isinstance(form, Symbol):
        raise LispError(f"{what} expects a symbol, got {format_value(form)}")
    return form


def _params(form: Any) -> list[Symbol]:
    if not isinstance(form, list):
        raise LispError(f"Expected a parameter list, got {format_value(form)}")
    return [_symbol(p, "lambda") for p in form]


def _body(forms: list, env: Env) -> Any:
    result: Any = NIL
    for form in forms:
        result = evaluate(form, env)
    return result


def evaluate(expr: Any, env: Env) -> Any:
    """Evaluate `expr` in `env`. Raises LispError on failure."""
    if isinstance(expr, Symbol):
        return env.lookup(expr.name)

    # Numbers, strings, booleans evaluate to themselves
    if not isinstance(expr, list):
        return expr

    if not expr:
        return NIL

    head, args = expr[0], expr[1:]

    if isinstance(head, Symbol):
        name = head.name

        # (quote x)
        if name == "quote":
            return require_arg("quote", args, 0)

        # (if cond then [else])
        if name == "if":
            cond = evaluate(require_arg("if", args, 0), env)
            if is_truthy(cond):
                return evaluate(require_arg("if", args, 1), env)
            return evaluate(args[2], env) if len(args) > 2 else NIL

        # (cond (test body...) ...)
        if name == "cond":
            for clause in args:
                if not isinstance(clause, list) or not clause:
                    raise LispError(f"cond clause must be a non-empty list, got {format_value(clause)}")
                if is_truthy(evaluate(clause[0], env)):
                    return _body(clause[1:], env)
            return NIL

        # (define name expr)
        if name == "define":
            sym = _symbol(require_arg("define", args, 0), "define")
            val = evaluate(require_arg("define", args, 1), env)
            env.define(sym.name, val)
            return val

        # (set name expr)
        if name == "set":
            sym = _symbol(require_arg("set", args, 0), "set")
            val = evaluate(require_arg("set", args, 1), env)
            env.set(sym.name, val)
            return val

        # (lambda (params) body...)
        if name == "lambda":
            params = _params(require_arg("lambda", args, 0))
            return Lambda(params, args[1:], env)

        # (defun name (params) body...)
        if name == "defun":
            sym = _symbol(require_arg("defun", args, 0), "defun")
            params = _params(require_arg("defun", args, 1))
            fn = Lambda(params, args[2:], env, name=sym.name)
            env.define(sym.name, fn)
            return fn

        # (let ((name expr) ...) body...)
        if name == "let":
            bindings = require_arg("let", args, 0)
            if not isinstance(bindings, list):
                raise LispError(f"let expects a binding list, got {format_value(bindings)}")
            local = Env(parent=env)
            for binding in bindings:
                if not (isinstance(binding, list) and len(binding) == 2):
                    raise LispError(f"let binding must be (name value), got {format_value(binding)}")
                sym = _symbol(binding[0], "let")
                local.define(sym.name, evaluate(binding[1], env))
            return _body(args[1:], local)

        # (begin expr1 expr2 ...)
        if name == "begin":
            return _body(args, env)

        if name == "and":
            result: Any = True
            for form in args:
                result = evaluate(form, env)
                if not is_truthy(result):
                    return False
            return result

        if name == "or":
            for form in args:
                result = evaluate(form, env)
                if is_truthy(result):
                    return result
            return False

    # General application
    fn = evaluate(head, env)
    return apply(fn, [evaluate(a, env) for a in args])


def apply(fn: Any, args: list) -> Any:
    if isinstance(fn, Native):
        try:
            return fn.fn(args)
        except (TypeError, ValueError, IndexError, ArithmeticError) as e:
            raise LispError(f'"{fn.name}": {e}') from e

    if isinstance(fn, Lambda):
        if len(args) != len(fn.params):
            raise LispError(
                f"{format_value(fn)} expects {len(fn.params)} arguments, got {len(args)}"
            )
        local = Env({p.name: a for p, a in zip(fn.params, args)}, parent=fn.env)
        return _body(fn.body, local)

    raise LispError(f"{format_value(fn)} is not callable")


# ============================================================
# Standard bindings
# ============================================================

def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _numbers(name: str, args: list) -> list:
    for a in args:
        if not _is_number(a):
            raise LispError(f'"{name}" expects numbers, got {format_value(a)}')
    return args


def _list_arg(name: str, args: list, index: int) -> list:
    v = require_arg(name, args, index)
    if not isinstance(v, list):
        raise LispError(f'"{name}" expects a list, got {format_value(v)}')
    return v


def _add(args):
    return sum(_numbers("+", args))


def _sub(args):
    nums = _numbers("-", args)
    first = require_arg("-", nums, 0)
    if len(nums) == 1:
        return -first
    for n in nums[1:]:
        first -= n
    return first


def _mul(args):
    return math.prod(_numbers("*", args))


def _div(args):
    nums = _numbers("/", args)
    result = require_arg("/", nums, 0)
    require_arg("/", nums, 1)
    for n in nums[1:]:
        if n == 0:
            raise LispError("Division by zero")
        if isinstance(result, int) and isinstance(n, int):
            # integer division truncates toward zero
            q = abs(result) // abs(n)
            result = q if (result < 0) == (n < 0) else -q
        else:
            result = result / n
    return result


def _mod(args):
    a, b = _numbers("%", [require_arg("%", args, 0), require_arg("%", args, 1)])
    if b == 0:
        raise LispError("Division by zero")
    return a % b


def _equal(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    return a == b


def _compare(name: str, op: Callable[[Any, Any], bool]) -> Native:
    def fn(args):
        require_arg(name, args, 1)
        if not (all(_is_number(a) for a in args) or all(isinstance(a, str) for a in args)):
            raise LispError(f'"{name}" expects all numbers or all strings')
        return all(op(x, y) for x, y in zip(args, args[1:]))
    return Native(name, fn)


def _cons(args):
    head = require_arg("cons", args, 0)
    return [head] + _list_arg("cons", args, 1)


def _car(args):
    lst = _list_arg("car", args, 0)
    if not lst:
        raise LispError("Attempted to apply car on nil")
    return lst[0]


def _cdr(args):
    lst = _list_arg("cdr", args, 0)
    if not lst:
        raise LispError("Attempted to apply cdr on nil")
    return lst[1:]


def _nth(args):
    index = require_arg("nth", args, 0)
    lst = _list_arg("nth", args, 1)
    if not isinstance(index, int) or isinstance(index, bool):
        raise LispError(f'"nth" expects an integer index, got {format_value(index)}')
    if not 0 <= index < len(lst):
        raise LispError(f"Index {index} out of range for list of length {len(lst)}")
    return lst[index]


def _length(args):
    v = require_arg("length", args, 0)
    if not isinstance(v, (list, str)):
        raise LispError(f'"length" expects a list or string, got {format_value(v)}')
    return len(v)


def _map(args):
    fn = require_arg("map", args, 0)
    return [apply(fn, [x]) for x in _list_arg("map", args, 1)]


def _filter(args):
    fn = require_arg("filter", args, 0)
    return [x for x in _list_arg("filter", args, 1) if is_truthy(apply(fn, [x]))]


def _range(args):
    lo, hi = _numbers("range", [require_arg("range", args, 0), require_arg("range", args, 1)])
    return list(range(int(lo), int(hi)))


def _concat(args):
    return "".join(a if isinstance(a, str) else format_value(a) for a in args)


def _stdout_print(args):
    v = require_arg("print", args, 0)
    print(format_value(v))
    return v


def default_env() -> Env:
    """A fresh environment holding the standard bindings."""
    natives = [
        Native("+", _add),
        Native("-", _sub),
        Native("*", _mul),
        Native("/", _div),
        Native("%", _mod),
        Native("==", lambda args: _equal(require_arg("==", args, 0), require_arg("==", args, 1))),
        Native("!=", lambda args: not _equal(require_arg("!=", args, 0), require_arg("!=", args, 1))),
        _compare("<", lambda x, y: x < y),
        _compare("<=", lambda x, y: x <= y),
        _compare(">", lambda x, y: x > y),
        _compare(">=", lambda x, y: x >= y),
        Native("not", lambda args: not is_truthy(require_arg("not", args, 0))),
        Native("list", lambda args: list(args)),
        Native("cons", _cons),
        Native("car", _car),
        Native("cdr", _cdr),
        Native("nth", _nth),
        Native("length", _length),
        Native("reverse", lambda args: _list_arg("reverse", args, 0)[::-1]),
        Native("null?", lambda args: require_arg("null?", args, 0) == []),
        Native("map", _map),
        Native("filter", _filter),
        Native("range", _range),
        Native("concat", _concat),
        Native("print", _stdout_print),
    ]
    return Env({n.name: n for n in natives})


# ============================================================
# Formatter
# ============================================================

def escape_string_literal(text: str) -> str:
    return (text.replace("\\", "\\\\")
                .replace('"', '\\"')
                .replace("\n", "\\n")
                .replace("\t", "\\t"))


def format_value(v: Any) -> str:
    if isinstance(v, bool):
        return "T" if v else "F"
    if isinstance(v, str):
        return f"\"{escape_string_literal(v)}\""
    if isinstance(v, list):
        if not v:
            return "NIL"
        return "(" + " ".join(format_value(i) for i in v) + ")"
    if isinstance(v, Lambda):
        return f"<lambda:{v.name}>" if v.name else "<lambda>"
    if isinstance(v, Native):
        return f"<native:{v.name}>"
    return str(v)
