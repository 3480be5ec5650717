"""Safe arithmetic expressions for Monte Carlo models.

Expressions are tokenized, parsed by recursive descent into an immutable AST
and evaluated by walking the tree against a ``name -> float`` environment.
Nothing here calls ``eval``.

Grammar, lowest to highest precedence::

    expr    := term (('+' | '-') term)*
    term    := power (('*' | '/') power)*
    power   := unary ('^' unary)*          # left-associative
    unary   := ('-' | '+') atom | atom
    atom    := NUMBER | '(' expr ')' | FUNC '(' expr ')' | NAME

Evaluation is permissive so partially configured models still run: unknown
characters are skipped, unbound names evaluate to 0, division by zero gives
0 and a non-finite final result is coerced to 0. Each of these conditions is
recorded as a diagnostic string instead of raising.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

OPERATORS = "+-*/^(),"
FUNCTION_ALIASES = {"ln": "log"}


def _safe_sqrt(a: float) -> float:
    return math.sqrt(max(0.0, a)) if not math.isnan(a) else math.nan


def _safe_log(a: float) -> float:
    return math.log(a) if a > 0 else 0.0


def _safe_exp(a: float) -> float:
    return math.exp(min(a, 700.0)) if not math.isnan(a) else math.nan


def _finite_only(fn: Callable[[float], float]) -> Callable[[float], float]:
    def wrapped(a: float) -> float:
        return fn(a) if math.isfinite(a) else math.nan

    return wrapped


FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "sqrt": _safe_sqrt,
    "abs": abs,
    "log": _safe_log,
    "exp": _safe_exp,
    "sin": _finite_only(math.sin),
    "cos": _finite_only(math.cos),
}
KNOWN_FUNCTIONS: FrozenSet[str] = frozenset(FUNCTIONS) | frozenset(FUNCTION_ALIASES)

_NUMBER_PREFIX = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class UnaryMinus:
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    fn: str
    arg: "Node"


Node = Union[Number, Variable, UnaryMinus, BinaryOp, Call]


def tokenize(text: str, diagnostics: Optional[List[str]] = None) -> List[str]:
    """Split ``text`` into operator, number and identifier tokens.

    A ``+`` or ``-`` directly after an exponent marker stays inside the
    numeric literal (``1e-5``); anywhere else it ends the literal. Unknown
    characters are skipped and, when ``diagnostics`` is given, reported there.
    """
    tokens: List[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch in OPERATORS:
            tokens.append(ch)
            i += 1
            continue
        if ch.isdigit() or ch == ".":
            start = i
            while i < n and (text[i].isdigit() or text[i] in ".eE+-"):
                if text[i] in "+-" and text[i - 1] not in "eE":
                    break
                i += 1
            tokens.append(text[start:i])
            continue
        if ch.isalpha() or ch == "_":
            start = i
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
            tokens.append(text[start:i])
            continue
        if diagnostics is not None:
            diagnostics.append(f"Skipped unknown character {ch!r} at position {i}.")
        i += 1
    return tokens


def _parse_literal(token: str) -> float:
    match = _NUMBER_PREFIX.match(token)
    return float(match.group(0)) if match else 0.0


class _Parser:
    """Recursive-descent parser over a token list; never raises."""

    def __init__(self, tokens: List[str], diagnostics: List[str]):
        self.tokens = tokens
        self.pos = 0
        self.diagnostics = diagnostics

    def peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def advance(self) -> str:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def expect_close(self) -> None:
        if self.peek() == ")":
            self.pos += 1
        else:
            self.diagnostics.append("Missing closing parenthesis.")

    def expression(self) -> Node:
        left = self.term()
        while self.peek() in ("+", "-"):
            op = self.advance()
            left = BinaryOp(op, left, self.term())
        return left

    def term(self) -> Node:
        left = self.power()
        while self.peek() in ("*", "/"):
            op = self.advance()
            left = BinaryOp(op, left, self.power())
        return left

    def power(self) -> Node:
        left = self.unary()
        while self.peek() == "^":
            self.advance()
            left = BinaryOp("^", left, self.unary())
        return left

    def unary(self) -> Node:
        token = self.peek()
        if token == "-":
            self.advance()
            return UnaryMinus(self.atom())
        if token == "+":
            self.advance()
        return self.atom()

    def atom(self) -> Node:
        token = self.peek()
        if token is None:
            self.diagnostics.append("Unexpected end of expression.")
            return Number(0.0)

        if token == "(":
            self.advance()
            node = self.expression()
            self.expect_close()
            return node

        if token[0].isdigit() or token[0] == ".":
            self.advance()
            return Number(_parse_literal(token))

        if token[0].isalpha() or token[0] == "_":
            self.advance()
            lower = token.lower()
            if lower in KNOWN_FUNCTIONS and self.peek() == "(":
                self.advance()
                arg = self.expression()
                self.expect_close()
                return Call(FUNCTION_ALIASES.get(lower, lower), arg)
            return Variable(token)

        self.advance()
        self.diagnostics.append(f"Unexpected token {token!r}.")
        return Number(0.0)


def _parse_tokens(tokens: List[str], diagnostics: List[str]) -> Node:
    if not tokens:
        return Number(0.0)
    parser = _Parser(tokens, diagnostics)
    try:
        node = parser.expression()
    except RecursionError:
        diagnostics.append("Expression is nested too deeply.")
        return Number(0.0)
    if parser.pos < len(tokens):
        diagnostics.append(
            f"Ignored trailing tokens: {' '.join(tokens[parser.pos:])}"
        )
    return node


def parse(text: str) -> Node:
    """Parse ``text`` into an AST. Malformed input degrades, never raises."""
    return _parse_tokens(tokenize(text), [])


def variables_in(node: Node) -> FrozenSet[str]:
    """Return every variable name referenced by ``node``."""
    names = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Variable):
            names.add(current.name)
        elif isinstance(current, UnaryMinus):
            stack.append(current.operand)
        elif isinstance(current, BinaryOp):
            stack.append(current.left)
            stack.append(current.right)
        elif isinstance(current, Call):
            stack.append(current.arg)
    return frozenset(names)


def _power(left: float, right: float) -> float:
    if left == 0 and right < 0:
        return math.inf
    try:
        return math.pow(left, right)
    except OverflowError:
        return math.inf
    except ValueError:
        # negative base with fractional exponent
        return math.nan


def _apply(op: str, left: float, right: float) -> float:
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        return left / right if right != 0 else 0.0
    if op == "^":
        return _power(left, right)
    return 0.0


def _evaluate(node: Node, env: Mapping[str, float]) -> float:
    # Post-order walk with explicit stacks; long operator chains nest deeply.
    values: List[float] = []
    stack: List[Tuple[Node, bool]] = [(node, False)]
    while stack:
        current, expanded = stack.pop()
        if isinstance(current, Number):
            values.append(current.value)
        elif isinstance(current, Variable):
            values.append(float(env.get(current.name, 0.0)))
        elif isinstance(current, UnaryMinus):
            if expanded:
                values.append(-values.pop())
            else:
                stack.append((current, True))
                stack.append((current.operand, False))
        elif isinstance(current, BinaryOp):
            if expanded:
                right = values.pop()
                left = values.pop()
                values.append(_apply(current.op, left, right))
            else:
                stack.append((current, True))
                stack.append((current.right, False))
                stack.append((current.left, False))
        elif isinstance(current, Call):
            if expanded:
                fn = FUNCTIONS.get(current.fn)
                arg = values.pop()
                values.append(fn(arg) if fn else 0.0)
            else:
                stack.append((current, True))
                stack.append((current.arg, False))
        else:
            values.append(0.0)
    return values.pop()


@dataclass(frozen=True)
class CompiledExpression:
    """A parsed expression ready for repeated evaluation."""

    source: str
    ast: Node
    diagnostics: Tuple[str, ...] = field(default=())

    @property
    def variables(self) -> FrozenSet[str]:
        return variables_in(self.ast)

    def unbound_variables(self, names) -> List[str]:
        """Names referenced by the expression but absent from ``names``."""
        bound = set(names)
        return sorted(v for v in self.variables if v not in bound)

    def evaluate(self, env: Mapping[str, float]) -> float:
        return evaluate(self.ast, env)


def compile_expression(text: str) -> CompiledExpression:
    diagnostics: List[str] = []
    tokens = tokenize(text, diagnostics)
    ast = _parse_tokens(tokens, diagnostics)
    for message in diagnostics:
        logger.debug("Expression %r: %s", text, message)
    return CompiledExpression(source=text, ast=ast, diagnostics=tuple(diagnostics))


def evaluate(expr: Union[Node, CompiledExpression, str], env: Mapping[str, float]) -> float:
    """Evaluate an expression; total, returns 0 for any non-finite result."""
    if isinstance(expr, CompiledExpression):
        node = expr.ast
    elif isinstance(expr, str):
        node = parse(expr)
    else:
        node = expr
    result = _evaluate(node, env)
    return result if math.isfinite(result) else 0.0
