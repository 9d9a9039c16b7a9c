"""
Expression engine: tokenizer, recursive-descent parser, AST and evaluator.

The parser recognizes the grammar below (highest binding first):

    primary    : NUMBER
               | IDENTIFIER
               | IDENTIFIER '(' [expression (',' expression)*] ')'
               | IDENTIFIER '=' expression
               | '(' expression ')'
    power      : primary ['^' factor]
    factor     : '-' factor | power
    term       : factor (('*' | '/') factor)*
    expression : term (('+' | '-') term)*

Assignment is not an infix operator: it is recognized only where an
identifier begins a primary, so the right-hand side always extends to the
end of the enclosing expression and chains bind right to left.

Evaluation works on plain floats with IEEE-754 results. Division by zero and
math domain or range errors produce inf or nan the way the C math library
does, instead of raising.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

from .errors import (
    EvaluationError,
    LexError,
    ParseError,
    UndefinedVariableError,
    UnknownFunctionError,
)

logger = logging.getLogger(__name__)

# Variable name -> current value. One instance lives for the whole session.
Environment = Dict[str, float]


def new_environment() -> Environment:
    """Return a fresh environment seeded with ``Ans = 0.0``."""
    return {'Ans': 0.0}


# ---------------------------
# Tokenizer
# ---------------------------

class TokenType:
    """Enumeration of token types."""
    NUMBER = 'NUMBER'
    IDENTIFIER = 'IDENTIFIER'
    PLUS = 'PLUS'
    MINUS = 'MINUS'
    MULTIPLY = 'MULTIPLY'
    DIVIDE = 'DIVIDE'
    POW = 'POW'
    LPAREN = 'LPAREN'
    RPAREN = 'RPAREN'
    EQUAL = 'EQUAL'
    COMMA = 'COMMA'
    END = 'END'

_PUNCTUATION: Dict[str, str] = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.MULTIPLY,
    '/': TokenType.DIVIDE,
    '^': TokenType.POW,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '=': TokenType.EQUAL,
    ',': TokenType.COMMA,
}

_DIGITS = frozenset('0123456789')


def _is_letter(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


@dataclass(frozen=True)
class Token:
    """A token with its type, literal source text and character position."""
    type: str
    value: str
    pos: int

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r}, pos={self.pos})"


class Lexer:
    """Turns an expression string into tokens, one call to next_token() at a time.

    The cursor only moves forward. Numbers are returned as their source text;
    the parser converts them to floats.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def _advance(self) -> None:
        self.pos += 1

    def _read_while(self, accept: Callable[[str], bool]) -> str:
        start = self.pos
        while self._peek() and accept(self._peek()):
            self._advance()
        return self.text[start:self.pos]

    def next_token(self) -> Token:
        while self._peek() and self._peek().isspace():
            self._advance()
        start = self.pos
        ch = self._peek()
        if ch == '':
            return Token(TokenType.END, '', start)
        if ch in _DIGITS or ch == '.':
            raw = self._read_while(lambda c: c in _DIGITS or c == '.')
            return Token(TokenType.NUMBER, raw, start)
        if _is_letter(ch):
            raw = self._read_while(lambda c: _is_letter(c) or c in _DIGITS or c == '_')
            return Token(TokenType.IDENTIFIER, raw, start)
        if ch in _PUNCTUATION:
            self._advance()
            return Token(_PUNCTUATION[ch], ch, start)
        raise LexError(f"Unexpected character {ch!r} at pos {start}: cannot start a token")

    def tokens(self) -> Iterator[Token]:
        """Yield tokens lazily, ending with (and including) the END token."""
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == TokenType.END:
                return


# ---------------------------
# AST Nodes
# ---------------------------

@dataclass
class ASTNode:
    """Base AST node."""
    pass

@dataclass
class Number(ASTNode):
    value: float

@dataclass
class Variable(ASTNode):
    name: str

@dataclass
class Assignment(ASTNode):
    name: str
    value: ASTNode

@dataclass
class FunctionCall(ASTNode):
    name: str
    args: List[ASTNode]

@dataclass
class UnaryOp(ASTNode):
    op: str
    operand: ASTNode

@dataclass
class BinaryOp(ASTNode):
    op: str
    left: ASTNode
    right: ASTNode


# ---------------------------
# Parser
# ---------------------------

class Parser:
    """Recursive descent parser with a single token of lookahead."""

    def __init__(self, text: str):
        self.lexer = Lexer(text)
        self.current = self.lexer.next_token()

    def _unexpected(self) -> ParseError:
        tok = self.current
        if tok.type == TokenType.END:
            return ParseError(f"Unexpected end of input at pos {tok.pos}")
        return ParseError(f"Unexpected token {tok.value!r} at pos {tok.pos}")

    def consume(self, type_: str) -> Token:
        """Return the current token and advance, if it has the expected type."""
        tok = self.current
        if tok.type != type_:
            raise self._unexpected()
        self.current = self.lexer.next_token()
        return tok

    def parse(self) -> ASTNode:
        """Parse the longest expression at the start of the line.

        Tokens after that expression are ignored, so "1 2" parses as 1.
        """
        return self.parse_expression()

    def parse_expression(self) -> ASTNode:
        """
        expression : term (('+' | '-') term)*
        """
        node = self.parse_term()
        while self.current.type in (TokenType.PLUS, TokenType.MINUS):
            op = self.consume(self.current.type).type
            node = BinaryOp(op, node, self.parse_term())
        return node

    def parse_term(self) -> ASTNode:
        """
        term : factor (('*' | '/') factor)*
        """
        node = self.parse_factor()
        while self.current.type in (TokenType.MULTIPLY, TokenType.DIVIDE):
            op = self.consume(self.current.type).type
            node = BinaryOp(op, node, self.parse_factor())
        return node

    def parse_factor(self) -> ASTNode:
        """
        factor : '-' factor | power
        """
        if self.current.type == TokenType.MINUS:
            self.consume(TokenType.MINUS)
            return UnaryOp(TokenType.MINUS, self.parse_factor())
        return self.parse_power()

    def parse_power(self) -> ASTNode:
        """
        power : primary ['^' factor]

        The exponent is parsed as a factor, which makes '^' right-associative
        and lets it take a negated operand (2^-1).
        """
        node = self.parse_primary()
        if self.current.type == TokenType.POW:
            self.consume(TokenType.POW)
            return BinaryOp(TokenType.POW, node, self.parse_factor())
        return node

    def parse_primary(self) -> ASTNode:
        tok = self.current
        if tok.type == TokenType.NUMBER:
            self.consume(TokenType.NUMBER)
            try:
                return Number(float(tok.value))
            except ValueError:
                raise ParseError(f"Invalid number {tok.value!r} at pos {tok.pos}")
        if tok.type == TokenType.IDENTIFIER:
            self.consume(TokenType.IDENTIFIER)
            if self.current.type == TokenType.LPAREN:
                return FunctionCall(tok.value, self._parse_arguments())
            if self.current.type == TokenType.EQUAL:
                self.consume(TokenType.EQUAL)
                return Assignment(tok.value, self.parse_expression())
            return Variable(tok.value)
        if tok.type == TokenType.LPAREN:
            self.consume(TokenType.LPAREN)
            node = self.parse_expression()
            self.consume(TokenType.RPAREN)
            return node
        raise self._unexpected()

    def _parse_arguments(self) -> List[ASTNode]:
        """Parse '(' [expression (',' expression)*] ')'."""
        self.consume(TokenType.LPAREN)
        args: List[ASTNode] = []
        if self.current.type != TokenType.RPAREN:
            args.append(self.parse_expression())
            while self.current.type == TokenType.COMMA:
                self.consume(TokenType.COMMA)
                args.append(self.parse_expression())
        self.consume(TokenType.RPAREN)
        return args


# ---------------------------
# Builtins
# ---------------------------

def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and x % 2 == 1

def _divide(left: float, right: float) -> float:
    """IEEE-754 division: x/0 is a signed infinity and 0/0 is nan."""
    try:
        return left / right
    except ZeroDivisionError:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)

def _power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and _is_odd_integer(exponent):
            return -math.inf
        return math.inf
    except ValueError:
        # pow(0, negative) is a pole; everything else here is out of domain.
        if base == 0:
            return math.copysign(math.inf, base) if _is_odd_integer(exponent) else math.inf
        return math.nan

def _fmod(a: float, b: float) -> float:
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan

def _c_math(func: Callable[[float], float],
            on_overflow: Callable[[float], float] = lambda x: math.inf,
            poles: Optional[Dict[float, float]] = None) -> Callable[[float], float]:
    """Wrap a one-argument math function so domain and range errors return
    what the C library returns: nan out of domain, infinities at poles and
    on overflow."""
    poles = poles or {}

    def wrapped(x: float) -> float:
        try:
            return func(x)
        except OverflowError:
            return on_overflow(x)
        except ValueError:
            return poles.get(x, math.nan)
    return wrapped

_ln = _c_math(math.log, poles={0.0: -math.inf})

def _log(base: float, x: float) -> float:
    return _divide(_ln(x), _ln(base))

# Builtins registry: arity -> name -> callable.
_BUILTINS: Dict[int, Dict[str, Callable[..., float]]] = {}

def _register(name: str, func: Callable[..., float], arity: int = 1) -> None:
    _BUILTINS.setdefault(arity, {})[name] = func

_register('sin', _c_math(math.sin))
_register('cos', _c_math(math.cos))
_register('tan', _c_math(math.tan))
_register('asin', _c_math(math.asin))
_register('acos', _c_math(math.acos))
_register('atan', _c_math(math.atan))
_register('sinh', _c_math(math.sinh, on_overflow=lambda x: math.copysign(math.inf, x)))
_register('cosh', _c_math(math.cosh))
_register('tanh', _c_math(math.tanh))
_register('asinh', _c_math(math.asinh))
_register('acosh', _c_math(math.acosh))
_register('atanh', _c_math(math.atanh, poles={1.0: math.inf, -1.0: -math.inf}))
_register('sqrt', _c_math(math.sqrt))
_register('cbrt', _c_math(math.cbrt))
_register('exp', _c_math(math.exp))
_register('ln', _ln)
_register('log10', _c_math(math.log10, poles={0.0: -math.inf}))
_register('log2', _c_math(math.log2, poles={0.0: -math.inf}))
_register('abs', math.fabs)
_register('log', _log, arity=2)
_register('pow', _power, arity=2)
_register('mod', _fmod, arity=2)

BUILTIN_NAMES = sorted({name for table in _BUILTINS.values() for name in table})


# ---------------------------
# Evaluator
# ---------------------------

_BINARY_OPS: Dict[str, Callable[[float, float], float]] = {
    TokenType.PLUS: lambda a, b: a + b,
    TokenType.MINUS: lambda a, b: a - b,
    TokenType.MULTIPLY: lambda a, b: a * b,
    TokenType.DIVIDE: _divide,
    TokenType.POW: _power,
}

def evaluate(node: ASTNode, env: Environment) -> float:
    """Evaluate an AST against env, which assignments mutate in place."""
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Variable):
        if node.name not in env:
            raise UndefinedVariableError(node.name)
        return env[node.name]
    if isinstance(node, Assignment):
        value = evaluate(node.value, env)
        env[node.name] = value
        return value
    if isinstance(node, UnaryOp):
        value = evaluate(node.operand, env)
        if node.op == TokenType.MINUS:
            return -value
        raise EvaluationError(f"Invalid unary operator: {node.op}")
    if isinstance(node, BinaryOp):
        left = evaluate(node.left, env)
        right = evaluate(node.right, env)
        if node.op not in _BINARY_OPS:
            raise EvaluationError(f"Invalid binary operator: {node.op}")
        return _BINARY_OPS[node.op](left, right)
    if isinstance(node, FunctionCall):
        func = _BUILTINS.get(len(node.args), {}).get(node.name)
        if func is None:
            raise UnknownFunctionError(node.name, len(node.args))
        args = [evaluate(arg, env) for arg in node.args]
        return func(*args)
    raise EvaluationError(f"Unsupported AST node: {type(node).__name__}")

def calculate(line: str, env: Environment) -> float:
    """Parse and evaluate one line of input."""
    ast = Parser(line).parse()
    logger.debug("Parsed %r as %r", line, ast)
    return evaluate(ast, env)
