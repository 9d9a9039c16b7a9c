"""scalc: an interactive arithmetic evaluator with persistent variables."""

__version__ = "0.1.1"

from .errors import (
    CalculatorError,
    CommandError,
    EvaluationError,
    LexError,
    ParseError,
    UnclosedQuoteError,
    UndefinedVariableError,
    UnknownFunctionError,
)
from .engine import Environment, Lexer, Parser, calculate, evaluate, new_environment
from .commands import split_command
from .repl import REPL, StreamSource
