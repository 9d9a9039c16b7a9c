"""Error classes raised by the expression engine and the command tokenizer.

Every error is recoverable at the granularity of a single input line: the
REPL reports it and keeps reading.
"""


class CalculatorError(Exception):
    """Base class for calculator errors."""
    pass

class LexError(CalculatorError):
    """Raised when a character cannot start any token."""
    pass

class ParseError(CalculatorError):
    """Raised for unexpected tokens, malformed numbers and unmatched parentheses."""
    pass

class EvaluationError(CalculatorError):
    """Raised when evaluation of an AST fails."""
    pass

class UndefinedVariableError(EvaluationError):
    """Raised on a read of an unbound identifier."""

    def __init__(self, name: str):
        super().__init__(f"Undefined variable: {name}")
        self.name = name

class UnknownFunctionError(EvaluationError):
    """Raised when no built-in matches a function name and argument count."""

    def __init__(self, name: str, arity: int):
        plural = "argument" if arity == 1 else "arguments"
        super().__init__(f"Unknown function: {name} with {arity} {plural}")
        self.name = name
        self.arity = arity

class CommandError(CalculatorError):
    """Raised when a ':' command line cannot be split into terms."""
    pass

class UnclosedQuoteError(CommandError):
    """Raised when a command line ends inside a quoted term."""
    pass
