"""
The read-eval-print loop.

Lines come from a line source: a text stream (files, piped stdin) or a
prompt_toolkit session when stdin is a terminal. Lines starting with ':' are
commands; every other non-blank line is evaluated as ``Ans = <line>`` so the
last result is always available as ``Ans``. Files sourced with ':file' run
through the same loop, non-interactively and one level deeper, against the
same environment.
"""

import logging
import sys
from typing import List, Optional, TextIO, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.input import Input
from prompt_toolkit.output import Output

from .commands import split_command
from .config import Options
from .engine import BUILTIN_NAMES, Environment, calculate, new_environment
from .errors import CalculatorError
from .usage import HELP_TEXT

logger = logging.getLogger(__name__)

PROMPT = '> '

# Deepest level of nested ':file' sourcing; deeper files are skipped.
MAX_DEPTH = 128

_RED = '\033[31m'
_RESET = '\033[0m'


def format_number(value: float) -> str:
    """Format a result with six significant digits, like printf's %g."""
    return f"{value:g}"


# ---------------------------
# Line sources
# ---------------------------

class StreamSource:
    """Reads lines from a text stream, writing the prompt (if any) to out."""

    def __init__(self, stream: TextIO, out: Optional[TextIO] = None):
        self.stream = stream
        self.out = out if out is not None else sys.stdout

    def read_line(self, prompt: str = '') -> Optional[str]:
        """Return the next line without its newline, or None at end of stream."""
        if prompt:
            self.out.write(prompt)
            self.out.flush()
        line = self.stream.readline()
        if not line:
            return None
        return line.rstrip('\n')


class PromptSource:
    """Reads lines from the terminal through prompt_toolkit, with history and
    completion of builtin function names and the variables in env."""

    def __init__(self, history_file: Optional[str] = None, env: Optional[Environment] = None,
                 input: Optional[Input] = None, output: Optional[Output] = None):
        # input/output default to the terminal.
        history = FileHistory(history_file) if history_file else InMemoryHistory()
        self.session = PromptSession(history=history, input=input, output=output)
        self.env = env if env is not None else {}

    def read_line(self, prompt: str = '') -> Optional[str]:
        completer = WordCompleter(BUILTIN_NAMES + sorted(self.env))
        try:
            return self.session.prompt(prompt, completer=completer)
        except KeyboardInterrupt:
            # Abandon the current line, keep the session.
            return ''
        except EOFError:
            return None


# ---------------------------
# REPL
# ---------------------------

class REPL:
    """Read-Eval-Print Loop sharing one environment across every source."""

    def __init__(self, options: Optional[Options] = None, env: Optional[Environment] = None,
                 out: Optional[TextIO] = None, err: Optional[TextIO] = None, color: bool = False):
        self.options = options if options is not None else Options()
        self.env = env if env is not None else new_environment()
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr
        self.color = color

    def report_error(self, message: str) -> None:
        if self.color:
            message = f"{_RED}{message}{_RESET}"
        print(message, file=self.err, flush=True)

    def evaluate_line(self, line: str) -> Tuple[bool, str]:
        """Evaluate one expression line into Ans. Returns (ok, output)."""
        try:
            result = calculate("Ans = " + line, self.env)
            return True, f"Ans: {format_number(result)}"
        except CalculatorError as e:
            return False, f"Error: {e}"
        except Exception as e:
            logger.debug("Unhandled error evaluating %r", line, exc_info=True)
            return False, f"Error: {e}"

    def source_file(self, path: str, depth: int) -> bool:
        """Run the lines of the file at path non-interactively. Returns False if it cannot be opened.

        Undecodable bytes become U+FFFD and fail that line as an unexpected character.
        """
        try:
            f = open(path, encoding='utf-8', errors='replace')
        except OSError as e:
            logger.debug("Cannot open %s: %s", path, e)
            return False
        logger.info("Sourcing %s at depth %d", path, depth)
        with f:
            self.process(StreamSource(f, self.out), interactive=False, depth=depth)
        return True

    def run_startup_files(self) -> None:
        """Source the startup files in order; missing ones are skipped silently."""
        for path in self.options.files:
            if not self.source_file(path, 0):
                logger.debug("Skipping startup file %s", path)

    def run_command(self, terms: List[str], interactive: bool, depth: int) -> bool:
        """Execute a ':' command. Returns False when the current source should stop."""
        cmd, args = terms[0], terms[1:]
        if cmd in ('e', 'exit'):
            return False
        if cmd in ('h', 'help'):
            if interactive:
                self.out.write(HELP_TEXT)
                self.out.flush()
        elif cmd in ('f', 'file'):
            for path in args:
                if not self.source_file(path, depth + 1):
                    self.report_error(f"Error: Cannot open file {path}")
        else:
            logger.debug("Ignoring unknown command %r", cmd)
        return True

    def handle_line(self, line: str, interactive: bool, depth: int) -> bool:
        """Process a single line. Returns False when the current source should stop."""
        if not line.strip():
            return True
        if line.startswith(':'):
            try:
                terms = split_command(line[1:])
            except CalculatorError as e:
                self.report_error(f"Error: {e}")
                return True
            if not terms:
                return True
            return self.run_command(terms, interactive, depth)
        ok, output = self.evaluate_line(line)
        if not ok:
            self.report_error(output)
        elif interactive:
            print(output, file=self.out, flush=True)
        return True

    def process(self, source, interactive: bool, depth: int = 0) -> None:
        """Read and handle lines from source until end of stream or ':exit'.

        In once mode an interactive loop stops after a single read.
        """
        if depth > MAX_DEPTH:
            logger.debug("Maximum sourcing depth %d exceeded, skipping", MAX_DEPTH)
            return
        while True:
            line = source.read_line(PROMPT if interactive else '')
            if line is None:
                break
            if not self.handle_line(line, interactive, depth):
                break
            if interactive and self.options.once:
                break
