"""Help and version text shared by the command line and the ':help' command."""

from . import __version__

HELP_TEXT = """\
Usage: scalc [options]
Options:
  -h --help         Display this information.
  -v --version      Display calculator version information.
  -o --once         Run the calculation only once and then exit.
  -f <path>
    --file <path>   Execute commands from specified file.
Interactive commands:
  :e :exit          Exit interactive mode.
  :h :help          Display this information.
  :f <paths>
    :file <paths>   Execute commands from specified files.
  <expression>      Calculate expression. The result is stored variable 'Ans'.
Expressions:
  Operators:        + - * / ^ (power, right-assoc), unary -, parentheses
  Assignment:       x = <expression>
  Functions:        sin cos tan asin acos atan sinh cosh tanh asinh acosh
                    atanh sqrt cbrt exp ln log10 log2 abs
                    log(base, x) pow(base, exp) mod(a, b)
"""


def version_text() -> str:
    return f"scalc {__version__}\nCopyright (C) 2025 Qvito\n"
