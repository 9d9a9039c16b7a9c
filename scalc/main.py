"""
Command-line entry point for scalc.

Parses the startup flags, loads configuration from the environment (and a
.env file), runs the startup files and then the interactive loop on stdin.
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .config import Options, Settings
from .engine import new_environment
from .repl import REPL, PromptSource, StreamSource
from .usage import HELP_TEXT, version_text

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    # -h prints HELP_TEXT, not the argparse help.
    parser = argparse.ArgumentParser(prog="scalc", add_help=False,
                                     description="Interactive arithmetic evaluator.")
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("-v", "--version", action="store_true")
    parser.add_argument("-o", "--once", action="store_true",
                        help="Run the calculation only once and then exit.")
    parser.add_argument("-f", "--file", action="append", nargs="?", default=[], metavar="PATH",
                        help="Execute commands from the specified file (repeatable).")
    return parser


def parse_options(argv: Optional[List[str]], settings: Settings) -> Options:
    # Unknown flags and a bare -f are ignored rather than ending startup.
    args, unknown = build_parser().parse_known_args(argv)
    if unknown:
        logger.debug("Ignoring unknown arguments: %s", unknown)
    return Options(
        help=args.help,
        version=args.version,
        once=args.once,
        files=[settings.init_file] + [path for path in args.file if path],
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    settings = Settings.from_env()
    configure_logging(settings)

    options = parse_options(argv, settings)
    if options.help:
        sys.stdout.write(HELP_TEXT)
        return 0
    if options.version:
        sys.stdout.write(version_text())
        return 0

    color = settings.color if settings.color is not None else sys.stderr.isatty()
    repl = REPL(options, new_environment(), color=color)
    repl.run_startup_files()

    if sys.stdin.isatty():
        source = PromptSource(settings.history_file, repl.env)
    else:
        source = StreamSource(sys.stdin, sys.stdout)
    logger.debug("Starting interactive loop (once=%s)", options.once)
    repl.process(source, interactive=True)
    return 0


if __name__ == '__main__':
    sys.exit(main())
