"""Shell-like splitting of ':' command lines.

A small state machine splits the text after the colon into terms.
Backslash escapes any next character, single or double quotes group a term
(the other quote character is literal inside them) and unquoted spaces
separate terms.
"""

from typing import List

from .errors import UnclosedQuoteError

QUOTE_CHARS = ('"', "'")


def split_command(text: str) -> List[str]:
    """Split a command line (without its leading ':') into terms.

    Empty terms are never produced, so ``'""'`` yields nothing.
    Raises UnclosedQuoteError if the text ends inside quotes.
    """
    terms: List[str] = []
    term = ''
    in_quotes = False
    quote_char = ''
    escaping = False
    for ch in text:
        if escaping:
            term += ch
            escaping = False
        elif ch == '\\':
            escaping = True
        elif ch in QUOTE_CHARS:
            if not in_quotes:
                in_quotes = True
                quote_char = ch
            elif ch == quote_char:
                in_quotes = False
                quote_char = ''
            else:
                term += ch
        elif ch == ' ' and not in_quotes:
            if term:
                terms.append(term)
            term = ''
        else:
            term += ch
    if in_quotes:
        raise UnclosedQuoteError(f"Unclosed quote {quote_char} in command")
    if term:
        terms.append(term)
    return terms
