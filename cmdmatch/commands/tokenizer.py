"""
Argument Tokenizer
------------------
Splits an argument string into positional tokens.

Rules:
- Unquoted whitespace separates tokens
- '...' and "..." group text into one token; the other quote character is
  literal inside a quoted region
- A backslash makes the next character literal, quotes and whitespace included
- A token that starts with a quote is marked was_quoted, which stops the
  matcher from reading it as an option

tokenize() is total: it never raises.
"""

from typing import List

from cmdmatch.commands.models import Token

QUOTE_CHARS = ("'", '"')
ESCAPE_CHAR = "\\"


def tokenize(text: str) -> List[Token]:
    """Split `text` into tokens with their code point offsets."""
    tokens: List[Token] = []

    start = 0
    current: List[str] = []
    escape = False
    in_quote = None
    started_with_quote = False

    def flush(next_start: int, quoted: bool = False) -> None:
        nonlocal start, current
        token_start = start
        start = next_start

        if not current:
            return

        tokens.append(Token(offset=token_start, text="".join(current), was_quoted=quoted))
        current = []

    for i, char in enumerate(text):
        if escape:
            current.append(char)
            escape = False
        elif char.isspace() and in_quote is None:
            flush(i + 1)
        elif char in QUOTE_CHARS:
            if in_quote is None:
                in_quote = char
                if not current:
                    started_with_quote = True
            elif in_quote == char:
                flush(i + 1, started_with_quote)
                in_quote = None
                started_with_quote = False
            else:
                current.append(char)
        elif char == ESCAPE_CHAR:
            escape = True
        else:
            current.append(char)

    # Unterminated quotes still yield their content
    flush(len(text), started_with_quote)

    return tokens
