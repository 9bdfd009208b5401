"""
Tokenizer shared by the relational and graph grammars.

Both parsers walk a ``TokenStream`` once, front to back.  Keywords are
not reserved at the lexer level: an identifier token matches a keyword
when its upper-cased text equals it and it was not back-quoted.
"""

import re
from dataclasses import dataclass

from vaultquery.shared.exceptions import QuerySyntaxError

IDENT = "IDENT"
NUMBER = "NUMBER"
STRING = "STRING"
SYMBOL = "SYMBOL"
EOF = "EOF"

END_OF_STATEMENT = "<end of statement>"

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<number>\d+\.\d*|\.\d+|\d+)
    | (?P<string>'(?:[^']|'')*'|"(?:[^"\\]|\\.)*")
    | (?P<quoted>`[^`]+`)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<symbol>->|<-|>=|<=|<>|!=|[(),.*:\[\]{}=<>\-;+/%|])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int
    quoted: bool = False

    @property
    def upper(self) -> str:
        return self.text.upper()

    def is_keyword(self, *words: str) -> bool:
        return self.kind == IDENT and not self.quoted and self.upper in words

    def is_symbol(self, *symbols: str) -> bool:
        return self.kind == SYMBOL and self.text in symbols

    @property
    def display(self) -> str:
        return END_OF_STATEMENT if self.kind == EOF else self.text


def tokenize(text: str) -> list[Token]:
    """Split statement text into tokens, ending with an EOF token."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise QuerySyntaxError(text[pos], "unexpected character")
        group = match.lastgroup
        raw = match.group(group)
        if group == "number":
            tokens.append(Token(NUMBER, raw, pos))
        elif group == "string":
            tokens.append(Token(STRING, _unquote(raw), pos))
        elif group == "quoted":
            tokens.append(Token(IDENT, raw[1:-1], pos, quoted=True))
        elif group == "ident":
            tokens.append(Token(IDENT, raw, pos))
        elif group == "symbol":
            tokens.append(Token(SYMBOL, raw, pos))
        pos = match.end()
    tokens.append(Token(EOF, "", len(text)))
    return tokens


def _unquote(raw: str) -> str:
    body = raw[1:-1]
    if raw[0] == "'":
        return body.replace("''", "'")
    return re.sub(r"\\(.)", r"\1", body)


def parse_number(text: str) -> int | float:
    return float(text) if "." in text else int(text)


class TokenStream:
    """Cursor over a token list with keyword/symbol helpers."""

    def __init__(self, text: str):
        self.text = text
        self._tokens = tokenize(text)
        self._index = 0

    def peek(self, offset: int = 0) -> Token:
        index = min(self._index + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != EOF:
            self._index += 1
        return token

    def at_end(self) -> bool:
        return self.peek().kind == EOF

    def at_keyword(self, *words: str) -> bool:
        return self.peek().is_keyword(*words)

    def at_symbol(self, *symbols: str) -> bool:
        return self.peek().is_symbol(*symbols)

    def accept_keyword(self, *words: str) -> Token | None:
        if self.at_keyword(*words):
            return self.advance()
        return None

    def accept_symbol(self, *symbols: str) -> Token | None:
        if self.at_symbol(*symbols):
            return self.advance()
        return None

    def expect_keyword(self, word: str, error=QuerySyntaxError) -> Token:
        if not self.at_keyword(word):
            raise self._error(error, f"expected {word}")
        return self.advance()

    def expect_symbol(self, symbol: str, error=QuerySyntaxError) -> Token:
        if not self.at_symbol(symbol):
            raise self._error(error, f"expected '{symbol}'")
        return self.advance()

    def expect_identifier(self, error=QuerySyntaxError) -> Token:
        if self.peek().kind != IDENT:
            raise self._error(error, "expected a name")
        return self.advance()

    def _error(self, error, detail: str):
        token = self.peek().display
        if error is QuerySyntaxError:
            return QuerySyntaxError(token, detail)
        return error(f"unsupported pattern near '{token}': {detail}")

    @property
    def mark(self) -> int:
        return self._index

    def reset(self, mark: int) -> None:
        self._index = mark
