"""
Tokenizer for the subset of Go the record parser needs.

Produces identifiers, literals, punctuation and significant newlines.
Comments are dropped; a block comment spanning lines counts as a newline,
matching Go's own treatment.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List

from .errors import ParseError


IDENT = "IDENT"
STRING = "STRING"
RAW_STRING = "RAW_STRING"
CHAR = "CHAR"
NUMBER = "NUMBER"
OP = "OP"
NEWLINE = "NEWLINE"
EOF = "EOF"

_TOKEN_SPEC = [
    ("COMMENT_LINE", r"//[^\n]*"),
    ("COMMENT_BLOCK", r"/\*.*?\*/"),
    ("UNTERMINATED_COMMENT", r"/\*"),
    (RAW_STRING, r"`[^`]*`"),
    (STRING, r'"(?:[^"\\\n]|\\.)*"'),
    (CHAR, r"'(?:[^'\\\n]|\\.)*'"),
    (NUMBER, r"\.?[0-9][0-9a-zA-Z_.]*"),
    (IDENT, r"[^\W\d]\w*"),
    (NEWLINE, r"\n"),
    ("SPACE", r"[ \t\r\f]+"),
    (OP, r"\.\.\.|<-|:=|[{}()\[\]*.,;=:&|!<>+\-/%^~@#$?]"),
    ("MISMATCH", r"."),
]

_MASTER = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC),
    re.DOTALL,
)

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
}


@dataclass(frozen=True)
class Token:
    """A lexical token with its 1-based source line."""

    kind: str
    value: str
    line: int

    def is_op(self, value: str) -> bool:
        return self.kind == OP and self.value == value

    def is_ident(self, value: str = None) -> bool:
        return self.kind == IDENT and (value is None or self.value == value)


def unquote_go_string(literal: str) -> str:
    """Decode a Go interpreted string literal (including its quotes).

    Raises:
        ParseError: If an escape sequence is invalid.
    """
    if len(literal) < 2 or literal[0] != '"' or literal[-1] != '"':
        raise ParseError(f"not a quoted string: {literal!r}")

    body = literal[1:-1]
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue

        if i + 1 >= len(body):
            raise ParseError(f"dangling escape in {literal!r}")
        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
        elif esc in "xuU":
            width = {"x": 2, "u": 4, "U": 8}[esc]
            digits = body[i + 2:i + 2 + width]
            if len(digits) != width or not re.fullmatch(r"[0-9a-fA-F]+", digits):
                raise ParseError(f"invalid \\{esc} escape in {literal!r}")
            out.append(chr(int(digits, 16)))
            i += 2 + width
        elif esc in "01234567":
            digits = body[i + 1:i + 4]
            if len(digits) != 3 or not re.fullmatch(r"[0-7]{3}", digits):
                raise ParseError(f"invalid octal escape in {literal!r}")
            out.append(chr(int(digits, 8)))
            i += 4
        else:
            raise ParseError(f"unknown escape \\{esc} in {literal!r}")
    return "".join(out)


def tokenize(source: str, filename: str = "<source>") -> List[Token]:
    """Tokenize Go source.

    Args:
        source: File contents
        filename: Used in error messages

    Returns:
        Tokens ending with a single EOF token; consecutive newlines are
        collapsed into one NEWLINE token.

    Raises:
        ParseError: On unterminated literals or comments and stray characters.
    """
    return list(_iter_tokens(source, filename))


def _iter_tokens(source: str, filename: str) -> Iterator[Token]:
    line = 1
    last_kind = NEWLINE

    for match in _MASTER.finditer(source):
        kind = match.lastgroup
        value = match.group()
        start_line = line
        line += value.count("\n")

        if kind in ("SPACE", "COMMENT_LINE"):
            continue
        if kind == "COMMENT_BLOCK":
            if "\n" in value and last_kind != NEWLINE:
                last_kind = NEWLINE
                yield Token(NEWLINE, "\n", start_line)
            continue
        if kind == "UNTERMINATED_COMMENT":
            raise ParseError("unterminated block comment", file=filename, line=start_line)
        if kind == "MISMATCH":
            if value in "\"`'":
                raise ParseError("unterminated literal", file=filename, line=start_line)
            raise ParseError(f"unexpected character {value!r}", file=filename, line=start_line)
        if kind == NEWLINE:
            if last_kind == NEWLINE:
                continue

        last_kind = kind
        yield Token(kind, value, start_line)

    yield Token(EOF, "", line)


class TokenStream:
    """Cursor over a token list with the lookahead helpers the parser uses."""

    def __init__(self, tokens: List[Token], filename: str = "<source>"):
        self.tokens = tokens
        self.filename = filename
        self.pos = 0

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def next(self) -> Token:
        token = self.peek()
        if token.kind != EOF:
            self.pos += 1
        return token

    def at_end(self) -> bool:
        return self.peek().kind == EOF

    def skip_newlines(self) -> None:
        while self.peek().kind == NEWLINE or self.peek().is_op(";"):
            self.next()

    def expect_op(self, value: str) -> Token:
        token = self.next()
        if not token.is_op(value):
            raise ParseError(
                f"expected {value!r}, found {token.value or token.kind!r}",
                file=self.filename,
                line=token.line,
            )
        return token

    def expect_ident(self) -> Token:
        token = self.next()
        if token.kind != IDENT:
            raise ParseError(
                f"expected identifier, found {token.value or token.kind!r}",
                file=self.filename,
                line=token.line,
            )
        return token

    def skip_balanced(self) -> None:
        """Skip a bracketed group starting at the current opening bracket."""
        pairs = {"(": ")", "[": "]", "{": "}"}
        opener = self.next()
        stack = [pairs[opener.value]]
        while stack:
            token = self.next()
            if token.kind == EOF:
                raise ParseError(
                    f"unbalanced {opener.value!r}", file=self.filename, line=opener.line
                )
            if token.kind == OP and token.value in pairs:
                stack.append(pairs[token.value])
            elif token.kind == OP and token.value == stack[-1]:
                stack.pop()
