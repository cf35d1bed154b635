"""
Lexer / Tokenizer for the SimpleRISC assembler.

Converts assembly source text into a stream of tokens for the parser.
Handles identifiers (mnemonics, registers and labels are all identifiers;
the parser tells them apart), integer literals (decimal, 0x hex, 0o octal,
0b binary, optional sign), punctuation, and newlines, which are significant
because they terminate statements.

Comments:
    @ ...            runs to end of line
    /* ... */        block comment, may span lines

Integer literals must lie in [-32768, 65535]. Negative literals are folded
into their 32-bit two's-complement bit pattern here, so the parser only
ever sees non-negative token values.
"""

from __future__ import annotations
import enum
import string
from dataclasses import dataclass
from typing import Iterator, List

from .config import COMMENT_CHAR, IMMEDIATE_MAX, IMMEDIATE_MIN
from .errors import AssemblyError


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    INT_LITERAL = "INT_LITERAL"
    IDENT = "IDENT"

    COMMA = ","
    COLON = ":"
    LBRACKET = "["
    RBRACKET = "]"

    NEWLINE = "NEWLINE"
    EOF = "EOF"


@dataclass
class Token:
    type: TokenType
    value: str | int
    line: int
    col: int

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"


PUNCTUATION = {
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}

BASE_PREFIXES = {"x": 16, "o": 8, "b": 2}

_ALNUM = frozenset(string.ascii_letters + string.digits)
_IDENT_START = frozenset(string.ascii_letters + "$_.")
_IDENT_CHARS = _ALNUM | frozenset("$_.")
_DIGITS = {
    16: frozenset(string.hexdigits),
    10: frozenset(string.digits),
    8: frozenset("01234567"),
    2: frozenset("01"),
}


# ──────────────────────────────────────────────
# Errors
# ──────────────────────────────────────────────

class LexError(AssemblyError):
    """Malformed literal, illegal character or unterminated comment."""
    def __init__(self, message: str, line: int, col: int = 0, line_text: str = ""):
        self.col = col
        super().__init__(message, line, line_text)


class ImmediateOutOfRange(LexError):
    def __init__(self, value: int, line: int, col: int = 0, line_text: str = ""):
        self.value = value
        super().__init__(
            f"Immediate {value} out of range [{IMMEDIATE_MIN}, {IMMEDIATE_MAX}]",
            line, col, line_text)


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

def normalize_newlines(source: str) -> str:
    r"""Fold "\r\n" and bare "\r" line endings into "\n"."""
    return source.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(source: str) -> List[str]:
    r"""Split source on the same line breaks the Lexer counts.

    Only "\n" (after newline folding) ends a line; form feeds, vertical tabs
    and Unicode separators stay inside the line they appear on.
    """
    return normalize_newlines(source).split("\n")


class Lexer:
    """Tokenizes SimpleRISC assembly source.

    Iterating a Lexer scans lazily from the start of the source, so the
    same instance can be iterated more than once. tokenize() returns the
    whole stream as a list, always terminated by an EOF token.
    """

    def __init__(self, source: str):
        self.source = normalize_newlines(source)
        self._source_lines = split_lines(source)
        self._reset()

    def _reset(self):
        self.pos = 0
        self.line = 1
        self.col = 1

    def line_text(self, line: int) -> str:
        if 1 <= line <= len(self._source_lines):
            return self._source_lines[line - 1]
        return ""

    def _error(self, message: str, line: int = 0, col: int = 0) -> LexError:
        line = line or self.line
        return LexError(message, line, col or self.col, self.line_text(line))

    def _peek(self, offset: int = 0) -> str:
        i = self.pos + offset
        return self.source[i] if i < len(self.source) else "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _skip_line_comment(self):
        while not self._at_end() and self.source[self.pos] != "\n":
            self._advance()

    def _skip_block_comment(self):
        start_line, start_col = self.line, self.col
        self._advance()  # /
        self._advance()  # *
        while self.pos < len(self.source) - 1:
            if self.source[self.pos] == "*" and self.source[self.pos + 1] == "/":
                self._advance()
                self._advance()
                return
            self._advance()
        raise self._error("Unterminated block comment", start_line, start_col)

    def _read_number(self) -> Token:
        start_line, start_col = self.line, self.col
        negative = False

        if self._peek() in "+-":
            negative = self._advance() == "-"

        base = 10
        if self._peek() == "0" and self._peek(1) in BASE_PREFIXES:
            base = BASE_PREFIXES[self._peek(1)]
            self._advance()  # '0'
            self._advance()  # base letter

        start_pos = self.pos
        while not self._at_end() and self.source[self.pos] in _ALNUM:
            self._advance()
        digits = self.source[start_pos:self.pos]

        if not digits:
            raise self._error("Integer literal has no digits", start_line, start_col)
        if any(ch not in _DIGITS[base] for ch in digits):
            raise self._error(
                f"Invalid digit in base-{base} literal {digits!r}", start_line, start_col)

        value = int(digits, base)
        if negative:
            value = -value
        if not IMMEDIATE_MIN <= value <= IMMEDIATE_MAX:
            raise ImmediateOutOfRange(value, start_line, start_col,
                                      self.line_text(start_line))

        return Token(TokenType.INT_LITERAL, value & 0xFFFFFFFF, start_line, start_col)

    def _read_identifier(self) -> Token:
        start_line, start_col = self.line, self.col
        start_pos = self.pos
        while not self._at_end() and self.source[self.pos] in _IDENT_CHARS:
            self._advance()
        return Token(TokenType.IDENT, self.source[start_pos:self.pos], start_line, start_col)

    def _scan(self) -> Iterator[Token]:
        while not self._at_end():
            ch = self._peek()

            if ch in " \t\f\v":
                self._advance()
                continue

            if ch == "\n":
                yield Token(TokenType.NEWLINE, "\n", self.line, self.col)
                self._advance()
                continue

            if ch == COMMENT_CHAR:
                self._skip_line_comment()
                continue

            if ch == "/":
                if self._peek(1) != "*":
                    raise self._error("Expected '*' after '/' to open a block comment")
                self._skip_block_comment()
                continue

            if ch in "+-" or ch in string.digits:
                yield self._read_number()
                continue

            if ch in _IDENT_START:
                yield self._read_identifier()
                continue

            if ch in PUNCTUATION:
                tok = Token(PUNCTUATION[ch], ch, self.line, self.col)
                self._advance()
                yield tok
                continue

            raise self._error(f"Unexpected character: {ch!r}")

        yield Token(TokenType.EOF, "", self.line, self.col)

    def __iter__(self) -> Iterator[Token]:
        self._reset()
        return self._scan()

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source and return a list of tokens."""
        return list(self)
