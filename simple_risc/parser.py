"""
Line-oriented parser for the SimpleRISC assembler.

Consumes the token stream from the Lexer one logical line at a time and
produces a list of Statements. Grammar:

    line      := [label ':'] [instruction] (NEWLINE | EOF)
    instruction := mnemonic[u|h] operands
    operands  := shape from isa.OPERAND_SHAPES, separated by ','
    reg/imm   := register | integer
    imm[reg]  := integer '[' register ']'
    label     := identifier (not a register name or mnemonic)

Blank lines produce no Statement. A line holding only a label produces a
Statement without an instruction.
"""

from __future__ import annotations
from typing import List, Optional

from .ast_nodes import (
    AddressOperand, ImmediateOperand, LabelOperand, Operand, RegisterOperand, Statement,
)
from .errors import AssemblyError
from .isa import (
    ADDRESS, LABEL, MODIFIABLE, OPERAND_SHAPES, REG, REG_OR_IMM, REGISTERS,
    Modifier, is_reserved, split_mnemonic,
)
from .lexer import Token, TokenType, split_lines


class ParseError(AssemblyError):
    """Syntax error: unexpected token, bad operand kind/count or illegal modifier."""
    def __init__(self, message: str, token: Token, line_text: str = ""):
        self.token = token
        super().__init__(message, token.line, line_text)


_LINE_END = (TokenType.NEWLINE, TokenType.EOF)


class Parser:
    """Builds Statements from a token list (must end with EOF)."""

    def __init__(self, tokens: List[Token], source: str = ""):
        self.tokens = tokens
        self.source_lines = split_lines(source)
        self.pos = 0

    # ── Helpers ─────────────────────────────

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        i = self.pos + offset
        if i < len(self.tokens):
            return self.tokens[i]
        return self.tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._cur().type in types

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _line_text(self, line: int) -> str:
        if 1 <= line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return ""

    def _error(self, message: str, token: Optional[Token] = None) -> ParseError:
        token = token or self._cur()
        return ParseError(message, token, self._line_text(token.line))

    def _expect(self, ttype: TokenType, msg: str = "") -> Token:
        if self._cur().type != ttype:
            raise self._error(msg or f"Expected {ttype.value!r}")
        return self._advance()

    def _end_line(self):
        if self._at(TokenType.NEWLINE):
            self._advance()
        elif not self._at(TokenType.EOF):
            raise self._error(f"Unexpected {self._cur().value!r} after operands")

    # ── Statements ──────────────────────────

    def parse(self) -> List[Statement]:
        """Parse every line and return the non-empty Statements in order."""
        statements: List[Statement] = []
        while not self._at(TokenType.EOF):
            stmt = self.parse_line()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def parse_line(self) -> Optional[Statement]:
        """Parse one logical line; None for a blank line."""
        if self._at(*_LINE_END):
            self._end_line()
            return None

        first = self._cur()
        stmt = Statement(line=first.line, text=self._line_text(first.line).strip())

        if first.type == TokenType.IDENT and self._peek(1).type == TokenType.COLON:
            if is_reserved(first.value):
                raise self._error(f"'{first.value}' is reserved and cannot be a label")
            stmt.label = first.value
            self._advance()
            self._advance()
            if self._at(*_LINE_END):
                self._end_line()
                return stmt

        self._parse_instruction(stmt)
        self._end_line()
        return stmt

    def _parse_instruction(self, stmt: Statement):
        tok = self._cur()
        if tok.type != TokenType.IDENT:
            raise self._error("Expected a label or mnemonic")

        split = split_mnemonic(tok.value)
        if split is None:
            if stmt.label is None and self._peek(1).type in _LINE_END:
                raise self._error(f"Missing ':' after label '{tok.value}'")
            raise self._error(f"Unknown mnemonic '{tok.value}'")
        opcode, modifier = split
        if modifier is not Modifier.NONE and opcode not in MODIFIABLE:
            raise self._error(f"Modifier '{modifier.suffix}' not allowed on '{opcode.mnemonic}'")
        self._advance()

        operands: List[Operand] = []
        for i, kind in enumerate(OPERAND_SHAPES[opcode]):
            if i:
                self._expect(TokenType.COMMA, "Expected ','")
            operands.append(self._parse_operand(kind))

        if modifier is not Modifier.NONE and not (
                operands and isinstance(operands[-1], ImmediateOperand)):
            raise self._error(
                f"Modifier '{modifier.suffix}' requires an immediate operand", tok)

        stmt.opcode = opcode
        stmt.modifier = modifier
        stmt.operands = operands

    # ── Operands ────────────────────────────

    def _parse_operand(self, kind: str) -> Operand:
        if kind == REG:
            return self._parse_register()

        if kind == REG_OR_IMM:
            if self._at(TokenType.INT_LITERAL):
                return ImmediateOperand(self._advance().value)
            if self._at(TokenType.IDENT) and self._cur().value in REGISTERS:
                return self._parse_register()
            raise self._error("Register or immediate expected")

        if kind == ADDRESS:
            disp = self._expect(TokenType.INT_LITERAL, "Immediate displacement expected")
            self._expect(TokenType.LBRACKET, "Expected '['")
            base = self._parse_register()
            self._expect(TokenType.RBRACKET, "Expected ']'")
            return AddressOperand(disp.value, base.index)

        if kind == LABEL:
            tok = self._cur()
            if tok.type != TokenType.IDENT or is_reserved(tok.value):
                raise self._error("Label expected")
            self._advance()
            return LabelOperand(tok.value)

        raise ValueError(f"Unknown operand shape: {kind}")

    def _parse_register(self) -> RegisterOperand:
        tok = self._cur()
        if tok.type != TokenType.IDENT or tok.value not in REGISTERS:
            raise self._error("Register expected")
        self._advance()
        return RegisterOperand(REGISTERS[tok.value])
