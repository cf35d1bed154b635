"""
Parser Tests for the SimpleRISC assembler.

Operand shapes per mnemonic, modifier legality, labels, and the error
messages produced for malformed lines.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from simple_risc.ast_nodes import (
    AddressOperand, ImmediateOperand, LabelOperand, RegisterOperand,
)
from simple_risc.isa import Modifier, Opcode
from simple_risc.lexer import Lexer
from simple_risc.parser import ParseError, Parser


def _parse(source: str) -> list:
    return Parser(Lexer(source).tokenize(), source).parse()


def _one(source: str):
    stmts = _parse(source)
    assert len(stmts) == 1
    return stmts[0]


class TestStatements:
    def test_blank_lines_yield_nothing(self):
        assert _parse("\n\n   \n@ only a comment\n") == []

    def test_label_only_line(self):
        stmt = _one("start:")
        assert stmt.label == "start"
        assert not stmt.has_instruction

    def test_label_and_instruction(self):
        stmt = _one("loop: nop")
        assert stmt.label == "loop"
        assert stmt.opcode is Opcode.NOP
        assert stmt.operands == []

    def test_line_numbers_and_text(self):
        stmts = _parse("\nmov r0, 1\n\n  add r0, r0, r0  @ double\n")
        assert [s.line for s in stmts] == [2, 4]
        assert stmts[1].text == "add r0, r0, r0  @ double"

    def test_no_trailing_newline(self):
        assert _one("ret").opcode is Opcode.RET


class TestOperandShapes:
    def test_three_operand_register(self):
        stmt = _one("sub r1, r2, r3")
        assert stmt.opcode is Opcode.SUB
        assert stmt.operands == [RegisterOperand(1), RegisterOperand(2), RegisterOperand(3)]

    def test_three_operand_immediate(self):
        stmt = _one("lsl r1, r2, 3")
        assert stmt.operands[2] == ImmediateOperand(3)

    def test_sp_alias(self):
        stmt = _one("mov sp, r15")
        assert stmt.operands == [RegisterOperand(14), RegisterOperand(15)]

    def test_two_operand_forms(self):
        for mnem in ("mov", "not", "cmp"):
            stmt = _one(f"{mnem} r3, -2")
            assert stmt.operands == [RegisterOperand(3), ImmediateOperand(0xFFFFFFFE)]

    def test_address_operand(self):
        stmt = _one("ld r1, -8[sp]")
        assert stmt.operands == [RegisterOperand(1), AddressOperand(0xFFFFFFF8, 14)]
        stmt = _one("st r2, 0x10[r3]")
        assert stmt.operands == [RegisterOperand(2), AddressOperand(16, 3)]

    def test_branch_label(self):
        for mnem in ("b", "beq", "bgt", "call"):
            assert _one(f"{mnem} target").operands == [LabelOperand("target")]

    def test_bare_instructions(self):
        for mnem, op in (("ret", Opcode.RET), ("nop", Opcode.NOP), ("sys", Opcode.SYS)):
            assert _one(mnem).opcode is op

    @pytest.mark.parametrize("source, message", [
        ("add r0, r1", "Expected ','"),
        ("cmp 24, 88", "Register expected"),
        ("mov r0, loop", "Register or immediate expected"),
        ("add 1, r0, r0", "Register expected"),
        ("ld r0, [sp]", "Immediate displacement expected"),
        ("ld r0, 4 sp", "Expected '\\['"),
        ("st r0, 4[sp", "Expected '\\]'"),
        ("ld r0, 4[16]", "Register expected"),
        ("b r0", "Label expected"),
        ("call 12", "Label expected"),
        ("b add", "Label expected"),
        ("mov r0, r1, r2", "Unexpected"),
        ("ret r0", "Unexpected"),
        ("add r0 r1 r2", "Expected ','"),
        ("mov r16, 1", "Register expected"),
    ])
    def test_bad_operands(self, source, message):
        with pytest.raises(ParseError, match=message) as exc:
            _parse(source)
        assert exc.value.line == 1
        assert exc.value.line_text == source


class TestModifiers:
    def test_unsigned_and_high(self):
        stmt = _one("movu r0, 0xFFFF")
        assert (stmt.opcode, stmt.modifier) == (Opcode.MOV, Modifier.U)
        stmt = _one("addh r1, r1, 1")
        assert (stmt.opcode, stmt.modifier) == (Opcode.ADD, Modifier.H)
        stmt = _one("cmpu r1, 5")
        assert (stmt.opcode, stmt.modifier) == (Opcode.CMP, Modifier.U)

    @pytest.mark.parametrize("source", [
        "lslu r0, r0, 1", "ldh r0, 0[sp]", "bu loop", "reth", "nopu",
    ])
    def test_modifier_not_allowed(self, source):
        with pytest.raises(ParseError, match="not allowed"):
            _parse(source)

    def test_modifier_needs_immediate(self):
        with pytest.raises(ParseError, match="requires an immediate"):
            _parse("addu r0, r1, r2")


class TestLabels:
    def test_missing_colon(self):
        with pytest.raises(ParseError, match="Missing ':'"):
            _parse("loop\nnop")

    def test_unknown_mnemonic(self):
        with pytest.raises(ParseError, match="Unknown mnemonic 'jmp'"):
            _parse("jmp loop")

    def test_statement_starting_with_register(self):
        with pytest.raises(ParseError, match="Unknown mnemonic 'r13'"):
            _parse("r13 add r11")

    @pytest.mark.parametrize("name", ["r1", "sp", "add", "movu", "b"])
    def test_reserved_names_cannot_be_labels(self, name):
        with pytest.raises(ParseError, match="reserved"):
            _parse(f"{name}: nop")

    def test_statement_must_start_with_identifier(self):
        with pytest.raises(ParseError, match="label or mnemonic"):
            _parse("42")

    def test_error_reports_line(self):
        with pytest.raises(ParseError) as exc:
            _parse("nop\nnop\nmov r0\n")
        assert exc.value.line == 3
        assert str(exc.value).startswith("Line 3: ")
