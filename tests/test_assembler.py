"""
Assembler Tests for the SimpleRISC toolchain.

Two-pass label resolution, resolved Instruction fields, rendering back to
assembly text, and the listing output.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from simple_risc import assemble_source
from simple_risc.assembler import Assembler, DuplicateLabel, UndefinedLabel, assemble
from simple_risc.errors import AssemblyError
from simple_risc.isa import Instruction, Modifier, Opcode, Program
from simple_risc.lexer import ImmediateOutOfRange
from simple_risc.parser import ParseError


class TestLabelResolution:
    def test_labels_bind_to_next_instruction(self):
        program = assemble("start:\n  nop\nmid:\n\n  nop\n  nop\n")
        assert dict(program.labels) == {"start": 0, "mid": 1}
        assert len(program) == 3

    def test_label_on_last_line_is_halt_index(self):
        program = assemble("nop\nb end\nend:\n")
        assert program.labels["end"] == 2
        assert program[1].imm == 2

    def test_forward_and_backward_references(self):
        program = assemble("top: b bottom\nnop\nbottom: b top\n")
        assert program[0] == Instruction(Opcode.B, imm=2)
        assert program[2] == Instruction(Opcode.B, imm=0)
        assert program[0].label == "bottom"

    def test_several_labels_same_index(self):
        program = assemble("a:\nb1:\nc: nop")
        assert program.labels["a"] == program.labels["b1"] == program.labels["c"] == 0

    def test_duplicate_label(self):
        with pytest.raises(DuplicateLabel) as exc:
            assemble("abc: nop\nnop\nabc: nop\n")
        assert exc.value.name == "abc"
        assert exc.value.line == 3

    def test_undefined_label(self):
        with pytest.raises(UndefinedLabel) as exc:
            assemble("nop\nb undefme\n")
        assert exc.value.name == "undefme"
        assert exc.value.line == 2
        assert exc.value.line_text == "b undefme"

    def test_labels_are_read_only(self):
        program = assemble("x: nop")
        with pytest.raises(TypeError):
            program.labels["y"] = 1


class TestResolvedFields:
    def test_three_operand_register(self):
        assert assemble("add r0, r1, r2")[0] == Instruction(Opcode.ADD, rd=0, rs1=1, rs2=2)

    def test_three_operand_immediate(self):
        ins = assemble("subu r3, sp, 0xFFFF")[0]
        assert ins == Instruction(Opcode.SUB, Modifier.U, rd=3, rs1=14, imm=0xFFFF)

    def test_negative_immediate_keeps_16_bits(self):
        assert assemble("mov r0, -1")[0].imm == 0xFFFF
        assert assemble("mov r0, -32768")[0].imm == 0x8000

    def test_compare_has_no_destination(self):
        assert assemble("cmp r5, r6")[0] == Instruction(Opcode.CMP, rd=0, rs1=5, rs2=6)

    def test_mov_and_not(self):
        assert assemble("mov r2, r3")[0] == Instruction(Opcode.MOV, rd=2, rs2=3)
        assert assemble("noth r2, 1")[0] == Instruction(Opcode.NOT, Modifier.H, rd=2, imm=1)

    def test_memory_operands(self):
        assert assemble("ld r1, 8[sp]")[0] == Instruction(Opcode.LD, rd=1, rs1=14, imm=8)
        assert assemble("st r2, -4[r3]")[0] == Instruction(Opcode.ST, rd=2, rs1=3, imm=0xFFFC)

    def test_source_line_recorded(self):
        program = assemble("@ header\n\nnop\nret\n")
        assert [ins.line for ins in program] == [3, 4]

    def test_empty_source(self):
        program = assemble("@ nothing here\n")
        assert len(program) == 0
        assert program == Program([])


class TestRendering:
    @pytest.mark.parametrize("source", [
        "add r0, r1, r2",
        "mov r0, -1",
        "movu r0, 0xFFFF",
        "movh r1, 0x1",
        "cmp r1, 0",
        "not r4, r5",
        "ld r1, -8[sp]",
        "st r15, 0[sp]",
        "b loop",
        "ret",
    ])
    def test_str_round_trips_source(self, source):
        program = assemble(f"loop: {source}")
        assert str(program[0]) == source


class TestErrorLines:
    def test_undefined_label_after_form_feed(self):
        with pytest.raises(UndefinedLabel) as exc:
            assemble("nop\x0c\nb missing\n")
        assert exc.value.line == 2
        assert exc.value.line_text == "b missing"

    def test_parse_error_after_line_separator_in_comment(self):
        with pytest.raises(ParseError) as exc:
            assemble("nop @ one\u2028two\nmov r0, 1\nadd r0, r1")
        assert exc.value.line == 3
        assert exc.value.line_text == "add r0, r1"

    def test_bare_carriage_returns_end_lines(self):
        program = assemble("nop\rmov r0, 1\r")
        assert len(program) == 2
        assert program[1].line == 2


class TestAllOrNothing:
    @pytest.mark.parametrize("source, error", [
        ("mov r0, 70000", ImmediateOutOfRange),
        ("add r0, r1", ParseError),
        ("b nowhere", UndefinedLabel),
        ("x: nop\nx: nop", DuplicateLabel),
    ])
    def test_errors_are_assembly_errors(self, source, error):
        with pytest.raises(error):
            assemble(source)
        assert issubclass(error, AssemblyError)

    def test_failed_assembly_leaves_no_program(self):
        asm = Assembler()
        asm.assemble("nop")
        assert asm.program is not None
        with pytest.raises(AssemblyError):
            asm.assemble("nop\nb missing")
        assert asm.program is None
        assert asm.get_listing() == ""


class TestListing:
    def test_listing_source_after_vertical_tab(self):
        lines = assemble_source("nop\x0b\nmov r0, 1", output="listing").split("\n")
        assert lines[3].split() == ["1", "4C000001", "mov", "r0,", "1"]

    def test_listing_shows_index_word_and_source(self):
        listing = assemble_source("start:\n  add r0, r1, r2\n  b start\n", output="listing")
        lines = listing.splitlines()
        assert "INDEX" in lines[0] and "WORD" in lines[0] and "SOURCE" in lines[0]
        assert lines[2].strip() == "start:"
        assert lines[3].split() == ["0", "00048000", "add", "r0,", "r1,", "r2"]
        assert lines[4].split()[:2] == ["1", "97FFFFFF"]

    def test_assemble_source_outputs(self):
        assert isinstance(assemble_source("nop"), Program)
        assert assemble_source("nop", output="binary") == bytes([0, 0, 0, 0x68])
        with pytest.raises(ValueError):
            assemble_source("nop", output="s19")
