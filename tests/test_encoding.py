"""
Machine-word encoding tests.

Known-good words for each instruction form, decode error handling, and
binary images that run the same as the assembled program.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from simple_risc.assembler import assemble
from simple_risc.emulator import Emulator
from simple_risc.encoding import (
    decode_program, decode_word, encode_instruction, encode_program,
)
from simple_risc.errors import EncodingError
from simple_risc.isa import Instruction, Modifier, Opcode, Program

EXAMPLES = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")


def _word(source: str, index: int = 0) -> int:
    program = assemble(source)
    return encode_instruction(program[index], index)


class TestEncodeWords:
    def test_immediate_form(self):
        assert _word("mov r0, -0x1") == 0b01001_1_0000_0000_00_1111111111111111

    def test_register_form(self):
        assert _word("add r0, r1, r2") == (1 << 18) | (2 << 14)

    def test_binary_literal_immediate(self):
        assert _word("add r0, r1, 0b1101") == (1 << 26) | (1 << 18) | 13

    def test_forward_branch_offset(self):
        source = "b has_label\nnop\nnop\nhas_label: nop\n"
        assert _word(source) == (18 << 27) | 3

    def test_backward_branch_offset(self):
        assert _word("x: nop\nbeq x", 1) == (16 << 27) | 0x7FFFFFF

    def test_modifier_bits(self):
        assert _word("movu r0, 1") == (9 << 27) | (1 << 26) | (1 << 16) | 1
        assert _word("movh r0, 1") == (9 << 27) | (1 << 26) | (2 << 16) | 1

    def test_compare_and_mov_fields(self):
        assert _word("cmp r3, r4") == (5 << 27) | (3 << 18) | (4 << 14)
        assert _word("mov r3, r4") == (9 << 27) | (3 << 22) | (4 << 14)

    def test_memory_form(self):
        assert _word("st r15, 4[sp]") == (15 << 27) | (1 << 26) | (15 << 22) | (14 << 18) | 4

    @pytest.mark.parametrize("mnem, opcode", [("nop", 13), ("ret", 20), ("sys", 21)])
    def test_bare_form(self, mnem, opcode):
        assert _word(mnem) == opcode << 27

    def test_branch_offset_overflow(self):
        with pytest.raises(EncodingError, match="offset"):
            encode_instruction(Instruction(Opcode.B, imm=1 << 26), 0)


class TestDecodeWords:
    def test_decode_immediate(self):
        ins = decode_word((9 << 27) | (1 << 26) | (2 << 22) | (2 << 16) | 0x1234, 0)
        assert ins == Instruction(Opcode.MOV, Modifier.H, rd=2, imm=0x1234)

    def test_decode_branch_is_absolute(self):
        assert decode_word((18 << 27) | 0x7FFFFFE, 5) == Instruction(Opcode.B, imm=3)

    def test_unknown_opcode(self):
        with pytest.raises(EncodingError, match="unknown opcode"):
            decode_word(31 << 27, 0)

    def test_reserved_modifier_value(self):
        with pytest.raises(EncodingError, match="modifier"):
            decode_word((1 << 26) | (3 << 16), 0)


class TestImages:
    def test_little_endian_words(self):
        data = encode_program(assemble("add r0, r1, r2\nnop"))
        assert data == bytes([0x00, 0x80, 0x04, 0x00, 0x00, 0x00, 0x00, 0x68])

    def test_truncated_image(self):
        with pytest.raises(EncodingError, match="multiple of 4"):
            decode_program(b"\x00\x00\x00")

    def test_empty_image(self):
        assert decode_program(b"") == Program([])

    @pytest.mark.parametrize("name", ["factorial_loop.s", "factorial_recursive.s", "hello.s"])
    def test_examples_survive_image(self, name):
        with open(os.path.join(EXAMPLES, name), encoding="utf-8") as f:
            program = assemble(f.read())
        decoded = Program.from_bytes(program.to_bytes())
        assert decoded == program

    def test_decoded_program_runs(self):
        with open(os.path.join(EXAMPLES, "factorial_recursive.s"), encoding="utf-8") as f:
            program = assemble(f.read())
        emu = Emulator(Program.from_bytes(program.to_bytes()))
        emu.run()
        assert emu.regs[0] == 720
