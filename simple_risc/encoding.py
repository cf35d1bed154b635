"""
SimpleRISC machine-word encoding.

Every instruction is one 32-bit word. Images are stored as consecutive
little-endian words, instruction 0 first.

    register form : opcode[31:27] 0[26] dst[25:22] src1[21:18] src2[17:14]
    immediate form: opcode[31:27] 1[26] dst[25:22] src1[21:18] mod[17:16] imm[15:0]
    branch form   : opcode[31:27] offset[26:0]    offset = target - own index
    bare form     : opcode[31:27]                 nop, ret, sys

Operand placement follows the instruction shape: 3-operand ALU ops use
(dst, src1, src2); cmp uses (src1, src2); mov and not use (dst, src2);
ld/st put the data register in dst, the base register in src1 and the
displacement in imm.
"""

from __future__ import annotations
import struct
from typing import List

from .errors import EncodingError
from .isa import BRANCHES, OPERAND_SHAPES, Instruction, Modifier, Opcode, Program

__all__ = ['encode_instruction', 'decode_word', 'encode_program', 'decode_program']


# Field offsets
OPCODE_OFF = 27
IMMBIT_OFF = 26
DST_OFF = 22
SRC1_OFF = 18
MOD_OFF = 16
SRC2_OFF = 14

# Field widths
OPCODE_BITS = 5
REG_BITS = 4
MOD_BITS = 2
IMM_BITS = 16
OFFSET_BITS = 27

_REG_MASK = (1 << REG_BITS) - 1
_MOD_MASK = (1 << MOD_BITS) - 1
_IMM_MASK = (1 << IMM_BITS) - 1
_OFFSET_MASK = (1 << OFFSET_BITS) - 1

_BARE = frozenset(op for op, shape in OPERAND_SHAPES.items() if not shape)


def _field(word: int, offset: int, mask: int) -> int:
    return (word >> offset) & mask


def _sign_extend(value: int, nbits: int) -> int:
    if value & (1 << (nbits - 1)):
        return value - (1 << nbits)
    return value


def encode_instruction(ins: Instruction, index: int) -> int:
    """Encode one instruction located at `index` into a 32-bit word."""
    word = int(ins.op) << OPCODE_OFF

    if ins.op in BRANCHES:
        offset = ins.imm - index
        if not -(1 << (OFFSET_BITS - 1)) <= offset < (1 << (OFFSET_BITS - 1)):
            raise EncodingError(f"{ins.op.mnemonic}: branch offset {offset} does not fit "
                                f"in {OFFSET_BITS} bits")
        return word | (offset & _OFFSET_MASK)

    if ins.op in _BARE:
        return word

    word |= (ins.rd & _REG_MASK) << DST_OFF
    word |= (ins.rs1 & _REG_MASK) << SRC1_OFF
    if ins.imm is None:
        return word | (ins.rs2 & _REG_MASK) << SRC2_OFF
    return (word | 1 << IMMBIT_OFF
            | int(ins.modifier) << MOD_OFF
            | (ins.imm & _IMM_MASK))


def decode_word(word: int, index: int) -> Instruction:
    """Decode a 32-bit word located at `index` back into an Instruction."""
    raw_op = _field(word, OPCODE_OFF, (1 << OPCODE_BITS) - 1)
    try:
        op = Opcode(raw_op)
    except ValueError:
        raise EncodingError(f"word {index}: unknown opcode {raw_op}") from None

    if op in BRANCHES:
        offset = _sign_extend(word & _OFFSET_MASK, OFFSET_BITS)
        return Instruction(op, imm=index + offset)

    if op in _BARE:
        return Instruction(op)

    rd = _field(word, DST_OFF, _REG_MASK)
    rs1 = _field(word, SRC1_OFF, _REG_MASK)
    if not _field(word, IMMBIT_OFF, 1):
        return Instruction(op, rd=rd, rs1=rs1, rs2=_field(word, SRC2_OFF, _REG_MASK))

    raw_mod = _field(word, MOD_OFF, _MOD_MASK)
    try:
        modifier = Modifier(raw_mod)
    except ValueError:
        raise EncodingError(f"word {index}: invalid modifier bits {raw_mod:#04b}") from None
    return Instruction(op, modifier=modifier, rd=rd, rs1=rs1, imm=word & _IMM_MASK)


def encode_program(program: Program) -> bytes:
    words = [encode_instruction(ins, i) for i, ins in enumerate(program)]
    return struct.pack(f"<{len(words)}I", *words)


def decode_program(data: bytes) -> Program:
    if len(data) % 4:
        raise EncodingError(f"image size {len(data)} is not a multiple of 4 bytes")
    words = struct.unpack(f"<{len(data) // 4}I", data)
    instructions: List[Instruction] = [decode_word(w, i) for i, w in enumerate(words)]
    return Program(instructions)
