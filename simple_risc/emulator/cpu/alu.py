"""
SimpleRISC ALU: 32-bit two's-complement arithmetic, logic and shifts.

All inputs and outputs are signed Python ints in [-2**31, 2**31). Results
wrap silently on overflow; no operation sets flags except compare().

Division truncates toward zero and the remainder takes the sign of the
dividend, matching hardware integer division. INT_MIN / -1 wraps back to
INT_MIN and INT_MIN % -1 is 0. A zero divisor raises DivideByZero.

Immediate widening (16-bit literal -> 32-bit operand):
    none  sign-extend bit 15
    u     zero-extend
    h     literal in bits 31..16, low half zero
"""

from typing import Tuple

from ...errors import DivideByZero
from ...isa import Modifier

MASK32 = 0xFFFFFFFF
MASK16 = 0xFFFF
SHIFT_MASK = 0x1F


def to_signed32(value: int) -> int:
    value &= MASK32
    return value - 0x100000000 if value & 0x80000000 else value


def to_unsigned32(value: int) -> int:
    return value & MASK32


def widen(imm: int, modifier: Modifier) -> int:
    """Widen the low 16 bits of an immediate to a signed 32-bit operand."""
    low = imm & MASK16
    if modifier is Modifier.U:
        return low
    if modifier is Modifier.H:
        return to_signed32(low << 16)
    return low - 0x10000 if low & 0x8000 else low


# ══════════════════════════════════════════════
# Arithmetic
# ══════════════════════════════════════════════

def add(a: int, b: int) -> int:
    return to_signed32(a + b)


def sub(a: int, b: int) -> int:
    return to_signed32(a - b)


def mul(a: int, b: int) -> int:
    return to_signed32(a * b)


def div(a: int, b: int) -> int:
    if b == 0:
        raise DivideByZero()
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return to_signed32(q)


def mod(a: int, b: int) -> int:
    if b == 0:
        raise DivideByZero()
    r = abs(a) % abs(b)
    return to_signed32(-r if a < 0 else r)


# ══════════════════════════════════════════════
# Logic
# ══════════════════════════════════════════════

def and_(a: int, b: int) -> int:
    return to_signed32(a & b)


def or_(a: int, b: int) -> int:
    return to_signed32(a | b)


def not_(b: int) -> int:
    return to_signed32(~b)


# ══════════════════════════════════════════════
# Shifts (only the low 5 bits of the amount count)
# ══════════════════════════════════════════════

def lsl(a: int, b: int) -> int:
    return to_signed32(a << (b & SHIFT_MASK))


def lsr(a: int, b: int) -> int:
    return to_signed32(to_unsigned32(a) >> (b & SHIFT_MASK))


def asr(a: int, b: int) -> int:
    return to_signed32(a) >> (b & SHIFT_MASK)


def compare(a: int, b: int) -> Tuple[bool, bool]:
    """Signed compare. Returns (E, GT)."""
    return a == b, a > b
