"""
SimpleRISC register set: r0..r15, pc and the two condition flags.

Register model:
  r0..r13  general purpose
  r14      stack pointer, assembler alias "sp"
  r15      link register, written by call and read by ret
  pc       index of the next instruction to execute
  E, GT    condition flags, written only by cmp

Register values are kept as signed 32-bit ints; every write wraps.
"""

from typing import List

from ...config import LINK_REGISTER, NUM_REGISTERS, SP_REGISTER
from .alu import to_signed32


class Registers:
    """SimpleRISC CPU register file plus pc, flags and step counter."""

    __slots__ = ('_r', 'pc', 'flag_e', 'flag_gt', 'steps')

    def __init__(self):
        self._r: List[int] = [0] * NUM_REGISTERS
        self.pc: int = 0
        self.flag_e: bool = False
        self.flag_gt: bool = False
        self.steps: int = 0     # instructions executed

    def __getitem__(self, index: int) -> int:
        return self._r[index]

    def __setitem__(self, index: int, value: int):
        self._r[index] = to_signed32(value)

    def __len__(self) -> int:
        return NUM_REGISTERS

    def as_list(self) -> List[int]:
        return list(self._r)

    @property
    def sp(self) -> int:
        return self._r[SP_REGISTER]

    @sp.setter
    def sp(self, value: int):
        self[SP_REGISTER] = value

    @property
    def lr(self) -> int:
        return self._r[LINK_REGISTER]

    @lr.setter
    def lr(self, value: int):
        self[LINK_REGISTER] = value

    # --- Display ---

    def display(self) -> str:
        """One-line register summary for instruction traces."""
        flags = ("E" if self.flag_e else ".") + ("G" if self.flag_gt else ".")
        regs = " ".join(f"r{i}={v}" for i, v in enumerate(self._r) if v)
        return f"pc={self.pc} [{flags}] {regs}".rstrip()

    def dump(self) -> str:
        """Full register dump, one register per line."""
        lines = [f"r{i:<2} = {v}" for i, v in enumerate(self._r)]
        lines.append(f"pc  = {self.pc}")
        lines.append(f"E   = {int(self.flag_e)}")
        lines.append(f"GT  = {int(self.flag_gt)}")
        return "\n".join(lines)

    def reset(self):
        """Reset CPU to power-on state."""
        self._r = [0] * NUM_REGISTERS
        self.pc = 0
        self.flag_e = False
        self.flag_gt = False
        self.steps = 0
