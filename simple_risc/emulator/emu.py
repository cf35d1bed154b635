"""
SimpleRISC emulator: execution engine

Integrates:
  - CPU registers and flags (cpu/regs.py)
  - Memory (mem/memory.py)
  - ALU operations (cpu/alu.py)
  - Syscall dispatcher (syscalls.py)

Execution model, one step:
  1. If pc is outside [0, len(program)), the machine is halted (normal end)
  2. Fetch program[pc]
  3. Dispatch on the opcode to its handler, which mutates MachineState
  4. pc = pc + 1, unless the handler returned a new pc (b, beq, bgt, call, ret)

Termination reasons:
  - HALT:     pc left the program (the only normal termination)
  - TIMEOUT:  step limit reached before halting

Runtime faults (unaligned or out-of-range memory access, division by zero,
unknown syscall) raise an ExecutionError subclass carrying the pc and
source line of the faulting instruction. The machine state is left as it
was before that instruction, so it can be inspected afterwards.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Callable, Dict, List, Optional

from ..config import LINK_REGISTER, EmulatorConfig
from ..errors import ExecutionError
from ..isa import Instruction, Modifier, Opcode, Program
from . import syscalls
from .cpu import alu
from .cpu.regs import Registers
from .mem.memory import Memory

logger = logging.getLogger(__name__)

Handler = Callable[[Instruction, "MachineState"], Optional[int]]


class StopReason(Enum):
    HALT = 'HALT'
    TIMEOUT = 'TIMEOUT'


@dataclass
class MachineState:
    """Everything an instruction can read or write, owned by one run."""
    regs: Registers = field(default_factory=Registers)
    mem: Memory = field(default_factory=Memory)


class Emulator:
    """SimpleRISC fetch-decode-execute engine.

    Usage:
        emu = Emulator(assemble(source), stdout=io.BytesIO())
        reason = emu.run()
        emu.regs[0]
    """

    def __init__(self, program: Program, config: Optional[EmulatorConfig] = None, *,
                 stdin: Optional[BinaryIO] = None, stdout: Optional[BinaryIO] = None):
        self.program = program
        self.config = config or EmulatorConfig()
        self.syscalls = syscalls.SyscallDispatcher(
            stdin, stdout, self.config.unknown_syscall)

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()
        self.reset()

    def reset(self):
        """Start over with a fresh machine state; the program is kept."""
        self.state = MachineState(Registers(), Memory(self.config.memory_size))
        self._trace_output = []

    def load_data(self, data: bytes, base_addr: int = 0):
        """Preload data memory, e.g. a lookup table the program reads with ld."""
        self.state.mem.load_binary(data, base_addr)

    @property
    def regs(self) -> Registers:
        return self.state.regs

    @property
    def mem(self) -> Memory:
        return self.state.mem

    @property
    def halted(self) -> bool:
        return not 0 <= self.state.regs.pc < len(self.program)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason.HALT once halted, else None."""
        regs = self.state.regs
        pc = regs.pc
        if self.halted:
            return StopReason.HALT

        ins = self.program[pc]
        if self._trace:
            line = f"{pc:04d}: {str(ins):<24} {regs.display()}"
            self._trace_output.append(line)
            logger.debug(line)

        try:
            new_pc = self._dispatch[ins.op](ins, self.state)
        except ExecutionError as exc:
            raise exc.locate(pc, ins.line)

        regs.pc = pc + 1 if new_pc is None else new_pc
        regs.steps += 1
        return None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until halt or until the machine has executed max_steps instructions.

        max_steps defaults to config.max_steps; None means no limit.
        """
        if max_steps is None:
            max_steps = self.config.max_steps

        regs = self.state.regs
        while not self.halted:
            if max_steps is not None and regs.steps >= max_steps:
                logger.info("step limit %d reached at pc=%d", max_steps, regs.pc)
                return StopReason.TIMEOUT
            self.step()

        logger.info("halted at pc=%d after %d steps", regs.pc, regs.steps)
        return StopReason.HALT

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(ins, state) -> new pc or None for pc + 1

    def _build_dispatch(self) -> Dict[Opcode, Handler]:
        """Build opcode -> handler table; every opcode must be covered."""
        table: Dict[Opcode, Handler] = {
            # ── Arithmetic ──
            Opcode.ADD: self._op_add,
            Opcode.SUB: self._op_sub,
            Opcode.MUL: self._op_mul,
            Opcode.DIV: self._op_div,
            Opcode.MOD: self._op_mod,
            Opcode.CMP: self._op_cmp,

            # ── Logic / shift ──
            Opcode.AND: self._op_and,
            Opcode.OR:  self._op_or,
            Opcode.NOT: self._op_not,
            Opcode.MOV: self._op_mov,
            Opcode.LSL: self._op_lsl,
            Opcode.LSR: self._op_lsr,
            Opcode.ASR: self._op_asr,

            # ── Memory ──
            Opcode.LD:  self._op_ld,
            Opcode.ST:  self._op_st,

            # ── Control ──
            Opcode.B:    self._op_b,
            Opcode.BEQ:  self._op_beq,
            Opcode.BGT:  self._op_bgt,
            Opcode.CALL: self._op_call,
            Opcode.RET:  self._op_ret,
            Opcode.NOP:  self._op_nop,
            Opcode.SYS:  self._op_sys,
        }
        missing = set(Opcode) - set(table)
        if missing:
            raise NotImplementedError(
                "no handler for " + ", ".join(sorted(op.mnemonic for op in missing)))
        return table

    @staticmethod
    def _src2(ins: Instruction, regs: Registers) -> int:
        """Second source operand: widened immediate or register value."""
        if ins.imm is not None:
            return alu.widen(ins.imm, ins.modifier)
        return regs[ins.rs2]

    def _binary(self, fn: Callable[[int, int], int], ins: Instruction, st: MachineState):
        regs = st.regs
        regs[ins.rd] = fn(regs[ins.rs1], self._src2(ins, regs))

    def _op_add(self, ins, st):
        self._binary(alu.add, ins, st)

    def _op_sub(self, ins, st):
        self._binary(alu.sub, ins, st)

    def _op_mul(self, ins, st):
        self._binary(alu.mul, ins, st)

    def _op_div(self, ins, st):
        self._binary(alu.div, ins, st)

    def _op_mod(self, ins, st):
        self._binary(alu.mod, ins, st)

    def _op_and(self, ins, st):
        self._binary(alu.and_, ins, st)

    def _op_or(self, ins, st):
        self._binary(alu.or_, ins, st)

    def _op_lsl(self, ins, st):
        self._binary(alu.lsl, ins, st)

    def _op_lsr(self, ins, st):
        self._binary(alu.lsr, ins, st)

    def _op_asr(self, ins, st):
        self._binary(alu.asr, ins, st)

    def _op_cmp(self, ins, st):
        regs = st.regs
        regs.flag_e, regs.flag_gt = alu.compare(regs[ins.rs1], self._src2(ins, regs))

    def _op_not(self, ins, st):
        st.regs[ins.rd] = alu.not_(self._src2(ins, st.regs))

    def _op_mov(self, ins, st):
        st.regs[ins.rd] = self._src2(ins, st.regs)

    @staticmethod
    def _address(ins: Instruction, regs: Registers) -> int:
        """imm[reg] effective address; displacement is sign-extended."""
        return alu.add(regs[ins.rs1], alu.widen(ins.imm, Modifier.NONE))

    def _op_ld(self, ins, st):
        st.regs[ins.rd] = st.mem.read32(self._address(ins, st.regs))

    def _op_st(self, ins, st):
        # rd is the source register here
        st.mem.write32(self._address(ins, st.regs), st.regs[ins.rd])

    def _op_b(self, ins, st):
        return ins.imm

    def _op_beq(self, ins, st):
        return ins.imm if st.regs.flag_e else None

    def _op_bgt(self, ins, st):
        return ins.imm if st.regs.flag_gt else None

    def _op_call(self, ins, st):
        st.regs[LINK_REGISTER] = st.regs.pc + 1
        return ins.imm

    def _op_ret(self, ins, st):
        return st.regs[LINK_REGISTER]

    def _op_nop(self, ins, st):
        return None

    def _op_sys(self, ins, st):
        regs = st.regs
        args = [regs[i] for i in range(1, 5)]
        regs[0] = self.syscalls.dispatch(regs[0], args)

    # ══════════════════════════════════════════════
    # Debug / trace
    # ══════════════════════════════════════════════

    def enable_trace(self, enabled: bool = True):
        """Enable instruction trace logging."""
        self._trace = enabled

    def get_trace(self) -> List[str]:
        return list(self._trace_output)
