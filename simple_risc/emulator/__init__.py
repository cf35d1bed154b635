# SimpleRISC execution engine: register file, memory, ALU, syscalls and
# the fetch/dispatch/step loop in emu.py.

from .emu import Emulator, MachineState, StopReason
from .syscalls import SyscallDispatcher
