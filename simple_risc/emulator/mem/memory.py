"""
SimpleRISC flat byte-addressable memory.

Size is a configuration value (default 16 KiB). Only aligned 32-bit word
access is architectural; words are little-endian. Checks on every access:

    address < 0                     InvalidMemoryAddress
    address % 4 != 0                UnalignedAccess
    address + 4 > size              InvalidMemoryAddress
"""

import struct

from ...config import DEFAULT_MEMORY_SIZE, WORD_SIZE
from ...errors import InvalidMemoryAddress, UnalignedAccess
from ..cpu.alu import to_signed32

_WORD = struct.Struct("<i")


class Memory:
    """Zero-initialised memory with aligned little-endian word access."""

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE):
        self.size = size
        self._mem = bytearray(size)

    def __len__(self) -> int:
        return self.size

    def _check_word(self, addr: int):
        if addr < 0:
            raise InvalidMemoryAddress(addr)
        if addr % WORD_SIZE:
            raise UnalignedAccess(addr)
        if addr + WORD_SIZE > self.size:
            raise InvalidMemoryAddress(addr)

    # --- Core read/write ---

    def read32(self, addr: int) -> int:
        """Read a signed 32-bit little-endian word."""
        self._check_word(addr)
        return _WORD.unpack_from(self._mem, addr)[0]

    def write32(self, addr: int, value: int):
        """Write a 32-bit little-endian word (value wraps to 32 bits)."""
        self._check_word(addr)
        _WORD.pack_into(self._mem, addr, to_signed32(value))

    def read8(self, addr: int) -> int:
        if not 0 <= addr < self.size:
            raise InvalidMemoryAddress(addr)
        return self._mem[addr]

    # --- Bulk load / inspection ---

    def load_binary(self, data: bytes, base_addr: int = 0):
        """Copy raw bytes into memory starting at base_addr."""
        if base_addr < 0 or base_addr + len(data) > self.size:
            raise InvalidMemoryAddress(base_addr)
        self._mem[base_addr:base_addr + len(data)] = data

    def dump(self, start: int = 0, length: int = None) -> bytes:
        """Return a copy of memory contents."""
        end = self.size if length is None else start + length
        return bytes(self._mem[start:end])
