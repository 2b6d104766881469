"""
CPU Memory
Flat 64KB byte-addressable store with bounds-checked access
"""

from cpu_config import MEMORY_SIZE, MAX_ADDRESS


class MemoryAccessError(IndexError):
    """Raised when an address falls outside the 16-bit address space"""

    def __init__(self, addr):
        self.addr = addr
        super().__init__(f"Memory address out of range: {addr!r} (valid 0x0000-0x{MAX_ADDRESS:04X})")


class Memory:
    def __init__(self):
        self.data = [0] * MEMORY_SIZE

    def __len__(self):
        return MEMORY_SIZE

    def _check(self, addr):
        if not 0 <= addr <= MAX_ADDRESS:
            raise MemoryAccessError(addr)

    def initialize(self):
        """Zero every cell"""
        self.data[:] = [0] * MEMORY_SIZE

    def read(self, addr):
        """Read a byte"""
        self._check(addr)
        return self.data[addr]

    def write(self, addr, value):
        """Write a byte, truncated to 8 bits"""
        self._check(addr)
        self.data[addr] = value & 0xFF

    def write_word(self, value, addr):
        """Write a 16-bit value little-endian at addr and addr + 1"""
        self._check(addr)
        self._check(addr + 1)
        self.data[addr] = value & 0xFF
        self.data[addr + 1] = (value >> 8) & 0xFF
