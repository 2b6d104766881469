"""
Configuration for the CPU interpreter
Address-space layout constants and runtime options
"""

# Address space
MEMORY_SIZE = 0x10000  # 64KB, 16-bit addresses
MAX_ADDRESS = MEMORY_SIZE - 1

# Reset vector location. reset() seeds PC with this address itself,
# not with the word stored there.
RESET_VECTOR = 0xFFFC

# Stack page (0x0100-0x01FF); SP is an offset into it
STACK_PAGE = 0x0100
STACK_RESET = 0xFF  # SP after reset: top of the page, next free slot

# Runtime options
CPU_OPTIONS = {
    "trace_instructions": True,  # Emit per-instruction trace lines through debug_print
}


def describe_config():
    """Print the active configuration"""
    print("CPU configuration:")
    print(f"  Memory: {MEMORY_SIZE} bytes")
    print(f"  Reset vector: 0x{RESET_VECTOR:04X}")
    print(f"  Stack page: 0x{STACK_PAGE:04X}, SP reset: 0x{STACK_RESET:02X}")
    enabled = [k for k, v in CPU_OPTIONS.items() if v]
    if enabled:
        print(f"  Options: {', '.join(enabled)}")
