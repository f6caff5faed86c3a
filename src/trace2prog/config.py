"""
config.py - Converter Configuration

Target memory model and trace conventions shared by the parser and the
converter. Entry points accept keyword overrides for the values that
differ between targets.
"""

# ============================================================================
# TARGET MEMORY MODEL
# ============================================================================

# First address handed out to buffers and structs in a program
DATA_OFFSET = 0x7f0000000000

# Every region advances the allocator by its length rounded up to this
MEMORY_ALIGNMENT = 64

# x86_64
POINTER_SIZE = 8

# ============================================================================
# TRACE CONVENTIONS
# ============================================================================

# Used when the trace carries no pid column (strace without -f)
DEFAULT_PID = 0

# Raw values meaning "no resource" (never bound, never resolved)
INVALID_RESOURCE_VALUES = (
    -1,
    0xFFFFFFFF,           # -1 as a 32-bit descriptor
    0xFFFFFFFFFFFFFFFF,   # -1 as a 64-bit handle
)

# Calls whose successful return value is a new child pid
PROCESS_SYSCALLS = {"clone", "clone3", "fork", "vfork"}

# Lines strace prints that are not syscall records
IGNORED_LINE_MARKERS = ("+++", "---")

UNFINISHED_MARKER = "<unfinished ...>"
