"""Simulated data memory of one program."""

from dataclasses import dataclass

from .config import DATA_OFFSET, MEMORY_ALIGNMENT


@dataclass(frozen=True)
class MemoryRegion:
    address: int
    length: int
    contents: bytes = b""

    @property
    def end(self):
        return self.address + self.length


class MemoryAllocator:
    """Monotonic bump allocator; regions are never reused or freed"""

    def __init__(self, base=DATA_OFFSET, alignment=MEMORY_ALIGNMENT):
        self.base = base
        self.alignment = alignment
        self.next_address = base
        self.regions = []

    def allocate(self, length, contents=b""):
        region = MemoryRegion(self.next_address, length, bytes(contents))
        step = max(length, 1)
        self.next_address += (step + self.alignment - 1) // self.alignment * self.alignment
        self.regions.append(region)
        return region

    def __len__(self):
        return len(self.regions)
