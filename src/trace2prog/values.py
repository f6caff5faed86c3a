"""
values.py - Typed Argument Values

The resolved counterpart of a literal against one field descriptor. Each
value knows its encoded size and its packed little-endian layout (or
big-endian where the descriptor says so), which is what gets written into
memory regions.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .config import POINTER_SIZE
from .descriptors import mask
from .memory import MemoryRegion
from .resources import ResourceHandle


def _encode_int(value, width, big_endian=False):
    return (value & mask(width)).to_bytes(width, "big" if big_endian else "little")


@dataclass(frozen=True)
class ConstArg:
    """Integer, flag set, const or length value, truncated to its width"""
    type: object
    value: int

    def size(self):
        return self.type.width

    def encode(self):
        return _encode_int(self.value, self.type.width, self.type.big_endian)


@dataclass(frozen=True)
class ResultArg:
    """Resource use or definition; ``handle`` is None when the raw value is kept"""
    type: object
    value: int
    handle: Optional[ResourceHandle] = None
    produced: bool = False

    def size(self):
        return self.type.width

    def encode(self):
        return _encode_int(self.value, self.type.width)


@dataclass(frozen=True)
class DataArg:
    type: object
    data: bytes = b""

    def size(self):
        return len(self.data)

    def encode(self):
        return self.data


@dataclass(frozen=True)
class PointerArg:
    """Pointer into program memory; a NULL pointer has no region"""
    type: object
    address: int = 0
    region: Optional[MemoryRegion] = None
    pointee: Optional[object] = None

    @property
    def is_null(self):
        return self.region is None and self.address == 0

    def size(self):
        return POINTER_SIZE

    def encode(self):
        return _encode_int(self.address, POINTER_SIZE)


@dataclass(frozen=True)
class GroupArg:
    """Struct or array: members in layout order"""
    type: object
    inner: Tuple = ()

    def size(self):
        return sum(arg.size() for arg in self.inner)

    def encode(self):
        return b"".join(arg.encode() for arg in self.inner)

    def member(self, name):
        fields = getattr(self.type, "fields", ())
        for field, arg in zip(fields, self.inner):
            if field.name == name:
                return arg
        return None


@dataclass(frozen=True)
class UnionArg:
    """Union with the branch picked by ``tag``; 'raw' carries unmapped bytes"""
    type: object
    tag: str
    option: object

    def size(self):
        if self.type.length is not None:
            return self.type.length
        return self.option.size()

    def encode(self):
        data = self.option.encode()
        if self.type.length is not None:
            data = data[:self.type.length].ljust(self.type.length, b"\0")
        return data


def walk(arg):
    """Yield ``arg`` and everything nested under it, depth first"""
    yield arg
    if isinstance(arg, PointerArg) and arg.pointee is not None:
        yield from walk(arg.pointee)
    elif isinstance(arg, GroupArg):
        for inner in arg.inner:
            yield from walk(inner)
    elif isinstance(arg, UnionArg):
        yield from walk(arg.option)
