"""
descriptors.py - Syscall Descriptor Types

The vocabulary a corpus uses to describe syscall variants: every argument is
a Field pairing a name with one of the type descriptors below. Descriptors
are frozen and shared freely between variants.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .config import POINTER_SIZE

DIR_IN = "in"
DIR_OUT = "out"
DIR_INOUT = "inout"


def mask(width):
    """All-ones value for a width in bytes"""
    return (1 << (width * 8)) - 1


@dataclass(frozen=True)
class Field:
    name: str
    type: object


@dataclass(frozen=True)
class IntType:
    name: str
    width: int = 4
    default: int = 0
    big_endian: bool = False

    def size(self):
        return self.width


@dataclass(frozen=True)
class ConstType:
    """Integer that must equal a fixed value; discriminates variants"""
    name: str
    value: int
    width: int = 4
    big_endian: bool = False

    @property
    def default(self):
        return self.value

    def size(self):
        return self.width


@dataclass(frozen=True)
class FlagsType:
    """Integer over known constants.

    With ``enum`` set the value must be one of ``values`` (an ioctl command,
    a socket option) and the field discriminates variants; otherwise any
    OR-combination is accepted.
    """
    name: str
    values: Tuple[int, ...] = ()
    width: int = 4
    enum: bool = False
    default: int = 0
    big_endian: bool = False

    def size(self):
        return self.width


@dataclass(frozen=True)
class LenType:
    """Byte length of the sibling field named ``target``"""
    name: str
    target: str
    width: int = 8
    big_endian: bool = False

    @property
    def default(self):
        return 0

    def size(self):
        return self.width


@dataclass(frozen=True)
class BufferType:
    """Byte buffer; ``string`` buffers are NUL-terminated C strings"""
    name: str
    kind: str = "blob"
    length: Optional[int] = None

    @property
    def nul_terminated(self):
        return self.kind in ("string", "filename")

    def size(self):
        return self.length or 0


@dataclass(frozen=True)
class PtrType:
    name: str
    elem: object
    direction: str = DIR_IN

    def size(self):
        return POINTER_SIZE


@dataclass(frozen=True)
class StructType:
    name: str
    fields: Tuple[Field, ...] = ()

    def size(self):
        return sum(f.type.size() for f in self.fields)

    def field(self, name):
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class UnionType:
    """Branches keyed by tag; the corpus maps discriminants to tags.

    ``discriminant`` names the struct entry the tag is derived from.
    A fixed ``length`` pads every branch (sockaddr_storage), otherwise the
    union is as long as the chosen branch.
    """
    name: str
    branches: Tuple[Field, ...] = ()
    discriminant: str = ""
    length: Optional[int] = None

    def size(self):
        if self.length is not None:
            return self.length
        return self.branches[0].type.size() if self.branches else 0

    def branch(self, tag):
        for f in self.branches:
            if f.name == tag:
                return f
        return None


@dataclass(frozen=True)
class ArrayType:
    name: str
    elem: object
    length: Optional[int] = None

    def size(self):
        return self.elem.size() * (self.length or 0)


@dataclass(frozen=True)
class ResourceType:
    """Handle of kind ``kind``, a path in the kind hierarchy ('fd', 'sock', 'sock_in')"""
    name: str
    kind: Tuple[str, ...]
    width: int = 4
    special: Tuple[int, ...] = ()

    @property
    def default(self):
        return mask(self.width)

    def size(self):
        return self.width


@dataclass(frozen=True)
class SyscallVariant:
    """One descriptor: ``name`` is the full variant name (socket$unix)"""
    name: str
    call_name: str
    args: Tuple[Field, ...] = ()
    ret: Optional[ResourceType] = None
    index: int = 0

    @property
    def is_base(self):
        return self.name == self.call_name

    def __repr__(self):
        return f"SyscallVariant({self.name})"


def kind_subsumes(outer, inner):
    """True when ``inner`` is ``outer`` or one of its subkinds"""
    return tuple(inner[:len(outer)]) == tuple(outer)


def kinds_compatible(a, b):
    """Loose compatibility: one kind lies on the other's path"""
    return kind_subsumes(a, b) or kind_subsumes(b, a)
