"""
literals.py - Trace Record Data Model

Parsed argument literals are a closed set of frozen dataclasses. They only
nest downward (arrays and structs hold literals), so a parsed record is a
plain tree.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class IntLiteral:
    """Decimal, hex or octal integer, negative values allowed"""
    value: int
    raw: str = ""


@dataclass(frozen=True)
class IdentLiteral:
    """Symbolic constant as strace prints it (NULL, O_RDWR, AF_INET)"""
    name: str


@dataclass(frozen=True)
class FlagsLiteral:
    """Terms joined by '|', kept in trace order"""
    terms: Tuple = ()


@dataclass(frozen=True)
class BufferLiteral:
    """Quoted string: escaped text as printed plus the decoded bytes"""
    raw: str
    data: bytes


@dataclass(frozen=True)
class ArrayLiteral:
    elems: Tuple = ()


@dataclass(frozen=True)
class StructLiteral:
    """Sparse struct; entries are (field name or None, literal) pairs"""
    entries: Tuple = ()

    def get(self, name, default=None):
        for key, value in self.entries:
            if key == name:
                return value
        return default

    def names(self):
        return [key for key, _ in self.entries if key is not None]


@dataclass(frozen=True)
class CallLiteral:
    """Helper expression such as htons(80) or inet_addr("127.0.0.1")"""
    name: str
    args: Tuple = ()


@dataclass(frozen=True)
class ReturnValue:
    value: Optional[int]
    errno: Optional[str] = None
    message: Optional[str] = None

    @property
    def failed(self):
        if self.errno is not None:
            return True
        return self.value == -1

    @property
    def known(self):
        return self.value is not None


@dataclass(frozen=True)
class TraceRecord:
    pid: int
    name: str
    args: Tuple = ()
    result: ReturnValue = field(default_factory=lambda: ReturnValue(None))
    line_no: Optional[int] = None

    @property
    def failed(self):
        return self.result.failed
