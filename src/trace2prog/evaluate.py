"""Literal evaluation shared by the variant resolver and the argument builder."""

import logging
import socket
import struct

from .literals import (
    ArrayLiteral,
    BufferLiteral,
    CallLiteral,
    FlagsLiteral,
    IdentLiteral,
    IntLiteral,
    StructLiteral,
)

logger = logging.getLogger(__name__)


def _inet_addr(args, corpus):
    if args and isinstance(args[0], BufferLiteral):
        try:
            return struct.unpack("!I", socket.inet_aton(args[0].data.decode("ascii")))[0]
        except (OSError, UnicodeDecodeError):
            return None
    return None


def _makedev(args, corpus):
    if len(args) != 2:
        return None
    major, minor = literal_int(args[0], corpus), literal_int(args[1], corpus)
    if major is None or minor is None:
        return None
    return (minor & 0xFF) | ((major & 0xFFF) << 8) | ((minor & ~0xFF) << 12) | ((major & ~0xFFF) << 32)


# AF_INET / AF_INET6 as strace prints them
_PTON_FAMILIES = {2: socket.AF_INET, 10: socket.AF_INET6}


def _inet_pton_bytes(args, corpus):
    """Packed address of inet_pton(family, "text", &field)"""
    if len(args) < 2 or not isinstance(args[1], BufferLiteral):
        return None
    family = _PTON_FAMILIES.get(literal_int(args[0], corpus))
    if family is None:
        return None
    try:
        return socket.inet_pton(family, args[1].data.decode("ascii"))
    except (OSError, UnicodeDecodeError):
        return None


def _inet_pton(args, corpus):
    data = _inet_pton_bytes(args, corpus)
    return int.from_bytes(data, "big") if data is not None else None


def _passthrough(args, corpus):
    return literal_int(args[0], corpus) if args else None


# strace helper expressions; byte order is carried by the field descriptor
CALL_EVALUATORS = {
    "htons": _passthrough,
    "htonl": _passthrough,
    "ntohs": _passthrough,
    "ntohl": _passthrough,
    "inet_addr": _inet_addr,
    "makedev": _makedev,
    "inet_pton": _inet_pton,
}

# helpers that stand for a byte string rather than a number
CALL_BYTES = {
    "inet_pton": _inet_pton_bytes,
}


def literal_int(lit, corpus=None):
    """Integer value of a literal, or None when it has no integer reading"""
    if isinstance(lit, IntLiteral):
        return lit.value
    if isinstance(lit, FlagsLiteral):
        value = 0
        for term in lit.terms:
            term_value = literal_int(term, corpus)
            if term_value is None:
                logger.debug("[*] Dropping unknown flag term %r", term)
                continue
            value |= term_value
        return value
    if isinstance(lit, IdentLiteral):
        if lit.name == "NULL":
            return 0
        return corpus.const_value(lit.name) if corpus is not None else None
    if isinstance(lit, CallLiteral):
        evaluator = CALL_EVALUATORS.get(lit.name, _passthrough)
        return evaluator(lit.args, corpus)
    if isinstance(lit, ArrayLiteral) and len(lit.elems) == 1:
        return literal_int(lit.elems[0], corpus)
    return None


def is_byte_call(lit):
    return isinstance(lit, CallLiteral) and lit.name in CALL_BYTES


def literal_bytes(lit, corpus=None, width=4):
    """Raw bytes of a literal as the tracer printed it"""
    if isinstance(lit, BufferLiteral):
        return lit.data
    if is_byte_call(lit):
        return CALL_BYTES[lit.name](lit.args, corpus) or b""
    if isinstance(lit, ArrayLiteral):
        return b"".join(literal_bytes(elem, corpus, width) for elem in lit.elems)
    if isinstance(lit, StructLiteral):
        return b"".join(literal_bytes(value, corpus, width) for _, value in lit.entries)
    value = literal_int(lit, corpus)
    if value is None:
        return b""
    return (value & ((1 << (width * 8)) - 1)).to_bytes(width, "little")


def struct_members(struct_type, lit):
    """Literal for each field of ``struct_type``, None where the trace omits it.

    Named entries match fields by name; bare entries (and array elements)
    fill fields by position. A bare helper call ending in &field, as in
    inet_pton(AF_INET6, "::1", &sin6_addr), fills that field. Entries
    naming no declared field are ignored.
    """
    members = [None] * len(struct_type.fields)
    if isinstance(lit, ArrayLiteral):
        for index, elem in enumerate(lit.elems[:len(members)]):
            members[index] = elem
        return members
    if not isinstance(lit, StructLiteral):
        return members
    positions = {f.name: i for i, f in enumerate(struct_type.fields)}
    for index, (name, value) in enumerate(lit.entries):
        if name is None and isinstance(value, CallLiteral) and value.args:
            target = value.args[-1]
            if isinstance(target, IdentLiteral) and target.name in positions:
                name = target.name
        if name is not None:
            if name in positions:
                members[positions[name]] = value
        elif index < len(members) and members[index] is None:
            members[index] = value
    return members


def discriminant_key(union, lit, corpus=None):
    """Key the corpus branch table is indexed by for this union literal.

    Integer discriminants key by value; buffer discriminants key by whether
    they start with a NUL byte ("nul") or not ("text").
    """
    if not isinstance(lit, StructLiteral):
        return None
    value = lit.get(union.discriminant)
    if value is None:
        return None
    if isinstance(value, BufferLiteral):
        return "nul" if value.data.startswith(b"\0") else "text"
    return literal_int(value, corpus)
