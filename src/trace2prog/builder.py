"""
builder.py - Argument Builder

Converts argument literals into typed values against the chosen variant's
field descriptors. Buffers and pointees get memory regions, unions pick a
branch through the corpus branch table, and resource fields go through the
ResourceTracker. Shape mismatches never fail: the field falls back to its
default and the conversion moves on.
"""

import logging

from .descriptors import (
    DIR_IN,
    DIR_OUT,
    ArrayType,
    BufferType,
    ConstType,
    FlagsType,
    IntType,
    LenType,
    PtrType,
    ResourceType,
    StructType,
    UnionType,
    mask,
)
from .evaluate import discriminant_key, is_byte_call, literal_bytes, literal_int, struct_members
from .literals import ArrayLiteral, BufferLiteral, IdentLiteral, IntLiteral, StructLiteral
from .values import ConstArg, DataArg, GroupArg, PointerArg, ResultArg, UnionArg

logger = logging.getLogger(__name__)

RAW_BRANCH = "raw"
_RAW_TYPE = BufferType(RAW_BRANCH, "blob")


def byte_length(arg):
    """Length a len field reports for ``arg``: the pointee size for pointers"""
    if isinstance(arg, PointerArg):
        return arg.pointee.size() if arg.pointee is not None else 0
    return arg.size()


class ArgumentBuilder:
    """Builds the arguments of one call.

    Output resources (inside out-pointers) are bound only when the call
    succeeded; the handles created are collected in ``produced`` in
    declaration order.
    """

    def __init__(self, corpus, resources, memory, pid, succeeded=True, stats=None):
        self.corpus = corpus
        self.resources = resources
        self.memory = memory
        self.pid = pid
        self.succeeded = succeeded
        self.stats = stats
        self.produced = []

    def build_call_args(self, variant, args):
        members = [args[i] if i < len(args) else None for i in range(len(variant.args))]
        if len(args) > len(variant.args):
            logger.debug("[*] %s: dropping %d extra argument(s)", variant.name, len(args) - len(variant.args))
        return self._build_fields(variant.args, members, DIR_IN)

    def build(self, typ, lit, direction=DIR_IN):
        return _BUILDERS[type(typ)](self, typ, lit, direction)

    def default(self, typ, direction=DIR_IN):
        return self.build(typ, None, direction)

    def _build_fields(self, fields, members, direction):
        values = [None] * len(fields)
        for index, (field, lit) in enumerate(zip(fields, members)):
            if not isinstance(field.type, LenType):
                values[index] = self.build(field.type, lit, direction)

        by_name = {field.name: value for field, value in zip(fields, values)}
        for index, field in enumerate(fields):
            if isinstance(field.type, LenType):
                values[index] = self._build_len(field.type, members[index], by_name.get(field.type.target))
        return tuple(values)

    def _degraded(self, typ, lit):
        logger.debug("[!] Literal %r does not fit %s, using default", lit, typ.name)
        if self.stats is not None:
            self.stats.degraded_literals += 1

    # ------------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------------

    def _build_int(self, typ, lit, direction):
        value = literal_int(lit, self.corpus) if lit is not None else None
        if value is None:
            if lit is not None:
                self._degraded(typ, lit)
            value = typ.default
        value &= mask(typ.width)
        if isinstance(typ, FlagsType) and value and logger.isEnabledFor(logging.DEBUG):
            logger.debug("[*] %s = %#x (%s)", typ.name, value, "|".join(self.corpus.flag_names(value, typ)))
        return ConstArg(typ, value)

    def _build_len(self, typ, lit, target):
        value = byte_length(target) if target is not None else 0
        if not value and lit is not None:
            value = literal_int(lit, self.corpus) or 0
        return ConstArg(typ, value & mask(typ.width))

    def _build_resource(self, typ, lit, direction):
        raw = literal_int(lit, self.corpus) if lit is not None else None
        if raw is None:
            if lit is not None:
                self._degraded(typ, lit)
            return ResultArg(typ, typ.default)
        value = raw & mask(typ.width)
        if raw in typ.special:
            return ResultArg(typ, value)

        if direction == DIR_OUT:
            if not self.succeeded:
                return ResultArg(typ, value)
            handle = self.resources.bind_new_resource(self.pid, raw, typ.kind)
            if handle is None:
                return ResultArg(typ, value)
            self.produced.append(handle)
            return ResultArg(typ, value, handle, produced=True)

        handle = self.resources.resolve_argument(self.pid, raw, typ.kind)
        if handle is None and not self.resources.is_sentinel(raw):
            logger.debug("[*] pid %d: %d is not a tracked %s, keeping the raw value", self.pid, raw, typ.name)
            if self.stats is not None:
                self.stats.unbound_references += 1
        return ResultArg(typ, value, handle)

    # ------------------------------------------------------------------------
    # Memory
    # ------------------------------------------------------------------------

    def _build_buffer(self, typ, lit, direction):
        if lit is None:
            data = b""
        elif isinstance(lit, (BufferLiteral, ArrayLiteral)) or is_byte_call(lit):
            data = literal_bytes(lit, self.corpus, width=1)
        else:
            self._degraded(typ, lit)
            data = b""
        if lit is not None and typ.nul_terminated and not data.endswith(b"\0"):
            data += b"\0"
        if typ.length is not None:
            data = data[:typ.length].ljust(typ.length, b"\0")
        return DataArg(typ, data)

    def _build_ptr(self, typ, lit, direction):
        if lit is None:
            return PointerArg(typ)
        if isinstance(lit, (IntLiteral, IdentLiteral)):
            if not literal_int(lit, self.corpus):
                return PointerArg(typ)
            # elided buffer: the tracer printed only the address
            pointee = self.default(typ.elem, typ.direction)
        else:
            pointee = self.build(typ.elem, lit, typ.direction)
        region = self.memory.allocate(pointee.size(), pointee.encode())
        return PointerArg(typ, region.address, region, pointee)

    def _build_struct(self, typ, lit, direction):
        if lit is not None and not isinstance(lit, (StructLiteral, ArrayLiteral)):
            self._degraded(typ, lit)
        members = struct_members(typ, lit)
        return GroupArg(typ, self._build_fields(typ.fields, members, direction))

    def _build_union(self, typ, lit, direction):
        if lit is None:
            branch = typ.branches[0]
            return UnionArg(typ, branch.name, self.default(branch.type, direction))

        tag = None
        if isinstance(lit, StructLiteral):
            key = discriminant_key(typ, lit, self.corpus)
            if key is not None:
                tag = self.corpus.branch_for(typ, key)
        branch = typ.branch(tag) if tag is not None else None
        if branch is None:
            logger.debug("[!] %s: unmapped discriminant in %r, keeping raw bytes", typ.name, lit)
            if self.stats is not None:
                self.stats.unmapped_discriminants += 1
            return UnionArg(typ, RAW_BRANCH, DataArg(_RAW_TYPE, self._raw_union_bytes(typ, lit)))
        return UnionArg(typ, tag, self.build(branch.type, lit, direction))

    def _raw_union_bytes(self, typ, lit):
        if not isinstance(lit, StructLiteral):
            return literal_bytes(lit, self.corpus)
        width = 4
        for branch in typ.branches:
            field = branch.type.field(typ.discriminant) if isinstance(branch.type, StructType) else None
            if field is not None:
                width = field.type.size()
                break
        data = b""
        for name, value in lit.entries:
            data += literal_bytes(value, self.corpus, width if name == typ.discriminant else 4)
        return data

    def _build_array(self, typ, lit, direction):
        if isinstance(lit, BufferLiteral) and typ.elem.size() == 1:
            elems = [IntLiteral(b) for b in lit.data]
        elif isinstance(lit, ArrayLiteral):
            elems = list(lit.elems)
        elif lit is None:
            elems = []
        else:
            elems = [lit]
        if typ.length is not None:
            elems = elems[:typ.length] + [None] * (typ.length - len(elems[:typ.length]))
        return GroupArg(typ, tuple(self.build(typ.elem, elem, direction) for elem in elems))


_BUILDERS = {
    IntType: ArgumentBuilder._build_int,
    ConstType: ArgumentBuilder._build_int,
    FlagsType: ArgumentBuilder._build_int,
    LenType: lambda self, typ, lit, direction: self._build_len(typ, lit, None),
    ResourceType: ArgumentBuilder._build_resource,
    BufferType: ArgumentBuilder._build_buffer,
    PtrType: ArgumentBuilder._build_ptr,
    StructType: ArgumentBuilder._build_struct,
    UnionType: ArgumentBuilder._build_union,
    ArrayType: ArgumentBuilder._build_array,
}
