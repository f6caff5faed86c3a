"""
resolver.py - Variant Resolver

Picks the syscall variant that best explains a traced call. Every variant
sharing the call name is tried for structural admission against the
argument literals; admitted variants are ranked by how many discriminating
fields (consts, enumerated flag sets, precisely typed resources) they
match. When nothing admits, the generic descriptor is used and the
argument builder coerces what it can.
"""

import logging
from dataclasses import dataclass

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
    SyscallVariant,
    UnionType,
    mask,
)
from .evaluate import discriminant_key, is_byte_call, literal_int, struct_members
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

_SCALAR_LITERALS = (IntLiteral, FlagsLiteral, IdentLiteral, CallLiteral)


def is_scalar(lit):
    if isinstance(lit, _SCALAR_LITERALS):
        return True
    return isinstance(lit, ArrayLiteral) and len(lit.elems) == 1 and is_scalar(lit.elems[0])


@dataclass(frozen=True)
class Resolution:
    variant: SyscallVariant
    score: int = 0
    fallback: bool = False


class VariantResolver:
    """Variant selection against a corpus.

    With a ResourceTracker attached, a resource argument already bound to a
    handle of an unrelated kind rules a variant out, and a handle of the
    field's own kind (or a subkind) counts as a discriminating match.
    """

    def __init__(self, corpus, resources=None):
        self.corpus = corpus
        self.resources = resources

    def resolve(self, name, args, pid=None):
        """Best variant for ``name(args)``; None when the corpus lacks the call"""
        variants = self.corpus.variants_for(name)
        if not variants:
            logger.debug("[!] No descriptor for %s", name)
            return None

        best = None
        for variant in variants:
            score = self.admit(variant, args, pid)
            if score is None:
                continue
            if best is None or score > best.score:
                best = Resolution(variant, score)
        if best is not None:
            return best

        base = self.corpus.base_variant(name)
        if len(variants) == 1:
            logger.debug("[*] %s: arguments do not fit its only variant, keeping it", name)
            return Resolution(base, 0)
        logger.debug("[*] %s: no variant admits the arguments, falling back to %s", name, base.name)
        return Resolution(base, 0, fallback=True)

    def admit(self, variant, args, pid=None):
        """Specificity score of ``variant`` for ``args``, or None if it does not fit"""
        score = 0
        for index, field in enumerate(variant.args):
            lit = args[index] if index < len(args) else None
            field_score = self._admit(field.type, lit, pid, DIR_IN)
            if field_score is None:
                return None
            score += field_score
        return score

    # ------------------------------------------------------------------------

    def _admit(self, typ, lit, pid, direction):
        if lit is None:
            return 0
        check = _ADMISSION.get(type(typ))
        if check is None:
            return None
        return check(self, typ, lit, pid, direction)

    def _admit_int(self, typ, lit, pid, direction):
        return 0 if is_scalar(lit) else None

    def _admit_const(self, typ, lit, pid, direction):
        value = literal_int(lit, self.corpus) if is_scalar(lit) else None
        if value is None or value & mask(typ.width) != typ.value & mask(typ.width):
            return None
        return 1

    def _admit_flags(self, typ, lit, pid, direction):
        if not is_scalar(lit):
            return None
        if not typ.enum:
            return 0
        value = literal_int(lit, self.corpus)
        if value is None:
            return None
        known = {v & mask(typ.width) for v in typ.values}
        return 1 if value & mask(typ.width) in known else None

    def _admit_resource(self, typ, lit, pid, direction):
        if not is_scalar(lit):
            return None
        if direction == DIR_OUT or self.resources is None or pid is None:
            return 0
        raw = literal_int(lit, self.corpus)
        if raw in typ.special:
            return 0
        handle = self.resources.lookup(pid, raw, typ.kind)
        if handle is None:
            return 0
        if not self.resources.is_precise(handle, typ.kind):
            return None
        return len(typ.kind)

    def _admit_buffer(self, typ, lit, pid, direction):
        return 0 if isinstance(lit, (BufferLiteral, ArrayLiteral)) or is_byte_call(lit) else None

    def _admit_ptr(self, typ, lit, pid, direction):
        if isinstance(lit, (IntLiteral, IdentLiteral)):
            return 0
        return self._admit(typ.elem, lit, pid, typ.direction)

    def _admit_struct(self, typ, lit, pid, direction):
        if not isinstance(lit, (StructLiteral, ArrayLiteral)):
            return None
        score = 0
        for field, member in zip(typ.fields, struct_members(typ, lit)):
            field_score = self._admit(field.type, member, pid, direction)
            if field_score is None:
                return None
            score += field_score
        return score

    def _admit_union(self, typ, lit, pid, direction):
        tag = self.corpus.branch_for(typ, discriminant_key(typ, lit, self.corpus))
        branch = typ.branch(tag) if tag is not None else None
        if branch is None:
            return None
        return self._admit(branch.type, lit, pid, direction)

    def _admit_array(self, typ, lit, pid, direction):
        if isinstance(lit, BufferLiteral):
            return 0 if typ.elem.size() == 1 else None
        if not isinstance(lit, ArrayLiteral):
            return None
        elems = lit.elems if typ.length is None else lit.elems[:typ.length]
        score = 0
        for elem in elems:
            elem_score = self._admit(typ.elem, elem, pid, direction)
            if elem_score is None:
                return None
            score += elem_score
        return score


_ADMISSION = {
    IntType: VariantResolver._admit_int,
    LenType: VariantResolver._admit_int,
    ConstType: VariantResolver._admit_const,
    FlagsType: VariantResolver._admit_flags,
    ResourceType: VariantResolver._admit_resource,
    BufferType: VariantResolver._admit_buffer,
    PtrType: VariantResolver._admit_ptr,
    StructType: VariantResolver._admit_struct,
    UnionType: VariantResolver._admit_union,
    ArrayType: VariantResolver._admit_array,
}
