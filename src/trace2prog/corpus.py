"""
corpus.py - Syscall Corpus Lookup

The converter only ever talks to a corpus through the Corpus interface:
variants by call name, union branches by discriminant, and symbolic
constant names. TableCorpus serves that interface from plain tables such as
the ones in trace2prog.syscalls.
"""

import logging

from .descriptors import SyscallVariant
from .errors import CorpusError

logger = logging.getLogger(__name__)

# Branch table key matching any discriminant not listed explicitly
ANY = "*"


class Corpus:
    """Read-only lookup capability over a syscall descriptor catalog"""

    def variants_for(self, name):
        """All variants of call ``name`` in declaration order"""
        raise NotImplementedError

    def base_variant(self, name):
        """Generic descriptor for ``name``, or None for unknown calls"""
        variants = self.variants_for(name)
        for variant in variants:
            if variant.is_base:
                return variant
        return variants[-1] if variants else None

    def branch_for(self, union, discriminant):
        """Branch tag of ``union`` selected by ``discriminant``, or None"""
        raise NotImplementedError

    def const_value(self, name):
        return None

    def errno_value(self, name):
        return None

    def flag_names(self, value, flags_type=None):
        return []

    def __contains__(self, name):
        return bool(self.variants_for(name))


class TableCorpus(Corpus):
    """Corpus backed by in-memory tables.

    ``syscalls`` maps a call name to a list of ``(variant name, args, ret)``
    tuples; list order is the priority order used to break ties between
    equally specific variants.
    """

    def __init__(self, syscalls, branches=None, consts=None, errnos=None):
        self._variants = {}
        self._by_name = {}
        index = 0
        for call_name, entries in syscalls.items():
            variants = []
            for variant_name, args, ret in entries:
                if variant_name.split("$", 1)[0] != call_name:
                    raise CorpusError(f"variant {variant_name} filed under {call_name}")
                if variant_name in self._by_name:
                    raise CorpusError(f"duplicate variant {variant_name}")
                variant = SyscallVariant(variant_name, call_name, tuple(args), ret, index)
                index += 1
                variants.append(variant)
                self._by_name[variant_name] = variant
            self._variants[call_name] = tuple(variants)
        self._branches = dict(branches or {})
        self._consts = dict(consts or {})
        self._errnos = dict(errnos or {})
        logger.debug("[*] Corpus loaded: %d calls, %d variants", len(self._variants), index)

    def variants_for(self, name):
        return self._variants.get(name, ())

    def variant(self, full_name):
        return self._by_name.get(full_name)

    def branch_for(self, union, discriminant):
        tag = self._branches.get((union.name, discriminant))
        if tag is None:
            tag = self._branches.get((union.name, ANY))
        return tag

    def const_value(self, name):
        return self._consts.get(name)

    def errno_value(self, name):
        return self._errnos.get(name)

    def flag_names(self, value, flags_type=None):
        """Decompose ``value`` into constant names, restricted to the field's known values"""
        known = set(flags_type.values) if flags_type is not None else None
        names = []
        remaining = value
        for name, const in sorted(self._consts.items(), key=lambda item: -item[1]):
            if const <= 0 or (known is not None and const not in known):
                continue
            if remaining & const == const:
                names.append(name)
                remaining &= ~const
        if remaining:
            names.append(hex(remaining))
        return names

    def __len__(self):
        return len(self._variants)


def load_default_corpus():
    """Corpus over the descriptor tables shipped with the package"""
    from . import syscalls
    return TableCorpus(syscalls.SYSCALL_VARIANTS, syscalls.UNION_BRANCHES,
                       syscalls.CONSTS, syscalls.ERRNOS)
