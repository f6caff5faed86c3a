"""
program.py - Program Assembler

Turns one process trace into a Program: each record is resolved to a
variant, its arguments are built, and the resources it returns are bound
so later records can refer to them. Records for calls the corpus does not
describe are skipped.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .builder import ArgumentBuilder
from .config import DATA_OFFSET, MEMORY_ALIGNMENT
from .descriptors import SyscallVariant
from .literals import TraceRecord
from .memory import MemoryAllocator
from .resolver import VariantResolver
from .resources import ResourceHandle, ResourceTracker
from .values import ResultArg, walk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedCall:
    variant: SyscallVariant
    args: Tuple = ()
    ret: Optional[ResourceHandle] = None
    produced: Tuple[ResourceHandle, ...] = ()
    errno: Optional[str] = None
    errno_value: Optional[int] = None
    fallback: bool = False
    record: Optional[TraceRecord] = None

    @property
    def name(self):
        return self.variant.name

    @property
    def failed(self):
        return self.record is not None and self.record.failed

    def arg(self, name):
        for f, value in zip(self.variant.args, self.args):
            if f.name == name:
                return value
        return None

    def uses(self):
        """Handles this call consumes, in argument order"""
        return [v.handle for a in self.args for v in walk(a)
                if isinstance(v, ResultArg) and v.handle is not None and not v.produced]

    def created(self):
        """Handles this call defines: produced out-arguments, then the return value"""
        return list(self.produced) + ([self.ret] if self.ret is not None else [])

    def __str__(self):
        prefix = f"{self.ret} = " if self.ret is not None else ""
        return f"{prefix}{self.variant.name}(...)"


@dataclass
class Program:
    """Ordered calls of one process together with the memory they reference"""
    pid: int
    calls: List[ResolvedCall] = field(default_factory=list)
    memory: MemoryAllocator = field(default_factory=MemoryAllocator)

    @property
    def regions(self):
        return list(self.memory.regions)

    def handles(self):
        return [h for call in self.calls for h in call.created()]

    def __len__(self):
        return len(self.calls)

    def __iter__(self):
        return iter(self.calls)


class ProgramAssembler:
    """Converts the records of one process, sharing a tracker and an allocator"""

    def __init__(self, corpus, resources=None, memory=None, stats=None):
        self.corpus = corpus
        self.resources = resources if resources is not None else ResourceTracker()
        self.memory = memory if memory is not None else MemoryAllocator()
        self.resolver = VariantResolver(corpus, self.resources)
        self.stats = stats

    def convert_call(self, record):
        """ResolvedCall for ``record``, or None when the call is unknown"""
        resolution = self.resolver.resolve(record.name, record.args, record.pid)
        if resolution is None:
            logger.debug("[!] pid %d: skipping unknown call %s", record.pid, record.name)
            if self.stats is not None:
                self.stats.skipped_calls[record.name] += 1
            return None

        variant = resolution.variant
        if resolution.fallback and self.stats is not None:
            self.stats.fallbacks[record.name] += 1

        builder = ArgumentBuilder(self.corpus, self.resources, self.memory, record.pid,
                                  succeeded=not record.failed, stats=self.stats)
        args = builder.build_call_args(variant, record.args)

        # arguments first: a call never consumes the handle it returns
        ret = None
        result = record.result
        if variant.ret is not None and not record.failed and result.known:
            ret = self.resources.bind_new_resource(record.pid, result.value, variant.ret.kind)

        errno_value = self.corpus.errno_value(result.errno) if result.errno else None
        if self.stats is not None:
            self.stats.calls += 1
        return ResolvedCall(variant, args, ret, tuple(builder.produced), result.errno, errno_value,
                            resolution.fallback, record)

    def assemble(self, process_trace):
        program = Program(process_trace.pid, memory=self.memory)
        for record in process_trace:
            call = self.convert_call(record)
            if call is not None:
                program.calls.append(call)
        logger.debug("[*] pid %d: %d call(s), %d region(s)", program.pid, len(program), len(program.memory))
        return program


def generate_program(process_trace, corpus, resources=None, data_offset=DATA_OFFSET,
                     alignment=MEMORY_ALIGNMENT, stats=None):
    """Program for one process trace, with a fresh data area"""
    memory = MemoryAllocator(data_offset, alignment)
    return ProgramAssembler(corpus, resources, memory, stats).assemble(process_trace)
