"""
converter.py - Trace Conversion Pipeline

Runs the whole pipeline over one trace: parse the lines, assemble one
ProcessTrace per pid, then generate a Program for every process, parents
first. ConversionStats collects what was absorbed along the way.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from .config import DATA_OFFSET, DEFAULT_PID, MEMORY_ALIGNMENT
from .corpus import load_default_corpus
from .errors import ConversionError
from .parser import parse_trace
from .program import generate_program
from .trace import build_trace_tree

logger = logging.getLogger(__name__)


@dataclass
class ConversionStats:
    """Counters for one conversion run"""
    lines: int = 0
    records: int = 0
    parse_errors: List = field(default_factory=list)
    calls: int = 0
    skipped_calls: Counter = field(default_factory=Counter)
    fallbacks: Counter = field(default_factory=Counter)
    unmapped_discriminants: int = 0
    unbound_references: int = 0
    degraded_literals: int = 0

    def report(self):
        return {
            'parsing': {
                'lines': self.lines,
                'records': self.records,
                'parse_errors': len(self.parse_errors),
            },
            'conversion': {
                'calls': self.calls,
                'skipped_calls': dict(self.skipped_calls),
                'fallbacks': dict(self.fallbacks),
            },
            'anomalies': {
                'unmapped_discriminants': self.unmapped_discriminants,
                'unbound_references': self.unbound_references,
                'degraded_literals': self.degraded_literals,
            },
        }

    def log_summary(self, level=logging.INFO):
        logger.log(level, "[+] Converted %d call(s) from %d record(s) (%d line(s), %d parse error(s))",
                   self.calls, self.records, self.lines, len(self.parse_errors))
        if self.skipped_calls:
            logger.log(level, "[*] Skipped unknown calls: %s",
                       ", ".join(f"{name} x{count}" for name, count in self.skipped_calls.most_common()))
        if self.fallbacks:
            logger.log(level, "[*] Generic fallbacks: %s",
                       ", ".join(f"{name} x{count}" for name, count in self.fallbacks.most_common()))


@dataclass
class Conversion:
    """Programs of one trace, keyed by pid, in parent-before-child order"""
    tree: object
    programs: Dict[int, object] = field(default_factory=dict)
    stats: ConversionStats = field(default_factory=ConversionStats)

    @property
    def root(self):
        return self.programs.get(self.tree.root_pid)

    def __getitem__(self, pid):
        return self.programs[pid]

    def __iter__(self):
        return iter(self.programs.values())

    def __len__(self):
        return len(self.programs)


def convert_trace(lines, corpus=None, root_pid=None, default_pid=DEFAULT_PID,
                  data_offset=DATA_OFFSET, alignment=MEMORY_ALIGNMENT, stats=None):
    """Convert strace output (a text blob or an iterable of lines) into programs.

    Raises ConversionError when no line parses into a record.
    """
    corpus = corpus if corpus is not None else load_default_corpus()
    stats = stats if stats is not None else ConversionStats()

    records = parse_trace(lines, default_pid=default_pid, stats=stats)
    if not records:
        raise ConversionError(
            f"no syscall records in trace ({stats.lines} line(s), {len(stats.parse_errors)} parse error(s))")

    tree = build_trace_tree(records, root_pid)
    conversion = Conversion(tree, stats=stats)
    for process_trace in tree.walk():
        conversion.programs[process_trace.pid] = generate_program(
            process_trace, corpus, data_offset=data_offset, alignment=alignment, stats=stats)

    stats.log_summary(logging.DEBUG)
    return conversion
