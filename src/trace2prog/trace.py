"""
trace.py - Trace Assembler

Groups parsed records by pid, in line order, and links children created by
fork-style calls to their parent.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import PROCESS_SYSCALLS

logger = logging.getLogger(__name__)


@dataclass
class ProcessTrace:
    pid: int
    parent: Optional[int] = None
    calls: List = field(default_factory=list)

    def __len__(self):
        return len(self.calls)

    def __iter__(self):
        return iter(self.calls)


@dataclass
class TraceTree:
    root_pid: Optional[int] = None
    traces: Dict[int, ProcessTrace] = field(default_factory=dict)
    children: Dict[int, List[int]] = field(default_factory=dict)

    @property
    def root(self):
        return self.traces.get(self.root_pid)

    def __len__(self):
        return len(self.traces)

    def add(self, record):
        trace = self.traces.get(record.pid)
        if trace is None:
            trace = self.traces[record.pid] = ProcessTrace(record.pid)
            if self.root_pid is None:
                self.root_pid = record.pid
        trace.calls.append(record)
        return trace

    def link(self, parent, child):
        trace = self.traces.get(child)
        if trace is None:
            trace = self.traces[child] = ProcessTrace(child)
        if trace.parent is None:
            trace.parent = parent
            self.children.setdefault(parent, []).append(child)

    def walk(self):
        """Process traces in parent-before-child order, starting at the root"""
        seen = set()
        order = []
        stack = [self.root_pid] if self.root_pid in self.traces else []
        stack += [pid for pid, t in self.traces.items() if t.parent is None and pid != self.root_pid]
        stack.reverse()
        while stack:
            pid = stack.pop()
            if pid in seen or pid not in self.traces:
                continue
            seen.add(pid)
            order.append(self.traces[pid])
            stack.extend(reversed(self.children.get(pid, [])))
        return order


def build_trace_tree(records, root_pid=None):
    """Group records into one ProcessTrace per pid"""
    tree = TraceTree(root_pid)
    for record in records:
        tree.add(record)
        if record.name in PROCESS_SYSCALLS and not record.failed:
            child = record.result.value
            if child and child > 0:
                tree.link(record.pid, child)

    if tree.root_pid is not None and tree.root_pid not in tree.traces:
        logger.warning("[!] Designated root pid %d has no calls in the trace", tree.root_pid)
    logger.debug("[*] Assembled %d process trace(s), root pid %s", len(tree), tree.root_pid)
    return tree
