"""
resources.py - Resource Tracker

Maps raw trace values (descriptor numbers, watch ids, IPC ids) to the
symbolic handles created for them, per process. Bindings live in one
namespace per root kind, so inotify watch 3 and file descriptor 3 coexist.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .config import INVALID_RESOURCE_VALUES
from .descriptors import kind_subsumes, kinds_compatible

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceHandle:
    kind: Tuple[str, ...]
    id: int
    pid: int
    raw: int

    @property
    def name(self):
        return f"r{self.id}"

    def __str__(self):
        return self.name


@dataclass
class _ProcessScope:
    next_id: int = 0
    bindings: Dict[Tuple[str, int], ResourceHandle] = field(default_factory=dict)
    created: List[ResourceHandle] = field(default_factory=list)


class ResourceTracker:
    """Resource bindings of one conversion, scoped per process"""

    def __init__(self, invalid_values=INVALID_RESOURCE_VALUES):
        self.invalid_values = frozenset(invalid_values)
        self._scopes = {}

    def _scope(self, pid):
        scope = self._scopes.get(pid)
        if scope is None:
            scope = self._scopes[pid] = _ProcessScope()
        return scope

    def is_sentinel(self, raw, special=()):
        return raw is None or raw in self.invalid_values or raw in special

    def bind_new_resource(self, pid, raw, kind):
        """Create the next handle of ``kind`` for ``raw``; None for sentinels"""
        if self.is_sentinel(raw):
            logger.debug("[*] pid %d: not binding sentinel %r", pid, raw)
            return None
        scope = self._scope(pid)
        handle = ResourceHandle(tuple(kind), scope.next_id, pid, raw)
        scope.next_id += 1
        key = (handle.kind[0], raw)
        previous = scope.bindings.get(key)
        if previous is not None:
            logger.debug("[*] pid %d: %s rebinds %d (was %s)", pid, handle, raw, previous)
        scope.bindings[key] = handle
        scope.created.append(handle)
        return handle

    def lookup(self, pid, raw, kind):
        """Current handle bound to ``raw`` in ``kind``'s namespace, whatever its kind"""
        if self.is_sentinel(raw):
            return None
        scope = self._scopes.get(pid)
        if scope is None:
            return None
        return scope.bindings.get((kind[0], raw))

    def resolve_argument(self, pid, raw, kind):
        """Handle for a use of ``raw`` as ``kind``, or None to keep the raw value"""
        handle = self.lookup(pid, raw, kind)
        if handle is None or not kinds_compatible(handle.kind, kind):
            return None
        return handle

    def is_precise(self, handle, kind):
        return kind_subsumes(kind, handle.kind)

    def handles(self, pid):
        scope = self._scopes.get(pid)
        return list(scope.created) if scope is not None else []

    def bindings(self, pid):
        scope = self._scopes.get(pid)
        return dict(scope.bindings) if scope is not None else {}
