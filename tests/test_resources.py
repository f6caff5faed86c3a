import pytest

from trace2prog.resources import ResourceTracker
from trace2prog.syscalls import FD, INOTIFYDESC, SOCK, SOCK_IN, SOCK_UNIX


@pytest.fixture
def tracker():
    return ResourceTracker()


def test_handle_ids_increase_per_process(tracker):
    first = tracker.bind_new_resource(1, 3, FD)
    second = tracker.bind_new_resource(1, 4, SOCK)
    other = tracker.bind_new_resource(2, 3, FD)
    assert (first.name, second.name) == ("r0", "r1")
    assert other.name == "r0"
    assert tracker.handles(1) == [first, second]


@pytest.mark.parametrize("raw", [-1, 0xFFFFFFFF, 0xFFFFFFFFFFFFFFFF])
def test_sentinels_are_never_bound(tracker, raw):
    assert tracker.bind_new_resource(1, raw, FD) is None
    assert tracker.resolve_argument(1, raw, FD) is None
    assert tracker.handles(1) == []


def test_resolve_accepts_related_kinds(tracker):
    handle = tracker.bind_new_resource(1, 3, SOCK_UNIX)
    assert tracker.resolve_argument(1, 3, FD) is handle
    assert tracker.resolve_argument(1, 3, SOCK) is handle
    assert tracker.resolve_argument(1, 3, SOCK_IN) is None
    assert tracker.is_precise(handle, SOCK)
    assert not tracker.is_precise(handle, SOCK_IN)


def test_resolve_unknown_value(tracker):
    tracker.bind_new_resource(1, 3, FD)
    assert tracker.resolve_argument(1, 4, FD) is None
    assert tracker.resolve_argument(2, 3, FD) is None


def test_namespaces_are_separate(tracker):
    fd = tracker.bind_new_resource(1, 4, FD)
    watch = tracker.bind_new_resource(1, 4, INOTIFYDESC)
    assert tracker.resolve_argument(1, 4, FD) is fd
    assert tracker.resolve_argument(1, 4, INOTIFYDESC) is watch


def test_rebinding_replaces_previous_handle(tracker):
    old = tracker.bind_new_resource(1, 3, FD)
    new = tracker.bind_new_resource(1, 3, FD)
    assert new.id == old.id + 1
    assert tracker.resolve_argument(1, 3, FD) is new
    assert tracker.bindings(1) == {("fd", 3): new}
