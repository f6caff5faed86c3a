from trace2prog.parser import parse_trace
from trace2prog.trace import build_trace_tree

FORK_TRACE = [
    '100 open("a", O_RDONLY) = 3',
    "100 fork() = 101",
    "101 getpid() = 101",
    "101 fork() = 102",
    "100 close(3) = 0",
    "102 exit_group(0) = ?",
]


def test_groups_records_per_pid_in_order():
    tree = build_trace_tree(parse_trace(FORK_TRACE))
    assert tree.root_pid == 100
    assert [r.name for r in tree.traces[100]] == ["open", "fork", "close"]
    assert [r.name for r in tree.traces[101]] == ["getpid", "fork"]
    assert len(tree.traces[102]) == 1


def test_links_children_to_parents():
    tree = build_trace_tree(parse_trace(FORK_TRACE))
    assert tree.traces[101].parent == 100
    assert tree.traces[102].parent == 101
    assert tree.children == {100: [101], 101: [102]}
    assert [t.pid for t in tree.walk()] == [100, 101, 102]


def test_failed_fork_creates_no_child():
    tree = build_trace_tree(parse_trace(["100 fork() = -1 EAGAIN (Resource temporarily unavailable)"]))
    assert list(tree.traces) == [100]
    assert tree.children == {}


def test_designated_root():
    tree = build_trace_tree(parse_trace(FORK_TRACE), root_pid=101)
    assert tree.root.pid == 101
    assert tree.walk()[0].pid == 101


def test_unrelated_processes_are_all_walked():
    tree = build_trace_tree(parse_trace(["1 getpid() = 1", "2 getpid() = 2"]))
    assert [t.pid for t in tree.walk()] == [1, 2]
    assert tree.traces[2].parent is None
