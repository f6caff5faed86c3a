import logging

import pytest

from trace2prog import ConversionError, convert_trace
from trace2prog.config import DATA_OFFSET

FORK_TRACE = """\
100 open("a", O_RDONLY) = 3
100 fork() = 101
101 open("b", O_RDONLY) = 3
101 write(3, "child", 5) = 5
100 write(3, "parent", 6) = 6
100 +++ exited with 0 +++
"""


def test_one_program_per_process(corpus):
    conversion = convert_trace(FORK_TRACE, corpus=corpus)
    assert list(conversion.programs) == [100, 101]
    assert conversion.root.pid == 100
    assert [c.name for c in conversion[101]] == ["open", "write"]


def test_processes_do_not_share_state(corpus):
    conversion = convert_trace(FORK_TRACE, corpus=corpus)
    parent, child = conversion[100], conversion[101]
    assert parent.regions[0].address == DATA_OFFSET
    assert child.regions[0].address == DATA_OFFSET
    assert parent.calls[0].ret.name == child.calls[0].ret.name == "r0"
    assert parent.calls[2].arg("fd").handle.pid == 100
    assert child.calls[1].arg("fd").handle.pid == 101


def test_accepts_iterable_of_lines(corpus):
    conversion = convert_trace(FORK_TRACE.splitlines(), corpus=corpus)
    assert len(conversion) == 2


def test_default_corpus_is_used():
    conversion = convert_trace("getpid() = 7\n")
    assert conversion.root.calls[0].name == "getpid"


def test_no_records_raises():
    with pytest.raises(ConversionError):
        convert_trace("this is not strace output\nneither is this\n")


def test_empty_trace_raises():
    with pytest.raises(ConversionError):
        convert_trace([])


def test_stats_report(convert, stats):
    convert(
        "garbage\n"
        'open("a", O_RDONLY) = 3\n'
        "frobnicate() = 0\n"
        'connect(3, {sa_family=AF_UNIX, sun_path="/s"}, 110) = -1 ENOTSOCK (Socket operation on non-socket)\n'
    )
    report = stats.report()
    assert report['parsing'] == {'lines': 4, 'records': 3, 'parse_errors': 1}
    assert report['conversion']['calls'] == 2
    assert report['conversion']['skipped_calls'] == {'frobnicate': 1}
    assert report['conversion']['fallbacks'] == {'connect': 1}


def test_malformed_lines_are_logged(corpus, caplog):
    with caplog.at_level(logging.WARNING, logger="trace2prog"):
        convert_trace("garbage\ngetpid() = 1\n", corpus=corpus)
    assert any("Skipping trace line" in r.getMessage() for r in caplog.records)
