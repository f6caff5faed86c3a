import pytest

from trace2prog.builder import ArgumentBuilder
from trace2prog.config import DATA_OFFSET
from trace2prog.converter import ConversionStats
from trace2prog.descriptors import DIR_OUT, ArrayType, FlagsType, IntType
from trace2prog.literals import IdentLiteral, IntLiteral
from trace2prog.memory import MemoryAllocator
from trace2prog.parser import parse_line
from trace2prog.resources import ResourceTracker
from trace2prog.syscalls import FD, PIPEFD, SOCKADDR, int8, int32, ptr, res, string


@pytest.fixture
def builder(corpus):
    return ArgumentBuilder(corpus, ResourceTracker(), MemoryAllocator(), pid=0, stats=ConversionStats())


def sockaddr(text):
    return parse_line(f"bind(3, {text}, 0) = 0").args[1]


def test_unix_path_branch(builder):
    arg = builder.build(SOCKADDR, sockaddr('{sa_family=AF_UNIX, sun_path="/tmp/s"}'))
    assert arg.tag == "un"
    assert arg.option.tag == "file"
    path = arg.option.option.member("sun_path").data
    assert path.startswith(b"/tmp/s\0")
    assert len(path) == 108
    assert arg.size() == 128
    assert arg.encode()[:2] == b"\x01\x00"


def test_unix_abstract_branch(builder):
    arg = builder.build(SOCKADDR, sockaddr('{sa_family=AF_UNIX, sun_path="\\0abc"}'))
    assert arg.option.tag == "abstract"
    assert arg.option.option.member("sun_path").data[:5] == b"\0abc\0"


def test_unix_abstract_name_with_at_sign(builder):
    arg = builder.build(SOCKADDR, sockaddr('{sa_family=AF_UNIX, sun_path=@"abc"}'))
    assert arg.option.tag == "abstract"
    assert arg.option.option.member("sun_path").data[:5] == b"\0abc\0"


def test_ipv6_address_from_inet_pton(builder):
    arg = builder.build(SOCKADDR, sockaddr(
        '{sa_family=AF_INET6, sin6_port=htons(443), sin6_flowinfo=htonl(0), '
        'inet_pton(AF_INET6, "fe80::1", &sin6_addr), sin6_scope_id=2}'))
    assert arg.tag == "in6"
    assert arg.option.member("sin6_port").value == 443
    assert arg.option.member("sin6_addr").data == b"\xfe\x80" + b"\0" * 13 + b"\x01"
    assert arg.option.member("sin6_scope_id").value == 2


def test_ipv4_branch(builder):
    arg = builder.build(SOCKADDR, sockaddr(
        '{sa_family=AF_INET, sin_port=htons(80), sin_addr=inet_addr("127.0.0.1")}'))
    assert arg.tag == "in"
    assert arg.option.member("sin_port").value == 80
    assert arg.option.member("sin_addr").value == 0x7F000001
    assert arg.encode()[:16] == b"\x02\x00\x00\x50\x7f\x00\x00\x01" + b"\0" * 8


def test_netlink_branch(builder):
    arg = builder.build(SOCKADDR, sockaddr('{sa_family=AF_NETLINK, nl_pid=1234, nl_groups=0x10}'))
    assert arg.tag == "nl"
    assert arg.option.tag == "proc"
    assert arg.option.option.member("nl_pid").value == 1234
    assert arg.option.option.member("nl_groups").value == 0x10


def test_netlink_kernel_branch(builder):
    arg = builder.build(SOCKADDR, sockaddr("{sa_family=AF_NETLINK, nl_pid=0, nl_groups=00000000}"))
    assert arg.option.tag == "kern"


def test_unmapped_family_keeps_raw_bytes(builder):
    arg = builder.build(SOCKADDR, sockaddr('{sa_family=AF_CAN, sa_data="xy"}'))
    assert arg.tag == "raw"
    assert arg.option.data == b"\x1d\x00xy"
    assert arg.size() == 128
    assert builder.stats.unmapped_discriminants == 1


def test_string_gets_nul_once(builder):
    assert builder.build(string(), parse_line('open("a\\tb", 0) = 3').args[0]).data == b"a\tb\0"
    assert builder.build(string(), parse_line('open("f\\0", 0) = 3').args[0]).data == b"f\0"


def test_fixed_length_string_is_padded(builder):
    assert builder.build(string(16), parse_line('open("lo", 0) = 3').args[0]).data == b"lo" + b"\0" * 14


def test_flags_are_masked_to_width(builder):
    flags = FlagsType("flags", width=2)
    assert builder.build(flags, IntLiteral(-1)).value == 0xFFFF


def test_unknown_ident_degrades_to_default(builder):
    assert builder.build(IntType("mode", default=7), IdentLiteral("NOT_A_CONSTANT")).value == 7
    assert builder.stats.degraded_literals == 1


def test_null_and_address_pointers(builder):
    null = builder.build(ptr(int32()), IdentLiteral("NULL"))
    assert null.is_null
    assert len(builder.memory) == 0

    elided = builder.build(ptr(int32()), IntLiteral(0x7FFD1234))
    assert elided.address == DATA_OFFSET
    assert elided.region.length == 4
    assert elided.pointee.value == 0


def test_pointer_region_holds_encoded_pointee(builder):
    arg = builder.build(ptr(int32()), parse_line("ioctl(3, FIONBIO, [1]) = 0").args[2])
    assert arg.region.contents == b"\x01\x00\x00\x00"


def test_output_resources_bind_in_order(builder):
    arg = builder.build(ptr(PIPEFD, DIR_OUT), parse_line("pipe([5, 6]) = 0").args[0])
    rfd, wfd = arg.pointee.inner
    assert (rfd.handle.name, wfd.handle.name) == ("r0", "r1")
    assert rfd.produced and wfd.produced
    assert builder.produced == [rfd.handle, wfd.handle]
    assert arg.region.contents == b"\x05\x00\x00\x00\x06\x00\x00\x00"


def test_output_resources_of_failed_call_stay_unbound(corpus):
    failed = ArgumentBuilder(corpus, ResourceTracker(), MemoryAllocator(), pid=0, succeeded=False)
    arg = failed.build(ptr(PIPEFD, DIR_OUT), parse_line("pipe([5, 6]) = 0").args[0])
    assert all(v.handle is None for v in arg.pointee.inner)
    assert failed.produced == []


def test_input_resource_keeps_raw_value_when_unbound(builder):
    arg = builder.build(res(FD), IntLiteral(7))
    assert arg.handle is None
    assert arg.value == 7
    assert builder.stats.unbound_references == 1


def test_special_resource_value(builder):
    variant = builder.corpus.variant("openat")
    args = builder.build_call_args(variant, parse_line('openat(AT_FDCWD, "f", O_RDONLY) = 3').args)
    assert args[0].handle is None
    assert args[0].value == 0xFFFFFF9C
    assert builder.stats.unbound_references == 0


def test_len_field_follows_pointee(builder):
    variant = builder.corpus.variant("write")
    args = builder.build_call_args(variant, parse_line('write(3, "somedata", 100) = 8').args)
    assert args[2].value == 8


def test_len_field_keeps_trace_value_for_elided_buffer(builder):
    variant = builder.corpus.variant("read")
    args = builder.build_call_args(variant, parse_line("read(3, 0x7ffd0000, 4096) = 0").args)
    assert args[2].value == 4096


def test_fixed_array_is_padded(builder):
    arg = builder.build(ArrayType("arr", int32(), 3), parse_line("f([1, 2]) = 0").args[0])
    assert [v.value for v in arg.inner] == [1, 2, 0]
    assert arg.size() == 12


def test_byte_array_from_string(builder):
    arg = builder.build(ArrayType("bytes", int8()), parse_line('f("ab") = 0').args[0])
    assert arg.encode() == b"ab"
