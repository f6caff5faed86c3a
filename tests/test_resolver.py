import pytest

from trace2prog.parser import parse_line
from trace2prog.resolver import VariantResolver
from trace2prog.resources import ResourceTracker
from trace2prog.syscalls import FD, SOCK, SOCK_UNIX


def resolve(corpus, line, tracker=None):
    record = parse_line(line)
    return VariantResolver(corpus, tracker).resolve(record.name, record.args, record.pid)


@pytest.mark.parametrize("line, variant", [
    ("socket(1, 1 | 2048, 0) = 3", "socket$unix"),
    ("socket(AF_UNIX, SOCK_STREAM|SOCK_CLOEXEC, 0) = 3", "socket$unix"),
    ("socket(AF_INET, SOCK_STREAM, IPPROTO_IP) = 3", "socket$inet_tcp"),
    ("socket(AF_INET6, SOCK_DGRAM, 0) = 3", "socket$inet6_udp"),
    ("socket(AF_NETLINK, SOCK_RAW, NETLINK_ROUTE) = 3", "socket$netlink"),
    ("socket(AF_PACKET, SOCK_RAW, htons(ETH_P_ALL)) = 3", "socket$packet"),
    ("socket(AF_CAN, SOCK_RAW, CAN_RAW) = 3", "socket$can_raw"),
    ("socket(AF_INET, SOCK_STREAM, IPPROTO_TCP) = 3", "socket"),
    ("socket(99, SOCK_STREAM, 0) = -1 EAFNOSUPPORT (Address family not supported by protocol)", "socket"),
    ('ioctl(3, SIOCGIFINDEX, {ifr_name="team0"}) = 0', "ioctl$ifreq_SIOCGIFINDEX_team"),
    ('ioctl(3, SIOCGIFHWADDR, {ifr_name="lo"}) = 0', "ioctl$sock_ifreq"),
    ("ioctl(3, FIONBIO, [1]) = 0", "ioctl$int_in"),
    ("ioctl(3, 0x1234, 0) = -1 ENOTTY (Inappropriate ioctl for device)", "ioctl"),
    ("setsockopt(3, SOL_SOCKET, SO_REUSEADDR, [1], 4) = 0", "setsockopt$sock_int"),
    ('setsockopt(3, SOL_IP, 0x40, "\\x01", 1) = 0', "setsockopt"),
    ("ioprio_get(IOPRIO_WHO_PROCESS, 0) = 4", "ioprio_get$pid"),
    ("ioprio_get(IOPRIO_WHO_USER, 1000) = 4", "ioprio_get$uid"),
    ("ioprio_get(2, 0) = 4", "ioprio_get"),
    ('getsockopt(-1, SOL_SCTP, SCTP_RESET_STREAMS, "\\x00", [4]) = -1 EBADF (Bad file descriptor)',
     "getsockopt$inet_sctp6_SCTP_RESET_STREAMS"),
    ("fcntl(3, F_DUPFD_CLOEXEC, 10) = 10", "fcntl$dupfd"),
    ("fcntl(3, F_GETFL) = 0x2", "fcntl"),
])
def test_variant_selection(corpus, line, variant):
    resolution = resolve(corpus, line)
    assert resolution.variant.name == variant
    assert not resolution.fallback


def test_unknown_call(corpus):
    assert resolve(corpus, "frobnicate(1) = 0") is None


def test_bound_resource_kind_refines_choice(corpus):
    tracker = ResourceTracker()
    tracker.bind_new_resource(0, 3, SOCK_UNIX)
    line = 'connect(3, {sa_family=AF_UNIX, sun_path="/tmp/s"}, 110) = 0'
    resolution = resolve(corpus, line, tracker)
    assert resolution.variant.name == "connect$unix"


INET_CONNECT = 'connect(3, {sa_family=AF_INET, sin_port=htons(80), sin_addr=inet_addr("10.0.0.1")}, 16) = 0'


def test_generic_socket_handle_keeps_generic_variant(corpus):
    tracker = ResourceTracker()
    tracker.bind_new_resource(0, 3, SOCK)
    resolution = resolve(corpus, INET_CONNECT, tracker)
    assert resolution.variant.name == "connect"
    assert resolution.score == 3
    assert not resolution.fallback


def test_unbound_descriptor_prefers_first_declared(corpus):
    resolution = resolve(corpus, INET_CONNECT, ResourceTracker())
    assert resolution.variant.name == "connect$inet"
    assert resolution.score == 1


def test_incompatible_handle_falls_back(corpus):
    tracker = ResourceTracker()
    tracker.bind_new_resource(0, 3, FD)
    line = 'connect(3, {sa_family=AF_UNIX, sun_path="/tmp/s"}, 110) = -1 ENOTSOCK (Socket operation on non-socket)'
    resolution = resolve(corpus, line, tracker)
    assert resolution.variant.name == "connect"
    assert resolution.fallback


def test_single_variant_is_not_a_fallback(corpus):
    tracker = ResourceTracker()
    tracker.bind_new_resource(0, 3, FD)
    resolution = resolve(corpus, 'inotify_add_watch(3, "/tmp", IN_MODIFY) = 1', tracker)
    assert resolution.variant.name == "inotify_add_watch"
    assert resolution.score == 0
    assert not resolution.fallback


def test_ties_go_to_declaration_order(corpus):
    resolver = VariantResolver(corpus)
    record = parse_line("socket(AF_INET, SOCK_STREAM, 0) = 3")
    scores = {v.name: resolver.admit(v, record.args) for v in corpus.variants_for("socket")}
    assert scores["socket$inet_tcp"] == 3
    assert scores["socket$inet_udp"] is None
    assert scores["socket"] == 0
