"""
syscalls.py - Built-in Syscall Descriptors

Linux x86_64 descriptors for the calls the converter understands out of the
box. Variants of one call are listed most specific first; that order breaks
ties between equally specific matches.
"""

from .descriptors import (
    DIR_IN,
    DIR_INOUT,
    DIR_OUT,
    BufferType,
    ConstType,
    Field,
    FlagsType,
    IntType,
    LenType,
    PtrType,
    ResourceType,
    StructType,
    UnionType,
)

# ============================================================================
# SYMBOLIC CONSTANTS
# ============================================================================

CONSTS = {
    # open() flags
    "O_RDONLY": 0x0, "O_WRONLY": 0x1, "O_RDWR": 0x2,
    "O_CREAT": 0x40, "O_EXCL": 0x80, "O_NOCTTY": 0x100, "O_TRUNC": 0x200,
    "O_APPEND": 0x400, "O_NONBLOCK": 0x800, "O_DIRECTORY": 0x10000,
    "O_NOFOLLOW": 0x20000, "O_CLOEXEC": 0x80000,
    "AT_FDCWD": -100,

    # Address families
    "AF_UNSPEC": 0, "AF_UNIX": 1, "AF_LOCAL": 1, "AF_INET": 2, "AF_INET6": 10,
    "AF_NETLINK": 16, "AF_PACKET": 17, "AF_CAN": 29,

    # Socket types
    "SOCK_STREAM": 1, "SOCK_DGRAM": 2, "SOCK_RAW": 3, "SOCK_SEQPACKET": 5,
    "SOCK_PACKET": 10, "SOCK_NONBLOCK": 0x800, "SOCK_CLOEXEC": 0x80000,

    # Protocols and socket options
    "IPPROTO_IP": 0, "IPPROTO_TCP": 6, "IPPROTO_UDP": 17, "IPPROTO_SCTP": 132,
    "CAN_RAW": 1, "NETLINK_ROUTE": 0, "ETH_P_ALL": 0x300,
    "SOL_SOCKET": 1, "SOL_SCTP": 132,
    "SO_DEBUG": 1, "SO_REUSEADDR": 2, "SO_TYPE": 3, "SO_ERROR": 4,
    "SO_DONTROUTE": 5, "SO_BROADCAST": 6, "SO_SNDBUF": 7, "SO_RCVBUF": 8,
    "SO_KEEPALIVE": 9, "SO_OOBINLINE": 10, "SO_REUSEPORT": 15,
    "SCTP_RESET_STREAMS": 119,

    # ioctl requests
    "FIONBIO": 0x5421, "FIOASYNC": 0x5452,
    "SIOCGIFFLAGS": 0x8913, "SIOCSIFFLAGS": 0x8914, "SIOCGIFADDR": 0x8915,
    "SIOCGIFMTU": 0x8921, "SIOCGIFHWADDR": 0x8927, "SIOCGIFINDEX": 0x8933,

    # inotify
    "IN_ACCESS": 0x1, "IN_MODIFY": 0x2, "IN_ATTRIB": 0x4, "IN_CLOSE_WRITE": 0x8,
    "IN_CLOSE_NOWRITE": 0x10, "IN_OPEN": 0x20, "IN_MOVED_FROM": 0x40,
    "IN_MOVED_TO": 0x80, "IN_CREATE": 0x100, "IN_DELETE": 0x200,
    "IN_DELETE_SELF": 0x400, "IN_MOVE_SELF": 0x800, "IN_ALL_EVENTS": 0xFFF,
    "IN_NONBLOCK": 0x800, "IN_CLOEXEC": 0x80000,

    # SysV IPC
    "IPC_PRIVATE": 0, "IPC_CREAT": 0o1000, "IPC_EXCL": 0o2000,

    # ioprio
    "IOPRIO_WHO_PROCESS": 1, "IOPRIO_WHO_PGRP": 2, "IOPRIO_WHO_USER": 3,

    # Misc
    "SEEK_SET": 0, "SEEK_CUR": 1, "SEEK_END": 2,
    "F_DUPFD": 0, "F_GETFD": 1, "F_SETFD": 2, "F_GETFL": 3, "F_SETFL": 4,
    "F_DUPFD_CLOEXEC": 1030, "FD_CLOEXEC": 1,
    "PROT_NONE": 0, "PROT_READ": 0x1, "PROT_WRITE": 0x2, "PROT_EXEC": 0x4,
    "MAP_SHARED": 0x1, "MAP_PRIVATE": 0x2, "MAP_FIXED": 0x10, "MAP_ANONYMOUS": 0x20,
    "EFD_NONBLOCK": 0x800, "EFD_CLOEXEC": 0x80000,
}

ERRNOS = {
    "EPERM": 1, "ENOENT": 2, "ESRCH": 3, "EINTR": 4, "EIO": 5, "ENXIO": 6,
    "E2BIG": 7, "ENOEXEC": 8, "EBADF": 9, "ECHILD": 10, "EAGAIN": 11,
    "ENOMEM": 12, "EACCES": 13, "EFAULT": 14, "EBUSY": 16, "EEXIST": 17,
    "EXDEV": 18, "ENODEV": 19, "ENOTDIR": 20, "EISDIR": 21, "EINVAL": 22,
    "ENFILE": 23, "EMFILE": 24, "ENOTTY": 25, "EFBIG": 27, "ENOSPC": 28,
    "ESPIPE": 29, "EROFS": 30, "EPIPE": 32, "ERANGE": 34, "ENAMETOOLONG": 36,
    "ENOSYS": 38, "ENOTEMPTY": 39, "ELOOP": 40, "ENOTSOCK": 88,
    "EPROTOTYPE": 91, "ENOPROTOOPT": 92, "EPROTONOSUPPORT": 93,
    "EOPNOTSUPP": 95, "EAFNOSUPPORT": 97, "EADDRINUSE": 98,
    "EADDRNOTAVAIL": 99, "ENETUNREACH": 101, "ECONNRESET": 104,
    "EISCONN": 106, "ENOTCONN": 107, "ETIMEDOUT": 110, "ECONNREFUSED": 111,
    "EALREADY": 114, "EINPROGRESS": 115,
    "ERESTARTSYS": 512, "ERESTARTNOINTR": 513,
}

# ============================================================================
# RESOURCE KINDS
# ============================================================================

FD = ("fd",)
SOCK = FD + ("sock",)
SOCK_UNIX = SOCK + ("sock_unix",)
SOCK_IN = SOCK + ("sock_in",)
SOCK_IN6 = SOCK + ("sock_in6",)
SOCK_NETLINK = SOCK + ("sock_netlink",)
SOCK_PACKET = SOCK + ("sock_packet",)
SOCK_CAN = SOCK + ("sock_can",)
FD_INOTIFY = FD + ("inotify",)
FD_EVENT = FD + ("event",)
INOTIFYDESC = ("inotifydesc",)
SHMID = ("shmid",)

# ============================================================================
# TYPE HELPERS
# ============================================================================

def res(kind, name=None, special=()):
    """Resource of ``kind`` (4-byte descriptor)"""
    return ResourceType(name or kind[-1], kind, 4, special)

def int8(name="int8"):
    return IntType(name, 1)

def int16(name="int16", big_endian=False):
    return IntType(name, 2, big_endian=big_endian)

def int32(name="int32"):
    return IntType(name, 4)

def int64(name="int64"):
    return IntType(name, 8)

def const(value, width=4, name="const"):
    return ConstType(name, value, width)

def flags(name, *names, width=4, enum=False):
    """Flag set over named constants"""
    return FlagsType(name, tuple(CONSTS[n] for n in names), width, enum)

def length(target, width=8):
    return LenType("len", target, width)

def ptr(elem, direction=DIR_IN):
    return PtrType("ptr", elem, direction)

def string(length=None):
    return BufferType("string", "string", length)

def filename():
    return BufferType("filename", "filename")

def blob(length=None):
    return BufferType("buffer", "blob", length)

def struct(name, *fields):
    return StructType(name, tuple(Field(n, t) for n, t in fields))

def F(name, typ):
    return Field(name, typ)

# ============================================================================
# SHARED STRUCTURES
# ============================================================================

FAMILY = "sa_family"

SOCKADDR_IN = struct(
    "sockaddr_in",
    (FAMILY, const(2, 2)),
    ("sin_port", int16("sock_port", big_endian=True)),
    ("sin_addr", IntType("ipv4_addr", 4, big_endian=True)),
    ("sin_zero", blob(8)),
)

SOCKADDR_IN6 = struct(
    "sockaddr_in6",
    (FAMILY, const(10, 2)),
    ("sin6_port", int16("sock_port", big_endian=True)),
    ("sin6_flowinfo", int32()),
    ("sin6_addr", blob(16)),
    ("sin6_scope_id", int32()),
)

SOCKADDR_UN = UnionType("sockaddr_un", (
    F("file", struct("sockaddr_un_file", (FAMILY, const(1, 2)), ("sun_path", string(108)))),
    F("abstract", struct("sockaddr_un_abstract", (FAMILY, const(1, 2)), ("sun_path", blob(108)))),
), discriminant="sun_path")

SOCKADDR_NL = UnionType("sockaddr_nl", (
    F("kern", struct("sockaddr_nl_kern", (FAMILY, const(16, 2)), ("nl_pad", int16()),
                     ("nl_pid", const(0)), ("nl_groups", int32()))),
    F("proc", struct("sockaddr_nl_proc", (FAMILY, const(16, 2)), ("nl_pad", int16()),
                     ("nl_pid", int32()), ("nl_groups", int32()))),
), discriminant="nl_pid")

# sockaddr_storage: every branch padded to 128 bytes
SOCKADDR = UnionType("sockaddr", (
    F("un", SOCKADDR_UN),
    F("in", SOCKADDR_IN),
    F("in6", SOCKADDR_IN6),
    F("nl", SOCKADDR_NL),
), discriminant=FAMILY, length=128)

PIPEFD = struct("pipefd", ("rfd", res(FD)), ("wfd", res(FD)))
SOCK_PAIR = struct("sock_pair", ("fd0", res(SOCK)), ("fd1", res(SOCK)))

IFREQ = struct("ifreq", ("ifr_name", string(16)), ("ifr_ifru", blob(24)))

UNION_BRANCHES = {
    ("sockaddr", 1): "un",
    ("sockaddr", 2): "in",
    ("sockaddr", 10): "in6",
    ("sockaddr", 16): "nl",
    ("sockaddr_un", "text"): "file",
    ("sockaddr_un", "nul"): "abstract",
    ("sockaddr_nl", 0): "kern",
    ("sockaddr_nl", "*"): "proc",
}

# ============================================================================
# SYSCALL VARIANTS
# Each entry: (variant name, fields, returned resource)
# ============================================================================

OPEN_FLAGS = flags("open_flags", "O_WRONLY", "O_RDWR", "O_CREAT", "O_EXCL", "O_NOCTTY",
                   "O_TRUNC", "O_APPEND", "O_NONBLOCK", "O_DIRECTORY", "O_NOFOLLOW", "O_CLOEXEC")
OPEN_MODE = IntType("open_mode", 4)
SOCKET_TYPE = flags("socket_type", "SOCK_STREAM", "SOCK_DGRAM", "SOCK_RAW", "SOCK_SEQPACKET",
                    "SOCK_NONBLOCK", "SOCK_CLOEXEC")
FD_DIR = res(FD, "fd_dir", special=(-100, 0xFFFFFF9C))

SYSCALL_VARIANTS = {
    # === Files ===
    "open": [
        ("open", [F("file", ptr(filename())), F("flags", OPEN_FLAGS), F("mode", OPEN_MODE)], res(FD)),
    ],
    "openat": [
        ("openat", [F("fd", FD_DIR), F("file", ptr(filename())), F("flags", OPEN_FLAGS),
                    F("mode", OPEN_MODE)], res(FD)),
    ],
    "creat": [
        ("creat", [F("file", ptr(filename())), F("mode", OPEN_MODE)], res(FD)),
    ],
    "close": [
        ("close", [F("fd", res(FD))], None),
    ],
    "read": [
        ("read", [F("fd", res(FD)), F("buf", ptr(blob(), DIR_OUT)), F("count", length("buf"))], None),
    ],
    "write": [
        ("write", [F("fd", res(FD)), F("buf", ptr(blob())), F("count", length("buf"))], None),
    ],
    "lseek": [
        ("lseek", [F("fd", res(FD)), F("offset", int64()),
                   F("whence", flags("seek_whence", "SEEK_CUR", "SEEK_END"))], None),
    ],
    "fstat": [
        ("fstat", [F("fd", res(FD)), F("statbuf", ptr(blob(144), DIR_OUT))], None),
    ],
    "dup": [
        ("dup", [F("oldfd", res(FD))], res(FD)),
    ],
    "dup2": [
        ("dup2", [F("oldfd", res(FD)), F("newfd", res(FD))], res(FD)),
    ],
    "dup3": [
        ("dup3", [F("oldfd", res(FD)), F("newfd", res(FD)), F("flags", flags("dup_flags", "O_CLOEXEC"))],
         res(FD)),
    ],
    "fcntl": [
        ("fcntl$dupfd", [F("fd", res(FD)), F("cmd", flags("fcntl_dupfd", "F_DUPFD", "F_DUPFD_CLOEXEC", enum=True)),
                         F("arg", res(FD))], res(FD)),
        ("fcntl", [F("fd", res(FD)), F("cmd", int32()), F("arg", int64())], None),
    ],
    "pipe": [
        ("pipe", [F("pipefd", ptr(PIPEFD, DIR_OUT))], None),
    ],
    "pipe2": [
        ("pipe2", [F("pipefd", ptr(PIPEFD, DIR_OUT)), F("flags", flags("pipe_flags", "O_NONBLOCK", "O_CLOEXEC"))],
         None),
    ],
    "eventfd2": [
        ("eventfd2", [F("initval", int32()), F("flags", flags("eventfd_flags", "EFD_NONBLOCK", "EFD_CLOEXEC"))],
         res(FD_EVENT)),
    ],
    "mmap": [
        ("mmap", [F("addr", int64("vma")), F("len", int64()),
                  F("prot", flags("mmap_prot", "PROT_READ", "PROT_WRITE", "PROT_EXEC")),
                  F("flags", flags("mmap_flags", "MAP_SHARED", "MAP_PRIVATE", "MAP_FIXED", "MAP_ANONYMOUS")),
                  F("fd", res(FD)), F("offset", int64())], None),
    ],

    # === inotify ===
    "inotify_init": [
        ("inotify_init", [], res(FD_INOTIFY)),
    ],
    "inotify_init1": [
        ("inotify_init1", [F("flags", flags("inotify_flags", "IN_NONBLOCK", "IN_CLOEXEC"))], res(FD_INOTIFY)),
    ],
    "inotify_add_watch": [
        ("inotify_add_watch", [F("fd", res(FD_INOTIFY)), F("file", ptr(filename())),
                               F("mask", IntType("inotify_mask", 4))], res(INOTIFYDESC)),
    ],
    "inotify_rm_watch": [
        ("inotify_rm_watch", [F("fd", res(FD_INOTIFY)), F("wd", res(INOTIFYDESC))], None),
    ],

    # === Sockets ===
    "socket": [
        ("socket$unix", [F("domain", const(1)), F("type", SOCKET_TYPE), F("proto", const(0))], res(SOCK_UNIX)),
        ("socket$inet_tcp", [F("domain", const(2)), F("type", const(1)), F("proto", const(0))], res(SOCK_IN)),
        ("socket$inet_udp", [F("domain", const(2)), F("type", const(2)), F("proto", const(0))], res(SOCK_IN)),
        ("socket$inet6_tcp", [F("domain", const(10)), F("type", const(1)), F("proto", const(0))], res(SOCK_IN6)),
        ("socket$inet6_udp", [F("domain", const(10)), F("type", const(2)), F("proto", const(0))], res(SOCK_IN6)),
        ("socket$netlink", [F("domain", const(16)), F("type", const(3)), F("proto", int32())], res(SOCK_NETLINK)),
        ("socket$packet", [F("domain", const(17)),
                           F("type", flags("packet_socket_type", "SOCK_DGRAM", "SOCK_RAW", "SOCK_PACKET", enum=True)),
                           F("proto", int32())], res(SOCK_PACKET)),
        ("socket$can_raw", [F("domain", const(29)), F("type", const(3)), F("proto", const(1))], res(SOCK_CAN)),
        ("socket", [F("domain", int32()), F("type", SOCKET_TYPE), F("proto", int32())], res(SOCK)),
    ],
    "socketpair": [
        ("socketpair", [F("domain", int32()), F("type", SOCKET_TYPE), F("proto", int32()),
                        F("fds", ptr(SOCK_PAIR, DIR_OUT))], None),
    ],
    "connect": [
        ("connect$unix", [F("fd", res(SOCK_UNIX)), F("addr", ptr(SOCKADDR_UN)), F("addrlen", length("addr", 4))],
         None),
        ("connect$inet", [F("fd", res(SOCK_IN)), F("addr", ptr(SOCKADDR_IN)), F("addrlen", length("addr", 4))],
         None),
        ("connect$inet6", [F("fd", res(SOCK_IN6)), F("addr", ptr(SOCKADDR_IN6)), F("addrlen", length("addr", 4))],
         None),
        ("connect", [F("fd", res(SOCK)), F("addr", ptr(SOCKADDR)), F("addrlen", length("addr", 4))], None),
    ],
    "bind": [
        ("bind$unix", [F("fd", res(SOCK_UNIX)), F("addr", ptr(SOCKADDR_UN)), F("addrlen", length("addr", 4))],
         None),
        ("bind$inet", [F("fd", res(SOCK_IN)), F("addr", ptr(SOCKADDR_IN)), F("addrlen", length("addr", 4))],
         None),
        ("bind", [F("fd", res(SOCK)), F("addr", ptr(SOCKADDR)), F("addrlen", length("addr", 4))], None),
    ],
    "listen": [
        ("listen", [F("fd", res(SOCK)), F("backlog", int32())], None),
    ],
    "accept": [
        ("accept", [F("fd", res(SOCK)), F("peer", ptr(SOCKADDR, DIR_OUT)),
                    F("peerlen", ptr(int32(), DIR_INOUT))], res(SOCK)),
    ],
    "accept4": [
        ("accept4", [F("fd", res(SOCK)), F("peer", ptr(SOCKADDR, DIR_OUT)),
                     F("peerlen", ptr(int32(), DIR_INOUT)), F("flags", SOCKET_TYPE)], res(SOCK)),
    ],
    "sendto": [
        ("sendto", [F("fd", res(SOCK)), F("buf", ptr(blob())), F("len", length("buf")),
                    F("flags", int32()), F("addr", ptr(SOCKADDR)), F("addrlen", length("addr", 4))], None),
    ],
    "recvfrom": [
        ("recvfrom", [F("fd", res(SOCK)), F("buf", ptr(blob(), DIR_OUT)), F("len", length("buf")),
                      F("flags", int32()), F("addr", ptr(SOCKADDR, DIR_OUT)),
                      F("addrlen", ptr(int32(), DIR_INOUT))], None),
    ],
    "setsockopt": [
        ("setsockopt$sock_int", [F("fd", res(SOCK)), F("level", const(1)),
                                 F("optname", flags("sockopt_opt_sock_int", "SO_DEBUG", "SO_REUSEADDR", "SO_TYPE",
                                                    "SO_ERROR", "SO_DONTROUTE", "SO_BROADCAST", "SO_SNDBUF",
                                                    "SO_RCVBUF", "SO_KEEPALIVE", "SO_OOBINLINE", "SO_REUSEPORT",
                                                    enum=True)),
                                 F("optval", ptr(int32())), F("optlen", length("optval", 4))], None),
        ("setsockopt", [F("fd", res(SOCK)), F("level", int32()), F("optname", int32()),
                        F("optval", ptr(blob())), F("optlen", length("optval", 4))], None),
    ],
    "getsockopt": [
        ("getsockopt$inet_sctp6_SCTP_RESET_STREAMS",
         [F("fd", res(SOCK_IN6)), F("level", const(132)), F("optname", const(119)),
          F("optval", ptr(blob(), DIR_OUT)), F("optlen", ptr(int32(), DIR_INOUT))], None),
        ("getsockopt$sock_int", [F("fd", res(SOCK)), F("level", const(1)),
                                 F("optname", flags("sockopt_opt_sock_int", "SO_DEBUG", "SO_REUSEADDR", "SO_TYPE",
                                                    "SO_ERROR", "SO_DONTROUTE", "SO_BROADCAST", "SO_SNDBUF",
                                                    "SO_RCVBUF", "SO_KEEPALIVE", "SO_OOBINLINE", "SO_REUSEPORT",
                                                    enum=True)),
                                 F("optval", ptr(int32(), DIR_OUT)), F("optlen", ptr(int32(), DIR_INOUT))], None),
        ("getsockopt", [F("fd", res(SOCK)), F("level", int32()), F("optname", int32()),
                        F("optval", ptr(blob(), DIR_OUT)), F("optlen", ptr(int32(), DIR_INOUT))], None),
    ],

    # === ioctl ===
    "ioctl": [
        ("ioctl$int_in", [F("fd", res(FD)), F("cmd", flags("ioctl_int_in", "FIONBIO", "FIOASYNC", enum=True)),
                          F("v", ptr(int64()))], None),
        ("ioctl$ifreq_SIOCGIFINDEX_team", [F("fd", res(SOCK)), F("cmd", const(0x8933)),
                                           F("arg", ptr(IFREQ, DIR_INOUT))], None),
        ("ioctl$sock_ifreq", [F("fd", res(SOCK)),
                              F("cmd", flags("sock_ioctl_ifreq", "SIOCGIFFLAGS", "SIOCSIFFLAGS", "SIOCGIFADDR",
                                             "SIOCGIFMTU", "SIOCGIFHWADDR", enum=True)),
                              F("arg", ptr(IFREQ, DIR_INOUT))], None),
        ("ioctl", [F("fd", res(FD)), F("cmd", int32()), F("arg", ptr(blob(), DIR_INOUT))], None),
    ],

    # === SysV IPC ===
    "shmget": [
        ("shmget", [F("key", int32()), F("size", int64()), F("flags", flags("shmget_flags", "IPC_CREAT", "IPC_EXCL")),
                    F("unused", ptr(blob()))], res(SHMID)),
    ],
    "shmctl": [
        ("shmctl", [F("shmid", res(SHMID)), F("cmd", int32()), F("buf", ptr(blob(), DIR_INOUT))], None),
    ],

    # === Processes ===
    "ioprio_get": [
        ("ioprio_get$pid", [F("which", const(1)), F("who", int32("pid"))], None),
        ("ioprio_get$uid", [F("which", const(3)), F("who", int32("uid"))], None),
        ("ioprio_get", [F("which", int32()), F("who", int32())], None),
    ],
    "getpid": [
        ("getpid", [], None),
    ],
    "fork": [
        ("fork", [], None),
    ],
    "kill": [
        ("kill", [F("pid", int32("pid")), F("sig", int32())], None),
    ],
    "exit_group": [
        ("exit_group", [F("status", int32())], None),
    ],
}
