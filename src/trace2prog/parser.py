"""
parser.py - Trace Line Parser

Turns strace output lines into TraceRecord objects. The grammar is the
subset strace prints for syscall records:

    [pid] name(arg, arg, ...) = result [ERRNO (message)]

Arguments are integers, '|'-joined flag expressions, quoted strings,
[arrays], {structs} with optional field names, and helper calls such as
htons(80). Nothing here knows what a syscall means.
"""

import logging
import re

from .config import DEFAULT_PID, IGNORED_LINE_MARKERS, UNFINISHED_MARKER
from .errors import TraceParseError
from .literals import (
    ArrayLiteral,
    BufferLiteral,
    CallLiteral,
    FlagsLiteral,
    IdentLiteral,
    IntLiteral,
    ReturnValue,
    StructLiteral,
    TraceRecord,
)

logger = logging.getLogger(__name__)

# ============================================================================
# LEXICAL STRUCTURE
# ============================================================================

_TOKEN_RE = re.compile(r"""
    (?P<skip>\s+|/\*.*?\*/|<[^<>]*>)
  | (?P<string>@?"(?:[^"\\]|\\.)*")
  | (?P<mac>[0-9a-fA-F]{2}(?::[0-9a-fA-F]{2}){2,})
  | (?P<number>-?(?:0[xX][0-9a-fA-F]+|\d+))
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<ellipsis>\.\.\.)
  | (?P<punct>[()\[\]{},=|~&])
""", re.VERBOSE)

_HEAD_RE = re.compile(r"^\s*(?:\[pid\s+(?P<bracketed>\d+)\]|(?P<pid>\d+)(?=\s))?\s*(?P<body>.*?)\s*$")
_CALL_RE = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)\(")
_RESUMED_RE = re.compile(r"^<\.\.\.\s+(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s+resumed>\s*(?P<rest>.*)$")
_RESULT_RE = re.compile(r"""
    ^\s*=\s*
    (?P<value>-?\d+|0[xX][0-9a-fA-F]+|\?)
    (?:<[^>]*>)?
    (?:\s+(?P<errno>E[A-Z0-9]+))?
    (?:\s+\((?P<message>.*)\))?
    \s*(?:<[\d.]+>)?\s*$
""", re.VERBOSE)

_SIMPLE_ESCAPES = {
    "n": 0x0A,
    "t": 0x09,
    "r": 0x0D,
    "v": 0x0B,
    "f": 0x0C,
    "a": 0x07,
    "b": 0x08,
    "e": 0x1B,
    "\\": 0x5C,
    "\"": 0x22,
    "'": 0x27,
}

_OCTAL_DIGITS = set("01234567")


def parse_int(text):
    """Parse a C-style integer token (hex, leading-zero octal, decimal)"""
    negative = text.startswith("-")
    digits = text[1:] if negative else text
    if digits[:2].lower() == "0x":
        value = int(digits, 16)
    elif len(digits) > 1 and digits[0] == "0" and set(digits) <= _OCTAL_DIGITS:
        value = int(digits, 8)
    else:
        value = int(digits, 10)
    return -value if negative else value


def decode_escapes(text):
    """Decode the body of a quoted strace string into raw bytes"""
    out = bytearray()
    index = 0
    length = len(text)
    while index < length:
        ch = text[index]
        if ch != "\\":
            out.extend(ch.encode("utf-8"))
            index += 1
            continue
        index += 1
        if index >= length:
            out.append(0x5C)
            break
        esc = text[index]
        index += 1
        if esc == "x":
            digits = text[index:index + 2]
            if len(digits) == 2 and all(c in "0123456789abcdefABCDEF" for c in digits):
                out.append(int(digits, 16))
                index += 2
                continue
            out.extend(b"\\x")
            continue
        if esc in _OCTAL_DIGITS:
            digits = esc
            while index < length and len(digits) < 3 and text[index] in _OCTAL_DIGITS:
                digits += text[index]
                index += 1
            out.append(int(digits, 8) & 0xFF)
            continue
        simple = _SIMPLE_ESCAPES.get(esc)
        if simple is not None:
            out.append(simple)
            continue
        out.extend(esc.encode("utf-8"))
    return bytes(out)


# ============================================================================
# ARGUMENT GRAMMAR
# ============================================================================

class _Scanner:
    """Lazy tokenizer over one line; stops wherever the parser stops asking"""

    def __init__(self, text, line=""):
        self.text = text
        self.line = line or text
        self.pos = 0
        self._buffer = []

    def _scan(self):
        while self.pos < len(self.text):
            m = _TOKEN_RE.match(self.text, self.pos)
            if m is None:
                raise TraceParseError(f"unexpected character {self.text[self.pos]!r}", self.line)
            self.pos = m.end()
            kind = m.lastgroup
            if kind != "skip":
                return kind, m.group()
        return None, None

    def peek(self, ahead=0):
        while len(self._buffer) <= ahead:
            self._buffer.append(self._scan())
        return self._buffer[ahead]

    def next(self):
        token = self.peek()
        self._buffer.pop(0)
        return token

    def expect(self, value):
        kind, text = self.next()
        if text != value:
            raise TraceParseError(f"expected {value!r}, found {text!r}", self.line)

    def rest(self):
        """Unconsumed text after the last token handed out"""
        if self._buffer:
            raise TraceParseError("lookahead past end of arguments", self.line)
        return self.text[self.pos:]


def _parse_entries(sc, closer, keep_names):
    entries = []
    while True:
        kind, text = sc.peek()
        if kind is None:
            raise TraceParseError(f"missing {closer!r}", sc.line)
        if text == closer:
            sc.next()
            return entries
        if text == ",":
            sc.next()
            continue
        if kind == "ellipsis":
            sc.next()
            continue
        name = None
        if kind == "ident" and sc.peek(1)[1] == "=":
            name = text
            sc.next()
            sc.next()
        value = _parse_expr(sc)
        entries.append((name, value) if keep_names else value)


def _parse_expr(sc):
    terms = [_parse_term(sc)]
    while sc.peek()[1] == "|":
        sc.next()
        terms.append(_parse_term(sc))
    if len(terms) == 1:
        return terms[0]
    return FlagsLiteral(tuple(terms))


def _parse_term(sc):
    kind, text = sc.next()
    if kind == "number":
        return IntLiteral(parse_int(text), text)
    if kind == "string":
        if text.startswith("@"):
            # abstract unix socket name: leading NUL printed as @
            return BufferLiteral(text[2:-1], b"\0" + decode_escapes(text[2:-1]))
        return BufferLiteral(text[1:-1], decode_escapes(text[1:-1]))
    if kind == "mac":
        return BufferLiteral(text, bytes(int(part, 16) for part in text.split(":")))
    if kind == "ident":
        if sc.peek()[1] == "(":
            sc.next()
            return CallLiteral(text, tuple(_parse_entries(sc, ")", keep_names=False)))
        return IdentLiteral(text)
    if text in ("~", "&"):
        return _parse_term(sc)
    if text == "[":
        return ArrayLiteral(tuple(_parse_entries(sc, "]", keep_names=False)))
    if text == "{":
        return StructLiteral(tuple(_parse_entries(sc, "}", keep_names=True)))
    raise TraceParseError(f"unexpected token {text!r}", sc.line)


def _parse_result(text, line):
    m = _RESULT_RE.match(text)
    if m is None:
        raise TraceParseError("malformed return value", line)
    raw = m.group("value")
    value = None if raw == "?" else parse_int(raw)
    return ReturnValue(value, m.group("errno"), m.group("message"))


# ============================================================================
# LINES
# ============================================================================

def split_pid(line):
    """Split an optional leading pid off a trace line"""
    m = _HEAD_RE.match(line)
    pid = m.group("bracketed") or m.group("pid")
    return (int(pid) if pid is not None else None), m.group("body")


def parse_body(pid, body, line="", line_no=None):
    """Parse 'name(args) = result' into a TraceRecord"""
    line = line or body
    m = _CALL_RE.match(body)
    if m is None:
        raise TraceParseError("no call name", line, line_no)
    sc = _Scanner(body[m.end():], line)
    try:
        args = tuple(_parse_entries(sc, ")", keep_names=False))
        result = _parse_result(sc.rest(), line)
    except TraceParseError as err:
        err.line_no = line_no
        raise
    return TraceRecord(pid, m.group("name"), args, result, line_no)


def parse_line(line, line_no=None, default_pid=DEFAULT_PID):
    """Parse one complete trace line; returns None for non-call lines"""
    pid, body = split_pid(line)
    if pid is None:
        pid = default_pid
    if not body or body.startswith(IGNORED_LINE_MARKERS):
        return None
    return parse_body(pid, body, line, line_no)


def parse_trace(lines, default_pid=DEFAULT_PID, stats=None):
    """Parse a whole trace, stitching unfinished/resumed halves per pid.

    Malformed lines are logged and skipped. ``stats`` (a ConversionStats)
    receives the per-line counters when given.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    records = []
    pending = {}
    for line_no, line in enumerate(lines, 1):
        pid, body = split_pid(line)
        if pid is None:
            pid = default_pid
        if not body or body.startswith(IGNORED_LINE_MARKERS):
            continue
        if stats is not None:
            stats.lines += 1

        if body.endswith(UNFINISHED_MARKER):
            pending[pid] = body[:-len(UNFINISHED_MARKER)].rstrip()
            continue
        resumed = _RESUMED_RE.match(body)
        if resumed is not None:
            head = pending.pop(pid, None)
            if head is None or not head.startswith(resumed.group("name") + "("):
                _report(TraceParseError("resumed call without matching start", line, line_no), stats)
                continue
            joiner = "" if head.endswith("(") else " "
            body = head + joiner + resumed.group("rest")

        try:
            records.append(parse_body(pid, body, line, line_no))
        except TraceParseError as err:
            _report(err, stats)

    for pid, head in pending.items():
        logger.debug("[*] pid %d: call never resumed: %s", pid, head)
    if stats is not None:
        stats.records += len(records)
    return records


def _report(err, stats):
    logger.warning("[!] Skipping trace line: %s", err)
    if stats is not None:
        stats.parse_errors.append(err)
