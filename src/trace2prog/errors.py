"""Exception hierarchy for the trace converter."""


class Trace2ProgError(Exception):
    """Base class for all conversion related errors."""


class TraceParseError(Trace2ProgError):
    """Raised when a single trace line does not match the record grammar."""

    def __init__(self, reason, line="", line_no=None):
        self.reason = reason
        self.line = line
        self.line_no = line_no
        where = f"line {line_no}: " if line_no is not None else ""
        super().__init__(f"{where}{reason}: {line.strip()!r}")


class ConversionError(Trace2ProgError):
    """Raised when a trace holds no usable records at all."""


class CorpusError(Trace2ProgError):
    """Raised when a descriptor table is malformed."""


__all__ = ["Trace2ProgError", "TraceParseError", "ConversionError", "CorpusError"]
