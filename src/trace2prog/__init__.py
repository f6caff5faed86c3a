"""Convert strace output into typed syscall programs for a fuzzer."""

from .converter import Conversion, ConversionStats, convert_trace
from .corpus import Corpus, TableCorpus, load_default_corpus
from .errors import ConversionError, CorpusError, Trace2ProgError, TraceParseError
from .parser import parse_line, parse_trace
from .program import Program, ResolvedCall, generate_program
from .resources import ResourceHandle, ResourceTracker
from .trace import ProcessTrace, TraceTree, build_trace_tree

__version__ = "0.1.0"

__all__ = [
    "Conversion",
    "ConversionStats",
    "convert_trace",
    "Corpus",
    "TableCorpus",
    "load_default_corpus",
    "ConversionError",
    "CorpusError",
    "Trace2ProgError",
    "TraceParseError",
    "parse_line",
    "parse_trace",
    "Program",
    "ResolvedCall",
    "generate_program",
    "ResourceHandle",
    "ResourceTracker",
    "ProcessTrace",
    "TraceTree",
    "build_trace_tree",
]
