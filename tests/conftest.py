"""Test configuration ensuring the project source tree is importable."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from trace2prog.converter import ConversionStats, convert_trace  # noqa: E402
from trace2prog.corpus import load_default_corpus  # noqa: E402


@pytest.fixture(scope="session")
def corpus():
    return load_default_corpus()


@pytest.fixture
def stats():
    return ConversionStats()


@pytest.fixture
def convert(corpus, stats):
    """Convert trace text and return the root process's program."""

    def _convert(text, **kwargs):
        conversion = convert_trace(text, corpus=corpus, stats=stats, **kwargs)
        return conversion.root

    return _convert
