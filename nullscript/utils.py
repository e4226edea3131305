"""
Utility functions used across the CLI and the pipeline.

Functions:
    format_file_size: Human-readable byte counts
    format_duration: Human-readable millisecond durations
    read_source: Read a source file as UTF-8, raising SourceEncodingError
    count_lines: Line count of a text file
    is_nullscript_file: Extension check for `.ns` sources
    keyword_usage: Count NullScript aliases used in a source

Example:
    >>> format_file_size(2048)
    '2.0 KB'
    >>> is_nullscript_file(Path("app.ns"))
    True
"""

from __future__ import annotations

import re
from collections import Counter
from pathlib import Path

from .config import SOURCE_EXTENSION
from .errors import Location, SourceEncodingError
from .keywords import KeywordTable, get_default_table
from .masking import blank_source


def format_file_size(size: int) -> str:
    """
    Format a byte count with binary units.

    Example:
        >>> format_file_size(512)
        '512 B'
        >>> format_file_size(1536)
        '1.5 KB'
    """
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB"):
        value /= 1024
        if value < 1024 or unit == "GB":
            return f"{value:.1f} {unit}"
    return f"{value:.1f} GB"


def format_duration(ms: float) -> str:
    if ms < 1:
        return f"{ms * 1000:.0f} µs"
    if ms < 1000:
        return f"{ms:.1f} ms"
    return f"{ms / 1000:.2f} s"


def read_source(path: Path) -> str:
    """Read a source file as UTF-8 with universal newlines.

    Raises:
        SourceEncodingError: the file holds bytes that are not UTF-8; the
            location points at the first bad byte
    """
    data = path.read_bytes()
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        line = data.count(b"\n", 0, exc.start) + 1
        column = exc.start - data.rfind(b"\n", 0, exc.start)
        raise SourceEncodingError(
            f"Source is not valid UTF-8: {exc.reason} (byte 0x{data[exc.start]:02x}).",
            Location(str(path), line, column),
        ) from exc
    return text.replace("\r\n", "\n").replace("\r", "\n")


def count_lines(path: Path) -> int:
    return len(path.read_text(encoding="utf-8", errors="replace").splitlines())


def is_nullscript_file(path: Path) -> bool:
    return path.suffix == SOURCE_EXTENSION


def keyword_usage(source: str, table: KeywordTable | None = None) -> Counter:
    """Count single-word NullScript aliases in code (not in strings/comments)."""
    table = table or get_default_table()
    code = blank_source(source)
    counts: Counter = Counter()
    for word in re.findall(r"[A-Za-z_$][\w$]*", code):
        if word in table.reserved_words():
            counts[word] += 1
    return counts
