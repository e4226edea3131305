"""
Masking module for protecting string literals and comments.

This module handles the insertion and restoration of placeholders for:
- Double- and single-quoted string literals
- Template literal text (the ${...} expressions inside stay code)
- Line comments (// ...) and block comments (/* ... */)

Keyword rewriting is purely lexical, so without masking a comment such as
"// whatever happens" or a string "say yes" would be rewritten too.

Design:
- Each mask type has a unique prefix (e.g., <<STR_001>>)
- Masks are reversible: original content is stored and can be restored
- Template literals are split at ${ and the matching }, so only their
  text is masked and interpolated expressions are still rewritten
- A column-preserving variant blanks literal contents with spaces for
  line/column based scanning (the validator)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class MaskRegistry:
    """Stores mappings between placeholders and original content.

    One registry is created per transpile call, so concurrent calls never
    share state.
    """
    mappings: dict[str, str] = field(default_factory=dict)  # placeholder -> original
    counters: dict[str, int] = field(default_factory=dict)  # prefix -> count

    def register(self, prefix: str, original: str) -> str:
        """Register content and return a placeholder."""
        count = self.counters.get(prefix, 0)
        self.counters[prefix] = count + 1
        placeholder = f"<<{prefix}_{count:03d}>>"
        self.mappings[placeholder] = original
        return placeholder

    def restore(self, text: str) -> str:
        """Restore all placeholders in text with original content."""
        result = text
        for placeholder, original in self.mappings.items():
            result = result.replace(placeholder, original)
        return result

    def clear(self) -> None:
        self.mappings.clear()
        self.counters.clear()

    def __len__(self) -> int:
        return len(self.mappings)


# ============================================================================
# Segment Scanning
# ============================================================================

PLACEHOLDER_PATTERN = re.compile(r"<<([A-Z]+)_\d{3,}>>")

_PREFIXES = {
    "block": "COMMENT",
    "line": "COMMENT",
    "double": "STR",
    "single": "STR",
    "template": "TPL",
}

_QUOTES = "'\"`"
_NOT_NEWLINE = re.compile(r"[^\n]")


def _scan_quoted(text: str, i: int, quote: str) -> int:
    """Return the index just past a quoted string whose body starts at i.

    An unterminated string stops at the end of its line.
    """
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
        elif ch == quote:
            return i + 1
        elif ch == "\n":
            return i
        else:
            i += 1
    return n


def _scan_template(text: str, i: int) -> tuple[int, bool]:
    """Scan template text from i up to the closing backtick or the next `${`.

    Returns:
        (end_index, opened_interpolation)
    """
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
        elif ch == "`":
            return i + 1, False
        elif ch == "$" and text.startswith("{", i + 1):
            return i + 2, True
        else:
            i += 1
    return n, False


def iter_segments(text: str) -> Iterator[tuple[str, str]]:
    """Split source text into (kind, chunk) pieces.

    kind is one of "code", "block", "line", "double", "single" or
    "template". Template literals are split at `${` and at the matching
    `}`, so interpolated expressions come out as ordinary code and only
    the literal text is a "template" chunk. Chunks concatenate back to
    the input exactly.
    """
    depths: list[int] = []  # brace depth inside each open ${...}
    n = len(text)
    i = code_start = 0
    while i < n:
        ch = text[i]
        nxt = text[i + 1:i + 2]
        if ch == "/" and nxt == "*":
            close = text.find("*/", i + 2)
            kind, end = "block", n if close < 0 else close + 2
        elif ch == "/" and nxt == "/":
            newline = text.find("\n", i)
            kind, end = "line", n if newline < 0 else newline
        elif ch in "'\"":
            kind, end = ("double" if ch == '"' else "single"), _scan_quoted(text, i + 1, ch)
        elif ch == "`" or (ch == "}" and depths and depths[-1] == 0):
            if ch == "}":
                depths.pop()
            end, interpolation = _scan_template(text, i + 1)
            if interpolation:
                depths.append(0)
            kind = "template"
        else:
            if depths and ch == "{":
                depths[-1] += 1
            elif depths and ch == "}":
                depths[-1] -= 1
            i += 1
            continue

        if code_start < i:
            yield "code", text[code_start:i]
        yield kind, text[i:end]
        i = code_start = end

    if code_start < n:
        yield "code", text[code_start:]


# ============================================================================
# Masking Functions
# ============================================================================

@dataclass
class MaskConfig:
    """Configuration for what content types to mask."""
    mask_strings: bool = True  # quoted strings and template text
    mask_comments: bool = True


def mask_text(
    text: str,
    registry: MaskRegistry,
    config: MaskConfig | None = None,
) -> str:
    """Replace string literals, template text and comments with placeholders.

    Args:
        text: JavaScript-like source
        registry: MaskRegistry to store mappings
        config: Optional MaskConfig (uses defaults if None)

    Returns:
        Text with placeholders inserted
    """
    if config is None:
        config = MaskConfig()

    parts = []
    for kind, chunk in iter_segments(text):
        if kind == "code":
            parts.append(chunk)
        elif kind in ("block", "line") and not config.mask_comments:
            parts.append(chunk)
        elif kind in ("double", "single", "template") and not config.mask_strings:
            parts.append(chunk)
        else:
            parts.append(registry.register(_PREFIXES[kind], chunk))
    return "".join(parts)


def unmask_text(text: str, registry: MaskRegistry) -> str:
    """Restore all placeholders in text."""
    return registry.restore(text)


# ============================================================================
# Column-preserving blanking
# ============================================================================

def _blank(kind: str, chunk: str) -> str:
    blanked = _NOT_NEWLINE.sub(" ", chunk)
    if kind in ("block", "line"):
        return blanked
    # Quote characters that open or close the literal stay in place.
    if chunk[0] in _QUOTES:
        blanked = chunk[0] + blanked[1:]
    if len(chunk) > 1 and chunk[-1] in _QUOTES:
        blanked = blanked[:-1] + chunk[-1]
    return blanked


def blank_source(text: str) -> str:
    """Blank comment, string and template text contents, keeping columns.

    Every line keeps its length and every newline stays where it was, so
    line and column numbers found in the result point into the original.
    Code inside `${...}` is kept.
    """
    return "".join(
        chunk if kind == "code" else _blank(kind, chunk)
        for kind, chunk in iter_segments(text)
    )


# ============================================================================
# Utility Functions
# ============================================================================

def count_placeholders(text: str) -> dict[str, int]:
    """Count placeholders by type in text."""
    counts: dict[str, int] = {}
    for match in PLACEHOLDER_PATTERN.finditer(text):
        prefix = match.group(1)
        counts[prefix] = counts.get(prefix, 0) + 1
    return counts


def extract_placeholders(text: str) -> list[str]:
    """Extract all placeholders from text."""
    return [m.group(0) for m in PLACEHOLDER_PATTERN.finditer(text)]


def validate_placeholders(masked: str, rewritten: str) -> list[str]:
    """Check that every placeholder survived the rewrite passes.

    Returns:
        List of missing placeholders (empty if all present)
    """
    missing = set(extract_placeholders(masked)) - set(extract_placeholders(rewritten))
    return sorted(missing)
