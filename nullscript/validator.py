"""
Syntax validation for NullScript source.

The validator runs before any rewriting and rejects two kinds of source:
- Canonical TypeScript/JavaScript constructs used directly (e.g. `const`,
  `function`, type annotations, generics)
- NullScript keywords reused as user-chosen names, which would otherwise
  be rewritten by the keyword passes and corrupt the program

Scanning is line-oriented over a copy of the source whose comments and
string contents are blanked with spaces, so reported columns match the
original text. The scan is fail-fast: the first violation is raised.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, Union

from .errors import Location, NullScriptSyntaxError, ReservedIdentifierError
from .keywords import KeywordTable, get_default_table
from .masking import blank_source

logger = logging.getLogger("nullscript.validator")

_IDENT = r"[A-Za-z_$][\w$]*"
_PARAM_NAME = re.compile(rf"^\s*(?:\.\.\.)?\s*({_IDENT})")


class SyntaxValidator:
    """Rejects canonical-only syntax and reserved-word identifiers.

    Example:
        >>> SyntaxValidator().validate("fixed x = 1;")  # passes
        >>> SyntaxValidator().validate("const x = 1;")
        Traceback (most recent call last):
        ...
        nullscript.errors.NullScriptSyntaxError: Forbidden syntax 'const': ...
    """

    def __init__(self, table: KeywordTable | None = None):
        self.table = table or get_default_table()
        self.reserved = self.table.reserved_words()
        self._build_patterns()

    def _build_patterns(self) -> None:
        alias = self.table.alias_for
        run = re.escape(alias("function") or "function")
        modifiers = [
            re.escape(entry.words[1])
            for entry in self.table.function_form_pairs()
            if entry.is_phrase and entry.words[0] == (alias("function") or "function")
        ]
        modifier = rf"(?:(?:{'|'.join(modifiers)})\s+)?" if modifiers else ""
        # `run later (x)` is an anonymous async function, not a function named `later`
        if modifiers:
            modifier += rf"(?!(?:{'|'.join(modifiers)})\s*\()"
        const = re.escape(alias("const") or "const")
        model = re.escape(alias("class") or "class")

        self.constructor_alias = alias("constructor") or "constructor"
        self._variable = re.compile(rf"(?<![\w$])(?:{const}|let|var)\s+({_IDENT})")
        self._function = re.compile(
            rf"(?<![\w$]){run}\s+{modifier}({_IDENT})\s*\(([^)]*)\)?"
        )
        self._anonymous = re.compile(rf"(?<![\w$]){run}\s*\(([^)]*)\)?")
        self._model = re.compile(rf"(?<![\w$]){model}\s+({_IDENT})")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate(self, source: str, file_path: Optional[Union[str, Path]] = None) -> None:
        """Raise on the first violation; return None when the source is clean.

        Raises:
            NullScriptSyntaxError: canonical-only syntax was found
            ReservedIdentifierError: a NullScript keyword names something
        """
        path = str(file_path) if file_path else None
        lines = list(_code_lines(source))
        self._check_forbidden(lines, path)
        self._check_reserved(lines, path)
        logger.debug(f"Validated {len(lines)} code lines{' in ' + path if path else ''}")

    def first_violation(self, source: str) -> Optional[NullScriptSyntaxError]:
        """Like validate, but return the violation instead of raising."""
        try:
            self.validate(source)
        except NullScriptSyntaxError as exc:
            return exc
        return None

    def is_valid(self, source: str) -> bool:
        return self.first_violation(source) is None

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_forbidden(self, lines: list[tuple[int, str]], path: Optional[str]) -> None:
        forms = self.table.forbidden_forms()
        for number, line in lines:
            best = None
            for form in forms:
                match = form.regex.search(line)
                if match and (best is None or match.start() < best[1].start()):
                    best = (form, match)
            if best is None:
                continue
            form, match = best
            column = match.start() + 1 + (len(match.group(0)) - len(match.group(0).lstrip()))
            raise NullScriptSyntaxError(
                f"Forbidden syntax '{form.token}': {form.description}.",
                token=form.token,
                location=Location(path, number, column),
                hint=form.hint,
            )

    def _check_reserved(self, lines: list[tuple[int, str]], path: Optional[str]) -> None:
        for number, line in lines:
            indented = line[:1] in (" ", "\t")

            for match in self._variable.finditer(line):
                self._reject(match.group(1), "variable", number, match.start(1), path)

            for match in self._function.finditer(line):
                name = match.group(1)
                if name != self.constructor_alias:
                    kind = "method" if indented and match.start() == _indent_width(line) else "function"
                    self._reject(name, kind, number, match.start(1), path)
                self._check_params(match.group(2), match.start(2), number, path)

            for match in self._anonymous.finditer(line):
                self._check_params(match.group(1), match.start(1), number, path)

            for match in self._model.finditer(line):
                self._reject(match.group(1), "class", number, match.start(1), path)

    def _check_params(self, params: Optional[str], offset: int, number: int, path: Optional[str]) -> None:
        if not params:
            return
        position = offset
        for param in params.split(","):
            found = _PARAM_NAME.match(param)
            if found:
                self._reject(found.group(1), "parameter", number, position + found.start(1), path)
            position += len(param) + 1

    def _reject(self, name: str, kind: str, number: int, start: int, path: Optional[str]) -> None:
        if name in self.reserved:
            raise ReservedIdentifierError(name, kind, Location(path, number, start + 1))


def _code_lines(source: str) -> Iterator[tuple[int, str]]:
    """Yield (line_number, scrubbed_line) for lines that hold code."""
    for number, raw in enumerate(blank_source(source).split("\n"), start=1):
        line = raw.rstrip("\r")
        if line.strip():
            yield number, line


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip())


@lru_cache(maxsize=1)
def _default_validator() -> SyntaxValidator:
    return SyntaxValidator()


def validate(source: str, file_path: Optional[Union[str, Path]] = None) -> None:
    """Validate with the built-in keyword table."""
    _default_validator().validate(source, file_path)
