"""Error types and compiler-diagnostic parsing for NullScript.

Every failure a user can see is a NullScriptError carrying an optional
Location and a corrective hint. Output from the external TypeScript
compiler is folded into the same shape so the CLI can report engine and
toolchain problems uniformly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .keywords import get_default_table

PathLike = Union[str, Path]


@dataclass(frozen=True)
class Location:
    """Where a problem was found. All fields are optional and descriptive."""

    file_path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def format(self) -> str:
        out = ""
        if self.file_path:
            out += f" in {Path(self.file_path).name}"
        if self.line is not None:
            out += f":{self.line}"
            if self.column is not None:
                out += f":{self.column}"
        return out

    def with_file(self, file_path: Optional[PathLike]) -> "Location":
        if file_path is None or self.file_path:
            return self
        return Location(str(file_path), self.line, self.column)


@dataclass(frozen=True)
class Diagnostic:
    """Uniform problem report surfaced by build/check/run."""

    message: str
    file_path: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    severity: str = "error"  # error | warning
    hint: Optional[str] = None

    @property
    def location(self) -> Location:
        return Location(self.file_path, self.line, self.column)

    def format(self) -> str:
        where = self.location.format().replace(" in ", "", 1) or "<source>"
        text = f"{where}: {self.severity}: {self.message}"
        if self.hint:
            text += f" ({self.hint})"
        return text


class NullScriptError(Exception):
    """Base class for every user-visible NullScript failure."""

    def __init__(
        self,
        message: str,
        location: Optional[Location] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.location = location or Location()
        self.hint = hint

    @property
    def file_path(self) -> Optional[str]:
        return self.location.file_path

    @property
    def line(self) -> Optional[int]:
        return self.location.line

    @property
    def column(self) -> Optional[int]:
        return self.location.column

    def with_file(self, file_path: Optional[PathLike]) -> "NullScriptError":
        """Attach a file path when the error does not carry one yet."""
        self.location = self.location.with_file(file_path)
        return self

    def format_error(self) -> str:
        out = f"❌ {type(self).__name__}{self.location.format()}\n\n{self.message}"
        if self.hint:
            out += f"\n💡 {self.hint}"
        return out

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            message=self.message,
            file_path=self.location.file_path,
            line=self.location.line,
            column=self.location.column,
            hint=self.hint,
        )


class NullScriptSyntaxError(NullScriptError):
    """Dialect source uses a canonical-only construct."""

    def __init__(self, message: str, token: str = "", location=None, hint=None):
        super().__init__(message, location, hint)
        self.token = token


class ReservedIdentifierError(NullScriptSyntaxError):
    """A NullScript keyword was used as a user-chosen name."""

    def __init__(self, name: str, kind: str, location=None):
        super().__init__(
            f"Cannot use NullScript keyword '{name}' as {kind} name.",
            token=name,
            location=location,
            hint=f"Choose a different name for your {kind}.",
        )
        self.kind = kind


class NullScriptTranspileError(NullScriptError):
    """A rewrite pass could not be built or applied. Indicates a defect."""


class NullScriptTypeError(NullScriptError):
    """The external type checker rejected the generated code."""


class ToolchainError(NullScriptError):
    """An external executable (node, tsc) is missing or failed to start."""


class ConfigError(NullScriptError):
    """nsconfig.json is malformed or violates the schema."""


class SourceEncodingError(NullScriptError):
    """A source file is not valid UTF-8."""

    def __init__(self, message: str, location=None):
        super().__init__(message, location, hint="Save the file with UTF-8 encoding.")


# ============================================================================
# Compiler output parsing
# ============================================================================

_LOCATION = re.compile(r"([\w./\\-]+\.[cm]?[jt]s):(\d+):(\d+)\s*-\s*error|\((\d+),(\d+)\)|:(\d+):(\d+)")
_TS_ERROR = re.compile(r"error TS\d+:\s*(.+)")
_PAREN_PATH = re.compile(r"^(.+?)\(\d+,\d+\)")
_CANNOT_FIND = re.compile(r"Cannot find name '([^']+)'")

# (pattern in compiler message, error class, message, hint)
ERROR_MAPPINGS = [
    (
        "Unexpected token",
        NullScriptSyntaxError,
        "Syntax error in NullScript code. Check for missing keywords or incorrect syntax.",
        "Make sure you're using NullScript keywords correctly. Run 'nsc keywords' to see all available keywords.",
    ),
    (
        "Declaration or statement expected",
        NullScriptSyntaxError,
        "Invalid statement. Check your NullScript syntax.",
        "Make sure you're using proper NullScript keywords and syntax.",
    ),
    (
        "Function implementation is missing",
        NullScriptSyntaxError,
        "Function body is missing. Add implementation after your function declaration.",
        "Example: run myFunction() { /* your code here */ }",
    ),
    (
        "Unexpected keyword or identifier",
        NullScriptSyntaxError,
        "Invalid NullScript syntax. You're using an undefined keyword or incorrect syntax.",
        "Check that you're using valid NullScript keywords. Run 'nsc keywords' to see all available options.",
    ),
    (
        "is not assignable to type",
        NullScriptTypeError,
        "Type mismatch in NullScript code.",
        "Check the values you pass and assign; the compiler reported incompatible types.",
    ),
]


def clean_error_message(message: str) -> str:
    """Strip compiler noise and keep at most three meaningful lines."""
    message = re.sub(r"error TS\d+:\s*", "", message)
    kept = []
    for line in message.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("at ") or "Command failed:" in line or "(node:" in line:
            continue
        kept.append(stripped)
        if len(kept) == 3:
            break
    return "\n".join(kept).strip()


def _location_from(text: str, file_path: Optional[PathLike]) -> Location:
    match = _LOCATION.search(text)
    line = column = None
    if match:
        groups = match.groups()
        for start in (1, 3, 5):
            if groups[start] is not None:
                line, column = int(groups[start]), int(groups[start + 1])
                break
    return Location(str(file_path) if file_path else None, line, column)


def _map_cannot_find(name: str, location: Location) -> Optional[NullScriptError]:
    table = get_default_table()
    canonical = table.lookup(name)
    if canonical is not None:
        return NullScriptSyntaxError(
            f"NullScript keyword '{name}' was left untranslated here.",
            token=name,
            location=location,
            hint=f"'{name}' stands for '{canonical}'. Check the surrounding syntax.",
        )
    alias = table.alias_for(name)
    if alias is not None:
        return NullScriptSyntaxError(
            f"'{name}' is not NullScript syntax.",
            token=name,
            location=location,
            hint=f"Use '{alias}' instead.",
        )
    return None


def parse_compiler_output(text: str, file_path: Optional[PathLike] = None) -> NullScriptError:
    """Turn the first error in TypeScript compiler output into a NullScriptError.

    Known messages are rephrased in NullScript terms with a hint; anything
    else becomes a NullScriptTranspileError with a cleaned message.
    """
    location = _location_from(text, file_path)

    message = text
    error_lines = [line for line in text.split("\n") if "error TS" in line]
    if error_lines:
        match = _TS_ERROR.search(error_lines[0])
        if match:
            message = match.group(1).strip()
    else:
        for line in text.split("\n"):
            if any(p in line for p in ("Cannot find name", "Unexpected token", "Declaration or statement expected")):
                message = line.strip()
                break

    found = _CANNOT_FIND.search(message)
    if found:
        mapped = _map_cannot_find(found.group(1), location)
        if mapped is not None:
            return mapped

    for pattern, error_cls, mapped_message, hint in ERROR_MAPPINGS:
        if pattern in message:
            return error_cls(mapped_message, location=location, hint=hint)

    cleaned = clean_error_message(message)
    return NullScriptTranspileError(
        f"Transpilation error: {cleaned}",
        location=location,
        hint="This might be due to incorrect NullScript syntax. Run 'nsc keywords' to see available keywords.",
    )


def parse_diagnostics(text: str, file_path: Optional[PathLike] = None) -> List[Diagnostic]:
    """Every `error TS` line of compiler output as a Diagnostic."""
    diagnostics = []
    for line in text.split("\n"):
        match = _TS_ERROR.search(line)
        if not match:
            continue
        location = _location_from(line, None)
        reported = _LOCATION.search(line)
        paren = _PAREN_PATH.match(line.strip())
        if reported and reported.group(1):
            path = reported.group(1)
        elif paren:
            path = paren.group(1)
        else:
            path = file_path
        diagnostics.append(Diagnostic(
            message=match.group(1).strip(),
            file_path=str(path) if path else None,
            line=location.line,
            column=location.column,
        ))
    return diagnostics
