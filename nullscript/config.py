"""
Project-wide configuration for NullScript.

This module defines the constants shared by the CLI and the build pipeline
and the strict `nsconfig.json` project configuration.

Module Contents:
    APP_NAME: Application name for display purposes
    CLI_NAME: Name of the command-line tool
    SOURCE_EXTENSION: Extension of NullScript source files
    CONVERTIBLE_EXTENSIONS: Extensions `nsc convert` accepts
    CONFIG_FILENAME: Name of the project configuration file
    DEFAULT_OUT_DIR: Default build output directory
    CHECK_DIR: Scratch directory used by `nsc check`
    REPORT_FORMATS: Accepted values for compilerOptions.reports.defaultFormat
    ProjectConfig: Parsed and validated nsconfig.json

Unknown or missing fields in nsconfig.json are errors, never silently
ignored or defaulted.

Example:
    >>> from nullscript.config import load_project_config
    >>> config = load_project_config(Path("."))
    >>> print(config.compiler_options.out_dir)
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Union

from .errors import ConfigError, Location

# Application name for display and identification
APP_NAME = "NullScript"

# Command-line tool name
CLI_NAME = "nsc"

# NullScript source extension
SOURCE_EXTENSION = ".ns"

# Canonical sources `convert` turns into NullScript
CONVERTIBLE_EXTENSIONS = (".js", ".ts", ".mjs", ".cjs")

# Project configuration file, looked up in the project root
CONFIG_FILENAME = "nsconfig.json"

# Build output directory when none is given
DEFAULT_OUT_DIR = "dist"

# Temporary output used by `nsc check`
CHECK_DIR = ".nullscript-check"

# Report formats understood by the analytics command
REPORT_FORMATS = ("html", "json", "text")


@dataclass
class ReportsConfig:
    dir: str = "reports"
    default_format: str = "html"

    def to_dict(self) -> dict:
        return {"dir": self.dir, "defaultFormat": self.default_format}


@dataclass
class CompilerOptions:
    root_dir: str = "./src"
    out_dir: str = "./dist"
    reports: ReportsConfig = field(default_factory=ReportsConfig)

    def to_dict(self) -> dict:
        return {
            "rootDir": self.root_dir,
            "outDir": self.out_dir,
            "reports": self.reports.to_dict(),
        }


@dataclass
class ProjectConfig:
    """Strict mirror of nsconfig.json."""
    compiler_options: CompilerOptions = field(default_factory=CompilerOptions)
    include: list[str] = field(default_factory=lambda: ["src/**/*.ns"])
    exclude: list[str] = field(default_factory=lambda: ["node_modules", "dist", "reports"])
    source_path: Optional[Path] = None

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_json(cls, text: str, source_path: Optional[Path] = None) -> ProjectConfig:
        """Parse and validate nsconfig.json content.

        Raises:
            ConfigError: on invalid JSON, unknown/missing fields, wrong
                types or empty values
        """
        where = Location(str(source_path) if source_path else None)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(
                f"Invalid JSON format in {CONFIG_FILENAME}: {exc.msg}",
                location=Location(where.file_path, exc.lineno, exc.colno),
                hint=f"Run '{CLI_NAME} config init' to start from a valid file.",
            ) from exc

        root = _expect_object(data, CONFIG_FILENAME, where)
        _expect_fields(root, ("compilerOptions", "include", "exclude"), CONFIG_FILENAME, where)

        options = _expect_object(root["compilerOptions"], "compilerOptions", where)
        _expect_fields(options, ("rootDir", "outDir", "reports"), "compilerOptions", where)

        reports = _expect_object(options["reports"], "compilerOptions.reports", where)
        _expect_fields(reports, ("dir", "defaultFormat"), "compilerOptions.reports", where)

        config = cls(
            compiler_options=CompilerOptions(
                root_dir=_expect_string(options["rootDir"], "compilerOptions.rootDir", where),
                out_dir=_expect_string(options["outDir"], "compilerOptions.outDir", where),
                reports=ReportsConfig(
                    dir=_expect_string(reports["dir"], "compilerOptions.reports.dir", where),
                    default_format=_expect_string(
                        reports["defaultFormat"], "compilerOptions.reports.defaultFormat", where
                    ),
                ),
            ),
            include=_expect_string_list(root["include"], "include", where),
            exclude=_expect_string_list(root["exclude"], "exclude", where),
            source_path=source_path,
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Check field values (the structure is checked while parsing)."""
        where = Location(str(self.source_path) if self.source_path else None)
        opts = self.compiler_options
        if not opts.root_dir.strip():
            raise ConfigError("compilerOptions.rootDir cannot be empty", location=where)
        if not opts.out_dir.strip():
            raise ConfigError("compilerOptions.outDir cannot be empty", location=where)
        if not opts.reports.dir.strip():
            raise ConfigError("compilerOptions.reports.dir cannot be empty", location=where)
        if opts.reports.default_format not in REPORT_FORMATS:
            raise ConfigError(
                f"Invalid defaultFormat '{opts.reports.default_format}'.",
                location=where,
                hint=f"Use one of: {', '.join(REPORT_FORMATS)}",
            )
        if not self.include:
            raise ConfigError("include must list at least one pattern", location=where)
        for name, patterns in (("include", self.include), ("exclude", self.exclude)):
            if any(not p.strip() for p in patterns):
                raise ConfigError(f"{name} patterns cannot be empty strings", location=where)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "compilerOptions": self.compiler_options.to_dict(),
            "include": list(self.include),
            "exclude": list(self.exclude),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")

    # ------------------------------------------------------------------
    # File selection
    # ------------------------------------------------------------------

    def matches(self, path: Union[str, Path], root: Optional[Path] = None) -> bool:
        """True when a path (relative to the project root) should be built."""
        rel = Path(path)
        if root is not None and rel.is_absolute():
            try:
                rel = rel.relative_to(root)
            except ValueError:
                return False
        posix = PurePosixPath(rel.as_posix())
        text = str(posix)
        if text.startswith("./"):
            text = text[2:]

        for pattern in self.exclude:
            if _is_glob(pattern):
                if _glob_regex(pattern).fullmatch(text) or any(
                    _glob_regex(pattern).fullmatch(part) for part in posix.parts
                ):
                    return False
            else:
                name = (pattern[2:] if pattern.startswith("./") else pattern).rstrip("/")
                if "/" in name:
                    if text == name or text.startswith(name + "/"):
                        return False
                elif name in posix.parts:
                    return False

        return any(_glob_regex(pattern).fullmatch(text) for pattern in self.include)


# ============================================================================
# Helpers
# ============================================================================

def _expect_object(value: Any, name: str, where: Location) -> dict:
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be an object", location=where)
    return value


def _expect_fields(obj: dict, allowed: tuple[str, ...], name: str, where: Location) -> None:
    for key in obj:
        if key not in allowed:
            quoted = ", ".join(f"'{a}'" for a in allowed)
            raise ConfigError(
                f"Unknown field '{key}' in {name}. Only {quoted} are allowed.",
                location=where,
            )
    for key in allowed:
        if key not in obj:
            raise ConfigError(f"Missing required field '{key}' in {name}", location=where)


def _expect_string(value: Any, name: str, where: Location) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"'{name}' must be a string", location=where)
    return value


def _expect_string_list(value: Any, name: str, where: Location) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{name}' must be a list of strings", location=where)
    return list(value)


def _is_glob(pattern: str) -> bool:
    return any(ch in pattern for ch in "*?[")


def _glob_regex(pattern: str) -> re.Pattern:
    """Translate a glob with `**` support into an anchored regex."""
    pattern = pattern[2:] if pattern.startswith("./") else pattern
    out = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(out))


# ============================================================================
# File operations
# ============================================================================

def config_path(project_root: Path) -> Path:
    return project_root / CONFIG_FILENAME


def load_project_config(project_root: Path) -> ProjectConfig:
    """Load nsconfig.json from a project root, or defaults when absent.

    An existing but invalid file is an error, never a silent fallback.
    """
    path = config_path(project_root)
    if not path.exists():
        return ProjectConfig()
    return ProjectConfig.from_json(path.read_text(encoding="utf-8"), source_path=path)


def create_default_config(project_root: Path, overwrite: bool = False) -> Path:
    """Write a default nsconfig.json and return its path."""
    path = config_path(project_root)
    if path.exists() and not overwrite:
        raise ConfigError(
            f"{CONFIG_FILENAME} already exists",
            location=Location(str(path)),
            hint="Pass --force to overwrite it.",
        )
    ProjectConfig().save(path)
    return path


def validate_config_file(path: Path) -> ProjectConfig:
    if not path.exists():
        raise ConfigError(f"{path} does not exist", location=Location(str(path)))
    return ProjectConfig.from_json(path.read_text(encoding="utf-8"), source_path=path)
