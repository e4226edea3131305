"""Environment diagnostics for NullScript.

This module inspects the external toolchain and the project configuration
so `nsc system` can give actionable guidance instead of cryptic failures
later in a build.
"""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .config import CONFIG_FILENAME, CLI_NAME, load_project_config
from .errors import ConfigError
from .keywords import get_default_table
from .toolchain import Toolchain


@dataclass
class CheckResult:
    """Represents a diagnostic check with status and human-readable detail."""

    name: str
    status: str  # ok | warn | error
    detail: str


def _check_tool(toolchain: Toolchain, tool: str, friendly: str, required: bool, advice: str) -> CheckResult:
    version = toolchain.version(tool)
    if version:
        return CheckResult(friendly, "ok", version)
    return CheckResult(friendly, "error" if required else "warn", f"Not found. {advice}")


def _check_tsc(toolchain: Toolchain) -> CheckResult:
    version = toolchain.version("tsc")
    if version:
        return CheckResult("TypeScript (tsc)", "ok", version)
    if toolchain.npx_available():
        return CheckResult(
            "TypeScript (tsc)",
            "warn",
            "Not installed; npx is available but needs a local 'typescript' package.",
        )
    return CheckResult(
        "TypeScript (tsc)",
        "error",
        "Not found. Install with 'npm install -g typescript'.",
    )


def _check_project_config(project_root: Path) -> CheckResult:
    path = project_root / CONFIG_FILENAME
    if not path.exists():
        return CheckResult(
            CONFIG_FILENAME,
            "warn",
            f"Not found; defaults are used. Create one with '{CLI_NAME} config init'.",
        )
    try:
        load_project_config(project_root)
    except ConfigError as exc:
        return CheckResult(CONFIG_FILENAME, "error", exc.message)
    return CheckResult(CONFIG_FILENAME, "ok", f"Valid ({path})")


def _check_keyword_table() -> CheckResult:
    table = get_default_table()
    problems = table.check_consistency()
    if problems:
        return CheckResult("Keyword table", "error", "; ".join(problems))
    return CheckResult(
        "Keyword table",
        "ok",
        f"v{table.version}: {len(table)} aliases in {len(table.categories())} categories",
    )


def collect_diagnostics(
    project_root: Optional[Path] = None,
    toolchain: Optional[Toolchain] = None,
) -> List[CheckResult]:
    """Run a series of lightweight checks and return their results."""
    toolchain = toolchain or Toolchain()
    root = project_root or Path.cwd()

    checks: List[CheckResult] = [
        CheckResult("NullScript", "ok", __version__),
        CheckResult("Python", "ok", f"{platform.python_version()} ({sys.platform})"),
    ]

    # External toolchain
    checks.append(_check_tool(toolchain, "node", "Node.js", True, "Install from https://nodejs.org"))
    checks.append(_check_tool(toolchain, "npx", "npx", False, "Ships with npm."))
    checks.append(_check_tsc(toolchain))

    # Project and engine
    checks.append(_check_project_config(root))
    checks.append(_check_keyword_table())
    return checks


def summarize_checks(checks: List[CheckResult]) -> Dict[str, int]:
    summary = {"ok": 0, "warn": 0, "error": 0}
    for c in checks:
        if c.status in summary:
            summary[c.status] += 1
    return summary
