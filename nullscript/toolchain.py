"""
External toolchain: the TypeScript compiler and the Node.js runtime.

NullScript never type-checks or executes code itself. It writes the
transpiled output and hands it to `tsc` and `node` as opaque
subprocesses, then folds their textual output into NullScript errors.

`tsc` is taken from PATH, else run through `npx tsc`.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .errors import Location, ToolchainError, parse_compiler_output

logger = logging.getLogger("nullscript.toolchain")

# Compiler flags shared by type checking and compilation.
TSC_FLAGS = [
    "--target", "ES2022",
    "--module", "ES2022",
    "--moduleResolution", "node",
    "--esModuleInterop",
    "--allowSyntheticDefaultImports",
    "--skipLibCheck",
]


@dataclass
class ProcessResult:
    """Exit status and captured output of an external command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout when present, else stderr (tsc reports on stdout)."""
        return self.stdout if self.stdout.strip() else self.stderr


class Toolchain:
    """Thin wrapper around node / tsc / npx subprocess calls."""

    def __init__(
        self,
        node: str = "node",
        tsc: Optional[str] = None,
        npx: str = "npx",
        timeout: Optional[float] = None,
    ):
        self.node = node
        self.tsc = tsc
        self.npx = npx
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def node_available(self) -> bool:
        return shutil.which(self.node) is not None

    def npx_available(self) -> bool:
        return shutil.which(self.npx) is not None

    def tsc_available(self) -> bool:
        if shutil.which(self.tsc or "tsc") is not None:
            return True
        return self.npx_available()

    def tsc_command(self) -> list[str]:
        """Command prefix that runs the TypeScript compiler."""
        found = shutil.which(self.tsc or "tsc")
        if found:
            return [found]
        if self.npx_available():
            return [self.npx, "--no-install", "tsc"]
        raise ToolchainError(
            "TypeScript compiler not found.",
            hint="Install it with 'npm install -g typescript' or add it to your project.",
        )

    def version(self, tool: str) -> Optional[str]:
        """Version string reported by node, tsc or npx, or None."""
        if tool == "tsc":
            try:
                cmd = self.tsc_command() + ["--version"]
            except ToolchainError:
                return None
        else:
            executable = {"node": self.node, "npx": self.npx}.get(tool, tool)
            if shutil.which(executable) is None:
                return None
            cmd = [executable, "--version"]
        try:
            result = self._run(cmd)
        except ToolchainError:
            return None
        if not result.ok:
            return None
        return result.stdout.strip() or None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def type_check(self, paths: Sequence[Path], source_path: Optional[Path] = None) -> ProcessResult:
        """Run `tsc --noEmit` over generated files.

        Raises:
            NullScriptError: mapped from the first compiler error when
                the check fails
        """
        cmd = self.tsc_command() + ["--noEmit", *TSC_FLAGS, *[str(p) for p in paths]]
        result = self._run(cmd)
        if not result.ok:
            raise parse_compiler_output(result.output or "TypeScript type check failed", source_path)
        return result

    def compile_to_js(
        self,
        ts_path: Path,
        out_dir: Path,
        skip_type_check: bool = False,
        source_path: Optional[Path] = None,
    ) -> Path:
        """Compile one .ts file into out_dir and return the .js path."""
        cmd = self.tsc_command() + [*TSC_FLAGS, "--outDir", str(out_dir), str(ts_path)]
        if skip_type_check:
            cmd.append("--noCheck")
        result = self._run(cmd)
        if not result.ok:
            raise parse_compiler_output(result.output or "TypeScript compilation failed", source_path)
        js_path = out_dir / (ts_path.stem + ".js")
        if not js_path.exists():
            raise ToolchainError(
                "JavaScript file was not generated by TypeScript compiler",
                location=Location(str(source_path) if source_path else None),
            )
        return js_path

    def run_node(self, js_path: Path, args: Sequence[str] = ()) -> ProcessResult:
        if not self.node_available():
            raise ToolchainError(
                "Node.js not found.",
                hint="Install Node.js from https://nodejs.org to run NullScript programs.",
            )
        return self._run([self.node, str(js_path), *args])

    def _run(self, cmd: list[str], cwd: Optional[Path] = None) -> ProcessResult:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                cwd=cwd,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ToolchainError(f"{cmd[0]} not found", hint="Check your Node.js installation.") from exc
        except subprocess.TimeoutExpired as exc:
            raise ToolchainError(f"{cmd[0]} timed out after {self.timeout}s") from exc
        return ProcessResult(completed.returncode, completed.stdout or "", completed.stderr or "")
