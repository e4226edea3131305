"""Shared fixtures: a Toolchain stand-in so tests never need node or tsc."""

from pathlib import Path

import pytest

from nullscript.errors import parse_compiler_output
from nullscript.toolchain import ProcessResult, Toolchain


class FakeToolchain(Toolchain):
    """Records calls instead of spawning processes.

    Set `type_check_output` to compiler text to make type checks fail,
    and `node_result` to control what `run_node` reports.
    """

    def __init__(self):
        super().__init__()
        self.type_checked: list[list[Path]] = []
        self.compiled: list[Path] = []
        self.ran: list[Path] = []
        self.type_check_output = ""
        self.node_result = ProcessResult(0, "", "")
        self.versions = {"node": "v20.11.0", "npx": "10.2.4", "tsc": "Version 5.4.5"}

    def node_available(self) -> bool:
        return "node" in self.versions

    def npx_available(self) -> bool:
        return "npx" in self.versions

    def tsc_available(self) -> bool:
        return "tsc" in self.versions

    def version(self, tool):
        return self.versions.get(tool)

    def type_check(self, paths, source_path=None):
        self.type_checked.append(list(paths))
        if self.type_check_output:
            raise parse_compiler_output(self.type_check_output, source_path)
        return ProcessResult(0)

    def compile_to_js(self, ts_path, out_dir, skip_type_check=False, source_path=None):
        self.compiled.append(ts_path)
        if self.type_check_output and not skip_type_check:
            raise parse_compiler_output(self.type_check_output, source_path)
        out_dir.mkdir(parents=True, exist_ok=True)
        js_path = out_dir / (ts_path.stem + ".js")
        js_path.write_text(ts_path.read_text(encoding="utf-8"), encoding="utf-8")
        return js_path

    def run_node(self, js_path, args=()):
        self.ran.append(js_path)
        return self.node_result


@pytest.fixture
def toolchain():
    return FakeToolchain()


@pytest.fixture
def project(tmp_path):
    """A small project tree with two valid sources and one broken one."""
    src = tmp_path / "src"
    (src / "lib").mkdir(parents=True)
    (src / "main.ns").write_text(
        'use { add } from "./lib/math";\n\nspeak.say(add(1, 2));\n',
        encoding="utf-8",
    )
    (src / "lib" / "math.ns").write_text(
        "share run add(a, b) {\n    return a + b;\n}\n",
        encoding="utf-8",
    )
    (src / "broken.ns").write_text(
        "fixed ok = 1;\nconst bad = 2;\n",
        encoding="utf-8",
    )
    return tmp_path
