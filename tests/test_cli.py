"""
Tests for the `nsc` command-line interface.

The real Toolchain is replaced with the FakeToolchain fixture, and every
test runs inside its own temporary working directory.
"""

import json

import pytest
from typer.testing import CliRunner

from nullscript import __version__
from nullscript import cli
from nullscript.config import CHECK_DIR, CONFIG_FILENAME
from nullscript.toolchain import ProcessResult

runner = CliRunner()


@pytest.fixture(autouse=True)
def workspace(tmp_path, monkeypatch, toolchain):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "Toolchain", lambda: toolchain)
    return tmp_path


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestGeneral:
    """Test global options and keyword listing."""

    def test_version(self):
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert f"NullScript v{__version__}" in result.output

    def test_keywords(self):
        result = runner.invoke(cli.app, ["keywords"])
        assert result.exit_code == 0
        assert "whatever" in result.output
        assert "speak" in result.output

    def test_keywords_category(self):
        result = runner.invoke(cli.app, ["keywords", "-c", "error-handling"])
        assert result.exit_code == 0
        assert "grab" in result.output
        assert "speak" not in result.output

    def test_keywords_unknown_category(self):
        result = runner.invoke(cli.app, ["keywords", "--category", "loops"])
        assert result.exit_code == 1
        assert "Unknown category" in result.output
        assert "control-flow" in result.output


class TestBuild:
    """Test `nsc build`."""

    def test_build_file(self, workspace):
        write(workspace / "hello.ns", 'speak.say("hi");\n')

        result = runner.invoke(cli.app, ["build", "hello.ns", "-o", "out", "--skip-type-check"])

        assert result.exit_code == 0, result.output
        assert (workspace / "out" / "hello.ts").read_text(encoding="utf-8") == 'console.log("hi");\n'

    def test_build_js(self, workspace):
        write(workspace / "hello.ns", "fixed a = yes;\n")

        result = runner.invoke(cli.app, ["build", "hello.ns", "--outDir", "out", "--js", "--skip-type-check"])

        assert result.exit_code == 0, result.output
        assert (workspace / "out" / "hello.js").exists()

    def test_build_error(self, workspace):
        write(workspace / "bad.ns", "const a = 1;\n")

        result = runner.invoke(cli.app, ["build", "bad.ns", "-o", "out", "--skip-type-check"])

        assert result.exit_code == 1
        assert "NullScriptSyntaxError" in result.output
        assert "bad.ns:1:1" in result.output
        assert not (workspace / "out" / "bad.ts").exists()

    def test_build_undecodable_file(self, workspace):
        (workspace / "latin.ns").write_bytes(b"fixed a = \xff;\n")

        result = runner.invoke(cli.app, ["build", "latin.ns", "-o", "out", "--skip-type-check"])

        assert result.exit_code == 1
        assert "SourceEncodingError" in result.output
        assert "latin.ns:1:11" in result.output

    def test_build_directory_reports_failures(self, project):
        result = runner.invoke(cli.app, ["build", str(project / "src"), "-o", str(project / "dist")])

        assert result.exit_code == 1
        assert (project / "dist" / "main.ts").exists()
        assert (project / "dist" / "lib" / "math.ts").exists()
        assert "Build failed" in result.output

    def test_build_uses_config_out_dir(self, workspace):
        runner.invoke(cli.app, ["config", "init"])
        write(workspace / "src" / "a.ns", "fixed a = 1;\n")

        result = runner.invoke(cli.app, ["build", "src", "--skip-type-check"])

        assert result.exit_code == 0, result.output
        assert (workspace / "dist" / "a.ts").exists()

    def test_build_missing_path(self):
        result = runner.invoke(cli.app, ["build", "nope.ns"])
        assert result.exit_code == 1
        assert "does not exist" in result.output


class TestRunAndCheck:
    """Test `nsc run` and `nsc check`."""

    def test_run(self, workspace, toolchain):
        write(workspace / "hello.ns", 'speak.say("hi");\n')
        toolchain.node_result = ProcessResult(0, "hi\n", "")

        result = runner.invoke(cli.app, ["run", "hello.ns", "--skip-type-check"])

        assert result.exit_code == 0, result.output
        assert "hi" in result.output
        assert len(toolchain.ran) == 1
        assert not toolchain.ran[0].exists()

    def test_run_failure(self, workspace, toolchain):
        write(workspace / "boom.ns", 'trigger fresh fail("boom");\n')
        toolchain.node_result = ProcessResult(1, "", "Error: boom\n")

        result = runner.invoke(cli.app, ["run", "boom.ns", "--skip-type-check"])

        assert result.exit_code == 1

    def test_check_clean(self, workspace, toolchain):
        write(workspace / "src" / "a.ns", "fixed a = 1;\n")

        result = runner.invoke(cli.app, ["check", "src"])

        assert result.exit_code == 0, result.output
        assert "No errors found" in result.output
        assert len(toolchain.type_checked[0]) == 1
        assert not (workspace / CHECK_DIR).exists()

    def test_check_type_errors(self, workspace, toolchain):
        write(workspace / "a.ns", "fixed a = 1;\n")
        toolchain.type_check_output = "a.ts(1,7): error TS2322: Type 'number' is not assignable to type 'string'."

        result = runner.invoke(cli.app, ["check", "a.ns"])

        assert result.exit_code == 1
        assert "NullScriptTypeError" in result.output
        assert not (workspace / CHECK_DIR).exists()


class TestConvert:
    """Test `nsc convert`."""

    def test_convert_file(self, workspace):
        write(workspace / "app.js", "var a = 1;\nconsole.log(a);\n")

        result = runner.invoke(cli.app, ["convert", "app.js", "--report", "app.report.json"])

        assert result.exit_code == 0, result.output
        assert (workspace / "app.ns").read_text(encoding="utf-8") == "var a = 1;\nspeak.say(a);\n"
        assert "85.0%" in result.output
        assert json.loads((workspace / "app.report.json").read_text(encoding="utf-8"))["confidence_score"] == 85.0

    def test_convert_no_score(self, workspace):
        write(workspace / "app.ts", "const a = 1;\n")

        result = runner.invoke(cli.app, ["convert", "app.ts", "-o", "out.ns", "--no-score"])

        assert result.exit_code == 0, result.output
        assert "Confidence" not in result.output
        assert (workspace / "out.ns").exists()

    def test_convert_unsupported(self, workspace):
        write(workspace / "notes.txt", "hello\n")
        result = runner.invoke(cli.app, ["convert", "notes.txt"])
        assert result.exit_code == 1

    def test_convert_directory(self, workspace):
        write(workspace / "js" / "a.js", "const a = 1;\n")
        write(workspace / "js" / "b.js", "let b = true;\n")

        result = runner.invoke(cli.app, ["convert", "js", "-o", "ns"])

        assert result.exit_code == 0, result.output
        assert (workspace / "ns" / "a.ns").exists()
        assert (workspace / "ns" / "b.ns").exists()
        assert "Converted 2 files" in result.output


class TestReports:
    """Test `nsc analyze`, `nsc info` and `nsc system`."""

    def test_analyze_json(self, project):
        out = project / "perf.json"
        result = runner.invoke(cli.app, ["analyze", str(project / "src"), "--json", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8"))["summary"]["file_count"] == 3

    def test_info_file(self, workspace):
        write(workspace / "a.ns", "fixed a = yes;\nwhatever (a) {}\n")

        result = runner.invoke(cli.app, ["info", "a.ns", "--detailed"])

        assert result.exit_code == 0, result.output
        assert "NullScript source" in result.output
        assert "Keyword Usage" in result.output

    def test_info_directory(self, project):
        result = runner.invoke(cli.app, ["info", str(project), "-d"])
        assert result.exit_code == 0, result.output
        assert "NullScript files" in result.output

    def test_system(self):
        result = runner.invoke(cli.app, ["system"])
        assert result.exit_code == 0, result.output
        assert "Node.js" in result.output
        assert "v20.11.0" in result.output


class TestConfigCommands:
    """Test `nsc config init|validate|show`."""

    def test_init_then_refuse(self, workspace):
        first = runner.invoke(cli.app, ["config", "init"])
        second = runner.invoke(cli.app, ["config", "init"])
        forced = runner.invoke(cli.app, ["config", "init", "--force"])

        assert first.exit_code == 0
        assert (workspace / CONFIG_FILENAME).exists()
        assert second.exit_code == 1
        assert "already exists" in second.output
        assert forced.exit_code == 0

    def test_validate(self, workspace):
        runner.invoke(cli.app, ["config", "init"])
        assert runner.invoke(cli.app, ["config", "validate"]).exit_code == 0

        write(workspace / CONFIG_FILENAME, '{"compilerOptions": {}}')
        result = runner.invoke(cli.app, ["config", "validate"])
        assert result.exit_code == 1
        assert "ConfigError" in result.output

    def test_show_defaults(self):
        result = runner.invoke(cli.app, ["config", "show"])
        assert result.exit_code == 0
        assert "defaults" in result.output
        assert '"outDir": "./dist"' in result.output
