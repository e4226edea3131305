"""
Tests for build analytics.

Tests cover:
- Complexity scoring
- Per-file metrics and failure tolerance
- Aggregate report and optimization suggestions
"""

import json

import pytest

from nullscript.analytics import PerformanceAnalyzer, complexity_score
from nullscript.utils import format_duration, format_file_size, keyword_usage


class TestComplexity:
    """Test the per-line complexity heuristic."""

    def test_empty_source(self):
        assert complexity_score("") == 0.0

    def test_branch_keywords_both_vocabularies(self):
        assert complexity_score("whatever (a) {}") == 1.0
        assert complexity_score("if (a) {}") == 1.0

    def test_indent_and_declarations(self):
        source = "run go() {\n    fixed a = 1;\n}"
        # 0.5 for `run `, 0.1 for one indent level
        assert complexity_score(source) == pytest.approx(0.6 / 3)

    def test_model(self):
        assert complexity_score("model A {}") == 1.0


class TestAnalyzer:
    """Test metrics collection and reports."""

    def test_metrics_for_valid_source(self):
        analyzer = PerformanceAnalyzer()
        metrics = analyzer.analyze_source("fixed a = yes;\n", "a.ns")

        assert metrics.success
        assert metrics.input_size_bytes == len("fixed a = yes;\n")
        assert metrics.output_size_bytes == len("const a = true;\n")
        assert metrics.line_count == 1
        assert metrics.content_hash

    def test_failure_recorded_not_raised(self):
        analyzer = PerformanceAnalyzer()
        metrics = analyzer.analyze_source("const a = 1;\n", "bad.ns")

        assert not metrics.success
        assert metrics.output_size_bytes == 0
        assert "const" in metrics.error

    def test_without_validation(self):
        metrics = PerformanceAnalyzer(validate=False).analyze_source("const a = 1;\n")
        assert metrics.success

    def test_report_totals(self):
        analyzer = PerformanceAnalyzer()
        analyzer.analyze_source("fixed a = 1;\n", "a.ns")
        analyzer.analyze_source("const b = 2;\n", "b.ns")
        report = analyzer.finish()

        assert report.file_count == 2
        assert len(report.failed_files) == 1
        assert report.total_input_bytes == 26
        assert report.total_output_bytes == 13
        assert report.size_ratio == pytest.approx(0.5)
        assert report.largest_files[0].file_path == "a.ns"
        assert report.largest_files[0].percentage_of_total == pytest.approx(100.0)

    def test_duplicate_suggestion(self):
        analyzer = PerformanceAnalyzer()
        analyzer.analyze_source("fixed a = 1;\n", "a.ns")
        analyzer.analyze_source("fixed a = 1;\n", "copy.ns")
        suggestions = analyzer.finish().suggestions

        assert [s.kind for s in suggestions] == ["remove-duplicates"]
        assert suggestions[0].files_affected == ["a.ns", "copy.ns"]

    def test_split_suggestion(self):
        analyzer = PerformanceAnalyzer()
        analyzer.analyze_source("fixed x = 1;\n" * 5000, "big.ns")
        kinds = [s.kind for s in analyzer.finish().suggestions]
        assert "code-splitting" in kinds

    def test_undecodable_file_recorded(self, tmp_path):
        (tmp_path / "good.ns").write_text("fixed a = 1;\n", encoding="utf-8")
        (tmp_path / "bad.ns").write_bytes(b"fixed b = \xff;\n")

        metrics = PerformanceAnalyzer().analyze_directory(tmp_path)

        assert [m.success for m in metrics] == [False, True]
        assert "UTF-8" in metrics[0].error
        assert metrics[0].output_size_bytes == 0
        assert metrics[0].input_size_bytes == len(b"fixed b = \xff;\n")

    def test_directory_and_json(self, project, tmp_path):
        analyzer = PerformanceAnalyzer()
        analyzer.analyze_directory(project / "src")
        report = analyzer.finish()
        out = tmp_path / "reports" / "perf.json"
        report.save(out)

        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["summary"]["file_count"] == 3
        assert data["summary"]["failed"] == 1
        assert len(data["files"]) == 3


class TestUtils:
    """Test formatting helpers used by the CLI."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (1023, "1023 B"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
    ])
    def test_format_file_size(self, size, expected):
        assert format_file_size(size) == expected

    def test_format_duration(self):
        assert format_duration(12.34) == "12.3 ms"
        assert format_duration(2500) == "2.50 s"

    def test_keyword_usage_ignores_strings(self):
        usage = keyword_usage('fixed a = yes;\nfixed b = "fixed";\n')
        assert usage["fixed"] == 2
        assert usage["yes"] == 1
