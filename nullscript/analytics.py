"""
Performance analytics for NullScript builds.

This module provides:
- Per-file transpile metrics (sizes, time, lines, complexity)
- Aggregate bundle analysis (totals, size ratio, largest outputs)
- Optimization suggestions (code splitting, tree shaking, duplicates)
- Export to JSON

Transpile failures never abort a batch: the file is recorded with a
zero-length output and its error text.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import SOURCE_EXTENSION
from .errors import NullScriptError, SourceEncodingError
from .transpiler import ForwardTranspiler
from .utils import read_source
from .validator import SyntaxValidator

logger = logging.getLogger("nullscript.analytics")

SPLIT_THRESHOLD_BYTES = 50_000
TREE_SHAKING_THRESHOLD_BYTES = 500_000
LARGEST_FILES_LIMIT = 10

# Each group adds 1 to a line's score when any of its words appears.
_BRANCH_GROUPS = [
    re.compile(rf"(?<![\w$])(?:{a}|{b})(?![\w$])")
    for a, b in (
        ("whatever", "if"),
        ("when", "while"),
        ("since", "for"),
        ("test", "try"),
        ("grab", "catch"),
    )
]
_RUN = re.compile(r"(?<![\w$])run\s")
_MODEL = re.compile(r"(?<![\w$])model\s")


def complexity_score(source: str) -> float:
    """Average per-line complexity of NullScript (or canonical) source.

    Per line: +1 per branch/loop/error-handling group present, +0.1 per
    4-space indent level, +0.5 for a `run` declaration, +1 for `model`.
    """
    lines = source.splitlines()
    if not lines:
        return 0.0
    score = 0.0
    for line in lines:
        stripped = line.strip()
        score += sum(1.0 for group in _BRANCH_GROUPS if group.search(stripped))
        indent = len(line) - len(line.lstrip())
        score += (indent // 4) * 0.1
        if _RUN.search(stripped):
            score += 0.5
        if _MODEL.search(stripped):
            score += 1.0
    return score / len(lines)


@dataclass
class FileMetrics:
    """Metrics for one transpiled file."""
    file_path: str
    input_size_bytes: int
    output_size_bytes: int
    transpile_time_ms: float
    line_count: int
    character_count: int
    complexity_score: float
    content_hash: str = ""
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class FileShare:
    file_path: str
    size_bytes: int
    percentage_of_total: float


@dataclass
class OptimizationSuggestion:
    kind: str  # code-splitting | tree-shaking | remove-duplicates
    description: str
    potential_savings_bytes: int
    priority: str  # high | medium | low
    files_affected: list[str] = field(default_factory=list)


@dataclass
class PerformanceReport:
    """Aggregated analytics for a batch of files."""
    timestamp: str
    files: list[FileMetrics] = field(default_factory=list)
    total_input_bytes: int = 0
    total_output_bytes: int = 0
    total_transpile_time_ms: float = 0.0
    size_ratio: float = 1.0
    largest_files: list[FileShare] = field(default_factory=list)
    suggestions: list[OptimizationSuggestion] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def failed_files(self) -> list[FileMetrics]:
        return [f for f in self.files if not f.success]

    @property
    def average_complexity(self) -> float:
        if not self.files:
            return 0.0
        return sum(f.complexity_score for f in self.files) / len(self.files)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp,
            "summary": {
                "file_count": self.file_count,
                "failed": len(self.failed_files),
                "total_input_bytes": self.total_input_bytes,
                "total_output_bytes": self.total_output_bytes,
                "total_transpile_time_ms": round(self.total_transpile_time_ms, 3),
                "size_ratio": round(self.size_ratio, 4),
                "average_complexity": round(self.average_complexity, 4),
            },
            "files": [asdict(f) for f in self.files],
            "largest_files": [asdict(f) for f in self.largest_files],
            "suggestions": [asdict(s) for s in self.suggestions],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")


class PerformanceAnalyzer:
    """Collects FileMetrics across a batch and produces a PerformanceReport.

    Usage:
        analyzer = PerformanceAnalyzer()
        analyzer.analyze_directory(Path("src"))
        report = analyzer.finish()
    """

    def __init__(self, transpiler: ForwardTranspiler | None = None, validate: bool = True):
        self.transpiler = transpiler or ForwardTranspiler()
        self.validator = SyntaxValidator(self.transpiler.table) if validate else None
        self.metrics: list[FileMetrics] = []

    def analyze_source(self, source: str, file_path: str = "<source>") -> FileMetrics:
        start = time.perf_counter()
        error = None
        try:
            if self.validator is not None:
                self.validator.validate(source, file_path)
            output = self.transpiler.transpile(source)
        except NullScriptError as exc:
            output = ""
            error = exc.message
            logger.warning(f"Transpile failed for {file_path}: {exc.message}")
        elapsed_ms = (time.perf_counter() - start) * 1000

        metrics = FileMetrics(
            file_path=file_path,
            input_size_bytes=len(source.encode("utf-8")),
            output_size_bytes=len(output.encode("utf-8")),
            transpile_time_ms=elapsed_ms,
            line_count=len(source.splitlines()),
            character_count=len(source),
            complexity_score=complexity_score(source),
            content_hash=hashlib.sha256(output.encode("utf-8")).hexdigest() if output else "",
            error=error,
        )
        self.metrics.append(metrics)
        return metrics

    def analyze_file(self, path: Path) -> FileMetrics:
        try:
            source = read_source(path)
        except SourceEncodingError as exc:
            logger.warning(f"Cannot read {path}: {exc.message}")
            metrics = FileMetrics(
                file_path=str(path),
                input_size_bytes=path.stat().st_size,
                output_size_bytes=0,
                transpile_time_ms=0.0,
                line_count=0,
                character_count=0,
                complexity_score=0.0,
                error=exc.message,
            )
            self.metrics.append(metrics)
            return metrics
        return self.analyze_source(source, str(path))

    def analyze_directory(self, directory: Path) -> list[FileMetrics]:
        return [
            self.analyze_file(path)
            for path in sorted(directory.rglob(f"*{SOURCE_EXTENSION}"))
            if path.is_file()
        ]

    def finish(self) -> PerformanceReport:
        total_in = sum(m.input_size_bytes for m in self.metrics)
        total_out = sum(m.output_size_bytes for m in self.metrics)
        largest = self._largest_files(total_out)
        return PerformanceReport(
            timestamp=datetime.now().isoformat(timespec="seconds"),
            files=list(self.metrics),
            total_input_bytes=total_in,
            total_output_bytes=total_out,
            total_transpile_time_ms=sum(m.transpile_time_ms for m in self.metrics),
            size_ratio=total_out / total_in if total_in else 1.0,
            largest_files=largest,
            suggestions=self._suggestions(largest, total_out),
        )

    def _largest_files(self, total_out: int) -> list[FileShare]:
        ranked = sorted(self.metrics, key=lambda m: m.output_size_bytes, reverse=True)
        return [
            FileShare(
                file_path=m.file_path,
                size_bytes=m.output_size_bytes,
                percentage_of_total=(m.output_size_bytes / total_out * 100) if total_out else 0.0,
            )
            for m in ranked[:LARGEST_FILES_LIMIT]
        ]

    def _suggestions(self, largest: list[FileShare], total_out: int) -> list[OptimizationSuggestion]:
        suggestions = []

        by_hash: dict[str, list[FileMetrics]] = {}
        for m in self.metrics:
            if m.content_hash:
                by_hash.setdefault(m.content_hash, []).append(m)
        for group in by_hash.values():
            if len(group) < 2:
                continue
            size = group[0].output_size_bytes
            savings = size * (len(group) - 1)
            suggestions.append(OptimizationSuggestion(
                kind="remove-duplicates",
                description=f"Remove {len(group) - 1} duplicate files with {size} bytes each",
                potential_savings_bytes=savings,
                priority="high" if savings > 10_000 else "medium",
                files_affected=[m.file_path for m in group],
            ))

        for share in largest[:3]:
            if share.size_bytes > SPLIT_THRESHOLD_BYTES:
                suggestions.append(OptimizationSuggestion(
                    kind="code-splitting",
                    description=(
                        f"Consider splitting large file {share.file_path} "
                        f"({share.size_bytes} bytes, {share.percentage_of_total:.1f}% of total)"
                    ),
                    potential_savings_bytes=share.size_bytes // 2,
                    priority="medium",
                    files_affected=[share.file_path],
                ))

        if total_out > TREE_SHAKING_THRESHOLD_BYTES:
            suggestions.append(OptimizationSuggestion(
                kind="tree-shaking",
                description="Enable tree shaking to remove unused code",
                potential_savings_bytes=total_out // 10,
                priority="high",
                files_affected=[m.file_path for m in self.metrics],
            ))
        return suggestions
