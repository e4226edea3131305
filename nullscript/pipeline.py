"""
Build pipeline for NullScript projects.

This module orchestrates the file-level workflow around the engine:
1. Discover `.ns` sources (bounded by nsconfig.json include/exclude)
2. Validate and transpile each file
3. Write `.ts` output, or `.js` output via the external compiler
4. Type-check with the external compiler unless skipped
5. Convert existing JavaScript/TypeScript back to NullScript

Design Philosophy:
- The engine never touches the file system; this layer does all I/O
- A failing file never leaves partial output behind
- Directory builds fan files out to a thread pool; one failure does not
  stop the others, and every failure is reported
- Progress callbacks for CLI integration
"""

from __future__ import annotations

import logging
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .config import CONVERTIBLE_EXTENSIONS, SOURCE_EXTENSION, ProjectConfig
from .errors import Diagnostic, NullScriptError
from .reverse import ReverseTranspiler
from .scoring import ConversionQualityScorer, ConversionReport
from .toolchain import Toolchain
from .transpiler import ForwardTranspiler, TargetVariant, TranspileOptions
from .utils import read_source
from .validator import SyntaxValidator

logger = logging.getLogger("nullscript.pipeline")

# Type alias for progress callbacks
ProgressCallback = Callable[[str, float], None]


@dataclass
class FileResult:
    """Outcome of building one source file."""
    source: Path
    output: Optional[Path] = None
    error: Optional[Exception] = None
    skipped: bool = False

    @property
    def success(self) -> bool:
        return self.error is None and not self.skipped

    @property
    def diagnostic(self) -> Optional[Diagnostic]:
        if self.error is None:
            return None
        if isinstance(self.error, NullScriptError):
            return self.error.to_diagnostic()
        return Diagnostic(message=str(self.error), file_path=str(self.source))


@dataclass
class BuildResult:
    """Result of building a directory.

    `outputs` lists written files in sorted order; `files` holds one
    FileResult per discovered source.
    """
    outputs: list[Path] = field(default_factory=list)
    files: list[FileResult] = field(default_factory=list)

    @property
    def failures(self) -> list[FileResult]:
        return [f for f in self.files if f.error is not None]

    @property
    def success(self) -> bool:
        return not self.failures and all(not f.skipped for f in self.files)

    def to_dict(self) -> dict:
        return {
            "outputs": [str(p) for p in self.outputs],
            "failures": [
                {"source": str(f.source), "error": str(f.error)} for f in self.failures
            ],
            "skipped": [str(f.source) for f in self.files if f.skipped],
        }


@dataclass
class ConversionResult:
    """Result of converting one JavaScript/TypeScript file to NullScript."""
    source: Path
    output: Path
    report: Optional[ConversionReport] = None
    report_path: Optional[Path] = None


class BuildPipeline:
    """Drives validation, transpilation and the external toolchain per file.

    Usage:
        pipeline = BuildPipeline(options=TranspileOptions(skip_type_check=True))
        result = pipeline.build_directory(Path("src"), Path("dist"))
        for failure in result.failures:
            print(failure.diagnostic.format())
    """

    def __init__(
        self,
        transpiler: ForwardTranspiler | None = None,
        toolchain: Toolchain | None = None,
        options: TranspileOptions | None = None,
        validator: SyntaxValidator | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        self.transpiler = transpiler or ForwardTranspiler()
        self.validator = validator or SyntaxValidator(self.transpiler.table)
        self.toolchain = toolchain or Toolchain()
        self.options = options or TranspileOptions()
        self.progress_callback = progress_callback or (lambda msg, pct: None)
        self._cancel = threading.Event()
        self._reverse: ReverseTranspiler | None = None

    def cancel(self) -> None:
        """Stop starting new files; files already in flight complete."""
        self._cancel.set()

    # ------------------------------------------------------------------
    # Single files
    # ------------------------------------------------------------------

    def transpile_source(self, source: str, file_path: Optional[Path] = None) -> str:
        """Validate then transpile; errors carry the file path."""
        try:
            self.validator.validate(source, file_path)
            return self.transpiler.transpile(source)
        except NullScriptError as exc:
            raise exc.with_file(file_path)

    def transpile_file(self, input_path: Path, output_path: Path) -> Path:
        """Transpile one file to output_path. Nothing is written on error."""
        try:
            source = read_source(input_path)
            output = self.transpile_source(source, input_path)
        except (NullScriptError, OSError):
            _remove(output_path)
            raise
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output, encoding="utf-8")
        logger.debug(f"Transpiled {input_path} -> {output_path}")
        return output_path

    def build_file(self, input_path: Path, out_dir: Path, root: Optional[Path] = None) -> Path:
        """Build one source into out_dir, honouring TranspileOptions.

        Args:
            input_path: `.ns` source
            out_dir: Output directory
            root: Directory the output layout is relative to (defaults
                to the source's own directory)
        """
        relative = input_path.relative_to(root) if root else Path(input_path.name)
        target = out_dir / relative.with_suffix(self.options.output_extension)

        if self.options.target is TargetVariant.TYPESCRIPT:
            self.transpile_file(input_path, target)
            if not self.options.skip_type_check:
                try:
                    self.toolchain.type_check([target], source_path=input_path)
                except NullScriptError:
                    _remove(target)
                    raise
            return target

        if self.options.skip_type_check:
            return self.transpile_file(input_path, target)

        with tempfile.TemporaryDirectory(prefix="nullscript-") as tmp:
            ts_path = Path(tmp) / (input_path.stem + ".ts")
            self.transpile_file(input_path, ts_path)
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                return self.toolchain.compile_to_js(
                    ts_path, target.parent, skip_type_check=False, source_path=input_path
                )
            except NullScriptError:
                _remove(target)
                raise

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def discover(
        self,
        input_dir: Path,
        config: Optional[ProjectConfig] = None,
        project_root: Optional[Path] = None,
    ) -> list[Path]:
        """All `.ns` files under input_dir that the config lets through."""
        sources = sorted(p for p in input_dir.rglob(f"*{SOURCE_EXTENSION}") if p.is_file())
        if config is None:
            return sources
        root = (project_root or Path.cwd()).resolve()
        selected = []
        for path in sources:
            resolved = path.resolve()
            try:
                relative = resolved.relative_to(root)
            except ValueError:
                relative = resolved.relative_to(input_dir.resolve())
            if config.matches(relative):
                selected.append(path)
        return selected

    def build_directory(
        self,
        input_dir: Path,
        out_dir: Path,
        config: Optional[ProjectConfig] = None,
        max_workers: Optional[int] = None,
        project_root: Optional[Path] = None,
    ) -> BuildResult:
        """Build every discovered source concurrently.

        Files are independent: each is transpiled and written by a worker,
        and results are gathered as they complete.
        """
        sources = self.discover(input_dir, config, project_root)
        result = BuildResult()
        total = len(sources)
        if not total:
            logger.warning(f"No {SOURCE_EXTENSION} files found in {input_dir}")
            return result

        self.progress_callback(f"Building {total} files...", 0.0)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(self._build_one, path, out_dir, input_dir): path
                for path in sources
            }
            for done, future in enumerate(as_completed(futures), start=1):
                file_result = future.result()
                result.files.append(file_result)
                if file_result.output is not None:
                    result.outputs.append(file_result.output)
                self.progress_callback(f"Built {done}/{total}", done / total)

        result.outputs.sort()
        result.files.sort(key=lambda f: f.source)
        logger.info(f"Built {len(result.outputs)}/{total} files into {out_dir}")
        return result

    def _build_one(self, path: Path, out_dir: Path, root: Path) -> FileResult:
        if self._cancel.is_set():
            return FileResult(source=path, skipped=True)
        try:
            output = self.build_file(path, out_dir, root)
        except (NullScriptError, OSError) as exc:
            logger.warning(f"Failed to build {path}: {exc}")
            return FileResult(source=path, error=exc)
        logger.info(f"Built {path} -> {output}")
        return FileResult(source=path, output=output)

    # ------------------------------------------------------------------
    # Conversion (JavaScript/TypeScript → NullScript)
    # ------------------------------------------------------------------

    @property
    def reverse(self) -> ReverseTranspiler:
        if self._reverse is None:
            self._reverse = ReverseTranspiler(self.transpiler.table)
        return self._reverse

    def convert_file(
        self,
        input_path: Path,
        output_path: Optional[Path] = None,
        report_path: Optional[Path] = None,
        score: bool = True,
    ) -> ConversionResult:
        """Reverse-transpile one file, optionally scoring the result."""
        source = read_source(input_path)
        converted = self.reverse.reverse_transpile(source)
        output_path = output_path or input_path.with_suffix(SOURCE_EXTENSION)

        report = None
        if score:
            report = ConversionQualityScorer(self.transpiler.table).score(source, converted)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(converted, encoding="utf-8")
        if report is not None and report_path is not None:
            report_path.parent.mkdir(parents=True, exist_ok=True)
            report_path.write_text(report.to_json(), encoding="utf-8")

        logger.info(f"Converted {input_path} -> {output_path}")
        return ConversionResult(
            source=input_path,
            output=output_path,
            report=report,
            report_path=report_path if report is not None else None,
        )

    def convert_directory(
        self,
        input_dir: Path,
        out_dir: Optional[Path] = None,
        report_dir: Optional[Path] = None,
        score: bool = True,
    ) -> list[ConversionResult]:
        """Convert every JavaScript/TypeScript file below input_dir."""
        results = []
        sources = sorted(
            p for p in input_dir.rglob("*")
            if p.is_file()
            and p.suffix in CONVERTIBLE_EXTENSIONS
            and not p.name.endswith(".d.ts")
            and "node_modules" not in p.parts
        )
        for i, path in enumerate(sources, start=1):
            relative = path.relative_to(input_dir)
            output = (out_dir / relative if out_dir else path).with_suffix(SOURCE_EXTENSION)
            report = None
            if report_dir is not None:
                report = report_dir / relative.parent / f"{relative.stem}.report.json"
            results.append(self.convert_file(path, output, report, score))
            self.progress_callback(f"Converted {i}/{len(sources)}", i / len(sources))
        return results


def _remove(path: Path) -> None:
    if path.exists():
        path.unlink()


# ============================================================================
# Convenience Functions
# ============================================================================

def build(
    input_path: Path,
    out_dir: Path,
    options: TranspileOptions | None = None,
    config: Optional[ProjectConfig] = None,
) -> BuildResult:
    """Build a single file or a directory with a default pipeline."""
    pipeline = BuildPipeline(options=options)
    if input_path.is_dir():
        return pipeline.build_directory(input_path, out_dir, config)
    result = BuildResult()
    file_result = pipeline._build_one(input_path, out_dir, input_path.parent)
    result.files.append(file_result)
    if file_result.output:
        result.outputs.append(file_result.output)
    return result
