"""
Command-line interface for NullScript.

Provides commands for:
- Building `.ns` sources into TypeScript or JavaScript
- Running and type-checking NullScript programs
- Converting existing JavaScript/TypeScript to NullScript
- Browsing the keyword table
- Build analytics and system diagnostics
- Managing nsconfig.json

Usage:
    nsc build src/ --outDir dist
    nsc run hello.ns
    nsc convert app.js --report app.report.json
    nsc keywords --category control-flow
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from nullscript import __version__
from nullscript.analytics import PerformanceAnalyzer, complexity_score
from nullscript.config import (
    APP_NAME,
    CHECK_DIR,
    CLI_NAME,
    CONFIG_FILENAME,
    CONVERTIBLE_EXTENSIONS,
    config_path,
    create_default_config,
    load_project_config,
    validate_config_file,
)
from nullscript.diagnostics import collect_diagnostics, summarize_checks
from nullscript.errors import NullScriptError
from nullscript.keywords import Category, get_default_table
from nullscript.pipeline import BuildPipeline, BuildResult, FileResult
from nullscript.toolchain import Toolchain
from nullscript.transpiler import TargetVariant, TranspileOptions
from nullscript.utils import (
    count_lines,
    format_duration,
    format_file_size,
    is_nullscript_file,
    keyword_usage,
    read_source,
)

app = typer.Typer(
    name=CLI_NAME,
    help="NullScript: TypeScript with attitude",
    add_completion=False,
)
config_app = typer.Typer(help="Manage nsconfig.json")
app.add_typer(config_app, name="config")

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{APP_NAME} v{__version__}")
        raise typer.Exit()


def fail(exc: NullScriptError) -> None:
    """Print an engine error and exit with status 1."""
    console.print(exc.format_error(), style="red", markup=False, highlight=False)
    raise typer.Exit(1)


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False, "--verbose",
        help="Enable debug logging",
    ),
):
    """NullScript: TypeScript with attitude."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# Build / Run / Check
# ============================================================================

def _report_build(result: BuildResult) -> None:
    for output in result.outputs:
        console.print(f"[green]✓[/] {output}")
    for failure in result.failures:
        _print_failure(failure)
    skipped = [f for f in result.files if f.skipped]
    if skipped:
        console.print(f"[yellow]Skipped {len(skipped)} files[/]")


def _print_failure(failure: FileResult) -> None:
    if isinstance(failure.error, NullScriptError):
        console.print(failure.error.format_error(), style="red", markup=False, highlight=False)
    else:
        console.print(f"{failure.source}: {failure.error}", style="red", markup=False)


@app.command()
def build(
    path: Path = typer.Argument(
        ...,
        help="NullScript file or directory to build",
    ),
    out_dir: Optional[Path] = typer.Option(
        None, "--outDir", "-o",
        help="Output directory (default: compilerOptions.outDir)",
    ),
    js: bool = typer.Option(
        False, "--js/--ts",
        help="Emit JavaScript instead of TypeScript",
    ),
    skip_type_check: bool = typer.Option(
        False, "--skip-type-check",
        help="Do not run the TypeScript type checker",
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers",
        help="Worker threads for directory builds",
    ),
):
    """Transpile NullScript to TypeScript or JavaScript."""
    if not path.exists():
        console.print(f"[red]Error:[/] {path} does not exist")
        raise typer.Exit(1)

    project_root = Path.cwd()
    try:
        config = load_project_config(project_root)
    except NullScriptError as exc:
        fail(exc)
    out_dir = out_dir or Path(config.compiler_options.out_dir)

    options = TranspileOptions(
        target=TargetVariant.JAVASCRIPT if js else TargetVariant.TYPESCRIPT,
        skip_type_check=skip_type_check,
    )
    pipeline = BuildPipeline(toolchain=Toolchain(), options=options)

    if path.is_file():
        try:
            output = pipeline.build_file(path, out_dir)
        except NullScriptError as exc:
            fail(exc)
        console.print(f"[green]✓[/] {path} → {output}")
        return

    # Only an explicit nsconfig.json narrows what a directory build picks up
    has_config = config_path(project_root).exists()
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Building...", total=100)

        def on_progress(message: str, fraction: float):
            progress.update(task, description=message, completed=fraction * 100)

        pipeline.progress_callback = on_progress
        result = pipeline.build_directory(
            path,
            out_dir,
            config=config if has_config else None,
            max_workers=workers,
            project_root=project_root,
        )

    if not result.files:
        console.print(f"[yellow]No NullScript files found in {path}[/]")
        return

    _report_build(result)
    if not result.success:
        console.print(f"\n[red]Build failed:[/] {len(result.failures)} of {len(result.files)} files")
        raise typer.Exit(1)
    console.print(f"\n[bold green]Built {len(result.outputs)} files into {out_dir}[/]")


@app.command()
def run(
    file: Path = typer.Argument(
        ...,
        help="NullScript file to run",
    ),
    skip_type_check: bool = typer.Option(
        False, "--skip-type-check",
        help="Do not run the TypeScript type checker",
    ),
):
    """Transpile a NullScript file and run it with Node.js."""
    if not file.is_file():
        console.print(f"[red]Error:[/] {file} is not a file")
        raise typer.Exit(1)

    toolchain = Toolchain()
    pipeline = BuildPipeline(
        toolchain=toolchain,
        options=TranspileOptions(target=TargetVariant.JAVASCRIPT, skip_type_check=skip_type_check),
    )
    with tempfile.TemporaryDirectory(prefix="nullscript-run-") as tmp:
        try:
            js_path = pipeline.build_file(file, Path(tmp))
            result = toolchain.run_node(js_path)
        except NullScriptError as exc:
            fail(exc)

    if result.stdout:
        typer.echo(result.stdout, nl=False)
    if not result.ok:
        typer.echo(result.stderr, nl=False, err=True)
        raise typer.Exit(1)


@app.command()
def check(
    path: Path = typer.Argument(
        ...,
        help="NullScript file or directory to type-check",
    ),
):
    """Type-check NullScript without writing build output."""
    if not path.exists():
        console.print(f"[red]Error:[/] {path} does not exist")
        raise typer.Exit(1)

    toolchain = Toolchain()
    pipeline = BuildPipeline(
        toolchain=toolchain,
        options=TranspileOptions(target=TargetVariant.TYPESCRIPT, skip_type_check=True),
    )
    sources = [path] if path.is_file() else pipeline.discover(path)
    root = None if path.is_file() else path
    check_dir = Path.cwd() / CHECK_DIR

    failures: list[NullScriptError] = []
    outputs = []
    try:
        for source in sources:
            try:
                outputs.append(pipeline.build_file(source, check_dir, root))
            except NullScriptError as exc:
                failures.append(exc)
        if outputs:
            try:
                toolchain.type_check(outputs)
            except NullScriptError as exc:
                failures.append(exc)
    finally:
        if check_dir.exists():
            shutil.rmtree(check_dir)

    if failures:
        for exc in failures:
            console.print(exc.format_error(), style="red", markup=False, highlight=False)
        raise typer.Exit(1)
    console.print(f"[green]✓ No errors found[/] ({len(sources)} files checked)")


# ============================================================================
# Convert
# ============================================================================

@app.command()
def convert(
    path: Path = typer.Argument(
        ...,
        help="JavaScript/TypeScript file or directory to convert",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Output file (or directory when converting a directory)",
    ),
    report: Optional[Path] = typer.Option(
        None, "--report",
        help="Write a JSON quality report (a directory when converting a directory)",
    ),
    no_score: bool = typer.Option(
        False, "--no-score",
        help="Skip conversion quality scoring",
    ),
):
    """Convert JavaScript/TypeScript to NullScript."""
    if not path.exists():
        console.print(f"[red]Error:[/] {path} does not exist")
        raise typer.Exit(1)

    pipeline = BuildPipeline()

    if path.is_file():
        if path.suffix not in CONVERTIBLE_EXTENSIONS:
            console.print(
                f"[red]Error:[/] Unsupported file type '{path.suffix}'. "
                f"Expected one of: {', '.join(CONVERTIBLE_EXTENSIONS)}"
            )
            raise typer.Exit(1)
        try:
            result = pipeline.convert_file(path, output, report, score=not no_score)
        except NullScriptError as exc:
            fail(exc)
        console.print(f"[green]Converted:[/] {path} → {result.output}")
        if result.report is not None:
            console.print()
            console.print(result.report.summary(), markup=False)
        if result.report_path is not None:
            console.print(f"\n[green]Saved report to:[/] {result.report_path}")
        return

    try:
        results = pipeline.convert_directory(path, output, report, score=not no_score)
    except NullScriptError as exc:
        fail(exc)
    if not results:
        console.print(f"[yellow]No JavaScript/TypeScript files found in {path}[/]")
        return

    table = Table(title="Conversion Results")
    table.add_column("File", style="cyan")
    table.add_column("Output")
    table.add_column("Confidence", justify="right")
    table.add_column("Assessment")
    for item in results:
        if item.report is None:
            table.add_row(str(item.source), str(item.output), "-", "-")
        else:
            table.add_row(
                str(item.source),
                str(item.output),
                f"{item.report.confidence_score:.1f}%",
                item.report.assessment,
            )
    console.print(table)
    console.print(f"\n[bold green]Converted {len(results)} files[/]")


# ============================================================================
# Keywords
# ============================================================================

@app.command()
def keywords(
    category: Optional[str] = typer.Option(
        None, "--category", "-c",
        help="Show only one category (e.g. control-flow)",
    ),
):
    """Show the NullScript keyword table."""
    table = get_default_table()

    if category:
        selected = Category.from_name(category)
        if selected is None:
            console.print(f"[red]Unknown category:[/] {category}")
            console.print("Valid categories:")
            for c in Category:
                console.print(f"  {c.value}")
            raise typer.Exit(1)
        categories = [selected]
    else:
        categories = list(Category)

    for c in categories:
        if c is Category.TYPE_LIKE_FORBIDDEN_FORMS:
            forms = Table(title=c.title)
            forms.add_column("Form", style="red")
            forms.add_column("Why")
            forms.add_column("Instead", style="green")
            for form in table.forbidden_forms():
                forms.add_row(form.token, form.description, form.hint)
            console.print(forms)
            continue

        entries = table.by_category(c)
        if not entries:
            continue
        view = Table(title=c.title)
        view.add_column("NullScript", style="cyan")
        view.add_column("TypeScript", style="green")
        view.add_column("Notes", style="dim")
        for entry in entries:
            canonical = f"{entry.receiver}.{entry.canonical}" if entry.receiver else entry.canonical
            view.add_row(entry.alias, canonical, entry.notes)
        console.print(view)

    if not category:
        console.print(f"\n[dim]{len(table)} aliases, keyword table v{table.version}[/]")


# ============================================================================
# Analyze / Info
# ============================================================================

@app.command()
def analyze(
    path: Path = typer.Argument(
        ...,
        help="NullScript file or directory to analyze",
    ),
    json_out: Optional[Path] = typer.Option(
        None, "--json",
        help="Save the report as JSON",
    ),
):
    """Analyze transpile performance and bundle size."""
    if not path.exists():
        console.print(f"[red]Error:[/] {path} does not exist")
        raise typer.Exit(1)

    analyzer = PerformanceAnalyzer()
    if path.is_file():
        analyzer.analyze_file(path)
    else:
        analyzer.analyze_directory(path)
    report = analyzer.finish()

    if not report.files:
        console.print(f"[yellow]No NullScript files found in {path}[/]")
        return

    table = Table(title="Performance Analysis")
    table.add_column("File", style="cyan")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Complexity", justify="right")
    for m in report.files:
        table.add_row(
            m.file_path,
            format_file_size(m.input_size_bytes),
            format_file_size(m.output_size_bytes) if m.success else "[red]failed[/]",
            format_duration(m.transpile_time_ms),
            f"{m.complexity_score:.2f}",
        )
    console.print(table)

    console.print(f"\n[bold]Files:[/] {report.file_count} ({len(report.failed_files)} failed)")
    console.print(
        f"[bold]Total size:[/] {format_file_size(report.total_input_bytes)} → "
        f"{format_file_size(report.total_output_bytes)} (ratio {report.size_ratio:.2f})"
    )
    console.print(f"[bold]Transpile time:[/] {format_duration(report.total_transpile_time_ms)}")

    for failed in report.failed_files:
        console.print(f"✗ {failed.file_path}: {failed.error}", style="red", markup=False)

    if report.suggestions:
        console.print("\n[bold cyan]Suggestions:[/]")
        for s in report.suggestions:
            console.print(f"  [{s.priority}] {s.description}", markup=False)

    if json_out:
        report.save(json_out)
        console.print(f"\n[green]Saved report to:[/] {json_out}")


@app.command()
def info(
    path: Path = typer.Argument(
        ...,
        help="File or directory to describe",
    ),
    detailed: bool = typer.Option(
        False, "--detailed", "-d",
        help="Show keyword usage and per-file details",
    ),
):
    """Show facts about a NullScript file or project directory."""
    if not path.exists():
        console.print(f"[red]Error:[/] {path} does not exist")
        raise typer.Exit(1)

    table = Table(title=f"Info: {path}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    if path.is_file():
        stat = path.stat()
        table.add_row("Type", "NullScript source" if is_nullscript_file(path) else "File")
        table.add_row("Size", format_file_size(stat.st_size))
        table.add_row("Lines", str(count_lines(path)))
        table.add_row("Modified", datetime.fromtimestamp(stat.st_mtime).isoformat(timespec="seconds"))
        console.print(table)

        if detailed and is_nullscript_file(path):
            try:
                source = read_source(path)
            except NullScriptError as exc:
                fail(exc)
            console.print(f"\n[bold]Complexity:[/] {complexity_score(source):.2f}")
            usage = keyword_usage(source)
            if usage:
                kw = Table(title="Keyword Usage")
                kw.add_column("Keyword", style="cyan")
                kw.add_column("TypeScript", style="green")
                kw.add_column("Count", justify="right")
                lookup = get_default_table()
                for word, count in usage.most_common():
                    kw.add_row(word, lookup.lookup(word) or "", str(count))
                console.print(kw)
        return

    files = [p for p in path.rglob("*") if p.is_file() and "node_modules" not in p.parts]
    sources = sorted(p for p in files if is_nullscript_file(p))
    table.add_row("Type", "Directory")
    table.add_row("Files", str(len(files)))
    table.add_row("NullScript files", str(len(sources)))
    table.add_row("NullScript size", format_file_size(sum(p.stat().st_size for p in sources)))
    table.add_row("NullScript lines", str(sum(count_lines(p) for p in sources)))
    table.add_row("Config", CONFIG_FILENAME if (path / CONFIG_FILENAME).exists() else "none")
    console.print(table)

    if detailed and sources:
        listing = Table(title="NullScript Files")
        listing.add_column("File", style="cyan")
        listing.add_column("Size", justify="right")
        listing.add_column("Lines", justify="right")
        for p in sources:
            listing.add_row(str(p.relative_to(path)), format_file_size(p.stat().st_size), str(count_lines(p)))
        console.print(listing)


@app.command()
def system():
    """Check the environment: Node.js, TypeScript and project configuration."""
    checks = collect_diagnostics(Path.cwd(), Toolchain())

    icons = {"ok": "[green]✓[/]", "warn": "[yellow]![/]", "error": "[red]✗[/]"}
    table = Table(title="NullScript System Check")
    table.add_column("", width=2)
    table.add_column("Check", style="cyan")
    table.add_column("Detail")
    for c in checks:
        table.add_row(icons.get(c.status, c.status), c.name, c.detail)
    console.print(table)

    summary = summarize_checks(checks)
    console.print(
        f"\n[green]{summary['ok']} ok[/], "
        f"[yellow]{summary['warn']} warnings[/], "
        f"[red]{summary['error']} errors[/]"
    )


# ============================================================================
# Config
# ============================================================================

@config_app.command("init")
def config_init(
    force: bool = typer.Option(
        False, "--force", "-f",
        help="Overwrite an existing nsconfig.json",
    ),
):
    """Create a default nsconfig.json in the current directory."""
    try:
        path = create_default_config(Path.cwd(), overwrite=force)
    except NullScriptError as exc:
        fail(exc)
    console.print(f"[green]Created:[/] {path}")


@config_app.command("validate")
def config_validate(
    path: Optional[Path] = typer.Argument(
        None,
        help="Configuration file (default: ./nsconfig.json)",
    ),
):
    """Validate an nsconfig.json file."""
    target = path or config_path(Path.cwd())
    try:
        validate_config_file(target)
    except NullScriptError as exc:
        fail(exc)
    console.print(f"[green]✓ Valid:[/] {target}")


@config_app.command("show")
def config_show():
    """Show the effective project configuration."""
    try:
        config = load_project_config(Path.cwd())
    except NullScriptError as exc:
        fail(exc)
    source = config.source_path or "defaults"
    console.print(f"[dim]Source: {source}[/]")
    console.print_json(config.to_json())


if __name__ == "__main__":
    app()
