from dataclasses import replace
from pathlib import Path
from typing import Annotated

import typer

from release_gen.cli.report import console, render_failures
from release_gen.config import GeneratorSettings, get_settings
from release_gen.core.errors import SourceError
from release_gen.core.frontend import ScanResult
from release_gen.core.pipeline import generate_all
from release_gen.core.sources import load_models


def resolve_settings(no_async: bool) -> GeneratorSettings:
    settings = get_settings()
    return replace(settings, async_release=False) if no_async else settings


def load_or_exit(paths: list[Path], settings: GeneratorSettings) -> ScanResult:
    try:
        return load_models(paths, settings)
    except SourceError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _default_out(paths: list[Path]) -> Path:
    first = paths[0]
    return first if first.is_dir() else first.parent


def generate(
    paths: Annotated[list[Path], typer.Argument(help="Directories, .py files or JSON class model documents.")],
    out: Annotated[Path | None, typer.Option(help="Output directory (defaults to the first input's directory).")] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print generated modules instead of writing them.")] = False,
    jobs: Annotated[int, typer.Option(min=1, help="Number of classes generated in parallel.")] = 1,
    no_async: Annotated[bool, typer.Option("--no-async", help="Target an environment without async release.")] = False,
) -> None:
    """Generate release protocol modules for every candidate class."""
    settings = resolve_settings(no_async)
    scan = load_or_exit(paths, settings)
    report = generate_all(scan.models, settings, jobs=jobs)
    target = out or _default_out(paths)

    for unit in report.units:
        if dry_run:
            console.rule(unit.path)
            console.out(unit.text, end="", highlight=False)
            continue
        destination = target / unit.path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(unit.text, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {destination}")

    failures = [*scan.failures, *report.failures]
    if failures:
        render_failures(failures)
        raise typer.Exit(code=1)
    console.print(f"[green]Generated[/green] {len(report.units)} module(s)")
