from pathlib import Path
from typing import Annotated

import typer

from release_gen.cli.generate import load_or_exit, resolve_settings
from release_gen.cli.report import console, render_failures, render_table
from release_gen.core.errors import ReleaseGenError
from release_gen.core.pipeline import GenerationFailure
from release_gen.core.planner import build_plan
from release_gen.models import ClassModelSet

_PLAN_HEADERS = [
    "class",
    "sealed",
    "members",
    "async",
    "finalizer",
    "close()",
    "_release()",
    "aclose()",
    "_aclose_core()",
]


def _flag(value: bool) -> str:
    return "yes" if value else "-"


def plan(
    paths: Annotated[list[Path], typer.Argument(help="Directories, .py files or JSON class model documents.")],
    no_async: Annotated[bool, typer.Option("--no-async", help="Target an environment without async release.")] = False,
) -> None:
    """Show the generation plan of every candidate class."""
    settings = resolve_settings(no_async)
    scan = load_or_exit(paths, settings)
    failures = list(scan.failures)
    rows = []

    for model in scan.models:
        try:
            generation_plan = build_plan(model, settings)
        except ReleaseGenError as exc:
            failures.append(GenerationFailure(model.qualified_name, exc.kind, str(exc)))
            continue
        rows.append(
            (
                generation_plan.qualified_name,
                _flag(generation_plan.is_sealed),
                ", ".join(generation_plan.member_names) or "-",
                _flag(generation_plan.needs_async_surface),
                _flag(generation_plan.needs_finalizer),
                _flag(generation_plan.emit_own_sync_entry_point),
                _flag(generation_plan.emit_extensible_sync_hook),
                _flag(generation_plan.needs_async_surface and generation_plan.emit_own_async_entry_point),
                _flag(generation_plan.needs_async_surface and generation_plan.emit_extensible_async_core),
            )
        )

    render_table(_PLAN_HEADERS, rows)
    if failures:
        render_failures(failures)
        raise typer.Exit(code=1)


def inspect(
    paths: Annotated[list[Path], typer.Argument(help="Directories or .py files to scan.")],
) -> None:
    """Print the class models built from the inputs as JSON."""
    scan = load_or_exit(paths, resolve_settings(no_async=False))
    console.out(ClassModelSet(classes=scan.models).model_dump_json(indent=2), highlight=False)
    if scan.failures:
        render_failures(scan.failures)
        raise typer.Exit(code=1)
