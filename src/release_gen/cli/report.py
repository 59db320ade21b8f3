from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from release_gen.core.pipeline import GenerationFailure

console = Console()


def render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]], title: str | None = None) -> None:
    table = Table(title=title, show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def render_failures(failures: Sequence[GenerationFailure]) -> None:
    render_table(
        ["class", "kind", "message"],
        [(f.qualified_name, f.kind, f.message) for f in failures],
        title="[red]Failed classes[/red]",
    )
