import logging
from typing import Annotated

import typer

from release_gen.cli.generate import generate
from release_gen.cli.plan import inspect, plan

app = typer.Typer(
    name="release-gen",
    help="release-gen: synthesize close/aclose/finalizer release protocols for resource-owning classes.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="Increase log verbosity.")] = 0,
) -> None:
    level = logging.WARNING - 10 * min(verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


app.command("generate")(generate)
app.command("plan")(plan)
app.command("inspect")(inspect)


def main() -> None:
    app()
