from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from unoledger import __version__, errors
from unoledger.cli import logging
from unoledger.cli.console import get_console
from unoledger.engine import commitment
from unoledger.server.registry import verify_export
from unoledger.shared.models import SessionExport

app = typer.Typer(name="unoledger", help="Inspect and verify card-game session ledgers.")
console = get_console()


@app.callback()
def main(
    debug: Annotated[
        bool, typer.Option(envvar="UNOLEDGER_DEBUG", show_envvar=False, help="Enable debug mode.")
    ] = False,
) -> None:
    logging.configure_logger(debug)


@app.command(help="Replay an exported session and check its state hash.")
def verify(
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Session export.")],
) -> None:
    try:
        export = SessionExport.from_raw(path.read_bytes())
    except (ValidationError, errors.InvalidDigest) as exc:
        console.error(f"Cannot read session export {path}: {exc}")
        raise typer.Exit(code=2)

    result = verify_export(export)

    console.print(f"Session [accent]{result.session_id}[/], {len(export.actions)} actions")
    console.print(f"Recorded state hash: {result.actual}")
    console.print(f"Replayed state hash: {result.expected or '-'}")

    if result.valid:
        console.success("History is consistent.")
    else:
        console.error(f"History is NOT consistent. {result.reason}")
        raise typer.Exit(code=1)


@app.command(help="Print the action commitment for a move.")
def commit(
    move: Annotated[str, typer.Argument(help="Move payload, e.g. 'red 7'.")],
    salt: Annotated[str, typer.Option(help="Secret salt to hide the move until revealed.")] = "",
) -> None:
    typer.echo(commitment.to_hex(commitment.move_commitment(move, salt)))


@app.command(help="Show version and exit.")
def version() -> None:
    typer.echo(__version__)


def run() -> None:
    app()
