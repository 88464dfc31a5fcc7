"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from kube_certer import __version__
from kube_certer.cli.commands import reconcile, status
from kube_certer.logging.config import configure_logging

app = typer.Typer(
    name="certer",
    help="Issue and renew TLS certificates for Kubernetes ingresses from Vault PKI.",
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"certer version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as JSON lines (for running in a cluster).",
    ),
    log_file: bool = typer.Option(
        True,
        "--log-file/--no-log-file",
        help="Also write logs to ~/.local/state/certer/certer.log.",
    ),
) -> None:
    """certer - keep ingress TLS secrets issued and renewed."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs, log_file=log_file)


app.command()(reconcile.reconcile)
app.command("reconcile-all")(reconcile.reconcile_all)
app.command()(status.status)


if __name__ == "__main__":
    app()
