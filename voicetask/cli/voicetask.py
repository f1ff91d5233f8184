import logging

import typer
from .commands.core import parse, when, config

app = typer.Typer(help="VoiceTask - turn spoken reminders into structured tasks")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def hello() -> None:
    """Sanity check command."""
    typer.echo("VoiceTask is alive.")


# Register core commands
app.command()(parse)
app.command()(when)
app.command()(config)


# Entry point function for the CLI script
def cli() -> None:
    app()
