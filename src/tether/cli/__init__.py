"""CLI commands for tether.

Provides command-line interface using Typer:
- tether check-names: Classify file names as safe or unsafe to serve
- tether providers: Show which storage provider serves each folder

Usage:
    tether --help
    tether check-names report.pdf setup.exe
    tether providers
"""

import typer

from tether.cli.check_cmd import app as check_app
from tether.cli.providers_cmd import app as providers_app

app = typer.Typer(
    name="tether",
    help="tether: blob attachments with pluggable storage providers",
    no_args_is_help=True,
)

app.add_typer(check_app, name="check-names")
app.add_typer(providers_app, name="providers")


@app.callback()
def callback() -> None:
    """tether: blob attachments with pluggable storage providers."""
    from tether.config import get_settings
    from tether.observability import configure_logging

    settings = get_settings()
    configure_logging(
        json_format=settings.log_format == "json",
        level=settings.log_level,
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
