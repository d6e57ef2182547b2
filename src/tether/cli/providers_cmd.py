"""CLI command for inspecting storage provider configuration.

Usage:
    tether providers
    tether providers --folder Invoice.attachment
"""

from __future__ import annotations

import typer

app = typer.Typer(help="Show which storage provider serves each folder")


@app.callback(invoke_without_command=True)
def providers(
    folder: str | None = typer.Option(
        None,
        "--folder",
        help="Only show the provider resolved for this folder",
    ),
) -> None:
    """Print the default provider and the folder mappings from settings."""
    from rich.console import Console
    from rich.table import Table

    from tether.config import get_settings
    from tether.errors import TetherError
    from tether.storage.registry import ProviderRegistry

    console = Console()
    settings = get_settings()

    try:
        registry = ProviderRegistry.from_settings(settings)
    except (ValueError, TetherError) as e:
        console.print(f"[red]Invalid storage configuration:[/red] {e}")
        raise typer.Exit(code=2)

    if folder is not None:
        provider = registry.resolve(folder)
        console.print(f"{folder}: {provider.storage_type}")
        return

    table = Table(title="Blob storage providers")
    table.add_column("Folder")
    table.add_column("Storage")
    default = registry.default
    table.add_row("(default)", default.storage_type if default is not None else "-")
    for name, provider in sorted(registry.folders().items()):
        table.add_row(name, provider.storage_type)
    console.print(table)

    if settings.suppress_persistence:
        console.print("[yellow]Blob persistence is suppressed[/yellow]")
