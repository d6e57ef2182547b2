"""CLI command for checking uploaded file names.

Usage:
    tether check-names report.pdf setup.exe
    tether check-names --format json "../etc/passwd"
"""

from __future__ import annotations

from typing import TypedDict

import typer

from tether.safety import file_extension, is_unsafe_extension, to_safe_file_name


class NameCheck(TypedDict):
    name: str
    safe_name: str | None
    extension: str
    unsafe: bool


app = typer.Typer(help="Classify file names as safe or unsafe to serve")


@app.callback(invoke_without_command=True)
def check_names(
    names: list[str] = typer.Argument(
        ...,
        help="File names to check",
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: text, json",
    ),
) -> None:
    """Check file names against the unsafe extension list.

    Exits with code 1 when any name has an unsafe extension.
    """
    import json

    from rich.console import Console
    from rich.table import Table

    console = Console()

    results: list[NameCheck] = []
    for name in names:
        safe_name = to_safe_file_name(name)
        results.append(
            {
                "name": name,
                "safe_name": safe_name,
                "extension": file_extension(safe_name),
                "unsafe": is_unsafe_extension(name),
            }
        )

    if output_format == "json":
        console.print_json(json.dumps(results))
    else:
        table = Table(title="File name check")
        table.add_column("Name")
        table.add_column("Stored as")
        table.add_column("Extension")
        table.add_column("Status")
        for result in results:
            status = "[red]UNSAFE[/red]" if result["unsafe"] else "[green]ok[/green]"
            table.add_row(
                result["name"],
                result["safe_name"] or "",
                result["extension"],
                status,
            )
        console.print(table)

    unsafe_count = sum(1 for result in results if result["unsafe"])
    if unsafe_count:
        if output_format != "json":
            console.print(f"[red]{unsafe_count} of {len(results)} name(s) unsafe[/red]")
        raise typer.Exit(code=1)
