"""Manta CLI - main commands."""
import asyncio
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..core.exceptions import MantaException

app = typer.Typer(
    name="manta",
    help="Manta object store CLI",
    add_completion=False
)
console = Console()


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def open_client():
    """Client configured from MANTA_* environment variables."""
    from mantapy import AsyncMantaClient

    try:
        return AsyncMantaClient()
    except MantaException as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)


def format_mtime(value: Optional[str]) -> str:
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


@app.command()
def ls(
    path: str = typer.Argument(..., help="Directory to list"),
    long: bool = typer.Option(False, "-l", "--long", help="Long format with details"),
):
    """List a directory."""
    async def list_directory():
        async with open_client() as manta:
            try:
                entries = await manta.list_directory(path)
            except MantaException as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

            if long:
                table = Table()
                table.add_column("Type", style="cyan")
                table.add_column("Size", justify="right")
                table.add_column("Modified")
                table.add_column("Name")

                for entry in entries:
                    is_dir = entry.get("type") == "directory"
                    size = "-" if is_dir else f"{entry.get('size', 0):,}"
                    table.add_row("d" if is_dir else "-", size, format_mtime(entry.get("mtime")), entry["name"])

                console.print(table)
            else:
                for entry in entries:
                    if entry.get("type") == "directory":
                        console.print(f"[blue]{entry['name']}/[/blue]")
                    else:
                        console.print(entry["name"])

    run_async(list_directory())


@app.command()
def get(
    path: str = typer.Argument(..., help="Object to download"),
    output: Path = typer.Option(None, "--output", "-o", help="Local file (default: stdout)"),
):
    """Download an object."""
    async def do_get():
        async with open_client() as manta:
            try:
                result = await manta.get_object(path)
            except MantaException as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

        if output:
            output.write_bytes(result.data)
            console.print(f"[green]Saved {len(result):,} bytes to {output}[/green]")
        else:
            typer.echo(result.data, nl=False)

    run_async(do_get())


@app.command()
def put(
    file_path: Path = typer.Argument(..., help="Local file to upload", exists=True, dir_okay=False),
    path: str = typer.Argument(..., help="Destination object path"),
    parents: bool = typer.Option(False, "-p", "--parents", help="Create missing parent directories"),
):
    """Upload a file."""
    async def do_put():
        async with open_client() as manta:
            try:
                if parents:
                    parent = path.rstrip("/").rsplit("/", 1)[0]
                    await manta.put_directory(parent, make_parents=True)
                await manta.put_file(file_path, path)
            except MantaException as e:
                console.print(f"[red]Upload failed: {e}[/red]")
                raise typer.Exit(1)

        console.print(f"[green]Uploaded {file_path} to {path}[/green]")

    run_async(do_put())


@app.command()
def mkdir(
    path: str = typer.Argument(..., help="Directory to create"),
    parents: bool = typer.Option(False, "-p", "--parents", help="Create missing parent directories"),
):
    """Create a directory."""
    async def do_mkdir():
        async with open_client() as manta:
            try:
                result = await manta.put_directory(path, make_parents=parents)
            except MantaException as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

        console.print(f"[green]Created {path} ({len(result)} request(s))[/green]")

    run_async(do_mkdir())


@app.command()
def rm(
    path: str = typer.Argument(..., help="Object or directory to delete"),
    recursive: bool = typer.Option(False, "-r", "--recursive", help="Delete directories and their contents"),
):
    """Delete an object or directory."""
    async def do_rm():
        async with open_client() as manta:
            try:
                if recursive:
                    result = await manta.delete_directory(path, recursive=True)
                    count = len(result)
                else:
                    await manta.delete(path)
                    count = 1
            except MantaException as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

        console.print(f"[green]Deleted {path} ({count} request(s))[/green]")

    run_async(do_rm())


@app.command()
def info(path: str = typer.Argument(..., help="Object or directory")):
    """Show the headers of an object or directory."""
    async def do_info():
        async with open_client() as manta:
            try:
                result = await manta.head(path)
            except MantaException as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

        table = Table(title=path)
        table.add_column("Header", style="cyan")
        table.add_column("Value")
        for name, value in result.headers.items():
            table.add_row(name, value)
        console.print(table)

    run_async(do_info())


def main():
    app()


if __name__ == "__main__":
    main()
