"""axt modules command - show the discovered module graph."""

import json
from pathlib import Path

import click
from rich.table import Table

from axtrace.cli.utils import load_project_config
from axtrace.core.progress import get_console, pluralize, status
from axtrace.index import build_module_index


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def modules_command(path: Path, as_json: bool) -> None:
    """Show the modules and source files axtrace discovers.

    PATH is the project root (default: current directory).
    """
    project_root = path.resolve()
    config = load_project_config(project_root)
    index = build_module_index(project_root, extensions=config.index.source_extensions)

    if as_json:
        click.echo(json.dumps(index.to_dict(), indent=2))
        return

    status(
        f"{pluralize(len(index.modules), 'module')} via {index.strategy}, "
        f"{pluralize(len(index.all_files()), 'source file')}",
        style="success",
    )
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("module", style="cyan")
    table.add_column("kind", style="dim")
    table.add_column("files", justify="right")
    table.add_column("depends on")
    for entry in index.modules.values():
        table.add_row(
            entry.name, entry.kind, str(len(entry.sources)), ", ".join(entry.dependencies)
        )
    get_console().print(table)
