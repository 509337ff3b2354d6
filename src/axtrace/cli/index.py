"""axt index command - build (or refresh) the source index cache."""

import json
from pathlib import Path

import click

from axtrace.cli.utils import load_project_config
from axtrace.config.loader import get_state_dir
from axtrace.core.progress import spinner, status
from axtrace.index import JsonFileStore, build_source_indexes, summarize_indexes


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--no-cache", is_flag=True, help="Ignore and do not write the index cache")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def index_command(path: Path, no_cache: bool, as_json: bool) -> None:
    """Build the type, identifier and label indexes for a project.

    PATH is the project root (default: current directory).
    """
    project_root = path.resolve()
    overrides = {"index": {"use_cache": False}} if no_cache else {}
    config = load_project_config(project_root, **overrides)
    store = JsonFileStore(get_state_dir(project_root, config))

    with spinner("Indexing sources"):
        indexes = build_source_indexes(project_root, store=store, config=config)
    summary = summarize_indexes(indexes)

    if as_json:
        click.echo(json.dumps(summary, indent=2))
        return

    status(
        f"{summary['files']} files in {summary['modules']} modules ({summary['strategy']})",
        style="success",
    )
    status(f"Types: {summary['type_keys']}", indent=2)
    status(
        f"Identifiers: {summary['identifier_keys']} (+{summary['pattern_count']} patterns)",
        indent=2,
    )
    status(f"Labels: {summary['label_keys']}", indent=2)
