"""axtrace CLI - axt command."""

import click

from axtrace import __version__
from axtrace.cli.index import index_command
from axtrace.cli.modules import modules_command
from axtrace.cli.scan import explain_command, override_command, scan_command, trace_command
from axtrace.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="axt")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """axtrace - Map live UI elements back to the Swift source that created them."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(modules_command, name="modules")
cli.add_command(index_command, name="index")
cli.add_command(scan_command, name="scan")
cli.add_command(explain_command, name="explain")
cli.add_command(trace_command, name="trace")
cli.add_command(override_command, name="override")


if __name__ == "__main__":
    cli()
