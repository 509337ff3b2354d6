"""axt scan, explain, trace and override commands - snapshots onto project sources."""

import json
import sys
from pathlib import Path

import click

from axtrace.cli.utils import as_click_error, load_project_config, load_snapshot
from axtrace.config.overrides import OverrideEntry
from axtrace.core.errors import ConfigError, TraceError
from axtrace.core.progress import pluralize, spinner, status
from axtrace.mapping import (
    MatchSession,
    explain_element,
    format_metrics,
    generate_report,
    run_scan,
    validate_critical_mappings,
)
from axtrace.mapping.contract import EnrichedElement
from axtrace.mapping.interaction import DEFAULT_CONTEXT_LINES, format_trace, trace_interaction
from axtrace.mapping.ops import ScanResult

_PROJECT = click.argument(
    "path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
_SNAPSHOT = click.option(
    "--snapshot",
    "-s",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Accessibility snapshot JSON captured from the running app",
)


def _scan(path: Path, snapshot: Path, *, use_registry: bool) -> tuple[ScanResult, MatchSession]:
    project_root = path.resolve()
    config = load_project_config(project_root)
    elements = load_snapshot(snapshot)
    session = MatchSession.load(project_root, config)
    with spinner(f"Mapping {pluralize(len(elements), 'element')}"):
        result = run_scan(
            project_root,
            elements,
            config=config,
            session=session,
            use_registry=use_registry,
        )
    return result, session


def _find_element(result: ScanResult, element_id: str, snapshot: Path) -> EnrichedElement:
    for enriched in result.elements:
        element = enriched.element
        if element_id in (element.id, element.identifier, element.label):
            return enriched
    raise click.ClickException(f"No element '{element_id}' in {snapshot}")


@click.command()
@_PROJECT
@_SNAPSHOT
@click.option("--json", "as_json", is_flag=True, help="Output enriched elements as JSON")
@click.option("--overlay", is_flag=True, help="Output the minimal overlay payload as JSON")
@click.option("--report", is_flag=True, help="Print the full per-element diagnostic report")
@click.option("--validate", is_flag=True, help="Fail when a critical mapping is not met")
@click.option("--no-registry", is_flag=True, help="Skip the identifier registry")
def scan_command(
    path: Path,
    snapshot: Path,
    as_json: bool,
    overlay: bool,
    report: bool,
    validate: bool,
    no_registry: bool,
) -> None:
    """Map every element of a snapshot to a source file and line.

    PATH is the project root (default: current directory).
    """
    result, session = _scan(path, snapshot, use_registry=not no_registry)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif overlay:
        click.echo(json.dumps([e.to_overlay() for e in result.elements], indent=2))
    elif report:
        click.echo(generate_report(result.elements))
    else:
        click.echo(format_metrics(result.metrics))

    if not validate:
        return
    failures = validate_critical_mappings(result.elements, session.critical_mappings)
    if not failures:
        status(
            f"{pluralize(len(session.critical_mappings), 'critical mapping')} satisfied",
            style="success",
        )
        return
    for failure in failures:
        status(
            f"{failure.pattern}: {failure.reason} (min {failure.min_confidence:.0%})",
            style="error",
        )
    sys.exit(1)


@click.command()
@_PROJECT
@_SNAPSHOT
@click.argument("element_id")
@click.option("--no-registry", is_flag=True, help="Skip the identifier registry")
def explain_command(path: Path, snapshot: Path, element_id: str, no_registry: bool) -> None:
    """Explain why ELEMENT_ID mapped where it did.

    ELEMENT_ID may be the element id, its accessibility identifier or label.
    """
    result, session = _scan(path, snapshot, use_registry=not no_registry)
    enriched = _find_element(result, element_id, snapshot)
    click.echo(explain_element(enriched, session.config.matching.boost_factor))


@click.command()
@_PROJECT
@_SNAPSHOT
@click.argument("element_id")
@click.option(
    "--context",
    "context_lines",
    type=click.IntRange(min=0),
    default=DEFAULT_CONTEXT_LINES,
    show_default=True,
    help="Lines searched on each side of the mapped line",
)
@click.option("--json", "as_json", is_flag=True, help="Output the trace as JSON")
@click.option("--no-registry", is_flag=True, help="Skip the identifier registry")
def trace_command(
    path: Path,
    snapshot: Path,
    element_id: str,
    context_lines: int,
    as_json: bool,
    no_registry: bool,
) -> None:
    """Show how ELEMENT_ID is wired to tap, gesture or action handlers.

    ELEMENT_ID may be the element id, its accessibility identifier or label.
    """
    result, _session = _scan(path, snapshot, use_registry=not no_registry)
    enriched = _find_element(result, element_id, snapshot)
    try:
        trace = trace_interaction(enriched, path.resolve(), context_lines=context_lines)
    except TraceError as e:
        raise as_click_error(e) from e
    if as_json:
        click.echo(json.dumps(trace.to_dict(), indent=2))
    else:
        click.echo(format_trace(trace))


@click.command()
@click.argument("pattern")
@click.option(
    "--project",
    "-p",
    "path",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Project root (default: current directory)",
)
@click.option("--file", "file_", required=True, help="Source file, relative to the project root")
@click.option("--line", type=int, default=None, help="Line number (default: 1)")
@click.option("--owner", default=None, help="Owning type name")
@click.option("--module", default=None, help="Module name")
def override_command(
    path: Path,
    pattern: str,
    file_: str,
    line: int | None,
    owner: str | None,
    module: str | None,
) -> None:
    """Pin elements matching PATTERN to a source location.

    The override is saved to <project>/.axtrace/inspector-map.json.
    """
    project_root = path.resolve()
    session = MatchSession.load(project_root, load_project_config(project_root))
    entry = OverrideEntry(pattern=pattern, file=file_, line=line, owner_type=owner, module=module)
    try:
        session.add_runtime_override(entry)
    except ConfigError as e:
        raise as_click_error(e) from e
    saved = session.persist_runtime_overrides()
    status(f"Override {pattern} -> {file_}:{line or 1} saved to {saved}", style="success")
