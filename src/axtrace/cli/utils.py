"""CLI utilities."""

import json
from pathlib import Path
from typing import Any

import click

from axtrace.config.loader import load_config
from axtrace.config.models import AxTraceConfig
from axtrace.core.errors import AxTraceError, ConfigError, SnapshotError
from axtrace.mapping.elements import UIElement, normalize_snapshot


def load_snapshot(path: Path) -> list[UIElement]:
    """Read and normalize an accessibility snapshot JSON file.

    Raises:
        click.ClickException: If the file is unreadable or not a valid snapshot.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Cannot read snapshot {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise as_click_error(SnapshotError.invalid(f"not JSON ({e.msg})", path=str(path))) from e
    try:
        return normalize_snapshot(raw)
    except SnapshotError as e:
        raise as_click_error(e) from e


def as_click_error(error: AxTraceError) -> click.ClickException:
    return click.ClickException(str(error))


def load_project_config(project_root: Path, **overrides: Any) -> AxTraceConfig:
    """``load_config`` with config errors reported as CLI errors."""
    try:
        return load_config(project_root, **overrides)
    except ConfigError as e:
        raise as_click_error(e) from e
