"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
keeps every test away from the real ~/.config/axtrace.
"""

import os
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local axtrace package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of axtrace modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("axtrace"):
        del sys.modules[module_name]


@pytest.fixture(autouse=True)
def isolated_global_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point the global config directory at an empty temp dir."""
    global_dir = tmp_path_factory.mktemp("global-config")
    monkeypatch.setattr("axtrace.config.loader.GLOBAL_CONFIG_PATH", global_dir / "config.yaml")
    monkeypatch.setattr("axtrace.config.overrides.GLOBAL_CONFIG_DIR", global_dir)
    monkeypatch.setenv("AXTRACE__REGISTRY__FALLBACK_DIR", str(global_dir / "artifacts"))
    for key in list(os.environ):
        if key.startswith("AXTRACE__") and key != "AXTRACE__REGISTRY__FALLBACK_DIR":
            monkeypatch.delenv(key)
    return global_dir


@pytest.fixture
def write_files() -> Callable[[Path, dict[str, str]], Path]:
    """Write ``{relative path: content}`` under a root and return the root."""

    def _write(root: Path, files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _write
