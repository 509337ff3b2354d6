"""Shared fixtures: a small SwiftUI/UIKit project and its indexes."""

from collections.abc import Callable
from pathlib import Path

import pytest

from axtrace.index._internal.state import MemoryStore
from axtrace.index.models import SourceIndexes
from axtrace.index.ops import build_source_indexes

HOME_VIEW = """import SwiftUI

struct HomeView: View {
    var body: some View {
        VStack {
            Button("Create order") { }
                .accessibilityIdentifier("home.create")
            ForEach(items) { item in
                CardView(item: item)
                    .accessibilityIdentifier("home.card.\\(item.id)")
            }
        }
    }
}
"""

CARD_CELL = """import UIKit

final class CardCell: UICollectionViewCell {
    let titleLabel = UILabel()
}
"""

SETTINGS_VIEW = """import SwiftUI

struct SettingsView: View {
    var body: some View {
        Text("Settings")
    }
}
"""

PROFILE_VIEW = """import SwiftUI

struct ProfileView: View {
    var body: some View {
        Text("Settings")
    }
}
"""

PROJECT_FILES = {
    "App/HomeView.swift": HOME_VIEW,
    "App/CardCell.swift": CARD_CELL,
    "App/SettingsView.swift": SETTINGS_VIEW,
    "App/ProfileView.swift": PROFILE_VIEW,
}


@pytest.fixture
def swift_project(tmp_path: Path, write_files: Callable[[Path, dict[str, str]], Path]) -> Path:
    """A directory-scanned project; its single module is named after the root."""
    root = tmp_path / "Shop"
    root.mkdir()
    return write_files(root, PROJECT_FILES)


@pytest.fixture
def indexes(swift_project: Path) -> SourceIndexes:
    return build_source_indexes(swift_project, store=MemoryStore())
