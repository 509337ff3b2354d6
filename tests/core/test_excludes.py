"""Tests for directory exclusion rules."""

import pytest

from axtrace.core.excludes import is_prunable_dir, is_third_party_path


class TestIsPrunableDir:
    @pytest.mark.parametrize(
        "name", [".git", ".build", ".axtrace", "build", "DerivedData", "Pods", "Carthage"]
    )
    def test_pruned(self, name: str) -> None:
        assert is_prunable_dir(name)

    @pytest.mark.parametrize("name", ["Sources", "App", "Features", "buildtools"])
    def test_kept(self, name: str) -> None:
        assert not is_prunable_dir(name)


class TestIsThirdPartyPath:
    @pytest.mark.parametrize(
        "path",
        [
            "Pods/Pods.xcodeproj",
            "vendor/Carthage/Checkouts/Lib/Lib.xcodeproj",
            "DerivedData/SourcePackages/checkouts/x",
            ".build/checkouts/swift-log",
        ],
    )
    def test_dependency_manager_paths(self, path: str) -> None:
        assert is_third_party_path(path)

    def test_app_project(self) -> None:
        assert not is_third_party_path("App/App.xcodeproj")
