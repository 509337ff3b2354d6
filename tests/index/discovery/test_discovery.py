"""Tests for module discovery strategies and their ordering."""

from collections.abc import Callable
from pathlib import Path

import pytest

from axtrace.core.errors import ManifestError
from axtrace.index._internal.discovery import (
    DirectoryScanStrategy,
    SwiftPackageStrategy,
    WorkspaceStrategy,
    XcodeGenStrategy,
    XcodeProjectStrategy,
    build_module_index,
)
from axtrace.index._internal.discovery.files import resolve_source_spec
from axtrace.index._internal.discovery.package import parse_package_targets

WriteFiles = Callable[[Path, dict[str, str]], Path]

PBXPROJ = """// !$*UTF8*$!
{
    archiveVersion = 1;
    objects = {
        ROOT = { isa = PBXProject; mainGroup = MAIN; targets = ( T1, T2 ); };
        MAIN = { isa = PBXGroup; children = ( APPG, FEATG ); sourceTree = "<group>"; };
        APPG = { isa = PBXGroup; children = ( F1 ); path = App; sourceTree = "<group>"; };
        F1 = { isa = PBXFileReference; path = AppDelegate.swift; sourceTree = "<group>"; };
        FEATG = { isa = PBXGroup; children = ( HOMEG ); path = Features; sourceTree = "<group>"; };
        HOMEG = { isa = PBXGroup; children = ( F2, F3 ); path = Home; sourceTree = "<group>"; };
        F2 = { isa = PBXFileReference; path = HomeView.swift; sourceTree = "<group>"; };
        F3 = { isa = PBXFileReference; path = Home.xib; sourceTree = "<group>"; };
        BF1 = { isa = PBXBuildFile; fileRef = F1; };
        BF2 = { isa = PBXBuildFile; fileRef = F2; };
        BF3 = { isa = PBXBuildFile; fileRef = F3; };
        P1 = { isa = PBXSourcesBuildPhase; files = ( BF1, BF2, BF3 ); };
        T1 = {
            isa = PBXNativeTarget;
            name = App;
            buildPhases = ( P1 );
            dependencies = ( D1 );
            productType = "com.apple.product-type.application";
        };
        T2 = {
            isa = PBXNativeTarget;
            name = Kit;
            buildPhases = ( );
            dependencies = ( );
            productType = "com.apple.product-type.framework";
        };
        D1 = { isa = PBXTargetDependency; target = T2; };
    };
    rootObject = ROOT;
}
"""

PACKAGE_SWIFT = """// swift-tools-version:5.9
import PackageDescription

let package = Package(
    name: "Shop",
    products: [
        .library(name: "ShopKit", targets: ["ShopKit"]),
    ],
    targets: [
        .target(
            name: "ShopKit",
            dependencies: [.product(name: "Collections", package: "swift-collections")]
        ),
        .executableTarget(name: "ShopApp", dependencies: ["ShopKit"], path: "App"),
        .testTarget(name: "ShopKitTests", dependencies: ["ShopKit"]),
    ]
)
"""

PROJECT_YML = """name: Shop
targets:
  Shop:
    type: application
    sources: [App]
    dependencies:
      - target: UIKitBits
      - package: Networking
  UIKitBits:
    type: framework
    sources:
      - path: Modules/UIKitBits/**
"""

WORKSPACE = """<?xml version="1.0" encoding="UTF-8"?>
<Workspace version = "1.0">
   <FileRef location = "group:App/App.xcodeproj"></FileRef>
   <FileRef location = "group:Pods/Pods.xcodeproj"></FileRef>
</Workspace>
"""


class TestXcodeGen:
    def test_targets_sources_and_dependencies(self, tmp_path: Path, write_files: WriteFiles) -> None:
        write_files(
            tmp_path,
            {
                "project.yml": PROJECT_YML,
                "App/ShopApp.swift": "",
                "App/Resources/Strings.txt": "",
                "Modules/UIKitBits/Button.swift": "",
            },
        )

        modules = {m.name: m for m in XcodeGenStrategy().discover(tmp_path) or []}

        assert modules["Shop"].sources == ("App/ShopApp.swift",)
        assert modules["Shop"].dependencies == ("UIKitBits", "Networking")
        assert modules["Shop"].kind == "application"
        assert modules["UIKitBits"].sources == ("Modules/UIKitBits/Button.swift",)
        assert modules["UIKitBits"].kind == "framework"

    def test_missing_manifest_does_not_apply(self, tmp_path: Path) -> None:
        assert XcodeGenStrategy().discover(tmp_path) is None


class TestSwiftPackage:
    def test_parse_targets(self) -> None:
        targets = parse_package_targets(PACKAGE_SWIFT)

        assert targets == [
            ("target", "ShopKit", ["Collections"], None),
            ("executableTarget", "ShopApp", ["ShopKit"], "App"),
            ("testTarget", "ShopKitTests", ["ShopKit"], None),
        ]

    def test_default_source_directories(self, tmp_path: Path, write_files: WriteFiles) -> None:
        write_files(
            tmp_path,
            {
                "Package.swift": PACKAGE_SWIFT,
                "Sources/ShopKit/Cart.swift": "",
                "App/main.swift": "",
                "Tests/ShopKitTests/CartTests.swift": "",
            },
        )

        modules = {m.name: m for m in SwiftPackageStrategy().discover(tmp_path) or []}

        assert modules["ShopKit"].sources == ("Sources/ShopKit/Cart.swift",)
        assert modules["ShopKit"].kind == "library"
        assert modules["ShopApp"].sources == ("App/main.swift",)
        assert modules["ShopApp"].kind == "executable"
        assert modules["ShopKitTests"].sources == ("Tests/ShopKitTests/CartTests.swift",)
        assert modules["ShopKitTests"].kind == "test"


class TestXcodeProject:
    def test_paths_rebuilt_from_group_hierarchy(self, tmp_path: Path, write_files: WriteFiles) -> None:
        write_files(tmp_path, {"Shop.xcodeproj/project.pbxproj": PBXPROJ})

        modules = {m.name: m for m in XcodeProjectStrategy().discover(tmp_path) or []}

        assert modules["App"].sources == (
            "App/AppDelegate.swift",
            "Features/Home/HomeView.swift",
        )
        assert modules["App"].dependencies == ("Kit",)
        assert modules["App"].kind == "application"
        assert modules["Kit"].sources == ()
        assert modules["Kit"].kind == "framework"


class TestWorkspace:
    def test_referenced_projects_relative_to_root(
        self, tmp_path: Path, write_files: WriteFiles
    ) -> None:
        write_files(
            tmp_path,
            {
                "Shop.xcworkspace/contents.xcworkspacedata": WORKSPACE,
                "App/App.xcodeproj/project.pbxproj": PBXPROJ,
                "Pods/Pods.xcodeproj/project.pbxproj": PBXPROJ,
            },
        )

        modules = {m.name: m for m in WorkspaceStrategy().discover(tmp_path) or []}

        assert modules["App"].sources == (
            "App/App/AppDelegate.swift",
            "App/Features/Home/HomeView.swift",
        )


class TestDirectoryScan:
    def test_single_module_with_pruning(self, tmp_path: Path, write_files: WriteFiles) -> None:
        write_files(
            tmp_path,
            {
                "Sources/A.swift": "",
                "build/Generated.swift": "",
                ".hidden/X.swift": "",
                "Pods/Lib/P.swift": "",
                "notes.txt": "",
            },
        )

        (module,) = DirectoryScanStrategy().discover(tmp_path)

        assert module.name == tmp_path.name
        assert module.sources == ("Sources/A.swift",)


class TestBuildModuleIndex:
    def test_first_applicable_strategy_wins(self, tmp_path: Path, write_files: WriteFiles) -> None:
        write_files(
            tmp_path,
            {
                "project.yml": PROJECT_YML,
                "Package.swift": PACKAGE_SWIFT,
                "App/ShopApp.swift": "",
            },
        )

        index = build_module_index(tmp_path)

        assert index.strategy == "xcodegen"
        assert index.module_for_file("App/ShopApp.swift") == "Shop"
        assert index.module_for_file("./App/ShopApp.swift") == "Shop"

    def test_strategy_without_sources_is_skipped(
        self, tmp_path: Path, write_files: WriteFiles
    ) -> None:
        write_files(
            tmp_path,
            {
                "project.yml": "targets:\n  Empty:\n    sources: [Missing]\n",
                "Package.swift": PACKAGE_SWIFT,
                "App/main.swift": "",
            },
        )

        index = build_module_index(tmp_path)

        assert index.strategy == "swiftpm"
        assert index.module_for_file("App/main.swift") == "ShopApp"

    @pytest.mark.parametrize(
        "manifest",
        ["targets: [a, b", "targets:\n  - not a mapping\n", "- just\n- a list\n"],
    )
    def test_malformed_manifest_falls_back(
        self, tmp_path: Path, write_files: WriteFiles, manifest: str
    ) -> None:
        write_files(tmp_path, {"project.yml": manifest, "Sources/A.swift": ""})

        index = build_module_index(tmp_path)

        assert index.strategy == "directory_scan"
        assert index.all_files() == ["Sources/A.swift"]

    @pytest.mark.parametrize(
        "manifest",
        [
            "targets:\n  App:\n    type: 5\n    sources: [Sources]\n",
            "targets:\n  App:\n    type: [application]\n    sources: [Sources]\n",
            "targets:\n  App:\n    sources: 5\n",
        ],
    )
    def test_wrong_value_types_fall_back(
        self, tmp_path: Path, write_files: WriteFiles, manifest: str
    ) -> None:
        write_files(tmp_path, {"project.yml": manifest, "Sources/A.swift": ""})

        with pytest.raises(ManifestError):
            XcodeGenStrategy().discover(tmp_path)
        index = build_module_index(tmp_path)

        assert index.strategy == "directory_scan"
        assert index.all_files() == ["Sources/A.swift"]

    @pytest.mark.parametrize(
        ("original", "broken"),
        [
            ("mainGroup = MAIN;", "projectDirPath = ( a, b ); mainGroup = MAIN;"),
            ("path = Features;", "path = ( Features );"),
            ('productType = "com.apple.product-type.framework";', "productType = ( framework );"),
            ("children = ( F2, F3 );", "children = ( { path = X; } );"),
        ],
    )
    def test_wrong_pbxproj_value_types_fall_back(
        self, tmp_path: Path, write_files: WriteFiles, original: str, broken: str
    ) -> None:
        assert original in PBXPROJ
        write_files(
            tmp_path,
            {
                "Shop.xcodeproj/project.pbxproj": PBXPROJ.replace(original, broken),
                "Sources/A.swift": "",
            },
        )

        index = build_module_index(tmp_path)

        assert index.strategy == "directory_scan"
        assert index.all_files() == ["Sources/A.swift"]

    def test_empty_project(self, tmp_path: Path) -> None:
        index = build_module_index(tmp_path)

        assert index.strategy == "directory_scan"
        assert index.all_files() == []


class TestResolveSourceSpec:
    def test_glob_filters_full_walk(self, tmp_path: Path, write_files: WriteFiles) -> None:
        write_files(
            tmp_path,
            {"Features/Home/HomeView.swift": "", "Features/Cart/CartView.swift": ""},
        )

        assert resolve_source_spec(tmp_path, "Features/*/Home*.swift") == [
            "Features/Home/HomeView.swift"
        ]
        assert resolve_source_spec(tmp_path, "Features/Cart/CartView.swift") == [
            "Features/Cart/CartView.swift"
        ]
        assert resolve_source_spec(tmp_path, "Missing") == []
