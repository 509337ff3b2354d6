"""Directory exclusion rules for source discovery.

Tier 0 (hidden directories): anything starting with a dot is never traversed.
    - VCS internals, SwiftPM's .build, .swiftpm, our own .axtrace state

Tier 1 (PRUNABLE_DIRS): build output and vendored dependency folders.
    - Matched case-insensitively; macOS file systems usually are.
"""

from __future__ import annotations

PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # -------------------------------------------------------------------------
        # Xcode build output
        # -------------------------------------------------------------------------
        "build",
        "deriveddata",
        # -------------------------------------------------------------------------
        # Dependency managers
        # -------------------------------------------------------------------------
        "pods",  # CocoaPods
        "carthage",
        "sourcepackages",  # SwiftPM checkouts under DerivedData or -clonedSourcePackagesDirPath
        "node_modules",  # React Native / tooling
        # -------------------------------------------------------------------------
        # Misc caches
        # -------------------------------------------------------------------------
        "__pycache__",
    )
)

# Bundles that belong to third-party dependency managers, never to the app.
THIRD_PARTY_BUNDLE_MARKERS: tuple[str, ...] = ("pods", "carthage", "sourcepackages", ".build")


def is_prunable_dir(dirname: str) -> bool:
    """True for hidden directories and known build/dependency folders."""
    return dirname.startswith(".") or dirname.lower() in PRUNABLE_DIRS


def is_third_party_path(rel_path: str) -> bool:
    """True when any segment of a relative path points into a dependency manager."""
    segments = [s.lower() for s in rel_path.replace("\\", "/").split("/")]
    for segment in segments:
        stem = segment.rsplit(".", 1)[0] if segment.endswith(".xcodeproj") else segment
        if stem in THIRD_PARTY_BUNDLE_MARKERS:
            return True
    return False
