"""Normalization of captured accessibility snapshots into ``UIElement`` inputs.

Accepts the nested JSON emitted by AXe-style capture tools::

    [{"type": "Button", "AXUniqueId": "home.create", "AXLabel": "Create",
      "frame": {"x": 0, "y": 0, "width": 44, "height": 44},
      "AXTraits": "Button", "enabled": true, "children": [...]}]

and flattens it depth-first, recording each element's parent id.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from axtrace.core.errors import SnapshotError

TYPE_MAP: dict[str, str] = {
    "Application": "UIApplication",
    "Window": "UIWindow",
    "GenericElement": "UIView",
    "Button": "UIButton",
    "StaticText": "UILabel",
    "Image": "UIImageView",
    "TextField": "UITextField",
    "SecureTextField": "UITextField",
    "TextView": "UITextView",
    "ScrollView": "UIScrollView",
    "Table": "UITableView",
    "Cell": "UITableViewCell",
    "CollectionView": "UICollectionView",
    "NavigationBar": "UINavigationBar",
    "TabBar": "UITabBar",
    "Toolbar": "UIToolbar",
    "SearchField": "UISearchBar",
    "Switch": "UISwitch",
    "Slider": "UISlider",
    "Stepper": "UIStepper",
    "ProgressIndicator": "UIProgressView",
    "ActivityIndicator": "UIActivityIndicatorView",
    "PageIndicator": "UIPageControl",
    "Picker": "UIPickerView",
    "DatePicker": "UIDatePicker",
    "Map": "MKMapView",
    "WebView": "WKWebView",
    "SegmentedControl": "UISegmentedControl",
    "Alert": "UIAlertController",
    "Sheet": "UIAlertController",
    "Heading": "UILabel",
    "Link": "UIButton",
    "Group": "UIView",
}
DEFAULT_CLASS = "UIView"

# Trait phrase → capability flag
TRAIT_CAPABILITIES: dict[str, str] = {
    "button": "isButton",
    "link": "isLink",
    "header": "isHeader",
    "searchfield": "isSearchField",
    "image": "isImage",
    "selected": "isSelected",
    "plays sound": "playsSound",
    "keyboard key": "isKeyboardKey",
    "static text": "isStaticText",
    "summary element": "isSummaryElement",
    "not enabled": "isNotEnabled",
    "updates frequently": "updatesFrequently",
    "starts media session": "startsMediaSession",
    "adjustable": "isAdjustable",
    "allows direct interaction": "allowsDirectInteraction",
    "causes page turn": "causesPageTurn",
    "tab bar": "isTabBar",
    "text entry": "isTextEntry",
}


@dataclass(frozen=True, slots=True)
class Frame:
    """Element geometry in points."""

    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True, slots=True)
class UIElement:
    """One captured UI node, immutable for the duration of a scan."""

    id: str
    class_name: str
    element_type: str = "GenericElement"
    identifier: str = ""
    label: str = ""
    name: str = ""
    frame: Frame = field(default_factory=Frame)
    enabled: bool = True
    parent_id: str | None = None
    traits: str = ""
    capabilities: tuple[str, ...] = ()
    value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "className": self.class_name,
            "type": self.element_type,
            "identifier": self.identifier,
            "label": self.label,
            "name": self.name,
            "frame": self.frame.to_dict(),
            "enabled": self.enabled,
            "parentId": self.parent_id,
            "traits": self.traits,
            "capabilities": list(self.capabilities),
            "value": self.value,
        }


def parse_traits(traits: Any) -> tuple[str, ...]:
    """Capability flags named by a free-text trait description."""
    if not traits:
        return ()
    if isinstance(traits, list):
        traits = " ".join(str(t) for t in traits)
    if not isinstance(traits, str):
        return ()
    lower = traits.lower()
    return tuple(cap for phrase, cap in TRAIT_CAPABILITIES.items() if phrase in lower)


def _parse_frame(raw: Any, path: str) -> Frame:
    if not raw:
        return Frame()
    if not isinstance(raw, dict):
        raise SnapshotError.invalid("frame is not an object", path=path)
    try:
        return Frame(
            x=round(float(raw.get("x", 0)), 2),
            y=round(float(raw.get("y", 0)), 2),
            w=round(float(raw.get("width", raw.get("w", 0))), 2),
            h=round(float(raw.get("height", raw.get("h", 0))), 2),
        )
    except (TypeError, ValueError) as e:
        raise SnapshotError.invalid(f"non-numeric frame value ({e})", path=path) from e


def _text(node: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = node.get(key)
        if value:
            return str(value)
    return ""


class _Flattener:
    def __init__(self) -> None:
        self.anon_count = 0

    def walk(
        self, nodes: list[Any], parent_id: str | None, path: str
    ) -> Iterator[UIElement]:
        for i, node in enumerate(nodes):
            node_path = f"{path}[{i}]"
            if not isinstance(node, dict):
                raise SnapshotError.invalid("element is not an object", path=node_path)
            element = self.transform(node, parent_id, node_path)
            yield element
            children = node.get("children") or []
            if not isinstance(children, list):
                raise SnapshotError.invalid("children is not a list", path=node_path)
            yield from self.walk(children, element.id, f"{node_path}.children")

    def transform(self, node: dict[str, Any], parent_id: str | None, path: str) -> UIElement:
        element_type = _text(node, "type", "axeType") or "GenericElement"
        class_name = _text(node, "className") or TYPE_MAP.get(element_type, DEFAULT_CLASS)
        identifier = _text(node, "AXUniqueId", "identifier")
        label = _text(node, "AXLabel", "label")
        if identifier:
            element_id = identifier
        elif label:
            element_id = f"{class_name}_{label}"
        else:
            self.anon_count += 1
            element_id = f"{class_name}_anon_{self.anon_count}"
        traits = node.get("AXTraits") or node.get("traits") or ""
        value = node.get("AXValue", node.get("value"))
        return UIElement(
            id=element_id,
            class_name=class_name,
            element_type=element_type,
            identifier=identifier,
            label=label,
            name=identifier or label,
            frame=_parse_frame(node.get("frame"), path),
            enabled=node.get("enabled") is not False,
            parent_id=parent_id,
            traits=traits if isinstance(traits, str) else " ".join(map(str, traits)),
            capabilities=parse_traits(traits),
            value=str(value) if value is not None else None,
        )


def normalize_snapshot(raw: Any) -> list[UIElement]:
    """Flatten a snapshot (list of root nodes, or a single root) into elements.

    Raises:
        SnapshotError: If the snapshot is not a list/object tree or a node is malformed.
    """
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise SnapshotError.invalid(f"expected a list of elements, got {type(raw).__name__}")
    return list(_Flattener().walk(raw, None, "$"))
