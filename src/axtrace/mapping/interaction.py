"""Interaction wiring around a mapped element.

Starting from an element's mapped file and line, ``trace_interaction`` looks
for wiring in the surrounding lines:

- ``addTarget(_, action: #selector(h), ...)`` → ``target_action``
- ``UITapGestureRecognizer(target:, action: #selector(h))`` and the long
  press/swipe recognizers → ``gesture_selector``
- ``.onTapGesture { }`` → ``on_tap_gesture``
- ``Button(...) { }`` / ``Button(action: { })`` → ``button_action``
- ``.simultaneousGesture(`` / ``.highPriorityGesture(`` → gesture modifiers
- ``delegate = self`` → ``delegate_assignment``
- ``UIAction { [weak self] _ in }`` → ``ui_action``

Selector-based wiring names a handler; its ``func`` definition is resolved in
the same file and the calls inside its body are listed. Scanning runs on text
with comments and string contents blanked, so commented-out wiring is not
reported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from axtrace.core.errors import TraceError
from axtrace.index._internal.parsing.sanitize import blank_strings_and_comments
from axtrace.mapping.contract import EnrichedElement
from axtrace.mapping.elements import UIElement

log = structlog.get_logger(__name__)

DEFAULT_CONTEXT_LINES = 24
MAX_CALLS = 12


class WiringKind(str, Enum):
    TARGET_ACTION = "target_action"
    GESTURE_SELECTOR = "gesture_selector"
    ON_TAP_GESTURE = "on_tap_gesture"
    BUTTON_ACTION = "button_action"
    SIMULTANEOUS_GESTURE = "simultaneous_gesture"
    HIGH_PRIORITY_GESTURE = "high_priority_gesture"
    DELEGATE_ASSIGNMENT = "delegate_assignment"
    UI_ACTION = "ui_action"


class Verdict(str, Enum):
    WIRED = "wired"
    LIKELY_WIRED = "likely_wired"
    LIKELY_MISSING = "likely_missing"
    DISPLAY_ONLY = "display_only"


_SELECTOR = r"action:\s*#selector\((?:\w+\.)?(\w+)\)"

WIRING_PATTERNS: tuple[tuple[WiringKind, re.Pattern[str]], ...] = (
    (WiringKind.TARGET_ACTION, re.compile(rf"\baddTarget\s*\(.*{_SELECTOR}")),
    (
        WiringKind.GESTURE_SELECTOR,
        re.compile(
            r"\bUI(?:Tap|LongPress|Swipe)GestureRecognizer\s*\(.*" + _SELECTOR
        ),
    ),
    (WiringKind.ON_TAP_GESTURE, re.compile(r"\.onTapGesture(?:\s*\([^)]*\))?\s*\{")),
    (
        WiringKind.BUTTON_ACTION,
        re.compile(r"\bButton\s*(?:\([^)]*action:\s*\{|\([^)]*\)\s*\{|\{)"),
    ),
    (WiringKind.SIMULTANEOUS_GESTURE, re.compile(r"\.simultaneousGesture\s*\(")),
    (WiringKind.HIGH_PRIORITY_GESTURE, re.compile(r"\.highPriorityGesture\s*\(")),
    (WiringKind.DELEGATE_ASSIGNMENT, re.compile(r"\bdelegate\s*=\s*self\b")),
    (
        WiringKind.UI_ACTION,
        re.compile(r"\bUIAction\s*(?:\([^)]*\)\s*\{|\([^)]*handler:\s*\{|\(\s*\{|\{)"),
    ),
)

_FUNC_DEF = re.compile(
    r"^\s*(?:@IBAction\s+)?(?:@objc\s+)?"
    r"(?:(?:private|fileprivate|internal|public|open|override|final|static)\s+)*"
    r"func\s+(\w+)\s*\("
)
_CALL = re.compile(r"\b([A-Za-z_]\w*)\s*\(")
_NOT_CALLS = frozenset(
    {
        "if", "for", "while", "switch", "guard", "return", "print", "assert",
        "fatalError", "init", "deinit", "super", "self", "map", "filter", "reduce",
    }
)

_INTERACTIVE_CLASS = re.compile(r"button|switch|slider|textfield|textview|cell|control", re.I)
_INTERACTIVE_TYPE = re.compile(r"button|tab|toggle|switch", re.I)
_ACTION_WORDS = re.compile(r"tap|button|cta|action|submit|save|create|delete|next|continue", re.I)


@dataclass(frozen=True, slots=True)
class WiringSignal:
    kind: WiringKind
    line: int
    text: str
    handler: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "line": self.line,
            "text": self.text,
            "handler": self.handler,
        }


@dataclass(frozen=True, slots=True)
class HandlerDefinition:
    name: str
    line: int
    calls: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "line": self.line, "calls": list(self.calls)}


@dataclass(frozen=True, slots=True)
class InteractionTrace:
    """Wiring found around one element's mapped source line."""

    element_id: str
    file: str
    focus_line: int
    snippet_start: int
    snippet_end: int
    snippet: tuple[str, ...]
    signals: tuple[WiringSignal, ...]
    handlers: tuple[HandlerDefinition, ...]
    verdict: Verdict
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "elementId": self.element_id,
            "file": self.file,
            "focusLine": self.focus_line,
            "snippetStart": self.snippet_start,
            "snippetEnd": self.snippet_end,
            "snippet": [
                {"line": self.snippet_start + i, "text": text}
                for i, text in enumerate(self.snippet)
            ],
            "signals": [s.to_dict() for s in self.signals],
            "handlers": [h.to_dict() for h in self.handlers],
            "verdict": self.verdict.value,
            "reason": self.reason,
        }


def find_wiring(
    masked_lines: list[str], original_lines: list[str], first_line: int = 1
) -> list[WiringSignal]:
    """Wiring signals in ``masked_lines``, numbered from ``first_line``.

    A line can carry several signals. ``original_lines`` supplies the
    reported text and must align with ``masked_lines``.
    """
    signals = []
    for offset, masked in enumerate(masked_lines):
        for kind, pattern in WIRING_PATTERNS:
            match = pattern.search(masked)
            if match is None:
                continue
            handler = match.group(1) if pattern.groups else None
            signals.append(
                WiringSignal(kind, first_line + offset, original_lines[offset].strip(), handler)
            )
    return signals


def find_handlers(masked_lines: list[str], names: set[str]) -> list[tuple[str, int]]:
    """``(name, line)`` of ``func`` definitions; restricted to ``names`` when given."""
    found = []
    for index, masked in enumerate(masked_lines):
        match = _FUNC_DEF.match(masked)
        if match is None:
            continue
        if names and match.group(1) not in names:
            continue
        found.append((match.group(1), index + 1))
    return found


def calls_in_function(masked_lines: list[str], start_line: int) -> list[str]:
    """Distinct names called in the body of the function declared on ``start_line``."""
    calls: dict[str, None] = {}
    depth = 0
    in_body = False
    for text in masked_lines[start_line - 1 :]:
        if not in_body:
            # Parameters and the function's own name precede the body
            brace = text.find("{")
            if brace == -1:
                continue
            in_body = True
            text = text[brace:]
        depth += text.count("{") - text.count("}")
        for match in _CALL.finditer(text):
            if match.group(1) not in _NOT_CALLS:
                calls.setdefault(match.group(1))
        if depth <= 0:
            break
    return list(calls)[:MAX_CALLS]


def looks_interactive(element: UIElement) -> bool:
    if _INTERACTIVE_CLASS.search(element.class_name):
        return True
    if _INTERACTIVE_TYPE.search(element.element_type):
        return True
    return any(_ACTION_WORDS.search(v) for v in (element.name, element.identifier) if v)


def classify(
    interactive: bool, signals: list[WiringSignal], handlers: list[HandlerDefinition]
) -> tuple[Verdict, str]:
    if signals:
        return Verdict.WIRED, "Interaction wiring found near the mapped line"
    if handlers:
        return Verdict.LIKELY_WIRED, "Handler definitions found but no local wiring"
    if interactive:
        return Verdict.LIKELY_MISSING, "Element looks interactive but has no local wiring"
    return Verdict.DISPLAY_ONLY, "No interaction wiring; element looks display-only"


def _focus_line(enriched: EnrichedElement, lines: list[str]) -> int:
    if enriched.line and enriched.line > 0:
        return min(enriched.line, max(len(lines), 1))
    needle = enriched.element.identifier
    if needle:
        for index, text in enumerate(lines):
            if needle in text:
                return index + 1
    return 1


def resolve_source(enriched: EnrichedElement, project_root: Path) -> Path:
    """Absolute path of the element's mapped file, kept inside ``project_root``.

    Raises:
        TraceError: If the element is unmapped, its file escapes the root,
            or the file does not exist.
    """
    if not enriched.file:
        raise TraceError.unmapped(enriched.id)
    root = project_root.resolve()
    target = (root / enriched.file).resolve()
    if target != root and not target.is_relative_to(root):
        raise TraceError.outside_root(enriched.file, str(root))
    if not target.is_file():
        raise TraceError.source_not_found(enriched.file)
    return target


def trace_interaction(
    enriched: EnrichedElement,
    project_root: Path,
    *,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> InteractionTrace:
    """Collect wiring around ``enriched``'s mapped line and judge interactivity.

    Raises:
        TraceError: If the mapped source cannot be read.
    """
    path = resolve_source(enriched, project_root)
    text = path.read_text(encoding="utf-8", errors="replace")
    lines = text.split("\n")
    masked = blank_strings_and_comments(text).split("\n")

    focus = _focus_line(enriched, lines)
    start = max(1, focus - context_lines)
    end = min(len(lines), focus + context_lines)

    signals = find_wiring(masked[start - 1 : end], lines[start - 1 : end], start)
    names = {s.handler for s in signals if s.handler}
    handlers = [
        HandlerDefinition(name, line, tuple(calls_in_function(masked, line)))
        for name, line in find_handlers(masked, names)
    ]
    verdict, reason = classify(looks_interactive(enriched.element), signals, handlers)
    log.debug(
        "interaction.traced",
        element=enriched.id,
        file=enriched.file,
        signals=len(signals),
        handlers=len(handlers),
        verdict=verdict.value,
    )
    return InteractionTrace(
        element_id=enriched.id,
        file=enriched.file or "",
        focus_line=focus,
        snippet_start=start,
        snippet_end=end,
        snippet=tuple(lines[start - 1 : end]),
        signals=tuple(signals),
        handlers=tuple(handlers),
        verdict=verdict,
        reason=reason,
    )


def format_trace(trace: InteractionTrace) -> str:
    lines = [
        f"--- {trace.element_id} -> {trace.file}:{trace.focus_line} ---",
        f"  Verdict: {trace.verdict.value} ({trace.reason})",
    ]
    if trace.signals:
        lines.append("  Wiring:")
        for signal in trace.signals:
            handler = f" -> {signal.handler}" if signal.handler else ""
            lines.append(f"    {signal.line}: [{signal.kind.value}]{handler} {signal.text}")
    if trace.handlers:
        lines.append("  Handlers:")
        for handler in trace.handlers:
            calls = ", ".join(handler.calls) or "-"
            lines.append(f"    {handler.name} (line {handler.line}) calls: {calls}")
    return "\n".join(lines)
