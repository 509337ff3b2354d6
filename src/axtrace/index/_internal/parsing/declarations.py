"""Line-oriented scanner for Swift type declarations and their brace ranges.

This is not a grammar: it recognizes ``class``/``struct``/``enum``/``actor``/
``protocol``/``extension`` headers at the start of a line (after attributes
and modifiers), accumulates multi-line headers until the opening brace, and
tracks brace depth on a copy of the source with strings and comments masked
to find each declaration's closing line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from axtrace.index._internal.parsing.sanitize import blank_strings_and_comments

DECL_KINDS = ("class", "struct", "enum", "actor", "protocol", "extension")

_MODIFIER_WORDS = (
    "public",
    "private",
    "fileprivate",
    "internal",
    "package",
    "open",
    "final",
    "indirect",
    "nonisolated",
    "distributed",
)
_ATTRIBUTE = r"@\w+(?:\([^)]*\))?"
_DECL = re.compile(
    rf"^\s*(?P<attrs>(?:{_ATTRIBUTE}\s+)*)"
    rf"(?P<mods>(?:(?:{'|'.join(_MODIFIER_WORDS)})(?:\([^)]*\))?\s+)*)"
    rf"(?P<kind>{'|'.join(DECL_KINDS)})\s+(?P<name>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)"
    r"(?P<rest>.*)$"
)
_ATTRIBUTE_ONLY = re.compile(rf"^\s*(?:{_ATTRIBUTE}\s*)+$")
_ATTRIBUTE_FIND = re.compile(_ATTRIBUTE)
_ASSOCIATED = re.compile(
    r"^\s*associatedtype\s+(?P<name>\w+)"
    r"(?:\s*:\s*(?P<constraint>[^=]+?))?"
    r"(?:\s*=\s*(?P<default>[^{}]+?))?\s*$"
)
# ``class func``/``class var``... are members, not declarations
_NOT_TYPE_NAMES = frozenset(
    {
        "func",
        "var",
        "let",
        "subscript",
        "override",
        "init",
        "deinit",
        "static",
        "final",
        "private",
        "public",
        "internal",
        "fileprivate",
        "open",
        "convenience",
        "required",
        "dynamic",
        "mutating",
        "nonmutating",
        "case",
        "where",
    }
)
_MAX_HEADER_LINES = 20


@dataclass(slots=True)
class Declaration:
    """One recognized declaration. ``end_line`` is filled when its brace closes."""

    name: str
    kind: str
    line: int
    nesting: tuple[str, ...]
    modifiers: tuple[str, ...]
    header: str
    end_line: int | None = None
    associated_types: list[tuple[str, str | None, str | None]] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return ".".join((*self.nesting, self.name))

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]


def _strip_generic_params(text: str) -> str:
    text = text.lstrip()
    if not text.startswith("<"):
        return text
    depth = 0
    for i, ch in enumerate(text):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth == 0:
                return text[i + 1 :]
    return ""


def _split_top_level(text: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "<([":
            depth += 1
        elif ch in ">)]":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def parse_inheritance(header: str) -> list[str]:
    """Inherited/conformed names from the text following a declaration's name.

    Generic parameters, ``where`` clauses, attributes such as ``@unchecked``
    and generic arguments are dropped: ``Base<T>, @unchecked Sendable``
    yields ``["Base", "Sendable"]``.
    """
    text = _strip_generic_params(header)
    text = text.split("{", 1)[0].lstrip()
    if not text.startswith(":"):
        return []
    text = re.split(r"\bwhere\b", text[1:], maxsplit=1)[0]
    names: list[str] = []
    for part in _split_top_level(text):
        part = _ATTRIBUTE_FIND.sub("", part).strip()
        part = part.split("<", 1)[0].strip()
        if part:
            names.append(part)
    return names


def scan_declarations(text: str) -> list[Declaration]:
    """All declarations in one Swift file, in source order."""
    masked = blank_strings_and_comments(text)
    lines = masked.split("\n")
    results: list[Declaration] = []
    # Each open brace pushes its declaration, or None for an ordinary scope
    stack: list[Declaration | None] = []
    pending: Declaration | None = None
    pending_lines = 0
    pending_attrs: list[str] = []

    for lineno, line in enumerate(lines, start=1):
        if pending is None:
            if _ATTRIBUTE_ONLY.match(line):
                pending_attrs.extend(_ATTRIBUTE_FIND.findall(line))
                continue
            match = _DECL.match(line)
            if match and match.group("name").split(".")[0] not in _NOT_TYPE_NAMES:
                attrs = pending_attrs + _ATTRIBUTE_FIND.findall(match.group("attrs"))
                mods = re.sub(r"\([^)]*\)", "", match.group("mods")).split()
                top = stack_top_decl(stack)
                pending = Declaration(
                    name=match.group("name"),
                    kind=match.group("kind"),
                    line=lineno,
                    nesting=(*top.nesting, top.name) if top is not None else (),
                    modifiers=tuple(attrs + mods),
                    header=match.group("rest"),
                )
                pending_lines = 0
            elif line.strip():
                assoc = _ASSOCIATED.match(line)
                top = stack_top_decl(stack)
                if assoc and top is not None and top.kind == "protocol":
                    top.associated_types.append(
                        (
                            assoc.group("name"),
                            (assoc.group("constraint") or "").strip() or None,
                            (assoc.group("default") or "").strip() or None,
                        )
                    )
            if line.strip():
                pending_attrs = []
        elif pending_lines:
            pending.header += " " + line.strip()

        for ch in line:
            if ch == "{":
                if pending is not None:
                    stack.append(pending)
                    results.append(pending)
                    pending = None
                else:
                    stack.append(None)
            elif ch == "}" and stack:
                closed = stack.pop()
                if closed is not None:
                    closed.end_line = lineno

        if pending is not None:
            pending_lines += 1
            if pending_lines > _MAX_HEADER_LINES:
                pending = None

    last_line = len(lines)
    for decl in results:
        if decl.end_line is None:
            decl.end_line = last_line
    return results


def stack_top_decl(stack: list[Declaration | None]) -> Declaration | None:
    """Innermost open declaration, ignoring ordinary scopes."""
    for entry in reversed(stack):
        if entry is not None:
            return entry
    return None
