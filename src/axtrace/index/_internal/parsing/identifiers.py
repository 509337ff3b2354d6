"""Identifier index: literals assigned as element identifiers, keys or labels.

Recognized idioms (origin → kind):

- ``accessibilityIdentifier = "x"`` / ``.accessibilityIdentifier("x")``
  → ``accessibility_identifier``, exact
- ``.id("x")`` → ``view_id``, exact
- ``NSLocalizedString("k", ...)`` / ``String(localized: "k")`` /
  ``LocalizedStringKey("k")`` → ``localization_key``, localized
- ``accessibilityLabel = "x"`` / ``.accessibilityLabel("x")``
  → ``accessibility_label``, localized
- ``NSAttributedString(string: "x")`` / ``AttributedString("x")``
  → ``attributed_string``, localized

Any literal containing an interpolation becomes kind ``pattern``.
"""

from __future__ import annotations

import re

from axtrace.index._internal.parsing.owners import OwnerRange, owner_at, owner_ranges
from axtrace.index._internal.parsing.sanitize import strip_comments
from axtrace.index.models import IdentifierEntry, IdentifierOrigin, MatchKind

_LIT = r'"((?:[^"\\\n]|\\.)*)"'

IDIOMS: tuple[tuple[IdentifierOrigin, MatchKind, re.Pattern[str]], ...] = (
    (
        "accessibility_identifier",
        "exact",
        re.compile(rf"\.?\baccessibilityIdentifier\s*(?:=|\()\s*{_LIT}"),
    ),
    ("view_id", "exact", re.compile(rf"\.id\(\s*{_LIT}\s*\)")),
    (
        "localization_key",
        "localized",
        re.compile(
            rf"(?:\bNSLocalizedString\(\s*|\bString\(\s*localized:\s*|\bLocalizedStringKey\(\s*){_LIT}"
        ),
    ),
    (
        "accessibility_label",
        "localized",
        re.compile(rf"\.?\baccessibilityLabel\s*(?:=|\()\s*{_LIT}"),
    ),
    (
        "attributed_string",
        "localized",
        re.compile(
            rf"(?:\b(?:NS|NSMutable)AttributedString\(\s*string:\s*|\bAttributedString\(\s*){_LIT}"
        ),
    ),
)


def split_dynamic(literal: str) -> tuple[str, str]:
    """Static text before the first interpolation and after the last one.

    ``"row.\\(i).title"`` → ``("row.", ".title")``.
    """
    first = literal.find("\\(")
    if first == -1:
        return literal, ""
    last = literal.rfind("\\(")
    depth = 0
    for i in range(last + 1, len(literal)):
        ch = literal[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return literal[:first], literal[i + 1 :]
    return literal[:first], ""


def is_dynamic(literal: str) -> bool:
    return "\\(" in literal


def matches_idiom(line: str) -> bool:
    """True when a line contains any identifier idiom."""
    return any(pattern.search(line) for _, _, pattern in IDIOMS)


def parse_identifiers(
    text: str,
    file: str,
    owners: list[OwnerRange] | None = None,
) -> list[IdentifierEntry]:
    """Every identifier-idiom literal in ``text``, in source order."""
    if owners is None:
        owners = owner_ranges(text)
    results: list[IdentifierEntry] = []
    for lineno, line in enumerate(strip_comments(text).split("\n"), start=1):
        if '"' not in line:
            continue
        for origin, kind, pattern in IDIOMS:
            for match in pattern.finditer(line):
                literal = match.group(1)
                if not literal:
                    continue
                prefix = suffix = None
                if is_dynamic(literal):
                    kind_here: MatchKind = "pattern"
                    prefix, suffix = split_dynamic(literal)
                else:
                    kind_here = kind
                results.append(
                    IdentifierEntry(
                        literal=literal,
                        file=file,
                        line=lineno,
                        context=line.strip(),
                        kind=kind_here,
                        origin=origin,
                        owner=owner_at(owners, lineno),
                        prefix=prefix,
                        suffix=suffix,
                    )
                )
    return results
