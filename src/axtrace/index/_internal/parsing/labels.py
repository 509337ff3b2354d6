"""Label index: free-text string literals that may surface as element labels."""

from __future__ import annotations

import re

from axtrace.index._internal.parsing.identifiers import matches_idiom
from axtrace.index._internal.parsing.owners import OwnerRange, owner_at, owner_ranges
from axtrace.index._internal.parsing.sanitize import STRING_LITERAL, strip_comments
from axtrace.index.models import LabelEntry

MIN_LABEL_LENGTH = 3

_IMPORT = re.compile(r"^\s*(?:@\w+\s+)*import\b")
_SKIP_LEADING = frozenset("#@{}[]")
_URL = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def is_label_candidate(literal: str) -> bool:
    if len(literal) < MIN_LABEL_LENGTH or "\\" in literal:
        return False
    if literal[0] in _SKIP_LEADING:
        return False
    return not _URL.match(literal)


def parse_labels(
    text: str,
    file: str,
    owners: list[OwnerRange] | None = None,
) -> list[LabelEntry]:
    """Literals of three or more characters outside comments, imports and identifier lines."""
    if owners is None:
        owners = owner_ranges(text)
    results: list[LabelEntry] = []
    for lineno, line in enumerate(strip_comments(text).split("\n"), start=1):
        if '"' not in line or _IMPORT.match(line) or matches_idiom(line):
            continue
        for match in STRING_LITERAL.finditer(line):
            literal = match.group(1)
            if not is_label_candidate(literal):
                continue
            results.append(
                LabelEntry(
                    text=literal,
                    file=file,
                    line=lineno,
                    context=line.strip(),
                    owner=owner_at(owners, lineno),
                )
            )
    return results
