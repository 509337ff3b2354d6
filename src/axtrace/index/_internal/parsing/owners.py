"""Owner attribution: which type encloses a given line."""

from __future__ import annotations

from dataclasses import dataclass

from axtrace.index._internal.parsing.declarations import scan_declarations


@dataclass(frozen=True, slots=True)
class OwnerRange:
    """Line span ``[start, end]`` of one type body (declaration or extension)."""

    name: str
    start: int
    end: int

    @property
    def span(self) -> int:
        return self.end - self.start


def owner_ranges(text: str) -> list[OwnerRange]:
    """Ranges of every declaration and extension body in ``text``."""
    return [
        OwnerRange(name=decl.qualified_name, start=decl.line, end=decl.end_line or decl.line)
        for decl in scan_declarations(text)
    ]


def owner_at(ranges: list[OwnerRange], line: int) -> str | None:
    """The innermost enclosing type: the smallest range containing ``line``."""
    best: OwnerRange | None = None
    for rng in ranges:
        if rng.start <= line <= rng.end and (best is None or rng.span < best.span):
            best = rng
    return best.name if best else None
