"""Mapping contract: signals, evidence, candidates and the confidence model.

Confidence is max-plus-boost: the strongest evidence weight plus a
diminishing share (``boost_factor``, 0.3 by default) of every other weight,
capped at 1.0.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from axtrace.mapping.elements import UIElement

Provenance = Literal["auto", "manual"]


class SignalType(str, Enum):
    """Kinds of evidence linking a UI element to a source location."""

    MANUAL_OVERRIDE = "manual_override"
    IDENTIFIER_EXACT = "identifier_exact"
    CLASS_NAME = "class_name"
    IDENTIFIER_PREFIX = "identifier_prefix"
    LABEL_EXACT = "label_exact"
    CLASS_INHERITANCE = "class_inheritance"
    MODULE_SCOPE = "module_scope"
    LABEL_FUZZY = "label_fuzzy"


DEFAULT_WEIGHTS: dict[SignalType, float] = {
    SignalType.MANUAL_OVERRIDE: 1.0,
    SignalType.IDENTIFIER_EXACT: 0.9,
    SignalType.CLASS_NAME: 0.7,
    SignalType.IDENTIFIER_PREFIX: 0.6,
    SignalType.LABEL_EXACT: 0.5,
    SignalType.CLASS_INHERITANCE: 0.3,
    SignalType.MODULE_SCOPE: 0.2,
    SignalType.LABEL_FUZZY: 0.15,
}


class Confidence:
    """Confidence bands."""

    HIGH = 0.7
    MEDIUM = 0.4
    MAX = 1.0


DEFAULT_BOOST_FACTOR = 0.3


@dataclass(frozen=True, slots=True)
class Evidence:
    """One signal firing for an (element, location) pair."""

    signal: SignalType
    weight: float
    file: str | None
    line: int | None
    detail: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal": self.signal.value,
            "weight": self.weight,
            "file": self.file,
            "line": self.line,
            "detail": self.detail,
        }


def compute_confidence(
    evidence: list[Evidence], boost_factor: float = DEFAULT_BOOST_FACTOR
) -> float:
    """``min(max(w) + boost_factor * sum(other w), 1.0)``; 0.0 for no evidence."""
    if not evidence:
        return 0.0
    weights = sorted((e.weight for e in evidence), reverse=True)
    score = weights[0] + boost_factor * sum(weights[1:])
    return min(score, Confidence.MAX)


@dataclass(slots=True)
class Candidate:
    """One possible source location, accumulating evidence."""

    file: str | None
    line: int | None
    owner: str | None = None
    module: str | None = None
    evidence: list[Evidence] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def key(self) -> tuple[str | None, int | None]:
        return (self.file, self.line)

    @property
    def signals(self) -> set[SignalType]:
        return {e.signal for e in self.evidence}

    def has_signal(self, signal: SignalType) -> bool:
        return any(e.signal is signal for e in self.evidence)

    def add(self, evidence: Evidence) -> None:
        # One piece of evidence per signal and location
        if not self.has_signal(evidence.signal):
            self.evidence.append(evidence)

    def score(self, boost_factor: float = DEFAULT_BOOST_FACTOR) -> float:
        self.confidence = compute_confidence(self.evidence, boost_factor)
        return self.confidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "ownerType": self.owner,
            "module": self.module,
            "confidence": round(self.confidence, 4),
            "evidence": [e.to_dict() for e in self.evidence],
        }


@dataclass(frozen=True, slots=True)
class Ambiguity:
    ambiguous: bool
    score: float
    reason: str


@dataclass(slots=True)
class EnrichedElement:
    """Final mapping result for one element."""

    element: UIElement
    file: str | None = None
    line: int | None = None
    owner: str | None = None
    module: str | None = None
    confidence: float = 0.0
    evidence: list[Evidence] = field(default_factory=list)
    provenance: Provenance = "auto"
    ambiguous: bool = False
    ambiguity_score: float = 0.0
    ambiguity_reason: str = ""
    candidates: list[Candidate] = field(default_factory=list)
    from_registry: bool = False

    @property
    def mapped(self) -> bool:
        return self.confidence >= Confidence.MEDIUM

    @property
    def id(self) -> str:
        return self.element.id

    def to_dict(self) -> dict[str, Any]:
        data = self.element.to_dict()
        data.update(
            {
                "file": self.file,
                "fileLine": self.line,
                "ownerType": self.owner,
                "mappedModule": self.module,
                "confidence": round(self.confidence, 4),
                "evidence": [e.to_dict() for e in self.evidence],
                "provenance": self.provenance,
                "ambiguous": self.ambiguous,
                "ambiguityScore": round(self.ambiguity_score, 4),
                "ambiguityReason": self.ambiguity_reason,
                "candidates": [c.to_dict() for c in self.candidates],
                "mapped": self.mapped,
            }
        )
        return data

    def to_overlay(self) -> dict[str, Any]:
        """Minimal payload for a renderer: geometry plus location."""
        return {
            "id": self.element.id,
            "frame": self.element.frame.to_dict(),
            "confidence": round(self.confidence, 4),
            "file": self.file,
            "fileLine": self.line,
            "ambiguous": self.ambiguous,
            "mapped": self.mapped,
        }
