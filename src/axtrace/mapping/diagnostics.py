"""Mapping quality metrics, per-element explanations and CI assertions."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Any

import structlog

from axtrace.config.overrides import CriticalMapping, compile_pattern, is_glob
from axtrace.mapping.contract import (
    DEFAULT_BOOST_FACTOR,
    Confidence,
    EnrichedElement,
    compute_confidence,
)

log = structlog.get_logger(__name__)


def compute_metrics(elements: list[EnrichedElement]) -> dict[str, Any]:
    """Aggregate coverage, confidence buckets, provenance and signal usage."""
    total = len(elements)
    mapped = sum(1 for e in elements if e.mapped)
    high = sum(1 for e in elements if e.confidence >= Confidence.HIGH)
    medium = sum(1 for e in elements if Confidence.MEDIUM <= e.confidence < Confidence.HIGH)
    low = sum(1 for e in elements if 0 < e.confidence < Confidence.MEDIUM)
    signals: Counter[str] = Counter(
        ev.signal.value for e in elements for ev in e.evidence
    )
    return {
        "total": total,
        "mapped": mapped,
        "unmapped": total - mapped,
        "coverage": f"{mapped / total * 100:.1f}%" if total else "0%",
        "confidence": {
            "high": high,
            "medium": medium,
            "low": low,
            "zero": total - high - medium - low,
        },
        "ambiguous": sum(1 for e in elements if e.ambiguous),
        "provenance": {
            "manual": sum(1 for e in elements if e.provenance == "manual"),
            "auto": sum(1 for e in elements if e.provenance == "auto" and e.mapped),
        },
        "signal_counts": dict(signals.most_common()),
        "files": len({e.file for e in elements if e.file}),
        "modules": len({e.module for e in elements if e.module}),
    }


def format_metrics(metrics: dict[str, Any]) -> str:
    lines = [
        f"Mapping Coverage: {metrics['coverage']} ({metrics['mapped']}/{metrics['total']})",
        f"  High confidence (>=70%): {metrics['confidence']['high']}",
        f"  Medium (40-70%):         {metrics['confidence']['medium']}",
        f"  Low (<40%):              {metrics['confidence']['low']}",
        f"  Unmapped:                {metrics['unmapped']}",
        f"  Ambiguous:               {metrics['ambiguous']}",
        f"  Manual overrides:        {metrics['provenance']['manual']}",
        f"  Files touched:           {metrics['files']}",
        f"  Modules:                 {metrics['modules']}",
    ]
    if metrics["signal_counts"]:
        lines.append("  Signal usage:")
        for signal, count in metrics["signal_counts"].items():
            lines.append(f"    {signal}: {count}")
    return "\n".join(lines)


def _pct(value: float) -> str:
    return f"{value * 100:.0f}%"


def explain_element(
    enriched: EnrichedElement, boost_factor: float = DEFAULT_BOOST_FACTOR
) -> str:
    """Human-readable account of why an element mapped where it did."""
    element = enriched.element
    lines = [
        f"--- {element.id} ({element.class_name}) ---",
        f'  AX: type={element.element_type} identifier="{element.identifier}" '
        f'label="{element.label}"',
    ]
    if not enriched.mapped:
        lines.append("  Mapped: NO")
        lines.append(f"  Confidence: {_pct(enriched.confidence)}")
        if enriched.candidates:
            best = enriched.candidates[0]
            lines.append(f"  Best guess: {best.file}:{best.line} conf={_pct(best.confidence)}")
        return "\n".join(lines)

    location = f"  Mapped: {enriched.file}:{enriched.line}"
    if enriched.owner:
        location += f" ({enriched.owner})"
    if enriched.module:
        location += f" [{enriched.module}]"
    lines.append(location)
    header = f"  Confidence: {_pct(enriched.confidence)} [{enriched.provenance}]"
    if enriched.ambiguous:
        header += f" AMBIGUOUS ({enriched.ambiguity_reason}, score {enriched.ambiguity_score:.2f})"
    lines.append(header)

    evidence = sorted(enriched.evidence, key=lambda e: e.weight, reverse=True)
    if evidence:
        lines.append("  Evidence:")
        for ev in evidence:
            lines.append(f"    [{ev.signal.value}] w={ev.weight:.2f} -> {ev.detail}")
        if enriched.from_registry:
            lines.append(
                f"  Computation: identifier registry = {enriched.confidence:.3f}"
                " (registry confidence, not signal weights)"
            )
        else:
            weights = [ev.weight for ev in evidence]
            formula = f"{weights[0]:.2f}"
            if len(weights) > 1:
                rest = " + ".join(f"{w:.2f}" for w in weights[1:])
                formula += f" + {boost_factor} x ({rest})"
            lines.append(
                f"  Computation: {formula} = {compute_confidence(evidence, boost_factor):.3f}"
                " (capped at 1.0)"
            )

    others = enriched.candidates[1:4]
    if others:
        lines.append(f"  Other candidates ({len(enriched.candidates) - 1}):")
        for cand in others:
            signals = ", ".join(sorted(s.value for s in cand.signals))
            lines.append(
                f"    {cand.file}:{cand.line} conf={_pct(cand.confidence)} ({signals})"
            )
    return "\n".join(lines)


def generate_report(elements: list[EnrichedElement]) -> str:
    """Metrics summary followed by an explanation of every element."""
    sections = [
        "=== MAPPING DIAGNOSTICS ===",
        "",
        format_metrics(compute_metrics(elements)),
        "",
        "=== PER-ELEMENT DETAIL ===",
        "",
    ]
    for enriched in elements:
        sections.append(explain_element(enriched))
        sections.append("")
    return "\n".join(sections)


@dataclass(frozen=True, slots=True)
class CriticalFailure:
    pattern: str
    min_confidence: float
    reason: str
    element_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "pattern": self.pattern,
            "minConfidence": self.min_confidence,
            "reason": self.reason,
            "elementId": self.element_id,
        }


def _compile(mapping: CriticalMapping) -> re.Pattern[str] | None:
    try:
        return compile_pattern(mapping.pattern)
    except re.error as e:
        log.warning("critical_mapping.invalid_pattern", pattern=mapping.pattern, error=str(e))
        return None


def _matches(
    mapping: CriticalMapping, regex: re.Pattern[str] | None, enriched: EnrichedElement
) -> bool:
    element = enriched.element
    values = [v for v in (element.identifier, element.id, element.name) if v]
    if not is_glob(mapping.pattern):
        return mapping.pattern in values
    return regex is not None and any(regex.search(v) for v in values)


def validate_critical_mappings(
    elements: list[EnrichedElement], mappings: list[CriticalMapping]
) -> list[CriticalFailure]:
    """Check each critical mapping; returns the failures (empty means all pass).

    A ``/.../`` pattern that is not a valid regex matches nothing.
    """
    failures: list[CriticalFailure] = []
    for mapping in mappings:
        regex = _compile(mapping) if is_glob(mapping.pattern) else None
        matching = [e for e in elements if _matches(mapping, regex, e)]
        if not matching:
            failures.append(
                CriticalFailure(mapping.pattern, mapping.min_confidence, "no matching elements")
            )
            continue
        best = max(matching, key=lambda e: e.confidence)
        if best.confidence < mapping.min_confidence:
            failures.append(
                CriticalFailure(
                    mapping.pattern,
                    mapping.min_confidence,
                    f"best confidence {_pct(best.confidence)} on {best.id}",
                    best.id,
                )
            )
    return failures
