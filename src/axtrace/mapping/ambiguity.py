"""Winner selection and ambiguity verdict over a candidate list."""

from __future__ import annotations

from axtrace.config.models import MatchingConfig
from axtrace.mapping.contract import (
    Ambiguity,
    Candidate,
    EnrichedElement,
    SignalType,
)
from axtrace.mapping.elements import UIElement

_DEFAULTS = MatchingConfig()


def _sort(candidates: list[Candidate]) -> list[Candidate]:
    # Stable: manual overrides are injected first and keep their place on ties
    return sorted(candidates, key=lambda c: c.confidence, reverse=True)


def compute_ambiguity(
    candidates: list[Candidate], config: MatchingConfig = _DEFAULTS
) -> Ambiguity:
    """Decide whether the best candidate is separated enough from the rest.

    ``candidates`` must be sorted by descending confidence.
    """
    if len(candidates) < 2:
        return Ambiguity(False, 0.0, "Single or no candidate")

    best, runner_up = candidates[0], candidates[1]
    if best.has_signal(SignalType.MANUAL_OVERRIDE):
        return Ambiguity(False, 0.0, "Manual override")

    gap = best.confidence - runner_up.confidence
    competitive = sum(
        1 for c in candidates if best.confidence - c.confidence < config.competitive_window
    )
    runner_signals = runner_up.signals
    unique_strong = any(
        e.signal not in runner_signals and e.weight >= config.strong_signal_weight
        for e in best.evidence
    )

    threshold = config.base_ambiguity_threshold
    reason = ""
    if competitive > config.crowded_candidate_count:
        threshold = config.crowded_ambiguity_threshold
        reason = f"Many competitive candidates ({competitive})"
    if unique_strong:
        threshold = config.strong_signal_ambiguity_threshold
        reason = reason or "Best has unique strong signal"

    ambiguous = gap < threshold
    score = (1 - gap) * (competitive / 2) if ambiguous else 0.0
    if ambiguous and not reason:
        reason = f"Gap {gap:.3f} < threshold {threshold:.2f}"
    return Ambiguity(ambiguous, score, reason or "Clear winner")


def create_enriched_element(
    element: UIElement,
    candidates: list[Candidate],
    config: MatchingConfig = _DEFAULTS,
) -> EnrichedElement:
    """Pick the winner, attach the ambiguity verdict and keep the top candidates."""
    ranked = _sort(candidates)
    verdict = compute_ambiguity(ranked, config)
    best = ranked[0] if ranked else None
    if best is None:
        return EnrichedElement(
            element=element,
            ambiguous=verdict.ambiguous,
            ambiguity_score=verdict.score,
            ambiguity_reason=verdict.reason,
        )
    return EnrichedElement(
        element=element,
        file=best.file,
        line=best.line,
        owner=best.owner,
        module=best.module,
        confidence=best.confidence,
        evidence=list(best.evidence),
        provenance="manual" if best.has_signal(SignalType.MANUAL_OVERRIDE) else "auto",
        ambiguous=verdict.ambiguous,
        ambiguity_score=verdict.score,
        ambiguity_reason=verdict.reason,
        candidates=ranked[: config.max_candidates],
    )
