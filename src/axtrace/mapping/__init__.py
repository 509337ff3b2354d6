"""Mapping module - UI elements to source locations.

This module provides:
- Element normalization: accessibility snapshots into UIElement inputs
- Candidate matching: weighted signals over the source indexes
- Confidence & ambiguity: winner selection and separation verdict
- Identifier registry: persisted exact/pattern identifier map
- Diagnostics: metrics, explanations, critical-mapping validation
- Interaction tracing: tap/gesture/action wiring near a mapped line

Public API is in `axtrace.mapping.ops`.
"""

from axtrace.mapping.ambiguity import compute_ambiguity, create_enriched_element
from axtrace.mapping.contract import (
    Candidate,
    EnrichedElement,
    Evidence,
    SignalType,
    compute_confidence,
)
from axtrace.mapping.diagnostics import (
    compute_metrics,
    explain_element,
    format_metrics,
    generate_report,
    validate_critical_mappings,
)
from axtrace.mapping.elements import Frame, UIElement, normalize_snapshot
from axtrace.mapping.interaction import InteractionTrace, Verdict, trace_interaction
from axtrace.mapping.matcher import match_all, match_element
from axtrace.mapping.ops import ScanResult, run_scan
from axtrace.mapping.registry import (
    apply_registry,
    build_registry,
    ensure_registry,
    load_registry,
    save_registry,
)
from axtrace.mapping.session import MatchSession

__all__ = [
    # Public API (ops.py)
    "ScanResult",
    "run_scan",
    # Elements
    "Frame",
    "UIElement",
    "normalize_snapshot",
    # Matching
    "MatchSession",
    "match_all",
    "match_element",
    # Contract
    "Candidate",
    "EnrichedElement",
    "Evidence",
    "SignalType",
    "compute_ambiguity",
    "compute_confidence",
    "create_enriched_element",
    # Registry
    "apply_registry",
    "build_registry",
    "ensure_registry",
    "load_registry",
    "save_registry",
    # Diagnostics
    "compute_metrics",
    "explain_element",
    "format_metrics",
    "generate_report",
    "validate_critical_mappings",
    # Interaction
    "InteractionTrace",
    "Verdict",
    "trace_interaction",
]
