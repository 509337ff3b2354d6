"""Candidate matcher: weighted signals linking UI elements to source lines.

Each signal is evaluated independently against the source indexes and
contributes one piece of evidence to the candidate at its (file, line).
Manual overrides are resolved separately and placed ahead of automatic
candidates; module priority is applied last, over both.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from axtrace.index.models import IdentifierEntry, SourceIndexes
from axtrace.mapping.ambiguity import create_enriched_element
from axtrace.mapping.contract import Candidate, EnrichedElement, Evidence, SignalType
from axtrace.mapping.elements import DEFAULT_CLASS, UIElement
from axtrace.mapping.session import MatchSession

log = structlog.get_logger(__name__)

IDENTIFIER_ORIGINS = frozenset({"accessibility_identifier", "view_id"})
LABEL_ORIGINS = frozenset({"localization_key", "accessibility_label"})
FUZZY_ORIGINS = frozenset({"attributed_string"})


class _CandidateSet:
    """Candidates keyed by (file, line), in first-seen order."""

    def __init__(self, indexes: SourceIndexes, session: MatchSession) -> None:
        self.indexes = indexes
        self.session = session
        self.by_key: dict[tuple[str | None, int | None], Candidate] = {}

    def add(
        self,
        signal: SignalType,
        file: str,
        line: int,
        owner: str | None,
        detail: str,
    ) -> None:
        candidate = self.by_key.get((file, line))
        if candidate is None:
            candidate = Candidate(
                file=file,
                line=line,
                owner=owner,
                module=self.indexes.modules.module_for_file(file),
            )
            self.by_key[(file, line)] = candidate
        elif candidate.owner is None and owner:
            candidate.owner = owner
        candidate.add(
            Evidence(signal, self.session.effective_weight(signal), file, line, detail)
        )

    def add_identifiers(
        self,
        signal: SignalType,
        entries: Iterable[IdentifierEntry],
        origins: frozenset[str],
        detail: str,
    ) -> None:
        for entry in entries:
            if entry.origin in origins:
                self.add(signal, entry.file, entry.line, entry.owner, detail)


def _identifier_signals(
    element: UIElement, indexes: SourceIndexes, found: _CandidateSet
) -> None:
    identifier = element.identifier
    if not identifier:
        return
    exact = [e for e in indexes.identifiers.get(identifier, ()) if e.kind == "exact"]
    found.add_identifiers(
        SignalType.IDENTIFIER_EXACT,
        exact,
        IDENTIFIER_ORIGINS,
        f'accessibilityIdentifier = "{identifier}"',
    )
    for entry in indexes.pattern_trie.lookup(identifier):
        if entry.origin in IDENTIFIER_ORIGINS:
            found.add(
                SignalType.IDENTIFIER_PREFIX,
                entry.file,
                entry.line,
                entry.owner,
                f'Pattern "{entry.literal}" matches prefix "{entry.prefix}"',
            )


def _label_signals(element: UIElement, indexes: SourceIndexes, found: _CandidateSet) -> None:
    label = element.label
    if not label:
        return
    detail = f'Label "{label}" found in source'
    for entry in indexes.labels.get(label, ()):
        found.add(SignalType.LABEL_EXACT, entry.file, entry.line, entry.owner, detail)
    literals = indexes.identifiers.get(label, ())
    found.add_identifiers(SignalType.LABEL_EXACT, literals, LABEL_ORIGINS, detail)
    found.add_identifiers(
        SignalType.LABEL_FUZZY,
        literals,
        FUZZY_ORIGINS,
        f'Label "{label}" matches attributed string text',
    )


def _class_signals(element: UIElement, indexes: SourceIndexes, found: _CandidateSet) -> None:
    class_name = element.class_name
    if not class_name:
        return
    for entry in indexes.types.get(class_name, ()):
        found.add(
            SignalType.CLASS_NAME,
            entry.file,
            entry.line,
            entry.name,
            f'Class "{entry.name}" matches AX type "{class_name}"',
        )
    # Nearly every custom view inherits from UIView
    if class_name == DEFAULT_CLASS:
        return
    for entry in indexes.types_with_parent(class_name):
        found.add(
            SignalType.CLASS_INHERITANCE,
            entry.file,
            entry.line,
            entry.name,
            f'"{entry.name}: {class_name}" inherits from AX type',
        )


def match_overrides(
    element: UIElement, indexes: SourceIndexes, session: MatchSession
) -> list[Candidate]:
    """Confidence-1.0 candidates for every override matching the element.

    At most one exact override applies (identifier, then id, then name);
    every matching glob or regex override contributes its own candidate.
    """
    values = [v for v in (element.identifier, element.id, element.name) if v]
    if not values:
        return []

    compiled = session.compiled_overrides()
    matched = []
    exact = [c for c in compiled if c.regex is None]
    for value in values:
        hit = next((c for c in exact if c.entry.pattern == value), None)
        if hit is not None:
            matched.append((hit, f'Manual override for "{element.identifier or element.id}"'))
            break
    for c in compiled:
        if c.regex is not None and any(c.matches(v) for v in values):
            matched.append((c, f'Manual override pattern "{c.entry.pattern}"'))

    weight = session.effective_weight(SignalType.MANUAL_OVERRIDE)
    candidates = []
    for c, detail in matched:
        entry = c.entry
        line = entry.line or 1
        module = entry.module or (
            indexes.modules.module_for_file(entry.file) if entry.file else None
        )
        candidates.append(
            Candidate(
                file=entry.file,
                line=line,
                owner=entry.owner_type,
                module=module,
                evidence=[
                    Evidence(SignalType.MANUAL_OVERRIDE, weight, entry.file, line, detail)
                ],
                confidence=1.0,
            )
        )
    return candidates


def apply_module_priority(candidates: list[Candidate], session: MatchSession) -> None:
    """Add a rank-scaled module-scope evidence to candidates in prioritized modules."""
    priority = session.module_priority
    if not priority:
        return
    n = len(priority)
    base = session.effective_weight(SignalType.MODULE_SCOPE)
    for candidate in candidates:
        if candidate.module not in priority:
            continue
        rank = priority.index(candidate.module)
        candidate.add(
            Evidence(
                SignalType.MODULE_SCOPE,
                base * (n - rank) / n,
                candidate.file,
                candidate.line,
                f"Module priority boost: {candidate.module} (rank {rank + 1}/{n})",
            )
        )


def match_element(
    element: UIElement,
    indexes: SourceIndexes,
    *,
    session: MatchSession | None = None,
) -> list[Candidate]:
    """All candidates for one element, sorted by descending confidence.

    Never raises; an element nothing points at yields an empty list.
    """
    session = session or MatchSession()
    found = _CandidateSet(indexes, session)
    _identifier_signals(element, indexes, found)
    _label_signals(element, indexes, found)
    _class_signals(element, indexes, found)

    candidates = [*match_overrides(element, indexes, session), *found.by_key.values()]
    apply_module_priority(candidates, session)

    boost = session.config.matching.boost_factor
    for candidate in candidates:
        if candidate.has_signal(SignalType.MANUAL_OVERRIDE):
            candidate.confidence = 1.0
        else:
            candidate.score(boost)
    candidates.sort(key=lambda c: c.confidence, reverse=True)
    return candidates


def match_all(
    elements: list[UIElement],
    indexes: SourceIndexes,
    *,
    session: MatchSession | None = None,
) -> list[EnrichedElement]:
    """Match every element and attach the winner plus ambiguity verdict."""
    session = session or MatchSession()
    config = session.config.matching
    enriched = [
        create_enriched_element(element, match_element(element, indexes, session=session), config)
        for element in elements
    ]
    log.info(
        "matcher.complete",
        elements=len(enriched),
        mapped=sum(1 for e in enriched if e.mapped),
        ambiguous=sum(1 for e in enriched if e.ambiguous),
    )
    return enriched
