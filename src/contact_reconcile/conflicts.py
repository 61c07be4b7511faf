from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from .email_types import infer_email_slot
from .models import (
    ConflictType,
    ContactComparison,
    ContactMethodSlot,
    DisplayState,
    ExistingMethod,
    ExternalCandidate,
    IdentifierKind,
    MethodComparison,
    RawIdentifier,
    ensure_method_list,
)
from .names import DEFAULT_NAME_THRESHOLD, name_similarity
from .normalization import normalize, resolve_kind
from .slots import kind_for_slot, slots_for

logger = logging.getLogger(__name__)

_STATE_BY_CONFLICT = {
    ConflictType.NONE: DisplayState.ADDING,
    ConflictType.IDENTICAL: DisplayState.UNCHANGED,
    ConflictType.TYPE_CONFLICT: DisplayState.CONFLICT,
    ConflictType.VALUE_CONFLICT: DisplayState.CONFLICT,
}


def state_for(conflict_type: ConflictType) -> DisplayState:
    return _STATE_BY_CONFLICT[conflict_type]


def suggest_slot(identifier: RawIdentifier, kind: IdentifierKind) -> ContactMethodSlot:
    if kind is IdentifierKind.EMAIL:
        return infer_email_slot(identifier.value, identifier.origin_hint)
    return slots_for(kind)[0]


def normalized_method_value(method: ExistingMethod) -> str:
    return normalize(method.value, kind_for_slot(method.slot))


def _iter_identifiers(
    candidate: ExternalCandidate,
) -> Iterator[Tuple[RawIdentifier, IdentifierKind]]:
    for identifier in candidate.emails:
        yield identifier, resolve_kind(identifier)
    for identifier in candidate.phones:
        yield identifier, resolve_kind(identifier)
    for identifier in candidate.handles:
        yield identifier, resolve_kind(identifier)


class _MethodPool:
    """Existing methods for one detection call; each can be matched once."""

    def __init__(self, methods: Sequence[ExistingMethod]):
        self.methods = list(methods)
        self.keys = [normalized_method_value(method) for method in self.methods]
        self.consumed: Set[int] = set()

    def take_by_value(self, normalized: str) -> Optional[ExistingMethod]:
        for index, key in enumerate(self.keys):
            if index not in self.consumed and key == normalized:
                self.consumed.add(index)
                return self.methods[index]
        return None

    def take_by_slot(self, slot: ContactMethodSlot) -> Optional[ExistingMethod]:
        for index, method in enumerate(self.methods):
            if index not in self.consumed and method.slot == slot:
                self.consumed.add(index)
                return method
        return None


def _classify(
    identifier: RawIdentifier,
    kind: IdentifierKind,
    normalized: str,
    pool: _MethodPool,
) -> MethodComparison:
    suggested = suggest_slot(identifier, kind)

    crm_method = pool.take_by_value(normalized)
    if crm_method is not None:
        if crm_method.slot == suggested:
            conflict_type = ConflictType.IDENTICAL
        else:
            conflict_type = ConflictType.TYPE_CONFLICT
    else:
        crm_method = pool.take_by_slot(suggested)
        conflict_type = ConflictType.VALUE_CONFLICT if crm_method else ConflictType.NONE

    return MethodComparison(
        external_value=identifier.value,
        external_kind=kind,
        suggested_slot=suggested,
        conflict_type=conflict_type,
        state=state_for(conflict_type),
        crm_method=crm_method,
    )


def detect_conflicts(
    candidate: ExternalCandidate, existing: Sequence[ExistingMethod]
) -> List[MethodComparison]:
    """
    Compare every identifier on ``candidate`` against a CRM contact's methods.

    Identifiers are visited emails first, then phones, then handles, each in
    input order. Values that normalize to an empty string are skipped. An
    existing method matched by value or by slot is not offered to any later
    identifier in the same call; among equal candidates the earliest existing
    method wins.
    """
    if candidate is None:
        raise TypeError("candidate must be an ExternalCandidate, not None")
    pool = _MethodPool(ensure_method_list(existing))

    comparisons: List[MethodComparison] = []
    skipped = 0
    for identifier, kind in _iter_identifiers(candidate):
        normalized = normalize(identifier.value, kind)
        if not normalized:
            skipped += 1
            continue
        comparisons.append(_classify(identifier, kind, normalized, pool))

    if skipped:
        logger.debug(
            "Skipped %d unnormalizable identifier(s) for candidate %s",
            skipped,
            candidate.id or "unknown",
        )
    return comparisons


def flag_name_mismatch(comparisons: Sequence[MethodComparison]) -> List[MethodComparison]:
    """Mark non-conflicting comparisons for review; conflicts keep their state."""
    return [
        item
        if item.state is DisplayState.CONFLICT
        else item.replace(state=DisplayState.NAME_MISMATCH)
        for item in comparisons
    ]


def compare_candidate(
    candidate: ExternalCandidate,
    existing: Sequence[ExistingMethod],
    crm_name: str,
    name_threshold: float = DEFAULT_NAME_THRESHOLD,
) -> ContactComparison:
    comparisons = detect_conflicts(candidate, existing)
    score = name_similarity(candidate.candidate_display_name(), crm_name)
    return ContactComparison(
        comparisons=comparisons,
        name_similarity=score,
        name_threshold=name_threshold,
    )
