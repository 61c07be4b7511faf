from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Sequence, Set, Tuple

from .conflicts import normalized_method_value
from .models import (
    ConflictType,
    ContactMethodSlot,
    ExistingMethod,
    ExternalCandidate,
    IdentifierKind,
    MergeAction,
    MergePlan,
    MethodComparison,
    MethodSelection,
    PlannedChange,
    Resolution,
    ensure_method_list,
)
from .normalization import normalize, resolve_kind
from .slots import kind_for_slot, slots_for

logger = logging.getLogger(__name__)

ValueKey = Tuple[IdentifierKind, str]


def default_resolutions(comparisons: Sequence[MethodComparison]) -> Dict[str, Resolution]:
    """Keep the CRM value for every slot collision until a person decides otherwise."""
    return {
        item.external_value: Resolution.USE_CRM
        for item in comparisons
        if item.conflict_type is ConflictType.VALUE_CONFLICT
    }


def _candidate_kinds(candidate: ExternalCandidate) -> Dict[str, IdentifierKind]:
    kinds: Dict[str, IdentifierKind] = {}
    for identifier in (*candidate.emails, *candidate.phones, *candidate.handles):
        kinds.setdefault(identifier.value, resolve_kind(identifier))
    return kinds


def plan_method_merge(
    candidate: ExternalCandidate,
    existing: Sequence[ExistingMethod],
    selections: Sequence[MethodSelection],
    resolutions: Optional[Mapping[str, Resolution]] = None,
) -> MergePlan:
    """
    Turn a reviewer's method selections into add / replace / keep changes.

    Selections are processed in order. A value already on the CRM contact is
    kept. A selection landing in an occupied slot replaces the CRM value only
    when its resolution is ``use_external``. Bad selections are reported in
    ``MergePlan.errors`` and do not stop the rest of the plan.
    """
    if candidate is None:
        raise TypeError("candidate must be an ExternalCandidate, not None")
    if selections is None:
        raise TypeError("selections must be a list, not None")
    methods = ensure_method_list(existing)
    chosen = {value: Resolution(choice) for value, choice in (resolutions or {}).items()}
    kinds = _candidate_kinds(candidate)

    by_value: Dict[ValueKey, ExistingMethod] = {}
    by_slot: Dict[ContactMethodSlot, Optional[ExistingMethod]] = {}
    for method in methods:
        by_value.setdefault((kind_for_slot(method.slot), normalized_method_value(method)), method)
        by_slot.setdefault(method.slot, method)
    planned_values: Set[ValueKey] = set()

    plan = MergePlan()
    for selection in selections:
        value = selection.original_value
        kind = kinds.get(value)
        if kind is None:
            plan.errors.append(f"value {value!r} not found in external contact")
            continue
        if selection.slot not in slots_for(kind, whatsapp=True):
            plan.errors.append(
                f"slot {selection.slot.value} not allowed for {kind.value} {value!r}"
            )
            continue
        normalized = normalize(value, kind)
        if not normalized:
            plan.errors.append(f"value {value!r} is empty after normalization")
            continue

        key = (kind, normalized)
        if key in by_value or key in planned_values:
            plan.changes.append(
                PlannedChange(
                    MergeAction.KEEP, selection.slot, value, normalized, by_value.get(key)
                )
            )
            continue

        if selection.slot in by_slot:
            current = by_slot[selection.slot]
            if current is None:
                plan.errors.append(f"slot {selection.slot.value} already assigned in this merge")
                continue
            if chosen.get(value) is Resolution.USE_EXTERNAL:
                plan.changes.append(
                    PlannedChange(MergeAction.REPLACE, selection.slot, value, normalized, current)
                )
                by_slot[selection.slot] = None
                planned_values.add(key)
            else:
                plan.changes.append(
                    PlannedChange(MergeAction.KEEP, selection.slot, value, normalized, current)
                )
            continue

        plan.changes.append(PlannedChange(MergeAction.ADD, selection.slot, value, normalized))
        by_slot[selection.slot] = None
        planned_values.add(key)

    if plan.errors:
        logger.info(
            "Merge plan for candidate %s has %d error(s)",
            candidate.id or "unknown",
            len(plan.errors),
        )
    return plan
