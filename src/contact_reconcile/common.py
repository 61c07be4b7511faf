from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from .config_loader import ReconcileConfig, load_reconcile_config
from .conflicts import compare_candidate, detect_conflicts, flag_name_mismatch
from .email_types import FREE_EMAIL_DOMAINS, infer_email_slot, is_free_email_domain
from .matching import CALENDAR_CONFIG, IMPORT_CONFIG, FuzzyConfig, SuggestedMatchRanker
from .models import (
    ConflictType,
    ContactComparison,
    ContactMethodSlot,
    CrmContact,
    DisplayState,
    ExistingMethod,
    ExternalCandidate,
    IdentifierKind,
    MergeAction,
    MergePlan,
    MethodComparison,
    MethodSelection,
    RawIdentifier,
    Resolution,
    SuggestedMatch,
)
from .names import are_names_similar, name_similarity
from .normalization import classify_identifier, normalize, normalize_identifier
from .resolution import default_resolutions, plan_method_merge
from .slots import kind_for_slot, slots_for

logger = logging.getLogger(__name__)

__all__ = [
    "CALENDAR_CONFIG",
    "ConflictType",
    "ContactComparison",
    "ContactMethodSlot",
    "CrmContact",
    "DisplayState",
    "ExistingMethod",
    "ExternalCandidate",
    "FREE_EMAIL_DOMAINS",
    "FuzzyConfig",
    "IMPORT_CONFIG",
    "IdentifierKind",
    "MergeAction",
    "MergePlan",
    "MethodComparison",
    "MethodSelection",
    "RawIdentifier",
    "ReconcileConfig",
    "Resolution",
    "SuggestedMatch",
    "SuggestedMatchRanker",
    "are_names_similar",
    "classify_identifier",
    "compare_candidate",
    "default_resolutions",
    "detect_conflicts",
    "ensure_candidate",
    "flag_name_mismatch",
    "infer_email_slot",
    "is_free_email_domain",
    "kind_for_slot",
    "load_config",
    "load_json_records",
    "name_similarity",
    "normalize",
    "normalize_identifier",
    "plan_method_merge",
    "slots_for",
    "warn_missing",
]


def load_config(args: Any) -> ReconcileConfig:
    return load_reconcile_config(args)


def ensure_candidate(obj: Any) -> ExternalCandidate:
    if isinstance(obj, ExternalCandidate):
        return obj
    if isinstance(obj, dict):
        return ExternalCandidate.from_mapping(obj)
    raise TypeError(f"Unsupported candidate payload type: {type(obj)!r}")


def warn_missing(path: Optional[str], label: str) -> bool:
    if not path or not os.path.exists(path):
        logger.warning("%s path missing: %s", label, path)
        return True
    return False


def load_json_records(path: Optional[str], label: str) -> List[Dict[str, Any]]:
    if warn_missing(path, label):
        return []
    with open(path, "r", encoding="utf-8") as handle:  # type: ignore[arg-type]
        payload = json.load(handle)
    if not isinstance(payload, list):
        raise TypeError(f"{label} must contain a JSON list, got {type(payload).__name__}")
    return payload
