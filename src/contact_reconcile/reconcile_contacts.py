from __future__ import annotations

import argparse
import csv
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .common import ensure_candidate, load_config, load_json_records
from .config_loader import ReconcileConfig
from .conflicts import compare_candidate, flag_name_mismatch
from .logging_utils import configure_logging
from .matching import SuggestedMatchRanker
from .models import CrmContact, DisplayState, ExternalCandidate, IdentifierKind, MethodComparison
from .normalization import is_valid_phone_safe, normalize, validate_email_safe

logger = logging.getLogger(__name__)

REPORT_FILENAME = "method_comparisons.csv"

REPORT_COLUMNS = [
    "candidate_id",
    "candidate_name",
    "crm_contact_id",
    "crm_contact_name",
    "match_source",
    "match_confidence",
    "name_similarity",
    "name_mismatch",
    "external_value",
    "external_kind",
    "normalized_value",
    "value_valid",
    "suggested_slot",
    "conflict_type",
    "state",
    "crm_method_id",
    "crm_method_slot",
    "crm_method_value",
]


def value_valid(comparison: MethodComparison) -> bool:
    """Syntax check for the report only; it never changes a classification."""
    if comparison.external_kind is IdentifierKind.EMAIL:
        return bool(validate_email_safe(comparison.external_value))
    if comparison.external_kind is IdentifierKind.PHONE:
        return is_valid_phone_safe(normalize(comparison.external_value, IdentifierKind.PHONE))
    return True


def resolve_target(
    payload: Dict[str, Any],
    candidate: ExternalCandidate,
    ranker: SuggestedMatchRanker,
    corpus: Sequence[CrmContact],
) -> Tuple[Optional[CrmContact], str, Optional[float]]:
    """Return the CRM contact to compare against, how it was found, and the match confidence."""
    provided = payload.get("crm_contact")
    if provided:
        return CrmContact.from_mapping(provided), "provided", None
    match = ranker.find_best_match(candidate, corpus)
    if match is None:
        return None, "none", None
    return match.contact, "suggested", round(match.confidence, 4)


def build(args: argparse.Namespace, config: Optional[ReconcileConfig] = None) -> pd.DataFrame:
    config = config or load_config(args)
    threshold = config.matching.name_similarity_threshold
    candidates = load_json_records(config.inputs.get("candidates_json"), "candidates JSON")
    corpus = [
        CrmContact.from_mapping(payload)
        for payload in (
            load_json_records(config.inputs["contacts_json"], "contacts JSON")
            if config.inputs.get("contacts_json")
            else []
        )
    ]
    ranker = SuggestedMatchRanker(config.matching.fuzzy())

    rows: List[Dict[str, Any]] = []
    for payload in candidates:
        candidate = ensure_candidate(payload)
        contact, match_source, confidence = resolve_target(payload, candidate, ranker, corpus)
        target = contact or CrmContact()
        result = compare_candidate(candidate, target.methods, target.full_name, threshold)

        # a provided crm_contact is the upstream suggested match, so it is
        # decorated the same way as one picked by the ranker
        mismatch = contact is not None and result.name_mismatch
        comparisons = flag_name_mismatch(result.comparisons) if mismatch else result.comparisons
        for comparison in comparisons:
            row = {
                "candidate_id": candidate.id,
                "candidate_name": candidate.candidate_display_name(),
                "crm_contact_id": target.id,
                "crm_contact_name": target.full_name,
                "match_source": match_source,
                "match_confidence": "" if confidence is None else confidence,
                "name_similarity": round(result.name_similarity, 4),
                "name_mismatch": mismatch,
                "normalized_value": normalize(
                    comparison.external_value, comparison.external_kind
                ),
                "value_valid": value_valid(comparison),
            }
            row.update(comparison.to_dict())
            rows.append(row)

    logger.info("Compared %d candidate(s) into %d row(s)", len(candidates), len(rows))
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def summarize(report: pd.DataFrame) -> Dict[str, Any]:
    states = report["state"].value_counts().to_dict() if not report.empty else {}
    return {
        "candidates_total": int(report["candidate_id"].nunique()) if not report.empty else 0,
        "comparisons_total": len(report),
        **{state.value: int(states.get(state.value, 0)) for state in DisplayState},
    }


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Classify external contact methods against CRM contacts."
    )
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config.")
    parser.add_argument("--candidates-json", type=str, default=None)
    parser.add_argument("--contacts-json", type=str, default=None)
    parser.add_argument("--out-dir", type=str, default=None)
    parser.add_argument("--name-similarity-threshold", type=float, default=None)
    parser.add_argument("--log-level", type=str, default=None, help="Override logging level")

    args = parser.parse_args()
    config = load_config(args)
    configure_logging(config, level_override=args.log_level)

    report = build(args, config)
    config.outputs.dir.mkdir(parents=True, exist_ok=True)
    out_path = config.outputs.dir / REPORT_FILENAME
    report.to_csv(out_path, index=False, encoding="utf-8", quoting=csv.QUOTE_ALL)

    print(summarize(report))
    print(f"Saved: {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
