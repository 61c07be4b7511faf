from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore[import-untyped]

from .matching import IMPORT_CONFIG, FuzzyConfig
from .names import DEFAULT_NAME_THRESHOLD


@dataclass
class OutputsConfig:
    dir: Path


@dataclass
class MatchingConfig:
    name_similarity_threshold: float = DEFAULT_NAME_THRESHOLD
    min_similarity_threshold: float = IMPORT_CONFIG.min_similarity_threshold
    confidence_threshold: float = IMPORT_CONFIG.confidence_threshold
    name_weight: float = IMPORT_CONFIG.name_weight
    method_weight: float = IMPORT_CONFIG.method_weight

    def fuzzy(self) -> FuzzyConfig:
        return FuzzyConfig(
            min_similarity_threshold=self.min_similarity_threshold,
            confidence_threshold=self.confidence_threshold,
            name_weight=self.name_weight,
            method_weight=self.method_weight,
        )


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class ReconcileConfig:
    inputs: Dict[str, Optional[str]]
    outputs: OutputsConfig
    matching: MatchingConfig
    logging: LoggingConfig


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _pick_float(
    args: argparse.Namespace, name: str, section: Dict[str, Any], default: float
) -> float:
    value = getattr(args, name, None)
    if value is None:
        value = section.get(name, default)
    return float(value)


def load_reconcile_config(args: argparse.Namespace) -> ReconcileConfig:
    config_data = _load_yaml(getattr(args, "config", None))
    inputs = config_data.get("inputs", {}) or {}
    outputs_cfg = config_data.get("outputs", {}) or {}
    matching_cfg = config_data.get("matching", {}) or {}
    logging_cfg = config_data.get("logging", {}) or {}

    outputs_dir = Path(getattr(args, "out_dir", None) or outputs_cfg.get("dir") or os.getcwd())

    defaults = MatchingConfig()
    matching = MatchingConfig(
        name_similarity_threshold=_pick_float(
            args, "name_similarity_threshold", matching_cfg, defaults.name_similarity_threshold
        ),
        min_similarity_threshold=_pick_float(
            args, "min_similarity_threshold", matching_cfg, defaults.min_similarity_threshold
        ),
        confidence_threshold=_pick_float(
            args, "confidence_threshold", matching_cfg, defaults.confidence_threshold
        ),
        name_weight=_pick_float(args, "name_weight", matching_cfg, defaults.name_weight),
        method_weight=_pick_float(args, "method_weight", matching_cfg, defaults.method_weight),
    )

    arg_level = getattr(args, "log_level", None)
    effective_level = (arg_level or logging_cfg.get("level") or "WARNING").upper()

    resolved_inputs = {
        "candidates_json": getattr(args, "candidates_json", None)
        or inputs.get("candidates_json"),
        "contacts_json": getattr(args, "contacts_json", None) or inputs.get("contacts_json"),
    }

    return ReconcileConfig(
        inputs=resolved_inputs,
        outputs=OutputsConfig(dir=outputs_dir),
        matching=matching,
        logging=LoggingConfig(level=effective_level),
    )
