from __future__ import annotations

from typing import Set

DEFAULT_NAME_THRESHOLD = 0.5


def _tokens(name: str) -> Set[str]:
    return set((name or "").lower().split())


def name_similarity(a: str, b: str) -> float:
    """Share of name tokens in common, over the larger token set (0..1)."""
    tokens_a = _tokens(a)
    tokens_b = _tokens(b)
    if not tokens_a or not tokens_b:
        return 0.0
    if (a or "").lower() == (b or "").lower():
        return 1.0
    return len(tokens_a & tokens_b) / max(len(tokens_a), len(tokens_b))


def are_names_similar(a: str, b: str, threshold: float = DEFAULT_NAME_THRESHOLD) -> bool:
    return name_similarity(a, b) >= threshold
