from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Set, Tuple

from .models import (
    ContactMethodSlot,
    CrmContact,
    ExistingMethod,
    ExternalCandidate,
    IdentifierKind,
    SuggestedMatch,
)
from .names import name_similarity
from .normalization import normalize
from .slots import is_email_slot


@dataclass(frozen=True)
class FuzzyConfig:
    min_similarity_threshold: float
    confidence_threshold: float
    name_weight: float
    method_weight: float

    def score(self, similarity: float, method_matches: int, total_methods: int) -> float:
        score = similarity * self.name_weight
        if total_methods > 0:
            score += (method_matches / total_methods) * self.method_weight
        return score


IMPORT_CONFIG = FuzzyConfig(
    min_similarity_threshold=0.3,
    confidence_threshold=0.5,
    name_weight=0.6,
    method_weight=0.4,
)

CALENDAR_CONFIG = FuzzyConfig(
    min_similarity_threshold=0.3,
    confidence_threshold=0.7,
    name_weight=0.6,
    method_weight=0.4,
)


@dataclass
class MatchSignals:
    contact: CrmContact
    name_similarity: float
    method_matches: int
    total_methods: int
    score: float

    @property
    def has_method_overlap(self) -> bool:
        return self.method_matches > 0


def _candidate_values(candidate: ExternalCandidate) -> Tuple[Set[str], Set[str]]:
    emails = {normalize(email.value, IdentifierKind.EMAIL) for email in candidate.emails}
    phones = {normalize(phone.value, IdentifierKind.PHONE) for phone in candidate.phones}
    emails.discard("")
    phones.discard("")
    return emails, phones


def count_method_overlap(
    methods: Iterable[ExistingMethod], candidate: ExternalCandidate
) -> Tuple[int, int]:
    """Count CRM email/phone methods, and how many the candidate also carries."""
    emails, phones = _candidate_values(candidate)
    matches = 0
    total = 0
    for method in methods:
        if is_email_slot(method.slot):
            total += 1
            if normalize(method.value, IdentifierKind.EMAIL) in emails:
                matches += 1
        elif method.slot == ContactMethodSlot.PHONE:
            total += 1
            if normalize(method.value, IdentifierKind.PHONE) in phones:
                matches += 1
    return matches, total


class SuggestedMatchRanker:
    def __init__(self, config: FuzzyConfig = IMPORT_CONFIG):
        self.config = config

    def compute(self, candidate: ExternalCandidate, contact: CrmContact) -> MatchSignals:
        similarity = name_similarity(candidate.candidate_display_name(), contact.full_name)
        matches, total = count_method_overlap(contact.methods, candidate)
        return MatchSignals(
            contact=contact,
            name_similarity=similarity,
            method_matches=matches,
            total_methods=total,
            score=self.config.score(similarity, matches, total),
        )

    def find_best_match(
        self, candidate: ExternalCandidate, contacts: Sequence[CrmContact]
    ) -> Optional[SuggestedMatch]:
        """
        Pick the CRM contact this candidate most likely is.

        Only contacts whose names clear ``min_similarity_threshold`` are
        scored. The highest score at or above ``confidence_threshold`` wins;
        the earlier contact wins a tie.
        """
        if not candidate.candidate_display_name():
            return None

        best: Optional[MatchSignals] = None
        for contact in contacts:
            signals = self.compute(candidate, contact)
            if signals.name_similarity < self.config.min_similarity_threshold:
                continue
            if signals.score < self.config.confidence_threshold:
                continue
            if best is None or signals.score > best.score:
                best = signals

        if best is None:
            return None
        return SuggestedMatch(
            contact_id=best.contact.id,
            contact_name=best.contact.full_name,
            confidence=best.score,
            contact=best.contact,
        )
