from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class IdentifierKind(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    CHAT_HANDLE = "chat_handle"

    @classmethod
    def parse(cls, value: Any) -> Optional["IdentifierKind"]:
        """
        Resolve a kind tag from input data.

        Returns ``None`` for empty values, for ``"unknown"`` and for any tag
        outside the enum, so the caller falls back to classification.
        ``"chat-handle"`` is accepted as an alias.
        """
        if isinstance(value, IdentifierKind):
            return value
        text = str(value or "").strip().lower().replace("-", "_")
        try:
            return cls(text)
        except ValueError:
            return None


class ContactMethodSlot(str, Enum):
    EMAIL_PERSONAL = "email_personal"
    EMAIL_WORK = "email_work"
    PHONE = "phone"
    CHAT_HANDLE = "chat_handle"
    WHATSAPP = "whatsapp"


class ConflictType(str, Enum):
    NONE = "none"
    IDENTICAL = "identical"
    TYPE_CONFLICT = "type_conflict"
    VALUE_CONFLICT = "value_conflict"


class DisplayState(str, Enum):
    ADDING = "adding"
    UNCHANGED = "unchanged"
    CONFLICT = "conflict"
    NAME_MISMATCH = "name_mismatch"


class Resolution(str, Enum):
    USE_CRM = "use_crm"
    USE_EXTERNAL = "use_external"


class MergeAction(str, Enum):
    ADD = "add"
    REPLACE = "replace"
    KEEP = "keep"


@dataclass(frozen=True)
class RawIdentifier:
    value: str
    kind: Optional[IdentifierKind] = None
    origin_hint: str = ""

    @staticmethod
    def from_mapping(payload: Any, kind: Optional[IdentifierKind] = None) -> "RawIdentifier":
        if isinstance(payload, RawIdentifier):
            return payload
        if isinstance(payload, str):
            return RawIdentifier(value=payload, kind=kind)
        if isinstance(payload, (int, float)):
            # bare JSON numbers, e.g. a phone exported without formatting
            return RawIdentifier(value=str(payload), kind=kind)
        if not isinstance(payload, dict):
            raise TypeError(f"Unsupported identifier payload type: {type(payload)!r}")
        # an "unknown" or unrecognised kind is left unset so the value gets classified
        declared = IdentifierKind.parse(payload["kind"]) if "kind" in payload else kind
        return RawIdentifier(
            value=str(payload.get("value", "") or ""),
            kind=declared,
            origin_hint=str(payload.get("type", "") or payload.get("label", "") or "").strip(),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "value": self.value,
            "kind": self.kind.value if self.kind else "",
            "origin_hint": self.origin_hint,
        }


@dataclass(frozen=True)
class NormalizedIdentifier:
    value: str
    kind: IdentifierKind


@dataclass(frozen=True)
class ExistingMethod:
    id: str
    slot: ContactMethodSlot
    value: str

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "ExistingMethod":
        if isinstance(payload, ExistingMethod):
            return payload
        if not isinstance(payload, dict):
            raise TypeError(f"Unsupported method payload type: {type(payload)!r}")
        return ExistingMethod(
            id=str(payload.get("id", "") or "").strip(),
            slot=ContactMethodSlot(str(payload.get("slot") or payload.get("type") or "").strip()),
            value=str(payload.get("value", "") or ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "slot": self.slot.value, "value": self.value}


def _ensure_identifier_list(values: Any, kind: IdentifierKind) -> List[RawIdentifier]:
    if values is None:
        return []
    if isinstance(values, (str, int, float, dict, RawIdentifier)):
        values = [values]
    return [RawIdentifier.from_mapping(value, kind=kind) for value in values if value is not None]


def ensure_method_list(values: Sequence[Any]) -> List[ExistingMethod]:
    if values is None:
        raise TypeError("existing methods must be a list, not None")
    return [ExistingMethod.from_mapping(value) for value in values]


@dataclass
class ExternalCandidate:
    display_name: str = ""
    first_name: str = ""
    last_name: str = ""
    emails: List[RawIdentifier] = field(default_factory=list)
    phones: List[RawIdentifier] = field(default_factory=list)
    handles: List[RawIdentifier] = field(default_factory=list)
    id: str = ""
    source: str = ""

    @classmethod
    def from_mapping(cls, payload: Dict[str, Any]) -> "ExternalCandidate":
        return cls(
            display_name=str(payload.get("display_name", "") or "").strip(),
            first_name=str(payload.get("first_name", "") or "").strip(),
            last_name=str(payload.get("last_name", "") or "").strip(),
            emails=_ensure_identifier_list(payload.get("emails", []) or [], IdentifierKind.EMAIL),
            phones=_ensure_identifier_list(payload.get("phones", []) or [], IdentifierKind.PHONE),
            handles=_ensure_identifier_list(
                payload.get("handles", []) or [], IdentifierKind.CHAT_HANDLE
            ),
            id=str(payload.get("id", "") or "").strip(),
            source=str(payload.get("source", "") or "").strip(),
        )

    def candidate_display_name(self) -> str:
        if self.display_name:
            return self.display_name
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or self.last_name

    def raw_values(self) -> List[str]:
        return [identifier.value for identifier in (*self.emails, *self.phones, *self.handles)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "display_name": self.display_name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "emails": [email.to_dict() for email in self.emails],
            "phones": [phone.to_dict() for phone in self.phones],
            "handles": [handle.to_dict() for handle in self.handles],
        }


@dataclass
class CrmContact:
    id: str = ""
    full_name: str = ""
    methods: List[ExistingMethod] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, payload: Dict[str, Any]) -> "CrmContact":
        return cls(
            id=str(payload.get("id", "") or "").strip(),
            full_name=str(payload.get("full_name", "") or "").strip(),
            methods=ensure_method_list(payload.get("methods", []) or []),
        )


@dataclass(frozen=True)
class MethodComparison:
    external_value: str
    external_kind: IdentifierKind
    suggested_slot: ContactMethodSlot
    conflict_type: ConflictType
    state: DisplayState
    crm_method: Optional[ExistingMethod] = None

    def replace(self, **changes: Any) -> "MethodComparison":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "external_value": self.external_value,
            "external_kind": self.external_kind.value,
            "suggested_slot": self.suggested_slot.value,
            "conflict_type": self.conflict_type.value,
            "state": self.state.value,
            "crm_method_id": self.crm_method.id if self.crm_method else "",
            "crm_method_slot": self.crm_method.slot.value if self.crm_method else "",
            "crm_method_value": self.crm_method.value if self.crm_method else "",
        }


@dataclass(frozen=True)
class ContactComparison:
    comparisons: List[MethodComparison]
    name_similarity: float
    name_threshold: float = 0.5

    @property
    def name_mismatch(self) -> bool:
        return self.name_similarity < self.name_threshold

    @property
    def has_conflicts(self) -> bool:
        return any(item.state is DisplayState.CONFLICT for item in self.comparisons)


@dataclass(frozen=True)
class SuggestedMatch:
    contact_id: str
    contact_name: str
    confidence: float
    # the ranked contact itself; ids in a corpus are not guaranteed unique
    contact: Optional[CrmContact] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class MethodSelection:
    original_value: str
    slot: ContactMethodSlot

    @staticmethod
    def from_mapping(payload: Dict[str, Any]) -> "MethodSelection":
        return MethodSelection(
            original_value=str(payload.get("original_value", "") or ""),
            slot=ContactMethodSlot(str(payload.get("type") or payload.get("slot") or "").strip()),
        )


@dataclass(frozen=True)
class PlannedChange:
    action: MergeAction
    slot: ContactMethodSlot
    value: str
    normalized_value: str
    crm_method: Optional[ExistingMethod] = None


@dataclass
class MergePlan:
    changes: List[PlannedChange] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def by_action(self, action: MergeAction) -> List[PlannedChange]:
        return [change for change in self.changes if change.action is action]
