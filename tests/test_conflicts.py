import pytest

from contact_reconcile.conflicts import compare_candidate, detect_conflicts, flag_name_mismatch
from contact_reconcile.models import (
    ConflictType,
    ContactMethodSlot,
    DisplayState,
    ExistingMethod,
    ExternalCandidate,
    IdentifierKind,
    RawIdentifier,
)


def make_candidate(emails=(), phones=(), handles=(), display_name="Test User"):
    return ExternalCandidate.from_mapping(
        {
            "id": "ext-1",
            "source": "gcontacts",
            "display_name": display_name,
            "emails": list(emails),
            "phones": list(phones),
            "handles": list(handles),
        }
    )


def method(slot, value, method_id="method-1"):
    return ExistingMethod(id=method_id, slot=ContactMethodSlot(slot), value=value)


def test_new_personal_email_is_added():
    result = detect_conflicts(make_candidate(["new@gmail.com"]), [])
    assert len(result) == 1
    assert result[0].external_value == "new@gmail.com"
    assert result[0].external_kind is IdentifierKind.EMAIL
    assert result[0].suggested_slot is ContactMethodSlot.EMAIL_PERSONAL
    assert result[0].conflict_type is ConflictType.NONE
    assert result[0].state is DisplayState.ADDING
    assert result[0].crm_method is None


def test_new_work_email_is_added():
    result = detect_conflicts(make_candidate(["new@company.com"]), [])
    assert result[0].suggested_slot is ContactMethodSlot.EMAIL_WORK
    assert result[0].state is DisplayState.ADDING


def test_identical_email():
    crm = [method("email_personal", "John@Gmail.com")]
    result = detect_conflicts(make_candidate(["john@gmail.com"]), crm)
    assert result[0].conflict_type is ConflictType.IDENTICAL
    assert result[0].state is DisplayState.UNCHANGED
    assert result[0].crm_method == crm[0]


def test_type_conflict_when_value_sits_in_another_slot():
    crm = [method("email_work", "john@gmail.com")]
    result = detect_conflicts(make_candidate(["john@gmail.com"]), crm)
    assert result[0].conflict_type is ConflictType.TYPE_CONFLICT
    assert result[0].state is DisplayState.CONFLICT
    assert result[0].crm_method.slot is ContactMethodSlot.EMAIL_WORK


def test_value_conflict_when_slot_is_taken():
    crm = [method("email_personal", "old@gmail.com")]
    result = detect_conflicts(make_candidate(["new@gmail.com"]), crm)
    assert len(result) == 1
    assert result[0].conflict_type is ConflictType.VALUE_CONFLICT
    assert result[0].state is DisplayState.CONFLICT
    assert result[0].suggested_slot is ContactMethodSlot.EMAIL_PERSONAL
    assert result[0].crm_method.value == "old@gmail.com"


def test_origin_hint_steers_the_slot():
    candidate = make_candidate([{"value": "john@gmail.com", "type": "work"}])
    crm = [method("email_work", "john@gmail.com")]
    result = detect_conflicts(candidate, crm)
    assert result[0].suggested_slot is ContactMethodSlot.EMAIL_WORK
    assert result[0].conflict_type is ConflictType.IDENTICAL


def test_mixed_emails_keep_input_order():
    crm = [method("email_personal", "existing@gmail.com")]
    result = detect_conflicts(make_candidate(["existing@gmail.com", "new@company.com"]), crm)
    assert [item.conflict_type for item in result] == [ConflictType.IDENTICAL, ConflictType.NONE]
    assert result[1].state is DisplayState.ADDING


def test_phones_match_after_normalization():
    crm = [method("phone", "+15551234567")]
    result = detect_conflicts(make_candidate(phones=["(555) 123-4567"]), crm)
    assert result[0].conflict_type is ConflictType.IDENTICAL
    assert result[0].suggested_slot is ContactMethodSlot.PHONE


def test_phone_in_whatsapp_slot_is_a_type_conflict():
    crm = [method("whatsapp", "+1 555 123 4567")]
    result = detect_conflicts(make_candidate(phones=["555-123-4567"]), crm)
    assert result[0].conflict_type is ConflictType.TYPE_CONFLICT


def test_handles_are_compared_like_other_identifiers():
    crm = [method("chat_handle", "@CaseyEx")]
    result = detect_conflicts(make_candidate(handles=["caseyex", "@someone"]), crm)
    assert [item.conflict_type for item in result] == [ConflictType.IDENTICAL, ConflictType.NONE]
    assert result[1].suggested_slot is ContactMethodSlot.CHAT_HANDLE


def test_emails_come_before_phones_and_handles():
    candidate = make_candidate(["a@gmail.com"], ["+15551234567"], ["@a"])
    kinds = [item.external_kind for item in detect_conflicts(candidate, [])]
    assert kinds == [IdentifierKind.EMAIL, IdentifierKind.PHONE, IdentifierKind.CHAT_HANDLE]


def test_no_existing_methods_means_everything_is_added():
    result = detect_conflicts(make_candidate(["john@gmail.com"], ["+15551234567"]), [])
    assert len(result) == 2
    assert all(item.conflict_type is ConflictType.NONE for item in result)
    assert all(item.state is DisplayState.ADDING for item in result)


def test_empty_candidate_yields_nothing():
    assert detect_conflicts(make_candidate(), [method("email_personal", "john@gmail.com")]) == []


def test_unnormalizable_identifiers_are_skipped():
    candidate = make_candidate(["   ", "ok@gmail.com"], ["n/a", "  "])
    result = detect_conflicts(candidate, [])
    assert [item.external_value for item in result] == ["ok@gmail.com"]


def test_matched_method_is_not_reused():
    crm = [method("email_personal", "dup@gmail.com")]
    result = detect_conflicts(make_candidate(["dup@gmail.com", "DUP@gmail.com"]), crm)
    assert result[0].conflict_type is ConflictType.IDENTICAL
    assert result[1].conflict_type is ConflictType.NONE
    assert result[1].crm_method is None


def test_slot_match_is_consumed_once():
    crm = [method("phone", "+15550000000")]
    result = detect_conflicts(make_candidate(phones=["+15551111111", "+15552222222"]), crm)
    assert result[0].conflict_type is ConflictType.VALUE_CONFLICT
    assert result[1].conflict_type is ConflictType.NONE


def test_value_match_prefers_earliest_existing_method():
    crm = [
        method("email_work", "same@gmail.com", "m-1"),
        method("email_personal", "same@gmail.com", "m-2"),
    ]
    result = detect_conflicts(make_candidate(["same@gmail.com"]), crm)
    assert result[0].crm_method.id == "m-1"
    assert result[0].conflict_type is ConflictType.TYPE_CONFLICT


def test_untagged_identifier_is_classified():
    candidate = ExternalCandidate(
        emails=[RawIdentifier.from_mapping({"value": "555-123-4567", "kind": "unknown"})]
    )
    result = detect_conflicts(candidate, [method("phone", "+15551234567")])
    assert result[0].external_kind is IdentifierKind.PHONE
    assert result[0].conflict_type is ConflictType.IDENTICAL


def test_existing_methods_may_be_mappings():
    crm = [{"id": "m-9", "type": "email_personal", "value": "old@gmail.com"}]
    result = detect_conflicts(make_candidate(["new@gmail.com"]), crm)
    assert result[0].crm_method == ExistingMethod(
        "m-9", ContactMethodSlot.EMAIL_PERSONAL, "old@gmail.com"
    )


def test_contract_violations_fail_fast():
    with pytest.raises(TypeError):
        detect_conflicts(None, [])
    with pytest.raises(TypeError):
        detect_conflicts(make_candidate(["a@gmail.com"]), None)


def test_compare_candidate_scores_names():
    crm = [method("email_personal", "old@gmail.com")]
    candidate = make_candidate(["new@gmail.com"], display_name="John Doe")
    result = compare_candidate(candidate, crm, "Jane Smith")
    assert result.name_similarity < 0.5
    assert result.name_mismatch is True
    assert result.has_conflicts is True

    same = compare_candidate(make_candidate(display_name="John Doe"), [], "john doe")
    assert same.name_similarity == 1
    assert same.name_mismatch is False


def test_flag_name_mismatch_keeps_conflicts_visible():
    crm = [method("email_personal", "old@gmail.com")]
    comparisons = detect_conflicts(make_candidate(["new@gmail.com"], ["+15551234567"]), crm)
    flagged = flag_name_mismatch(comparisons)
    assert [item.state for item in flagged] == [DisplayState.CONFLICT, DisplayState.NAME_MISMATCH]
    # originals are untouched
    assert comparisons[1].state is DisplayState.ADDING


def test_malformed_identifiers_are_tolerated():
    candidate = ExternalCandidate.from_mapping(
        {
            "display_name": "Casey Example",
            "emails": "casey@gmail.com",
            "phones": [None, 5551234567, {"value": "555-000-1111", "kind": "fax"}],
        }
    )
    assert [item.value for item in candidate.emails] == ["casey@gmail.com"]
    assert [item.value for item in candidate.phones] == ["5551234567", "555-000-1111"]
    assert candidate.phones[1].kind is None

    result = detect_conflicts(candidate, [method("phone", "+15551234567")])
    assert [(item.external_kind, item.conflict_type) for item in result] == [
        (IdentifierKind.EMAIL, ConflictType.NONE),
        (IdentifierKind.PHONE, ConflictType.IDENTICAL),
        (IdentifierKind.PHONE, ConflictType.NONE),
    ]


@pytest.mark.parametrize("tag", ["fax", "", None, "unknown"])
def test_unrecognised_kind_tags_fall_back_to_classification(tag):
    assert IdentifierKind.parse(tag) is None


def test_kind_tag_aliases():
    assert IdentifierKind.parse("chat-handle") is IdentifierKind.CHAT_HANDLE
    assert IdentifierKind.parse(" Phone ") is IdentifierKind.PHONE
