from __future__ import annotations

import pytest

from medcert.domain.constants import ModuleState
from medcert.domain.models.candidate import CertificationState
from medcert.domain.rules.certification_rules import (
    apply_certificate_cascade,
    check_certificate_gate,
    filter_writable_fields,
    is_module_eligible,
    is_module_visible,
    is_slot_filled,
    resolve_module_state,
    vacant_doctor_pinfl,
    vacant_nurse_pinfl,
    validate_module_number,
    validate_module_status,
)


def _state(certs=(False, False, False, False), **modules: str) -> CertificationState:
    statuses = {int(key.removeprefix("m")): value for key, value in modules.items()}
    return CertificationState(certificates=tuple(certs), module_statuses=statuses)


def test_placeholder_pinfls() -> None:
    assert vacant_doctor_pinfl(3, 7) == "VACANT-D-3-7"
    assert vacant_nurse_pinfl(3, 7, 2) == "VACANT-N-3-7-2"


def test_slot_filled_needs_name_and_pinfl() -> None:
    assert is_slot_filled("Иванов", "123") is True
    assert is_slot_filled("  ", "123") is False
    assert is_slot_filled("Иванов", "") is False


def test_cascade_on_cert1_clear_resets_later_certificates() -> None:
    result = apply_certificate_cascade({"cert1": False})
    assert result["cert2"] is False and result["cert3"] is False and result["cert4"] is False
    assert result["cert2_note"] is None and result["cert4_note"] is None


def test_cascade_first_match_wins() -> None:
    result = apply_certificate_cascade({"cert2": False, "cert3": True})
    assert result["cert3"] is False
    assert result["cert4"] is False
    assert "cert1" not in result


def test_cascade_on_cert3_clear_touches_only_cert4() -> None:
    result = apply_certificate_cascade({"cert3": False})
    assert result == {"cert3": False, "cert4": False, "cert4_note": None}


def test_granting_certificate_clears_its_note() -> None:
    result = apply_certificate_cascade({"cert1": True, "cert1_note": "нет документа"})
    assert result["cert1_note"] is None


def test_note_for_held_certificate_is_cleared() -> None:
    held = _state(certs=(True, False, False, False))
    assert apply_certificate_cascade({"cert1_note": "нет документа"}, held) == {"cert1_note": None}

    result = apply_certificate_cascade({"cert2_note": "ждёт модуль 1"}, held)
    assert result == {"cert2_note": "ждёт модуль 1"}


def test_revoking_held_certificate_keeps_new_note() -> None:
    held = _state(certs=(True, False, False, False))
    result = apply_certificate_cascade({"cert1": False, "cert1_note": "отозван"}, held)
    assert result["cert1"] is False
    assert result["cert1_note"] == "отозван"


def test_gate_blocks_cert2_without_module1_passed() -> None:
    state = _state(certs=(True, False, False, False), m1="FAILED")
    with pytest.raises(ValueError, match="Сертификат 2 можно отметить только после сдачи модуля 1"):
        check_certificate_gate(state, {"cert2": True})


def test_gate_allows_cert2_after_module1_passed() -> None:
    state = _state(certs=(True, False, False, False), m1="PASSED")
    check_certificate_gate(state, {"cert2": True})


def test_gate_skips_certificates_already_held() -> None:
    state = _state(certs=(True, True, False, False))
    check_certificate_gate(state, {"cert2": True})


def test_cert1_has_no_precondition() -> None:
    check_certificate_gate(_state(), {"cert1": True})


def test_module1_visibility_follows_cert1() -> None:
    assert is_module_visible(_state(), 1) is False
    state = _state(certs=(True, False, False, False))
    assert is_module_visible(state, 1) is True
    assert is_module_eligible(state, 1) is True


def test_module2_visible_but_ineligible_without_cert2() -> None:
    state = _state(certs=(True, False, False, False), m1="PASSED")
    assert is_module_visible(state, 2) is True
    assert is_module_eligible(state, 2) is False
    assert resolve_module_state(state, 2) == ModuleState.VISIBLE_INELIGIBLE


def test_module3_needs_every_previous_module_passed() -> None:
    state = _state(certs=(True, True, True, False), m1="PASSED", m2="NO_SHOW_1")
    assert is_module_visible(state, 3) is False
    assert resolve_module_state(state, 3) == ModuleState.NOT_VISIBLE

    state = _state(certs=(True, True, True, False), m1="PASSED", m2="PASSED")
    assert is_module_eligible(state, 3) is True
    assert resolve_module_state(state, 3) == ModuleState.VISIBLE_ELIGIBLE


def test_recorded_result_wins_in_module_state() -> None:
    state = _state(certs=(True, False, False, False), m1="NO_SHOW_2")
    assert resolve_module_state(state, 1) == ModuleState.NO_SHOW_2


def test_region_fields_filter_drops_assignment_fields() -> None:
    fields = {"full_name": "A", "region_id": 2, "brigade_id": 5, "profession": "NURSE", "unknown": 1}
    assert filter_writable_fields(fields, can_reassign=False) == {"full_name": "A"}
    assert filter_writable_fields(fields, can_reassign=True) == {
        "full_name": "A",
        "region_id": 2,
        "brigade_id": 5,
        "profession": "NURSE",
    }


@pytest.mark.parametrize("value", [0, 5, "1", True, None])
def test_invalid_module_numbers_rejected(value) -> None:
    with pytest.raises(ValueError):
        validate_module_number(value)


def test_module_status_validation() -> None:
    assert validate_module_status("FAILED") == "FAILED"
    with pytest.raises(ValueError, match="Недопустимый статус"):
        validate_module_status("ABSENT")
