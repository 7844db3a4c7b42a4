from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from medcert.domain.constants import (
    CERTIFICATE_NUMBERS,
    MODULE_NUMBERS,
    ModuleState,
    ModuleStatus,
)
from medcert.domain.models.candidate import CertificationState

REGION_WRITABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "full_name",
        "pinfl",
        "cert1",
        "cert1_note",
        "cert2",
        "cert2_note",
        "cert3",
        "cert3_note",
        "cert4",
        "cert4_note",
    }
)
ADMIN_ONLY_FIELDS: Final[frozenset[str]] = frozenset({"profession", "region_id", "brigade_id"})

VACANT_PREFIX: Final[str] = "VACANT-"


def vacant_doctor_pinfl(region_id: int, brigade_id: int) -> str:
    return f"{VACANT_PREFIX}D-{region_id}-{brigade_id}"


def vacant_nurse_pinfl(region_id: int, brigade_id: int, slot_number: int) -> str:
    return f"{VACANT_PREFIX}N-{region_id}-{brigade_id}-{slot_number}"


def is_slot_filled(full_name: str | None, pinfl: str | None) -> bool:
    return bool((full_name or "").strip() and (pinfl or "").strip())


def is_slot_vacant(full_name: str | None) -> bool:
    return not (full_name or "").strip()


def validate_module_number(module_number: Any) -> int:
    if isinstance(module_number, bool) or not isinstance(module_number, int):
        raise ValueError("Номер модуля должен быть числом от 1 до 4")
    if module_number not in MODULE_NUMBERS:
        raise ValueError("Номер модуля должен быть числом от 1 до 4")
    return module_number


def validate_module_status(status: Any) -> ModuleStatus:
    if str(status) not in ModuleStatus.values():
        raise ValueError(f"Недопустимый статус экзамена: {status}")
    return ModuleStatus(str(status))


def has_cert_chain(state: CertificationState, up_to: int) -> bool:
    """All certificates 1..up_to are held."""
    return all(state.has_certificate(number) for number in range(1, up_to + 1))


def passed_all_modules_before(state: CertificationState, module_number: int) -> bool:
    return all(
        state.module_status(number) == ModuleStatus.PASSED for number in range(1, module_number)
    )


def is_module_visible(state: CertificationState, module_number: int) -> bool:
    validate_module_number(module_number)
    if module_number == 1:
        return state.has_certificate(1)
    return passed_all_modules_before(state, module_number)


def is_module_eligible(state: CertificationState, module_number: int) -> bool:
    validate_module_number(module_number)
    if module_number == 1:
        return state.has_certificate(1)
    return has_cert_chain(state, module_number) and passed_all_modules_before(state, module_number)


def resolve_module_state(state: CertificationState, module_number: int) -> ModuleState:
    recorded = state.module_status(module_number)
    if recorded is not None:
        return ModuleState(recorded)
    if not is_module_visible(state, module_number):
        return ModuleState.NOT_VISIBLE
    if is_module_eligible(state, module_number):
        return ModuleState.VISIBLE_ELIGIBLE
    return ModuleState.VISIBLE_INELIGIBLE


def filter_writable_fields(fields: Mapping[str, Any], *, can_reassign: bool) -> dict[str, Any]:
    """Drop fields the actor may not write; unknown keys are dropped too."""
    allowed = REGION_WRITABLE_FIELDS | ADMIN_ONLY_FIELDS if can_reassign else REGION_WRITABLE_FIELDS
    return {key: value for key, value in fields.items() if key in allowed}


def apply_certificate_cascade(
    update: Mapping[str, Any], state: CertificationState | None = None
) -> dict[str, Any]:
    """Revoking certificate N revokes N+1..4 and clears their notes.

    Only the lowest revoked certificate triggers the cascade, which already
    covers every later one. A note survives only while its certificate is
    not held: granting certificate N clears its note, and with ``state`` a
    note sent for an already held certificate is cleared as well.
    """
    result = dict(update)
    for number in CERTIFICATE_NUMBERS[:-1]:
        if result.get(f"cert{number}") is False:
            for later in range(number + 1, CERTIFICATE_NUMBERS[-1] + 1):
                result[f"cert{later}"] = False
                result[f"cert{later}_note"] = None
            break
    for number in CERTIFICATE_NUMBERS:
        flag_key, note_key = f"cert{number}", f"cert{number}_note"
        held = result[flag_key] if flag_key in result else state is not None and state.has_certificate(number)
        if held is True and (flag_key in result or note_key in result):
            result[note_key] = None
    return result


def check_certificate_gate(state: CertificationState, update: Mapping[str, Any]) -> None:
    """Certificate N (N>1) may be granted only after module N-1 is passed."""
    for number in CERTIFICATE_NUMBERS[1:]:
        if update.get(f"cert{number}") is not True or state.has_certificate(number):
            continue
        if state.module_status(number - 1) != ModuleStatus.PASSED:
            raise ValueError(
                f"Сертификат {number} можно отметить только после сдачи модуля {number - 1}"
            )


def reset_certificates() -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for number in CERTIFICATE_NUMBERS:
        payload[f"cert{number}"] = False
        payload[f"cert{number}_note"] = None
    return payload
