from __future__ import annotations

from enum import StrEnum
from typing import Final


class Profession(StrEnum):
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class ModuleStatus(StrEnum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    NO_SHOW_1 = "NO_SHOW_1"
    NO_SHOW_2 = "NO_SHOW_2"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class ModuleState(StrEnum):
    NOT_VISIBLE = "NOT_VISIBLE"
    VISIBLE_INELIGIBLE = "VISIBLE_INELIGIBLE"
    VISIBLE_ELIGIBLE = "VISIBLE_ELIGIBLE"
    PASSED = "PASSED"
    FAILED = "FAILED"
    NO_SHOW_1 = "NO_SHOW_1"
    NO_SHOW_2 = "NO_SHOW_2"


class ImportMode(StrEnum):
    ADD = "add"
    OVERWRITE = "overwrite"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


MODULE_NUMBERS: Final[tuple[int, ...]] = (1, 2, 3, 4)
CERTIFICATE_NUMBERS: Final[tuple[int, ...]] = (1, 2, 3, 4)

DOCTOR_SLOTS_PER_BRIGADE: Final[int] = 1
NURSE_SLOTS_PER_BRIGADE: Final[int] = 4

PROFESSION_LABELS: Final[dict[str, str]] = {
    Profession.DOCTOR: "Врач",
    Profession.NURSE: "Медсестра",
}

MODULE_STATUS_LABELS: Final[dict[str, str]] = {
    ModuleStatus.PASSED: "Сдал",
    ModuleStatus.FAILED: "Не сдал",
    ModuleStatus.NO_SHOW_1: "Неявка 1 раз",
    ModuleStatus.NO_SHOW_2: "Неявка 2 раза",
}


def brigade_name(number: int) -> str:
    return f"Бригада {number}"
