from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from medcert.domain.constants import CERTIFICATE_NUMBERS


@dataclass(slots=True, frozen=True)
class CertificationState:
    """Certificates held by a candidate and the latest status of each module."""

    certificates: tuple[bool, bool, bool, bool] = (False, False, False, False)
    module_statuses: Mapping[int, str] = field(default_factory=dict)

    def has_certificate(self, number: int) -> bool:
        return bool(self.certificates[number - 1])

    def module_status(self, number: int) -> str | None:
        return self.module_statuses.get(number)

    @classmethod
    def from_candidate(cls, candidate: Any, results: Iterable[Any] | None = None) -> CertificationState:
        certificates = tuple(bool(getattr(candidate, f"cert{n}")) for n in CERTIFICATE_NUMBERS)
        statuses: dict[int, str] = {}
        for result in results if results is not None else getattr(candidate, "module_results", []):
            module_number = int(result.module_number)
            if module_number not in statuses:
                statuses[module_number] = str(result.status)
        return cls(certificates=certificates, module_statuses=statuses)  # type: ignore[arg-type]


@dataclass(slots=True, frozen=True)
class SlotRecord:
    region_id: int
    profession: str
    full_name: str
    pinfl: str
    state: CertificationState
