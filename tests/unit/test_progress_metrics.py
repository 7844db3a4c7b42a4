from __future__ import annotations

from medcert.domain.calculations.progress_metrics import (
    build_funnel,
    compute_slot_metrics,
    profession_breakdown,
    top_regions,
    total_failed,
    total_no_show,
)
from medcert.domain.models.candidate import CertificationState, SlotRecord


def _record(region_id: int, profession: str, name: str, certs=(False,) * 4, **modules: str) -> SlotRecord:
    statuses = {int(key.removeprefix("m")): value for key, value in modules.items()}
    return SlotRecord(
        region_id=region_id,
        profession=profession,
        full_name=name,
        pinfl=f"P-{region_id}-{name or 'vacant'}",
        state=CertificationState(certificates=tuple(certs), module_statuses=statuses),
    )


def test_slot_metrics_counts_filled_and_modules() -> None:
    records = [
        _record(1, "DOCTOR", "Иванов", (True, True, False, False), m1="PASSED"),
        _record(1, "NURSE", "Петрова", (True, False, False, False), m1="NO_SHOW_1"),
        _record(1, "NURSE", ""),
    ]
    metrics = compute_slot_metrics(records)

    assert metrics["total_slots"] == 3
    assert metrics["filled"] == 2
    assert metrics["vacant"] == 1
    assert metrics["doctors_filled"] == 1
    assert metrics["nurses_filled"] == 1
    assert metrics["cert1"] == 2
    assert metrics["cert2"] == 1
    assert metrics["module1_passed"] == 1
    assert metrics["modules"][1]["NO_SHOW_1"] == 1
    assert total_no_show(metrics["modules"]) == 1
    assert total_failed(metrics["modules"]) == 0


def test_funnel_order() -> None:
    metrics = compute_slot_metrics([_record(1, "DOCTOR", "A", (True, False, False, False), m1="PASSED")])
    funnel = build_funnel(metrics)
    assert [step["step"] for step in funnel] == ["cert1", "module1", "module2", "module3", "module4"]
    assert [step["count"] for step in funnel] == [1, 1, 0, 0, 0]


def test_profession_breakdown() -> None:
    records = [
        _record(1, "DOCTOR", "A", (True, False, False, False), m1="PASSED"),
        _record(1, "NURSE", "B", m4="PASSED"),
        _record(1, "NURSE", ""),
    ]
    result = profession_breakdown(records)
    assert result["DOCTOR"] == {"total": 1, "cert1": 1, "module1_passed": 1, "module4_passed": 0}
    assert result["NURSE"] == {"total": 2, "cert1": 0, "module1_passed": 0, "module4_passed": 1}


def test_top_regions_is_stable_on_ties() -> None:
    rows = [{"name": name, "vacant": value} for name, value in [("a", 1), ("b", 3), ("c", 1), ("d", 3)]]
    assert [row["name"] for row in top_regions(rows, "vacant")] == ["b", "d", "a", "c"]


def test_top_regions_limit() -> None:
    rows = [{"name": str(i), "vacant": i} for i in range(8)]
    assert len(top_regions(rows, "vacant")) == 5
