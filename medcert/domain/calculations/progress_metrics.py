from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from medcert.domain.constants import CERTIFICATE_NUMBERS, MODULE_NUMBERS, ModuleStatus, Profession
from medcert.domain.models.candidate import SlotRecord
from medcert.domain.rules.certification_rules import is_slot_filled

ModuleBuckets = dict[int, dict[str, int]]

PROBLEM_REGIONS_LIMIT = 5


def empty_module_buckets() -> ModuleBuckets:
    return {number: {status: 0 for status in ModuleStatus.values()} for number in MODULE_NUMBERS}


def compute_slot_metrics(records: Iterable[SlotRecord]) -> dict[str, Any]:
    items = list(records)
    filled_items = [r for r in items if is_slot_filled(r.full_name, r.pinfl)]
    modules = empty_module_buckets()
    for record in items:
        for module_number, status in record.state.module_statuses.items():
            bucket = modules.get(module_number)
            if bucket is None or status not in bucket:
                continue
            bucket[status] += 1

    metrics: dict[str, Any] = {
        "total_slots": len(items),
        "filled": len(filled_items),
        "vacant": len(items) - len(filled_items),
        "doctors_filled": sum(1 for r in filled_items if r.profession == Profession.DOCTOR),
        "nurses_filled": sum(1 for r in filled_items if r.profession == Profession.NURSE),
        "modules": modules,
    }
    for number in CERTIFICATE_NUMBERS:
        metrics[f"cert{number}"] = sum(1 for r in items if r.state.has_certificate(number))
    for number in MODULE_NUMBERS:
        metrics[f"module{number}_passed"] = modules[number][ModuleStatus.PASSED]
    return metrics


def build_funnel(metrics: dict[str, Any]) -> list[dict[str, Any]]:
    funnel = [{"step": "cert1", "count": metrics["cert1"]}]
    for number in MODULE_NUMBERS:
        funnel.append({"step": f"module{number}", "count": metrics[f"module{number}_passed"]})
    return funnel


def profession_breakdown(records: Iterable[SlotRecord]) -> dict[str, dict[str, int]]:
    result = {
        profession: {"total": 0, "cert1": 0, "module1_passed": 0, "module4_passed": 0}
        for profession in Profession.values()
    }
    for record in records:
        bucket = result.get(record.profession)
        if bucket is None:
            continue
        bucket["total"] += 1
        if record.state.has_certificate(1):
            bucket["cert1"] += 1
        if record.state.module_status(1) == ModuleStatus.PASSED:
            bucket["module1_passed"] += 1
        if record.state.module_status(4) == ModuleStatus.PASSED:
            bucket["module4_passed"] += 1
    return result


def total_no_show(modules: ModuleBuckets) -> int:
    return sum(
        bucket[ModuleStatus.NO_SHOW_1] + bucket[ModuleStatus.NO_SHOW_2] for bucket in modules.values()
    )


def total_failed(modules: ModuleBuckets) -> int:
    return sum(bucket[ModuleStatus.FAILED] for bucket in modules.values())


def top_regions(
    rows: Sequence[dict[str, Any]], key: str, limit: int = PROBLEM_REGIONS_LIMIT
) -> list[dict[str, Any]]:
    # sorted() is stable: ties keep input order.
    return sorted(rows, key=lambda row: row[key], reverse=True)[:limit]
