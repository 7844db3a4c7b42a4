from __future__ import annotations

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.worksheet.worksheet import Worksheet

from medcert.application.dto.statistics_dto import RegionMetrics, StatisticsSummary
from medcert.domain.constants import (
    MODULE_NUMBERS,
    MODULE_STATUS_LABELS,
    PROFESSION_LABELS,
    ModuleStatus,
    Profession,
)

REGION_COLUMNS = ("Регион", "Всего мест", "Вакантно")
CERTIFICATE_SUBHEADERS = ("есть", "нет")
STATUS_ORDER = (ModuleStatus.PASSED, ModuleStatus.FAILED, ModuleStatus.NO_SHOW_1, ModuleStatus.NO_SHOW_2)


def build_statistics_workbook(summary: StatisticsSummary) -> Workbook:
    wb = Workbook()
    regions_ws = wb.active
    regions_ws.title = "Регионы"
    _write_regions_sheet(regions_ws, summary.regions)

    modules_ws = wb.create_sheet(title="Модули")
    modules_ws.append(["Регион", "Модуль", "Сдал", "Не сдал", "Не пришёл 1 раз", "Не пришёл 2 раза"])
    for region in summary.regions:
        for number in MODULE_NUMBERS:
            bucket = _bucket(region, number)
            modules_ws.append([region.name, f"Модуль {number}", *(bucket.get(s, 0) for s in STATUS_ORDER)])

    professions_ws = wb.create_sheet(title="Профессии")
    professions_ws.append(["Профессия", "Всего", "Сертификат 1", "Модуль 1 сдали", "Модуль 4 сдали"])
    for profession in Profession:
        metrics = summary.professions.get(profession.value)
        if metrics is None:
            continue
        professions_ws.append(
            [
                PROFESSION_LABELS[profession],
                metrics.total,
                metrics.cert1,
                metrics.module1_passed,
                metrics.module4_passed,
            ]
        )

    vacancies_ws = wb.create_sheet(title="Вакансии")
    vacancies_ws.append(list(REGION_COLUMNS))
    for region in summary.regions:
        vacancies_ws.append([region.name, region.total_slots, region.vacant])
    return wb


def _write_regions_sheet(ws: Worksheet, regions: list[RegionMetrics]) -> None:
    """Two header rows: certificate and module groups over their sub-columns."""
    group_row: list[str] = list(REGION_COLUMNS)
    sub_row: list[str] = ["" for _ in REGION_COLUMNS]
    merges: list[tuple[int, int, int, int]] = [(1, col, 2, col) for col in range(1, len(REGION_COLUMNS) + 1)]

    for number in MODULE_NUMBERS:
        start = len(group_row) + 1
        group_row.extend([f"Сертификат {number}", ""])
        sub_row.extend(CERTIFICATE_SUBHEADERS)
        merges.append((1, start, 1, start + 1))

        start = len(group_row) + 1
        group_row.extend([f"Модуль {number}", "", "", ""])
        sub_row.extend(MODULE_STATUS_LABELS[status] for status in STATUS_ORDER)
        merges.append((1, start, 1, start + 3))

    ws.append(group_row)
    ws.append(sub_row)
    for header_row in ws.iter_rows(min_row=1, max_row=2):
        for cell in header_row:
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal="center", vertical="center")
    for start_row, start_col, end_row, end_col in merges:
        ws.merge_cells(start_row=start_row, start_column=start_col, end_row=end_row, end_column=end_col)

    for region in regions:
        row: list[object] = [region.name, region.total_slots, region.vacant]
        for number in MODULE_NUMBERS:
            held = getattr(region, f"cert{number}")
            row.extend([held, region.total_slots - held])
            bucket = _bucket(region, number)
            row.extend(bucket.get(status, 0) for status in STATUS_ORDER)
        ws.append(row)


def _bucket(region: RegionMetrics, number: int) -> dict[str, int]:
    return region.modules.get(number, {})
