from __future__ import annotations

from pathlib import Path
from typing import Any

from openpyxl import load_workbook

NAME_HEADERS = ("ФИО", "fullName", "FIO")


def read_candidate_names(file_path: str | Path) -> list[str]:
    """Names from the first sheet, one per non-empty data row, in row order.

    The first row is the header. The name column is picked by title,
    falling back to the first column. A row with other cells filled but an
    empty name cell yields an empty string.
    """
    wb = load_workbook(file_path, read_only=True, data_only=True)
    try:
        if not wb.worksheets:
            raise ValueError("В файле нет листов")
        ws = wb.worksheets[0]
        row_iter = ws.iter_rows(values_only=True)
        header = next(row_iter, None)
        if not header:
            return []
        column = _name_column(header)
        names: list[str] = []
        for row in row_iter:
            if all(_cell_text(value) == "" for value in row):
                continue
            names.append(_cell_text(row[column] if column < len(row) else None))
        return names
    finally:
        wb.close()


def _name_column(header: tuple[Any, ...]) -> int:
    titles = [_cell_text(value) for value in header]
    for name in NAME_HEADERS:
        if name in titles:
            return titles.index(name)
    return 0


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
