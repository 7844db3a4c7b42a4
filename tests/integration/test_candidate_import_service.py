from __future__ import annotations

from pathlib import Path

import pytest
from openpyxl import Workbook

from medcert.application.errors import ForbiddenError, NotFoundError, ValidationError
from medcert.application.services.candidate_import_service import CandidateImportService
from medcert.application.services.candidate_service import CandidateService
from medcert.application.services.region_service import RegionService


@pytest.fixture
def setup(session_factory, admin):
    region = RegionService(session_factory=session_factory).create_region("Ташкент", 2, admin)
    service = CandidateImportService(session_factory=session_factory, chunk_size=3)
    candidates = CandidateService(session_factory=session_factory)
    return service, candidates, region


def _names(candidates: CandidateService, actor, region_id: int, profession: str) -> list[str]:
    return [c.full_name for c in candidates.list_candidates(actor, region_id=region_id, profession=profession)]


def test_add_fills_vacancies_in_order(setup, admin) -> None:
    service, candidates, region = setup

    result = service.import_names(
        region_id=region.id, profession="NURSE", mode="add", names=["А", "", "Б", "В"], actor=admin
    )

    assert result.imported == 3
    assert result.skipped == 0
    assert result.vacancies_count == 8
    assert result.message is None
    assert _names(candidates, admin, region.id, "NURSE") == ["А", "Б", "В", "", "", "", "", ""]


def test_add_reports_rows_beyond_vacancies(setup, admin) -> None:
    service, candidates, region = setup

    result = service.import_names(
        region_id=region.id, profession="DOCTOR", mode="add", names=["А", "Б", "В"], actor=admin
    )

    assert result.imported == 2
    assert result.skipped == 1
    assert [r.row_index for r in result.reasons] == [4]

    again = service.import_names(region_id=region.id, profession="DOCTOR", mode="add", names=["Г"], actor=admin)
    assert again.imported == 0
    assert again.vacancies_count == 0
    assert [r.row_index for r in again.reasons] == [0]
    assert "всего слотов: 2" in again.reasons[0].reason
    assert again.message is not None


def test_overwrite_rewrites_and_clears_slots(setup, admin) -> None:
    service, candidates, region = setup
    nurses = candidates.list_candidates(admin, region_id=region.id, profession="NURSE")
    candidates.update_candidate(nurses[2].id, {"full_name": "Старая", "cert1": True}, admin)

    result = service.import_names(
        region_id=region.id, profession="NURSE", mode="overwrite", names=["Н1", "Н2"], actor=admin
    )

    assert result.imported == 2
    assert result.skipped == 0
    assert result.vacancies_count is None
    assert _names(candidates, admin, region.id, "NURSE") == ["Н1", "Н2", "", "", "", "", "", ""]
    cleared = candidates.get_candidate(nurses[2].id, admin)
    assert cleared.cert1 is False


def test_overwrite_blank_row_resets_slot_and_extra_rows_are_skipped(setup, admin) -> None:
    service, candidates, region = setup
    doctors = candidates.list_candidates(admin, region_id=region.id, profession="DOCTOR")
    candidates.update_candidate(doctors[0].id, {"full_name": "Врач", "cert1": True}, admin)

    result = service.import_names(
        region_id=region.id, profession="DOCTOR", mode="overwrite", names=["", "Второй", "Лишний"], actor=admin
    )

    assert result.imported == 1
    assert result.skipped == 2
    assert [r.row_index for r in result.reasons] == [4]
    assert _names(candidates, admin, region.id, "DOCTOR") == ["", "Второй"]
    assert candidates.get_candidate(doctors[0].id, admin).cert1 is False


def test_region_scoping(setup, admin, region_actor, session_factory) -> None:
    service, candidates, region = setup
    other = RegionService(session_factory=session_factory).create_region("Бухара", 1, admin)

    result = service.import_names(
        region_id=None, profession="DOCTOR", mode="add", names=["Свой"], actor=region_actor(region.id)
    )
    assert result.imported == 1

    with pytest.raises(ForbiddenError):
        service.import_names(
            region_id=other.id, profession="DOCTOR", mode="add", names=["Чужой"], actor=region_actor(region.id)
        )
    with pytest.raises(ValidationError):
        service.import_names(region_id=None, profession="DOCTOR", mode="add", names=["X"], actor=admin)
    with pytest.raises(NotFoundError):
        service.import_names(region_id=9999, profession="DOCTOR", mode="add", names=["X"], actor=admin)
    with pytest.raises(ValidationError):
        service.import_names(region_id=region.id, profession="SURGEON", mode="add", names=["X"], actor=admin)
    with pytest.raises(ValidationError):
        service.import_names(region_id=region.id, profession="DOCTOR", mode="replace", names=["X"], actor=admin)


def _write_workbook(path: Path, rows: list[list[object]]) -> Path:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


def test_import_excel_uses_fio_column(setup, admin, tmp_path: Path) -> None:
    service, candidates, region = setup
    path = _write_workbook(
        tmp_path / "nurses.xlsx",
        [["№", "ФИО"], [1, "Каримова"], [None, None], [2, "Юсупова"], [3, None]],
    )

    result = service.import_excel(path, region_id=region.id, profession="NURSE", mode="add", actor=admin)

    assert result.imported == 2
    assert _names(candidates, admin, region.id, "NURSE")[:3] == ["Каримова", "Юсупова", ""]


def test_import_excel_falls_back_to_first_column(setup, admin, tmp_path: Path) -> None:
    service, candidates, region = setup
    path = _write_workbook(tmp_path / "doctors.xlsx", [["Имя"], ["Первый"], ["Второй"]])

    result = service.import_excel(path, region_id=region.id, profession="DOCTOR", mode="overwrite", actor=admin)

    assert result.imported == 2
    assert _names(candidates, admin, region.id, "DOCTOR") == ["Первый", "Второй"]


def test_import_excel_rejects_broken_file(setup, admin, tmp_path: Path) -> None:
    service, _, region = setup
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a workbook")

    with pytest.raises(ValidationError, match="Некорректный файл Excel"):
        service.import_excel(path, region_id=region.id, profession="DOCTOR", mode="add", actor=admin)
