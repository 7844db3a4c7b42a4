from __future__ import annotations

import pytest

from medcert.application.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from medcert.application.services.candidate_service import CandidateService
from medcert.application.services.module_service import ModuleService
from medcert.application.services.region_service import RegionService


@pytest.fixture
def setup(session_factory, admin):
    regions = RegionService(session_factory=session_factory)
    first = regions.create_region("Ташкент", 2, admin)
    second = regions.create_region("Самарканд", 1, admin)
    service = CandidateService(session_factory=session_factory)
    modules = ModuleService(session_factory=session_factory)
    return service, modules, first, second


def _doctor(service: CandidateService, actor, region_id: int):
    return service.list_candidates(actor, region_id=region_id, profession="DOCTOR")[0]


def test_fill_slot_and_cascade_on_cert1_clear(setup, admin) -> None:
    service, modules, region, _ = setup
    doctor = _doctor(service, admin, region.id)

    service.update_candidate(doctor.id, {"full_name": "Иванов И.И.", "pinfl": "30101900000001", "cert1": True}, admin)
    modules.submit_module_result(doctor.id, 1, "PASSED", admin)
    updated = service.update_candidate(doctor.id, {"cert2": True}, admin)
    assert updated.cert2 is True

    updated = service.update_candidate(doctor.id, {"cert1": False}, admin)
    assert (updated.cert1, updated.cert2, updated.cert3, updated.cert4) == (False, False, False, False)
    assert updated.cert2_note is None


def test_cert2_gate_requires_module1_passed(setup, admin) -> None:
    service, modules, region, _ = setup
    doctor = _doctor(service, admin, region.id)
    service.update_candidate(doctor.id, {"full_name": "Петров", "cert1": True}, admin)

    with pytest.raises(ValidationError, match="Сертификат 2 можно отметить только после сдачи модуля 1"):
        service.update_candidate(doctor.id, {"cert2": True}, admin)

    modules.submit_module_result(doctor.id, 1, "FAILED", admin)
    with pytest.raises(ValidationError):
        service.update_candidate(doctor.id, {"cert2": True}, admin)

    modules.submit_module_result(doctor.id, 1, "PASSED", admin)
    assert service.update_candidate(doctor.id, {"cert2": True}, admin).cert2 is True


def test_granting_certificate_clears_note(setup, admin) -> None:
    service, _, region, _ = setup
    doctor = _doctor(service, admin, region.id)
    with_note = service.update_candidate(doctor.id, {"cert1_note": "ожидает документы"}, admin)
    assert with_note.cert1_note == "ожидает документы"

    granted = service.update_candidate(doctor.id, {"cert1": True}, admin)
    assert granted.cert1_note is None


def test_note_is_not_stored_while_certificate_held(setup, admin) -> None:
    service, _, region, _ = setup
    doctor = _doctor(service, admin, region.id)
    service.update_candidate(doctor.id, {"full_name": "Юсупов", "cert1": True}, admin)

    updated = service.update_candidate(doctor.id, {"cert1_note": "нет документа"}, admin)
    assert updated.cert1 is True
    assert updated.cert1_note is None
    assert service.get_candidate(doctor.id, admin).cert1_note is None

    revoked = service.update_candidate(doctor.id, {"cert1": False, "cert1_note": "отозван"}, admin)
    assert revoked.cert1 is False
    assert revoked.cert1_note == "отозван"


def test_region_actor_field_filter_and_scope(setup, admin, region_actor) -> None:
    service, _, region, other = setup
    actor = region_actor(region.id)
    doctor = _doctor(service, admin, region.id)
    foreign = _doctor(service, admin, other.id)

    updated = service.update_candidate(
        doctor.id,
        {"full_name": "Сидоров", "profession": "NURSE", "region_id": other.id},
        actor,
    )
    assert updated.full_name == "Сидоров"
    assert updated.profession == "DOCTOR"
    assert updated.region_id == region.id

    with pytest.raises(ForbiddenError):
        service.update_candidate(foreign.id, {"full_name": "Чужой"}, actor)
    with pytest.raises(ForbiddenError):
        service.list_candidates(actor, region_id=other.id)
    assert {c.region_id for c in service.list_candidates(actor)} == {region.id}


def test_pinfl_rules(setup, admin) -> None:
    service, _, region, _ = setup
    doctors = service.list_candidates(admin, region_id=region.id, profession="DOCTOR")
    service.update_candidate(doctors[0].id, {"pinfl": "30101900000002"}, admin)

    with pytest.raises(ConflictError, match="ПИНФЛ"):
        service.update_candidate(doctors[1].id, {"pinfl": "30101900000002"}, admin)
    with pytest.raises(ValidationError, match="ПИНФЛ"):
        service.update_candidate(doctors[1].id, {"pinfl": "  "}, admin)


def test_admin_reassignment_checks_brigade_region(setup, admin) -> None:
    service, _, region, other = setup
    doctor = _doctor(service, admin, region.id)

    with pytest.raises(ValidationError, match="Бригада не принадлежит"):
        service.update_candidate(doctor.id, {"brigade_id": other.brigades[0].id}, admin)

    moved = service.update_candidate(
        doctor.id, {"region_id": other.id, "brigade_id": other.brigades[0].id}, admin
    )
    assert moved.region_id == other.id
    assert moved.brigade_id == other.brigades[0].id


def test_missing_candidate(setup, admin) -> None:
    service, _, _, _ = setup
    with pytest.raises(NotFoundError):
        service.update_candidate(999999, {"full_name": "X"}, admin)


def test_search_by_name_and_pinfl(setup, admin) -> None:
    service, _, region, _ = setup
    nurse = service.list_candidates(admin, region_id=region.id, profession="NURSE")[0]
    service.update_candidate(nurse.id, {"full_name": "Aliyeva Dilnoza", "pinfl": "41234567890123"}, admin)

    assert [c.id for c in service.list_candidates(admin, search="aliyeva")] == [nurse.id]
    assert [c.id for c in service.list_candidates(admin, search="4567890")] == [nurse.id]
