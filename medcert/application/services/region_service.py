from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import cast

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from medcert.application.dto.auth_dto import SessionContext
from medcert.application.dto.region_dto import (
    BrigadeResponse,
    CreateRegionRequest,
    RegionResponse,
    ResizeRegionRequest,
)
from medcert.application.dto.validation import validate_request
from medcert.application.errors import ConflictError, NotFoundError
from medcert.application.services.access_guard import AccessGuard
from medcert.domain.constants import (
    DOCTOR_SLOTS_PER_BRIGADE,
    NURSE_SLOTS_PER_BRIGADE,
    Profession,
    brigade_name,
)
from medcert.domain.rules.certification_rules import vacant_doctor_pinfl, vacant_nurse_pinfl
from medcert.infrastructure.db.models_sqlalchemy import MedicalBrigade, Region
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.candidate_repo import CandidateRepository
from medcert.infrastructure.db.repositories.module_result_repo import ModuleResultRepository
from medcert.infrastructure.db.repositories.region_repo import RegionRepository
from medcert.infrastructure.db.repositories.user_repo import UserRepository
from medcert.infrastructure.db.session import session_scope

logger = logging.getLogger(__name__)

SLOTS_PER_BRIGADE = DOCTOR_SLOTS_PER_BRIGADE + NURSE_SLOTS_PER_BRIGADE


class RegionService:
    """Creates regions and keeps every brigade at 1 doctor + 4 nurse slots."""

    def __init__(
        self,
        region_repo: RegionRepository | None = None,
        candidate_repo: CandidateRepository | None = None,
        result_repo: ModuleResultRepository | None = None,
        user_repo: UserRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.region_repo = region_repo or RegionRepository()
        self.candidate_repo = candidate_repo or CandidateRepository()
        self.result_repo = result_repo or ModuleResultRepository()
        self.user_repo = user_repo or UserRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory
        self.guard = AccessGuard(audit_repo=self.audit_repo, session_factory=session_factory)

    def create_region(self, name: str, brigade_count: int, actor: SessionContext) -> RegionResponse:
        with self.guard.recording_denials(actor, entity_type="region", action="create_region"):
            self.guard.require(actor, "manage_regions")
            request = validate_request(CreateRegionRequest, {"name": name, "brigade_count": brigade_count})
            try:
                with self.session_factory() as session:
                    if self.region_repo.get_by_name(session, request.name):
                        raise ConflictError(f"Регион «{request.name}» уже существует")
                    region = self.region_repo.create(session, request.name)
                    region_id = cast(int, region.id)
                    for number in range(1, request.brigade_count + 1):
                        self._provision_brigade(session, region_id, number)

                    self.audit_repo.add_event(
                        session,
                        user_id=actor.user_id,
                        entity_type="region",
                        entity_id=str(region_id),
                        action="create_region",
                        payload_json=json.dumps(
                            {"name": request.name, "brigade_count": request.brigade_count},
                            ensure_ascii=False,
                        ),
                    )
                    response = self._to_response(session, region)
            except IntegrityError as exc:
                raise ConflictError(f"Регион «{request.name}» уже существует") from exc
        logger.info("Region created: id=%s name=%s brigades=%s", response.id, response.name, request.brigade_count)
        return response

    def resize_region(self, region_id: int, brigade_count: int, actor: SessionContext) -> RegionResponse:
        with self.guard.recording_denials(actor, entity_type="region", action="resize_region"):
            self.guard.require(actor, "manage_regions")
            request = validate_request(
                ResizeRegionRequest, {"region_id": region_id, "brigade_count": brigade_count}
            )
            try:
                with self.session_factory() as session:
                    region = self.region_repo.get_for_update(session, request.region_id)
                    if region is None:
                        raise NotFoundError("Регион не найден")
                    brigades = self.region_repo.list_brigades(session, request.region_id)
                    current = len(brigades)
                    if request.brigade_count == current:
                        return self._to_response(session, region)

                    if request.brigade_count > current:
                        for number in range(current + 1, request.brigade_count + 1):
                            self._provision_brigade(session, request.region_id, number)
                    else:
                        removed = [cast(int, b.id) for b in brigades[request.brigade_count :]]
                        candidate_ids = self.candidate_repo.ids_by_brigades(session, removed)
                        self.result_repo.delete_for_candidates(session, candidate_ids)
                        self.candidate_repo.delete_by_ids(session, candidate_ids)
                        self.region_repo.delete_brigades(session, removed)

                    self.region_repo.touch(session, region)
                    self.audit_repo.add_event(
                        session,
                        user_id=actor.user_id,
                        entity_type="region",
                        entity_id=str(request.region_id),
                        action="resize_region",
                        payload_json=json.dumps({"from": current, "to": request.brigade_count}),
                    )
                    response = self._to_response(session, region)
            except StaleDataError as exc:
                raise ConflictError("Регион был изменён параллельно, повторите операцию") from exc
        logger.info("Region resized: id=%s brigades %s -> %s", region_id, current, request.brigade_count)
        return response

    def delete_region(self, region_id: int, actor: SessionContext) -> None:
        with self.guard.recording_denials(actor, entity_type="region", action="delete_region"):
            self.guard.require(actor, "manage_regions")
            with self.session_factory() as session:
                region = self.region_repo.get_for_update(session, region_id)
                if region is None:
                    raise NotFoundError("Регион не найден")
                name = cast(str, region.name)
                version = cast(int, region.version)

                candidate_ids = self.candidate_repo.ids_by_region(session, region_id)
                self.result_repo.delete_for_candidates(session, candidate_ids)
                self.candidate_repo.delete_by_ids(session, candidate_ids)
                self.region_repo.delete_brigades_by_region(session, region_id)
                users_removed = self.user_repo.delete_by_region(session, region_id)
                if not self.region_repo.delete_versioned(session, region_id, version):
                    raise ConflictError("Регион был изменён параллельно, повторите операцию")
                session.expunge(region)

                self.audit_repo.add_event(
                    session,
                    user_id=actor.user_id,
                    entity_type="region",
                    entity_id=str(region_id),
                    action="delete_region",
                    payload_json=json.dumps(
                        {"name": name, "candidates": len(candidate_ids), "users": users_removed},
                        ensure_ascii=False,
                    ),
                )
        logger.info("Region deleted: id=%s candidates=%s", region_id, len(candidate_ids))

    def list_regions(self, actor: SessionContext) -> list[RegionResponse]:
        region_filter = self.guard.scoped_region_id(actor)
        with self.session_factory() as session:
            regions = self.region_repo.list_regions(session, region_filter)
            return [self._to_response(session, region) for region in regions]

    def get_region(self, region_id: int, actor: SessionContext) -> RegionResponse:
        with self.guard.recording_denials(actor, entity_type="region", action="get_region"):
            self.guard.require_region(actor, region_id)
            with self.session_factory() as session:
                region = self.region_repo.get_by_id(session, region_id)
                if region is None:
                    raise NotFoundError("Регион не найден")
                return self._to_response(session, region)

    def _provision_brigade(self, session: Session, region_id: int, number: int) -> MedicalBrigade:
        brigade = self.region_repo.create_brigade(session, region_id, brigade_name(number))
        brigade_id = cast(int, brigade.id)
        for _ in range(DOCTOR_SLOTS_PER_BRIGADE):
            self.candidate_repo.create_slot(
                session,
                region_id=region_id,
                brigade_id=brigade_id,
                profession=Profession.DOCTOR,
                pinfl=vacant_doctor_pinfl(region_id, brigade_id),
            )
        for slot_number in range(1, NURSE_SLOTS_PER_BRIGADE + 1):
            self.candidate_repo.create_slot(
                session,
                region_id=region_id,
                brigade_id=brigade_id,
                profession=Profession.NURSE,
                pinfl=vacant_nurse_pinfl(region_id, brigade_id, slot_number),
            )
        session.flush()
        return brigade

    def _to_response(self, session: Session, region: Region) -> RegionResponse:
        brigades = self.region_repo.list_brigades(session, cast(int, region.id))
        return RegionResponse(
            id=cast(int, region.id),
            name=cast(str, region.name),
            version=cast(int, region.version),
            brigade_count=len(brigades),
            slot_count=len(brigades) * SLOTS_PER_BRIGADE,
            brigades=[BrigadeResponse.model_validate(b) for b in brigades],
            created_at=region.created_at,
        )
