from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, cast

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from medcert.application.dto.auth_dto import SessionContext
from medcert.application.dto.candidate_dto import (
    CandidateResponse,
    CandidateSearchRequest,
    CandidateUpdateRequest,
)
from medcert.application.dto.validation import validate_request
from medcert.application.errors import ConflictError, NotFoundError, ValidationError
from medcert.application.security.role_matrix import can_edit_candidate_assignment
from medcert.application.services.access_guard import AccessGuard
from medcert.domain.models.candidate import CertificationState
from medcert.domain.rules.certification_rules import (
    apply_certificate_cascade,
    check_certificate_gate,
    filter_writable_fields,
)
from medcert.infrastructure.db.models_sqlalchemy import Candidate
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.candidate_repo import CandidateRepository
from medcert.infrastructure.db.repositories.region_repo import RegionRepository
from medcert.infrastructure.db.session import session_scope

logger = logging.getLogger(__name__)

# Columns that cannot hold NULL; an explicit None for them means "leave as is".
_NON_NULLABLE = frozenset({"pinfl", "profession", "region_id", "brigade_id", "cert1", "cert2", "cert3", "cert4"})


class CandidateService:
    def __init__(
        self,
        candidate_repo: CandidateRepository | None = None,
        region_repo: RegionRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.candidate_repo = candidate_repo or CandidateRepository()
        self.region_repo = region_repo or RegionRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory
        self.guard = AccessGuard(audit_repo=self.audit_repo, session_factory=session_factory)

    def list_candidates(
        self,
        actor: SessionContext,
        *,
        region_id: int | None = None,
        brigade_id: int | None = None,
        profession: str | None = None,
        search: str | None = None,
    ) -> list[CandidateResponse]:
        request = validate_request(
            CandidateSearchRequest,
            {"region_id": region_id, "brigade_id": brigade_id, "profession": profession, "search": search},
        )
        with self.guard.recording_denials(actor, entity_type="candidate", action="list_candidates"):
            region_filter = self.guard.scoped_region_id(actor, request.region_id)
        with self.session_factory() as session:
            rows = self.candidate_repo.list_candidates(
                session,
                region_id=region_filter,
                brigade_id=request.brigade_id,
                profession=request.profession,
                search=request.search or None,
                with_results=True,
            )
            return [CandidateResponse.model_validate(row) for row in rows]

    def get_candidate(self, candidate_id: int, actor: SessionContext) -> CandidateResponse:
        with self.guard.recording_denials(actor, entity_type="candidate", action="get_candidate"):
            with self.session_factory() as session:
                candidate = self.candidate_repo.get_by_id(session, candidate_id, with_results=True)
                if candidate is None:
                    raise NotFoundError("Кандидат не найден")
                self.guard.require_region(actor, cast(int, candidate.region_id))
                return CandidateResponse.model_validate(candidate)

    def update_candidate(
        self, candidate_id: int, fields: Mapping[str, Any], actor: SessionContext
    ) -> CandidateResponse:
        with self.guard.recording_denials(actor, entity_type="candidate", action="update_candidate"):
            self.guard.require(actor, "edit_candidates")
            request = validate_request(CandidateUpdateRequest, dict(fields))
            submitted = filter_writable_fields(
                request.model_dump(exclude_unset=True), can_reassign=can_edit_candidate_assignment(actor.role)
            )
            update = self._normalize(submitted)

            try:
                with self.session_factory() as session:
                    candidate = self.candidate_repo.get_by_id(session, candidate_id, with_results=True)
                    if candidate is None:
                        raise NotFoundError("Кандидат не найден")
                    self.guard.require_region(actor, cast(int, candidate.region_id))

                    state = CertificationState.from_candidate(candidate)
                    update = apply_certificate_cascade(update, state)
                    try:
                        check_certificate_gate(state, update)
                    except ValueError as exc:
                        raise ValidationError(str(exc)) from exc

                    if "pinfl" in update:
                        self._check_pinfl(session, candidate, update["pinfl"])
                    if "region_id" in update or "brigade_id" in update:
                        self._check_assignment(session, candidate, update)

                    self.candidate_repo.apply_changes(candidate, update)
                    session.flush()
                    self.audit_repo.add_event(
                        session,
                        user_id=actor.user_id,
                        entity_type="candidate",
                        entity_id=str(candidate_id),
                        action="update_candidate",
                        payload_json=json.dumps(
                            {"fields": sorted(update), "region_id": cast(int, candidate.region_id)},
                            ensure_ascii=False,
                        ),
                    )
                    response = CandidateResponse.model_validate(candidate)
            except IntegrityError as exc:
                raise ConflictError("Кандидат с таким ПИНФЛ уже существует") from exc
        logger.info("Candidate updated: id=%s by=%s fields=%s", candidate_id, actor.login, sorted(update))
        return response

    @staticmethod
    def _normalize(submitted: dict[str, Any]) -> dict[str, Any]:
        update: dict[str, Any] = {}
        for key, value in submitted.items():
            if key == "full_name":
                update[key] = value or ""
            elif value is None and key in _NON_NULLABLE:
                continue
            elif key == "profession":
                update[key] = str(value)
            else:
                update[key] = value
        return update

    def _check_pinfl(self, session: Session, candidate: Candidate, pinfl: str) -> None:
        if not pinfl:
            raise ValidationError("ПИНФЛ не может быть пустым")
        other = self.candidate_repo.get_by_pinfl(session, pinfl)
        if other is not None and other.id != candidate.id:
            raise ConflictError("Кандидат с таким ПИНФЛ уже существует")

    def _check_assignment(self, session: Session, candidate: Candidate, update: dict[str, Any]) -> None:
        target_region = update.get("region_id", candidate.region_id)
        target_brigade = update.get("brigade_id", candidate.brigade_id)
        if self.region_repo.get_by_id(session, target_region) is None:
            raise NotFoundError("Регион не найден")
        brigade = self.region_repo.get_brigade(session, target_brigade)
        if brigade is None:
            raise ValidationError("Бригада не найдена")
        if brigade.region_id != target_region:
            raise ValidationError("Бригада не принадлежит выбранному региону")
