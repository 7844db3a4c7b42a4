from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import cast

from medcert.application.dto.auth_dto import SessionContext
from medcert.application.dto.candidate_dto import (
    CandidateResponse,
    ModuleCandidateRow,
    ModuleResultResponse,
)
from medcert.application.errors import NotFoundError, ValidationError
from medcert.application.services.access_guard import AccessGuard
from medcert.domain.constants import ModuleStatus
from medcert.domain.models.candidate import CertificationState
from medcert.domain.rules.certification_rules import (
    is_module_eligible,
    is_module_visible,
    resolve_module_state,
    validate_module_number,
    validate_module_status,
)
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.candidate_repo import CandidateRepository
from medcert.infrastructure.db.repositories.module_result_repo import ModuleResultRepository
from medcert.infrastructure.db.session import session_scope

logger = logging.getLogger(__name__)


class ModuleService:
    """Module exam lists and result recording.

    Module 1 is open to holders of certificate 1. Module N>1 becomes visible
    once every earlier module is passed, and eligible when certificates
    1..N are held as well.
    """

    def __init__(
        self,
        candidate_repo: CandidateRepository | None = None,
        result_repo: ModuleResultRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.candidate_repo = candidate_repo or CandidateRepository()
        self.result_repo = result_repo or ModuleResultRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory
        self.guard = AccessGuard(audit_repo=self.audit_repo, session_factory=session_factory)

    def list_module_candidates(
        self,
        module_number: int,
        actor: SessionContext,
        include_hidden: bool = False,
    ) -> list[ModuleCandidateRow]:
        try:
            number = validate_module_number(module_number)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        with self.guard.recording_denials(actor, entity_type="module_result", action="list_module_candidates"):
            region_filter = self.guard.scoped_region_id(actor)

        rows: list[ModuleCandidateRow] = []
        with self.session_factory() as session:
            candidates = self.candidate_repo.list_candidates(session, region_id=region_filter, with_results=True)
            for candidate in candidates:
                state = CertificationState.from_candidate(candidate)
                visible = is_module_visible(state, number)
                if not visible and not include_hidden:
                    continue
                latest = state.module_status(number)
                rows.append(
                    ModuleCandidateRow(
                        candidate=CandidateResponse.model_validate(candidate),
                        visible=visible,
                        eligible=is_module_eligible(state, number),
                        latest_status=ModuleStatus(latest) if latest else None,
                        state=resolve_module_state(state, number),
                    )
                )
        return rows

    def submit_module_result(
        self,
        candidate_id: int,
        module_number: int,
        status: str,
        actor: SessionContext,
    ) -> ModuleResultResponse:
        with self.guard.recording_denials(actor, entity_type="module_result", action="submit_module_result"):
            self.guard.require(actor, "record_module_results")
            with self.session_factory() as session:
                candidate = self.candidate_repo.get_by_id(session, candidate_id, with_results=True)
                if candidate is None:
                    raise NotFoundError("Кандидат не найден")
                try:
                    number = validate_module_number(module_number)
                    checked_status = validate_module_status(status)
                except ValueError as exc:
                    raise ValidationError(str(exc)) from exc

                state = CertificationState.from_candidate(candidate)
                if not is_module_eligible(state, number):
                    raise ValidationError(f"Кандидат не допущен к модулю {number}")

                existing = self.result_repo.get(session, candidate_id, number)
                if existing is None:
                    result = self.result_repo.create(
                        session, candidate_id=candidate_id, module_number=number, status=checked_status
                    )
                    previous = None
                else:
                    previous = cast(str, existing.status)
                    result = self.result_repo.overwrite(session, existing, checked_status)

                self.audit_repo.add_event(
                    session,
                    user_id=actor.user_id,
                    entity_type="module_result",
                    entity_id=str(result.id),
                    action="submit_module_result",
                    payload_json=json.dumps(
                        {
                            "candidate_id": candidate_id,
                            "module_number": number,
                            "status": str(checked_status),
                            "previous": previous,
                        }
                    ),
                )
                response = ModuleResultResponse.model_validate(result)
        logger.info(
            "Module result recorded: candidate=%s module=%s status=%s", candidate_id, number, checked_status
        )
        return response
