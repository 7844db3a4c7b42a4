from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from medcert.infrastructure.db.models_sqlalchemy import ModuleResult


class ModuleResultRepository:
    def get(self, session: Session, candidate_id: int, module_number: int) -> ModuleResult | None:
        stmt = select(ModuleResult).where(
            ModuleResult.candidate_id == candidate_id,
            ModuleResult.module_number == module_number,
        )
        return session.execute(stmt).scalar_one_or_none()

    def create(self, session: Session, *, candidate_id: int, module_number: int, status: str) -> ModuleResult:
        result = ModuleResult(
            candidate_id=candidate_id,
            module_number=module_number,
            status=status,
            attempt_number=1,
            is_retake=False,
        )
        session.add(result)
        session.flush()  # populate id
        return result

    def overwrite(self, session: Session, result: ModuleResult, status: str) -> ModuleResult:
        result.status = status
        result.attempt_number = 1
        result.is_retake = False
        session.flush()
        return result

    def delete_for_candidates(self, session: Session, candidate_ids: Sequence[int]) -> int:
        if not candidate_ids:
            return 0
        stmt = (
            delete(ModuleResult)
            .where(ModuleResult.candidate_id.in_(list(candidate_ids)))
            .execution_options(synchronize_session=False)
        )
        return int(session.execute(stmt).rowcount or 0)
