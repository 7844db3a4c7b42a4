from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session, selectinload

from medcert.infrastructure.db.models_sqlalchemy import Candidate


class CandidateRepository:
    def get_by_id(self, session: Session, candidate_id: int, *, with_results: bool = False) -> Candidate | None:
        stmt = select(Candidate).where(Candidate.id == candidate_id)
        if with_results:
            stmt = stmt.options(selectinload(Candidate.module_results))
        return session.execute(stmt).scalar_one_or_none()

    def get_by_pinfl(self, session: Session, pinfl: str) -> Candidate | None:
        stmt = select(Candidate).where(Candidate.pinfl == pinfl)
        return session.execute(stmt).scalar_one_or_none()

    def list_candidates(
        self,
        session: Session,
        *,
        region_id: int | None = None,
        brigade_id: int | None = None,
        profession: str | None = None,
        search: str | None = None,
        with_results: bool = False,
    ) -> list[Candidate]:
        stmt = select(Candidate)
        if region_id is not None:
            stmt = stmt.where(Candidate.region_id == region_id)
        if brigade_id is not None:
            stmt = stmt.where(Candidate.brigade_id == brigade_id)
        if profession:
            stmt = stmt.where(Candidate.profession == profession)
        if search:
            stmt = stmt.where(
                or_(
                    Candidate.full_name.ilike(f"%{search}%"),
                    Candidate.pinfl.contains(search, autoescape=True),
                )
            )
        if with_results:
            stmt = stmt.options(selectinload(Candidate.module_results))
        stmt = stmt.order_by(Candidate.region_id.asc(), Candidate.brigade_id.asc(), Candidate.id.asc())
        return list(session.execute(stmt).scalars())

    def list_slots(self, session: Session, region_id: int, profession: str) -> list[Candidate]:
        stmt = (
            select(Candidate)
            .where(Candidate.region_id == region_id, Candidate.profession == profession)
            .order_by(Candidate.brigade_id.asc(), Candidate.id.asc())
        )
        return list(session.execute(stmt).scalars())

    def create_slot(
        self,
        session: Session,
        *,
        region_id: int,
        brigade_id: int,
        profession: str,
        pinfl: str,
    ) -> Candidate:
        candidate = Candidate(
            full_name="",
            pinfl=pinfl,
            profession=profession,
            region_id=region_id,
            brigade_id=brigade_id,
            cert1=False,
            cert2=False,
            cert3=False,
            cert4=False,
        )
        session.add(candidate)
        return candidate

    def apply_changes(self, candidate: Candidate, values: dict[str, Any]) -> None:
        for key, value in values.items():
            setattr(candidate, key, value)

    def ids_by_brigades(self, session: Session, brigade_ids: Sequence[int]) -> list[int]:
        if not brigade_ids:
            return []
        stmt = select(Candidate.id).where(Candidate.brigade_id.in_(list(brigade_ids)))
        return list(session.execute(stmt).scalars())

    def ids_by_region(self, session: Session, region_id: int) -> list[int]:
        stmt = select(Candidate.id).where(Candidate.region_id == region_id)
        return list(session.execute(stmt).scalars())

    def delete_by_ids(self, session: Session, candidate_ids: Sequence[int]) -> int:
        if not candidate_ids:
            return 0
        stmt = (
            delete(Candidate)
            .where(Candidate.id.in_(list(candidate_ids)))
            .execution_options(synchronize_session=False)
        )
        return int(session.execute(stmt).rowcount or 0)
