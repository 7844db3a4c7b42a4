from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from medcert.infrastructure.db.models_sqlalchemy import MedicalBrigade, Region, utc_now


class RegionRepository:
    def get_by_id(self, session: Session, region_id: int) -> Region | None:
        return session.get(Region, region_id)

    def get_for_update(self, session: Session, region_id: int) -> Region | None:
        # FOR UPDATE is a no-op on SQLite; the version column still guards the row.
        stmt = select(Region).where(Region.id == region_id).with_for_update()
        return session.execute(stmt).scalar_one_or_none()

    def get_by_name(self, session: Session, name: str) -> Region | None:
        stmt = select(Region).where(Region.name == name)
        return session.execute(stmt).scalar_one_or_none()

    def list_regions(self, session: Session, region_id: int | None = None, *, order_by_name: bool = False) -> list[Region]:
        stmt = select(Region)
        if region_id is not None:
            stmt = stmt.where(Region.id == region_id)
        stmt = stmt.order_by(Region.name.asc() if order_by_name else Region.id.asc())
        return list(session.execute(stmt).scalars())

    def create(self, session: Session, name: str) -> Region:
        region = Region(name=name)
        session.add(region)
        session.flush()  # populate id
        return region

    def touch(self, session: Session, region: Region) -> None:
        """Bump the row version so a concurrent writer fails on flush."""
        region.updated_at = utc_now()
        session.flush()

    def delete_versioned(self, session: Session, region_id: int, version: int) -> bool:
        stmt = (
            delete(Region)
            .where(Region.id == region_id, Region.version == version)
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        return bool(result.rowcount)

    def list_brigades(self, session: Session, region_id: int) -> list[MedicalBrigade]:
        stmt = select(MedicalBrigade).where(MedicalBrigade.region_id == region_id).order_by(MedicalBrigade.id.asc())
        return list(session.execute(stmt).scalars())

    def get_brigade(self, session: Session, brigade_id: int) -> MedicalBrigade | None:
        return session.get(MedicalBrigade, brigade_id)

    def create_brigade(self, session: Session, region_id: int, name: str) -> MedicalBrigade:
        brigade = MedicalBrigade(region_id=region_id, name=name)
        session.add(brigade)
        session.flush()  # populate id
        return brigade

    def delete_brigades(self, session: Session, brigade_ids: Sequence[int]) -> int:
        if not brigade_ids:
            return 0
        stmt = (
            delete(MedicalBrigade)
            .where(MedicalBrigade.id.in_(list(brigade_ids)))
            .execution_options(synchronize_session=False)
        )
        return int(session.execute(stmt).rowcount or 0)

    def delete_brigades_by_region(self, session: Session, region_id: int) -> int:
        stmt = (
            delete(MedicalBrigade)
            .where(MedicalBrigade.region_id == region_id)
            .execution_options(synchronize_session=False)
        )
        return int(session.execute(stmt).rowcount or 0)
