from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.sql import expression

naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    # avoid constraint_name token to allow unnamed CheckConstraint
    "ck": "ck_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=naming_convention)


class Base(DeclarativeBase):
    metadata = metadata


def utc_now() -> datetime:
    return datetime.now(UTC)


class Region(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    brigades = relationship(
        "MedicalBrigade", back_populates="region", order_by="MedicalBrigade.id", passive_deletes=True
    )

    __mapper_args__ = {"version_id_col": version}


class MedicalBrigade(Base):
    __tablename__ = "medical_brigades"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    region_id = Column(Integer, ForeignKey("regions.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    region = relationship("Region", back_populates="brigades")

    __table_args__ = (Index("ix_medical_brigades_region_id", "region_id"),)


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True)
    full_name = Column(String, nullable=False, default="")
    pinfl = Column(String, nullable=False, unique=True)
    profession = Column(String, nullable=False)
    region_id = Column(Integer, ForeignKey("regions.id", ondelete="CASCADE"), nullable=False)
    brigade_id = Column(Integer, ForeignKey("medical_brigades.id", ondelete="CASCADE"), nullable=False)
    cert1 = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    cert1_note = Column(Text, nullable=True)
    cert2 = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    cert2_note = Column(Text, nullable=True)
    cert3 = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    cert3_note = Column(Text, nullable=True)
    cert4 = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    cert4_note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    region = relationship("Region")
    brigade = relationship("MedicalBrigade")
    module_results = relationship("ModuleResult", order_by="ModuleResult.module_number", viewonly=True)

    __table_args__ = (
        CheckConstraint("profession in ('DOCTOR','NURSE')", name="ck_candidates_profession"),
        Index("ix_candidates_region_id_profession", "region_id", "profession"),
        Index("ix_candidates_brigade_id", "brigade_id"),
    )


class ModuleResult(Base):
    __tablename__ = "module_results"

    id = Column(Integer, primary_key=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False)
    module_number = Column(Integer, nullable=False)
    status = Column(String, nullable=False)
    attempt_number = Column(Integer, nullable=False, default=1)
    is_retake = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("candidate_id", "module_number", name="uq_module_results_candidate_module"),
        CheckConstraint("module_number between 1 and 4", name="ck_module_results_module_number"),
        CheckConstraint(
            "status in ('PASSED','FAILED','NO_SHOW_1','NO_SHOW_2')",
            name="ck_module_results_status",
        ),
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    login = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)
    region_id = Column(Integer, ForeignKey("regions.id", ondelete="CASCADE"), nullable=True)
    is_active = Column(Boolean, nullable=False, server_default=expression.true())
    created_at = Column(DateTime, nullable=False, default=utc_now)

    region = relationship("Region")

    __table_args__ = (
        CheckConstraint("role in ('admin','region')", name="ck_users_role"),
    )


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True)
    event_ts = Column(DateTime, nullable=False, default=utc_now)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    action = Column(String, nullable=False)
    payload_json = Column(Text, nullable=True)

    __table_args__ = (
        Index("ix_audit_log_event_ts", "event_ts"),
        Index("ix_audit_log_entity_type_entity_id", "entity_type", "entity_id"),
    )
