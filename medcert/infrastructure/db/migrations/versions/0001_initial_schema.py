"""Regions, brigades, candidates, module results, users and audit log"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "regions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_regions"),
        sa.UniqueConstraint("name", name="uq_regions_name"),
    )

    op.create_table(
        "medical_brigades",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("region_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["region_id"],
            ["regions.id"],
            name="fk_medical_brigades_region_id_regions",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_medical_brigades"),
    )
    op.create_index("ix_medical_brigades_region_id", "medical_brigades", ["region_id"], unique=False)

    op.create_table(
        "candidates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("pinfl", sa.String(), nullable=False),
        sa.Column("profession", sa.String(), nullable=False),
        sa.Column("region_id", sa.Integer(), nullable=False),
        sa.Column("brigade_id", sa.Integer(), nullable=False),
        sa.Column("cert1", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cert1_note", sa.Text(), nullable=True),
        sa.Column("cert2", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cert2_note", sa.Text(), nullable=True),
        sa.Column("cert3", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cert3_note", sa.Text(), nullable=True),
        sa.Column("cert4", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("cert4_note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("profession in ('DOCTOR','NURSE')", name="ck_candidates_profession"),
        sa.ForeignKeyConstraint(
            ["region_id"], ["regions.id"], name="fk_candidates_region_id_regions", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["brigade_id"],
            ["medical_brigades.id"],
            name="fk_candidates_brigade_id_medical_brigades",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_candidates"),
        sa.UniqueConstraint("pinfl", name="uq_candidates_pinfl"),
    )
    op.create_index(
        "ix_candidates_region_id_profession", "candidates", ["region_id", "profession"], unique=False
    )
    op.create_index("ix_candidates_brigade_id", "candidates", ["brigade_id"], unique=False)

    op.create_table(
        "module_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("candidate_id", sa.Integer(), nullable=False),
        sa.Column("module_number", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("is_retake", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("module_number between 1 and 4", name="ck_module_results_module_number"),
        sa.CheckConstraint(
            "status in ('PASSED','FAILED','NO_SHOW_1','NO_SHOW_2')", name="ck_module_results_status"
        ),
        sa.ForeignKeyConstraint(
            ["candidate_id"],
            ["candidates.id"],
            name="fk_module_results_candidate_id_candidates",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_module_results"),
        sa.UniqueConstraint("candidate_id", "module_number", name="uq_module_results_candidate_module"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("login", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("region_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("role in ('admin','region')", name="ck_users_role"),
        sa.ForeignKeyConstraint(
            ["region_id"], ["regions.id"], name="fk_users_region_id_regions", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("login", name="uq_users_login"),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_ts", sa.DateTime(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_audit_log_user_id_users", ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_audit_log"),
    )
    op.create_index("ix_audit_log_event_ts", "audit_log", ["event_ts"], unique=False)
    op.create_index(
        "ix_audit_log_entity_type_entity_id", "audit_log", ["entity_type", "entity_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_audit_log_entity_type_entity_id", table_name="audit_log")
    op.drop_index("ix_audit_log_event_ts", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("users")
    op.drop_table("module_results")
    op.drop_index("ix_candidates_brigade_id", table_name="candidates")
    op.drop_index("ix_candidates_region_id_profession", table_name="candidates")
    op.drop_table("candidates")
    op.drop_index("ix_medical_brigades_region_id", table_name="medical_brigades")
    op.drop_table("medical_brigades")
    op.drop_table("regions")
