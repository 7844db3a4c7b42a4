from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from medcert.infrastructure.db.models_sqlalchemy import AuditLog


class AuditLogRepository:
    def add_event(
        self,
        session: Session,
        *,
        user_id: int | None,
        entity_type: str,
        entity_id: str,
        action: str,
        payload_json: str | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            payload_json=payload_json,
        )
        session.add(entry)
        return entry

    def list_events(
        self,
        session: Session,
        *,
        entity_type: str | None = None,
        action: str | None = None,
        limit: int = 100,
    ) -> list[AuditLog]:
        stmt = select(AuditLog)
        if entity_type:
            stmt = stmt.where(AuditLog.entity_type == entity_type)
        if action:
            stmt = stmt.where(AuditLog.action == action)
        stmt = stmt.order_by(AuditLog.event_ts.desc(), AuditLog.id.desc()).limit(limit)
        return list(session.execute(stmt).scalars())
