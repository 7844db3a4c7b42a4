from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from medcert.application.dto.auth_dto import SessionContext
from medcert.application.errors import ForbiddenError
from medcert.application.security.role_matrix import Permission, can_view_all_regions, has_permission
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.session import session_scope

logger = logging.getLogger(__name__)


class AccessGuard:
    """Role and region checks shared by the services.

    Denials are written to the audit log in their own transaction, after the
    failed operation has rolled back.
    """

    def __init__(
        self,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory

    def require(self, actor: SessionContext, permission: Permission) -> None:
        if not has_permission(actor.role, permission):
            raise ForbiddenError("Недостаточно прав для операции")

    def require_region(self, actor: SessionContext, region_id: int | None) -> None:
        """A regional user may only touch rows of their own region."""
        if can_view_all_regions(actor.role):
            return
        if actor.region_id is None or region_id != actor.region_id:
            raise ForbiddenError("Нет доступа к данным другого региона")

    def scoped_region_id(self, actor: SessionContext, requested: int | None = None) -> int | None:
        if can_view_all_regions(actor.role):
            return requested
        if actor.region_id is None:
            raise ForbiddenError("Пользователь не привязан к региону")
        if requested is not None and requested != actor.region_id:
            raise ForbiddenError("Нет доступа к данным другого региона")
        return actor.region_id

    @contextmanager
    def recording_denials(self, actor: SessionContext, *, entity_type: str, action: str) -> Iterator[None]:
        try:
            yield
        except ForbiddenError as exc:
            self.record_denial(actor, entity_type=entity_type, action=action, reason=str(exc))
            raise

    def record_denial(self, actor: SessionContext, *, entity_type: str, action: str, reason: str) -> None:
        logger.warning("Access denied: user=%s role=%s action=%s", actor.login, actor.role, action)
        with self.session_factory() as session:
            self.audit_repo.add_event(
                session,
                user_id=actor.user_id,
                entity_type=entity_type,
                entity_id="*",
                action="access_denied",
                payload_json=json.dumps(
                    {"action": action, "role": actor.role, "reason": reason},
                    ensure_ascii=False,
                ),
            )
