from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Literal, cast

from medcert.application.dto.auth_dto import LoginRequest, SessionContext
from medcert.application.dto.validation import validate_request
from medcert.application.errors import ValidationError
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.user_repo import UserRepository
from medcert.infrastructure.db.session import session_scope
from medcert.infrastructure.security.password_hash import hash_password, needs_rehash, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        user_repo: UserRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.user_repo = user_repo or UserRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory

    def login(self, request: LoginRequest | dict[str, Any]) -> SessionContext:
        request = validate_request(LoginRequest, request)
        with self.session_factory() as session:
            user = self.user_repo.get_by_login(session, request.login)
            if not user or not user.is_active:
                logger.warning("Login rejected: unknown or inactive login=%s", request.login)
                raise ValidationError("Неверный логин или пользователь деактивирован")

            password_hash = cast(str, user.password_hash)
            try:
                valid = verify_password(request.password, password_hash)
            except ValueError:
                valid = False
            if not valid:
                logger.warning("Login rejected: wrong password login=%s", request.login)
                raise ValidationError("Неверный логин или пароль")

            user_id = cast(int, user.id)
            if needs_rehash(password_hash):
                # Legacy bcrypt hashes are upgraded on first successful login.
                self.user_repo.set_password(session, user_id, hash_password(request.password))

            self.audit_repo.add_event(
                session,
                user_id=user_id,
                entity_type="user",
                entity_id=str(user_id),
                action="login",
                payload_json=json.dumps({"login": cast(str, user.login)}),
            )
            context = SessionContext(
                user_id=user_id,
                login=cast(str, user.login),
                role=cast(Literal["admin", "region"], user.role),
                region_id=cast(int | None, user.region_id),
            )
        logger.info("User logged in: %s (%s)", context.login, context.role)
        return context
