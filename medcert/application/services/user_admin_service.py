from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, cast

from sqlalchemy.exc import IntegrityError

from medcert.application.dto.auth_dto import (
    CreateUserRequest,
    ResetPasswordRequest,
    SessionContext,
    UpdateUserRequest,
    UserResponse,
)
from medcert.application.dto.validation import validate_request
from medcert.application.errors import ConflictError, NotFoundError, ValidationError
from medcert.application.services.access_guard import AccessGuard
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.region_repo import RegionRepository
from medcert.infrastructure.db.repositories.user_repo import UserRepository
from medcert.infrastructure.db.session import session_scope
from medcert.infrastructure.security.password_hash import hash_password

logger = logging.getLogger(__name__)


class UserAdminService:
    def __init__(
        self,
        user_repo: UserRepository | None = None,
        region_repo: RegionRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.user_repo = user_repo or UserRepository()
        self.region_repo = region_repo or RegionRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.session_factory = session_factory
        self.guard = AccessGuard(audit_repo=self.audit_repo, session_factory=session_factory)

    def create_region_user(
        self, request: CreateUserRequest | dict[str, Any], actor: SessionContext
    ) -> UserResponse:
        with self.guard.recording_denials(actor, entity_type="user", action="create_user"):
            self.guard.require(actor, "manage_users")
            request = validate_request(CreateUserRequest, request)
            try:
                with self.session_factory() as session:
                    if self.region_repo.get_by_id(session, request.region_id) is None:
                        raise NotFoundError("Регион не найден")
                    if self.user_repo.get_by_login(session, request.login):
                        raise ConflictError("Логин уже существует")

                    hashed = hash_password(request.password, scheme="argon2")
                    user = self.user_repo.create(
                        session,
                        login=request.login,
                        password_hash=hashed,
                        role="region",
                        region_id=request.region_id,
                    )
                    self.audit_repo.add_event(
                        session,
                        user_id=actor.user_id,
                        entity_type="user",
                        entity_id=str(user.id),
                        action="create_user",
                        payload_json=json.dumps({"login": request.login, "region_id": request.region_id}),
                    )
                    response = UserResponse.model_validate(user)
            except IntegrityError as exc:
                raise ConflictError("Логин уже существует") from exc
        logger.info("Region user created: %s region=%s", request.login, request.region_id)
        return response

    def update_user(self, request: UpdateUserRequest | dict[str, Any], actor: SessionContext) -> UserResponse:
        with self.guard.recording_denials(actor, entity_type="user", action="update_user"):
            self.guard.require(actor, "manage_users")
            request = validate_request(UpdateUserRequest, request)
            try:
                with self.session_factory() as session:
                    user = self.user_repo.get_by_id(session, request.user_id)
                    if not user:
                        raise NotFoundError("Пользователь не найден")

                    values: dict[str, Any] = {}
                    if request.login and request.login != user.login:
                        if self.user_repo.get_by_login(session, request.login):
                            raise ConflictError("Логин уже занят")
                        values["login"] = request.login
                    if request.password:
                        values["password_hash"] = hash_password(request.password, scheme="argon2")
                    if request.region_id is not None:
                        if self.region_repo.get_by_id(session, request.region_id) is None:
                            raise NotFoundError("Регион не найден")
                        values["region_id"] = request.region_id
                    elif request.clear_region:
                        if user.role == "region":
                            raise ValidationError("Региональный пользователь должен быть привязан к региону")
                        values["region_id"] = None

                    self.user_repo.update_fields(session, request.user_id, values)
                    session.refresh(user)
                    self.audit_repo.add_event(
                        session,
                        user_id=actor.user_id,
                        entity_type="user",
                        entity_id=str(request.user_id),
                        action="update_user",
                        payload_json=json.dumps(
                            {"fields": sorted("password" if k == "password_hash" else k for k in values)}
                        ),
                    )
                    response = UserResponse.model_validate(user)
            except IntegrityError as exc:
                raise ConflictError("Логин уже занят") from exc
        logger.info("User updated: id=%s", request.user_id)
        return response

    def reset_password(self, request: ResetPasswordRequest | dict[str, Any], actor: SessionContext) -> None:
        with self.guard.recording_denials(actor, entity_type="user", action="reset_password"):
            self.guard.require(actor, "manage_users")
            request = validate_request(ResetPasswordRequest, request)
            with self.session_factory() as session:
                user = self.user_repo.get_by_id(session, request.user_id)
                if not user:
                    raise NotFoundError("Пользователь не найден")

                hashed = hash_password(request.new_password, scheme="argon2")
                self.user_repo.set_password(session, request.user_id, hashed)
                if request.deactivate:
                    self.user_repo.set_active(session, request.user_id, False)

                self.audit_repo.add_event(
                    session,
                    user_id=actor.user_id,
                    entity_type="user",
                    entity_id=str(request.user_id),
                    action="reset_password",
                    payload_json=json.dumps({"deactivate": request.deactivate}),
                )
        logger.info("Password reset: user_id=%s", request.user_id)

    def set_active(self, user_id: int, is_active: bool, actor: SessionContext) -> None:
        with self.guard.recording_denials(actor, entity_type="user", action="set_active"):
            self.guard.require(actor, "manage_users")
            if actor.user_id == user_id and not is_active:
                raise ValidationError("Нельзя деактивировать собственную учётную запись")
            with self.session_factory() as session:
                user = self.user_repo.get_by_id(session, user_id)
                if not user:
                    raise NotFoundError("Пользователь не найден")
                self.user_repo.set_active(session, user_id, is_active)
                self.audit_repo.add_event(
                    session,
                    user_id=actor.user_id,
                    entity_type="user",
                    entity_id=str(user_id),
                    action="set_active",
                    payload_json=json.dumps({"is_active": is_active}),
                )
        logger.info("User %s active=%s", user_id, is_active)

    def list_users(self, actor: SessionContext, query: str | None = None) -> list[UserResponse]:
        with self.guard.recording_denials(actor, entity_type="user", action="list_users"):
            self.guard.require(actor, "manage_users")
        with self.session_factory() as session:
            return [UserResponse.model_validate(u) for u in self.user_repo.list_users(session, query=query)]

    def create_admin(self, login: str, password: str) -> int:
        """Create the admin account, or refresh its password if it exists."""
        if not login or not password:
            raise ValidationError("Укажите логин и пароль администратора")
        hashed = hash_password(password, scheme="argon2")
        with self.session_factory() as session:
            user = self.user_repo.get_by_login(session, login)
            if user is None:
                user = self.user_repo.create(session, login=login, password_hash=hashed, role="admin")
                action = "create_user"
            else:
                self.user_repo.update_fields(
                    session,
                    cast(int, user.id),
                    {"password_hash": hashed, "role": "admin", "region_id": None, "is_active": True},
                )
                action = "reset_password"
            user_id = cast(int, user.id)
            self.audit_repo.add_event(
                session,
                user_id=None,
                entity_type="user",
                entity_id=str(user_id),
                action=action,
                payload_json=json.dumps({"login": login, "role": "admin", "source": "bootstrap"}),
            )
        logger.info("Admin account ready: %s (%s)", login, action)
        return user_id

    def reset_admin_password(self, login: str, password: str) -> int:
        """Upsert keyed by login; an existing account only gets a new password."""
        if not login or not password:
            raise ValidationError("Укажите логин и пароль администратора")
        hashed = hash_password(password, scheme="argon2")
        with self.session_factory() as session:
            user = self.user_repo.get_by_login(session, login)
            if user is None:
                user = self.user_repo.create(session, login=login, password_hash=hashed, role="admin")
            else:
                self.user_repo.set_password(session, cast(int, user.id), hashed)
            user_id = cast(int, user.id)
            self.audit_repo.add_event(
                session,
                user_id=None,
                entity_type="user",
                entity_id=str(user_id),
                action="reset_password",
                payload_json=json.dumps({"login": login, "source": "bootstrap"}),
            )
        logger.info("Admin password reset: %s", login)
        return user_id
