from __future__ import annotations

from typing import cast

import pytest

from medcert.application.dto.auth_dto import CreateUserRequest, LoginRequest, ResetPasswordRequest, UpdateUserRequest
from medcert.application.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from medcert.application.services.auth_service import AuthService
from medcert.application.services.region_service import RegionService
from medcert.application.services.user_admin_service import UserAdminService
from medcert.infrastructure.db.repositories.audit_repo import AuditLogRepository
from medcert.infrastructure.db.repositories.user_repo import UserRepository
from medcert.infrastructure.security.password_hash import hash_password


def test_create_region_user_and_login(session_factory, admin) -> None:
    region = RegionService(session_factory=session_factory).create_region("Ташкент", 1, admin)
    users = UserAdminService(session_factory=session_factory)
    auth = AuthService(session_factory=session_factory)

    created = users.create_region_user(
        CreateUserRequest(login="tashkent", password="StrongPass1", region_id=region.id), admin
    )
    assert created.role == "region"

    context = auth.login(LoginRequest(login="tashkent", password="StrongPass1"))
    assert context.login == "tashkent"
    assert context.role == "region"
    assert context.region_id == region.id
    assert context.is_admin is False

    with session_factory() as session:
        assert len(AuditLogRepository().list_events(session, action="login")) == 1


def test_create_region_user_errors(session_factory, admin, region_actor) -> None:
    region = RegionService(session_factory=session_factory).create_region("Бухара", 1, admin)
    users = UserAdminService(session_factory=session_factory)
    users.create_region_user({"login": "bukhara", "password": "StrongPass1", "region_id": region.id}, admin)

    with pytest.raises(ConflictError):
        users.create_region_user({"login": "bukhara", "password": "StrongPass1", "region_id": region.id}, admin)
    with pytest.raises(NotFoundError):
        users.create_region_user({"login": "ghost", "password": "StrongPass1", "region_id": 9999}, admin)
    with pytest.raises(ValidationError):
        users.create_region_user({"login": "short", "password": "123", "region_id": region.id}, admin)
    with pytest.raises(ForbiddenError):
        users.create_region_user(
            {"login": "sneaky", "password": "StrongPass1", "region_id": region.id}, region_actor(region.id)
        )


def test_login_failures(session_factory, admin) -> None:
    users = UserAdminService(session_factory=session_factory)
    auth = AuthService(session_factory=session_factory)
    user_id = users.create_admin("root", "RootPass123")

    with pytest.raises(ValidationError, match="Неверный логин или пароль"):
        auth.login(LoginRequest(login="root", password="wrong-password"))
    with pytest.raises(ValidationError):
        auth.login(LoginRequest(login="nobody", password="whatever"))

    users.set_active(user_id, False, admin)
    with pytest.raises(ValidationError, match="деактивирован"):
        auth.login(LoginRequest(login="root", password="RootPass123"))


def test_legacy_bcrypt_hash_is_upgraded_on_login(session_factory) -> None:
    repo = UserRepository()
    with session_factory() as session:
        user = repo.create(
            session, login="legacy", password_hash=hash_password("OldPass123", scheme="bcrypt"), role="admin"
        )
        user_id = cast(int, user.id)

    AuthService(session_factory=session_factory).login(LoginRequest(login="legacy", password="OldPass123"))

    with session_factory() as session:
        stored = repo.get_by_id(session, user_id)
        assert stored is not None
        assert stored.password_hash.startswith("$argon2")


def test_update_user_and_reset_password(session_factory, admin) -> None:
    regions = RegionService(session_factory=session_factory)
    first = regions.create_region("Нукус", 1, admin)
    second = regions.create_region("Карши", 1, admin)
    users = UserAdminService(session_factory=session_factory)
    auth = AuthService(session_factory=session_factory)
    a = users.create_region_user({"login": "nukus", "password": "StrongPass1", "region_id": first.id}, admin)
    users.create_region_user({"login": "karshi", "password": "StrongPass1", "region_id": second.id}, admin)

    updated = users.update_user(UpdateUserRequest(user_id=a.id, login="nukus2", region_id=second.id), admin)
    assert updated.login == "nukus2"
    assert updated.region_id == second.id

    with pytest.raises(ConflictError):
        users.update_user({"user_id": a.id, "login": "karshi"}, admin)
    with pytest.raises(NotFoundError):
        users.update_user({"user_id": 9999, "login": "x"}, admin)

    users.reset_password(ResetPasswordRequest(user_id=a.id, new_password="NewPass1234"), admin)
    assert auth.login(LoginRequest(login="nukus2", password="NewPass1234")).region_id == second.id

    assert [u.login for u in users.list_users(admin)] == ["nukus2", "karshi"]


def test_create_admin_is_upsert(session_factory) -> None:
    users = UserAdminService(session_factory=session_factory)
    auth = AuthService(session_factory=session_factory)

    first_id = users.create_admin("admin", "FirstPass123")
    second_id = users.create_admin("admin", "SecondPass123")
    assert first_id == second_id
    assert auth.login(LoginRequest(login="admin", password="SecondPass123")).is_admin is True

    users.reset_admin_password("admin", "ThirdPass123")
    assert auth.login(LoginRequest(login="admin", password="ThirdPass123")).role == "admin"
