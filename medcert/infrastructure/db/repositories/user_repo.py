from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from medcert.infrastructure.db.models_sqlalchemy import User


class UserRepository:
    def get_by_login(self, session: Session, login: str) -> User | None:
        stmt = select(User).where(User.login == login)
        return session.execute(stmt).scalar_one_or_none()

    def get_by_id(self, session: Session, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id)
        return session.execute(stmt).scalar_one_or_none()

    def list_users(self, session: Session, query: str | None = None) -> list[User]:
        stmt = select(User)
        if query:
            stmt = stmt.where(User.login.ilike(f"%{query}%"))
        stmt = stmt.order_by(User.id.asc())
        return list(session.execute(stmt).scalars())

    def create(
        self,
        session: Session,
        login: str,
        password_hash: str,
        role: str,
        region_id: int | None = None,
    ) -> User:
        user = User(login=login, password_hash=password_hash, role=role, region_id=region_id, is_active=True)
        session.add(user)
        session.flush()  # populate id
        return user

    def update_fields(self, session: Session, user_id: int, values: dict[str, Any]) -> None:
        if not values:
            return
        session.execute(update(User).where(User.id == user_id).values(**values))

    def set_password(self, session: Session, user_id: int, password_hash: str) -> None:
        self.update_fields(session, user_id, {"password_hash": password_hash})

    def set_active(self, session: Session, user_id: int, is_active: bool) -> None:
        self.update_fields(session, user_id, {"is_active": is_active})

    def delete_by_region(self, session: Session, region_id: int) -> int:
        result = session.execute(
            delete(User).where(User.region_id == region_id).execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
