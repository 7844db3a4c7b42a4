from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Generator
from pathlib import Path
from uuid import uuid4

import pytest

os.environ.setdefault("MEDCERT_DATA_DIR", str(Path("pytest_artifacts") / "data"))

from medcert.application.dto.auth_dto import SessionContext  # noqa: E402
from medcert.infrastructure.db.engine import get_engine  # noqa: E402
from medcert.infrastructure.db.models_sqlalchemy import Base  # noqa: E402
from medcert.infrastructure.db.session import SessionFactory, make_session_scope  # noqa: E402


@pytest.fixture
def tmp_path() -> Generator[Path, None, None]:
    base = Path("pytest_artifacts")
    base.mkdir(parents=True, exist_ok=True)
    path = base / uuid4().hex
    path.mkdir(parents=True, exist_ok=True)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def make_session_factory(db_path: Path) -> SessionFactory:
    engine = get_engine(f"sqlite:///{db_path.as_posix()}")
    Base.metadata.create_all(engine)
    return make_session_scope(engine)


@pytest.fixture
def session_factory(tmp_path: Path) -> SessionFactory:
    return make_session_factory(tmp_path / "medcert.db")


@pytest.fixture
def admin() -> SessionContext:
    return SessionContext(user_id=None, login="admin", role="admin")


@pytest.fixture
def region_actor() -> Callable[[int], SessionContext]:
    def _make(region_id: int, login: str = "region") -> SessionContext:
        return SessionContext(user_id=None, login=login, role="region", region_id=region_id)

    return _make
