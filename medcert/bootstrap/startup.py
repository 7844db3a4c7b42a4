from __future__ import annotations

import logging
import traceback
from pathlib import Path
from typing import Any

from alembic import command
from alembic.config import Config
from sqlalchemy import select

from medcert.config import DEFAULT_ADMIN_PASSWORD, settings
from medcert.infrastructure.db.models_sqlalchemy import User

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "infrastructure" / "db" / "migrations"


def check_startup_prerequisites(db_file: Path) -> bool:
    if not MIGRATIONS_DIR.exists():
        logger.error("Migrations directory is missing: %s", MIGRATIONS_DIR)
        return False
    try:
        test_file = db_file.parent / ".write_test"
        test_file.write_text("ok", encoding="utf-8")
        test_file.unlink(missing_ok=True)
    except OSError:
        logger.exception("No write access to database directory %s", db_file.parent)
        return False
    return True


def build_alembic_config(database_url: str) -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def run_migrations(database_url: str, log_dir: Path, db_file: Path) -> bool:
    try:
        command.upgrade(build_alembic_config(database_url), "head")
        return True
    except Exception:  # noqa: BLE001
        logger.exception("Failed to run migrations")
        try:
            error_path = log_dir / "migration_error.log"
            error_path.parent.mkdir(parents=True, exist_ok=True)
            with error_path.open("a", encoding="utf-8") as handle:
                handle.write("\n--- Migration error ---\n")
                handle.write(f"DB: {db_file}\n")
                handle.write(f"Migrations: {MIGRATIONS_DIR}\n")
                handle.write(traceback.format_exc())
        except OSError:
            logger.exception("Failed to write migration error log")
        return False


def has_users(session_factory) -> bool:
    with session_factory() as session:
        return session.execute(select(User.id).limit(1)).first() is not None


def initialize_database(*, db_file: Path, database_url: str, log_dir: Path) -> bool:
    if not check_startup_prerequisites(db_file):
        return False
    return run_migrations(database_url, log_dir, db_file)


def seed_admin(container: Any, login: str | None = None, password: str | None = None) -> int:
    login = login or settings.admin_login
    password = password or settings.admin_password
    if password == DEFAULT_ADMIN_PASSWORD:
        logger.warning("Default admin password is in use; set ADMIN_PASSWORD in the environment")
    return container.user_admin_service.create_admin(login, password)
