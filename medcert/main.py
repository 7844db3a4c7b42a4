from __future__ import annotations

import argparse
import getpass
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from medcert.application.dto.auth_dto import LoginRequest, SessionContext
from medcert.application.errors import AppError
from medcert.bootstrap.startup import has_users, initialize_database, seed_admin
from medcert.config import DB_FILE, LOG_DIR, settings
from medcert.container import Container, build_container
from medcert.domain.constants import ImportMode, Profession
from medcert.infrastructure.db.session import session_scope


def _setup_logging() -> Path:
    log_path = LOG_DIR / "app.log"
    handler = RotatingFileHandler(log_path, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))
    root_logger.addHandler(handler)
    return log_path


def _install_exception_hook(log_path: Path) -> None:
    def _handle_exception(exc_type, exc, tb) -> None:
        logging.getLogger(__name__).error("Unhandled exception", exc_info=(exc_type, exc, tb))
        print(f"Произошла непредвиденная ошибка. Отчет: {log_path}", file=sys.stderr)
        sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _handle_exception


def _login(container: Container, args: argparse.Namespace) -> SessionContext:
    password = args.password or getpass.getpass("Пароль: ")
    return container.auth_service.login(LoginRequest(login=args.login, password=password))


def _cmd_init_db(container: Container, args: argparse.Namespace) -> int:
    if not initialize_database(db_file=DB_FILE, database_url=settings.database_url, log_dir=LOG_DIR):
        print(f"Не удалось применить миграции. Подробности: {LOG_DIR / 'migration_error.log'}", file=sys.stderr)
        return 1
    if not has_users(session_scope):
        seed_admin(container)
        print(f"Создан администратор: {settings.admin_login}")
    print("База данных готова")
    return 0


def _cmd_create_admin(container: Container, args: argparse.Namespace) -> int:
    user_id = seed_admin(container, args.login, args.password)
    print(f"Администратор готов: id={user_id}")
    return 0


def _cmd_reset_admin_password(container: Container, args: argparse.Namespace) -> int:
    password = args.password or getpass.getpass("Новый пароль: ")
    container.user_admin_service.reset_admin_password(args.login, password)
    print(f"Пароль пользователя {args.login} обновлён")
    return 0


def _cmd_import_candidates(container: Container, args: argparse.Namespace) -> int:
    actor = _login(container, args)
    result = container.candidate_import_service.import_excel(
        args.file,
        region_id=args.region_id,
        profession=args.profession,
        mode=args.mode,
        actor=actor,
    )
    print(f"Импортировано: {result.imported}, пропущено: {result.skipped}")
    if result.vacancies_count is not None:
        print(f"Свободных слотов было: {result.vacancies_count}")
    for reason in result.reasons:
        print(f"  строка {reason.row_index}: {reason.reason}")
    if result.message:
        print(result.message)
    return 0


def _cmd_export_statistics(container: Container, args: argparse.Namespace) -> int:
    actor = _login(container, args)
    report = container.reporting_service.export_statistics_xlsx(args.output, actor)
    print(f"Отчет сохранён: {report['path']} (sha256 {report['sha256']})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="medcert", description="Учёт сертификации медицинских бригад")
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="применить миграции и создать администратора")
    init_db.set_defaults(handler=_cmd_init_db)

    create_admin = sub.add_parser("create-admin", help="создать или обновить администратора")
    create_admin.add_argument("--login", default=None)
    create_admin.add_argument("--password", default=None)
    create_admin.set_defaults(handler=_cmd_create_admin)

    reset_admin = sub.add_parser("reset-admin-password", help="сбросить пароль администратора")
    reset_admin.add_argument("--login", default=settings.admin_login)
    reset_admin.add_argument("--password", default=None)
    reset_admin.set_defaults(handler=_cmd_reset_admin_password)

    import_cmd = sub.add_parser("import-candidates", help="загрузить ФИО из Excel")
    import_cmd.add_argument("file", type=Path)
    import_cmd.add_argument("--login", required=True)
    import_cmd.add_argument("--password", default=None)
    import_cmd.add_argument("--region-id", type=int, default=None)
    import_cmd.add_argument("--profession", choices=Profession.values(), required=True)
    import_cmd.add_argument("--mode", choices=ImportMode.values(), default=ImportMode.ADD.value)
    import_cmd.set_defaults(handler=_cmd_import_candidates)

    export_cmd = sub.add_parser("export-statistics", help="выгрузить статистику в Excel")
    export_cmd.add_argument("output", type=Path)
    export_cmd.add_argument("--login", required=True)
    export_cmd.add_argument("--password", default=None)
    export_cmd.set_defaults(handler=_cmd_export_statistics)
    return parser


def main(argv: list[str] | None = None) -> int:
    log_path = _setup_logging()
    _install_exception_hook(log_path)
    args = build_parser().parse_args(argv)
    container = build_container()
    try:
        return args.handler(container, args)
    except AppError as exc:
        logging.getLogger(__name__).warning("Command %s failed: %s", args.command, exc)
        print(f"Ошибка: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
