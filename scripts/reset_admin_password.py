import sys

from medcert.config import settings
from medcert.container import build_container


def main() -> None:
    login = sys.argv[1] if len(sys.argv) > 1 else settings.admin_login
    password = sys.argv[2] if len(sys.argv) > 2 else settings.admin_password
    build_container().user_admin_service.reset_admin_password(login, password)
    print(f"Пароль пользователя {login} обновлён")


if __name__ == "__main__":
    main()
