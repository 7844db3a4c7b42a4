from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from medcert.infrastructure.db.engine import get_engine

SessionFactory = Callable[[], AbstractContextManager[Session]]


def make_session_scope(bound_engine: Engine) -> SessionFactory:
    """Build a ``session_scope``-style factory bound to ``bound_engine``.

    Each scope is one transaction: committed when the block exits cleanly,
    rolled back on any exception. Objects stay usable after commit so
    services can map them to DTOs outside the session.
    """
    session_local = sessionmaker(
        bind=bound_engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
    )

    @contextmanager
    def _scope() -> Iterator[Session]:
        session: Session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return _scope


engine = get_engine()
session_scope = make_session_scope(engine)
