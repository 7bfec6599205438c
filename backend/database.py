# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine, session factory, declarative base, and the FastAPI
dependency that provides a DB session per request.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import settings


def build_engine(url: str, **kwargs):
    """
    Create an engine for *url*.  SQLite connections are shared across the
    threadpool FastAPI runs sync handlers in, so the same-thread check is off.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        # pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def load_models():
    """
    Import every ORM model so Base.metadata knows about all tables.  Used by
    the Alembic env and by the test fixtures before ``create_all``.
    """
    import models.user              # noqa: F401
    import models.session           # noqa: F401
    import models.password_history  # noqa: F401
    import models.audit_log         # noqa: F401
    import models.dish              # noqa: F401
    import models.order             # noqa: F401
    return Base.metadata


def get_db():
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it.  Use with Depends(get_db).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
