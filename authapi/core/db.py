# =============================================================================================
# AUTHAPI/CORE/DB.PY - SQLALCHEMY ENGINE AND SESSION FACTORY
# =============================================================================================
# This module sets up the database connection layer using SQLAlchemy ORM.
#
# KEY CONCEPTS:
# - Engine: Manages the connection pool (created once by create_app)
# - Session factory: Creates one short-lived session per store operation
# - Base: Parent class for all ORM models (User)
#
# FLOW:
# 1. create_app() calls build_engine(settings.DATABASE_URL)
# 2. build_session_factory(engine) is handed to the CredentialStore
# 3. On startup, init_db(engine) creates tables if missing
# =============================================================================================

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """
    Create the engine for ``database_url``.

    SQLITE SPECIFICS:
    - check_same_thread=False: FastAPI runs sync handlers on a threadpool
    - ":memory:" databases use a StaticPool, so every session sees the same database
    - PRAGMAs (foreign keys, WAL) are set on each new connection
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    options = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
        options["poolclass"] = StaticPool
    engine = create_engine(database_url, **options)

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory bound to ``engine``.

    expire_on_commit=False: objects returned by the store stay readable after
    their session has closed (they are read-only snapshots for the caller).
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def init_db(engine: Engine) -> None:
    """
    Create all tables defined in models (CREATE TABLE IF NOT EXISTS).

    Fine for development and tests; production deployments should manage the
    schema with migrations instead.
    """
    # Import models so they're registered with Base.metadata
    from authapi.models import user  # noqa: F401 (imported for side effects)

    Base.metadata.create_all(bind=engine)
