# storefront/data/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from storefront.utils.settings import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(url: str = DATABASE_URL) -> Engine:
    if url.startswith("sqlite"):
        # sqlite serializes writers, wait for the lock instead of failing at once
        return create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})

    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"},
    )


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, connection_record):
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db(bind: Engine = engine) -> None:
    # every model has to be imported before create_all
    import storefront.data.models  # noqa: F401

    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=bind)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def conflict_insert(session: Session, model):
    """
    INSERT that supports ON CONFLICT for the dialect behind the session.
    Only PostgreSQL and SQLite are supported.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise RuntimeError(f"Dialect {dialect} has no ON CONFLICT support")
