import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

DEFAULT_DATABASE_URL = "postgresql://localhost/billing"

# documents are read after the request session closes
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()

DATABASE_URL = ""
engine = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(database_url: str):
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    sqlite_engine = create_engine(database_url, connect_args={"check_same_thread": False})
    event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
    return sqlite_engine


def configure_database() -> None:
    """(Re)bind SessionLocal to DATABASE_URL. No-op while the URL is unchanged."""
    global DATABASE_URL, engine

    database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    if engine is not None and database_url == DATABASE_URL:
        return

    if engine is not None:
        engine.dispose()

    engine = _create_engine(database_url)
    SessionLocal.configure(bind=engine)
    DATABASE_URL = database_url


configure_database()
