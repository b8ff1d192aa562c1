# app/db/session.py
import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

# SQLite DB by default (relative file ./wedding.db)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wedding.db")


def make_engine(url: str = DATABASE_URL):
    # SQLite: allow cross-thread use and wait on write locks instead of failing fast
    connect_args = (
        {"check_same_thread": False, "timeout": 30} if url.startswith("sqlite") else {}
    )
    eng = create_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,  # safer reconnects
        future=True,
    )

    if url.startswith("sqlite"):
        # Enforce foreign keys in SQLite
        @event.listens_for(eng, "connect")
        def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    return eng


engine = make_engine()

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    future=True,
)
