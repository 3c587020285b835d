# eventhub/infrastructure/db/session.py

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import NullPool, StaticPool

from eventhub.infrastructure.config import database_url, sqlite_busy_timeout_seconds


# -----------------------------
# Engine
# -----------------------------
def build_engine(url: str) -> Engine:
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection keeps the in-memory database alive.
        # Its sessions must not run concurrently (tests, scripts).
        return create_engine(
            url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite"):
        # A connection per session; writers queue on the database lock.
        return create_engine(
            url,
            echo=False,
            future=True,
            connect_args={
                "check_same_thread": False,
                "timeout": sqlite_busy_timeout_seconds(),
            },
            poolclass=NullPool,
        )
    return create_engine(
        url,
        echo=False,
        future=True,
        pool_pre_ping=True,
    )


DATABASE_URL = database_url()

engine: Engine = build_engine(DATABASE_URL)


# -----------------------------
# Base Class for Models
# -----------------------------
class Base(DeclarativeBase):
    pass


# -----------------------------
# Session Factory
# -----------------------------
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


# -----------------------------
# Context Manager (Non-FastAPI usage)
# -----------------------------
@contextmanager
def get_db_session():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
