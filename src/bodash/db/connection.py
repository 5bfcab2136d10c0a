"""
bodash Database Connection Management

Engines are cached per URL so the server, CLI and tests share one pool
per database. SQLite files are used for local dashboards; any other
SQLAlchemy URL (e.g. PostgreSQL) gets pooled connections.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator
import os

from pydantic import BaseModel, Field
from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlmodel import Session, SQLModel, create_engine

DEFAULT_DATABASE_URL = "sqlite:///./data/bodash.db"


class DatabaseSettings(BaseModel):
    """Where the dashboard stores optimizations and how to connect."""

    url: str = Field(default=DEFAULT_DATABASE_URL, description="SQLAlchemy database URL")
    echo: bool = Field(default=False, description="Log emitted SQL")
    pool_size: int = Field(default=5, ge=1, description="Pool size for server databases")
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: float = Field(default=30.0, gt=0)
    connect_args: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def sqlite_path(self) -> Path | None:
        """Database file for file-backed SQLite URLs, else None."""
        if not self.is_sqlite:
            return None
        database = make_url(self.url).database
        if not database or database == ":memory:":
            return None
        return Path(database)

    def engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for sqlmodel.create_engine."""
        connect_args = dict(self.connect_args)
        kwargs: dict[str, Any] = {"echo": self.echo}

        if self.is_sqlite:
            # Sessions are used from FastAPI's worker threads
            connect_args.setdefault("check_same_thread", False)
        else:
            kwargs.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_pre_ping=True,
            )

        kwargs["connect_args"] = connect_args
        return kwargs

    @classmethod
    def from_env(cls) -> DatabaseSettings:
        """Read BODASH_DATABASE_URL and BODASH_DATABASE_ECHO."""
        return cls(
            url=os.getenv("BODASH_DATABASE_URL", DEFAULT_DATABASE_URL),
            echo=os.getenv("BODASH_DATABASE_ECHO", "false").lower() in ("1", "true", "yes"),
        )

    @classmethod
    def in_memory(cls) -> DatabaseSettings:
        """Throwaway in-memory SQLite database."""
        return cls(url="sqlite:///:memory:")

    @classmethod
    def sqlite_file(cls, path: str | Path) -> DatabaseSettings:
        """SQLite database stored at path."""
        return cls(url=f"sqlite:///{Path(path)}")


def _on_sqlite_connect(dbapi_conn, connection_record) -> None:
    cursor = dbapi_conn.cursor()
    # Measurement and insight rows cascade with their optimization
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def _build_engine(settings: DatabaseSettings) -> Engine:
    path = settings.sqlite_path
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(settings.url, **settings.engine_kwargs())
    if settings.is_sqlite:
        event.listen(engine, "connect", _on_sqlite_connect)
    return engine


# One engine per database URL
_engine_cache: dict[str, Engine] = {}


def get_engine(
    url: str = DEFAULT_DATABASE_URL,
    echo: bool = False,
    **kwargs,
) -> Engine:
    """
    Get the cached engine for a URL, creating it on first use.

    Extra keyword arguments are DatabaseSettings fields and only apply
    when the engine is created.
    """
    engine = _engine_cache.get(url)
    if engine is None:
        engine = _build_engine(DatabaseSettings(url=url, echo=echo, **kwargs))
        _engine_cache[url] = engine
    return engine


def create_engine_from_settings(settings: DatabaseSettings) -> Engine:
    """Create a fresh engine for the settings, replacing any cached one."""
    engine = _build_engine(settings)
    _engine_cache[settings.url] = engine
    return engine


def create_db_and_tables(engine: Engine | None = None) -> None:
    """Create the optimizations, measurements and insights tables."""
    # Register table models on the metadata
    import bodash.db.models  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())


def drop_db_and_tables(engine: Engine | None = None) -> None:
    """Drop all tables."""
    SQLModel.metadata.drop_all(engine or get_engine())


@contextmanager
def get_session(engine: Engine | None = None) -> Generator[Session, None, None]:
    """
    Session that commits when the block succeeds and rolls back otherwise.

    Example:
        with get_session(engine) as session:
            OptimizationRepository(session).list_by_user("alice")
    """
    session = Session(engine or get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
