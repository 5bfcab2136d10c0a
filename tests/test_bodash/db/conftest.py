"""
Test fixtures for bodash database layer.

Provides in-memory SQLite databases and sample rows.
"""

from __future__ import annotations

from typing import Generator

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import Session

from bodash.db.connection import (
    create_engine_from_settings,
    create_db_and_tables,
    drop_db_and_tables,
    DatabaseSettings,
    _engine_cache,
)
from bodash.db.models import Optimization, OptimizationStatus


@pytest.fixture(scope="function")
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory SQLite engine for testing."""
    _engine_cache.clear()

    settings = DatabaseSettings.in_memory()
    eng = create_engine_from_settings(settings)
    create_db_and_tables(eng)

    yield eng

    drop_db_and_tables(eng)
    eng.dispose()
    _engine_cache.clear()


@pytest.fixture(scope="function")
def session(engine: Engine) -> Generator[Session, None, None]:
    """Create a test session."""
    sess = Session(engine)
    try:
        yield sess
        sess.commit()
    except Exception:
        sess.rollback()
        raise
    finally:
        sess.close()


def _build_optimization(user_id: str = "alice", name: str = "study", **kwargs) -> Optimization:
    """Build an unsaved single-target optimization."""
    fields = dict(
        user_id=user_id,
        name=name,
        optimizer_id=f"{user_id}_{name}",
        status=OptimizationStatus.ACTIVE,
        config={"parameters": []},
        targets=[{"name": "yield", "mode": "MAX", "weight": 1.0}],
        objective_type="single",
        primary_target_name="yield",
        primary_target_mode="MAX",
    )
    fields.update(kwargs)
    return Optimization(**fields)


@pytest.fixture
def make_optimization():
    """Factory for unsaved optimizations."""
    return _build_optimization


@pytest.fixture
def sample_optimization(session: Session) -> Optimization:
    """Create a sample optimization for testing."""
    optimization = _build_optimization()
    session.add(optimization)
    session.commit()
    session.refresh(optimization)
    return optimization
