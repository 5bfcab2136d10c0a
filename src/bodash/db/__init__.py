"""
bodash Database Layer

Provides SQLModel ORM models, repository pattern, and connection management.
"""

from bodash.db.models import (
    Optimization,
    Measurement,
    Insight,
    OptimizationStatus,
    InsightType,
)
from bodash.db.connection import (
    get_engine,
    get_session,
    create_db_and_tables,
    drop_db_and_tables,
    create_engine_from_settings,
    DatabaseSettings,
)
from bodash.db.repository import (
    OptimizationRepository,
    MeasurementRepository,
    InsightRepository,
    RepositoryError,
    NotFoundError,
    InvalidStateTransitionError,
)
from bodash.db.migration import migrate_to_multi_target

__all__ = [
    # Models
    "Optimization",
    "Measurement",
    "Insight",
    "OptimizationStatus",
    "InsightType",
    # Connection
    "get_engine",
    "get_session",
    "create_db_and_tables",
    "drop_db_and_tables",
    "create_engine_from_settings",
    "DatabaseSettings",
    # Repositories
    "OptimizationRepository",
    "MeasurementRepository",
    "InsightRepository",
    "RepositoryError",
    "NotFoundError",
    "InvalidStateTransitionError",
    # Migration
    "migrate_to_multi_target",
]
