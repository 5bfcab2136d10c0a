"""
bodash Repository Pattern

Provides repository classes for CRUD operations on optimizations,
measurements and insights, with validated status transitions.
"""

from __future__ import annotations

from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select, col

from bodash.db.models import (
    Optimization,
    OptimizationStatus,
    Measurement,
    Insight,
    InsightType,
    utc_now,
)


# =============================================================================
# Exceptions
# =============================================================================


class RepositoryError(Exception):
    """Base exception for repository errors."""
    pass


class NotFoundError(RepositoryError):
    """Entity not found."""
    pass


class InvalidStateTransitionError(RepositoryError):
    """Invalid optimization state transition."""
    pass


# =============================================================================
# Generic Base Repository
# =============================================================================

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations."""

    model: type[T]

    def __init__(self, session: Session):
        self.session = session

    def get(self, id: UUID) -> T | None:
        """Get entity by ID."""
        return self.session.get(self.model, id)

    def get_or_raise(self, id: UUID) -> T:
        """Get entity by ID or raise NotFoundError."""
        entity = self.get(id)
        if entity is None:
            raise NotFoundError(f"{self.model.__name__} with id {id} not found")
        return entity

    def create(self, entity: T) -> T:
        """Create a new entity."""
        self.session.add(entity)
        self.session.flush()
        self.session.refresh(entity)
        return entity

    def update(self, entity: T) -> T:
        """Update an existing entity."""
        entity.updated_at = utc_now()  # type: ignore
        self.session.add(entity)
        self.session.flush()
        self.session.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        """Delete an entity."""
        self.session.delete(entity)
        self.session.flush()

    def delete_by_id(self, id: UUID) -> bool:
        """Delete entity by ID. Returns True if deleted."""
        entity = self.get(id)
        if entity:
            self.delete(entity)
            return True
        return False


# =============================================================================
# Optimization Repository
# =============================================================================


class OptimizationRepository(BaseRepository[Optimization]):
    """Repository for Optimization entities."""

    model = Optimization

    VALID_TRANSITIONS: dict[OptimizationStatus, set[OptimizationStatus]] = {
        OptimizationStatus.DRAFT: {
            OptimizationStatus.ACTIVE,
            OptimizationStatus.FAILED,
        },
        OptimizationStatus.ACTIVE: {
            OptimizationStatus.PAUSED,
            OptimizationStatus.COMPLETED,
            OptimizationStatus.FAILED,
        },
        OptimizationStatus.PAUSED: {
            OptimizationStatus.ACTIVE,
            OptimizationStatus.COMPLETED,
            OptimizationStatus.FAILED,
        },
        OptimizationStatus.COMPLETED: set(),
        OptimizationStatus.FAILED: set(),
    }

    def list_by_user(
        self,
        user_id: str,
        status: OptimizationStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Optimization]:
        """List a user's optimizations, newest first."""
        stmt = select(Optimization).where(Optimization.user_id == user_id)

        if status is not None:
            stmt = stmt.where(Optimization.status == status)

        stmt = stmt.order_by(col(Optimization.created_at).desc())
        stmt = stmt.offset(offset).limit(limit)

        return list(self.session.exec(stmt).all())

    def list_all(self) -> list[Optimization]:
        """List every optimization regardless of owner."""
        stmt = select(Optimization).order_by(col(Optimization.created_at).asc())
        return list(self.session.exec(stmt).all())

    def get_by_optimizer_id(self, optimizer_id: str) -> Optimization | None:
        """Get optimization by its remote optimizer ID."""
        stmt = select(Optimization).where(Optimization.optimizer_id == optimizer_id)
        return self.session.exec(stmt).first()

    def can_transition(
        self,
        optimization: Optimization,
        new_status: OptimizationStatus,
    ) -> bool:
        return new_status in self.VALID_TRANSITIONS.get(optimization.status, set())

    def update_status(
        self,
        optimization_id: UUID,
        new_status: OptimizationStatus,
    ) -> Optimization:
        """Update optimization status with validation."""
        optimization = self.get_or_raise(optimization_id)

        if optimization.status == new_status:
            return optimization

        valid_next = self.VALID_TRANSITIONS.get(optimization.status, set())
        if new_status not in valid_next:
            raise InvalidStateTransitionError(
                f"Cannot transition from {optimization.status.value} to {new_status.value}. "
                f"Valid transitions: {sorted(s.value for s in valid_next)}"
            )

        optimization.status = new_status
        return self.update(optimization)


# =============================================================================
# Measurement Repository
# =============================================================================


class MeasurementRepository(BaseRepository[Measurement]):
    """Repository for Measurement entities."""

    model = Measurement

    def list_by_optimization(
        self,
        optimization_id: UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Measurement]:
        """List measurements of an optimization, oldest first."""
        stmt = (
            select(Measurement)
            .where(Measurement.optimization_id == optimization_id)
            .order_by(col(Measurement.created_at).asc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.exec(stmt).all())

    def count_by_optimization(self, optimization_id: UUID) -> int:
        """Count measurements of an optimization."""
        stmt = (
            select(func.count())
            .select_from(Measurement)
            .where(Measurement.optimization_id == optimization_id)
        )
        return self.session.exec(stmt).one()

    def list_by_user(self, user_id: str) -> list[Measurement]:
        """List all measurements across a user's optimizations, oldest first."""
        stmt = (
            select(Measurement)
            .join(Optimization)
            .where(Optimization.user_id == user_id)
            .order_by(col(Measurement.created_at).asc())
        )
        return list(self.session.exec(stmt).all())

    def counts_by_user(self, user_id: str) -> dict[UUID, int]:
        """Measurement counts per optimization for a user."""
        stmt = (
            select(Measurement.optimization_id, func.count())
            .join(Optimization)
            .where(Optimization.user_id == user_id)
            .group_by(Measurement.optimization_id)
        )
        return {opt_id: count for opt_id, count in self.session.exec(stmt).all()}

    def create_batch(self, measurements: list[Measurement]) -> list[Measurement]:
        """Create several measurements."""
        for measurement in measurements:
            self.session.add(measurement)
        self.session.flush()
        for measurement in measurements:
            self.session.refresh(measurement)
        return measurements


# =============================================================================
# Insight Repository
# =============================================================================


class InsightRepository(BaseRepository[Insight]):
    """Repository for Insight entities."""

    model = Insight

    def list_by_optimization(
        self,
        optimization_id: UUID,
        type: InsightType | None = None,
    ) -> list[Insight]:
        """List insights of an optimization, newest first."""
        stmt = select(Insight).where(Insight.optimization_id == optimization_id)
        if type is not None:
            stmt = stmt.where(Insight.type == type)
        stmt = stmt.order_by(col(Insight.created_at).desc())
        return list(self.session.exec(stmt).all())
