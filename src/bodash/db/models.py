"""
bodash Database Models

SQLModel ORM models mirroring optimizations held by the remote API,
with JSON columns for configurations and measured values, and enum
types for status fields.
"""

import enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel, Column, JSON


# =============================================================================
# Enums
# =============================================================================


class OptimizationStatus(str, enum.Enum):
    """Optimization lifecycle states."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class InsightType(str, enum.Enum):
    """Kinds of stored model insights."""

    FEATURE_IMPORTANCE = "feature_importance"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# Base Model
# =============================================================================


class TimestampMixin(SQLModel):
    """Mixin for created_at/updated_at timestamps."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default=None)


# =============================================================================
# Optimization
# =============================================================================


class Optimization(TimestampMixin, table=True):
    """
    An Optimization mirrors one optimizer on the remote API.

    Keeps the assembled configuration, its targets, and the latest best
    point reported by the API. Rows are owned by a single user.
    """

    __tablename__ = "optimizations"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(index=True)
    name: str
    description: Optional[str] = Field(default=None)
    optimizer_id: str = Field(unique=True, index=True)
    status: OptimizationStatus = Field(default=OptimizationStatus.ACTIVE, index=True)
    config: dict = Field(
        default_factory=dict,
        sa_column=Column(JSON),
        description="Configuration sent to the optimization API",
    )
    targets: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        sa_column=Column(JSON),
        description="All targets with mode, bounds and weight",
    )
    objective_type: str = Field(default="single")
    primary_target_name: str
    primary_target_mode: str = Field(default="MAX")
    best_value: Optional[float] = Field(default=None)
    best_parameters: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON),
    )
    last_model_update: Optional[datetime] = Field(default=None)
    recommender_type: Optional[str] = Field(default=None)
    acquisition_function: Optional[str] = Field(default=None)
    has_constraints: bool = Field(default=False)
    is_multi_objective: bool = Field(default=False)

    # Relationships
    measurements: List["Measurement"] = Relationship(
        back_populates="optimization",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    insights: List["Insight"] = Relationship(
        back_populates="optimization",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    @property
    def target_names(self) -> List[str]:
        if self.targets:
            return [t["name"] for t in self.targets]
        return [self.primary_target_name]

    @property
    def is_terminal(self) -> bool:
        return self.status in (OptimizationStatus.COMPLETED, OptimizationStatus.FAILED)

    def __repr__(self) -> str:
        return (
            f"Optimization(id={self.id}, name={self.name!r}, "
            f"status={self.status.value})"
        )


# =============================================================================
# Measurement
# =============================================================================


class Measurement(TimestampMixin, table=True):
    """
    A Measurement records one evaluated parameter set.

    target_value holds the primary target; target_values holds every
    target by name.
    """

    __tablename__ = "measurements"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    optimization_id: UUID = Field(
        foreign_key="optimizations.id",
        index=True,
        ondelete="CASCADE",
    )
    parameters: dict = Field(
        default_factory=dict,
        sa_column=Column(JSON),
        description="Parameter values as evaluated",
    )
    target_value: float = Field(description="Primary target value")
    target_values: Optional[Dict[str, float]] = Field(
        default=None,
        sa_column=Column(JSON),
        description="Values of all targets by name",
    )
    is_recommended: bool = Field(
        default=False,
        description="Whether the parameters came from a suggestion",
    )

    # Relationships
    optimization: Optional["Optimization"] = Relationship(back_populates="measurements")

    def __repr__(self) -> str:
        return f"Measurement(id={self.id}, target_value={self.target_value})"


# =============================================================================
# Insight
# =============================================================================


class Insight(TimestampMixin, table=True):
    """Model insight fetched from the API (e.g. feature importance)."""

    __tablename__ = "insights"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    optimization_id: UUID = Field(
        foreign_key="optimizations.id",
        index=True,
        ondelete="CASCADE",
    )
    type: InsightType = Field(index=True)
    data: dict = Field(
        default_factory=dict,
        sa_column=Column(JSON),
    )

    # Relationships
    optimization: Optional["Optimization"] = Relationship(back_populates="insights")

    def __repr__(self) -> str:
        return f"Insight(id={self.id}, type={self.type.value})"
