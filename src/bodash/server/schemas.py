"""
bodash API Schemas

Pydantic models for API request/response.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from bodash.db.models import InsightType, OptimizationStatus


# =============================================================================
# Optimization Schemas
# =============================================================================


class OptimizationUpdate(BaseModel):
    """Update an optimization's display fields."""

    name: Optional[str] = None
    description: Optional[str] = None


class OptimizationResponse(BaseModel):
    """Optimization response."""

    id: UUID
    name: str
    description: Optional[str]
    optimizer_id: str
    status: OptimizationStatus
    objective_type: str
    primary_target_name: str
    primary_target_mode: str
    best_value: Optional[float]
    is_multi_objective: bool
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class OptimizationDetailResponse(OptimizationResponse):
    """Detailed optimization response with configuration."""

    config: Dict[str, Any]
    targets: Optional[List[Dict[str, Any]]]
    best_parameters: Optional[Dict[str, Any]]
    last_model_update: Optional[datetime]
    recommender_type: Optional[str]
    acquisition_function: Optional[str]
    has_constraints: bool


# =============================================================================
# Measurement Schemas
# =============================================================================


class MeasurementCreate(BaseModel):
    """Report a measurement."""

    parameters: Dict[str, Any] = Field(description="Parameter values")
    target_value: Optional[float] = Field(
        default=None,
        description="Primary target value (single target shorthand)",
    )
    target_values: Optional[Dict[str, float]] = Field(
        default=None,
        description="Values by target name",
    )
    is_recommended: bool = Field(default=True)

    @model_validator(mode="after")
    def validate_values(self) -> "MeasurementCreate":
        if self.target_value is None and not self.target_values:
            raise ValueError("target_value or target_values is required")
        return self

    @property
    def values(self) -> Any:
        return self.target_values if self.target_values else self.target_value


class MeasurementBatchItem(MeasurementCreate):
    """One measurement in a batch."""

    is_recommended: bool = Field(default=False)


class MeasurementBatchCreate(BaseModel):
    """Report several measurements."""

    measurements: List[MeasurementBatchItem] = Field(min_length=1)


class MeasurementResponse(BaseModel):
    """Measurement response."""

    id: UUID
    optimization_id: UUID
    parameters: Dict[str, Any]
    target_value: float
    target_values: Optional[Dict[str, float]]
    is_recommended: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Suggestion / Insight Schemas
# =============================================================================


class SuggestionResponse(BaseModel):
    """Suggested parameter sets."""

    optimization_id: UUID
    batch_size: int
    suggestions: List[Dict[str, Any]]


class BestPointResponse(BaseModel):
    """Best point reported by the optimization API."""

    best_parameters: Optional[Dict[str, Any]] = None
    best_value: Optional[float] = None
    message: Optional[str] = None


class PredictionRequest(BaseModel):
    """Points to predict."""

    points: List[Dict[str, Any]] = Field(min_length=1)


class InsightResponse(BaseModel):
    """Stored insight."""

    id: UUID
    optimization_id: UUID
    type: InsightType
    data: Dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Metrics Schemas
# =============================================================================


class OptimizationMetricsResponse(BaseModel):
    """Optimization metrics response."""

    n_measurements: int
    n_recommended: int
    best_values: Dict[str, float]
    best_measurement: Optional[Dict[str, Any]]
    pareto_front_size: Optional[int]
    improvement_history: List[float]
    target_bounds: Dict[str, List[float]]


# =============================================================================
# Health Schemas
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str


class OptimizerHealthResponse(BaseModel):
    """Optimization API health."""

    status: str
    using_gpu: bool
    gpu_info: Optional[Any] = None
