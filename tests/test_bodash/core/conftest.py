"""
Fixtures for core workflow and analysis tests.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import Session, create_engine, SQLModel

from bodash.core.workflow import OptimizationWorkflow
from bodash.db.models import Measurement, Optimization
from bodash.spec.models import OptimizationRequest


@pytest.fixture
def engine():
    """Create in-memory SQLite engine."""
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create database session."""
    with Session(engine) as session:
        yield session


@pytest.fixture
def workflow(session, api_client) -> OptimizationWorkflow:
    """Workflow for user alice against the fake API."""
    return OptimizationWorkflow(session, api_client, "alice")


@pytest.fixture
def single_optimization(workflow, single_target_request) -> Optimization:
    """Single-target optimization created through the workflow."""
    return workflow.create_optimization(OptimizationRequest(**single_target_request))


@pytest.fixture
def multi_optimization(workflow, multi_target_request) -> Optimization:
    """Desirability optimization over yield (MAX) and cost (MIN)."""
    return workflow.create_optimization(OptimizationRequest(**multi_target_request))


@pytest.fixture
def build_history():
    """Factory for unsaved measurement histories, oldest first."""

    def build(optimization, rows, recommended=None):
        measurements = []
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, (parameters, values) in enumerate(rows):
            measurements.append(Measurement(
                optimization_id=optimization.id,
                parameters=parameters,
                target_value=values[optimization.primary_target_name],
                target_values=values,
                is_recommended=recommended[i] if recommended else True,
                created_at=start + timedelta(minutes=i),
            ))
        return measurements

    return build


@pytest.fixture
def analysis_optimization() -> Optimization:
    """Unsaved optimization with MAX, MIN and MATCH targets."""
    return Optimization(
        user_id="alice",
        name="analysis",
        optimizer_id="alice_analysis",
        config={},
        targets=[
            {"name": "yield", "mode": "MAX", "weight": 1.0},
            {"name": "cost", "mode": "MIN", "weight": 1.0},
            {"name": "purity", "mode": "MATCH", "bounds": [90.0, 100.0], "weight": 1.0},
        ],
        objective_type="desirability",
        primary_target_name="yield",
        primary_target_mode="MAX",
        is_multi_objective=True,
    )
