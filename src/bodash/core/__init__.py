"""
bodash Core

Workflows that drive the optimization API, plus analytics and export
of measurement history.
"""

from bodash.core.workflow import (
    OptimizationWorkflow,
    WorkflowError,
    AccessDeniedError,
    MeasurementError,
    make_optimizer_id,
)
from bodash.core.analyzer import (
    OptimizationAnalyzer,
    OptimizationMetrics,
    normalize_value,
)
from bodash.core.export import measurements_frame, export_measurements

__all__ = [
    # Workflow
    "OptimizationWorkflow",
    "WorkflowError",
    "AccessDeniedError",
    "MeasurementError",
    "make_optimizer_id",
    # Analysis
    "OptimizationAnalyzer",
    "OptimizationMetrics",
    "normalize_value",
    # Export
    "measurements_frame",
    "export_measurements",
]
