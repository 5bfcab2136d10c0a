"""
bodash Optimization Routes
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, status

from bodash.core.analyzer import OptimizationAnalyzer
from bodash.core.workflow import OptimizationWorkflow
from bodash.db.models import OptimizationStatus
from bodash.server.deps import get_workflow, translate_errors
from bodash.server.schemas import (
    BestPointResponse,
    OptimizationDetailResponse,
    OptimizationMetricsResponse,
    OptimizationResponse,
    OptimizationUpdate,
    SuggestionResponse,
)
from bodash.spec.models import OptimizationRequest

router = APIRouter(prefix="/optimizations", tags=["optimizations"])


@router.post("", response_model=OptimizationDetailResponse, status_code=status.HTTP_201_CREATED)
def create_optimization(
    data: OptimizationRequest,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> OptimizationDetailResponse:
    """Create an optimization on the optimization API."""
    with translate_errors():
        optimization = workflow.create_optimization(data)
    workflow.session.commit()

    return OptimizationDetailResponse.model_validate(optimization)


@router.get("", response_model=List[OptimizationResponse])
def list_optimizations(
    status: str | None = None,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> List[OptimizationResponse]:
    """List the user's optimizations, newest first."""
    with translate_errors():
        status_enum = OptimizationStatus(status) if status else None
        optimizations = workflow.list_optimizations(status=status_enum)

    return [OptimizationResponse.model_validate(o) for o in optimizations]


@router.get("/{optimization_id}", response_model=OptimizationDetailResponse)
def get_optimization(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> OptimizationDetailResponse:
    """Get optimization by ID or optimizer ID."""
    with translate_errors():
        optimization = workflow.get_optimization(optimization_id)

    return OptimizationDetailResponse.model_validate(optimization)


@router.put("/{optimization_id}", response_model=OptimizationDetailResponse)
def update_optimization(
    optimization_id: str,
    data: OptimizationUpdate,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> OptimizationDetailResponse:
    """Update name or description."""
    with translate_errors():
        optimization = workflow.update(
            optimization_id,
            name=data.name,
            description=data.description,
        )
    workflow.session.commit()

    return OptimizationDetailResponse.model_validate(optimization)


@router.delete("/{optimization_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_optimization(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> None:
    """Delete an optimization with its measurements and insights."""
    with translate_errors():
        workflow.delete(optimization_id)
    workflow.session.commit()


# =============================================================================
# Lifecycle
# =============================================================================


@router.post("/{optimization_id}/pause", response_model=OptimizationResponse)
def pause_optimization(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> OptimizationResponse:
    """Pause an active optimization."""
    with translate_errors():
        optimization = workflow.pause(optimization_id)
    workflow.session.commit()

    return OptimizationResponse.model_validate(optimization)


@router.post("/{optimization_id}/resume", response_model=OptimizationResponse)
def resume_optimization(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> OptimizationResponse:
    """Resume a paused optimization."""
    with translate_errors():
        optimization = workflow.resume(optimization_id)
    workflow.session.commit()

    return OptimizationResponse.model_validate(optimization)


@router.post("/{optimization_id}/complete", response_model=OptimizationResponse)
def complete_optimization(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> OptimizationResponse:
    """Mark an optimization as completed."""
    with translate_errors():
        optimization = workflow.complete(optimization_id)
    workflow.session.commit()

    return OptimizationResponse.model_validate(optimization)


@router.post("/{optimization_id}/load")
def load_optimization(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> Dict[str, Any]:
    """Reload the optimizer on the optimization API."""
    with translate_errors():
        return workflow.load(optimization_id)


# =============================================================================
# Suggestions and Results
# =============================================================================


@router.get("/{optimization_id}/suggestions", response_model=SuggestionResponse)
def get_suggestions(
    optimization_id: str,
    batch_size: int = Query(default=1, ge=1, le=100),
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> SuggestionResponse:
    """Get suggested experiments."""
    with translate_errors():
        optimization = workflow.get_optimization(optimization_id)
        suggestions = workflow.get_suggestions(optimization.id, batch_size=batch_size)

    return SuggestionResponse(
        optimization_id=optimization.id,
        batch_size=batch_size,
        suggestions=suggestions,
    )


@router.get("/{optimization_id}/best-point", response_model=BestPointResponse)
def get_best_point(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> BestPointResponse:
    """Get the current best point from the optimization API."""
    with translate_errors():
        best = workflow.get_best_point(optimization_id)

    if not best.available:
        return BestPointResponse(message="No best point available yet")

    return BestPointResponse(
        best_parameters=best.best_parameters,
        best_value=best.best_value,
    )


def _analyzer(workflow: OptimizationWorkflow, optimization_id: str) -> OptimizationAnalyzer:
    optimization = workflow.get_optimization(optimization_id)
    measurements = workflow.measurement_repo.list_by_optimization(optimization.id)
    return OptimizationAnalyzer(optimization, measurements)


@router.get("/{optimization_id}/metrics", response_model=OptimizationMetricsResponse)
def get_metrics(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> OptimizationMetricsResponse:
    """Get optimization metrics from local measurements."""
    with translate_errors():
        metrics = _analyzer(workflow, optimization_id).compute_metrics()

    return OptimizationMetricsResponse(
        n_measurements=metrics.n_measurements,
        n_recommended=metrics.n_recommended,
        best_values=metrics.best_values,
        best_measurement=metrics.best_measurement,
        pareto_front_size=metrics.pareto_front_size,
        improvement_history=metrics.improvement_history,
        target_bounds=metrics.target_bounds,
    )


@router.get("/{optimization_id}/best-so-far")
def get_best_so_far(
    optimization_id: str,
    target: str | None = None,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """Running best value per iteration."""
    with translate_errors():
        return _analyzer(workflow, optimization_id).best_so_far(target)


@router.get("/{optimization_id}/parameter-impact/{parameter_name}")
def get_parameter_impact(
    optimization_id: str,
    parameter_name: str,
    target: str | None = None,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """Target statistics grouped by parameter value."""
    with translate_errors():
        return _analyzer(workflow, optimization_id).parameter_impact(parameter_name, target)


@router.get("/{optimization_id}/pareto")
def get_pareto(
    optimization_id: str,
    x: str,
    y: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> List[Dict[str, Any]]:
    """Measurements with Pareto-optimality flags for two targets."""
    with translate_errors():
        return _analyzer(workflow, optimization_id).pareto_front(x, y)
