"""
bodash Measurement Routes
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from bodash.core.export import export_measurements
from bodash.core.workflow import OptimizationWorkflow
from bodash.server.deps import get_workflow, translate_errors
from bodash.server.schemas import (
    MeasurementBatchCreate,
    MeasurementCreate,
    MeasurementResponse,
)

router = APIRouter(prefix="/optimizations/{optimization_id}/measurements", tags=["measurements"])

_MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}


@router.post("", response_model=MeasurementResponse, status_code=status.HTTP_201_CREATED)
def create_measurement(
    optimization_id: str,
    data: MeasurementCreate,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> MeasurementResponse:
    """Report a measurement to the optimization API and record it."""
    with translate_errors():
        measurement = workflow.add_measurement(
            optimization_id,
            parameters=data.parameters,
            target_values=data.values,
            is_recommended=data.is_recommended,
        )
    workflow.session.commit()

    return MeasurementResponse.model_validate(measurement)


@router.post("/batch", response_model=List[MeasurementResponse], status_code=status.HTTP_201_CREATED)
def create_measurements_batch(
    optimization_id: str,
    data: MeasurementBatchCreate,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> List[MeasurementResponse]:
    """Report several measurements in one call."""
    with translate_errors():
        measurements = workflow.add_measurements(
            optimization_id,
            [
                {
                    "parameters": m.parameters,
                    "target_values": m.values,
                    "is_recommended": m.is_recommended,
                }
                for m in data.measurements
            ],
        )
    workflow.session.commit()

    return [MeasurementResponse.model_validate(m) for m in measurements]


@router.get("", response_model=List[MeasurementResponse])
def list_measurements(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> List[MeasurementResponse]:
    """List measurements, oldest first."""
    with translate_errors():
        measurements = workflow.list_measurements(optimization_id)

    return [MeasurementResponse.model_validate(m) for m in measurements]


@router.get("/export")
def export_measurement_history(
    optimization_id: str,
    format: str = Query(default="csv", pattern="^(csv|json)$"),
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> Response:
    """Download local measurement history as CSV or JSON."""
    with translate_errors():
        optimization = workflow.get_optimization(optimization_id)
        measurements = workflow.measurement_repo.list_by_optimization(optimization.id)
        content = export_measurements(optimization, measurements, format=format)

    filename = f"{optimization.optimizer_id}_measurements.{format}"
    return Response(
        content=content,
        media_type=_MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
