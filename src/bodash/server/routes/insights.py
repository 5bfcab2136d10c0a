"""
bodash Insight Routes

Model insights fetched from the optimization API.
"""

from typing import Any, List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, Response

from bodash.core.workflow import OptimizationWorkflow
from bodash.db.models import InsightType
from bodash.server.deps import get_workflow, translate_errors
from bodash.server.schemas import InsightResponse, PredictionRequest

router = APIRouter(prefix="/optimizations/{optimization_id}", tags=["insights"])


@router.post(
    "/insights/feature-importance",
    response_model=InsightResponse,
    status_code=status.HTTP_201_CREATED,
)
def compute_feature_importance(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> InsightResponse:
    """Fetch feature importance and store it."""
    with translate_errors():
        insight = workflow.get_feature_importance(optimization_id)
    workflow.session.commit()

    return InsightResponse.model_validate(insight)


@router.get("/insights/feature-importance", response_model=List[InsightResponse])
def list_feature_importance(
    optimization_id: str,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> List[InsightResponse]:
    """List stored feature importance insights, newest first."""
    with translate_errors():
        insights = workflow.list_insights(
            optimization_id,
            type=InsightType.FEATURE_IMPORTANCE,
        )

    return [InsightResponse.model_validate(i) for i in insights]


@router.post("/predictions")
def get_predictions(
    optimization_id: str,
    data: PredictionRequest,
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> Any:
    """Model predictions at the given points."""
    with translate_errors():
        return workflow.get_predictions(optimization_id, data.points)


@router.get("/export")
def export_campaign(
    optimization_id: str,
    format: str = Query(default="json", pattern="^(csv|json)$"),
    workflow: OptimizationWorkflow = Depends(get_workflow),
) -> Response:
    """Export the campaign held by the optimization API."""
    with translate_errors():
        data = workflow.export(optimization_id, format=format)

    if isinstance(data, str):
        return Response(
            content=data,
            media_type="text/csv" if format == "csv" else "application/json",
        )
    return JSONResponse(content=data)
