"""
bodash Optimization Workflow

Operations that drive the remote optimization API and mirror every
result into the database, scoped to a single user.
"""

from typing import Any, Dict, List, Optional, Union
from uuid import UUID
import logging
import math
import re
import time

from sqlmodel import Session

from bodash.api.client import BestPoint, OptimizerAPIClient
from bodash.api.exceptions import OptimizerError
from bodash.db.models import (
    Insight,
    InsightType,
    Measurement,
    Optimization,
    OptimizationStatus,
    utc_now,
)
from bodash.db.repository import (
    InsightRepository,
    MeasurementRepository,
    NotFoundError,
    OptimizationRepository,
)
from bodash.spec.builder import build_optimization_config
from bodash.spec.models import OptimizationRequest

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class WorkflowError(Exception):
    """Base exception for workflow errors."""
    pass


class AccessDeniedError(WorkflowError):
    """Optimization belongs to another user."""
    pass


class MeasurementError(WorkflowError):
    """Measurement values do not fit the optimization."""
    pass


TargetValues = Union[float, Dict[str, float]]


def make_optimizer_id(user_id: str, name: str) -> str:
    """Remote optimizer ID: user, name with whitespace replaced, epoch millis."""
    slug = re.sub(r"\s+", "_", name)
    return f"{user_id}_{slug}_{int(time.time() * 1000)}"


class OptimizationWorkflow:
    """
    User-scoped optimization operations.

    Every remote call happens before the matching database write, so a
    failed API call leaves the database untouched. Sessions are committed
    by the caller.
    """

    def __init__(self, session: Session, api: OptimizerAPIClient, user_id: str):
        """
        Initialize workflow.

        Args:
            session: Database session
            api: Optimization API client
            user_id: Authenticated user
        """
        self.session = session
        self.api = api
        self.user_id = user_id

        # Repositories
        self.optimization_repo = OptimizationRepository(session)
        self.measurement_repo = MeasurementRepository(session)
        self.insight_repo = InsightRepository(session)

    # =========================================================================
    # Creation and lookup
    # =========================================================================

    def check_gpu(self) -> bool:
        """Whether the optimization API reports a GPU; False if unreachable."""
        try:
            return bool(self.api.health().get("using_gpu", False))
        except OptimizerError as e:
            logger.warning(f"GPU availability check failed: {e}")
            return False

    def create_optimization(self, request: OptimizationRequest) -> Optimization:
        """
        Create an optimizer remotely and record it.

        Raises:
            ConfigLoadError: If the request is malformed
            ConfigValidationError: If the configuration is inconsistent
            OptimizerAPIError: If the API rejects the optimizer
        """
        use_gpu = self.check_gpu()
        config = build_optimization_config(request, use_gpu=use_gpu)
        payload = config.api_payload()

        optimizer_id = make_optimizer_id(self.user_id, request.name)
        self.api.create_optimizer(optimizer_id, payload)

        primary = config.targets[0]
        optimization = Optimization(
            user_id=self.user_id,
            name=request.name,
            description=request.description,
            optimizer_id=optimizer_id,
            status=OptimizationStatus.ACTIVE,
            config=payload,
            targets=[t.model_dump(mode="json", exclude_none=True) for t in config.targets],
            objective_type=config.objective_type.value,
            primary_target_name=primary.name,
            primary_target_mode=primary.mode.value,
            recommender_type=config.recommender_type,
            acquisition_function=config.acquisition_function,
            has_constraints=config.has_constraints,
            is_multi_objective=config.is_multi_objective,
        )
        optimization = self.optimization_repo.create(optimization)

        logger.info(
            f"Created optimization {optimization.id} ({optimizer_id}) "
            f"with {len(config.parameters)} parameters, gpu={use_gpu}"
        )
        return optimization

    def list_optimizations(
        self,
        status: Optional[OptimizationStatus] = None,
    ) -> List[Optimization]:
        """List the user's optimizations, newest first."""
        return self.optimization_repo.list_by_user(self.user_id, status=status)

    def get_optimization(self, optimization_id: Union[UUID, str]) -> Optimization:
        """
        Get an owned optimization by ID or remote optimizer ID.

        Raises:
            NotFoundError: If no such optimization exists
            AccessDeniedError: If it belongs to another user
        """
        optimization = None
        key = optimization_id
        if not isinstance(key, UUID):
            try:
                key = UUID(str(key))
            except ValueError:
                optimization = self.optimization_repo.get_by_optimizer_id(str(key))
                key = None

        if key is not None:
            optimization = self.optimization_repo.get(key)

        if optimization is None:
            raise NotFoundError(f"Optimization {optimization_id} not found")
        if optimization.user_id != self.user_id:
            raise AccessDeniedError(
                "You don't have permission to access this optimization"
            )
        return optimization

    def list_measurements(self, optimization_id: Union[UUID, str]) -> List[Measurement]:
        """Measurements of an owned optimization, oldest first."""
        optimization = self.get_optimization(optimization_id)
        return self.measurement_repo.list_by_optimization(optimization.id)

    # =========================================================================
    # Suggestions and measurements
    # =========================================================================

    def get_suggestions(
        self,
        optimization_id: Union[UUID, str],
        batch_size: int = 1,
    ) -> List[Dict[str, Any]]:
        """Get suggested parameter sets from the API."""
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        optimization = self.get_optimization(optimization_id)
        suggestions = self.api.suggest(optimization.optimizer_id, batch_size=batch_size)
        logger.info(f"Got {len(suggestions)} suggestions for {optimization.optimizer_id}")
        return suggestions

    def _resolve_values(
        self,
        optimization: Optimization,
        target_values: TargetValues,
    ) -> Dict[str, float]:
        """Validate measured values against the optimization's targets."""
        if not isinstance(target_values, dict):
            target_values = {optimization.primary_target_name: target_values}

        names = optimization.target_names
        unknown = sorted(set(target_values) - set(names))
        if unknown:
            raise MeasurementError(f"Unknown targets: {unknown}")

        values: Dict[str, float] = {}
        for name, value in target_values.items():
            if value is None:
                continue
            try:
                number = float(value)
            except (TypeError, ValueError):
                raise MeasurementError(
                    f"Value for target '{name}' is not a number: {value!r}"
                ) from None
            if math.isnan(number) or math.isinf(number):
                raise MeasurementError(f"Value for target '{name}' must be finite")
            values[name] = number

        if optimization.primary_target_name not in values:
            raise MeasurementError(
                f"Missing value for primary target: {optimization.primary_target_name}"
            )

        if optimization.is_multi_objective:
            missing = [n for n in names if n not in values]
            if missing:
                raise MeasurementError(f"Missing values for targets: {missing}")

        return values

    def _api_measurement(
        self,
        optimization: Optimization,
        parameters: Dict[str, Any],
        values: Dict[str, float],
    ) -> Dict[str, Any]:
        if optimization.is_multi_objective:
            return {"parameters": parameters, "target_values": values}
        return {
            "parameters": parameters,
            "target_value": values[optimization.primary_target_name],
        }

    def _check_open(self, optimization: Optimization) -> None:
        if optimization.is_terminal:
            raise MeasurementError(
                f"Optimization '{optimization.name}' is {optimization.status.value} "
                f"and no longer accepts measurements"
            )

    def _mark_updated(self, optimization: Optimization) -> None:
        """Mark the optimization active and stamp the model update."""
        if optimization.status != OptimizationStatus.ACTIVE:
            self.optimization_repo.update_status(optimization.id, OptimizationStatus.ACTIVE)
        optimization.last_model_update = utc_now()
        self.optimization_repo.update(optimization)

    def _refresh_best_point(self, optimization: Optimization) -> None:
        """Copy the API's best point onto the optimization; failures are logged."""
        try:
            best = self.api.best_point(optimization.optimizer_id)
        except OptimizerError as e:
            logger.warning(f"Could not refresh best point for {optimization.optimizer_id}: {e}")
            return

        if best.available:
            optimization.best_value = best.best_value
            optimization.best_parameters = best.best_parameters
            self.optimization_repo.update(optimization)

    def add_measurement(
        self,
        optimization_id: Union[UUID, str],
        parameters: Dict[str, Any],
        target_values: TargetValues,
        is_recommended: bool = True,
    ) -> Measurement:
        """
        Report a measurement to the API and record it.

        Single-objective optimizations send only the primary target value;
        multi-objective ones send every target value.

        Raises:
            MeasurementError: If values are missing, unknown or the
                optimization is completed or failed
        """
        optimization = self.get_optimization(optimization_id)
        self._check_open(optimization)
        values = self._resolve_values(optimization, target_values)

        api_measurement = self._api_measurement(optimization, parameters, values)
        self.api.add_measurement(optimization.optimizer_id, **api_measurement)

        measurement = self.measurement_repo.create(Measurement(
            optimization_id=optimization.id,
            parameters=dict(parameters),
            target_value=values[optimization.primary_target_name],
            target_values=values,
            is_recommended=is_recommended,
        ))

        self._mark_updated(optimization)
        self._refresh_best_point(optimization)

        logger.info(f"Added measurement to {optimization.optimizer_id}")
        return measurement

    def add_measurements(
        self,
        optimization_id: Union[UUID, str],
        measurements: List[Dict[str, Any]],
    ) -> List[Measurement]:
        """
        Report several measurements in one API call and record them.

        Args:
            optimization_id: Optimization
            measurements: Dicts with parameters, target_values and an
                optional is_recommended flag (default False)

        Raises:
            MeasurementError: If any measurement is invalid; nothing is sent
        """
        optimization = self.get_optimization(optimization_id)
        self._check_open(optimization)

        if not measurements:
            raise MeasurementError("No measurements given")

        resolved = []
        for i, item in enumerate(measurements):
            if "parameters" not in item:
                raise MeasurementError(f"Measurement {i} has no parameters")
            raw_values = item.get("target_values", item.get("target_value"))
            if raw_values is None:
                raise MeasurementError(f"Measurement {i} has no target values")
            resolved.append((item, self._resolve_values(optimization, raw_values)))

        self.api.add_measurements(
            optimization.optimizer_id,
            [
                self._api_measurement(optimization, item["parameters"], values)
                for item, values in resolved
            ],
        )

        created = self.measurement_repo.create_batch([
            Measurement(
                optimization_id=optimization.id,
                parameters=dict(item["parameters"]),
                target_value=values[optimization.primary_target_name],
                target_values=values,
                is_recommended=bool(item.get("is_recommended", False)),
            )
            for item, values in resolved
        ])

        self._mark_updated(optimization)
        self._refresh_best_point(optimization)

        logger.info(f"Added {len(created)} measurements to {optimization.optimizer_id}")
        return created

    # =========================================================================
    # Insights
    # =========================================================================

    def get_best_point(self, optimization_id: Union[UUID, str]) -> BestPoint:
        """Current best point from the API."""
        optimization = self.get_optimization(optimization_id)
        return self.api.best_point(optimization.optimizer_id)

    def get_feature_importance(self, optimization_id: Union[UUID, str]) -> Insight:
        """Fetch feature importance from the API and store it as an insight."""
        optimization = self.get_optimization(optimization_id)
        data = self.api.feature_importance(optimization.optimizer_id)
        if not isinstance(data, dict):
            data = {"feature_importance": data}

        insight = self.insight_repo.create(Insight(
            optimization_id=optimization.id,
            type=InsightType.FEATURE_IMPORTANCE,
            data=data,
        ))
        logger.info(f"Stored feature importance for {optimization.optimizer_id}")
        return insight

    def list_insights(
        self,
        optimization_id: Union[UUID, str],
        type: Optional[InsightType] = None,
    ) -> List[Insight]:
        """Stored insights, newest first."""
        optimization = self.get_optimization(optimization_id)
        return self.insight_repo.list_by_optimization(optimization.id, type=type)

    def get_predictions(
        self,
        optimization_id: Union[UUID, str],
        points: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Model predictions at the given parameter sets."""
        if not points:
            raise ValueError("At least one point is required")
        optimization = self.get_optimization(optimization_id)
        return self.api.predict(optimization.optimizer_id, points)

    def export(self, optimization_id: Union[UUID, str], format: str = "json") -> Any:
        """Export the remote campaign as JSON or CSV."""
        optimization = self.get_optimization(optimization_id)
        return self.api.export(optimization.optimizer_id, format=format)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def load(self, optimization_id: Union[UUID, str]) -> Dict[str, Any]:
        """Reload a persisted optimizer into the API's memory after a restart."""
        optimization = self.get_optimization(optimization_id)
        result = self.api.load_optimizer(optimization.optimizer_id) or {}
        logger.info(f"Loaded optimizer {optimization.optimizer_id}")
        return result

    def _set_status(
        self,
        optimization_id: Union[UUID, str],
        status: OptimizationStatus,
    ) -> Optimization:
        optimization = self.get_optimization(optimization_id)
        optimization = self.optimization_repo.update_status(optimization.id, status)
        logger.info(f"Optimization {optimization.id} {status.value}")
        return optimization

    def pause(self, optimization_id: Union[UUID, str]) -> Optimization:
        return self._set_status(optimization_id, OptimizationStatus.PAUSED)

    def resume(self, optimization_id: Union[UUID, str]) -> Optimization:
        return self._set_status(optimization_id, OptimizationStatus.ACTIVE)

    def complete(self, optimization_id: Union[UUID, str]) -> Optimization:
        return self._set_status(optimization_id, OptimizationStatus.COMPLETED)

    def update(
        self,
        optimization_id: Union[UUID, str],
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optimization:
        """Update display fields of an optimization."""
        optimization = self.get_optimization(optimization_id)
        if name is not None:
            if not name.strip():
                raise ValueError("name must not be empty")
            optimization.name = name
        if description is not None:
            optimization.description = description
        return self.optimization_repo.update(optimization)

    def delete(self, optimization_id: Union[UUID, str]) -> None:
        """Delete an optimization with its measurements and insights."""
        optimization = self.get_optimization(optimization_id)
        self.optimization_repo.delete(optimization)
        logger.info(f"Deleted optimization {optimization.id}")
