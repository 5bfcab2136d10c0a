"""
bodash Optimization Analyzer

Metrics and chart data for optimization progress: best-so-far curves,
parameter impact, normalized target values and Pareto fronts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

import numpy as np

from bodash.db.models import Measurement, Optimization

logger = logging.getLogger(__name__)


@dataclass
class OptimizationMetrics:
    """Aggregated optimization metrics."""

    n_measurements: int
    n_recommended: int
    best_values: Dict[str, float]  # Target name -> best value
    best_measurement: Optional[Dict[str, Any]]  # Best for the primary target
    pareto_front_size: Optional[int] = None
    improvement_history: List[float] = field(default_factory=list)
    target_bounds: Dict[str, List[float]] = field(default_factory=dict)


def normalize_value(value: float, target: Dict[str, Any]) -> float:
    """
    Normalize a target value so that higher is always better.

    MIN targets are negated. MATCH targets map to 1 at the midpoint of
    their bounds, falling to 0 at the bounds and beyond.
    """
    mode = target.get("mode", "MAX")
    if mode == "MIN":
        return -value
    if mode == "MATCH" and target.get("bounds"):
        lower, upper = target["bounds"]
        midpoint = (lower + upper) / 2
        max_distance = max(abs(upper - midpoint), abs(lower - midpoint))
        if max_distance == 0:
            return 1.0 if value == midpoint else 0.0
        return 1 - min(abs(value - midpoint) / max_distance, 1)
    return value


class OptimizationAnalyzer:
    """
    Computes the data plotted by the dashboard charts.

    Measurements are expected oldest first; the n-th measurement is
    iteration n.
    """

    def __init__(self, optimization: Optimization, measurements: List[Measurement]):
        self.optimization = optimization
        self.measurements = measurements
        self.targets = self._resolve_targets()
        self._target_map = {t["name"]: t for t in self.targets}

    def _resolve_targets(self) -> List[Dict[str, Any]]:
        if self.optimization.targets:
            return list(self.optimization.targets)
        return [{
            "name": self.optimization.primary_target_name,
            "mode": self.optimization.primary_target_mode,
        }]

    @property
    def primary_target(self) -> str:
        return self.optimization.primary_target_name

    def _value(self, measurement: Measurement, target_name: str) -> Optional[float]:
        if measurement.target_values and target_name in measurement.target_values:
            return float(measurement.target_values[target_name])
        if target_name == self.primary_target:
            return float(measurement.target_value)
        return None

    def _target(self, target_name: Optional[str]) -> Dict[str, Any]:
        name = target_name or self.primary_target
        if name not in self._target_map:
            raise ValueError(f"Unknown target: {name}")
        return self._target_map[name]

    def _values_array(self, target_name: str) -> np.ndarray:
        values = [self._value(m, target_name) for m in self.measurements]
        return np.array([np.nan if v is None else v for v in values], dtype=float)

    # =========================================================================
    # Best so far
    # =========================================================================

    def best_so_far(self, target_name: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Running best value per iteration for a target.

        Returns:
            List of {iteration, value, best_value}; value is None where the
            measurement lacks the target
        """
        target = self._target(target_name)
        points = []
        best: Optional[float] = None
        best_score = -np.inf

        for i, measurement in enumerate(self.measurements):
            value = self._value(measurement, target["name"])
            if value is not None:
                score = normalize_value(value, target)
                if best is None or score > best_score:
                    best = value
                    best_score = score
            points.append({
                "iteration": i + 1,
                "value": value,
                "best_value": best,
                "is_recommended": measurement.is_recommended,
            })

        return points

    # =========================================================================
    # Parameter impact
    # =========================================================================

    def parameter_impact(
        self,
        parameter_name: str,
        target_name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Target statistics grouped by parameter value.

        Numerical values are rounded to 2 decimals before grouping. Needs
        at least 3 measurements and 2 distinct values, else returns [].

        Returns:
            List of {parameter_value, average_target_value, std_dev,
            count, min, max}, sorted by parameter value
        """
        target = self._target(target_name)
        if len(self.measurements) < 3:
            return []

        groups: Dict[Any, List[float]] = {}
        for measurement in self.measurements:
            if parameter_name not in measurement.parameters:
                continue
            value = self._value(measurement, target["name"])
            if value is None:
                continue
            key = _group_key(measurement.parameters[parameter_name])
            groups.setdefault(key, []).append(value)

        if len(groups) < 2:
            return []

        impact = []
        for key in sorted(groups, key=_sort_key):
            values = np.array(groups[key])
            impact.append({
                "parameter_value": key,
                "average_target_value": float(values.mean()),
                "std_dev": float(values.std()),
                "count": int(len(values)),
                "min": float(values.min()),
                "max": float(values.max()),
            })

        return impact

    # =========================================================================
    # Multi-target
    # =========================================================================

    def normalized_values(self) -> List[Dict[str, Any]]:
        """
        Raw and normalized target values per measurement.

        Returns:
            List of {iteration, is_recommended, values, normalized}
        """
        rows = []
        for i, measurement in enumerate(self.measurements):
            values: Dict[str, float] = {}
            normalized: Dict[str, float] = {}
            for target in self.targets:
                value = self._value(measurement, target["name"])
                if value is None:
                    continue
                values[target["name"]] = value
                normalized[target["name"]] = normalize_value(value, target)
            rows.append({
                "iteration": i + 1,
                "is_recommended": measurement.is_recommended,
                "values": values,
                "normalized": normalized,
            })
        return rows

    def pareto_front(self, target_x: str, target_y: str) -> List[Dict[str, Any]]:
        """
        Mark measurements as Pareto-optimal for two targets.

        Sorts by the first target's normalized value (descending) and sweeps,
        keeping points that improve on the best second-target value seen.
        Measurements lacking either target are never optimal.

        Returns:
            normalized_values() rows with an added is_pareto_optimal flag
        """
        self._target(target_x)
        self._target(target_y)

        rows = self.normalized_values()
        candidates = [
            i for i, row in enumerate(rows)
            if target_x in row["normalized"] and target_y in row["normalized"]
        ]
        candidates.sort(key=lambda i: rows[i]["normalized"][target_x], reverse=True)

        optimal = set()
        current_best = -np.inf
        for i in candidates:
            y = rows[i]["normalized"][target_y]
            if y > current_best:
                optimal.add(i)
                current_best = y

        for i, row in enumerate(rows):
            row["is_pareto_optimal"] = i in optimal

        return rows

    def _get_pareto_mask(self) -> np.ndarray:
        """Non-dominated mask over all targets using normalized values."""
        n = len(self.measurements)
        if n == 0 or len(self.targets) < 2:
            return np.zeros(n, dtype=bool)

        Y = np.column_stack([
            [
                normalize_value(v, t) if not np.isnan(v) else -np.inf
                for v in self._values_array(t["name"])
            ]
            for t in self.targets
        ])

        is_pareto = np.ones(n, dtype=bool)
        for i in range(n):
            if np.all(np.isneginf(Y[i])):
                is_pareto[i] = False
                continue
            for j in range(n):
                if i == j:
                    continue
                if np.all(Y[j] >= Y[i]) and np.any(Y[j] > Y[i]):
                    is_pareto[i] = False
                    break

        return is_pareto

    # =========================================================================
    # Metrics
    # =========================================================================

    def compute_metrics(self) -> OptimizationMetrics:
        """
        Compute optimization metrics.

        Returns:
            OptimizationMetrics with counts, best values and history
        """
        if not self.measurements:
            return OptimizationMetrics(
                n_measurements=0,
                n_recommended=0,
                best_values={},
                best_measurement=None,
            )

        best_values: Dict[str, float] = {}
        target_bounds: Dict[str, List[float]] = {}
        for target in self.targets:
            values = self._values_array(target["name"])
            valid = ~np.isnan(values)
            if not valid.any():
                continue
            scores = np.array([normalize_value(v, target) for v in values[valid]])
            best_values[target["name"]] = float(values[valid][int(np.argmax(scores))])
            target_bounds[target["name"]] = [
                float(values[valid].min()),
                float(values[valid].max()),
            ]

        best_measurement = None
        primary = self._target(None)
        best_score = -np.inf
        for i, measurement in enumerate(self.measurements):
            value = self._value(measurement, primary["name"])
            if value is None:
                continue
            score = normalize_value(value, primary)
            if score > best_score:
                best_score = score
                best_measurement = {
                    "iteration": i + 1,
                    "parameters": measurement.parameters,
                    "target_value": value,
                    "target_values": measurement.target_values
                    or {primary["name"]: value},
                }

        history = [
            p["best_value"] for p in self.best_so_far() if p["best_value"] is not None
        ]

        pareto_size = None
        if len(self.targets) > 1:
            pareto_size = int(self._get_pareto_mask().sum())

        return OptimizationMetrics(
            n_measurements=len(self.measurements),
            n_recommended=sum(1 for m in self.measurements if m.is_recommended),
            best_values=best_values,
            best_measurement=best_measurement,
            pareto_front_size=pareto_size,
            improvement_history=history,
            target_bounds=target_bounds,
        )


def _group_key(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return round(float(value), 2)
    return value


def _sort_key(value: Any) -> tuple:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value))
